"""
Image layers.

States:
- success: ``<image>`` with the (embedded) source, fit mapping, optional
  rounded-corner clip and the filter chain
- loading (interactive target only): placeholder until the fetch resolves
- missing: no source, a rejected source or a failed fetch; the placeholder
  box with a mountain/sun icon and an "Image" label
"""

import logging
from typing import Any

from layerforge.exceptions import SourceFetchError
from layerforge.filters import apply_filters
from layerforge.geometry import clamp_corner_radius, points_attr
from layerforge.models import ImageProperties, Layer
from layerforge.paint import ElementSpec

from .base import TypeRenderer, label_attrs
from .context import RenderContext
from .registry import register_renderer

logger = logging.getLogger(__name__)

_FIT_ASPECT = {
    'cover': 'xMidYMid slice',
    'fill': 'none',
}


def aspect_ratio_value(properties: ImageProperties) -> str:
    """``preserveAspectRatio`` for the image element."""
    if not properties.preserve_aspect_ratio:
        return 'none'
    return _FIT_ASPECT.get(properties.fit, 'xMidYMid meet')


@register_renderer
class ImageRenderer(TypeRenderer):
    layer_types = ('image',)
    structural_keys = frozenset(['src', 'borderRadius'])

    def render_content(self, layer: Layer, ctx: RenderContext) -> Any:
        properties: ImageProperties = layer.properties
        width, height = layer.transform.size
        src = properties.src
        if not src:
            return self.placeholder(ctx, width, height, 'missing')

        try:
            fetched = ctx.load(layer.id, src, 'image')
        except SourceFetchError as e:
            logger.warning(f"Image layer {layer.id}: {e}")
            return self.placeholder(ctx, width, height, 'missing')
        if fetched is None:
            return self.placeholder(ctx, width, height, 'loading')

        builder = ctx.builder
        node = builder.element('image', {
            'x': 0,
            'y': 0,
            'width': width,
            'height': height,
            'href': ctx.href_for(fetched, src),
            'preserveAspectRatio': aspect_ratio_value(properties),
        })

        radius = clamp_corner_radius(properties.border_radius, width, height)
        if radius > 0:
            clip_id = ctx.resources.add_named(f'image-clip-{layer.id}', 'clip', ElementSpec(
                'clipPath', {}, [ElementSpec('rect', {
                    'x': 0, 'y': 0, 'width': width, 'height': height, 'rx': radius, 'ry': radius,
                })],
            ))
            builder.set_attrs(node, {'clip-path': f'url(#{clip_id})'})

        filter_ref = apply_filters(properties, ctx.resources)
        if filter_ref:
            builder.set_attrs(node, {'filter': filter_ref})
        if properties.alt:
            builder.child(node, 'title', text=properties.alt)
        return node

    def placeholder(self, ctx: RenderContext, width: float, height: float, state: str) -> Any:
        """Grey box with a mountain-and-sun icon and an "Image" label when space allows."""
        builder = ctx.builder
        group = builder.group({'class': f'placeholder placeholder-{state}'})
        builder.child(group, 'rect', {
            'x': 0,
            'y': 0,
            'width': width,
            'height': height,
            'fill': '#f0f0f0',
            'stroke': '#cccccc',
            'stroke-width': 1,
        })

        icon_size = min(width, height) * 0.3
        if icon_size >= 20:
            cx, cy = width / 2, height / 2 - 10
            builder.child(group, 'circle', {
                'cx': cx - icon_size / 4,
                'cy': cy - icon_size / 4,
                'r': icon_size / 8,
                'fill': '#ffdd44',
            })
            builder.child(group, 'polygon', {
                'points': points_attr([
                    (cx - icon_size / 2, cy + icon_size / 4),
                    (cx, cy - icon_size / 4),
                    (cx + icon_size / 2, cy + icon_size / 4),
                ]),
                'fill': '#888888',
            })

        if width > 60 and height > 30:
            label = 'Loading...' if state == 'loading' else 'Image'
            builder.child(group, 'text', label_attrs(width / 2, height / 2 + 20, '#888888'), label)
        return group

    def apply_style(self, content: Any, layer: Layer, ctx: RenderContext) -> bool:
        if ctx.builder.get_attr(content, 'class'):
            # Placeholders carry no image styling
            return True
        ctx.builder.set_attrs(content, {'preserveAspectRatio': aspect_ratio_value(layer.properties)})
        self.update_filter(content, layer, ctx)
        return True

