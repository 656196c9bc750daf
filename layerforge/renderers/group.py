"""
Group layers: children composited with an optional blend mode, isolation,
clip path and mask.

Clip and mask definitions are registered under per-layer ids
(``group-clip-{id}``, ``group-mask-{id}``) and referenced from the content
group. Children come from ``Layer.children`` followed by legacy inline
``properties.children``; both go through the dispatcher so ordering and
failure isolation match the top level.
"""

import logging
from typing import Any, Optional

from pydantic import ValidationError

from layerforge.exceptions import SourceFetchError
from layerforge.geometry import (
    circle_geometry,
    clip_circle,
    clip_ellipse,
    clip_polygon,
    clip_rect,
    ellipse_geometry,
    points_attr,
)
from layerforge.models import ClipConfig, GroupProperties, Layer, MaskConfig, default_mask_gradient
from layerforge.paint import ElementSpec, paint_attrs, resolve_fill

from .base import TypeRenderer
from .context import RenderContext
from .registry import register_renderer

logger = logging.getLogger(__name__)


def clip_shape_spec(clip: ClipConfig, width: float, height: float) -> ElementSpec:
    """The clip outline in layer coordinates; missing geometry defaults to the layer bounds."""
    if clip.type == 'circle':
        cx, cy, r = clip_circle(width, height, clip.cx, clip.cy, clip.r)
        return ElementSpec('circle', {'cx': cx, 'cy': cy, 'r': r})

    if clip.type == 'ellipse':
        cx, cy, rx, ry = clip_ellipse(width, height, clip.cx, clip.cy, clip.rx, clip.ry)
        return ElementSpec('ellipse', {'cx': cx, 'cy': cy, 'rx': rx, 'ry': ry})

    if clip.type == 'polygon':
        return ElementSpec('polygon', {'points': points_attr(clip_polygon(width, height, clip.points))})

    if clip.type == 'path' and clip.path:
        return ElementSpec('path', {'d': clip.path})

    x, y, w, h, radius = clip_rect(width, height, clip.x, clip.y, clip.width, clip.height, clip.corner_radius)
    attrs: dict[str, Any] = {'x': x, 'y': y, 'width': w, 'height': h}
    if radius > 0:
        attrs.update(rx=radius, ry=radius)
    return ElementSpec('rect', attrs)


def mask_shape_spec(shape: str, width: float, height: float) -> ElementSpec:
    """Solid white rectangle, circle or ellipse covering the layer."""
    if shape == 'circle':
        cx, cy, r = circle_geometry(width, height)
        return ElementSpec('circle', {'cx': cx, 'cy': cy, 'r': r, 'fill': 'white'})
    if shape == 'ellipse':
        cx, cy, rx, ry = ellipse_geometry(width, height)
        return ElementSpec('ellipse', {'cx': cx, 'cy': cy, 'rx': rx, 'ry': ry, 'fill': 'white'})
    return ElementSpec('rect', {'x': 0, 'y': 0, 'width': width, 'height': height, 'fill': 'white'})


@register_renderer
class GroupRenderer(TypeRenderer):
    layer_types = ('group',)
    structural_keys = frozenset(['clipPath', 'mask', 'children'])

    def render_content(self, layer: Layer, ctx: RenderContext) -> Any:
        properties: GroupProperties = layer.properties
        builder = ctx.builder
        content = builder.group({'style': self.group_style(properties)})

        clip_ref = self.register_clip(layer, ctx)
        if clip_ref:
            builder.set_attrs(content, {'clip-path': clip_ref})
        mask_ref = self.register_mask(layer, ctx)
        if mask_ref:
            builder.set_attrs(content, {'mask': mask_ref})

        for node in ctx.render_children(self.child_layers(layer)):
            builder.append(content, node)
        return content

    @staticmethod
    def group_style(properties: GroupProperties) -> Optional[str]:
        declarations = []
        if properties.blend_mode != 'normal':
            declarations.append(f'mix-blend-mode: {properties.blend_mode};')
        if properties.isolation:
            declarations.append('isolation: isolate;')
        return ' '.join(declarations) or None

    @staticmethod
    def child_layers(layer: Layer) -> list[Layer]:
        children = list(layer.children)
        for raw in layer.properties.children:
            try:
                children.append(Layer.from_api_dict(raw))
            except ValidationError as e:
                logger.warning(f"Group {layer.id}: skipping unreadable inline child: {e}")
        return children

    def register_clip(self, layer: Layer, ctx: RenderContext) -> Optional[str]:
        clip = layer.properties.clip_path
        if clip is None or not clip.enabled:
            return None
        width, height = layer.transform.size
        clip_id = ctx.resources.add_named(
            f'group-clip-{layer.id}', 'clip',
            ElementSpec('clipPath', {}, [clip_shape_spec(clip, width, height)]),
        )
        return f'url(#{clip_id})'

    def register_mask(self, layer: Layer, ctx: RenderContext) -> Optional[str]:
        mask = layer.properties.mask
        if mask is None or not mask.enabled:
            return None
        width, height = layer.transform.size
        content = self.mask_content(mask, layer, ctx)
        if content is None:
            return None
        if mask.opacity < 1:
            content.attrs['opacity'] = mask.opacity
        mask_id = ctx.resources.add_named(f'group-mask-{layer.id}', 'mask', ElementSpec('mask', {
            'x': 0, 'y': 0, 'width': width, 'height': height, 'maskUnits': 'userSpaceOnUse',
        }, [content]))
        return f'url(#{mask_id})'

    def mask_content(self, mask: MaskConfig, layer: Layer, ctx: RenderContext) -> Optional[ElementSpec]:
        width, height = layer.transform.size

        if mask.type == 'image':
            try:
                fetched = ctx.load(layer.id, mask.src, 'image')
            except SourceFetchError as e:
                logger.warning(f"Group {layer.id}: mask image unavailable: {e}")
                return None
            if fetched is None:
                return None
            return ElementSpec('image', {
                'x': 0,
                'y': 0,
                'width': width,
                'height': height,
                'href': ctx.href_for(fetched, mask.src),
                'preserveAspectRatio': 'none',
            })

        if mask.type == 'shape':
            return mask_shape_spec(mask.shape, width, height)

        paint = resolve_fill(mask.gradient or default_mask_gradient(), ctx.resources)
        return ElementSpec('rect', {'x': 0, 'y': 0, 'width': width, 'height': height, **paint_attrs(paint)})

    def needs_rebuild(self, old: Layer, new: Layer) -> bool:
        if [child.id for child in old.children] != [child.id for child in new.children]:
            return True
        return super().needs_rebuild(old, new)

    def apply_style(self, content: Any, layer: Layer, ctx: RenderContext) -> bool:
        ctx.builder.set_attrs(content, {'style': self.group_style(layer.properties)})
        return True
