"""
Vector-source layers: a foreign SVG document mapped into the layer box.

Placeholders (dashed box with a label) cover the states where there is no
document to show: no source, loading (interactive target), and errors
(rejected source, failed fetch, unparseable document).
"""

import logging
from typing import Any

from layerforge.exceptions import SourceFetchError, VectorSourceError
from layerforge.models import Layer, VectorSourceProperties
from layerforge.paint import ElementSpec
from layerforge.vector_source import VectorDocument, build_vector_content, parse_vector_document

from .base import TypeRenderer, label_attrs, placeholder_state
from .context import RenderContext
from .registry import register_renderer

logger = logging.getLogger(__name__)

_PLACEHOLDER_LABELS = {
    'empty': 'SVG',
    'loading': 'Loading SVG...',
    'error': 'SVG unavailable',
}


@register_renderer
class VectorSourceRenderer(TypeRenderer):
    layer_types = ('svg', 'vector-source')
    structural_keys = frozenset(['src', 'viewBox', 'preserveAspectRatio', 'originalWidth', 'originalHeight'])

    def render_content(self, layer: Layer, ctx: RenderContext) -> Any:
        properties: VectorSourceProperties = layer.properties
        width, height = layer.transform.size
        src = properties.src
        if not src:
            return self.placeholder(ctx, width, height, 'empty')

        try:
            fetched = ctx.load(layer.id, src, 'vector')
        except SourceFetchError as e:
            logger.warning(f"Vector layer {layer.id}: {e}")
            return self.placeholder(ctx, width, height, 'error')
        if fetched is None:
            return self.placeholder(ctx, width, height, 'loading')

        try:
            document = parse_vector_document(fetched.text(), properties)
        except VectorSourceError as e:
            logger.warning(f"Vector layer {layer.id}: unusable document: {e}")
            return self.placeholder(ctx, width, height, 'error')

        ctx.documents[layer.id] = document
        content = ctx.builder.group()
        if properties.preserve_aspect_ratio == 'slice':
            clip_id = ctx.resources.add_named(f'vector-clip-{layer.id}', 'clip', ElementSpec(
                'clipPath', {}, [ElementSpec('rect', {'x': 0, 'y': 0, 'width': width, 'height': height})],
            ))
            ctx.builder.set_attrs(content, {'clip-path': f'url(#{clip_id})'})
        self._fill(content, document, layer, ctx)
        return content

    def _fill(self, content: Any, document: VectorDocument, layer: Layer, ctx: RenderContext) -> None:
        width, height = layer.transform.size
        spec = build_vector_content(document, layer.properties, width, height, id_prefix=f'{layer.id}-')
        ctx.builder.append(content, ctx.builder.materialize(spec))

    def placeholder(self, ctx: RenderContext, width: float, height: float, state: str) -> Any:
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
            'stroke-dasharray': '5,5',
        })
        builder.child(group, 'text', label_attrs(width / 2, height / 2, '#999999'), _PLACEHOLDER_LABELS[state])
        return group

    def apply_style(self, content: Any, layer: Layer, ctx: RenderContext) -> bool:
        """Re-apply the per-element overrides from the already parsed document."""
        if placeholder_state(ctx.builder, content) is not None:
            return True
        document = ctx.documents.get(layer.id)
        if document is None:
            return False
        ctx.builder.clear(content)
        self._fill(content, document, layer, ctx)
        return True
