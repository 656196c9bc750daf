"""Text layers: single line centred on the box, or a block of positioned lines."""

from typing import Any

from layerforge.layout import layout_text
from layerforge.models import Layer, TextProperties

from .base import TypeRenderer
from .context import RenderContext
from .registry import register_renderer


def text_style(properties: TextProperties) -> dict[str, Any]:
    """Paint and font attributes (None removes an attribute)."""
    return {
        'font-family': properties.font_family,
        'font-weight': properties.font_weight,
        'font-style': properties.font_style,
        'fill': properties.color,
        'letter-spacing': properties.letter_spacing if properties.letter_spacing != 0 else None,
        'text-decoration': properties.text_decoration if properties.text_decoration != 'none' else None,
    }


@register_renderer
class TextRenderer(TypeRenderer):
    layer_types = ('text',)
    structural_keys = frozenset(['text', 'fontSize', 'lineHeight', 'textAlign', 'wordWrap'])

    def render_content(self, layer: Layer, ctx: RenderContext) -> Any:
        properties: TextProperties = layer.properties
        width, height = layer.transform.size
        layout = layout_text(properties, width, height)
        builder = ctx.builder

        attrs: dict[str, Any] = {
            'x': layout.x,
            'y': layout.y,
            'font-size': properties.font_size,
            'text-anchor': layout.anchor,
        }
        if layout.dominant_baseline:
            attrs['dominant-baseline'] = layout.dominant_baseline
        attrs.update(text_style(properties))

        if not layout.multiline:
            return builder.element('text', attrs, layout.text)

        node = builder.element('text', attrs)
        for line in layout.lines:
            builder.child(node, 'tspan', {'x': line.x, 'dy': line.dy}, line.text)
        return node

    def apply_style(self, content: Any, layer: Layer, ctx: RenderContext) -> bool:
        ctx.builder.set_attrs(content, text_style(layer.properties))
        return True
