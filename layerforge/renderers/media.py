"""Video and audio layers render as labelled placeholders; media is never decoded."""

import zlib
from typing import Any

import numpy as np

from layerforge.models import Layer

from .base import PLACEHOLDER_FONT, TypeRenderer
from .context import RenderContext
from .registry import register_renderer

BAR_WIDTH = 3
BAR_SPACING = 2
BAR_START_X = 20


def waveform_heights(layer_id: str, width: float, height: float) -> list[float]:
    """
    Bar heights of the audio waveform.

    Seeded from the layer id so every render of the same layer (either target)
    draws the same bars.
    """
    count = int((width - 2 * BAR_START_X) // (BAR_WIDTH + BAR_SPACING))
    if count <= 0:
        return []
    upper = max(5, int(height * 0.4))
    rng = np.random.default_rng(zlib.crc32(layer_id.encode('utf-8')))
    return [float(h) for h in rng.integers(5, upper, size=count, endpoint=True)]


def _label(x: float, y: float, fill: str) -> dict[str, Any]:
    return {
        'x': x,
        'y': y,
        'text-anchor': 'middle',
        'font-family': PLACEHOLDER_FONT,
        'font-size': 12,
        'fill': fill,
    }


@register_renderer
class VideoRenderer(TypeRenderer):
    layer_types = ('video',)

    def render_content(self, layer: Layer, ctx: RenderContext) -> Any:
        width, height = layer.transform.size
        builder = ctx.builder
        group = builder.group()
        builder.child(group, 'rect', {
            'width': width,
            'height': height,
            'fill': '#1f2937',
            'stroke': '#374151',
            'stroke-width': 2,
            'rx': 8,
        })
        button = min(width, height) * 0.2
        builder.child(group, 'circle', {
            'cx': width / 2,
            'cy': height / 2,
            'r': button / 2,
            'fill': '#ffffff',
            'fill-opacity': 0.9,
        })
        builder.child(group, 'text', _label(width / 2, height - 10, '#9ca3af'), 'Video Layer')
        return group

    def apply_style(self, content: Any, layer: Layer, ctx: RenderContext) -> bool:
        return True


@register_renderer
class AudioRenderer(TypeRenderer):
    layer_types = ('audio',)

    def render_content(self, layer: Layer, ctx: RenderContext) -> Any:
        width, height = layer.transform.size
        builder = ctx.builder
        group = builder.group()
        builder.child(group, 'rect', {
            'width': width,
            'height': height,
            'fill': '#065f46',
            'stroke': '#047857',
            'stroke-width': 2,
            'rx': 12,
        })

        waveform = builder.child(group, 'g')
        center_y = height / 2
        for index, bar_height in enumerate(waveform_heights(layer.id, width, height)):
            builder.child(waveform, 'rect', {
                'x': BAR_START_X + index * (BAR_WIDTH + BAR_SPACING),
                'y': center_y - bar_height / 2,
                'width': BAR_WIDTH,
                'height': bar_height,
                'fill': '#10b981',
                'rx': 1,
            })

        icon = min(width, height) * 0.15
        builder.child(group, 'circle', {
            'cx': 10 + icon / 2,
            'cy': 10 + icon / 2,
            'r': icon / 2,
            'fill': '#ffffff',
            'fill-opacity': 0.9,
        })
        builder.child(group, 'text', _label(width / 2, height - 10, '#6ee7b7'), 'Audio Layer')
        return group

    def apply_style(self, content: Any, layer: Layer, ctx: RenderContext) -> bool:
        return True
