"""
Error recovery: repair a layer that failed to render, and the fallback
document returned when a whole design cannot be rendered.
"""

import logging
from typing import Any

from layerforge.builders.svg import SvgDocumentBuilder
from layerforge.models import Layer, Transform
from layerforge.normalize import normalize_properties, validate_color
from layerforge.paint import ResourceCollection

logger = logging.getLogger(__name__)

MAX_COORDINATE = 100000

FALLBACK_MESSAGE = 'Design rendering failed'


def is_invalid_transform(transform: Transform) -> bool:
    """Non-positive size or scale, or coordinates/sizes beyond 100000."""
    return (
        transform.width <= 0 or transform.height <= 0
        or transform.scale_x <= 0 or transform.scale_y <= 0
        or abs(transform.x) > MAX_COORDINATE or abs(transform.y) > MAX_COORDINATE
        or transform.width > MAX_COORDINATE or transform.height > MAX_COORDINATE
    )


def _drop_empty(values: dict[str, Any]) -> dict[str, Any]:
    return {key: value for key, value in values.items() if value is not None and value != ''}


def recover_layer(layer: Layer) -> Layer:
    """
    Return a repaired copy of ``layer``.

    An invalid transform is reset to a 100x100 box at the origin with
    identity rotation, scale and opacity; a negative z-index becomes 0;
    empty property values are dropped and the properties re-normalized so
    their defaults apply.
    """
    logger.info(f"Attempting to recover layer {layer.id} ({layer.layer_type})")
    update: dict[str, Any] = {}
    if is_invalid_transform(layer.transform):
        update['transform'] = Transform()
    if layer.z_index < 0:
        update['z_index'] = 0
    raw_properties = _drop_empty(layer.properties.to_api_dict())
    update['properties'] = normalize_properties(layer.layer_type, raw_properties)
    return layer.model_copy(update=update, deep=True)


def fallback_svg(width: float, height: float, background_color: str = '#ffffff') -> str:
    """Minimal document with the background and a "Design rendering failed" label."""
    builder = SvgDocumentBuilder(width, height)
    nodes = [
        builder.element('rect', {'width': '100%', 'height': '100%', 'fill': validate_color(background_color, '#ffffff')}),
        builder.element('rect', {'width': '100%', 'height': '100%', 'fill': '#f3f4f6', 'fill-opacity': 0.8}),
        builder.element('text', {
            'x': '50%',
            'y': '50%',
            'text-anchor': 'middle',
            'dominant-baseline': 'middle',
            'font-family': 'Arial, sans-serif',
            'font-size': 16,
            'fill': '#ef4444',
        }, FALLBACK_MESSAGE),
    ]
    root = builder.document(nodes, ResourceCollection())
    return SvgDocumentBuilder.to_string(root)
