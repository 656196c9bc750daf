"""
Layerforge Models

Pydantic models for the design snapshot the renderers consume.

Properties hierarchy (tagged union keyed by ``Layer.type``):
    LayerProperties
    ├── TextProperties (type: 'text')
    ├── ShapeProperties (type: 'shape')
    ├── ImageProperties (type: 'image')
    ├── VectorSourceProperties (type: 'svg' / 'vector-source')
    ├── GroupProperties (type: 'group')
    ├── VideoProperties (type: 'video')
    ├── AudioProperties (type: 'audio')
    └── OpaqueProperties (any other type; kept verbatim)
"""

from typing import Any

from .base import LayerProperties, LayerType, OpaqueProperties, SanitizedModel
from .clip import ClipConfig, MaskConfig
from .effects import Glow, ImageShadow, Shadow
from .fill import FillConfig, GradientStop, default_mask_gradient
from .group import GroupProperties
from .image import ImageProperties
from .media import AudioProperties, VideoProperties
from .shape import ShapeProperties
from .text import TextProperties
from .vector import VectorSourceProperties

# Properties registry for deserialization
_PROPERTIES_REGISTRY: dict[str, type[LayerProperties]] = {}

for _properties_class in (
    TextProperties,
    ShapeProperties,
    ImageProperties,
    VectorSourceProperties,
    GroupProperties,
    VideoProperties,
    AudioProperties,
):
    for _layer_type in _properties_class.layer_types:
        _PROPERTIES_REGISTRY[_layer_type] = _properties_class


def get_properties_class(layer_type: str) -> type[LayerProperties]:
    """
    Get the properties class for a layer type.

    Args:
        layer_type: Layer type string ('text', 'shape', 'image', ...)

    Returns:
        Properties class; OpaqueProperties for unknown types
    """
    return _PROPERTIES_REGISTRY.get(layer_type, OpaqueProperties)


def properties_from_dict(layer_type: str, data: dict[str, Any]) -> LayerProperties:
    """Create the typed properties for a layer type from a raw dictionary."""
    return get_properties_class(layer_type).from_api_dict(data)


# Imported after the registry: Layer validation resolves properties through it
from .layer import Layer, Transform  # noqa: E402
from .design import CanvasSettings, Design, DesignBackground  # noqa: E402


def layer_from_dict(data: dict[str, Any]) -> Layer:
    """Create a layer (with typed properties and nested children) from a dictionary."""
    return Layer.from_api_dict(data)


def design_from_dict(data: dict[str, Any]) -> Design:
    """Create a design snapshot from a dictionary."""
    return Design.from_api_dict(data)


__all__ = [
    # Base
    'LayerType',
    'SanitizedModel',
    'LayerProperties',
    'OpaqueProperties',
    # Paint and effects
    'FillConfig',
    'GradientStop',
    'default_mask_gradient',
    'Shadow',
    'ImageShadow',
    'Glow',
    'ClipConfig',
    'MaskConfig',
    # Properties
    'TextProperties',
    'ShapeProperties',
    'ImageProperties',
    'VectorSourceProperties',
    'GroupProperties',
    'VideoProperties',
    'AudioProperties',
    # Graph
    'Transform',
    'Layer',
    'Design',
    'DesignBackground',
    'CanvasSettings',
    # Registry
    'get_properties_class',
    'properties_from_dict',
    'layer_from_dict',
    'design_from_dict',
]
