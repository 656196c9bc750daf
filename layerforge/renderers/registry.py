"""Layer type to renderer registry."""

from typing import Any, Optional

from .base import TypeRenderer

renderer_registry: dict[str, type[TypeRenderer]] = {}


def register_renderer(cls: type[TypeRenderer]) -> type[TypeRenderer]:
    """
    Decorator to register a renderer class for its declared layer types.

    Raises:
        ValueError: if another renderer already claims one of the types
    """
    for layer_type in cls.layer_types:
        existing = renderer_registry.get(layer_type)
        if existing is not None and existing is not cls:
            raise ValueError(
                f"Layer type {layer_type!r} is already handled by {existing.__name__}"
            )
    for layer_type in cls.layer_types:
        renderer_registry[layer_type] = cls
    return cls


def get_renderer_class(layer_type: str) -> Optional[type[TypeRenderer]]:
    return renderer_registry.get(layer_type)


def supported_layer_types() -> list[str]:
    return sorted(renderer_registry)


def list_renderers() -> list[dict[str, Any]]:
    """Registered renderers with the layer types each one handles."""
    seen: dict[str, dict[str, Any]] = {}
    for layer_type, cls in sorted(renderer_registry.items()):
        entry = seen.setdefault(cls.__name__, {'name': cls.__name__, 'layerTypes': []})
        entry['layerTypes'].append(layer_type)
    return list(seen.values())
