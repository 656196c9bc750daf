"""Stage and effect registries with their fixed application order."""

from typing import Any, Optional

from .base import AdjustmentStage, CompositeEffect

# Application order is part of the rendering contract
filter_stage_order: list[str] = [
    'blur', 'brightness', 'contrast', 'saturation', 'hue', 'sepia', 'grayscale', 'invert',
]
effect_order: list[str] = ['shadow', 'glow']

filter_registry: dict[str, type[AdjustmentStage]] = {}
effect_registry: dict[str, type[CompositeEffect]] = {}


def register_stage(cls: type[AdjustmentStage]) -> type[AdjustmentStage]:
    """Decorator to register an adjustment stage class."""
    if cls.name not in filter_stage_order:
        raise ValueError(f"Stage {cls.name!r} has no position in the filter order")
    filter_registry[cls.name] = cls
    return cls


def register_effect(cls: type[CompositeEffect]) -> type[CompositeEffect]:
    """Decorator to register a composite effect class."""
    if cls.name not in effect_order:
        raise ValueError(f"Effect {cls.name!r} has no position in the effect order")
    effect_registry[cls.name] = cls
    return cls


def get_stage(name: str) -> Optional[type[AdjustmentStage]]:
    return filter_registry.get(name)


def list_stages() -> list[dict[str, Any]]:
    """Registered stages in application order."""
    return [
        {'name': name, 'identity': filter_registry[name].identity}
        for name in filter_stage_order
        if name in filter_registry
    ]
