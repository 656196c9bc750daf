"""
Layerforge Filter Pipeline

Fixed-order adjustment chain followed by composite effects:

    blur -> brightness -> contrast -> saturation -> hue -> sepia -> grayscale -> invert
    then shadow, glow

Example:
    >>> from layerforge.filters import apply_filters
    >>> filter_ref = apply_filters(image_properties, resources)
    >>> # filter_ref is 'url(#filter-...)' or None for an identity chain
"""

from .base import AdjustmentStage, CompositeEffect
from .registry import (
    effect_order,
    effect_registry,
    filter_registry,
    filter_stage_order,
    get_stage,
    list_stages,
    register_effect,
    register_stage,
)
from .adjustments import Blur, Brightness, Contrast, Grayscale, Hue, Invert, Saturation, Sepia
from .effects import GlowEffect, ShadowEffect
from .pipeline import FilterChain, apply_filters, build_chain, build_filter_element

__all__ = [
    # Base classes
    'AdjustmentStage',
    'CompositeEffect',
    # Registry
    'filter_registry',
    'filter_stage_order',
    'effect_registry',
    'effect_order',
    'register_stage',
    'register_effect',
    'get_stage',
    'list_stages',
    # Stages
    'Blur',
    'Brightness',
    'Contrast',
    'Saturation',
    'Hue',
    'Sepia',
    'Grayscale',
    'Invert',
    'ShadowEffect',
    'GlowEffect',
    # Pipeline
    'FilterChain',
    'build_chain',
    'build_filter_element',
    'apply_filters',
]
