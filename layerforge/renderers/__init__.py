"""
Layerforge Type Renderers

One renderer per layer type, selected by exact type match:

    text                 TextRenderer
    shape                ShapeRenderer
    image                ImageRenderer
    svg, vector-source   VectorSourceRenderer
    group                GroupRenderer
    video                VideoRenderer
    audio                AudioRenderer

Example:
    >>> from layerforge.renderers import get_renderer_class
    >>> renderer = get_renderer_class('shape')()
    >>> node = renderer.render(layer, context)
"""

from .base import TypeRenderer, placeholder_state, wrapper_attrs
from .context import DeferredLoad, RenderContext
from .registry import (
    get_renderer_class,
    list_renderers,
    register_renderer,
    renderer_registry,
    supported_layer_types,
)

# Import renderers to trigger registration
from .text import TextRenderer
from .shape import ShapeRenderer, shape_geometry, shape_style
from .image import ImageRenderer, aspect_ratio_value
from .vector import VectorSourceRenderer
from .group import GroupRenderer, clip_shape_spec, mask_shape_spec
from .media import AudioRenderer, VideoRenderer, waveform_heights

__all__ = [
    # Base
    'TypeRenderer',
    'RenderContext',
    'DeferredLoad',
    'wrapper_attrs',
    'placeholder_state',
    # Registry
    'renderer_registry',
    'register_renderer',
    'get_renderer_class',
    'supported_layer_types',
    'list_renderers',
    # Renderers
    'TextRenderer',
    'ShapeRenderer',
    'ImageRenderer',
    'VectorSourceRenderer',
    'GroupRenderer',
    'VideoRenderer',
    'AudioRenderer',
    # Helpers
    'shape_geometry',
    'shape_style',
    'aspect_ratio_value',
    'clip_shape_spec',
    'mask_shape_spec',
    'waveform_heights',
]
