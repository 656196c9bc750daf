"""
Layerforge - a layer rendering engine for design snapshots.

One layer graph, two targets:

- static: ``render_design_svg`` / ``render_design_png`` / ``render_design_array``
- interactive: ``InteractiveRenderer`` keeps a live scene graph in sync with edits
"""

__version__ = "0.1.0"

from .exceptions import (
    DesignValidationError,
    InvalidSvgError,
    LayerforgeError,
    SourceFetchError,
    VectorSourceError,
)
from .models import Design, Layer, Transform, design_from_dict, layer_from_dict
from .fetch import SourceCache, source_cache
from .dispatcher import LayerDispatcher, layer_dispatcher
from .export import rasterize_svg, render_design_array, render_design_png, render_design_svg
from .interactive import InteractiveRenderer
from .validation import ValidationReport, validate_design

__all__ = [
    "__version__",
    # Errors
    "LayerforgeError",
    "DesignValidationError",
    "SourceFetchError",
    "InvalidSvgError",
    "VectorSourceError",
    # Snapshot
    "Design",
    "Layer",
    "Transform",
    "design_from_dict",
    "layer_from_dict",
    # Rendering
    "LayerDispatcher",
    "layer_dispatcher",
    "render_design_svg",
    "render_design_png",
    "render_design_array",
    "rasterize_svg",
    "InteractiveRenderer",
    # Sources and validation
    "SourceCache",
    "source_cache",
    "ValidationReport",
    "validate_design",
]
