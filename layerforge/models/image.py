"""
ImageProperties - raster image layers with adjustment filters.

The eight adjustment values are applied by the filter pipeline in a fixed
order (blur, brightness, contrast, saturation, hue, sepia, grayscale,
invert). Identity values produce no filter stage.
"""

from typing import ClassVar, Literal, Optional

from pydantic import Field

from .base import LayerProperties
from .effects import Glow, ImageShadow

ImageFit = Literal['contain', 'cover', 'fill', 'scale-down', 'none']


class ImageProperties(LayerProperties):
    """Properties of an ``image`` layer."""

    layer_types: ClassVar[tuple[str, ...]] = ('image',)

    src: Optional[str] = Field(default=None)
    alt: str = Field(default='', json_schema_extra={'kind': 'text'})
    fit: ImageFit = Field(default='contain')
    preserve_aspect_ratio: bool = Field(default=True, alias='preserveAspectRatio')

    # Adjustment filters
    blur: float = Field(default=0.0, ge=0.0, le=50.0)
    brightness: float = Field(default=1.0, ge=0.0, le=3.0)
    contrast: float = Field(default=1.0, ge=0.0, le=3.0)
    saturation: float = Field(default=1.0, ge=0.0, le=3.0)
    hue: float = Field(default=0.0, ge=-360.0, le=360.0)
    sepia: float = Field(default=0.0, ge=0.0, le=1.0)
    grayscale: float = Field(default=0.0, ge=0.0, le=1.0)
    invert: float = Field(default=0.0, ge=0.0, le=1.0)

    border_radius: float = Field(default=0.0, alias='borderRadius', ge=0.0)

    shadow: ImageShadow = Field(default_factory=ImageShadow)
    glow: Glow = Field(default_factory=Glow)
