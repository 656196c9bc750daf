"""
Composite effect descriptors: drop shadow and outer glow.

Defaults follow the editor: shapes cast a soft 3px shadow at 30% opacity,
images a stronger 5px shadow at 50%. Both effects are off unless
``enabled`` is set.
"""

from pydantic import Field

from .base import SanitizedModel


class Shadow(SanitizedModel):
    """Drop shadow cast by the layer content."""

    enabled: bool = Field(default=False)
    color: str = Field(default='#000000', json_schema_extra={'kind': 'color'})
    blur: float = Field(default=3.0, ge=0.0, le=50.0)
    offset_x: float = Field(default=3.0, alias='offsetX', ge=-100.0, le=100.0)
    offset_y: float = Field(default=3.0, alias='offsetY', ge=-100.0, le=100.0)
    opacity: float = Field(default=0.3, ge=0.0, le=1.0)


class ImageShadow(Shadow):
    """Drop shadow with the image layer defaults."""

    blur: float = Field(default=5.0, ge=0.0, le=50.0)
    offset_x: float = Field(default=5.0, alias='offsetX', ge=-100.0, le=100.0)
    offset_y: float = Field(default=5.0, alias='offsetY', ge=-100.0, le=100.0)
    opacity: float = Field(default=0.5, ge=0.0, le=1.0)


class Glow(SanitizedModel):
    """Outer glow around the layer content."""

    enabled: bool = Field(default=False)
    color: str = Field(default='#ffffff', json_schema_extra={'kind': 'color'})
    blur: float = Field(default=5.0, ge=0.0, le=50.0)
    opacity: float = Field(default=0.8, ge=0.0, le=1.0)
