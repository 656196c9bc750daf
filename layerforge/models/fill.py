"""
Fill configuration: solid colors, linear/radial gradients and patterns.

Serialized form (camelCase)::

    {"type": "linear", "angle": 90,
     "colors": [{"color": "#ff0000", "stop": 0}, {"color": "#0000ff", "stop": 1}]}

    {"type": "pattern", "patternType": "dots", "size": 10, "spacing": 20,
     "color": "#000000", "backgroundColor": "#ffffff"}
"""

from typing import Any, Literal, Optional

from pydantic import Field, field_validator

from .base import SanitizedModel

FillType = Literal['solid', 'linear', 'radial', 'pattern']
PatternType = Literal['dots', 'stripes', 'grid']


class GradientStop(SanitizedModel):
    """One color stop; ``stop`` is the fractional offset along the gradient."""

    color: str = Field(default='#000000', json_schema_extra={'kind': 'color'})
    stop: float = Field(default=0.0, ge=0.0, le=1.0)
    opacity: Optional[float] = Field(default=None, ge=0.0, le=1.0)


class FillConfig(SanitizedModel):
    """Unified fill descriptor shared by shapes, masks and backgrounds."""

    type: FillType = Field(default='solid')

    # Solid fill (and pattern foreground)
    color: str = Field(default='#cccccc', json_schema_extra={'kind': 'color'})
    opacity: float = Field(default=1.0, ge=0.0, le=1.0)

    # Gradients
    colors: list[GradientStop] = Field(default_factory=list)
    angle: float = Field(default=0.0)
    center_x: float = Field(default=0.5, alias='centerX', ge=0.0, le=1.0)
    center_y: float = Field(default=0.5, alias='centerY', ge=0.0, le=1.0)
    radius: float = Field(default=0.5, ge=0.0, le=1.0)

    # Patterns
    pattern_type: PatternType = Field(default='dots', alias='patternType')
    size: float = Field(default=10.0, ge=1.0, le=500.0)
    spacing: float = Field(default=20.0, ge=1.0, le=500.0)
    background_color: str = Field(
        default='#ffffff', alias='backgroundColor', json_schema_extra={'kind': 'color'}
    )
    direction: Literal['vertical', 'horizontal'] = Field(default='vertical')
    line_width: float = Field(default=1.0, alias='lineWidth', ge=0.0, le=100.0)

    @field_validator('colors', mode='before')
    @classmethod
    def _drop_invalid_stops(cls, value: Any) -> Any:
        if not isinstance(value, list):
            return []
        return [stop for stop in value if isinstance(stop, (dict, GradientStop))]

    @property
    def is_gradient(self) -> bool:
        return self.type in ('linear', 'radial')

    def sorted_stops(self) -> list[GradientStop]:
        """Stops ordered by offset; ties keep their declared order."""
        return sorted(self.colors, key=lambda s: s.stop)


def default_mask_gradient() -> FillConfig:
    """Linear white-to-transparent gradient used by gradient masks."""
    return FillConfig(
        type='linear',
        colors=[
            {'color': '#ffffff', 'stop': 0.0, 'opacity': 1.0},
            {'color': '#000000', 'stop': 1.0, 'opacity': 0.0},
        ],
    )
