"""
ShapeProperties - parametric primitive shapes.

Supported shape types: rectangle, circle, ellipse, triangle, polygon, star,
line, arrow. Geometry is computed by ``layerforge.geometry``; this model only
carries the sanitized parameters.

Legacy payloads store the fill as ``fillColor``/``fillOpacity`` and the
corner radius as ``borderRadius``; both are migrated on load.
"""

from typing import Any, ClassVar, Literal, Optional

from pydantic import Field

from .base import LayerProperties
from .effects import Glow, Shadow
from .fill import FillConfig

ShapeType = Literal['rectangle', 'circle', 'ellipse', 'triangle', 'polygon', 'star', 'line', 'arrow']


class ShapeProperties(LayerProperties):
    """Properties of a ``shape`` layer."""

    layer_types: ClassVar[tuple[str, ...]] = ('shape',)

    shape_type: ShapeType = Field(default='rectangle', alias='shapeType')

    fill: FillConfig = Field(default_factory=FillConfig)

    stroke: str = Field(default='none', json_schema_extra={'kind': 'color'})
    stroke_width: float = Field(default=0.0, alias='strokeWidth', ge=0.0, le=100.0)
    stroke_opacity: float = Field(default=1.0, alias='strokeOpacity', ge=0.0, le=1.0)
    stroke_dash_array: Optional[str] = Field(
        default=None, alias='strokeDashArray', json_schema_extra={'kind': 'dash_array'}
    )
    stroke_line_cap: Literal['butt', 'round', 'square'] = Field(default='butt', alias='strokeLineCap')
    stroke_line_join: Literal['miter', 'round', 'bevel'] = Field(default='miter', alias='strokeLineJoin')

    corner_radius: float = Field(default=0.0, alias='cornerRadius', ge=0.0)
    sides: int = Field(default=6, ge=3, le=20)
    points: int = Field(default=5, ge=3, le=20)
    inner_radius: float = Field(default=0.4, alias='innerRadius', ge=0.1, le=0.9)

    # Line endpoints, default horizontal at mid-height
    x1: Optional[float] = Field(default=None)
    y1: Optional[float] = Field(default=None)
    x2: Optional[float] = Field(default=None)
    y2: Optional[float] = Field(default=None)

    shadow: Shadow = Field(default_factory=Shadow)
    glow: Glow = Field(default_factory=Glow)

    @classmethod
    def migrate(cls, data: dict[str, Any]) -> dict[str, Any]:
        """Fold ``fillColor``/``fillOpacity`` into ``fill`` and ``borderRadius`` into ``cornerRadius``."""
        if 'fill' not in data and ('fillColor' in data or 'fillOpacity' in data):
            data['fill'] = {
                'type': 'solid',
                'color': data.pop('fillColor', '#cccccc'),
                'opacity': data.pop('fillOpacity', 1.0),
            }
        elif isinstance(data.get('fill'), str):
            # A bare color string is a solid fill
            data['fill'] = {'type': 'solid', 'color': data['fill']}
        if 'cornerRadius' not in data and 'borderRadius' in data:
            data['cornerRadius'] = data.pop('borderRadius')
        return data

    @property
    def has_stroke(self) -> bool:
        return self.stroke not in ('none', 'transparent') and self.stroke_width > 0
