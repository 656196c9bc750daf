"""
Clip and mask descriptors for group layers.

Shorthand rules applied before validation:
- ``true`` means enabled with the default type (rectangle clip, gradient mask)
- ``false``, ``None`` or anything unparseable means disabled
- an object must carry its own truthy ``enabled`` flag, otherwise it is
  disabled even when a type is given
- a path clip whose path data fails the character-class check is disabled
"""

import logging
from typing import Any, Literal, Optional

from pydantic import Field, field_validator

from layerforge.normalize import is_valid_path_data, register_kind, to_bool, to_number

from .base import SanitizedModel
from .fill import FillConfig

logger = logging.getLogger(__name__)

ClipType = Literal['rectangle', 'circle', 'ellipse', 'polygon', 'path']
MaskType = Literal['gradient', 'image', 'shape']


class ClipConfig(SanitizedModel):
    """
    Clip geometry in layer-local coordinates.

    Rectangle fields default to the full layer bounds; circle and ellipse
    default to the bounds' inscribed shape; polygon defaults to a triangle.
    """

    enabled: bool = Field(default=True)
    type: ClipType = Field(default='rectangle')

    # rectangle
    x: Optional[float] = Field(default=None)
    y: Optional[float] = Field(default=None)
    width: Optional[float] = Field(default=None, ge=0.0)
    height: Optional[float] = Field(default=None, ge=0.0)
    corner_radius: float = Field(default=0.0, alias='cornerRadius', ge=0.0)

    # circle / ellipse
    cx: Optional[float] = Field(default=None)
    cy: Optional[float] = Field(default=None)
    r: Optional[float] = Field(default=None, ge=0.0)
    rx: Optional[float] = Field(default=None, ge=0.0)
    ry: Optional[float] = Field(default=None, ge=0.0)

    # polygon
    points: Optional[list[tuple[float, float]]] = Field(default=None)

    # path
    path: Optional[str] = Field(default=None, json_schema_extra={'kind': 'path'})

    @field_validator('points', mode='before')
    @classmethod
    def _coerce_points(cls, value: Any) -> Any:
        """Accept ``[x, y]`` pairs or ``{"x": .., "y": ..}`` objects."""
        if not isinstance(value, list):
            return None
        points = []
        for item in value:
            if isinstance(item, dict):
                x, y = to_number(item.get('x')), to_number(item.get('y'))
            elif isinstance(item, (list, tuple)) and len(item) == 2:
                x, y = to_number(item[0]), to_number(item[1])
            else:
                continue
            if x is not None and y is not None:
                points.append((x, y))
        return points if len(points) >= 3 else None


class MaskConfig(SanitizedModel):
    """Mask descriptor: luminance of the mask content decides visibility."""

    enabled: bool = Field(default=True)
    type: MaskType = Field(default='gradient')

    # gradient
    gradient: Optional[FillConfig] = Field(default=None)

    # image
    src: Optional[str] = Field(default=None)

    # shape
    shape: Literal['rectangle', 'circle', 'ellipse'] = Field(default='rectangle')

    opacity: float = Field(default=1.0, ge=0.0, le=1.0)


def _shorthand(raw: Any, default_type: str, kind: str) -> Optional[dict[str, Any]]:
    if isinstance(raw, SanitizedModel):
        raw = raw.model_dump(by_alias=True)
    if raw is True:
        return {'enabled': True, 'type': default_type}
    if not isinstance(raw, dict):
        return None
    if not to_bool(raw.get('enabled'), False):
        return None
    data = dict(raw)
    data['enabled'] = True
    if kind == 'clip' and data.get('type') == 'path' and not is_valid_path_data(data.get('path')):
        logger.debug("Disabling path clip with invalid path data")
        return None
    return data


@register_kind('clip')
def _sanitize_clip(raw: Any, default: Any) -> Any:
    return _shorthand(raw, 'rectangle', 'clip')


@register_kind('mask')
def _sanitize_mask(raw: Any, default: Any) -> Any:
    data = _shorthand(raw, 'gradient', 'mask')
    if data is not None and data.get('type') == 'image' and not isinstance(data.get('src'), str):
        return None
    return data


__all__ = ['ClipConfig', 'MaskConfig', 'ClipType', 'MaskType']
