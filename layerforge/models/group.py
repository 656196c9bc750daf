"""
GroupProperties - container layers.

Groups composite their children with an optional blend mode, clip and mask.
``children`` holds inline child layers from older payloads; current payloads
nest children on the layer itself (``Layer.children``).
"""

from typing import Any, ClassVar, Literal, Optional

from pydantic import Field, field_validator

from .base import LayerProperties
from .clip import ClipConfig, MaskConfig

BlendMode = Literal[
    'normal', 'multiply', 'screen', 'overlay', 'darken', 'lighten',
    'color-dodge', 'color-burn', 'hard-light', 'soft-light',
    'difference', 'exclusion', 'hue', 'saturation', 'color', 'luminosity',
]


class GroupProperties(LayerProperties):
    """Properties of a ``group`` layer."""

    layer_types: ClassVar[tuple[str, ...]] = ('group',)

    blend_mode: BlendMode = Field(default='normal', alias='blendMode')
    isolation: bool = Field(default=False)
    clip_path: Optional[ClipConfig] = Field(
        default=None, alias='clipPath', json_schema_extra={'kind': 'clip'}
    )
    mask: Optional[MaskConfig] = Field(default=None, json_schema_extra={'kind': 'mask'})

    # Legacy inline children
    children: list[dict[str, Any]] = Field(default_factory=list)

    @field_validator('children', mode='before')
    @classmethod
    def _keep_dicts(cls, value: Any) -> Any:
        if not isinstance(value, list):
            return []
        return [child for child in value if isinstance(child, dict)]

    @classmethod
    def migrate(cls, data: dict[str, Any]) -> dict[str, Any]:
        # Isolation was stored as the CSS keyword
        if data.get('isolation') == 'isolate':
            data['isolation'] = True
        elif data.get('isolation') == 'auto':
            data['isolation'] = False
        return data
