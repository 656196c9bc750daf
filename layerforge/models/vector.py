"""
VectorSourceProperties - layers that embed a foreign SVG document.

Style overrides are maps from selector to value. Selector keys are
``"global"`` (every element), an element tag (``"path"``), ``"#id"`` or
``".class"``.
"""

from typing import ClassVar, Literal, Optional

from pydantic import Field

from .base import LayerProperties


class VectorSourceProperties(LayerProperties):
    """Properties of an ``svg`` (``vector-source``) layer."""

    layer_types: ClassVar[tuple[str, ...]] = ('svg', 'vector-source')

    src: Optional[str] = Field(default=None)
    view_box: Optional[str] = Field(default=None, alias='viewBox')
    preserve_aspect_ratio: Literal['meet', 'slice', 'none'] = Field(
        default='meet', alias='preserveAspectRatio'
    )

    fill_colors: dict[str, str] = Field(
        default_factory=dict, alias='fillColors', json_schema_extra={'kind': 'color_map'}
    )
    stroke_colors: dict[str, str] = Field(
        default_factory=dict, alias='strokeColors', json_schema_extra={'kind': 'color_map'}
    )
    stroke_widths: dict[str, float] = Field(
        default_factory=dict, alias='strokeWidths', json_schema_extra={'kind': 'number_map'}
    )

    original_width: Optional[float] = Field(default=None, alias='originalWidth', ge=0.0)
    original_height: Optional[float] = Field(default=None, alias='originalHeight', ge=0.0)

    @property
    def has_overrides(self) -> bool:
        return bool(self.fill_colors or self.stroke_colors or self.stroke_widths)
