"""
TextProperties - typography of a text layer.

Serialization format::

    {
        "text": "Hello\\nWorld",
        "fontFamily": "Arial, sans-serif",
        "fontSize": 16,
        "fontWeight": "normal",
        "fontStyle": "normal",
        "textAlign": "left",
        "color": "#000000",
        "lineHeight": 1.2,
        "letterSpacing": 0,
        "textDecoration": "none",
        "wordWrap": false
    }
"""

from typing import Any, ClassVar, Literal

from pydantic import Field

from .base import LayerProperties

FontWeight = Literal[
    'normal', 'bold', 'bolder', 'lighter',
    '100', '200', '300', '400', '500', '600', '700', '800', '900',
]


class TextProperties(LayerProperties):
    """Properties of a ``text`` layer."""

    layer_types: ClassVar[tuple[str, ...]] = ('text',)

    text: str = Field(default='Text', json_schema_extra={'kind': 'text'})
    font_family: str = Field(
        default='Arial, sans-serif', alias='fontFamily', json_schema_extra={'kind': 'font_family'}
    )
    font_size: float = Field(default=16.0, alias='fontSize', ge=1.0, le=500.0)
    font_weight: FontWeight = Field(default='normal', alias='fontWeight')
    font_style: Literal['normal', 'italic', 'oblique'] = Field(default='normal', alias='fontStyle')
    text_align: Literal['left', 'center', 'right', 'justify'] = Field(default='left', alias='textAlign')
    color: str = Field(default='#000000', json_schema_extra={'kind': 'color'})
    line_height: float = Field(default=1.2, alias='lineHeight', ge=0.1, le=5.0)
    letter_spacing: float = Field(default=0.0, alias='letterSpacing', ge=-10.0, le=50.0)
    text_decoration: Literal['none', 'underline', 'overline', 'line-through'] = Field(
        default='none', alias='textDecoration'
    )
    word_wrap: bool = Field(default=False, alias='wordWrap')

    @classmethod
    def migrate(cls, data: dict[str, Any]) -> dict[str, Any]:
        # Numeric weights (700) are stored as strings
        weight = data.get('fontWeight')
        if isinstance(weight, int) and not isinstance(weight, bool):
            data['fontWeight'] = str(weight)
        return data

    @property
    def lines(self) -> list[str]:
        return self.text.split('\n')

    @property
    def is_multiline(self) -> bool:
        return self.word_wrap or len(self.lines) > 1
