"""Tests for the property normalizer."""

import math

import pytest

from layerforge.models import ImageProperties, OpaqueProperties, ShapeProperties, TextProperties
from layerforge.normalize import (
    clamp_number,
    is_valid_color,
    is_valid_path_data,
    normalize_properties,
    sanitize_dash_array,
    sanitize_font_family,
    sanitize_text,
    to_bool,
    validate_color,
)


class TestColors:
    """Tests for color validation."""

    @pytest.mark.parametrize("value", ['#fff', '#A1b2C3', 'rgb(1, 2, 3)', 'rgba(10,20,30,0.5)'])
    def test_valid_colors_pass_through(self, value):
        """Hex and rgb()/rgba() colors are returned unchanged."""
        assert validate_color(value) == value

    @pytest.mark.parametrize("name,expected", [
        ('red', '#ff0000'),
        ('Green', '#008000'),
        ('grey', '#808080'),
        ('transparent', 'transparent'),
        ('none', 'none'),
    ])
    def test_named_colors_resolve(self, name, expected):
        """Named colors resolve through the named table."""
        assert validate_color(name) == expected

    @pytest.mark.parametrize("value", ['notacolor', '#12', '#ggg', 'rgb(1,2)', None, 42, {'r': 1}])
    def test_invalid_colors_become_black(self, value):
        """Anything unrecognised falls back to black."""
        assert validate_color(value) == '#000000'

    def test_is_valid_color_does_not_fall_back(self):
        """is_valid_color reports invalid input instead of replacing it."""
        assert is_valid_color('#abcdef')
        assert not is_valid_color('chartreuse-ish')


class TestNumbers:
    """Tests for numeric clamping."""

    def test_clamps_into_range(self):
        """Values outside the range are clamped to the nearest bound."""
        assert clamp_number(15, 1, 0, 10) == 10
        assert clamp_number(-3, 1, 0, 10) == 0

    @pytest.mark.parametrize("value", ['abc', None, float('inf'), float('nan'), True, [1]])
    def test_unusable_values_take_default(self, value):
        """Non-numeric and non-finite input returns the default."""
        assert clamp_number(value, 5.0, 0, 10) == 5.0

    def test_numeric_strings_are_accepted(self):
        """Numeric strings are parsed."""
        assert clamp_number(' 2.5 ', 0.0) == 2.5


class TestPrimitiveRules:
    """Tests for booleans, fonts, dash arrays, path data and text."""

    @pytest.mark.parametrize("value,expected", [
        (True, True), ('yes', True), ('off', False), (0, False), ('maybe', False),
    ])
    def test_to_bool(self, value, expected):
        """Common boolean spellings are understood."""
        assert to_bool(value) is expected

    def test_font_family_strips_markup_characters(self):
        """Quotes and angle brackets are removed from font families."""
        family = sanitize_font_family('"Helvetica"<b>')
        assert '<' not in family and '"' not in family
        assert family.startswith('Helvetica')

    def test_empty_font_family_uses_default(self):
        """An empty font family falls back to the default stack."""
        assert sanitize_font_family('  ') == 'Arial, sans-serif'

    @pytest.mark.parametrize("value,expected", [
        ('5, 5', '5, 5'),
        ('4 2.5', '4 2.5'),
        ([4, 2], '4,2'),
        ('5;drop', None),
        ('url(x)', None),
        ([4, -1], None),
    ])
    def test_dash_array(self, value, expected):
        """Dash arrays may only contain digits, whitespace, commas and dots."""
        assert sanitize_dash_array(value) == expected

    def test_path_data_character_class(self):
        """Path data is accepted only when it uses path command characters."""
        assert is_valid_path_data('M 0 0 L 10 10 Z')
        assert is_valid_path_data('m0,0 c1.5,-2 3,4 5,6z')
        assert not is_valid_path_data('M0 0 <script>')
        assert not is_valid_path_data('')

    def test_text_drops_control_characters(self):
        """Control characters that cannot appear in XML are removed."""
        assert sanitize_text('a\x00b\x07c\nd') == 'abc\nd'


class TestNormalizeProperties:
    """Tests for typed property normalization."""

    def test_brightness_and_blur_clamp(self):
        """brightness=10 clamps to 3 and blur=-5 clamps to 0."""
        props = normalize_properties('image', {'brightness': 10, 'blur': -5})
        assert isinstance(props, ImageProperties)
        assert props.brightness == 3.0
        assert props.blur == 0.0

    def test_invalid_fill_color_becomes_black(self):
        """An invalid fill color normalizes to #000000."""
        props = normalize_properties('shape', {'fill': {'type': 'solid', 'color': 'nope'}})
        assert props.fill.color == '#000000'

    def test_unknown_enum_takes_default(self):
        """Unknown enum values fall back to the field default."""
        props = normalize_properties('shape', {'shapeType': 'hexagon', 'strokeLineCap': 'pointy'})
        assert props.shape_type == 'rectangle'
        assert props.stroke_line_cap == 'butt'

    def test_wrong_types_take_default(self):
        """Wrongly typed numbers fall back to defaults."""
        props = normalize_properties('text', {'fontSize': 'big', 'lineHeight': math.inf})
        assert props.font_size == 16.0
        assert props.line_height == 1.2

    def test_integer_fields_round(self):
        """Integer fields are rounded and clamped."""
        props = normalize_properties('shape', {'sides': 50, 'points': 4.6})
        assert props.sides == 20
        assert props.points == 5

    def test_numeric_font_weight_is_kept(self):
        """Numeric font weights are stored as their string form."""
        props = normalize_properties('text', {'fontWeight': 700})
        assert props.font_weight == '700'

    def test_legacy_fill_color_migrates(self):
        """fillColor/fillOpacity become a solid fill."""
        props = normalize_properties('shape', {'fillColor': '#ff0000', 'fillOpacity': 0.5})
        assert props.fill.type == 'solid'
        assert props.fill.color == '#ff0000'
        assert props.fill.opacity == 0.5

    def test_non_dict_input_gives_defaults(self):
        """Garbage properties produce the type's defaults."""
        props = normalize_properties('text', 'garbage')
        assert props == TextProperties()

    def test_unknown_type_is_kept_verbatim(self):
        """Properties of unknown layer types survive as an opaque model."""
        props = normalize_properties('sticker', {'emoji': 'star', 'size': 3})
        assert isinstance(props, OpaqueProperties)
        assert props.to_api_dict() == {'emoji': 'star', 'size': 3}

    def test_existing_instance_is_returned(self):
        """An already normalized model passes straight through."""
        props = ShapeProperties()
        assert normalize_properties('shape', props) is props
