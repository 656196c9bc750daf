"""Tests for design and markup validation."""

import pytest

from layerforge.exceptions import InvalidSvgError
from layerforge.models import Design
from layerforge.validation import (
    ValidationReport,
    sanitize_css,
    sanitize_svg_string,
    validate_design,
    validate_dimensions,
    validate_svg_string,
)

SVG_OPEN = '<svg xmlns="http://www.w3.org/2000/svg" width="10" height="10">'


def _svg(body: str) -> str:
    return f'{SVG_OPEN}{body}</svg>'


class TestValidateSvg:
    """Tests for markup validation."""

    def test_valid(self):
        """A plain document is valid."""
        report = validate_svg_string(_svg('<rect x="0" y="0" width="5" height="5" fill="#ff0000"/>'))
        assert report.valid
        assert report.errors == []

    @pytest.mark.parametrize("body", [
        '<script>alert(1)</script>',
        '<rect onload="alert(1)"/>',
        '<image href="javascript:alert(1)"/>',
        '<rect style="fill: url(http://evil.test/x)"/>',
        '<foreignObject><iframe/></foreignObject>',
    ])
    def test_dangerous_content(self, body):
        """Scripts, handlers, script URLs and external references are errors."""
        report = validate_svg_string(_svg(body))
        assert not report.valid
        assert any('dangerous' in error for error in report.errors)

    def test_embedded_image_payload(self):
        """Base64 image payloads are not mistaken for event handlers."""
        report = validate_svg_string(_svg('<image href="data:image/png;base64,AAonAB=="/>'))
        assert report.valid

    @pytest.mark.parametrize("body", [
        '<text x="0" y="5">Icons=5</text>',
        '<text x="0" y="5">Options = on</text>',
        '<desc>button onclick=handler</desc>',
    ])
    def test_text_resembling_handler(self, body):
        """Text content that looks like name=value is not an event handler."""
        report = validate_svg_string(_svg(body))
        assert report.valid
        assert report.errors == []

    def test_handler_attribute_named(self):
        """Event handler attributes are reported by name."""
        report = validate_svg_string(_svg('<rect onclick="x()"/>'))
        assert "Dangerous event handler attribute 'onclick' on element 'rect'" in report.errors

    def test_internal_references(self):
        """url(#id) references are allowed."""
        assert validate_svg_string(_svg('<rect fill="url(#g)"/>')).valid

    def test_malformed(self):
        """Malformed markup reports the XML error."""
        report = validate_svg_string('<svg><rect></svg>')
        assert report.errors[0].startswith('XML Error')

    def test_wrong_root(self):
        """The root must be <svg>."""
        report = validate_svg_string('<html/>')
        assert report.errors == ['Root element must be <svg>']

    def test_missing_size_warns(self):
        """A document without width and height only warns."""
        report = validate_svg_string('<svg xmlns="http://www.w3.org/2000/svg"/>')
        assert report.valid
        assert 'SVG should have width and height attributes' in report.warnings

    def test_unknown_element(self):
        """Elements outside the allow-list are errors."""
        report = validate_svg_string(_svg('<blink/>'))
        assert "Element 'blink' is not allowed" in report.errors

    def test_unknown_attribute_warns(self):
        """Unknown attributes only warn."""
        report = validate_svg_string(_svg('<rect data-custom="1"/>'))
        assert report.valid
        assert report.warnings == ["Attribute 'data-custom' on element 'rect' may not be supported"]


class TestSanitizeSvg:
    """Tests for markup sanitation."""

    def test_removes_dangerous_parts(self):
        """Scripts, handlers and script URLs are removed; the rest is kept."""
        cleaned = sanitize_svg_string(_svg(
            '<script>alert(1)</script>'
            '<rect onclick="go()" fill="#ff0000"/>'
            '<image href="javascript:alert(1)" width="5"/>'
        ))
        assert '<script' not in cleaned
        assert 'onclick' not in cleaned
        assert 'javascript' not in cleaned
        assert 'fill="#ff0000"' in cleaned
        assert validate_svg_string(cleaned).valid

    def test_unknown_elements_removed(self):
        """Elements outside the allow-list are dropped with their content."""
        cleaned = sanitize_svg_string(_svg('<blink><rect/></blink><circle r="1"/>'))
        assert 'blink' not in cleaned
        assert 'circle' in cleaned

    def test_unparseable(self):
        """Markup that cannot be parsed cannot be sanitized."""
        with pytest.raises(InvalidSvgError):
            sanitize_svg_string('<svg')


class TestSanitizeCss:
    """Tests for custom CSS cleanup."""

    def test_strips_imports_and_external_urls(self):
        """Imports, expressions and external url() references are removed."""
        css = sanitize_css(
            '@import "x.css"; rect { fill: red; } '
            '.a { background: url(http://evil.test/x); width: expression(alert(1)); }'
        )
        assert '@import' not in css
        assert 'url(' not in css
        assert 'expression' not in css
        assert 'fill: red' in css

    def test_internal_url_kept(self):
        """References to document ids stay."""
        assert sanitize_css('rect { fill: url(#grid); }') == 'rect { fill: url(#grid); }'


class TestDimensions:
    """Tests for canvas size limits."""

    @pytest.mark.parametrize("width,height,errors", [
        (800, 600, []),
        (10000, 10000, []),
        (0, 600, ['Width must be greater than 0']),
        (800, -1, ['Height must be greater than 0']),
        (20000, 600, ['Width too large (max 10000px)']),
        (800, 'tall', ['Height must be greater than 0']),
        (None, None, ['Width must be greater than 0', 'Height must be greater than 0']),
    ])
    def test_dimensions(self, width, height, errors):
        """Width and height must be in (0, 10000]."""
        assert validate_dimensions(width, height) == errors


class TestValidateDesign:
    """Tests for design validation."""

    def test_empty_design_warns(self):
        """A design without layers is valid with a warning."""
        report = validate_design({'width': 800, 'height': 600, 'layers': []})
        assert report.valid
        assert report.warnings == ['Design has no layers']

    def test_missing_dimensions(self):
        """Width and height are required."""
        report = validate_design({'layers': []})
        assert report.errors == ['Design must have valid width and height']

    def test_not_an_object(self):
        """Non-object designs are rejected."""
        assert validate_design([1, 2]).errors == ['Design must be an object']

    def test_unsupported_layer_type_warns(self):
        """Unknown layer types are skipped at render time, so they only warn."""
        report = validate_design({'width': 10, 'height': 10, 'layers': [{'id': 'a', 'type': 'hologram'}]})
        assert report.valid
        assert "Layer type 'hologram' is not supported" in report.warnings

    def test_invalid_background_color(self):
        """An unparseable background color warns."""
        report = validate_design({
            'width': 10, 'height': 10, 'layers': [],
            'background': {'type': 'color', 'color': 'sparkly'},
        })
        assert 'Invalid background color format' in report.warnings

    def test_layer_errors(self):
        """Invalid sizes, opacity and z-index are reported per layer, including children."""
        report = validate_design({'width': 10, 'height': 10, 'layers': [
            {'id': 'a', 'type': 'shape', 'width': -1, 'opacity': 2, 'zIndex': 'top'},
            {'id': 'g', 'type': 'group', 'children': [
                {'id': 'c', 'type': 'text', 'transform': {'height': 0}},
            ]},
        ]})
        assert report.errors == [
            'Layer a has invalid width',
            'Layer a has invalid opacity',
            'Layer a has invalid z-index',
            'Layer c has invalid height',
        ]

    def test_design_model(self):
        """Design models are validated in serialized form."""
        design = Design.from_api_dict({'width': 300, 'height': 200, 'layers': [{'id': 'a', 'type': 'text'}]})
        report = validate_design(design)
        assert report.valid
        assert report.warnings == []

    def test_report(self):
        """Reports merge and serialize."""
        report = ValidationReport(errors=['e1'])
        report.merge(ValidationReport(warnings=['w1']))
        assert report.to_dict() == {'valid': False, 'errors': ['e1'], 'warnings': ['w1']}
