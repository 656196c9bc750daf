"""Tests for foreign vector documents."""

import xml.etree.ElementTree as ET

import pytest

from layerforge.exceptions import VectorSourceError
from layerforge.geometry import ViewBox
from layerforge.models import VectorSourceProperties
from layerforge.vector_source import (
    build_vector_content,
    describe_elements,
    intrinsic_view_box,
    parse_vector_document,
    resolve_override,
)

SVG_NS = 'xmlns="http://www.w3.org/2000/svg"'


def _props(**data):
    return VectorSourceProperties.model_validate(data)


class TestParse:
    """Tests for parsing and element description."""

    def test_describe_elements(self, svg_document):
        """Drawable elements are described in document order; defs and scripts are not."""
        document = parse_vector_document(svg_document)
        assert document.elements == [
            {
                'type': 'rect', 'id': 'bg', 'className': 'panel',
                'originalFill': 'url(#g)', 'originalStroke': None, 'originalStrokeWidth': None,
            },
            {
                'type': 'circle', 'id': 'dot', 'className': 'accent',
                'originalFill': '#ff0000', 'originalStroke': '#000000', 'originalStrokeWidth': 2.0,
            },
        ]

    def test_nested_drawables(self):
        """Drawables inside groups are found."""
        root = ET.fromstring(f'<svg {SVG_NS}><g><g><path d="M0 0"/></g></g></svg>')
        assert [e['type'] for e in describe_elements(root)] == ['path']

    @pytest.mark.parametrize("content", [
        '<svg',
        '<html/>',
        '',
    ])
    def test_unusable_documents(self, content):
        """Malformed markup or a non-svg root is rejected."""
        with pytest.raises(VectorSourceError):
            parse_vector_document(content)


class TestViewBox:
    """Tests for intrinsic viewBox precedence."""

    def test_layer_override_wins(self, svg_document):
        """A viewBox on the layer beats the document's own."""
        document = parse_vector_document(svg_document, _props(viewBox='0 0 10 10'))
        assert document.view_box == ViewBox(0, 0, 10, 10)

    def test_document_view_box(self, svg_document):
        """The document viewBox is used when the layer has none."""
        assert parse_vector_document(svg_document).view_box == ViewBox(0, 0, 100, 50)

    def test_pixel_size(self):
        """Without a viewBox the document width and height are used."""
        root = ET.fromstring(f'<svg {SVG_NS} width="40px" height="20"/>')
        assert intrinsic_view_box(root) == ViewBox(0, 0, 40, 20)

    def test_original_size(self):
        """Relative sizes fall back to the layer's recorded original size."""
        root = ET.fromstring(f'<svg {SVG_NS} width="100%" height="100%"/>')
        props = _props(originalWidth=64, originalHeight=32)
        assert intrinsic_view_box(root, props) == ViewBox(0, 0, 64, 32)

    def test_no_size(self):
        """No size information at all leaves the document unmapped."""
        root = ET.fromstring(f'<svg {SVG_NS}/>')
        assert intrinsic_view_box(root) is None
        document = parse_vector_document(f'<svg {SVG_NS}><rect/></svg>')
        assert 'transform' not in build_vector_content(document, _props(), 100, 100).attrs


class TestOverrides:
    """Tests for selector based style overrides."""

    ELEMENT = ET.fromstring('<rect id="a" class="b c"/>')

    @pytest.mark.parametrize("overrides,expected", [
        ({'global': '#000000', 'rect': '#111111'}, '#000000'),
        ({'rect': '#111111', '#a': '#222222'}, '#111111'),
        ({'#a': '#222222', '.b': '#333333'}, '#222222'),
        ({'.c': '#333333'}, '#333333'),
        ({'a': '#444444'}, '#444444'),
        ({'b': '#555555'}, '#555555'),
        ({'#zzz': '#666666', 'circle': '#777777'}, None),
        ({}, None),
    ])
    def test_precedence(self, overrides, expected):
        """global, then tag, then #id, then .class, then bare keys."""
        assert resolve_override(overrides, self.ELEMENT) == expected

    def test_override_strips_style(self, svg_document):
        """An override replaces the matching style declaration only."""
        document = parse_vector_document(svg_document)
        spec = build_vector_content(document, _props(strokeColors={'#dot': '#0000ff'}), 100, 50, 'p-')
        circle = spec.find('circle')[0]
        assert circle.attrs['stroke'] == '#0000ff'
        assert circle.attrs['style'] == 'fill:#ff0000'
        assert 'stroke' not in spec.find('rect')[0].attrs

    def test_stroke_width_override(self, svg_document):
        """Stroke width overrides apply by class."""
        document = parse_vector_document(svg_document)
        spec = build_vector_content(document, _props(strokeWidths={'.accent': 5}), 100, 50)
        assert spec.find('circle')[0].attrs['stroke-width'] == 5

    def test_overrides_skip_definitions(self, svg_document):
        """Elements inside defs are not restyled."""
        document = parse_vector_document(svg_document)
        spec = build_vector_content(document, _props(fillColors={'global': '#00ff00'}), 100, 50)
        assert 'fill' not in spec.find('stop')[0].attrs


class TestIdPrefixing:
    """Tests for id and reference prefixing."""

    def test_ids_and_urls(self, svg_document):
        """Ids and url(#...) references carry the prefix."""
        document = parse_vector_document(svg_document)
        spec = build_vector_content(document, _props(), 100, 50, id_prefix='layer1-')
        rect = spec.find('rect')[0]
        assert rect.attrs['id'] == 'layer1-bg'
        assert rect.attrs['fill'] == 'url(#layer1-g)'
        assert spec.find('linearGradient')[0].attrs['id'] == 'layer1-g'

    def test_href_references(self):
        """Local href references are prefixed too."""
        document = parse_vector_document(
            f'<svg {SVG_NS} xmlns:xlink="http://www.w3.org/1999/xlink">'
            '<defs><circle id="c" r="1"/></defs><use xlink:href="#c"/></svg>'
        )
        spec = build_vector_content(document, _props(), 10, 10, id_prefix='p-')
        assert spec.find('use')[0].attrs['xlink:href'] == '#p-c'

    def test_unknown_references_untouched(self):
        """References to ids outside the document are left alone."""
        document = parse_vector_document(f'<svg {SVG_NS}><rect fill="url(#elsewhere)"/></svg>')
        spec = build_vector_content(document, _props(), 10, 10, id_prefix='p-')
        assert spec.find('rect')[0].attrs['fill'] == 'url(#elsewhere)'

    def test_mapping_transform(self, svg_document):
        """The wrapper group maps the viewBox into the layer box."""
        document = parse_vector_document(svg_document)
        spec = build_vector_content(document, _props(preserveAspectRatio='none'), 200, 200)
        assert spec.attrs['transform'] == 'translate(0, 0) scale(2, 4)'
