"""
Foreign vector documents (SVG layers).

Pipeline for a fetched document:
1. Parse and sanitize (disallowed elements and dangerous attributes removed)
2. Determine the intrinsic viewBox (layer override, document viewBox,
   document width/height, then the layer's original size)
3. Convert the element tree to builder-neutral specs, applying per-selector
   style overrides and prefixing ids so several layers can embed the same
   document
4. Wrap everything in a group mapping the viewBox into the layer box

Override lookup for fill, stroke and stroke width, checked independently:
``"global"`` wins; otherwise element tag, then ``#id``, then ``.class``;
bare ``id`` / ``class`` keys are accepted last for older payloads.
"""

import logging
import re
import xml.etree.ElementTree as ET
from dataclasses import dataclass, field
from typing import Any, Optional

from layerforge.builders.svg import XLINK_NS, local_name
from layerforge.exceptions import InvalidSvgError, VectorSourceError
from layerforge.geometry import ViewBox, map_view_box, parse_view_box
from layerforge.models import VectorSourceProperties
from layerforge.normalize import to_number
from layerforge.paint import ElementSpec
from layerforge.validation import parse_svg, sanitize_svg_element

logger = logging.getLogger(__name__)

DRAWABLE_ELEMENTS = frozenset(['rect', 'circle', 'ellipse', 'path', 'line', 'polyline', 'polygon', 'text'])

# Subtrees whose content is referenced rather than drawn
_NON_RENDERED = frozenset([
    'defs', 'clipPath', 'mask', 'pattern', 'linearGradient', 'radialGradient',
    'filter', 'style', 'title', 'desc', 'metadata',
])

_LENGTH_RE = re.compile(r'^\s*([0-9]*\.?[0-9]+)\s*(px)?\s*$')
_URL_REF_RE = re.compile(r'url\(\s*#([^)\s]+)\s*\)')


@dataclass
class VectorDocument:
    """A parsed, sanitized foreign document."""
    root: ET.Element
    view_box: Optional[ViewBox]
    elements: list[dict[str, Any]] = field(default_factory=list)


def _length(value: Optional[str]) -> Optional[float]:
    if not value:
        return None
    match = _LENGTH_RE.match(value)
    if not match:
        return None
    number = float(match.group(1))
    return number if number > 0 else None


def _classes(element: ET.Element) -> list[str]:
    return (element.get('class') or '').split()


def _style_value(element: ET.Element, prop: str) -> Optional[str]:
    for declaration in (element.get('style') or '').split(';'):
        name, sep, value = declaration.partition(':')
        if sep and name.strip() == prop:
            return value.strip()
    return None


def _strip_style(style: str, props: set[str]) -> str:
    kept = []
    for declaration in style.split(';'):
        name, sep, _value = declaration.partition(':')
        if sep and name.strip() in props:
            continue
        if declaration.strip():
            kept.append(declaration.strip())
    return '; '.join(kept)


def _iter_drawables(element: ET.Element):
    for child in element:
        tag = local_name(child.tag)
        if tag in _NON_RENDERED:
            continue
        if tag in DRAWABLE_ELEMENTS:
            yield child
        yield from _iter_drawables(child)


def describe_elements(root: ET.Element) -> list[dict[str, Any]]:
    """
    Read-only projection of the drawable elements, document order.

    Each entry: ``{type, id, className, originalFill, originalStroke,
    originalStrokeWidth}``; absent values are None.
    """
    described = []
    for element in _iter_drawables(root):
        stroke_width = element.get('stroke-width') or _style_value(element, 'stroke-width')
        described.append({
            'type': local_name(element.tag),
            'id': element.get('id'),
            'className': element.get('class'),
            'originalFill': element.get('fill') or _style_value(element, 'fill'),
            'originalStroke': element.get('stroke') or _style_value(element, 'stroke'),
            'originalStrokeWidth': to_number(stroke_width) if stroke_width else None,
        })
    return described


def intrinsic_view_box(root: ET.Element, properties: Optional[VectorSourceProperties] = None) -> Optional[ViewBox]:
    """The document's coordinate box, by precedence (layer override first)."""
    if properties is not None:
        override = parse_view_box(properties.view_box)
        if override is not None:
            return override
    view_box = parse_view_box(root.get('viewBox'))
    if view_box is not None:
        return view_box
    width, height = _length(root.get('width')), _length(root.get('height'))
    if width and height:
        return ViewBox(0.0, 0.0, width, height)
    if properties is not None and properties.original_width and properties.original_height:
        return ViewBox(0.0, 0.0, properties.original_width, properties.original_height)
    return None


def parse_vector_document(content: str, properties: Optional[VectorSourceProperties] = None) -> VectorDocument:
    """
    Parse and sanitize a foreign document.

    Raises:
        VectorSourceError: when the content is not a usable SVG document
    """
    try:
        root = parse_svg(content)
    except InvalidSvgError as e:
        raise VectorSourceError(str(e))
    sanitize_svg_element(root)
    return VectorDocument(
        root=root,
        view_box=intrinsic_view_box(root, properties),
        elements=describe_elements(root),
    )


def resolve_override(overrides: dict[str, Any], element: ET.Element) -> Any:
    """Look up an override value for one element (None when nothing matches)."""
    if not overrides:
        return None
    if 'global' in overrides:
        return overrides['global']
    tag = local_name(element.tag)
    element_id = element.get('id')
    classes = _classes(element)
    candidates = [tag]
    if element_id:
        candidates.append(f'#{element_id}')
    candidates.extend(f'.{name}' for name in classes)
    if element_id:
        candidates.append(element_id)
    candidates.extend(classes)
    for key in candidates:
        if key in overrides:
            return overrides[key]
    return None


def _override_attrs(element: ET.Element, properties: VectorSourceProperties) -> dict[str, Any]:
    attrs = {}
    fill = resolve_override(properties.fill_colors, element)
    if fill is not None:
        attrs['fill'] = fill
    stroke = resolve_override(properties.stroke_colors, element)
    if stroke is not None:
        attrs['stroke'] = stroke
    stroke_width = resolve_override(properties.stroke_widths, element)
    if stroke_width is not None:
        attrs['stroke-width'] = stroke_width
    return attrs


def _attr_key(name: str) -> str:
    if name.startswith(f'{{{XLINK_NS}}}'):
        return 'xlink:' + local_name(name)
    return local_name(name)


def _prefix_refs(value: str, prefix: str, ids: set[str]) -> str:
    def replace(match: re.Match) -> str:
        ref = match.group(1)
        return f'url(#{prefix}{ref})' if ref in ids else match.group(0)
    return _URL_REF_RE.sub(replace, value)


def _to_spec(
    element: ET.Element,
    properties: VectorSourceProperties,
    prefix: str,
    ids: set[str],
) -> ElementSpec:
    tag = local_name(element.tag)
    attrs: dict[str, Any] = {}
    for name, value in element.attrib.items():
        key = _attr_key(name)
        if key == 'id':
            value = f'{prefix}{value}'
        elif key in ('href', 'xlink:href') and value.startswith('#') and value[1:] in ids:
            value = f'#{prefix}{value[1:]}'
        elif 'url(' in value:
            value = _prefix_refs(value, prefix, ids)
        attrs[key] = value

    if tag in DRAWABLE_ELEMENTS:
        overrides = _override_attrs(element, properties)
        if overrides:
            attrs.update(overrides)
            if 'style' in attrs:
                attrs['style'] = _strip_style(attrs['style'], set(overrides))
                if not attrs['style']:
                    del attrs['style']

    text = element.text.strip() if element.text and element.text.strip() else None
    spec = ElementSpec(tag, attrs, text=text)
    for child in element:
        spec.children.append(_to_spec(child, properties, prefix, ids))
    return spec


def build_vector_content(
    document: VectorDocument,
    properties: VectorSourceProperties,
    width: float,
    height: float,
    id_prefix: str = '',
) -> ElementSpec:
    """Group holding the document's children, mapped into the layer box."""
    ids = {el.get('id') for el in document.root.iter() if el.get('id')}
    children = [_to_spec(child, properties, id_prefix, ids) for child in document.root]
    attrs: dict[str, Any] = {}
    if document.view_box is not None:
        mapping = map_view_box(document.view_box, width, height, properties.preserve_aspect_ratio)
        attrs['transform'] = mapping.to_transform()
    return ElementSpec('g', attrs, children)
