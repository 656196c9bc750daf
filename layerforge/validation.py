"""
Validation and sanitation of designs and SVG markup.

- validate_design: structural checks on a design snapshot before rendering
- validate_dimensions: canvas size limits
- validate_svg_string / sanitize_svg_string: dangerous-content scan and
  element/attribute allow-lists, applied to rendered output and to foreign
  vector documents before import
- sanitize_css: cleans custom CSS baked into an export
"""

import logging
import re
import xml.etree.ElementTree as ET
from dataclasses import dataclass, field
from typing import Any, Optional, Union

from layerforge.builders.svg import XLINK_NS, SvgDocumentBuilder, local_name
from layerforge.config import settings
from layerforge.exceptions import InvalidSvgError
from layerforge.models import Design
from layerforge.normalize import is_valid_color, to_number

logger = logging.getLogger(__name__)

ALLOWED_ELEMENTS = frozenset([
    'svg', 'g', 'rect', 'circle', 'ellipse', 'line', 'polyline', 'polygon',
    'path', 'text', 'tspan', 'textPath', 'image', 'use', 'defs', 'clipPath',
    'mask', 'pattern', 'linearGradient', 'radialGradient', 'stop', 'filter',
    'feGaussianBlur', 'feOffset', 'feFlood', 'feComposite', 'feMorphology',
    'feColorMatrix', 'feConvolveMatrix', 'feTurbulence', 'feDisplacementMap',
    'feComponentTransfer', 'feFuncR', 'feFuncG', 'feFuncB', 'feFuncA',
    'feMerge', 'feMergeNode', 'feBlend', 'feDropShadow',
    'style', 'title', 'desc', 'metadata',
])

ALLOWED_ATTRIBUTES = frozenset([
    'id', 'class', 'style', 'transform', 'x', 'y', 'width', 'height', 'rx', 'ry',
    'cx', 'cy', 'r', 'x1', 'y1', 'x2', 'y2', 'points', 'd', 'fill', 'stroke',
    'stroke-width', 'stroke-linecap', 'stroke-linejoin', 'stroke-dasharray',
    'stroke-dashoffset', 'fill-opacity', 'stroke-opacity', 'opacity',
    'font-family', 'font-size', 'font-weight', 'font-style', 'text-anchor',
    'text-decoration', 'letter-spacing', 'word-spacing', 'text-transform',
    'writing-mode', 'direction', 'unicode-bidi', 'dominant-baseline',
    'alignment-baseline', 'baseline-shift', 'clip-path', 'mask', 'filter',
    'marker-start', 'marker-mid', 'marker-end', 'color', 'visibility',
    'display', 'overflow', 'clip-rule', 'fill-rule', 'viewBox', 'preserveAspectRatio',
    'gradientUnits', 'gradientTransform', 'spreadMethod', 'patternUnits',
    'patternTransform', 'patternContentUnits', 'href', 'xlink:href',
    'offset', 'stop-color', 'stop-opacity', 'type', 'values', 'dur', 'repeatCount',
    # Filter primitives
    'in', 'in2', 'result', 'stdDeviation', 'dx', 'dy', 'flood-color', 'flood-opacity',
    'operator', 'slope', 'intercept', 'tableValues', 'mode', 'color-interpolation-filters',
    'maskUnits', 'maskContentUnits', 'clipPathUnits',
    # Layer bookkeeping
    'data-layer-id', 'data-layer-type',
])

DANGEROUS_PATTERNS = [
    re.compile(r'javascript:', re.IGNORECASE),
    re.compile(r'data:(?!image/)', re.IGNORECASE),
    re.compile(r'vbscript:', re.IGNORECASE),
    re.compile(r'<[^>]*\son\w+\s*=', re.IGNORECASE),
    re.compile(r'<script', re.IGNORECASE),
    re.compile(r'<iframe', re.IGNORECASE),
    re.compile(r'<object', re.IGNORECASE),
    re.compile(r'<embed', re.IGNORECASE),
    re.compile(r'<link', re.IGNORECASE),
    re.compile(r'<meta', re.IGNORECASE),
    re.compile(r'expression\s*\(', re.IGNORECASE),
    re.compile(r'import\s*\(', re.IGNORECASE),
    re.compile(r'url\s*\(\s*["\']?(?!data:image/|#)', re.IGNORECASE),
]

_IMAGE_PAYLOAD_RE = re.compile(r'data:image/[\w.+-]+;base64,[A-Za-z0-9+/=\s]+')

DANGEROUS_ELEMENTS = frozenset(['script', 'iframe', 'object', 'embed', 'link', 'meta', 'foreignObject'])

# Attribute value cleanup applied to every kept attribute
_VALUE_CLEANUP = [
    re.compile(r'javascript:', re.IGNORECASE),
    re.compile(r'vbscript:', re.IGNORECASE),
    re.compile(r'data:(?!image/)', re.IGNORECASE),
    re.compile(r'expression\s*\(', re.IGNORECASE),
]

_CSS_CLEANUP = [
    re.compile(r'javascript:', re.IGNORECASE),
    re.compile(r'expression\s*\(', re.IGNORECASE),
    re.compile(r'import\s*\(', re.IGNORECASE),
    re.compile(r'@import', re.IGNORECASE),
    re.compile(r'url\s*\(\s*["\']?(?!data:image/|#)', re.IGNORECASE),
]


@dataclass
class ValidationReport:
    """Outcome of a validation: errors make it invalid, warnings do not."""

    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    @property
    def valid(self) -> bool:
        return not self.errors

    def merge(self, other: 'ValidationReport') -> None:
        self.errors.extend(other.errors)
        self.warnings.extend(other.warnings)

    def to_dict(self) -> dict[str, Any]:
        return {'valid': self.valid, 'errors': list(self.errors), 'warnings': list(self.warnings)}


# =============================================================================
# Markup
# =============================================================================

def find_dangerous(text: str) -> list[str]:
    """Patterns of DANGEROUS_PATTERNS that match ``text``."""
    # Base64 image payloads can contain "on...=" by chance
    text = _IMAGE_PAYLOAD_RE.sub('data:image/;base64,', text)
    return [pattern.pattern for pattern in DANGEROUS_PATTERNS if pattern.search(text)]


def _qualified_attr(name: str) -> str:
    if name.startswith(f'{{{XLINK_NS}}}'):
        return 'xlink:' + local_name(name)
    return local_name(name)


def parse_svg(content: Union[str, bytes]) -> ET.Element:
    """
    Parse markup and check for an ``<svg>`` root.

    Raises:
        InvalidSvgError: malformed XML or a different root element
    """
    try:
        root = ET.fromstring(content)
    except ET.ParseError as e:
        raise InvalidSvgError(f"XML Error: {e}")
    if local_name(root.tag) != 'svg':
        raise InvalidSvgError("Root element must be <svg>")
    return root


def _validate_element(element: ET.Element, report: ValidationReport) -> None:
    tag = local_name(element.tag)
    if tag not in ALLOWED_ELEMENTS:
        report.errors.append(f"Element '{tag}' is not allowed")
        return
    for name, value in element.attrib.items():
        attr = _qualified_attr(name)
        if attr not in ALLOWED_ATTRIBUTES:
            report.warnings.append(f"Attribute '{attr}' on element '{tag}' may not be supported")
        if attr.lower().startswith('on'):
            report.errors.append(f"Dangerous event handler attribute '{attr}' on element '{tag}'")
        elif find_dangerous(value):
            report.errors.append(f"Dangerous content in attribute '{attr}': {value}")
    for child in element:
        _validate_element(child, report)


def validate_svg_string(content: str) -> ValidationReport:
    """Scan for dangerous content, then check structure and allow-lists."""
    report = ValidationReport()
    for pattern in find_dangerous(content):
        report.errors.append(f"Potentially dangerous content detected: {pattern}")

    try:
        root = parse_svg(content)
    except InvalidSvgError as e:
        report.errors.append(str(e))
        return report

    if report.errors:
        return report

    if 'width' not in root.attrib or 'height' not in root.attrib:
        report.warnings.append('SVG should have width and height attributes')
    _validate_element(root, report)
    return report


def sanitize_svg_element(element: ET.Element) -> ET.Element:
    """
    Remove disallowed elements and dangerous attributes in place.

    Returns the element for chaining.
    """
    for child in list(element):
        tag = local_name(child.tag)
        if tag in DANGEROUS_ELEMENTS or tag not in ALLOWED_ELEMENTS:
            logger.debug(f"Removing disallowed element <{tag}>")
            element.remove(child)
            continue
        sanitize_svg_element(child)

    for name in list(element.attrib):
        value = element.attrib[name]
        if find_dangerous(value) or local_name(name).lower().startswith('on'):
            del element.attrib[name]
            continue
        cleaned = value
        for pattern in _VALUE_CLEANUP:
            cleaned = pattern.sub('', cleaned)
        element.attrib[name] = cleaned.strip()
    return element


def sanitize_svg_string(content: str) -> str:
    """
    Return a cleaned copy of the markup.

    Raises:
        InvalidSvgError: when the markup cannot be parsed
    """
    root = parse_svg(content)
    sanitize_svg_element(root)
    return SvgDocumentBuilder.to_string(root)


def sanitize_css(css: str) -> str:
    """Strip script URLs, expressions, imports and external url() references."""
    for pattern in _CSS_CLEANUP:
        css = pattern.sub('', css)
    return css.strip()


# =============================================================================
# Designs
# =============================================================================

def validate_dimensions(width: Any, height: Any, max_size: Optional[int] = None) -> list[str]:
    max_size = max_size or settings.MAX_DESIGN_SIZE
    errors = []
    w = to_number(width)
    h = to_number(height)
    if w is None or w <= 0:
        errors.append('Width must be greater than 0')
    elif w > max_size:
        errors.append(f'Width too large (max {max_size}px)')
    if h is None or h <= 0:
        errors.append('Height must be greater than 0')
    elif h > max_size:
        errors.append(f'Height too large (max {max_size}px)')
    return errors


def _layer_value(layer: dict[str, Any], key: str) -> Any:
    transform = layer.get('transform')
    if isinstance(transform, dict) and key in transform:
        return transform[key]
    return layer.get(key)


def _validate_layer(layer: Any, report: ValidationReport, supported: set[str]) -> None:
    if not isinstance(layer, dict):
        report.errors.append('Layer entry is not an object')
        return
    layer_id = layer.get('id', '?')
    layer_type = layer.get('type')
    if layer_type not in supported:
        report.warnings.append(f"Layer type '{layer_type}' is not supported")

    for key in ('width', 'height'):
        value = _layer_value(layer, key)
        if value is None:
            continue
        number = to_number(value)
        if number is None or number <= 0:
            report.errors.append(f"Layer {layer_id} has invalid {key}")

    opacity = _layer_value(layer, 'opacity')
    if opacity is not None:
        number = to_number(opacity)
        if number is None or number < 0 or number > 1:
            report.errors.append(f"Layer {layer_id} has invalid opacity")

    z_index = layer.get('zIndex')
    if z_index is not None and to_number(z_index) is None:
        report.errors.append(f"Layer {layer_id} has invalid z-index")

    for child in layer.get('children') or []:
        _validate_layer(child, report, supported)


def validate_design(design: Union[Design, dict[str, Any]]) -> ValidationReport:
    """
    Check a design before rendering.

    Raw dicts are checked as given (before normalization clamps values);
    Design models are checked in their serialized form.
    """
    # Import here to avoid circular imports
    from layerforge.renderers import supported_layer_types

    data = design.to_api_dict() if isinstance(design, Design) else design
    report = ValidationReport()
    if not isinstance(data, dict):
        report.errors.append('Design must be an object')
        return report

    width, height = data.get('width'), data.get('height')
    if width is None or height is None:
        report.errors.append('Design must have valid width and height')
    else:
        report.errors.extend(validate_dimensions(width, height))

    background = data.get('background')
    if isinstance(background, dict) and background.get('type') == 'color':
        color = background.get('color')
        if color and not is_valid_color(color):
            report.warnings.append('Invalid background color format')

    layers = data.get('layers') or []
    if not layers:
        report.warnings.append('Design has no layers')
    supported = set(supported_layer_types())
    for layer in layers:
        _validate_layer(layer, report, supported)
    return report
