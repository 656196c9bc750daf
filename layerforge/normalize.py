"""
Property Normalizer - defaults, clamping and sanitation for layer properties.

Every raw value from a design snapshot passes through here before it reaches
geometry or paint code:
- Numbers clamp to the [min, max] declared on the model field (Field(ge=, le=))
- Colors accept 3/6-digit hex, rgb()/rgba() or a small named table, else black
- Enums (Literal fields) fall back to the field default
- Missing or malformed values resolve to defaults and never raise

Both render targets read properties only through the models that use these
rules, so they always see the same effective values.
"""

import logging
import math
import re
import types
from typing import Any, Callable, Literal, Optional, Union, get_args, get_origin

from pydantic import BaseModel, ValidationError
from pydantic.fields import FieldInfo

logger = logging.getLogger(__name__)

DEFAULT_COLOR = '#000000'
DEFAULT_FONT_FAMILY = 'Arial, sans-serif'

NAMED_COLORS: dict[str, str] = {
    'black': '#000000',
    'white': '#ffffff',
    'red': '#ff0000',
    'green': '#008000',
    'blue': '#0000ff',
    'yellow': '#ffff00',
    'cyan': '#00ffff',
    'magenta': '#ff00ff',
    'gray': '#808080',
    'grey': '#808080',
    'orange': '#ffa500',
    'purple': '#800080',
    'brown': '#a52a2a',
    'pink': '#ffc0cb',
    'transparent': 'transparent',
    'none': 'none',
}

_HEX_RE = re.compile(r'^#([0-9a-fA-F]{3}|[0-9a-fA-F]{6})$')
_RGB_RE = re.compile(r'^rgba?\(\s*\d+\s*,\s*\d+\s*,\s*\d+\s*(,\s*[0-1]?(\.\d+)?)?\s*\)$')
_DASH_ARRAY_RE = re.compile(r'^[\d\s,.]+$')
_PATH_DATA_RE = re.compile(r'^[MmLlHhVvCcSsQqTtAaZz0-9\s,.-]+$')
_FONT_FAMILY_STRIP_RE = re.compile(r'[<>"\']')
_CONTROL_CHARS_RE = re.compile(r'[\x00-\x08\x0b\x0c\x0e-\x1f]')

# Marker for "drop this key so the field default applies"
_MISSING = object()


# =============================================================================
# Primitive rules
# =============================================================================

def is_valid_color(value: Any) -> bool:
    """Check a color string against the accepted formats without falling back."""
    if not isinstance(value, str):
        return False
    color = value.strip()
    return bool(_HEX_RE.match(color) or _RGB_RE.match(color)) or color.lower() in NAMED_COLORS


def validate_color(value: Any, default: str = DEFAULT_COLOR) -> str:
    """
    Return a safe color string.

    Hex and rgb()/rgba() values pass through unchanged, named colors resolve
    to their hex value, anything else becomes ``default`` (black).
    """
    if not isinstance(value, str):
        return default
    color = value.strip()
    if _HEX_RE.match(color) or _RGB_RE.match(color):
        return color
    return NAMED_COLORS.get(color.lower(), default)


def to_number(value: Any) -> Optional[float]:
    """Coerce a raw value to a finite float, or None if that is impossible."""
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        number = float(value)
    elif isinstance(value, str):
        try:
            number = float(value.strip())
        except ValueError:
            return None
    else:
        return None
    if not math.isfinite(number):
        return None
    return number


def clamp_number(
    value: Any,
    default: float,
    minimum: Optional[float] = None,
    maximum: Optional[float] = None,
) -> float:
    """
    Clamp a raw value into [minimum, maximum].

    Non-numeric and non-finite input returns ``default`` (unclamped, defaults
    are assumed to be in range).
    """
    number = to_number(value)
    if number is None:
        return default
    if minimum is not None and number < minimum:
        number = minimum
    if maximum is not None and number > maximum:
        number = maximum
    return number


def choose(value: Any, options: tuple, default: Any) -> Any:
    """Return value when it is one of options, else default."""
    return value if value in options else default


def to_bool(value: Any, default: bool = False) -> bool:
    """Interpret common boolean spellings; anything else returns default."""
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)) and value in (0, 1):
        return bool(value)
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in ('true', '1', 'yes', 'on'):
            return True
        if lowered in ('false', '0', 'no', 'off'):
            return False
    return default


def sanitize_font_family(value: Any, default: str = DEFAULT_FONT_FAMILY) -> str:
    if not isinstance(value, str):
        return default
    family = _FONT_FAMILY_STRIP_RE.sub('', value).strip()
    return family or default


def sanitize_dash_array(value: Any) -> Optional[str]:
    """Accept dash arrays made of digits, whitespace, commas and dots only."""
    if isinstance(value, (list, tuple)):
        numbers = [to_number(v) for v in value]
        if not numbers or any(n is None or n < 0 for n in numbers):
            return None
        return ','.join(f'{n:g}' for n in numbers)
    if not isinstance(value, str):
        return None
    value = value.strip()
    if not value or not _DASH_ARRAY_RE.match(value):
        return None
    return value


def is_valid_path_data(value: Any) -> bool:
    """Restrictive character-class check for raw path data."""
    return isinstance(value, str) and bool(value.strip()) and bool(_PATH_DATA_RE.match(value))


def sanitize_text(value: Any) -> str:
    """Convert to text and drop characters that cannot appear in XML."""
    if value is None or isinstance(value, (dict, list)):
        return ''
    return _CONTROL_CHARS_RE.sub('', str(value))


# =============================================================================
# Field-driven sanitation
# =============================================================================

# Sanitizers for fields tagged with json_schema_extra={'kind': ...}.
# Each receives (raw, default) and returns a value or _MISSING.
_KIND_SANITIZERS: dict[str, Callable[[Any, Any], Any]] = {}


def register_kind(kind: str):
    """Decorator registering a sanitizer for fields tagged with ``kind``."""

    def decorator(func: Callable[[Any, Any], Any]):
        _KIND_SANITIZERS[kind] = func
        return func

    return decorator


@register_kind('color')
def _sanitize_color_field(raw: Any, default: Any) -> Any:
    return validate_color(raw)


@register_kind('font_family')
def _sanitize_font_family_field(raw: Any, default: Any) -> Any:
    return sanitize_font_family(raw)


@register_kind('dash_array')
def _sanitize_dash_array_field(raw: Any, default: Any) -> Any:
    return sanitize_dash_array(raw)


@register_kind('path')
def _sanitize_path_field(raw: Any, default: Any) -> Any:
    return raw.strip() if is_valid_path_data(raw) else None


@register_kind('text')
def _sanitize_text_field(raw: Any, default: Any) -> Any:
    return sanitize_text(raw)


@register_kind('color_map')
def _sanitize_color_map(raw: Any, default: Any) -> Any:
    if not isinstance(raw, dict):
        return _MISSING
    return {str(key): validate_color(value) for key, value in raw.items()}


@register_kind('number_map')
def _sanitize_number_map(raw: Any, default: Any) -> Any:
    if not isinstance(raw, dict):
        return _MISSING
    result = {}
    for key, value in raw.items():
        number = to_number(value)
        if number is not None and number >= 0:
            result[str(key)] = number
    return result


def field_bounds(field_info: FieldInfo) -> tuple[Optional[float], Optional[float]]:
    """Read (min, max) from Field(ge=, le=, gt=, lt=) metadata."""
    minimum = maximum = None
    for meta in (field_info.metadata or []):
        if getattr(meta, 'ge', None) is not None:
            minimum = meta.ge
        if getattr(meta, 'gt', None) is not None:
            minimum = meta.gt
        if getattr(meta, 'le', None) is not None:
            maximum = meta.le
        if getattr(meta, 'lt', None) is not None:
            maximum = meta.lt
    return minimum, maximum


def _unwrap_optional(annotation: Any) -> tuple[Any, bool]:
    """Strip Optional[...] from an annotation, reporting whether it was optional."""
    origin = get_origin(annotation)
    if origin is Union or origin is types.UnionType:
        args = [arg for arg in get_args(annotation) if arg is not type(None)]
        optional = len(args) != len(get_args(annotation))
        if len(args) == 1:
            return args[0], optional
        return annotation, optional
    return annotation, False


def sanitize_field_value(field_info: FieldInfo, raw: Any) -> Any:
    """
    Sanitize one raw value according to its field declaration.

    Returns the cleaned value, or _MISSING when the field default should apply.
    """
    extra = field_info.json_schema_extra if isinstance(field_info.json_schema_extra, dict) else {}
    kind = extra.get('kind')
    annotation, optional = _unwrap_optional(field_info.annotation)

    if kind is not None:
        if raw is None and kind not in ('clip', 'mask'):
            return None if optional else _MISSING
        return _KIND_SANITIZERS[kind](raw, field_info.default)

    if raw is None:
        return None if optional else _MISSING

    if annotation is bool:
        return to_bool(raw, field_info.default if isinstance(field_info.default, bool) else False)

    if get_origin(annotation) is Literal:
        return raw if raw in get_args(annotation) else _MISSING

    if annotation in (int, float):
        number = to_number(raw)
        if number is None:
            return _MISSING
        minimum, maximum = field_bounds(field_info)
        number = clamp_number(number, number, minimum, maximum)
        return int(round(number)) if annotation is int else number

    if annotation is str:
        if isinstance(raw, str):
            return raw
        if isinstance(raw, (int, float)) and not isinstance(raw, bool):
            return str(raw)
        return _MISSING

    if isinstance(annotation, type) and issubclass(annotation, BaseModel):
        return raw if isinstance(raw, (dict, BaseModel)) else _MISSING

    origin = get_origin(annotation)
    if origin is list:
        return list(raw) if isinstance(raw, (list, tuple)) else _MISSING
    if origin is dict:
        return raw if isinstance(raw, dict) else _MISSING

    return raw


def sanitize_model_input(model_cls: type[BaseModel], data: Any) -> dict[str, Any]:
    """
    Sanitize a raw dict against every declared field of ``model_cls``.

    Used from ``model_validator(mode='before')`` hooks so that the subsequent
    pydantic validation only ever sees in-range, well-typed values.
    """
    if isinstance(data, BaseModel):
        data = data.model_dump(by_alias=True)
    if not isinstance(data, dict):
        return {}

    result = dict(data)
    for name, field_info in model_cls.model_fields.items():
        keys = [key for key in (field_info.alias, name) if key]
        present = [key for key in keys if key in result]
        if not present:
            continue
        raw = result[present[0]]
        for key in present:
            result.pop(key)
        value = sanitize_field_value(field_info, raw)
        if value is not _MISSING:
            result[present[0]] = value
    return result


def normalize_properties(layer_type: str, raw: Any):
    """
    Build the typed properties model for a layer type.

    Never raises: anything pydantic still rejects after sanitation is logged
    and replaced by the type's defaults.
    """
    # Import here to avoid circular imports
    from layerforge.models import get_properties_class

    properties_class = get_properties_class(layer_type)
    if isinstance(raw, properties_class):
        return raw
    try:
        return properties_class.model_validate(raw if isinstance(raw, dict) else {})
    except ValidationError as e:
        logger.warning(f"Falling back to default {layer_type} properties: {e.error_count()} invalid values")
        return properties_class()
