"""Exceptions raised by the rendering engine."""


class LayerforgeError(Exception):
    """Base class for all engine errors."""


class DesignValidationError(LayerforgeError):
    """Raised when a design cannot be rendered at all (e.g. invalid dimensions)."""

    def __init__(self, errors: list[str]):
        self.errors = errors
        super().__init__("Invalid design: " + ", ".join(errors))


class SourceFetchError(LayerforgeError):
    """Raised when an external image or vector source cannot be loaded."""

    def __init__(self, source: str, reason: str):
        self.source = source
        self.reason = reason
        super().__init__(f"Failed to load {_shorten(source)}: {reason}")


class InvalidSvgError(LayerforgeError):
    """Raised when SVG markup is not well-formed or has no ``<svg>`` root."""


class VectorSourceError(InvalidSvgError):
    """Raised when a foreign vector document cannot be parsed."""


def _shorten(source: str, limit: int = 80) -> str:
    if len(source) <= limit:
        return source
    return source[:limit] + "..."
