"""
Base models shared by all layer property payloads.

Provides:
- LayerType: identifiers of the layer types the engine understands
- SanitizedModel: pydantic base whose input is cleaned field-by-field by the
  Property Normalizer before validation, so malformed values never raise
- LayerProperties: base of the per-type properties (tagged union by layer type)

Uses Pydantic v2 with camelCase aliases for JSON compatibility with the editor.
"""

from enum import Enum
from typing import Any, ClassVar

from pydantic import BaseModel, ConfigDict, model_validator

from layerforge.normalize import sanitize_model_input


class LayerType(str, Enum):
    """Layer type identifiers matching the persisted design graph."""
    TEXT = "text"
    SHAPE = "shape"
    IMAGE = "image"
    SVG = "svg"
    GROUP = "group"
    VIDEO = "video"
    AUDIO = "audio"


class SanitizedModel(BaseModel):
    """
    Base for every model built from raw design data.

    The ``mode='before'`` validator runs the normalizer over the declared
    fields: out-of-range numbers are clamped, unknown enum values and
    wrongly-typed values are dropped (so the default applies), colors fall
    back to black.
    """

    model_config = ConfigDict(
        # Allow both snake_case and camelCase input
        populate_by_name=True,
        # Don't validate on assignment for performance
        validate_assignment=False,
        # Allow extra fields for forward compatibility
        extra='ignore',
    )

    @model_validator(mode='before')
    @classmethod
    def _sanitize(cls, data: Any) -> Any:
        return sanitize_model_input(cls, data)

    def to_api_dict(self) -> dict[str, Any]:
        """Serialize with camelCase keys."""
        return self.model_dump(by_alias=True, mode='json')


class LayerProperties(SanitizedModel):
    """
    Base model for per-type layer properties.

    Subclasses declare their ``layer_types``; the registry in
    ``layerforge.models`` maps each type to exactly one properties class.
    """

    # Serialization version
    VERSION: ClassVar[int] = 1

    layer_types: ClassVar[tuple[str, ...]] = ()

    @model_validator(mode='before')
    @classmethod
    def _sanitize(cls, data: Any) -> Any:
        if isinstance(data, dict):
            data = cls.migrate(dict(data))
        return sanitize_model_input(cls, data)

    @classmethod
    def from_api_dict(cls, data: dict[str, Any]) -> 'LayerProperties':
        """Create properties from an API dictionary (legacy keys are migrated)."""
        return cls.model_validate(data)

    @classmethod
    def migrate(cls, data: dict[str, Any]) -> dict[str, Any]:
        """
        Migrate serialized data from older versions.

        Args:
            data: Serialized properties

        Returns:
            Migrated data at current version
        """
        return data


class OpaqueProperties(LayerProperties):
    """Properties of a layer type no renderer handles; kept verbatim."""

    model_config = ConfigDict(extra='allow', populate_by_name=True)
