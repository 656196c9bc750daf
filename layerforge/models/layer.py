"""
Layer and Transform - one visual element of a design.

A layer payload accepts either a nested ``transform`` object or the flat
legacy keys (``x``, ``y``, ``width``, ``height``, ``rotation``, ``scaleX``,
``scaleY``, ``opacity``) at the top level::

    {
        "id": "layer-1",
        "type": "shape",
        "transform": {"x": 10, "y": 20, "width": 100, "height": 50},
        "visible": true,
        "zIndex": 0,
        "properties": {"shapeType": "rectangle"},
        "plugins": {}
    }

``properties`` is the tagged union keyed by ``type``: it is always an instance
of the properties class registered for the layer type (``OpaqueProperties``
for types no renderer understands).
"""

from typing import Any, Iterator, Optional

from pydantic import BaseModel, Field, SerializeAsAny, model_validator

from layerforge.normalize import normalize_properties, sanitize_model_input

from .base import LayerProperties, SanitizedModel

TRANSFORM_KEYS = ('x', 'y', 'width', 'height', 'rotation', 'scaleX', 'scaleY', 'opacity')


class Transform(SanitizedModel):
    """Position, size, rotation, scale and opacity of a layer."""

    x: float = Field(default=0.0)
    y: float = Field(default=0.0)
    width: float = Field(default=100.0, ge=0.0)
    height: float = Field(default=100.0, ge=0.0)
    rotation: float = Field(default=0.0, ge=-360.0, le=360.0)
    scale_x: float = Field(default=1.0, alias='scaleX')
    scale_y: float = Field(default=1.0, alias='scaleY')
    opacity: float = Field(default=1.0, ge=0.0, le=1.0)

    @property
    def size(self) -> tuple[float, float]:
        return self.width, self.height


class Layer(SanitizedModel):
    """A typed visual layer with its transform and properties."""

    id: str = Field(default='')
    name: str = Field(default='Layer')
    layer_type: str = Field(default='', alias='type')
    transform: Transform = Field(default_factory=Transform)
    visible: bool = Field(default=True)
    locked: bool = Field(default=False)
    z_index: int = Field(default=0, alias='zIndex')
    properties: SerializeAsAny[LayerProperties] = Field(default_factory=LayerProperties)

    # Namespaced plugin state, passed through untouched
    plugins: dict[str, Any] = Field(default_factory=dict)

    # Hierarchy (null = root level)
    parent_id: Optional[str] = Field(default=None, alias='parentId')
    children: list['Layer'] = Field(default_factory=list)

    @model_validator(mode='before')
    @classmethod
    def _sanitize(cls, data: Any) -> Any:
        if isinstance(data, BaseModel):
            data = data.model_dump(by_alias=True)
        if not isinstance(data, dict):
            return {}
        data = dict(data)

        # Flat legacy transform keys
        if not isinstance(data.get('transform'), (dict, Transform)):
            data['transform'] = {key: data[key] for key in TRANSFORM_KEYS if key in data}
        for key in TRANSFORM_KEYS:
            data.pop(key, None)

        if isinstance(data.get('parentId'), int) and not isinstance(data.get('parentId'), bool):
            data['parentId'] = str(data['parentId'])

        data = sanitize_model_input(cls, data)
        layer_type = data.get('type') or data.get('layer_type') or ''
        raw_properties = data.pop('properties', None)
        data['properties'] = normalize_properties(layer_type, raw_properties)
        return data

    @property
    def type(self) -> str:
        return self.layer_type

    @property
    def width(self) -> float:
        return self.transform.width

    @property
    def height(self) -> float:
        return self.transform.height

    def walk(self) -> Iterator['Layer']:
        """Yield this layer and all descendants, depth first."""
        yield self
        for child in self.children:
            yield from child.walk()

    @classmethod
    def from_api_dict(cls, data: dict[str, Any]) -> 'Layer':
        return cls.model_validate(data)
