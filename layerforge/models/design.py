"""
Design - the root of the layer graph handed to the renderers.

Layer order is z-order and is preserved through parsing and serialization.
A flat layer list whose entries carry ``parentId`` is nested under the
matching group layers on load.
"""

import logging
from typing import Any, Iterator, Literal, Optional

from pydantic import Field, model_validator

from layerforge.normalize import sanitize_model_input

from .base import SanitizedModel
from .fill import FillConfig
from .layer import Layer

logger = logging.getLogger(__name__)


class DesignBackground(SanitizedModel):
    """Canvas background."""

    type: Literal['none', 'color', 'gradient', 'image'] = Field(default='color')
    color: str = Field(default='#ffffff', json_schema_extra={'kind': 'color'})
    gradient: Optional[FillConfig] = Field(default=None)
    image: Optional[str] = Field(default=None)


class CanvasSettings(SanitizedModel):
    """Editor overlays that can be baked into an export."""

    custom_css: Optional[str] = Field(default=None, alias='customCSS')
    show_grid: bool = Field(default=False, alias='showGrid')
    show_safe_area: bool = Field(default=False, alias='showSafeArea')


class Design(SanitizedModel):
    """
    A design snapshot.

    Width and height are not clamped here; ``validate_dimensions`` rejects
    unusable sizes before rendering.
    """

    id: str = Field(default='')
    name: str = Field(default='Untitled')
    width: float = Field(default=800.0)
    height: float = Field(default=600.0)
    background: DesignBackground = Field(default_factory=DesignBackground)
    layers: list[Layer] = Field(default_factory=list)
    canvas_settings: CanvasSettings = Field(default_factory=CanvasSettings, alias='canvasSettings')

    @model_validator(mode='before')
    @classmethod
    def _sanitize(cls, data: Any) -> Any:
        # A bare color string is a color background
        if isinstance(data, dict) and isinstance(data.get('background'), str):
            data = dict(data)
            data['background'] = {'type': 'color', 'color': data['background']}
        return sanitize_model_input(cls, data)

    @model_validator(mode='after')
    def _nest_children(self) -> 'Design':
        by_id = {layer.id: layer for layer in self.layers if layer.id}
        roots = []
        for layer in self.layers:
            parent = by_id.get(layer.parent_id) if layer.parent_id else None
            if parent is not None and parent.layer_type == 'group' and not _in_cycle(layer, by_id):
                parent.children.append(layer)
            else:
                if layer.parent_id:
                    logger.debug(f"Layer {layer.id} references missing parent {layer.parent_id}")
                roots.append(layer)
        self.layers = roots
        return self

    def iter_layers(self) -> Iterator[Layer]:
        """Yield every layer, depth first, in z-order."""
        for layer in self.layers:
            yield from layer.walk()

    def find_layer(self, layer_id: str) -> Optional[Layer]:
        for layer in self.iter_layers():
            if layer.id == layer_id:
                return layer
        return None

    @classmethod
    def from_api_dict(cls, data: dict[str, Any]) -> 'Design':
        return cls.model_validate(data)


def _in_cycle(layer: Layer, by_id: dict[str, Layer]) -> bool:
    seen = {layer.id}
    current = by_id.get(layer.parent_id)
    while current is not None:
        if current.id in seen:
            return True
        seen.add(current.id)
        current = by_id.get(current.parent_id) if current.parent_id else None
    return False
