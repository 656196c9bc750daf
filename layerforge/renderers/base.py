"""
Type renderer base class.

Every layer type has one renderer. ``render`` builds the common wrapper

    <g id="layer-{id}" data-layer-id=".." data-layer-type=".."
       transform="translate(..) rotate(..) scale(..)" opacity="..">
      ...type-specific content...
    </g>

and delegates the content to ``render_content``. Renderers only talk to the
builder in the context, so the same code serves both render targets.
"""

import logging
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any, ClassVar, Optional

from layerforge.filters import apply_filters
from layerforge.geometry import transform_attr
from layerforge.models import Layer, LayerProperties

if TYPE_CHECKING:
    from .context import RenderContext

logger = logging.getLogger(__name__)

PLACEHOLDER_FONT = 'Arial, sans-serif'


def wrapper_attrs(layer: Layer) -> dict[str, Any]:
    """Wrapper attributes; None marks an attribute that must be absent."""
    t = layer.transform
    transform = transform_attr(t.x, t.y, t.width, t.height, t.rotation, t.scale_x, t.scale_y)
    return {
        'id': f'layer-{layer.id}',
        'data-layer-id': layer.id,
        'data-layer-type': layer.layer_type,
        'transform': transform or None,
        'opacity': t.opacity if t.opacity < 1 else None,
    }


def label_attrs(x: float, y: float, fill: str, font_size: float = 12) -> dict[str, Any]:
    """Centred label used by placeholders."""
    return {
        'x': x,
        'y': y,
        'text-anchor': 'middle',
        'dominant-baseline': 'middle',
        'font-family': PLACEHOLDER_FONT,
        'font-size': font_size,
        'fill': fill,
    }


def placeholder_state(builder: Any, content: Optional[Any]) -> Optional[str]:
    """
    State of a placeholder content node ('loading', 'missing', 'error', 'empty'),
    or None for real content.
    """
    if content is None:
        return None
    css_class = builder.get_attr(content, 'class') or ''
    for name in css_class.split():
        if name.startswith('placeholder-'):
            return name[len('placeholder-'):]
    return None


class TypeRenderer(ABC):
    """
    Strategy for one set of layer types.

    Class attributes:
        layer_types: the ``Layer.type`` values this renderer handles
        structural_keys: property names (API spelling) whose change forces a
            rebuild on the interactive target
        size_dependent: whether a width/height change forces a rebuild
        filtered: whether the filter pipeline applies to the content node
    """

    layer_types: ClassVar[tuple[str, ...]] = ()
    structural_keys: ClassVar[frozenset[str]] = frozenset()
    size_dependent: ClassVar[bool] = True
    filtered: ClassVar[bool] = False

    def render(self, layer: Layer, ctx: 'RenderContext') -> Any:
        builder = ctx.builder
        wrapper = builder.group(wrapper_attrs(layer))
        content = self.render_content(layer, ctx)
        if content is not None:
            if self.filtered:
                filter_ref = apply_filters(layer.properties, ctx.resources)
                if filter_ref:
                    builder.set_attrs(content, {'filter': filter_ref})
            builder.append(wrapper, content)
        return wrapper

    @abstractmethod
    def render_content(self, layer: Layer, ctx: 'RenderContext') -> Optional[Any]:
        """Build the type-specific content node (None for nothing)."""

    def apply_style(self, content: Any, layer: Layer, ctx: 'RenderContext') -> bool:
        """
        Restyle an existing content node in place.

        Returns False when the renderer cannot restyle and the layer must be
        rebuilt instead.
        """
        return False

    def update_filter(self, content: Any, layer: Layer, ctx: 'RenderContext') -> None:
        ctx.builder.set_attrs(content, {'filter': apply_filters(layer.properties, ctx.resources)})

    def needs_rebuild(self, old: Layer, new: Layer) -> bool:
        """Whether going from ``old`` to ``new`` changes structure, not just style."""
        if old.layer_type != new.layer_type:
            return True
        if self.size_dependent and old.transform.size != new.transform.size:
            return True
        return self.structural_properties(old.properties) != self.structural_properties(new.properties)

    def structural_properties(self, properties: LayerProperties) -> dict[str, Any]:
        data = properties.to_api_dict()
        return {key: data.get(key) for key in self.structural_keys}
