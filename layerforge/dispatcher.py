"""
Layer dispatcher: walks layers in z-order and hands each one to the
renderer registered for its type.

Per layer:
1. Invisible layers and unknown types are skipped (None, no error)
2. The renderer builds the wrapper and content
3. On failure the layer is repaired with ``recover_layer`` and retried once
4. A second failure is logged and the layer is left out

Nothing a single layer does stops the rest of the design from rendering.
"""

import logging
from typing import Any, Iterable, Optional

from layerforge.models import Layer
from layerforge.recovery import recover_layer
from layerforge.renderers import RenderContext, TypeRenderer, get_renderer_class

logger = logging.getLogger(__name__)


def z_ordered(layers: Iterable[Layer]) -> list[Layer]:
    """Layers sorted by zIndex; equal zIndex keeps the given order."""
    return sorted(layers, key=lambda layer: layer.z_index)


class LayerDispatcher:
    """Selects renderers by layer type and renders layer lists."""

    def __init__(self):
        self._renderers: dict[type[TypeRenderer], TypeRenderer] = {}

    def renderer_for(self, layer_type: str) -> Optional[TypeRenderer]:
        cls = get_renderer_class(layer_type)
        if cls is None:
            return None
        renderer = self._renderers.get(cls)
        if renderer is None:
            renderer = self._renderers[cls] = cls()
        return renderer

    def render_layer(self, layer: Layer, ctx: RenderContext) -> Optional[Any]:
        """
        Render one layer, or return None when it is hidden or has no renderer.

        Exceptions from the renderer propagate; ``render_layers`` handles them.
        """
        if not layer.visible:
            return None
        renderer = self.renderer_for(layer.layer_type)
        if renderer is None:
            logger.debug(f"No renderer for layer {layer.id} of type {layer.layer_type!r}")
            return None
        node = renderer.render(layer, ctx)
        ctx.rendered[layer.id] = (layer, node)
        return node

    def render_safely(self, layer: Layer, ctx: RenderContext) -> Optional[Any]:
        """Render with one recovery attempt; failures are logged, never raised."""
        try:
            return self.render_layer(layer, ctx)
        except Exception as e:
            logger.warning(f"Failed to render layer {layer.id} ({layer.layer_type}): {e}")

        try:
            return self.render_layer(recover_layer(layer), ctx)
        except Exception as e:
            logger.error(f"Layer {layer.id} could not be recovered: {e}")
            return None

    def render_layers(self, layers: Iterable[Layer], ctx: RenderContext) -> list[Any]:
        """Render ``layers`` in z-order; skipped and failed layers are omitted."""
        ctx.dispatcher = self
        ordered = z_ordered(layers)
        nodes = []
        for layer in ordered:
            node = self.render_safely(layer, ctx)
            if node is not None:
                nodes.append(node)
        logger.debug(f"Rendered {len(nodes)} of {len(ordered)} layers")
        return nodes


# Global instance
layer_dispatcher = LayerDispatcher()
