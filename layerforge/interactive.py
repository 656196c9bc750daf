"""
Interactive target: a live scene graph for on-canvas editing.

The renderer keeps the scene between calls and updates it incrementally:

- ``render(design)`` builds a fresh scene
- ``update(layer)`` restyles the layer's nodes in place when only paint or
  placement changed (fast path) and rebuilds them when structural inputs
  changed (slow path)
- ``remove(layer_id)`` detaches a layer
- ``resolve_pending()`` fetches sources deferred during rendering, swaps the
  loading placeholders for real content and emits ``layer:load`` or
  ``layer:error``; results for layers removed in the meantime are dropped

Resources of every pass are merged into the scene's resources map; definitions
no node references any more are pruned after updates, removals and resolves.

Example:
    >>> renderer = InteractiveRenderer()
    >>> scene = renderer.render(design)
    >>> renderer.events.on('layer:load', lambda payload: print(payload['layerId']))
    >>> await renderer.resolve_pending()
"""

import asyncio
import logging
from typing import Any, Optional, Union

from layerforge.builders import Scene, SceneBuilder, SceneNode
from layerforge.dispatcher import LayerDispatcher, z_ordered
from layerforge.events import (
    LAYER_DRAGSTART,
    LAYER_ERROR,
    LAYER_LOAD,
    LAYER_POSITIONCHANGE,
    LAYER_SELECT,
    EventEmitter,
)
from layerforge.exceptions import SourceFetchError
from layerforge.export import background_nodes, canvas_nodes, coerce_design
from layerforge.fetch import SourceCache, source_cache
from layerforge.models import Design, Layer
from layerforge.paint import ResourceCollection
from layerforge.renderers import DeferredLoad, RenderContext, wrapper_attrs

logger = logging.getLogger(__name__)

UpdateResult = str  # 'fast', 'rebuild', 'added', 'removed' or 'skipped'


def layer_sources(layer: Layer) -> set[str]:
    """External sources a layer currently references."""
    sources = set()
    src = getattr(layer.properties, 'src', None)
    if src:
        sources.add(src)
    mask = getattr(layer.properties, 'mask', None)
    if mask is not None and mask.enabled and mask.src:
        sources.add(mask.src)
    return sources


class InteractiveRenderer:
    """Owns one live scene and keeps it in sync with layer changes."""

    def __init__(
        self,
        sources: Optional[SourceCache] = None,
        dispatcher: Optional[LayerDispatcher] = None,
        events: Optional[EventEmitter] = None,
    ):
        self.sources = sources or source_cache
        self.dispatcher = dispatcher or LayerDispatcher()
        self.events = events or EventEmitter()
        self.builder = SceneBuilder()
        self.scene: Optional[Scene] = None
        self.selected_id: Optional[str] = None
        self._layers: dict[str, Layer] = {}
        self._documents: dict[str, Any] = {}
        self._pending: list[DeferredLoad] = []

    # -------------------------------------------------------------------------
    # Passes
    # -------------------------------------------------------------------------

    def _context(self) -> RenderContext:
        return RenderContext(
            builder=self.builder,
            resources=ResourceCollection(),
            sources=self.sources,
            target='interactive',
            dispatcher=self.dispatcher,
            documents=self._documents,
        )

    def _commit(self, ctx: RenderContext) -> None:
        self.scene.adopt_resources(ctx.resources)
        for layer_id, (layer, node) in ctx.rendered.items():
            node.draggable = not layer.locked
            self.scene.register_layer(layer_id, node)
            self._layers[layer_id] = layer
        for load in ctx.deferred:
            if load not in self._pending:
                self._pending.append(load)

    def _require_scene(self) -> Scene:
        if self.scene is None:
            raise RuntimeError("No scene rendered yet; call render() first")
        return self.scene

    def render(self, design: Union[Design, dict[str, Any]]) -> Scene:
        """Build a new scene for the design snapshot."""
        design = coerce_design(design)
        self.scene = Scene(design.width, design.height, self.events)
        self._layers.clear()
        self._documents.clear()
        self._pending.clear()
        self.selected_id = None

        ctx = self._context()
        for node in background_nodes(design, ctx) + canvas_nodes(design, ctx):
            self.builder.append(self.scene.root, node)
        for node in self.dispatcher.render_layers(design.layers, ctx):
            self.builder.append(self.scene.root, node)
        self._commit(ctx)
        logger.debug(f"Scene built: {len(self._layers)} layers, {len(self._pending)} pending loads")
        return self.scene

    # -------------------------------------------------------------------------
    # Incremental updates
    # -------------------------------------------------------------------------

    def update(self, layer: Union[Layer, dict[str, Any]]) -> UpdateResult:
        """
        Apply a changed layer to the scene.

        Returns which path was taken: 'fast' (restyled in place), 'rebuild',
        'added' (not rendered before), 'removed' (now hidden or unrenderable)
        or 'skipped'.
        """
        scene = self._require_scene()
        if not isinstance(layer, Layer):
            layer = Layer.from_api_dict(layer)

        old = self._layers.get(layer.id)
        node = scene.layer_node(layer.id)
        renderer = self.dispatcher.renderer_for(layer.layer_type)

        if old is None or node is None:
            return self._add(layer)
        if not layer.visible or renderer is None:
            self.remove(layer.id)
            return 'removed'

        for stale in layer_sources(old) - layer_sources(layer):
            self.sources.invalidate_source(stale)

        result = 'rebuild'
        if not renderer.needs_rebuild(old, layer):
            ctx = self._context()
            self.builder.set_attrs(node, wrapper_attrs(layer))
            content = node.children[0] if node.children else None
            if content is None or renderer.apply_style(content, layer, ctx):
                node.draggable = not layer.locked
                self._layers[layer.id] = layer
                self._commit(ctx)
                result = 'fast'

        if result == 'rebuild':
            self._rebuild(layer, node)
        if old.z_index != layer.z_index:
            self._reorder(scene.layer_node(layer.id))
        scene.prune_resources()
        return result

    def _rebuild(self, layer: Layer, node: SceneNode) -> None:
        self._forget(node)
        ctx = self._context()
        new_node = self.dispatcher.render_safely(layer, ctx)
        if new_node is None:
            node.remove()
            return
        node.replace_with(new_node)
        self._commit(ctx)

    def _add(self, layer: Layer) -> UpdateResult:
        ctx = self._context()
        new_node = self.dispatcher.render_safely(layer, ctx)
        if new_node is None:
            return 'skipped'
        parent = self.scene.root
        if layer.parent_id:
            parent_node = self.scene.layer_node(layer.parent_id)
            if parent_node is not None and parent_node.children:
                parent = parent_node.children[0]
        self.builder.append(parent, new_node)
        self._commit(ctx)
        self._reorder(new_node)
        return 'added'

    def _reorder(self, node: Optional[SceneNode]) -> None:
        """Restore z-order among the layer wrappers next to ``node``."""
        if node is None or node.parent is None:
            return
        siblings = node.parent.children
        others = [child for child in siblings if child.layer_id not in self._layers]
        wrappers = [child for child in siblings if child.layer_id in self._layers]
        by_layer = {id(child): self._layers[child.layer_id] for child in wrappers}
        ordered = z_ordered(by_layer[id(child)] for child in wrappers)
        position = {layer.id: index for index, layer in enumerate(ordered)}
        wrappers.sort(key=lambda child: position[child.layer_id])
        siblings[:] = others + wrappers

    def _forget(self, node: SceneNode) -> None:
        """Drop bookkeeping for every layer wrapper in ``node``'s subtree."""
        for descendant in node.walk():
            layer_id = descendant.layer_id
            if layer_id and self.scene.layer_node(layer_id) is descendant:
                self.scene.unregister_layer(layer_id)
                self._layers.pop(layer_id, None)
                self._documents.pop(layer_id, None)

    def remove(self, layer_id: str) -> bool:
        """Detach a layer (and its children) from the scene."""
        scene = self._require_scene()
        node = scene.layer_node(layer_id)
        if node is None:
            return False
        self._forget(node)
        node.remove()
        scene.prune_resources()
        if self.selected_id == layer_id:
            self.selected_id = None
        return True

    # -------------------------------------------------------------------------
    # Deferred sources
    # -------------------------------------------------------------------------

    @property
    def pending(self) -> list[DeferredLoad]:
        return list(self._pending)

    async def _fetch(self, load: DeferredLoad) -> Optional[SourceFetchError]:
        try:
            await self.sources.afetch(load.src, load.kind)
        except SourceFetchError as e:
            return e
        return None

    async def resolve_pending(self) -> dict[str, str]:
        """
        Fetch every deferred source and swap the affected layers' placeholders.

        Returns ``{layer_id: 'loaded' | 'error' | 'discarded'}``.
        """
        pending, self._pending = self._pending, []
        if not pending:
            return {}
        errors = await asyncio.gather(*(self._fetch(load) for load in pending))

        outcome: dict[str, str] = {}
        for load, error in zip(pending, errors):
            layer = self._layers.get(load.layer_id)
            node = self.scene.layer_node(load.layer_id) if self.scene is not None else None
            if layer is None or node is None or load.src not in layer_sources(layer):
                logger.debug(f"Discarding fetch result for removed layer {load.layer_id}")
                outcome.setdefault(load.layer_id, 'discarded')
                continue

            self._rebuild(layer, node)
            if error is not None:
                outcome[load.layer_id] = 'error'
                self.events.emit(LAYER_ERROR, {'layerId': load.layer_id, 'src': load.src, 'error': error.reason})
            else:
                outcome.setdefault(load.layer_id, 'loaded')
                self.events.emit(LAYER_LOAD, {'layerId': load.layer_id, 'src': load.src})
        if self.scene is not None:
            self.scene.prune_resources()
        return outcome

    # -------------------------------------------------------------------------
    # Queries and editor events
    # -------------------------------------------------------------------------

    def vector_elements(self, layer_id: str) -> Optional[list[dict[str, Any]]]:
        """Parsed drawable elements of a vector-source layer (None until loaded)."""
        document = self._documents.get(layer_id)
        if document is None:
            return None
        return [dict(element) for element in document.elements]

    def layer(self, layer_id: str) -> Optional[Layer]:
        return self._layers.get(layer_id)

    def select(self, layer_id: Optional[str]) -> None:
        self.selected_id = layer_id
        self.events.emit(LAYER_SELECT, {'layerId': layer_id})

    def start_drag(self, layer_id: str) -> bool:
        """Begin dragging; locked or unknown layers cannot be dragged."""
        layer = self._layers.get(layer_id)
        if layer is None or layer.locked:
            return False
        self.events.emit(LAYER_DRAGSTART, {'layerId': layer_id, 'x': layer.transform.x, 'y': layer.transform.y})
        return True

    def move_layer(self, layer_id: str, x: float, y: float) -> bool:
        """Move a layer's wrapper and report the new position."""
        scene = self._require_scene()
        layer = self._layers.get(layer_id)
        node = scene.layer_node(layer_id)
        if layer is None or node is None or layer.locked:
            return False
        moved = layer.model_copy(update={'transform': layer.transform.model_copy(update={'x': x, 'y': y})})
        self.builder.set_attrs(node, wrapper_attrs(moved))
        self._layers[layer_id] = moved
        self.events.emit(LAYER_POSITIONCHANGE, {'layerId': layer_id, 'x': x, 'y': y})
        return True
