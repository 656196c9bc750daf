"""
Per-pass render context.

A RenderContext carries everything a type renderer needs besides the layer:
the builder of the active target, the pass-scoped resource collection, the
shared source cache and a callback for rendering child layers. One context
is created per render pass and never reused across passes.
"""

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Iterable, Literal, Optional

from layerforge.builders import NodeBuilder
from layerforge.config import settings
from layerforge.fetch import FetchedSource, SourceCache, SourceKind, source_cache
from layerforge.models import Layer
from layerforge.paint import ResourceCollection

if TYPE_CHECKING:
    from layerforge.dispatcher import LayerDispatcher

RenderTarget = Literal['static', 'interactive']


@dataclass(frozen=True)
class DeferredLoad:
    """A source the interactive target still has to fetch."""
    layer_id: str
    src: str
    kind: SourceKind


@dataclass
class RenderContext:
    builder: NodeBuilder
    resources: ResourceCollection = field(default_factory=ResourceCollection)
    sources: SourceCache = field(default_factory=lambda: source_cache)
    target: RenderTarget = 'static'
    embed_images: bool = field(default_factory=lambda: settings.EMBED_IMAGES)
    dispatcher: Optional['LayerDispatcher'] = None
    deferred: list[DeferredLoad] = field(default_factory=list)
    # layer id -> (layer as rendered, wrapper node)
    rendered: dict[str, tuple[Layer, Any]] = field(default_factory=dict)
    # layer id -> parsed foreign document of a vector-source layer
    documents: dict[str, Any] = field(default_factory=dict)

    @property
    def is_interactive(self) -> bool:
        return self.target == 'interactive'

    def load(self, layer_id: str, src: str, kind: SourceKind) -> Optional[FetchedSource]:
        """
        Load a source for a layer.

        The static target fetches synchronously. The interactive target only
        uses what the cache already holds; on a miss it records a deferred
        load and returns None so the renderer can emit its loading state.

        Raises:
            SourceFetchError: when the source cannot be loaded (or failed recently)
        """
        if not self.is_interactive:
            return self.sources.fetch(src, kind)
        entry = self.sources.peek(src, kind)
        if entry is None:
            load = DeferredLoad(layer_id, src, kind)
            if load not in self.deferred:
                self.deferred.append(load)
            return None
        if entry.is_failure:
            raise entry.error
        return entry.value

    def href_for(self, fetched: FetchedSource, src: str) -> str:
        return fetched.as_data_uri() if self.embed_images else src

    def render_children(self, layers: Iterable[Layer]) -> list[Any]:
        """Render child layers through the dispatcher (z-ordered, failures isolated)."""
        if self.dispatcher is None:
            return []
        return self.dispatcher.render_layers(layers, self)
