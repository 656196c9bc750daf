"""
Scene-graph builder for the interactive target.

Nodes keep raw attribute values (numbers stay numbers) so the editor can
mutate them in place. Layer wrapper nodes are marked ``draggable`` unless
the layer is locked.
"""

import re
from dataclasses import dataclass, field
from typing import Any, Callable, Iterator, Mapping, Optional

from layerforge.events import EventEmitter
from layerforge.paint import AttrValue, ResourceCollection, ResourceDefinition

from .base import NodeBuilder

_URL_REF_RE = re.compile(r'url\(\s*#([^)\s]+)\s*\)')


def referenced_ids(attrs: Mapping[str, Any]) -> set[str]:
    """Resource ids referenced from an attribute map via ``url(#id)`` or ``href="#id"``."""
    ids = set()
    for name, value in attrs.items():
        if not isinstance(value, str):
            continue
        ids.update(_URL_REF_RE.findall(value))
        if name in ('href', 'xlink:href') and value.startswith('#'):
            ids.add(value[1:])
    return ids


@dataclass(eq=False)
class SceneNode:
    """A mutable node of the live scene."""
    tag: str
    attrs: dict[str, Any] = field(default_factory=dict)
    children: list['SceneNode'] = field(default_factory=list)
    text: Optional[str] = None
    draggable: bool = False
    parent: Optional['SceneNode'] = field(default=None, repr=False)

    @property
    def layer_id(self) -> Optional[str]:
        return self.attrs.get('data-layer-id')

    def walk(self) -> Iterator['SceneNode']:
        """Yield this node and all descendants, depth first."""
        yield self
        for child in self.children:
            yield from child.walk()

    def find(self, predicate: Callable[['SceneNode'], bool]) -> Optional['SceneNode']:
        for node in self.walk():
            if predicate(node):
                return node
        return None

    def find_all(self, tag: str) -> list['SceneNode']:
        return [node for node in self.walk() if node.tag == tag]

    def find_by_id(self, node_id: str) -> Optional['SceneNode']:
        return self.find(lambda node: node.attrs.get('id') == node_id)

    def remove(self) -> None:
        """Detach from the parent."""
        if self.parent is not None:
            self.parent.children.remove(self)
            self.parent = None

    def replace_with(self, other: 'SceneNode') -> None:
        """Put ``other`` at this node's position in the parent."""
        if self.parent is None:
            return
        index = self.parent.children.index(self)
        self.parent.children[index] = other
        other.parent = self.parent
        self.parent = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {'tag': self.tag, 'attrs': dict(self.attrs)}
        if self.text is not None:
            data['text'] = self.text
        if self.draggable:
            data['draggable'] = True
        if self.children:
            data['children'] = [child.to_dict() for child in self.children]
        return data


class SceneBuilder(NodeBuilder[SceneNode]):
    """Builds SceneNode trees."""

    def element(
        self,
        tag: str,
        attrs: Optional[Mapping[str, AttrValue]] = None,
        text: Optional[str] = None,
    ) -> SceneNode:
        values = {name: value for name, value in (attrs or {}).items() if value is not None}
        return SceneNode(tag=tag, attrs=values, text=text)

    def set_attrs(self, node: SceneNode, attrs: Mapping[str, Optional[AttrValue]]) -> None:
        for name, value in attrs.items():
            if value is None:
                node.attrs.pop(name, None)
            else:
                node.attrs[name] = value

    def get_attr(self, node: SceneNode, name: str) -> Any:
        return node.attrs.get(name)

    def append(self, parent: SceneNode, child: SceneNode) -> SceneNode:
        child.parent = parent
        parent.children.append(child)
        return child

    def clear(self, node: SceneNode) -> None:
        for child in node.children:
            child.parent = None
        node.children.clear()


class Scene:
    """
    The live scene: a root node, the resources map and the event surface.

    Layer wrappers are indexed by layer id for incremental updates.
    """

    def __init__(self, width: float, height: float, events: Optional[EventEmitter] = None):
        self.width = width
        self.height = height
        self.root = SceneNode('scene', {'width': width, 'height': height})
        self.resources: dict[str, ResourceDefinition] = {}
        self.events = events or EventEmitter()
        self._layer_nodes: dict[str, SceneNode] = {}

    def adopt_resources(self, resources: ResourceCollection) -> None:
        for definition in resources:
            self.resources[definition.id] = definition

    def prune_resources(self) -> int:
        """
        Drop definitions no node references, directly or through another
        referenced definition. Returns how many were dropped.
        """
        live = set()
        for node in self.root.walk():
            live |= referenced_ids(node.attrs)
        pending = list(live)
        while pending:
            definition = self.resources.get(pending.pop())
            if definition is None:
                continue
            for spec in definition.element.walk():
                for ref in referenced_ids(spec.attrs) - live:
                    live.add(ref)
                    pending.append(ref)

        stale = [rid for rid in self.resources if rid not in live]
        for rid in stale:
            del self.resources[rid]
        return len(stale)

    def register_layer(self, layer_id: str, node: SceneNode) -> None:
        self._layer_nodes[layer_id] = node

    def unregister_layer(self, layer_id: str) -> Optional[SceneNode]:
        return self._layer_nodes.pop(layer_id, None)

    def layer_node(self, layer_id: str) -> Optional[SceneNode]:
        return self._layer_nodes.get(layer_id)

    @property
    def layer_ids(self) -> list[str]:
        return list(self._layer_nodes)

    def to_dict(self) -> dict[str, Any]:
        return {
            'width': self.width,
            'height': self.height,
            'resources': {rid: d.element.to_dict() for rid, d in self.resources.items()},
            'root': self.root.to_dict(),
        }
