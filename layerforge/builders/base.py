"""
Builder abstraction shared by the render targets.

Type renderers never create output nodes directly; they go through a
NodeBuilder so the same renderer code produces either an SVG document
(static target) or a scene graph (interactive target).
"""

from abc import ABC, abstractmethod
from typing import Any, Generic, Mapping, Optional, TypeVar

from layerforge.paint import AttrValue, ElementSpec

N = TypeVar('N')


class NodeBuilder(ABC, Generic[N]):
    """Create nodes, set attributes, append children."""

    @abstractmethod
    def element(
        self,
        tag: str,
        attrs: Optional[Mapping[str, AttrValue]] = None,
        text: Optional[str] = None,
    ) -> N:
        """Create a detached node."""

    @abstractmethod
    def set_attrs(self, node: N, attrs: Mapping[str, Optional[AttrValue]]) -> None:
        """Set attributes on a node; a value of None removes the attribute."""

    @abstractmethod
    def get_attr(self, node: N, name: str) -> Any:
        """Read an attribute back (None when absent)."""

    @abstractmethod
    def append(self, parent: N, child: N) -> N:
        """Append ``child`` to ``parent`` and return the child."""

    @abstractmethod
    def clear(self, node: N) -> None:
        """Remove every child of ``node``."""

    def group(self, attrs: Optional[Mapping[str, AttrValue]] = None) -> N:
        return self.element('g', attrs)

    def child(
        self,
        parent: N,
        tag: str,
        attrs: Optional[Mapping[str, AttrValue]] = None,
        text: Optional[str] = None,
    ) -> N:
        """Create a node and append it to ``parent``."""
        return self.append(parent, self.element(tag, attrs, text))

    def materialize(self, spec: ElementSpec) -> N:
        """Turn a builder-neutral element spec into a node tree."""
        node = self.element(spec.tag, spec.attrs, spec.text)
        for child in spec.children:
            self.append(node, self.materialize(child))
        return node
