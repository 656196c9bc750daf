"""
SVG document builder on xml.etree.ElementTree.

Produces a namespaced document:

    <svg xmlns="http://www.w3.org/2000/svg" width=".." height=".." viewBox="0 0 w h">
      <style>...</style>          (optional)
      <defs>...</defs>            (only when resources exist, exactly once)
      ...layer nodes in z-order...
    </svg>

Numbers are written with ``fmt`` so integral values carry no decimals.
"""

import xml.etree.ElementTree as ET
from typing import Any, Iterable, Mapping, Optional

from layerforge.geometry import fmt
from layerforge.paint import AttrValue, ResourceCollection

from .base import NodeBuilder

SVG_NS = 'http://www.w3.org/2000/svg'
XLINK_NS = 'http://www.w3.org/1999/xlink'

ET.register_namespace('', SVG_NS)
ET.register_namespace('xlink', XLINK_NS)

XML_DECLARATION = '<?xml version="1.0" encoding="UTF-8"?>\n'


def qualify(tag: str) -> str:
    return f'{{{SVG_NS}}}{tag}'


def local_name(tag: str) -> str:
    """Strip an ``{namespace}`` prefix from an ElementTree tag or attribute."""
    return tag.rsplit('}', 1)[-1] if tag.startswith('{') else tag


def attr_name(name: str) -> str:
    if name.startswith('xlink:'):
        return f'{{{XLINK_NS}}}{name[6:]}'
    return name


def attr_value(value: AttrValue) -> str:
    if isinstance(value, bool):
        return 'true' if value else 'false'
    if isinstance(value, (int, float)):
        return fmt(value)
    return str(value)


class SvgDocumentBuilder(NodeBuilder[ET.Element]):
    """Builds ElementTree nodes in the SVG namespace."""

    def __init__(self, width: float, height: float):
        self.width = width
        self.height = height

    def element(
        self,
        tag: str,
        attrs: Optional[Mapping[str, AttrValue]] = None,
        text: Optional[str] = None,
    ) -> ET.Element:
        node = ET.Element(qualify(tag))
        if attrs:
            self.set_attrs(node, attrs)
        if text is not None:
            node.text = text
        return node

    def set_attrs(self, node: ET.Element, attrs: Mapping[str, Optional[AttrValue]]) -> None:
        for name, value in attrs.items():
            key = attr_name(name)
            if value is None:
                node.attrib.pop(key, None)
            else:
                node.set(key, attr_value(value))

    def get_attr(self, node: ET.Element, name: str) -> Any:
        return node.get(attr_name(name))

    def append(self, parent: ET.Element, child: ET.Element) -> ET.Element:
        parent.append(child)
        return child

    def clear(self, node: ET.Element) -> None:
        for child in list(node):
            node.remove(child)

    def document(
        self,
        nodes: Iterable[ET.Element],
        resources: ResourceCollection,
        style: Optional[str] = None,
    ) -> ET.Element:
        """Assemble the root ``<svg>`` with one ``<defs>`` after the optional ``<style>``."""
        root = self.element('svg', {
            'width': self.width,
            'height': self.height,
            'viewBox': f'0 0 {fmt(self.width)} {fmt(self.height)}',
        })
        if style:
            self.append(root, self.element('style', {'type': 'text/css'}, style))
        if len(resources):
            defs = self.append(root, self.element('defs'))
            for definition in resources:
                self.append(defs, self.materialize(definition.element))
        for node in nodes:
            self.append(root, node)
        return root

    @staticmethod
    def to_string(root: ET.Element, declaration: bool = True) -> str:
        body = ET.tostring(root, encoding='unicode')
        return XML_DECLARATION + body if declaration else body
