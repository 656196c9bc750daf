"""
Paint resolver and the pass-scoped resource collection.

A fill descriptor resolves either to an immediate paint (a color, with an
optional opacity) or to a reference to a deferred resource definition
(gradient, pattern). Resource definitions are content addressed: their id is
derived from the normalized parameters, so two layers with identical fills
share one definition.

Definitions are stored as builder-neutral ``ElementSpec`` trees; each builder
materializes them into its own output (``<defs>`` for documents, a resources
map for scenes).
"""

import hashlib
import json
import math
from dataclasses import dataclass, field
from typing import Any, Callable, Iterator, Optional, Union

from layerforge.geometry import fmt
from layerforge.models import FillConfig

AttrValue = Union[str, int, float]


@dataclass
class ElementSpec:
    """A markup element description: tag, attributes, children and text."""
    tag: str
    attrs: dict[str, AttrValue] = field(default_factory=dict)
    children: list['ElementSpec'] = field(default_factory=list)
    text: Optional[str] = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {'tag': self.tag, 'attrs': dict(self.attrs)}
        if self.children:
            data['children'] = [child.to_dict() for child in self.children]
        if self.text is not None:
            data['text'] = self.text
        return data

    def walk(self) -> Iterator['ElementSpec']:
        """Yield this element and all descendants, depth first."""
        yield self
        for child in self.children:
            yield from child.walk()

    def find(self, tag: str) -> list['ElementSpec']:
        """All descendants (including self) with the given tag, document order."""
        found = [self] if self.tag == tag else []
        for child in self.children:
            found.extend(child.find(tag))
        return found


@dataclass
class ResourceDefinition:
    """A deduplicated resource: id, kind, the parameters it was built from, and its element."""
    id: str
    kind: str
    params: dict[str, Any]
    element: ElementSpec


def content_hash(kind: str, params: dict[str, Any]) -> str:
    """Stable resource id for ``params``: ``"{kind}-{sha1[:12]}"`` over canonical JSON."""
    canonical = json.dumps({'kind': kind, 'params': params}, sort_keys=True, separators=(',', ':'))
    digest = hashlib.sha1(canonical.encode('utf-8')).hexdigest()[:12]
    return f'{kind}-{digest}'


class ResourceCollection:
    """
    Resource definitions of one render pass.

    Created by the caller of a render pass and threaded through it
    explicitly; never shared between passes.
    """

    def __init__(self):
        self._definitions: dict[str, ResourceDefinition] = {}

    def add(self, kind: str, params: dict[str, Any], build: Callable[[str], ElementSpec]) -> str:
        """
        Return the id for ``params``, building the definition on first use only.

        ``build`` receives the resource id and returns the element.
        """
        resource_id = content_hash(kind, params)
        if resource_id not in self._definitions:
            element = build(resource_id)
            element.attrs['id'] = resource_id
            self._definitions[resource_id] = ResourceDefinition(resource_id, kind, params, element)
        return resource_id

    def add_named(self, resource_id: str, kind: str, element: ElementSpec) -> str:
        """Register a resource under a caller-chosen id (clip paths, masks); last one wins."""
        element.attrs['id'] = resource_id
        self._definitions[resource_id] = ResourceDefinition(resource_id, kind, {}, element)
        return resource_id

    def get(self, resource_id: str) -> Optional[ResourceDefinition]:
        return self._definitions.get(resource_id)

    def discard(self, resource_id: str) -> None:
        self._definitions.pop(resource_id, None)

    def of_kind(self, kind: str) -> list[ResourceDefinition]:
        return [d for d in self._definitions.values() if d.kind == kind]

    def __contains__(self, resource_id: str) -> bool:
        return resource_id in self._definitions

    def __len__(self) -> int:
        return len(self._definitions)

    def __iter__(self) -> Iterator[ResourceDefinition]:
        return iter(list(self._definitions.values()))


@dataclass(frozen=True)
class Paint:
    """Resolved paint: a color or ``url(#id)``, plus opacity when below 1."""
    value: str
    opacity: Optional[float] = None
    resource_id: Optional[str] = None

    @property
    def is_reference(self) -> bool:
        return self.resource_id is not None


def _percent(fraction: float) -> str:
    return f'{fmt(fraction * 100)}%'


def _stop_params(fill: FillConfig) -> list[dict[str, Any]]:
    return [
        {'color': stop.color, 'stop': stop.stop, 'opacity': stop.opacity}
        for stop in fill.sorted_stops()
    ]


def _stop_elements(stops: list[dict[str, Any]]) -> list[ElementSpec]:
    elements = []
    for stop in stops:
        attrs: dict[str, AttrValue] = {
            'offset': _percent(stop['stop']),
            'stop-color': stop['color'],
        }
        if stop['opacity'] is not None:
            attrs['stop-opacity'] = stop['opacity']
        elements.append(ElementSpec('stop', attrs))
    return elements


def linear_endpoints(angle: float) -> tuple[float, float, float, float]:
    """Fractional (x1, y1, x2, y2) for an angle in degrees, 0 = left to right."""
    theta = math.radians(angle)
    cos_t, sin_t = math.cos(theta), math.sin(theta)
    return 0.5 - 0.5 * cos_t, 0.5 - 0.5 * sin_t, 0.5 + 0.5 * cos_t, 0.5 + 0.5 * sin_t


def gradient_params(fill: FillConfig) -> dict[str, Any]:
    """Normalized parameters that identify a gradient definition."""
    params: dict[str, Any] = {'type': fill.type, 'stops': _stop_params(fill)}
    if fill.type == 'linear':
        params['angle'] = fill.angle
    else:
        params.update(cx=fill.center_x, cy=fill.center_y, r=fill.radius)
    return params


def build_gradient(params: dict[str, Any]) -> ElementSpec:
    stops = _stop_elements(params['stops'])
    if params['type'] == 'linear':
        x1, y1, x2, y2 = linear_endpoints(params['angle'])
        return ElementSpec('linearGradient', {
            'x1': _percent(x1), 'y1': _percent(y1),
            'x2': _percent(x2), 'y2': _percent(y2),
        }, stops)
    return ElementSpec('radialGradient', {
        'cx': _percent(params['cx']),
        'cy': _percent(params['cy']),
        'r': _percent(params['r']),
    }, stops)


def pattern_params(fill: FillConfig) -> dict[str, Any]:
    params: dict[str, Any] = {
        'patternType': fill.pattern_type,
        'size': fill.size,
        'spacing': fill.spacing,
        'color': fill.color,
        'backgroundColor': fill.background_color,
    }
    if fill.pattern_type == 'stripes':
        params['direction'] = fill.direction
    if fill.pattern_type == 'grid':
        params['lineWidth'] = fill.line_width
    return params


def build_pattern(params: dict[str, Any]) -> ElementSpec:
    """
    Pattern tile of edge ``spacing`` (user space units).

    dots: circle of radius ``size / 2`` at the tile centre;
    stripes: a bar ``size`` thick, vertical or horizontal;
    grid: lines along the tile's top and left edges.
    """
    spacing = params['spacing']
    size = params['size']
    color = params['color']
    children = []
    if params['backgroundColor'] not in ('none', 'transparent'):
        children.append(ElementSpec('rect', {
            'width': spacing, 'height': spacing, 'fill': params['backgroundColor'],
        }))

    kind = params['patternType']
    if kind == 'dots':
        children.append(ElementSpec('circle', {
            'cx': spacing / 2, 'cy': spacing / 2, 'r': size / 2, 'fill': color,
        }))
    elif kind == 'stripes':
        if params.get('direction') == 'horizontal':
            bar = {'x': 0, 'y': 0, 'width': spacing, 'height': size}
        else:
            bar = {'x': 0, 'y': 0, 'width': size, 'height': spacing}
        children.append(ElementSpec('rect', {**bar, 'fill': color}))
    elif kind == 'grid':
        children.append(ElementSpec('path', {
            'd': f'M 0,0 L {fmt(spacing)},0 M 0,0 L 0,{fmt(spacing)}',
            'fill': 'none',
            'stroke': color,
            'stroke-width': params.get('lineWidth', 1),
        }))

    return ElementSpec('pattern', {
        'patternUnits': 'userSpaceOnUse',
        'width': spacing,
        'height': spacing,
    }, children)


def resolve_fill(fill: Optional[FillConfig], resources: ResourceCollection) -> Paint:
    """
    Resolve a fill descriptor.

    Solid fills return the color directly; gradients and patterns register (or
    reuse) a definition and return ``url(#id)``. A gradient without stops
    degrades to its solid color.
    """
    if fill is None:
        fill = FillConfig()
    opacity = fill.opacity if fill.opacity < 1 else None

    if fill.is_gradient and fill.colors:
        params = gradient_params(fill)
        resource_id = resources.add('gradient', params, lambda _id: build_gradient(params))
        return Paint(f'url(#{resource_id})', opacity, resource_id)

    if fill.type == 'pattern':
        params = pattern_params(fill)
        resource_id = resources.add('pattern', params, lambda _id: build_pattern(params))
        return Paint(f'url(#{resource_id})', opacity, resource_id)

    return Paint(fill.color, opacity)


def paint_attrs(paint: Paint, prefix: str = 'fill') -> dict[str, AttrValue]:
    """Attributes applying ``paint`` as ``fill`` (or ``stroke``)."""
    attrs: dict[str, AttrValue] = {prefix: paint.value}
    if paint.opacity is not None:
        attrs[f'{prefix}-opacity'] = paint.opacity
    return attrs
