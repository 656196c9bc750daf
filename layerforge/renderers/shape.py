"""Shape layers: primitive and parametric shapes with fill, stroke and effects."""

from typing import Any

from layerforge.geometry import (
    arrow_points,
    circle_geometry,
    clamp_corner_radius,
    ellipse_geometry,
    line_endpoints,
    points_attr,
    points_to_path,
    polygon_points,
    star_points,
    triangle_points,
)
from layerforge.models import Layer, ShapeProperties
from layerforge.paint import ResourceCollection, paint_attrs, resolve_fill

from .base import TypeRenderer
from .context import RenderContext
from .registry import register_renderer


def shape_geometry(properties: ShapeProperties, width: float, height: float) -> tuple[str, dict[str, Any]]:
    """Element tag and geometry attributes for a shape in its ``width`` x ``height`` box."""
    shape_type = properties.shape_type

    if shape_type == 'circle':
        cx, cy, r = circle_geometry(width, height)
        return 'circle', {'cx': cx, 'cy': cy, 'r': r}

    if shape_type == 'ellipse':
        cx, cy, rx, ry = ellipse_geometry(width, height)
        return 'ellipse', {'cx': cx, 'cy': cy, 'rx': rx, 'ry': ry}

    if shape_type == 'triangle':
        return 'polygon', {'points': points_attr(triangle_points(width, height))}

    if shape_type == 'polygon':
        return 'polygon', {'points': points_attr(polygon_points(width, height, properties.sides))}

    if shape_type == 'star':
        vertices = star_points(width, height, properties.points, properties.inner_radius)
        return 'polygon', {'points': points_attr(vertices)}

    if shape_type == 'line':
        x1, y1, x2, y2 = line_endpoints(
            width, height, properties.x1, properties.y1, properties.x2, properties.y2,
        )
        return 'line', {'x1': x1, 'y1': y1, 'x2': x2, 'y2': y2}

    if shape_type == 'arrow':
        return 'path', {'d': points_to_path(arrow_points(width, height))}

    attrs: dict[str, Any] = {'x': 0, 'y': 0, 'width': width, 'height': height}
    radius = clamp_corner_radius(properties.corner_radius, width, height)
    if radius > 0:
        attrs.update(rx=radius, ry=radius)
    return 'rect', attrs


def shape_style(properties: ShapeProperties, resources: ResourceCollection) -> dict[str, Any]:
    """Fill and stroke attributes; None removes an attribute left over from a previous style."""
    paint = resolve_fill(properties.fill, resources)
    attrs: dict[str, Any] = {'fill-opacity': None}
    attrs.update(paint_attrs(paint, 'fill'))

    if properties.has_stroke:
        attrs.update({
            'stroke': properties.stroke,
            'stroke-width': properties.stroke_width,
            'stroke-opacity': properties.stroke_opacity if properties.stroke_opacity < 1 else None,
            'stroke-dasharray': properties.stroke_dash_array,
            'stroke-linecap': properties.stroke_line_cap,
            'stroke-linejoin': properties.stroke_line_join,
        })
    else:
        attrs.update({
            'stroke': None,
            'stroke-width': None,
            'stroke-opacity': None,
            'stroke-dasharray': None,
            'stroke-linecap': None,
            'stroke-linejoin': None,
        })
    return attrs


@register_renderer
class ShapeRenderer(TypeRenderer):
    layer_types = ('shape',)
    filtered = True
    structural_keys = frozenset([
        'shapeType', 'cornerRadius', 'sides', 'points', 'innerRadius', 'x1', 'y1', 'x2', 'y2',
    ])

    def render_content(self, layer: Layer, ctx: RenderContext) -> Any:
        properties: ShapeProperties = layer.properties
        width, height = layer.transform.size
        tag, geometry = shape_geometry(properties, width, height)
        node = ctx.builder.element(tag, geometry)
        ctx.builder.set_attrs(node, shape_style(properties, ctx.resources))
        return node

    def apply_style(self, content: Any, layer: Layer, ctx: RenderContext) -> bool:
        ctx.builder.set_attrs(content, shape_style(layer.properties, ctx.resources))
        self.update_filter(content, layer, ctx)
        return True
