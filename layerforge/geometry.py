"""
Shape & geometry library.

Pure functions over layer-local coordinates (origin top-left, width ``w``,
height ``h``). Both render targets call these; no renderer computes shape
vertices on its own.

Provides:
- Number formatting for markup attributes (``fmt``)
- Primitive shapes: rectangle corner clamp, circle, ellipse, triangle
- Parametric shapes: regular polygon, star, line, arrow
- Layer transform: attribute string, 3x3 matrix, rotated bounds
- Clip defaults for group layers
- viewBox parsing and viewBox-to-box mapping
"""

import math
import re
from dataclasses import dataclass
from typing import Optional, Sequence

import numpy as np

Point = tuple[float, float]

_VIEW_BOX_SPLIT_RE = re.compile(r'[\s,]+')


def fmt(value: float) -> str:
    """
    Format a number for a markup attribute.

    Integral values print without decimals, others are rounded to 4 places.
    """
    number = round(float(value), 4)
    if number == int(number):
        return str(int(number))
    return repr(number)


# =============================================================================
# Primitive shapes
# =============================================================================

def clamp_corner_radius(radius: float, w: float, h: float) -> float:
    """Clamp a rectangle corner radius to [0, min(w, h) / 2]."""
    return max(0.0, min(float(radius), min(w, h) / 2))


def circle_geometry(w: float, h: float) -> tuple[float, float, float]:
    """Circle inscribed in the box: (cx, cy, r) with r = min(w, h) / 2."""
    return w / 2, h / 2, min(w, h) / 2


def ellipse_geometry(w: float, h: float) -> tuple[float, float, float, float]:
    """Ellipse filling the box: (cx, cy, rx, ry)."""
    return w / 2, h / 2, w / 2, h / 2


def triangle_points(w: float, h: float) -> list[Point]:
    """Upward triangle: apex at the top centre, base along the bottom edge."""
    return [(w / 2, 0.0), (0.0, h), (w, h)]


def polygon_points(w: float, h: float, sides: int) -> list[Point]:
    """
    Vertices of a regular polygon.

    Vertex ``i`` sits at angle ``i * 2pi / sides - pi/2`` (vertex 0 points up)
    on a circle of radius ``min(w, h) / 2`` around the box centre.
    """
    sides = int(sides)
    cx, cy, radius = circle_geometry(w, h)
    points = []
    for i in range(sides):
        angle = i * 2 * math.pi / sides - math.pi / 2
        points.append((cx + radius * math.cos(angle), cy + radius * math.sin(angle)))
    return points


def star_points(w: float, h: float, points: int, inner_ratio: float) -> list[Point]:
    """
    Vertices of a star.

    ``2 * points`` vertices alternate between the outer radius
    ``R = min(w, h) / 2`` and the inner radius ``R * inner_ratio``, with an
    angle step of ``pi / points`` starting at ``-pi/2``.
    """
    points = int(points)
    cx, cy, outer = circle_geometry(w, h)
    inner = outer * inner_ratio
    step = math.pi / points
    vertices = []
    for i in range(points * 2):
        radius = outer if i % 2 == 0 else inner
        angle = i * step - math.pi / 2
        vertices.append((cx + radius * math.cos(angle), cy + radius * math.sin(angle)))
    return vertices


def line_endpoints(
    w: float,
    h: float,
    x1: Optional[float] = None,
    y1: Optional[float] = None,
    x2: Optional[float] = None,
    y2: Optional[float] = None,
) -> tuple[float, float, float, float]:
    """Line endpoints; missing coordinates default to a horizontal line at mid-height."""
    return (
        0.0 if x1 is None else x1,
        h / 2 if y1 is None else y1,
        w if x2 is None else x2,
        h / 2 if y2 is None else y2,
    )


def arrow_points(w: float, h: float) -> list[Point]:
    """
    Seven-point right-pointing arrow.

    The shaft is 40% of the height, centred vertically; the head is a
    triangle ``min(w, h) * 0.2`` deep at the right edge spanning the full height.
    """
    head = min(w, h) * 0.2
    body_half = h * 0.4 / 2
    body_end = w - head
    mid = h / 2
    return [
        (0.0, mid - body_half),
        (body_end, mid - body_half),
        (body_end, 0.0),
        (w, mid),
        (body_end, h),
        (body_end, mid + body_half),
        (0.0, mid + body_half),
    ]


def points_attr(points: Sequence[Point]) -> str:
    """Format points for a ``points`` attribute: ``"x,y x,y ..."``."""
    return ' '.join(f'{fmt(x)},{fmt(y)}' for x, y in points)


def points_to_path(points: Sequence[Point], closed: bool = True) -> str:
    """Convert a point list to path data (``M x,y L x,y ... Z``)."""
    if not points:
        return ''
    parts = [f'M {fmt(points[0][0])},{fmt(points[0][1])}']
    parts.extend(f'L {fmt(x)},{fmt(y)}' for x, y in points[1:])
    if closed:
        parts.append('Z')
    return ' '.join(parts)


def arc_path(cx: float, cy: float, radius: float, start_angle: float, end_angle: float) -> str:
    """
    Pie-slice path from ``start_angle`` to ``end_angle`` (degrees, clockwise, 0 = right).

    A sweep of 360 degrees or more returns a full circle made of two arcs.
    """
    sweep = end_angle - start_angle
    if abs(sweep) >= 360:
        return (
            f'M {fmt(cx - radius)},{fmt(cy)} '
            f'A {fmt(radius)},{fmt(radius)} 0 1 1 {fmt(cx + radius)},{fmt(cy)} '
            f'A {fmt(radius)},{fmt(radius)} 0 1 1 {fmt(cx - radius)},{fmt(cy)} Z'
        )
    start = math.radians(start_angle)
    end = math.radians(end_angle)
    sx, sy = cx + radius * math.cos(start), cy + radius * math.sin(start)
    ex, ey = cx + radius * math.cos(end), cy + radius * math.sin(end)
    large_arc = 1 if abs(sweep) > 180 else 0
    sweep_flag = 1 if sweep > 0 else 0
    return (
        f'M {fmt(cx)},{fmt(cy)} L {fmt(sx)},{fmt(sy)} '
        f'A {fmt(radius)},{fmt(radius)} 0 {large_arc} {sweep_flag} {fmt(ex)},{fmt(ey)} Z'
    )


def normalize_angle(degrees: float) -> float:
    """Normalize an angle into [0, 360)."""
    return float(degrees) % 360.0


# =============================================================================
# Layer transform
# =============================================================================

def transform_attr(
    x: float,
    y: float,
    w: float,
    h: float,
    rotation: float = 0.0,
    scale_x: float = 1.0,
    scale_y: float = 1.0,
) -> str:
    """
    Build the wrapper transform: translate, then rotate about the box centre,
    then scale. Each part is emitted only when it is not the identity.
    """
    parts = []
    if x != 0 or y != 0:
        parts.append(f'translate({fmt(x)}, {fmt(y)})')
    if rotation != 0:
        parts.append(f'rotate({fmt(rotation)}, {fmt(w / 2)}, {fmt(h / 2)})')
    if scale_x != 1 or scale_y != 1:
        parts.append(f'scale({fmt(scale_x)}, {fmt(scale_y)})')
    return ' '.join(parts)


def transform_matrix(
    x: float,
    y: float,
    w: float,
    h: float,
    rotation: float = 0.0,
    scale_x: float = 1.0,
    scale_y: float = 1.0,
) -> np.ndarray:
    """3x3 affine matrix equivalent to ``transform_attr`` with the same inputs."""
    translate = np.array([[1.0, 0.0, x], [0.0, 1.0, y], [0.0, 0.0, 1.0]])
    theta = math.radians(rotation)
    cos_t, sin_t = math.cos(theta), math.sin(theta)
    cx, cy = w / 2, h / 2
    rotate = np.array([
        [cos_t, -sin_t, cx - cos_t * cx + sin_t * cy],
        [sin_t, cos_t, cy - sin_t * cx - cos_t * cy],
        [0.0, 0.0, 1.0],
    ])
    scale = np.diag([scale_x, scale_y, 1.0])
    return translate @ rotate @ scale


def rotated_bounds(
    x: float,
    y: float,
    w: float,
    h: float,
    rotation: float = 0.0,
    scale_x: float = 1.0,
    scale_y: float = 1.0,
) -> tuple[float, float, float, float]:
    """Axis-aligned bounds (min_x, min_y, max_x, max_y) of the transformed box."""
    matrix = transform_matrix(x, y, w, h, rotation, scale_x, scale_y)
    corners = np.array([[0.0, w, w, 0.0], [0.0, 0.0, h, h], [1.0, 1.0, 1.0, 1.0]])
    mapped = matrix @ corners
    return (
        float(mapped[0].min()),
        float(mapped[1].min()),
        float(mapped[0].max()),
        float(mapped[1].max()),
    )


# =============================================================================
# Clip defaults
# =============================================================================

def clip_rect(
    w: float,
    h: float,
    x: Optional[float] = None,
    y: Optional[float] = None,
    width: Optional[float] = None,
    height: Optional[float] = None,
    corner_radius: float = 0.0,
) -> tuple[float, float, float, float, float]:
    """Rectangle clip; missing values default to the full layer bounds."""
    rx = 0.0 if x is None else x
    ry = 0.0 if y is None else y
    rw = w if width is None else width
    rh = h if height is None else height
    return rx, ry, rw, rh, clamp_corner_radius(corner_radius, rw, rh)


def clip_circle(
    w: float,
    h: float,
    cx: Optional[float] = None,
    cy: Optional[float] = None,
    r: Optional[float] = None,
) -> tuple[float, float, float]:
    dcx, dcy, dr = circle_geometry(w, h)
    return (dcx if cx is None else cx, dcy if cy is None else cy, dr if r is None else r)


def clip_ellipse(
    w: float,
    h: float,
    cx: Optional[float] = None,
    cy: Optional[float] = None,
    rx: Optional[float] = None,
    ry: Optional[float] = None,
) -> tuple[float, float, float, float]:
    dcx, dcy, drx, dry = ellipse_geometry(w, h)
    return (
        dcx if cx is None else cx,
        dcy if cy is None else cy,
        drx if rx is None else rx,
        dry if ry is None else ry,
    )


def clip_polygon(w: float, h: float, points: Optional[Sequence[Point]] = None) -> list[Point]:
    """Explicit clip polygon, or the default triangle."""
    if points and len(points) >= 3:
        return [(float(px), float(py)) for px, py in points]
    return triangle_points(w, h)


# =============================================================================
# viewBox mapping
# =============================================================================

@dataclass(frozen=True)
class ViewBox:
    """Parsed ``viewBox``: min-x, min-y, width, height."""
    x: float
    y: float
    width: float
    height: float


@dataclass(frozen=True)
class ViewBoxMapping:
    """Scale and offset that place a viewBox into a target box."""
    scale_x: float
    scale_y: float
    translate_x: float
    translate_y: float

    def to_transform(self) -> str:
        return (
            f'translate({fmt(self.translate_x)}, {fmt(self.translate_y)}) '
            f'scale({fmt(self.scale_x)}, {fmt(self.scale_y)})'
        )


def parse_view_box(value: Optional[str]) -> Optional[ViewBox]:
    """Parse ``"minx miny width height"`` (space or comma separated)."""
    if not value or not isinstance(value, str):
        return None
    parts = [p for p in _VIEW_BOX_SPLIT_RE.split(value.strip()) if p]
    if len(parts) != 4:
        return None
    try:
        x, y, width, height = (float(p) for p in parts)
    except ValueError:
        return None
    if width <= 0 or height <= 0 or not all(math.isfinite(v) for v in (x, y, width, height)):
        return None
    return ViewBox(x, y, width, height)


def map_view_box(view_box: ViewBox, w: float, h: float, mode: str = 'meet') -> ViewBoxMapping:
    """
    Map a viewBox into a ``w`` x ``h`` box.

    ``meet`` scales uniformly to fit and centres, ``slice`` scales uniformly
    to cover and centres, ``none`` stretches each axis independently.
    """
    sx = w / view_box.width
    sy = h / view_box.height
    if mode == 'none':
        return ViewBoxMapping(sx, sy, -view_box.x * sx, -view_box.y * sy)
    scale = max(sx, sy) if mode == 'slice' else min(sx, sy)
    tx = (w - view_box.width * scale) / 2 - view_box.x * scale
    ty = (h - view_box.height * scale) / 2 - view_box.y * scale
    return ViewBoxMapping(scale, scale, tx, ty)
