"""Tests for the shape and geometry library."""

import math

import numpy as np
import pytest

from layerforge.geometry import (
    ViewBox,
    ViewBoxMapping,
    arc_path,
    arrow_points,
    circle_geometry,
    clamp_corner_radius,
    clip_polygon,
    clip_rect,
    fmt,
    line_endpoints,
    map_view_box,
    normalize_angle,
    parse_view_box,
    points_attr,
    points_to_path,
    polygon_points,
    rotated_bounds,
    star_points,
    transform_attr,
    transform_matrix,
    triangle_points,
)


def _distance(point, center):
    return math.hypot(point[0] - center[0], point[1] - center[1])


class TestFormatting:
    """Tests for attribute number formatting."""

    @pytest.mark.parametrize("value,expected", [
        (1.0, '1'),
        (0, '0'),
        (2.5, '2.5'),
        (1 / 3, '0.3333'),
        (-12.0, '-12'),
    ])
    def test_fmt(self, value, expected):
        """Integral values drop decimals, others round to 4 places."""
        assert fmt(value) == expected

    def test_points_attr(self):
        """Points are written as space separated x,y pairs."""
        assert points_attr([(0, 0), (10.5, 2)]) == '0,0 10.5,2'


class TestPrimitiveShapes:
    """Tests for rectangle, circle and triangle geometry."""

    @pytest.mark.parametrize("radius,expected", [
        (100, 20.0),
        (5, 5.0),
        (-3, 0.0),
    ])
    def test_corner_radius_clamp(self, radius, expected):
        """The corner radius is clamped to half the shorter side."""
        assert clamp_corner_radius(radius, 50, 40) == expected

    def test_circle_is_inscribed(self):
        """The circle uses the shorter side."""
        assert circle_geometry(100, 60) == (50, 30, 30)

    def test_triangle(self):
        """Apex at the top centre, base along the bottom edge."""
        assert triangle_points(100, 80) == [(50, 0), (0, 80), (100, 80)]


class TestParametricShapes:
    """Tests for polygons, stars, lines and arrows."""

    def test_hexagon_vertices(self):
        """A regular hexagon has six vertices on radius min(w, h) / 2, the first pointing up."""
        points = polygon_points(100, 100, 6)
        assert len(points) == 6
        assert points[0] == pytest.approx((50, 0))
        for point in points:
            assert _distance(point, (50, 50)) == pytest.approx(50)

    def test_square_is_equilateral(self):
        """All sides of a regular polygon have the same length."""
        points = polygon_points(80, 80, 4)
        sides = [_distance(points[i], points[(i + 1) % 4]) for i in range(4)]
        assert sides == pytest.approx([sides[0]] * 4)

    def test_star_alternates_radii(self):
        """A five pointed star has ten vertices alternating between outer and inner radius."""
        points = star_points(100, 100, 5, 0.4)
        assert len(points) == 10
        radii = [_distance(point, (50, 50)) for point in points]
        assert radii[0::2] == pytest.approx([50] * 5)
        assert radii[1::2] == pytest.approx([20] * 5)

    def test_line_defaults(self):
        """A line without endpoints runs horizontally at mid height."""
        assert line_endpoints(200, 40) == (0.0, 20, 200, 20)

    def test_line_explicit_endpoints(self):
        """Given endpoints are used as is."""
        assert line_endpoints(200, 40, 5, 6, 7, 8) == (5, 6, 7, 8)

    def test_arrow(self):
        """The arrow has a 40% shaft and a head min(w, h) * 0.2 deep."""
        assert arrow_points(100, 50) == pytest.approx([
            (0, 15), (90, 15), (90, 0), (100, 25), (90, 50), (90, 35), (0, 35),
        ])


class TestPaths:
    """Tests for path helpers."""

    def test_points_to_path(self):
        """Points become a closed move/line path."""
        assert points_to_path([(0, 0), (10, 0), (5, 5)]) == 'M 0,0 L 10,0 L 5,5 Z'

    def test_open_path(self):
        """Open paths have no close command."""
        assert points_to_path([(0, 0), (10, 0)], closed=False) == 'M 0,0 L 10,0'

    def test_empty_points(self):
        """No points give empty path data."""
        assert points_to_path([]) == ''

    def test_full_circle_arc(self):
        """A full sweep is drawn as two half arcs."""
        path = arc_path(50, 50, 10, 0, 360)
        assert path.count('A ') == 2
        assert path.startswith('M 40,50')

    def test_quarter_arc(self):
        """A quarter slice uses the small arc flag."""
        path = arc_path(0, 0, 10, 0, 90)
        assert path == 'M 0,0 L 10,0 A 10,10 0 0 1 0,10 Z'

    @pytest.mark.parametrize("angle,expected", [(-90, 270.0), (360, 0.0), (450, 90.0)])
    def test_normalize_angle(self, angle, expected):
        """Angles wrap into [0, 360)."""
        assert normalize_angle(angle) == expected


class TestTransform:
    """Tests for the layer transform."""

    def test_transform_attr(self):
        """Translate comes first, then rotation about the box centre."""
        assert transform_attr(10, 20, 100, 50, 45) == 'translate(10, 20) rotate(45, 50, 25)'

    def test_identity_is_empty(self):
        """The identity transform produces no attribute value."""
        assert transform_attr(0, 0, 100, 50) == ''

    def test_scale_is_last(self):
        """Scaling is emitted after translation."""
        assert transform_attr(5, 0, 10, 10, scale_x=2) == 'translate(5, 0) scale(2, 1)'

    def test_matrix_translates_origin(self):
        """The matrix maps the local origin to the layer position."""
        matrix = transform_matrix(10, 20, 100, 50)
        assert np.allclose(matrix @ np.array([0, 0, 1]), [10, 20, 1])

    def test_rotation_keeps_centre(self):
        """Rotation happens around the box centre."""
        matrix = transform_matrix(0, 0, 100, 50, 90)
        assert np.allclose(matrix @ np.array([50, 25, 1]), [50, 25, 1])

    def test_rotated_bounds(self):
        """A square rotated by 90 degrees keeps its bounds."""
        assert rotated_bounds(0, 0, 100, 100, 90) == pytest.approx((0, 0, 100, 100))

    def test_rotated_bounds_grow(self):
        """A 45 degree rotation widens the axis aligned bounds."""
        min_x, min_y, max_x, max_y = rotated_bounds(0, 0, 100, 100, 45)
        assert max_x - min_x == pytest.approx(100 * math.sqrt(2))


class TestClipDefaults:
    """Tests for clip geometry defaults."""

    def test_clip_rect_defaults_to_bounds(self):
        """A rectangle clip without geometry covers the layer."""
        assert clip_rect(100, 50) == (0.0, 0.0, 100, 50, 0.0)

    def test_clip_rect_corner_clamped(self):
        """The clip corner radius is clamped to the clip rectangle."""
        assert clip_rect(100, 50, width=20, height=10, corner_radius=30)[4] == 5

    def test_clip_polygon_default_triangle(self):
        """Fewer than three points fall back to the triangle."""
        assert clip_polygon(100, 80, [(0, 0), (1, 1)]) == triangle_points(100, 80)


class TestViewBox:
    """Tests for viewBox parsing and mapping."""

    @pytest.mark.parametrize("value,expected", [
        ('0 0 100 50', ViewBox(0, 0, 100, 50)),
        ('0,0,100,50', ViewBox(0, 0, 100, 50)),
        ('-10 5  20 20', ViewBox(-10, 5, 20, 20)),
        ('0 0 0 50', None),
        ('0 0 100', None),
        ('a b c d', None),
        ('', None),
        (None, None),
    ])
    def test_parse(self, value, expected):
        """Four finite numbers with positive size parse; anything else does not."""
        assert parse_view_box(value) == expected

    def test_meet(self):
        """meet fits the viewBox and centres it on the free axis."""
        mapping = map_view_box(ViewBox(0, 0, 100, 50), 200, 200, 'meet')
        assert mapping == ViewBoxMapping(2, 2, 0, 50)

    def test_slice(self):
        """slice covers the box and centres the overflow."""
        mapping = map_view_box(ViewBox(0, 0, 100, 50), 200, 200, 'slice')
        assert mapping == ViewBoxMapping(4, 4, -100, 0)

    def test_none_stretches(self):
        """none scales each axis independently."""
        mapping = map_view_box(ViewBox(0, 0, 100, 50), 200, 200, 'none')
        assert mapping == ViewBoxMapping(2, 4, 0, 0)

    def test_offset_view_box(self):
        """The viewBox origin is shifted out."""
        mapping = map_view_box(ViewBox(10, 0, 100, 50), 200, 100, 'meet')
        assert mapping.translate_x == -20

    def test_to_transform(self):
        """The mapping renders as translate then scale."""
        assert ViewBoxMapping(2, 2, 0, 50).to_transform() == 'translate(0, 50) scale(2, 2)'
