"""Tests for point-in-region predicates.

Covers:
- Circle inclusion against great-circle distance (boundary inclusive)
- Square polygon inclusion, edges and vertices
- Malformed regions and non-finite coordinates never match
- Vectorised and scalar forms agree
"""

from __future__ import annotations

import math

import numpy as np
import pytest

from parcel_picker.models.region import (
    CircleRegion,
    PolygonRegion,
    circle_region,
    polygon_region,
    rectangle_region,
)
from parcel_picker.spatial.predicates import contains_point, contains_points, distance_m

# One degree of arc on the 6 371 km sphere.
ONE_DEGREE_M = 2 * math.pi * 6_371_000 / 360


class TestCircle:
    """Circle regions use great-circle distance ≤ radius."""

    def test_centre_is_inside(self) -> None:
        assert contains_point(circle_region((0.0, 0.0), 1_000), 0.0, 0.0) is True

    def test_inside_and_outside_along_equator(self) -> None:
        region = circle_region((0.0, 0.0), ONE_DEGREE_M)
        assert contains_point(region, 0.0, 0.99) is True
        assert contains_point(region, 0.0, 1.01) is False

    def test_point_exactly_on_radius_is_inside(self) -> None:
        point = (35.6, -97.4)
        radius = distance_m((35.5, -97.5), point)
        region = circle_region((35.5, -97.5), radius)
        assert contains_point(region, *point) is True

    def test_agrees_with_distance_function(self) -> None:
        rng = np.random.default_rng(7)
        region = circle_region((35.5, -97.5), 15_000)
        lats = 35.5 + rng.uniform(-0.3, 0.3, 200)
        lngs = -97.5 + rng.uniform(-0.3, 0.3, 200)
        for lat, lng in zip(lats, lngs, strict=True):
            expected = distance_m((35.5, -97.5), (lat, lng)) <= 15_000
            assert contains_point(region, lat, lng) is expected

    def test_equator_degree_distance(self) -> None:
        assert distance_m((0.0, 0.0), (0.0, 1.0)) == pytest.approx(ONE_DEGREE_M, rel=1e-9)

    @pytest.mark.parametrize("radius", [0.0, -5.0, math.nan, math.inf])
    def test_degenerate_radius_never_matches(self, radius: float) -> None:
        region = CircleRegion(center=(0.0, 0.0), radius_m=radius)
        assert contains_point(region, 0.0, 0.0) is False


class TestPolygon:
    """Polygon regions use planar inclusion in (lng, lat) space."""

    def test_unit_square_inside(self, unit_square: PolygonRegion) -> None:
        assert contains_point(unit_square, 0.5, 0.5) is True

    def test_unit_square_outside(self, unit_square: PolygonRegion) -> None:
        assert contains_point(unit_square, 2.0, 2.0) is False

    def test_edge_point_is_inside(self, unit_square: PolygonRegion) -> None:
        assert contains_point(unit_square, 0.0, 0.5) is True
        assert contains_point(unit_square, 1.0, 0.25) is True

    def test_vertex_is_inside(self, unit_square: PolygonRegion) -> None:
        assert contains_point(unit_square, 1.0, 1.0) is True

    def test_explicitly_closed_ring_matches_open_ring(self, unit_square: PolygonRegion) -> None:
        closed = polygon_region([*unit_square.ring, unit_square.ring[0]])
        for lat, lng in [(0.5, 0.5), (0.0, 0.3), (1.5, 0.5)]:
            assert contains_point(closed, lat, lng) is contains_point(unit_square, lat, lng)

    def test_rectangle_matches_bounds(self) -> None:
        region = rectangle_region(south=35.0, west=-98.0, north=36.0, east=-97.0)
        assert contains_point(region, 35.5, -97.5) is True
        assert contains_point(region, 36.5, -97.5) is False
        assert contains_point(region, 35.5, -96.9) is False

    def test_self_intersecting_ring_does_not_raise(self) -> None:
        bow_tie = polygon_region([(0.0, 0.0), (1.0, 1.0), (1.0, 0.0), (0.0, 1.0)])
        assert contains_point(bow_tie, 0.9, 0.5) is True
        assert contains_point(bow_tie, 0.5, 0.1) is False

    @pytest.mark.parametrize(
        "ring",
        [
            [],
            [(0.0, 0.0)],
            [(0.0, 0.0), (1.0, 1.0)],
            [(0.0, 0.0), (1.0, 1.0), (0.0, 0.0)],
        ],
    )
    def test_malformed_ring_returns_false(self, ring: list[tuple[float, float]]) -> None:
        assert contains_point(polygon_region(ring), 0.5, 0.5) is False


class TestInvalidCoordinates:
    """Non-finite or off-globe coordinates are never inside."""

    @pytest.mark.parametrize(
        ("lat", "lng"),
        [(math.nan, 0.5), (0.5, math.nan), (math.inf, 0.5), (95.0, 0.5), (-91.0, 0.5)],
    )
    def test_polygon_rejects(self, unit_square: PolygonRegion, lat: float, lng: float) -> None:
        assert contains_point(unit_square, lat, lng) is False

    @pytest.mark.parametrize(("lat", "lng"), [(math.nan, 0.0), (0.0, math.inf), (90.5, 0.0)])
    def test_circle_rejects(self, lat: float, lng: float) -> None:
        region = circle_region((0.0, 0.0), 50_000_000)
        assert contains_point(region, lat, lng) is False


class TestVectorised:
    """``contains_points`` agrees with ``contains_point`` element-wise."""

    def test_agrees_with_scalar_for_polygon(self, unit_square: PolygonRegion) -> None:
        grid = np.linspace(-0.5, 1.5, 9)
        lats, lngs = np.meshgrid(grid, grid)
        mask = contains_points(unit_square, lats.ravel(), lngs.ravel())
        expected = [contains_point(unit_square, a, b) for a, b in zip(lats.ravel(), lngs.ravel(), strict=True)]
        assert mask.tolist() == expected

    def test_mixed_valid_and_invalid(self, unit_square: PolygonRegion) -> None:
        mask = contains_points(unit_square, [0.5, math.nan, 2.0], [0.5, 0.5, 2.0])
        assert mask.tolist() == [True, False, False]

    def test_empty_input(self, unit_square: PolygonRegion) -> None:
        mask = contains_points(unit_square, [], [])
        assert mask.shape == (0,)
        assert mask.dtype == bool

    def test_unsupported_region_type(self) -> None:
        with pytest.raises(TypeError, match="Unsupported region type"):
            contains_points(object(), [0.0], [0.0])  # type: ignore[arg-type]
