"""Point-in-region predicates.

Stateless tests deciding whether coordinates fall inside a drawn region.

Circle:
    Great-circle distance between centre and point on a sphere of radius
    ``EARTH_RADIUS_M`` (the same sphere the map renderer measures drawn
    circles with), computed by ``pyproj.Geod``.  Inside iff
    ``distance <= radius_m``.

Polygon:
    Planar point-in-polygon in ``(lng, lat)`` space via shapely.  The
    boundary is **inclusive**: a point exactly on an edge or vertex is
    inside, consistent with the circle's ``<=``.  Self-intersecting rings
    are repaired with ``make_valid`` first, which yields the even-odd
    interior a ray-cast would report.

Degenerate regions, non-finite coordinates and latitudes beyond the poles
are never inside; the predicates return ``False`` instead of raising.
"""

from __future__ import annotations

import functools
from typing import TYPE_CHECKING

import numpy as np
import shapely
from pyproj import Geod
from shapely.geometry import Polygon
from shapely.validation import make_valid

from parcel_picker.core.constants import EARTH_RADIUS_M, MAX_LATITUDE
from parcel_picker.models.region import CircleRegion, PolygonRegion

if TYPE_CHECKING:
    from collections.abc import Sequence

    from shapely.geometry.base import BaseGeometry

    from parcel_picker.models.region import LatLng, Region


def contains_point(
    region: Region,
    lat: float,
    lng: float,
    *,
    earth_radius_m: float = EARTH_RADIUS_M,
) -> bool:
    """Return whether ``(lat, lng)`` lies inside *region*.

    Args:
        region: Circle or polygon region.
        lat: Latitude in degrees.
        lng: Longitude in degrees.
        earth_radius_m: Sphere radius for circle distances.

    Returns:
        ``True`` if inside (boundary inclusive); ``False`` for degenerate
        regions or non-finite coordinates.
    """
    mask = contains_points(region, [lat], [lng], earth_radius_m=earth_radius_m)
    return bool(mask[0])


def contains_points(
    region: Region,
    lats: Sequence[float] | np.ndarray,
    lngs: Sequence[float] | np.ndarray,
    *,
    earth_radius_m: float = EARTH_RADIUS_M,
) -> np.ndarray:
    """Vectorised ``contains_point`` over aligned coordinate arrays.

    Returns:
        Boolean array, ``True`` where the point is inside *region*.
    """
    if not isinstance(region, CircleRegion | PolygonRegion):
        msg = f"Unsupported region type: {type(region).__name__}"
        raise TypeError(msg)

    lat_arr = np.asarray(lats, dtype=np.float64)
    lng_arr = np.asarray(lngs, dtype=np.float64)
    if lat_arr.size == 0 or region.is_degenerate:
        return np.zeros(lat_arr.shape, dtype=bool)

    valid = np.isfinite(lat_arr) & np.isfinite(lng_arr) & (np.abs(lat_arr) <= MAX_LATITUDE)
    # Invalid inputs are masked out afterwards; zero them so the
    # geometry libraries never see NaN.
    safe_lats = np.where(valid, lat_arr, 0.0)
    safe_lngs = np.where(valid, lng_arr, 0.0)

    if isinstance(region, CircleRegion):
        distances = _distances_from(region.center, safe_lats, safe_lngs, earth_radius_m)
        inside = distances <= region.radius_m
    else:
        inside = shapely.intersects_xy(_shapely_polygon(region.open_ring), safe_lngs, safe_lats)

    return np.asarray(inside, dtype=bool) & valid


def distance_m(
    a: LatLng,
    b: LatLng,
    *,
    earth_radius_m: float = EARTH_RADIUS_M,
) -> float:
    """Great-circle distance in metres between two ``(lat, lng)`` points."""
    _az, _baz, dist = _sphere(earth_radius_m).inv(a[1], a[0], b[1], b[0])
    return float(dist)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


@functools.lru_cache(maxsize=8)
def _sphere(radius_m: float) -> Geod:
    return Geod(a=radius_m, b=radius_m)


def _distances_from(
    center: LatLng,
    lats: np.ndarray,
    lngs: np.ndarray,
    earth_radius_m: float,
) -> np.ndarray:
    center_lats = np.full_like(lats, center[0])
    center_lngs = np.full_like(lngs, center[1])
    _az, _baz, dist = _sphere(earth_radius_m).inv(center_lngs, center_lats, lngs, lats)
    return np.asarray(dist, dtype=np.float64)


@functools.lru_cache(maxsize=64)
def _shapely_polygon(ring: tuple[LatLng, ...]) -> BaseGeometry:
    """Build (and prepare) the planar polygon for a ``(lat, lng)`` ring."""
    geometry: BaseGeometry = Polygon([(lng, lat) for lat, lng in ring])
    if not geometry.is_valid:
        geometry = make_valid(geometry)
    shapely.prepare(geometry)
    return geometry
