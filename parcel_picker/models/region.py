"""Data models for drawn regions of interest.

A region is a circle (centre + radius in metres) or a polygon ring.
Rectangles drawn on the map are modelled as 4-vertex polygons.  Regions
are immutable and hashable, so identical shapes share filter-cache
entries.

Coordinates are ``(lat, lng)`` pairs throughout, matching the map
widget's ``LatLng`` order; predicates swap to ``(lng, lat)`` internally
for planar geometry.
"""

from __future__ import annotations

import enum
import math
from dataclasses import dataclass
from typing import Any

from parcel_picker.core.constants import MIN_POLYGON_VERTICES
from parcel_picker.core.exceptions import MalformedGeometryError

LatLng = tuple[float, float]


class RegionKind(enum.Enum):
    """Shape types emitted by the drawing toolbar."""

    CIRCLE = "circle"
    POLYGON = "polygon"
    RECTANGLE = "rectangle"


@dataclass(frozen=True, slots=True)
class CircleRegion:
    """A circle on the sphere.

    Attributes:
        center: Centre as ``(lat, lng)``.
        radius_m: Radius in metres.
    """

    center: LatLng
    radius_m: float

    @property
    def kind(self) -> RegionKind:
        return RegionKind.CIRCLE

    @property
    def is_degenerate(self) -> bool:
        """True for zero, negative or non-finite radius or centre."""
        return not (
            _finite_pair(self.center) and math.isfinite(self.radius_m) and self.radius_m > 0
        )


@dataclass(frozen=True, slots=True)
class PolygonRegion:
    """A simple polygon given by its exterior ring.

    Attributes:
        ring: Vertices as ``(lat, lng)`` pairs.  A trailing vertex equal
            to the first (explicit closure) is allowed and ignored.
        kind: ``POLYGON`` or ``RECTANGLE`` (rectangles are polygons).
    """

    ring: tuple[LatLng, ...]
    kind: RegionKind = RegionKind.POLYGON

    @property
    def open_ring(self) -> tuple[LatLng, ...]:
        """The ring without an explicit closing vertex."""
        if len(self.ring) > 1 and self.ring[0] == self.ring[-1]:
            return self.ring[:-1]
        return self.ring

    @property
    def is_degenerate(self) -> bool:
        """True when fewer than three distinct finite vertices remain."""
        if not all(_finite_pair(v) for v in self.ring):
            return True
        return len(set(self.open_ring)) < MIN_POLYGON_VERTICES


Region = CircleRegion | PolygonRegion


# ---------------------------------------------------------------------------
# Factories
# ---------------------------------------------------------------------------


def circle_region(center: LatLng, radius_m: float) -> CircleRegion:
    return CircleRegion(center=(float(center[0]), float(center[1])), radius_m=float(radius_m))


def polygon_region(ring: list[LatLng] | tuple[LatLng, ...]) -> PolygonRegion:
    return PolygonRegion(ring=tuple((float(lat), float(lng)) for lat, lng in ring))


def rectangle_region(south: float, west: float, north: float, east: float) -> PolygonRegion:
    """Model a drawn rectangle as a 4-vertex polygon (SW, NW, NE, SE)."""
    ring = ((south, west), (north, west), (north, east), (south, east))
    return PolygonRegion(
        ring=tuple((float(lat), float(lng)) for lat, lng in ring),
        kind=RegionKind.RECTANGLE,
    )


def region_from_geometry(kind: RegionKind | str, geometry: dict[str, Any]) -> Region:
    """Build a region from the drawing widget's geometry payload.

    Accepted payloads:

    - circle: ``{"center": [lat, lng], "radius": metres}``
    - polygon: ``{"latlngs": [[lat, lng], ...]}`` or a GeoJSON Polygon
      ``{"type": "Polygon", "coordinates": [[[lng, lat], ...]]}``
    - rectangle: ``{"south", "west", "north", "east"}`` or any polygon
      payload with four corners

    Raises:
        MalformedGeometryError: If the payload is missing fields or has
            non-numeric coordinates.
    """
    kind = RegionKind(kind)
    try:
        if kind is RegionKind.CIRCLE:
            lat, lng = geometry["center"]
            return circle_region((lat, lng), geometry["radius"])
        if kind is RegionKind.RECTANGLE and "south" in geometry:
            return rectangle_region(
                float(geometry["south"]),
                float(geometry["west"]),
                float(geometry["north"]),
                float(geometry["east"]),
            )
        ring = _ring_from_payload(geometry)
    except (KeyError, IndexError, TypeError, ValueError) as exc:
        msg = f"Cannot build {kind.value} region from payload: {exc}"
        raise MalformedGeometryError(msg) from exc

    region = polygon_region(ring)
    if kind is RegionKind.RECTANGLE:
        return PolygonRegion(ring=region.ring, kind=RegionKind.RECTANGLE)
    return region


def validate_region(region: Region) -> None:
    """Reject degenerate regions.

    Raises:
        MalformedGeometryError: If the region cannot enclose any area.
    """
    if region.is_degenerate:
        if isinstance(region, CircleRegion):
            msg = f"Circle radius {region.radius_m!r} m at {region.center} is not a positive distance"
        else:
            msg = (
                f"Polygon needs at least {MIN_POLYGON_VERTICES} distinct finite vertices, "
                f"got {len(set(region.open_ring))}"
            )
        raise MalformedGeometryError(msg)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _ring_from_payload(geometry: dict[str, Any]) -> list[LatLng]:
    if "latlngs" in geometry:
        return [(float(lat), float(lng)) for lat, lng in geometry["latlngs"]]
    # GeoJSON stores the exterior ring first, in (lng, lat) order.
    exterior = geometry["coordinates"][0]
    return [(float(c[1]), float(c[0])) for c in exterior]


def _finite_pair(pair: LatLng) -> bool:
    return math.isfinite(pair[0]) and math.isfinite(pair[1])
