"""Viewport bounds reported by the map on every pan/zoom end."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class ViewportBounds:
    """Axis-aligned map bounds in degrees plus the current zoom.

    Attributes:
        north: Northern latitude edge.
        south: Southern latitude edge.
        east: Eastern longitude edge.
        west: Western longitude edge.
        zoom: Map zoom level (0 = whole world).
    """

    north: float
    south: float
    east: float
    west: float
    zoom: float = 0.0

    def expanded(self, buffer_deg: float) -> ViewportBounds:
        """Return bounds grown by *buffer_deg* on every side."""
        return ViewportBounds(
            north=self.north + buffer_deg,
            south=self.south - buffer_deg,
            east=self.east + buffer_deg,
            west=self.west - buffer_deg,
            zoom=self.zoom,
        )

    def contains(self, lat: float, lng: float) -> bool:
        """Closed-interval containment of one point; the rule the culling mask vectorises."""
        return self.south <= lat <= self.north and self.west <= lng <= self.east

    def as_bbox(self) -> tuple[float, float, float, float]:
        """``(min_lon, min_lat, max_lon, max_lat)``."""
        return (self.west, self.south, self.east, self.north)
