"""Shared engine constants: single source of truth.

Centralises CSV column names, export sheet labels and the named numeric
thresholds used by the spatial components.
"""

from __future__ import annotations

# ---------------------------------------------------------------------------
# Input columns (CSV headers produced by the parcel data vendor)
# ---------------------------------------------------------------------------

COLUMN_LATITUDE: str = "LATITUDE"
COLUMN_LONGITUDE: str = "LONGITUDE"
COLUMN_APN: str = "APN - FORMATTED"
"""Formatted parcel identifier; the pricing key and the comps join key."""
COLUMN_LOT_ACREAGE: str = "LOT ACREAGE"
COLUMN_PRICE: str = "PRICE"
COLUMN_ACRES: str = "ACRES"

# ---------------------------------------------------------------------------
# Export sheets
# ---------------------------------------------------------------------------

PRICING_SHEET_NAME: str = "Pricing Data"
COMPS_SHEET_NAME: str = "Comps Data"
DEFAULT_EXPORT_FILENAME: str = "filtered_data.xlsx"

# ---------------------------------------------------------------------------
# Geometry
# ---------------------------------------------------------------------------

EARTH_RADIUS_M: float = 6_371_000.0
"""Spherical earth radius used by the map renderer's distance function."""

MAX_LATITUDE: float = 90.0
MAX_LONGITUDE: float = 180.0

MIN_POLYGON_VERTICES: int = 3
"""Minimum distinct vertices for a polygon region."""

# Viewport buffers in degrees keyed by the zoom level *below* which they apply.
# The final entry (``None``) applies to every zoom at or above the last bound.
DEFAULT_VIEWPORT_BUFFERS: tuple[tuple[float | None, float], ...] = (
    (8.0, 0.5),
    (10.0, 0.2),
    (12.0, 0.1),
    (14.0, 0.05),
    (None, 0.02),
)

# ---------------------------------------------------------------------------
# Engine sizing
# ---------------------------------------------------------------------------

DEFAULT_MIN_INDEX_SIZE: int = 1
"""Datasets with fewer records are scanned linearly instead of indexed."""

DEFAULT_RESULT_CACHE_SIZE: int = 32
"""Number of shape-filter results memoised per engine."""
