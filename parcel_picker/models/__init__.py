"""Data models and schemas.

Defines the data structures used throughout the engine:
- PointRecord / Dataset: Typed rows and immutable versioned snapshots
- Region: Drawn circle, polygon or rectangle
- ViewportBounds: Map bounds and zoom
- FilterResult: Combined pricing + comps match set
- ExportPayload: Rows handed to the spreadsheet writer
"""

from parcel_picker.models.export import CompsExportRow, ExportPayload, PricingExportRow
from parcel_picker.models.records import Dataset, DatasetKind, PointRecord
from parcel_picker.models.region import (
    CircleRegion,
    PolygonRegion,
    Region,
    RegionKind,
    circle_region,
    polygon_region,
    rectangle_region,
    region_from_geometry,
)
from parcel_picker.models.results import FilterMatch, FilterResult, IntentAction, OverlayIntent
from parcel_picker.models.viewport import ViewportBounds

__all__ = [
    "CircleRegion",
    "CompsExportRow",
    "Dataset",
    "DatasetKind",
    "ExportPayload",
    "FilterMatch",
    "FilterResult",
    "IntentAction",
    "OverlayIntent",
    "PointRecord",
    "PolygonRegion",
    "PricingExportRow",
    "Region",
    "RegionKind",
    "ViewportBounds",
    "circle_region",
    "polygon_region",
    "rectangle_region",
    "region_from_geometry",
]
