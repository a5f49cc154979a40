"""Ingestion boundary.

Coerces loosely-typed CSV rows into ``PointRecord`` objects and publishes
immutable dataset snapshots at chunk boundaries.
"""

from parcel_picker.ingest.buffer import IngestionBuffer, IngestionStats
from parcel_picker.ingest.rows import coerce_comps_row, coerce_pricing_row, coerce_row, parse_float

__all__ = [
    "IngestionBuffer",
    "IngestionStats",
    "coerce_comps_row",
    "coerce_pricing_row",
    "coerce_row",
    "parse_float",
]
