"""Shared pytest fixtures for the parcel_picker test suite."""

from __future__ import annotations

from collections.abc import Callable

import pytest

from parcel_picker.core.constants import (
    COLUMN_ACRES,
    COLUMN_APN,
    COLUMN_LATITUDE,
    COLUMN_LONGITUDE,
    COLUMN_LOT_ACREAGE,
    COLUMN_PRICE,
)
from parcel_picker.models.records import Dataset, DatasetKind, PointRecord
from parcel_picker.models.region import CircleRegion, PolygonRegion, circle_region, polygon_region
from parcel_picker.selection.filters import FilterEngine

# ---------------------------------------------------------------------------
# Record factories
# ---------------------------------------------------------------------------

CENTER = (35.5, -97.5)
"""A point in central Oklahoma every sample parcel clusters around."""


@pytest.fixture()
def make_pricing() -> Callable[..., PointRecord]:
    """Factory for pricing records keyed by APN."""

    def _make(apn: str, lat: float, lng: float, acreage: float | None = None) -> PointRecord:
        return PointRecord(
            record_id=apn,
            lat=lat,
            lng=lng,
            acreage=acreage,
            attributes={
                COLUMN_APN: apn,
                COLUMN_LATITUDE: str(lat),
                COLUMN_LONGITUDE: str(lng),
                COLUMN_LOT_ACREAGE: "" if acreage is None else str(acreage),
            },
        )

    return _make


@pytest.fixture()
def make_comps() -> Callable[..., PointRecord]:
    """Factory for comps records; ``apn`` is the join key to pricing."""

    def _make(
        ordinal: int,
        lat: float,
        lng: float,
        *,
        price: str | None = None,
        acres: str | None = None,
        apn: str | None = None,
    ) -> PointRecord:
        attributes: dict[str, str | float | None] = {
            COLUMN_LATITUDE: str(lat),
            COLUMN_LONGITUDE: str(lng),
            COLUMN_PRICE: price,
            COLUMN_ACRES: acres,
        }
        if apn is not None:
            attributes[COLUMN_APN] = apn
        return PointRecord(record_id=f"comps-{ordinal}", lat=lat, lng=lng, attributes=attributes)

    return _make


# ---------------------------------------------------------------------------
# Sample datasets
# ---------------------------------------------------------------------------


@pytest.fixture()
def pricing_dataset(make_pricing: Callable[..., PointRecord]) -> Dataset:
    """Four parcels near ``CENTER`` with acreages 1, 5, 10 and 20."""
    return Dataset.create(
        DatasetKind.PRICING,
        [
            make_pricing("P1", 35.50, -97.50, 1.0),
            make_pricing("P2", 35.51, -97.49, 5.0),
            make_pricing("P3", 35.49, -97.51, 10.0),
            make_pricing("P4", 35.52, -97.52, 20.0),
        ],
    )


@pytest.fixture()
def comps_dataset(make_comps: Callable[..., PointRecord]) -> Dataset:
    """One comp next to P2 (joined by APN) and one far away in Kansas."""
    return Dataset.create(
        DatasetKind.COMPS,
        [
            make_comps(1, 35.505, -97.495, price="$250,000", acres="5", apn="P2"),
            make_comps(2, 38.0, -100.0, price="$90,000", acres="40", apn="P9"),
        ],
    )


@pytest.fixture()
def engine(pricing_dataset: Dataset, comps_dataset: Dataset) -> FilterEngine:
    return FilterEngine(pricing_dataset, comps_dataset)


# ---------------------------------------------------------------------------
# Regions
# ---------------------------------------------------------------------------


@pytest.fixture()
def covering_circle() -> CircleRegion:
    """A 20 km circle covering every parcel near ``CENTER``."""
    return circle_region(CENTER, 20_000)


@pytest.fixture()
def unit_square() -> PolygonRegion:
    """The square ``[(0,0),(0,1),(1,1),(1,0)]`` in ``(lat, lng)``."""
    return polygon_region([(0.0, 0.0), (0.0, 1.0), (1.0, 1.0), (1.0, 0.0)])


# ---------------------------------------------------------------------------
# Raw CSV rows
# ---------------------------------------------------------------------------


@pytest.fixture()
def raw_pricing_rows() -> list[dict[str, str]]:
    """Rows as the CSV reader hands them over, including unusable ones."""
    return [
        {COLUMN_APN: "001-002-003", COLUMN_LATITUDE: "35.5", COLUMN_LONGITUDE: "-97.5", COLUMN_LOT_ACREAGE: "2.5"},
        {COLUMN_APN: "001-002-004", COLUMN_LATITUDE: "35.51", COLUMN_LONGITUDE: "-97.49", COLUMN_LOT_ACREAGE: ""},
        {COLUMN_APN: "", COLUMN_LATITUDE: "35.52", COLUMN_LONGITUDE: "-97.48", COLUMN_LOT_ACREAGE: "1"},
        {COLUMN_APN: "001-002-006", COLUMN_LATITUDE: "", COLUMN_LONGITUDE: "-97.47", COLUMN_LOT_ACREAGE: "3"},
    ]
