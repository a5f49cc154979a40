"""Data models for point records and immutable dataset snapshots.

A ``PointRecord`` is one parsed CSV row with validated coordinates.  A
``Dataset`` is an immutable, versioned snapshot of records: every change
(a new upload, an ingested chunk, an export removal) produces a new
snapshot with a higher version, and every component that caches derived
state (spatial index, filter results) keys it by that version.
"""

from __future__ import annotations

import enum
import itertools
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

import numpy as np

from parcel_picker.core.constants import COLUMN_ACRES, COLUMN_APN, COLUMN_PRICE

if TYPE_CHECKING:
    from collections.abc import Iterable, Iterator

AttributeValue = str | float | None

# Versions are unique across every dataset created in the process so that a
# fresh upload can never collide with a cached key from a previous one.
_version_counter = itertools.count(1)


def next_version() -> int:
    """Return a new process-unique dataset version."""
    return next(_version_counter)


class DatasetKind(enum.Enum):
    """Which of the two uploaded datasets a record belongs to."""

    PRICING = "pricing"
    COMPS = "comps"


@dataclass(frozen=True, slots=True, eq=False)
class PointRecord:
    """A single point with coordinates and raw attributes.

    Records compare by identity: comps rows have no natural key, and two
    pricing rows with the same APN are still distinct uploads.

    Attributes:
        record_id: Parcel identifier (APN) for pricing rows; a synthetic
            ``comps-<n>`` ordinal for comps rows.
        lat: Latitude in degrees (finite).
        lng: Longitude in degrees (finite).
        acreage: Lot acreage for pricing rows; ``None`` when unknown.
        attributes: Remaining row fields as ingested.
    """

    record_id: str
    lat: float
    lng: float
    acreage: float | None = None
    attributes: dict[str, AttributeValue] = field(default_factory=dict)

    @property
    def coords(self) -> tuple[float, float]:
        """Coordinates as ``(lat, lng)``."""
        return (self.lat, self.lng)

    @property
    def parcel_key(self) -> str:
        """Formatted APN attribute, the join key between comps and pricing."""
        value = self.attributes.get(COLUMN_APN)
        return "" if value is None else str(value).strip()

    @property
    def price(self) -> AttributeValue:
        return self.attributes.get(COLUMN_PRICE)

    @property
    def acres(self) -> AttributeValue:
        return self.attributes.get(COLUMN_ACRES)


@dataclass(frozen=True, slots=True, eq=False)
class Dataset:
    """Immutable, versioned snapshot of one dataset.

    Build snapshots with ``Dataset.create`` or ``Dataset.replace``; both
    compute the coordinate arrays once so that vectorised predicates and
    index builds never touch the record objects.

    Attributes:
        kind: Pricing or comps.
        records: Records in ingestion order.
        version: Process-unique version; changes on every replacement.
        lats: Latitudes as a read-only float64 array aligned with ``records``.
        lngs: Longitudes as a read-only float64 array aligned with ``records``.
    """

    kind: DatasetKind
    records: tuple[PointRecord, ...]
    version: int
    lats: np.ndarray
    lngs: np.ndarray

    @classmethod
    def create(cls, kind: DatasetKind, records: Iterable[PointRecord] = ()) -> Dataset:
        """Create a snapshot with a fresh version."""
        frozen = tuple(records)
        lats = np.fromiter((r.lat for r in frozen), dtype=np.float64, count=len(frozen))
        lngs = np.fromiter((r.lng for r in frozen), dtype=np.float64, count=len(frozen))
        lats.setflags(write=False)
        lngs.setflags(write=False)
        return cls(kind=kind, records=frozen, version=next_version(), lats=lats, lngs=lngs)

    @classmethod
    def empty(cls, kind: DatasetKind) -> Dataset:
        return cls.create(kind)

    def replace(self, records: Iterable[PointRecord]) -> Dataset:
        """Return a new snapshot of the same kind holding *records*."""
        return Dataset.create(self.kind, records)

    def take(self, mask: np.ndarray) -> list[PointRecord]:
        """Return the records selected by a boolean mask, in dataset order."""
        return [self.records[i] for i in np.flatnonzero(mask)]

    def __len__(self) -> int:
        return len(self.records)

    def __iter__(self) -> Iterator[PointRecord]:
        return iter(self.records)

    def __bool__(self) -> bool:
        return bool(self.records)
