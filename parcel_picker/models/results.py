"""Combined filter results and overlay intents.

``FilterResult`` is always derived: a pure function of the two dataset
snapshots, the attribute bounds and the region.  It is never used as a
source of truth for what remains in the live datasets.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from parcel_picker.models.records import AttributeValue, DatasetKind, PointRecord

if TYPE_CHECKING:
    from collections.abc import Iterator

    from parcel_picker.models.region import Region


@dataclass(frozen=True, slots=True)
class FilterMatch:
    """One record matched by the active region.

    Attributes:
        source: Dataset the record came from.
        record: The matched record.
        fields: Export-ready fields extracted from the record.
    """

    source: DatasetKind
    record: PointRecord
    fields: dict[str, AttributeValue] = field(default_factory=dict)

    @classmethod
    def from_pricing(cls, record: PointRecord) -> FilterMatch:
        return cls(
            source=DatasetKind.PRICING,
            record=record,
            fields={
                "identifier": record.record_id,
                "acreage": record.acreage,
                "lat": record.lat,
                "lng": record.lng,
            },
        )

    @classmethod
    def from_comps(cls, record: PointRecord) -> FilterMatch:
        return cls(
            source=DatasetKind.COMPS,
            record=record,
            fields={
                "price": record.price,
                "acres": record.acres,
                "lat": record.lat,
                "lng": record.lng,
            },
        )


@dataclass(frozen=True, slots=True)
class FilterResult:
    """Ordered combined match set: pricing matches first, then comps.

    Attributes:
        matches: The ordered matches.
        pricing_version: Pricing dataset version the result was computed on.
        comps_version: Comps dataset version the result was computed on.
        attribute_bounds: Acreage bounds that narrowed the pricing base
            (``None`` when the full pricing set was used).
        region: Region that produced the result (``None`` when empty).
    """

    matches: tuple[FilterMatch, ...] = ()
    pricing_version: int = 0
    comps_version: int = 0
    attribute_bounds: tuple[float, float] | None = None
    region: Region | None = None

    @classmethod
    def empty(cls) -> FilterResult:
        return cls()

    @property
    def pricing(self) -> list[FilterMatch]:
        return [m for m in self.matches if m.source is DatasetKind.PRICING]

    @property
    def comps(self) -> list[FilterMatch]:
        return [m for m in self.matches if m.source is DatasetKind.COMPS]

    def records(self, source: DatasetKind | None = None) -> list[PointRecord]:
        """Matched records, optionally restricted to one source."""
        return [m.record for m in self.matches if source is None or m.source is source]

    def __len__(self) -> int:
        return len(self.matches)

    def __iter__(self) -> Iterator[FilterMatch]:
        return iter(self.matches)

    def __bool__(self) -> bool:
        return bool(self.matches)


class IntentAction(enum.Enum):
    """Overlay instruction for the rendering collaborator."""

    ADD = "add"
    REMOVE = "remove"


@dataclass(frozen=True, slots=True)
class OverlayIntent:
    """A request to add or remove the rendered overlay of a region.

    Attributes:
        action: Add or remove.
        handle: Registry handle of the region.
        region: The region geometry.
    """

    action: IntentAction
    handle: int
    region: Region
