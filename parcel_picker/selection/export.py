"""Export the current selection and remove it from the live datasets.

One transaction:

1. Snapshot the combined filter result; refuse if it is empty or was
   computed on snapshots that are no longer live (already exported).
2. Build one ``PricingExportRow`` per pricing match and one
   ``CompsExportRow`` per comps match.
3. Collect ``removed_ids``, the identifiers of the pricing matches.
4. Compute the next pricing snapshot (live pricing minus ``removed_ids``)
   and the next comps snapshot (comps whose ``APN - FORMATTED`` join key is
   in ``removed_ids`` are dropped), *then* swap both into the filter engine
   in a single commit.  Nothing is deleted in place, so a failure before
   the commit leaves both datasets exactly as they were.
5. The commit clears the combined result and the derived attribute set;
   the new snapshot versions make any held spatial index stale.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from parcel_picker.core.exceptions import EmptySelectionError
from parcel_picker.models.export import CompsExportRow, ExportPayload, PricingExportRow
from parcel_picker.models.records import DatasetKind

if TYPE_CHECKING:
    from collections.abc import Callable

    from parcel_picker.models.records import Dataset, PointRecord
    from parcel_picker.models.results import FilterResult
    from parcel_picker.selection.filters import FilterEngine

logger = logging.getLogger("parcel_picker.selection.export")


@dataclass(frozen=True, slots=True)
class ExportOutcome:
    """Result of a committed export.

    Attributes:
        payload: Rows for the spreadsheet collaborator.
        removed_ids: Pricing identifiers removed from the live dataset.
        pricing_removed: Number of pricing records dropped.
        comps_removed: Number of comps records dropped by join key.
    """

    payload: ExportPayload
    removed_ids: frozenset[str]
    pricing_removed: int = 0
    comps_removed: int = 0


class ExportTransaction:
    """Export-and-remove against one ``FilterEngine``."""

    def __init__(self, engine: FilterEngine) -> None:
        self._engine = engine

    def execute(
        self,
        result: FilterResult | None = None,
        *,
        reapply_filter: bool = False,
    ) -> ExportOutcome:
        """Export *result* (default: the engine's current result) and commit removal.

        Args:
            result: Combined result to export.
            reapply_filter: Re-run the retained acreage bounds against the
                post-removal dataset.

        Returns:
            The export payload and the removed identifiers.

        Raises:
            EmptySelectionError: If there is nothing to export, or *result*
                was computed on a superseded pricing or comps snapshot.  No
                state is changed.
        """
        result = self._engine.result if result is None else result
        if not result:
            msg = "No data points within the drawn shape to export"
            raise EmptySelectionError(msg)
        if not self._engine.is_current(result):
            msg = "The selection was computed on data that has since changed; redraw the shape to export"
            raise EmptySelectionError(msg, code="SELECTION_STALE")

        pricing_matches = result.records(DatasetKind.PRICING)
        comps_matches = result.records(DatasetKind.COMPS)
        payload = build_payload(pricing_matches, comps_matches)
        removed_ids = frozenset(r.record_id for r in pricing_matches)

        current_pricing = self._engine.pricing
        current_comps = self._engine.comps
        next_pricing = _without(current_pricing, lambda r: r.record_id in removed_ids)
        next_comps = _without(current_comps, lambda r: r.parcel_key in removed_ids)
        self._engine.commit_removal(next_pricing, next_comps)

        outcome = ExportOutcome(
            payload=payload,
            removed_ids=removed_ids,
            pricing_removed=len(current_pricing) - len(next_pricing),
            comps_removed=len(current_comps) - len(next_comps),
        )
        logger.info(
            "Export committed | pricing_rows=%d | comps_rows=%d | pricing_removed=%d | "
            "comps_removed=%d | pricing_version=%d",
            len(payload.pricing_rows),
            len(payload.comps_rows),
            outcome.pricing_removed,
            outcome.comps_removed,
            next_pricing.version,
        )

        if reapply_filter:
            self._engine.reapply_attribute_filter()
        return outcome


def build_payload(
    pricing_matches: list[PointRecord],
    comps_matches: list[PointRecord],
) -> ExportPayload:
    """Convert matched records into export rows."""
    return ExportPayload(
        pricing_rows=[
            PricingExportRow(identifier=r.record_id, acreage=r.acreage, lat=r.lat, lng=r.lng)
            for r in pricing_matches
        ],
        comps_rows=[
            CompsExportRow(price=r.price, acres=r.acres, lat=r.lat, lng=r.lng) for r in comps_matches
        ],
        removed_ids=sorted({r.record_id for r in pricing_matches}),
    )


def _without(dataset: Dataset, drop: Callable[[PointRecord], bool]) -> Dataset:
    """Next-state snapshot without the records *drop* selects."""
    kept = [r for r in dataset.records if not drop(r)]
    if len(kept) == len(dataset):
        return dataset
    return dataset.replace(kept)
