"""Spatial index over one dataset snapshot.

Wraps a shapely ``STRtree`` (a packed R-tree) built over the snapshot's
points with x = longitude, y = latitude.  Range queries prune by tree
node envelopes and then apply the exact closed-rectangle test, so the
result is identical to ``linear_range_query`` while touching only the
candidate subtree.

An index is bound to the dataset version it was built from.  It is never
patched: when the live dataset is replaced (new upload, export removal)
the index is stale and ``IndexHolder`` rebuilds it before the next query.
"""

from __future__ import annotations

import logging
import time
from typing import TYPE_CHECKING

import numpy as np
import shapely

from parcel_picker.core.exceptions import StaleIndexError

if TYPE_CHECKING:
    from parcel_picker.models.records import Dataset, PointRecord
    from parcel_picker.models.viewport import ViewportBounds

logger = logging.getLogger("parcel_picker.spatial.index")


class SpatialIndex:
    """Immutable point index for one ``Dataset`` version.

    Example usage::

        index = SpatialIndex.build(pricing)
        visible = index.range_query(bounds)
    """

    __slots__ = ("_dataset", "_tree")

    def __init__(self, dataset: Dataset, tree: shapely.STRtree | None) -> None:
        self._dataset = dataset
        self._tree = tree

    @classmethod
    def build(cls, dataset: Dataset) -> SpatialIndex:
        """Build an index over every record of *dataset*.

        Duplicate coordinates are kept as separate tree entries, so every
        record at a shared point is returned by a covering query.
        """
        started = time.perf_counter()
        tree = None
        if len(dataset):
            tree = shapely.STRtree(shapely.points(dataset.lngs, dataset.lats))
        logger.debug(
            "Spatial index built | kind=%s | version=%d | records=%d | elapsed=%.1f ms",
            dataset.kind.value,
            dataset.version,
            len(dataset),
            (time.perf_counter() - started) * 1000,
        )
        return cls(dataset, tree)

    @property
    def dataset_version(self) -> int:
        return self._dataset.version

    def __len__(self) -> int:
        return len(self._dataset)

    def is_stale_for(self, dataset: Dataset) -> bool:
        """Whether *dataset* is not the snapshot this index was built from."""
        return dataset.version != self._dataset.version

    def ensure_current(self, dataset: Dataset) -> None:
        """Raise ``StaleIndexError`` if the index does not match *dataset*."""
        if self.is_stale_for(dataset):
            raise StaleIndexError(self._dataset.version, dataset.version)

    def range_query(self, bounds: ViewportBounds) -> list[PointRecord]:
        """Return records inside the closed rectangle *bounds*, in dataset order."""
        if self._tree is None or bounds.south > bounds.north or bounds.west > bounds.east:
            return []
        candidates = self._tree.query(shapely.box(*bounds.as_bbox()))
        if candidates.size == 0:
            return []
        candidates = np.sort(candidates)
        mask = _within(self._dataset.lats[candidates], self._dataset.lngs[candidates], bounds)
        records = self._dataset.records
        return [records[i] for i in candidates[mask]]


def linear_range_query(dataset: Dataset, bounds: ViewportBounds) -> list[PointRecord]:
    """O(n) range query with the same inclusion semantics as the index."""
    if not len(dataset):
        return []
    return dataset.take(_within(dataset.lats, dataset.lngs, bounds))


class IndexHolder:
    """Keeps the index for the current dataset, rebuilding when stale.

    ``StaleIndexError`` never escapes this class: a mismatch between the
    held index and the dataset being queried triggers a rebuild.
    """

    def __init__(self) -> None:
        self._index: SpatialIndex | None = None
        self._rebuild_count = 0

    @property
    def rebuild_count(self) -> int:
        """Number of builds performed since construction."""
        return self._rebuild_count

    @property
    def current(self) -> SpatialIndex | None:
        return self._index

    def index_for(self, dataset: Dataset) -> SpatialIndex:
        """Return an index matching *dataset*, building one if needed."""
        index = self._index
        if index is not None:
            try:
                index.ensure_current(dataset)
            except StaleIndexError as exc:
                logger.info("Rebuilding stale spatial index | %s", exc)
            else:
                return index
        index = SpatialIndex.build(dataset)
        self._index = index
        self._rebuild_count += 1
        return index

    def invalidate(self) -> None:
        """Drop the held index; the next query rebuilds."""
        self._index = None


def _within(lats: np.ndarray, lngs: np.ndarray, bounds: ViewportBounds) -> np.ndarray:
    return (
        (lats >= bounds.south)
        & (lats <= bounds.north)
        & (lngs >= bounds.west)
        & (lngs <= bounds.east)
    )
