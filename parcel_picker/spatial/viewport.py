"""Adaptive viewport culling for pricing markers.

At low zoom the map shows many points per pixel, so a coarse buffer
around the visible bounds avoids re-querying on every small pan; at high
zoom the buffer tightens.  The buffer table is monotonically
non-increasing in zoom:

    zoom < 8   → 0.5°
    zoom < 10  → 0.2°
    zoom < 12  → 0.1°
    zoom < 14  → 0.05°
    otherwise  → 0.02°

The expanded rectangle is answered by the spatial index, or by a linear
scan with the same closed-interval test when no index is available.
When an attribute filter is active its (already bounded) result set is
shown in full and culling is bypassed.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from parcel_picker.core.config import EngineConfig, ViewportBuffers
from parcel_picker.core.constants import DEFAULT_VIEWPORT_BUFFERS
from parcel_picker.spatial.index import IndexHolder, SpatialIndex, linear_range_query

if TYPE_CHECKING:
    from collections.abc import Sequence

    from parcel_picker.models.records import Dataset, PointRecord
    from parcel_picker.models.viewport import ViewportBounds

logger = logging.getLogger("parcel_picker.spatial.viewport")


def viewport_buffer_deg(zoom: float, buffers: ViewportBuffers = DEFAULT_VIEWPORT_BUFFERS) -> float:
    """Return the buffer (degrees) for *zoom* from the tier table."""
    for bound, buffer_deg in buffers:
        if bound is None or zoom < bound:
            return buffer_deg
    return buffers[-1][1]


def expand_bounds(
    bounds: ViewportBounds,
    zoom: float | None = None,
    buffers: ViewportBuffers = DEFAULT_VIEWPORT_BUFFERS,
) -> ViewportBounds:
    """Grow *bounds* by the zoom-dependent buffer on every side.

    Args:
        bounds: Raw map bounds.
        zoom: Zoom level; defaults to ``bounds.zoom``.
        buffers: Tier table (see module docstring).
    """
    level = bounds.zoom if zoom is None else zoom
    return bounds.expanded(viewport_buffer_deg(level, buffers))


def compute_visible(
    index: SpatialIndex | None,
    dataset: Dataset,
    raw_bounds: ViewportBounds,
    zoom: float | None = None,
    buffers: ViewportBuffers = DEFAULT_VIEWPORT_BUFFERS,
) -> list[PointRecord]:
    """Return records of *dataset* near the viewport.

    Uses *index* when given (it must have been built from *dataset*),
    otherwise scans *dataset* linearly with identical semantics.
    """
    query = expand_bounds(raw_bounds, zoom, buffers)
    if index is None:
        return linear_range_query(dataset, query)
    return index.range_query(query)


@dataclass(frozen=True, slots=True)
class VisibleSet:
    """Records to render for one viewport, tagged with their snapshot.

    Attributes:
        records: Records to render.
        dataset_version: Pricing snapshot the records were drawn from.
        bounds: Raw bounds the set was computed for.
        culled: ``False`` when culling was bypassed by an attribute filter.
    """

    records: tuple[PointRecord, ...]
    dataset_version: int
    bounds: ViewportBounds | None
    culled: bool = True


class ViewportCuller:
    """Computes and holds the visible pricing set.

    Re-run on every pan/zoom end and once when the map mounts.  The
    computation reads one snapshot; ``publish`` discards a result whose
    snapshot has since been replaced (last snapshot wins).
    """

    def __init__(self, config: EngineConfig | None = None) -> None:
        self._config = config or EngineConfig()
        self._indexes = IndexHolder()
        self._visible: VisibleSet | None = None

    @property
    def visible(self) -> VisibleSet | None:
        return self._visible

    @property
    def indexes(self) -> IndexHolder:
        return self._indexes

    def compute(
        self,
        pricing: Dataset,
        bounds: ViewportBounds,
        attribute_filtered: Sequence[PointRecord] = (),
    ) -> VisibleSet:
        """Compute the visible set for *bounds* over the *pricing* snapshot."""
        if attribute_filtered:
            return VisibleSet(
                records=tuple(attribute_filtered),
                dataset_version=pricing.version,
                bounds=bounds,
                culled=False,
            )

        index = None
        if len(pricing) and len(pricing) >= self._config.min_index_size:
            index = self._indexes.index_for(pricing)
        records = compute_visible(index, pricing, bounds, buffers=self._config.viewport_buffers)
        logger.debug(
            "Viewport culled | zoom=%.1f | version=%d | visible=%d/%d | indexed=%s",
            bounds.zoom,
            pricing.version,
            len(records),
            len(pricing),
            index is not None,
        )
        return VisibleSet(records=tuple(records), dataset_version=pricing.version, bounds=bounds)

    def publish(self, visible: VisibleSet, current_version: int) -> bool:
        """Store *visible* unless its snapshot has been superseded.

        Returns:
            ``True`` if stored, ``False`` if discarded as stale.
        """
        if visible.dataset_version != current_version:
            logger.info(
                "Discarding stale viewport result | computed_on=%d | current=%d",
                visible.dataset_version,
                current_version,
            )
            return False
        self._visible = visible
        return True

    def reset(self) -> None:
        """Forget the visible set and the held index (dataset replaced)."""
        self._visible = None
        self._indexes.invalidate()
