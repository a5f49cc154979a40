"""Map session: the single owner of engine state.

Wires ingestion, the filter engine, the viewport culler, the shape
registry and the export transaction behind the calls a map front end
makes (row callbacks, draw events, pan/zoom ends, form submits, button
clicks).  Every snapshot swap happens under one lock so that ingestion
callbacks arriving on a reader thread publish atomically; viewport and
shape computations read a snapshot and never mutate it.

Example usage::

    session = MapSession.from_env()
    session.ingest_rows(DatasetKind.PRICING, rows)
    session.complete_ingestion(DatasetKind.PRICING)
    session.viewport_changed(ViewportBounds(north=36, south=35, east=-97, west=-98, zoom=9))
    session.draw_region(RegionKind.CIRCLE, {"center": [35.5, -97.5], "radius": 5_000})
    outcome = session.export_current_selection()
"""

from __future__ import annotations

import logging
import threading
from dataclasses import replace
from typing import TYPE_CHECKING, Any

from parcel_picker.core.config import EngineConfig
from parcel_picker.core.exceptions import MalformedGeometryError
from parcel_picker.core.logging import configure_logging
from parcel_picker.ingest.buffer import IngestionBuffer
from parcel_picker.models.records import Dataset, DatasetKind
from parcel_picker.models.region import region_from_geometry
from parcel_picker.selection.export import ExportTransaction
from parcel_picker.selection.filters import FilterEngine
from parcel_picker.selection.shapes import ShapeRegistry
from parcel_picker.spatial.viewport import ViewportCuller

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping

    from parcel_picker.ingest.buffer import IngestionStats
    from parcel_picker.models.records import PointRecord
    from parcel_picker.models.region import Region, RegionKind
    from parcel_picker.models.results import FilterResult, OverlayIntent
    from parcel_picker.models.viewport import ViewportBounds
    from parcel_picker.selection.export import ExportOutcome
    from parcel_picker.selection.shapes import ShapeEntry

logger = logging.getLogger("parcel_picker.session")


class MapSession:
    """Interactive filtering session over one pricing and one comps dataset."""

    def __init__(self, config: EngineConfig | None = None) -> None:
        self._config = config or EngineConfig()
        self._lock = threading.Lock()
        self._filters = FilterEngine(config=self._config)
        self._culler = ViewportCuller(self._config)
        self._shapes = ShapeRegistry()
        self._exporter = ExportTransaction(self._filters)
        self._buffers: dict[DatasetKind, IngestionBuffer] = {}
        self._bounds: ViewportBounds | None = None
        self._last_export: ExportOutcome | None = None

    @classmethod
    def from_env(cls) -> MapSession:
        """Load configuration from the environment and configure logging."""
        config = EngineConfig.from_env()
        configure_logging(config.log_level)
        return cls(config)

    # ------------------------------------------------------------------
    # Ingestion
    # ------------------------------------------------------------------

    def begin_ingestion(self, kind: DatasetKind, *, expected_rows: int | None = None) -> IngestionBuffer:
        """Start a fresh upload of *kind*; its first publication replaces the dataset."""
        buffer = IngestionBuffer(kind, expected_rows=expected_rows)
        self._buffers[kind] = buffer
        logger.info("Ingestion started | kind=%s | expected_rows=%s", kind.value, expected_rows)
        return buffer

    def ingest_row(self, kind: DatasetKind, row: Mapping[str, object]) -> bool:
        """Buffer one raw row; return whether it was accepted."""
        return self._buffer_for(kind).add_row(row) is not None

    def ingest_rows(self, kind: DatasetKind, rows: Iterable[Mapping[str, object]]) -> int:
        """Buffer a chunk of raw rows; return how many were accepted."""
        return self._buffer_for(kind).add_rows(rows)

    def flush(self, kind: DatasetKind) -> Dataset | None:
        """Publish the rows buffered so far (chunk boundary)."""
        buffer = self._buffers.get(kind)
        if buffer is None or buffer.completed:
            return None
        snapshot = buffer.flush()
        if snapshot is not None:
            self._publish(snapshot)
        return snapshot

    def complete_ingestion(self, kind: DatasetKind) -> Dataset:
        """Publish the final snapshot of the current upload of *kind*."""
        snapshot = self._buffer_for(kind).complete()
        self._publish(snapshot)
        return snapshot

    def ingestion_stats(self, kind: DatasetKind) -> IngestionStats | None:
        buffer = self._buffers.get(kind)
        return buffer.stats if buffer is not None else None

    def load_dataset(self, dataset: Dataset) -> None:
        """Publish an already-built snapshot, bypassing row coercion."""
        self._publish(dataset)

    # ------------------------------------------------------------------
    # Shapes
    # ------------------------------------------------------------------

    def draw_region(self, kind: RegionKind | str, geometry: dict[str, Any]) -> int | None:
        """Handle a draw event from the drawing widget.

        Returns:
            The new shape handle, or ``None`` if the geometry was rejected.
        """
        try:
            region = region_from_geometry(kind, geometry)
        except MalformedGeometryError as exc:
            logger.warning("Region rejected | kind=%s | %s", kind, exc)
            return None
        return self.add_region(region)

    def add_region(self, region: Region) -> int | None:
        """Register *region* and make it the working selection.

        Degenerate regions are rejected without touching any state.  The
        shape filter runs outside the lock on the snapshots current when it
        started; its result is dropped if a newer snapshot was published
        meanwhile.
        """
        try:
            handle = self._shapes.add(region)
        except MalformedGeometryError as exc:
            logger.warning("Region rejected | kind=%s | %s", region.kind.value, exc)
            return None
        with self._lock:
            inputs = self._filters.shape_inputs()
        result = self._filters.compute_shape_filter(region, inputs)
        with self._lock:
            self._filters.publish_result(result)
        return handle

    def select_region(self, handle: int) -> bool:
        return self._shapes.select(handle)

    def delete_active_shape(self) -> ShapeEntry | None:
        """Remove the selected shape, else the most recent one."""
        return self._shapes.delete_active()

    @property
    def shapes(self) -> ShapeRegistry:
        return self._shapes

    def drain_intents(self) -> list[OverlayIntent]:
        """Overlay add/remove instructions for the renderer, oldest first."""
        return self._shapes.drain_intents()

    # ------------------------------------------------------------------
    # Viewport & filters
    # ------------------------------------------------------------------

    def viewport_changed(self, bounds: ViewportBounds, zoom: float | None = None) -> tuple[PointRecord, ...]:
        """Recompute the visible pricing set for a pan/zoom end (or mount).

        Returns:
            The visible records now published.
        """
        if zoom is not None:
            bounds = replace(bounds, zoom=zoom)
        self._bounds = bounds
        return self._refresh_visible()

    def set_attribute_range(self, min_value: object, max_value: object) -> tuple[PointRecord, ...]:
        """Apply the acreage filter.

        Raises:
            AttributeRangeError: On invalid bounds; nothing changes.
        """
        with self._lock:
            narrowed = self._filters.apply_attribute_filter(min_value, max_value)
        self._refresh_visible()
        return narrowed

    def clear_filters(self) -> None:
        with self._lock:
            self._filters.clear_filters()
        self._refresh_visible()

    def export_current_selection(self, *, reapply_filter: bool = True) -> ExportOutcome:
        """Export the combined result and remove it from the live datasets.

        Raises:
            EmptySelectionError: If nothing is selected; nothing changes.
        """
        with self._lock:
            outcome = self._exporter.execute(reapply_filter=reapply_filter)
            self._last_export = outcome
        self._refresh_visible()
        return outcome

    # ------------------------------------------------------------------
    # Outputs
    # ------------------------------------------------------------------

    @property
    def config(self) -> EngineConfig:
        return self._config

    @property
    def filters(self) -> FilterEngine:
        return self._filters

    @property
    def culler(self) -> ViewportCuller:
        return self._culler

    @property
    def visible_pricing_points(self) -> tuple[PointRecord, ...]:
        """Pricing markers to render."""
        visible = self._culler.visible
        if visible is None:
            return self._filters.attribute_filtered
        return visible.records

    @property
    def all_comps_points(self) -> tuple[PointRecord, ...]:
        """Comps markers to render; comps are never culled."""
        return self._filters.comps.records

    @property
    def combined_filter_result(self) -> FilterResult:
        return self._filters.result

    @property
    def last_export(self) -> ExportOutcome | None:
        return self._last_export

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _buffer_for(self, kind: DatasetKind) -> IngestionBuffer:
        buffer = self._buffers.get(kind)
        if buffer is None or buffer.completed:
            buffer = self.begin_ingestion(kind)
        return buffer

    def _publish(self, snapshot: Dataset) -> None:
        with self._lock:
            if snapshot.kind is DatasetKind.PRICING:
                self._filters.replace_pricing(snapshot)
            else:
                self._filters.replace_comps(snapshot)
        if snapshot.kind is DatasetKind.PRICING:
            self._refresh_visible()

    def _refresh_visible(self) -> tuple[PointRecord, ...]:
        bounds = self._bounds
        if bounds is None:
            return self.visible_pricing_points
        with self._lock:
            pricing = self._filters.pricing
            attribute_filtered = self._filters.attribute_filtered
        visible = self._culler.compute(pricing, bounds, attribute_filtered)
        with self._lock:
            self._culler.publish(visible, self._filters.pricing.version)
        return self.visible_pricing_points
