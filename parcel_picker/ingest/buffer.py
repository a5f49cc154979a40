"""Private accumulation of ingested rows with snapshot publication.

Rows are coerced as they arrive and held in a private pending list.
Nothing is visible to readers until ``flush`` (a chunk boundary) or
``complete`` publishes a new immutable ``Dataset`` holding every row
accepted so far.  Unusable rows are dropped and counted, never raised.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from parcel_picker.core.exceptions import IngestionRowError
from parcel_picker.ingest.rows import coerce_row
from parcel_picker.models.records import Dataset, DatasetKind, PointRecord

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping

logger = logging.getLogger("parcel_picker.ingest.buffer")


@dataclass(slots=True)
class IngestionStats:
    """Running counters for one ingestion.

    Attributes:
        rows_seen: Rows offered to the buffer.
        rows_accepted: Rows coerced into records.
        rows_dropped: Rows rejected during coercion.
        expected_rows: Total row count announced by the reader, if known.
    """

    rows_seen: int = 0
    rows_accepted: int = 0
    rows_dropped: int = 0
    expected_rows: int | None = None

    @property
    def percent(self) -> float | None:
        """Progress in ``[0, 100]``, or ``None`` without an expected total."""
        if self.expected_rows is None:
            return None
        if self.expected_rows <= 0:
            return 100.0
        return min(100.0, self.rows_seen / self.expected_rows * 100)


class IngestionBuffer:
    """Accumulates rows of one dataset kind and publishes snapshots.

    Example usage::

        buffer = IngestionBuffer(DatasetKind.PRICING, expected_rows=50_000)
        for chunk in reader:
            buffer.add_rows(chunk)
            snapshot = buffer.flush()
        final = buffer.complete()
    """

    def __init__(self, kind: DatasetKind, *, expected_rows: int | None = None) -> None:
        self._kind = kind
        self._published: tuple[PointRecord, ...] = ()
        self._pending: list[PointRecord] = []
        self._stats = IngestionStats(expected_rows=expected_rows)
        self._completed = False

    @property
    def kind(self) -> DatasetKind:
        return self._kind

    @property
    def stats(self) -> IngestionStats:
        return self._stats

    @property
    def completed(self) -> bool:
        return self._completed

    @property
    def pending(self) -> int:
        """Accepted rows not yet published."""
        return len(self._pending)

    def add_row(self, row: Mapping[str, object]) -> PointRecord | None:
        """Coerce and buffer *row*.

        Returns:
            The buffered record, or ``None`` if the row was dropped.

        Raises:
            RuntimeError: If the buffer has already been completed.
        """
        if self._completed:
            msg = f"Ingestion of {self._kind.value} rows is already complete"
            raise RuntimeError(msg)
        self._stats.rows_seen += 1
        try:
            record = coerce_row(self._kind, row, ordinal=self._stats.rows_seen)
        except IngestionRowError as exc:
            self._stats.rows_dropped += 1
            logger.debug("Row dropped | kind=%s | row=%d | %s", self._kind.value, self._stats.rows_seen, exc)
            return None
        self._stats.rows_accepted += 1
        self._pending.append(record)
        return record

    def add_rows(self, rows: Iterable[Mapping[str, object]]) -> int:
        """Buffer every row of *rows*; return how many were accepted."""
        accepted = 0
        for row in rows:
            if self.add_row(row) is not None:
                accepted += 1
        return accepted

    def flush(self) -> Dataset | None:
        """Publish a snapshot of all accepted rows.

        Returns:
            The new snapshot, or ``None`` when nothing was added since the
            last publication.
        """
        if not self._pending:
            return None
        self._published = (*self._published, *self._pending)
        self._pending = []
        snapshot = Dataset.create(self._kind, self._published)
        percent = self._stats.percent
        logger.info(
            "Ingestion chunk published | kind=%s | version=%d | records=%d | dropped=%d | progress=%s",
            self._kind.value,
            snapshot.version,
            len(snapshot),
            self._stats.rows_dropped,
            "n/a" if percent is None else f"{percent:.0f}%",
        )
        return snapshot

    def complete(self) -> Dataset:
        """Publish the final snapshot and close the buffer.

        Always returns a snapshot, even when no new rows arrived since
        the last flush (or none were accepted at all).
        """
        snapshot = self.flush()
        if snapshot is None:
            snapshot = Dataset.create(self._kind, self._published)
        self._completed = True
        logger.info(
            "Ingestion complete | kind=%s | seen=%d | accepted=%d | dropped=%d",
            self._kind.value,
            self._stats.rows_seen,
            self._stats.rows_accepted,
            self._stats.rows_dropped,
        )
        return snapshot
