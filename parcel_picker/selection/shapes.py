"""Shape lifecycle registry.

Each drawn shape moves through ``CREATED → SELECTED → REMOVED``; a
removed shape can never come back.  At most one shape is selected at a
time.  Deletion prefers the selected shape and otherwise pops the most
recently added one, leaving the order of the remaining shapes intact.

The registry never touches the map.  Every successful add/delete queues
an ``OverlayIntent`` that the rendering collaborator drains and applies.
State is an immutable tuple of entries replaced on each mutation, so a
reader holding ``regions`` never sees a half-applied change.
"""

from __future__ import annotations

import enum
import itertools
import logging
from collections import deque
from dataclasses import dataclass, replace
from typing import TYPE_CHECKING

from parcel_picker.models.region import validate_region
from parcel_picker.models.results import IntentAction, OverlayIntent

if TYPE_CHECKING:
    from collections.abc import Iterator

    from parcel_picker.models.region import Region

logger = logging.getLogger("parcel_picker.selection.shapes")


class ShapeState(enum.Enum):
    """Lifecycle state of a drawn shape."""

    CREATED = "created"
    SELECTED = "selected"
    REMOVED = "removed"


@dataclass(frozen=True, slots=True)
class ShapeEntry:
    """A registered region.

    Attributes:
        handle: Registry handle, increasing with insertion order.
        region: The immutable region geometry.
        selected: Whether this is the selected shape.
    """

    handle: int
    region: Region
    selected: bool = False

    @property
    def state(self) -> ShapeState:
        return ShapeState.SELECTED if self.selected else ShapeState.CREATED


class ShapeRegistry:
    """Ordered collection of drawn regions with selection."""

    def __init__(self) -> None:
        self._entries: tuple[ShapeEntry, ...] = ()
        self._handles = itertools.count(1)
        self._removed: set[int] = set()
        self._intents: deque[OverlayIntent] = deque()

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def add(self, region: Region) -> int:
        """Append *region* and return its handle.

        Raises:
            MalformedGeometryError: If the region is degenerate; the
                registry is left unchanged.
        """
        validate_region(region)
        handle = next(self._handles)
        self._entries = (*self._entries, ShapeEntry(handle=handle, region=region))
        self._intents.append(OverlayIntent(IntentAction.ADD, handle, region))
        logger.info("Shape added | handle=%d | kind=%s | shapes=%d", handle, region.kind.value, len(self))
        return handle

    def select(self, handle: int) -> bool:
        """Select *handle*, clearing any previous selection.

        Returns:
            ``False`` (and no change) if the handle is unknown or removed.
        """
        if self._find(handle) is None:
            logger.warning("Cannot select shape | handle=%d | state=%s", handle, self.state(handle))
            return False
        self._entries = tuple(replace(e, selected=e.handle == handle) for e in self._entries)
        logger.debug("Shape selected | handle=%d", handle)
        return True

    def clear_selection(self) -> None:
        if self.selected is not None:
            self._entries = tuple(replace(e, selected=False) for e in self._entries)

    def delete_active(self) -> ShapeEntry | None:
        """Remove the selected shape, else the most recent one.

        Returns:
            The removed entry, or ``None`` when the registry is empty.
        """
        if not self._entries:
            return None
        target = self.selected or self._entries[-1]
        self._entries = tuple(
            replace(e, selected=False) for e in self._entries if e.handle != target.handle
        )
        self._removed.add(target.handle)
        self._intents.append(OverlayIntent(IntentAction.REMOVE, target.handle, target.region))
        logger.info(
            "Shape removed | handle=%d | was_selected=%s | shapes=%d",
            target.handle,
            target.selected,
            len(self),
        )
        return target

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    @property
    def entries(self) -> tuple[ShapeEntry, ...]:
        return self._entries

    @property
    def regions(self) -> tuple[Region, ...]:
        """Live regions in insertion order."""
        return tuple(e.region for e in self._entries)

    @property
    def selected(self) -> ShapeEntry | None:
        return next((e for e in self._entries if e.selected), None)

    @property
    def latest(self) -> ShapeEntry | None:
        return self._entries[-1] if self._entries else None

    def state(self, handle: int) -> ShapeState | None:
        """Lifecycle state of *handle*, ``None`` if it was never issued."""
        if handle in self._removed:
            return ShapeState.REMOVED
        entry = self._find(handle)
        return entry.state if entry is not None else None

    def drain_intents(self) -> list[OverlayIntent]:
        """Return and clear the queued overlay intents, oldest first."""
        intents = list(self._intents)
        self._intents.clear()
        return intents

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[ShapeEntry]:
        return iter(self._entries)

    def _find(self, handle: int) -> ShapeEntry | None:
        return next((e for e in self._entries if e.handle == handle), None)
