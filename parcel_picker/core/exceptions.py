"""Unified engine exception taxonomy.

Every domain exception inherits from ``ParcelPickerError`` and carries
structured context fields so that the session layer can report errors to
the UI collaborator consistently.

Taxonomy categories
-------------------
- ``ValidationError``: bad user input (attribute bounds, config).
- ``EmptySelectionError``: export attempted with nothing selected.
- ``MalformedGeometryError``: degenerate region rejected at the registry.
- ``IngestionRowError``: unusable CSV row, dropped and counted.
- ``StaleIndexError``: spatial index out of date; internal only,
  resolved by rebuilding before the next query.

None of these are fatal: the engine state is left at the last valid
snapshot and remains usable.  Every exception exposes ``to_error_dict()``
for a stable structured payload.
"""

from __future__ import annotations


class ParcelPickerError(Exception):
    """Base exception for all engine-domain errors.

    Attributes:
        message: Human-readable error description.
        stage: Component where the error occurred
            (e.g. ``"filters"``, ``"export"``).
        code: Machine-readable error code (e.g. ``"ATTRIBUTE_RANGE_INVALID"``).
        user_visible: Whether the UI should show a blocking notice.
    """

    #: Default stage for subclasses (override via class attribute or kwarg).
    default_stage: str = ""
    #: Default code for subclasses (override via class attribute or kwarg).
    default_code: str = ""
    #: Whether the error is reported to the analyst by default.
    default_user_visible: bool = False

    def __init__(
        self,
        message: str = "",
        *,
        stage: str = "",
        code: str = "",
        user_visible: bool | None = None,
    ) -> None:
        self.message = message
        self.stage = stage or self.default_stage
        self.code = code or self.default_code
        self.user_visible = self.default_user_visible if user_visible is None else user_visible
        super().__init__(message)

    @property
    def category(self) -> str:
        """Return the error category based on concrete class."""
        if isinstance(self, ValidationError):
            return "validation"
        if isinstance(self, EmptySelectionError):
            return "empty_selection"
        if isinstance(self, MalformedGeometryError):
            return "malformed_geometry"
        if isinstance(self, IngestionRowError):
            return "ingestion_row"
        if isinstance(self, StaleIndexError):
            return "stale_index"
        return "internal"

    def to_error_dict(self) -> dict[str, object]:
        """Return a structured error payload with stable keys."""
        return {
            "category": self.category,
            "code": self.code,
            "stage": self.stage,
            "message": self.message,
            "user_visible": self.user_visible,
        }


# ---------------------------------------------------------------------------
# Category classes
# ---------------------------------------------------------------------------


class ValidationError(ParcelPickerError):
    """User input failed validation. State is unchanged."""

    default_code = "VALIDATION_FAILED"
    default_user_visible = True


class EmptySelectionError(ParcelPickerError):
    """Export was requested but the current selection is empty."""

    default_stage = "export"
    default_code = "NOTHING_TO_EXPORT"
    default_user_visible = True


class MalformedGeometryError(ParcelPickerError):
    """A drawn region is degenerate (zero radius, too few vertices)."""

    default_stage = "shapes"
    default_code = "REGION_DEGENERATE"


class IngestionRowError(ParcelPickerError):
    """A raw row could not be coerced into a point record.

    Attributes:
        field_name: Column that failed coercion.
        value: The offending raw value.
    """

    default_stage = "ingest"
    default_code = "ROW_UNUSABLE"

    def __init__(self, field_name: str, value: object, message: str) -> None:
        self.field_name = field_name
        self.value = value
        super().__init__(f"{field_name}={value!r}: {message}")


class StaleIndexError(ParcelPickerError):
    """Spatial index was built from a superseded dataset version."""

    default_stage = "spatial_index"
    default_code = "INDEX_STALE"

    def __init__(self, index_version: int, dataset_version: int) -> None:
        self.index_version = index_version
        self.dataset_version = dataset_version
        super().__init__(
            f"Index built for dataset version {index_version}, "
            f"current version is {dataset_version}"
        )
