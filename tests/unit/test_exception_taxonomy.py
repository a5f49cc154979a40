"""Tests for the unified exception taxonomy.

Validates:
- ParcelPickerError hierarchy and structured attributes
- Category classification
- ``to_error_dict()`` produces stable payload keys
- Domain exceptions defined beside their components are taxonomy members
"""

from __future__ import annotations

from typing import ClassVar

from parcel_picker.core.config import ConfigValidationError
from parcel_picker.core.exceptions import (
    EmptySelectionError,
    IngestionRowError,
    MalformedGeometryError,
    ParcelPickerError,
    StaleIndexError,
    ValidationError,
)
from parcel_picker.selection.filters import AttributeRangeError


class TestParcelPickerErrorBase:
    """ParcelPickerError base class behavior."""

    def test_default_attributes(self) -> None:
        err = ParcelPickerError("boom")
        assert err.message == "boom"
        assert err.stage == ""
        assert err.code == ""
        assert err.user_visible is False
        assert err.category == "internal"

    def test_custom_attributes(self) -> None:
        err = ParcelPickerError("fail", stage="filters", code="X", user_visible=True)
        assert err.stage == "filters"
        assert err.code == "X"
        assert err.user_visible is True

    def test_str_is_message(self) -> None:
        assert str(ParcelPickerError("human-readable error")) == "human-readable error"

    def test_kwargs_override_class_defaults(self) -> None:
        err = EmptySelectionError("nothing", code="CUSTOM", user_visible=False)
        assert err.code == "CUSTOM"
        assert err.stage == "export"
        assert err.user_visible is False


class TestCategories:
    """Each concrete class maps to one category."""

    CASES: ClassVar[list[tuple[ParcelPickerError, str]]] = [
        (ValidationError("bad"), "validation"),
        (AttributeRangeError("bad range"), "validation"),
        (ConfigValidationError("KEY", 1, "bad"), "validation"),
        (EmptySelectionError("empty"), "empty_selection"),
        (MalformedGeometryError("flat"), "malformed_geometry"),
        (IngestionRowError("LATITUDE", "x", "not a number"), "ingestion_row"),
        (StaleIndexError(1, 2), "stale_index"),
    ]

    def test_categories(self) -> None:
        for err, category in self.CASES:
            assert err.category == category, type(err).__name__

    def test_all_are_taxonomy_members(self) -> None:
        for err, _ in self.CASES:
            assert isinstance(err, ParcelPickerError)


class TestErrorDict:
    """``to_error_dict()`` payload shape."""

    def test_stable_keys(self) -> None:
        payload = AttributeRangeError("Minimum acreage 9 is greater than maximum acreage 3").to_error_dict()
        assert payload == {
            "category": "validation",
            "code": "ATTRIBUTE_RANGE_INVALID",
            "stage": "filters",
            "message": "Minimum acreage 9 is greater than maximum acreage 3",
            "user_visible": True,
        }

    def test_user_visibility_defaults(self) -> None:
        assert ValidationError("x").user_visible is True
        assert EmptySelectionError("x").user_visible is True
        assert MalformedGeometryError("x").user_visible is False
        assert IngestionRowError("F", None, "x").user_visible is False
        assert StaleIndexError(1, 2).user_visible is False


class TestStructuredContext:
    """Exceptions carry the values that caused them."""

    def test_ingestion_row_error(self) -> None:
        err = IngestionRowError("LATITUDE", "abc", "coordinate is not a finite number")
        assert err.field_name == "LATITUDE"
        assert err.value == "abc"
        assert err.message == "LATITUDE='abc': coordinate is not a finite number"
        assert err.code == "ROW_UNUSABLE"

    def test_stale_index_error(self) -> None:
        err = StaleIndexError(3, 7)
        assert (err.index_version, err.dataset_version) == (3, 7)
        assert "version 3" in err.message
        assert err.code == "INDEX_STALE"

    def test_config_error(self) -> None:
        err = ConfigValidationError("PARCEL_PICKER_RESULT_CACHE_SIZE", 0, "must be >= 1 (entries)")
        assert err.key == "PARCEL_PICKER_RESULT_CACHE_SIZE"
        assert err.value == 0
        assert err.code == "CONFIG_VALIDATION_FAILED"
        assert "PARCEL_PICKER_RESULT_CACHE_SIZE=0" in err.message
