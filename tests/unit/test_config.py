"""Tests for engine configuration.

Covers:
- Default values
- Loading from environment variables
- Viewport buffer table parsing
- Fail-fast range validation
"""

from __future__ import annotations

import os
from unittest.mock import patch

import pytest

from parcel_picker.core.config import (
    ConfigValidationError,
    EngineConfig,
    parse_viewport_buffers,
    validate_viewport_buffers,
)
from parcel_picker.core.constants import DEFAULT_VIEWPORT_BUFFERS


class TestEngineConfigDefaults:
    """Verify default configuration values."""

    def test_default_index_threshold(self) -> None:
        assert EngineConfig().min_index_size == 1

    def test_default_cache_size(self) -> None:
        assert EngineConfig().result_cache_size == 32

    def test_default_earth_radius(self) -> None:
        assert EngineConfig().earth_radius_m == 6_371_000.0

    def test_default_buffers(self) -> None:
        assert EngineConfig().viewport_buffers == DEFAULT_VIEWPORT_BUFFERS

    def test_default_log_level(self) -> None:
        assert EngineConfig().log_level == "INFO"

    def test_frozen(self) -> None:
        cfg = EngineConfig()
        with pytest.raises(AttributeError):
            cfg.result_cache_size = 5  # type: ignore[misc]


class TestEngineConfigFromEnv:
    """Verify loading from environment variables."""

    def test_loads_from_environment(self) -> None:
        """All env vars are read and coerced to correct types."""
        env = {
            "PARCEL_PICKER_MIN_INDEX_SIZE": "500",
            "PARCEL_PICKER_RESULT_CACHE_SIZE": "8",
            "PARCEL_PICKER_EARTH_RADIUS_M": "6378137",
            "PARCEL_PICKER_VIEWPORT_BUFFERS": "6:1.0, 12:0.1, *:0.01",
            "PARCEL_PICKER_LOG_LEVEL": "debug",
        }
        with patch.dict(os.environ, env, clear=False):
            cfg = EngineConfig.from_env()

        assert cfg.min_index_size == 500
        assert cfg.result_cache_size == 8
        assert cfg.earth_radius_m == 6_378_137.0
        assert cfg.viewport_buffers == ((6.0, 1.0), (12.0, 0.1), (None, 0.01))
        assert cfg.log_level == "DEBUG"

    def test_defaults_when_env_missing(self) -> None:
        """Missing env vars fall back to defaults."""
        with patch.dict(os.environ, {}, clear=True):
            cfg = EngineConfig.from_env()

        assert cfg == EngineConfig()

    def test_non_numeric_raises(self) -> None:
        with patch.dict(os.environ, {"PARCEL_PICKER_MIN_INDEX_SIZE": "abc"}, clear=False), pytest.raises(ValueError):
            EngineConfig.from_env()


class TestConfigValidation:
    """Out-of-range values fail at startup."""

    @pytest.mark.parametrize(
        ("key", "value"),
        [
            ("PARCEL_PICKER_MIN_INDEX_SIZE", "-1"),
            ("PARCEL_PICKER_RESULT_CACHE_SIZE", "0"),
            ("PARCEL_PICKER_EARTH_RADIUS_M", "0"),
            ("PARCEL_PICKER_EARTH_RADIUS_M", "inf"),
            ("PARCEL_PICKER_LOG_LEVEL", "CHATTY"),
            ("PARCEL_PICKER_VIEWPORT_BUFFERS", "8:0.5,10:0.2"),
            ("PARCEL_PICKER_VIEWPORT_BUFFERS", "8:0.1,*:0.5"),
            ("PARCEL_PICKER_VIEWPORT_BUFFERS", "10:0.5,8:0.2,*:0.1"),
            ("PARCEL_PICKER_VIEWPORT_BUFFERS", "8-0.5,*:0.1"),
            ("PARCEL_PICKER_VIEWPORT_BUFFERS", "eight:0.5,*:0.1"),
        ],
    )
    def test_invalid_value_rejected(self, key: str, value: str) -> None:
        with patch.dict(os.environ, {key: value}, clear=False), pytest.raises(ConfigValidationError) as exc_info:
            EngineConfig.from_env()
        assert exc_info.value.key == key
        assert exc_info.value.user_visible is False
        assert exc_info.value.stage == "config"

    def test_zero_index_threshold_allowed(self) -> None:
        with patch.dict(os.environ, {"PARCEL_PICKER_MIN_INDEX_SIZE": "0"}, clear=False):
            assert EngineConfig.from_env().min_index_size == 0


class TestViewportBufferTable:
    """Parsing and validation of the tier table."""

    def test_parse_default_shape(self) -> None:
        table = parse_viewport_buffers("8:0.5,10:0.2,12:0.1,14:0.05,*:0.02")
        assert table == DEFAULT_VIEWPORT_BUFFERS

    def test_blank_entries_ignored(self) -> None:
        assert parse_viewport_buffers("8:0.5,,*:0.1,") == ((8.0, 0.5), (None, 0.1))

    @pytest.mark.parametrize(
        "table",
        [
            (),
            ((None, 0.1), (None, 0.05)),
            ((8.0, -0.5), (None, 0.0)),
            ((8.0, float("nan")), (None, 0.0)),
        ],
    )
    def test_invalid_tables(self, table: tuple[tuple[float | None, float], ...]) -> None:
        with pytest.raises(ConfigValidationError):
            validate_viewport_buffers(table)

    def test_single_open_tier_is_valid(self) -> None:
        validate_viewport_buffers(((None, 0.1),))
