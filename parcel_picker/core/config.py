"""Engine configuration loaded from environment variables.

All configuration values have sensible defaults; the host application
(or a test) may override them through ``PARCEL_PICKER_*`` variables.

Fail-fast validation:
    ``from_env()`` raises ``ConfigValidationError`` if any value is out of
    its valid range, so a bad deployment fails at startup rather than on
    the analyst's first map move.
"""

from __future__ import annotations

import math
import os
from dataclasses import dataclass

from parcel_picker.core.constants import (
    DEFAULT_MIN_INDEX_SIZE,
    DEFAULT_RESULT_CACHE_SIZE,
    DEFAULT_VIEWPORT_BUFFERS,
    EARTH_RADIUS_M,
)
from parcel_picker.core.exceptions import ValidationError

ViewportBuffers = tuple[tuple[float | None, float], ...]


class ConfigValidationError(ValidationError):
    """Raised when configuration values are out of valid range.

    Attributes:
        key: The configuration key that failed validation.
        value: The invalid value.
        message: Human-readable description of the valid range.
    """

    default_stage = "config"
    default_code = "CONFIG_VALIDATION_FAILED"

    def __init__(self, key: str, value: object, message: str) -> None:
        self.key = key
        self.value = value
        super().__init__(f"Invalid configuration {key}={value!r}: {message}", user_visible=False)


@dataclass(frozen=True, slots=True)
class EngineConfig:
    """Immutable engine configuration.

    Attributes:
        min_index_size: Pricing datasets with fewer records than this are
            culled by linear scan instead of a spatial index.
        result_cache_size: Maximum memoised shape-filter results.
        earth_radius_m: Sphere radius for circle-region distances (metres).
        viewport_buffers: ``(zoom_upper_bound, buffer_deg)`` pairs; the last
            pair has a ``None`` bound and covers every higher zoom.
        log_level: Root level for ``parcel_picker`` loggers.
    """

    min_index_size: int = DEFAULT_MIN_INDEX_SIZE
    result_cache_size: int = DEFAULT_RESULT_CACHE_SIZE
    earth_radius_m: float = EARTH_RADIUS_M
    viewport_buffers: ViewportBuffers = DEFAULT_VIEWPORT_BUFFERS
    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> EngineConfig:
        """Load and validate configuration from environment variables.

        Raises:
            ConfigValidationError: If a value is out of range or a buffer
                table cannot be parsed.
            ValueError: If a numeric variable cannot be parsed
                (e.g. ``PARCEL_PICKER_MIN_INDEX_SIZE=abc``).
        """
        raw_buffers = os.getenv("PARCEL_PICKER_VIEWPORT_BUFFERS", "")
        config = cls(
            min_index_size=int(os.getenv("PARCEL_PICKER_MIN_INDEX_SIZE", str(DEFAULT_MIN_INDEX_SIZE))),
            result_cache_size=int(
                os.getenv("PARCEL_PICKER_RESULT_CACHE_SIZE", str(DEFAULT_RESULT_CACHE_SIZE))
            ),
            earth_radius_m=float(os.getenv("PARCEL_PICKER_EARTH_RADIUS_M", str(EARTH_RADIUS_M))),
            viewport_buffers=parse_viewport_buffers(raw_buffers) if raw_buffers else DEFAULT_VIEWPORT_BUFFERS,
            log_level=os.getenv("PARCEL_PICKER_LOG_LEVEL", "INFO").upper(),
        )
        _validate(config)
        return config


def parse_viewport_buffers(raw: str) -> ViewportBuffers:
    """Parse ``"8:0.5,10:0.2,*:0.02"`` into a viewport buffer table.

    ``*`` marks the open-ended final tier.

    Raises:
        ConfigValidationError: If an entry is not ``zoom:buffer``.
    """
    table: list[tuple[float | None, float]] = []
    for entry in raw.split(","):
        entry = entry.strip()
        if not entry:
            continue
        zoom_raw, sep, buffer_raw = entry.partition(":")
        if not sep:
            raise ConfigValidationError(
                "PARCEL_PICKER_VIEWPORT_BUFFERS", raw, f"entry {entry!r} is not zoom:buffer"
            )
        try:
            bound = None if zoom_raw.strip() == "*" else float(zoom_raw)
            buffer_deg = float(buffer_raw)
        except ValueError as exc:
            raise ConfigValidationError(
                "PARCEL_PICKER_VIEWPORT_BUFFERS", raw, f"entry {entry!r} is not numeric"
            ) from exc
        table.append((bound, buffer_deg))
    return tuple(table)


def _validate(config: EngineConfig) -> None:
    """Validate configuration ranges.  Raises ``ConfigValidationError``."""
    if config.min_index_size < 0:
        raise ConfigValidationError(
            "PARCEL_PICKER_MIN_INDEX_SIZE",
            config.min_index_size,
            "must be >= 0 (records)",
        )

    if config.result_cache_size < 1:
        raise ConfigValidationError(
            "PARCEL_PICKER_RESULT_CACHE_SIZE",
            config.result_cache_size,
            "must be >= 1 (entries)",
        )

    if not math.isfinite(config.earth_radius_m) or config.earth_radius_m <= 0:
        raise ConfigValidationError(
            "PARCEL_PICKER_EARTH_RADIUS_M",
            config.earth_radius_m,
            "must be a finite value > 0 (metres)",
        )

    validate_viewport_buffers(config.viewport_buffers)

    if config.log_level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
        raise ConfigValidationError(
            "PARCEL_PICKER_LOG_LEVEL",
            config.log_level,
            "must be a standard logging level name",
        )


def validate_viewport_buffers(table: ViewportBuffers) -> None:
    """Check a buffer table is usable and shrinks as zoom grows.

    Raises:
        ConfigValidationError: On an empty table, a missing open-ended
            tier, unordered zoom bounds, or a buffer that grows with zoom.
    """
    key = "PARCEL_PICKER_VIEWPORT_BUFFERS"
    if not table:
        raise ConfigValidationError(key, table, "must contain at least one tier")
    if table[-1][0] is not None:
        raise ConfigValidationError(key, table, "last tier must be open-ended ('*')")

    previous_bound = -math.inf
    previous_buffer = math.inf
    for index, (bound, buffer_deg) in enumerate(table):
        if bound is None and index != len(table) - 1:
            raise ConfigValidationError(key, table, "only the last tier may be open-ended")
        if bound is not None and bound <= previous_bound:
            raise ConfigValidationError(key, table, "zoom bounds must be strictly increasing")
        if not math.isfinite(buffer_deg) or buffer_deg < 0:
            raise ConfigValidationError(key, table, "buffers must be finite and >= 0 (degrees)")
        if buffer_deg > previous_buffer:
            raise ConfigValidationError(key, table, "buffers must not grow as zoom increases")
        previous_bound = bound if bound is not None else previous_bound
        previous_buffer = buffer_deg
