"""Row coercion at the ingestion boundary.

CSV rows arrive as loosely-typed string maps.  Each row is coerced once
into a ``PointRecord`` or rejected with ``IngestionRowError``; ``NaN`` and
missing values never travel past this module.

Numeric fields use a lenient leading-number parse: surrounding whitespace
is ignored and trailing text after the number is dropped, so ``"12.5 ac"``
reads as ``12.5`` while ``""`` and ``"n/a"`` read as missing.
"""

from __future__ import annotations

import math
import re
from typing import TYPE_CHECKING

from parcel_picker.core.constants import (
    COLUMN_APN,
    COLUMN_LATITUDE,
    COLUMN_LONGITUDE,
    COLUMN_LOT_ACREAGE,
    MAX_LATITUDE,
    MAX_LONGITUDE,
)
from parcel_picker.core.exceptions import IngestionRowError
from parcel_picker.models.records import DatasetKind, PointRecord

if TYPE_CHECKING:
    from collections.abc import Mapping

    from parcel_picker.models.records import AttributeValue

_LEADING_NUMBER = re.compile(r"\s*([+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?)")


def parse_float(value: object) -> float | None:
    """Parse the leading number of *value*, or return ``None``.

    Numbers pass through unchanged (including ``nan``); booleans and
    anything without a leading number are treated as missing.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int | float):
        return float(value)
    match = _LEADING_NUMBER.match(str(value))
    if match is None:
        return None
    return float(match.group(1))


def coerce_pricing_row(row: Mapping[str, object]) -> PointRecord:
    """Coerce one pricing row.

    The formatted APN is required and becomes the record identifier;
    ``LOT ACREAGE`` is optional and unknown acreage is ``None``.

    Raises:
        IngestionRowError: On unusable coordinates or a missing APN.
    """
    lat, lng = _coordinates(row)
    apn = _text(row.get(COLUMN_APN))
    if not apn:
        raise IngestionRowError(COLUMN_APN, row.get(COLUMN_APN), "parcel identifier is required")
    acreage = parse_float(row.get(COLUMN_LOT_ACREAGE))
    if acreage is not None and not math.isfinite(acreage):
        acreage = None
    return PointRecord(record_id=apn, lat=lat, lng=lng, acreage=acreage, attributes=_attributes(row))


def coerce_comps_row(row: Mapping[str, object], ordinal: int) -> PointRecord:
    """Coerce one comps row; *ordinal* gives it a synthetic identifier.

    Raises:
        IngestionRowError: On unusable coordinates.
    """
    lat, lng = _coordinates(row)
    return PointRecord(record_id=f"comps-{ordinal}", lat=lat, lng=lng, attributes=_attributes(row))


def coerce_row(kind: DatasetKind, row: Mapping[str, object], ordinal: int = 0) -> PointRecord:
    """Dispatch to the coercion for *kind*."""
    if kind is DatasetKind.PRICING:
        return coerce_pricing_row(row)
    return coerce_comps_row(row, ordinal)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _coordinates(row: Mapping[str, object]) -> tuple[float, float]:
    lat = _coordinate(row, COLUMN_LATITUDE, MAX_LATITUDE)
    lng = _coordinate(row, COLUMN_LONGITUDE, MAX_LONGITUDE)
    return lat, lng


def _coordinate(row: Mapping[str, object], column: str, limit: float) -> float:
    raw = row.get(column)
    value = parse_float(raw)
    if value is None or not math.isfinite(value):
        raise IngestionRowError(column, raw, "coordinate is not a finite number")
    if abs(value) > limit:
        raise IngestionRowError(column, raw, f"coordinate outside ±{limit:g}")
    return value


def _text(value: object) -> str:
    return "" if value is None else str(value).strip()


def _attributes(row: Mapping[str, object]) -> dict[str, AttributeValue]:
    attributes: dict[str, AttributeValue] = {}
    for key, value in row.items():
        if value is None or isinstance(value, str):
            attributes[str(key)] = value
        elif isinstance(value, int | float) and not isinstance(value, bool):
            attributes[str(key)] = float(value)
        else:
            attributes[str(key)] = str(value)
    return attributes
