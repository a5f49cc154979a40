"""Pydantic export payload handed to the spreadsheet collaborator.

The engine does not write workbooks.  It produces an ``ExportPayload``
whose ``to_sheets()`` output is a mapping of sheet name to rows keyed by
the column labels the analysts' spreadsheets expect.

Two tables are produced from one export:
- **Pricing Data**: ``APN``, ``LOT ACREAGE``, ``Latitude``, ``Longitude``
- **Comps Data**: ``PRICE``, ``ACRES``, ``Latitude``, ``Longitude``

Empty tables are omitted from ``to_sheets()``.
"""

from __future__ import annotations

from datetime import UTC, datetime

from pydantic import BaseModel, ConfigDict, Field

from parcel_picker.core.constants import COMPS_SHEET_NAME, DEFAULT_EXPORT_FILENAME, PRICING_SHEET_NAME

# Schema version for forward compatibility with the workbook writer
SCHEMA_VERSION = "parcel-export-v1"


class PricingExportRow(BaseModel):
    """One exported pricing parcel.

    Attributes:
        identifier: Formatted APN.
        acreage: Lot acreage, ``None`` when unknown.
        lat: Latitude in degrees.
        lng: Longitude in degrees.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    identifier: str = Field(alias="APN")
    acreage: float | None = Field(default=None, alias="LOT ACREAGE")
    lat: float = Field(alias="Latitude")
    lng: float = Field(alias="Longitude")


class CompsExportRow(BaseModel):
    """One exported comparable sale.

    ``price`` and ``acres`` are passed through as ingested (the comps CSV
    carries them as free text, e.g. ``"$125,000"``).
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    price: str | float | None = Field(default=None, alias="PRICE")
    acres: str | float | None = Field(default=None, alias="ACRES")
    lat: float = Field(alias="Latitude")
    lng: float = Field(alias="Longitude")


class ExportPayload(BaseModel):
    """Everything one export produced.

    Attributes:
        schema_version: Payload schema identifier.
        exported_at: UTC timestamp of the export.
        pricing_rows: Exported pricing parcels, in match order.
        comps_rows: Exported comps, in match order.
        removed_ids: Pricing identifiers removed from the live dataset.
        filename: Suggested workbook file name.
    """

    schema_version: str = SCHEMA_VERSION
    exported_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
    pricing_rows: list[PricingExportRow] = Field(default_factory=list)
    comps_rows: list[CompsExportRow] = Field(default_factory=list)
    removed_ids: list[str] = Field(default_factory=list)
    filename: str = DEFAULT_EXPORT_FILENAME

    @property
    def is_empty(self) -> bool:
        return not self.pricing_rows and not self.comps_rows

    def to_sheets(self) -> dict[str, list[dict[str, object]]]:
        """Return ``{sheet_name: rows}`` with spreadsheet column labels."""
        sheets: dict[str, list[dict[str, object]]] = {}
        if self.pricing_rows:
            sheets[PRICING_SHEET_NAME] = [r.model_dump(by_alias=True) for r in self.pricing_rows]
        if self.comps_rows:
            sheets[COMPS_SHEET_NAME] = [r.model_dump(by_alias=True) for r in self.comps_rows]
        return sheets
