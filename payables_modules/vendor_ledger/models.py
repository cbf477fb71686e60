"""
Vendor Ledger Export Models (``payables_modules.vendor_ledger.models``).

Responsibility
--------------
Value objects describing an export request and its result.

Invariants enforced
-------------------
* All models are ``frozen=True``.
* ``LedgerExport.content`` is ``str`` for text formats (CSV, Tally XML)
  and ``bytes`` for PDF.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from enum import Enum

from payables_kernel.exceptions import UnknownExportFormatError


class ExportFormat(str, Enum):
    """Supported ledger export formats."""

    CSV = "csv"
    PDF = "pdf"
    TALLY_XML = "tally_xml"

    @classmethod
    def parse(cls, value: ExportFormat | str) -> ExportFormat:
        try:
            return cls(value)
        except ValueError as e:
            raise UnknownExportFormatError(str(value)) from e

    @property
    def media_type(self) -> str:
        return _MEDIA_TYPES[self]

    @property
    def extension(self) -> str:
        return _EXTENSIONS[self]


_MEDIA_TYPES = {
    ExportFormat.CSV: "text/csv;charset=utf-8",
    ExportFormat.PDF: "application/pdf",
    ExportFormat.TALLY_XML: "application/xml;charset=utf-8",
}

_EXTENSIONS = {
    ExportFormat.CSV: "csv",
    ExportFormat.PDF: "pdf",
    ExportFormat.TALLY_XML: "xml",
}


@dataclass(frozen=True)
class LedgerPeriod:
    """Optional date filter applied before exporting."""

    from_date: date | None = None
    to_date: date | None = None

    @property
    def is_active(self) -> bool:
        return self.from_date is not None or self.to_date is not None


@dataclass(frozen=True)
class LedgerExport:
    """Rendered export plus the metadata a caller needs to save it."""

    export_format: ExportFormat
    vendor_id: str
    filename: str
    content: str | bytes
    generated_at: datetime
    config_checksum: str
    entry_count: int

    @property
    def media_type(self) -> str:
        return self.export_format.media_type
