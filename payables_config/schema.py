"""
Ledger export configuration schema.

Frozen dataclasses describing everything the exporters need that is not
ledger data: localized labels, PDF geometry and Tally company settings.
YAML documents are parsed into these types by ``payables_config.loader``.
"""

from __future__ import annotations

import hashlib
import json
from dataclasses import asdict, dataclass, field, fields
from typing import Any, Self

from payables_kernel.exceptions import InvalidConfigError
from payables_kernel.logging_config import get_logger

logger = get_logger("config.schema")


@dataclass(frozen=True)
class LedgerLabels:
    """Display strings for the ledger exports (English defaults)."""

    vendor_ledger: str = "Vendor Ledger"
    vendor: str = "Vendor"
    contact: str = "Contact"
    generated: str = "Generated"
    filter_period: str = "Filter Period"
    beginning: str = "Beginning"
    today: str = "Today"
    date: str = "Date"
    particulars: str = "Particulars"
    reference: str = "Reference"
    debit: str = "Debit"
    credit: str = "Credit"
    balance: str = "Balance"
    opening_balance: str = "Opening Balance"
    totals: str = "Totals"
    total_outstanding: str = "Total Outstanding"
    outstanding: str = "Outstanding"
    credit_balance: str = "Credit Balance"
    final_balance: str = "Final Balance"
    page: str = "Page"

    @property
    def column_headers(self) -> tuple[str, ...]:
        return (
            self.date,
            self.particulars,
            self.reference,
            self.debit,
            self.credit,
            self.balance,
        )


@dataclass(frozen=True)
class PdfLayout:
    """
    A4 page geometry in millimetres.

    Row rendering breaks to a new page when the cursor passes
    ``row_break_y``; the summary block needs more room and breaks at
    ``summary_break_y``.
    """

    margin: float = 14.0
    start_y: float = 25.0
    row_height: float = 5.0
    row_break_y: float = 245.0
    summary_break_y: float = 210.0
    column_widths: tuple[float, ...] = (22.0, 70.0, 25.0, 22.0, 22.0, 22.0)
    logo_max_width: float = 25.0
    logo_max_height: float = 15.0
    logo_path: str | None = None
    footer_text: str = "Generated with Vendor Payables"
    # Standard PDF fonts carry no rupee glyph.
    currency_symbol: str = "Rs."
    amount_places: int = 0

    def __post_init__(self):
        if len(self.column_widths) != 6:
            raise InvalidConfigError(
                "pdf.column_widths", "exactly six column widths are required"
            )
        if self.margin < 0:
            raise InvalidConfigError("pdf.margin", "cannot be negative")
        if self.summary_break_y > self.row_break_y:
            raise InvalidConfigError(
                "pdf.summary_break_y", "must not exceed pdf.row_break_y"
            )
        if self.amount_places < 0:
            raise InvalidConfigError("pdf.amount_places", "cannot be negative")


@dataclass(frozen=True)
class TallySettings:
    """Company settings written into the Tally import envelope."""

    company_name: str = "My Company"
    parent_group: str = "Sundry Creditors"
    include_narration: bool = True
    include_voucher_number: bool = True


@dataclass(frozen=True)
class LedgerExportConfig:
    """
    Root export configuration.

    Controls labels, the currency symbol shown on balance summaries, the
    PDF layout and the Tally envelope.
    """

    labels: LedgerLabels = field(default_factory=LedgerLabels)
    pdf: PdfLayout = field(default_factory=PdfLayout)
    tally: TallySettings = field(default_factory=TallySettings)
    currency_symbol: str = "₹"
    csv_places: int = 2

    def __post_init__(self):
        if self.csv_places < 0:
            raise InvalidConfigError("csv_places", "cannot be negative")

    @classmethod
    def with_defaults(cls) -> Self:
        """Create config with standard defaults."""
        logger.info("ledger_export_config_created_with_defaults")
        return cls()

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Self:
        """
        Create config from a (YAML-derived) dictionary.

        Unknown keys raise ``InvalidConfigError`` so typos in a config file
        never silently fall back to defaults.
        """
        if not isinstance(data, dict):
            raise InvalidConfigError("ledger_export", "top level must be a mapping")
        logger.info(
            "ledger_export_config_loading_from_dict",
            extra={"keys": sorted(data.keys())},
        )
        kwargs: dict[str, Any] = {}
        for key, value in data.items():
            if key == "labels":
                kwargs[key] = _build_section(LedgerLabels, "labels", value)
            elif key == "pdf":
                if isinstance(value, dict) and "column_widths" in value:
                    value = {
                        **value,
                        "column_widths": tuple(float(w) for w in value["column_widths"]),
                    }
                kwargs[key] = _build_section(PdfLayout, "pdf", value)
            elif key == "tally":
                kwargs[key] = _build_section(TallySettings, "tally", value)
            elif key in ("currency_symbol", "csv_places"):
                kwargs[key] = value
            else:
                raise InvalidConfigError(key, "unknown setting")
        return cls(**kwargs)

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    @property
    def checksum(self) -> str:
        """SHA-256 of the canonical JSON form; identifies a configuration."""
        canonical = json.dumps(self.to_dict(), sort_keys=True, default=str)
        return hashlib.sha256(canonical.encode()).hexdigest()


def _build_section(section_cls: type, name: str, data: Any) -> Any:
    if data is None:
        return section_cls()
    if not isinstance(data, dict):
        raise InvalidConfigError(name, "must be a mapping")
    allowed = {f.name for f in fields(section_cls)}
    unknown = sorted(set(data) - allowed)
    if unknown:
        raise InvalidConfigError(f"{name}.{unknown[0]}", "unknown setting")
    return section_cls(**data)
