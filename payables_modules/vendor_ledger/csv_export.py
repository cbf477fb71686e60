"""
CSV rendering of a vendor ledger.

Layout (six columns throughout):
    header row, optional opening-balance row, one row per entry, totals row,
    blank row, optional filter-period row, generated row, final-balance row.

Quoting is delegated to ``csv.writer`` (QUOTE_MINIMAL): fields holding a
delimiter, quote or newline are quoted and inner quotes doubled.
"""

from __future__ import annotations

import csv
import io
from datetime import date

from payables_config.schema import LedgerLabels
from payables_engines.ledger import VendorLedger
from payables_kernel.domain.values import format_fixed
from payables_kernel.logging_config import get_logger
from payables_modules.vendor_ledger.formatting import (
    final_balance_text,
    format_amount,
    format_balance,
    format_iso_date,
    format_period,
)

logger = get_logger("modules.vendor_ledger.csv")


def render_ledger_csv(
    ledger: VendorLedger,
    labels: LedgerLabels,
    generated_on: date,
    currency_symbol: str = "₹",
    places: int = 2,
) -> str:
    """Render ``ledger`` as CSV text with ``\\n`` line endings."""
    buffer = io.StringIO()
    writer = csv.writer(buffer, quoting=csv.QUOTE_MINIMAL, lineterminator="\n")

    writer.writerow(labels.column_headers)

    if ledger.has_opening_balance:
        writer.writerow([
            format_iso_date(ledger.period_from),
            labels.opening_balance,
            "",
            "",
            "",
            format_balance(ledger.opening_balance, places),
        ])

    for entry in ledger.entries:
        writer.writerow([
            format_iso_date(entry.date),
            entry.particulars,
            entry.reference,
            format_amount(entry.debit, places),
            format_amount(entry.credit, places),
            format_balance(entry.running_balance, places),
        ])

    totals = ledger.totals
    writer.writerow([
        "",
        labels.totals,
        "",
        format_fixed(totals.total_debits, places),
        format_fixed(totals.total_credits, places),
        "",
    ])
    writer.writerow([""] * 6)

    if ledger.is_filtered:
        writer.writerow([
            labels.filter_period,
            format_period(ledger.period_from, ledger.period_to, labels),
            "", "", "", "",
        ])

    writer.writerow([labels.generated, generated_on.isoformat(), "", "", "", ""])
    writer.writerow([
        labels.final_balance,
        final_balance_text(ledger.closing_balance, labels, currency_symbol, places),
        "", "", "", "",
    ])

    logger.debug("ledger_csv_rendered", extra={
        "vendor_id": ledger.vendor.id,
        "entry_count": len(ledger.entries),
    })
    return buffer.getvalue()
