"""
Tests for the CSV ledger renderer.
"""

import csv
import io
from datetime import date
from decimal import Decimal

from payables_config.schema import LedgerLabels
from payables_engines.ledger import LedgerBuilder
from payables_modules.vendor_ledger.csv_export import render_ledger_csv
from payables_modules.vendor_ledger.formatting import (
    balance_summary_text,
    final_balance_text,
    format_balance,
    format_period,
)
from tests.conftest import make_delivery, make_payment
from tests.modules.conftest import GENERATED_ON


def _rows(text):
    return list(csv.reader(io.StringIO(text)))


class TestFormatting:

    def test_balance_sides(self):
        assert format_balance(Decimal("2000")) == "2000.00 Cr"
        assert format_balance(Decimal("0")) == "0.00 Cr"
        assert format_balance(Decimal("-150.5")) == "150.50 Dr"
        assert format_balance(Decimal("1234.5"), 0) == "1235 Cr"

    def test_final_balance_text(self):
        labels = LedgerLabels()
        assert final_balance_text(Decimal("2000"), labels, "₹") == "₹2000.00 Cr (Outstanding)"
        assert final_balance_text(Decimal("-10"), labels, "₹") == "₹10.00 Dr (Credit Balance)"

    def test_balance_summary_text(self):
        labels = LedgerLabels()
        assert balance_summary_text(Decimal("2000"), labels, "Rs.") == "Total Outstanding: Rs.2000"
        assert balance_summary_text(Decimal("-10"), labels, "Rs.") == "Credit Balance: Rs.10"

    def test_period_placeholders(self):
        labels = LedgerLabels()
        assert format_period(None, None, labels) == "Beginning - Today"
        assert format_period(date(2024, 1, 1), None, labels) == "2024-01-01 - Today"


class TestRenderLedgerCsv:

    def test_full_document(self, sample_ledger):
        text = render_ledger_csv(sample_ledger, LedgerLabels(), GENERATED_ON)
        assert text == (
            "Date,Particulars,Reference,Debit,Credit,Balance\n"
            "2024-01-15,Invoice: INV-1,INV-1,5000.00,,5000.00 Cr\n"
            "2024-01-20,Payment Made - Payment,,,3000.00,2000.00 Cr\n"
            ",Totals,,5000.00,3000.00,\n"
            ",,,,,\n"
            "Generated,2024-02-01,,,,\n"
            "Final Balance,₹2000.00 Cr (Outstanding),,,,\n"
        )

    def test_fields_with_commas_and_quotes_are_quoted(self, vendor):
        ledger = LedgerBuilder().build(vendor, deliveries=[
            make_delivery("d1", "10", date(2024, 1, 1), 'INV "7", lot 2'),
        ])
        text = render_ledger_csv(ledger, LedgerLabels(), GENERATED_ON)
        assert '"Invoice: INV ""7"", lot 2"' in text
        assert _rows(text)[1][1] == 'Invoice: INV "7", lot 2'

    def test_filtered_ledger_rows(self, sample_ledger):
        filtered = LedgerBuilder().filter(sample_ledger, date(2024, 1, 16))
        rows = _rows(render_ledger_csv(filtered, LedgerLabels(), GENERATED_ON))
        assert rows[1] == ["2024-01-16", "Opening Balance", "", "", "", "5000.00 Cr"]
        assert rows[2][1] == "Payment Made - Payment"
        assert ["Filter Period", "2024-01-16 - Today", "", "", "", ""] in rows
        assert rows[-1][1] == "₹2000.00 Cr (Outstanding)"

    def test_credit_balance(self, vendor):
        ledger = LedgerBuilder().build(
            vendor, payments=[make_payment("p1", "75", date(2024, 1, 1))]
        )
        rows = _rows(render_ledger_csv(ledger, LedgerLabels(), GENERATED_ON))
        assert rows[1][5] == "75.00 Dr"
        assert rows[-1][1] == "₹75.00 Dr (Credit Balance)"

    def test_custom_labels_and_places(self, sample_ledger):
        labels = LedgerLabels(date="Tarikh", final_balance="Shesh")
        rows = _rows(render_ledger_csv(
            sample_ledger, labels, GENERATED_ON, currency_symbol="INR ", places=0,
        ))
        assert rows[0][0] == "Tarikh"
        assert rows[1][3] == "5000"
        assert rows[-1] == ["Shesh", "INR 2000 Cr (Outstanding)", "", "", "", ""]
