"""
Tests for the PDF ledger layout and rendering.

Layout assertions run against ``LedgerPdfDocument`` pages; ``to_bytes``
is exercised end to end through reportlab.
"""

from dataclasses import replace
from datetime import date

import pytest
from PIL import Image

from payables_config.schema import LedgerLabels, PdfLayout
from payables_engines.ledger import LedgerBuilder
from payables_kernel.domain.records import Vendor
from payables_modules.vendor_ledger.pdf_export import (
    FONT_REGULAR,
    build_ledger_pdf,
    fit_logo,
    load_logo,
    text_width_mm,
    truncate_to_width,
)
from tests.conftest import make_payment
from tests.modules.conftest import GENERATED_ON


def _build(ledger, **layout_overrides):
    layout = replace(PdfLayout(), **layout_overrides)
    return build_ledger_pdf(ledger, LedgerLabels(), layout, GENERATED_ON)


def _first_page_texts(ledger):
    return _build(ledger).pages[0].texts


class TestTruncation:

    def test_short_text_untouched(self):
        assert truncate_to_width("INV-1", 23, FONT_REGULAR, 8) == "INV-1"

    def test_long_text_fits_with_ellipsis(self):
        text = "Invoice: " + "CEMENT-BAGS-GRADE-53-" * 6
        result = truncate_to_width(text, 68, FONT_REGULAR, 8)
        assert result.endswith("...")
        assert text_width_mm(result, FONT_REGULAR, 8) <= 68
        assert text.startswith(result[:-3])


class TestLogo:

    def test_fit_to_width(self):
        assert fit_logo(200, 100, 25, 15) == (25, 12.5)

    def test_fit_to_height_when_too_tall(self):
        assert fit_logo(100, 100, 25, 15) == (15, 15)

    def test_load_logo_from_png(self, tmp_path):
        path = tmp_path / "logo.png"
        Image.new("RGB", (200, 100), (30, 60, 90)).save(path)
        logo = load_logo(path, PdfLayout())
        assert logo is not None
        assert (logo.width, logo.height) == (25, 12.5)

    def test_missing_logo_degrades(self, tmp_path, captured_logs):
        assert load_logo(tmp_path / "missing.png", PdfLayout()) is None
        assert any(
            r["message"] == "ledger_pdf_logo_unavailable" for r in captured_logs()
        )

    def test_undecodable_logo_degrades(self, tmp_path):
        path = tmp_path / "logo.png"
        path.write_bytes(b"not an image")
        assert load_logo(path, PdfLayout()) is None

    def test_no_logo_configured(self):
        assert load_logo(None, PdfLayout()) is None


class TestLayout:

    def test_header_rows_and_summary(self, sample_ledger):
        doc = _build(sample_ledger)
        strings = doc.all_strings()
        assert doc.page_count == 1
        assert doc.title == "Vendor Ledger - Ravi Kumar"
        for expected in (
            "Vendor Ledger",
            "Vendor: Shree Cement Traders",
            "Contact: Ravi Kumar",
            "Generated: 2024-02-01",
            "Invoice: INV-1",
            "5000 Cr",
            "2000 Cr",
            "Totals",
            "Total Outstanding: Rs.2000",
            "Generated with Vendor Payables",
            "Page 1",
        ):
            assert expected in strings
        assert "Filter Period: Beginning - Today" not in strings

    def test_empty_amounts_and_reference_show_dash(self, sample_ledger):
        payment_row = [t for t in _first_page_texts(sample_ledger) if t.y == 90]
        assert [t.text for t in payment_row] == [
            "2024-01-20", "Payment Made - Payment", "-", "-", "3000", "2000 Cr",
        ]

    def test_filtered_header(self, sample_ledger):
        filtered = LedgerBuilder().filter(sample_ledger, date(2024, 1, 16), date(2024, 1, 31))
        strings = _build(filtered).all_strings()
        assert "Filter Period: 2024-01-16 - 2024-01-31" in strings
        assert "Opening Balance" in strings

    def test_vendor_without_contact(self):
        ledger = LedgerBuilder().build(Vendor(id="v1", name="Plain Supplies"))
        strings = _build(ledger).all_strings()
        assert "Vendor: Plain Supplies" in strings
        assert not any(s.startswith("Contact:") for s in strings)

    def test_rows_break_onto_new_page(self, long_ledger):
        doc = _build(long_ledger(40))
        assert doc.page_count == 2
        first, second = doc.pages
        assert sum(1 for s in first.strings if s.startswith("INV-")) == 33
        assert sum(1 for s in second.strings if s.startswith("INV-")) == 7
        assert "Totals" in second.strings

    def test_summary_moves_to_new_page_when_low(self, long_ledger):
        doc = _build(long_ledger(33))
        assert doc.page_count == 2
        assert not any(s.startswith("INV-") for s in doc.pages[1].strings)
        assert "Totals" in doc.pages[1].strings

    @pytest.mark.parametrize("count", [1, 40, 80])
    def test_every_page_has_footer(self, long_ledger, count):
        doc = _build(long_ledger(count))
        for page in doc.pages:
            assert "Generated with Vendor Payables" in page.strings
            assert f"Page {page.number}" in page.strings
            assert page.rules

    def test_credit_balance_summary(self, vendor):
        ledger = LedgerBuilder().build(
            vendor, payments=[make_payment("p1", "500", date(2024, 1, 1))]
        )
        assert "Credit Balance: Rs.500" in _build(ledger).all_strings()


class TestRender:

    def test_to_bytes_is_pdf(self, sample_ledger):
        content = _build(sample_ledger).to_bytes()
        assert content.startswith(b"%PDF")
        assert content.rstrip().endswith(b"%%EOF")

    def test_to_bytes_with_logo(self, sample_ledger, tmp_path):
        path = tmp_path / "logo.png"
        Image.new("RGB", (120, 40), (200, 10, 10)).save(path)
        doc = _build(sample_ledger, logo_path=str(path))
        assert doc.logo is not None
        assert doc.to_bytes().startswith(b"%PDF")

    def test_multi_page_render(self, long_ledger):
        assert _build(long_ledger(80)).to_bytes().startswith(b"%PDF")
