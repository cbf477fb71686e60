"""
Tests for the Tally XML renderer.

Documents are parsed back with lxml to check structure and escaping.
"""

from datetime import date

import pytest
from lxml import etree

from payables_engines.ledger import LedgerBuilder
from payables_kernel.domain.records import Vendor
from payables_modules.vendor_ledger.tally_xml import (
    TallyXmlOptions,
    escape_xml,
    format_tally_date,
    render_tally_xml,
)
from tests.conftest import make_credit_note, make_delivery, make_payment, make_refund


def _parse(xml):
    return etree.fromstring(xml.encode("utf-8"))


class TestHelpers:

    def test_escape_all_special_characters(self):
        assert escape_xml("""A&B <c> "d" 'e'""") == (
            "A&amp;B &lt;c&gt; &quot;d&quot; &apos;e&apos;"
        )

    @pytest.mark.parametrize("value", [None, ""])
    def test_escape_empty(self, value):
        assert escape_xml(value) == ""

    def test_date_format(self):
        assert format_tally_date(date(2024, 1, 5)) == "05-01-2024"
        assert format_tally_date(None) == ""


class TestRenderTallyXml:

    def setup_method(self):
        self.options = TallyXmlOptions(company_name="Acme Builders")

    def test_envelope_and_ledger_master(self, sample_ledger):
        root = _parse(render_tally_xml(sample_ledger, self.options))
        assert root.tag == "ENVELOPE"
        assert root.findtext("HEADER/TALLYREQUEST") == "Import Data"
        assert root.findtext(".//SVCURRENTCOMPANY") == "Acme Builders"
        assert root.findtext(".//REMOTECMPNAME") == "Acme Builders"
        ledger = root.find(".//LEDGER")
        assert ledger.get("NAME") == "Ravi Kumar"
        assert ledger.findtext("PARENT") == "Sundry Creditors"
        assert ledger.findtext("LEDGERCONTACT") == "ravi@example.com"
        assert ledger.findtext("OPENINGBALANCE") == "2000.00"

    def test_vouchers(self, sample_ledger):
        root = _parse(render_tally_xml(sample_ledger, self.options))
        purchase, payment = root.findall(".//VOUCHER")

        assert purchase.get("VCHTYPE") == "Purchase"
        assert purchase.findtext("DATE") == "15-01-2024"
        assert purchase.findtext("VOUCHERNUMBER") == "INV-1"
        assert purchase.findtext("NARRATION") == "Invoice: INV-1"
        assert purchase.findtext("LEDGERENTRIES.LIST/AMOUNT") == "5000.00"
        assert purchase.findtext("LEDGERENTRIES.LIST/ISDEEMEDPOSITIVE") == "Yes"

        assert payment.get("VCHTYPE") == "Payment"
        assert payment.findtext("VOUCHERNUMBER") == "VCH0002"
        assert payment.findtext("LEDGERENTRIES.LIST/AMOUNT") == "-3000.00"
        assert payment.findtext("LEDGERENTRIES.LIST/ISDEEMEDPOSITIVE") == "No"
        assert payment.findtext("PARTYLEDGERNAME") == "Ravi Kumar"

    def test_other_entries_are_journals(self, vendor):
        ledger = LedgerBuilder().build(
            vendor,
            credit_notes=[make_credit_note("cn1", "50", on=date(2024, 1, 3), reason="Rate")],
            refunds=[make_refund("rf1", "20", date(2024, 1, 4))],
        )
        root = _parse(render_tally_xml(ledger, self.options))
        assert [v.get("VCHTYPE") for v in root.findall(".//VOUCHER")] == [
            "Journal", "Journal",
        ]

    def test_negative_final_balance_opens_at_zero(self, vendor):
        ledger = LedgerBuilder().build(
            vendor, payments=[make_payment("p1", "10", date(2024, 1, 1))]
        )
        root = _parse(render_tally_xml(ledger, self.options))
        assert root.findtext(".//OPENINGBALANCE") == "0.00"

    def test_special_characters_survive(self):
        vendor = Vendor(id="v1", name="R&D", contact_person='Tom "T" <Bricks>')
        ledger = LedgerBuilder().build(vendor, payments=[
            make_payment("p1", "10", date(2024, 1, 1), "A&B", notes="Tom's cheque"),
        ])
        options = TallyXmlOptions(company_name="Me & Co")
        xml = render_tally_xml(ledger, options)
        root = _parse(xml)
        assert root.find(".//LEDGER").get("NAME") == 'Tom "T" <Bricks>'
        assert root.findtext(".//SVCURRENTCOMPANY") == "Me & Co"
        assert root.findtext(".//NARRATION") == "Payment Made - A&B - Tom's cheque"
        assert "&amp;" in xml

    def test_narration_and_number_can_be_omitted(self, sample_ledger):
        options = TallyXmlOptions(
            company_name="Acme", include_narration=False, include_voucher_number=False,
        )
        root = _parse(render_tally_xml(sample_ledger, options))
        for voucher in root.findall(".//VOUCHER"):
            assert not voucher.findtext("NARRATION")
            assert not voucher.findtext("VOUCHERNUMBER")

    def test_empty_ledger(self, vendor):
        root = _parse(render_tally_xml(LedgerBuilder().build(vendor), self.options))
        assert root.findall(".//VOUCHER") == []
        assert root.findtext(".//OPENINGBALANCE") == "0.00"

    def test_undated_entry_has_empty_date(self, vendor):
        ledger = LedgerBuilder().build(vendor, deliveries=[make_delivery("d1", "5", None)])
        root = _parse(render_tally_xml(ledger, self.options))
        assert not root.findtext(".//VOUCHER/DATE")
