"""
Tally import XML for a vendor ledger.

The document follows Tally's "Import Data / Vouchers" envelope: a company
block, one LEDGER master for the vendor under the configured parent group,
then one VOUCHER per ledger entry carrying a single party-ledger line.

Text is assembled from fixed templates so the output is byte-stable for a
given ledger; every free-text value goes through ``escape_xml``.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date

from payables_config.schema import TallySettings
from payables_engines.ledger import EntryCategory, LedgerEntry, VendorLedger
from payables_kernel.domain.values import ZERO, format_fixed
from payables_kernel.logging_config import get_logger

logger = get_logger("modules.vendor_ledger.tally")

_XML_ESCAPES = (
    ("&", "&amp;"),
    ("<", "&lt;"),
    (">", "&gt;"),
    ('"', "&quot;"),
    ("'", "&apos;"),
)

_VOUCHER_TYPES = {
    EntryCategory.PAYMENT: "Payment",
    EntryCategory.DELIVERY: "Purchase",
}

_EMPTY_LISTS = (
    "SERVICETAXDETAILS.LIST",
    "BANKALLOCATIONS.LIST",
    "BILLALLOCATIONS.LIST",
    "INTERESTCOLLECTION.LIST",
    "OLDAUDITENTRIES.LIST",
    "ACCOUNTAUDITENTRIES.LIST",
    "AUDITENTRIES.LIST",
    "INPUTCRALLOCS.LIST",
    "DUTYHEADDETAILS.LIST",
    "EXCISEDUTYHEADDETAILS.LIST",
    "RATEDETAILS.LIST",
    "SUMMARYALLOCS.LIST",
    "STPYMTDETAILS.LIST",
    "EXCISEPAYMENTALLOCATIONS.LIST",
    "TAXBILLALLOCATIONS.LIST",
    "TAXOBJECTALLOCATIONS.LIST",
    "TDSEXPENSEALLOCATIONS.LIST",
    "VATSTATUTORYDETAILS.LIST",
    "COSTTRACKALLOCATIONS.LIST",
    "REFVOUCHERDETAILS.LIST",
    "INVOICEWISEDETAILS.LIST",
    "VATITCDETAILS.LIST",
    "ADVANCETAXDETAILS.LIST",
)

_HEADER = """<?xml version="1.0" encoding="UTF-8"?>
<ENVELOPE>
  <HEADER>
    <TALLYREQUEST>Import Data</TALLYREQUEST>
  </HEADER>
  <BODY>
    <IMPORTDATA>
      <REQUESTDESC>
        <REPORTNAME>Vouchers</REPORTNAME>
        <STATICVARIABLES>
          <SVCURRENTCOMPANY>{company}</SVCURRENTCOMPANY>
        </STATICVARIABLES>
      </REQUESTDESC>
      <REQUESTDATA>
        <TALLYMESSAGE xmlns:UDF="TallyUDF">
          <COMPANY>
            <REMOTECMPINFO.LIST>
              <NAME>{company}</NAME>
              <REMOTECMPNAME>{company}</REMOTECMPNAME>
            </REMOTECMPINFO.LIST>
          </COMPANY>
"""

_LEDGER = """
          <LEDGER NAME="{vendor}" RESERVEDNAME="">
            <OLDAUDITENTRYIDS.LIST TYPE="Number">
              <OLDAUDITENTRYIDS>-1</OLDAUDITENTRYIDS>
            </OLDAUDITENTRYIDS.LIST>
            <GUID></GUID>
            <PARENT>{parent}</PARENT>
            <LEDGERNAME>{vendor}</LEDGERNAME>
            <LEDGERPHONE>{phone}</LEDGERPHONE>
            <LEDGERCONTACT>{email}</LEDGERCONTACT>
            <LEDGERADDRESS>{address}</LEDGERADDRESS>
            <OPENINGBALANCE>{opening}</OPENINGBALANCE>
            <ISCOSTCENTRESON>No</ISCOSTCENTRESON>
            <ISADDABLE>No</ISADDABLE>
            <ISAUDITED>No</ISAUDITED>
            <ISFROMSYSVCH>No</ISFROMSYSVCH>
            <ISDELETED>No</ISDELETED>
            <ISSYSTEM>No</ISSYSTEM>
            <ISEXCLUDEFROMSTOCK>No</ISEXCLUDEFROMSTOCK>
            <ISUPDATINGTARGETID>No</ISUPDATINGTARGETID>
            <ASORIGINAL>Yes</ASORIGINAL>
            <ISRATEINCLUSIVEVAT>No</ISRATEINCLUSIVEVAT>
            <ISPOSINVOICE>No</ISPOSINVOICE>
            <ISINVOICE>No</ISINVOICE>
            <MAILLABEL.LIST>
              <MAILLABEL>General</MAILLABEL>
            </MAILLABEL.LIST>
          </LEDGER>
"""

_VOUCHER = """
          <VOUCHER REMOTEID="" VCHKEY="" VCHTYPE="{vtype}" ACTION="Create" OBJVIEW="Invoice Voucher View">
            <OLDAUDITENTRYIDS.LIST TYPE="Number">
              <OLDAUDITENTRYIDS>-1</OLDAUDITENTRYIDS>
            </OLDAUDITENTRYIDS.LIST>
            <DATE>{vdate}</DATE>
            <GUID></GUID>
            <NARRATION>{narration}</NARRATION>
            <VOUCHERTYPENAME>{vtype}</VOUCHERTYPENAME>
            <VOUCHERNUMBER>{number}</VOUCHERNUMBER>
            <PARTYLEDGERNAME>{vendor}</PARTYLEDGERNAME>
            <BASICBASEPARTYNAME>{vendor}</BASICBASEPARTYNAME>
            <PERSISTEDVIEW>Invoice Voucher View</PERSISTEDVIEW>
            <VCHGSTCLASS/>
            <ENTRYTYPE>Item Invoice</ENTRYTYPE>
            <DIFFACTUALQTY>No</DIFFACTUALQTY>
            <AUDITED>No</AUDITED>
            <FORJOBCOSTING>No</FORJOBCOSTING>
            <ISDELETED>No</ISDELETED>
            <ASORIGINAL>Yes</ASORIGINAL>
            <INVOICEDATE>{vdate}</INVOICEDATE>
            <BASICBUYERNAME>{vendor}</BASICBUYERNAME>
            <ISINVOICE>Yes</ISINVOICE>
            <LEDGERENTRIES.LIST>
              <OLDAUDITENTRYIDS.LIST TYPE="Number">
                <OLDAUDITENTRYIDS>-1</OLDAUDITENTRYIDS>
              </OLDAUDITENTRYIDS.LIST>
              <LEDGERNAME>{vendor}</LEDGERNAME>
              <GSTCLASS/>
              <ISDEEMEDPOSITIVE>{positive}</ISDEEMEDPOSITIVE>
              <LEDGERFROMITEM>No</LEDGERFROMITEM>
              <REMOVEZEROENTRIES>No</REMOVEZEROENTRIES>
              <ISPARTYLEDGER>Yes</ISPARTYLEDGER>
              <ISLASTDEEMEDPOSITIVE>{positive}</ISLASTDEEMEDPOSITIVE>
              <AMOUNT>{amount}</AMOUNT>
{empty_lists}
            </LEDGERENTRIES.LIST>
          </VOUCHER>
"""

_FOOTER = """
        </TALLYMESSAGE>
      </REQUESTDATA>
    </IMPORTDATA>
  </BODY>
</ENVELOPE>"""


@dataclass(frozen=True)
class TallyXmlOptions:
    """Per-export Tally settings."""

    company_name: str
    period_from: date | None = None
    period_to: date | None = None
    include_narration: bool = True
    include_voucher_number: bool = True
    parent_group: str = "Sundry Creditors"

    @classmethod
    def from_settings(
        cls,
        settings: TallySettings,
        period_from: date | None = None,
        period_to: date | None = None,
    ) -> TallyXmlOptions:
        return cls(
            company_name=settings.company_name,
            period_from=period_from,
            period_to=period_to,
            include_narration=settings.include_narration,
            include_voucher_number=settings.include_voucher_number,
            parent_group=settings.parent_group,
        )


def escape_xml(text: str | None) -> str:
    """Escape ``& < > " '`` for element and attribute content."""
    if not text:
        return ""
    for raw, escaped in _XML_ESCAPES:
        text = text.replace(raw, escaped)
    return text


def format_tally_date(value: date | None) -> str:
    """``DD-MM-YYYY``; empty for undated entries."""
    return value.strftime("%d-%m-%Y") if value is not None else ""


def voucher_type(entry: LedgerEntry) -> str:
    return _VOUCHER_TYPES.get(entry.category, "Journal")


def voucher_amount(entry: LedgerEntry) -> str:
    """Debits are positive, credits negative, always two decimals."""
    if entry.debit > ZERO:
        return format_fixed(entry.debit, 2)
    return f"-{format_fixed(entry.credit, 2)}"


def _voucher(entry: LedgerEntry, index: int, vendor: str, options: TallyXmlOptions) -> str:
    number = ""
    if options.include_voucher_number:
        number = escape_xml(entry.reference or f"VCH{index + 1:04d}")
    narration = ""
    if options.include_narration:
        text = entry.particulars
        if entry.details:
            text = f"{text} - {entry.details}"
        narration = escape_xml(text)
    vtype = voucher_type(entry)
    empty_lists = "\n".join(
        f"              <{tag}>       </{tag}>" for tag in _EMPTY_LISTS
    )
    return _VOUCHER.format(
        vtype=vtype,
        vdate=format_tally_date(entry.date),
        narration=narration,
        number=number,
        vendor=vendor,
        positive="Yes" if entry.debit > ZERO else "No",
        amount=voucher_amount(entry),
        empty_lists=empty_lists,
    )


def render_tally_xml(ledger: VendorLedger, options: TallyXmlOptions) -> str:
    """Render the Tally import document for ``ledger``."""
    vendor = ledger.vendor
    vendor_name = escape_xml(vendor.display_name)
    company = escape_xml(options.company_name)
    final_balance = ledger.totals.final_balance

    parts = [_HEADER.format(company=company)]
    parts.append(_LEDGER.format(
        vendor=vendor_name,
        parent=escape_xml(options.parent_group),
        phone=escape_xml(vendor.phone),
        email=escape_xml(vendor.email),
        address=escape_xml(vendor.address),
        opening=format_fixed(final_balance, 2) if final_balance >= ZERO else "0.00",
    ))
    parts.extend(
        _voucher(entry, index, vendor_name, options)
        for index, entry in enumerate(ledger.entries)
    )
    parts.append(_FOOTER)

    logger.debug("ledger_tally_xml_rendered", extra={
        "vendor_id": vendor.id,
        "voucher_count": len(ledger.entries),
        "company": options.company_name,
    })
    return "".join(parts)
