"""
Vendor Ledger Module (``payables_modules.vendor_ledger``).

Responsibility
--------------
Exports a vendor's running-balance ledger in three formats: CSV, a
paginated A4 PDF and a Tally "Import Data" XML document.  All three share
the Cr/Dr sign convention: a non-negative balance is owed to the vendor
(Cr), a negative one is a credit balance with the vendor (Dr).

Architecture position
---------------------
**Modules layer** -- consumes ``payables_engines.ledger`` and
``payables_config``; no I/O beyond reading an optional logo image.
"""

from payables_modules.vendor_ledger.csv_export import render_ledger_csv
from payables_modules.vendor_ledger.models import ExportFormat, LedgerExport, LedgerPeriod
from payables_modules.vendor_ledger.pdf_export import LedgerPdfDocument, build_ledger_pdf
from payables_modules.vendor_ledger.service import LedgerExportService
from payables_modules.vendor_ledger.tally_xml import TallyXmlOptions, render_tally_xml

__all__ = [
    "ExportFormat",
    "LedgerExport",
    "LedgerExportService",
    "LedgerPdfDocument",
    "LedgerPeriod",
    "TallyXmlOptions",
    "build_ledger_pdf",
    "render_ledger_csv",
    "render_tally_xml",
]
