"""
Vendor Ledger Export Service (``payables_modules.vendor_ledger.service``).

Responsibility
--------------
Builds a vendor's ledger from collaborator records (optionally restricted
to a date period) and renders it as CSV, PDF or Tally XML.

Architecture position
---------------------
**Modules layer** -- thin glue between the pure ``LedgerBuilder`` engine
and the three renderers.  Constructor: ``config`` + ``clock``.  Saving the
returned bytes is the caller's concern.

Invariants enforced
-------------------
* The "generated" stamp comes from the injected clock, never the system
  time directly.
* All three formats render the same ``VendorLedger``.

Failure modes
-------------
* Unknown format  -> ``UnknownExportFormatError``.
* Renderer failure  -> ``LedgerRenderError`` chained to the original
  exception.  A missing logo is not a failure (see ``pdf_export``).
"""

from __future__ import annotations

import re
from collections.abc import Sequence
from datetime import date

from payables_config.schema import LedgerExportConfig
from payables_engines.ledger import LedgerBuilder, LedgerParticulars, VendorLedger
from payables_kernel.domain.clock import Clock, SystemClock
from payables_kernel.domain.records import (
    CreditNote,
    CreditNoteUsage,
    Obligation,
    Payment,
    Vendor,
    VendorRefund,
    VendorReturn,
)
from payables_kernel.exceptions import LedgerRenderError
from payables_kernel.logging_config import LogContext, get_logger
from payables_modules.vendor_ledger.csv_export import render_ledger_csv
from payables_modules.vendor_ledger.models import ExportFormat, LedgerExport, LedgerPeriod
from payables_modules.vendor_ledger.pdf_export import build_ledger_pdf
from payables_modules.vendor_ledger.tally_xml import TallyXmlOptions, render_tally_xml

logger = get_logger("modules.vendor_ledger.service")

_FILENAME_UNSAFE = re.compile(r"[^A-Za-z0-9]+")


class LedgerExportService:
    """
    Vendor ledger export service.

    Contract
    --------
    * ``build_ledger`` returns a ``VendorLedger``; ``export`` returns a
      ``LedgerExport`` carrying the rendered content.

    Non-goals
    ---------
    * Does NOT query records; callers pass one vendor's rows.
    * Does NOT write files.
    """

    def __init__(
        self,
        config: LedgerExportConfig | None = None,
        clock: Clock | None = None,
        particulars: LedgerParticulars | None = None,
    ):
        self._config = config or LedgerExportConfig.with_defaults()
        self._clock = clock or SystemClock()
        self._builder = LedgerBuilder(particulars)

        logger.info("ledger_export_service_initialized", extra={
            "config_checksum": self._config.checksum,
        })

    @property
    def config(self) -> LedgerExportConfig:
        return self._config

    def build_ledger(
        self,
        vendor: Vendor,
        deliveries: Sequence[Obligation] = (),
        payments: Sequence[Payment] = (),
        returns: Sequence[VendorReturn] = (),
        credit_notes: Sequence[CreditNote] = (),
        refunds: Sequence[VendorRefund] = (),
        credit_note_usages: Sequence[CreditNoteUsage] = (),
        period: LedgerPeriod | None = None,
    ) -> VendorLedger:
        """Build the ledger and apply ``period`` when it is active."""
        ledger = self._builder.build(
            vendor, deliveries, payments, returns, credit_notes, refunds,
            credit_note_usages=credit_note_usages,
        )
        if period is not None and period.is_active:
            ledger = self._builder.filter(ledger, period.from_date, period.to_date)
        return ledger

    def export(
        self,
        ledger: VendorLedger,
        export_format: ExportFormat | str,
    ) -> LedgerExport:
        """Render ``ledger`` in ``export_format``."""
        fmt = ExportFormat.parse(export_format)
        generated_at = self._clock.now()
        generated_on = self._clock.today()

        with LogContext.bind(vendor_id=ledger.vendor.id):
            try:
                content = self._render(fmt, ledger, generated_on)
            except Exception as e:
                logger.exception("ledger_export_failed", extra={
                    "export_format": fmt.value,
                    "error_type": type(e).__name__,
                })
                raise LedgerRenderError(fmt.value, ledger.vendor.id, str(e)) from e

            export = LedgerExport(
                export_format=fmt,
                vendor_id=ledger.vendor.id,
                filename=self._filename(ledger, fmt, generated_on.isoformat()),
                content=content,
                generated_at=generated_at,
                config_checksum=self._config.checksum,
                entry_count=len(ledger.entries),
            )
            logger.info("ledger_exported", extra={
                "export_format": fmt.value,
                "entry_count": export.entry_count,
                "export_filename": export.filename,
            })
        return export

    def _render(
        self,
        fmt: ExportFormat,
        ledger: VendorLedger,
        generated_on: date,
    ) -> str | bytes:
        config = self._config
        if fmt is ExportFormat.CSV:
            return render_ledger_csv(
                ledger,
                config.labels,
                generated_on,
                currency_symbol=config.currency_symbol,
                places=config.csv_places,
            )
        if fmt is ExportFormat.PDF:
            document = build_ledger_pdf(ledger, config.labels, config.pdf, generated_on)
            return document.to_bytes()
        options = TallyXmlOptions.from_settings(
            config.tally, ledger.period_from, ledger.period_to
        )
        return render_tally_xml(ledger, options)

    @staticmethod
    def _filename(ledger: VendorLedger, fmt: ExportFormat, stamp: str) -> str:
        vendor = ledger.vendor
        slug = _FILENAME_UNSAFE.sub("_", vendor.name or vendor.display_name).strip("_")
        suffix = "_tally" if fmt is ExportFormat.TALLY_XML else ""
        return f"{slug or 'vendor'}_ledger{suffix}_{stamp}.{fmt.extension}"
