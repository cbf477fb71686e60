"""
Module: payables_modules.vendor_ledger.pdf_export
Responsibility:
    Lay out a vendor ledger as a paginated A4 document and render it to PDF
    bytes through reportlab.

Architecture position:
    Modules layer.  Layout is computed first as plain data
    (``LedgerPdfDocument`` pages of positioned text and rules, in mm with a
    top-down y axis), then drawn onto a reportlab canvas in ``to_bytes``.
    Text widths are measured with ``reportlab.pdfbase.pdfmetrics``.

Invariants enforced:
    - Six fixed-width columns; particulars and reference cells are
      truncated with a trailing "..." until they fit (width - 2 mm).
    - A new page starts when the cursor passes ``row_break_y`` before a
      row, or ``summary_break_y`` before the summary block.
    - Every page carries the footer rule, footer text and "Page N".
    - Summary balance = opening + debits - credits, matching the CSV.

Failure modes:
    - Logo problems (missing file, undecodable image) never fail the export:
      the document is produced without a logo and a warning is logged.
    - Any other reportlab error propagates from ``to_bytes``.
"""

from __future__ import annotations

import io
from dataclasses import dataclass, field
from datetime import date
from pathlib import Path
from typing import Any

from reportlab.lib.pagesizes import A4
from reportlab.lib.units import mm
from reportlab.lib.utils import ImageReader
from reportlab.pdfbase import pdfmetrics
from reportlab.pdfgen import canvas

from payables_config.schema import LedgerLabels, PdfLayout
from payables_engines.ledger import VendorLedger
from payables_kernel.domain.values import format_fixed
from payables_kernel.logging_config import get_logger
from payables_modules.vendor_ledger.formatting import (
    balance_summary_text,
    format_amount,
    format_balance,
    format_iso_date,
    format_period,
)

logger = get_logger("modules.vendor_ledger.pdf")

PAGE_WIDTH_MM = A4[0] / mm
PAGE_HEIGHT_MM = A4[1] / mm

FONT_REGULAR = "Helvetica"
FONT_BOLD = "Helvetica-Bold"

BLACK = (0, 0, 0)
FOOTER_GRAY = (107, 114, 128)
RULE_GRAY = (200, 200, 200)


@dataclass(frozen=True)
class PdfText:
    x: float
    y: float
    text: str
    font: str = FONT_REGULAR
    size: float = 8
    color: tuple[int, int, int] = BLACK


@dataclass(frozen=True)
class PdfRule:
    x1: float
    y1: float
    x2: float
    y2: float
    color: tuple[int, int, int] = BLACK


@dataclass(frozen=True)
class PdfLogo:
    """Logo fitted into the header box; ``image`` is the decoded reader."""

    x: float
    y: float
    width: float
    height: float
    image: Any = field(default=None, compare=False, repr=False)


@dataclass
class PdfPage:
    number: int
    texts: list[PdfText] = field(default_factory=list)
    rules: list[PdfRule] = field(default_factory=list)

    @property
    def strings(self) -> list[str]:
        return [t.text for t in self.texts]


@dataclass
class LedgerPdfDocument:
    """
    Laid-out ledger document.

    Pages hold positioned items only; nothing is drawn until ``to_bytes``.
    """

    title: str
    pages: list[PdfPage]
    logo: PdfLogo | None = None

    @property
    def page_count(self) -> int:
        return len(self.pages)

    def all_strings(self) -> list[str]:
        return [s for page in self.pages for s in page.strings]

    def to_bytes(self) -> bytes:
        """Draw every page onto a reportlab canvas and return the PDF."""
        buffer = io.BytesIO()
        pdf = canvas.Canvas(buffer, pagesize=A4)
        pdf.setTitle(self.title)
        for page in self.pages:
            if page.number == 1 and self.logo is not None:
                pdf.drawImage(
                    self.logo.image,
                    self.logo.x * mm,
                    (PAGE_HEIGHT_MM - self.logo.y - self.logo.height) * mm,
                    width=self.logo.width * mm,
                    height=self.logo.height * mm,
                    mask="auto",
                )
            for rule in page.rules:
                pdf.setStrokeColorRGB(*(c / 255 for c in rule.color))
                pdf.line(
                    rule.x1 * mm,
                    (PAGE_HEIGHT_MM - rule.y1) * mm,
                    rule.x2 * mm,
                    (PAGE_HEIGHT_MM - rule.y2) * mm,
                )
            for text in page.texts:
                pdf.setFont(text.font, text.size)
                pdf.setFillColorRGB(*(c / 255 for c in text.color))
                pdf.drawString(text.x * mm, (PAGE_HEIGHT_MM - text.y) * mm, text.text)
            pdf.showPage()
        pdf.save()
        return buffer.getvalue()


def text_width_mm(text: str, font: str, size: float) -> float:
    return pdfmetrics.stringWidth(text, font, size) / mm


def truncate_to_width(text: str, max_width: float, font: str, size: float) -> str:
    """Drop characters and append "..." until ``text`` fits ``max_width`` mm."""
    while text_width_mm(text, font, size) > max_width and len(text) > 3:
        text = text[:-4] + "..."
    return text


def fit_logo(
    pixel_width: float,
    pixel_height: float,
    max_width: float,
    max_height: float,
) -> tuple[float, float]:
    """Scale to ``max_width``, or to ``max_height`` if that is too tall."""
    aspect = pixel_width / pixel_height
    width = max_width
    height = max_width / aspect
    if height > max_height:
        height = max_height
        width = max_height * aspect
    return width, height


def load_logo(path: str | Path | None, layout: PdfLayout) -> PdfLogo | None:
    """Decode and place the header logo; ``None`` when unavailable."""
    if not path:
        return None
    try:
        image = ImageReader(str(path))
        pixel_width, pixel_height = image.getSize()
        width, height = fit_logo(
            pixel_width, pixel_height, layout.logo_max_width, layout.logo_max_height
        )
    except Exception as e:  # noqa: BLE001 - a broken logo degrades to no logo
        logger.warning("ledger_pdf_logo_unavailable", extra={
            "path": str(path),
            "error": str(e),
        })
        return None
    return PdfLogo(
        x=PAGE_WIDTH_MM - layout.margin - width,
        y=layout.start_y - 5,
        width=width,
        height=height,
        image=image,
    )


class _PageWriter:
    """Cursor over the pages being laid out."""

    def __init__(self, layout: PdfLayout):
        self.layout = layout
        self.pages: list[PdfPage] = [PdfPage(number=1)]
        self.y = layout.start_y

    @property
    def page(self) -> PdfPage:
        return self.pages[-1]

    def new_page(self) -> None:
        self.pages.append(PdfPage(number=len(self.pages) + 1))
        self.y = self.layout.start_y

    def text(self, x: float, text: str, font: str = FONT_REGULAR, size: float = 8) -> None:
        self.page.texts.append(PdfText(x=x, y=self.y, text=text, font=font, size=size))

    def rule(self) -> None:
        self.page.rules.append(
            PdfRule(self.layout.margin, self.y, PAGE_WIDTH_MM - self.layout.margin, self.y)
        )

    def row(self, cells: list[str], font: str = FONT_REGULAR, size: float = 8) -> None:
        x = self.layout.margin
        for cell, width in zip(cells, self.layout.column_widths):
            if cell:
                self.text(x, cell, font, size)
            x += width

    def footers(self, footer_text: str, page_label: str) -> None:
        margin = self.layout.margin
        footer_y = PAGE_HEIGHT_MM - 15
        for page in self.pages:
            page.rules.append(PdfRule(
                margin, footer_y - 5, PAGE_WIDTH_MM - margin, footer_y - 5, RULE_GRAY
            ))
            page.texts.append(PdfText(
                margin, footer_y, footer_text, FONT_REGULAR, 8, FOOTER_GRAY
            ))
            page.texts.append(PdfText(
                PAGE_WIDTH_MM - margin - 15,
                footer_y,
                f"{page_label} {page.number}",
                FONT_REGULAR,
                8,
                FOOTER_GRAY,
            ))


def build_ledger_pdf(
    ledger: VendorLedger,
    labels: LedgerLabels,
    layout: PdfLayout,
    generated_on: date,
) -> LedgerPdfDocument:
    """Lay out ``ledger`` page by page."""
    places = layout.amount_places
    widths = layout.column_widths
    margin = layout.margin
    vendor = ledger.vendor

    logo = load_logo(layout.logo_path, layout)
    writer = _PageWriter(layout)

    writer.y += 10
    writer.text(margin, labels.vendor_ledger, FONT_BOLD, 18)

    writer.y += 12
    writer.text(margin, f"{labels.vendor}: {vendor.name or vendor.display_name}", size=12)
    writer.y += 6
    if vendor.contact_person:
        writer.text(margin, f"{labels.contact}: {vendor.contact_person}", size=12)
        writer.y += 6
    writer.text(margin, f"{labels.generated}: {generated_on.isoformat()}", size=12)

    if ledger.is_filtered:
        writer.y += 6
        period = format_period(ledger.period_from, ledger.period_to, labels)
        writer.text(margin, f"{labels.filter_period}: {period}", size=12)

    writer.y += 15
    writer.row(list(labels.column_headers), FONT_BOLD, 9)
    writer.y += 6
    writer.rule()
    writer.y += 5

    if ledger.has_opening_balance:
        writer.row([
            format_iso_date(ledger.period_from),
            labels.opening_balance,
            "",
            "",
            "",
            format_balance(ledger.opening_balance, places),
        ])
        writer.y += layout.row_height

    for entry in ledger.entries:
        if writer.y > layout.row_break_y:
            writer.new_page()
        writer.row([
            format_iso_date(entry.date),
            truncate_to_width(entry.particulars, widths[1] - 2, FONT_REGULAR, 8),
            truncate_to_width(entry.reference or "-", widths[2] - 2, FONT_REGULAR, 8),
            format_amount(entry.debit, places, blank="-"),
            format_amount(entry.credit, places, blank="-"),
            format_balance(entry.running_balance, places),
        ])
        writer.y += layout.row_height

    if writer.y > layout.summary_break_y:
        writer.new_page()

    writer.y += 8
    writer.rule()
    writer.y += 6

    totals = ledger.totals
    writer.row([
        labels.totals,
        "",
        "",
        format_fixed(totals.total_debits, places),
        format_fixed(totals.total_credits, places),
        format_balance(ledger.closing_balance, places),
    ], FONT_BOLD, 9)

    writer.y += 8
    writer.text(
        margin,
        balance_summary_text(ledger.closing_balance, labels, layout.currency_symbol, places),
        FONT_BOLD,
        11,
    )

    writer.footers(layout.footer_text, labels.page)

    logger.debug("ledger_pdf_laid_out", extra={
        "vendor_id": vendor.id,
        "entry_count": len(ledger.entries),
        "page_count": len(writer.pages),
        "has_logo": logo is not None,
    })
    return LedgerPdfDocument(
        title=f"{labels.vendor_ledger} - {vendor.display_name}",
        pages=writer.pages,
        logo=logo,
    )
