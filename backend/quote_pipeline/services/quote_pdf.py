"""Render a quote snapshot into a paginated A4 PDF.

The renderer only lays out values that are already on the snapshot; totals
come from the pricing calculator and are never recomputed here.

Continuation pages start straight at the top margin without repeating the
header or client block.
"""

from __future__ import annotations

import logging
from datetime import date, datetime, timezone
from decimal import Decimal
from io import BytesIO
from typing import Optional

from reportlab.lib import colors
from reportlab.lib.pagesizes import A4
from reportlab.lib.utils import simpleSplit
from reportlab.pdfgen import canvas

from ..schemas.quote import LineItem, QuoteSnapshot

logger = logging.getLogger(__name__)

PAGE_WIDTH, PAGE_HEIGHT = A4
LEFT_MARGIN = 50
RIGHT_EDGE = PAGE_WIDTH - 50
TOP_MARGIN = PAGE_HEIGHT - 50
# A new page starts when a block would end below this line
BOTTOM_MARGIN = 60

ROW_HEIGHT = 18
DESCRIPTION_HEIGHT = 12
FOOTER_LINE_HEIGHT = 16
TERMS_LINE_HEIGHT = 12
CLIENT_LINE_HEIGHT = 14
NAME_CHAR_BUDGET = 45

QTY_X = RIGHT_EDGE - 210
UNIT_PRICE_X = RIGHT_EDGE - 100
TERMS_VALUE_X = LEFT_MARGIN + 95

BRAND = colors.HexColor("#3b82f6")
MUTED = colors.HexColor("#6b7280")
BORDER = colors.HexColor("#e5e7eb")


def truncate(text: str, budget: int = NAME_CHAR_BUDGET) -> str:
    if len(text) <= budget:
        return text
    return text[: budget - 3].rstrip() + "..."


class _DocumentWriter:
    """Canvas plus a vertical cursor for a single render."""

    def __init__(self, buffer: BytesIO, title: str, author: str) -> None:
        self.canvas = canvas.Canvas(buffer, pagesize=A4, invariant=1)
        self.canvas.setTitle(title)
        self.canvas.setAuthor(author)
        self.y = TOP_MARGIN
        self.pages = 1

    def ensure_space(self, height: float) -> None:
        if self.y - height < BOTTOM_MARGIN:
            self.canvas.showPage()
            self.pages += 1
            self.y = TOP_MARGIN

    def font(self, name: str, size: float, color=colors.black) -> None:
        self.canvas.setFont(name, size)
        self.canvas.setFillColor(color)

    def rule(self, gap: float = 8) -> None:
        self.canvas.setStrokeColor(BORDER)
        self.canvas.setLineWidth(0.5)
        self.canvas.line(LEFT_MARGIN, self.y, RIGHT_EDGE, self.y)
        self.y -= gap

    def finish(self) -> None:
        self.canvas.showPage()
        self.canvas.save()


class QuoteDocumentRenderer:
    def __init__(
        self,
        issuer_name: str = "ChargeSource",
        issuer_tagline: str = "",
        currency_symbol: str = "$",
    ) -> None:
        self.issuer_name = issuer_name
        self.issuer_tagline = issuer_tagline
        self.currency_symbol = currency_symbol

    def money(self, value: Optional[Decimal]) -> str:
        amount = Decimal(value or 0)
        sign = "-" if amount < 0 else ""
        return f"{sign}{self.currency_symbol}{abs(amount):,.2f}"

    def render(self, quote: QuoteSnapshot, issued_on: Optional[date] = None) -> bytes:
        """Return PDF bytes for ``quote``."""
        issued_on = issued_on or datetime.now(timezone.utc).date()
        buffer = BytesIO()
        doc = _DocumentWriter(buffer, title=f"Quote {quote.quote_number}", author=self.issuer_name)

        self._header(doc, quote, issued_on)
        self._client_block(doc, quote)
        self._table_header(doc)
        for item in quote.line_items:
            self._row(doc, item)
        self._footer(doc, quote)
        if quote.settings is not None:
            self._terms(doc, quote)

        doc.finish()
        pdf = buffer.getvalue()
        logger.info(
            "Rendered quote %s: %d line items, %d pages, %d bytes",
            quote.id,
            len(quote.line_items),
            doc.pages,
            len(pdf),
        )
        return pdf

    def _header(self, doc: _DocumentWriter, quote: QuoteSnapshot, issued_on: date) -> None:
        c = doc.canvas
        top = doc.y
        if self.issuer_tagline:
            doc.font("Helvetica", 10, MUTED)
            c.drawString(LEFT_MARGIN, top - 22, self.issuer_tagline)

        doc.font("Helvetica-Bold", 14, BRAND)
        c.drawRightString(RIGHT_EDGE, top, self.issuer_name)
        doc.font("Helvetica-Bold", 20)
        c.drawRightString(RIGHT_EDGE, top - 22, "QUOTATION")
        doc.font("Helvetica", 11)
        lines = [f"Quote #{quote.quote_number}", f"Date: {issued_on:%Y-%m-%d}"]
        if quote.valid_until is not None:
            lines.append(f"Valid until: {quote.valid_until:%Y-%m-%d}")
        y = top - 40
        for line in lines:
            c.drawRightString(RIGHT_EDGE, y, line)
            y -= 14
        doc.y = y - 6
        doc.rule(gap=24)

    def _client_block(self, doc: _DocumentWriter, quote: QuoteSnapshot) -> None:
        info = quote.client_info
        lines = [
            info.company or info.name,
            info.contact_person,
            info.email,
            info.phone,
            *((info.address or "").splitlines()),
            f"ABN: {info.abn}" if info.abn else None,
        ]
        doc.ensure_space(16 + CLIENT_LINE_HEIGHT)
        doc.font("Helvetica-Bold", 13)
        doc.canvas.drawString(LEFT_MARGIN, doc.y, "Bill To:")
        doc.y -= 16
        for line in lines:
            if not line or not line.strip():
                continue
            doc.ensure_space(CLIENT_LINE_HEIGHT)
            doc.font("Helvetica", 11)
            doc.canvas.drawString(LEFT_MARGIN, doc.y, line.strip())
            doc.y -= CLIENT_LINE_HEIGHT
        doc.y -= 16

    def _table_header(self, doc: _DocumentWriter) -> None:
        c = doc.canvas
        doc.ensure_space(ROW_HEIGHT + 8)
        doc.font("Helvetica-Bold", 10)
        c.drawString(LEFT_MARGIN, doc.y, "Description")
        c.drawRightString(QTY_X, doc.y, "Qty")
        c.drawRightString(UNIT_PRICE_X, doc.y, "Unit Price")
        c.drawRightString(RIGHT_EDGE, doc.y, "Total")
        doc.y -= 6
        doc.rule(gap=14)

    def _row(self, doc: _DocumentWriter, item: LineItem) -> None:
        c = doc.canvas
        description = (item.description or "").strip()
        doc.ensure_space(ROW_HEIGHT + (DESCRIPTION_HEIGHT if description else 0))
        doc.font("Helvetica", 10)
        c.drawString(LEFT_MARGIN, doc.y, truncate(item.name))
        c.drawRightString(QTY_X, doc.y, str(item.quantity))
        c.drawRightString(UNIT_PRICE_X, doc.y, self.money(item.unit_price))
        c.drawRightString(RIGHT_EDGE, doc.y, self.money(item.total_price))
        if description:
            doc.y -= DESCRIPTION_HEIGHT
            doc.font("Helvetica", 8, MUTED)
            c.drawString(LEFT_MARGIN + 10, doc.y, truncate(description, NAME_CHAR_BUDGET * 2))
        doc.y -= ROW_HEIGHT

    def _footer(self, doc: _DocumentWriter, quote: QuoteSnapshot) -> None:
        totals = quote.totals
        gst_label = f"GST ({totals.gst_rate.normalize():f}%)" if totals.gst_rate is not None else "GST"
        rows = [("Subtotal", self.money(totals.subtotal))]
        if totals.discount > 0:
            rows.append(("Discount", "-" + self.money(totals.discount)))
        rows.append((gst_label, self.money(totals.gst)))
        rows.append(("Total", self.money(totals.total)))

        doc.ensure_space(len(rows) * FOOTER_LINE_HEIGHT + 12)
        doc.rule(gap=16)
        c = doc.canvas
        for index, (label, value) in enumerate(rows):
            is_total = index == len(rows) - 1
            doc.font("Helvetica-Bold" if is_total else "Helvetica", 12 if is_total else 10)
            c.drawRightString(UNIT_PRICE_X, doc.y, f"{label}:")
            c.drawRightString(RIGHT_EDGE, doc.y, value)
            doc.y -= FOOTER_LINE_HEIGHT
        doc.y -= 16

    def _terms(self, doc: _DocumentWriter, quote: QuoteSnapshot) -> None:
        terms = quote.settings
        labelled = [
            ("Payment Terms", terms.payment_terms),
            ("Warranty", terms.warranty),
            ("Delivery Terms", terms.delivery_terms),
            (
                "Quote Validity",
                f"{terms.validity_days} days from date of issue" if terms.validity_days else None,
            ),
        ]
        labelled = [(label, value) for label, value in labelled if value]
        if not labelled and not terms.terms and not terms.notes:
            return

        c = doc.canvas
        doc.ensure_space(20 + TERMS_LINE_HEIGHT)
        doc.font("Helvetica-Bold", 13)
        c.drawString(LEFT_MARGIN, doc.y, "Terms & Conditions:")
        doc.y -= 18
        for label, value in labelled:
            wrapped = simpleSplit(value, "Helvetica", 9, RIGHT_EDGE - TERMS_VALUE_X) or [value]
            doc.ensure_space(TERMS_LINE_HEIGHT)
            doc.font("Helvetica-Bold", 9)
            c.drawString(LEFT_MARGIN, doc.y, f"{label}:")
            for line in wrapped:
                doc.ensure_space(TERMS_LINE_HEIGHT)
                doc.font("Helvetica", 9)
                c.drawString(TERMS_VALUE_X, doc.y, line)
                doc.y -= TERMS_LINE_HEIGHT
        for heading, text in (("General Terms", terms.terms), ("Additional Notes", terms.notes)):
            if not text:
                continue
            doc.y -= 4
            doc.ensure_space(TERMS_LINE_HEIGHT * 2)
            doc.font("Helvetica-Bold", 9)
            c.drawString(LEFT_MARGIN, doc.y, f"{heading}:")
            doc.y -= TERMS_LINE_HEIGHT
            for paragraph in text.splitlines() or [""]:
                for line in simpleSplit(paragraph, "Helvetica", 9, RIGHT_EDGE - LEFT_MARGIN) or [""]:
                    doc.ensure_space(TERMS_LINE_HEIGHT)
                    doc.font("Helvetica", 9)
                    c.drawString(LEFT_MARGIN, doc.y, line)
                    doc.y -= TERMS_LINE_HEIGHT
