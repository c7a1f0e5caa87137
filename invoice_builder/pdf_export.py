# invoice_builder/pdf_export.py
"""Render a document's preview to a single-page PDF.

The page is sized to the rendered content: content pixels are converted to
inches at 96 DPI and a 0.2in margin is added on every side.
"""
from __future__ import annotations

import io
import logging
import math
from typing import List, Optional, Tuple
from xml.sax.saxutils import escape

from PIL import Image as PILImage, UnidentifiedImageError
from reportlab.lib import colors
from reportlab.lib.enums import TA_RIGHT
from reportlab.lib.styles import ParagraphStyle, getSampleStyleSheet
from reportlab.lib.units import inch
from reportlab.platypus import (
    BaseDocTemplate,
    Flowable,
    Frame,
    Image,
    PageTemplate,
    Paragraph,
    Spacer,
    Table,
    TableStyle,
)

from .config import DEFAULT_INVOICE_NUMBER, PDF_CONTENT_WIDTH_PX, PDF_DPI, PDF_MARGIN_INCHES
from .logo import decode_data_url
from .models import CompanyDetails, InvoiceDocument, Party
from .normalize import format_display_date, format_money
from .preview import party_lines, preview_lines

logger = logging.getLogger(__name__)

POINTS_PER_PX = 72 / PDF_DPI
LOGO_MAX_HEIGHT_PX = 64
_MEASURE_HEIGHT = 10_000_000


def pdf_filename(doc: InvoiceDocument) -> str:
    return f"invoice-{doc.invoice_number or DEFAULT_INVOICE_NUMBER}.pdf"


def page_size_inches(width_px: float, height_px: float) -> Tuple[float, float]:
    margin = 2 * PDF_MARGIN_INCHES
    return width_px / PDF_DPI + margin, height_px / PDF_DPI + margin


def _styles() -> dict:
    base = getSampleStyleSheet()
    return {
        "title": ParagraphStyle("InvoiceTitle", parent=base["Title"], alignment=0, spaceAfter=6),
        "heading": ParagraphStyle(
            "InvoiceHeading", parent=base["Heading4"], spaceBefore=0, spaceAfter=4
        ),
        "body": ParagraphStyle("InvoiceBody", parent=base["Normal"], fontSize=9, leading=12),
        "small": ParagraphStyle(
            "InvoiceSmall", parent=base["Normal"], fontSize=8, leading=10, textColor=colors.grey
        ),
        "right": ParagraphStyle(
            "InvoiceRight", parent=base["Normal"], fontSize=9, leading=12, alignment=TA_RIGHT
        ),
    }


def _logo_flowable(data_url: Optional[str]) -> Optional[Flowable]:
    data = decode_data_url(data_url or "")
    if data is None:
        return None
    try:
        with PILImage.open(io.BytesIO(data)) as img:
            width_px, height_px = img.size
    except (UnidentifiedImageError, OSError):
        logger.warning("Company logo is not a raster image, leaving it out of the PDF")
        return None
    if not width_px or not height_px:
        return None
    scale = min(1.0, LOGO_MAX_HEIGHT_PX / height_px)
    return Image(
        io.BytesIO(data),
        width=width_px * scale * POINTS_PER_PX,
        height=height_px * scale * POINTS_PER_PX,
    )


def _party_lines(party: Party, fallback_name: str) -> List[str]:
    name, *rest = party_lines(party, fallback_name)
    return [f"<b>{escape(name)}</b>"] + [escape(line) for line in rest]


def _party_block(title: str, party: Party, fallback_name: str, styles: dict) -> List[Flowable]:
    return [
        Paragraph(title, styles["heading"]),
        Paragraph("<br/>".join(_party_lines(party, fallback_name)), styles["body"]),
    ]


def _items_table(doc: InvoiceDocument, width: float, styles: dict) -> Flowable:
    if not doc.items:
        return Paragraph("No items added yet", styles["small"])

    rows = [["Item", "Qty", "Price", "Amount"]]
    for index, item in enumerate(doc.items, start=1):
        label = f"<b>{escape(item.item_name or f'Item {index}')}</b>"
        extras = []
        if item.sku:
            extras.append(f"SKU: {escape(item.sku)}")
        if item.unit:
            extras.append(f"Unit: {escape(item.unit)}")
        if extras:
            label += "<br/>" + " &nbsp; ".join(extras)
        rows.append(
            [
                Paragraph(label, styles["body"]),
                f"{item.quantity:g}",
                format_money(doc.currency, item.unit_price),
                format_money(doc.currency, item.line_total),
            ]
        )

    table = Table(rows, colWidths=[width * 0.52, width * 0.12, width * 0.18, width * 0.18])
    table.setStyle(
        TableStyle(
            [
                ("FONTNAME", (0, 0), (-1, 0), "Helvetica-Bold"),
                ("FONTSIZE", (0, 0), (-1, -1), 9),
                ("ALIGN", (1, 0), (-1, -1), "RIGHT"),
                ("VALIGN", (0, 0), (-1, -1), "TOP"),
                ("LINEBELOW", (0, 0), (-1, 0), 0.75, colors.black),
                ("LINEBELOW", (0, 1), (-1, -2), 0.25, colors.lightgrey),
            ]
        )
    )
    return table


def _totals_table(doc: InvoiceDocument, width: float) -> Flowable:
    rows = [list(line) for line in preview_lines(doc)]
    table = Table(rows, colWidths=[width * 0.25, width * 0.2], hAlign="RIGHT")
    table.setStyle(
        TableStyle(
            [
                ("FONTSIZE", (0, 0), (-1, -1), 9),
                ("ALIGN", (1, 0), (1, -1), "RIGHT"),
                ("FONTNAME", (0, -1), (-1, -1), "Helvetica-Bold"),
                ("FONTSIZE", (0, -1), (-1, -1), 12),
                ("LINEABOVE", (0, -1), (-1, -1), 0.75, colors.black),
                ("TOPPADDING", (0, -1), (-1, -1), 6),
            ]
        )
    )
    return table


def build_flowables(doc: InvoiceDocument, width: float) -> List[Flowable]:
    styles = _styles()
    story: List[Flowable] = []

    logo = _logo_flowable(doc.company.logo)
    if logo is not None:
        logo.hAlign = "LEFT"
        story.append(logo)
        story.append(Spacer(1, 6))

    story.append(Paragraph("INVOICE", styles["title"]))
    story.append(Paragraph(f"#{escape(doc.invoice_number or DEFAULT_INVOICE_NUMBER)}", styles["body"]))
    story.append(
        Paragraph(
            f"Invoice Date: {format_display_date(doc.invoice_date)}<br/>"
            f"Due Date: {format_display_date(doc.due_date)}",
            styles["right"],
        )
    )
    story.append(Spacer(1, 12))

    company: CompanyDetails = doc.company
    parties = Table(
        [
            [
                _party_block("FROM", company, "Your Company", styles),
                _party_block("BILL TO", doc.client, "Client Name", styles),
            ]
        ],
        colWidths=[width / 2, width / 2],
    )
    parties.setStyle(TableStyle([("VALIGN", (0, 0), (-1, -1), "TOP")]))
    story.append(parties)
    story.append(Spacer(1, 12))

    story.append(_items_table(doc, width, styles))
    story.append(Spacer(1, 12))
    story.append(_totals_table(doc, width))

    if doc.notes:
        story.append(Spacer(1, 12))
        story.append(Paragraph("NOTES", styles["heading"]))
        story.append(Paragraph(escape(doc.notes).replace("\n", "<br/>"), styles["body"]))

    return story


def measure_height(story: List[Flowable], width: float) -> float:
    """Total height in points the story takes up in a frame ``width`` wide."""
    total = 0.0
    for flowable in story:
        _, h = flowable.wrap(width, _MEASURE_HEIGHT)
        total += h + flowable.getSpaceBefore() + flowable.getSpaceAfter()
    return total


def render_invoice_pdf(
    doc: InvoiceDocument, content_width_px: int = PDF_CONTENT_WIDTH_PX
) -> bytes:
    width = content_width_px * POINTS_PER_PX
    story = build_flowables(doc, width)
    # One spare pixel keeps rounding from pushing the last line onto a second page
    height_px = math.ceil(measure_height(story, width) / POINTS_PER_PX) + 1

    page_w_in, page_h_in = page_size_inches(content_width_px, height_px)
    margin = PDF_MARGIN_INCHES * inch

    buf = io.BytesIO()
    pdf = BaseDocTemplate(
        buf,
        pagesize=(page_w_in * inch, page_h_in * inch),
        leftMargin=margin,
        rightMargin=margin,
        topMargin=margin,
        bottomMargin=margin,
        title=f"Invoice {doc.invoice_number}",
    )
    frame = Frame(
        margin,
        margin,
        width,
        height_px * POINTS_PER_PX,
        leftPadding=0,
        rightPadding=0,
        topPadding=0,
        bottomPadding=0,
        id="content",
    )
    pdf.addPageTemplates([PageTemplate(id="invoice", frames=[frame])])
    pdf.build(story)

    logger.info(
        "Rendered %s at %.2fin x %.2fin", pdf_filename(doc), page_w_in, page_h_in
    )
    return buf.getvalue()
