# invoice_builder/preview.py
"""Figures shown in the invoice preview (and the PDF rendered from it)."""
from __future__ import annotations

from typing import Dict

from .engine import discount_amount
from .models import InvoiceDocument, InvoicePreview, Party, TaxBreakdownLine
from .normalize import format_display_date, format_money


def party_lines(party: Party, fallback_name: str) -> list[str]:
    """Address block lines; the first is always the (fallback) name."""
    lines = [party.name or fallback_name]
    if party.address_line1:
        lines.append(party.address_line1)
    locality = ", ".join(v for v in (party.city, party.state, party.zip) if v)
    if locality:
        lines.append(locality)
    if party.country:
        lines.append(party.country)
    if party.business_id:
        lines.append(f"Business ID: {party.business_id}")
    if party.tax_id:
        lines.append(f"Tax ID: {party.tax_id}")
    lines.extend(v for v in (party.email, party.phone) if v)
    return lines


def build_preview(doc: InvoiceDocument) -> InvoicePreview:
    """Summarise ``doc`` for display.

    ``gross_amount`` is the pre-discount sum of item amounts; it is what the
    preview labels "Subtotal" and differs from ``doc.subtotal``. Taxes are
    grouped by name in first-seen order, skipping zero amounts.
    """
    breakdown: Dict[str, float] = {}
    for item in doc.items:
        for tax in item.taxes:
            if tax.amount > 0:
                breakdown[tax.name] = breakdown.get(tax.name, 0.0) + tax.amount

    return InvoicePreview(
        currency=doc.currency,
        invoice_date_display=format_display_date(doc.invoice_date),
        due_date_display=format_display_date(doc.due_date),
        gross_amount=sum(item.amount for item in doc.items),
        discount_total=sum(discount_amount(item) for item in doc.items),
        tax_breakdown=[TaxBreakdownLine(name=n, amount=a) for n, a in breakdown.items()],
        total=doc.total,
        company_lines=party_lines(doc.company, "Your Company"),
        client_lines=party_lines(doc.client, "Client Name"),
    )


def preview_lines(doc: InvoiceDocument) -> list[tuple[str, str]]:
    """Label/value pairs of the totals box, already formatted."""
    p = build_preview(doc)
    lines = [
        ("Subtotal:", format_money(p.currency, p.gross_amount)),
        ("Discount:", "-" + format_money(p.currency, p.discount_total)),
    ]
    lines.extend((f"{t.name}:", format_money(p.currency, t.amount)) for t in p.tax_breakdown)
    lines.append(("Total:", format_money(p.currency, p.total)))
    return lines
