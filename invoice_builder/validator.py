# invoice_builder/validator.py
"""Consistency checks for a document snapshot.

Errors mean a derived figure disagrees with the pricing rules (the snapshot
was not produced by the engine, or was edited by hand). Warnings flag values
the engine allows but a reader may not expect, such as negative line totals.
"""
from __future__ import annotations

from collections import Counter
from typing import List

from .config import EPSILON
from .engine import discount_amount
from .models import DocumentCheckResult, InvoiceDocument, InvoiceItem
from .normalize import parse_date_any


def _close(a: float, b: float) -> bool:
    return abs(a - b) <= EPSILON


def _check_item(item: InvoiceItem, tax_inclusive: bool) -> List[str]:
    errors: List[str] = []

    if not _close(item.amount, item.quantity * item.unit_price):
        errors.append(f"invariant_failed: amount_mismatch [{item.id}]")

    tax_sum = sum(t.amount for t in item.taxes)
    if not _close(tax_sum, item.total_tax):
        errors.append(f"invariant_failed: tax_sum_mismatch [{item.id}]")

    base = item.amount - discount_amount(item)
    expected_line_total = base if tax_inclusive else base + item.total_tax
    if not _close(item.line_total, expected_line_total):
        errors.append(f"invariant_failed: line_total_mismatch [{item.id}]")

    tax_ids = Counter(t.id for t in item.taxes)
    for tax_id, count in tax_ids.items():
        if count > 1:
            errors.append(f"duplicate_id: tax {tax_id} [{item.id}]")

    return errors


def _warnings(doc: InvoiceDocument) -> List[str]:
    warnings: List[str] = []
    for item in doc.items:
        if item.line_total < 0:
            warnings.append(f"anomaly: negative_line_total [{item.id}]")
        if any(t.rate < 0 for t in item.taxes):
            warnings.append(f"anomaly: negative_tax_rate [{item.id}]")

    inv_date = parse_date_any(doc.invoice_date)
    due_date = parse_date_any(doc.due_date)
    if doc.invoice_date and inv_date is None:
        warnings.append("format: invoice_date_invalid")
    if doc.due_date and due_date is None:
        warnings.append("format: due_date_invalid")
    if inv_date and due_date and due_date < inv_date:
        warnings.append("business_rule_failed: due_date_before_invoice_date")
    return warnings


def check_document(doc: InvoiceDocument) -> DocumentCheckResult:
    errors: List[str] = []

    item_ids = Counter(item.id for item in doc.items)
    for item_id, count in item_ids.items():
        if count > 1:
            errors.append(f"duplicate_id: item {item_id}")

    for item in doc.items:
        errors.extend(_check_item(item, doc.tax_inclusive))

    if not _close(doc.subtotal, sum(i.line_total for i in doc.items)):
        errors.append("invariant_failed: subtotal_mismatch")
    if not _close(doc.tax, sum(i.total_tax for i in doc.items)):
        errors.append("invariant_failed: tax_mismatch")
    if not _close(doc.total, doc.subtotal):
        errors.append("invariant_failed: total_mismatch")

    return DocumentCheckResult(
        invoice_number=doc.invoice_number,
        is_consistent=not errors,
        errors=errors,
        warnings=_warnings(doc),
    )
