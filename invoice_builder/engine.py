# invoice_builder/engine.py
"""Line-item pricing and tax engine.

Every public function takes a full ``InvoiceDocument`` and returns a new one
with all derived figures recomputed; the input is never modified. Edits that
point at an item or tax that no longer exists return the input unchanged.

Recompute order is bottom-up: tax amounts -> item totals -> document totals.
"""
from __future__ import annotations

import logging
from datetime import date, timedelta
from typing import Any, Optional

from .config import (
    DEFAULT_DUE_DAYS,
    DEFAULT_INVOICE_NUMBER,
    DEFAULT_ITEM_TAX_NAME,
    DEFAULT_ITEM_TAX_RATE,
    DEFAULT_QUANTITY,
    DEFAULT_UNIT,
    NEW_TAX_NAME,
    NEW_TAX_RATE,
    get_settings,
)
from .ids import IdGenerator, allocate_id, uuid_ids
from .models import (
    CompanyDetails,
    DiscountType,
    InvoiceDocument,
    InvoiceItem,
    Party,
    TaxEntry,
)
from .normalize import coerce_number, to_iso

logger = logging.getLogger(__name__)

TEXT_ITEM_FIELDS = ("sku", "item_name", "unit")
NUMERIC_ITEM_FIELDS = ("quantity", "unit_price", "discount")
ITEM_FIELDS = TEXT_ITEM_FIELDS + NUMERIC_ITEM_FIELDS + ("discount_type",)
TAX_FIELDS = ("name", "rate")
DOCUMENT_FIELDS = ("invoice_number", "invoice_date", "due_date", "currency", "notes")
PARTY_FIELDS = (
    "name",
    "business_id",
    "tax_id",
    "address_line1",
    "city",
    "state",
    "zip",
    "country",
    "email",
    "phone",
)
OPTIONAL_PARTY_FIELDS = ("business_id", "tax_id")

# camelCase spellings used by browser front ends
FIELD_ALIASES = {
    "itemName": "item_name",
    "unitPrice": "unit_price",
    "discountType": "discount_type",
    "invoiceNumber": "invoice_number",
    "invoiceDate": "invoice_date",
    "dueDate": "due_date",
    "businessId": "business_id",
    "taxId": "tax_id",
    "addressLine1": "address_line1",
}


# ---------------------------------------------------------
# RECOMPUTATION
# ---------------------------------------------------------
def discount_amount(item: InvoiceItem, amount: Optional[float] = None) -> float:
    amount = item.amount if amount is None else amount
    if item.discount_type == DiscountType.PERCENTAGE:
        return amount * (item.discount / 100)
    return item.discount


def recompute_item(item: InvoiceItem, tax_inclusive: bool) -> InvoiceItem:
    amount = item.quantity * item.unit_price
    base = amount - discount_amount(item, amount)

    if tax_inclusive:
        # Taxes split one tax pool extracted from the base, in proportion to their rates
        total_rate = sum(t.rate for t in item.taxes)
        if total_rate == 0 or 100 + total_rate == 0:
            total_tax = 0.0
            taxes = [t.model_copy(update={"amount": 0.0}) for t in item.taxes]
        else:
            total_tax = base * (total_rate / (100 + total_rate))
            taxes = [
                t.model_copy(update={"amount": total_tax * (t.rate / total_rate)})
                for t in item.taxes
            ]
        line_total = base
    else:
        taxes = [t.model_copy(update={"amount": base * (t.rate / 100)}) for t in item.taxes]
        total_tax = sum(t.amount for t in taxes)
        line_total = base + total_tax

    return item.model_copy(
        update={
            "amount": amount,
            "taxes": taxes,
            "total_tax": total_tax,
            "line_total": line_total,
        }
    )


def recompute_document(doc: InvoiceDocument) -> InvoiceDocument:
    """Roll item figures up into the document totals.

    ``total`` equals ``subtotal``: tax already sits inside every line total, so
    ``tax`` is informational and is not added again.
    """
    subtotal = sum(item.line_total for item in doc.items)
    tax = sum(item.total_tax for item in doc.items)
    return doc.model_copy(update={"subtotal": subtotal, "tax": tax, "total": subtotal})


def recompute_all(doc: InvoiceDocument) -> InvoiceDocument:
    items = [recompute_item(item, doc.tax_inclusive) for item in doc.items]
    return recompute_document(doc.model_copy(update={"items": items}))


# ---------------------------------------------------------
# LOOKUPS
# ---------------------------------------------------------
def _item_index(doc: InvoiceDocument, item_id: str) -> Optional[int]:
    for i, item in enumerate(doc.items):
        if item.id == item_id:
            return i
    return None


def _tax_index(item: InvoiceItem, tax_id: str) -> Optional[int]:
    for i, tax in enumerate(item.taxes):
        if tax.id == tax_id:
            return i
    return None


def _coerce_discount_type(value: Any) -> DiscountType:
    try:
        return DiscountType(value)
    except ValueError:
        return DiscountType.FIXED


def _text(value: Any) -> str:
    return "" if value is None else str(value)


# ---------------------------------------------------------
# ITEM AND TAX FIELD EDITS
# ---------------------------------------------------------
def apply_field_edit(
    doc: InvoiceDocument, item_id: str, field: str, value: Any
) -> InvoiceDocument:
    field = FIELD_ALIASES.get(field, field)
    if field not in ITEM_FIELDS:
        logger.warning("Ignoring edit to unknown item field %r", field)
        return doc

    index = _item_index(doc, item_id)
    if index is None:
        logger.debug("Item %s not found, edit to %s ignored", item_id, field)
        return doc

    updated = doc.model_copy(deep=True)
    item = updated.items[index]

    if field in NUMERIC_ITEM_FIELDS:
        setattr(item, field, coerce_number(value))
    elif field == "discount_type":
        item.discount_type = _coerce_discount_type(value)
    else:
        setattr(item, field, _text(value))

    if field in ("quantity", "unit_price"):
        item.amount = item.quantity * item.unit_price

    updated.items[index] = recompute_item(item, updated.tax_inclusive)
    return recompute_document(updated)


def apply_tax_edit(
    doc: InvoiceDocument, item_id: str, tax_id: str, field: str, value: Any
) -> InvoiceDocument:
    if field not in TAX_FIELDS:
        logger.warning("Ignoring edit to unknown tax field %r", field)
        return doc

    index = _item_index(doc, item_id)
    if index is None:
        logger.debug("Item %s not found, tax edit ignored", item_id)
        return doc
    tax_index = _tax_index(doc.items[index], tax_id)
    if tax_index is None:
        logger.debug("Tax %s not found on item %s, edit ignored", tax_id, item_id)
        return doc

    updated = doc.model_copy(deep=True)
    item = updated.items[index]
    tax = item.taxes[tax_index]
    if field == "rate":
        tax.rate = coerce_number(value)
    else:
        tax.name = _text(value)

    # Sibling tax amounts move too under inclusive mode
    updated.items[index] = recompute_item(item, updated.tax_inclusive)
    return recompute_document(updated)


# ---------------------------------------------------------
# STRUCTURAL EDITS
# ---------------------------------------------------------
def new_item(item_id: str, tax_id: str) -> InvoiceItem:
    return InvoiceItem(
        id=item_id,
        quantity=DEFAULT_QUANTITY,
        unit=DEFAULT_UNIT,
        discount_type=DiscountType.FIXED,
        taxes=[TaxEntry(id=tax_id, name=DEFAULT_ITEM_TAX_NAME, rate=DEFAULT_ITEM_TAX_RATE)],
    )


def add_item(doc: InvoiceDocument, ids: Optional[IdGenerator] = None) -> InvoiceDocument:
    ids = ids or uuid_ids
    item_id = allocate_id(ids, (item.id for item in doc.items))
    tax_id = allocate_id(ids, ())

    updated = doc.model_copy(deep=True)
    updated.items.append(new_item(item_id, tax_id))
    logger.debug("Added item %s", item_id)
    return recompute_all(updated)


def remove_item(doc: InvoiceDocument, item_id: str) -> InvoiceDocument:
    if _item_index(doc, item_id) is None:
        logger.debug("Item %s not found, nothing removed", item_id)
        return doc
    updated = doc.model_copy(deep=True)
    updated.items = [item for item in updated.items if item.id != item_id]
    return recompute_all(updated)


def add_tax(
    doc: InvoiceDocument, item_id: str, ids: Optional[IdGenerator] = None
) -> InvoiceDocument:
    index = _item_index(doc, item_id)
    if index is None:
        logger.debug("Item %s not found, no tax added", item_id)
        return doc

    ids = ids or uuid_ids
    updated = doc.model_copy(deep=True)
    item = updated.items[index]
    tax_id = allocate_id(ids, (t.id for t in item.taxes))
    item.taxes.append(TaxEntry(id=tax_id, name=NEW_TAX_NAME, rate=NEW_TAX_RATE))
    return recompute_all(updated)


def remove_tax(doc: InvoiceDocument, item_id: str, tax_id: str) -> InvoiceDocument:
    index = _item_index(doc, item_id)
    if index is None or _tax_index(doc.items[index], tax_id) is None:
        logger.debug("Tax %s on item %s not found, nothing removed", tax_id, item_id)
        return doc

    updated = doc.model_copy(deep=True)
    item = updated.items[index]
    item.taxes = [t for t in item.taxes if t.id != tax_id]
    return recompute_all(updated)


# ---------------------------------------------------------
# DOCUMENT-LEVEL EDITS
# ---------------------------------------------------------
def set_tax_inclusive(doc: InvoiceDocument, tax_inclusive: bool) -> InvoiceDocument:
    return recompute_all(doc.model_copy(update={"tax_inclusive": bool(tax_inclusive)}))


def update_document_field(doc: InvoiceDocument, field: str, value: Any) -> InvoiceDocument:
    field = FIELD_ALIASES.get(field, field)
    if field not in DOCUMENT_FIELDS:
        logger.warning("Ignoring edit to unknown document field %r", field)
        return doc
    return doc.model_copy(update={field: _text(value)})


def update_party_field(
    doc: InvoiceDocument, party: str, field: str, value: Any
) -> InvoiceDocument:
    field = FIELD_ALIASES.get(field, field)
    if party not in ("company", "client") or field not in PARTY_FIELDS:
        logger.warning("Ignoring edit to unknown party field %s.%s", party, field)
        return doc

    text = _text(value)
    if field in OPTIONAL_PARTY_FIELDS and not text:
        text = None
    details = getattr(doc, party).model_copy(update={field: text})
    return doc.model_copy(update={party: details})


def set_company_logo(doc: InvoiceDocument, logo: Optional[str]) -> InvoiceDocument:
    """Store an already-validated logo data URL, or clear it with ``None``."""
    company = doc.company.model_copy(update={"logo": logo or None})
    return doc.model_copy(update={"company": company})


def new_document(
    today: Optional[date] = None, currency: Optional[str] = None
) -> InvoiceDocument:
    today = today or date.today()
    return InvoiceDocument(
        invoice_number=DEFAULT_INVOICE_NUMBER,
        invoice_date=to_iso(today),
        due_date=to_iso(today + timedelta(days=DEFAULT_DUE_DAYS)),
        currency=currency or get_settings().default_currency,
        company=CompanyDetails(),
        client=Party(),
        items=[],
        tax_inclusive=False,
    )
