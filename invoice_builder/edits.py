# invoice_builder/edits.py
"""One typed edit per editable field group, and the dispatcher that applies them.

Front ends send these as JSON objects tagged by ``kind``, e.g.
``{"kind": "item_number", "item_id": "a1", "field": "quantity", "value": "3"}``.
"""
from __future__ import annotations

from typing import Annotated, Any, Callable, Dict, Literal, Optional, Union

from pydantic import BaseModel, Field

from . import engine
from .ids import IdGenerator, uuid_ids
from .models import DiscountType, InvoiceDocument
from .payment_terms import apply_payment_terms

# Raw form input; normalize.coerce_number decides what it is worth
NumericInput = Any


class ItemTextEdit(BaseModel):
    kind: Literal["item_text"] = "item_text"
    item_id: str
    field: Literal["sku", "item_name", "unit"]
    value: str = ""


class ItemNumberEdit(BaseModel):
    kind: Literal["item_number"] = "item_number"
    item_id: str
    field: Literal["quantity", "unit_price", "discount"]
    value: NumericInput = None


class ItemDiscountTypeEdit(BaseModel):
    kind: Literal["item_discount_type"] = "item_discount_type"
    item_id: str
    discount_type: DiscountType


class TaxNameEdit(BaseModel):
    kind: Literal["tax_name"] = "tax_name"
    item_id: str
    tax_id: str
    name: str = ""


class TaxRateEdit(BaseModel):
    kind: Literal["tax_rate"] = "tax_rate"
    item_id: str
    tax_id: str
    rate: NumericInput = None


class AddItem(BaseModel):
    kind: Literal["add_item"] = "add_item"


class RemoveItem(BaseModel):
    kind: Literal["remove_item"] = "remove_item"
    item_id: str


class AddTax(BaseModel):
    kind: Literal["add_tax"] = "add_tax"
    item_id: str


class RemoveTax(BaseModel):
    kind: Literal["remove_tax"] = "remove_tax"
    item_id: str
    tax_id: str


class TaxModeEdit(BaseModel):
    kind: Literal["tax_mode"] = "tax_mode"
    tax_inclusive: bool


class DocumentFieldEdit(BaseModel):
    kind: Literal["document_field"] = "document_field"
    field: Literal["invoice_number", "invoice_date", "due_date", "currency", "notes"]
    value: str = ""


class PartyFieldEdit(BaseModel):
    kind: Literal["party_field"] = "party_field"
    party: Literal["company", "client"]
    field: Literal[
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
    ]
    value: Optional[str] = None


class PaymentTermsEdit(BaseModel):
    kind: Literal["payment_terms"] = "payment_terms"
    terms: str = ""


class CompanyLogoEdit(BaseModel):
    kind: Literal["company_logo"] = "company_logo"
    logo: Optional[str] = None


Edit = Annotated[
    Union[
        ItemTextEdit,
        ItemNumberEdit,
        ItemDiscountTypeEdit,
        TaxNameEdit,
        TaxRateEdit,
        AddItem,
        RemoveItem,
        AddTax,
        RemoveTax,
        TaxModeEdit,
        DocumentFieldEdit,
        PartyFieldEdit,
        PaymentTermsEdit,
        CompanyLogoEdit,
    ],
    Field(discriminator="kind"),
]


class EditRequest(BaseModel):
    document: InvoiceDocument
    edit: Edit


Handler = Callable[[InvoiceDocument, BaseModel, IdGenerator], InvoiceDocument]

_HANDLERS: Dict[str, Handler] = {
    "item_text": lambda doc, e, ids: engine.apply_field_edit(doc, e.item_id, e.field, e.value),
    "item_number": lambda doc, e, ids: engine.apply_field_edit(doc, e.item_id, e.field, e.value),
    "item_discount_type": lambda doc, e, ids: engine.apply_field_edit(
        doc, e.item_id, "discount_type", e.discount_type
    ),
    "tax_name": lambda doc, e, ids: engine.apply_tax_edit(doc, e.item_id, e.tax_id, "name", e.name),
    "tax_rate": lambda doc, e, ids: engine.apply_tax_edit(doc, e.item_id, e.tax_id, "rate", e.rate),
    "add_item": lambda doc, e, ids: engine.add_item(doc, ids),
    "remove_item": lambda doc, e, ids: engine.remove_item(doc, e.item_id),
    "add_tax": lambda doc, e, ids: engine.add_tax(doc, e.item_id, ids),
    "remove_tax": lambda doc, e, ids: engine.remove_tax(doc, e.item_id, e.tax_id),
    "tax_mode": lambda doc, e, ids: engine.set_tax_inclusive(doc, e.tax_inclusive),
    "document_field": lambda doc, e, ids: engine.update_document_field(doc, e.field, e.value),
    "party_field": lambda doc, e, ids: engine.update_party_field(doc, e.party, e.field, e.value),
    "payment_terms": lambda doc, e, ids: apply_payment_terms(doc, e.terms),
    "company_logo": lambda doc, e, ids: engine.set_company_logo(doc, e.logo),
}

EDIT_KINDS = tuple(_HANDLERS)


def apply_edit(
    doc: InvoiceDocument, edit: Edit, ids: Optional[IdGenerator] = None
) -> InvoiceDocument:
    return _HANDLERS[edit.kind](doc, edit, ids or uuid_ids)
