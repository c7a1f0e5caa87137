# invoice_builder/models.py
from __future__ import annotations

from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field


class DiscountType(str, Enum):
    FIXED = "fixed"
    PERCENTAGE = "percentage"


class TaxEntry(BaseModel):
    id: str
    name: str = ""
    rate: float = 0.0  # percentage
    amount: float = 0.0


class InvoiceItem(BaseModel):
    id: str
    sku: str = ""
    item_name: str = ""
    quantity: float = 0.0
    unit: str = ""
    unit_price: float = 0.0
    amount: float = 0.0

    discount: float = 0.0
    discount_type: DiscountType = DiscountType.FIXED

    taxes: List[TaxEntry] = []
    total_tax: float = 0.0
    line_total: float = 0.0


class Party(BaseModel):
    name: str = ""
    business_id: Optional[str] = None
    tax_id: Optional[str] = None
    address_line1: str = ""
    city: str = ""
    state: str = ""
    zip: str = ""
    country: str = ""
    email: str = ""
    phone: str = ""


class CompanyDetails(Party):
    logo: Optional[str] = None  # data URL


class InvoiceDocument(BaseModel):
    invoice_number: str = ""
    invoice_date: str = ""  # ISO date string
    due_date: str = ""
    currency: str = "$"

    company: CompanyDetails = Field(default_factory=CompanyDetails)
    client: Party = Field(default_factory=Party)

    items: List[InvoiceItem] = []

    subtotal: float = 0.0
    tax: float = 0.0
    total: float = 0.0

    tax_inclusive: bool = False
    payment_terms: str = ""
    notes: str = ""


class DocumentCheckResult(BaseModel):
    invoice_number: str
    is_consistent: bool
    errors: List[str]
    warnings: List[str] = []


class TaxBreakdownLine(BaseModel):
    name: str
    amount: float


class InvoicePreview(BaseModel):
    currency: str
    invoice_date_display: str
    due_date_display: str
    gross_amount: float
    discount_total: float
    tax_breakdown: List[TaxBreakdownLine]
    total: float
    company_lines: List[str] = []
    client_lines: List[str] = []
