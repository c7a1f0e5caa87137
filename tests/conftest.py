from datetime import date

import pytest

from invoice_builder.engine import new_document, recompute_all
from invoice_builder.ids import CounterIds
from invoice_builder.models import DiscountType, InvoiceItem, TaxEntry


@pytest.fixture
def ids():
    return CounterIds("id")


@pytest.fixture
def blank_doc():
    return new_document(today=date(2024, 1, 1), currency="$")


def make_item(item_id="item-1", quantity=1.0, unit_price=0.0, discount=0.0,
              discount_type=DiscountType.FIXED, rates=(10.0,)):
    return InvoiceItem(
        id=item_id,
        quantity=quantity,
        unit_price=unit_price,
        discount=discount,
        discount_type=discount_type,
        unit="pcs",
        taxes=[
            TaxEntry(id=f"{item_id}-tax-{n}", name=f"Tax {n}", rate=rate)
            for n, rate in enumerate(rates, start=1)
        ],
    )


@pytest.fixture
def two_item_doc(blank_doc):
    doc = blank_doc.model_copy(
        update={
            "items": [
                make_item("a", quantity=2, unit_price=50, rates=(10,)),
                make_item("b", quantity=1, unit_price=200, discount=10,
                          discount_type=DiscountType.PERCENTAGE, rates=(5, 8)),
            ]
        }
    )
    return recompute_all(doc)
