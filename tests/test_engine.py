import pytest

from invoice_builder import engine
from invoice_builder.ids import CounterIds
from invoice_builder.models import DiscountType, InvoiceDocument
from invoice_builder.validator import check_document

from conftest import make_item


def _assert_consistent(doc: InvoiceDocument):
    result = check_document(doc)
    assert result.is_consistent, result.errors


# ---------------------------------------------------------
# recompute_item scenarios
# ---------------------------------------------------------
def test_exclusive_single_tax():
    item = engine.recompute_item(make_item(quantity=2, unit_price=50, rates=(10,)), False)
    assert item.amount == pytest.approx(100)
    assert item.total_tax == pytest.approx(10)
    assert item.line_total == pytest.approx(110)
    assert item.taxes[0].amount == pytest.approx(10)


def test_inclusive_single_tax():
    item = engine.recompute_item(make_item(quantity=2, unit_price=50, rates=(10,)), True)
    assert item.amount == pytest.approx(100)
    assert item.total_tax == pytest.approx(100 * 10 / 110)
    assert item.taxes[0].amount == pytest.approx(9.090909, rel=1e-6)
    assert item.line_total == pytest.approx(100)


def test_percentage_discount_two_taxes_exclusive():
    item = make_item(quantity=1, unit_price=200, discount=10,
                     discount_type=DiscountType.PERCENTAGE, rates=(5, 8))
    item = engine.recompute_item(item, False)
    assert [t.amount for t in item.taxes] == pytest.approx([9, 14.4])
    assert item.total_tax == pytest.approx(23.4)
    assert item.line_total == pytest.approx(203.4)


def test_fixed_discount_is_subtracted_before_tax():
    item = engine.recompute_item(make_item(quantity=4, unit_price=25, discount=20, rates=(10,)), False)
    assert item.total_tax == pytest.approx(8)
    assert item.line_total == pytest.approx(88)


def test_inclusive_taxes_partition_one_pool():
    item = engine.recompute_item(make_item(quantity=1, unit_price=113, rates=(5, 8)), True)
    assert item.total_tax == pytest.approx(13)
    assert [t.amount for t in item.taxes] == pytest.approx([5, 8])
    assert sum(t.amount for t in item.taxes) == pytest.approx(item.total_tax)
    assert item.line_total == pytest.approx(113)


def test_inclusive_rate_change_moves_sibling_amounts(blank_doc):
    doc = blank_doc.model_copy(update={"items": [make_item("a", 1, 113, rates=(5, 8))]})
    doc = engine.set_tax_inclusive(doc, True)
    before = doc.items[0].taxes[0].amount

    doc = engine.apply_tax_edit(doc, "a", "a-tax-2", "rate", 15)

    assert doc.items[0].taxes[0].rate == 5
    assert doc.items[0].taxes[0].amount != pytest.approx(before)
    assert doc.items[0].total_tax == pytest.approx(113 * 20 / 120)


def test_inclusive_zero_rates_give_zero_tax():
    item = engine.recompute_item(make_item(quantity=3, unit_price=10, rates=(0, 0)), True)
    assert item.total_tax == 0
    assert [t.amount for t in item.taxes] == [0, 0]
    assert item.line_total == pytest.approx(30)


@pytest.mark.parametrize("tax_inclusive", [True, False])
def test_item_without_taxes(tax_inclusive):
    item = engine.recompute_item(make_item(quantity=3, unit_price=10, rates=()), tax_inclusive)
    assert item.taxes == []
    assert item.total_tax == 0
    assert item.line_total == pytest.approx(30)


def test_discount_larger_than_amount_goes_negative():
    item = engine.recompute_item(make_item(quantity=1, unit_price=10, discount=15, rates=(10,)), False)
    assert item.line_total == pytest.approx(-5.5)
    assert item.total_tax == pytest.approx(-0.5)


def test_recompute_item_leaves_other_fields_alone():
    item = make_item(quantity=2, unit_price=5).model_copy(update={"sku": "SKU-9", "item_name": "Bolt"})
    out = engine.recompute_item(item, False)
    assert (out.id, out.sku, out.item_name, out.unit, out.discount) == ("item-1", "SKU-9", "Bolt", "pcs", 0)


# ---------------------------------------------------------
# document totals
# ---------------------------------------------------------
def test_document_total_does_not_add_tax_again(two_item_doc):
    doc = two_item_doc
    assert doc.subtotal == pytest.approx(110 + 203.4)
    assert doc.tax == pytest.approx(10 + 23.4)
    assert doc.total == doc.subtotal


def test_recompute_document_uses_line_totals_not_amounts(two_item_doc):
    assert two_item_doc.subtotal != pytest.approx(sum(i.amount for i in two_item_doc.items))


# ---------------------------------------------------------
# field edits
# ---------------------------------------------------------
def test_quantity_edit_recomputes_amount_and_totals(two_item_doc):
    doc = engine.apply_field_edit(two_item_doc, "a", "quantity", 3)
    assert doc.items[0].amount == pytest.approx(150)
    assert doc.items[0].line_total == pytest.approx(165)
    assert doc.total == pytest.approx(165 + 203.4)
    _assert_consistent(doc)


def test_camel_case_field_names_are_accepted(two_item_doc):
    doc = engine.apply_field_edit(two_item_doc, "a", "unitPrice", "60")
    assert doc.items[0].unit_price == 60
    assert doc.items[0].amount == pytest.approx(120)


@pytest.mark.parametrize("raw, expected", [("abc", 0), ("", 0), (None, 0), ("12kg", 12), (" 7.5 ", 7.5),
                                           (float("nan"), 0), (float("inf"), 0)])
def test_malformed_numbers_become_zero(two_item_doc, raw, expected):
    doc = engine.apply_field_edit(two_item_doc, "a", "quantity", raw)
    assert doc.items[0].quantity == expected
    assert doc.items[0].amount == pytest.approx(expected * 50)
    _assert_consistent(doc)


def test_discount_type_switch(two_item_doc):
    doc = engine.apply_field_edit(two_item_doc, "b", "discount_type", "fixed")
    assert doc.items[1].discount_type == DiscountType.FIXED
    # 200 - 10 fixed, then 13% tax
    assert doc.items[1].line_total == pytest.approx(190 * 1.13)


def test_unknown_discount_type_falls_back_to_fixed(two_item_doc):
    doc = engine.apply_field_edit(two_item_doc, "b", "discountType", "bogus")
    assert doc.items[1].discount_type == DiscountType.FIXED


def test_text_field_edit_keeps_totals(two_item_doc):
    doc = engine.apply_field_edit(two_item_doc, "a", "item_name", "Consulting")
    assert doc.items[0].item_name == "Consulting"
    assert doc.total == pytest.approx(two_item_doc.total)


def test_unknown_field_is_ignored(two_item_doc):
    assert engine.apply_field_edit(two_item_doc, "a", "colour", "red") is two_item_doc


def test_edits_do_not_mutate_input(two_item_doc):
    snapshot = two_item_doc.model_dump()
    engine.apply_field_edit(two_item_doc, "a", "quantity", 9)
    engine.apply_tax_edit(two_item_doc, "b", "b-tax-1", "rate", 50)
    engine.remove_item(two_item_doc, "a")
    engine.add_tax(two_item_doc, "a", CounterIds("t"))
    assert two_item_doc.model_dump() == snapshot


# ---------------------------------------------------------
# stale ids
# ---------------------------------------------------------
def test_stale_ids_are_no_ops(two_item_doc):
    doc = engine.remove_item(two_item_doc, "a")
    snapshot = doc.model_dump()

    assert engine.apply_field_edit(doc, "a", "quantity", 5).model_dump() == snapshot
    assert engine.apply_tax_edit(doc, "a", "a-tax-1", "rate", 5).model_dump() == snapshot
    assert engine.apply_tax_edit(doc, "b", "gone", "name", "X").model_dump() == snapshot
    assert engine.remove_item(doc, "a").model_dump() == snapshot
    assert engine.add_tax(doc, "a").model_dump() == snapshot
    assert engine.remove_tax(doc, "b", "gone").model_dump() == snapshot


# ---------------------------------------------------------
# structural edits
# ---------------------------------------------------------
def test_add_item_defaults(blank_doc, ids):
    doc = engine.add_item(blank_doc, ids)
    item = doc.items[0]
    assert item.id == "id-1"
    assert item.quantity == 1
    assert item.unit == "pcs"
    assert item.unit_price == 0
    assert item.discount_type == DiscountType.FIXED
    assert [(t.name, t.rate) for t in item.taxes] == [("VAT", 10)]
    assert (item.amount, item.total_tax, item.line_total) == (0, 0, 0)


def test_add_tax_appends_zero_rate_tax(blank_doc, ids):
    doc = engine.add_item(blank_doc, ids)
    item_id = doc.items[0].id
    doc = engine.add_tax(doc, item_id, ids)
    assert [(t.name, t.rate) for t in doc.items[0].taxes] == [("VAT", 10), ("Tax", 0)]


def test_remove_item_removes_only_that_item(two_item_doc):
    doc = engine.remove_item(two_item_doc, "a")
    assert [i.id for i in doc.items] == ["b"]
    assert doc.total == pytest.approx(203.4)
    assert doc.items[0].taxes == two_item_doc.items[1].taxes


def test_item_may_lose_all_taxes(two_item_doc):
    doc = engine.remove_tax(two_item_doc, "a", "a-tax-1")
    assert doc.items[0].taxes == []
    assert doc.items[0].line_total == pytest.approx(100)
    assert doc.tax == pytest.approx(23.4)
    _assert_consistent(doc)


def test_repeating_id_generator_still_yields_unique_ids(blank_doc):
    doc = blank_doc
    for _ in range(3):
        doc = engine.add_item(doc, lambda: "same")
    doc = engine.add_tax(doc, "same", lambda: "same")
    assert [i.id for i in doc.items] == ["same", "same-2", "same-3"]
    assert [t.id for t in doc.items[0].taxes] == ["same", "same-2"]


def test_tax_mode_toggle_recomputes_every_item(two_item_doc):
    doc = engine.set_tax_inclusive(two_item_doc, True)
    assert doc.items[0].line_total == pytest.approx(100)
    assert doc.items[1].line_total == pytest.approx(180)
    assert doc.total == pytest.approx(280)
    back = engine.set_tax_inclusive(doc, False)
    assert back.total == pytest.approx(two_item_doc.total)


# ---------------------------------------------------------
# invariants over a sequence of edits
# ---------------------------------------------------------
@pytest.mark.parametrize("tax_inclusive", [False, True])
def test_invariants_hold_after_every_edit(blank_doc, tax_inclusive):
    ids = CounterIds("x")
    doc = engine.set_tax_inclusive(blank_doc, tax_inclusive)
    steps = [
        lambda d: engine.add_item(d, ids),
        lambda d: engine.apply_field_edit(d, "x-1", "quantity", "3"),
        lambda d: engine.apply_field_edit(d, "x-1", "unit_price", 19.99),
        lambda d: engine.add_tax(d, "x-1", ids),
        lambda d: engine.apply_tax_edit(d, "x-1", "x-3", "rate", 7),
        lambda d: engine.add_item(d, ids),
        lambda d: engine.apply_field_edit(d, "x-4", "unit_price", 80),
        lambda d: engine.apply_field_edit(d, "x-4", "discount", 25),
        lambda d: engine.apply_field_edit(d, "x-4", "discount_type", "percentage"),
        lambda d: engine.remove_tax(d, "x-1", "x-2"),
        lambda d: engine.apply_tax_edit(d, "x-4", "x-5", "rate", "oops"),
        lambda d: engine.remove_item(d, "x-1"),
    ]
    for step in steps:
        doc = step(doc)
        _assert_consistent(doc)
        for item in doc.items:
            assert item.amount == pytest.approx(item.quantity * item.unit_price)
            assert item.total_tax == pytest.approx(sum(t.amount for t in item.taxes))
        assert doc.subtotal == pytest.approx(sum(i.line_total for i in doc.items))
        assert doc.tax == pytest.approx(sum(i.total_tax for i in doc.items))
        assert doc.total == doc.subtotal


# ---------------------------------------------------------
# document-level edits
# ---------------------------------------------------------
def test_new_document_defaults(blank_doc):
    assert blank_doc.invoice_number == "INV-001"
    assert blank_doc.invoice_date == "2024-01-01"
    assert blank_doc.due_date == "2024-01-31"
    assert blank_doc.currency == "$"
    assert blank_doc.items == []
    assert blank_doc.tax_inclusive is False
    assert (blank_doc.subtotal, blank_doc.tax, blank_doc.total) == (0, 0, 0)


def test_update_document_and_party_fields(blank_doc):
    doc = engine.update_document_field(blank_doc, "invoiceNumber", "INV-042")
    doc = engine.update_party_field(doc, "company", "name", "Acme Ltd")
    doc = engine.update_party_field(doc, "client", "taxId", "")
    assert doc.invoice_number == "INV-042"
    assert doc.company.name == "Acme Ltd"
    assert doc.client.tax_id is None
    assert engine.update_party_field(doc, "vendor", "name", "x") is doc
    assert engine.update_document_field(doc, "subtotal", "5") is doc


def test_company_logo_set_and_clear(blank_doc):
    doc = engine.set_company_logo(blank_doc, "data:image/png;base64,AAAA")
    assert doc.company.logo == "data:image/png;base64,AAAA"
    assert engine.set_company_logo(doc, None).company.logo is None
