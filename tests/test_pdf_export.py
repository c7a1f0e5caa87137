import io

import pdfplumber
import pytest

from invoice_builder.engine import apply_field_edit, set_company_logo, update_party_field
from invoice_builder.logo import load_logo
from invoice_builder.payment_terms import apply_payment_terms
from invoice_builder.pdf_export import page_size_inches, pdf_filename, render_invoice_pdf

from test_logo import png_bytes


def _open(pdf_bytes):
    return pdfplumber.open(io.BytesIO(pdf_bytes))


def test_page_size_conversion():
    assert page_size_inches(960, 480) == pytest.approx((10.4, 5.4))


def test_pdf_filename(blank_doc):
    assert pdf_filename(blank_doc) == "invoice-INV-001.pdf"
    assert pdf_filename(blank_doc.model_copy(update={"invoice_number": ""})) == "invoice-INV-001.pdf"


def test_single_page_sized_to_content(two_item_doc):
    doc = apply_field_edit(two_item_doc, "a", "item_name", "Consulting hours")
    doc = update_party_field(doc, "company", "name", "Acme Ltd")
    doc = update_party_field(doc, "client", "email", "ap@globex.test")
    doc = apply_payment_terms(doc, "net-15")

    with _open(render_invoice_pdf(doc, content_width_px=960)) as pdf:
        assert len(pdf.pages) == 1
        page = pdf.pages[0]
        assert page.width == pytest.approx((960 / 96 + 0.4) * 72, abs=0.5)
        assert page.height > 0.4 * 72
        text = page.extract_text()

    assert "INVOICE" in text
    assert "Consulting hours" in text
    assert "Acme Ltd" in text
    assert "ap@globex.test" in text
    assert "$313.40" in text
    assert "Payment is due within 15 days of invoice date." in text


def test_more_items_make_a_taller_page(two_item_doc):
    taller = two_item_doc
    for n in range(10):
        taller = taller.model_copy(update={"notes": taller.notes + f"line {n}\n"})

    with _open(render_invoice_pdf(two_item_doc)) as short_pdf, _open(render_invoice_pdf(taller)) as tall_pdf:
        assert len(tall_pdf.pages) == 1
        assert tall_pdf.pages[0].height > short_pdf.pages[0].height


def test_empty_document_and_logo(blank_doc):
    doc = set_company_logo(blank_doc, load_logo(png_bytes((40, 20)), "image/png"))
    with _open(render_invoice_pdf(doc)) as pdf:
        assert len(pdf.pages) == 1
        assert "No items added yet" in pdf.pages[0].extract_text()


def test_unreadable_logo_is_skipped(blank_doc):
    doc = set_company_logo(blank_doc, "data:image/svg+xml;base64,PHN2Zy8+")
    with _open(render_invoice_pdf(doc)) as pdf:
        assert len(pdf.pages) == 1
