# app.py
import os
from functools import partial

import requests
import streamlit as st

BACKEND_URL = os.getenv("INVOICE_API_URL", "http://127.0.0.1:8000")
WIDGET_PREFIX = "w:"

PAYMENT_TERMS_OPTIONS = {
    "": "Select payment terms",
    "upon-receipt": "Upon Receipt",
    "net-7": "NET 7 (7 days)",
    "net-15": "NET 15 (15 days)",
    "net-30": "NET 30 (30 days)",
}
CURRENCIES = ["$", "€", "£", "¥", "₹", "₽", "₩", "₨", "₦", "₡", "RM", "S$", "฿", "₱", "Rp", "₫", "HK$", "NT$", "৳"]

st.set_page_config(page_title="Invoice Generator", layout="wide", page_icon="🧾")
st.title("🧾 Invoice Generator")
st.caption("Create professional invoices with ease")


# ============================================================
# BACKEND CALLS
# ============================================================
def _post(path: str, **kwargs):
    try:
        res = requests.post(f"{BACKEND_URL}{path}", timeout=30, **kwargs)
    except requests.RequestException as e:
        st.session_state["error"] = f"❌ Could not reach backend: {e}"
        return None
    if res.status_code != 200:
        try:
            detail = res.json().get("detail", res.text)
        except ValueError:
            detail = res.text
        st.session_state["error"] = f"❌ {detail}"
        return None
    return res


def _reset_widgets():
    for key in [k for k in st.session_state if str(k).startswith(WIDGET_PREFIX)]:
        del st.session_state[key]


def send_edit(edit: dict):
    res = _post("/documents/edit", json={"document": st.session_state["document"], "edit": edit})
    if res is not None:
        st.session_state["document"] = res.json()
        # Widgets re-read their values from the returned document
        _reset_widgets()


def send_widget_edit(key: str, build_edit):
    send_edit(build_edit(st.session_state[key]))


def bound(key: str, value):
    key = WIDGET_PREFIX + key
    if key not in st.session_state:
        st.session_state[key] = value
    return key


if "document" not in st.session_state:
    res = _post("/documents/new")
    if res is None:
        st.error(st.session_state.pop("error", "❌ Backend unavailable."))
        st.stop()
    st.session_state["document"] = res.json()
    st.session_state["expanded"] = set()

doc = st.session_state["document"]
if "error" in st.session_state:
    st.error(st.session_state.pop("error"))


def text_input(label: str, key: str, value, build_edit, **kwargs):
    k = bound(key, value or "")
    st.text_input(label, key=k, on_change=partial(send_widget_edit, k, build_edit), **kwargs)


form_col, preview_col = st.columns(2)

# ============================================================
# FORM
# ============================================================
with form_col:
    st.subheader("Invoice Details")

    c1, c2, c3, c4 = st.columns(4)
    with c1:
        text_input("Invoice Number", "invoice_number", doc["invoice_number"],
                   lambda v: {"kind": "document_field", "field": "invoice_number", "value": v})
    with c2:
        k = bound("currency", doc["currency"] if doc["currency"] in CURRENCIES else CURRENCIES[0])
        st.selectbox("Currency", CURRENCIES, key=k, on_change=partial(
            send_widget_edit, k, lambda v: {"kind": "document_field", "field": "currency", "value": v}))
    with c3:
        text_input("Invoice Date", "invoice_date", doc["invoice_date"],
                   lambda v: {"kind": "document_field", "field": "invoice_date", "value": v},
                   placeholder="YYYY-MM-DD")
    with c4:
        text_input("Due Date", "due_date", doc["due_date"],
                   lambda v: {"kind": "document_field", "field": "due_date", "value": v},
                   placeholder="YYYY-MM-DD")

    for party, title in (("company", "From (Your Company)"), ("client", "Bill To")):
        with st.expander(title, expanded=True):
            details = doc[party]
            for field, label in (
                ("name", "Name"), ("address_line1", "Street address"), ("city", "City"),
                ("state", "State/Province"), ("zip", "ZIP/Postal Code"), ("country", "Country"),
                ("business_id", "Business ID (optional)"), ("tax_id", "Tax ID (optional)"),
                ("email", "Email"), ("phone", "Phone"),
            ):
                text_input(label, f"{party}.{field}", details.get(field),
                           partial(lambda p, f, v: {"kind": "party_field", "party": p, "field": f, "value": v},
                                   party, field))

            if party == "company":
                logo_file = st.file_uploader("Logo (max 2MB)", type=["png", "jpg", "jpeg", "gif", "webp"])
                lc1, lc2 = st.columns(2)
                if lc1.button("Use logo", disabled=logo_file is None):
                    res = _post("/logo", files=[("file", (logo_file.name, logo_file, logo_file.type))])
                    if res is not None:
                        send_edit({"kind": "company_logo", "logo": res.json()["logo"]})
                    st.rerun()
                if details.get("logo") and lc2.button("Remove logo"):
                    send_edit({"kind": "company_logo", "logo": None})
                    st.rerun()

    # ------------------------------------------------------------
    # ITEMS
    # ------------------------------------------------------------
    head_l, head_r = st.columns([3, 1])
    head_l.subheader("Invoice Items")
    k = bound("tax_inclusive", doc["tax_inclusive"])
    head_r.checkbox("Tax Inclusive", key=k, on_change=partial(
        send_widget_edit, k, lambda v: {"kind": "tax_mode", "tax_inclusive": v}))

    for index, item in enumerate(doc["items"], start=1):
        item_id = item["id"]
        with st.container(border=True):
            text_input("Item", f"{item_id}.item_name", item["item_name"],
                       partial(lambda i, v: {"kind": "item_text", "item_id": i, "field": "item_name", "value": v}, item_id),
                       placeholder="Enter item name or description")
            q, p, t = st.columns(3)
            with q:
                text_input("Quantity", f"{item_id}.quantity", f"{item['quantity']:g}",
                           partial(lambda i, v: {"kind": "item_number", "item_id": i, "field": "quantity", "value": v}, item_id))
            with p:
                text_input("Unit Price", f"{item_id}.unit_price", f"{item['unit_price']:g}",
                           partial(lambda i, v: {"kind": "item_number", "item_id": i, "field": "unit_price", "value": v}, item_id))
            t.metric("Line Total", f"{doc['currency']}{item['line_total']:.2f}")

            expanded = item_id in st.session_state["expanded"]
            if st.button("Hide advanced options" if expanded else "Show advanced options", key=f"toggle.{item_id}"):
                st.session_state["expanded"].symmetric_difference_update({item_id})
                st.rerun()

            if expanded:
                a1, a2, a3, a4 = st.columns(4)
                with a1:
                    text_input("SKU", f"{item_id}.sku", item["sku"],
                               partial(lambda i, v: {"kind": "item_text", "item_id": i, "field": "sku", "value": v}, item_id),
                               placeholder="SKU-001")
                with a2:
                    text_input("Unit", f"{item_id}.unit", item["unit"],
                               partial(lambda i, v: {"kind": "item_text", "item_id": i, "field": "unit", "value": v}, item_id),
                               placeholder="pcs, hrs, kg")
                with a3:
                    text_input("Discount", f"{item_id}.discount", f"{item['discount']:g}",
                               partial(lambda i, v: {"kind": "item_number", "item_id": i, "field": "discount", "value": v}, item_id))
                with a4:
                    k = bound(f"{item_id}.discount_type", item["discount_type"])
                    st.selectbox("Type", ["fixed", "percentage"], key=k,
                                 format_func=lambda v: doc["currency"] if v == "fixed" else "%",
                                 on_change=partial(send_widget_edit, k, partial(
                                     lambda i, v: {"kind": "item_discount_type", "item_id": i, "discount_type": v}, item_id)))

                for tax in item["taxes"]:
                    n, r, amt, rm = st.columns([3, 2, 2, 1])
                    with n:
                        text_input("Tax name", f"{item_id}.{tax['id']}.name", tax["name"],
                                   partial(lambda i, x, v: {"kind": "tax_name", "item_id": i, "tax_id": x, "name": v},
                                           item_id, tax["id"]),
                                   placeholder="Tax name (e.g. VAT, GST)")
                    with r:
                        text_input("Rate %", f"{item_id}.{tax['id']}.rate", f"{tax['rate']:g}",
                                   partial(lambda i, x, v: {"kind": "tax_rate", "item_id": i, "tax_id": x, "rate": v},
                                           item_id, tax["id"]))
                    amt.metric("Tax", f"{doc['currency']}{tax['amount']:.2f}")
                    if rm.button("✖", key=f"rmtax.{item_id}.{tax['id']}"):
                        send_edit({"kind": "remove_tax", "item_id": item_id, "tax_id": tax["id"]})
                        st.rerun()
                if st.button("Add tax", key=f"addtax.{item_id}"):
                    send_edit({"kind": "add_tax", "item_id": item_id})
                    st.rerun()

            if st.button(f"Remove item {index}", key=f"rmitem.{item_id}"):
                send_edit({"kind": "remove_item", "item_id": item_id})
                st.session_state["expanded"].discard(item_id)
                st.rerun()

    if st.button("➕ Add Item"):
        send_edit({"kind": "add_item"})
        st.rerun()

    # ------------------------------------------------------------
    # PAYMENT TERMS + NOTES
    # ------------------------------------------------------------
    st.subheader("Payment Terms & Notes")
    options = list(PAYMENT_TERMS_OPTIONS)
    k = bound("payment_terms", doc["payment_terms"] if doc["payment_terms"] in options else "")
    st.selectbox("Payment Terms", options, key=k, format_func=PAYMENT_TERMS_OPTIONS.get,
                 on_change=partial(send_widget_edit, k, lambda v: {"kind": "payment_terms", "terms": v}))
    k = bound("notes", doc["notes"])
    st.text_area("Notes", key=k, on_change=partial(
        send_widget_edit, k, lambda v: {"kind": "document_field", "field": "notes", "value": v}))


# ============================================================
# PREVIEW
# ============================================================
with preview_col:
    st.subheader("Preview")
    res = _post("/documents/preview", json=doc)
    if res is not None:
        p = res.json()
        cur = p["currency"]
        if doc["company"].get("logo"):
            st.image(doc["company"]["logo"], width=120)
        st.markdown(f"## INVOICE\n**#{doc['invoice_number']}**")
        st.markdown(f"Invoice Date: **{p['invoice_date_display']}**  \nDue Date: **{p['due_date_display']}**")

        fc, bc = st.columns(2)
        for col, title, lines in ((fc, "FROM", p["company_lines"]), (bc, "BILL TO", p["client_lines"])):
            name, *rest = lines
            col.markdown("  \n".join([f"**{title}**", f"**{name}**", *rest]))

        if doc["items"]:
            st.table([
                {
                    "Item": it["item_name"] or f"Item {i}",
                    "Qty": f"{it['quantity']:g}",
                    "Price": f"{cur}{it['unit_price']:.2f}",
                    "Amount": f"{cur}{it['line_total']:.2f}",
                }
                for i, it in enumerate(doc["items"], start=1)
            ])
        else:
            st.info("No items added yet")

        st.markdown(f"Subtotal: {cur}{p['gross_amount']:.2f}  \nDiscount: -{cur}{p['discount_total']:.2f}")
        for line in p["tax_breakdown"]:
            st.markdown(f"{line['name']}: {cur}{line['amount']:.2f}")
        st.markdown(f"### Total: {cur}{p['total']:.2f}")

        if doc["notes"]:
            st.markdown("**NOTES**")
            st.text(doc["notes"])

    pdf_res = _post("/documents/pdf", json=doc)
    if pdf_res is not None:
        st.download_button(
            "Download PDF",
            data=pdf_res.content,
            file_name=f"invoice-{doc['invoice_number'] or 'INV-001'}.pdf",
            mime="application/pdf",
        )
