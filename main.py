from datetime import date
from typing import Optional

from fastapi import FastAPI, File, HTTPException, UploadFile
from fastapi.responses import Response

from invoice_builder.config import MAX_LOGO_BYTES, configure_logging
from invoice_builder.edits import EditRequest, apply_edit
from invoice_builder.engine import new_document, recompute_all
from invoice_builder.errors import LogoRejectedError
from invoice_builder.ids import uuid_ids
from invoice_builder.logo import load_logo
from invoice_builder.models import DocumentCheckResult, InvoiceDocument, InvoicePreview
from invoice_builder.pdf_export import pdf_filename, render_invoice_pdf
from invoice_builder.preview import build_preview
from invoice_builder.validator import check_document

configure_logging()

app = FastAPI(title="Invoice Builder Service")


# ---------------------------------------------------------
# HEALTH
# ---------------------------------------------------------
@app.get("/health")
def health():
    return {"status": "ok"}


# ---------------------------------------------------------
# DOCUMENT SNAPSHOTS
# Every call carries the full document; nothing is stored.
# ---------------------------------------------------------
@app.post("/documents/new", response_model=InvoiceDocument)
def create_document(invoice_date: Optional[date] = None, currency: Optional[str] = None):
    return new_document(today=invoice_date, currency=currency)


@app.post("/documents/edit", response_model=InvoiceDocument)
def edit_document(req: EditRequest):
    return apply_edit(req.document, req.edit, uuid_ids)


@app.post("/documents/recompute", response_model=InvoiceDocument)
def recompute(doc: InvoiceDocument):
    return recompute_all(doc)


@app.post("/documents/check", response_model=DocumentCheckResult)
def check(doc: InvoiceDocument):
    return check_document(doc)


@app.post("/documents/preview", response_model=InvoicePreview)
def preview(doc: InvoiceDocument):
    return build_preview(doc)


@app.post("/documents/pdf")
def export_pdf(doc: InvoiceDocument, width: int = 794):
    if width <= 0:
        raise HTTPException(status_code=400, detail="width must be positive")
    pdf_bytes = render_invoice_pdf(doc, content_width_px=width)
    return Response(
        content=pdf_bytes,
        media_type="application/pdf",
        headers={"Content-Disposition": f'attachment; filename="{pdf_filename(doc)}"'},
    )


# ---------------------------------------------------------
# LOGO UPLOAD
# ---------------------------------------------------------
@app.post("/logo")
async def upload_logo(file: UploadFile = File(...)):
    data = await file.read(MAX_LOGO_BYTES + 1)
    try:
        logo = load_logo(data, file.content_type, file.filename)
    except LogoRejectedError as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    return {"logo": logo}
