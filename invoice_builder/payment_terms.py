# invoice_builder/payment_terms.py
"""Due-date and note text derived from a payment terms code."""
from __future__ import annotations

import logging
from datetime import timedelta

from .config import PAYMENT_NOTE_PATTERN, PAYMENT_TERMS
from .models import InvoiceDocument
from .normalize import parse_date_any, to_iso

logger = logging.getLogger(__name__)


def strip_payment_note(notes: str) -> str:
    """Remove every auto-generated payment sentence, keeping the user's text."""
    return PAYMENT_NOTE_PATTERN.sub("", notes or "").strip()


def apply_payment_terms(doc: InvoiceDocument, terms: str) -> InvoiceDocument:
    """Set the terms code, move the due date and rewrite the payment sentence.

    Unknown codes (including the empty "no terms" choice) put the due date back
    on the invoice date and only drop the generated sentence from the notes.
    """
    update = {"payment_terms": terms}
    offset, sentence = PAYMENT_TERMS.get(terms, (0, ""))

    invoice_date = parse_date_any(doc.invoice_date)
    if invoice_date is None:
        logger.debug("Invoice date %r unparseable, due date kept", doc.invoice_date)
    else:
        update["due_date"] = to_iso(invoice_date + timedelta(days=offset))

    user_notes = strip_payment_note(doc.notes)
    if sentence and user_notes:
        update["notes"] = f"{sentence}\n\n{user_notes}"
    else:
        update["notes"] = sentence or user_notes

    return doc.model_copy(update=update)
