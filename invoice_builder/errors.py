# invoice_builder/errors.py
from __future__ import annotations


class InvoiceBuilderError(Exception):
    """Base class for errors raised at the edges (uploads, CLI input)."""


class LogoRejectedError(InvoiceBuilderError):
    """Uploaded logo is not an image or is too large.

    ``str(err)`` is the message shown to the user.
    """
