# invoice_builder/cli.py
from __future__ import annotations

import argparse
import json
import sys
from datetime import date
from pathlib import Path
from typing import List

from pydantic import TypeAdapter, ValidationError

from .config import configure_logging
from .edits import Edit, apply_edit
from .engine import new_document, recompute_all
from .ids import uuid_ids
from .models import InvoiceDocument
from .normalize import parse_date_any
from .pdf_export import pdf_filename, render_invoice_pdf
from .validator import check_document


_EDITS = TypeAdapter(List[Edit])


def _load_document(path: str) -> InvoiceDocument:
    return InvoiceDocument.model_validate_json(Path(path).read_text(encoding="utf-8"))


def _write_document(doc: InvoiceDocument, path: str) -> None:
    out = Path(path)
    out.parent.mkdir(parents=True, exist_ok=True)
    out.write_text(doc.model_dump_json(indent=2), encoding="utf-8")


def cmd_new(args: argparse.Namespace) -> int:
    today = parse_date_any(args.date) if args.date else date.today()
    if today is None:
        print(f"Unreadable date: {args.date}", file=sys.stderr)
        return 2
    doc = new_document(today=today, currency=args.currency)
    _write_document(doc, args.output)
    print(f"Created {doc.invoice_number} in {args.output}")
    return 0


def cmd_apply(args: argparse.Namespace) -> int:
    doc = _load_document(args.input)
    edits = _EDITS.validate_json(Path(args.edits).read_text(encoding="utf-8"))
    for edit in edits:
        doc = apply_edit(doc, edit, uuid_ids)
    _write_document(doc, args.output or args.input)
    print(f"Applied {len(edits)} edits. Total: {doc.currency}{doc.total:.2f}")
    return 0


def cmd_check(args: argparse.Namespace) -> int:
    doc = _load_document(args.input)
    if args.recompute:
        doc = recompute_all(doc)
    result = check_document(doc)

    if args.report:
        Path(args.report).write_text(
            json.dumps(result.model_dump(), indent=2), encoding="utf-8"
        )

    print(f"Consistent: {result.is_consistent}")
    for err in result.errors:
        print(f"  {err}")
    for warning in result.warnings:
        print(f"  (warning) {warning}")
    return 0 if result.is_consistent else 1


def cmd_pdf(args: argparse.Namespace) -> int:
    doc = recompute_all(_load_document(args.input))
    output = Path(args.output or pdf_filename(doc))
    output.write_bytes(render_invoice_pdf(doc, content_width_px=args.width))
    print(f"Wrote {output}")
    return 0


def main(argv: List[str] | None = None) -> None:
    parser = argparse.ArgumentParser(prog="invoice-builder")
    parser.add_argument("--log-level", default=None, help="DEBUG, INFO, WARNING...")
    sub = parser.add_subparsers(dest="command", required=True)

    p_new = sub.add_parser("new", help="Create an empty invoice document")
    p_new.add_argument("--output", required=True, help="Output JSON file")
    p_new.add_argument("--date", help="Invoice date (defaults to today)")
    p_new.add_argument("--currency", help="Currency symbol, e.g. $ or €")
    p_new.set_defaults(func=cmd_new)

    p_apply = sub.add_parser("apply", help="Apply a JSON list of edits to a document")
    p_apply.add_argument("--input", required=True, help="Document JSON file")
    p_apply.add_argument("--edits", required=True, help="JSON file with a list of edits")
    p_apply.add_argument("--output", help="Output JSON file (defaults to --input)")
    p_apply.set_defaults(func=cmd_apply)

    p_check = sub.add_parser("check", help="Check a document's totals for consistency")
    p_check.add_argument("--input", required=True, help="Document JSON file")
    p_check.add_argument("--report", help="Write the check result as JSON")
    p_check.add_argument(
        "--recompute", action="store_true", help="Recompute all totals before checking"
    )
    p_check.set_defaults(func=cmd_check)

    p_pdf = sub.add_parser("pdf", help="Render a document to PDF")
    p_pdf.add_argument("--input", required=True, help="Document JSON file")
    p_pdf.add_argument("--output", help="PDF path (defaults to invoice-<number>.pdf)")
    p_pdf.add_argument("--width", type=int, default=794, help="Content width in pixels")
    p_pdf.set_defaults(func=cmd_pdf)

    args = parser.parse_args(argv)
    configure_logging(args.log_level)
    try:
        exit_code = args.func(args)
    except ValidationError as exc:
        print(f"Invalid input: {exc}", file=sys.stderr)
        exit_code = 2
    except FileNotFoundError as exc:
        print(f"File not found: {exc.filename}", file=sys.stderr)
        exit_code = 2
    sys.exit(exit_code)


if __name__ == "__main__":
    main()
