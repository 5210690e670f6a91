"""Invoice and export PDF rendering.

HTML is rendered from Jinja templates and converted with WeasyPrint. The
WeasyPrint import is optional at runtime (it needs native Pango/Cairo
libraries); callers get PdfUnavailableError when it cannot be loaded.
"""

from __future__ import annotations

import logging
import os
import re
from datetime import date

from flask import current_app, render_template

# Optional WeasyPrint import for PDF generation.
# We catch any Exception here (missing native libs raise OSError) and fall back to HTML = None.
try:
    from weasyprint import HTML
except Exception:
    HTML = None

logger = logging.getLogger(__name__)

INVOICE_DIR = "invoices"

_unsafe_filename_re = re.compile(r"[^A-Za-z0-9._-]+")


class PdfUnavailableError(RuntimeError):
    """Raised when WeasyPrint is not importable in this environment."""


def pdf_available() -> bool:
    return HTML is not None


def _write_pdf(html: str) -> bytes:
    if HTML is None:
        raise PdfUnavailableError("PDF generation is not available (WeasyPrint is not installed).")
    return HTML(string=html, base_url=current_app.root_path).write_pdf()


def render_invoice_html(record, client, settings) -> str:
    return render_template(
        "invoice_pdf.html",
        record=record,
        client=client,
        settings=settings,
        currency=getattr(record, "currency", None) or "INR",
        generated_on=date.today(),
    )


def render_invoice_pdf(record, client, settings) -> bytes:
    """Render one invoice to PDF bytes."""
    return _write_pdf(render_invoice_html(record, client, settings))


def invoice_pdf_filename(invoice_number: str) -> str:
    safe = _unsafe_filename_re.sub("-", invoice_number or "draft").strip("-") or "draft"
    return f"invoice-{safe}.pdf"


def save_invoice_pdf(record, client, settings, documents_root: str) -> str:
    """Render and store the invoice PDF; returns the path relative to documents_root."""
    pdf_bytes = render_invoice_pdf(record, client, settings)

    rel_path = os.path.join(INVOICE_DIR, invoice_pdf_filename(record.invoice_number))
    abs_path = os.path.join(documents_root, rel_path)
    os.makedirs(os.path.dirname(abs_path), exist_ok=True)
    with open(abs_path, "wb") as f:
        f.write(pdf_bytes)

    logger.info("Stored invoice PDF for %s at %s (%d bytes)", record.invoice_number, rel_path, len(pdf_bytes))
    return rel_path


def render_table_pdf(title: str, headers: list[str], rows: list[list[str]]) -> bytes:
    """Simple tabular report (used by data exports)."""
    html = render_template(
        "table_pdf.html",
        title=title,
        headers=headers,
        rows=rows,
        generated_on=date.today(),
    )
    return _write_pdf(html)
