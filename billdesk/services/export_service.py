"""CSV / PDF data exports for invoices, clients and revenue."""

from __future__ import annotations

import csv
import io
import json
import re
from collections.abc import Mapping
from datetime import date, datetime
from typing import Any, Iterable, List, Sequence

from . import pdf_service

EXPORT_PRESETS = {
    "invoices": [
        "invoice_number", "client_id", "amount", "currency",
        "payment_status", "bill_date", "due_date",
    ],
    "clients": [
        "name", "company_name", "email", "status",
        "billing_plan.model", "billing_plan.amount",
    ],
    "revenue": ["date", "amount", "status"],
}

EXPORT_FORMATS = ("csv", "pdf")


def resolve_path(item: Any, path: str) -> Any:
    """Follow a dotted path through nested dicts/objects; missing -> ""."""
    value = item
    for key in path.split("."):
        if value is None:
            return ""
        if isinstance(value, Mapping):
            value = value.get(key)
        else:
            value = getattr(value, key, None)
    return "" if value is None else value


def _cell(value: Any) -> str:
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, (dict, list)):
        return json.dumps(value, default=str)
    return str(value)


def export_csv(rows: Iterable[Any], fields: Sequence[str]) -> str:
    buf = io.StringIO()
    writer = csv.writer(buf, lineterminator="\n")
    writer.writerow(fields)
    for row in rows:
        writer.writerow([_cell(resolve_path(row, f)) for f in fields])
    return buf.getvalue()


def header_label(field: str) -> str:
    """'billing_plan.model' -> 'Model', 'payment_status' -> 'Payment Status'."""
    label = field.split(".")[-1]
    label = re.sub(r"([a-z])([A-Z])", r"\1 \2", label).replace("_", " ")
    return label.strip().title()


def export_pdf(rows: Iterable[Any], fields: Sequence[str], export_type: str) -> bytes:
    headers = [header_label(f) for f in fields]
    table: List[List[str]] = [[_cell(resolve_path(row, f)) for f in fields] for row in rows]
    title = f"{export_type.capitalize()} Report"
    return pdf_service.render_table_pdf(title, headers, table)


def export_filename(export_type: str, fmt: str, today: date | None = None) -> str:
    today = today or date.today()
    return f"{export_type}-export-{today.isoformat()}.{fmt}"
