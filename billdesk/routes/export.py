"""Data export route (CSV / PDF downloads)."""

from __future__ import annotations

from flask import Response, current_app

from ..services import analytics, export_service, pdf_service
from ..utils.validation import clean_str
from . import bp
from .helpers import json_body, json_error, load_snapshot


def _preset_rows(export_type: str, data: dict) -> list:
    invoices, clients = load_snapshot()
    if export_type == "invoices":
        return analytics.filter_invoices(
            invoices,
            clients,
            search_term=clean_str(data.get("search")) or "",
            status_filter=clean_str(data.get("status")) or analytics.ALL,
            currency_filter=clean_str(data.get("currency")) or analytics.ALL,
            sort_field=clean_str(data.get("sort")) or "bill_date",
            sort_direction=clean_str(data.get("direction")) or "desc",
        )
    if export_type == "clients":
        return clients
    return analytics.revenue_over_time(invoices)


@bp.route("/api/export", methods=["POST"])
def export_data():
    data = json_body()
    if not isinstance(data, dict):
        return json_error("Request body must be a JSON object", 400)

    export_type = clean_str(data.get("type")) or ""
    fmt = (clean_str(data.get("format")) or "csv").lower()
    fields = data.get("fields") or export_service.EXPORT_PRESETS.get(export_type)
    rows = data.get("data")

    if not export_type or not fields:
        return json_error("Invalid export type", 400, {"allowed": list(export_service.EXPORT_PRESETS)})
    if not isinstance(fields, list) or not all(isinstance(f, str) for f in fields):
        return json_error("Invalid data format", 400, "fields must be a list of strings")
    if fmt not in export_service.EXPORT_FORMATS:
        return json_error("Unsupported export format", 400)

    if rows is None:
        if export_type not in export_service.EXPORT_PRESETS:
            return json_error("Invalid data format", 400, "data is required for custom export types")
        rows = _preset_rows(export_type, data)
    elif not isinstance(rows, list):
        return json_error("Invalid data format", 400, "data must be a list")

    filename = export_service.export_filename(export_type, fmt)
    headers = {"Content-Disposition": f'attachment; filename="{filename}"'}

    if fmt == "csv":
        body = export_service.export_csv(rows, fields)
        return Response(body, mimetype="text/csv", headers=headers)

    try:
        pdf_bytes = export_service.export_pdf(rows, fields, export_type)
    except pdf_service.PdfUnavailableError as e:
        return json_error(str(e), 503)
    current_app.logger.info("Exported %d %s rows as PDF", len(rows), export_type)
    return Response(pdf_bytes, mimetype="application/pdf", headers=headers)
