"""Billing record (invoice) routes.

CRUD for invoices and their line items, invoice PDF download, and sending an
invoice or a payment reminder by email.

The stored `amount` is never recomputed from the line items; it may differ on
purpose (discounts, manual overrides).
"""

from __future__ import annotations

import io
import os

from flask import current_app, jsonify, request, send_file
from sqlalchemy.exc import IntegrityError

from ..extensions import db
from ..models import BillingRecord, Client, ReminderLog, ServiceLineItem, utcnow
from ..services import email_service, pdf_service
from ..utils.validation import PAYMENT_STATUSES, validate_billing_payload
from . import bp
from .helpers import (
    ensure_settings,
    generate_invoice_number,
    json_body,
    json_error,
    paginate,
    pagination_args,
)


def _set_line_items(record: BillingRecord, items: list[dict]) -> None:
    record.services_billed = [
        ServiceLineItem(position=i, service=item["service"], description=item["description"], cost=item["cost"])
        for i, item in enumerate(items)
    ]


def _is_duplicate_invoice_number(exc: IntegrityError) -> bool:
    """True when the unique index on invoice_number rejected the row."""
    return "invoice_number" in str(getattr(exc, "orig", exc))


def _pdf_abs_path(record: BillingRecord) -> str | None:
    if not record.bill_pdf_path:
        return None
    return os.path.join(current_app.config["DOCUMENTS_ROOT"], record.bill_pdf_path)


@bp.route("/api/bills", methods=["GET"])
def bills_list():
    query = BillingRecord.query

    status = (request.args.get("status") or "").strip()
    if status and status != "all":
        if status not in PAYMENT_STATUSES:
            return json_error("Invalid status filter", 400, {"allowed": list(PAYMENT_STATUSES)})
        query = query.filter(BillingRecord.payment_status == status)

    client_id = request.args.get("client_id", type=int)
    if client_id is not None:
        query = query.filter(BillingRecord.client_id == client_id)

    query = query.order_by(BillingRecord.created_at.desc(), BillingRecord.id.desc())
    page, limit = pagination_args()
    records, pagination = paginate(query, page, limit)
    return jsonify({"data": [r.to_dict() for r in records], "pagination": pagination})


@bp.route("/api/bills", methods=["POST"])
def bills_create():
    values, errors = validate_billing_payload(json_body())
    if errors:
        return json_error("Invalid billing data", 400, errors)

    client = db.session.get(Client, values["client_id"])
    if client is None:
        return json_error("Client not found", 404)

    items = values.pop("services_billed", [])
    # Let model defaults fill explicit nulls
    values = {k: v for k, v in values.items() if v is not None}
    if not values.get("invoice_number"):
        values["invoice_number"] = generate_invoice_number()
    values.setdefault("currency", client.plan_currency or ensure_settings().default_currency or "INR")

    record = BillingRecord(**values)
    _set_line_items(record, items)
    db.session.add(record)

    try:
        db.session.flush()
    except IntegrityError as e:
        db.session.rollback()
        if _is_duplicate_invoice_number(e):
            return json_error("Invoice number already exists", 409)
        raise

    if not record.bill_pdf_path:
        if pdf_service.pdf_available():
            try:
                record.bill_pdf_path = pdf_service.save_invoice_pdf(
                    record, client, ensure_settings(), current_app.config["DOCUMENTS_ROOT"]
                )
            except Exception:
                db.session.rollback()
                current_app.logger.exception("Invoice PDF generation failed for %s", values["invoice_number"])
                return json_error("Failed to generate PDF", 500)
        else:
            current_app.logger.warning(
                "WeasyPrint unavailable; saving invoice %s without a PDF", record.invoice_number
            )

    client.updated_at = utcnow()
    db.session.commit()
    current_app.logger.info(
        "Created invoice %s for client id=%s amount=%.2f", record.invoice_number, client.id, record.amount
    )
    return jsonify(record.to_dict()), 201


@bp.route("/api/bills/<int:bill_id>", methods=["GET"])
def bills_detail(bill_id):
    record = db.session.get(BillingRecord, bill_id)
    if record is None:
        return json_error("Billing record not found", 404)
    return jsonify(record.to_dict())


@bp.route("/api/bills/<int:bill_id>", methods=["PUT", "PATCH"])
def bills_update(bill_id):
    record = db.session.get(BillingRecord, bill_id)
    if record is None:
        return json_error("Billing record not found", 404)

    values, errors = validate_billing_payload(json_body(), partial=True)
    if errors:
        return json_error("Invalid billing data", 400, errors)

    if "client_id" in values and db.session.get(Client, values["client_id"]) is None:
        return json_error("Client not found", 404)

    # Dates may arrive one at a time; check against the stored counterpart
    bill_date = values.get("bill_date", record.bill_date)
    due_date = values.get("due_date", record.due_date)
    if bill_date and due_date and due_date < bill_date:
        return json_error("Invalid billing data", 400, ["Due date must not be before the bill date"])

    if "services_billed" in values:
        _set_line_items(record, values.pop("services_billed"))
    for key, value in values.items():
        if key == "invoice_number" and not value:
            continue
        setattr(record, key, value)

    try:
        db.session.commit()
    except IntegrityError as e:
        db.session.rollback()
        if _is_duplicate_invoice_number(e):
            return json_error("Invoice number already exists", 409)
        raise
    return jsonify(record.to_dict())


@bp.route("/api/bills/<int:bill_id>", methods=["DELETE"])
def bills_delete(bill_id):
    record = db.session.get(BillingRecord, bill_id)
    if record is None:
        return json_error("Billing record not found", 404)

    pdf_path = _pdf_abs_path(record)
    db.session.delete(record)
    db.session.commit()

    if pdf_path and os.path.exists(pdf_path):
        try:
            os.remove(pdf_path)
        except OSError:
            current_app.logger.warning("Could not remove invoice PDF %s", pdf_path)

    return jsonify({"message": "Billing record deleted successfully"})


def _invoice_pdf_bytes(record: BillingRecord) -> bytes:
    """Stored PDF if present on disk, otherwise a fresh render."""
    pdf_path = _pdf_abs_path(record)
    if pdf_path and os.path.exists(pdf_path):
        with open(pdf_path, "rb") as f:
            return f.read()
    return pdf_service.render_invoice_pdf(record, record.client, ensure_settings())


@bp.route("/api/bills/<int:bill_id>/pdf", methods=["GET"])
def bills_pdf(bill_id):
    record = db.session.get(BillingRecord, bill_id)
    if record is None:
        return json_error("Billing record not found", 404)

    try:
        pdf_bytes = _invoice_pdf_bytes(record)
    except pdf_service.PdfUnavailableError as e:
        return json_error(str(e), 503)

    return send_file(
        io.BytesIO(pdf_bytes),
        mimetype="application/pdf",
        as_attachment=True,
        download_name=pdf_service.invoice_pdf_filename(record.invoice_number),
    )


@bp.route("/api/bills/<int:bill_id>/send", methods=["POST"])
def bills_send(bill_id):
    record = db.session.get(BillingRecord, bill_id)
    if record is None:
        return json_error("Billing record not found", 404)

    try:
        pdf_bytes = _invoice_pdf_bytes(record)
    except pdf_service.PdfUnavailableError:
        current_app.logger.warning("Sending invoice %s without PDF attachment", record.invoice_number)
        pdf_bytes = None

    result = email_service.send_invoice_email(ensure_settings(), record, record.client, pdf_bytes)
    return jsonify(result.to_dict()), (200 if result.success else 502)


@bp.route("/api/bills/<int:bill_id>/remind", methods=["POST"])
def bills_remind(bill_id):
    record = db.session.get(BillingRecord, bill_id)
    if record is None:
        return json_error("Billing record not found", 404)

    client = record.client
    result = email_service.send_invoice_reminder(ensure_settings(), record, client)
    db.session.add(
        ReminderLog(
            client_id=record.client_id,
            billing_record_id=record.id,
            email=(client.email if client else "") or "",
            reminder_type="INVOICE_REMINDER",
            message=result.message,
            status="SENT" if result.success else "FAILED",
            error=result.error,
        )
    )
    db.session.commit()
    return jsonify(result.to_dict()), (200 if result.success else 502)
