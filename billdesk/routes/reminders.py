"""Reminder routes: bulk overdue reminders and the reminder log."""

from __future__ import annotations

from flask import jsonify
from sqlalchemy.orm import selectinload

from ..extensions import db
from ..models import BillingRecord, Client, ReminderLog
from ..services import email_service
from ..utils.validation import clean_str, is_valid_email
from . import bp
from .helpers import ensure_settings, json_body, json_error

REMINDER_TYPES = ("DOMAIN_EXPIRY", "INVOICE_REMINDER")
REMINDER_STATUSES = ("SENT", "FAILED")


@bp.route("/api/reminders/bulk", methods=["POST"])
def reminders_bulk():
    data = json_body()
    if not isinstance(data, dict):
        return json_error("Request body must be a JSON object", 400)
    ids = data.get("invoice_ids")
    if not isinstance(ids, list) or not ids:
        return json_error("invoice_ids must be a non-empty list", 400)
    try:
        ids = [int(i) for i in ids]
    except (TypeError, ValueError):
        return json_error("invoice_ids must be integers", 400)

    records = (
        BillingRecord.query.options(selectinload(BillingRecord.services_billed))
        .filter(BillingRecord.id.in_(ids))
        .filter(BillingRecord.payment_status == "overdue")
        .order_by(BillingRecord.id.asc())
        .all()
    )
    if not records:
        return json_error("No overdue invoices selected", 400)

    client_ids = {r.client_id for r in records}
    clients = Client.query.filter(Client.id.in_(client_ids)).all()
    by_id = {c.id: c for c in clients}

    summary = email_service.send_bulk_reminders(ensure_settings(), records, clients)

    for record, outcome in zip(records, summary.results):
        client = by_id.get(record.client_id)
        db.session.add(
            ReminderLog(
                client_id=record.client_id,
                billing_record_id=record.id,
                email=(client.email if client else "") or "",
                reminder_type="INVOICE_REMINDER",
                message=f"Payment reminder for invoice {record.invoice_number}",
                status="SENT" if outcome["success"] else "FAILED",
                error=outcome["error"],
            )
        )
    db.session.commit()

    return jsonify(summary.to_dict())


@bp.route("/api/reminder-logs", methods=["GET"])
def reminder_logs_list():
    logs = ReminderLog.query.order_by(ReminderLog.sent_at.desc(), ReminderLog.id.desc()).all()
    return jsonify([log.to_dict() for log in logs])


@bp.route("/api/reminder-logs", methods=["POST"])
def reminder_logs_create():
    data = json_body()
    if not isinstance(data, dict):
        return json_error("Request body must be a JSON object", 400)

    email = clean_str(data.get("email"))
    message = clean_str(data.get("message"))
    errors = []
    if not email:
        errors.append("email is required")
    elif not is_valid_email(email):
        errors.append("email is invalid")
    if not message:
        errors.append("message is required")
    for key in ("client_id", "billing_record_id"):
        if data.get(key) is not None and (isinstance(data[key], bool) or not isinstance(data[key], int)):
            errors.append(f"{key} must be an integer")
    if data.get("reminder_type") not in REMINDER_TYPES:
        errors.append(f"reminder_type must be one of: {', '.join(REMINDER_TYPES)}")
    if data.get("status") not in REMINDER_STATUSES:
        errors.append(f"status must be one of: {', '.join(REMINDER_STATUSES)}")
    if errors:
        return json_error("Failed to save reminder log", 400, errors)

    log = ReminderLog(
        client_id=data.get("client_id"),
        billing_record_id=data.get("billing_record_id"),
        email=email,
        reminder_type=data["reminder_type"],
        message=message,
        status=data["status"],
        error=clean_str(data.get("error")),
    )
    db.session.add(log)
    db.session.commit()
    return jsonify(log.to_dict()), 201
