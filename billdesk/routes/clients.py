"""Client routes.

CRUD for client records plus the domain-expiry lookup used by the reminder
job. Deleting a client also deletes its billing records.
"""

from __future__ import annotations

from datetime import date, timedelta

from flask import current_app, jsonify, request
from sqlalchemy import or_

from ..extensions import db
from ..models import Client, ReminderLog, utcnow
from ..services import email_service
from ..utils.validation import CLIENT_STATUSES, validate_client_payload
from . import bp
from .helpers import ensure_settings, json_body, json_error, paginate, pagination_args

DOMAIN_EXPIRY_WINDOW_DAYS = 30


@bp.route("/api/clients", methods=["GET"])
def clients_list():
    query = Client.query

    status = (request.args.get("status") or "").strip()
    if status:
        if status not in CLIENT_STATUSES:
            return json_error("Invalid status filter", 400, {"allowed": list(CLIENT_STATUSES)})
        query = query.filter(Client.status == status)

    search = (request.args.get("search") or "").strip()
    if search:
        like = f"%{search}%"
        query = query.filter(
            or_(
                Client.name.ilike(like),
                Client.email.ilike(like),
                Client.company_name.ilike(like),
            )
        )

    query = query.order_by(Client.created_at.desc(), Client.id.desc())
    page, limit = pagination_args()
    clients, pagination = paginate(query, page, limit)
    return jsonify({"data": [c.to_dict() for c in clients], "pagination": pagination})


@bp.route("/api/clients", methods=["POST"])
def clients_create():
    values, errors = validate_client_payload(json_body())
    if errors:
        return json_error("Invalid client data", 400, errors)

    client = Client(**values)
    db.session.add(client)
    db.session.commit()
    current_app.logger.info("Created client id=%s (%s)", client.id, client.display_name)
    return jsonify(client.to_dict()), 201


@bp.route("/api/clients/<int:client_id>", methods=["GET"])
def clients_detail(client_id):
    client = db.session.get(Client, client_id)
    if client is None:
        return json_error("Client not found", 404)
    return jsonify(client.to_dict())


@bp.route("/api/clients/<int:client_id>", methods=["PUT", "PATCH"])
def clients_update(client_id):
    client = db.session.get(Client, client_id)
    if client is None:
        return json_error("Client not found", 404)

    values, errors = validate_client_payload(json_body(), partial=True)
    if errors:
        return json_error("Invalid client data", 400, errors)

    for key, value in values.items():
        setattr(client, key, value)
    # Activity timestamp feeds the risk and engagement scores
    client.updated_at = utcnow()
    db.session.commit()
    return jsonify(client.to_dict())


@bp.route("/api/clients/<int:client_id>", methods=["DELETE"])
def clients_delete(client_id):
    client = db.session.get(Client, client_id)
    if client is None:
        return json_error("Client not found", 404)

    removed = len(client.billing_records)
    db.session.delete(client)
    db.session.commit()
    current_app.logger.info("Deleted client id=%s with %d billing records", client_id, removed)
    return jsonify({"message": "Client and related records deleted successfully", "deleted_records": removed})


def _expiring_clients(today: date | None = None):
    today = today or date.today()
    until = today + timedelta(days=DOMAIN_EXPIRY_WINDOW_DAYS)
    return (
        Client.query.filter(Client.domain_expiry.isnot(None))
        .filter(Client.domain_expiry >= today)
        .filter(Client.domain_expiry <= until)
        .order_by(Client.domain_expiry.asc())
        .all()
    )


@bp.route("/api/clients/expiring-soon", methods=["GET"])
def clients_expiring_soon():
    return jsonify(
        [
            {
                "id": c.id,
                "email": c.email,
                "domain": c.website_url or "",
                "expiry_date": c.domain_expiry,
            }
            for c in _expiring_clients()
        ]
    )


@bp.route("/api/clients/expiring-soon/remind", methods=["POST"])
def clients_expiring_soon_remind():
    settings = ensure_settings()
    results = []
    for client in _expiring_clients():
        result = email_service.send_domain_expiry_reminder(settings, client)
        db.session.add(
            ReminderLog(
                client_id=client.id,
                email=client.email,
                reminder_type="DOMAIN_EXPIRY",
                message=result.message,
                status="SENT" if result.success else "FAILED",
                error=result.error,
            )
        )
        results.append(dict(result.to_dict(), client_id=client.id))
    db.session.commit()
    return jsonify({"results": results, "sent": sum(1 for r in results if r["success"])})
