"""Shared route helpers.

This module exists to keep route modules small and avoid duplicating common
logic across clients/billing/reminders/analytics/export.

Intentionally **no Blueprint routes** should live here.
"""

from __future__ import annotations

import math
from datetime import date
from typing import Any, Optional, Tuple

from flask import current_app, jsonify, request
from sqlalchemy import func
from sqlalchemy.orm import selectinload

from ..extensions import db
from ..models import BillingRecord, Client, Settings


# -----------------------------------------------------------------------------
# Responses
# -----------------------------------------------------------------------------

def json_error(message: str, status: int = 400, details: Any = None):
    payload = {"error": message}
    if details is not None:
        payload["details"] = details
    return jsonify(payload), status


def json_body() -> dict:
    """Parsed JSON body ({} for empty or non-JSON requests). May be a list or scalar."""
    data = request.get_json(silent=True)
    return data if data is not None else {}


# -----------------------------------------------------------------------------
# Pagination
# -----------------------------------------------------------------------------

def _int_arg(name: str, default: int, minimum: int = 1) -> int:
    raw = request.args.get(name)
    try:
        value = int(raw) if raw not in (None, "") else default
    except ValueError:
        value = default
    return max(minimum, value)


def pagination_args() -> Tuple[int, int]:
    page = _int_arg("page", 1)
    limit = _int_arg("limit", current_app.config.get("DEFAULT_PAGE_SIZE", 10))
    return page, min(limit, current_app.config.get("MAX_PAGE_SIZE", 500))


def paginate(query, page: int, limit: int):
    """Return (items, pagination_dict) for a SQLAlchemy query."""
    total = query.order_by(None).count()
    items = query.offset((page - 1) * limit).limit(limit).all()
    pagination = {
        "total": total,
        "page": page,
        "limit": limit,
        "pages": math.ceil(total / limit) if limit else 0,
    }
    return items, pagination


# -----------------------------------------------------------------------------
# Settings
# -----------------------------------------------------------------------------

def ensure_settings() -> Settings:
    """Return the singleton Settings row, creating it if missing."""
    settings = Settings.query.first()
    if settings is None:
        settings = Settings(
            business_name="Your Company Name",
            default_currency=current_app.config.get("DEFAULT_CURRENCY", "INR"),
        )
        db.session.add(settings)
        db.session.commit()
    return settings


# -----------------------------------------------------------------------------
# Invoice numbers
# -----------------------------------------------------------------------------

def generate_invoice_number(today: Optional[date] = None) -> str:
    """Generate invoice numbers like INV-YY-### (per-year sequence).

    Examples:
      INV-25-001
      INV-25-002

    If existing invoice numbers don't match the pattern, we safely start at 001.
    """
    today = today or date.today()
    prefix = f"INV-{today:%y}-"

    # String-based max, so the numeric suffix is assumed to be zero-padded.
    last = (
        db.session.query(func.max(BillingRecord.invoice_number))
        .filter(BillingRecord.invoice_number.like(f"{prefix}%"))
        .scalar()
    )

    next_n = 1
    if last:
        try:
            next_n = int(str(last)[len(prefix):]) + 1
        except ValueError:
            next_n = 1

    return f"{prefix}{next_n:03d}"


# -----------------------------------------------------------------------------
# Snapshot for analytics
# -----------------------------------------------------------------------------

def load_snapshot() -> Tuple[list, list]:
    """All billing records and clients as plain dicts (one consistent read)."""
    records = (
        BillingRecord.query.options(selectinload(BillingRecord.services_billed))
        .order_by(BillingRecord.created_at.desc(), BillingRecord.id.desc())
        .all()
    )
    clients = Client.query.order_by(Client.created_at.desc(), Client.id.desc()).all()
    return [r.to_dict() for r in records], [c.to_dict() for c in clients]
