"""Revenue forecasting, upcoming payments and client engagement.

Built on the same tolerant record helpers as `analytics`; inputs are never
mutated and nothing here performs I/O.
"""

from __future__ import annotations

from datetime import date, datetime, timedelta
from typing import Any, Dict, Iterable, List, Optional, Sequence

from .analytics import (
    UNKNOWN_CLIENT,
    _client_index,
    _field,
    _id_key,
    _invoices_for,
    _now,
    _number,
    _to_date,
    _to_datetime,
    client_status,
    display_name,
    growth_rate,
    monthly_revenue,
    payment_status,
)

MIN_FORECAST_MONTHS = 3


def _month_label(month: str) -> str:
    year, mon = month.split("-")
    return date(int(year), int(mon), 1).strftime("%b %Y")


def _add_months(month: str, n: int) -> str:
    year, mon = (int(p) for p in month.split("-"))
    index = year * 12 + (mon - 1) + n
    return f"{index // 12:04d}-{index % 12 + 1:02d}"


def monthly_revenue_series(invoices: Iterable[Any]) -> List[Dict[str, Any]]:
    return [
        {"month": month, "revenue": revenue, "label": _month_label(month)}
        for month, revenue in monthly_revenue(invoices).items()
    ]


def forecast_revenue(
    invoices: Iterable[Any],
    months_ahead: int = 6,
    window: int = 6,
) -> List[Dict[str, Any]]:
    """Recent actual months followed by a compounded projection.

    The projection applies the average month-over-month growth across the
    window to the last actual month. Returns [] with fewer than 3 months of
    history.
    """
    series = monthly_revenue_series(invoices)
    if len(series) < MIN_FORECAST_MONTHS:
        return []

    recent = series[-max(2, window):]
    steps = [
        growth_rate(curr["revenue"], prev["revenue"]) / 100
        for prev, curr in zip(recent, recent[1:])
    ]
    avg_growth = sum(steps) / len(steps)

    rows = [dict(row, type="actual") for row in recent]
    last_month = recent[-1]["month"]
    revenue = recent[-1]["revenue"]
    for i in range(1, months_ahead + 1):
        revenue = revenue * (1 + avg_growth)
        month = _add_months(last_month, i)
        rows.append(
            {
                "month": month,
                "revenue": max(0.0, revenue),
                "label": _month_label(month),
                "type": "forecast",
            }
        )
    return rows


def upcoming_payments(
    invoices: Iterable[Any],
    clients: Sequence[Any],
    today: Optional[date] = None,
    horizon_days: int = 90,
    limit: int = 10,
) -> List[Dict[str, Any]]:
    """Expected incoming payments: monthly plans coming due plus unpaid invoices."""
    today = today or date.today()
    horizon = today + timedelta(days=horizon_days)
    upcoming: List[Dict[str, Any]] = []

    for client in clients or ():
        plan = _field(client, "billing_plan")
        if callable(plan):
            plan = plan()
        if client_status(client) != "active" or not plan:
            continue
        if _field(plan, "model") != "monthly":
            continue
        next_due = _to_date(_field(plan, "next_due"))
        if next_due is None or not (today < next_due <= horizon):
            continue
        upcoming.append(
            {
                "client": display_name(client, UNKNOWN_CLIENT),
                "client_id": _field(client, "id"),
                "amount": _number(_field(plan, "amount")),
                "due_date": next_due,
                "type": "recurring",
            }
        )

    index = _client_index(clients)
    for inv in invoices or ():
        if payment_status(inv) != "unpaid":
            continue
        due = _to_date(_field(inv, "due_date"))
        if due is None:
            continue
        client = index.get(_id_key(_field(inv, "client_id")))
        upcoming.append(
            {
                "client": display_name(client, UNKNOWN_CLIENT),
                "client_id": _field(inv, "client_id"),
                "amount": _number(_field(inv, "amount")),
                "due_date": due,
                "type": "invoice",
                "invoice_number": _field(inv, "invoice_number"),
            }
        )

    upcoming.sort(key=lambda row: row["due_date"])
    return upcoming[: max(0, limit)]


# -----------------------------------------------------------------------------
#  Engagement
# -----------------------------------------------------------------------------

STATUS_ENGAGEMENT = {"active": 10, "paused": -20, "inactive": -30}


def engagement_score(client: Any, invoices: Iterable[Any], now: Optional[datetime] = None) -> float:
    now = _now(now)
    last_touch = _to_datetime(_field(client, "updated_at")) or _to_datetime(_field(client, "created_at"))
    idle_days = (now - last_touch).days if last_touch is not None else 0

    recent_cutoff = now - timedelta(days=90)
    recent_bills = 0
    for inv in _invoices_for(client, invoices):
        billed = _to_datetime(_field(inv, "bill_date"))
        if billed is not None and billed > recent_cutoff:
            recent_bills += 1

    score = 100.0
    if idle_days > 30:
        score -= min(50, idle_days - 30)
    score += min(20, recent_bills * 5)
    score += STATUS_ENGAGEMENT.get(client_status(client), 0)
    return max(0.0, min(100.0, score))


def engagement_band(score: float) -> str:
    if score >= 80:
        return "high"
    if score >= 60:
        return "medium"
    if score >= 40:
        return "low"
    return "very_low"


def client_engagement(
    clients: Sequence[Any],
    invoices: Sequence[Any],
    now: Optional[datetime] = None,
) -> List[Dict[str, Any]]:
    rows = []
    for client in clients or ():
        score = engagement_score(client, invoices, now)
        rows.append(
            {
                "client_id": _field(client, "id"),
                "name": display_name(client, UNKNOWN_CLIENT),
                "status": client_status(client),
                "score": score,
                "band": engagement_band(score),
                "last_updated": _field(client, "updated_at"),
            }
        )
    return rows
