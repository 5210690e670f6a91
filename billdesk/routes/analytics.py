"""Analytics routes.

Each request reads one snapshot of clients + billing records and runs the
pure aggregation services over it. Nothing computed here is persisted.
"""

from __future__ import annotations

from flask import jsonify, request

from ..services import analytics, forecasting
from . import bp
from .helpers import load_snapshot


def _filter_arg(name: str) -> str:
    return (request.args.get(name) or analytics.ALL).strip() or analytics.ALL


@bp.route("/api/analytics/summary", methods=["GET"])
def analytics_summary():
    invoices, clients = load_snapshot()
    return jsonify(analytics.summarize(invoices, clients, currency_filter=_filter_arg("currency")))


@bp.route("/api/analytics/clients", methods=["GET"])
def analytics_clients():
    invoices, clients = load_snapshot()
    scored = analytics.score_clients(clients, invoices)
    high_risk = analytics.rank_high_risk(scored)
    return jsonify({"clients": scored, "high_risk": high_risk})


@bp.route("/api/analytics/invoices", methods=["GET"])
def analytics_invoices():
    invoices, clients = load_snapshot()
    direction = (request.args.get("direction") or "desc").lower()
    rows = analytics.filter_invoices(
        invoices,
        clients,
        search_term=request.args.get("search", ""),
        status_filter=_filter_arg("status"),
        currency_filter=_filter_arg("currency"),
        sort_field=request.args.get("sort") or "bill_date",
        sort_direction=direction,
    )
    return jsonify({"data": rows, "count": len(rows)})


@bp.route("/api/analytics/forecast", methods=["GET"])
def analytics_forecast():
    invoices, clients = load_snapshot()
    return jsonify(
        {
            "monthly": forecasting.monthly_revenue_series(invoices),
            "forecast": forecasting.forecast_revenue(invoices),
            "upcoming": forecasting.upcoming_payments(invoices, clients),
        }
    )


@bp.route("/api/analytics/engagement", methods=["GET"])
def analytics_engagement():
    invoices, clients = load_snapshot()
    return jsonify(forecasting.client_engagement(clients, invoices))
