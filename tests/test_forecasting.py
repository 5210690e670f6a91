from datetime import date, datetime, timedelta

import pytest

from billdesk.services import forecasting

NOW = datetime(2024, 6, 1)


def test_monthly_series_labels():
    series = forecasting.monthly_revenue_series(
        [{"amount": 10, "bill_date": "2024-01-03"}, {"amount": 5, "bill_date": "2023-12-30"}]
    )
    assert series == [
        {"month": "2023-12", "revenue": 5.0, "label": "Dec 2023"},
        {"month": "2024-01", "revenue": 10.0, "label": "Jan 2024"},
    ]


def test_forecast_needs_three_months():
    invoices = [{"amount": 10, "bill_date": "2024-01-03"}, {"amount": 20, "bill_date": "2024-02-03"}]
    assert forecasting.forecast_revenue(invoices) == []


def test_forecast_compounds_average_growth():
    invoices = [
        {"amount": 100, "bill_date": "2024-10-01"},
        {"amount": 110, "bill_date": "2024-11-01"},
        {"amount": 121, "bill_date": "2024-12-01"},
    ]
    rows = forecasting.forecast_revenue(invoices, months_ahead=2)
    assert [r["type"] for r in rows] == ["actual"] * 3 + ["forecast"] * 2
    assert [r["month"] for r in rows[3:]] == ["2025-01", "2025-02"]
    assert rows[3]["revenue"] == pytest.approx(133.1)
    assert rows[4]["revenue"] == pytest.approx(146.41)
    assert rows[3]["label"] == "Jan 2025"


def test_forecast_never_negative():
    invoices = [
        {"amount": 1000, "bill_date": "2024-01-01"},
        {"amount": 10, "bill_date": "2024-02-01"},
        {"amount": 0.1, "bill_date": "2024-03-01"},
    ]
    rows = forecasting.forecast_revenue(invoices, months_ahead=3)
    assert all(r["revenue"] >= 0 for r in rows)


def test_upcoming_payments_merges_plans_and_unpaid_invoices():
    today = date(2024, 6, 1)
    clients = [
        {"id": 1, "name": "Plan Co", "status": "active",
         "billing_plan": {"model": "monthly", "amount": 300, "next_due": "2024-06-15"}},
        {"id": 2, "name": "Paused", "status": "paused",
         "billing_plan": {"model": "monthly", "amount": 900, "next_due": "2024-06-10"}},
        {"id": 3, "name": "Far", "status": "active",
         "billing_plan": {"model": "monthly", "amount": 50, "next_due": "2025-01-01"}},
        {"id": 4, "name": "Once", "status": "active",
         "billing_plan": {"model": "one-time", "amount": 50, "next_due": "2024-06-05"}},
    ]
    invoices = [
        {"client_id": 2, "invoice_number": "INV-1", "amount": 40, "payment_status": "unpaid",
         "due_date": "2024-06-03"},
        {"client_id": 1, "invoice_number": "INV-2", "amount": 40, "payment_status": "paid",
         "due_date": "2024-06-04"},
        {"client_id": 9, "invoice_number": "INV-3", "amount": 10, "payment_status": "unpaid"},
    ]
    rows = forecasting.upcoming_payments(invoices, clients, today=today)
    assert [(r["type"], r["client"]) for r in rows] == [("invoice", "Paused"), ("recurring", "Plan Co")]
    assert rows[1]["due_date"] == date(2024, 6, 15)


def test_engagement_score_and_band():
    fresh = {"id": 1, "status": "active", "updated_at": NOW}
    bills = [{"client_id": 1, "bill_date": NOW - timedelta(days=5)} for _ in range(2)]
    # 100 + 10 recent bills + 10 active, clamped
    assert forecasting.engagement_score(fresh, bills, NOW) == 100

    stale = {"id": 2, "status": "inactive", "updated_at": NOW - timedelta(days=200)}
    # 100 - 50 idle - 30 inactive
    assert forecasting.engagement_score(stale, [], NOW) == 20
    assert forecasting.engagement_band(20) == "very_low"
    assert forecasting.engagement_band(40) == "low"
    assert forecasting.engagement_band(60) == "medium"
    assert forecasting.engagement_band(80) == "high"


def test_client_engagement_rows():
    rows = forecasting.client_engagement([{"id": 5, "company_name": "Acme", "status": "lead"}], [], NOW)
    assert rows == [
        {"client_id": 5, "name": "Acme", "status": "lead", "score": 100.0, "band": "high",
         "last_updated": None}
    ]
