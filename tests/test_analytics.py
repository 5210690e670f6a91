import copy
from datetime import date, datetime
from types import SimpleNamespace

import pytest

from billdesk.services import analytics


@pytest.fixture
def two_months():
    return [
        {"client_id": 1, "amount": 100, "payment_status": "paid", "bill_date": "2024-01-05", "currency": "INR"},
        {"client_id": 2, "amount": 200, "payment_status": "overdue", "bill_date": "2024-02-10", "currency": "USD"},
    ]


def test_summary_example(two_months):
    summary = analytics.summarize(two_months, [])
    assert summary["total_revenue"] == 300
    assert summary["paid_revenue"] == 100
    assert summary["overdue_revenue"] == 200
    assert summary["unpaid_revenue"] == 0
    assert summary["growth"] == {"rate": 100.0, "current": 200.0, "previous": 100.0}
    assert summary["invoice_count"] == 2
    assert summary["overdue_count"] == 1


def test_total_equals_sum_of_statuses():
    invoices = [
        {"amount": 10, "payment_status": "paid"},
        {"amount": 20, "payment_status": "unpaid"},
        {"amount": 30, "payment_status": "overdue"},
        {"amount": 40, "payment_status": "cancelled"},
        {"amount": "12.5", "payment_status": "paid"},
    ]
    by_status = analytics.revenue_by_status(invoices)
    assert analytics.total_revenue(invoices, "all") == sum(by_status.values())
    assert by_status["paid"] == 22.5


def test_unknown_status_counts_only_in_total():
    invoices = [{"amount": 50, "payment_status": "refunded"}, {"amount": 5, "payment_status": "paid"}]
    by_status = analytics.revenue_by_status(invoices)
    assert by_status == {"paid": 5.0, "unpaid": 0.0, "overdue": 0.0, "cancelled": 0.0}
    assert analytics.total_revenue(invoices) == 55


def test_missing_status_reads_as_unpaid():
    assert analytics.revenue_by_status([{"amount": 7}])["unpaid"] == 7


def test_currency_filter(two_months):
    assert analytics.total_revenue(two_months, "USD") == 200
    assert analytics.total_revenue(two_months, "EUR") == 0
    assert analytics.total_revenue(two_months, "all") == 300
    assert analytics.total_revenue(two_months, None) == 300


def test_service_revenue_example():
    invoices = [
        {"services_billed": [{"service": "design", "cost": 50}, {"service": "development", "cost": 150}]},
        {"services_billed": [{"service": "design", "cost": 30}]},
    ]
    result = analytics.service_revenue(invoices)
    assert result == {"design": 80.0, "development": 150.0}
    assert list(result) == ["design", "development"]


def test_service_revenue_tolerates_bad_line_items():
    invoices = [
        {"services_billed": None},
        {},
        {"services_billed": [{"service": "SEO"}, {"cost": 99}, {"service": "SEO", "cost": "abc"}]},
    ]
    assert analytics.service_revenue(invoices) == {"SEO": 0.0}


def test_top_clients_ranking_and_names():
    clients = [
        {"id": 1, "name": "Ravi", "company_name": "Acme"},
        {"id": 2, "name": "Meera"},
    ]
    invoices = [
        {"client_id": 1, "amount": 100},
        {"client_id": 2, "amount": 300},
        {"client_id": 99, "amount": 100},
        {"client_id": 1, "amount": 50},
    ]
    top = analytics.top_clients(invoices, clients)
    assert [row["name"] for row in top] == ["Meera", "Acme", "Unknown"]
    assert [row["amount"] for row in top] == [300, 150, 100]


def test_top_clients_ties_keep_encounter_order_and_limit():
    invoices = [{"client_id": i, "amount": 10} for i in range(8)]
    top = analytics.top_clients(invoices, [])
    assert [row["client_id"] for row in top] == [0, 1, 2, 3, 4]


def test_top_clients_matches_string_and_int_ids():
    top = analytics.top_clients([{"client_id": "3", "amount": 5}], [{"id": 3, "name": "Kiran"}])
    assert top[0]["name"] == "Kiran"


def test_revenue_over_time_orders_by_bill_date_undated_first():
    invoices = [
        {"amount": 2, "bill_date": "2024-03-01", "payment_status": "paid"},
        {"amount": 1},
        {"amount": 3, "bill_date": date(2024, 1, 1)},
    ]
    points = analytics.revenue_over_time(invoices)
    assert [p["amount"] for p in points] == [1, 3, 2]
    assert points[0]["date"] is None
    assert points[1] == {"date": date(2024, 1, 1), "amount": 3.0, "status": "unpaid"}


def test_monthly_revenue_buckets_chronologically():
    invoices = [
        {"amount": 5, "bill_date": "2024-02-28"},
        {"amount": 1, "bill_date": "2023-12-01"},
        {"amount": 4, "bill_date": "2024-02-01T10:00:00Z"},
        {"amount": 9, "bill_date": "not a date"},
    ]
    assert analytics.monthly_revenue(invoices) == {"2023-12": 1.0, "2024-02": 9.0}


def test_growth_with_single_month_is_zero():
    invoices = [{"amount": 10, "bill_date": "2024-01-01"}, {"amount": 10, "bill_date": "2024-01-20"}]
    assert analytics.revenue_growth(invoices) == {"rate": 0.0, "current": 0.0, "previous": 0.0}
    assert analytics.revenue_growth([]) == {"rate": 0.0, "current": 0.0, "previous": 0.0}


def test_growth_from_zero_month_is_exactly_100():
    invoices = [{"amount": 0, "bill_date": "2024-01-01"}, {"amount": 50, "bill_date": "2024-02-01"}]
    assert analytics.revenue_growth(invoices)["rate"] == 100.0


def test_growth_negative():
    invoices = [{"amount": 200, "bill_date": "2024-01-01"}, {"amount": 50, "bill_date": "2024-02-01"}]
    assert analytics.revenue_growth(invoices)["rate"] == -75.0


def test_aggregation_tolerates_empty_records():
    summary = analytics.summarize([{}, {"amount": None}], [{}])
    assert summary["total_revenue"] == 0
    assert summary["service_revenue"] == {}
    assert summary["top_clients"] == [{"client_id": None, "name": "Unknown", "amount": 0.0}]


def test_accepts_objects_as_well_as_dicts():
    inv = SimpleNamespace(amount=40, payment_status="paid", bill_date=date(2024, 1, 2), services_billed=[])
    assert analytics.revenue_by_status([inv])["paid"] == 40


def test_inputs_not_mutated(two_months):
    before = copy.deepcopy(two_months)
    analytics.summarize(two_months, [{"id": 1, "name": "A"}])
    analytics.filter_invoices(two_months, [], sort_field="amount", sort_direction="asc")
    assert two_months == before


def test_display_name_precedence():
    assert analytics.display_name({"name": "N", "company_name": "C"}) == "C"
    assert analytics.display_name({"name": "N", "company_name": ""}) == "N"
    assert analytics.display_name({}, "Unknown") == "Unknown"
    assert analytics.display_name(None) == ""


def test_to_datetime_normalizes_timezones():
    assert analytics._to_datetime("2024-01-01T05:30:00+05:30") == datetime(2024, 1, 1, 0, 0)
    assert analytics._to_datetime("") is None
    assert analytics._to_datetime(True) is None


def test_non_finite_amounts_are_zero_filled():
    invoices = [
        {"amount": "inf", "payment_status": "paid", "bill_date": "2024-01-01"},
        {"amount": "nan", "payment_status": "paid", "bill_date": "2024-02-01",
         "services_billed": [{"service": "SEO", "cost": float("inf")}]},
        {"amount": 40, "payment_status": "paid", "bill_date": "2024-02-02"},
    ]
    assert analytics.total_revenue(invoices) == 40
    assert analytics.revenue_by_status(invoices)["paid"] == 40
    assert analytics.service_revenue(invoices) == {"SEO": 0.0}
    assert analytics.revenue_growth(invoices)["rate"] == 100.0
