from datetime import datetime, timedelta

import pytest

from billdesk.services import analytics

NOW = datetime(2024, 6, 1, 12, 0, 0)


def client(cid, status="active", created_days=300, updated_days=0, **extra):
    data = {
        "id": cid,
        "name": f"Client {cid}",
        "status": status,
        "created_at": NOW - timedelta(days=created_days),
        "updated_at": NOW - timedelta(days=updated_days),
    }
    data.update(extra)
    return data


def bill(cid, amount=100, status="paid"):
    return {"client_id": cid, "amount": amount, "payment_status": status}


def test_client_without_invoices_scores_zero():
    c = client(1, status="paused", updated_days=900)
    assert analytics.client_risk_score(c, [bill(2, status="overdue")], NOW) == 0
    assert analytics.client_ltv(c, [], NOW) == 0


def test_risk_clamps_at_100():
    c = client(1, status="paused", updated_days=400)
    invoices = [bill(1, status="overdue") for _ in range(4)]
    assert analytics.client_risk_score(c, invoices, NOW) == 100


def test_risk_terms_add_up():
    c = client(1, status="paused", updated_days=60)
    invoices = [bill(1, status="overdue"), bill(1, status="paid")]
    # 25 overdue + 20 paused + 60 / 30 * 10 inactivity
    assert analytics.client_risk_score(c, invoices, NOW) == pytest.approx(65.0)


def test_inactivity_term_capped_and_floored():
    assert analytics.inactivity_risk(client(1, updated_days=3000), NOW) == 100
    assert analytics.inactivity_risk(client(1, updated_days=-10), NOW) == 0
    assert analytics.inactivity_risk({"id": 1}, NOW) == 0


def test_risk_of_none_client_is_zero():
    assert analytics.client_risk_score(None, [bill(1)], NOW) == 0


def test_ltv_is_average_monthly_billing():
    c = client(1, created_days=60)
    assert analytics.client_ltv(c, [bill(1, 300), bill(1, 300)], NOW) == pytest.approx(300.0)


def test_ltv_age_defaults_to_one_month():
    c = {"id": 1}
    assert analytics.client_ltv(c, [bill(1, 120)], NOW) == 120


def test_ltv_brand_new_client_does_not_divide_by_zero():
    c = client(1, created_days=0)
    assert analytics.client_ltv(c, [bill(1, 10)], NOW) == pytest.approx(300.0)


def test_ltv_ignores_other_clients_invoices():
    c = client(1, created_days=30)
    assert analytics.client_ltv(c, [bill(2, 500)], NOW) == 0


def test_score_clients_keeps_client_order():
    clients = [client(2), client(1, company_name="Acme")]
    scored = analytics.score_clients(clients, [bill(1, 30)], NOW)
    assert [row["client_id"] for row in scored] == [2, 1]
    assert scored[1]["name"] == "Acme"
    assert scored[0]["risk_score"] == 0
    assert scored[1]["ltv"] == pytest.approx(3.0)


def test_high_risk_sorted_desc_with_stable_ties():
    clients = [
        client(1, status="paused", updated_days=0),
        client(2, status="active", updated_days=0),
        client(3, status="active", updated_days=0),
        client(4, status="active", updated_days=0),
    ]
    invoices = [
        bill(1, status="overdue"),  # 45, below threshold
        bill(2, status="overdue"), bill(2, status="overdue"), bill(2, status="overdue"),  # 75
        bill(3, status="overdue"), bill(3, status="overdue"), bill(3, status="overdue"),  # 75
        bill(4, status="overdue"), bill(4, status="overdue"), bill(4, status="overdue"),
        bill(4, status="overdue"),  # 100
    ]
    risky = analytics.high_risk_clients(clients, invoices, NOW)
    assert [row["client_id"] for row in risky] == [4, 2, 3]


def test_exactly_threshold_is_not_high_risk():
    c = client(1, updated_days=0)
    invoices = [bill(1, status="overdue"), bill(1, status="overdue")]
    assert analytics.client_risk_score(c, invoices, NOW) == 50
    assert analytics.high_risk_clients([c], invoices, NOW) == []
