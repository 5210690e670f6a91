from datetime import date, timedelta

from billdesk.models import BillingRecord, ReminderLog
from billdesk.services import email_service


def test_create_and_get_client(client):
    resp = client.post(
        "/api/clients",
        json={
            "name": "Asha Rao",
            "email": "Asha@Example.com",
            "company_name": "Pixel Works",
            "billing_plan": {"model": "monthly", "amount": 1200, "next_due": "2024-07-01"},
        },
    )
    assert resp.status_code == 201
    body = resp.get_json()
    assert body["email"] == "asha@example.com"
    assert body["status"] == "lead"
    assert body["billing_plan"]["next_due"] == "2024-07-01"

    resp = client.get(f"/api/clients/{body['id']}")
    assert resp.status_code == 200
    assert resp.get_json()["company_name"] == "Pixel Works"


def test_create_client_validation_error(client):
    resp = client.post("/api/clients", json={"email": "bad"})
    assert resp.status_code == 400
    body = resp.get_json()
    assert body["error"] == "Invalid client data"
    assert "Name is required" in body["details"]


def test_list_filters_and_paginates(client, make_client):
    make_client(name="A", email="a@example.com", status="active")
    make_client(name="B", email="b@example.com", status="paused")
    make_client(name="C", email="c@example.com", status="active")

    resp = client.get("/api/clients?status=active&limit=1")
    body = resp.get_json()
    assert body["pagination"] == {"total": 2, "page": 1, "limit": 1, "pages": 2}
    assert len(body["data"]) == 1

    resp = client.get("/api/clients?search=b@ex")
    assert [c["name"] for c in resp.get_json()["data"]] == ["B"]

    assert client.get("/api/clients?status=vip").status_code == 400


def test_update_client(client, make_client):
    cid = make_client()
    resp = client.patch(f"/api/clients/{cid}", json={"status": "paused", "notes": "on hold"})
    assert resp.status_code == 200
    assert resp.get_json()["status"] == "paused"
    assert client.put("/api/clients/999", json={"notes": "x"}).status_code == 404


def test_delete_client_cascades_billing(app, client, make_client, make_bill):
    cid = make_client()
    make_bill(cid, "INV-24-001")
    make_bill(cid, "INV-24-002")

    resp = client.delete(f"/api/clients/{cid}")
    assert resp.status_code == 200
    assert resp.get_json()["deleted_records"] == 2
    with app.app_context():
        assert BillingRecord.query.count() == 0
    assert client.get(f"/api/clients/{cid}").status_code == 404


def test_expiring_soon(client, make_client):
    soon = date.today() + timedelta(days=10)
    make_client(name="Soon", email="soon@example.com", website_url="soon.example", domain_expiry=soon)
    make_client(name="Later", email="later@example.com", domain_expiry=date.today() + timedelta(days=90))
    make_client(name="Past", email="past@example.com", domain_expiry=date.today() - timedelta(days=1))

    resp = client.get("/api/clients/expiring-soon")
    assert resp.get_json() == [
        {"id": 1, "email": "soon@example.com", "domain": "soon.example", "expiry_date": soon.isoformat()}
    ]


def test_expiring_soon_remind_logs_attempts(app, client, make_client, monkeypatch):
    make_client(email="soon@example.com", domain_expiry=date.today() + timedelta(days=3))
    monkeypatch.setattr(
        email_service,
        "send_domain_expiry_reminder",
        lambda settings, c: email_service.NotificationResult(success=True, message="sent", recipient=c.email),
    )

    resp = client.post("/api/clients/expiring-soon/remind")
    assert resp.status_code == 200
    assert resp.get_json()["sent"] == 1
    with app.app_context():
        log = ReminderLog.query.one()
        assert log.reminder_type == "DOMAIN_EXPIRY"
        assert log.status == "SENT"


def test_unknown_route_is_json_404(client):
    resp = client.get("/api/nope")
    assert resp.status_code == 404
    assert resp.get_json() == {"error": "Not Found"}
