from datetime import date, datetime

import pytest

from billdesk import create_app
from billdesk.extensions import db
from billdesk.models import BillingRecord, Client, ServiceLineItem
from billdesk.services import pdf_service


@pytest.fixture
def app(tmp_path, monkeypatch):
    # Keep tests independent of the native WeasyPrint libraries
    monkeypatch.setattr(pdf_service, "HTML", None)
    app = create_app(
        {
            "TESTING": True,
            "SQLALCHEMY_DATABASE_URI": "sqlite://",
            "DOCUMENTS_ROOT": str(tmp_path / "documents"),
        }
    )
    yield app
    with app.app_context():
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def make_client(app):
    def _make(**kwargs):
        values = {"name": "Asha Rao", "email": "asha@example.com", "status": "active"}
        values.update(kwargs)
        with app.app_context():
            c = Client(**values)
            db.session.add(c)
            db.session.commit()
            return c.id

    return _make


@pytest.fixture
def make_bill(app):
    def _make(client_id, invoice_number, amount=100.0, items=(), **kwargs):
        values = {
            "client_id": client_id,
            "invoice_number": invoice_number,
            "amount": amount,
            "currency": "INR",
            "bill_date": date(2024, 1, 5),
            "payment_status": "unpaid",
        }
        values.update(kwargs)
        with app.app_context():
            record = BillingRecord(**values)
            record.services_billed = [
                ServiceLineItem(position=i, service=service, cost=cost)
                for i, (service, cost) in enumerate(items)
            ]
            db.session.add(record)
            db.session.commit()
            return record.id

    return _make


@pytest.fixture
def now():
    return datetime(2024, 6, 1, 12, 0, 0)
