from datetime import date

import pytest

from billdesk.services import export_service, pdf_service


def test_resolve_path_nested_and_missing():
    row = {"billing_plan": {"model": "monthly"}, "name": "Acme"}
    assert export_service.resolve_path(row, "billing_plan.model") == "monthly"
    assert export_service.resolve_path(row, "billing_plan.amount") == ""
    assert export_service.resolve_path({"billing_plan": None}, "billing_plan.model") == ""


def test_export_csv():
    rows = [
        {"invoice_number": "INV-1", "amount": 10.5, "bill_date": date(2024, 1, 5), "tags": ["a", "b"]},
        {"invoice_number": "INV-2, late", "amount": None},
    ]
    out = export_service.export_csv(rows, ["invoice_number", "amount", "bill_date", "tags"])
    lines = out.splitlines()
    assert lines[0] == "invoice_number,amount,bill_date,tags"
    assert lines[1] == 'INV-1,10.5,2024-01-05,"[""a"", ""b""]"'
    assert lines[2] == '"INV-2, late",,,'


def test_header_label():
    assert export_service.header_label("payment_status") == "Payment Status"
    assert export_service.header_label("billing_plan.model") == "Model"
    assert export_service.header_label("companyName") == "Company Name"


def test_export_filename():
    assert export_service.export_filename("invoices", "csv", date(2024, 5, 1)) == "invoices-export-2024-05-01.csv"


def test_export_pdf_builds_table(app, monkeypatch):
    captured = {}

    def fake_table_pdf(title, headers, rows):
        captured.update(title=title, headers=headers, rows=rows)
        return b"%PDF"

    monkeypatch.setattr(pdf_service, "render_table_pdf", fake_table_pdf)
    out = export_service.export_pdf([{"name": "Acme", "status": "active"}], ["name", "status"], "clients")
    assert out == b"%PDF"
    assert captured == {"title": "Clients Report", "headers": ["Name", "Status"], "rows": [["Acme", "active"]]}


def test_export_pdf_without_weasyprint(app):
    with app.test_request_context():
        with pytest.raises(pdf_service.PdfUnavailableError):
            export_service.export_pdf([], ["name"], "clients")
