"""
SQLAlchemy models for billdesk.

This file defines:
- Client: relationship record with lifecycle status and billing plan
- BillingRecord (invoice) with ordered ServiceLineItem rows
- ReminderLog: audit trail of reminder emails
- Settings: singleton business/SMTP configuration

`to_dict()` on each model produces the plain shape used by the JSON API and
by the analytics services.
"""

from datetime import datetime, date, timezone
from .extensions import db


def utcnow() -> datetime:
    """Naive UTC timestamp (the database stores naive datetimes)."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


# ============================================================
#  CLIENT
# ============================================================

class Client(db.Model):
    __tablename__ = "client"

    id = db.Column(db.Integer, primary_key=True)

    name = db.Column(db.String(255), nullable=False, index=True)
    company_name = db.Column(db.String(255), index=True)
    email = db.Column(db.String(255), nullable=False, index=True)
    phone = db.Column(db.String(50))

    street = db.Column(db.String(255))
    city = db.Column(db.String(120))
    state = db.Column(db.String(120))
    country = db.Column(db.String(120))
    postal_code = db.Column(db.String(20))

    # Point of contact at the client
    contact_name = db.Column(db.String(255))
    contact_role = db.Column(db.String(120))
    contact_phone = db.Column(db.String(50))
    contact_email = db.Column(db.String(255))

    website_url = db.Column(db.String(255))
    domain_expiry = db.Column(db.Date)

    services = db.Column(db.JSON, default=list)  # e.g. ["design", "SEO"]
    tags = db.Column(db.JSON, default=list)

    # Billing plan; all optional
    plan_model = db.Column(db.String(20))  # monthly / one-time / retainer
    plan_amount = db.Column(db.Float)
    plan_currency = db.Column(db.String(10), default="INR")
    plan_next_due = db.Column(db.Date)

    status = db.Column(db.String(20), default="lead", nullable=False, index=True)
    notes = db.Column(db.Text)

    created_at = db.Column(db.DateTime, default=utcnow, nullable=False)
    updated_at = db.Column(db.DateTime, default=utcnow, onupdate=utcnow)

    billing_records = db.relationship(
        "BillingRecord",
        back_populates="client",
        cascade="all, delete-orphan",
        order_by="BillingRecord.bill_date.desc()",
    )

    @property
    def display_name(self) -> str:
        return self.company_name or self.name or ""

    def billing_plan(self):
        if not any((self.plan_model, self.plan_amount, self.plan_next_due)):
            return None
        return {
            "model": self.plan_model,
            "amount": self.plan_amount,
            "currency": self.plan_currency or "INR",
            "next_due": self.plan_next_due,
        }

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "company_name": self.company_name,
            "email": self.email,
            "phone": self.phone,
            "address": {
                "street": self.street,
                "city": self.city,
                "state": self.state,
                "country": self.country,
                "postal_code": self.postal_code,
            },
            "point_of_contact": {
                "name": self.contact_name,
                "role": self.contact_role,
                "phone": self.contact_phone,
                "email": self.contact_email,
            },
            "website": {
                "url": self.website_url,
                "domain_expiry": self.domain_expiry,
            },
            "services": list(self.services or []),
            "tags": list(self.tags or []),
            "billing_plan": self.billing_plan(),
            "status": self.status or "lead",
            "notes": self.notes,
            "created_at": self.created_at,
            "updated_at": self.updated_at,
        }

    def __repr__(self):
        return f"<Client {self.display_name}>"


# ============================================================
#  BILLING RECORDS (INVOICES)
# ============================================================

class BillingRecord(db.Model):
    __tablename__ = "billing_record"
    __table_args__ = (db.Index("ix_billing_record_client_bill_date", "client_id", "bill_date"),)

    id = db.Column(db.Integer, primary_key=True)

    client_id = db.Column(db.Integer, db.ForeignKey("client.id"), nullable=False, index=True)
    client = db.relationship("Client", back_populates="billing_records")

    invoice_number = db.Column(db.String(50), nullable=False, unique=True, index=True)

    # Stored as entered; NOT recomputed from the line items
    amount = db.Column(db.Float, nullable=False, default=0.0)
    currency = db.Column(db.String(10), default="INR")

    bill_date = db.Column(db.Date, default=date.today)
    due_date = db.Column(db.Date)

    payment_status = db.Column(db.String(20), default="unpaid", nullable=False, index=True)
    payment_method = db.Column(db.String(120))
    transaction_id = db.Column(db.String(120))
    notes = db.Column(db.Text)

    # Relative to DOCUMENTS_ROOT, e.g. invoices/invoice-INV-25-001.pdf
    bill_pdf_path = db.Column(db.String(255))

    created_at = db.Column(db.DateTime, default=utcnow, nullable=False)
    updated_at = db.Column(db.DateTime, default=utcnow, onupdate=utcnow)

    services_billed = db.relationship(
        "ServiceLineItem",
        back_populates="billing_record",
        cascade="all, delete-orphan",
        order_by="ServiceLineItem.position",
    )

    def line_item_total(self) -> float:
        return sum(float(item.cost or 0) for item in self.services_billed)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "client_id": self.client_id,
            "invoice_number": self.invoice_number,
            "amount": self.amount,
            "currency": self.currency,
            "services_billed": [item.to_dict() for item in self.services_billed],
            "bill_date": self.bill_date,
            "due_date": self.due_date,
            "payment_status": self.payment_status or "unpaid",
            "payment_method": self.payment_method,
            "transaction_id": self.transaction_id,
            "notes": self.notes,
            "bill_pdf_path": self.bill_pdf_path,
            "created_at": self.created_at,
            "updated_at": self.updated_at,
        }

    def __repr__(self):
        return f"<BillingRecord {self.invoice_number} – Client {self.client_id} – {self.amount:.2f}>"


class ServiceLineItem(db.Model):
    __tablename__ = "service_line_item"

    id = db.Column(db.Integer, primary_key=True)

    billing_record_id = db.Column(
        db.Integer, db.ForeignKey("billing_record.id"), nullable=False, index=True
    )
    billing_record = db.relationship("BillingRecord", back_populates="services_billed")

    position = db.Column(db.Integer, default=0, nullable=False)
    service = db.Column(db.String(40), nullable=False)  # design / development / SEO / ...
    description = db.Column(db.String(255))
    cost = db.Column(db.Float)

    def to_dict(self) -> dict:
        return {
            "service": self.service,
            "description": self.description,
            "cost": self.cost,
        }

    def __repr__(self):
        return f"<ServiceLineItem {self.service} {self.cost}>"


# ============================================================
#  REMINDER LOG
# ============================================================

class ReminderLog(db.Model):
    """One row per reminder email attempt, successful or not."""
    __tablename__ = "reminder_log"

    id = db.Column(db.Integer, primary_key=True)
    client_id = db.Column(db.Integer, db.ForeignKey("client.id", ondelete="SET NULL"), index=True)
    billing_record_id = db.Column(db.Integer, db.ForeignKey("billing_record.id", ondelete="SET NULL"))

    email = db.Column(db.String(255), nullable=False)
    reminder_type = db.Column(db.String(30), nullable=False)  # DOMAIN_EXPIRY / INVOICE_REMINDER
    message = db.Column(db.Text, nullable=False)
    sent_at = db.Column(db.DateTime, default=utcnow, nullable=False)
    status = db.Column(db.String(10), nullable=False)  # SENT / FAILED
    error = db.Column(db.Text)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "client_id": self.client_id,
            "billing_record_id": self.billing_record_id,
            "email": self.email,
            "reminder_type": self.reminder_type,
            "message": self.message,
            "sent_at": self.sent_at,
            "status": self.status,
            "error": self.error,
        }

    def __repr__(self):
        return f"<ReminderLog {self.reminder_type} {self.status} {self.email}>"


# ============================================================
#  SETTINGS
# ============================================================

class Settings(db.Model):
    """
    Singleton-style settings row (usually only one record) for
    business identity, SMTP delivery and email templates.
    """
    __tablename__ = "settings"

    id = db.Column(db.Integer, primary_key=True)

    business_name = db.Column(db.String(255))
    business_address = db.Column(db.Text)
    business_email = db.Column(db.String(255))
    business_phone = db.Column(db.String(50))
    invoice_footer_text = db.Column(db.Text)

    default_currency = db.Column(db.String(10), default="INR")
    payment_terms_days = db.Column(db.Integer, default=30)

    # SMTP
    smtp_host = db.Column(db.String(255))
    smtp_port = db.Column(db.Integer, default=587)
    smtp_username = db.Column(db.String(255))
    smtp_password = db.Column(db.String(255))
    smtp_encryption = db.Column(db.String(10), default="tls")  # tls / ssl / none
    email_from = db.Column(db.String(255))
    email_signature = db.Column(db.Text)

    # Token templates, e.g. "Invoice Reminder: {{ invoice_number }}"
    reminder_subject_template = db.Column(db.String(255))
    reminder_body_template = db.Column(db.Text)

    def __repr__(self):
        return f"<Settings {self.business_name}>"
