"""create client, billing and reminder tables

Revision ID: 3a1c9e52b7d0
Revises:
Create Date: 2026-10-19 09:12:00
"""

from __future__ import annotations

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = "3a1c9e52b7d0"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "client",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("company_name", sa.String(length=255), nullable=True),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("phone", sa.String(length=50), nullable=True),
        sa.Column("street", sa.String(length=255), nullable=True),
        sa.Column("city", sa.String(length=120), nullable=True),
        sa.Column("state", sa.String(length=120), nullable=True),
        sa.Column("country", sa.String(length=120), nullable=True),
        sa.Column("postal_code", sa.String(length=20), nullable=True),
        sa.Column("contact_name", sa.String(length=255), nullable=True),
        sa.Column("contact_role", sa.String(length=120), nullable=True),
        sa.Column("contact_phone", sa.String(length=50), nullable=True),
        sa.Column("contact_email", sa.String(length=255), nullable=True),
        sa.Column("website_url", sa.String(length=255), nullable=True),
        sa.Column("domain_expiry", sa.Date(), nullable=True),
        sa.Column("services", sa.JSON(), nullable=True),
        sa.Column("tags", sa.JSON(), nullable=True),
        sa.Column("plan_model", sa.String(length=20), nullable=True),
        sa.Column("plan_amount", sa.Float(), nullable=True),
        sa.Column("plan_currency", sa.String(length=10), nullable=True),
        sa.Column("plan_next_due", sa.Date(), nullable=True),
        sa.Column("status", sa.String(length=20), nullable=False, server_default="lead"),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=True),
    )
    op.create_index("ix_client_name", "client", ["name"])
    op.create_index("ix_client_company_name", "client", ["company_name"])
    op.create_index("ix_client_email", "client", ["email"])
    op.create_index("ix_client_status", "client", ["status"])

    op.create_table(
        "billing_record",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("client_id", sa.Integer(), sa.ForeignKey("client.id"), nullable=False),
        sa.Column("invoice_number", sa.String(length=50), nullable=False),
        sa.Column("amount", sa.Float(), nullable=False),
        sa.Column("currency", sa.String(length=10), nullable=True),
        sa.Column("bill_date", sa.Date(), nullable=True),
        sa.Column("due_date", sa.Date(), nullable=True),
        sa.Column("payment_status", sa.String(length=20), nullable=False, server_default="unpaid"),
        sa.Column("payment_method", sa.String(length=120), nullable=True),
        sa.Column("transaction_id", sa.String(length=120), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("bill_pdf_path", sa.String(length=255), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=True),
    )
    op.create_index("ix_billing_record_client_id", "billing_record", ["client_id"])
    op.create_index("ix_billing_record_invoice_number", "billing_record", ["invoice_number"], unique=True)
    op.create_index("ix_billing_record_payment_status", "billing_record", ["payment_status"])
    op.create_index("ix_billing_record_client_bill_date", "billing_record", ["client_id", "bill_date"])

    op.create_table(
        "service_line_item",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("billing_record_id", sa.Integer(), sa.ForeignKey("billing_record.id"), nullable=False),
        sa.Column("position", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("service", sa.String(length=40), nullable=False),
        sa.Column("description", sa.String(length=255), nullable=True),
        sa.Column("cost", sa.Float(), nullable=True),
    )
    op.create_index("ix_service_line_item_billing_record_id", "service_line_item", ["billing_record_id"])

    op.create_table(
        "reminder_log",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("client_id", sa.Integer(), sa.ForeignKey("client.id", ondelete="SET NULL"), nullable=True),
        sa.Column(
            "billing_record_id",
            sa.Integer(),
            sa.ForeignKey("billing_record.id", ondelete="SET NULL"),
            nullable=True,
        ),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("reminder_type", sa.String(length=30), nullable=False),
        sa.Column("message", sa.Text(), nullable=False),
        sa.Column("sent_at", sa.DateTime(), nullable=False),
        sa.Column("status", sa.String(length=10), nullable=False),
        sa.Column("error", sa.Text(), nullable=True),
    )
    op.create_index("ix_reminder_log_client_id", "reminder_log", ["client_id"])

    op.create_table(
        "settings",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("business_name", sa.String(length=255), nullable=True),
        sa.Column("business_address", sa.Text(), nullable=True),
        sa.Column("business_email", sa.String(length=255), nullable=True),
        sa.Column("business_phone", sa.String(length=50), nullable=True),
        sa.Column("invoice_footer_text", sa.Text(), nullable=True),
        sa.Column("default_currency", sa.String(length=10), nullable=True),
        sa.Column("payment_terms_days", sa.Integer(), nullable=True),
        sa.Column("smtp_host", sa.String(length=255), nullable=True),
        sa.Column("smtp_port", sa.Integer(), nullable=True),
        sa.Column("smtp_username", sa.String(length=255), nullable=True),
        sa.Column("smtp_password", sa.String(length=255), nullable=True),
        sa.Column("smtp_encryption", sa.String(length=10), nullable=True),
        sa.Column("email_from", sa.String(length=255), nullable=True),
        sa.Column("email_signature", sa.Text(), nullable=True),
        sa.Column("reminder_subject_template", sa.String(length=255), nullable=True),
        sa.Column("reminder_body_template", sa.Text(), nullable=True),
    )


def downgrade() -> None:
    op.drop_table("settings")
    op.drop_index("ix_reminder_log_client_id", table_name="reminder_log")
    op.drop_table("reminder_log")
    op.drop_index("ix_service_line_item_billing_record_id", table_name="service_line_item")
    op.drop_table("service_line_item")
    op.drop_index("ix_billing_record_client_bill_date", table_name="billing_record")
    op.drop_index("ix_billing_record_payment_status", table_name="billing_record")
    op.drop_index("ix_billing_record_invoice_number", table_name="billing_record")
    op.drop_index("ix_billing_record_client_id", table_name="billing_record")
    op.drop_table("billing_record")
    op.drop_index("ix_client_status", table_name="client")
    op.drop_index("ix_client_email", table_name="client")
    op.drop_index("ix_client_company_name", table_name="client")
    op.drop_index("ix_client_name", table_name="client")
    op.drop_table("client")
