"""Outbound email: invoices, payment reminders and domain-expiry reminders.

Delivery uses the SMTP settings stored on the Settings row. Every public
send_* function returns a NotificationResult instead of raising, so callers
(routes, scripts) decide how to surface the outcome.
"""

from __future__ import annotations

import logging
import smtplib
import ssl
from dataclasses import dataclass, field
from datetime import date, datetime
from email.message import EmailMessage
from email.utils import make_msgid
from typing import Any, Iterable, List, Optional

from flask import render_template
from markupsafe import escape

from .analytics import _client_index, _id_key, display_name, payment_status

logger = logging.getLogger(__name__)

DEFAULT_REMINDER_SUBJECT = "Payment Reminder: Invoice #{{ invoice_number }}"
DEFAULT_REMINDER_BODY = (
    "Dear {{ client_name }},\n\n"
    "This is a friendly reminder that invoice #{{ invoice_number }} for "
    "{{ invoice_total }} is due on {{ due_date }}.\n\n"
    "Please process the payment at your earliest convenience.\n\n"
    "Best regards,\nThe Billing Team"
)

DOMAIN_EXPIRY_SUBJECT = "Domain Expiry Reminder: {{ domain }}"
DOMAIN_EXPIRY_BODY = (
    "Dear {{ client_name }},\n\n"
    "Your domain {{ domain }} is set to expire on {{ expiry_date }}. Please renew it "
    "before the expiration date to avoid service disruption.\n\n"
    "Best regards,\nThe Support Team"
)


@dataclass
class NotificationResult:
    success: bool
    message: str = ""
    error: Optional[str] = None
    message_id: Optional[str] = None
    recipient: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "success": self.success,
            "message": self.message,
            "error": self.error,
            "message_id": self.message_id,
            "recipient": self.recipient,
        }


@dataclass
class BulkReminderSummary:
    successful: int = 0
    failed: int = 0
    errors: List[str] = field(default_factory=list)
    results: List[dict] = field(default_factory=list)

    @property
    def success(self) -> bool:
        return self.successful > 0

    def to_dict(self) -> dict:
        return {
            "success": self.success,
            "summary": {
                "successful": self.successful,
                "failed": self.failed,
                "errors": list(self.errors),
            },
            "results": list(self.results),
            "error": "; ".join(self.errors) if self.errors else None,
        }


def _format_date(dt) -> str:
    if not dt:
        return ""
    if isinstance(dt, (datetime, date)):
        return dt.strftime("%d %b %Y")
    return str(dt)


def _format_amount(amount, currency) -> str:
    try:
        value = float(amount or 0)
    except (TypeError, ValueError):
        value = 0.0
    return f"{currency or 'INR'} {value:,.2f}"


def build_email_context(settings, record=None, client=None) -> dict:
    """
    Build a safe context dictionary for token replacement.
    Never assumes optional attributes exist.
    """
    context = {
        "business_name": getattr(settings, "business_name", "") or "",
        "client_name": getattr(client, "name", "") or "" if client else "",
        "company_name": getattr(client, "company_name", "") or "" if client else "",
        "invoice_number": "",
        "invoice_total": "",
        "bill_date": "",
        "due_date": "",
        "payment_status": "",
    }

    if record is not None:
        currency = getattr(record, "currency", None) or getattr(settings, "default_currency", None)
        context.update(
            {
                "invoice_number": getattr(record, "invoice_number", "") or "",
                "invoice_total": _format_amount(getattr(record, "amount", 0), currency),
                "bill_date": _format_date(getattr(record, "bill_date", None)),
                # Reminders for undated invoices read "due on ASAP"
                "due_date": _format_date(getattr(record, "due_date", None)) or "ASAP",
                "payment_status": (getattr(record, "payment_status", None) or "unpaid").upper(),
            }
        )

    return context


def render_email_template(template_text, context):
    """
    Controlled token replacement.
    Supports both {{ token }} and {{token}} styles.
    Leaves unknown tokens untouched.
    """
    if not template_text:
        return ""

    rendered = template_text
    for key, value in context.items():
        value_str = str(value or "")
        rendered = rendered.replace(f"{{{{ {key} }}}}", value_str)
        rendered = rendered.replace(f"{{{{{key}}}}}", value_str)
    return rendered


def _text_to_html(text: str) -> str:
    return str(escape(text or "")).replace("\n", "<br>\n")


def send_smtp_email(settings, to_email, subject, body, html_body=None, attachments=None) -> str:
    """
    Send email using SMTP settings stored in Settings.
    attachments: list of tuples (filename, bytes_data, mimetype)

    Returns the generated Message-ID. Raises ValueError when SMTP is not
    configured and smtplib/socket errors when delivery fails.
    """
    if not getattr(settings, "smtp_host", None):
        raise ValueError("SMTP host is not configured.")
    if not to_email:
        raise ValueError("Recipient email address is missing.")

    msg = EmailMessage()
    msg["From"] = settings.email_from or settings.smtp_username or ""
    msg["To"] = to_email
    msg["Subject"] = subject
    msg["Message-ID"] = make_msgid()

    signature = getattr(settings, "email_signature", None)
    text_body = body or ""
    if signature:
        text_body = f"{text_body}\n\n{signature}"

    # Always provide plain text fallback
    msg.set_content(text_body)

    if html_body is None and signature:
        html_body = (
            '<html><body style="font-family: Arial, sans-serif; font-size: 14px;">'
            f"<div>{_text_to_html(body)}</div><br>"
            f'<div style="white-space:pre-wrap;">{escape(signature)}</div>'
            "</body></html>"
        )
    if html_body:
        msg.add_alternative(html_body, subtype="html")

    for filename, data, mimetype in attachments or ():
        maintype, subtype = mimetype.split("/", 1)
        msg.add_attachment(data, maintype=maintype, subtype=subtype, filename=filename)

    port = settings.smtp_port or (465 if settings.smtp_encryption == "ssl" else 587)
    ssl_context = ssl.create_default_context()

    if settings.smtp_encryption == "ssl":
        with smtplib.SMTP_SSL(settings.smtp_host, port, context=ssl_context) as server:
            if settings.smtp_username:
                server.login(settings.smtp_username, settings.smtp_password)
            server.send_message(msg)
    else:
        with smtplib.SMTP(settings.smtp_host, port) as server:
            if settings.smtp_encryption == "tls":
                server.starttls(context=ssl_context)
            if settings.smtp_username:
                server.login(settings.smtp_username, settings.smtp_password)
            server.send_message(msg)

    return msg["Message-ID"]


def _deliver(settings, to_email, subject, body, html_body=None, attachments=None, *, label: str) -> NotificationResult:
    try:
        message_id = send_smtp_email(settings, to_email, subject, body, html_body, attachments)
    except (ValueError, OSError, smtplib.SMTPException) as e:
        logger.warning("%s to %s failed: %s", label, to_email, e)
        return NotificationResult(success=False, message=f"{label} failed", error=str(e), recipient=to_email)

    logger.info("%s sent to %s (%s)", label, to_email, message_id)
    return NotificationResult(
        success=True,
        message=f"{label} sent to {to_email}",
        message_id=message_id,
        recipient=to_email,
    )


def send_invoice_email(settings, record, client, pdf_bytes: Optional[bytes] = None) -> NotificationResult:
    """Email an invoice to the client, with the PDF attached when given."""
    if client is None:
        return NotificationResult(success=False, message="Invoice email failed", error="Client not found")

    currency = record.currency or getattr(settings, "default_currency", None) or "INR"
    subject = f"Invoice {record.invoice_number} - {display_name(client)}"
    context = build_email_context(settings, record, client)
    body = (
        f"Dear {context['client_name']},\n\n"
        f"Please find attached invoice {context['invoice_number']} for {context['invoice_total']}, "
        f"due on {context['due_date']}.\n\nThank you for your business!"
    )
    html_body = render_template(
        "email/invoice.html", record=record, client=client, settings=settings, currency=currency
    )

    attachments = None
    if pdf_bytes:
        attachments = [(f"invoice-{record.invoice_number}.pdf", pdf_bytes, "application/pdf")]

    return _deliver(settings, client.email, subject, body, html_body, attachments, label="Invoice email")


def reminder_content(settings, record, client) -> tuple[str, str]:
    context = build_email_context(settings, record, client)
    subject = render_email_template(
        getattr(settings, "reminder_subject_template", None) or DEFAULT_REMINDER_SUBJECT, context
    )
    body = render_email_template(
        getattr(settings, "reminder_body_template", None) or DEFAULT_REMINDER_BODY, context
    )
    return subject, body


def send_invoice_reminder(settings, record, client) -> NotificationResult:
    """Send a payment reminder for one invoice."""
    if client is None:
        return NotificationResult(
            success=False,
            message="Payment reminder failed",
            error=f"Client not found for invoice {record.invoice_number}",
        )
    subject, body = reminder_content(settings, record, client)
    return _deliver(settings, client.email, subject, body, label="Payment reminder")


def send_bulk_reminders(settings, records: Iterable[Any], clients: Iterable[Any]) -> BulkReminderSummary:
    """Remind every overdue invoice in `records`; other statuses are ignored."""
    index = _client_index(clients)
    summary = BulkReminderSummary()

    for record in records or ():
        if payment_status(record) != "overdue":
            continue
        client = index.get(_id_key(record.client_id))
        result = send_invoice_reminder(settings, record, client)
        summary.results.append(
            {
                "invoice_number": record.invoice_number,
                "client_name": display_name(client, "Unknown"),
                "success": result.success,
                "error": result.error,
            }
        )
        if result.success:
            summary.successful += 1
        else:
            summary.failed += 1
            summary.errors.append(f"{record.invoice_number}: {result.error}")

    logger.info("Bulk reminders: %d sent, %d failed", summary.successful, summary.failed)
    return summary


def send_domain_expiry_reminder(settings, client) -> NotificationResult:
    context = {
        "client_name": client.name,
        "domain": client.website_url or "",
        "expiry_date": _format_date(client.domain_expiry),
    }
    subject = render_email_template(DOMAIN_EXPIRY_SUBJECT, context)
    body = render_email_template(DOMAIN_EXPIRY_BODY, context)
    return _deliver(settings, client.email, subject, body, label="Domain expiry reminder")
