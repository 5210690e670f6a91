import math
import re
from datetime import date, datetime

# -----------------------------
# Enumerations
# -----------------------------

CLIENT_STATUSES = ("lead", "onboarding", "active", "paused", "inactive")
PAYMENT_STATUSES = ("paid", "unpaid", "overdue", "cancelled")
BILLING_MODELS = ("monthly", "one-time", "retainer")

# Line-item categories on an invoice
SERVICE_CATEGORIES = (
    "design", "development", "SEO", "maintenance", "hosting",
    "domain", "analytics", "ecommerce", "other",
)

# Services a client can be signed up for
CLIENT_SERVICES = (
    "design", "development", "SEO", "maintenance", "hosting",
    "domain", "analytics", "ecommerce", "consultation",
)


# -----------------------------
# Phone
# -----------------------------

PHONE_DIGITS_RE = re.compile(r"\D+")

def normalize_phone(value: str | None) -> str | None:
    """
    Keep a leading + and digits only. Return None when nothing is left.
    """
    if not value:
        return None
    raw = str(value).strip()
    digits = PHONE_DIGITS_RE.sub("", raw)
    if not digits:
        return None
    return f"+{digits}" if raw.startswith("+") else digits


def is_valid_phone(value: str | None) -> bool:
    """
    Valid phone numbers:
    - empty / None → valid
    - 7 to 15 digits (E.164 length) → valid
    """
    if not value:
        return True
    digits = PHONE_DIGITS_RE.sub("", str(value))
    return 7 <= len(digits) <= 15


# -----------------------------
# Email
# -----------------------------

EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")

def is_valid_email(value: str | None) -> bool:
    """
    Empty email is allowed.
    Basic sanity check, not RFC insanity.
    """
    if not value:
        return True
    return bool(EMAIL_RE.match(str(value).strip()))


# -----------------------------
# Dates / numbers
# -----------------------------

def parse_date(value) -> date | None:
    """Accept date objects, YYYY-MM-DD, full ISO datetimes or MM/DD/YYYY."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    raw = str(value).strip()
    if raw.endswith("Z"):
        raw = raw[:-1] + "+00:00"
    try:
        return datetime.fromisoformat(raw).date()
    except ValueError:
        pass
    try:
        return datetime.strptime(raw, "%m/%d/%Y").date()
    except ValueError:
        raise ValueError(f"invalid date: {value!r}")


def parse_amount(value) -> float | None:
    if value is None or value == "":
        return None
    if isinstance(value, bool):
        raise ValueError("amount must be a number")
    amount = float(value)
    if not math.isfinite(amount):
        raise ValueError("amount must be a finite number")
    if amount < 0:
        raise ValueError("amount must not be negative")
    return amount


# -----------------------------
# Error helpers
# -----------------------------

def validate_fields(field_map: dict[str, tuple[str | None, callable]]):
    """
    field_map = {
        "Phone": (phone_value, is_valid_phone),
        "Email": (email_value, is_valid_email),
    }

    Returns: list[str] of error messages
    """
    errors = []
    for label, (value, validator) in field_map.items():
        try:
            if not validator(value):
                errors.append(f"{label} is invalid")
        except (TypeError, ValueError):
            errors.append(f"{label} is invalid")
    return errors


def clean_str(value) -> str | None:
    if value is None:
        return None
    s = str(value).strip()
    return s or None


def _take_date(data, key, label, clean, errors):
    if key not in data:
        return
    try:
        clean[key] = parse_date(data.get(key))
    except ValueError:
        errors.append(f"{label} must be a date (YYYY-MM-DD)")


def _take_enum(value, allowed, label, errors):
    if value not in allowed:
        errors.append(f"{label} must be one of: {', '.join(allowed)}")
        return False
    return True


# -----------------------------
# Request contracts
# -----------------------------

CLIENT_TEXT_FIELDS = (
    "name", "company_name", "phone", "notes",
)
ADDRESS_FIELDS = ("street", "city", "state", "country", "postal_code")
CONTACT_FIELDS = {"name": "contact_name", "role": "contact_role", "phone": "contact_phone", "email": "contact_email"}


def validate_client_payload(data: dict, partial: bool = False) -> tuple[dict, list[str]]:
    """
    Validate a client JSON payload into model column values.

    partial=True (updates) only validates keys that are present.
    Returns: (clean_values, errors)
    """
    if not isinstance(data, dict):
        return {}, ["Request body must be a JSON object"]

    clean: dict = {}
    errors: list[str] = []

    for key in CLIENT_TEXT_FIELDS:
        if key in data:
            clean[key] = clean_str(data.get(key))

    if "email" in data:
        email = clean_str(data.get("email"))
        clean["email"] = email.lower() if email else None

    if not partial:
        if not clean.get("name"):
            errors.append("Name is required")
        if not clean.get("email"):
            errors.append("Email is required")
    else:
        if "name" in clean and not clean["name"]:
            errors.append("Name is required")
        if "email" in clean and not clean["email"]:
            errors.append("Email is required")

    errors.extend(
        validate_fields(
            {
                "Email": (clean.get("email"), is_valid_email),
                "Phone": (clean.get("phone"), is_valid_phone),
            }
        )
    )
    if clean.get("phone"):
        clean["phone"] = normalize_phone(clean["phone"])

    address = data.get("address")
    if isinstance(address, dict):
        for key in ADDRESS_FIELDS:
            if key in address:
                clean[key] = clean_str(address.get(key))

    poc = data.get("point_of_contact")
    if isinstance(poc, dict):
        for key, column in CONTACT_FIELDS.items():
            if key in poc:
                clean[column] = clean_str(poc.get(key))
        if not is_valid_email(clean.get("contact_email")):
            errors.append("Point of contact email is invalid")

    website = data.get("website")
    if isinstance(website, dict):
        if "url" in website:
            clean["website_url"] = clean_str(website.get("url"))
        _take_date(website, "domain_expiry", "Domain expiry", clean, errors)

    if "status" in data:
        status = data.get("status") or "lead"
        if _take_enum(status, CLIENT_STATUSES, "Status", errors):
            clean["status"] = status

    if "services" in data:
        services = data.get("services") or []
        if not isinstance(services, list):
            errors.append("Services must be a list")
        else:
            bad = [s for s in services if s not in CLIENT_SERVICES]
            if bad:
                errors.append(f"Unknown services: {', '.join(map(str, bad))}")
            else:
                clean["services"] = list(services)

    if "tags" in data:
        tags = data.get("tags") or []
        if not isinstance(tags, list):
            errors.append("Tags must be a list")
        else:
            clean["tags"] = [str(t).strip() for t in tags if str(t).strip()]

    plan = data.get("billing_plan")
    if isinstance(plan, dict):
        if "model" in plan:
            model = plan.get("model")
            if model is None or _take_enum(model, BILLING_MODELS, "Billing model", errors):
                clean["plan_model"] = model
        if "amount" in plan:
            try:
                clean["plan_amount"] = parse_amount(plan.get("amount"))
            except (TypeError, ValueError):
                errors.append("Billing plan amount must be a non-negative number")
        if "currency" in plan:
            clean["plan_currency"] = (clean_str(plan.get("currency")) or "INR").upper()
        if "next_due" in plan:
            plan_dates: dict = {}
            _take_date(plan, "next_due", "Billing plan next due", plan_dates, errors)
            if "next_due" in plan_dates:
                clean["plan_next_due"] = plan_dates["next_due"]

    return clean, errors


def validate_line_items(items) -> tuple[list[dict], list[str]]:
    if items is None:
        return [], []
    if not isinstance(items, list):
        return [], ["services_billed must be a list"]

    clean: list[dict] = []
    errors: list[str] = []
    for i, item in enumerate(items, start=1):
        if not isinstance(item, dict):
            errors.append(f"Line item {i} must be an object")
            continue
        service = item.get("service")
        if service not in SERVICE_CATEGORIES:
            errors.append(f"Line item {i}: service must be one of: {', '.join(SERVICE_CATEGORIES)}")
            continue
        try:
            cost = parse_amount(item.get("cost"))
        except (TypeError, ValueError):
            errors.append(f"Line item {i}: cost must be a non-negative number")
            continue
        clean.append(
            {
                "service": service,
                "description": clean_str(item.get("description")),
                "cost": cost,
            }
        )
    return clean, errors


BILLING_TEXT_FIELDS = ("invoice_number", "payment_method", "transaction_id", "notes", "bill_pdf_path")


def validate_billing_payload(data: dict, partial: bool = False) -> tuple[dict, list[str]]:
    """
    Validate a billing record JSON payload.

    `amount` is kept as sent. Only when it is missing on create does it
    default to the sum of the line-item costs.
    Returns: (clean_values, errors); line items are under "services_billed".
    """
    if not isinstance(data, dict):
        return {}, ["Request body must be a JSON object"]

    clean: dict = {}
    errors: list[str] = []

    for key in BILLING_TEXT_FIELDS:
        if key in data:
            clean[key] = clean_str(data.get(key))

    if "client_id" in data:
        try:
            clean["client_id"] = int(data.get("client_id"))
        except (TypeError, ValueError):
            errors.append("client_id must be an integer")
    elif not partial:
        errors.append("client_id is required")

    if "currency" in data:
        clean["currency"] = (clean_str(data.get("currency")) or "INR").upper()

    if "services_billed" in data:
        items, item_errors = validate_line_items(data.get("services_billed"))
        errors.extend(item_errors)
        clean["services_billed"] = items

    if "amount" in data:
        try:
            amount = parse_amount(data.get("amount"))
        except (TypeError, ValueError):
            errors.append("Amount must be a non-negative number")
            amount = None
        if amount is not None:
            clean["amount"] = amount
        elif not partial and "Amount must be a non-negative number" not in errors:
            errors.append("Amount is required")

    if not partial and "amount" not in clean and "amount" not in data:
        clean["amount"] = sum(item["cost"] or 0 for item in clean.get("services_billed", []))

    if "payment_status" in data:
        status = data.get("payment_status") or "unpaid"
        if _take_enum(status, PAYMENT_STATUSES, "Payment status", errors):
            clean["payment_status"] = status

    _take_date(data, "bill_date", "Bill date", clean, errors)
    _take_date(data, "due_date", "Due date", clean, errors)

    if clean.get("bill_date") and clean.get("due_date") and clean["due_date"] < clean["bill_date"]:
        errors.append("Due date must not be before the bill date")

    return clean, errors
