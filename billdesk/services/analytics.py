"""Billing analytics aggregation.

Pure functions over already-fetched client and invoice collections: revenue
totals, per-service and per-client breakdowns, monthly growth, client
lifetime value / risk scoring, and the filtered + sorted invoice view used by
the billing table.

Design goals:
- Safe defaults: records may be dicts (serialized models / request payloads)
  or objects (ORM rows). Missing fields read as None.
- Best-effort: malformed amounts, dates or line items are zero-filled or
  skipped, never raised.
- No I/O and no mutation of the inputs. Every call returns fresh lists/dicts.

NOTE: This service does not render anything. Routes decide presentation.
"""

from __future__ import annotations

import math
from collections.abc import Mapping
from datetime import date, datetime, timezone
from functools import cmp_to_key
from typing import Any, Dict, Iterable, List, Optional, Sequence

ALL = "all"
UNKNOWN_CLIENT = "Unknown"

PAYMENT_STATUS_DEFAULT = "unpaid"
CLIENT_STATUS_DEFAULT = "lead"

TOP_CLIENTS_LIMIT = 5
HIGH_RISK_THRESHOLD = 50

OVERDUE_INVOICE_RISK = 25
PAUSED_CLIENT_RISK = 20
MAX_RISK = 100

DAYS_PER_MONTH = 30
# A client created moments ago is treated as one day old for LTV purposes.
MIN_CLIENT_AGE_MONTHS = 1 / DAYS_PER_MONTH

EPOCH = datetime(1970, 1, 1)


# -----------------------------------------------------------------------------
#  Safe field helpers
# -----------------------------------------------------------------------------

def _field(record: Any, name: str, default: Any = None) -> Any:
    """Read `name` from a mapping or an object; None counts as missing."""
    if record is None:
        return default
    if isinstance(record, Mapping):
        value = record.get(name)
    else:
        value = getattr(record, name, None)
    return default if value is None else value


def _number(value: Any) -> float:
    if value is None or isinstance(value, bool):
        return 0.0
    try:
        number = float(value)
    except (TypeError, ValueError):
        return 0.0
    # nan / inf count as malformed
    return number if math.isfinite(number) else 0.0


def _to_datetime(value: Any) -> Optional[datetime]:
    """Coerce a date/datetime/ISO string into a naive UTC datetime, or None."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, datetime):
        if value.tzinfo is not None:
            value = value.astimezone(timezone.utc).replace(tzinfo=None)
        return value
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day)
    if isinstance(value, str):
        raw = value.strip()
        if not raw:
            return None
        if raw.endswith("Z"):
            raw = raw[:-1] + "+00:00"
        try:
            return _to_datetime(datetime.fromisoformat(raw))
        except ValueError:
            return None
    return None


def _to_date(value: Any) -> Optional[date]:
    dt = _to_datetime(value)
    return dt.date() if dt is not None else None


def _now(now: Optional[datetime]) -> datetime:
    if now is None:
        return datetime.now(timezone.utc).replace(tzinfo=None)
    return _to_datetime(now) or datetime.now(timezone.utc).replace(tzinfo=None)


def _id_key(value: Any) -> Optional[str]:
    """Ids arrive as ints from the ORM and as strings from query params."""
    if value is None:
        return None
    return str(value)


def payment_status(invoice: Any) -> str:
    return _field(invoice, "payment_status", PAYMENT_STATUS_DEFAULT)


def client_status(client: Any) -> str:
    return _field(client, "status", CLIENT_STATUS_DEFAULT)


def display_name(client: Any, default: str = "") -> str:
    """companyName, else name, else `default`."""
    if client is None:
        return default
    return _field(client, "company_name") or _field(client, "name") or default


def _client_index(clients: Iterable[Any]) -> Dict[str, Any]:
    index: Dict[str, Any] = {}
    for client in clients or ():
        key = _id_key(_field(client, "id"))
        if key is not None and key not in index:
            index[key] = client
    return index


def _invoices_for(client: Any, invoices: Iterable[Any]) -> List[Any]:
    key = _id_key(_field(client, "id"))
    if key is None:
        return []
    return [inv for inv in invoices or () if _id_key(_field(inv, "client_id")) == key]


# -----------------------------------------------------------------------------
#  Revenue aggregation
# -----------------------------------------------------------------------------

def total_revenue(invoices: Iterable[Any], currency_filter: Optional[str] = ALL) -> float:
    """Sum of invoice amounts, optionally restricted to one currency."""
    filter_on = currency_filter not in (None, "", ALL)
    total = 0.0
    for inv in invoices or ():
        if filter_on and _field(inv, "currency") != currency_filter:
            continue
        total += _number(_field(inv, "amount"))
    return total


def revenue_by_status(invoices: Iterable[Any]) -> Dict[str, float]:
    """Amounts partitioned by payment status.

    Statuses outside the four known ones are not counted anywhere.
    """
    totals = {"paid": 0.0, "unpaid": 0.0, "overdue": 0.0, "cancelled": 0.0}
    for inv in invoices or ():
        status = payment_status(inv)
        if status in totals:
            totals[status] += _number(_field(inv, "amount"))
    return totals


def service_revenue(invoices: Iterable[Any]) -> Dict[str, float]:
    """Line-item cost per service category, in first-seen order."""
    totals: Dict[str, float] = {}
    for inv in invoices or ():
        for item in _field(inv, "services_billed", ()) or ():
            service = _field(item, "service")
            if service is None:
                continue
            totals[service] = totals.get(service, 0.0) + _number(_field(item, "cost"))
    return totals


def top_clients(
    invoices: Iterable[Any],
    clients: Iterable[Any],
    limit: int = TOP_CLIENTS_LIMIT,
) -> List[Dict[str, Any]]:
    """Clients ranked by billed amount (highest first, ties keep encounter order)."""
    index = _client_index(clients)
    totals: Dict[Optional[str], float] = {}
    raw_ids: Dict[Optional[str], Any] = {}
    for inv in invoices or ():
        raw_id = _field(inv, "client_id")
        key = _id_key(raw_id)
        if key not in totals:
            totals[key] = 0.0
            raw_ids[key] = raw_id
        totals[key] += _number(_field(inv, "amount"))

    ranked = sorted(totals.items(), key=lambda kv: kv[1], reverse=True)
    return [
        {
            "client_id": raw_ids[key],
            "name": display_name(index.get(key), UNKNOWN_CLIENT),
            "amount": amount,
        }
        for key, amount in ranked[: max(0, limit)]
    ]


def revenue_over_time(invoices: Iterable[Any]) -> List[Dict[str, Any]]:
    """One point per invoice, oldest bill date first (undated invoices lead)."""
    dated = []
    for inv in invoices or ():
        bill_dt = _to_datetime(_field(inv, "bill_date"))
        dated.append((bill_dt or EPOCH, bill_dt, inv))
    dated.sort(key=lambda row: row[0])
    return [
        {
            "date": bill_dt.date() if bill_dt is not None else None,
            "amount": _number(_field(inv, "amount")),
            "status": payment_status(inv),
        }
        for _, bill_dt, inv in dated
    ]


def month_key(value: Any) -> Optional[str]:
    d = _to_date(value)
    if d is None:
        return None
    return f"{d.year:04d}-{d.month:02d}"


def monthly_revenue(invoices: Iterable[Any]) -> Dict[str, float]:
    """"YYYY-MM" -> total, chronological. Undated invoices are skipped."""
    buckets: Dict[str, float] = {}
    for inv in invoices or ():
        key = month_key(_field(inv, "bill_date"))
        if key is None:
            continue
        buckets[key] = buckets.get(key, 0.0) + _number(_field(inv, "amount"))
    return {key: buckets[key] for key in sorted(buckets)}


def growth_rate(current: float, previous: float) -> float:
    """Percent change; a zero previous value counts as 100% growth."""
    if previous == 0:
        return 100.0
    return (current - previous) / previous * 100


def revenue_growth(invoices: Iterable[Any]) -> Dict[str, float]:
    """Month-over-month growth between the two most recent billed months."""
    buckets = monthly_revenue(invoices)
    if len(buckets) < 2:
        return {"rate": 0.0, "current": 0.0, "previous": 0.0}

    months = list(buckets)
    current = buckets[months[-1]]
    previous = buckets[months[-2]]
    return {
        "rate": growth_rate(current, previous),
        "current": current,
        "previous": previous,
    }


def summarize(
    invoices: Sequence[Any],
    clients: Sequence[Any],
    currency_filter: Optional[str] = ALL,
) -> Dict[str, Any]:
    """Full dashboard summary for one snapshot of invoices and clients."""
    by_status = revenue_by_status(invoices)
    return {
        "total_revenue": total_revenue(invoices, currency_filter),
        "paid_revenue": by_status["paid"],
        "unpaid_revenue": by_status["unpaid"],
        "overdue_revenue": by_status["overdue"],
        "cancelled_revenue": by_status["cancelled"],
        "service_revenue": service_revenue(invoices),
        "top_clients": top_clients(invoices, clients),
        "revenue_over_time": revenue_over_time(invoices),
        "growth": revenue_growth(invoices),
        "invoice_count": len(invoices or ()),
        "overdue_count": sum(1 for inv in invoices or () if payment_status(inv) == "overdue"),
        "active_clients": sum(1 for c in clients or () if client_status(c) == "active"),
    }


# -----------------------------------------------------------------------------
#  Client value / risk
# -----------------------------------------------------------------------------

def client_age_months(client: Any, now: Optional[datetime] = None) -> float:
    created = _to_datetime(_field(client, "created_at"))
    if created is None:
        return 1.0
    days = (_now(now) - created).total_seconds() / 86400
    return max(MIN_CLIENT_AGE_MONTHS, days / DAYS_PER_MONTH)


def client_ltv(client: Any, invoices: Iterable[Any], now: Optional[datetime] = None) -> float:
    """Average monthly billing since the client was created."""
    billed = sum(_number(_field(inv, "amount")) for inv in _invoices_for(client, invoices))
    if billed == 0:
        return 0.0
    return billed / client_age_months(client, now)


def inactivity_risk(client: Any, now: Optional[datetime] = None) -> float:
    """10 points per 30 idle days since the last update, capped at 100."""
    updated = _to_datetime(_field(client, "updated_at"))
    if updated is None:
        return 0.0
    days = max(0.0, (_now(now) - updated).total_seconds() / 86400)
    return min(float(MAX_RISK), days / DAYS_PER_MONTH * 10)


def client_risk_score(client: Any, invoices: Iterable[Any], now: Optional[datetime] = None) -> float:
    """0-100, higher is riskier. Clients without invoices score 0."""
    if client is None:
        return 0.0
    own = _invoices_for(client, invoices)
    if not own:
        return 0.0

    overdue = sum(1 for inv in own if payment_status(inv) == "overdue")
    paused = PAUSED_CLIENT_RISK if client_status(client) == "paused" else 0
    raw = overdue * OVERDUE_INVOICE_RISK + paused + inactivity_risk(client, now)
    return min(float(MAX_RISK), raw)


def score_clients(
    clients: Sequence[Any],
    invoices: Sequence[Any],
    now: Optional[datetime] = None,
) -> List[Dict[str, Any]]:
    """Risk score and LTV for every client, in the given client order."""
    now = _now(now)
    by_client: Dict[Optional[str], List[Any]] = {}
    for inv in invoices or ():
        by_client.setdefault(_id_key(_field(inv, "client_id")), []).append(inv)

    scored = []
    for client in clients or ():
        own = by_client.get(_id_key(_field(client, "id")), [])
        scored.append(
            {
                "client_id": _field(client, "id"),
                "name": display_name(client, UNKNOWN_CLIENT),
                "status": client_status(client),
                "risk_score": client_risk_score(client, own, now),
                "ltv": client_ltv(client, own, now),
            }
        )
    return scored


def high_risk_clients(
    clients: Sequence[Any],
    invoices: Sequence[Any],
    now: Optional[datetime] = None,
    threshold: float = HIGH_RISK_THRESHOLD,
) -> List[Dict[str, Any]]:
    return rank_high_risk(score_clients(clients, invoices, now), threshold)


def rank_high_risk(scored: Iterable[Dict[str, Any]], threshold: float = HIGH_RISK_THRESHOLD) -> List[Dict[str, Any]]:
    """Entries above `threshold`, riskiest first (ties keep client order)."""
    risky = [row for row in scored if row["risk_score"] > threshold]
    risky.sort(key=lambda row: row["risk_score"], reverse=True)
    return risky


# -----------------------------------------------------------------------------
#  Invoice table view
# -----------------------------------------------------------------------------

def _sortable(value: Any) -> Any:
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, (date, datetime)):
        return _to_datetime(value)
    return value


def _compare_values(a: Any, b: Any) -> int:
    a, b = _sortable(a), _sortable(b)
    try:
        if a < b:
            return -1
        if a > b:
            return 1
        return 0
    except TypeError:
        # Mixed types (e.g. a date next to a string): fall back to text order
        sa, sb = str(a), str(b)
        return (sa > sb) - (sa < sb)


def sort_records(records: Iterable[Any], field: Optional[str], direction: str = "asc") -> List[Any]:
    """Stable sort by `field`; records missing the field always go last."""
    records = list(records or ())
    if not field:
        return records

    present = [r for r in records if _field(r, field) is not None]
    missing = [r for r in records if _field(r, field) is None]

    key = cmp_to_key(lambda x, y: _compare_values(_field(x, field), _field(y, field)))
    present.sort(key=key, reverse=(str(direction).lower() == "desc"))
    return present + missing


def filter_invoices(
    invoices: Iterable[Any],
    clients: Iterable[Any],
    search_term: Optional[str] = "",
    status_filter: Optional[str] = ALL,
    currency_filter: Optional[str] = ALL,
    sort_field: Optional[str] = "bill_date",
    sort_direction: str = "desc",
) -> List[Any]:
    """Search + status/currency filters + sort, as shown in the billing table."""
    index = _client_index(clients)
    needle = (search_term or "").strip().lower()

    matched = []
    for inv in invoices or ():
        if status_filter not in (None, "", ALL) and payment_status(inv) != status_filter:
            continue
        if currency_filter not in (None, "", ALL) and _field(inv, "currency") != currency_filter:
            continue
        if needle:
            number = str(_field(inv, "invoice_number", "")).lower()
            client = index.get(_id_key(_field(inv, "client_id")))
            name = display_name(client).lower()
            if needle not in number and needle not in name:
                continue
        matched.append(inv)

    return sort_records(matched, sort_field, sort_direction)
