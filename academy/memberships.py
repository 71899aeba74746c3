from __future__ import annotations

import calendar
import random
import urllib.parse
from datetime import date, datetime, timedelta
from typing import Any, Dict, Iterable, List, Optional

ZONES = {
    "gym": "Gym",
    "ladies_gym": "Ladies Gym",
    "pt": "Personal Training",
    "crossfit": "CrossFit",
    "football": "Football",
    "football_student": "Football Academy",
    "football_court": "Football Court",
    "swimming": "Swimming",
    "paddle_court": "Paddle Court",
    "other": "Other",
}

SUBSCRIPTION_PLANS = {
    "1_day": "1 Day",
    "1_month": "1 Month",
    "2_months": "2 Months",
    "3_months": "3 Months",
    "6_months": "6 Months",
    "1_year": "1 Year",
}

PLAN_MONTHS = {
    "1_month": 1,
    "2_months": 2,
    "3_months": 3,
    "6_months": 6,
    "1_year": 12,
}

PAYMENT_METHODS = ["cash", "card", "online"]
GENDERS = ["male", "female"]

EXPIRING_SOON_DAYS = 7

# Higher wins when a member holds several services.
STATUS_RANK = {
    "active": 5,
    "expiring": 4,
    "frozen": 3,
    "suspended": 2,
    "expired": 1,
    "inactive": 0,
}


# ----------------- DATE ARITHMETIC ------------------------

def parse_date(val: Any) -> Optional[date]:
    if val is None or val == "":
        return None
    if isinstance(val, datetime):
        return val.date()
    if isinstance(val, date):
        return val
    return datetime.strptime(str(val)[:10], "%Y-%m-%d").date()


def add_months(start: date, months: int) -> date:
    month_index = start.month - 1 + months
    year = start.year + month_index // 12
    month = month_index % 12 + 1
    day = min(start.day, calendar.monthrange(year, month)[1])
    return date(year, month, day)


def calculate_expiry_date(start: date, plan: str) -> date:
    if plan == "1_day":
        return start + timedelta(days=1)
    if plan in PLAN_MONTHS:
        return add_months(start, PLAN_MONTHS[plan])
    raise ValueError(f"Unknown subscription plan: {plan}")


def days_until(expiry: Any, today: date) -> int:
    return (parse_date(expiry) - today).days


def freeze_duration(start: Any, end: Any) -> int:
    return (parse_date(end) - parse_date(start)).days


def extended_expiry(expiry: Any, freeze_start: Any, freeze_end: Any) -> date:
    """Expiry pushed out by the length of a freeze."""
    return parse_date(expiry) + timedelta(days=freeze_duration(freeze_start, freeze_end))


def is_birthday(date_of_birth: Any, today: date) -> bool:
    dob = parse_date(date_of_birth)
    if dob is None:
        return False
    if dob.month == 2 and dob.day == 29 and not calendar.isleap(today.year):
        return today.month == 2 and today.day == 28
    return (dob.month, dob.day) == (today.month, today.day)


def week_days(anchor: date) -> List[date]:
    """Sunday-first week containing ``anchor``."""
    start = anchor - timedelta(days=(anchor.weekday() + 1) % 7)
    return [start + timedelta(days=i) for i in range(7)]


# ----------------- STATUS ------------------------

def service_status(service: Dict[str, Any], today: date) -> str:
    freeze = service.get("freeze_status")
    if freeze in ("frozen", "suspended"):
        return freeze
    if service.get("is_active") is False:
        return "inactive"
    remaining = days_until(service["expiry_date"], today)
    if remaining < 0:
        return "expired"
    if remaining <= EXPIRING_SOON_DAYS:
        return "expiring"
    return "active"


def member_status(member: Dict[str, Any], today: date) -> str:
    services = member.get("member_services") or []
    if not services:
        return "expired"
    return max((service_status(s, today) for s in services), key=STATUS_RANK.__getitem__)


def active_service(member: Dict[str, Any], today: date) -> Optional[Dict[str, Any]]:
    """The service a check-in should be counted against, if any."""
    candidates = [
        s for s in member.get("member_services") or []
        if service_status(s, today) in ("active", "expiring")
    ]
    if not candidates:
        return None
    return max(candidates, key=lambda s: parse_date(s["expiry_date"]))


def latest_expiry(member: Dict[str, Any]) -> Optional[date]:
    dates = [parse_date(s["expiry_date"]) for s in member.get("member_services") or []]
    return max(dates) if dates else None


# ----------------- FILTERING ------------------------

def _matches_search(member: Dict[str, Any], query: str) -> bool:
    haystack = " ".join(
        str(member.get(k) or "") for k in ("full_name", "member_id", "phone_number")
    ).lower()
    return query in haystack


def filter_members(
    members: Iterable[Dict[str, Any]],
    today: date,
    *,
    search: str = "",
    zone: str = "all",
    status: str = "all",
    sort_by: str = "newest",
) -> List[Dict[str, Any]]:
    query = search.strip().lower()
    result = []
    for m in members:
        if query and not _matches_search(m, query):
            continue
        if zone != "all" and not any(s.get("zone") == zone for s in m.get("member_services") or []):
            continue
        if status != "all" and member_status(m, today) != status:
            continue
        result.append(m)

    if sort_by == "name":
        result.sort(key=lambda m: (m.get("full_name") or "").lower())
    elif sort_by in ("expiry", "expiry_desc"):
        # members without services sort last either way
        with_expiry = [m for m in result if latest_expiry(m)]
        without = [m for m in result if not latest_expiry(m)]
        with_expiry.sort(key=latest_expiry, reverse=sort_by == "expiry_desc")
        result = with_expiry + without
    else:
        result.sort(key=lambda m: m.get("created_at") or "", reverse=True)
    return result


def member_stats(members: Iterable[Dict[str, Any]], today: date) -> Dict[str, int]:
    stats = {"total": 0, "active": 0, "expiring_soon": 0, "expired": 0}
    for m in members:
        stats["total"] += 1
        status = member_status(m, today)
        if status == "active":
            stats["active"] += 1
        elif status == "expiring":
            stats["expiring_soon"] += 1
        elif status == "expired":
            stats["expired"] += 1
    return stats


def expiring_services(
    members: Iterable[Dict[str, Any]], today: date, window: int = 30
) -> List[Dict[str, Any]]:
    """Active, unfrozen services ending within ``window`` days, soonest first."""
    expiring = []
    for m in members:
        for s in m.get("member_services") or []:
            if not s.get("is_active") or s.get("freeze_status"):
                continue
            remaining = days_until(s["expiry_date"], today)
            if 0 < remaining <= window:
                expiring.append({
                    "id": m["id"],
                    "full_name": m["full_name"],
                    "phone_number": m.get("phone_number"),
                    "member_id": m.get("member_id"),
                    "zone": s.get("zone"),
                    "expiry_date": s["expiry_date"],
                    "days_until_expiry": remaining,
                })
    expiring.sort(key=lambda e: e["days_until_expiry"])
    return expiring


# ----------------- IDS & MESSAGES ------------------------

def generate_member_id(rng: Optional[random.Random] = None) -> str:
    rng = rng or random
    return f"AS{rng.randint(1000, 9999)}"


def generate_barcode(now: datetime) -> str:
    return f"ASA{int(now.timestamp() * 1000)}"


def reminder_message(
    full_name: str, member_id: str, days: int, expiry: Any, academy_name: str = "Sports Academy"
) -> str:
    plural = "s" if days > 1 else ""
    expiry_str = parse_date(expiry).strftime("%d/%m/%Y")
    return (
        f"Hello {full_name},\n\n"
        f"This is a friendly reminder from {academy_name}.\n\n"
        f"Your membership (ID: {member_id}) will expire in {days} day{plural} on {expiry_str}.\n\n"
        "Please renew your membership to continue enjoying our facilities.\n\n"
        "Thank you!"
    )


def whatsapp_url(phone: str, message: str) -> str:
    """wa.me link for sending a message by hand."""
    digits = phone.replace("+", "").replace(" ", "").replace("-", "")
    return f"https://wa.me/{digits}?text={urllib.parse.quote(message)}"
