from typing import Dict, Any, List, Optional
from datetime import date, datetime, timezone
import logging
import uuid

from academy.forms import MemberRegistration, SessionForm
from academy.memberships import (
    active_service,
    calculate_expiry_date,
    generate_barcode,
    generate_member_id,
    parse_date,
    week_days,
)
from db import models
from db.database import error_message

logger = logging.getLogger(__name__)

UNIQUE_VIOLATION = "23505"


def _failure(e: Exception, **extra) -> Dict[str, Any]:
    error_msg = error_message(e)
    logger.error("Database error: %s", error_msg)
    return {"success": False, "error": error_msg, **extra}


def _audit(client, action_type: str, action_by: str, table_name: str, record_id, description: str) -> None:
    try:
        client.table(models.AUDIT_TRAIL).insert({
            "action_type": action_type,
            "action_by": action_by,
            "table_name": table_name,
            "record_id": record_id,
            "description": description,
        }).execute()
    except Exception as e:
        logger.warning("Audit trail write failed for %s %s: %s", table_name, record_id, e)


# --- MEMBERS --------------------------------------------------------------

def fetch_members(client) -> List[Dict[str, Any]]:
    return (
        client.table(models.MEMBERS)
        .select("*, member_services(*)")
        .order("created_at", desc=True)
        .execute()
    ).data or []


def register_member(client, form: MemberRegistration, cashier_name: Optional[str] = None,
                    now: Optional[datetime] = None) -> Dict[str, Any]:
    """
    Creates the member, their first service and one receipt per payment
    entry. Split payments share a transaction_id.
    """
    errors = form.validate()
    if errors:
        return {"success": False, "member": None, "error": next(iter(errors.values()))}

    now = now or datetime.now(timezone.utc)
    try:
        member_insert = (
            client.table(models.MEMBERS)
            .insert({
                **form.member_payload(),
                "member_id": generate_member_id(),
                "barcode": generate_barcode(now),
            })
            .execute()
        )
        if not member_insert.data:
            raise Exception("Failed to insert member. No data returned.")
        member = member_insert.data[0]

        service_result = add_member_service(
            client, member["id"], form.zone, form.subscription_plan, start=now.date()
        )
        if not service_result["success"]:
            raise Exception(service_result["error"])

        transaction_id = str(uuid.uuid4())
        for payment in form.valid_payments():
            receipt = record_payment(
                client, member["id"], float(payment.amount), payment.payment_method,
                form.subscription_plan, form.zone,
                transaction_id=transaction_id, cashier_name=cashier_name,
            )
            if not receipt["success"]:
                raise Exception(receipt["error"])

        return {
            "success": True,
            "member": member,
            "total_paid": form.total_paid(),
            "payments": len(form.valid_payments()),
            "error": None,
        }

    except Exception as e:
        return _failure(e, member=None)


def add_member_service(client, member_id: str, zone: str, plan: str,
                       start: Optional[date] = None, coach_name: Optional[str] = None) -> Dict[str, Any]:
    start = start or date.today()
    try:
        expiry = calculate_expiry_date(start, plan)
        res = client.table(models.MEMBER_SERVICES).insert({
            "member_id": member_id,
            "zone": zone,
            "subscription_plan": plan,
            "start_date": start.isoformat(),
            "expiry_date": expiry.isoformat(),
            "is_active": True,
            "coach_name": coach_name,
        }).execute()
        return {"success": True, "service": res.data[0] if res.data else None, "error": None}
    except Exception as e:
        return _failure(e, service=None)


def record_payment(client, member_id: str, amount: float, payment_method: str, plan: str, zone: str,
                   transaction_id: Optional[str] = None, cashier_name: Optional[str] = None) -> Dict[str, Any]:
    try:
        res = client.table(models.PAYMENT_RECEIPTS).insert({
            "member_id": member_id,
            "amount": amount,
            "payment_method": payment_method,
            "subscription_plan": plan,
            "zone": zone,
            "transaction_id": transaction_id or str(uuid.uuid4()),
            "cashier_name": cashier_name,
        }).execute()
        return {"success": True, "receipt": res.data[0] if res.data else None, "error": None}
    except Exception as e:
        return _failure(e, receipt=None)


def delete_member(client, member: Dict[str, Any], deleted_by: str) -> Dict[str, Any]:
    """Snapshots the member into deleted_members_log before removing it."""
    try:
        snapshot = {k: v for k, v in member.items() if k != "member_services"}
        snapshot["member_services"] = member.get("member_services") or []
        client.table(models.DELETED_MEMBERS_LOG).insert({
            "original_member_id": member["id"],
            "member_data": snapshot,
            "deleted_by": deleted_by,
        }).execute()
        client.table(models.MEMBERS).delete().eq("id", member["id"]).execute()
        return {"success": True, "error": None}
    except Exception as e:
        return _failure(e)


# --- ATTENDANCE -----------------------------------------------------------

def find_member_by_code(client, code: str) -> Optional[Dict[str, Any]]:
    """Barcode first, then the display member_id."""
    for column in ("barcode", "member_id"):
        res = (
            client.table(models.MEMBERS)
            .select("*, member_services(*)")
            .eq(column, code)
            .limit(1)
            .execute()
        )
        if res.data:
            return res.data[0]
    return None


def check_in_member(client, code: str, today: Optional[date] = None) -> Dict[str, Any]:
    today = today or date.today()
    code = (code or "").strip()
    if not code:
        return {"success": False, "member": None, "error": "Please enter a barcode or member ID."}

    try:
        member = find_member_by_code(client, code)
        if member is None:
            return {"success": False, "member": None, "error": "Member not found!"}

        service = active_service(member, today)
        status = "active" if service else "expired"
        client.table(models.ATTENDANCE).insert({
            "member_id": member["id"],
            "zone": service["zone"] if service else None,
            "status": status,
        }).execute()

        return {
            "success": True,
            "member": member,
            "status": status,
            "zone": service["zone"] if service else "N/A",
            "expiry_date": service["expiry_date"] if service else "N/A",
            "error": None,
        }
    except Exception as e:
        return _failure(e, member=None)


def recent_attendance(client, limit: int = 20) -> List[Dict[str, Any]]:
    return (
        client.table(models.ATTENDANCE)
        .select("*, members(full_name, member_id)")
        .order("check_in_time", desc=True)
        .limit(limit)
        .execute()
    ).data or []


# --- COACHES --------------------------------------------------------------

def fetch_coaches(client, active_only: bool = False) -> List[Dict[str, Any]]:
    query = client.table(models.COACHES).select("*")
    if active_only:
        query = query.eq("is_active", True)
    return query.order("name").execute().data or []


def add_coach(client, name: str) -> Dict[str, Any]:
    name = (name or "").strip()
    if not name:
        return {"success": False, "coach": None, "error": "Coach name is required."}
    try:
        res = client.table(models.COACHES).insert({"name": name, "is_active": True}).execute()
        return {"success": True, "coach": res.data[0] if res.data else None, "error": None}
    except Exception as e:
        return _failure(e, coach=None)


def toggle_coach(client, coach: Dict[str, Any]) -> Dict[str, Any]:
    try:
        client.table(models.COACHES).update({"is_active": not coach.get("is_active")}).eq("id", coach["id"]).execute()
        return {"success": True, "error": None}
    except Exception as e:
        return _failure(e)


def delete_coach(client, coach_id: str) -> Dict[str, Any]:
    try:
        client.table(models.COACHES).delete().eq("id", coach_id).execute()
        return {"success": True, "error": None}
    except Exception as e:
        return _failure(e)


# --- SESSIONS -------------------------------------------------------------

def create_session(client, form: SessionForm) -> Dict[str, Any]:
    errors = form.validate()
    if errors:
        return {"success": False, "session": None, "error": next(iter(errors.values()))}
    try:
        res = client.table(models.SESSIONS).insert(form.to_payload()).execute()
        return {"success": True, "session": res.data[0] if res.data else None, "error": None}
    except Exception as e:
        return _failure(e, session=None)


def fetch_week_sessions(client, anchor: date) -> List[Dict[str, Any]]:
    """Sessions of the week containing ``anchor`` with live booking counts."""
    days = week_days(anchor)
    sessions = (
        client.table(models.SESSIONS)
        .select("*, coaches(name)")
        .gte("session_date", days[0].isoformat())
        .lte("session_date", days[-1].isoformat())
        .order("start_time")
        .execute()
    ).data or []

    counts: Dict[str, int] = {}
    ids = [s["id"] for s in sessions]
    if ids:
        bookings = (
            client.table(models.SESSION_BOOKINGS)
            .select("session_id")
            .in_("session_id", ids)
            .neq("status", "cancelled")
            .execute()
        ).data or []
        for b in bookings:
            counts[b["session_id"]] = counts.get(b["session_id"], 0) + 1

    return [{**s, "bookings_count": counts.get(s["id"], 0)} for s in sessions]


def sessions_by_day(sessions: List[Dict[str, Any]], anchor: date) -> Dict[date, List[Dict[str, Any]]]:
    grouped: Dict[date, List[Dict[str, Any]]] = {d: [] for d in week_days(anchor)}
    for s in sessions:
        day = parse_date(s["session_date"])
        if day in grouped:
            grouped[day].append(s)
    return grouped


def book_session(client, session: Dict[str, Any], member_id: str) -> Dict[str, Any]:
    if session.get("bookings_count", 0) >= (session.get("max_capacity") or 10):
        return {"success": False, "error": "Session is full!"}
    try:
        existing = (
            client.table(models.SESSION_BOOKINGS)
            .select("id")
            .eq("session_id", session["id"])
            .eq("member_id", member_id)
            .neq("status", "cancelled")
            .limit(1)
            .execute()
        )
        if existing.data:
            return {"success": False, "error": "Member already booked"}

        client.table(models.SESSION_BOOKINGS).insert({
            "session_id": session["id"],
            "member_id": member_id,
            "status": "booked",
        }).execute()
        return {"success": True, "error": None}
    except Exception as e:
        if getattr(e, "code", None) == UNIQUE_VIOLATION:
            return {"success": False, "error": "Member already booked"}
        return _failure(e)


def fetch_session_bookings(client, session_id: str) -> List[Dict[str, Any]]:
    return (
        client.table(models.SESSION_BOOKINGS)
        .select("*, members(full_name, member_id)")
        .eq("session_id", session_id)
        .neq("status", "cancelled")
        .execute()
    ).data or []


def cancel_booking(client, booking_id: str) -> Dict[str, Any]:
    try:
        client.table(models.SESSION_BOOKINGS).update({"status": "cancelled"}).eq("id", booking_id).execute()
        return {"success": True, "error": None}
    except Exception as e:
        return _failure(e)


def delete_session(client, session_id: str) -> Dict[str, Any]:
    try:
        client.table(models.SESSIONS).delete().eq("id", session_id).execute()
        return {"success": True, "error": None}
    except Exception as e:
        return _failure(e)


# --- FREEZES --------------------------------------------------------------

def freeze_membership(client, member: Dict[str, Any], service: Dict[str, Any], action_type: str,
                      start: date, end: Optional[date], created_by: str,
                      reason: str = "", notes: str = "") -> Dict[str, Any]:
    """
    Puts a service on hold. ``freeze`` needs an end date and is resumed
    automatically; ``suspend`` is open-ended and deactivates the service.
    """
    if action_type not in ("freeze", "suspend"):
        return {"success": False, "error": f"Unknown action: {action_type}"}
    if action_type == "freeze" and (end is None or end <= start):
        return {"success": False, "error": "Freeze end date must be after the start date."}

    try:
        client.table(models.MEMBERSHIP_FREEZES).insert({
            "member_id": member["id"],
            "service_id": service["id"],
            "action_type": action_type,
            "freeze_start": start.isoformat(),
            "freeze_end": end.isoformat() if action_type == "freeze" else None,
            "reason": reason or None,
            "notes": notes or None,
            "status": "active",
            "created_by": created_by,
        }).execute()

        update = {"freeze_status": "frozen" if action_type == "freeze" else "suspended"}
        if action_type == "suspend":
            update["is_active"] = False
        client.table(models.MEMBER_SERVICES).update(update).eq("id", service["id"]).execute()

        if action_type == "freeze":
            description = (
                f"Froze membership for {member['full_name']} ({member.get('member_id')}) "
                f"until {end.strftime('%d/%m/%Y')}. Reason: {reason or 'Not specified'}"
            )
        else:
            description = (
                f"Suspended membership for {member['full_name']} ({member.get('member_id')}). "
                f"Reason: {reason or 'Not specified'}"
            )
        _audit(
            client,
            "MEMBERSHIP_FREEZE" if action_type == "freeze" else "MEMBERSHIP_SUSPEND",
            created_by, models.MEMBER_SERVICES, service["id"], description,
        )
        return {"success": True, "error": None}
    except Exception as e:
        return _failure(e)


# --- NOTIFICATION ADMIN ---------------------------------------------------

def fetch_notification_admin(client, queue_limit: int = 50) -> Dict[str, List[Dict[str, Any]]]:
    templates = client.table(models.NOTIFICATION_TEMPLATES).select("*").order("created_at", desc=True).execute()
    queue = (
        client.table(models.NOTIFICATION_QUEUE)
        .select("*")
        .order("scheduled_at", desc=True)
        .limit(queue_limit)
        .execute()
    )
    settings = client.table(models.NOTIFICATION_SETTINGS).select("*").execute()
    return {
        "templates": templates.data or [],
        "queue": queue.data or [],
        "settings": settings.data or [],
    }


def toggle_template(client, template: Dict[str, Any]) -> Dict[str, Any]:
    try:
        client.table(models.NOTIFICATION_TEMPLATES).update(
            {"is_active": not template.get("is_active")}
        ).eq("id", template["id"]).execute()
        return {"success": True, "error": None}
    except Exception as e:
        return _failure(e)


def update_setting(client, key: str, value: Any) -> Dict[str, Any]:
    try:
        client.table(models.NOTIFICATION_SETTINGS).update({
            "setting_value": value,
            "updated_at": datetime.now(timezone.utc).isoformat(),
        }).eq("setting_key", key).execute()
        return {"success": True, "error": None}
    except Exception as e:
        return _failure(e)
