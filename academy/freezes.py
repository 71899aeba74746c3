"""
Auto-resume of frozen memberships.

A freeze whose end date has arrived is closed out: the service expiry is
pushed back by the number of frozen days, the freeze flag on the service
is cleared and the freeze row is marked completed.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from academy.memberships import extended_expiry, freeze_duration
from db import models
from db.database import error_message

logger = logging.getLogger(__name__)


def due_freezes(client, today: str) -> List[Dict[str, Any]]:
    return (
        client.table(models.MEMBERSHIP_FREEZES)
        .select("id, member_id, service_id, freeze_start, freeze_end, action_type, reason, notes")
        .eq("action_type", "freeze")
        .eq("status", "active")
        .lte("freeze_end", today)
        .execute()
    ).data or []


def _audit(client, freeze, service, member, days: int, new_expiry: str) -> None:
    name = (member or {}).get("full_name") or "Unknown"
    display_id = (member or {}).get("member_id") or "N/A"
    try:
        client.table(models.AUDIT_TRAIL).insert({
            "table_name": models.MEMBERSHIP_FREEZES,
            "record_id": freeze["id"],
            "action_type": "auto_resume",
            "action_by": models.SYSTEM_ACTOR,
            "description": (
                f"Auto-resumed membership for {name} ({display_id}). "
                f"{service['zone']} - {service['subscription_plan']}. "
                f"Freeze duration: {days} days. "
                f"Expiry extended from {service['expiry_date']} to {new_expiry}."
            ),
        }).execute()
    except Exception as e:
        logger.warning("Failed to log auto-resume of freeze %s to audit trail: %s", freeze["id"], e)


def resume_freeze(client, freeze: Dict[str, Any], now: datetime) -> Dict[str, Any]:
    service = (
        client.table(models.MEMBER_SERVICES)
        .select("id, expiry_date, zone, subscription_plan")
        .eq("id", freeze["service_id"])
        .limit(1)
        .execute()
    ).data
    if not service:
        return {"freeze_id": freeze["id"], "success": False, "error": "Service not found"}
    service = service[0]

    days = freeze_duration(freeze["freeze_start"], freeze["freeze_end"])
    new_expiry = extended_expiry(
        service["expiry_date"], freeze["freeze_start"], freeze["freeze_end"]
    ).isoformat()
    logger.info("Extending expiry of service %s from %s to %s", service["id"], service["expiry_date"], new_expiry)

    client.table(models.MEMBER_SERVICES).update({
        "freeze_status": None,
        "expiry_date": new_expiry,
    }).eq("id", service["id"]).execute()

    client.table(models.MEMBERSHIP_FREEZES).update({
        "status": "completed",
        "resumed_at": now.isoformat(),
        "resumed_by": models.SYSTEM_ACTOR,
    }).eq("id", freeze["id"]).execute()

    member = (
        client.table(models.MEMBERS)
        .select("full_name, member_id")
        .eq("id", freeze["member_id"])
        .limit(1)
        .execute()
    ).data
    member = member[0] if member else None
    _audit(client, freeze, service, member, days, new_expiry)

    return {
        "freeze_id": freeze["id"],
        "success": True,
        "member_name": member["full_name"] if member else None,
        "freeze_duration_days": days,
        "new_expiry": new_expiry,
    }


def resume_expired_freezes(client, now: Optional[datetime] = None) -> Dict[str, Any]:
    now = now or datetime.now(timezone.utc)
    today = now.date().isoformat()
    logger.info("Checking for frozen memberships with freeze_end <= %s", today)

    freezes = due_freezes(client, today)
    logger.info("Found %s memberships to resume", len(freezes))

    results = []
    for freeze in freezes:
        try:
            results.append(resume_freeze(client, freeze, now))
        except Exception as e:
            logger.error("Error processing freeze %s: %s", freeze["id"], e)
            results.append({"freeze_id": freeze["id"], "success": False, "error": error_message(e)})

    resumed = sum(1 for r in results if r["success"])
    failed = len(results) - resumed
    if not freezes:
        message = "No memberships to resume"
    else:
        message = f"Processed {len(freezes)} memberships. {resumed} resumed, {failed} failed."
    logger.info("Auto-resume completed. Success: %s Failed: %s", resumed, failed)

    return {"message": message, "resumed": resumed, "failed": failed, "results": results}
