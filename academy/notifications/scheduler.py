"""
Notification scheduler.

Scans members and their services for upcoming expiries and birthdays and
queues one pending message per match in ``notification_queue``. A member
gets at most one row per notification type per day.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional

from db import models
from academy.memberships import is_birthday
from academy.notifications.templates import render_template

logger = logging.getLogger(__name__)

DEFAULT_REMINDER_DAYS = [7, 3, 1, 0]
DEFAULT_CHANNEL = "whatsapp"


def load_settings(client) -> Dict[str, Any]:
    rows = client.table(models.NOTIFICATION_SETTINGS).select("*").execute().data or []
    by_key = {r["setting_key"]: r.get("setting_value") for r in rows}

    reminder_days = by_key.get("expiry_reminder_days")
    if not isinstance(reminder_days, list) or not reminder_days:
        reminder_days = DEFAULT_REMINDER_DAYS

    return {
        "expiry_reminder_days": [int(d) for d in reminder_days],
        # only an explicit false turns birthdays off
        "birthday_enabled": by_key.get("birthday_enabled") is not False,
    }


def active_templates(client, template_type: str) -> List[Dict[str, Any]]:
    return (
        client.table(models.NOTIFICATION_TEMPLATES)
        .select("*")
        .eq("type", template_type)
        .eq("is_active", True)
        .execute()
    ).data or []


def template_for_offset(templates: List[Dict[str, Any]], days: int) -> Optional[Dict[str, Any]]:
    for t in templates:
        if days in (t.get("trigger_days") or []):
            return t
    return None


def already_queued(client, member_id: str, notification_type: str, day_start: str) -> bool:
    existing = (
        client.table(models.NOTIFICATION_QUEUE)
        .select("id")
        .eq("member_id", member_id)
        .eq("notification_type", notification_type)
        .gte("scheduled_at", day_start)
        .limit(1)
        .execute()
    )
    return bool(existing.data)


def _queue_row(template, member, notification_type, message, variables, now) -> Dict[str, Any]:
    channels = template.get("channels") or []
    return {
        "member_id": member["id"],
        "template_id": template["id"],
        "notification_type": notification_type,
        "channel": channels[0] if channels else DEFAULT_CHANNEL,
        "recipient": member.get("phone_number"),
        "subject": template.get("subject"),
        "message": message,
        "variables": variables,
        "scheduled_at": now.isoformat(),
        "status": models.STATUS_PENDING,
        "retry_count": 0,
    }


def _members_by_id(client, member_ids: List[str]) -> Dict[str, Dict[str, Any]]:
    if not member_ids:
        return {}
    rows = (
        client.table(models.MEMBERS)
        .select("id, full_name, phone_number, date_of_birth")
        .in_("id", member_ids)
        .execute()
    ).data or []
    return {r["id"]: r for r in rows}


def _enqueue(client, row: Dict[str, Any], member_name: str, results: Dict[str, Any]) -> bool:
    try:
        client.table(models.NOTIFICATION_QUEUE).insert(row).execute()
        return True
    except Exception as e:
        logger.error("Error queuing %s for member %s: %s", row["notification_type"], row["member_id"], e)
        results["errors"].append(f"Failed to queue notification for {member_name}")
        return False


def schedule_expiry_reminders(client, settings, now: datetime, results: Dict[str, Any]) -> None:
    today = now.date()
    day_start = today.isoformat()
    templates = active_templates(client, models.TYPE_EXPIRY_REMINDER)

    for days in settings["expiry_reminder_days"]:
        target = (today + timedelta(days=days)).isoformat()
        logger.info("Checking for memberships expiring on %s (%s days from now)", target, days)

        template = template_for_offset(templates, days)
        if template is None:
            logger.info("No active expiry template for %s days, skipping", days)
            continue

        services = (
            client.table(models.MEMBER_SERVICES)
            .select("id, member_id, expiry_date, zone, subscription_plan, freeze_status")
            .eq("expiry_date", target)
            .eq("is_active", True)
            .execute()
        ).data or []
        services = [s for s in services if not s.get("freeze_status")]
        if not services:
            continue

        logger.info("Found %s expiring services for %s days reminder", len(services), days)
        members = _members_by_id(client, sorted({s["member_id"] for s in services}))

        for service in services:
            member = members.get(service["member_id"])
            if member is None:
                continue

            if already_queued(client, member["id"], models.TYPE_EXPIRY_REMINDER, day_start):
                logger.debug("Skipping duplicate notification for member %s", member["id"])
                results["skipped_duplicates"] += 1
                continue

            variables = {
                "member_name": member["full_name"],
                "service_name": service["zone"],
                "expiry_date": service["expiry_date"],
                "days_until_expiry": days,
            }
            message = render_template(template["message_template"], variables)
            row = _queue_row(template, member, models.TYPE_EXPIRY_REMINDER, message, variables, now)
            if _enqueue(client, row, member["full_name"], results):
                results["expiry_reminders"] += 1


def schedule_birthday_wishes(client, now: datetime, results: Dict[str, Any]) -> None:
    today = now.date()
    templates = active_templates(client, models.TYPE_BIRTHDAY)
    if not templates:
        logger.info("No active birthday template, skipping birthday wishes")
        return
    template = templates[0]

    members = (
        client.table(models.MEMBERS)
        .select("id, full_name, phone_number, date_of_birth")
        .not_.is_("date_of_birth", "null")
        .execute()
    ).data or []

    for member in members:
        if not is_birthday(member.get("date_of_birth"), today):
            continue
        if already_queued(client, member["id"], models.TYPE_BIRTHDAY, today.isoformat()):
            results["skipped_duplicates"] += 1
            continue

        variables = {"member_name": member["full_name"]}
        message = render_template(template["message_template"], variables)
        row = _queue_row(template, member, models.TYPE_BIRTHDAY, message, variables, now)
        if _enqueue(client, row, member["full_name"], results):
            results["birthday_wishes"] += 1


def schedule_notifications(client, now: Optional[datetime] = None) -> Dict[str, Any]:
    """Queue expiry reminders and birthday wishes due on ``now``'s date."""
    now = now or datetime.now(timezone.utc)
    logger.info("Starting notification scheduler for %s", now.date().isoformat())

    results: Dict[str, Any] = {
        "expiry_reminders": 0,
        "birthday_wishes": 0,
        "skipped_duplicates": 0,
        "errors": [],
    }

    settings = load_settings(client)
    schedule_expiry_reminders(client, settings, now, results)
    if settings["birthday_enabled"]:
        schedule_birthday_wishes(client, now, results)

    logger.info("Scheduler completed: %s", results)
    return results
