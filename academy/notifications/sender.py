"""
Notification sender.

Drains due rows from ``notification_queue`` in scheduled order, hands each
to its delivery channel and records the outcome on the row. Failed rows are
picked up again on later runs until ``max_retries`` is reached.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from academy.config import AppConfig
from academy.notifications.channels import deliver
from db import models
from db.database import error_message

logger = logging.getLogger(__name__)


def fetch_due(client, now: datetime, batch_size: int, max_retries: int) -> List[Dict[str, Any]]:
    pending = (
        client.table(models.NOTIFICATION_QUEUE)
        .select("*")
        .eq("status", models.STATUS_PENDING)
        .lte("scheduled_at", now.isoformat())
        .order("scheduled_at")
        .limit(batch_size)
        .execute()
    ).data or []

    retryable = []
    if max_retries > 0:
        retryable = (
            client.table(models.NOTIFICATION_QUEUE)
            .select("*")
            .eq("status", models.STATUS_FAILED)
            .lt("retry_count", max_retries)
            .lte("scheduled_at", now.isoformat())
            .order("scheduled_at")
            .limit(batch_size)
            .execute()
        ).data or []

    due = sorted(pending + retryable, key=lambda n: n["scheduled_at"])
    return due[:batch_size]


def _update(client, notification_id, values: Dict[str, Any]) -> None:
    try:
        client.table(models.NOTIFICATION_QUEUE).update(values).eq("id", notification_id).execute()
    except Exception as e:
        logger.error("Error updating notification %s status: %s", notification_id, e)


def mark_sent(client, notification: Dict[str, Any], now: datetime) -> None:
    _update(client, notification["id"], {
        "status": models.STATUS_SENT,
        "sent_at": now.isoformat(),
        "error_message": None,
    })


def mark_failed(client, notification: Dict[str, Any], error: str) -> None:
    _update(client, notification["id"], {
        "status": models.STATUS_FAILED,
        "sent_at": None,
        "error_message": error,
        "retry_count": (notification.get("retry_count") or 0) + 1,
    })


def send_notifications(
    client,
    cfg: AppConfig,
    now: Optional[datetime] = None,
    twilio_client: Optional[Any] = None,
) -> Dict[str, Any]:
    now = now or datetime.now(timezone.utc)
    logger.info("Starting notification sender")

    pending = fetch_due(client, now, cfg.notifications.batch_size, cfg.notifications.max_retries)
    logger.info("Found %s due notifications", len(pending))

    results: Dict[str, Any] = {"sent": 0, "failed": 0, "errors": []}

    for notification in pending:
        try:
            outcome = deliver(client, cfg, notification, now, twilio_client=twilio_client)
        except Exception as e:
            logger.error("Error processing notification %s: %s", notification["id"], e)
            outcome = {"success": False, "error": error_message(e)}

        if outcome["success"]:
            mark_sent(client, notification, now)
            results["sent"] += 1
        else:
            mark_failed(client, notification, outcome["error"])
            results["failed"] += 1
            results["errors"].append(f"Notification {notification['id']}: {outcome['error']}")

    logger.info("Sender completed: %s", results)
    return results
