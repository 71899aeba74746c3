from __future__ import annotations

import logging
import smtplib
from datetime import datetime
from email.mime.text import MIMEText
from typing import Any, Callable, Dict, Optional

from email_validator import EmailNotValidError, validate_email
from twilio.rest import Client as TwilioClient

from academy.config import AppConfig
from db import models

logger = logging.getLogger(__name__)

Result = Dict[str, Any]


def _ok() -> Result:
    return {"success": True, "error": None}


def _fail(error: str) -> Result:
    return {"success": False, "error": error}


def _twilio(cfg: AppConfig, twilio_client: Optional[Any]) -> Optional[Any]:
    if twilio_client is not None:
        return twilio_client
    if not cfg.twilio.enabled:
        return None
    return TwilioClient(cfg.twilio.account_sid, cfg.twilio.auth_token)


# --- WHATSAPP -------------------------------------------------------------

def _log_whatsapp(client, notification: Dict[str, Any], row: Dict[str, Any]) -> None:
    try:
        client.table(models.WHATSAPP_LOGS).insert({
            "member_id": notification.get("member_id"),
            "phone": notification["recipient"],
            **row,
        }).execute()
    except Exception as e:
        logger.error("Error logging WhatsApp message for notification %s: %s", notification.get("id"), e)


def send_whatsapp(client, cfg: AppConfig, notification: Dict[str, Any], now: datetime,
                  twilio_client: Optional[Any] = None) -> Result:
    """
    Sends through Twilio's WhatsApp API when credentials are configured.
    Without them the message is logged to whatsapp_receipt_logs so the
    front desk can send it by hand.
    """
    twilio = _twilio(cfg, twilio_client)
    if twilio is None or not cfg.twilio.whatsapp_from:
        _log_whatsapp(client, notification, {"status": models.STATUS_PENDING, "pdf_url": None})
        return _ok()

    twilio.messages.create(
        body=notification["message"],
        from_=f"whatsapp:{cfg.twilio.whatsapp_from}",
        to=f"whatsapp:{notification['recipient']}",
    )
    _log_whatsapp(client, notification, {
        "status": models.STATUS_SENT,
        "sent_at": now.isoformat(),
        "whatsapp_sender": cfg.twilio.whatsapp_from,
    })
    return _ok()


# --- SMS ------------------------------------------------------------------

def send_sms(client, cfg: AppConfig, notification: Dict[str, Any], now: datetime,
             twilio_client: Optional[Any] = None) -> Result:
    twilio = _twilio(cfg, twilio_client)
    if twilio is None or not cfg.twilio.sms_from:
        return _fail("SMS channel is not configured")

    twilio.messages.create(
        body=notification["message"],
        from_=cfg.twilio.sms_from,
        to=notification["recipient"],
    )
    return _ok()


# --- EMAIL ----------------------------------------------------------------

def send_email(client, cfg: AppConfig, notification: Dict[str, Any], now: datetime,
               twilio_client: Optional[Any] = None) -> Result:
    if not cfg.email or not cfg.email.smtp_host:
        return _fail("Email channel is not configured")

    to_email = notification["recipient"]
    try:
        validate_email(to_email, check_deliverability=False)
    except EmailNotValidError as e:
        return _fail(f"Invalid email recipient {to_email}: {e}")

    msg = MIMEText(notification["message"], "plain")
    msg["Subject"] = notification.get("subject") or cfg.academy_name
    msg["From"] = f"{cfg.email.from_name} <{cfg.email.from_email}>"
    msg["To"] = to_email

    with smtplib.SMTP(cfg.email.smtp_host, cfg.email.smtp_port) as server:
        server.starttls()
        server.login(cfg.email.smtp_user, cfg.email.smtp_password)
        server.send_message(msg)
    return _ok()


# --- IN-APP ---------------------------------------------------------------

def send_in_app(client, cfg: AppConfig, notification: Dict[str, Any], now: datetime,
                twilio_client: Optional[Any] = None) -> Result:
    client.table(models.NOTIFICATIONS).insert({
        "member_id": notification.get("member_id"),
        "title": notification.get("subject") or notification["notification_type"].replace("_", " ").title(),
        "message": notification["message"],
        "type": notification["notification_type"],
        "is_read": False,
    }).execute()
    return _ok()


CHANNELS: Dict[str, Callable[..., Result]] = {
    "whatsapp": send_whatsapp,
    "sms": send_sms,
    "email": send_email,
    "in_app": send_in_app,
}


def deliver(client, cfg: AppConfig, notification: Dict[str, Any], now: datetime,
            twilio_client: Optional[Any] = None) -> Result:
    channel = notification.get("channel")
    handler = CHANNELS.get(channel)
    if handler is None:
        return _fail(f"Unsupported channel: {channel}")
    if not notification.get("recipient") and channel != "in_app":
        return _fail("Notification has no recipient")

    logger.info("Sending %s notification to %s", channel, notification.get("recipient"))
    return handler(client, cfg, notification, now, twilio_client=twilio_client)
