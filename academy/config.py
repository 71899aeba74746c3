from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Any, Mapping, Optional

import streamlit as st


class ConfigError(RuntimeError):
    """Raised when required credentials are missing."""


# ---------------------- DATA CLASSES ----------------------

@dataclass
class SupabaseConfig:
    url: str
    service_key: str


@dataclass
class EmailConfig:
    smtp_host: str = ""
    smtp_port: int = 587
    smtp_user: str = ""
    smtp_password: str = ""
    from_email: str = ""
    from_name: str = "Sports Academy"


@dataclass
class TwilioConfig:
    account_sid: str = ""
    auth_token: str = ""
    whatsapp_from: str = ""
    sms_from: str = ""

    @property
    def enabled(self) -> bool:
        return bool(self.account_sid and self.auth_token)


@dataclass
class NotificationConfig:
    batch_size: int = 50
    max_retries: int = 3
    default_channel: str = "whatsapp"


@dataclass
class AppConfig:
    supabase: SupabaseConfig
    email: EmailConfig = field(default_factory=EmailConfig)
    twilio: TwilioConfig = field(default_factory=TwilioConfig)
    notifications: NotificationConfig = field(default_factory=NotificationConfig)
    admin_password: Optional[str] = None
    academy_name: str = "Sports Academy"


# ---------------------- LOADING ----------------------

def _section(secrets: Mapping[str, Any], name: str) -> Mapping[str, Any]:
    return secrets[name] if name in secrets else {}


def load_config() -> AppConfig:
    """Dashboard configuration from Streamlit secrets."""
    secrets = st.secrets

    if "supabase" not in secrets:
        raise ConfigError("Missing [supabase] section in secrets.toml")

    supabase_cfg = SupabaseConfig(
        url=secrets["supabase"]["url"],
        service_key=secrets["supabase"]["service_key"],
    )

    email = _section(secrets, "email")
    # ports are often stored as strings in secrets.toml
    email_cfg = EmailConfig(
        smtp_host=email.get("smtp_host", ""),
        smtp_port=int(email.get("smtp_port", 587)),
        smtp_user=email.get("smtp_user", ""),
        smtp_password=email.get("smtp_password", ""),
        from_email=email.get("from_email", ""),
        from_name=email.get("from_name", "Sports Academy"),
    )

    twilio = _section(secrets, "twilio")
    twilio_cfg = TwilioConfig(
        account_sid=twilio.get("account_sid", ""),
        auth_token=twilio.get("auth_token", ""),
        whatsapp_from=twilio.get("whatsapp_from", ""),
        sms_from=twilio.get("sms_from", ""),
    )

    notif = _section(secrets, "notifications")
    notif_cfg = NotificationConfig(
        batch_size=int(notif.get("batch_size", 50)),
        max_retries=int(notif.get("max_retries", 3)),
        default_channel=notif.get("default_channel", "whatsapp"),
    )

    admin = _section(secrets, "admin")

    return AppConfig(
        supabase=supabase_cfg,
        email=email_cfg,
        twilio=twilio_cfg,
        notifications=notif_cfg,
        admin_password=admin.get("password"),
        academy_name=admin.get("academy_name", "Sports Academy"),
    )


def load_config_from_env(environ: Optional[Mapping[str, str]] = None) -> AppConfig:
    """Handler configuration from environment variables."""
    env = os.environ if environ is None else environ

    url = env.get("SUPABASE_URL", "")
    key = env.get("SUPABASE_SERVICE_ROLE_KEY", "")
    if not url or not key:
        raise ConfigError("SUPABASE_URL and SUPABASE_SERVICE_ROLE_KEY must be set")

    return AppConfig(
        supabase=SupabaseConfig(url=url, service_key=key),
        email=EmailConfig(
            smtp_host=env.get("SMTP_HOST", ""),
            smtp_port=int(env.get("SMTP_PORT", "587")),
            smtp_user=env.get("SMTP_USER", ""),
            smtp_password=env.get("SMTP_PASSWORD", ""),
            from_email=env.get("SMTP_FROM_EMAIL", ""),
            from_name=env.get("SMTP_FROM_NAME", "Sports Academy"),
        ),
        twilio=TwilioConfig(
            account_sid=env.get("TWILIO_ACCOUNT_SID", ""),
            auth_token=env.get("TWILIO_AUTH_TOKEN", ""),
            whatsapp_from=env.get("TWILIO_WHATSAPP_FROM", ""),
            sms_from=env.get("TWILIO_SMS_FROM", ""),
        ),
        notifications=NotificationConfig(
            batch_size=int(env.get("NOTIFICATION_BATCH_SIZE", "50")),
            max_retries=int(env.get("NOTIFICATION_MAX_RETRIES", "3")),
            default_channel=env.get("NOTIFICATION_DEFAULT_CHANNEL", "whatsapp"),
        ),
        academy_name=env.get("ACADEMY_NAME", "Sports Academy"),
    )
