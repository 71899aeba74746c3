import json

import streamlit as st
import pandas as pd

from academy.notifications.scheduler import DEFAULT_REMINDER_DAYS, schedule_notifications
from academy.notifications.sender import send_notifications
from academy.notifications.templates import placeholders
from academy.tools import fetch_notification_admin, toggle_template, update_setting
from db.database import get_supabase_client


def render_notification_manager(cfg):
    st.title("🔔 Notifications")
    supabase = get_supabase_client()

    # --- Manual Runs ---
    c1, c2 = st.columns(2)
    if c1.button("🗓️ Run scheduler"):
        with st.spinner("Scheduling..."):
            results = schedule_notifications(supabase)
        st.success(
            f"Queued {results['expiry_reminders']} reminders and {results['birthday_wishes']} birthday wishes "
            f"({results['skipped_duplicates']} duplicates skipped)."
        )
        for error in results["errors"]:
            st.warning(error)
    if c2.button("📤 Run sender"):
        with st.spinner("Sending..."):
            results = send_notifications(supabase, cfg)
        st.success(f"Sent {results['sent']}, failed {results['failed']}.")
        for error in results["errors"]:
            st.warning(error)

    try:
        data = fetch_notification_admin(supabase)
    except Exception as e:
        st.error(f"Error loading notifications: {e}")
        return

    # --- Settings ---
    st.divider()
    st.subheader("Settings")
    settings = {s["setting_key"]: s.get("setting_value") for s in data["settings"]}

    current_days = settings.get("expiry_reminder_days") or DEFAULT_REMINDER_DAYS
    days_text = st.text_input("Reminder days before expiry", ", ".join(str(d) for d in current_days))
    birthday_enabled = st.checkbox("Send birthday wishes", value=settings.get("birthday_enabled") is not False)
    if st.button("Save settings"):
        try:
            days = sorted({int(d) for d in days_text.split(",") if d.strip()}, reverse=True)
        except ValueError:
            st.error("Reminder days must be whole numbers separated by commas.")
        else:
            for key, value in (("expiry_reminder_days", days), ("birthday_enabled", birthday_enabled)):
                result = update_setting(supabase, key, value)
                if not result["success"]:
                    st.error(f"Failed to save {key}: {result['error']}")
            st.rerun()

    # --- Templates ---
    st.divider()
    st.subheader("Templates")
    if not data["templates"]:
        st.info("No templates configured.")
    for template in data["templates"]:
        c1, c2 = st.columns([4, 1])
        with c1.expander(f"{template['name']} · {template['type']} {'🟢' if template.get('is_active') else '⚪'}"):
            st.caption(f"Channels: {', '.join(template.get('channels') or ['whatsapp'])} · "
                       f"Days: {json.dumps(template.get('trigger_days') or [])}")
            st.code(template.get("message_template") or "", language=None)
            used = sorted(placeholders(template.get("message_template")))
            if used:
                st.caption("Placeholders: " + ", ".join(used))
        if c2.button("Disable" if template.get("is_active") else "Enable", key=f"tpl_{template['id']}"):
            toggle_template(supabase, template)
            st.rerun()

    # --- Queue ---
    st.divider()
    st.subheader("Queue")
    if not data["queue"]:
        st.info("The queue is empty.")
        return

    df = pd.DataFrame(data["queue"])
    display_cols = [
        "scheduled_at", "notification_type", "channel", "recipient", "status", "retry_count", "error_message", "sent_at",
    ]
    final_cols = [c for c in display_cols if c in df.columns]

    status_filter = st.multiselect("Filter by Status", options=df["status"].unique(), default=df["status"].unique())
    filtered_df = df[df["status"].isin(status_filter)] if status_filter else df
    st.dataframe(filtered_df[final_cols], use_container_width=True)
