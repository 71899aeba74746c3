import streamlit as st
import pandas as pd
import plotly.express as px
from datetime import date

from academy.memberships import ZONES, expiring_services, member_stats, reminder_message, whatsapp_url
from academy.tools import fetch_members
from db import models
from db.database import get_supabase_client


def render_admin_dashboard(cfg):
    st.title("📊 Academy Dashboard")

    supabase = get_supabase_client()
    today = date.today()

    # --- Fetch Data ---
    try:
        members = fetch_members(supabase)
        receipts_response = supabase.table(models.PAYMENT_RECEIPTS).select("*").execute()
        checkins_response = (
            supabase.table(models.ATTENDANCE)
            .select("id")
            .gte("check_in_time", today.isoformat())
            .execute()
        )
    except Exception as e:
        st.error(f"Error loading data: {e}")
        return

    stats = member_stats(members, today)

    # --- KPI Metrics ---
    col1, col2, col3, col4 = st.columns(4)
    col1.metric("Total Members", stats["total"])
    col2.metric("Active", stats["active"])
    col3.metric("Expiring Soon", stats["expiring_soon"])
    col4.metric("Today's Check-ins", len(checkins_response.data or []))

    # --- Revenue ---
    st.divider()
    st.subheader("Revenue")

    receipts_df = pd.DataFrame(receipts_response.data or [])
    if receipts_df.empty:
        st.info("No payments recorded yet.")
    else:
        receipts_df["amount"] = pd.to_numeric(receipts_df["amount"], errors="coerce").fillna(0)
        st.metric("Total Revenue", f"{receipts_df['amount'].sum():,.2f}")

        c1, c2 = st.columns(2)
        by_zone = receipts_df.groupby("zone", as_index=False)["amount"].sum()
        by_zone["zone"] = by_zone["zone"].map(lambda z: ZONES.get(z, z))
        c1.plotly_chart(px.bar(by_zone, x="zone", y="amount", title="By Zone"), use_container_width=True)

        by_method = receipts_df.groupby("payment_method", as_index=False)["amount"].sum()
        c2.plotly_chart(
            px.pie(by_method, names="payment_method", values="amount", title="By Payment Method"),
            use_container_width=True,
        )

    # --- Expiring Soon ---
    st.divider()
    st.subheader("Expiring in the next 30 days")

    expiring = expiring_services(members, today)
    if not expiring:
        st.success("No memberships expiring soon.")
        return

    for entry in expiring:
        days = entry["days_until_expiry"]
        c1, c2 = st.columns([3, 1])
        c1.write(
            f"**{entry['full_name']}** ({entry['member_id']}) · "
            f"{ZONES.get(entry['zone'], entry['zone'])} · expires {entry['expiry_date']} "
            f"({days} days left)"
        )
        message = reminder_message(
            entry["full_name"], entry["member_id"], days, entry["expiry_date"],
            academy_name=cfg.academy_name,
        )
        if entry.get("phone_number"):
            c2.link_button("📲 WhatsApp", whatsapp_url(entry["phone_number"], message))
