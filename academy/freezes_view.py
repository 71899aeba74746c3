import streamlit as st
import pandas as pd
from datetime import date, timedelta

from academy.freezes import resume_expired_freezes
from academy.memberships import ZONES, freeze_duration
from academy.tools import fetch_members, freeze_membership
from db import models
from db.database import get_supabase_client


def render_freezes(cfg):
    st.title("❄️ Freezes & Suspensions")
    supabase = get_supabase_client()

    try:
        members = fetch_members(supabase)
        freezes = (
            supabase.table(models.MEMBERSHIP_FREEZES)
            .select("*")
            .order("created_at", desc=True)
            .execute()
        ).data or []
    except Exception as e:
        st.error(f"Error loading freezes: {e}")
        return

    # --- New Freeze ---
    with st.expander("➕ Freeze or Suspend a Membership"):
        options = {}
        for m in members:
            for s in m.get("member_services") or []:
                if s.get("is_active") and not s.get("freeze_status"):
                    label = f"{m['full_name']} ({m.get('member_id')}) · {ZONES.get(s['zone'], s['zone'])} until {s['expiry_date']}"
                    options[label] = (m, s)

        if not options:
            st.info("No active services to freeze.")
        else:
            with st.form("freeze_form", clear_on_submit=True):
                label = st.selectbox("Service", list(options))
                action = st.radio("Action", ["freeze", "suspend"], horizontal=True)
                c1, c2 = st.columns(2)
                start = c1.date_input("Start", value=date.today())
                end = c2.date_input("End (freeze only)", value=date.today() + timedelta(days=14))
                reason = st.text_input("Reason")
                notes = st.text_area("Notes")
                submitted = st.form_submit_button("Apply")

            if submitted:
                member, service = options[label]
                result = freeze_membership(
                    supabase, member, service, action, start,
                    end if action == "freeze" else None,
                    created_by="admin", reason=reason, notes=notes,
                )
                if result["success"]:
                    st.success(f"Membership {'frozen' if action == 'freeze' else 'suspended'}")
                    st.rerun()
                else:
                    st.error(f"⚠️ {result['error']}")

    # --- History ---
    st.divider()
    c1, c2 = st.columns([3, 1])
    c1.subheader("History")
    if c2.button("▶️ Resume due freezes now"):
        results = resume_expired_freezes(supabase)
        st.info(results["message"])
        st.rerun()

    if not freezes:
        st.info("No freezes recorded.")
        return

    names = {m["id"]: m["full_name"] for m in members}
    df = pd.DataFrame([
        {
            "member": names.get(f["member_id"], "Unknown"),
            "action": f["action_type"],
            "start": f["freeze_start"],
            "end": f.get("freeze_end"),
            "days": freeze_duration(f["freeze_start"], f["freeze_end"]) if f.get("freeze_end") else None,
            "status": f["status"],
            "reason": f.get("reason"),
            "created_by": f.get("created_by"),
        }
        for f in freezes
    ])
    st.dataframe(df, use_container_width=True)
