import streamlit as st
import pandas as pd

from academy.memberships import ZONES
from academy.tools import check_in_member, recent_attendance
from db.database import get_supabase_client


def render_attendance(cfg):
    st.title("✅ Attendance")
    supabase = get_supabase_client()

    with st.form("check_in", clear_on_submit=True):
        code = st.text_input("Scan barcode or enter member ID")
        submitted = st.form_submit_button("Check In")

    if submitted:
        result = check_in_member(supabase, code)
        if not result["success"]:
            st.error(result["error"])
        elif result["status"] == "active":
            member = result["member"]
            st.success(
                f"Welcome {member['full_name']}! "
                f"{ZONES.get(result['zone'], result['zone'])} until {result['expiry_date']}"
            )
        else:
            st.warning(f"{result['member']['full_name']} has no active membership. Check-in recorded as expired.")

    st.divider()
    st.subheader("Recent Check-ins")
    try:
        rows = recent_attendance(supabase)
    except Exception as e:
        st.error(f"Error loading attendance: {e}")
        return

    if not rows:
        st.info("No check-ins yet.")
        return

    df = pd.DataFrame([
        {
            "time": r.get("check_in_time"),
            "member": (r.get("members") or {}).get("full_name"),
            "member_id": (r.get("members") or {}).get("member_id"),
            "zone": ZONES.get(r.get("zone"), r.get("zone")),
            "status": r.get("status"),
        }
        for r in rows
    ])
    st.dataframe(df, use_container_width=True)
