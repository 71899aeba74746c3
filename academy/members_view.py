import streamlit as st
import pandas as pd
from datetime import date

from academy.forms import MemberRegistration, PaymentEntry
from academy.memberships import (
    GENDERS,
    PAYMENT_METHODS,
    SUBSCRIPTION_PLANS,
    ZONES,
    filter_members,
    latest_expiry,
    member_status,
)
from academy.tools import delete_member, fetch_members, register_member
from db.database import get_supabase_client

SORT_OPTIONS = {
    "newest": "Newest first",
    "name": "Name",
    "expiry": "Expiry (soonest)",
    "expiry_desc": "Expiry (latest)",
}


def render_members(cfg):
    st.title("👥 Members")
    supabase = get_supabase_client()

    with st.expander("➕ Register New Member"):
        _registration_form(supabase)

    try:
        members = fetch_members(supabase)
    except Exception as e:
        st.error(f"Error loading members: {e}")
        return

    # --- Filters ---
    today = date.today()
    c1, c2, c3, c4 = st.columns([3, 2, 2, 2])
    search = c1.text_input("Search", placeholder="Name, phone or member ID")
    zone = c2.selectbox("Zone", ["all"] + list(ZONES), format_func=lambda z: "All zones" if z == "all" else ZONES[z])
    status = c3.selectbox("Status", ["all", "active", "expiring", "expired", "frozen", "suspended"])
    sort_by = c4.selectbox("Sort", list(SORT_OPTIONS), format_func=SORT_OPTIONS.get)

    filtered = filter_members(members, today, search=search, zone=zone, status=status, sort_by=sort_by)
    st.caption(f"{len(filtered)} of {len(members)} members")

    if not filtered:
        st.info("No members match the current filters.")
        return

    rows = []
    for m in filtered:
        expiry = latest_expiry(m)
        rows.append({
            "member_id": m.get("member_id"),
            "full_name": m.get("full_name"),
            "phone_number": m.get("phone_number"),
            "zones": ", ".join(ZONES.get(s["zone"], s["zone"]) for s in m.get("member_services") or []),
            "status": member_status(m, today),
            "expiry_date": expiry.isoformat() if expiry else None,
            "barcode": m.get("barcode"),
        })
    df = pd.DataFrame(rows)
    st.dataframe(df, use_container_width=True)

    # --- Actions ---
    c1, c2 = st.columns([2, 1])
    with c1:
        st.write("### Delete Member")
        by_label = {f"{m['full_name']} ({m.get('member_id')})": m for m in filtered}
        label = st.selectbox("Member", list(by_label))
        confirm = st.checkbox("I understand this cannot be undone")
        if st.button("Delete", disabled=not confirm):
            result = delete_member(supabase, by_label[label], deleted_by="admin")
            if result["success"]:
                st.success(f"Deleted {label}")
                st.rerun()
            else:
                st.error(f"Failed to delete: {result['error']}")

    with c2:
        st.write("### Export")
        csv = df.to_csv(index=False).encode("utf-8")
        st.download_button("📥 Download as CSV", csv, "members.csv", "text/csv", key="download-members")


def _registration_form(supabase):
    if "payment_rows" not in st.session_state:
        st.session_state.payment_rows = 1

    with st.form("register_member", clear_on_submit=False):
        c1, c2 = st.columns(2)
        full_name = c1.text_input("Full name")
        phone = c2.text_input("Phone number")
        gender = c1.selectbox("Gender", GENDERS)
        dob = c2.date_input("Date of birth", value=None, min_value=date(1930, 1, 1), max_value=date.today())
        zone = c1.selectbox("Zone", list(ZONES), format_func=ZONES.get)
        plan = c2.selectbox("Plan", list(SUBSCRIPTION_PLANS), format_func=SUBSCRIPTION_PLANS.get)

        payments = []
        for i in range(st.session_state.payment_rows):
            p1, p2 = st.columns(2)
            method = p1.selectbox("Payment method", PAYMENT_METHODS, key=f"pay_method_{i}")
            amount = p2.number_input("Amount", min_value=0.0, step=10.0, key=f"pay_amount_{i}")
            payments.append(PaymentEntry(method, amount or None))

        notes = st.text_area("Notes")
        cashier = st.text_input("Cashier name")
        submitted = st.form_submit_button("Register")

    if st.button("Split payment"):
        st.session_state.payment_rows += 1
        st.rerun()

    if not submitted:
        return

    form = MemberRegistration(
        full_name=full_name,
        gender=gender,
        phone_number=phone,
        date_of_birth=dob,
        subscription_plan=plan,
        zone=zone,
        notes=notes,
        payments=payments,
    )
    result = register_member(supabase, form, cashier_name=cashier or None)
    if result["success"]:
        member = result["member"]
        st.success(
            f"Registered {member['full_name']} as {member['member_id']} "
            f"(barcode {member['barcode']}). Paid {result['total_paid']:,.2f}."
        )
        st.session_state.payment_rows = 1
    else:
        st.error(f"⚠️ {result['error']}")
