import streamlit as st
from datetime import date, timedelta

from academy.forms import SessionForm, parse_time_str
from academy.memberships import ZONES, week_days
from academy.tools import (
    add_coach,
    book_session,
    cancel_booking,
    create_session,
    delete_coach,
    delete_session,
    fetch_coaches,
    fetch_members,
    fetch_session_bookings,
    fetch_week_sessions,
    sessions_by_day,
    toggle_coach,
)
from db.database import get_supabase_client

SESSION_TYPES = ["class", "private", "team_training", "court_booking"]


def bookable_members(supabase):
    """Booking choices keyed by display label."""
    return {f"{m['full_name']} ({m.get('member_id')})": m["id"] for m in fetch_members(supabase)}


def render_schedule(cfg):
    st.title("📅 Schedule")
    supabase = get_supabase_client()

    if "week_anchor" not in st.session_state:
        st.session_state.week_anchor = date.today()

    # --- Week Navigation ---
    c1, c2, c3 = st.columns([1, 3, 1])
    if c1.button("◀ Previous"):
        st.session_state.week_anchor -= timedelta(days=7)
        st.rerun()
    if c3.button("Next ▶"):
        st.session_state.week_anchor += timedelta(days=7)
        st.rerun()
    days = week_days(st.session_state.week_anchor)
    c2.markdown(f"**{days[0].strftime('%d %b')} to {days[-1].strftime('%d %b %Y')}**")

    try:
        coaches = fetch_coaches(supabase, active_only=True)
        sessions = fetch_week_sessions(supabase, st.session_state.week_anchor)
        members = bookable_members(supabase)
    except Exception as e:
        st.error(f"Error loading schedule: {e}")
        return

    with st.expander("➕ New Session"):
        _session_form(supabase, coaches)

    grouped = sessions_by_day(sessions, st.session_state.week_anchor)
    for day, day_sessions in grouped.items():
        st.subheader(day.strftime("%A %d/%m"))
        if not day_sessions:
            st.caption("No sessions")
            continue
        for s in day_sessions:
            _session_card(supabase, s, members)


def _session_form(supabase, coaches):
    coach_names = {c["id"]: c["name"] for c in coaches}
    with st.form("new_session", clear_on_submit=True):
        title = st.text_input("Title")
        c1, c2 = st.columns(2)
        session_type = c1.selectbox("Type", SESSION_TYPES)
        zone = c2.selectbox("Zone", [""] + list(ZONES), format_func=lambda z: ZONES.get(z, "Any"))
        session_date = c1.date_input("Date", value=st.session_state.week_anchor)
        coach_id = c2.selectbox("Coach", [""] + list(coach_names), format_func=lambda c: coach_names.get(c, "None"))
        start = c1.time_input("Start")
        end = c2.time_input("End")
        capacity = st.number_input("Max capacity", min_value=1, value=10)
        notes = st.text_area("Notes")
        submitted = st.form_submit_button("Create")

    if submitted:
        form = SessionForm(
            title=title,
            session_type=session_type,
            session_date=session_date,
            start_time=start,
            end_time=end,
            coach_id=coach_id,
            max_capacity=int(capacity),
            zone=zone,
            notes=notes,
        )
        result = create_session(supabase, form)
        if result["success"]:
            st.success("Session created")
            st.rerun()
        else:
            st.error(f"⚠️ {result['error']}")


def _session_card(supabase, session, by_label):
    coach = (session.get("coaches") or {}).get("name") or "No coach"
    capacity = session.get("max_capacity") or 10
    start, end = parse_time_str(session["start_time"]), parse_time_str(session["end_time"])
    times = f"{start:%H:%M}-{end:%H:%M}" if start and end else session["start_time"]
    label = (
        f"{times} · {session['title']} · "
        f"{coach} · {session['bookings_count']}/{capacity}"
    )
    with st.expander(label):
        for booking in fetch_session_bookings(supabase, session["id"]):
            b1, b2 = st.columns([3, 1])
            b1.write(f"• {(booking.get('members') or {}).get('full_name', 'Unknown')}")
            if b2.button("Cancel", key=f"cancel_{booking['id']}"):
                cancel_booking(supabase, booking["id"])
                st.rerun()

        choice = st.selectbox("Member", list(by_label), key=f"book_member_{session['id']}")
        c1, c2 = st.columns(2)
        if c1.button("Book", key=f"book_{session['id']}") and choice:
            result = book_session(supabase, session, by_label[choice])
            if result["success"]:
                st.success("Booked")
                st.rerun()
            else:
                st.error(result["error"])
        if c2.button("🗑️ Delete session", key=f"delete_session_{session['id']}"):
            result = delete_session(supabase, session["id"])
            if result["success"]:
                st.rerun()
            else:
                st.error(result["error"])


def render_coaches(cfg):
    st.title("🏅 Coaches")
    supabase = get_supabase_client()

    with st.form("add_coach", clear_on_submit=True):
        name = st.text_input("Coach name")
        if st.form_submit_button("Add Coach"):
            result = add_coach(supabase, name)
            if result["success"]:
                st.success(f"Added {name.strip()}")
            else:
                st.error(result["error"])

    try:
        coaches = fetch_coaches(supabase)
    except Exception as e:
        st.error(f"Error loading coaches: {e}")
        return

    if not coaches:
        st.info("No coaches yet.")
        return

    for coach in coaches:
        c1, c2, c3 = st.columns([3, 1, 1])
        c1.write(f"**{coach['name']}** {'🟢' if coach.get('is_active') else '⚪'}")
        if c2.button("Deactivate" if coach.get("is_active") else "Activate", key=f"toggle_{coach['id']}"):
            toggle_coach(supabase, coach)
            st.rerun()
        if c3.button("Delete", key=f"delete_coach_{coach['id']}"):
            result = delete_coach(supabase, coach["id"])
            if result["success"]:
                st.rerun()
            else:
                st.error(result["error"])
