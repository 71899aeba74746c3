from __future__ import annotations

import sys
import os

# --- Add project root to sys.path ---
current_dir = os.path.dirname(os.path.abspath(__file__))
parent_dir = os.path.dirname(current_dir)
if parent_dir not in sys.path:
    sys.path.insert(0, parent_dir)

import streamlit as st

# IMPORTS
from academy.config import ConfigError, load_config
from academy.logging_config import setup_logging
from academy.admin_dashboard import render_admin_dashboard
from academy.members_view import render_members
from academy.attendance_view import render_attendance
from academy.schedule_view import render_coaches, render_schedule
from academy.freezes_view import render_freezes
from academy.notification_manager import render_notification_manager

PAGES = {
    "Dashboard": render_admin_dashboard,
    "Members": render_members,
    "Attendance": render_attendance,
    "Schedule": render_schedule,
    "Coaches": render_coaches,
    "Freezes": render_freezes,
    "Notifications": render_notification_manager,
}


def _is_authenticated(cfg) -> bool:
    if st.session_state.get("authenticated"):
        return True
    if not cfg.admin_password:
        st.error("No admin password configured. Add [admin] password to secrets.toml.")
        return False

    password = st.sidebar.text_input("Admin Password", type="password")
    if password != cfg.admin_password:
        st.warning("Please enter the correct admin password to view data.")
        return False

    st.session_state.authenticated = True
    return True


def main():
    st.set_page_config(
        page_title="Sports Academy",
        page_icon="🏟️",
        layout="wide",
        initial_sidebar_state="expanded",
    )
    setup_logging()

    try:
        cfg = load_config()
    except ConfigError as e:
        st.error(str(e))
        return

    with st.sidebar:
        st.title(cfg.academy_name)
        menu = st.radio("Go to", list(PAGES))
        st.divider()

    if not _is_authenticated(cfg):
        return

    if st.sidebar.button("Log out"):
        st.session_state.authenticated = False
        st.rerun()

    PAGES[menu](cfg)


if __name__ == "__main__":
    main()
