# db/database.py

from supabase import create_client, Client
import streamlit as st

from academy.config import ConfigError, SupabaseConfig


def get_supabase_client() -> Client:
    """
    Returns a cached Supabase client for the dashboard.
    Uses service_key because member registration, freezes and the
    notification queue all write across tables that RLS would block.
    """

    if "supabase_client" not in st.session_state:
        url = st.secrets["supabase"]["url"]
        key = st.secrets["supabase"]["service_key"]
        st.session_state.supabase_client = create_client(url, key)

    return st.session_state.supabase_client


def create_service_client(cfg: SupabaseConfig) -> Client:
    """Client for the HTTP handlers, which run outside Streamlit."""
    if not cfg.url or not cfg.service_key:
        raise ConfigError("SUPABASE_URL and SUPABASE_SERVICE_ROLE_KEY must be set")
    return create_client(cfg.url, cfg.service_key)


def error_message(e: Exception) -> str:
    """Readable text for postgrest APIError and plain exceptions alike."""
    if getattr(e, "message", None):
        return e.message
    if getattr(e, "details", None):
        return e.details
    return str(e) or type(e).__name__
