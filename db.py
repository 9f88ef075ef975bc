"""
db.py
Supabase helpers: one cached client per session + query execution with error normalization.
"""

from __future__ import annotations

import httpx
import streamlit as st
from postgrest.exceptions import APIError
from supabase import Client, create_client

import config


class ServiceError(Exception):
    """Raised by every service when the backend rejects a request."""


def get_client() -> Client:
    """
    Returns the Supabase client cached in the Streamlit session.
    """
    if "supabase_client" not in st.session_state:
        cfg = config.load_config()
        st.session_state.supabase_client = create_client(cfg.supabase.url, cfg.supabase.key)
    return st.session_state.supabase_client


def run(query, action: str):
    """
    Execute a postgrest request builder.
    Backend and transport failures surface as ServiceError("Failed to <action>: <backend message>").
    """
    try:
        return query.execute()
    except APIError as exc:
        raise ServiceError(f"Failed to {action}: {exc.message}") from exc
    except httpx.HTTPError as exc:
        raise ServiceError(f"Failed to {action}: {exc}") from exc


def rows(response) -> list[dict]:
    if response is None:
        return []
    return list(response.data or [])


def first(response) -> dict | None:
    data = rows(response)
    return data[0] if data else None
