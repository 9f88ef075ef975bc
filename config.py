"""
config.py
Application settings loaded from Streamlit secrets (.streamlit/secrets.toml).

[supabase]
url = "https://<project>.supabase.co"
key = "<anon or service key>"

[app]            # optional
currency = "INR"
bill_due_days = 30
expiry_warning_days = 7
log_level = "INFO"
"""

from __future__ import annotations

import os
from dataclasses import dataclass

import streamlit as st


# ---------------------- DATA CLASSES ----------------------

@dataclass
class SupabaseConfig:
    url: str
    key: str


@dataclass
class AppConfig:
    supabase: SupabaseConfig
    currency: str = "INR"
    bill_due_days: int = 30
    expiry_warning_days: int = 7
    log_level: str = "INFO"


# ---------------------- LOADING ----------------------

def load_config(secrets=None) -> AppConfig:
    if secrets is None:
        secrets = st.secrets

    # --- Supabase ---
    # Accepts either `key` or the older `service_key` name; env vars cover non-Streamlit runs
    section = secrets["supabase"] if "supabase" in secrets else {}
    url = section.get("url") or os.environ.get("SUPABASE_URL", "")
    key = section.get("key") or section.get("service_key") or os.environ.get("SUPABASE_KEY", "")
    if not url or not key:
        raise RuntimeError("Supabase url/key missing: add a [supabase] section to secrets.toml")

    # --- App ---
    app = secrets["app"] if "app" in secrets else {}

    return AppConfig(
        supabase=SupabaseConfig(url=url, key=key),
        currency=app.get("currency", "INR"),
        bill_due_days=int(app.get("bill_due_days", 30)),
        expiry_warning_days=int(app.get("expiry_warning_days", 7)),
        log_level=str(app.get("log_level", "INFO")).upper(),
    )
