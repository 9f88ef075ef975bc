"""
auth.py
Authentication through Supabase auth, profile lookup and role-based route protection.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from supabase import AuthApiError

import db
from models import User

logger = logging.getLogger(__name__)

LOGIN_PATH = "/login"
UNAUTHORIZED_PATH = "/unauthorized"

ADMIN_ROUTE = ("ADMIN",)
MEMBER_ROUTE = ("ADMIN", "MEMBER")
USER_ROUTE = ("ADMIN", "MEMBER", "USER")

DASHBOARDS = {
    "ADMIN": "/admin",
    "MEMBER": "/member",
    "USER": "/user",
}


@dataclass(frozen=True)
class GuardDecision:
    state: str  # loading / unauthenticated / profile-pending / authorized / forbidden
    redirect_to: str | None = None
    from_location: str | None = None

    @property
    def allowed(self) -> bool:
        return self.state == "authorized"


def evaluate_route(loading: bool, user, profile: User | None, location: str,
                   allowed_roles=None, require_auth: bool = True) -> GuardDecision:
    """
    Decide what a protected page shows, from the auth loading flag, the signed-in user
    and the loaded profile. Recomputed on every render.
    """
    if loading:
        return GuardDecision("loading")

    if require_auth and not user:
        return GuardDecision("unauthenticated", redirect_to=LOGIN_PATH, from_location=location)

    if allowed_roles and require_auth and user and profile is None:
        return GuardDecision("profile-pending")

    if allowed_roles and profile is not None and profile.role not in allowed_roles:
        logger.info(f"Role {profile.role} denied on {location}")
        return GuardDecision("forbidden", redirect_to=UNAUTHORIZED_PATH)

    return GuardDecision("authorized")


def dashboard_for_role(role: str | None) -> str:
    return DASHBOARDS.get(role or "", DASHBOARDS["USER"])


def load_profile(user_id: str, client=None) -> User | None:
    client = client or db.get_client()
    query = client.table("users").select("*").eq("id", user_id).limit(1)
    row = db.first(db.run(query, "fetch user profile"))
    return User.from_row(row) if row else None


def sign_in(email: str, password: str, client=None):
    """
    Returns the signed-in auth user, or None when the credentials are rejected.
    """
    client = client or db.get_client()
    try:
        response = client.auth.sign_in_with_password({"email": email, "password": password})
    except AuthApiError as exc:
        logger.info(f"Sign-in rejected for {email}: {exc.message}")
        return None
    return response.user


def sign_out(client=None) -> None:
    client = client or db.get_client()
    client.auth.sign_out()
