"""
member_service.py
Members table (joined with users and fee packages): listing, creation, status flows, package assignment.
"""

from __future__ import annotations

import logging
import uuid
from datetime import date, timedelta

import billing_service
import db
import utils
from models import MEMBER_STATUSES, Bill, FeePackage, Member, MemberStats, SyncResult, User

logger = logging.getLogger(__name__)

TABLE = "members"
WITH_RELATIONS = "*, user:users(*), fee_package:fee_packages(*)"


def _members(response) -> list[Member]:
    return [Member.from_row(r) for r in db.rows(response)]


def _is_admin(row: dict) -> bool:
    return (row.get("user") or {}).get("role") == "ADMIN"


def list_all(client=None) -> list[Member]:
    """
    All members with user, package and bill summaries, newest first. Admin accounts are hidden.
    """
    client = client or db.get_client()
    query = (
        client.table(TABLE)
        .select(f"{WITH_RELATIONS}, bills(id, status, amount, due_date, paid_date, created_at)")
        .order("created_at", desc=True)
    )
    data = db.rows(db.run(query, "fetch members"))
    return [Member.from_row(r) for r in data if not _is_admin(r)]


def get(member_id: str, client=None) -> Member | None:
    client = client or db.get_client()
    query = client.table(TABLE).select(f"{WITH_RELATIONS}, bills(*)").eq("id", member_id).limit(1)
    row = db.first(db.run(query, "fetch member"))
    return Member.from_row(row) if row else None


def get_by_user(user_id: str, client=None) -> Member | None:
    client = client or db.get_client()
    query = client.table(TABLE).select(WITH_RELATIONS).eq("user_id", user_id).limit(1)
    row = db.first(db.run(query, "fetch member"))
    return Member.from_row(row) if row else None


def generate_membership_number(client=None, today: date | None = None) -> str:
    client = client or db.get_client()
    year = (today or date.today()).year
    query = (
        client.table(TABLE).select("id", count="exact")
        .gte("created_at", f"{year}-01-01")
        .lt("created_at", f"{year + 1}-01-01")
    )
    count = db.run(query, "generate membership number").count or 0
    return utils.membership_number(year, count + 1)


def create(user_data: dict, member_data: dict | None = None, client=None) -> Member:
    """
    Create the users row first, then an INACTIVE member linked to it.
    The users row is removed again if the member cannot be created.
    """
    client = client or db.get_client()
    user_row = {
        "id": str(uuid.uuid4()),
        "email": user_data["email"],
        "full_name": user_data.get("full_name"),
        "phone": user_data.get("phone"),
        "role": user_data.get("role", "MEMBER"),
    }
    user = db.first(db.run(client.table("users").insert(user_row), "create user profile"))
    if user is None:
        raise db.ServiceError("Failed to create user profile: no row returned")

    try:
        row = {
            "user_id": user["id"],
            "membership_number": generate_membership_number(client=client),
            "join_date": utils.today_iso(),
            "status": "INACTIVE",
            **{k: v for k, v in (member_data or {}).items() if v},
        }
        created = db.first(db.run(client.table(TABLE).insert(row), "create member"))
        if created is None:
            raise db.ServiceError("Failed to create member: no row returned")
    except db.ServiceError:
        db.run(client.table("users").delete().eq("id", user["id"]), "clean up user profile")
        raise

    logger.info(f"Member {created['membership_number']} created for {user['email']}")
    return Member.from_row({**created, "user": user})


def update(member_id: str, changes: dict, client=None) -> Member:
    client = client or db.get_client()
    updated = db.first(db.run(client.table(TABLE).update(changes).eq("id", member_id), "update member"))
    if updated is None:
        raise db.ServiceError("Failed to update member: member not found")
    return Member.from_row(updated)


def update_user(member_id: str, changes: dict, client=None) -> Member:
    client = client or db.get_client()
    member = get(member_id, client=client)
    if member is None:
        raise db.ServiceError("Failed to update user: member not found")
    db.run(client.table("users").update(changes).eq("id", member.user_id), "update user")
    return get(member_id, client=client)


def delete(member_id: str, client=None) -> None:
    client = client or db.get_client()
    member = get(member_id, client=client)
    if member is None:
        raise db.ServiceError("Failed to delete member: member not found")
    # member row first because of the users foreign key
    db.run(client.table(TABLE).delete().eq("id", member_id), "delete member")
    if member.user_id:
        db.run(client.table("users").delete().eq("id", member.user_id), "delete user")
    logger.info(f"Member {member.membership_number} deleted")


def search(query: str, client=None) -> list[Member]:
    needle = query.strip().lower()
    members = list_all(client=client)
    if not needle:
        return members

    def matches(m: Member) -> bool:
        values = [m.membership_number]
        if m.user:
            values += [m.user.full_name or "", m.user.email or ""]
        return any(needle in v.lower() for v in values)

    return [m for m in members if matches(m)]


def list_by_status(status: str, client=None) -> list[Member]:
    client = client or db.get_client()
    query = client.table(TABLE).select(WITH_RELATIONS).eq("status", status).order("created_at", desc=True)
    data = db.rows(db.run(query, "fetch members by status"))
    return [Member.from_row(r) for r in data if not _is_admin(r)]


def compute_stats(client=None) -> MemberStats:
    client = client or db.get_client()
    data = db.rows(db.run(client.table(TABLE).select("status, user:users(role)"), "fetch member stats"))
    data = [r for r in data if not _is_admin(r)]
    count = {s: 0 for s in MEMBER_STATUSES}
    for row in data:
        if row.get("status") in count:
            count[row["status"]] += 1
    return MemberStats(
        total=len(data),
        active=count["ACTIVE"],
        inactive=count["INACTIVE"],
        expired=count["EXPIRED"],
        suspended=count["SUSPENDED"],
    )


def change_status(member: Member, new_status: str, reason: str = "", client=None) -> Member:
    if new_status not in MEMBER_STATUSES:
        raise ValueError(f"Unknown member status: {new_status}")
    if new_status == member.status:
        raise ValueError("Please select a different status")
    if new_status == "SUSPENDED" and not reason.strip():
        raise ValueError("Please provide a reason for suspension")
    updated = update(member.id, {"status": new_status}, client=client)
    logger.info(f"Member {member.membership_number}: {member.status} -> {new_status} {reason}".rstrip())
    return updated


def assign_package(member_id: str, package: FeePackage, client=None, due_days: int = 30,
                   currency: str = "INR") -> Bill:
    """
    Attach a fee package (member stays INACTIVE until the bill is paid),
    generate its bill and tell the member a payment is pending.
    """
    client = client or db.get_client()
    update(member_id, {"fee_package_id": package.id, "status": "INACTIVE"}, client=client)
    bill = billing_service.create_bill(member_id, package.id, client=client, due_days=due_days, currency=currency)
    billing_service.create_bill_pending_notification(member_id, bill.id, package.name, package.amount, client=client)
    return bill


def update_expired(client=None, today: date | None = None) -> tuple[int, list[str]]:
    """
    Flip ACTIVE members whose membership ended before today to EXPIRED.
    Returns (count, ["GYM20250001 (Jane Doe)", ...]).
    """
    client = client or db.get_client()
    today_str = (today or date.today()).isoformat()
    query = (
        client.table(TABLE)
        .select("id, membership_number, membership_end_date, user:users(full_name, email)")
        .eq("status", "ACTIVE")
        .lt("membership_end_date", today_str)
    )
    expired = db.rows(db.run(query, "fetch expired members"))
    if not expired:
        return 0, []

    ids = [m["id"] for m in expired]
    db.run(client.table(TABLE).update({"status": "EXPIRED"}).in_("id", ids), "update expired members")
    labels = [f"{m['membership_number']} ({(m.get('user') or {}).get('full_name') or 'Unknown'})" for m in expired]
    logger.info(f"Expired memberships: {labels}")
    return len(expired), labels


def list_expiring_soon(client=None, days: int = 7, today: date | None = None) -> list[Member]:
    client = client or db.get_client()
    today = today or date.today()
    query = (
        client.table(TABLE).select(WITH_RELATIONS)
        .eq("status", "ACTIVE")
        .gte("membership_end_date", today.isoformat())
        .lte("membership_end_date", (today + timedelta(days=days)).isoformat())
        .order("membership_end_date")
    )
    return _members(db.run(query, "fetch members expiring soon"))


def list_users(role: str, client=None) -> list[User]:
    client = client or db.get_client()
    query = client.table("users").select("*").eq("role", role).order("created_at", desc=True)
    return [User.from_row(r) for r in db.rows(db.run(query, f"fetch {role.lower()} users"))]


def list_member_users(client=None) -> list[tuple[User, Member | None]]:
    """
    Every MEMBER-role user paired with their member record, or None when the record is missing.
    """
    client = client or db.get_client()
    users = list_users("MEMBER", client=client)
    if not users:
        return []
    query = client.table(TABLE).select(WITH_RELATIONS).in_("user_id", [u.id for u in users])
    by_user = {m.user_id: m for m in _members(db.run(query, "fetch member records"))}
    return [(u, by_user.get(u.id)) for u in users]


def sync_missing_member_records(client=None) -> SyncResult:
    """
    Create an INACTIVE member record for each MEMBER-role user that has none.
    One failing user is reported in `errors` and does not stop the others.
    """
    client = client or db.get_client()
    missing = [u for u, member in list_member_users(client=client) if member is None]
    if not missing:
        return SyncResult()

    created, errors = [], []
    for user in missing:
        label = f"{user.full_name} ({user.email})"
        try:
            number = generate_membership_number(client=client)
            row = {
                "user_id": user.id,
                "membership_number": number,
                "join_date": utils.today_iso(),
                "status": "INACTIVE",
            }
            db.run(client.table(TABLE).insert(row), "create member record")
        except db.ServiceError as exc:
            logger.error(f"Sync failed for {label}: {exc}")
            errors.append(f"{label}: {exc}")
            continue
        created.append(f"{label} - {number}")

    logger.info(f"Member sync: {len(created)} created, {len(errors)} errors")
    return SyncResult(created=len(created), errors=errors, created_members=created)


def upgrade_user_to_member(user_id: str, member_data: dict | None = None, client=None) -> Member:
    """
    Promote a USER account: role becomes MEMBER and an INACTIVE member record is created
    without a package. The role goes back to USER if the record cannot be created.
    """
    client = client or db.get_client()
    details = {k: v for k, v in (member_data or {}).items() if v}
    changes = {"role": "MEMBER"}
    if "phone" in details:
        changes["phone"] = details.pop("phone")
    query = client.table("users").update(changes).eq("id", user_id)
    if db.first(db.run(query, "update user role")) is None:
        raise db.ServiceError("Failed to update user role: user not found")

    try:
        row = {
            "user_id": user_id,
            "membership_number": generate_membership_number(client=client),
            "join_date": utils.today_iso(),
            "status": "INACTIVE",
            **details,
        }
        created = db.first(db.run(client.table(TABLE).insert(row), "create member record"))
        if created is None:
            raise db.ServiceError("Failed to create member record: no row returned")
    except db.ServiceError:
        db.run(client.table("users").update({"role": "USER"}).eq("id", user_id), "restore user role")
        raise

    logger.info(f"User {user_id} upgraded to member {created['membership_number']}")
    return get(created["id"], client=client)
