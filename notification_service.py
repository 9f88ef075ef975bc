"""
notification_service.py
Notifications table: reads joined with member + user, inserts, read state, deletes, bulk sends, stats.
Realtime feeds live in notification_feeds.py.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta

import db
import utils
from models import NOTIFICATION_TYPES, Notification, NotificationStats

logger = logging.getLogger(__name__)

TABLE = "notifications"
WITH_MEMBER = "*, member:members(*, user:users(*))"


def _notifications(response) -> list[Notification]:
    return [Notification.from_row(r) for r in db.rows(response)]


def list_all(client=None) -> list[Notification]:
    client = client or db.get_client()
    query = client.table(TABLE).select(WITH_MEMBER).order("created_at", desc=True)
    return _notifications(db.run(query, "fetch notifications"))


def list_by_member(member_id: str, client=None) -> list[Notification]:
    client = client or db.get_client()
    query = (
        client.table(TABLE).select(WITH_MEMBER)
        .eq("member_id", member_id)
        .order("created_at", desc=True)
    )
    return _notifications(db.run(query, "fetch member notifications"))


def list_by_type(notification_type: str, client=None) -> list[Notification]:
    client = client or db.get_client()
    query = (
        client.table(TABLE).select(WITH_MEMBER)
        .eq("type", notification_type)
        .order("created_at", desc=True)
    )
    return _notifications(db.run(query, "fetch notifications by type"))


def _payload(member_id: str, notification_type: str, title: str, message: str,
             related_bill_id: str | None = None, related_package_name: str | None = None) -> dict:
    row = {
        "member_id": member_id,
        "type": notification_type,
        "title": title,
        "message": message,
        "is_read": False,
    }
    if related_bill_id:
        row["related_bill_id"] = related_bill_id
    if related_package_name:
        row["related_package_name"] = related_package_name
    return row


def create(member_id: str, notification_type: str, title: str, message: str,
           related_bill_id: str | None = None, related_package_name: str | None = None,
           client=None) -> Notification:
    client = client or db.get_client()
    row = _payload(member_id, notification_type, title, message, related_bill_id, related_package_name)
    created = db.first(db.run(client.table(TABLE).insert(row), "create notification"))
    if created is None:
        raise db.ServiceError("Failed to create notification: no row returned")
    logger.info(f"Notification {notification_type} created for member {member_id}")
    return Notification.from_row(created)


def create_bulk(notifications: list[dict], client=None) -> list[Notification]:
    """
    Insert many notifications in one request. Each dict carries member_id, type, title,
    message and optionally related_bill_id / related_package_name; is_read is forced False.
    """
    if not notifications:
        return []
    client = client or db.get_client()
    payload = [
        _payload(
            n["member_id"], n["type"], n["title"], n["message"],
            n.get("related_bill_id"), n.get("related_package_name"),
        )
        for n in notifications
    ]
    created = _notifications(db.run(client.table(TABLE).insert(payload), "create bulk notifications"))
    logger.info(f"Created {len(created)} notifications")
    return created


def mark_read(notification_id: str, client=None) -> Notification:
    client = client or db.get_client()
    query = client.table(TABLE).update({"is_read": True}).eq("id", notification_id)
    updated = db.first(db.run(query, "mark notification as read"))
    if updated is None:
        raise db.ServiceError("Failed to mark notification as read: notification not found")
    return Notification.from_row(updated)


def mark_all_read_for_member(member_id: str, client=None) -> None:
    client = client or db.get_client()
    query = (
        client.table(TABLE).update({"is_read": True})
        .eq("member_id", member_id)
        .eq("is_read", False)
    )
    db.run(query, "mark all notifications as read")


def delete(notification_id: str, client=None) -> None:
    client = client or db.get_client()
    db.run(client.table(TABLE).delete().eq("id", notification_id), "delete notification")


def delete_all_for_member(member_id: str, client=None) -> None:
    client = client or db.get_client()
    db.run(client.table(TABLE).delete().eq("member_id", member_id), "delete member notifications")


def send_to_all_active(title: str, message: str, client=None) -> list[Notification]:
    client = client or db.get_client()
    query = client.table("members").select("id, user:users(*)").eq("status", "ACTIVE")
    members = db.rows(db.run(query, "fetch active members"))
    if not members:
        return []
    return create_bulk(
        [{"member_id": m["id"], "type": "GENERAL", "title": title, "message": message} for m in members],
        client=client,
    )


def send_to_members(member_ids: list[str], title: str, message: str,
                    notification_type: str = "GENERAL", client=None) -> list[Notification]:
    return create_bulk(
        [
            {"member_id": member_id, "type": notification_type, "title": title, "message": message}
            for member_id in member_ids
        ],
        client=client,
    )


def compute_stats(client=None, now: datetime | None = None) -> NotificationStats:
    client = client or db.get_client()
    now = now or utils.utc_now()
    data = db.rows(db.run(client.table(TABLE).select("type, is_read, created_at"), "fetch notification stats"))

    last_24_hours = now - timedelta(hours=24)
    by_type = {t: 0 for t in NOTIFICATION_TYPES}
    unread = 0
    recent = 0
    for row in data:
        if not row.get("is_read"):
            unread += 1
        if row.get("type") in by_type:
            by_type[row["type"]] += 1
        if row.get("created_at") and utils.parse_timestamp(row["created_at"]) > last_24_hours:
            recent += 1

    return NotificationStats(total=len(data), unread=unread, by_type=by_type, recent_count=recent)


def unread_count_for_member(member_id: str, client=None) -> int:
    client = client or db.get_client()
    query = (
        client.table(TABLE).select("id", count="exact")
        .eq("member_id", member_id)
        .eq("is_read", False)
    )
    return db.run(query, "get unread count").count or 0


def create_expiry_warnings(client=None, now: datetime | None = None, days: int = 7) -> list[Notification]:
    """
    One MEMBERSHIP_EXPIRING notification per active member whose membership ends within
    [now, now + days]. Earlier warnings are not checked, so repeated runs send again.
    """
    client = client or db.get_client()
    now = now or utils.utc_now()
    query = (
        client.table("members")
        .select("id, membership_end_date, user:users(*), fee_package:fee_packages(*)")
        .eq("status", "ACTIVE")
        .lte("membership_end_date", (now + timedelta(days=days)).isoformat())
        .gte("membership_end_date", now.isoformat())
    )
    members = db.rows(db.run(query, "fetch expiring memberships"))
    if not members:
        return []

    warnings = []
    for m in members:
        package = m.get("fee_package") or {}
        warnings.append({
            "member_id": m["id"],
            "type": "MEMBERSHIP_EXPIRING",
            "title": "Membership Expiring Soon",
            "message": f"Your membership expires in {days} days. Renew now to continue enjoying gym facilities!",
            "related_package_name": package.get("name"),
        })
    return create_bulk(warnings, client=client)
