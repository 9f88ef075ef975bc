"""
billing_service.py
Bills table: listing, generation from a fee package, payment processing, overdue batch, stats.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta

import db
import utils
from models import Bill, BillingStats, Member

logger = logging.getLogger(__name__)

TABLE = "bills"
WITH_RELATIONS = "*, member:members(*, user:users(*)), fee_package:fee_packages(*)"


def _bills(response) -> list[Bill]:
    return [Bill.from_row(r) for r in db.rows(response)]


def list_all(client=None) -> list[Bill]:
    client = client or db.get_client()
    query = client.table(TABLE).select(WITH_RELATIONS).order("created_at", desc=True)
    return _bills(db.run(query, "fetch bills"))


def list_by_member(member_id: str, client=None) -> list[Bill]:
    client = client or db.get_client()
    query = (
        client.table(TABLE).select(WITH_RELATIONS)
        .eq("member_id", member_id)
        .order("created_at", desc=True)
    )
    return _bills(db.run(query, "fetch member bills"))


def list_by_status(status: str, client=None) -> list[Bill]:
    client = client or db.get_client()
    query = (
        client.table(TABLE).select(WITH_RELATIONS)
        .eq("status", status)
        .order("created_at", desc=True)
    )
    return _bills(db.run(query, "fetch bills by status"))


def get(bill_id: str, client=None) -> Bill | None:
    client = client or db.get_client()
    query = client.table(TABLE).select("*, member:members(*), fee_package:fee_packages(*)").eq("id", bill_id).limit(1)
    row = db.first(db.run(query, "fetch bill"))
    return Bill.from_row(row) if row else None


def create_bill(member_id: str, fee_package_id: str, client=None, due_days: int = 30,
                currency: str = "INR", now: datetime | None = None) -> Bill:
    client = client or db.get_client()
    now = now or utils.utc_now()
    query = client.table("fee_packages").select("*").eq("id", fee_package_id).limit(1)
    package = db.first(db.run(query, "fetch fee package"))
    if package is None:
        raise db.ServiceError("Failed to fetch fee package: package not found")

    row = {
        "member_id": member_id,
        "fee_package_id": fee_package_id,
        "bill_type": "MEMBERSHIP",
        "amount": package["amount"],
        "currency": currency,
        "due_date": (now + timedelta(days=due_days)).isoformat(),
        "status": "PENDING",
        "generated_date": now.isoformat(),
        "paid_by_admin": False,
    }
    created = db.first(db.run(client.table(TABLE).insert(row), "create bill"))
    if created is None:
        raise db.ServiceError("Failed to create bill: no row returned")
    logger.info(f"Bill {created['id']} generated for member {member_id} ({package['name']})")
    return Bill.from_row({**created, "fee_package": package})


def _notify(client, row: dict) -> None:
    # Side-effect notifications never undo a recorded payment
    try:
        db.run(client.table("notifications").insert({**row, "is_read": False}), "create notification")
    except db.ServiceError as exc:
        logger.error(f"{exc} (member {row['member_id']})")


def create_bill_pending_notification(member_id: str, bill_id: str, package_name: str,
                                     amount: float, client=None) -> None:
    client = client or db.get_client()
    _notify(client, {
        "member_id": member_id,
        "type": "BILL_PENDING",
        "title": "Payment Pending",
        "message": f"Payment pending for {package_name} - {utils.format_amount(amount)}",
        "related_bill_id": bill_id,
        "related_package_name": package_name,
    })


def mark_paid(bill_id: str, client=None, receipt_url: str | None = None, notes: str | None = None,
              now: datetime | None = None) -> tuple[Bill, Member | None]:
    """
    Record a payment. Membership bills also activate the member for the package duration;
    supplement bills only get a payment confirmation.
    """
    client = client or db.get_client()
    now = now or utils.utc_now()
    bill = get(bill_id, client=client)
    if bill is None:
        raise db.ServiceError("Failed to fetch bill: bill not found")

    changes = {"status": "PAID", "paid_date": now.isoformat(), "paid_by_admin": True}
    if receipt_url:
        changes["receipt_url"] = receipt_url
    if notes:
        changes["notes"] = notes
    updated = db.first(db.run(client.table(TABLE).update(changes).eq("id", bill_id), "update bill"))
    paid = Bill.from_row(updated) if updated else bill
    member = bill.member

    if bill.bill_type == "MEMBERSHIP" and bill.fee_package:
        start = now.date()
        end = utils.add_months(start, bill.fee_package.duration_months)
        member_changes = {
            "status": "ACTIVE",
            "membership_start_date": start.isoformat(),
            "membership_end_date": end.isoformat(),
            "fee_package_id": bill.fee_package_id,
        }
        query = client.table("members").update(member_changes).eq("id", bill.member_id)
        member_row = db.first(db.run(query, "update member"))
        if member_row:
            member = Member.from_row(member_row)
        _notify(client, {
            "member_id": bill.member_id,
            "type": "MEMBERSHIP_ACTIVATED",
            "title": "Membership Activated",
            "message": f"Welcome! Your {bill.fee_package.name} membership is now active",
            "related_package_name": bill.fee_package.name,
        })
    elif bill.bill_type == "SUPPLEMENT":
        info = bill.notes or "Supplement purchase"
        _notify(client, {
            "member_id": bill.member_id,
            "type": "GENERAL",
            "title": "Payment Received",
            "message": f"Payment of {utils.format_amount(bill.amount, bill.currency)} received for {info}. Thank you!",
            "related_package_name": info,
        })

    logger.info(f"Bill {bill_id} marked as paid")
    return paid, member


def compute_stats(client=None, now: datetime | None = None) -> BillingStats:
    client = client or db.get_client()
    now = now or utils.utc_now()
    data = db.rows(db.run(client.table(TABLE).select("amount, status, paid_date, due_date"), "fetch billing stats"))

    total_revenue = 0.0
    monthly_revenue = 0.0
    pending = paid = overdue = 0
    for row in data:
        status = row.get("status")
        if status == "PAID":
            total_revenue += float(row["amount"])
            paid += 1
            if row.get("paid_date"):
                paid_at = utils.parse_timestamp(row["paid_date"])
                if (paid_at.year, paid_at.month) == (now.year, now.month):
                    monthly_revenue += float(row["amount"])
        elif status == "PENDING":
            pending += 1
            if row.get("due_date") and utils.parse_timestamp(row["due_date"]) < now:
                overdue += 1
        elif status == "OVERDUE":
            overdue += 1

    return BillingStats(
        total_revenue=total_revenue,
        monthly_revenue=monthly_revenue,
        pending_bills=pending,
        paid_bills=paid,
        overdue_bills=overdue,
    )


def mark_overdue(client=None, now: datetime | None = None) -> int:
    client = client or db.get_client()
    now = now or utils.utc_now()
    query = (
        client.table(TABLE).update({"status": "OVERDUE"})
        .eq("status", "PENDING")
        .lt("due_date", now.isoformat())
    )
    updated = db.rows(db.run(query, "update overdue bills"))
    if updated:
        logger.info(f"Marked {len(updated)} bills as overdue")
    return len(updated)
