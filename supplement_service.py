"""
supplement_service.py
Supplement store: catalogue reads, admin CRUD and purchase (bill + notification).
"""

from __future__ import annotations

import logging

import db
import member_service
import utils
from models import PurchaseResult, Supplement

logger = logging.getLogger(__name__)

TABLE = "supplements"


def _supplements(response) -> list[Supplement]:
    return [Supplement.from_row(r) for r in db.rows(response)]


def list_available(client=None) -> list[Supplement]:
    client = client or db.get_client()
    query = (
        client.table(TABLE).select("*")
        .eq("is_available", True)
        .gt("stock_quantity", 0)
        .order("category")
        .order("name")
    )
    return _supplements(db.run(query, "fetch supplements"))


def get(supplement_id: str, client=None) -> Supplement | None:
    client = client or db.get_client()
    query = client.table(TABLE).select("*").eq("id", supplement_id).limit(1)
    row = db.first(db.run(query, "fetch supplement"))
    return Supplement.from_row(row) if row else None


def list_by_category(category: str, client=None) -> list[Supplement]:
    client = client or db.get_client()
    query = (
        client.table(TABLE).select("*")
        .eq("category", category)
        .eq("is_available", True)
        .gt("stock_quantity", 0)
        .order("name")
    )
    return _supplements(db.run(query, "fetch supplements by category"))


def list_categories(client=None) -> list[str]:
    client = client or db.get_client()
    query = client.table(TABLE).select("category").eq("is_available", True)
    categories = [r["category"] for r in db.rows(db.run(query, "fetch categories"))]
    return list(dict.fromkeys(categories))


def list_all(client=None) -> list[Supplement]:
    client = client or db.get_client()
    query = client.table(TABLE).select("*").order("created_at", desc=True)
    return _supplements(db.run(query, "fetch all supplements"))


def create(data: dict, client=None) -> Supplement:
    client = client or db.get_client()
    created = db.first(db.run(client.table(TABLE).insert(data), "create supplement"))
    if created is None:
        raise db.ServiceError("Failed to create supplement: no row returned")
    logger.info(f"Supplement '{created['name']}' created")
    return Supplement.from_row(created)


def update(supplement_id: str, changes: dict, client=None) -> Supplement:
    client = client or db.get_client()
    updated = db.first(db.run(client.table(TABLE).update(changes).eq("id", supplement_id), "update supplement"))
    if updated is None:
        raise db.ServiceError("Failed to update supplement: supplement not found")
    return Supplement.from_row(updated)


def delete(supplement_id: str, client=None) -> None:
    client = client or db.get_client()
    db.run(client.table(TABLE).delete().eq("id", supplement_id), "delete supplement")


def _undo(client, created: list[tuple[str, str]]) -> None:
    # Reverse order: bill before the member it belongs to
    for table, row_id in reversed(created):
        try:
            db.run(client.table(table).delete().eq("id", row_id), f"roll back {table} row")
            logger.info(f"Rolled back {table} row {row_id}")
        except Exception as exc:
            logger.error(f"Failed to roll back {table} row {row_id}: {exc}")


def purchase(user_id: str, supplement_id: str, quantity: int = 1, client=None) -> PurchaseResult:
    """
    Buy a supplement on credit: ensure the user has a member record (created INACTIVE if
    missing), raise a PENDING bill due today and notify the member.
    Every write is undone if a later step fails. Stock is not decremented here.
    """
    client = client or db.get_client()
    if quantity < 1:
        return PurchaseResult(success=False, message="Quantity must be at least 1")

    created: list[tuple[str, str]] = []
    try:
        supplement = get(supplement_id, client=client)
        if supplement is None:
            return PurchaseResult(success=False, message="Supplement not found")
        if not supplement.is_available or supplement.stock_quantity < quantity:
            return PurchaseResult(success=False, message="Supplement not available or insufficient stock")

        member = member_service.get_by_user(user_id, client=client)
        if member is not None:
            member_id = member.id
        else:
            query = client.table("users").select("id, email, full_name").eq("id", user_id).limit(1)
            if db.first(db.run(query, "fetch user")) is None:
                return PurchaseResult(success=False, message="User not found")
            row = {
                "user_id": user_id,
                "membership_number": member_service.generate_membership_number(client=client),
                "join_date": utils.today_iso(),
                "status": "INACTIVE",
            }
            new_member = db.first(db.run(client.table("members").insert(row), "create member record"))
            if new_member is None:
                raise db.ServiceError("Failed to create member record: no row returned")
            member_id = new_member["id"]
            created.append(("members", member_id))

        total = supplement.price * quantity
        bill_row = {
            "member_id": member_id,
            "fee_package_id": None,
            "bill_type": "SUPPLEMENT",
            "amount": total,
            "currency": "INR",
            "due_date": utils.today_iso(),
            "status": "PENDING",
            "generated_date": utils.today_iso(),
            "notes": f"Supplement purchase: {supplement.name} (Qty: {quantity})",
        }
        bill = db.first(db.run(client.table("bills").insert(bill_row), "create bill"))
        if bill is None:
            raise db.ServiceError("Failed to create bill: no row returned")
        created.append(("bills", bill["id"]))

        notification = {
            "member_id": member_id,
            "type": "BILL_PENDING",
            "title": "Supplement Purchase Bill Generated",
            "message": (
                f"Your bill for {supplement.name} ({utils.format_amount(total)}) has been generated. "
                "Please contact admin for payment."
            ),
            "is_read": False,
            "related_bill_id": bill["id"],
            "related_package_name": supplement.name,
        }
        db.run(client.table("notifications").insert(notification), "create purchase notification")

    except Exception as exc:
        logger.error(f"Supplement purchase failed for user {user_id}: {exc}")
        _undo(client, created)
        return PurchaseResult(success=False, message=str(exc))

    logger.info(f"User {user_id} bought {quantity} x {supplement.name}, bill {bill['id']}")
    return PurchaseResult(
        success=True,
        bill_id=bill["id"],
        message=f"Bill generated for {supplement.name}. Total: {utils.format_amount(total)}",
    )
