from datetime import timedelta

import pytest

import billing_service
import db


@pytest.fixture
def gym(client):
    client.seed("users", {"id": "u1", "email": "ana@gym.test", "full_name": "Ana", "role": "MEMBER"})
    client.seed("fee_packages", {"id": "p3", "name": "Quarterly Membership", "amount": 4000, "duration_months": 3, "is_active": True})
    client.seed("members", {
        "id": "m1", "user_id": "u1", "membership_number": "GYM20250001",
        "join_date": "2025-01-10", "status": "INACTIVE", "fee_package_id": "p3",
    })
    return client


def test_create_bill_from_package(gym, now):
    bill = billing_service.create_bill("m1", "p3", client=gym, now=now)

    assert bill.amount == 4000
    assert bill.status == "PENDING"
    assert bill.bill_type == "MEMBERSHIP"
    assert bill.currency == "INR"
    assert bill.due_date == (now + timedelta(days=30)).isoformat()
    assert bill.fee_package.name == "Quarterly Membership"


def test_create_bill_unknown_package(gym):
    with pytest.raises(db.ServiceError, match="package not found"):
        billing_service.create_bill("m1", "nope", client=gym)
    assert "bills" not in gym.tables


def test_list_by_status(gym):
    gym.seed(
        "bills",
        {"id": "b1", "member_id": "m1", "amount": 10, "status": "PAID", "due_date": "2025-01-01", "created_at": "2025-01-01"},
        {"id": "b2", "member_id": "m1", "amount": 20, "status": "PENDING", "due_date": "2025-02-01", "created_at": "2025-02-01"},
        {"id": "b3", "member_id": "m1", "amount": 30, "status": "PENDING", "due_date": "2025-03-01", "created_at": "2025-03-01"},
    )

    pending = billing_service.list_by_status("PENDING", client=gym)

    assert [b.id for b in pending] == ["b3", "b2"]
    assert pending[0].member.user.full_name == "Ana"
    assert [b.id for b in billing_service.list_all(client=gym)] == ["b3", "b2", "b1"]
    assert len(billing_service.list_by_member("m1", client=gym)) == 3


def test_mark_paid_membership_activates_member(gym, now):
    bill = billing_service.create_bill("m1", "p3", client=gym, now=now)

    paid, member = billing_service.mark_paid(bill.id, client=gym, receipt_url="https://r/1.pdf", now=now)

    assert paid.status == "PAID"
    assert paid.paid_by_admin is True
    assert paid.receipt_url == "https://r/1.pdf"
    assert member.status == "ACTIVE"
    assert member.membership_start_date == "2025-03-15"
    assert member.membership_end_date == "2025-06-15"
    activated = [n for n in gym.tables["notifications"] if n["type"] == "MEMBERSHIP_ACTIVATED"]
    assert len(activated) == 1
    assert activated[0]["related_package_name"] == "Quarterly Membership"


def test_mark_paid_supplement_bill_confirms_only(gym, now):
    gym.seed("bills", {
        "id": "b9", "member_id": "m1", "amount": 1200, "currency": "INR", "status": "PENDING",
        "bill_type": "SUPPLEMENT", "due_date": "2025-03-15", "notes": "Supplement purchase: Whey (Qty: 1)",
    })

    paid, member = billing_service.mark_paid("b9", client=gym, now=now)

    assert paid.status == "PAID"
    assert gym.tables["members"][0]["status"] == "INACTIVE"
    [note] = gym.tables["notifications"]
    assert note["type"] == "GENERAL"
    assert note["title"] == "Payment Received"
    assert "Whey" in note["message"]


def test_mark_paid_keeps_payment_when_notification_fails(gym, now):
    bill = billing_service.create_bill("m1", "p3", client=gym, now=now)
    gym.fail_on("insert", "notifications")

    paid, member = billing_service.mark_paid(bill.id, client=gym, now=now)

    assert paid.status == "PAID"
    assert member.status == "ACTIVE"


def test_mark_paid_unknown_bill(gym):
    with pytest.raises(db.ServiceError, match="bill not found"):
        billing_service.mark_paid("missing", client=gym)


def test_compute_stats(gym, now):
    gym.seed(
        "bills",
        {"amount": 1500, "status": "PAID", "paid_date": "2025-03-02T09:00:00+00:00", "due_date": "2025-03-01"},
        {"amount": 4000, "status": "PAID", "paid_date": "2025-01-20T09:00:00+00:00", "due_date": "2025-01-20"},
        {"amount": 700, "status": "PENDING", "due_date": "2025-03-01"},
        {"amount": 800, "status": "PENDING", "due_date": "2025-04-01"},
        {"amount": 900, "status": "OVERDUE", "due_date": "2025-02-01"},
    )

    stats = billing_service.compute_stats(client=gym, now=now)

    assert stats.total_revenue == 5500
    assert stats.monthly_revenue == 1500
    assert stats.paid_bills == 2
    assert stats.pending_bills == 2
    assert stats.overdue_bills == 2


def test_mark_overdue_batch(gym, now):
    gym.seed(
        "bills",
        {"id": "b1", "status": "PENDING", "due_date": (now - timedelta(days=1)).isoformat()},
        {"id": "b2", "status": "PENDING", "due_date": (now + timedelta(days=1)).isoformat()},
        {"id": "b3", "status": "PAID", "due_date": (now - timedelta(days=5)).isoformat()},
    )

    assert billing_service.mark_overdue(client=gym, now=now) == 1
    assert {b["id"]: b["status"] for b in gym.tables["bills"]} == {"b1": "OVERDUE", "b2": "PENDING", "b3": "PAID"}


def test_bill_pending_notification(gym):
    billing_service.create_bill_pending_notification("m1", "b1", "Monthly Membership", 1500, client=gym)

    [note] = gym.tables["notifications"]
    assert note["type"] == "BILL_PENDING"
    assert note["related_bill_id"] == "b1"
    assert note["message"] == "Payment pending for Monthly Membership - ₹1,500.00"
