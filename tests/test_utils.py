from datetime import date, datetime, timezone

import pytest

import utils
from models import Bill, Member, User


def test_add_months_clamps_day():
    assert utils.add_months(date(2025, 1, 31), 1) == date(2025, 2, 28)
    assert utils.add_months(date(2024, 1, 31), 1) == date(2024, 2, 29)
    assert utils.add_months(date(2025, 11, 15), 3) == date(2026, 2, 15)


def test_parse_timestamp_forms():
    utc = timezone.utc
    assert utils.parse_timestamp("2025-03-01T10:00:00Z") == datetime(2025, 3, 1, 10, tzinfo=utc)
    assert utils.parse_timestamp("2025-03-01") == datetime(2025, 3, 1, tzinfo=utc)
    assert utils.parse_iso("2025-03-01T10:00:00+00:00") == date(2025, 3, 1)


def test_membership_number_and_amount():
    assert utils.membership_number(2025, 7) == "GYM20250007"
    assert utils.format_amount(14000) == "₹14,000.00"
    assert utils.format_amount(9.5, "USD") == "USD 9.50"


@pytest.mark.parametrize(
    "email, name, phone, dob, expected",
    [
        ("ana@gym.test", "Ana", "", "", 0),
        ("ana", "Ana", "", "", 1),
        ("ana@gym.test", " ", "+91 98765", "", 1),
        ("ana@gym.test", "Ana", "abc", "1990-13-01", 2),
        ("ana@gym.test", "Ana", "", "2999-01-01", 1),
    ],
)
def test_validate_member_inputs(email, name, phone, dob, expected):
    assert len(utils.validate_member_inputs(email, name, phone, dob)) == expected


def test_validate_package_and_supplement_inputs():
    assert utils.validate_package_inputs("Monthly", "1500", "1") == []
    assert utils.validate_package_inputs("", "x", "0") == [
        "Package name is required.",
        "Amount must be numeric.",
        "Duration must be at least 1 month.",
    ]
    assert utils.validate_supplement_inputs("Whey", "Protein", "10", "3") == []
    assert len(utils.validate_supplement_inputs("Whey", "", "-1", "two")) == 3


def _bill(bill_id, status, amount, paid_date=None):
    return Bill(id=bill_id, member_id="m1", amount=amount, status=status, due_date="2025-01-01", paid_date=paid_date)


def test_revenue_summary_by_month():
    bills = [
        _bill("b1", "PAID", 100, "2025-02-03T10:00:00+00:00"),
        _bill("b2", "PAID", 50, "2025-02-20"),
        _bill("b3", "PAID", 70, "2025-03-01"),
        _bill("b4", "PENDING", 999),
    ]

    df = utils.revenue_summary_by_month(bills)

    assert df["month"].tolist() == ["2025-03", "2025-02"]
    assert df["revenue"].tolist() == [70.0, 150.0]
    assert utils.revenue_summary_by_month([]).columns.tolist() == ["month", "revenue"]


def test_bill_status_counts():
    df = utils.bill_status_counts([_bill("b1", "PAID", 1), _bill("b2", "PAID", 1), _bill("b3", "OVERDUE", 1)])

    assert dict(zip(df["status"], df["bills"])) == {"PENDING": 0, "PAID": 2, "OVERDUE": 1}


def test_csv_exports():
    member = Member(
        id="m1", user_id="u1", membership_number="GYM20250001", join_date="2025-01-01", status="ACTIVE",
        user=User(id="u1", email="ana@gym.test", full_name="Ana"),
    )

    members_csv = utils.members_to_csv_bytes([member]).decode("utf-8")
    bills_csv = utils.bills_to_csv_bytes([_bill("b1", "PAID", 10)]).decode("utf-8")

    assert members_csv.splitlines()[0].startswith("membership_number,name,email")
    assert "GYM20250001,Ana,ana@gym.test" in members_csv
    assert bills_csv.splitlines()[1].startswith("b1,m1,MEMBERSHIP,10")
