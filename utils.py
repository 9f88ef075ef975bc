"""
utils.py
Validation, dates, exports.
"""

from __future__ import annotations

from datetime import date, datetime, timedelta, timezone
import pandas as pd

from models import BILL_STATUSES


def today_iso() -> str:
    return date.today().isoformat()


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def parse_iso(d: str) -> date:
    return date.fromisoformat(d[:10])


def parse_timestamp(value: str) -> datetime:
    """
    Parse a backend timestamp ("2025-01-31T10:00:00+00:00", "...Z" or a bare date).
    Naive values are taken as UTC.
    """
    ts = datetime.fromisoformat(value.replace("Z", "+00:00"))
    if ts.tzinfo is None:
        ts = ts.replace(tzinfo=timezone.utc)
    return ts


def add_months(start: date, months: int) -> date:
    """
    Add months while keeping day in valid range (e.g., Jan 31 + 1 month => Feb 28/29).
    """
    y = start.year + (start.month - 1 + months) // 12
    m = (start.month - 1 + months) % 12 + 1
    # last day of target month
    if m == 12:
        next_month = date(y + 1, 1, 1)
    else:
        next_month = date(y, m + 1, 1)
    last_day = next_month - timedelta(days=1)
    day = min(start.day, last_day.day)
    return date(y, m, day)


def membership_number(year: int, count: int) -> str:
    # GYM + year + 4-digit running count, e.g. GYM20250007
    return f"GYM{year}{count:04d}"


def format_amount(amount: float, currency: str = "INR") -> str:
    symbol = "₹" if currency == "INR" else f"{currency} "
    return f"{symbol}{amount:,.2f}"


def validate_member_inputs(email: str, full_name: str, phone: str = "", date_of_birth: str = "") -> list[str]:
    errors: list[str] = []
    if not full_name.strip():
        errors.append("Full name is required.")
    if "@" not in email or "." not in email.split("@")[-1]:
        errors.append("A valid email is required.")
    if phone.strip() and not phone.strip().lstrip("+").replace(" ", "").isdigit():
        errors.append("Phone must contain digits only.")
    if date_of_birth:
        try:
            if parse_iso(date_of_birth) >= date.today():
                errors.append("Date of birth must be in the past.")
        except ValueError:
            errors.append("Date of birth must be a valid ISO date (YYYY-MM-DD).")
    return errors


def validate_package_inputs(name: str, amount, duration_months) -> list[str]:
    errors: list[str] = []
    if not name.strip():
        errors.append("Package name is required.")
    try:
        if float(amount) <= 0:
            errors.append("Amount must be > 0.")
    except (TypeError, ValueError):
        errors.append("Amount must be numeric.")
    try:
        if int(duration_months) < 1:
            errors.append("Duration must be at least 1 month.")
    except (TypeError, ValueError):
        errors.append("Duration must be a whole number of months.")
    return errors


def validate_supplement_inputs(name: str, category: str, price, stock_quantity) -> list[str]:
    errors: list[str] = []
    if not name.strip():
        errors.append("Supplement name is required.")
    if not category.strip():
        errors.append("Category is required.")
    try:
        if float(price) < 0:
            errors.append("Price cannot be negative.")
    except (TypeError, ValueError):
        errors.append("Price must be numeric.")
    try:
        if int(stock_quantity) < 0:
            errors.append("Stock cannot be negative.")
    except (TypeError, ValueError):
        errors.append("Stock must be a whole number.")
    return errors


def members_to_csv_bytes(members) -> bytes:
    df = pd.DataFrame([
        {
            "membership_number": m.membership_number,
            "name": m.display_name,
            "email": m.user.email if m.user else None,
            "phone": m.user.phone if m.user else None,
            "status": m.status,
            "package": m.fee_package.name if m.fee_package else None,
            "join_date": m.join_date,
            "membership_end_date": m.membership_end_date,
        }
        for m in members
    ])
    return df.to_csv(index=False).encode("utf-8")


def bills_to_csv_bytes(bills) -> bytes:
    df = pd.DataFrame([
        {
            "id": b.id,
            "member": b.member.display_name if b.member else b.member_id,
            "type": b.bill_type,
            "amount": b.amount,
            "currency": b.currency,
            "status": b.status,
            "due_date": b.due_date,
            "paid_date": b.paid_date,
            "notes": b.notes,
        }
        for b in bills
    ])
    return df.to_csv(index=False).encode("utf-8")


def revenue_summary_by_month(bills) -> pd.DataFrame:
    paid = [
        {"month": b.paid_date[:7], "revenue": float(b.amount)}
        for b in bills
        if b.status == "PAID" and b.paid_date
    ]
    df = pd.DataFrame(paid)
    if df.empty:
        return pd.DataFrame(columns=["month", "revenue"])
    return (
        df.groupby("month", as_index=False)["revenue"].sum()
        .sort_values("month", ascending=False)
        .reset_index(drop=True)
    )


def bill_status_counts(bills) -> pd.DataFrame:
    counts = {s: 0 for s in BILL_STATUSES}
    for b in bills:
        counts[b.status] = counts.get(b.status, 0) + 1
    return pd.DataFrame({"status": list(counts), "bills": list(counts.values())})
