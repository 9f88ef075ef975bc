"""
models.py
Domain records (members, packages, bills, notifications, supplements) and status constants.
Rows come back from Supabase as plain dicts; `from_row` keeps only the known columns.
"""

from __future__ import annotations

from dataclasses import dataclass, field, fields

USER_ROLES = ("ADMIN", "MEMBER", "USER")
MEMBER_STATUSES = ("INACTIVE", "ACTIVE", "EXPIRED", "SUSPENDED")
BILL_STATUSES = ("PENDING", "PAID", "OVERDUE")
BILL_TYPES = ("MEMBERSHIP", "SUPPLEMENT")
NOTIFICATION_TYPES = ("GENERAL", "BILL_PENDING", "MEMBERSHIP_EXPIRING", "MEMBERSHIP_ACTIVATED")

# Packages offered on first setup (name, description, amount, months, features)
DEFAULT_FEE_PACKAGES = [
    {
        "name": "Monthly Membership",
        "description": "1 month gym access with basic facilities",
        "amount": 1500,
        "duration_months": 1,
        "features": ["Gym access", "Basic equipment", "Locker facility"],
        "is_active": True,
    },
    {
        "name": "Quarterly Membership",
        "description": "3 months gym access with additional benefits",
        "amount": 4000,
        "duration_months": 3,
        "features": ["Gym access", "Basic equipment", "Locker facility", "Group classes"],
        "is_active": True,
    },
    {
        "name": "Half-Yearly Membership",
        "description": "6 months gym access with premium benefits",
        "amount": 7500,
        "duration_months": 6,
        "features": [
            "Gym access", "All equipment", "Locker facility", "Group classes",
            "Personal trainer consultation",
        ],
        "is_active": True,
    },
    {
        "name": "Annual Membership",
        "description": "12 months gym access with all premium benefits",
        "amount": 14000,
        "duration_months": 12,
        "features": [
            "Gym access", "All equipment", "Locker facility", "Group classes",
            "Personal trainer sessions", "Diet consultation", "Priority booking",
        ],
        "is_active": True,
    },
]


def _known(cls, row: dict) -> dict:
    names = {f.name for f in fields(cls)}
    return {k: v for k, v in row.items() if k in names}


@dataclass(frozen=True)
class User:
    id: str
    email: str
    role: str = "USER"
    full_name: str | None = None
    phone: str | None = None
    profile_photo_url: str | None = None
    created_at: str | None = None

    @classmethod
    def from_row(cls, row: dict) -> User:
        return cls(**_known(cls, row))


@dataclass(frozen=True)
class FeePackage:
    id: str
    name: str
    amount: float
    duration_months: int
    description: str | None = None
    features: list[str] = field(default_factory=list)
    is_active: bool = True
    created_at: str | None = None

    @classmethod
    def from_row(cls, row: dict) -> FeePackage:
        data = _known(cls, row)
        data["features"] = list(data.get("features") or [])
        return cls(**data)


@dataclass(frozen=True)
class Member:
    id: str
    user_id: str | None
    membership_number: str
    join_date: str
    status: str  # one of MEMBER_STATUSES
    fee_package_id: str | None = None
    membership_start_date: str | None = None
    membership_end_date: str | None = None
    address: str | None = None
    emergency_contact_name: str | None = None
    emergency_contact_phone: str | None = None
    date_of_birth: str | None = None
    created_at: str | None = None
    user: User | None = None
    fee_package: FeePackage | None = None
    bills: list[Bill] = field(default_factory=list)

    @classmethod
    def from_row(cls, row: dict) -> Member:
        data = _known(cls, row)
        if row.get("user"):
            data["user"] = User.from_row(row["user"])
        if row.get("fee_package"):
            data["fee_package"] = FeePackage.from_row(row["fee_package"])
        data["bills"] = [Bill.from_row(b) for b in row.get("bills") or []]
        return cls(**data)

    @property
    def display_name(self) -> str:
        if self.user and self.user.full_name:
            return self.user.full_name
        return self.membership_number


@dataclass(frozen=True)
class Bill:
    id: str
    member_id: str
    amount: float
    status: str  # one of BILL_STATUSES
    due_date: str
    currency: str = "INR"
    bill_type: str = "MEMBERSHIP"
    fee_package_id: str | None = None
    paid_date: str | None = None
    generated_date: str | None = None
    paid_by_admin: bool = False
    receipt_url: str | None = None
    notes: str | None = None
    created_at: str | None = None
    member: Member | None = None
    fee_package: FeePackage | None = None

    @classmethod
    def from_row(cls, row: dict) -> Bill:
        data = _known(cls, row)
        if row.get("member"):
            data["member"] = Member.from_row(row["member"])
        if row.get("fee_package"):
            data["fee_package"] = FeePackage.from_row(row["fee_package"])
        return cls(**data)


@dataclass(frozen=True)
class Notification:
    id: str
    member_id: str
    type: str  # one of NOTIFICATION_TYPES
    title: str
    message: str
    is_read: bool = False
    related_bill_id: str | None = None
    related_package_name: str | None = None
    created_at: str | None = None
    member: Member | None = None

    @classmethod
    def from_row(cls, row: dict) -> Notification:
        data = _known(cls, row)
        if row.get("member"):
            data["member"] = Member.from_row(row["member"])
        return cls(**data)


@dataclass(frozen=True)
class Supplement:
    id: str
    name: str
    price: float
    category: str
    stock_quantity: int
    is_available: bool = True
    description: str | None = None
    image_url: str | None = None
    created_at: str | None = None

    @classmethod
    def from_row(cls, row: dict) -> Supplement:
        return cls(**_known(cls, row))


@dataclass(frozen=True)
class PurchaseResult:
    success: bool
    message: str
    bill_id: str | None = None


@dataclass(frozen=True)
class NotificationStats:
    total: int
    unread: int
    by_type: dict[str, int]
    recent_count: int


@dataclass(frozen=True)
class BillingStats:
    total_revenue: float
    monthly_revenue: float
    pending_bills: int
    paid_bills: int
    overdue_bills: int


@dataclass(frozen=True)
class MemberStats:
    total: int
    active: int
    inactive: int
    expired: int
    suspended: int


@dataclass(frozen=True)
class SyncResult:
    created: int = 0
    errors: list[str] = field(default_factory=list)
    created_members: list[str] = field(default_factory=list)
