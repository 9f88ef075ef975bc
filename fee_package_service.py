"""
fee_package_service.py
Fee packages (membership tiers) CRUD.
"""

from __future__ import annotations

import logging

import db
from models import DEFAULT_FEE_PACKAGES, FeePackage

logger = logging.getLogger(__name__)

TABLE = "fee_packages"


def list_active(client=None) -> list[FeePackage]:
    client = client or db.get_client()
    query = client.table(TABLE).select("*").eq("is_active", True).order("duration_months")
    return [FeePackage.from_row(r) for r in db.rows(db.run(query, "fetch fee packages"))]


def list_all(client=None) -> list[FeePackage]:
    client = client or db.get_client()
    query = client.table(TABLE).select("*").order("duration_months")
    return [FeePackage.from_row(r) for r in db.rows(db.run(query, "fetch fee packages"))]


def get(package_id: str, client=None) -> FeePackage | None:
    client = client or db.get_client()
    query = client.table(TABLE).select("*").eq("id", package_id).limit(1)
    row = db.first(db.run(query, "fetch fee package"))
    return FeePackage.from_row(row) if row else None


def create(name: str, amount: float, duration_months: int, description: str | None = None,
           features: list[str] | None = None, is_active: bool = True, client=None) -> FeePackage:
    client = client or db.get_client()
    row = {
        "name": name,
        "description": description,
        "amount": amount,
        "duration_months": duration_months,
        "features": features or [],
        "is_active": is_active,
    }
    created = db.first(db.run(client.table(TABLE).insert(row), "create fee package"))
    if created is None:
        raise db.ServiceError("Failed to create fee package: no row returned")
    logger.info(f"Fee package '{name}' created")
    return FeePackage.from_row(created)


def update(package_id: str, changes: dict, client=None) -> FeePackage:
    client = client or db.get_client()
    updated = db.first(db.run(client.table(TABLE).update(changes).eq("id", package_id), "update fee package"))
    if updated is None:
        raise db.ServiceError("Failed to update fee package: package not found")
    return FeePackage.from_row(updated)


def delete(package_id: str, client=None) -> None:
    client = client or db.get_client()
    db.run(client.table(TABLE).delete().eq("id", package_id), "delete fee package")


def create_defaults(client=None) -> list[FeePackage]:
    client = client or db.get_client()
    created = []
    for package in DEFAULT_FEE_PACKAGES:
        try:
            created.append(create(client=client, **package))
        except db.ServiceError as exc:
            logger.error(f"Skipping package '{package['name']}': {exc}")
    return created
