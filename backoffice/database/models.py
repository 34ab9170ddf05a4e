"""
Ledger records owned by the back-office itself (not by T-Soft):
warehouses, per-warehouse stock and licenses.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import IntEnum
from typing import Optional


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class Warehouse:
    code: str = ""
    name: str = ""
    location: str = ""
    id: int = 0
    is_active: bool = True
    created_at: datetime = field(default_factory=utcnow)


@dataclass
class WarehouseStock:
    warehouse_id: int
    barcode: str
    quantity: int = 0
    id: int = 0
    is_active: bool = True
    created_at: datetime = field(default_factory=utcnow)
    last_updated: datetime = field(default_factory=utcnow)


class LicenseType(IntEnum):
    TRIAL = 0
    MONTHLY = 1
    QUARTERLY = 2
    YEARLY = 3
    LIFETIME = 4


LICENSE_DURATION_DAYS = {
    LicenseType.TRIAL: 7,
    LicenseType.MONTHLY: 30,
    LicenseType.QUARTERLY: 90,
    LicenseType.YEARLY: 365,
    LicenseType.LIFETIME: 36500,
}


@dataclass
class License:
    license_key: str
    company_name: str
    contact_email: str
    expires_at: datetime
    type: LicenseType = LicenseType.MONTHLY
    max_users: int = 5
    notes: Optional[str] = None
    machine_id: Optional[str] = None
    last_checked: Optional[datetime] = None
    features: Optional[str] = None
    id: int = 0
    is_active: bool = True
    created_at: datetime = field(default_factory=utcnow)
