"""
License management.

Licenses are keyed by a generated PREFIX-XXXX-XXXX-XXXX-XXXX string. A fresh
process starts with one 7-day trial license so the back-office is usable
before anything is activated.
"""

from __future__ import annotations

import base64
import getpass
import hashlib
import logging
import platform
import socket
import uuid
from collections import Counter
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Callable, Dict, List, Optional, Tuple

from backoffice.database.models import LICENSE_DURATION_DAYS, License, LicenseType, utcnow
from backoffice.database.stores import InMemoryRecordStore, RecordStore

logger = logging.getLogger(__name__)

EXPIRING_SOON_DAYS = 7
TRIAL_PREFIX = "TRIAL"
DEFAULT_PREFIX = "TSOFT"
DATE_FORMAT = "%d/%m/%Y"


@dataclass
class LicenseValidationResult:
    is_valid: bool
    message: str
    license: Optional[License] = None
    days_remaining: int = 0
    is_expired: bool = False
    is_expiring_soon: bool = False


@dataclass
class LicenseStatistics:
    total_licenses: int
    active_licenses: int
    expired_licenses: int
    expiring_soon_licenses: int
    licenses_by_type: Dict[str, int]


def generate_license_key(prefix: str = DEFAULT_PREFIX) -> str:
    raw = uuid.uuid4().hex.upper()
    return "-".join([prefix] + [raw[i : i + 4] for i in range(0, 16, 4)])


def generate_machine_id() -> str:
    """Stable 16-char id for this host/user/OS combination."""
    try:
        combined = f"{socket.gethostname()}-{getpass.getuser()}-{platform.platform()}"
    except (KeyError, OSError):
        # no resolvable user in some containers
        return uuid.uuid4().hex[:16].upper()
    digest = hashlib.sha256(combined.encode("utf-8")).digest()
    return base64.b64encode(digest).decode("ascii")[:16]


def _whole_days(delta: timedelta) -> int:
    return int(delta.total_seconds() / 86400)


class LicenseService:
    def __init__(
        self,
        store: Optional[RecordStore[License]] = None,
        clock: Callable[[], datetime] = utcnow,
        seed_trial: bool = True,
    ) -> None:
        self.store = store if store is not None else InMemoryRecordStore()
        self.clock = clock
        if seed_trial and not self.store.list():
            self._create_trial_license()

    def _create_trial_license(self) -> License:
        trial = self.store.upsert(
            License(
                license_key=generate_license_key(TRIAL_PREFIX),
                company_name="Trial User",
                contact_email="trial@example.com",
                type=LicenseType.TRIAL,
                expires_at=self.clock() + timedelta(days=LICENSE_DURATION_DAYS[LicenseType.TRIAL]),
                max_users=3,
                created_at=self.clock(),
            )
        )
        logger.info(
            "Default trial license created: %s (expires %s)", trial.license_key, trial.expires_at.strftime(DATE_FORMAT)
        )
        return trial

    def find(self, license_key: str) -> Optional[License]:
        matches = self.store.list(lambda lic: lic.license_key == license_key)
        return matches[0] if matches else None

    # ------------------------------------------------------------------ #
    # Validation
    # ------------------------------------------------------------------ #
    def validate(self, license_key: str) -> LicenseValidationResult:
        license = self.find(license_key)
        if license is None:
            return LicenseValidationResult(False, "Invalid license key", is_expired=True)
        if not license.is_active:
            return LicenseValidationResult(False, "License has been revoked", license=license, is_expired=True)

        now = self.clock()
        license.last_checked = now
        if license.expires_at <= now:
            logger.warning(
                "License expired: %s (expired on %s)", license_key, license.expires_at.strftime(DATE_FORMAT)
            )
            return LicenseValidationResult(
                False,
                f"License expired ({license.expires_at.strftime(DATE_FORMAT)})",
                license=license,
                is_expired=True,
            )

        days_remaining = _whole_days(license.expires_at - now)
        logger.debug("License valid: %s (%d days remaining)", license_key, days_remaining)
        return LicenseValidationResult(
            True,
            f"License valid ({days_remaining} days remaining)",
            license=license,
            days_remaining=days_remaining,
            is_expiring_soon=0 < days_remaining <= EXPIRING_SOON_DAYS,
        )

    def get_active_license(self) -> Optional[License]:
        now = self.clock()
        active = self.store.list(lambda lic: lic.is_active and lic.expires_at > now)
        if not active:
            return None
        return max(active, key=lambda lic: lic.expires_at)

    # ------------------------------------------------------------------ #
    # Administration
    # ------------------------------------------------------------------ #
    def create(
        self,
        company_name: str,
        contact_email: str,
        license_type: LicenseType = LicenseType.MONTHLY,
        max_users: int = 5,
        notes: Optional[str] = None,
    ) -> License:
        now = self.clock()
        license = self.store.upsert(
            License(
                license_key=generate_license_key(DEFAULT_PREFIX),
                company_name=company_name,
                contact_email=contact_email,
                type=license_type,
                expires_at=now + timedelta(days=LICENSE_DURATION_DAYS[license_type]),
                max_users=max_users,
                notes=notes,
                created_at=now,
            )
        )
        logger.info(
            "License created: %s for %s (type %s, expires %s)",
            license.license_key,
            license.company_name,
            license.type.name,
            license.expires_at.strftime(DATE_FORMAT),
        )
        return license

    def activate(
        self,
        license_key: str,
        machine_id: Optional[str] = None,
        company_name: Optional[str] = None,
        contact_email: Optional[str] = None,
    ) -> Tuple[bool, str, Optional[License]]:
        license = self.find(license_key)
        if license is None:
            return False, "Invalid license key", None
        now = self.clock()
        if license.expires_at <= now:
            return False, "License expired", None
        if license.machine_id and license.machine_id != machine_id:
            return False, "License is registered to another machine", None

        if not license.machine_id:
            license.machine_id = machine_id
            license.company_name = company_name or license.company_name
            license.contact_email = contact_email or license.contact_email

        license.last_checked = now
        license.is_active = True
        self.store.upsert(license)
        logger.info("License activated: %s for %s", license.license_key, license.company_name)
        return True, "License activated", license

    def extend(self, license_key: str, days: int) -> Tuple[bool, str]:
        license = self.find(license_key)
        if license is None:
            return False, "License not found"
        old_expiry = license.expires_at
        license.expires_at = license.expires_at + timedelta(days=days)
        self.store.upsert(license)
        logger.info(
            "License extended: %s (%s -> %s)",
            license_key,
            old_expiry.strftime(DATE_FORMAT),
            license.expires_at.strftime(DATE_FORMAT),
        )
        return True, f"License extended by {days} days"

    def revoke(self, license_key: str) -> bool:
        license = self.find(license_key)
        if license is None:
            return False
        self.store.soft_delete(license.id)
        logger.warning("License revoked: %s", license_key)
        return True

    def list_licenses(self) -> List[License]:
        return sorted(self.store.list(), key=lambda lic: (lic.created_at, lic.id), reverse=True)

    def statistics(self) -> LicenseStatistics:
        now = self.clock()
        licenses = self.store.list()
        soon = now + timedelta(days=EXPIRING_SOON_DAYS)
        return LicenseStatistics(
            total_licenses=len(licenses),
            active_licenses=sum(1 for lic in licenses if lic.is_active and lic.expires_at > now),
            expired_licenses=sum(1 for lic in licenses if lic.expires_at <= now),
            expiring_soon_licenses=sum(1 for lic in licenses if lic.is_active and now < lic.expires_at <= soon),
            licenses_by_type=dict(Counter(lic.type.name for lic in licenses)),
        )

    def expiring_soon(self, days_threshold: int = EXPIRING_SOON_DAYS) -> List[License]:
        now = self.clock()
        threshold = now + timedelta(days=days_threshold)
        licenses = self.store.list(lambda lic: lic.is_active and now < lic.expires_at <= threshold)
        return sorted(licenses, key=lambda lic: lic.expires_at)
