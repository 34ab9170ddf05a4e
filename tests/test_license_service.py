"""Tests for license validation and administration."""

from datetime import datetime, timedelta, timezone

import pytest

from backoffice.database.models import LicenseType
from backoffice.services.license_service import LicenseService, generate_license_key, generate_machine_id


class FixedClock:
    def __init__(self, now):
        self.now = now

    def __call__(self):
        return self.now

    def advance(self, **kwargs):
        self.now = self.now + timedelta(**kwargs)


@pytest.fixture
def clock():
    return FixedClock(datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc))


@pytest.fixture
def service(clock):
    """License service without the seeded trial."""
    return LicenseService(clock=clock, seed_trial=False)


def test_key_format():
    key = generate_license_key("TSOFT")
    parts = key.split("-")
    assert parts[0] == "TSOFT"
    assert [len(p) for p in parts[1:]] == [4, 4, 4, 4]
    assert key == key.upper()


def test_machine_id_length():
    assert len(generate_machine_id()) == 16


def test_trial_license_is_seeded(clock):
    service = LicenseService(clock=clock)
    active = service.get_active_license()
    assert active.license_key.startswith("TRIAL-")
    assert active.type == LicenseType.TRIAL
    assert active.max_users == 3
    assert active.expires_at == clock() + timedelta(days=7)


def test_validate_valid_license(service, clock):
    license = service.create("Acme", "ops@acme.test", LicenseType.MONTHLY)
    result = service.validate(license.license_key)
    assert result.is_valid
    assert result.days_remaining == 30
    assert result.message == "License valid (30 days remaining)"
    assert not result.is_expiring_soon
    assert license.last_checked == clock()


def test_validate_expiring_soon(service, clock):
    license = service.create("Acme", "ops@acme.test", LicenseType.MONTHLY)
    clock.advance(days=25)
    result = service.validate(license.license_key)
    assert result.days_remaining == 5
    assert result.is_expiring_soon


def test_validate_expired(service, clock):
    license = service.create("Acme", "ops@acme.test", LicenseType.MONTHLY)
    clock.advance(days=31)
    result = service.validate(license.license_key)
    assert not result.is_valid
    assert result.is_expired
    assert result.message == "License expired (31/03/2026)"


def test_validate_unknown_and_revoked(service):
    assert service.validate("NOPE").message == "Invalid license key"
    license = service.create("Acme", "ops@acme.test")
    assert service.revoke(license.license_key)
    assert service.validate(license.license_key).message == "License has been revoked"
    assert not service.revoke("NOPE")


def test_activate_binds_machine(service):
    license = service.create("Acme", "ops@acme.test")

    ok, message, activated = service.activate(license.license_key, "MACHINE-A", company_name="Acme Ltd")
    assert ok and message == "License activated"
    assert activated.machine_id == "MACHINE-A"
    assert activated.company_name == "Acme Ltd"

    assert service.activate(license.license_key, "MACHINE-A")[0]
    ok, message, _ = service.activate(license.license_key, "MACHINE-B")
    assert not ok
    assert message == "License is registered to another machine"


def test_activate_rejects_expired_and_unknown(service, clock):
    license = service.create("Acme", "ops@acme.test", LicenseType.TRIAL)
    clock.advance(days=8)
    assert service.activate(license.license_key, "M")[:2] == (False, "License expired")
    assert service.activate("NOPE", "M")[:2] == (False, "Invalid license key")


def test_extend(service):
    license = service.create("Acme", "ops@acme.test", LicenseType.MONTHLY)
    expires = license.expires_at
    assert service.extend(license.license_key, 10) == (True, "License extended by 10 days")
    assert license.expires_at == expires + timedelta(days=10)
    assert service.extend("NOPE", 10) == (False, "License not found")


def test_active_license_is_latest_expiry(service):
    service.create("A", "a@a.test", LicenseType.MONTHLY)
    yearly = service.create("B", "b@b.test", LicenseType.YEARLY)
    assert service.get_active_license() is yearly


def test_statistics_and_expiring_soon(service, clock):
    service.create("A", "a@a.test", LicenseType.TRIAL)
    service.create("B", "b@b.test", LicenseType.MONTHLY)
    expired = service.create("C", "c@c.test", LicenseType.TRIAL)
    expired.expires_at = clock() - timedelta(days=1)

    stats = service.statistics()
    assert stats.total_licenses == 3
    assert stats.active_licenses == 2
    assert stats.expired_licenses == 1
    assert stats.expiring_soon_licenses == 1
    assert stats.licenses_by_type == {"TRIAL": 2, "MONTHLY": 1}

    assert [lic.company_name for lic in service.expiring_soon(7)] == ["A"]
    assert [lic.company_name for lic in service.expiring_soon(30)] == ["A", "B"]


def test_list_licenses_newest_first(service, clock):
    service.create("Old", "o@o.test")
    clock.advance(hours=1)
    service.create("New", "n@n.test")
    assert [lic.company_name for lic in service.list_licenses()] == ["New", "Old"]
