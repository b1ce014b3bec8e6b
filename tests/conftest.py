"""Pytest configuration and shared fixtures."""

import os
from datetime import date
from decimal import Decimal

import pytest

from gymledger.api.interfaces import PrimaryStore
from gymledger.config.error_aggregator import shutdown_error_aggregator
from gymledger.error_codes import ErrorCode
from gymledger.exceptions import StoreError
from gymledger.models import (
    Gender,
    GymSettings,
    Member,
    MemberStatus,
    Payment,
    PaymentMethod,
    PaymentType,
    RenewDuration,
    compute_expiry_date,
)
from gymledger.services import derivation
from gymledger.services.cache.fallback_cache import FallbackCache, MemoryStorage
from gymledger.services.notification_service import ToastNotifier
from gymledger.services.persistence import PersistenceFacade


class FakePrimaryStore(PrimaryStore):
    """In-memory primary store that can be switched to fail every call."""

    def __init__(self):
        self.members: dict[str, Member] = {}
        self.payments: dict[str, Payment] = {}
        self.settings: GymSettings | None = None
        self.failing = False
        self.calls: list[str] = []
        self.closed = False

    def _call(self, name: str) -> None:
        self.calls.append(name)
        if self.failing:
            raise StoreError(f"{name} failed: connection refused", ErrorCode.STORE_UNAVAILABLE, operation=name)

    def list_members(self):
        self._call("list_members")
        return list(self.members.values())

    def get_member(self, member_id):
        self._call("get_member")
        return self.members.get(member_id)

    def upsert_member(self, member):
        self._call("upsert_member")
        self.members[member.id] = member

    def delete_member(self, member_id):
        self._call("delete_member")
        self.members.pop(member_id, None)

    def list_payments(self):
        self._call("list_payments")
        return sorted(self.payments.values(), key=lambda p: p.date, reverse=True)

    def get_payment(self, payment_id):
        self._call("get_payment")
        return self.payments.get(payment_id)

    def list_payments_by_member(self, member_id):
        self._call("list_payments_by_member")
        return [p for p in self.list_payments() if p.member_id == member_id]

    def upsert_payment(self, payment):
        self._call("upsert_payment")
        self.payments[payment.id] = payment

    def get_settings(self):
        self._call("get_settings")
        return self.settings

    def upsert_settings(self, settings):
        self._call("upsert_settings")
        self.settings = settings

    def member_payment_history(self, member_number):
        self._call("member_payment_history")
        return derivation.member_payment_history(self.members.values(), self.payments.values(), member_number)

    def payment_summary(self):
        self._call("payment_summary")
        return derivation.payment_summary(self.payments.values())

    def close(self):
        self.closed = True


def make_member(**overrides) -> Member:
    """Member registered 2024-01-15 on a monthly term unless overridden."""
    starting = overrides.pop('starting_date', date(2024, 1, 15))
    duration = RenewDuration(overrides.pop('renew_duration', RenewDuration.MONTHLY))
    values = dict(
        id="m-1",
        member_number="123456",
        first_name="Salim",
        last_name="Al Harthy",
        gender=Gender.MALE,
        date_of_birth=date(1990, 5, 1),
        nationality="Omani",
        mobile_number="+968 91234567",
        address="Al Khuwair, Muscat",
        email="salim@example.com",
        renew_duration=duration,
        registration_date=starting,
        starting_date=starting,
        expiry_date=compute_expiry_date(starting, duration),
        emergency_contact_name="Aisha Al Harthy",
        emergency_contact_phone="+968 99887766",
        emergency_contact_relationship="Sister",
        membership_cost=Decimal("30"),
        payment_date=starting,
        id_number="12345678",
        status=MemberStatus.ACTIVE,
    )
    values.update(overrides)
    return Member(**values)


def make_payment(**overrides) -> Payment:
    values = dict(
        id="p-1",
        member_id="m-1",
        amount=Decimal("30"),
        date=date(2024, 1, 15),
        type=PaymentType.MEMBERSHIP,
        method=PaymentMethod.CASH,
        description=None,
    )
    values.update(overrides)
    return Payment(**values)


@pytest.fixture(autouse=True)
def setup_test_env(monkeypatch, tmp_path):
    """Isolate tests from the user's configuration and environment."""
    for name in list(os.environ):
        if name.startswith("GYMLEDGER_"):
            monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("GYMLEDGER_CONFIG_DIR", str(tmp_path / "config"))

    yield

    shutdown_error_aggregator()


@pytest.fixture
def member() -> Member:
    return make_member()


@pytest.fixture
def payment() -> Payment:
    return make_payment()


@pytest.fixture
def storage() -> MemoryStorage:
    return MemoryStorage()


@pytest.fixture
def cache(storage) -> FallbackCache:
    return FallbackCache(storage)


@pytest.fixture
def primary() -> FakePrimaryStore:
    return FakePrimaryStore()


@pytest.fixture
def notifier() -> ToastNotifier:
    return ToastNotifier()


@pytest.fixture
def facade(primary, cache, notifier) -> PersistenceFacade:
    return PersistenceFacade(primary, cache, notifier)


@pytest.fixture
def member_factory():
    return make_member


@pytest.fixture
def payment_factory():
    return make_payment
