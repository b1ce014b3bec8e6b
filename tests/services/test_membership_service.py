"""Tests for the membership workflow."""

import asyncio
from datetime import date
from decimal import Decimal

import pytest

from gymledger.exceptions import MemberNotFoundError, ValidationError
from gymledger.models import (
    DEFAULT_SETTINGS,
    MemberStatus,
    PaymentMethod,
    PaymentType,
    RenewDuration,
)
from gymledger.services.membership_service import MembershipService


@pytest.fixture
def service(facade, notifier):
    return MembershipService(facade, notifier)


@pytest.fixture
def form():
    return {
        'first_name': "Salim",
        'last_name': "Al Harthy",
        'gender': "male",
        'date_of_birth': "1990-05-01",
        'nationality': "Omani",
        'mobile_number': "+968 91234567",
        'address': "Al Khuwair, Muscat",
        'email': "salim@example.com",
        'renew_duration': "threeMonths",
        'emergency_contact_name': "Aisha Al Harthy",
        'emergency_contact_phone': "+968 99887766",
        'emergency_contact_relationship': "Sister",
        'id_number': "12345678",
    }


class TestRegistration:

    def test_creates_member_and_one_payment(self, service, primary, notifier, form):
        member, payment = asyncio.run(service.register_member(form, as_of=date(2024, 1, 31)))

        assert primary.members == {member.id: member}
        assert primary.payments == {payment.id: payment}
        assert member.registration_date == date(2024, 1, 31)
        assert member.starting_date == date(2024, 1, 31)
        assert member.expiry_date == date(2024, 4, 30)
        assert member.status == MemberStatus.ACTIVE
        assert member.member_number.isdigit() and len(member.member_number) == 6
        assert member.membership_cost == Decimal("80")

        assert payment.member_id == member.id
        assert payment.amount == Decimal("80")
        assert payment.date == date(2024, 1, 31)
        assert payment.type == PaymentType.MEMBERSHIP
        assert payment.method == PaymentMethod.CASH
        assert payment.description == "Initial membership payment - threeMonths subscription"

        assert notifier.notices[-1].title == "Member Registered Successfully!"

    def test_price_comes_from_settings(self, service, primary, form):
        primary.settings = DEFAULT_SETTINGS.with_price(RenewDuration.THREE_MONTHS, Decimal("75.5"))
        member, payment = asyncio.run(service.register_member(form, method="card", as_of=date(2024, 1, 31)))
        assert member.membership_cost == payment.amount == Decimal("75.5")
        assert payment.method == PaymentMethod.CARD

    def test_defaults(self, service, form):
        del form['renew_duration']
        del form['gender']
        member, _ = asyncio.run(service.register_member(form, as_of=date(2024, 1, 15)))
        assert member.renew_duration == RenewDuration.MONTHLY
        assert member.gender.value == "male"
        assert member.expiry_date == date(2024, 2, 15)

    def test_explicit_starting_date(self, service, form):
        form['starting_date'] = "2024-02-01"
        member, payment = asyncio.run(service.register_member(form, as_of=date(2024, 1, 20)))
        assert member.starting_date == date(2024, 2, 1)
        assert member.expiry_date == date(2024, 5, 1)
        assert payment.date == date(2024, 1, 20)

    def test_missing_fields_store_nothing(self, service, primary, form):
        del form['mobile_number']
        with pytest.raises(ValidationError) as exc_info:
            asyncio.run(service.register_member(form))
        assert 'mobile_number' in exc_info.value.fields
        assert primary.calls == []

    @pytest.mark.parametrize("key,value", [
        ('renew_duration', "weekly"),
        ('date_of_birth', "01/05/1990"),
        ('gender', "unknown"),
    ])
    def test_malformed_values(self, service, form, key, value):
        form[key] = value
        with pytest.raises(ValidationError) as exc_info:
            asyncio.run(service.register_member(form))
        assert key in exc_info.value.fields

    def test_registration_offline(self, service, primary, cache, notifier, form):
        primary.failing = True
        member, payment = asyncio.run(service.register_member(form, as_of=date(2024, 1, 31)))
        assert cache.list_members() == [member]
        assert cache.list_payments() == [payment]
        titles = [n.title for n in notifier.notices]
        assert titles.count("Saved offline") == 2
        assert titles[-1] == "Member Registered Successfully!"

    def test_free_tier_still_records_payment(self, service, primary, form):
        primary.settings = DEFAULT_SETTINGS.with_price(RenewDuration.THREE_MONTHS, Decimal("0"))
        member, payment = asyncio.run(service.register_member(form, as_of=date(2024, 1, 31)))

        assert primary.members == {member.id: member}
        assert primary.payments == {payment.id: payment}
        assert payment.amount == member.membership_cost == Decimal("0")

    def test_invalid_price_writes_nothing(self, service, primary, cache, form):
        primary.settings = DEFAULT_SETTINGS.with_price(RenewDuration.THREE_MONTHS, Decimal("-10"))
        with pytest.raises(ValidationError) as exc_info:
            asyncio.run(service.register_member(form, as_of=date(2024, 1, 31)))

        assert 'membership_cost' in exc_info.value.fields
        assert primary.members == {}
        assert primary.payments == {}
        assert cache.list_members() == []


class TestRenewal:

    def test_renew_keeps_duration(self, service, primary, member):
        primary.members[member.id] = member
        renewed, payment = asyncio.run(service.renew_member(member.id, as_of=date(2024, 3, 1)))

        assert renewed.starting_date == date(2024, 3, 1)
        assert renewed.expiry_date == date(2024, 4, 1)
        assert renewed.registration_date == member.registration_date
        assert payment.amount == Decimal("30")
        assert payment.description == "Membership renewal - monthly subscription"
        assert primary.members[member.id] == renewed

    def test_renew_with_new_duration_reactivates(self, service, primary, member_factory):
        member = member_factory(status=MemberStatus.EXPIRED)
        primary.members[member.id] = member
        renewed, payment = asyncio.run(
            service.renew_member(member.id, RenewDuration.YEARLY, method="bank", as_of=date(2024, 3, 1))
        )
        assert renewed.status == MemberStatus.ACTIVE
        assert renewed.expiry_date == date(2025, 3, 1)
        assert payment.amount == Decimal("300")
        assert payment.method == PaymentMethod.BANK

    def test_renew_unknown_member(self, service):
        with pytest.raises(MemberNotFoundError):
            asyncio.run(service.renew_member("missing"))

    def test_invalid_price_leaves_member_unchanged(self, service, primary, member):
        primary.members[member.id] = member
        primary.settings = DEFAULT_SETTINGS.with_price(RenewDuration.MONTHLY, Decimal("-1"))
        with pytest.raises(ValidationError):
            asyncio.run(service.renew_member(member.id, as_of=date(2024, 3, 1)))

        assert primary.members[member.id] == member
        assert primary.payments == {}


class TestStatusChanges:

    def test_suspend_and_reactivate(self, service, primary, notifier, member):
        primary.members[member.id] = member

        suspended = asyncio.run(service.suspend_member(member.id))
        assert suspended.status == MemberStatus.SUSPENDED
        assert primary.members[member.id].status == MemberStatus.SUSPENDED

        active = asyncio.run(service.reactivate_member(member.id))
        assert active.status == MemberStatus.ACTIVE
        assert active.expiry_date == member.expiry_date
        assert [n.title for n in notifier.notices] == ["Membership Suspended", "Membership Reactivated"]


class TestRecordPayment:

    def test_record_payment(self, service, primary, member):
        primary.members[member.id] = member
        payment = asyncio.run(service.record_payment(
            member.id, "12.500", payment_type="training", method="card",
            payment_date=date(2024, 2, 1), description="  Personal training  ",
        ))
        assert payment.amount == Decimal("12.5")
        assert payment.type == PaymentType.TRAINING
        assert payment.description == "Personal training"
        assert primary.payments[payment.id] == payment

    def test_invalid_amount(self, service, primary, member):
        primary.members[member.id] = member
        with pytest.raises(ValidationError):
            asyncio.run(service.record_payment(member.id, "twelve"))
        with pytest.raises(ValidationError):
            asyncio.run(service.record_payment(member.id, -5))
        assert primary.payments == {}

    def test_unknown_member(self, service):
        with pytest.raises(MemberNotFoundError):
            asyncio.run(service.record_payment("missing", 10))
