"""
Domain checks run before any store is touched.

Each validator raises ValidationError carrying every offending field
with a short reason, keyed by attribute name.
"""

import re
from collections.abc import Mapping
from decimal import Decimal
from typing import Any

from gymledger.exceptions import ValidationError
from gymledger.models import GymSettings
from gymledger.models import Member
from gymledger.models import Payment


REGISTRATION_REQUIRED_FIELDS = (
    'first_name',
    'last_name',
    'date_of_birth',
    'mobile_number',
    'emergency_contact_name',
    'emergency_contact_phone',
    'emergency_contact_relationship',
    'id_number',
)

MEMBER_REQUIRED_TEXT = (
    'id',
    'first_name',
    'last_name',
    'mobile_number',
    'emergency_contact_name',
    'emergency_contact_phone',
    'emergency_contact_relationship',
    'id_number',
)

EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


def _blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def _raise_if(errors: dict[str, str], what: str) -> None:
    if errors:
        raise ValidationError(f"Invalid {what}: {', '.join(sorted(errors))}", errors)


def validate_registration_form(form: Mapping[str, Any]) -> None:
    errors = {name: "is required" for name in REGISTRATION_REQUIRED_FIELDS if _blank(form.get(name))}
    email = form.get('email')
    if not _blank(email) and not EMAIL_PATTERN.match(str(email)):
        errors['email'] = "is not a valid email address"
    _raise_if(errors, "registration")


def validate_member(member: Member) -> None:
    errors = {name: "is required" for name in MEMBER_REQUIRED_TEXT if _blank(getattr(member, name))}

    if not member.member_number or not member.member_number.isdigit():
        errors['member_number'] = "must be digits only"
    if member.expiry_date < member.starting_date:
        errors['expiry_date'] = "must not be before the starting date"
    if member.membership_cost < 0:
        errors['membership_cost'] = "must not be negative"
    if member.email and not EMAIL_PATTERN.match(member.email):
        errors['email'] = "is not a valid email address"

    _raise_if(errors, "member")


def validate_payment(payment: Payment) -> None:
    errors: dict[str, str] = {}
    if _blank(payment.id):
        errors['id'] = "is required"
    if _blank(payment.member_id):
        errors['member_id'] = "is required"
    if payment.amount < Decimal("0"):
        errors['amount'] = "must not be negative"
    _raise_if(errors, "payment")


def validate_settings(settings: GymSettings) -> None:
    errors: dict[str, str] = {}
    if _blank(settings.gym_name):
        errors['gym_name'] = "is required"
    if settings.email and not EMAIL_PATTERN.match(settings.email):
        errors['email'] = "is not a valid email address"
    negative = sorted(d.value for d, price in settings.membership_prices.items() if price < 0)
    if negative:
        errors['membership_prices'] = f"negative price for {', '.join(negative)}"
    _raise_if(errors, "settings")
