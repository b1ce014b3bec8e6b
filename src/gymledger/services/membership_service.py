"""
Membership workflow: registration, renewal, suspension and ad-hoc payments.
"""

from collections.abc import Mapping
from datetime import date
from decimal import Decimal
from typing import Any

from gymledger.exceptions import MemberNotFoundError
from gymledger.exceptions import SchemaError
from gymledger.exceptions import ValidationError
from gymledger.models import Gender
from gymledger.models import Member
from gymledger.models import MemberStatus
from gymledger.models import Payment
from gymledger.models import PaymentMethod
from gymledger.models import PaymentType
from gymledger.models import RenewDuration
from gymledger.models import compute_expiry_date
from gymledger.models.schema import to_decimal
from gymledger.services.identity import generate_id
from gymledger.services.identity import generate_member_number
from gymledger.services.notification_service import Notifier
from gymledger.services.persistence import PersistenceFacade
from gymledger.services.validation import validate_member
from gymledger.services.validation import validate_payment
from gymledger.services.validation import validate_registration_form
from gymledger.utils.logging_utils import EnhancedLoggerMixin


def _as_date(value: Any, field: str) -> date:
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(str(value))
    except ValueError as e:
        raise ValidationError(f"Invalid {field}", {field: "must be a date (YYYY-MM-DD)"}) from e


def _as_enum(enum_type: Any, value: Any, field: str) -> Any:
    try:
        return enum_type(value)
    except ValueError as e:
        allowed = ", ".join(item.value for item in enum_type)
        raise ValidationError(f"Invalid {field}", {field: f"must be one of {allowed}"}) from e


def _as_amount(value: Any) -> Decimal:
    try:
        return to_decimal(value)
    except SchemaError as e:
        raise ValidationError("Invalid amount", {'amount': "must be a number"}) from e


def _text(form: Mapping[str, Any], key: str) -> str:
    value = form.get(key)
    return str(value).strip() if value is not None else ""


class MembershipService(EnhancedLoggerMixin):
    """Membership operations built on the persistence facade."""

    def __init__(self, persistence: PersistenceFacade, notifier: Notifier):
        super().__init__()
        self.persistence = persistence
        self.notifier = notifier

    async def register_member(
        self,
        form: Mapping[str, Any],
        method: PaymentMethod | str = PaymentMethod.CASH,
        as_of: date | None = None,
    ) -> tuple[Member, Payment]:
        """Create a member and its initial membership payment.

        ``form`` uses attribute names as keys. The term starts at
        ``starting_date`` when given, else on the registration day, and is
        priced from the current settings.

        Raises:
            ValidationError: Required fields missing or malformed
        """
        validate_registration_form(form)
        as_of = as_of or date.today()
        method = _as_enum(PaymentMethod, method, 'method')
        renew_duration = _as_enum(RenewDuration, form.get('renew_duration') or RenewDuration.MONTHLY, 'renew_duration')
        gender = _as_enum(Gender, form.get('gender') or Gender.MALE, 'gender')
        starting_date = _as_date(form['starting_date'], 'starting_date') if form.get('starting_date') else as_of

        settings = await self.persistence.get_settings()
        cost = settings.price_for(renew_duration)

        member = Member(
            id=generate_id(),
            member_number=generate_member_number(),
            first_name=_text(form, 'first_name'),
            last_name=_text(form, 'last_name'),
            gender=gender,
            date_of_birth=_as_date(form['date_of_birth'], 'date_of_birth'),
            nationality=_text(form, 'nationality'),
            mobile_number=_text(form, 'mobile_number'),
            address=_text(form, 'address'),
            email=_text(form, 'email'),
            renew_duration=renew_duration,
            registration_date=as_of,
            starting_date=starting_date,
            expiry_date=compute_expiry_date(starting_date, renew_duration),
            emergency_contact_name=_text(form, 'emergency_contact_name'),
            emergency_contact_phone=_text(form, 'emergency_contact_phone'),
            emergency_contact_relationship=_text(form, 'emergency_contact_relationship'),
            membership_cost=cost,
            payment_date=as_of,
            id_number=_text(form, 'id_number'),
            status=MemberStatus.ACTIVE,
            profile_image=form.get('profile_image') or None,
            notes=_text(form, 'notes') or None,
        )
        payment = Payment(
            id=generate_id(),
            member_id=member.id,
            amount=cost,
            date=as_of,
            type=PaymentType.MEMBERSHIP,
            method=method,
            description=f"Initial membership payment - {renew_duration.value} subscription",
        )

        # Both records are checked before either is written
        validate_member(member)
        validate_payment(payment)
        await self.persistence.save_member(member)
        await self.persistence.save_payment(payment)

        self.info("Member registered", member_number=member.member_number, renew_duration=renew_duration.value)
        self.notifier.success(
            "Member Registered Successfully!",
            f"{member.full_name} is member #{member.member_number}",
        )
        return member, payment

    async def _require_member(self, member_id: str) -> Member:
        member = await self.persistence.get_member(member_id)
        if member is None:
            raise MemberNotFoundError(member_id)
        return member

    async def renew_member(
        self,
        member_id: str,
        renew_duration: RenewDuration | str | None = None,
        method: PaymentMethod | str = PaymentMethod.CASH,
        as_of: date | None = None,
    ) -> tuple[Member, Payment]:
        """Start a new term on ``as_of`` and record its membership payment.

        The member's current duration is kept when none is given.
        """
        as_of = as_of or date.today()
        member = await self._require_member(member_id)
        duration = _as_enum(RenewDuration, renew_duration or member.renew_duration, 'renew_duration')
        method = _as_enum(PaymentMethod, method, 'method')

        settings = await self.persistence.get_settings()
        cost = settings.price_for(duration)
        renewed = member.renewed(duration, as_of, cost)
        payment = Payment(
            id=generate_id(),
            member_id=member.id,
            amount=cost,
            date=as_of,
            type=PaymentType.MEMBERSHIP,
            method=method,
            description=f"Membership renewal - {duration.value} subscription",
        )

        validate_member(renewed)
        validate_payment(payment)
        await self.persistence.save_member(renewed)
        await self.persistence.save_payment(payment)

        self.info("Member renewed", member_number=member.member_number, expiry_date=renewed.expiry_date.isoformat())
        self.notifier.success(
            "Membership Renewed",
            f"{renewed.full_name} is active until {renewed.expiry_date.isoformat()}",
        )
        return renewed, payment

    async def _set_status(self, member_id: str, status: MemberStatus, title: str) -> Member:
        member = await self._require_member(member_id)
        updated = member.with_changes(status=status)
        await self.persistence.save_member(updated)
        self.info("Member status changed", member_number=member.member_number, status=status.value)
        self.notifier.success(title, f"{updated.full_name} is now {status.value}")
        return updated

    async def suspend_member(self, member_id: str) -> Member:
        return await self._set_status(member_id, MemberStatus.SUSPENDED, "Membership Suspended")

    async def reactivate_member(self, member_id: str) -> Member:
        """Lift a suspension; the expiry date is left as it was."""
        return await self._set_status(member_id, MemberStatus.ACTIVE, "Membership Reactivated")

    async def record_payment(
        self,
        member_id: str,
        amount: Decimal | int | str,
        payment_type: PaymentType | str = PaymentType.OTHER,
        method: PaymentMethod | str = PaymentMethod.CASH,
        payment_date: date | None = None,
        description: str | None = None,
    ) -> Payment:
        """Record a standalone payment for an existing member."""
        member = await self._require_member(member_id)
        payment = Payment(
            id=generate_id(),
            member_id=member.id,
            amount=_as_amount(amount),
            date=payment_date or date.today(),
            type=_as_enum(PaymentType, payment_type, 'type'),
            method=_as_enum(PaymentMethod, method, 'method'),
            description=(description or "").strip() or None,
        )
        await self.persistence.save_payment(payment)
        self.notifier.success(
            "Payment Recorded Successfully!",
            f"{payment.amount} OMR payment recorded for {member.full_name}",
        )
        return payment
