"""
Member model for the gym ledger application.
"""

import calendar
from dataclasses import dataclass
from dataclasses import replace
from datetime import date
from decimal import Decimal
from enum import Enum


class RenewDuration(str, Enum):
    """Membership term lengths. Values are the persisted spellings."""
    MONTHLY = "monthly"
    TWO_MONTHS = "twoMonths"
    THREE_MONTHS = "threeMonths"
    SIX_MONTHS = "sixMonths"
    YEARLY = "yearly"

    @property
    def months(self) -> int:
        """Calendar months covered by one term."""
        return DURATION_MONTHS[self]

    @property
    def label(self) -> str:
        return DURATION_LABELS[self]


DURATION_MONTHS = {
    RenewDuration.MONTHLY: 1,
    RenewDuration.TWO_MONTHS: 2,
    RenewDuration.THREE_MONTHS: 3,
    RenewDuration.SIX_MONTHS: 6,
    RenewDuration.YEARLY: 12,
}

DURATION_LABELS = {
    RenewDuration.MONTHLY: "Monthly",
    RenewDuration.TWO_MONTHS: "Two Months",
    RenewDuration.THREE_MONTHS: "Three Months",
    RenewDuration.SIX_MONTHS: "Six Months",
    RenewDuration.YEARLY: "Yearly",
}


class MemberStatus(str, Enum):
    """Stored membership status."""
    ACTIVE = "active"
    EXPIRED = "expired"
    SUSPENDED = "suspended"


class Gender(str, Enum):
    MALE = "male"
    FEMALE = "female"


def add_months(start: date, months: int) -> date:
    """Add calendar months, clamping the day to the end of the target month.

    2024-01-31 + 1 month is 2024-02-29; 2023-02-28 + 12 months is 2024-02-28.
    """
    month_index = start.month - 1 + months
    year = start.year + month_index // 12
    month = month_index % 12 + 1
    day = min(start.day, calendar.monthrange(year, month)[1])
    return date(year, month, day)


def compute_expiry_date(starting_date: date, renew_duration: RenewDuration) -> date:
    """Expiry is the starting date plus the interval of the renew duration."""
    return add_months(starting_date, RenewDuration(renew_duration).months)


@dataclass(frozen=True)
class Member:
    """Gym member record.

    ``status`` is the stored status only; use
    :func:`gymledger.services.derivation.derive_effective_status` for the
    status that should be displayed or filtered on.
    """
    id: str
    member_number: str
    first_name: str
    last_name: str
    gender: Gender
    date_of_birth: date
    nationality: str
    mobile_number: str
    address: str
    email: str
    renew_duration: RenewDuration
    registration_date: date
    starting_date: date
    expiry_date: date
    emergency_contact_name: str
    emergency_contact_phone: str
    emergency_contact_relationship: str
    membership_cost: Decimal
    payment_date: date
    id_number: str
    status: MemberStatus = MemberStatus.ACTIVE
    profile_image: str | None = None
    notes: str | None = None

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()

    def with_changes(self, **changes) -> "Member":
        """Return a copy with the given fields replaced."""
        return replace(self, **changes)

    def renewed(self, renew_duration: RenewDuration, starting_date: date, cost: Decimal) -> "Member":
        """Return the member with a fresh term starting at ``starting_date``."""
        renew_duration = RenewDuration(renew_duration)
        return replace(
            self,
            renew_duration=renew_duration,
            starting_date=starting_date,
            expiry_date=compute_expiry_date(starting_date, renew_duration),
            membership_cost=cost,
            payment_date=starting_date,
            status=MemberStatus.ACTIVE,
        )
