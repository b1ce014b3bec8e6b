"""
Payment model for the gym ledger application.
"""

from dataclasses import dataclass
from dataclasses import replace
from datetime import date
from decimal import Decimal
from enum import Enum


class PaymentType(str, Enum):
    MEMBERSHIP = "membership"
    TRAINING = "training"
    EQUIPMENT = "equipment"
    OTHER = "other"


class PaymentMethod(str, Enum):
    CASH = "cash"
    CARD = "card"
    BANK = "bank"


@dataclass(frozen=True)
class Payment:
    """A single payment.

    ``member_id`` is a weak reference: nothing enforces that the member
    exists and deleting a member leaves its payments in place.
    """
    id: str
    member_id: str
    amount: Decimal
    date: date
    type: PaymentType
    method: PaymentMethod
    description: str | None = None

    def with_changes(self, **changes) -> "Payment":
        """Return a corrected copy; identity is preserved."""
        changes.pop('id', None)
        return replace(self, **changes)
