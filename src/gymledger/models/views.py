"""
Read-only report rows mirroring the primary store's derived views.
"""

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Any

from gymledger.models.schema import decimal_to_json
from gymledger.models.schema import to_decimal


@dataclass(frozen=True)
class PaymentHistoryEntry:
    """One row of the per-member payment history."""
    member_number: str
    first_name: str
    last_name: str
    amount: Decimal
    date: date
    type: str
    method: str
    description: str

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> "PaymentHistoryEntry":
        return cls(
            member_number=str(row['member_number']),
            first_name=str(row.get('first_name') or ''),
            last_name=str(row.get('last_name') or ''),
            amount=to_decimal(row['amount']),
            date=date.fromisoformat(str(row['date'])[:10]),
            type=str(row['type']),
            method=str(row['method']),
            description=str(row.get('description') or ''),
        )

    def to_row(self) -> dict[str, Any]:
        return {
            'member_number': self.member_number,
            'first_name': self.first_name,
            'last_name': self.last_name,
            'amount': decimal_to_json(self.amount),
            'date': self.date.isoformat(),
            'type': self.type,
            'method': self.method,
            'description': self.description,
        }


@dataclass(frozen=True)
class PaymentSummaryRow:
    """One row of the monthly payment summary, grouped by type and method.

    ``month`` is the first day of the month, as the view reports it.
    """
    month: date
    type: str
    method: str
    payment_count: int
    total_amount: Decimal
    average_amount: Decimal

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> "PaymentSummaryRow":
        return cls(
            month=date.fromisoformat(str(row['month'])[:10]),
            type=str(row['type']),
            method=str(row['method']),
            payment_count=int(row['payment_count']),
            total_amount=to_decimal(row['total_amount']),
            average_amount=to_decimal(row['average_amount']),
        )

    def to_row(self) -> dict[str, Any]:
        return {
            'month': self.month.isoformat(),
            'type': self.type,
            'method': self.method,
            'payment_count': self.payment_count,
            'total_amount': decimal_to_json(self.total_amount),
            'average_amount': decimal_to_json(self.average_amount),
        }
