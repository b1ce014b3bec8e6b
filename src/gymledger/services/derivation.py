"""
Derived membership facts and revenue figures.

Everything here is a pure function of the snapshot passed in; nothing is
cached, so callers evaluating at different instants may disagree at a
day boundary.
"""

from collections import Counter
from collections.abc import Callable
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import date
from datetime import timedelta
from decimal import Decimal
from enum import Enum

from gymledger.models import Member
from gymledger.models import MemberStatus
from gymledger.models import Payment
from gymledger.models.member import add_months
from gymledger.models.views import PaymentHistoryEntry
from gymledger.models.views import PaymentSummaryRow


DEFAULT_EXPIRING_WINDOW_DAYS = 30

PaymentPredicate = Callable[[Payment], bool]


class StatusFilter(str, Enum):
    ALL = "all"
    ACTIVE = "active"
    EXPIRED = "expired"
    EXPIRING = "expiring"


@dataclass(frozen=True)
class RevenueStats:
    """Dashboard figures for one reference day."""
    total_revenue: Decimal
    monthly_revenue: Decimal
    yearly_revenue: Decimal
    active_members: int
    expiring_members: int
    new_members_this_month: int
    average_monthly_revenue: Decimal


def derive_effective_status(member: Member, as_of: date) -> MemberStatus:
    """Status used for display and filtering.

    A stored ``suspended`` is returned unchanged. Otherwise the member is
    expired once ``as_of`` is past the expiry date or when stored as
    expired, and keeps the stored status before that.
    """
    if member.status == MemberStatus.SUSPENDED:
        return MemberStatus.SUSPENDED
    if as_of > member.expiry_date or member.status == MemberStatus.EXPIRED:
        return MemberStatus.EXPIRED
    return member.status


def is_expiring_soon(member: Member, as_of: date, window_days: int = DEFAULT_EXPIRING_WINDOW_DAYS) -> bool:
    """Stored active and expiring within ``window_days`` of ``as_of``, both ends inclusive."""
    return (
        member.status == MemberStatus.ACTIVE
        and as_of <= member.expiry_date <= as_of + timedelta(days=window_days)
    )


def filter_by_status(
    members: Iterable[Member],
    status_filter: StatusFilter | str,
    as_of: date,
    window_days: int = DEFAULT_EXPIRING_WINDOW_DAYS,
) -> list[Member]:
    status_filter = StatusFilter(status_filter)
    members = list(members)

    if status_filter == StatusFilter.ALL:
        return members
    if status_filter == StatusFilter.EXPIRED:
        return [
            m for m in members
            if derive_effective_status(m, as_of) == MemberStatus.EXPIRED or as_of > m.expiry_date
        ]

    active = [
        m for m in members
        if derive_effective_status(m, as_of) == MemberStatus.ACTIVE and as_of <= m.expiry_date
    ]
    if status_filter == StatusFilter.ACTIVE:
        return active
    return [m for m in active if is_expiring_soon(m, as_of, window_days)]


def search_members(members: Iterable[Member], term: str) -> list[Member]:
    """Case-insensitive match on names, member number or mobile number."""
    needle = term.strip().lower()
    if not needle:
        return list(members)
    return [
        m for m in members
        if needle in m.first_name.lower()
        or needle in m.last_name.lower()
        or needle in m.full_name.lower()
        or needle in m.member_number
        or needle in m.mobile_number
    ]


# Revenue
#
# Month arguments are zero-indexed (0 = January, 11 = December), matching
# the month index the dashboard and reports screens pass around.

def sum_revenue(payments: Iterable[Payment], predicate: PaymentPredicate | None = None) -> Decimal:
    """Exact sum of amounts over payments accepted by ``predicate``."""
    total = Decimal("0")
    for payment in payments:
        if predicate is None or predicate(payment):
            total += payment.amount
    return total


def month_index(day: date) -> int:
    """Zero-indexed month of ``day``."""
    return day.month - 1


def _month_bounds(year: int, month_idx: int) -> tuple[date, date]:
    if not 0 <= month_idx <= 11:
        raise ValueError(f"Month index must be 0-11, got {month_idx}")
    first = date(year, month_idx + 1, 1)
    return first, add_months(first, 1) - timedelta(days=1)


def in_month(year: int, month_idx: int) -> PaymentPredicate:
    """Predicate for payments dated from the first to the last day of the month."""
    first, last = _month_bounds(year, month_idx)
    return lambda p: first <= p.date <= last


def total_revenue(payments: Iterable[Payment]) -> Decimal:
    return sum_revenue(payments)


def calculate_monthly_revenue(payments: Iterable[Payment], year: int, month_idx: int) -> Decimal:
    """Revenue of month ``month_idx`` (0-11) of ``year``."""
    return sum_revenue(payments, in_month(year, month_idx))


def yearly_revenue(payments: Iterable[Payment], year: int) -> Decimal:
    return sum_revenue(payments, lambda p: p.date.year == year)


def trailing_months(year: int, month_idx: int, count: int = 12) -> list[tuple[int, int]]:
    """``count`` (year, month index) pairs ending at and including the given month, oldest first."""
    anchor, _ = _month_bounds(year, month_idx)
    months = [add_months(anchor, -offset) for offset in range(count)]
    return [(d.year, month_index(d)) for d in reversed(months)]


def average_monthly_revenue(payments: Iterable[Payment], as_of_year: int, as_of_month_idx: int) -> Decimal:
    """Mean of the 12 monthly sums ending at the given month; empty months count as zero."""
    payments = list(payments)
    sums = [
        calculate_monthly_revenue(payments, year, month_idx)
        for year, month_idx in trailing_months(as_of_year, as_of_month_idx)
    ]
    return sum(sums, Decimal("0")) / 12


# Membership counts

def new_members_in_month(members: Iterable[Member], year: int, month_idx: int) -> int:
    return sum(
        1 for m in members
        if m.registration_date.year == year and month_index(m.registration_date) == month_idx
    )


def count_renewals_in_month(members: Iterable[Member], payments: Iterable[Payment], year: int, month_idx: int) -> int:
    """Payments in the month from known members, excluding those dated on the registration day."""
    registered_on = {m.id: m.registration_date for m in members}
    dated_in_month = in_month(year, month_idx)
    return sum(
        1 for p in payments
        if dated_in_month(p)
        and p.member_id in registered_on
        and registered_on[p.member_id] != p.date
    )


def membership_distribution(members: Iterable[Member]) -> dict[str, dict[str, int]]:
    """Member counts per renew duration and per stored status."""
    members = list(members)
    return {
        'renew_duration': dict(Counter(m.renew_duration.value for m in members)),
        'status': dict(Counter(m.status.value for m in members)),
    }


def revenue_stats(
    members: Iterable[Member],
    payments: Iterable[Payment],
    as_of: date,
    window_days: int = DEFAULT_EXPIRING_WINDOW_DAYS,
) -> RevenueStats:
    members = list(members)
    payments = list(payments)
    return RevenueStats(
        total_revenue=total_revenue(payments),
        monthly_revenue=calculate_monthly_revenue(payments, as_of.year, month_index(as_of)),
        yearly_revenue=yearly_revenue(payments, as_of.year),
        active_members=len(filter_by_status(members, StatusFilter.ACTIVE, as_of)),
        expiring_members=len(filter_by_status(members, StatusFilter.EXPIRING, as_of, window_days)),
        new_members_this_month=new_members_in_month(members, as_of.year, month_index(as_of)),
        average_monthly_revenue=average_monthly_revenue(payments, as_of.year, month_index(as_of)),
    )


# Local renditions of the store's report views

def member_payment_history(
    members: Iterable[Member], payments: Iterable[Payment], member_number: str
) -> list[PaymentHistoryEntry]:
    """Payments of the member with ``member_number``, most recent first."""
    owners = {m.id: m for m in members if m.member_number == member_number}
    rows = [
        PaymentHistoryEntry(
            member_number=member_number,
            first_name=owners[p.member_id].first_name,
            last_name=owners[p.member_id].last_name,
            amount=p.amount,
            date=p.date,
            type=p.type.value,
            method=p.method.value,
            description=p.description or '',
        )
        for p in payments if p.member_id in owners
    ]
    return sorted(rows, key=lambda row: row.date, reverse=True)


def payment_summary(payments: Iterable[Payment]) -> list[PaymentSummaryRow]:
    """Count, total and average per (month, type, method), most recent month first."""
    groups: dict[tuple[date, str, str], list[Decimal]] = {}
    for p in payments:
        key = (p.date.replace(day=1), p.type.value, p.method.value)
        groups.setdefault(key, []).append(p.amount)

    rows = []
    for (month, payment_type, method), amounts in groups.items():
        total = sum(amounts, Decimal("0"))
        rows.append(PaymentSummaryRow(
            month=month,
            type=payment_type,
            method=method,
            payment_count=len(amounts),
            total_amount=total,
            average_amount=total / len(amounts),
        ))
    return sorted(rows, key=lambda row: (-row.month.toordinal(), row.type, row.method))
