"""
Report tables for the reports screen and the CLI.

All reports are computed from snapshots handed in by the caller and
returned as pandas DataFrames; amounts stay ``Decimal`` (object dtype)
so totals are exact.
"""

import calendar
from collections.abc import Iterable
from decimal import Decimal

import pandas as pd

from gymledger.models import Member
from gymledger.models import Payment
from gymledger.models.views import PaymentHistoryEntry
from gymledger.models.views import PaymentSummaryRow
from gymledger.services import derivation
from gymledger.utils.logging_utils import LoggerMixin
from gymledger.utils.logging_utils import log_execution


MONTHLY_COLUMNS = ['month', 'revenue', 'new_members', 'renewals', 'total_transactions']
SUMMARY_COLUMNS = ['month', 'type', 'method', 'payment_count', 'total_amount', 'average_amount']
HISTORY_COLUMNS = ['date', 'member_number', 'first_name', 'last_name', 'amount', 'type', 'method', 'description']
PAYMENT_COLUMNS = ['id', 'member_id', 'amount', 'date', 'type', 'method', 'description']


def _decimal_sum(values: pd.Series) -> Decimal:
    return sum(values, Decimal("0"))


class ReportService(LoggerMixin):
    """Builds report tables from member and payment snapshots."""

    @log_execution(level='DEBUG')
    def monthly_report(self, members: Iterable[Member], payments: Iterable[Payment], year: int) -> pd.DataFrame:
        """One row per calendar month of ``year``: revenue, new members and renewals."""
        members = list(members)
        payments = list(payments)
        rows = []
        for month_idx in range(12):
            new_members = derivation.new_members_in_month(members, year, month_idx)
            renewals = derivation.count_renewals_in_month(members, payments, year, month_idx)
            rows.append({
                'month': calendar.month_name[month_idx + 1],
                'revenue': derivation.calculate_monthly_revenue(payments, year, month_idx),
                'new_members': new_members,
                'renewals': renewals,
                'total_transactions': new_members + renewals,
            })
        frame = pd.DataFrame(rows, columns=MONTHLY_COLUMNS)
        self.debug("Built monthly report", year=year, revenue=str(_decimal_sum(frame['revenue'])))
        return frame

    def yearly_totals(self, report: pd.DataFrame) -> dict[str, Decimal | int]:
        """Totals row of a monthly report, with the average taken over all 12 months."""
        revenue = _decimal_sum(report['revenue'])
        return {
            'revenue': revenue,
            'new_members': int(report['new_members'].sum()),
            'renewals': int(report['renewals'].sum()),
            'total_transactions': int(report['total_transactions'].sum()),
            'average_monthly_revenue': revenue / 12,
        }

    def payments_frame(self, payments: Iterable[Payment]) -> pd.DataFrame:
        records = [
            {
                'id': p.id,
                'member_id': p.member_id,
                'amount': p.amount,
                'date': p.date,
                'type': p.type.value,
                'method': p.method.value,
                'description': p.description or '',
            }
            for p in payments
        ]
        return pd.DataFrame(records, columns=PAYMENT_COLUMNS)

    @log_execution(level='DEBUG')
    def payment_summary(self, payments: Iterable[Payment]) -> pd.DataFrame:
        """Count, total and average per (month, type, method), most recent month first."""
        frame = self.payments_frame(payments)
        if frame.empty:
            return pd.DataFrame(columns=SUMMARY_COLUMNS)

        frame['month'] = frame['date'].map(lambda d: d.replace(day=1))
        grouped = frame.groupby(['month', 'type', 'method'])['amount']
        summary = pd.DataFrame({
            'payment_count': grouped.size(),
            'total_amount': grouped.apply(_decimal_sum),
        }).reset_index()
        summary['average_amount'] = [
            total / count for total, count in zip(summary['total_amount'], summary['payment_count'])
        ]
        summary = summary.sort_values(['month', 'type', 'method'], ascending=[False, True, True])
        return summary[SUMMARY_COLUMNS].reset_index(drop=True)

    def summary_rows_frame(self, rows: Iterable[PaymentSummaryRow]) -> pd.DataFrame:
        """Summary rows as served by the store, in the same layout as :meth:`payment_summary`."""
        records = [
            {
                'month': row.month,
                'type': row.type,
                'method': row.method,
                'payment_count': row.payment_count,
                'total_amount': row.total_amount,
                'average_amount': row.average_amount,
            }
            for row in rows
        ]
        return pd.DataFrame(records, columns=SUMMARY_COLUMNS)

    def member_history(self, entries: Iterable[PaymentHistoryEntry]) -> pd.DataFrame:
        records = [
            {
                'date': entry.date,
                'member_number': entry.member_number,
                'first_name': entry.first_name,
                'last_name': entry.last_name,
                'amount': entry.amount,
                'type': entry.type,
                'method': entry.method,
                'description': entry.description,
            }
            for entry in entries
        ]
        return pd.DataFrame(records, columns=HISTORY_COLUMNS)

    def membership_distribution(self, members: Iterable[Member]) -> pd.DataFrame:
        """Member counts per renew duration, with the share of all members in percent."""
        counts = derivation.membership_distribution(members)['renew_duration']
        frame = pd.DataFrame(
            [{'renew_duration': duration, 'members': count} for duration, count in counts.items()],
            columns=['renew_duration', 'members'],
        )
        total = frame['members'].sum()
        frame['share'] = frame['members'] / total * 100 if total else 0.0
        return frame.sort_values('members', ascending=False).reset_index(drop=True)
