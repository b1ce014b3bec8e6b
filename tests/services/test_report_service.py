"""Tests for report tables."""

from datetime import date
from decimal import Decimal

import pytest

from gymledger.models import PaymentMethod, PaymentType, RenewDuration
from gymledger.models.views import PaymentSummaryRow
from gymledger.services import derivation
from gymledger.services.report_service import MONTHLY_COLUMNS, SUMMARY_COLUMNS, ReportService


@pytest.fixture
def reports():
    return ReportService()


@pytest.fixture
def members(member_factory):
    return [
        member_factory(id="a", registration_date=date(2024, 3, 5)),
        member_factory(id="b", registration_date=date(2024, 4, 1), renew_duration=RenewDuration.YEARLY),
    ]


@pytest.fixture
def payments(payment_factory):
    return [
        payment_factory(id="p1", member_id="a", amount=Decimal("30"), date=date(2024, 3, 5)),
        payment_factory(id="p2", member_id="a", amount=Decimal("55"), date=date(2024, 3, 20)),
        payment_factory(id="p3", member_id="b", amount=Decimal("300"), date=date(2024, 4, 1)),
        payment_factory(id="p4", member_id="a", amount=Decimal("12.5"), date=date(2024, 4, 9),
                        type=PaymentType.TRAINING, method=PaymentMethod.CARD),
    ]


def test_monthly_report(reports, members, payments):
    report = reports.monthly_report(members, payments, 2024)

    assert list(report.columns) == MONTHLY_COLUMNS
    assert len(report) == 12
    march = report.iloc[2]
    assert march['month'] == "March"
    assert march['revenue'] == Decimal("85")
    assert march['new_members'] == 1
    assert march['renewals'] == 1
    assert march['total_transactions'] == 2

    april = report.iloc[3]
    assert april['revenue'] == Decimal("312.5")
    assert april['new_members'] == 1
    assert april['renewals'] == 1

    assert report.iloc[0]['revenue'] == Decimal("0")


def test_yearly_totals(reports, members, payments):
    totals = reports.yearly_totals(reports.monthly_report(members, payments, 2024))
    assert totals['revenue'] == Decimal("397.5")
    assert totals['new_members'] == 2
    assert totals['renewals'] == 2
    assert totals['total_transactions'] == 4
    assert totals['average_monthly_revenue'] == Decimal("397.5") / 12


def test_payment_summary_matches_local_view(reports, payments):
    summary = reports.payment_summary(payments)
    expected = derivation.payment_summary(payments)

    assert list(summary.columns) == SUMMARY_COLUMNS
    assert len(summary) == len(expected)
    for (_, row), view_row in zip(summary.iterrows(), expected):
        assert row['month'] == view_row.month
        assert row['type'] == view_row.type
        assert row['method'] == view_row.method
        assert row['payment_count'] == view_row.payment_count
        assert row['total_amount'] == view_row.total_amount
        assert row['average_amount'] == view_row.average_amount


def test_payment_summary_empty(reports):
    summary = reports.payment_summary([])
    assert summary.empty
    assert list(summary.columns) == SUMMARY_COLUMNS


def test_summary_rows_frame(reports):
    row = PaymentSummaryRow(date(2024, 3, 1), "membership", "cash", 2, Decimal("85"), Decimal("42.5"))
    frame = reports.summary_rows_frame([row])
    assert list(frame.columns) == SUMMARY_COLUMNS
    assert frame.iloc[0]['total_amount'] == Decimal("85")


def test_member_history(reports, members, payments):
    entries = derivation.member_payment_history(members, payments, "123456")
    frame = reports.member_history(entries)
    assert len(frame) == 4
    assert frame.iloc[0]['date'] == date(2024, 4, 9)


def test_membership_distribution(reports, members, member_factory):
    frame = reports.membership_distribution(members + [member_factory(id="c")])
    assert list(frame['renew_duration']) == ["monthly", "yearly"]
    assert list(frame['members']) == [2, 1]
    assert frame.iloc[0]['share'] == pytest.approx(200 / 3)


def test_payments_frame(reports, payments):
    frame = reports.payments_frame(payments)
    assert len(frame) == 4
    assert frame.iloc[0]['description'] == ""
