"""
Command line interface for the gym ledger application.
"""

import argparse
import asyncio
import json
import sys
from collections.abc import Sequence
from dataclasses import asdict, is_dataclass
from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Any

import pandas as pd
from tabulate import tabulate

from gymledger.app import GymLedgerApp, create_app
from gymledger.config.logging import setup_logging
from gymledger.config.settings import ConfigurationManager
from gymledger.exceptions import ConfigError, GymLedgerError, MemberNotFoundError, PersistenceError, ValidationError
from gymledger.models import Member, Payment
from gymledger.models.schema import decimal_to_json
from gymledger.services import derivation
from gymledger.utils.cli_utils import (
    ArgumentValidator,
    CLIBuilder,
    CLIContext,
    CLIOptionFactory,
    CommandCategory,
    CommandRegistry,
)
from gymledger.utils.logging_utils import get_logger


def _today(ctx: CLIContext) -> date:
    value = getattr(ctx.args, 'date', None)
    return date.fromisoformat(value) if value else date.today()

def _json_default(value: Any) -> Any:
    if isinstance(value, Decimal):
        return decimal_to_json(value)
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, Enum):
        return value.value
    if is_dataclass(value):
        return asdict(value)
    if hasattr(value, "item"):
        # numpy scalars from DataFrames
        return value.item()
    return str(value)

def _print_json(data: Any) -> None:
    print(json.dumps(data, default=_json_default, indent=2))

def _print_table(title: str, rows: list[list[Any]], headers: list[str]) -> None:
    if not rows:
        print(f"No {title.lower()} found")
        return
    print(f"\n{title}")
    print("=" * 80)
    print(tabulate(rows, headers=headers, tablefmt="psql"))

def _print_frame(ctx: CLIContext, title: str, frame: pd.DataFrame) -> None:
    if ctx.args.format == 'json':
        _print_json(frame.to_dict(orient='records'))
        return
    _print_table(title, frame.values.tolist(), [str(c) for c in frame.columns])

def _member_row(member: Member, as_of: date) -> list[Any]:
    return [
        member.member_number,
        member.full_name,
        member.mobile_number,
        member.renew_duration.label,
        member.expiry_date.isoformat(),
        derivation.derive_effective_status(member, as_of).value,
    ]

def _payment_row(payment: Payment) -> list[Any]:
    return [
        payment.date.isoformat(),
        payment.member_id,
        f"{payment.amount} OMR",
        payment.type.value,
        payment.method.value,
        payment.description or "",
    ]

def _price(value: str) -> Decimal:
    try:
        price = Decimal(value)
    except ArithmeticError as e:
        raise argparse.ArgumentTypeError(f"not a number: {value}") from e
    if price < 0:
        raise argparse.ArgumentTypeError("price must not be negative")
    return price

MEMBER_HEADERS = ["Number", "Name", "Mobile", "Duration", "Expires", "Status"]
PAYMENT_HEADERS = ["Date", "Member", "Amount", "Type", "Method", "Description"]

class MemberCommands:
    """Member command implementations."""

    @staticmethod
    @CommandRegistry.register(
        name='list',
        help_text='List members, optionally filtered by status or search term',
        category=CommandCategory.MEMBERS,
        options=[
            {
                'name': '--status',
                'choices': [f.value for f in derivation.StatusFilter],
                'default': 'all',
                'help': 'Effective status filter (default: all)'
            },
            {
                'name': '--search',
                'help': 'Match first/last name, member number or mobile number'
            },
            CLIOptionFactory.create_date_option(help_text='Reference day for status (default: today)')
        ],
        parent_command='members'
    )
    def list_members(ctx: CLIContext) -> int:
        as_of = _today(ctx)
        members = asyncio.run(ctx.app.persistence.get_members())
        members = derivation.filter_by_status(
            members, ctx.args.status, as_of, ctx.config.membership.expiring_window_days
        )
        if ctx.args.search:
            members = derivation.search_members(members, ctx.args.search)

        if ctx.args.format == 'json':
            _print_json([
                {**asdict(m), 'effective_status': derivation.derive_effective_status(m, as_of)}
                for m in members
            ])
        else:
            _print_table("Members", [_member_row(m, as_of) for m in members], MEMBER_HEADERS)
        return 0

    @staticmethod
    @CommandRegistry.register(
        name='register',
        help_text='Register a new member and record the initial membership payment',
        category=CommandCategory.MEMBERS,
        options=[
            {'name': '--first-name', 'required': True, 'help': 'First name'},
            {'name': '--last-name', 'required': True, 'help': 'Last name'},
            {'name': '--date-of-birth', 'required': True, 'help': 'Date of birth (YYYY-MM-DD)'},
            {'name': '--mobile', 'required': True, 'help': 'Mobile number'},
            {'name': '--id-number', 'required': True, 'help': 'Civil ID or passport number'},
            {'name': '--emergency-name', 'required': True, 'help': 'Emergency contact name'},
            {'name': '--emergency-phone', 'required': True, 'help': 'Emergency contact phone'},
            {'name': '--emergency-relationship', 'required': True, 'help': 'Emergency contact relationship'},
            {'name': '--gender', 'choices': ['male', 'female'], 'default': 'male', 'help': 'Gender (default: male)'},
            {'name': '--nationality', 'default': '', 'help': 'Nationality'},
            {'name': '--address', 'default': '', 'help': 'Address'},
            {'name': '--email', 'default': '', 'help': 'Email address'},
            {'name': '--start-date', 'help': 'First day of the term (default: registration day)'},
            {'name': '--notes', 'help': 'Free-form notes'},
            {**CLIOptionFactory.create_duration_option(), 'default': 'monthly'},
            CLIOptionFactory.create_method_option(),
            CLIOptionFactory.create_date_option(help_text='Registration day (default: today)')
        ],
        parent_command='members'
    )
    def register_member(ctx: CLIContext) -> int:
        args = ctx.args
        form = {
            'first_name': args.first_name,
            'last_name': args.last_name,
            'date_of_birth': args.date_of_birth,
            'mobile_number': args.mobile,
            'id_number': args.id_number,
            'emergency_contact_name': args.emergency_name,
            'emergency_contact_phone': args.emergency_phone,
            'emergency_contact_relationship': args.emergency_relationship,
            'gender': args.gender,
            'nationality': args.nationality,
            'address': args.address,
            'email': args.email,
            'renew_duration': args.duration,
            'starting_date': args.start_date,
            'notes': args.notes,
        }
        member, payment = asyncio.run(
            ctx.app.membership.register_member(form, method=args.method, as_of=_today(ctx))
        )
        if args.format == 'json':
            _print_json({'member': asdict(member), 'payment': asdict(payment)})
        else:
            print(f"Registered {member.full_name} as member #{member.member_number} (id {member.id})")
            print(f"Membership paid: {payment.amount} OMR, expires {member.expiry_date.isoformat()}")
        return 0

    @staticmethod
    @CommandRegistry.register(
        name='renew',
        help_text='Renew a membership starting today and record the payment',
        category=CommandCategory.MEMBERS,
        options=[
            CLIOptionFactory.create_member_id_argument(),
            CLIOptionFactory.create_duration_option(),
            CLIOptionFactory.create_method_option(),
            CLIOptionFactory.create_date_option(help_text='Renewal day (default: today)')
        ],
        parent_command='members'
    )
    def renew_member(ctx: CLIContext) -> int:
        member, payment = asyncio.run(ctx.app.membership.renew_member(
            ctx.args.member_id, ctx.args.duration, method=ctx.args.method, as_of=_today(ctx)
        ))
        if ctx.args.format == 'json':
            _print_json({'member': asdict(member), 'payment': asdict(payment)})
        else:
            print(f"Renewed {member.full_name} until {member.expiry_date.isoformat()} ({payment.amount} OMR)")
        return 0

    @staticmethod
    @CommandRegistry.register(
        name='suspend',
        help_text='Suspend a membership',
        category=CommandCategory.MEMBERS,
        options=[CLIOptionFactory.create_member_id_argument()],
        parent_command='members'
    )
    def suspend_member(ctx: CLIContext) -> int:
        member = asyncio.run(ctx.app.membership.suspend_member(ctx.args.member_id))
        print(f"{member.full_name} is suspended")
        return 0

    @staticmethod
    @CommandRegistry.register(
        name='reactivate',
        help_text='Lift a suspension',
        category=CommandCategory.MEMBERS,
        options=[CLIOptionFactory.create_member_id_argument()],
        parent_command='members'
    )
    def reactivate_member(ctx: CLIContext) -> int:
        member = asyncio.run(ctx.app.membership.reactivate_member(ctx.args.member_id))
        print(f"{member.full_name} is active")
        return 0

    @staticmethod
    @CommandRegistry.register(
        name='delete',
        help_text='Delete a member from the main database',
        category=CommandCategory.MEMBERS,
        options=[CLIOptionFactory.create_member_id_argument()],
        parent_command='members'
    )
    def delete_member(ctx: CLIContext) -> int:
        asyncio.run(ctx.app.persistence.delete_member(ctx.args.member_id))
        print(f"Deleted member {ctx.args.member_id}")
        return 0

    @staticmethod
    @CommandRegistry.register(
        name='history',
        help_text='Show the payment history of a member',
        category=CommandCategory.MEMBERS,
        options=[{'name': 'member_number', 'help': 'Member number'}],
        parent_command='members'
    )
    def member_history(ctx: CLIContext) -> int:
        entries = asyncio.run(ctx.app.persistence.get_member_payment_history(ctx.args.member_number))
        _print_frame(ctx, "Payment History", ctx.app.reports.member_history(entries))
        return 0

class PaymentCommands:
    """Payment command implementations."""

    @staticmethod
    @CommandRegistry.register(
        name='list',
        help_text='List payments, most recent first',
        category=CommandCategory.PAYMENTS,
        options=[{'name': '--member', 'help': 'Only payments of this member id'}],
        parent_command='payments'
    )
    def list_payments(ctx: CLIContext) -> int:
        persistence = ctx.app.persistence
        if ctx.args.member:
            payments = asyncio.run(persistence.get_payments_by_member(ctx.args.member))
        else:
            payments = asyncio.run(persistence.get_payments())

        if ctx.args.format == 'json':
            _print_json([asdict(p) for p in payments])
        else:
            _print_table("Payments", [_payment_row(p) for p in payments], PAYMENT_HEADERS)
        return 0

    @staticmethod
    @CommandRegistry.register(
        name='add',
        help_text='Record a payment for a member',
        category=CommandCategory.PAYMENTS,
        options=[
            CLIOptionFactory.create_member_id_argument(),
            {'name': '--amount', 'required': True, 'help': 'Amount in OMR'},
            {
                'name': '--type',
                'choices': ['membership', 'training', 'equipment', 'other'],
                'default': 'other',
                'help': 'Payment type (default: other)'
            },
            CLIOptionFactory.create_method_option(),
            {'name': '--description', 'help': 'Free-form description'},
            CLIOptionFactory.create_date_option(help_text='Payment day (default: today)')
        ],
        parent_command='payments'
    )
    def add_payment(ctx: CLIContext) -> int:
        args = ctx.args
        payment = asyncio.run(ctx.app.membership.record_payment(
            args.member_id, args.amount, args.type, args.method, _today(ctx), args.description
        ))
        if args.format == 'json':
            _print_json(asdict(payment))
        else:
            print(f"Recorded {payment.amount} OMR ({payment.type.value}) for member {payment.member_id}")
        return 0

    @staticmethod
    @CommandRegistry.register(
        name='summary',
        help_text='Payment count and totals per month, type and method',
        category=CommandCategory.PAYMENTS,
        parent_command='payments'
    )
    def payment_summary(ctx: CLIContext) -> int:
        rows = asyncio.run(ctx.app.persistence.get_payment_summary())
        _print_frame(ctx, "Payment Summary", ctx.app.reports.summary_rows_frame(rows))
        return 0

class ReportCommands:
    """Revenue and report command implementations."""

    @staticmethod
    @CommandRegistry.register(
        name='revenue',
        help_text='Dashboard figures: revenue totals and member counts',
        category=CommandCategory.REPORTS,
        options=[
            CLIOptionFactory.create_year_option(),
            CLIOptionFactory.create_month_option()
        ]
    )
    def revenue(ctx: CLIContext) -> int:
        today = date.today()
        year = ctx.args.year or today.year
        month = ctx.args.month or (today.month if year == today.year else 12)
        as_of = today if (year, month) == (today.year, today.month) else date(year, month, 1)

        async def load() -> tuple[list[Member], list[Payment]]:
            persistence = ctx.app.persistence
            return await asyncio.gather(persistence.get_members(), persistence.get_payments())

        members, payments = asyncio.run(load())
        stats = derivation.revenue_stats(members, payments, as_of, ctx.config.membership.expiring_window_days)

        if ctx.args.format == 'json':
            _print_json(stats)
        else:
            rows = [
                ["Total revenue", f"{stats.total_revenue} OMR"],
                [f"Revenue {year}-{month:02d}", f"{stats.monthly_revenue} OMR"],
                [f"Revenue {year}", f"{stats.yearly_revenue} OMR"],
                ["Average monthly revenue (12 months)", f"{stats.average_monthly_revenue:.2f} OMR"],
                ["Active members", stats.active_members],
                ["Expiring soon", stats.expiring_members],
                ["New members this month", stats.new_members_this_month],
            ]
            _print_table("Revenue", rows, ["Figure", "Value"])
        return 0

    @staticmethod
    @CommandRegistry.register(
        name='report',
        help_text='Monthly revenue, new members and renewals for a year',
        category=CommandCategory.REPORTS,
        options=[CLIOptionFactory.create_year_option(required=True)]
    )
    def report(ctx: CLIContext) -> int:
        async def load() -> tuple[list[Member], list[Payment]]:
            persistence = ctx.app.persistence
            return await asyncio.gather(persistence.get_members(), persistence.get_payments())

        members, payments = asyncio.run(load())
        reports = ctx.app.reports
        frame = reports.monthly_report(members, payments, ctx.args.year)
        totals = reports.yearly_totals(frame)

        if ctx.args.format == 'json':
            _print_json({'months': frame.to_dict(orient='records'), 'totals': totals})
            return 0
        _print_frame(ctx, f"Monthly Report {ctx.args.year}", frame)
        print(f"Total revenue: {totals['revenue']} OMR, average per month: {totals['average_monthly_revenue']:.2f} OMR")
        return 0

class SettingsCommands:
    """Settings command implementations."""

    @staticmethod
    @CommandRegistry.register(
        name='show',
        help_text='Show gym profile and membership prices',
        category=CommandCategory.SETTINGS,
        parent_command='settings'
    )
    def show_settings(ctx: CLIContext) -> int:
        settings = asyncio.run(ctx.app.persistence.get_settings())
        if ctx.args.format == 'json':
            _print_json({
                'gym_name': settings.gym_name,
                'address': settings.address,
                'phone': settings.phone,
                'email': settings.email,
                'membership_prices': {d.value: p for d, p in settings.membership_prices.items()},
            })
            return 0
        print(f"{settings.gym_name}\n{settings.address}\n{settings.phone}  {settings.email}")
        rows = [[d.label, f"{p} OMR"] for d, p in settings.membership_prices.items()]
        _print_table("Membership Prices", rows, ["Duration", "Price"])
        return 0

    @staticmethod
    @CommandRegistry.register(
        name='set-price',
        help_text='Change the price of a membership term',
        category=CommandCategory.SETTINGS,
        options=[
            CLIOptionFactory.create_duration_option(required=True),
            {'name': '--price', 'type': _price, 'required': True, 'help': 'New price in OMR'}
        ],
        parent_command='settings'
    )
    def set_price(ctx: CLIContext) -> int:
        persistence = ctx.app.persistence
        settings = asyncio.run(persistence.get_settings())
        asyncio.run(persistence.save_settings(settings.with_price(ctx.args.duration, ctx.args.price)))
        print(f"Price for {ctx.args.duration} set to {ctx.args.price} OMR")
        return 0

def create_parser() -> argparse.ArgumentParser:
    """Create argument parser from the registered commands."""
    builder = CLIBuilder(
        description='Gym membership ledger: members, payments and revenue'
    )

    for command in CommandRegistry.commands():
        builder.add_command(command)

    return builder.build()

def main(argv: Sequence[str] | None = None) -> int:
    """Main entry point for CLI."""
    parser = create_parser()
    args = parser.parse_args(argv)
    logger = get_logger(__name__)

    command = CommandRegistry.get_command(args.command_key)
    if not command:
        logger.error(f"Unknown command: {args.command}")
        return 1

    errors = ArgumentValidator.validate_args(args, command)
    if errors:
        for error in errors:
            print(error, file=sys.stderr)
        return 1

    try:
        config = ConfigurationManager(args.config_dir).load_config()
    except ConfigError as e:
        print(f"Configuration error: {e.message}", file=sys.stderr)
        return 1

    setup_logging(config.logging, verbose=args.verbose, log_file=args.log_file)

    app: GymLedgerApp | None = None
    try:
        app = create_app(config)
        ctx = CLIContext(args=args, logger=logger, config=config, parser=parser, app=app)
        return command.handler(ctx)
    except ValidationError as e:
        print(e.message, file=sys.stderr)
        for field, reason in e.fields.items():
            print(f"  {field}: {reason}", file=sys.stderr)
        return 1
    except (PersistenceError, MemberNotFoundError) as e:
        print(e.message, file=sys.stderr)
        return 1
    except GymLedgerError as e:
        logger.error(f"Command failed: {e}")
        return 1
    except Exception:
        logger.exception("Unhandled exception")
        return 1
    finally:
        if app is not None:
            app.close()

if __name__ == '__main__':
    sys.exit(main())
