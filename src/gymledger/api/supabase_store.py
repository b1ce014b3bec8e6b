"""
Primary store client speaking the PostgREST protocol of a hosted Supabase project.

Tables: ``members``, ``payments`` and ``settings``; read-only views
``member_payment_history`` and ``payment_summary``. Rows are snake_case
and mapped through :mod:`gymledger.models.schema`.
"""

from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

from gymledger.api.base_api import BaseAPI
from gymledger.api.interfaces import PrimaryStore
from gymledger.config.types import StoreConfig
from gymledger.error_codes import ErrorCode
from gymledger.exceptions import APIError
from gymledger.exceptions import SchemaError
from gymledger.exceptions import StoreError
from gymledger.models import GymSettings
from gymledger.models import Member
from gymledger.models import Payment
from gymledger.models.schema import from_wire
from gymledger.models.schema import to_wire
from gymledger.models.views import PaymentHistoryEntry
from gymledger.models.views import PaymentSummaryRow


MEMBERS_TABLE = "members"
PAYMENTS_TABLE = "payments"
SETTINGS_TABLE = "settings"
HISTORY_VIEW = "member_payment_history"
SUMMARY_VIEW = "payment_summary"


@contextmanager
def _store_operation(table: str, operation: str, code: ErrorCode) -> Iterator[None]:
    """Translate client and mapping failures into StoreError."""
    try:
        yield
    except StoreError:
        raise
    except SchemaError as e:
        raise StoreError(
            f"{table}.{operation}: unexpected row shape: {e.message}",
            ErrorCode.SCHEMA_MISMATCH, table=table, operation=operation
        ) from e
    except APIError as e:
        raise StoreError(f"{table}.{operation} failed: {e.message}", code, table=table, operation=operation) from e


class TableClient:
    """Row operations on one PostgREST table, keyed by ``id``."""

    def __init__(self, api: BaseAPI, table: str, order: str):
        self.api = api
        self.table = table
        self.order = order

    def select(self, filters: dict[str, str] | None = None, limit: int | None = None) -> list[dict[str, Any]]:
        params = {"select": "*", "order": self.order}
        if filters:
            params.update(filters)
        if limit is not None:
            params["limit"] = str(limit)
        rows = self.api._make_request("GET", self.table, params=params)
        if rows is None:
            return []
        if not isinstance(rows, list):
            raise StoreError(
                f"{self.table}: expected a list of rows, got {type(rows).__name__}",
                ErrorCode.INVALID_RESPONSE, table=self.table, operation="select"
            )
        return rows

    def get_by_id(self, row_id: str) -> dict[str, Any] | None:
        rows = self.select({"id": f"eq.{row_id}"}, limit=1)
        return rows[0] if rows else None

    def exists(self, row_id: str) -> bool:
        rows = self.api._make_request("GET", self.table, params={"id": f"eq.{row_id}", "select": "id"})
        return bool(rows)

    def upsert(self, row: dict[str, Any]) -> None:
        """Probe by id, then update or insert.

        Probe and write are two requests; a concurrent insert of the same
        id in between makes the insert fail with a conflict, which is
        reported like any other failed write.
        """
        row_id = row["id"]
        if self.exists(row_id):
            update = {key: value for key, value in row.items() if key != "id"}
            self.api._make_request("PATCH", self.table, params={"id": f"eq.{row_id}"}, data=update)
        else:
            self.api._make_request("POST", self.table, data=row)

    def delete(self, row_id: str) -> None:
        self.api._make_request("DELETE", self.table, params={"id": f"eq.{row_id}"})


class SupabaseStore(PrimaryStore):
    """PostgREST-backed primary store."""

    def __init__(self, config: StoreConfig, api: BaseAPI | None = None):
        if not config.configured:
            raise StoreError("Primary store URL and API key are required", ErrorCode.CONFIG_MISSING)

        self.config = config
        self.api = api or BaseAPI(
            f"{config.url.rstrip('/')}/rest/v1",
            headers=self._headers(config),
            timeout=config.timeout,
        )
        self.members = TableClient(self.api, MEMBERS_TABLE, "created_at.desc")
        self.payments = TableClient(self.api, PAYMENTS_TABLE, "date.desc")
        self.settings = TableClient(self.api, SETTINGS_TABLE, "id.asc")

    @staticmethod
    def _headers(config: StoreConfig) -> dict[str, str]:
        headers = {
            "apikey": config.api_key,
            "Authorization": f"Bearer {config.api_key}",
            "Content-Type": "application/json",
            "Prefer": "return=minimal",
        }
        if config.schema != "public":
            headers["Accept-Profile"] = config.schema
            headers["Content-Profile"] = config.schema
        return headers

    def close(self) -> None:
        self.api.close()

    # Members

    def list_members(self) -> list[Member]:
        with _store_operation(MEMBERS_TABLE, "list", ErrorCode.STORE_READ_FAILED):
            return [from_wire(Member, row) for row in self.members.select()]

    def get_member(self, member_id: str) -> Member | None:
        with _store_operation(MEMBERS_TABLE, "get", ErrorCode.STORE_READ_FAILED):
            row = self.members.get_by_id(member_id)
            return from_wire(Member, row) if row else None

    def upsert_member(self, member: Member) -> None:
        with _store_operation(MEMBERS_TABLE, "upsert", ErrorCode.STORE_WRITE_FAILED):
            self.members.upsert(to_wire(member))

    def delete_member(self, member_id: str) -> None:
        with _store_operation(MEMBERS_TABLE, "delete", ErrorCode.STORE_WRITE_FAILED):
            self.members.delete(member_id)

    # Payments

    def list_payments(self) -> list[Payment]:
        with _store_operation(PAYMENTS_TABLE, "list", ErrorCode.STORE_READ_FAILED):
            return [from_wire(Payment, row) for row in self.payments.select()]

    def get_payment(self, payment_id: str) -> Payment | None:
        with _store_operation(PAYMENTS_TABLE, "get", ErrorCode.STORE_READ_FAILED):
            row = self.payments.get_by_id(payment_id)
            return from_wire(Payment, row) if row else None

    def list_payments_by_member(self, member_id: str) -> list[Payment]:
        with _store_operation(PAYMENTS_TABLE, "list_by_member", ErrorCode.STORE_READ_FAILED):
            rows = self.payments.select({"member_id": f"eq.{member_id}"})
            return [from_wire(Payment, row) for row in rows]

    def upsert_payment(self, payment: Payment) -> None:
        with _store_operation(PAYMENTS_TABLE, "upsert", ErrorCode.STORE_WRITE_FAILED):
            self.payments.upsert(to_wire(payment))

    # Settings

    def get_settings(self) -> GymSettings | None:
        with _store_operation(SETTINGS_TABLE, "get", ErrorCode.STORE_READ_FAILED):
            rows = self.settings.select(limit=1)
            return from_wire(GymSettings, rows[0]) if rows else None

    def upsert_settings(self, settings: GymSettings) -> None:
        """Update the first settings row, or insert one when the table is empty."""
        with _store_operation(SETTINGS_TABLE, "upsert", ErrorCode.STORE_WRITE_FAILED):
            row = to_wire(settings)
            existing = self.api._make_request("GET", SETTINGS_TABLE, params={"select": "id", "limit": "1"})
            if existing:
                self.api._make_request("PATCH", SETTINGS_TABLE, params={"id": f"eq.{existing[0]['id']}"}, data=row)
            else:
                self.api._make_request("POST", SETTINGS_TABLE, data=row)

    # Views

    def member_payment_history(self, member_number: str) -> list[PaymentHistoryEntry]:
        with _store_operation(HISTORY_VIEW, "select", ErrorCode.STORE_READ_FAILED):
            rows = self.api._make_request(
                "GET", HISTORY_VIEW,
                params={"select": "*", "member_number": f"eq.{member_number}", "order": "date.desc"}
            )
            return [self._view_row(PaymentHistoryEntry, row) for row in rows or []]

    def payment_summary(self) -> list[PaymentSummaryRow]:
        with _store_operation(SUMMARY_VIEW, "select", ErrorCode.STORE_READ_FAILED):
            rows = self.api._make_request("GET", SUMMARY_VIEW, params={"select": "*", "order": "month.desc"})
            return [self._view_row(PaymentSummaryRow, row) for row in rows or []]

    @staticmethod
    def _view_row(model: Any, row: dict[str, Any]) -> Any:
        try:
            return model.from_row(row)
        except (KeyError, TypeError, ValueError) as e:
            raise SchemaError(f"Malformed {model.__name__} row: {e}") from e
