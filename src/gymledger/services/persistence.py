"""
Persistence facade: the single entry point for reading and writing records.

Reads and writes try the primary store first and fall back to the local
cache on any failure. The two stores are never merged: a result comes
entirely from one of them. A successful primary write does not touch
the cache, so the stores may diverge; the next read picks whichever
store is reachable at that moment.
"""

import asyncio
from collections.abc import Callable
from typing import List, Optional, TypeVar

from gymledger.api.interfaces import PrimaryStore
from gymledger.config.error_aggregator import aggregate_error
from gymledger.exceptions import PersistenceError
from gymledger.models import DEFAULT_SETTINGS, GymSettings, Member, Payment
from gymledger.models.views import PaymentHistoryEntry, PaymentSummaryRow
from gymledger.services import derivation
from gymledger.services.cache.fallback_cache import FallbackCache
from gymledger.services.notification_service import Notifier
from gymledger.services.validation import validate_member, validate_payment, validate_settings
from gymledger.utils.logging_utils import EnhancedLoggerMixin

T = TypeVar('T')


class PersistenceFacade(EnhancedLoggerMixin):
    """Primary-then-fallback access to members, payments and settings.

    Args:
        primary: Remote store, or None when none is configured
        fallback: Local cache used whenever the primary store fails
        notifier: Receives a notice when a write lands only in the cache
    """

    def __init__(
        self,
        primary: Optional[PrimaryStore],
        fallback: FallbackCache,
        notifier: Optional[Notifier] = None,
    ):
        super().__init__()
        self.primary = primary
        self.fallback = fallback
        self.notifier = notifier

    async def _read(
        self,
        kind: str,
        operation: str,
        primary_call: Callable[[PrimaryStore], T],
        fallback_call: Callable[[], T],
    ) -> T:
        if self.primary is None:
            return fallback_call()
        try:
            return await asyncio.to_thread(primary_call, self.primary)
        except Exception as e:
            self.warning("Primary store read failed, serving from local cache", exc_info=e, kind=kind, operation=operation)
            aggregate_error(str(e), "persistence", e.__traceback__)
            return fallback_call()

    async def _write(
        self,
        kind: str,
        operation: str,
        primary_call: Callable[[PrimaryStore], None],
        fallback_call: Callable[[], None],
    ) -> None:
        if self.primary is not None:
            try:
                await asyncio.to_thread(primary_call, self.primary)
                self.debug("Saved to primary store", kind=kind, operation=operation)
                return
            except Exception as e:
                self.warning("Primary store write failed, saving to local cache", exc_info=e, kind=kind, operation=operation)
                aggregate_error(str(e), "persistence", e.__traceback__)
                fallback_call()
                if self.notifier is not None:
                    self.notifier.info("Saved offline", f"The {kind} was stored locally and is not in the main database yet")
                return

        fallback_call()

    # Members

    async def get_members(self) -> List[Member]:
        return await self._read("member", "list", lambda store: store.list_members(), self.fallback.list_members)

    async def get_member(self, member_id: str) -> Optional[Member]:
        return await self._read(
            "member", "get",
            lambda store: store.get_member(member_id),
            lambda: self.fallback.get_member(member_id),
        )

    async def save_member(self, member: Member) -> None:
        """Validate, then upsert into the primary store or, failing that, the cache.

        Raises:
            ValidationError: Member breaks a domain rule; neither store is touched
        """
        validate_member(member)
        await self._write(
            "member", "save",
            lambda store: store.upsert_member(member),
            lambda: self.fallback.upsert_member(member),
        )

    async def delete_member(self, member_id: str) -> None:
        """Delete in the primary store only.

        Raises:
            PersistenceError: Store missing or the delete failed; the cache is left untouched
        """
        if self.primary is None:
            raise PersistenceError("Cannot delete member: the main database is not configured", {"member_id": member_id})
        try:
            await asyncio.to_thread(self.primary.delete_member, member_id)
        except Exception as e:
            self.error("Member delete failed", exc_info=e, member_id=member_id)
            aggregate_error(str(e), "persistence", e.__traceback__)
            raise PersistenceError(
                "Cannot delete member: the main database is unreachable or rejected the request",
                {"member_id": member_id, "cause": str(e)}
            ) from e
        self.info("Member deleted", member_id=member_id)

    # Payments

    async def get_payments(self) -> List[Payment]:
        return await self._read("payment", "list", lambda store: store.list_payments(), self.fallback.list_payments)

    async def get_payment(self, payment_id: str) -> Optional[Payment]:
        return await self._read(
            "payment", "get",
            lambda store: store.get_payment(payment_id),
            lambda: self.fallback.get_payment(payment_id),
        )

    async def get_payments_by_member(self, member_id: str) -> List[Payment]:
        return await self._read(
            "payment", "list_by_member",
            lambda store: store.list_payments_by_member(member_id),
            lambda: self.fallback.list_payments_by_member(member_id),
        )

    async def save_payment(self, payment: Payment) -> None:
        validate_payment(payment)
        await self._write(
            "payment", "save",
            lambda store: store.upsert_payment(payment),
            lambda: self.fallback.upsert_payment(payment),
        )

    # Settings

    async def get_settings(self) -> GymSettings:
        """Stored settings, or the defaults when the serving store has none."""
        def from_primary(store: PrimaryStore) -> GymSettings:
            return store.get_settings() or DEFAULT_SETTINGS

        return await self._read("settings", "get", from_primary, self.fallback.read_settings)

    async def save_settings(self, settings: GymSettings) -> None:
        validate_settings(settings)
        await self._write(
            "settings", "save",
            lambda store: store.upsert_settings(settings),
            lambda: self.fallback.write_settings(settings),
        )

    # Views

    async def get_member_payment_history(self, member_number: str) -> List[PaymentHistoryEntry]:
        def local() -> List[PaymentHistoryEntry]:
            return derivation.member_payment_history(
                self.fallback.list_members(), self.fallback.list_payments(), member_number
            )

        return await self._read(
            "payment_history", "select",
            lambda store: store.member_payment_history(member_number),
            local,
        )

    async def get_payment_summary(self) -> List[PaymentSummaryRow]:
        return await self._read(
            "payment_summary", "select",
            lambda store: store.payment_summary(),
            lambda: derivation.payment_summary(self.fallback.list_payments()),
        )

    def close(self) -> None:
        if self.primary is not None:
            self.primary.close()

