from abc import ABC, abstractmethod

from gymledger.models import GymSettings, Member, Payment
from gymledger.models.views import PaymentHistoryEntry, PaymentSummaryRow


class PrimaryStore(ABC):
    """Interface of the remote, authoritative store.

    Every method either returns domain objects or raises
    :class:`gymledger.exceptions.StoreError`.
    """

    @abstractmethod
    def list_members(self) -> list[Member]:
        """All members, newest first."""

    @abstractmethod
    def get_member(self, member_id: str) -> Member | None:
        """Member by id, None when absent."""

    @abstractmethod
    def upsert_member(self, member: Member) -> None:
        """Update when a row with the id exists, insert otherwise."""

    @abstractmethod
    def delete_member(self, member_id: str) -> None:
        """Hard delete; payments referencing the member are left alone."""

    @abstractmethod
    def list_payments(self) -> list[Payment]:
        """All payments, most recent date first."""

    @abstractmethod
    def get_payment(self, payment_id: str) -> Payment | None:
        """Payment by id, None when absent."""

    @abstractmethod
    def list_payments_by_member(self, member_id: str) -> list[Payment]:
        """Payments referencing ``member_id``, most recent first."""

    @abstractmethod
    def upsert_payment(self, payment: Payment) -> None:
        """Update when a row with the id exists, insert otherwise."""

    @abstractmethod
    def get_settings(self) -> GymSettings | None:
        """The settings row, None when none has been saved yet."""

    @abstractmethod
    def upsert_settings(self, settings: GymSettings) -> None:
        """Update the single settings row or insert it."""

    @abstractmethod
    def member_payment_history(self, member_number: str) -> list[PaymentHistoryEntry]:
        """Rows of the per-member payment history view."""

    @abstractmethod
    def payment_summary(self) -> list[PaymentSummaryRow]:
        """Rows of the per-month/type/method payment summary view."""

    def close(self) -> None:
        """Release network resources."""
