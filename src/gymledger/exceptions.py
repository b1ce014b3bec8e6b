"""Centralized error definitions for the gym ledger application."""

import logging
from collections.abc import Callable
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Any
from typing import TypeVar

import requests

from gymledger.config.error_aggregator import aggregate_error
from gymledger.error_codes import ErrorCode


logger = logging.getLogger(__name__)

T = TypeVar('T')

@dataclass
class GymLedgerError(Exception):
    """Base exception for all gym ledger errors."""
    message: str
    code: ErrorCode
    details: dict[str, Any] | None = None

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} (Code: {self.code.value}, Details: {self.details})"
        return f"{self.message} (Code: {self.code.value})"

class APIError(GymLedgerError):
    """Base class for API-related errors."""
    def __init__(
        self,
        message: str,
        code: ErrorCode = ErrorCode.REQUEST_FAILED,
        response: requests.Response | None = None,
        details: dict[str, Any] | None = None
    ):
        super().__init__(message, code, details)
        self.response = response

class APITimeoutError(APIError):
    """API timeout error."""
    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(message, ErrorCode.TIMEOUT, details=details)

class APIResponseError(APIError):
    """API response error."""
    def __init__(self, message: str, response: requests.Response | None = None):
        super().__init__(message, ErrorCode.INVALID_RESPONSE, response=response)
        self.status_code = response.status_code if response is not None else None

class APIValidationError(APIError):
    """API validation error."""
    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(message, ErrorCode.VALIDATION_FAILED, details=details)

class StoreError(GymLedgerError):
    """Primary store operation failed.

    Raised for every failure of the primary store client: transport,
    HTTP status, malformed payloads and schema mapping. The underlying
    exception is chained as ``__cause__``.
    """
    def __init__(
        self,
        message: str,
        code: ErrorCode = ErrorCode.STORE_UNAVAILABLE,
        table: str | None = None,
        operation: str | None = None,
        details: dict[str, Any] | None = None
    ):
        details = dict(details or {})
        if table:
            details["table"] = table
        if operation:
            details["operation"] = operation
        super().__init__(message, code, details or None)
        self.table = table
        self.operation = operation

class SchemaError(GymLedgerError):
    """A persisted record does not fit the domain schema."""
    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(message, ErrorCode.SCHEMA_MISMATCH, details)

class PersistenceError(GymLedgerError):
    """Write failed with no fallback path; shown to the user."""
    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(message, ErrorCode.STORE_WRITE_FAILED, details)

    @property
    def reason(self) -> str:
        """Single human-readable failure reason."""
        return self.message

class ConfigError(GymLedgerError):
    """Configuration error."""
    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(message, ErrorCode.CONFIG_INVALID, details)

class ValidationError(GymLedgerError):
    """Domain invariant violation, keyed by field name."""
    def __init__(self, message: str, fields: dict[str, str] | None = None):
        super().__init__(message, ErrorCode.VALIDATION_FAILED, {"fields": dict(fields or {})})

    @property
    def fields(self) -> dict[str, str]:
        """Mapping of offending field name to reason."""
        return self.details["fields"] if self.details else {}

class MemberNotFoundError(GymLedgerError):
    """Referenced member does not exist in the serving store."""
    def __init__(self, member_id: str):
        super().__init__(f"Member {member_id} not found", ErrorCode.MISSING_DATA, {"member_id": member_id})

@contextmanager
def handle_errors(
    error_type: type[Exception],
    service: str,
    operation: str,
    fallback: Callable[[], T] | None = None
) -> Iterator[None]:
    """Handle errors in a context manager.

    Args:
        error_type: The error type to catch
        service: The service name
        operation: The operation name
        fallback: Optional callable run instead of re-raising
    """
    try:
        yield
    except error_type as e:
        aggregate_error(str(e), service, e.__traceback__)

        if fallback:
            fallback()
            return
        raise
    except Exception as e:
        logger.error(
            f"Unexpected error in {service}.{operation}: {e}",
            exc_info=True
        )
        aggregate_error(str(e), service, e.__traceback__)

        if fallback:
            fallback()
            return
        raise
