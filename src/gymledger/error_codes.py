"""Error codes for the gym ledger application."""

from enum import Enum

class ErrorCode(Enum):
    """Enumeration of all possible error codes."""
    # Authentication Errors
    AUTH_FAILED = "auth_failed"

    # API Errors
    REQUEST_FAILED = "request_failed"
    TIMEOUT = "timeout"
    SERVER_ERROR = "server_error"

    # Data Errors
    INVALID_RESPONSE = "invalid_response"
    MISSING_DATA = "missing_data"
    VALIDATION_FAILED = "validation_failed"

    # Configuration Errors
    CONFIG_INVALID = "config_invalid"
    CONFIG_MISSING = "config_missing"

    # Store Errors
    STORE_UNAVAILABLE = "store_unavailable"
    STORE_READ_FAILED = "store_read_failed"
    STORE_WRITE_FAILED = "store_write_failed"
    SCHEMA_MISMATCH = "schema_mismatch"
