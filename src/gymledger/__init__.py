"""
Gym membership ledger: persistence and derived membership facts.
"""

__version__ = '0.3.0'

from .exceptions import (
    APIError,
    APIResponseError,
    APITimeoutError,
    ConfigError,
    GymLedgerError,
    MemberNotFoundError,
    PersistenceError,
    SchemaError,
    StoreError,
    ValidationError,
)

__all__ = [
    'APIError',
    'APIResponseError',
    'APITimeoutError',
    'ConfigError',
    'GymLedgerError',
    'MemberNotFoundError',
    'PersistenceError',
    'SchemaError',
    'StoreError',
    'ValidationError'
]
