"""Local fallback store for members, payments and settings."""

import json
import os
import sqlite3
import threading
from datetime import datetime
from typing import Any, Dict, List, Optional, Protocol, Type, TypeVar

from gymledger.exceptions import SchemaError, handle_errors
from gymledger.models import DEFAULT_SETTINGS, GymSettings, Member, Payment
from gymledger.models.schema import from_record, to_record
from gymledger.utils.logging_utils import LoggerMixin

T = TypeVar('T', Member, Payment)

MEMBERS_SLOT = "members"
PAYMENTS_SLOT = "payments"
SETTINGS_SLOT = "settings"
COUNTER_SLOT = "next_member_id"


class KeyValueStorage(Protocol):
    """Minimal string key/value storage the fallback cache runs on."""

    def get(self, key: str) -> Optional[str]:
        ...

    def set(self, key: str, value: str) -> None:
        ...

    def delete(self, key: str) -> None:
        ...


class SQLiteStorage(LoggerMixin):
    """Key/value table in a local SQLite file; failures are logged, never raised."""

    def __init__(self, db_path: str):
        """Initialize storage.

        Args:
            db_path: Path to SQLite database file
        """
        super().__init__()
        self.db_path = db_path
        with handle_errors(sqlite3.Error, "fallback_cache", "init", lambda: self.error("Failed to initialize fallback cache database", path=db_path)):
            self._init_db()

    def _init_db(self) -> None:
        """Initialize database tables."""
        directory = os.path.dirname(self.db_path)
        if directory:
            os.makedirs(directory, exist_ok=True)
        with sqlite3.connect(self.db_path) as conn:
            conn.execute("""
                CREATE TABLE IF NOT EXISTS fallback_store (
                    key TEXT PRIMARY KEY,
                    value TEXT NOT NULL,
                    updated_at TIMESTAMP NOT NULL
                )
            """)
            conn.commit()

    def get(self, key: str) -> Optional[str]:
        try:
            with sqlite3.connect(self.db_path) as conn:
                row = conn.execute("SELECT value FROM fallback_store WHERE key = ?", (key,)).fetchone()
                return row[0] if row else None
        except sqlite3.Error as e:
            self.error(f"Error reading fallback slot: {str(e)}", key=key)
            return None

    def set(self, key: str, value: str) -> None:
        try:
            with sqlite3.connect(self.db_path) as conn:
                conn.execute(
                    "INSERT OR REPLACE INTO fallback_store (key, value, updated_at) VALUES (?, ?, ?)",
                    (key, value, datetime.now().isoformat())
                )
                conn.commit()
        except sqlite3.Error as e:
            self.error(f"Error writing fallback slot: {str(e)}", key=key)

    def delete(self, key: str) -> None:
        try:
            with sqlite3.connect(self.db_path) as conn:
                conn.execute("DELETE FROM fallback_store WHERE key = ?", (key,))
                conn.commit()
        except sqlite3.Error as e:
            self.error(f"Error deleting fallback slot: {str(e)}", key=key)


class MemoryStorage:
    """In-process storage, used by tests and short-lived runs."""

    def __init__(self, initial: Optional[Dict[str, str]] = None):
        self.data: Dict[str, str] = dict(initial or {})

    def get(self, key: str) -> Optional[str]:
        return self.data.get(key)

    def set(self, key: str, value: str) -> None:
        self.data[key] = value

    def delete(self, key: str) -> None:
        self.data.pop(key, None)


class FallbackCache(LoggerMixin):
    """Synchronous local copy of the three entity kinds.

    Every slot holds one JSON document. A missing, unparseable or
    mistyped slot reads as the empty value; individual records that do
    not decode are skipped. With ``storage=None`` the cache is
    unavailable: reads return empty values and writes are dropped.
    """

    def __init__(self, storage: Optional[KeyValueStorage], key_prefix: str = "warriors_gym"):
        super().__init__()
        self.storage = storage
        self.key_prefix = key_prefix
        self._lock = threading.Lock()

    @property
    def available(self) -> bool:
        return self.storage is not None

    def _key(self, slot: str) -> str:
        return f"{self.key_prefix}_{slot}"

    def _read_slot(self, slot: str) -> Any:
        if self.storage is None:
            return None
        raw = self.storage.get(self._key(slot))
        if raw is None:
            return None
        try:
            return json.loads(raw)
        except (TypeError, ValueError):
            self.warning("Ignoring unparseable fallback slot", slot=slot)
            return None

    def _write_slot(self, slot: str, value: Any) -> None:
        if self.storage is None:
            self.debug("Fallback cache unavailable, dropping write", slot=slot)
            return
        self.storage.set(self._key(slot), json.dumps(value))

    def _read_records(self, slot: str) -> List[Dict[str, Any]]:
        data = self._read_slot(slot)
        if not isinstance(data, list):
            return []
        return [record for record in data if isinstance(record, dict)]

    def _decode_all(self, model: Type[T], slot: str) -> List[T]:
        entities: List[T] = []
        for record in self._read_records(slot):
            try:
                entities.append(from_record(model, record))
            except SchemaError as e:
                self.warning(f"Skipping unreadable {model.__name__} record", exc_info=e, id=record.get('id'))
        return entities

    def _upsert(self, slot: str, entity: Any) -> None:
        record = to_record(entity)
        with self._lock:
            records = self._read_records(slot)
            for index, existing in enumerate(records):
                if existing.get('id') == record['id']:
                    records[index] = record
                    break
            else:
                records.append(record)
            self._write_slot(slot, records)

    def _delete(self, slot: str, entity_id: str) -> None:
        with self._lock:
            records = self._read_records(slot)
            kept = [record for record in records if record.get('id') != entity_id]
            if len(kept) != len(records):
                self._write_slot(slot, kept)

    # Members

    def list_members(self) -> List[Member]:
        return self._decode_all(Member, MEMBERS_SLOT)

    def get_member(self, member_id: str) -> Optional[Member]:
        return next((m for m in self.list_members() if m.id == member_id), None)

    def upsert_member(self, member: Member) -> None:
        self._upsert(MEMBERS_SLOT, member)

    def delete_member(self, member_id: str) -> None:
        self._delete(MEMBERS_SLOT, member_id)

    # Payments

    def list_payments(self) -> List[Payment]:
        return self._decode_all(Payment, PAYMENTS_SLOT)

    def get_payment(self, payment_id: str) -> Optional[Payment]:
        return next((p for p in self.list_payments() if p.id == payment_id), None)

    def list_payments_by_member(self, member_id: str) -> List[Payment]:
        return [p for p in self.list_payments() if p.member_id == member_id]

    def upsert_payment(self, payment: Payment) -> None:
        self._upsert(PAYMENTS_SLOT, payment)

    def delete_payment(self, payment_id: str) -> None:
        self._delete(PAYMENTS_SLOT, payment_id)

    # Settings

    def read_settings(self) -> GymSettings:
        data = self._read_slot(SETTINGS_SLOT)
        if not isinstance(data, dict):
            return DEFAULT_SETTINGS
        try:
            return from_record(GymSettings, data)
        except SchemaError as e:
            self.warning("Ignoring unreadable settings record", exc_info=e)
            return DEFAULT_SETTINGS

    def write_settings(self, settings: GymSettings) -> None:
        with self._lock:
            self._write_slot(SETTINGS_SLOT, to_record(settings))

    def legacy_member_counter(self) -> int:
        """Value of the retired sequential member-number counter, 1 when unset."""
        data = self._read_slot(COUNTER_SLOT)
        if isinstance(data, int) and not isinstance(data, bool) and data > 0:
            return data
        return 1
