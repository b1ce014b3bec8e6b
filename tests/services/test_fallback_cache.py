"""Tests for the local fallback cache."""

import json
from datetime import date
from decimal import Decimal

import pytest

from gymledger.models import DEFAULT_SETTINGS, GymSettings, RenewDuration
from gymledger.models.schema import to_record
from gymledger.services.cache.fallback_cache import FallbackCache, MemoryStorage, SQLiteStorage


class TestMembers:

    def test_empty_cache(self, cache):
        assert cache.list_members() == []
        assert cache.get_member("m-1") is None

    def test_upsert_appends_new_member(self, cache, member_factory):
        cache.upsert_member(member_factory(id="a"))
        cache.upsert_member(member_factory(id="b"))
        assert [m.id for m in cache.list_members()] == ["a", "b"]

    def test_upsert_replaces_in_place(self, cache, member_factory):
        cache.upsert_member(member_factory(id="a"))
        cache.upsert_member(member_factory(id="b"))
        cache.upsert_member(member_factory(id="a", first_name="Khalid"))

        members = cache.list_members()
        assert [m.id for m in members] == ["a", "b"]
        assert members[0].first_name == "Khalid"

    def test_upsert_twice_is_idempotent(self, cache, member):
        cache.upsert_member(member)
        cache.upsert_member(member)
        assert cache.list_members() == [member]

    def test_delete_member(self, cache, member_factory):
        cache.upsert_member(member_factory(id="a"))
        cache.upsert_member(member_factory(id="b"))
        cache.delete_member("a")
        assert [m.id for m in cache.list_members()] == ["b"]

    def test_delete_unknown_member_leaves_slot_alone(self, cache, storage, member):
        cache.upsert_member(member)
        before = storage.data["warriors_gym_members"]
        cache.delete_member("missing")
        assert storage.data["warriors_gym_members"] == before

    def test_records_use_camel_case_keys(self, cache, storage, member):
        cache.upsert_member(member)
        stored = json.loads(storage.data["warriors_gym_members"])
        assert stored[0]["memberNumber"] == "123456"
        assert stored[0]["expiryDate"] == "2024-02-15"
        assert stored[0]["membershipCost"] == 30


class TestPayments:

    def test_roundtrip_keeps_decimal_amount(self, cache, payment_factory):
        cache.upsert_payment(payment_factory(amount=Decimal("12.5")))
        assert cache.get_payment("p-1").amount == Decimal("12.5")

    def test_precise_amount_is_not_rounded(self, tmp_path, payment_factory):
        amount = Decimal("12345678.123456789012")
        db_path = str(tmp_path / "fallback.db")
        FallbackCache(SQLiteStorage(db_path)).upsert_payment(payment_factory(amount=amount))
        assert FallbackCache(SQLiteStorage(db_path)).get_payment("p-1").amount == amount

    def test_list_by_member(self, cache, payment_factory):
        cache.upsert_payment(payment_factory(id="p1", member_id="a"))
        cache.upsert_payment(payment_factory(id="p2", member_id="b"))
        cache.upsert_payment(payment_factory(id="p3", member_id="a"))
        assert [p.id for p in cache.list_payments_by_member("a")] == ["p1", "p3"]

    def test_delete_payment(self, cache, payment):
        cache.upsert_payment(payment)
        cache.delete_payment(payment.id)
        assert cache.list_payments() == []


class TestCorruptSlots:

    def test_unparseable_slot_reads_empty(self):
        cache = FallbackCache(MemoryStorage({"warriors_gym_members": "{not json"}))
        assert cache.list_members() == []

    def test_non_list_slot_reads_empty(self):
        cache = FallbackCache(MemoryStorage({"warriors_gym_payments": json.dumps({"id": "p-1"})}))
        assert cache.list_payments() == []

    def test_bad_records_are_skipped(self, member):
        records = [to_record(member), {"id": "broken"}, "not a record"]
        cache = FallbackCache(MemoryStorage({"warriors_gym_members": json.dumps(records)}))
        assert cache.list_members() == [member]

    def test_upsert_over_unparseable_slot(self, payment):
        storage = MemoryStorage({"warriors_gym_payments": "garbage"})
        cache = FallbackCache(storage)
        cache.upsert_payment(payment)
        assert cache.list_payments() == [payment]


class TestSettings:

    def test_defaults_when_missing(self, cache):
        assert cache.read_settings() == DEFAULT_SETTINGS

    def test_write_then_read(self, cache):
        settings = DEFAULT_SETTINGS.with_price(RenewDuration.MONTHLY, Decimal("35"))
        cache.write_settings(settings)
        assert cache.read_settings().price_for("monthly") == Decimal("35")

    def test_unreadable_settings_fall_back(self):
        cache = FallbackCache(MemoryStorage({"warriors_gym_settings": json.dumps({"gymName": "X"})}))
        assert cache.read_settings() == DEFAULT_SETTINGS

    def test_unknown_price_tiers_are_ignored(self):
        record = to_record(GymSettings())
        record["membershipPrices"]["weekly"] = 10
        cache = FallbackCache(MemoryStorage({"warriors_gym_settings": json.dumps(record)}))
        assert RenewDuration.MONTHLY in cache.read_settings().membership_prices


class TestUnavailableStorage:

    def test_reads_are_empty_and_writes_dropped(self, member, payment):
        cache = FallbackCache(None)
        assert not cache.available
        cache.upsert_member(member)
        cache.upsert_payment(payment)
        cache.write_settings(GymSettings(gym_name="Elsewhere"))

        assert cache.list_members() == []
        assert cache.list_payments() == []
        assert cache.read_settings() == DEFAULT_SETTINGS


def test_key_prefix(storage, member):
    cache = FallbackCache(storage, key_prefix="branch2")
    cache.upsert_member(member)
    assert "branch2_members" in storage.data
    assert "warriors_gym_members" not in storage.data


@pytest.mark.parametrize("raw,expected", [
    (None, 1),
    ("42", 42),
    ("0", 1),
    ("-3", 1),
    ("true", 1),
    ('"7"', 1),
])
def test_legacy_member_counter(raw, expected):
    initial = {} if raw is None else {"warriors_gym_next_member_id": raw}
    assert FallbackCache(MemoryStorage(initial)).legacy_member_counter() == expected


class TestSQLiteStorage:

    def test_persists_between_instances(self, tmp_path, member):
        db_path = str(tmp_path / "cache" / "fallback.db")
        FallbackCache(SQLiteStorage(db_path)).upsert_member(member)

        reopened = FallbackCache(SQLiteStorage(db_path))
        assert reopened.list_members() == [member]

    def test_get_set_delete(self, tmp_path):
        storage = SQLiteStorage(str(tmp_path / "fallback.db"))
        assert storage.get("k") is None
        storage.set("k", "v1")
        storage.set("k", "v2")
        assert storage.get("k") == "v2"
        storage.delete("k")
        assert storage.get("k") is None

    def test_unusable_path_reads_empty(self, tmp_path):
        blocker = tmp_path / "not-a-dir"
        blocker.write_text("")
        storage = SQLiteStorage(str(blocker / "fallback.db"))
        assert storage.get("k") is None
        storage.set("k", "v")
        assert storage.get("k") is None
