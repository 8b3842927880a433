"""Key-value store tests: CRUD, index queries, transactions, call policy."""

import asyncio
from contextlib import asynccontextmanager
from decimal import Decimal

import pytest
from sqlalchemy.exc import OperationalError

from clubhouse.core.database import async_session_factory
from clubhouse.core.errors import ConditionFailedError, TransientStoreError
from clubhouse.core.store import KeyValueStore, Put, VersionGuard


class FlakySessionFactory:
    """Session factory that fails the first `failures` calls like a dropped connection."""

    def __init__(self, failures: int):
        self.failures = failures
        self.calls = 0

    def __call__(self):
        self.calls += 1
        if self.calls <= self.failures:
            raise OperationalError("SELECT 1", {}, ConnectionResetError("connection reset by peer"))
        return async_session_factory()


@asynccontextmanager
async def _hanging_session():
    await asyncio.sleep(1)
    yield None


# ---------------------------------------------------------------------------
# Basic operations
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_put_get_roundtrip(store):
    await store.put({"pk": "A", "sk": "1", "name": "alpha", "rate": Decimal("12.50"), "tags": ["x"]})
    item = await store.get("A", "1")
    assert item["name"] == "alpha"
    assert item["tags"] == ["x"]
    assert Decimal(item["rate"]) == Decimal("12.50")
    assert await store.get("A", "2") is None


@pytest.mark.asyncio
async def test_put_replaces_whole_item(store):
    await store.put({"pk": "A", "sk": "1", "name": "alpha", "colour": "red"})
    await store.put({"pk": "A", "sk": "1", "name": "beta"})
    item = await store.get("A", "1")
    assert item["name"] == "beta"
    assert "colour" not in item


@pytest.mark.asyncio
async def test_update_merges_attributes(store):
    await store.put({"pk": "A", "sk": "1", "name": "alpha", "colour": "red"})
    updated = await store.update("A", "1", {"colour": "blue", "gsi1pk": "COLOURS"})
    assert updated["name"] == "alpha"
    assert updated["colour"] == "blue"
    assert (await store.query_index("GSI1", "COLOURS"))[0]["sk"] == "1"


@pytest.mark.asyncio
async def test_update_missing_item(store):
    assert await store.update("A", "missing", {"colour": "blue"}) is None


@pytest.mark.asyncio
async def test_update_rejects_primary_key_change(store):
    await store.put({"pk": "A", "sk": "1"})
    with pytest.raises(ValueError):
        await store.update("A", "1", {"sk": "2"})


@pytest.mark.asyncio
async def test_delete(store):
    await store.put({"pk": "A", "sk": "1"})
    await store.delete("A", "1")
    assert await store.get("A", "1") is None
    await store.delete("A", "1")  # deleting an absent item is a no-op


@pytest.mark.asyncio
async def test_query_by_prefix_is_ordered(store):
    for sk in ["SCHEDULE#2026-03-02", "BOOKING#2", "SCHEDULE#2026-03-01", "BOOKING#1"]:
        await store.put({"pk": "COURT#1", "sk": sk})
    await store.put({"pk": "COURT#2", "sk": "SCHEDULE#2026-03-01"})

    items = await store.query("COURT#1", "SCHEDULE#")
    assert [i["sk"] for i in items] == ["SCHEDULE#2026-03-01", "SCHEDULE#2026-03-02"]
    assert len(await store.query("COURT#1")) == 4


@pytest.mark.asyncio
async def test_query_prefix_matches_literally(store):
    await store.put({"pk": "P", "sk": "A_1"})
    await store.put({"pk": "P", "sk": "AB1"})
    assert [i["sk"] for i in await store.query("P", "A_")] == ["A_1"]


@pytest.mark.asyncio
async def test_query_index(store):
    await store.put({"pk": "B#2", "sk": "B#2", "gsi2pk": "COURT#1", "gsi2sk": "BOOKING#2026-03-15#10:00"})
    await store.put({"pk": "B#1", "sk": "B#1", "gsi2pk": "COURT#1", "gsi2sk": "BOOKING#2026-03-15#09:00"})
    await store.put({"pk": "B#3", "sk": "B#3", "gsi2pk": "COURT#1", "gsi2sk": "BOOKING#2026-03-16#09:00"})
    await store.put({"pk": "B#4", "sk": "B#4", "gsi2pk": "COURT#2", "gsi2sk": "BOOKING#2026-03-15#09:00"})

    items = await store.query_index("GSI2", "COURT#1", "BOOKING#2026-03-15")
    assert [i["pk"] for i in items] == ["B#1", "B#2"]


@pytest.mark.asyncio
async def test_query_unknown_index(store):
    with pytest.raises(ValueError):
        await store.query_index("GSI9", "X")


@pytest.mark.asyncio
async def test_scan_with_filters(store):
    await store.put({"pk": "U#1", "sk": "U#1", "role": "admin"})
    await store.put({"pk": "U#2", "sk": "U#2", "role": "member"})
    await store.put({"pk": "U#3", "sk": "U#3", "role": "member"})
    assert len(await store.scan()) == 3
    assert {i["pk"] for i in await store.scan({"role": "member"})} == {"U#2", "U#3"}


# ---------------------------------------------------------------------------
# Transactions
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_transact_write_if_absent(store):
    await store.transact_write([Put({"pk": "E", "sk": "E", "owner": "first"}, if_absent=True)])
    with pytest.raises(ConditionFailedError):
        await store.transact_write([Put({"pk": "E", "sk": "E", "owner": "second"}, if_absent=True)])
    assert (await store.get("E", "E"))["owner"] == "first"


@pytest.mark.asyncio
async def test_transact_write_is_all_or_nothing(store):
    await store.put({"pk": "E", "sk": "E"})
    with pytest.raises(ConditionFailedError):
        await store.transact_write(
            [
                Put({"pk": "NEW", "sk": "NEW"}),
                Put({"pk": "E", "sk": "E"}, if_absent=True),
            ]
        )
    assert await store.get("NEW", "NEW") is None


@pytest.mark.asyncio
async def test_version_guard_creates_then_bumps(store):
    await store.transact_write([VersionGuard("S", "S", expected_version=0, attributes={"court_id": "c1"})])
    item = await store.get("S", "S")
    assert item["version"] == 1
    assert item["court_id"] == "c1"

    await store.transact_write([VersionGuard("S", "S", expected_version=1)])
    assert (await store.get("S", "S"))["version"] == 2


@pytest.mark.asyncio
async def test_stale_version_guard_rejects_transaction(store):
    await store.transact_write([VersionGuard("S", "S", expected_version=0)])
    await store.transact_write([VersionGuard("S", "S", expected_version=1)])

    with pytest.raises(ConditionFailedError):
        await store.transact_write([VersionGuard("S", "S", expected_version=1), Put({"pk": "B", "sk": "B"})])
    with pytest.raises(ConditionFailedError):
        await store.transact_write([VersionGuard("S", "S", expected_version=0), Put({"pk": "B", "sk": "B"})])

    assert await store.get("B", "B") is None
    assert (await store.get("S", "S"))["version"] == 2


# ---------------------------------------------------------------------------
# Call policy
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_reads_retry_transient_failures(store):
    await store.put({"pk": "A", "sk": "1", "name": "alpha"})
    factory = FlakySessionFactory(failures=2)
    flaky = KeyValueStore(session_factory=factory, read_attempts=3, retry_base_delay=0)

    assert (await flaky.get("A", "1"))["name"] == "alpha"
    assert factory.calls == 3


@pytest.mark.asyncio
async def test_reads_give_up_after_attempts(store):
    factory = FlakySessionFactory(failures=5)
    flaky = KeyValueStore(session_factory=factory, read_attempts=3, retry_base_delay=0)

    with pytest.raises(TransientStoreError):
        await flaky.query("A")
    assert factory.calls == 3


@pytest.mark.asyncio
async def test_writes_are_not_retried(store):
    factory = FlakySessionFactory(failures=1)
    flaky = KeyValueStore(session_factory=factory, read_attempts=3, retry_base_delay=0)

    with pytest.raises(TransientStoreError):
        await flaky.put({"pk": "A", "sk": "1"})
    assert factory.calls == 1
    assert await store.get("A", "1") is None


@pytest.mark.asyncio
async def test_calls_time_out():
    slow = KeyValueStore(session_factory=_hanging_session, timeout=0.05, read_attempts=1)
    with pytest.raises(TransientStoreError, match="timed out"):
        await slow.get("A", "1")
