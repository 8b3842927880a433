"""Key-value data access over the single `items` table.

The store speaks in plain dicts. Key attributes (pk, sk, gsi1pk, gsi1sk,
gsi2pk, gsi2sk, version) map to indexed columns; every other attribute is
kept in the JSON data column.

Call policy:
- every call is bounded by settings.store_timeout_seconds;
- reads are retried with exponential backoff on transient failures;
- writes are attempted exactly once, so an ambiguous failure can never turn
  into a duplicate insert;
- conditional writes go through transact_write, which applies all of its
  operations or none of them.
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable, Iterable
from dataclasses import dataclass, field
from typing import TypeVar

from sqlalchemy import delete, select, update
from sqlalchemy.exc import IntegrityError, InterfaceError, OperationalError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from clubhouse.core.config import settings
from clubhouse.core.database import async_session_factory
from clubhouse.core.errors import ConditionFailedError, TransientStoreError
from clubhouse.models.item import INDEXES, KEY_ATTRIBUTES, Item

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class Put:
    """Write a whole item. With if_absent, fail the transaction when the primary key already exists."""

    item: dict
    if_absent: bool = False


@dataclass(frozen=True)
class VersionGuard:
    """Bump an item's version only if it still equals expected_version.

    expected_version == 0 means "the item must not exist yet"; it is then
    created with version 1 and the given attributes.
    """

    pk: str
    sk: str
    expected_version: int
    attributes: dict = field(default_factory=dict)


class KeyValueStore:
    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession] = async_session_factory,
        timeout: float | None = None,
        read_attempts: int | None = None,
        retry_base_delay: float | None = None,
    ):
        self.session_factory = session_factory
        self.timeout = timeout if timeout is not None else settings.store_timeout_seconds
        self.read_attempts = max(1, read_attempts if read_attempts is not None else settings.store_read_attempts)
        self.retry_base_delay = (
            retry_base_delay if retry_base_delay is not None else settings.store_retry_base_delay
        )

    # ------------------------------------------------------------------
    # Call policy
    # ------------------------------------------------------------------

    async def _call(self, op_name: str, fn: Callable[[], Awaitable[T]]) -> T:
        """Run one store operation under the timeout, mapping driver errors to domain errors."""
        try:
            return await asyncio.wait_for(fn(), timeout=self.timeout)
        except TimeoutError:
            raise TransientStoreError(f"Store {op_name} timed out after {self.timeout}s") from None
        except IntegrityError as exc:
            raise ConditionFailedError(f"Store {op_name}: conditional write rejected") from exc
        except (OperationalError, InterfaceError) as exc:
            raise TransientStoreError(f"Store {op_name} failed: {exc.orig or exc}") from exc

    async def _read(self, op_name: str, fn: Callable[[], Awaitable[T]]) -> T:
        for attempt in range(self.read_attempts):
            try:
                return await self._call(op_name, fn)
            except TransientStoreError as exc:
                if attempt < self.read_attempts - 1:
                    delay = self.retry_base_delay * 2**attempt
                    logger.warning(
                        "Store %s attempt %s/%s failed: %s; retrying in %.2fs",
                        op_name,
                        attempt + 1,
                        self.read_attempts,
                        exc,
                        delay,
                    )
                    await asyncio.sleep(delay)
                else:
                    logger.error("Store %s failed after %s attempts: %s", op_name, self.read_attempts, exc)
                    raise
        raise AssertionError("unreachable")

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    async def get(self, pk: str, sk: str) -> dict | None:
        async def _get():
            async with self.session_factory() as session:
                row = await session.get(Item, (pk, sk))
                return row.to_dict() if row else None

        return await self._read("get", _get)

    async def query(self, pk: str, sk_prefix: str | None = None) -> list[dict]:
        """Primary-key range query, ordered by sort key."""
        stmt = select(Item).where(Item.pk == pk)
        if sk_prefix:
            stmt = stmt.where(Item.sk.startswith(sk_prefix, autoescape=True))
        stmt = stmt.order_by(Item.sk)
        return await self._read("query", lambda: self._fetch_all(stmt))

    async def query_index(self, index_name: str, pk: str, sk_prefix: str | None = None) -> list[dict]:
        """Secondary-index range query, ordered by the index sort key."""
        try:
            pk_attr, sk_attr = INDEXES[index_name]
        except KeyError:
            raise ValueError(f"Unknown index {index_name!r}") from None

        pk_col = getattr(Item, pk_attr)
        sk_col = getattr(Item, sk_attr)
        stmt = select(Item).where(pk_col == pk)
        if sk_prefix:
            stmt = stmt.where(sk_col.startswith(sk_prefix, autoescape=True))
        stmt = stmt.order_by(sk_col)
        return await self._read(f"query_index[{index_name}]", lambda: self._fetch_all(stmt))

    async def scan(self, filters: dict | None = None) -> list[dict]:
        """Full-table scan with attribute-equality filters. Expensive; not for request paths."""
        filters = filters or {}
        items = await self._read("scan", lambda: self._fetch_all(select(Item)))
        return [item for item in items if all(item.get(k) == v for k, v in filters.items())]

    async def _fetch_all(self, stmt) -> list[dict]:
        async with self.session_factory() as session:
            result = await session.execute(stmt)
            return [row.to_dict() for row in result.scalars().all()]

    # ------------------------------------------------------------------
    # Writes (never retried)
    # ------------------------------------------------------------------

    async def put(self, item: dict) -> dict:
        """Unconditional upsert of a whole item."""

        async def _put():
            async with self.session_factory() as session:
                await session.merge(Item.from_dict(item))
                await session.commit()
            return item

        return await self._call("put", _put)

    async def update(self, pk: str, sk: str, updates: dict) -> dict | None:
        """Merge attributes into an existing item. Returns the updated item, or None if absent."""

        async def _update():
            async with self.session_factory() as session:
                row = await session.get(Item, (pk, sk), with_for_update=True)
                if row is None:
                    return None
                data = dict(row.data or {})
                for attr, value in updates.items():
                    if attr in ("pk", "sk"):
                        raise ValueError("Primary key attributes cannot be updated")
                    if attr in KEY_ATTRIBUTES:
                        setattr(row, attr, value)
                    else:
                        data[attr] = value
                row.data = data
                await session.commit()
                return row.to_dict()

        return await self._call("update", _update)

    async def delete(self, pk: str, sk: str) -> None:
        async def _delete():
            async with self.session_factory() as session:
                await session.execute(delete(Item).where(Item.pk == pk, Item.sk == sk))
                await session.commit()

        await self._call("delete", _delete)

    async def transact_write(self, operations: Iterable[Put | VersionGuard]) -> None:
        """Apply all operations atomically. Raises ConditionFailedError if any condition fails."""
        operations = list(operations)

        async def _transact():
            async with self.session_factory() as session:
                async with session.begin():
                    for op in operations:
                        if isinstance(op, Put):
                            await self._apply_put(session, op)
                        elif isinstance(op, VersionGuard):
                            await self._apply_version_guard(session, op)
                        else:
                            raise TypeError(f"Unsupported operation {op!r}")

        await self._call("transact_write", _transact)

    @staticmethod
    async def _apply_put(session: AsyncSession, op: Put) -> None:
        if op.if_absent:
            # Plain INSERT: the primary key constraint rejects an existing item
            session.add(Item.from_dict(op.item))
            await session.flush()
        else:
            await session.merge(Item.from_dict(op.item))

    @staticmethod
    async def _apply_version_guard(session: AsyncSession, op: VersionGuard) -> None:
        if op.expected_version == 0:
            session.add(Item(pk=op.pk, sk=op.sk, version=1, data=dict(op.attributes)))
            await session.flush()
            return

        result = await session.execute(
            update(Item)
            .where(Item.pk == op.pk, Item.sk == op.sk, Item.version == op.expected_version)
            .values(version=Item.version + 1)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            raise ConditionFailedError(
                f"Version of {op.pk} / {op.sk} is no longer {op.expected_version}"
            )


default_store = KeyValueStore()


def get_store() -> KeyValueStore:
    """FastAPI dependency returning the process-wide store (stateless; safe to share)."""
    return default_store
