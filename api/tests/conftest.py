"""Shared test fixtures.

Tests run against a throwaway SQLite file instead of Postgres. The database
URL has to be in the environment before clubhouse.core.config is imported,
which is why it is set at the top of this module.
"""

import os
import tempfile
import uuid
from datetime import UTC, datetime
from decimal import Decimal
from unittest.mock import AsyncMock, patch

_TEST_DB_DIR = tempfile.mkdtemp(prefix="clubhouse-tests-")
os.environ["CH_DATABASE_URL"] = f"sqlite+aiosqlite:///{_TEST_DB_DIR}/clubhouse.db"
os.environ["CH_STORE_RETRY_BASE_DELAY"] = "0"
os.environ["CH_DURATION_POLICY"] = "whole_hours"

import pytest  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402

from clubhouse.core.auth import create_access_token  # noqa: E402
from clubhouse.core.database import engine  # noqa: E402
from clubhouse.core.store import default_store  # noqa: E402
from clubhouse.main import app  # noqa: E402
from clubhouse.models import Base  # noqa: E402
from clubhouse.models.booking import (  # noqa: E402
    booking_key,
    booking_slot_sort_key,
    court_bookings_partition,
    user_bookings_partition,
)
from clubhouse.models.court import COURT_CATALOG_PARTITION, court_catalog_sort_key, court_key  # noqa: E402


@pytest.fixture(autouse=True)
async def _fresh_items_table():
    """Every test starts from an empty items table."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)
    yield
    await engine.dispose()


@pytest.fixture(autouse=True)
def mock_publish():
    """Keep tests off the Celery broker; assert on the published events instead."""
    with patch("clubhouse.services.events.publish_event", new_callable=AsyncMock) as mock:
        yield mock


@pytest.fixture
async def client():
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac


@pytest.fixture
def store():
    return default_store


@pytest.fixture
def auth_headers():
    """Build bearer headers for an arbitrary caller without touching the store."""

    def _headers(user_id: str | None = None, role: str = "member", email: str | None = None) -> dict:
        user_id = user_id or str(uuid.uuid4())
        token = create_access_token(user_id, {"email": email or f"{user_id}@example.com", "role": role})
        return {"Authorization": f"Bearer {token}"}

    return _headers


@pytest.fixture
def member_headers(auth_headers):
    return auth_headers("member-1", "member", "member@example.com")


@pytest.fixture
def admin_headers(auth_headers):
    return auth_headers("admin-1", "admin", "admin@example.com")


@pytest.fixture
def add_court(store):
    """Insert a court record directly."""

    async def _add(court_id: str = "c1", hourly_rate: str = "50", is_active: bool = True, name: str | None = None):
        now = datetime.now(UTC).isoformat()
        pk, sk = court_key(court_id)
        court = {
            "pk": pk,
            "sk": sk,
            "gsi1pk": COURT_CATALOG_PARTITION,
            "gsi1sk": court_catalog_sort_key(court_id),
            "court_id": court_id,
            "name": name or f"Court {court_id}",
            "type": "indoor",
            "hourly_rate": Decimal(hourly_rate),
            "description": None,
            "is_active": is_active,
            "created_at": now,
            "updated_at": now,
        }
        await store.put(court)
        return court

    return _add


@pytest.fixture
def add_booking(store):
    """Insert a booking record directly, bypassing admission."""

    async def _add(
        court_id: str,
        date: str,
        start_time: str,
        end_time: str,
        status: str = "pending",
        user_id: str = "someone-else",
    ):
        booking_id = str(uuid.uuid4())
        now = datetime.now(UTC).isoformat()
        pk, sk = booking_key(booking_id)
        slot = booking_slot_sort_key(date, start_time)
        booking = {
            "pk": pk,
            "sk": sk,
            "gsi1pk": user_bookings_partition(user_id),
            "gsi1sk": slot,
            "gsi2pk": court_bookings_partition(court_id),
            "gsi2sk": slot,
            "booking_id": booking_id,
            "user_id": user_id,
            "court_id": court_id,
            "date": date,
            "start_time": start_time,
            "end_time": end_time,
            "total_amount": "0.00",
            "status": status,
            "payment_status": "pending",
            "notes": None,
            "created_at": now,
            "updated_at": now,
        }
        await store.put(booking)
        return booking

    return _add
