"""Seed the key-value table with a working club.

Run with: python -m scripts.seed
Creates the items table if needed, an admin and a member account, and the
court catalog. Safe to re-run: existing accounts and courts are left alone.
"""

import asyncio
import uuid
from datetime import UTC, datetime, timedelta
from decimal import Decimal

from clubhouse.core.auth import hash_password
from clubhouse.core.database import engine
from clubhouse.core.errors import ConditionFailedError
from clubhouse.core.store import KeyValueStore, Put
from clubhouse.models import Base
from clubhouse.models.court import COURT_CATALOG_PARTITION, court_catalog_sort_key, court_key
from clubhouse.models.member import email_claim_key, user_key

COURTS = [
    {"court_id": "court-1", "name": "Court 1", "type": "indoor", "hourly_rate": Decimal("20")},
    {"court_id": "court-2", "name": "Court 2", "type": "indoor", "hourly_rate": Decimal("20")},
    {"court_id": "court-3", "name": "Court 3", "type": "indoor", "hourly_rate": Decimal("25"),
     "description": "Show court with spectator seating"},
    {"court_id": "court-4", "name": "Court 4", "type": "outdoor", "hourly_rate": Decimal("12")},
]

USERS = [
    {"email": "admin@clubhouse.club", "password": "admin123", "first_name": "Test", "last_name": "Admin",
     "role": "admin"},
    {"email": "member@example.com", "password": "member123", "first_name": "Test", "last_name": "Member",
     "role": "member"},
]


async def _seed_user(store: KeyValueStore, data: dict, now: datetime) -> bool:
    user_id = str(uuid.uuid4())
    pk, sk = user_key(user_id)
    claim_pk, claim_sk = email_claim_key(data["email"])
    user = {
        "pk": pk,
        "sk": sk,
        "user_id": user_id,
        "email": data["email"],
        "first_name": data["first_name"],
        "last_name": data["last_name"],
        "phone": "0400000000",
        "password_hash": hash_password(data["password"]),
        "membership_type": "basic",
        "membership_expiry": (now + timedelta(days=365)).isoformat(),
        "skill_level": "intermediate",
        "role": data["role"],
        "is_active": True,
        "created_at": now.isoformat(),
        "updated_at": now.isoformat(),
    }
    try:
        await store.transact_write(
            [
                Put({"pk": claim_pk, "sk": claim_sk, "user_id": user_id, "email": data["email"]}, if_absent=True),
                Put(user, if_absent=True),
            ]
        )
    except ConditionFailedError:
        return False
    return True


async def seed():
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    store = KeyValueStore()
    now = datetime.now(UTC)

    created_users = [u["email"] for u in USERS if await _seed_user(store, u, now)]

    created_courts = 0
    for court_data in COURTS:
        pk, sk = court_key(court_data["court_id"])
        if await store.get(pk, sk):
            continue
        await store.put(
            {
                "pk": pk,
                "sk": sk,
                "gsi1pk": COURT_CATALOG_PARTITION,
                "gsi1sk": court_catalog_sort_key(court_data["court_id"]),
                "description": None,
                **court_data,
                "is_active": True,
                "created_at": now.isoformat(),
                "updated_at": now.isoformat(),
            }
        )
        created_courts += 1

    await engine.dispose()

    print(f"Seeded: {created_courts} courts, {len(created_users)} users")
    for data in USERS:
        print(f"    {data['email']} / {data['password']} ({data['role']})")


if __name__ == "__main__":
    asyncio.run(seed())
