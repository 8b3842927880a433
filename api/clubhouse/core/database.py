"""Async database engine and session management.

The whole application lives in one key-value table (see models/item.py).
Sessions are short-lived and opened per store call by core/store.py; no
session is held across requests.
"""

import json
from decimal import Decimal

from sqlalchemy import NullPool
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from clubhouse.core.config import settings


def _json_default(value):
    # Money is Decimal in the domain; keep it exact in the JSON column
    if isinstance(value, Decimal):
        return str(value)
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


def _json_serializer(value) -> str:
    return json.dumps(value, default=_json_default)


def _engine_options(url: str) -> dict:
    options = {
        "echo": settings.database_echo,
        "json_serializer": _json_serializer,
    }
    if url.startswith("sqlite"):
        # Local/test databases: a fresh connection per session, nothing bound to an old event loop
        options["poolclass"] = NullPool
    else:
        options.update(pool_size=20, max_overflow=10, pool_pre_ping=True)
    return options


engine = create_async_engine(settings.database_url, **_engine_options(settings.database_url))

async_session_factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
