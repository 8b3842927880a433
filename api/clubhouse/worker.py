"""Celery worker: asynchronous processing of domain events.

Run with: celery -A clubhouse.worker worker --loglevel=info

Delivery is at-least-once (late acks), so handlers must tolerate seeing
the same event twice. Sending a duplicate confirmation email is acceptable.
"""

import asyncio
import logging

from celery import Celery, signals

from clubhouse.core.config import settings
from clubhouse.core.database import engine
from clubhouse.core.logging_config import configure_logging
from clubhouse.core.store import KeyValueStore, default_store
from clubhouse.models.court import court_key
from clubhouse.models.events import EventType
from clubhouse.models.member import user_key
from clubhouse.services.notifications import send_booking_confirmation, send_welcome_email

logger = logging.getLogger(__name__)

celery_app = Celery(
    "clubhouse",
    broker=settings.redis_url,
    backend=settings.redis_url,
)

celery_app.conf.update(
    task_serializer="json",
    result_serializer="json",
    accept_content=["json"],
    timezone="UTC",
    enable_utc=True,
    task_acks_late=True,
    task_ignore_result=True,
    broker_connection_retry_on_startup=True,
)


@signals.setup_logging.connect
def _setup_logging(**kwargs):
    configure_logging()


async def _handle_booking_created(store: KeyValueStore, detail: dict) -> None:
    user = await store.get(*user_key(detail["user_id"]))
    court = await store.get(*court_key(detail["court_id"]))
    if user is None or court is None:
        logger.warning(
            "Skipping confirmation for booking %s: user or court record missing", detail.get("booking_id")
        )
        return
    await send_booking_confirmation(user, detail, court)


async def _handle_booking_confirmed(store: KeyValueStore, detail: dict) -> None:
    logger.info("Booking confirmed: %s", detail.get("booking_id"))


async def _handle_user_registered(store: KeyValueStore, detail: dict) -> None:
    await send_welcome_email(detail)


HANDLERS = {
    EventType.BOOKING_CREATED: _handle_booking_created,
    EventType.BOOKING_CONFIRMED: _handle_booking_confirmed,
    EventType.USER_REGISTERED: _handle_user_registered,
}


async def handle_event(source: str, detail_type: str, detail: dict, store: KeyValueStore | None = None) -> bool:
    """Dispatch one event to its handler. Returns False for event types nobody handles."""
    handler = HANDLERS.get(detail_type)
    if handler is None:
        logger.info("Ignoring %s from %s", detail_type, source)
        return False
    logger.info("Processing %s from %s", detail_type, source)
    await handler(store or default_store, detail)
    return True


@celery_app.task(name="clubhouse.process_event")
def process_event(source: str, detail_type: str, detail: dict) -> None:
    async def _run():
        try:
            await handle_event(source, detail_type, detail)
        finally:
            # Pooled connections are bound to this event loop, which asyncio.run closes
            await engine.dispose()

    asyncio.run(_run())
