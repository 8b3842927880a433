"""Domain event publication.

Events are handed to the Celery worker (redis broker) and processed out of
band; see worker.py. The request path only waits for the broker to accept
the message, bounded by settings.event_publish_timeout_seconds.
"""

import asyncio
import logging

from clubhouse.core.config import settings
from clubhouse.worker import process_event

logger = logging.getLogger(__name__)


async def publish_event(source: str, detail_type: str, detail: dict) -> None:
    """Hand one event to the broker. Raises on failure or timeout."""
    await asyncio.wait_for(
        asyncio.to_thread(process_event.apply_async, args=(source, detail_type, detail)),
        timeout=settings.event_publish_timeout_seconds,
    )
    logger.info("Published %s from %s", detail_type, source)


async def publish_after_commit(source: str, detail_type: str, detail: dict) -> bool:
    """Publish an event for a record that is already committed.

    A failure here must not undo or fail the operation that produced the
    record, so it is logged and reported as False instead of raised.
    """
    try:
        await publish_event(source, detail_type, detail)
    except Exception:
        logger.exception("Failed to publish %s from %s: %s", detail_type, source, detail)
        return False
    return True
