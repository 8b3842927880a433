"""Booking creation: record building and atomic admission.

Admission is optimistic. The per court-day schedule version is read, the
overlap check runs, and then the booking insert and a conditional bump of
that version commit in one store transaction. If another booking for the
same court and date committed in between, the bump fails, nothing is
written, and the whole admission is re-run against fresh data. Every
admitted booking is therefore checked against every booking that committed
before it, whichever instance served the request.
"""

import asyncio
import logging
import random
import uuid
from datetime import UTC, datetime

from clubhouse.core.config import settings
from clubhouse.core.errors import ConditionFailedError, ConflictError, TransientStoreError
from clubhouse.core.store import KeyValueStore, Put, VersionGuard
from clubhouse.models.booking import (
    BookingStatus,
    PaymentStatus,
    booking_key,
    booking_slot_sort_key,
    court_bookings_partition,
    schedule_key,
    user_bookings_partition,
)
from clubhouse.models.events import BOOKINGS_SOURCE, EventType
from clubhouse.services.booking_rules import evaluate_slot, get_bookable_court
from clubhouse.services.events import publish_after_commit
from clubhouse.services.pricing import DurationPolicy, calculate_total_amount

logger = logging.getLogger(__name__)


def _admission_backoff(attempt: int) -> float:
    """Full-jitter exponential delay, so racing requests for one court-day spread out."""
    ceiling = min(settings.admission_max_delay, settings.store_retry_base_delay * 2 ** (attempt - 1))
    return random.uniform(0, ceiling)


def build_booking(
    user_id: str,
    court: dict,
    date: str,
    start_time: str,
    end_time: str,
    notes: str | None = None,
    duration_policy: DurationPolicy | None = None,
) -> dict:
    """Assemble a new booking record with its derived fields and index keys."""
    booking_id = str(uuid.uuid4())
    now = datetime.now(UTC).isoformat()
    pk, sk = booking_key(booking_id)
    slot = booking_slot_sort_key(date, start_time)

    return {
        "pk": pk,
        "sk": sk,
        "gsi1pk": user_bookings_partition(user_id),
        "gsi1sk": slot,
        "gsi2pk": court_bookings_partition(court["court_id"]),
        "gsi2sk": slot,
        "booking_id": booking_id,
        "user_id": user_id,
        "court_id": court["court_id"],
        "date": date,
        "start_time": start_time,
        "end_time": end_time,
        "total_amount": calculate_total_amount(start_time, end_time, court["hourly_rate"], duration_policy),
        "status": BookingStatus.PENDING.value,
        "payment_status": PaymentStatus.PENDING.value,
        "notes": notes if notes is not None else settings.default_booking_notes,
        "created_at": now,
        "updated_at": now,
    }


async def create_booking(
    store: KeyValueStore,
    user_id: str,
    court_id: str,
    date: str,
    start_time: str,
    end_time: str,
    notes: str | None = None,
) -> dict:
    """Admit and persist a booking, then publish Booking Created.

    Raises NotFoundError (court missing/inactive), ConflictError (slot taken)
    or TransientStoreError (store failure, or the court-day stayed contended
    for every attempt).
    """
    court = await get_bookable_court(store, court_id)
    booking = build_booking(user_id, court, date, start_time, end_time, notes)
    schedule_pk, schedule_sk = schedule_key(court_id, date)

    for attempt in range(1, settings.admission_attempts + 1):
        availability = await evaluate_slot(store, court_id, date, start_time, end_time)
        if not availability.available:
            raise ConflictError(conflicting=availability.conflict)

        try:
            await store.transact_write(
                [
                    VersionGuard(
                        schedule_pk,
                        schedule_sk,
                        expected_version=availability.schedule_version,
                        attributes={"court_id": court_id, "date": date},
                    ),
                    Put(booking, if_absent=True),
                ]
            )
            break
        except ConditionFailedError:
            delay = _admission_backoff(attempt)
            logger.warning(
                "Court %s on %s changed during admission (attempt %s/%s); retrying in %.3fs",
                court_id,
                date,
                attempt,
                settings.admission_attempts,
                delay,
            )
            if attempt < settings.admission_attempts:
                await asyncio.sleep(delay)
    else:
        raise TransientStoreError("Court schedule is busy, please retry")

    logger.info(
        "Booking %s created: court %s on %s %s-%s for user %s",
        booking["booking_id"],
        court_id,
        date,
        start_time,
        end_time,
        user_id,
    )

    await publish_after_commit(
        BOOKINGS_SOURCE,
        EventType.BOOKING_CREATED,
        {
            "booking_id": booking["booking_id"],
            "user_id": booking["user_id"],
            "court_id": booking["court_id"],
            "date": booking["date"],
            "start_time": booking["start_time"],
            "end_time": booking["end_time"],
            "total_amount": str(booking["total_amount"]),
        },
    )
    return booking


async def list_user_bookings(store: KeyValueStore, user_id: str, limit: int = 50) -> list[dict]:
    """The user's bookings, newest slot first."""
    bookings = await store.query_index("GSI1", user_bookings_partition(user_id), "BOOKING#")
    return list(reversed(bookings))[:limit]
