"""Booking admission rules.

Decides whether a court can take a new reservation for a date and time
range. Times arrive as "HH:MM" strings but are compared as integer minutes
since midnight; the string form only exists at the serialisation boundary.

Intervals are half-open [start, end): a booking ending at 10:00 and one
starting at 10:00 do not conflict. Cancelled bookings never block a slot.
"""

import logging
import re
from collections.abc import Iterable
from dataclasses import dataclass

from clubhouse.core.errors import NotFoundError
from clubhouse.core.store import KeyValueStore
from clubhouse.models.booking import (
    BookingStatus,
    booking_slot_sort_key,
    court_bookings_partition,
    schedule_key,
)
from clubhouse.models.court import court_key

logger = logging.getLogger(__name__)

_TIME_RE = re.compile(r"^([01]?[0-9]|2[0-3]):([0-5][0-9])$")


@dataclass(frozen=True)
class Availability:
    """Verdict of an admission check.

    schedule_version is the court-day token read before the bookings were
    fetched; a write based on this verdict must be conditioned on it.
    """

    available: bool
    conflict: dict | None = None
    schedule_version: int = 0


def normalise_hhmm(value: str) -> str:
    """Validate a 24-hour time and return it zero-padded ("9:05" -> "09:05")."""
    match = _TIME_RE.match(value)
    if not match:
        raise ValueError("Time must be in HH:MM 24-hour format")
    hours, minutes = match.groups()
    return f"{int(hours):02d}:{minutes}"


def to_minutes(value: str) -> int:
    """Minutes since midnight for an "HH:MM" time."""
    hours, minutes = normalise_hhmm(value).split(":")
    return int(hours) * 60 + int(minutes)


def is_active_booking(booking: dict) -> bool:
    return booking.get("status") != BookingStatus.CANCELLED


def overlaps(start_a: int, end_a: int, start_b: int, end_b: int) -> bool:
    """Half-open interval overlap; touching intervals do not overlap."""
    return start_a < end_b and end_a > start_b


def find_conflict(existing: Iterable[dict], start_time: str, end_time: str) -> dict | None:
    """Return the first active booking overlapping [start_time, end_time), or None."""
    start, end = to_minutes(start_time), to_minutes(end_time)
    for booking in existing:
        if not is_active_booking(booking):
            continue
        if overlaps(to_minutes(booking["start_time"]), to_minutes(booking["end_time"]), start, end):
            return booking
    return None


async def get_bookable_court(store: KeyValueStore, court_id: str) -> dict:
    """Load a court that can take bookings. Raises NotFoundError if it is missing or inactive."""
    court = await store.get(*court_key(court_id))
    if court is None or not court.get("is_active"):
        raise NotFoundError("Court not found or inactive")
    return court


async def evaluate_slot(
    store: KeyValueStore, court_id: str, date: str, start_time: str, end_time: str
) -> Availability:
    """Run the overlap check against every booking on the court for that date.

    The schedule version is read before the bookings so that any booking
    committed after this read is guaranteed to have moved the version on.
    """
    schedule = await store.get(*schedule_key(court_id, date))
    version = schedule["version"] if schedule else 0

    existing = await store.query_index(
        "GSI2",
        court_bookings_partition(court_id),
        booking_slot_sort_key(date),
    )
    conflict = find_conflict(existing, start_time, end_time)
    if conflict:
        logger.info(
            "Court %s on %s: %s-%s overlaps booking %s (%s-%s)",
            court_id,
            date,
            start_time,
            end_time,
            conflict.get("booking_id"),
            conflict["start_time"],
            conflict["end_time"],
        )
    return Availability(available=conflict is None, conflict=conflict, schedule_version=version)


async def check_availability(
    store: KeyValueStore, court_id: str, date: str, start_time: str, end_time: str
) -> Availability:
    """Admission check for a prospective booking. Read-only.

    Raises NotFoundError before looking at bookings if the court is missing
    or inactive.
    """
    await get_bookable_court(store, court_id)
    return await evaluate_slot(store, court_id, date, start_time, end_time)
