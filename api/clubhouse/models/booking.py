"""Booking records.

A booking reserves a court for a member on a date between two wall-clock
times. It is stored once and reachable three ways:

- primary:  BOOKING#{booking_id} / BOOKING#{booking_id}
- GSI1:     USER#{user_id}       / BOOKING#{date}#{start_time}   (my bookings)
- GSI2:     COURT#{court_id}     / BOOKING#{date}#{start_time}   (conflict lookups)

The index keys are denormalized copies written together with the record and
never updated on their own.
"""

import enum


class BookingStatus(enum.StrEnum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"
    COMPLETED = "completed"


class PaymentStatus(enum.StrEnum):
    PENDING = "pending"
    PAID = "paid"
    FAILED = "failed"


def booking_key(booking_id: str) -> tuple[str, str]:
    key = f"BOOKING#{booking_id}"
    return key, key


def booking_slot_sort_key(date: str, start_time: str | None = None) -> str:
    """Sort key shared by both booking indexes. Without a start time it is a per-date prefix."""
    if start_time is None:
        return f"BOOKING#{date}"
    return f"BOOKING#{date}#{start_time}"


def user_bookings_partition(user_id: str) -> str:
    return f"USER#{user_id}"


def court_bookings_partition(court_id: str) -> str:
    return f"COURT#{court_id}"


def schedule_key(court_id: str, date: str) -> tuple[str, str]:
    """Per court-day concurrency token; its version is bumped by every admitted booking."""
    return f"COURT#{court_id}", f"SCHEDULE#{date}"
