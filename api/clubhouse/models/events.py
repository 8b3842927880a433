"""Domain event names and sources shared by the publisher and the worker."""

import enum

from clubhouse.core.config import settings

BOOKINGS_SOURCE = f"{settings.event_source_prefix}.bookings"
USERS_SOURCE = f"{settings.event_source_prefix}.users"


class EventType(enum.StrEnum):
    BOOKING_CREATED = "Booking Created"
    BOOKING_CONFIRMED = "Booking Confirmed"
    USER_REGISTERED = "User Registered"
