"""Pricing service for booking charge calculation.

total_amount = billable hours * court hourly rate. How billable hours are
derived from the time range is a named policy selected by
settings.duration_policy:

- whole_hours (default): end hour minus start hour, minutes ignored.
  09:00-11:00 is 2h, 09:30-10:30 is 1h, 09:15-09:45 is 0h (free).
- exact: elapsed minutes / 60.
"""

from collections.abc import Callable
from decimal import ROUND_HALF_UP, Decimal

from clubhouse.core.config import settings
from clubhouse.services.booking_rules import to_minutes

CENT = Decimal("0.01")

DurationPolicy = Callable[[str, str], Decimal]


def whole_hours(start_time: str, end_time: str) -> Decimal:
    # TODO: sub-hour bookings bill as zero under this policy; switch the default once pricing is agreed
    return Decimal(int(end_time.split(":")[0]) - int(start_time.split(":")[0]))


def exact_hours(start_time: str, end_time: str) -> Decimal:
    return Decimal(to_minutes(end_time) - to_minutes(start_time)) / Decimal(60)


DURATION_POLICIES: dict[str, DurationPolicy] = {
    "whole_hours": whole_hours,
    "exact": exact_hours,
}


def get_duration_policy(name: str | None = None) -> DurationPolicy:
    name = name or settings.duration_policy
    try:
        return DURATION_POLICIES[name]
    except KeyError:
        raise ValueError(f"Unknown duration policy {name!r}; choose from {', '.join(DURATION_POLICIES)}") from None


def calculate_total_amount(
    start_time: str,
    end_time: str,
    hourly_rate: Decimal | int | float | str,
    duration_policy: DurationPolicy | None = None,
) -> Decimal:
    """Charge for a booking, rounded to the cent."""
    policy = duration_policy or get_duration_policy()
    hours = policy(start_time, end_time)
    return (hours * Decimal(str(hourly_rate))).quantize(CENT, rounding=ROUND_HALF_UP)
