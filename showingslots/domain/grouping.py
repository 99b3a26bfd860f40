"""
Time bucketing helpers shared by the booking page and usage accounting.
"""

from datetime import datetime
from typing import Iterable, Optional

import pendulum
from pendulum import DateTime

from .models import CandidateSlot, ExistingBooking, PartOfDayGroups
from .slot_calculator import to_instant
from .timezones import validate_timezone

AFTERNOON_STARTS_AT = 12
EVENING_STARTS_AT = 17


def group_slots_by_part_of_day(
    slots: Iterable[CandidateSlot],
    timezone: Optional[str] = None,
) -> PartOfDayGroups:
    """
    Partition slots into morning [0, 12), afternoon [12, 17) and evening [17, 24).

    The hour is read in ``timezone`` when given, otherwise in the zone the
    slot start already carries. Relative order is preserved in each bucket.
    """
    if timezone is not None:
        validate_timezone(timezone)

    groups = PartOfDayGroups()

    for slot in slots:
        start = slot.start if timezone is None else to_instant(slot.start, timezone)

        if start.hour < AFTERNOON_STARTS_AT:
            groups.morning.append(slot)
        elif start.hour < EVENING_STARTS_AT:
            groups.afternoon.append(slot)
        else:
            groups.evening.append(slot)

    return groups


def start_of_week(reference: datetime, timezone: str = "UTC") -> DateTime:
    """Most recent Sunday midnight at or before the reference instant."""
    day = to_instant(reference, validate_timezone(timezone)).start_of("day")
    # pendulum numbers Monday as 0, so Sunday is 6
    days_since_sunday = (day.day_of_week + 1) % 7
    return day.subtract(days=days_since_sunday)


def count_bookings_in_current_week(
    bookings: Iterable[ExistingBooking],
    reference_instant: Optional[datetime] = None,
    timezone: str = "UTC",
) -> int:
    """Count bookings starting in the Sunday-to-Saturday week containing the reference."""
    reference = pendulum.now(timezone) if reference_instant is None else reference_instant
    week_start = start_of_week(reference, timezone)
    week_end = week_start.add(days=7)

    return sum(1 for booking in bookings if week_start <= booking.start < week_end)
