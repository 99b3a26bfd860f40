"""
Core business logic for generating bookable showing slots.

Pure domain logic: no API calls, no database, no I/O. The caller supplies
the agent's schedule, the existing bookings and the evaluation instant.
"""

import logging
from datetime import datetime, time
from typing import Iterable, List, Optional

import pendulum
from pendulum import DateTime

from .models import (
    BookingWindow,
    CandidateSlot,
    DayGroup,
    ExistingBooking,
    SlotParameters,
    TimeRange,
    WeeklySchedule,
    WorkingHoursDay,
)
from .timezones import validate_timezone

logger = logging.getLogger(__name__)

DISPLAY_TIME_FORMAT = "h:mm A"
DATE_LABEL_FORMAT = "dddd, MMM D"


def to_instant(value: datetime, timezone: str) -> DateTime:
    """Convert any datetime to a pendulum DateTime in the given zone (naive means UTC)."""
    if not isinstance(value, DateTime):
        value = pendulum.instance(value)
    return value.in_timezone(timezone)


def _wall_time(day: DateTime, clock: time) -> DateTime:
    """
    The local wall-clock time on a day.

    Ambiguous times resolve to their first occurrence; times skipped by a
    daylight saving jump move forward past the gap (02:30 becomes 03:30).
    """
    candidate = pendulum.datetime(day.year, day.month, day.day, clock.hour, clock.minute, tz=day.tz, fold=0)
    if (candidate.hour, candidate.minute) != (clock.hour, clock.minute):
        candidate = pendulum.datetime(day.year, day.month, day.day, clock.hour, clock.minute, tz=day.tz, fold=1)
    return candidate


class SlotCalculator:
    """
    Generates the fixed grid of showing slots for an agent's schedule.

    Algorithm:
    1. Anchor on local midnight of the evaluation instant
    2. For each day in the booking window, look up that weekday's hours
    3. Walk from opening time in steps of duration + buffer, stopping
       before closing time
    4. Mark slots in the past or starting inside a booking as unavailable
    5. Return one DayGroup per day that produced any slot
    """

    def __init__(
        self,
        schedule: WeeklySchedule,
        parameters: SlotParameters,
        window: BookingWindow,
        timezone: str,
    ):
        self.schedule = schedule
        self.parameters = parameters
        self.window = window
        self.timezone = validate_timezone(timezone)

    def generate_time_slots(
        self,
        existing_bookings: Iterable[ExistingBooking],
        evaluation_instant: Optional[datetime] = None,
    ) -> List[DayGroup]:
        """
        Generate day-grouped candidate slots.

        Args:
            existing_bookings: Non-cancelled bookings for the property
            evaluation_instant: "Now" for past-slot detection; defaults to the current time

        Returns:
            DayGroups in ascending date order
        """
        now = (
            pendulum.now(self.timezone)
            if evaluation_instant is None
            else to_instant(evaluation_instant, self.timezone)
        )
        busy = [
            booking.interval(self.parameters.showing_duration_minutes)
            for booking in existing_bookings
        ]

        logger.debug(
            "Generating time slots: days_ahead=%s duration=%s buffer=%s timezone=%s bookings=%s",
            self.window.days_ahead,
            self.parameters.showing_duration_minutes,
            self.parameters.buffer_minutes,
            self.timezone,
            len(busy),
        )

        groups: List[DayGroup] = []
        today = now.start_of("day")

        for day_offset in range(self.window.days_ahead):
            current = today.add(days=day_offset)
            hours = self.schedule.for_date(current.date())

            # Skip if the agent doesn't work this day
            if hours is None or not hours.enabled:
                continue

            slots = self._generate_slots_for_day(current, hours, busy, now)

            if slots:
                groups.append(
                    DayGroup(
                        date_label=current.format(DATE_LABEL_FORMAT, locale="en"),
                        date_key=current.to_date_string(),
                        slots=slots,
                    )
                )

        return groups

    def _generate_slots_for_day(
        self,
        day: DateTime,
        hours: WorkingHoursDay,
        busy: List[TimeRange],
        now: DateTime,
    ) -> List[CandidateSlot]:
        """Walk the grid for a single day."""
        if hours.is_empty:
            logger.warning(
                "Working hours for %s open at %s but close at %s; no slots generated",
                day.to_date_string(),
                hours.start.strftime("%H:%M"),
                hours.end.strftime("%H:%M"),
            )
            return []

        day_start = _wall_time(day, hours.start)
        day_end = _wall_time(day, hours.end)
        step = self.parameters.slot_step_minutes

        slots: List[CandidateSlot] = []
        current = day_start

        while current < day_end:
            is_past = current < now
            has_conflict = self._conflicts(current, busy)

            slots.append(
                CandidateSlot(
                    start=current,
                    display_time=current.format(DISPLAY_TIME_FORMAT, locale="en"),
                    available=not is_past and not has_conflict,
                )
            )

            current = current.add(minutes=step)

        return slots

    @staticmethod
    def _conflicts(slot_start: DateTime, busy: List[TimeRange]) -> bool:
        """
        True if the slot starts inside a booking or exactly at its start.

        Only the slot's start is checked, not its full interval.
        """
        return any(
            booking.contains(slot_start) or booking.start == slot_start
            for booking in busy
        )


def generate_time_slots(
    schedule: WeeklySchedule,
    existing_bookings: Iterable[ExistingBooking],
    parameters: SlotParameters,
    window: BookingWindow,
    timezone: str,
    evaluation_instant: Optional[datetime] = None,
) -> List[DayGroup]:
    """Functional wrapper around SlotCalculator.generate_time_slots."""
    calculator = SlotCalculator(
        schedule=schedule,
        parameters=parameters,
        window=window,
        timezone=timezone,
    )
    return calculator.generate_time_slots(existing_bookings, evaluation_instant)
