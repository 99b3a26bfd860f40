"""
Domain models for working hours, bookings and generated showing slots.
"""

import re
from dataclasses import dataclass, field
from datetime import date, time
from typing import Dict, List, Mapping, Optional

import pendulum
from pendulum import DateTime
from pydantic import TypeAdapter, ValidationError

from .exceptions import ConfigurationError

WEEKDAY_NAMES = (
    "monday",
    "tuesday",
    "wednesday",
    "thursday",
    "friday",
    "saturday",
    "sunday",
)

_TIME_OF_DAY = re.compile(r"^\s*(\d{1,2}):(\d{2})\s*$")

# Same coercion as the pydantic settings models ("false" -> False)
_ENABLED_FLAG = TypeAdapter(bool)


def parse_time_of_day(value: str) -> time:
    """
    Parse an "HH:MM" wall-clock string as stored in agent settings.

    Raises:
        ConfigurationError: If the value is not a valid hour:minute pair
    """
    if isinstance(value, time):
        return value

    match = _TIME_OF_DAY.match(value) if isinstance(value, str) else None
    if not match:
        raise ConfigurationError(f"Invalid time of day: {value!r} (expected HH:MM)")

    hour, minute = int(match.group(1)), int(match.group(2))
    if not (0 <= hour <= 23 and 0 <= minute <= 59):
        raise ConfigurationError(f"Time of day out of range: {value!r}")

    return time(hour=hour, minute=minute)


@dataclass(frozen=True)
class TimeRange:
    """
    Represents an immutable half-open time range [start, end).

    Invariant: start must be before end.
    """
    start: DateTime
    end: DateTime

    def __post_init__(self):
        if self.start >= self.end:
            raise ValueError(f"Start time {self.start} must be before end time {self.end}")

    def duration_minutes(self) -> int:
        """Return the duration in minutes."""
        return int((self.end - self.start).total_seconds() / 60)

    def contains(self, instant: DateTime) -> bool:
        """Check if an instant falls inside the range (end excluded)."""
        return self.start <= instant < self.end

    def __str__(self) -> str:
        return f"{self.start.format('YYYY-MM-DD HH:mm')} - {self.end.format('HH:mm')}"


@dataclass(frozen=True)
class WorkingHoursDay:
    """
    Working hours for a single weekday.

    Invariant (not enforced here): when enabled, start is before end.
    """
    start: time
    end: time
    enabled: bool = True

    @classmethod
    def from_strings(cls, start: str, end: str, enabled: bool = True) -> "WorkingHoursDay":
        """Build from "HH:MM" strings, raising ConfigurationError if malformed."""
        return cls(
            start=parse_time_of_day(start),
            end=parse_time_of_day(end),
            enabled=enabled,
        )

    @property
    def is_empty(self) -> bool:
        """True when the window cannot hold any slot start."""
        return self.start >= self.end


@dataclass
class WeeklySchedule:
    """
    Per-weekday working hours, keyed by lowercase weekday name.

    Days without an entry are treated like disabled days.
    """
    days: Dict[str, WorkingHoursDay] = field(default_factory=dict)

    def __post_init__(self):
        unknown = [name for name in self.days if name not in WEEKDAY_NAMES]
        if unknown:
            raise ConfigurationError(f"Unknown weekday name(s): {', '.join(sorted(unknown))}")

    @classmethod
    def from_mapping(cls, data: Mapping[str, Mapping[str, object]]) -> "WeeklySchedule":
        """
        Build a schedule from the stored settings layout:
        {"monday": {"start": "09:00", "end": "17:00", "enabled": true}, ...}
        """
        days: Dict[str, WorkingHoursDay] = {}
        for name, entry in data.items():
            try:
                days[name.lower()] = WorkingHoursDay.from_strings(
                    entry["start"],
                    entry["end"],
                    _ENABLED_FLAG.validate_python(entry.get("enabled", False)),
                )
            except (KeyError, TypeError, AttributeError, ValidationError) as exc:
                raise ConfigurationError(f"Malformed working hours for {name!r}: {exc}") from exc
        return cls(days=days)

    def for_date(self, day: date) -> Optional[WorkingHoursDay]:
        """Return the entry for the weekday of a calendar date, if any."""
        return self.days.get(WEEKDAY_NAMES[day.weekday()])


@dataclass(frozen=True)
class BookingWindow:
    """How many calendar days, starting today, are open for booking."""
    days_ahead: int = 14

    def __post_init__(self):
        if self.days_ahead < 0:
            raise ConfigurationError(f"days_ahead must not be negative, got {self.days_ahead}")


@dataclass(frozen=True)
class SlotParameters:
    """Showing length and the idle buffer enforced after each showing."""
    showing_duration_minutes: int = 30
    buffer_minutes: int = 15

    def __post_init__(self):
        if self.showing_duration_minutes <= 0:
            raise ConfigurationError(
                f"Showing duration must be greater than zero, got {self.showing_duration_minutes}"
            )
        if self.buffer_minutes < 0:
            raise ConfigurationError(f"Buffer must not be negative, got {self.buffer_minutes}")

    @property
    def slot_step_minutes(self) -> int:
        """Spacing between consecutive slot start times."""
        return self.showing_duration_minutes + self.buffer_minutes


@dataclass(frozen=True)
class ExistingBooking:
    """
    An already booked showing. Only its start and length matter here.
    """
    start: DateTime
    duration_minutes: Optional[int] = None
    booking_id: Optional[str] = None

    def __post_init__(self):
        if not isinstance(self.start, DateTime):
            # naive values are read as UTC
            object.__setattr__(self, "start", pendulum.instance(self.start))
        if self.duration_minutes is not None and self.duration_minutes <= 0:
            raise ValueError(f"Booking duration must be positive, got {self.duration_minutes}")

    def interval(self, default_minutes: int) -> TimeRange:
        """Occupied range, using default_minutes when no duration was stored."""
        minutes = self.duration_minutes or default_minutes
        return TimeRange(start=self.start, end=self.start.add(minutes=minutes))


@dataclass(frozen=True)
class CandidateSlot:
    """A generated slot on the fixed grid."""
    start: DateTime
    display_time: str
    available: bool


@dataclass
class DayGroup:
    """All slots for one local calendar date."""
    date_label: str
    date_key: str
    slots: List[CandidateSlot] = field(default_factory=list)

    @property
    def available_slots(self) -> List[CandidateSlot]:
        return [slot for slot in self.slots if slot.available]


@dataclass
class PartOfDayGroups:
    """Slots bucketed by the local hour they start in."""
    morning: List[CandidateSlot] = field(default_factory=list)
    afternoon: List[CandidateSlot] = field(default_factory=list)
    evening: List[CandidateSlot] = field(default_factory=list)
