"""
Domain layer - Pure business logic without external dependencies.
"""

from .exceptions import BookingDisabledError, ConfigurationError, RepositoryError, ShowingSlotsError
from .grouping import count_bookings_in_current_week, group_slots_by_part_of_day, start_of_week
from .models import (
    BookingWindow,
    CandidateSlot,
    DayGroup,
    ExistingBooking,
    PartOfDayGroups,
    SlotParameters,
    TimeRange,
    WeeklySchedule,
    WorkingHoursDay,
)
from .slot_calculator import SlotCalculator, generate_time_slots

__all__ = [
    "BookingDisabledError",
    "BookingWindow",
    "CandidateSlot",
    "ConfigurationError",
    "DayGroup",
    "ExistingBooking",
    "PartOfDayGroups",
    "RepositoryError",
    "ShowingSlotsError",
    "SlotCalculator",
    "SlotParameters",
    "TimeRange",
    "WeeklySchedule",
    "WorkingHoursDay",
    "count_bookings_in_current_week",
    "generate_time_slots",
    "group_slots_by_part_of_day",
    "start_of_week",
]
