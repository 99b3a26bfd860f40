"""
Tests for slot calculator.
"""

import logging
from datetime import datetime, timezone

import pendulum
import pytest

from showingslots.domain.exceptions import ConfigurationError
from showingslots.domain.models import BookingWindow, ExistingBooking, SlotParameters, WeeklySchedule
from showingslots.domain.slot_calculator import SlotCalculator, generate_time_slots

TZ = "America/New_York"

ALL_WEEKDAYS = ("monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday")


def _at(value: str, tz: str = TZ):
    return pendulum.parse(value, tz=tz)


def _schedule(enabled=("monday",), start="09:00", end="17:00") -> WeeklySchedule:
    return WeeklySchedule.from_mapping({
        name: {"start": start, "end": end, "enabled": name in enabled}
        for name in ALL_WEEKDAYS
    })


def _calculator(schedule=None, duration=30, buffer=15, days_ahead=1, tz=TZ) -> SlotCalculator:
    return SlotCalculator(
        schedule=schedule or _schedule(),
        parameters=SlotParameters(showing_duration_minutes=duration, buffer_minutes=buffer),
        window=BookingWindow(days_ahead=days_ahead),
        timezone=tz,
    )


EXPECTED_MONDAY_TIMES = [
    "9:00 AM", "9:45 AM", "10:30 AM", "11:15 AM", "12:00 PM", "12:45 PM",
    "1:30 PM", "2:15 PM", "3:00 PM", "3:45 PM", "4:30 PM",
]


class TestSlotGeneration:
    """Grid generation for a single working day."""

    def test_monday_grid_before_opening(self):
        """All slots on the 45-minute grid are open when evaluated before opening."""
        calculator = _calculator()

        groups = calculator.generate_time_slots([], evaluation_instant=_at("2024-12-23 08:00"))

        assert len(groups) == 1
        group = groups[0]
        assert group.date_key == "2024-12-23"
        assert group.date_label == "Monday, Dec 23"
        assert [slot.display_time for slot in group.slots] == EXPECTED_MONDAY_TIMES
        assert all(slot.available for slot in group.slots)

    def test_closing_time_step_excluded(self):
        """A step landing exactly on closing time is not produced."""
        calculator = _calculator(duration=60, buffer=0)

        groups = calculator.generate_time_slots([], evaluation_instant=_at("2024-12-23 08:00"))

        slots = groups[0].slots
        assert len(slots) == 8
        assert slots[-1].start == _at("2024-12-23 16:00")

    def test_grid_spacing_is_constant(self):
        """Consecutive slots differ by duration + buffer."""
        calculator = _calculator(duration=40, buffer=20, days_ahead=7, schedule=_schedule(enabled=ALL_WEEKDAYS))

        groups = calculator.generate_time_slots([], evaluation_instant=_at("2024-12-23 00:00"))

        for group in groups:
            for previous, current in zip(group.slots, group.slots[1:]):
                assert (current.start - previous.start).in_minutes() == 60

    def test_last_slot_may_run_past_closing(self):
        """Only the start is bounded by closing time."""
        calculator = _calculator(schedule=_schedule(start="09:00", end="10:00"), duration=45, buffer=0)

        groups = calculator.generate_time_slots([], evaluation_instant=_at("2024-12-23 08:00"))

        assert [slot.display_time for slot in groups[0].slots] == ["9:00 AM", "9:45 AM"]

    def test_deterministic_for_fixed_inputs(self):
        calculator = _calculator(days_ahead=14, schedule=_schedule(enabled=("monday", "friday")))
        bookings = [ExistingBooking(start=_at("2024-12-27 10:30"))]
        now = _at("2024-12-23 10:50")

        first = calculator.generate_time_slots(bookings, evaluation_instant=now)
        second = calculator.generate_time_slots(bookings, evaluation_instant=now)

        assert first == second

    def test_functional_wrapper_matches_calculator(self):
        now = _at("2024-12-23 08:00")
        expected = _calculator().generate_time_slots([], evaluation_instant=now)

        groups = generate_time_slots(
            _schedule(),
            [],
            SlotParameters(30, 15),
            BookingWindow(days_ahead=1),
            TZ,
            evaluation_instant=now,
        )

        assert groups == expected


class TestConflicts:
    """Existing bookings block the slot they contain."""

    def test_booking_between_grid_points_blocks_nothing(self):
        """A 10:00-10:30 booking holds no grid start; 9:45 and 10:30 stay open."""
        calculator = _calculator()
        bookings = [ExistingBooking(start=_at("2024-12-23 10:00"), duration_minutes=30)]

        groups = calculator.generate_time_slots(bookings, evaluation_instant=_at("2024-12-23 08:00"))

        by_time = {slot.display_time: slot for slot in groups[0].slots}
        assert by_time["9:45 AM"].available
        assert by_time["10:30 AM"].available
        assert all(slot.available for slot in groups[0].slots)

    def test_booking_on_grid_point_blocks_that_slot(self):
        calculator = _calculator()
        bookings = [ExistingBooking(start=_at("2024-12-23 10:30"))]

        groups = calculator.generate_time_slots(bookings, evaluation_instant=_at("2024-12-23 08:00"))

        by_time = {slot.display_time: slot for slot in groups[0].slots}
        assert not by_time["10:30 AM"].available
        assert by_time["9:45 AM"].available
        assert by_time["11:15 AM"].available

    def test_long_booking_blocks_every_start_inside(self):
        """A 90 minute booking from 10:00 covers the 10:30 and 11:15 starts."""
        calculator = _calculator()
        bookings = [ExistingBooking(start=_at("2024-12-23 10:00"), duration_minutes=90)]

        groups = calculator.generate_time_slots(bookings, evaluation_instant=_at("2024-12-23 08:00"))

        unavailable = [slot.display_time for slot in groups[0].slots if not slot.available]
        assert unavailable == ["10:30 AM", "11:15 AM"]

    def test_booking_overlapping_slot_tail_does_not_block(self):
        """Only the slot start is checked against bookings."""
        calculator = _calculator()
        bookings = [ExistingBooking(start=_at("2024-12-23 09:50"), duration_minutes=30)]

        groups = calculator.generate_time_slots(bookings, evaluation_instant=_at("2024-12-23 08:00"))

        assert all(slot.available for slot in groups[0].slots)

    def test_booking_duration_defaults_to_showing_duration(self):
        """Without a stored duration the booking lasts one showing."""
        calculator = _calculator(duration=60, buffer=0)
        bookings = [ExistingBooking(start=_at("2024-12-23 09:30"))]

        groups = calculator.generate_time_slots(bookings, evaluation_instant=_at("2024-12-23 08:00"))

        by_time = {slot.display_time: slot for slot in groups[0].slots}
        assert not by_time["10:00 AM"].available
        assert by_time["9:00 AM"].available
        assert by_time["11:00 AM"].available

    def test_booking_in_other_timezone(self):
        """Bookings are compared as absolute instants."""
        calculator = _calculator()
        bookings = [ExistingBooking(start=pendulum.parse("2024-12-23T15:30:00Z"))]  # 10:30 EST

        groups = calculator.generate_time_slots(bookings, evaluation_instant=_at("2024-12-23 08:00"))

        by_time = {slot.display_time: slot for slot in groups[0].slots}
        assert not by_time["10:30 AM"].available

    @pytest.mark.parametrize(
        "start",
        [
            datetime(2024, 12, 23, 14, 30, tzinfo=timezone.utc),
            datetime(2024, 12, 23, 14, 30),
        ],
        ids=["aware", "naive-utc"],
    )
    def test_standard_library_booking_start(self, start):
        """14:30 UTC is 9:30 EST; naive values are read as UTC."""
        calculator = _calculator(duration=30, buffer=0)
        bookings = [ExistingBooking(start=start)]

        groups = calculator.generate_time_slots(bookings, evaluation_instant=_at("2024-12-23 08:00"))

        unavailable = [slot.display_time for slot in groups[0].slots if not slot.available]
        assert unavailable == ["9:30 AM"]


class TestPastSlots:
    """Slots before the evaluation instant are unavailable."""

    def test_slots_before_now_unavailable(self):
        calculator = _calculator()

        groups = calculator.generate_time_slots([], evaluation_instant=_at("2024-12-23 10:50"))

        slots = groups[0].slots
        assert [slot.available for slot in slots[:3]] == [False, False, False]
        assert all(slot.available for slot in slots[3:])
        assert slots[3].display_time == "11:15 AM"

    def test_slot_at_exactly_now_is_available(self):
        calculator = _calculator()

        groups = calculator.generate_time_slots([], evaluation_instant=_at("2024-12-23 09:45"))

        assert not groups[0].slots[0].available
        assert groups[0].slots[1].available

    def test_every_slot_before_now_is_unavailable(self):
        calculator = _calculator(days_ahead=3, schedule=_schedule(enabled=ALL_WEEKDAYS))
        now = _at("2024-12-23 13:05")

        groups = calculator.generate_time_slots([], evaluation_instant=now)

        for group in groups:
            for slot in group.slots:
                if slot.start < now:
                    assert not slot.available


class TestDays:
    """Day iteration over the booking window."""

    def test_disabled_day_skipped(self):
        """Tuesday is off, so no group for 2024-12-24 appears."""
        enabled = tuple(day for day in ALL_WEEKDAYS if day != "tuesday")
        calculator = _calculator(schedule=_schedule(enabled=enabled), days_ahead=7)

        groups = calculator.generate_time_slots([], evaluation_instant=_at("2024-12-23 08:00"))

        assert [group.date_key for group in groups] == [
            "2024-12-23", "2024-12-25", "2024-12-26", "2024-12-27", "2024-12-28", "2024-12-29",
        ]

    def test_missing_day_entry_skipped(self):
        schedule = WeeklySchedule.from_mapping({
            "wednesday": {"start": "09:00", "end": "12:00", "enabled": True},
        })
        calculator = _calculator(schedule=schedule, days_ahead=7)

        groups = calculator.generate_time_slots([], evaluation_instant=_at("2024-12-23 08:00"))

        assert [group.date_label for group in groups] == ["Wednesday, Dec 25"]

    def test_zero_days_ahead_yields_nothing(self):
        calculator = _calculator(days_ahead=0)

        assert calculator.generate_time_slots([], evaluation_instant=_at("2024-12-23 08:00")) == []

    def test_window_starts_today(self):
        """The evaluation day counts as the first day of the window."""
        calculator = _calculator(schedule=_schedule(enabled=ALL_WEEKDAYS), days_ahead=2)

        groups = calculator.generate_time_slots([], evaluation_instant=_at("2024-12-23 20:00"))

        assert [group.date_key for group in groups] == ["2024-12-23", "2024-12-24"]
        assert not any(slot.available for slot in groups[0].slots)
        assert all(slot.available for slot in groups[1].slots)

    def test_empty_window_logs_warning_and_yields_nothing(self, caplog):
        calculator = _calculator(schedule=_schedule(start="17:00", end="09:00"))

        with caplog.at_level(logging.WARNING, logger="showingslots.domain.slot_calculator"):
            groups = calculator.generate_time_slots([], evaluation_instant=_at("2024-12-23 08:00"))

        assert groups == []
        assert "no slots generated" in caplog.text


class TestTimezones:
    """Wall-clock arithmetic happens in the property's zone."""

    def test_hours_are_local_to_property_timezone(self):
        calculator = _calculator(tz="America/Los_Angeles")

        groups = calculator.generate_time_slots(
            [], evaluation_instant=_at("2024-12-23 08:00", tz="America/Los_Angeles")
        )

        first = groups[0].slots[0]
        assert first.display_time == "9:00 AM"
        assert first.start.in_timezone("UTC").hour == 17

    def test_evaluation_instant_converted_to_property_day(self):
        """03:00 UTC on Tuesday is still Monday evening in New York."""
        calculator = _calculator()

        groups = calculator.generate_time_slots([], evaluation_instant=pendulum.parse("2024-12-24T03:00:00Z"))

        assert [group.date_key for group in groups] == ["2024-12-23"]
        assert not any(slot.available for slot in groups[0].slots)

    def test_daylight_saving_start(self):
        """On the spring-forward Sunday the hourly grid skips the missing hour."""
        schedule = _schedule(enabled=("sunday",), start="01:00", end="04:00")
        calculator = _calculator(schedule=schedule, duration=60, buffer=0)

        groups = calculator.generate_time_slots([], evaluation_instant=_at("2024-03-10 00:00"))

        assert [slot.display_time for slot in groups[0].slots] == ["1:00 AM", "3:00 AM"]

    def test_opening_time_inside_daylight_saving_gap_moves_forward(self):
        """02:30 does not exist on 2024-03-10 in New York; the day opens at 03:30 EDT."""
        schedule = _schedule(enabled=("sunday",), start="02:30", end="05:00")
        calculator = _calculator(schedule=schedule)

        groups = calculator.generate_time_slots([], evaluation_instant=_at("2024-03-10 00:00"))

        slots = groups[0].slots
        assert [slot.display_time for slot in slots] == ["3:30 AM", "4:15 AM"]
        assert slots[0].start == pendulum.parse("2024-03-10T07:30:00Z")

    def test_unknown_timezone_raises(self):
        with pytest.raises(ConfigurationError, match="timezone"):
            _calculator(tz="Mars/Olympus_Mons")


class TestConfigurationErrors:
    """Invalid parameters fail before any output is produced."""

    def test_zero_duration_raises(self):
        with pytest.raises(ConfigurationError):
            generate_time_slots(
                _schedule(),
                [],
                SlotParameters(showing_duration_minutes=0),
                BookingWindow(days_ahead=1),
                TZ,
            )

    def test_malformed_working_hours_raise(self):
        with pytest.raises(ConfigurationError):
            _schedule(start="9 o'clock")
