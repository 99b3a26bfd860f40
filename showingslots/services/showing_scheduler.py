"""
Application service for the public booking page and the reschedule dialog.

The service loads a property, its agent's settings and the current showings
through a repository and delegates slot generation to the domain-level
``SlotCalculator``. The repository and the clock are injected so tests can
supply fixed data and a fixed "now".
"""

from __future__ import annotations

import logging
from typing import Callable, List, Optional, Protocol

import pendulum
from pendulum import DateTime

from ..config import AgentSettings, PropertyRecord
from ..domain.exceptions import BookingDisabledError
from ..domain.grouping import count_bookings_in_current_week
from ..domain.models import CandidateSlot, DayGroup, ExistingBooking
from ..domain.slot_calculator import SlotCalculator

logger = logging.getLogger(__name__)


class ShowingRepositoryProtocol(Protocol):
    """Protocol describing the data access needed by the service."""

    def get_property(self, property_id: str) -> PropertyRecord:
        """Return the property record."""

    def get_agent_settings(self, agent_id: str) -> AgentSettings:
        """Return the agent's scheduling settings."""

    def get_bookings_for_property(self, property_id: str) -> List[ExistingBooking]:
        """Return non-cancelled bookings of the property."""


class ShowingSchedulerService:
    """
    Orchestrates data retrieval and slot generation for one property at a time.
    """

    def __init__(
        self,
        repository: ShowingRepositoryProtocol,
        clock: Optional[Callable[[], DateTime]] = None,
    ) -> None:
        self._repository = repository
        self._clock = clock or pendulum.now

    def available_slots(
        self,
        property_id: str,
        *,
        exclude_booking_id: Optional[str] = None,
        days_ahead: Optional[int] = None,
    ) -> List[DayGroup]:
        """
        Generate the day-grouped slots shown on a property's booking page.

        Args:
            property_id: Property to schedule
            exclude_booking_id: Showing being rescheduled; its own slot stays free
            days_ahead: Override of the agent's booking window

        Raises:
            BookingDisabledError: If the property does not accept bookings
        """
        record = self._repository.get_property(property_id)
        if not record.is_booking_enabled:
            raise BookingDisabledError(f"Booking is disabled for property {property_id}")

        settings = self._repository.get_agent_settings(record.agent_id)
        bookings = [
            booking for booking in self._repository.get_bookings_for_property(property_id)
            if exclude_booking_id is None or booking.booking_id != exclude_booking_id
        ]

        calculator = SlotCalculator(
            schedule=settings.to_schedule(),
            parameters=settings.to_parameters(),
            window=settings.to_window(days_ahead),
            timezone=record.timezone,
        )
        groups = calculator.generate_time_slots(bookings, evaluation_instant=self._clock())

        logger.info(
            "Generated %s day groups for property %s (%s existing bookings)",
            len(groups),
            property_id,
            len(bookings),
        )
        return groups

    def slots_for_date(self, property_id: str, date_key: str, **kwargs) -> List[CandidateSlot]:
        """Slots of a single YYYY-MM-DD date, empty if the agent does not work that day."""
        for group in self.available_slots(property_id, **kwargs):
            if group.date_key == date_key:
                return group.slots
        return []

    def bookings_this_week(self, property_id: str) -> int:
        """Showings of the property in the current Sunday-based week."""
        record = self._repository.get_property(property_id)
        bookings = self._repository.get_bookings_for_property(property_id)
        return count_bookings_in_current_week(
            bookings,
            reference_instant=self._clock(),
            timezone=record.timezone,
        )
