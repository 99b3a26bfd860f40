"""
Conversion of stored showing/agent/property documents into domain objects.
"""

import logging
from typing import Any, Dict, Iterable, List, Mapping, Optional

import pendulum
from pendulum import DateTime
from pydantic import ValidationError

from ..config import AgentSettings, PropertyRecord
from ..domain.exceptions import ConfigurationError, RepositoryError
from ..domain.models import ExistingBooking

logger = logging.getLogger(__name__)

# Showings in these states no longer occupy their slot
RELEASED_STATUSES = frozenset({"cancelled"})


def parse_instant(value: Any) -> DateTime:
    """Parse an ISO 8601 timestamp into an aware pendulum DateTime."""
    if isinstance(value, DateTime):
        return value

    parsed = pendulum.parse(str(value))
    if not isinstance(parsed, DateTime):
        raise ValueError(f"Could not parse datetime: {value}")
    return parsed


def showing_to_booking(document: Mapping[str, Any]) -> Optional[ExistingBooking]:
    """
    Convert a showing document to an ExistingBooking.

    Returns None for released showings.

    Raises:
        KeyError, ValueError, TypeError: If the document is malformed
    """
    if str(document.get("status", "")).lower() in RELEASED_STATUSES:
        return None

    duration = document.get("duration")
    return ExistingBooking(
        start=parse_instant(document["scheduledAt"]),
        duration_minutes=int(duration) if duration is not None else None,
        booking_id=document.get("id"),
    )


def showings_to_bookings(documents: Iterable[Mapping[str, Any]]) -> List[ExistingBooking]:
    """Convert showing documents, skipping released and malformed entries."""
    bookings: List[ExistingBooking] = []

    for document in documents:
        try:
            booking = showing_to_booking(document)
        except (KeyError, ValueError, TypeError) as exc:
            logger.warning("Skipping malformed showing %s: %s", document.get("id", "?"), exc)
            continue

        if booking is not None:
            bookings.append(booking)

    return bookings


def agent_to_settings(agent_id: str, document: Mapping[str, Any]) -> AgentSettings:
    """Validate the settings map of an agent document."""
    settings: Dict[str, Any] = document.get("settings") or {}
    try:
        return AgentSettings.model_validate(settings)
    except ValidationError as exc:
        raise ConfigurationError(f"Invalid scheduling settings for agent {agent_id}: {exc}") from exc


def property_to_record(property_id: str, document: Mapping[str, Any]) -> PropertyRecord:
    """Validate a property document."""
    data = dict(document)
    data.setdefault("id", property_id)
    try:
        return PropertyRecord.model_validate(data)
    except ValidationError as exc:
        raise RepositoryError(f"Invalid property document {property_id}: {exc}") from exc
