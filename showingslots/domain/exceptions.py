"""
Domain-specific exception hierarchy for the showing slot generator.
"""


class ShowingSlotsError(Exception):
    """Base class for all application-level errors."""


class ConfigurationError(ShowingSlotsError, ValueError):
    """Raised when working hours, durations or timezones are malformed."""


class RepositoryError(ShowingSlotsError):
    """Raised when agent, property or showing data cannot be fetched or parsed."""


class BookingDisabledError(ShowingSlotsError):
    """Raised when a property does not accept self-booked showings."""
