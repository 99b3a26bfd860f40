"""
Timezone helpers for properties located in the United States.

Properties store an IANA identifier. Listings created from an address only
know the state, so the state code is mapped to the zone covering most of it.
"""

from typing import Optional

import pendulum
from pendulum import DateTime

from .exceptions import ConfigurationError

DEFAULT_TIMEZONE = "America/New_York"

US_TIMEZONES = {
    # Eastern
    "CT": "America/New_York",
    "DE": "America/New_York",
    "FL": "America/New_York",
    "GA": "America/New_York",
    "IN": "America/New_York",  # most of Indiana
    "KY": "America/New_York",  # eastern Kentucky
    "ME": "America/New_York",
    "MD": "America/New_York",
    "MA": "America/New_York",
    "MI": "America/New_York",
    "NH": "America/New_York",
    "NJ": "America/New_York",
    "NY": "America/New_York",
    "NC": "America/New_York",
    "OH": "America/New_York",
    "PA": "America/New_York",
    "RI": "America/New_York",
    "SC": "America/New_York",
    "VT": "America/New_York",
    "VA": "America/New_York",
    "WV": "America/New_York",
    # Central
    "AL": "America/Chicago",
    "AR": "America/Chicago",
    "IL": "America/Chicago",
    "IA": "America/Chicago",
    "KS": "America/Chicago",
    "LA": "America/Chicago",
    "MN": "America/Chicago",
    "MS": "America/Chicago",
    "MO": "America/Chicago",
    "NE": "America/Chicago",
    "ND": "America/Chicago",
    "OK": "America/Chicago",
    "SD": "America/Chicago",
    "TN": "America/Chicago",
    "TX": "America/Chicago",
    "WI": "America/Chicago",
    # Mountain
    "AZ": "America/Phoenix",  # no DST
    "CO": "America/Denver",
    "ID": "America/Denver",
    "MT": "America/Denver",
    "NM": "America/Denver",
    "UT": "America/Denver",
    "WY": "America/Denver",
    # Pacific
    "CA": "America/Los_Angeles",
    "NV": "America/Los_Angeles",
    "OR": "America/Los_Angeles",
    "WA": "America/Los_Angeles",
    # Alaska / Hawaii
    "AK": "America/Anchorage",
    "HI": "Pacific/Honolulu",
}

_LONG_NAMES = {
    "EST": "Eastern Standard Time",
    "EDT": "Eastern Daylight Time",
    "CST": "Central Standard Time",
    "CDT": "Central Daylight Time",
    "MST": "Mountain Standard Time",
    "MDT": "Mountain Daylight Time",
    "PST": "Pacific Standard Time",
    "PDT": "Pacific Daylight Time",
    "AKST": "Alaska Standard Time",
    "AKDT": "Alaska Daylight Time",
    "HST": "Hawaii-Aleutian Standard Time",
    "UTC": "Coordinated Universal Time",
}


def get_timezone_for_state(state_code: str) -> str:
    """Map a two-letter state code to an IANA zone, defaulting to Eastern."""
    return US_TIMEZONES.get(state_code.strip().upper(), DEFAULT_TIMEZONE)


def validate_timezone(name: str) -> str:
    """
    Return the identifier unchanged if pendulum knows it.

    Raises:
        ConfigurationError: If the identifier is not a known IANA zone
    """
    if not isinstance(name, str) or not name:
        raise ConfigurationError(f"Invalid timezone: {name!r}")
    try:
        pendulum.timezone(name)
    except (KeyError, ValueError) as exc:
        raise ConfigurationError(f"Unknown timezone: {name!r}") from exc
    return name


def get_short_timezone_name(timezone: str, at: Optional[DateTime] = None) -> str:
    """Abbreviation in effect at the given instant, e.g. "EST" or "PDT"."""
    instant = (at or pendulum.now("UTC")).in_timezone(validate_timezone(timezone))
    return instant.tzname() or ""


def get_long_timezone_name(timezone: str, at: Optional[DateTime] = None) -> str:
    """Spelled-out zone name, falling back to the abbreviation."""
    short = get_short_timezone_name(timezone, at)
    return _LONG_NAMES.get(short, short)


def format_in_timezone(instant: DateTime, timezone: str, fmt: str = "ddd, MMM D h:mm A") -> str:
    """Render an instant as wall-clock time in the given zone."""
    return instant.in_timezone(validate_timezone(timezone)).format(fmt, locale="en")
