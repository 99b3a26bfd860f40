"""
Configuration management using Pydantic models loaded from YAML.

Agent settings and property records use the camelCase field names the web
app stores, so the same models validate both YAML files and stored documents.
"""

import os
from pathlib import Path
from typing import Any, Dict, Optional

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator
from pydantic.alias_generators import to_camel

from .domain.exceptions import ConfigurationError
from .domain.models import (
    WEEKDAY_NAMES,
    BookingWindow,
    SlotParameters,
    WeeklySchedule,
    WorkingHoursDay,
    parse_time_of_day,
)
from .domain.timezones import DEFAULT_TIMEZONE, get_timezone_for_state, validate_timezone

FIRESTORE_TOKEN_ENV = "SHOWINGSLOTS_FIRESTORE_TOKEN"


class StoredModel(BaseModel):
    """Base for models that mirror stored camelCase documents."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class WorkingHoursConfig(StoredModel):
    """Working hours for one weekday."""
    start: str = "09:00"
    end: str = "17:00"
    enabled: bool = False

    @field_validator("start", "end")
    @classmethod
    def validate_time(cls, value: str) -> str:
        """Ensure the value parses as HH:MM."""
        parse_time_of_day(value)
        return value

    def to_domain(self) -> WorkingHoursDay:
        return WorkingHoursDay.from_strings(self.start, self.end, self.enabled)


def _default_working_hours() -> Dict[str, WorkingHoursConfig]:
    return {
        name: WorkingHoursConfig(enabled=name not in ("saturday", "sunday"))
        for name in WEEKDAY_NAMES
    }


class AgentSettings(StoredModel):
    """Scheduling settings of an agent."""
    default_showing_duration: int = 30
    buffer_time: int = 15
    booking_window: int = 14
    working_hours: Dict[str, WorkingHoursConfig] = Field(default_factory=_default_working_hours)

    @field_validator("default_showing_duration")
    @classmethod
    def validate_duration(cls, value: int) -> int:
        """Ensure showing duration is positive."""
        if value <= 0:
            raise ValueError("default_showing_duration must be greater than zero")
        return value

    @field_validator("buffer_time", "booking_window")
    @classmethod
    def validate_not_negative(cls, value: int) -> int:
        if value < 0:
            raise ValueError(f"Value must not be negative, got {value}")
        return value

    @field_validator("working_hours")
    @classmethod
    def validate_weekdays(cls, value: Dict[str, WorkingHoursConfig]) -> Dict[str, WorkingHoursConfig]:
        """Normalise weekday keys to lowercase and reject unknown names."""
        normalized = {name.lower(): hours for name, hours in value.items()}
        unknown = [name for name in normalized if name not in WEEKDAY_NAMES]
        if unknown:
            raise ValueError(f"Unknown weekday name(s): {', '.join(sorted(unknown))}")
        return normalized

    def to_schedule(self) -> WeeklySchedule:
        return WeeklySchedule(
            days={name: hours.to_domain() for name, hours in self.working_hours.items()}
        )

    def to_parameters(self) -> SlotParameters:
        return SlotParameters(
            showing_duration_minutes=self.default_showing_duration,
            buffer_minutes=self.buffer_time,
        )

    def to_window(self, days_ahead: Optional[int] = None) -> BookingWindow:
        return BookingWindow(days_ahead=self.booking_window if days_ahead is None else days_ahead)


class PropertyRecord(StoredModel):
    """The parts of a property listing that scheduling needs."""
    id: str
    agent_id: str
    timezone: str = ""
    is_booking_enabled: bool = True
    address: Dict[str, Any] = Field(default_factory=dict)

    @model_validator(mode="after")
    def resolve_timezone(self) -> "PropertyRecord":
        """Fall back to the zone of the address state when none is stored."""
        if not self.timezone:
            state = str(self.address.get("state") or "")
            zone = get_timezone_for_state(state) if state else DEFAULT_TIMEZONE
            self.timezone = validate_timezone(zone)
        return self

    @field_validator("timezone")
    @classmethod
    def validate_timezone_name(cls, value: str) -> str:
        if value:
            validate_timezone(value)
        return value


class FirestoreConfig(BaseModel):
    """Firestore REST access."""
    project_id: str
    database: str = "(default)"

    def get_access_token(self) -> str:
        """Read the bearer token from the environment."""
        token = os.environ.get(FIRESTORE_TOKEN_ENV, "")
        if not token:
            raise ConfigurationError(
                f"Firestore access requires the {FIRESTORE_TOKEN_ENV} environment variable."
            )
        return token


class AppConfig(BaseModel):
    """Application configuration."""
    data_file: Path = Path("showings.json")
    firestore: Optional[FirestoreConfig] = None
    log_level: str = "WARNING"

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, value: str) -> str:
        level = value.upper()
        if level not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ValueError(f"Unknown log level: {value}")
        return level

    def resolve_data_file(self, config_path: Path) -> Path:
        """Resolve a relative data_file against the config file's directory."""
        if self.data_file.is_absolute():
            return self.data_file
        return config_path.parent / self.data_file

    @classmethod
    def load_from_yaml(cls, config_path: Path) -> "AppConfig":
        """
        Load configuration from YAML file.

        Args:
            config_path: Path to the YAML config file

        Returns:
            AppConfig instance

        Raises:
            FileNotFoundError: If config file doesn't exist
            ConfigurationError: If config is invalid
        """
        if not config_path.exists():
            raise FileNotFoundError(
                f"Config file not found: {config_path}\n"
                f"Please create a config.yaml file. See config.example.yaml for reference."
            )

        try:
            with open(config_path, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
        except yaml.YAMLError as exc:
            raise ConfigurationError(f"Invalid YAML in {config_path}: {exc}") from exc

        if not isinstance(data, dict):
            raise ConfigurationError("Config file must contain a mapping at the root level.")

        try:
            return cls(**data)
        except ValidationError as exc:
            raise ConfigurationError(f"Invalid configuration in {config_path}: {exc}") from exc


def get_default_config_path() -> Path:
    """Get the default configuration file path."""
    # Look for config.yaml in current directory
    current_dir = Path.cwd()
    config_path = current_dir / "config.yaml"

    if not config_path.exists():
        # Try in the project root (parent of the package)
        project_root = Path(__file__).parent.parent
        config_path = project_root / "config.yaml"

    return config_path
