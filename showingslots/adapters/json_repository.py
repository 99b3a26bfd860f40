"""
File-backed repository reading agents, properties and showings from JSON.
"""

import json
import logging
from pathlib import Path
from typing import Any, Dict, List

from ..config import AgentSettings, PropertyRecord
from ..domain.exceptions import RepositoryError
from ..domain.models import ExistingBooking
from .documents import agent_to_settings, property_to_record, showings_to_bookings

logger = logging.getLogger(__name__)


class JsonShowingRepository:
    """
    Repository over a JSON export of the booking database.

    Expected layout::

        {
            "agents": {"<agentId>": {"settings": {...}}},
            "properties": {"<propertyId>": {"agentId": "...", "timezone": "..."}},
            "showings": [{"id": "...", "propertyId": "...", "scheduledAt": "...", ...}]
        }
    """

    def __init__(self, data_file: Path):
        self.data_file = Path(data_file)
        self._data = self._load_data()

    def _load_data(self) -> Dict[str, Any]:
        """Load the JSON document once."""
        if not self.data_file.exists():
            raise RepositoryError(f"Data file not found: {self.data_file}")

        try:
            with open(self.data_file, "r", encoding="utf-8") as f:
                data = json.load(f)
        except json.JSONDecodeError as exc:
            raise RepositoryError(f"Invalid JSON in {self.data_file}: {exc}") from exc

        if not isinstance(data, dict):
            raise RepositoryError("Data file must contain an object at the root level.")

        logger.debug(
            "Loaded %s agents, %s properties, %s showings from %s",
            len(data.get("agents", {})),
            len(data.get("properties", {})),
            len(data.get("showings", [])),
            self.data_file,
        )
        return data

    def get_property(self, property_id: str) -> PropertyRecord:
        document = self._data.get("properties", {}).get(property_id)
        if document is None:
            raise RepositoryError(f"Property not found: {property_id}")
        return property_to_record(property_id, document)

    def get_agent_settings(self, agent_id: str) -> AgentSettings:
        document = self._data.get("agents", {}).get(agent_id)
        if document is None:
            raise RepositoryError(f"Agent not found: {agent_id}")
        return agent_to_settings(agent_id, document)

    def get_bookings_for_property(self, property_id: str) -> List[ExistingBooking]:
        """Non-cancelled showings of a property."""
        documents = [
            showing for showing in self._data.get("showings", [])
            if isinstance(showing, dict) and showing.get("propertyId") == property_id
        ]
        return showings_to_bookings(documents)
