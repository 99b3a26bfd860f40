"""
Read-only Firestore REST client for agents, properties and showings.
"""

import logging
from typing import Any, Dict, List, Optional

import requests

from ..config import AgentSettings, PropertyRecord
from ..domain.exceptions import RepositoryError
from ..domain.models import ExistingBooking
from .documents import agent_to_settings, property_to_record, showings_to_bookings

logger = logging.getLogger(__name__)


def decode_value(value: Dict[str, Any]) -> Any:
    """
    Decode a Firestore typed value into plain Python data.

    Example: {"integerValue": "30"} -> 30
    """
    if "stringValue" in value:
        return value["stringValue"]
    if "integerValue" in value:
        return int(value["integerValue"])
    if "doubleValue" in value:
        return float(value["doubleValue"])
    if "booleanValue" in value:
        return bool(value["booleanValue"])
    if "timestampValue" in value:
        return value["timestampValue"]
    if "nullValue" in value:
        return None
    if "mapValue" in value:
        return decode_fields(value["mapValue"].get("fields", {}))
    if "arrayValue" in value:
        return [decode_value(item) for item in value["arrayValue"].get("values", [])]

    raise ValueError(f"Unsupported Firestore value: {sorted(value)}")


def decode_fields(fields: Dict[str, Any]) -> Dict[str, Any]:
    return {name: decode_value(value) for name, value in fields.items()}


def decode_document(document: Dict[str, Any]) -> Dict[str, Any]:
    """Flatten a Firestore document, adding its id from the resource name."""
    data = decode_fields(document.get("fields", {}))
    data.setdefault("id", document.get("name", "").rsplit("/", 1)[-1])
    return data


class FirestoreShowingRepository:
    """
    Reads scheduling data through the Firestore REST API.

    Uses documents.get for agents/properties and a runQuery structured
    query for the showings of one property.
    """

    FIRESTORE_API_ENDPOINT = "https://firestore.googleapis.com/v1"

    def __init__(
        self,
        project_id: str,
        access_token: str,
        database: str = "(default)",
        session: Optional[requests.Session] = None,
    ):
        """
        Args:
            project_id: Google Cloud project id
            access_token: OAuth bearer token with datastore read scope
            database: Firestore database id
            session: Optional requests session (for connection reuse or tests)
        """
        self.project_id = project_id
        self.session = session or requests.Session()
        self.headers = {
            "Authorization": f"Bearer {access_token}",
            "Content-Type": "application/json",
        }
        self.documents_url = (
            f"{self.FIRESTORE_API_ENDPOINT}/projects/{project_id}/databases/{database}/documents"
        )

    def get_property(self, property_id: str) -> PropertyRecord:
        return property_to_record(property_id, self._get_document("properties", property_id))

    def get_agent_settings(self, agent_id: str) -> AgentSettings:
        return agent_to_settings(agent_id, self._get_document("agents", agent_id))

    def get_bookings_for_property(self, property_id: str) -> List[ExistingBooking]:
        """Non-cancelled showings of a property."""
        payload = {
            "structuredQuery": {
                "from": [{"collectionId": "showings"}],
                "where": {
                    "fieldFilter": {
                        "field": {"fieldPath": "propertyId"},
                        "op": "EQUAL",
                        "value": {"stringValue": property_id},
                    }
                },
            }
        }

        try:
            response = self.session.post(
                f"{self.documents_url}:runQuery",
                headers=self.headers,
                json=payload,
                timeout=30,
            )
            response.raise_for_status()
            rows = response.json()
        except requests.exceptions.RequestException as exc:
            raise RepositoryError(f"Failed to query showings for {property_id}: {exc}") from exc
        except ValueError as exc:
            raise RepositoryError(f"Invalid response for showings of {property_id}: {exc}") from exc

        documents = []
        for row in rows:
            # Rows without a document only carry the read time
            if "document" not in row:
                continue
            try:
                documents.append(decode_document(row["document"]))
            except (ValueError, TypeError) as exc:
                logger.warning("Skipping undecodable showing document: %s", exc)

        logger.debug("Fetched %s showing documents for property %s", len(documents), property_id)
        return showings_to_bookings(documents)

    def _get_document(self, collection: str, document_id: str) -> Dict[str, Any]:
        url = f"{self.documents_url}/{collection}/{document_id}"

        try:
            response = self.session.get(url, headers=self.headers, timeout=30)
            if response.status_code == 404:
                raise RepositoryError(f"Document not found: {collection}/{document_id}")
            response.raise_for_status()
            return decode_document(response.json())
        except requests.exceptions.RequestException as exc:
            raise RepositoryError(f"Failed to fetch {collection}/{document_id}: {exc}") from exc
        except ValueError as exc:
            raise RepositoryError(f"Invalid document {collection}/{document_id}: {exc}") from exc
