"""
Adapters layer - Data sources for agents, properties and showings.
"""

from .firestore_repository import FirestoreShowingRepository
from .json_repository import JsonShowingRepository

__all__ = ["FirestoreShowingRepository", "JsonShowingRepository"]
