"""
Service layer helpers that orchestrate adapters and domain logic.
"""

from .showing_scheduler import ShowingRepositoryProtocol, ShowingSchedulerService

__all__ = ["ShowingRepositoryProtocol", "ShowingSchedulerService"]
