"""
Service Container - Dependency Injection Container

Simple DI container for managing service instances and their dependencies.
Uses lazy loading to only instantiate services when first accessed.
"""

from dataclasses import dataclass, field
from typing import Optional
import logging

logger = logging.getLogger(__name__)


@dataclass
class ServiceContainer:
    """
    Simple dependency injection container for services.

    Services are lazy-loaded on first access via properties.
    Infrastructure dependencies (db, coach model) are injected.
    """

    # Infrastructure dependencies (injected)
    db: object  # Database instance
    coach_model: Optional[object] = None  # PydanticAI model; AI gateway model if None

    # Services (lazy-loaded via properties)
    _progression_service: Optional[object] = field(default=None, init=False, repr=False)
    _goal_service: Optional[object] = field(default=None, init=False, repr=False)
    _coach_service: Optional[object] = field(default=None, init=False, repr=False)

    @property
    def progression_service(self):
        """Get ProgressionService instance (lazy-loaded)"""
        if self._progression_service is None:
            from learnquest.services.progression_service import ProgressionService
            self._progression_service = ProgressionService(self.db)
            logger.debug("ProgressionService instantiated")
        return self._progression_service

    @property
    def goal_service(self):
        """Get GoalService instance (lazy-loaded)"""
        if self._goal_service is None:
            from learnquest.services.goal_service import GoalService
            self._goal_service = GoalService(self.db)
            logger.debug("GoalService instantiated")
        return self._goal_service

    @property
    def coach_service(self):
        """Get CoachService instance (lazy-loaded)"""
        if self._coach_service is None:
            from learnquest.services.coach_service import CoachService
            self._coach_service = CoachService(self.db, self.coach_model)
            logger.debug("CoachService instantiated")
        return self._coach_service


# Global container instance (initialized at API startup)
_container: Optional[ServiceContainer] = None


def get_container() -> ServiceContainer:
    """
    Get the global service container.

    Raises:
        RuntimeError: If container not initialized (call init_container first)
    """
    if _container is None:
        raise RuntimeError(
            "Service container not initialized. "
            "Call init_container() at startup before using services."
        )
    return _container


def init_container(db: object, coach_model: Optional[object] = None) -> ServiceContainer:
    """
    Initialize the global service container.

    Args:
        db: Database instance
        coach_model: Optional PydanticAI model for the coach (tests inject one)
    """
    global _container

    _container = ServiceContainer(db=db, coach_model=coach_model)

    logger.info("Service container initialized")
    return _container
