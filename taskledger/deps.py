"""Dependency injection helpers for FastAPI."""

from functools import lru_cache

from fastapi import Depends, HTTPException, Request, status

from .config import Settings
from .container import AppContainer
from .repositories.task_repository import TaskRepository
from .repositories.user_repository import UserRepository
from .storage.gateway import PersistenceGateway


@lru_cache()
def get_settings() -> Settings:
    """Get application settings (cached)."""
    return Settings()


def get_container(request: Request) -> AppContainer:
    """Get the container built during application startup."""
    container = getattr(request.app.state, "container", None)
    if container is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Application is not initialized",
        )
    return container


def get_task_repository(container: AppContainer = Depends(get_container)) -> TaskRepository:
    return container.tasks


def get_user_repository(container: AppContainer = Depends(get_container)) -> UserRepository:
    return container.users


def get_gateway(container: AppContainer = Depends(get_container)) -> PersistenceGateway:
    return container.gateway
