"""Composition root: builds the storage stack and repositories from settings."""

import logging
from dataclasses import dataclass
from typing import Optional

from .config import Settings
from .repositories.task_repository import TaskRepository
from .repositories.user_repository import UserRepository
from .storage.gateway import PersistenceGateway
from .storage.kv import FileKeyValueStore, InMemoryKeyValueStore, KeyValueStore

logger = logging.getLogger(__name__)


@dataclass
class AppContainer:
    """Everything a consumer needs, constructed once and passed by reference."""

    settings: Settings
    gateway: PersistenceGateway
    tasks: TaskRepository
    users: UserRepository


def build_key_value_store(settings: Settings) -> KeyValueStore:
    if settings.storage_backend == "memory":
        return InMemoryKeyValueStore()
    return FileKeyValueStore(settings.data_dir)


def build_container(settings: Settings, store: Optional[KeyValueStore] = None) -> AppContainer:
    """Wire gateway and repositories together.

    Args:
        settings: Application settings
        store: Key-value store to use instead of the configured backend

    Returns:
        Container holding the gateway and both repositories
    """
    if store is None:
        store = build_key_value_store(settings)

    gateway = PersistenceGateway(store, namespace=settings.app_name, version=settings.schema_version)
    container = AppContainer(
        settings=settings,
        gateway=gateway,
        tasks=TaskRepository(gateway, strict=settings.strict_persistence),
        users=UserRepository(gateway, strict=settings.strict_persistence),
    )

    logger.info(f"Container ready: {container.tasks.count()} tasks, {container.users.count()} users")
    return container
