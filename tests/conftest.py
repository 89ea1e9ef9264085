"""Shared test fixtures and configuration for the test suite."""

from datetime import date, timedelta
from pathlib import Path
from typing import Generator, Optional

import pytest
from fastapi.testclient import TestClient

from taskledger.config import Settings
from taskledger.container import AppContainer, build_container
from taskledger.main import create_app
from taskledger.repositories.task_repository import TaskRepository
from taskledger.repositories.user_repository import UserRepository
from taskledger.storage.gateway import PersistenceGateway
from taskledger.storage.kv import InMemoryKeyValueStore


class FailingKeyValueStore(InMemoryKeyValueStore):
    """In-memory store whose writes can be switched off.

    The availability check writes before any test runs, so ``fail_writes``
    starts False and is flipped by the test once the gateway is built.
    ``fail_mode="raise"`` raises instead of returning False.
    """

    def __init__(self, fail_mode: str = "return", fail_check: bool = False):
        super().__init__()
        self.fail_mode = fail_mode
        self.fail_writes = fail_check

    def set(self, key: str, value: bytes) -> bool:
        if self.fail_writes:
            if self.fail_mode == "raise":
                raise OSError("disk full")
            return False
        return super().set(key, value)


@pytest.fixture
def kv_store() -> InMemoryKeyValueStore:
    """Fresh in-memory key-value store."""
    return InMemoryKeyValueStore()


@pytest.fixture
def gateway(kv_store) -> PersistenceGateway:
    """Gateway over the in-memory store."""
    return PersistenceGateway(kv_store, namespace="testApp", version="2.0")


@pytest.fixture
def failing_store() -> FailingKeyValueStore:
    return FailingKeyValueStore()


@pytest.fixture
def failing_gateway(failing_store) -> PersistenceGateway:
    return PersistenceGateway(failing_store, namespace="testApp", version="2.0")


@pytest.fixture
def unavailable_gateway() -> PersistenceGateway:
    """Gateway whose store rejected the availability check."""
    return PersistenceGateway(FailingKeyValueStore(fail_check=True), namespace="testApp")


@pytest.fixture
def task_repository(gateway) -> TaskRepository:
    """Task repository backed by the in-memory gateway."""
    return TaskRepository(gateway)


@pytest.fixture
def user_repository(gateway) -> UserRepository:
    """User repository backed by the in-memory gateway."""
    return UserRepository(gateway)


@pytest.fixture
def today() -> date:
    return date.today()


@pytest.fixture
def make_task(task_repository, today):
    """Factory creating tasks owned by ``user_1`` unless told otherwise."""

    def _make(title: str = "Task", due_in: Optional[int] = None, **fields):
        data = {"title": title, "owner_id": "user_1", **fields}
        if due_in is not None:
            data["due_date"] = today + timedelta(days=due_in)
        return task_repository.create(data)

    return _make


@pytest.fixture
def test_settings(tmp_path: Path) -> Settings:
    """Create test settings with temporary directories."""
    return Settings(
        storage_backend="memory",
        data_dir=tmp_path / "store",
        log_dir=tmp_path / "logs",
        log_level="DEBUG",
        environment="test",
    )


@pytest.fixture
def container(test_settings) -> AppContainer:
    return build_container(test_settings)


@pytest.fixture
def client(test_settings, container) -> Generator[TestClient, None, None]:
    """FastAPI test client sharing ``container`` with the test."""
    app = create_app(test_settings, container=container)
    with TestClient(app) as test_client:
        yield test_client
