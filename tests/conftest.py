"""
Pytest configuration and fixtures for ivyrecall tests.

Unit tests build services directly on an isolated Variables instance that does NOT
pull from environment variables. Integration tests build the FastAPI app through
preconfigure() in test mode; the app's lifespan (driven by TestClient) initializes
and shuts down the services.

Usage in tests:
    async def test_something(recall_service, storage):
        await storage.add_memory(make_record(...))
        result = await recall_service.recall(RecallInput(...))
"""
import logging
from datetime import datetime, timedelta, timezone
from typing import Optional

import pytest
from scitrera_app_framework import Variables

from ivyrecall_server.config import (
    IVYRECALL_DATA_DIR,
    IVYRECALL_EMBEDDING_PROVIDER,
    IVYRECALL_STORAGE_BACKEND,
    IVYRECALL_METRICS_SERVICE,
)
from ivyrecall_server.models import MemoryRecord
from ivyrecall_server.services.embedding import EmbeddingService
from ivyrecall_server.services.embedding.mock import MockEmbeddingProvider
from ivyrecall_server.services.gravity.in_memory import InMemoryGravityFieldStore
from ivyrecall_server.services.integrity.static import StaticIntegrityProvider
from ivyrecall_server.services.metrics.in_memory import InMemoryMetricsService
from ivyrecall_server.services.recall import RecallService
from ivyrecall_server.services.storage.in_memory import MemoryStorageBackend

TEST_USER = "user_test"


def make_record(
        memory_id: str,
        content: str,
        importance: float = 0.5,
        age: timedelta = timedelta(hours=2),
        emotion: Optional[str] = None,
        session_id: Optional[str] = None,
        user_id: str = TEST_USER,
        now: Optional[datetime] = None,
        **kwargs,
) -> MemoryRecord:
    """
    Create a MemoryRecord for tests.

    Args:
        memory_id: Unique memory identifier
        content: Memory content
        importance: Memory gravity
        age: How long ago the record was created
        emotion: Optional emotion label
        session_id: Optional session
        user_id: Owner (defaults to TEST_USER)
        now: Reference time (defaults to the current UTC time)

    Returns:
        MemoryRecord with the requested fields
    """
    now = now or datetime.now(timezone.utc)
    return MemoryRecord(
        id=memory_id,
        user_id=user_id,
        content=content,
        importance=importance,
        created_at=now - age,
        emotion=emotion,
        session_id=session_id,
        **kwargs,
    )


# -----------------------------------------------------------------------------
# Logging Configuration (initialized by test harness, not framework)
# -----------------------------------------------------------------------------

@pytest.fixture(scope="session")
def test_logger() -> logging.Logger:
    """
    Create a root logger for tests.

    The test harness owns logging configuration, not the framework.
    """
    logger = logging.getLogger("ivyrecall-test")
    logger.setLevel(logging.DEBUG)

    if not logger.handlers:
        handler = logging.StreamHandler()
        handler.setLevel(logging.DEBUG)
        formatter = logging.Formatter(
            '%(asctime)s %(levelname)s %(name)s %(funcName)s() > %(message)s',
            datefmt='%Y/%m/%d %H:%M:%S'
        )
        handler.setFormatter(formatter)
        logger.addHandler(handler)

    return logger


# -----------------------------------------------------------------------------
# Directly constructed services (unit tests)
# -----------------------------------------------------------------------------

@pytest.fixture
def mock_v() -> Variables:
    """Provide a Variables instance for direct service construction."""
    return Variables()


@pytest.fixture
def storage(mock_v) -> MemoryStorageBackend:
    return MemoryStorageBackend(v=mock_v)


@pytest.fixture
def embedding_service(mock_v) -> EmbeddingService:
    return EmbeddingService(v=mock_v, provider=MockEmbeddingProvider(v=mock_v))


@pytest.fixture
def metrics() -> InMemoryMetricsService:
    return InMemoryMetricsService()


@pytest.fixture
def integrity_provider(mock_v) -> StaticIntegrityProvider:
    return StaticIntegrityProvider(v=mock_v)


@pytest.fixture
def gravity_store(mock_v) -> InMemoryGravityFieldStore:
    return InMemoryGravityFieldStore(v=mock_v)


@pytest.fixture
def recall_service(mock_v, storage, embedding_service, integrity_provider, gravity_store, metrics) -> RecallService:
    return RecallService(
        storage=storage,
        embedding_service=embedding_service,
        integrity_provider=integrity_provider,
        gravity_store=gravity_store,
        metrics=metrics,
        v=mock_v,
    )


# -----------------------------------------------------------------------------
# Framework Initialization with Test Isolation (integration tests)
# -----------------------------------------------------------------------------

@pytest.fixture(scope="session")
def test_configuration() -> Variables:
    """
    Create an isolated Variables instance to provide custom configuration
    of key environment variables for tests.
    """
    v = Variables()
    v.set(IVYRECALL_EMBEDDING_PROVIDER, "mock")
    v.set(IVYRECALL_STORAGE_BACKEND, "memory")
    v.set(IVYRECALL_METRICS_SERVICE, "in-memory")
    return v


@pytest.fixture(scope="session")
def test_framework(test_configuration, tmp_path_factory, test_logger):
    """
    Register all plugins on an isolated framework instance for the test session.

    Yields:
        tuple: (v: Variables, services: module)
    """
    from ivyrecall_server.dependencies import preconfigure

    tmp_dir = tmp_path_factory.mktemp("ivyrecall_test")

    v = test_configuration
    v.set(IVYRECALL_DATA_DIR, str(tmp_dir))

    v, services = preconfigure(v=v, test_mode=True, test_logger=test_logger)
    yield v, services


@pytest.fixture(scope="session")
def v(test_framework) -> Variables:
    """Isolated Variables instance for integration tests."""
    v, _ = test_framework
    return v


@pytest.fixture(scope="session")
def fastapi_app(test_framework):
    """FastAPI app instance for tests."""
    from ivyrecall_server.lifecycle.fastapi import fastapi_app_factory
    v, _ = test_framework
    return fastapi_app_factory(v=v)


@pytest.fixture
def record_factory():
    """The make_record() helper, for test modules (which cannot import conftest directly)."""
    return make_record
