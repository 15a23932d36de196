"""Pytest fixtures for ivyrecall integration tests.

These fixtures extend the base fixtures from tests/conftest.py. The session-wide
TestClient drives the app lifespan, which initializes and connects the services.
"""

from typing import AsyncGenerator, Generator

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from httpx import ASGITransport, AsyncClient


@pytest.fixture(scope="session")
def test_client(fastapi_app: FastAPI) -> Generator[TestClient, None, None]:
    """
    Create TestClient for FastAPI app.

    Entering the client runs the lifespan, so services are ready for every test.
    """
    with TestClient(fastapi_app) as client:
        yield client


@pytest.fixture
async def async_client(fastapi_app: FastAPI, test_client: TestClient) -> AsyncGenerator[AsyncClient, None]:
    """
    Create async client for FastAPI app.

    Depends on test_client so the lifespan has already initialized the services.
    """
    transport = ASGITransport(app=fastapi_app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
