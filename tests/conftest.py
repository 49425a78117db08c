"""
Pytest configuration and fixtures for selas tests.

This module provides an in-memory backend and clients bound to it for both
credential variants.
"""

import pytest
from unittest.mock import AsyncMock, MagicMock

from mock_backend import MockBackend


SERVICE_PARAMS = {
    "app_id": "55d5030b-bb9b-4065-9659-cfde4ecbb4a9",
    "key": "test-key",
    "secret": "test-secret",
}


@pytest.fixture(autouse=True)
def default_config(monkeypatch):
    """Reset the module-level endpoint configuration around each test."""
    from selas.config import DEFAULT_ANON_KEY, DEFAULT_URL, _global_config

    monkeypatch.setitem(_global_config, "url", DEFAULT_URL)
    monkeypatch.setitem(_global_config, "anon_key", DEFAULT_ANON_KEY)


@pytest.fixture
def password_credentials():
    """Email/password credentials."""
    from selas import PasswordCredentials

    return PasswordCredentials(email="owner@example.com", password="hunter2")


@pytest.fixture
def service_credentials():
    """Service credentials matching the mock backend's expectations."""
    from selas import ServiceCredentials

    return ServiceCredentials(**SERVICE_PARAMS)


@pytest.fixture
def backend() -> MockBackend:
    """Empty in-memory backend."""
    return MockBackend(service_credentials=dict(SERVICE_PARAMS))


@pytest.fixture
def selas(backend, password_credentials):
    """Client in session mode."""
    from selas import SelasClient

    return SelasClient(backend, password_credentials)


@pytest.fixture
def service_selas(backend, service_credentials):
    """Client in service-credential mode."""
    from selas import SelasClient

    return SelasClient(backend, service_credentials)


@pytest.fixture
def failing_backend():
    """Backend whose every request fails at the transport level."""
    import httpx

    backend = MagicMock()
    error = httpx.ConnectError("connection refused")
    backend.table.return_value.select.return_value.eq.return_value.execute = AsyncMock(
        side_effect=error
    )
    backend.rpc.return_value.execute = AsyncMock(side_effect=error)
    return backend
