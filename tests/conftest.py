"""
Pytest configuration and shared fixtures for consent server tests.

This module provides the application factory fixtures, a fake Hydra admin
client and sample admin API payloads used across the test modules.
"""

import pytest
from typing import Any, Dict
from unittest.mock import AsyncMock, MagicMock

from fastapi.testclient import TestClient

from src.consent_server.config import ServerConfig
from src.consent_server.hydra_client import HydraAdminClient
from src.consent_server.main import create_app
from src.consent_server.routes import get_hydra_admin
from src.shared.consent_models import ConsentRequest, RedirectTo


@pytest.fixture
def dev_config() -> ServerConfig:
    """Development configuration: error pages include details."""
    return ServerConfig(environment="development", hydra_admin_url="http://hydra.test:4445")


@pytest.fixture
def prod_config() -> ServerConfig:
    """Production configuration: error pages hide details."""
    return ServerConfig(environment="production", hydra_admin_url="http://hydra.test:4445")


@pytest.fixture
def consent_request_payload() -> Dict[str, Any]:
    """Consent request body as returned by the Hydra admin API."""
    return {
        "challenge": "abc123",
        "requested_scope": ["openid", "offline_access"],
        "requested_access_token_audience": ["https://api.example"],
        "skip": False,
        "subject": "user-1",
        "client": {"client_id": "first-party-app", "client_name": "First Party"},
        "request_url": "https://hydra.example/oauth2/auth?client_id=first-party-app",
        "login_challenge": "login-xyz",
        "login_session_id": "session-1",
        "oidc_context": {}
    }


@pytest.fixture
def redirect_url() -> str:
    return "https://app.example/callback?code=xyz"


@pytest.fixture
def fake_hydra_admin(consent_request_payload, redirect_url):
    """HydraAdminClient stand-in whose calls succeed by default."""
    fake = MagicMock(spec=HydraAdminClient)
    fake.get_consent_request = AsyncMock(return_value=ConsentRequest(**consent_request_payload))
    fake.accept_consent_request = AsyncMock(return_value=RedirectTo(redirect_to=redirect_url))
    return fake


@pytest.fixture
def dev_app(dev_config, fake_hydra_admin):
    app = create_app(dev_config)
    app.dependency_overrides[get_hydra_admin] = lambda: fake_hydra_admin
    return app


@pytest.fixture
def prod_app(prod_config, fake_hydra_admin):
    app = create_app(prod_config)
    app.dependency_overrides[get_hydra_admin] = lambda: fake_hydra_admin
    return app


@pytest.fixture
def client(dev_app):
    """Test client for the consent server in development mode."""
    return TestClient(dev_app)


@pytest.fixture
def prod_client(prod_app):
    """Test client for the consent server in production mode."""
    return TestClient(prod_app)


def make_response(status_code: int, body: Any = None, text: str = "") -> MagicMock:
    """Mock httpx response for admin API calls."""
    response = MagicMock()
    response.status_code = status_code
    response.text = text
    if body is None:
        response.json.side_effect = ValueError("No JSON body")
    else:
        response.json.return_value = body
    return response


@pytest.fixture(autouse=True)
def disable_logging():
    """Disable logging during tests to reduce noise."""
    import logging
    logging.disable(logging.CRITICAL)
    yield
    logging.disable(logging.NOTSET)


# Pytest configuration
def pytest_configure(config):
    """Configure pytest with custom markers."""
    config.addinivalue_line(
        "markers", "security: marks tests as security-focused tests"
    )
    config.addinivalue_line(
        "markers", "unit: marks tests as unit tests"
    )


def pytest_collection_modifyitems(config, items):
    """Modify test collection to add markers automatically."""
    for item in items:
        if "security" in item.nodeid or "error_handling" in item.nodeid:
            item.add_marker(pytest.mark.security)
        else:
            item.add_marker(pytest.mark.unit)


def assert_error_page(response, message: str):
    """Assert that a response is the rendered error page, not a redirect."""
    assert response.status_code == 500
    assert "location" not in response.headers
    assert message in response.text


pytest.assert_error_page = assert_error_page
pytest.make_response = make_response
