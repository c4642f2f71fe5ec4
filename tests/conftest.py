"""
Pytest configuration and shared fixtures for the OAuth2 provider tests.

This module provides a scriptable fake backend, applications wired to it
or to the in-memory backend, and OAuth assertion helpers used across all
test modules.
"""

import pytest
from typing import Dict, List, Optional, Tuple

from fastapi import FastAPI
from fastapi.testclient import TestClient

from src.demo_server.storage import InMemoryBackend
from src.provider.backend import IssuedTokens, OAuth2Backend
from src.provider.config import ProviderConfig
from src.provider.router import mount_provider
from src.shared.oauth_errors import ErrorCode, OAuth2Error
from src.shared.security import pwd_context

CLIENT_ID = "c1"
CLIENT_SECRET = "s1"
REDIRECT_URI = "https://client.example/cb"


class FakeBackend(OAuth2Backend):
    """
    Backend returning configured results and recording every call.

    Set one of the ``*_error`` attributes to make the matching operation
    raise it.
    """

    def __init__(self):
        self.clients: Dict[str, str] = {CLIENT_ID: CLIENT_SECRET}
        self.code = "ABC123"
        self.exchange_tokens = IssuedTokens(access_token="tok")
        self.refresh_tokens = IssuedTokens(access_token="tok2")
        self.authenticate_error: Optional[Exception] = None
        self.authorize_error: Optional[Exception] = None
        self.exchange_error: Optional[Exception] = None
        self.refresh_error: Optional[Exception] = None
        self.calls: List[Tuple] = []

    def authenticate(self, client_id, client_secret):
        self.calls.append(("authenticate", client_id, client_secret))
        if self.authenticate_error is not None:
            raise self.authenticate_error
        if self.clients.get(client_id) != client_secret:
            raise OAuth2Error(ErrorCode.INVALID_CLIENT, "invalid client credentials")

    def authorize(self, client_id, scope, redirect_uri):
        self.calls.append(("authorize", client_id, scope, redirect_uri))
        if self.authorize_error is not None:
            raise self.authorize_error
        return self.code

    def exchange(self, client_id, code, redirect_uri):
        self.calls.append(("exchange", client_id, code, redirect_uri))
        if self.exchange_error is not None:
            raise self.exchange_error
        return self.exchange_tokens

    def refresh(self, refresh_token, scope):
        self.calls.append(("refresh", refresh_token, scope))
        if self.refresh_error is not None:
            raise self.refresh_error
        return self.refresh_tokens

    def calls_to(self, operation: str) -> List[Tuple]:
        return [call for call in self.calls if call[0] == operation]


@pytest.fixture
def fake_backend() -> FakeBackend:
    """Scriptable backend with client c1/s1 registered."""
    return FakeBackend()


@pytest.fixture
def make_backend():
    """Factory for additional fake backends."""
    return FakeBackend


@pytest.fixture
def provider_config() -> ProviderConfig:
    """Default provider configuration."""
    return ProviderConfig()


@pytest.fixture
def provider_app(fake_backend, provider_config) -> FastAPI:
    """Bare application with only the provider endpoints mounted."""
    app = FastAPI()
    mount_provider(app, fake_backend, provider_config)
    return app


@pytest.fixture
def client(provider_app) -> TestClient:
    """Test client that does not follow redirects."""
    return TestClient(provider_app, follow_redirects=False)


@pytest.fixture
def client_auth() -> Tuple[str, str]:
    """Valid Basic credentials for the fake backend."""
    return (CLIENT_ID, CLIENT_SECRET)


@pytest.fixture
def authorize_params() -> Dict[str, str]:
    """Valid authorization request parameters."""
    return {
        "client_id": CLIENT_ID,
        "response_type": "code",
        "redirect_uri": REDIRECT_URI,
        "state": "xyz"
    }


@pytest.fixture
def fast_secret_context():
    """bcrypt context with the minimum cost, to keep hashing fast in tests."""
    return pwd_context.copy(bcrypt__rounds=4)


@pytest.fixture
def memory_backend(fast_secret_context) -> InMemoryBackend:
    """In-memory backend with client c1/s1 allowed the read and write scopes."""
    backend = InMemoryBackend(secret_context=fast_secret_context)
    backend.register_client(
        CLIENT_ID, CLIENT_SECRET,
        redirect_uris=[REDIRECT_URI],
        scopes=["read", "write"]
    )
    return backend


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
        "markers", "integration: marks tests as integration tests"
    )
    config.addinivalue_line(
        "markers", "security: marks tests as security-focused tests"
    )
    config.addinivalue_line(
        "markers", "unit: marks tests as unit tests"
    )


def pytest_collection_modifyitems(config, items):
    """Add markers based on test file names."""
    for item in items:
        if "integration" in item.nodeid:
            item.add_marker(pytest.mark.integration)
        elif "security" in item.nodeid or "error_handling" in item.nodeid:
            item.add_marker(pytest.mark.security)
        else:
            item.add_marker(pytest.mark.unit)


# Custom assertions for OAuth testing
def assert_oauth_error(response, error: str, description: Optional[str] = None):
    """Assert a 400 response carrying the given OAuth2 error."""
    assert response.status_code == 400, response.text
    data = response.json()
    assert data["error"] == error
    assert data["error"] in {code.value for code in ErrorCode}
    if description is not None:
        assert data["error_description"] == description
    assert set(data) <= {"error", "error_description", "error_uri"}


def assert_valid_token_response(response_data: dict):
    """Assert that a response contains a valid token response."""
    assert isinstance(response_data, dict)
    assert isinstance(response_data["access_token"], str)
    assert len(response_data["access_token"]) > 0
    assert response_data["token_type"] == "Bearer"

    if "expires_in" in response_data:
        assert isinstance(response_data["expires_in"], int)
        assert response_data["expires_in"] != 0


pytest.assert_oauth_error = assert_oauth_error
pytest.assert_valid_token_response = assert_valid_token_response
