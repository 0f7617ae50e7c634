"""Pytest configuration and fixtures."""
import pytest
from unittest.mock import AsyncMock, patch

from fmadmin.services.filemaker.client import FileMakerAdminClient
from fmadmin.services.filemaker.credentials import AdminCredentials
from fmadmin.services.filemaker.secret_store import InMemorySmtpPasswordStore
from fmadmin.services.filemaker.session_manager import SessionManager
from fmadmin.services.filemaker.settings_service import FileMakerSettingsService
from fmadmin.services.filemaker.token_cache import TokenCache
from tests.helpers import FakeAdminServer


@pytest.fixture
def credentials():
    """Admin credentials as a caller would pass them (URL with console path, no scheme)."""
    return AdminCredentials(
        admin_url="fms.example.com/admin-console/",
        username="admin",
        password="admin-pass",
    )


@pytest.fixture
def mock_httpx_client():
    """Mock httpx.AsyncClient."""
    with patch("fmadmin.services.filemaker.client.httpx.AsyncClient") as mock_client:
        client_instance = AsyncMock()
        mock_client.return_value = client_instance
        yield client_instance


@pytest.fixture
def fake_server(mock_httpx_client):
    """Fake Admin API wired into the mocked HTTP client."""
    server = FakeAdminServer()
    mock_httpx_client.post.side_effect = server.sign_in
    mock_httpx_client.request.side_effect = server.handle
    mock_httpx_client.delete.side_effect = server.logout
    return server


@pytest.fixture
def session_manager():
    """Fresh token cache and in-flight registry per test."""
    return SessionManager(TokenCache(ttl_seconds=900))


@pytest.fixture
def fm_client(session_manager, mock_httpx_client):
    """Create FileMakerAdminClient instance for testing."""
    return FileMakerAdminClient(session_manager, verify_ssl=False)


@pytest.fixture
def smtp_passwords():
    return InMemorySmtpPasswordStore({"S1": "stored-smtp-secret"})


@pytest.fixture
def settings_service(fm_client, smtp_passwords):
    return FileMakerSettingsService(fm_client, smtp_passwords)
