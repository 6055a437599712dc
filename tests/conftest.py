"""Shared pytest fixtures for gdrive-mcp tests.

This module provides reusable fixtures for client credentials, token
storage, settings pointing at temporary files, and a stubbed Drive client.
"""

import json
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Any
from unittest.mock import AsyncMock, MagicMock

import pytest

from gdrive_mcp.auth.models import ClientCredentials, OAuthToken
from gdrive_mcp.auth.token_storage import TokenStorage
from gdrive_mcp.config import Settings
from gdrive_mcp.tools import ToolDispatcher

# =============================================================================
# Credential Fixtures
# =============================================================================


@pytest.fixture
def client_registration() -> dict[str, Any]:
    """Client secrets document as downloaded from the Google Cloud console."""
    return {
        "installed": {
            "client_id": "test-client-id.apps.googleusercontent.com",
            "client_secret": "test_client_secret",  # pragma: allowlist secret
            "redirect_uris": ["http://localhost:3001/oauth2callback"],
            "auth_uri": "https://accounts.google.com/o/oauth2/auth",
            "token_uri": "https://oauth2.googleapis.com/token",
        }
    }


@pytest.fixture
def client_credentials(client_registration: dict[str, Any]) -> ClientCredentials:
    """Parsed client credentials."""
    return ClientCredentials.from_registration(client_registration)


# =============================================================================
# Token Fixtures
# =============================================================================


@pytest.fixture
def valid_token() -> OAuthToken:
    """Create a valid, non-expired OAuth token."""
    return OAuthToken(
        access_token="test_access_token_abc123",
        refresh_token="test_refresh_token_xyz789",
        expiry=datetime.now(timezone.utc) + timedelta(hours=1),
        scope="https://www.googleapis.com/auth/drive.readonly",
        token_type="Bearer",
    )


@pytest.fixture
def expired_token() -> OAuthToken:
    """Create an expired OAuth token."""
    return OAuthToken(
        access_token="expired_access_token",
        refresh_token="test_refresh_token",
        expiry=datetime.now(timezone.utc) - timedelta(hours=1),
        scope="https://www.googleapis.com/auth/drive.readonly",
        token_type="Bearer",
    )


# =============================================================================
# Storage and Settings Fixtures
# =============================================================================


@pytest.fixture
def temp_token_path(tmp_path: Path) -> Path:
    """Get the path for a temporary token.json file."""
    return tmp_path / "token.json"


@pytest.fixture
def temp_credentials_path(tmp_path: Path, client_registration: dict[str, Any]) -> Path:
    """Write client credentials to a temporary credentials.json file."""
    path = tmp_path / "credentials.json"
    path.write_text(json.dumps(client_registration))
    return path


@pytest.fixture
def token_storage(temp_token_path: Path) -> TokenStorage:
    """Create a TokenStorage instance with temporary storage."""
    return TokenStorage(token_path=temp_token_path)


@pytest.fixture
def file_settings(temp_credentials_path: Path, temp_token_path: Path) -> Settings:
    """Settings reading both credentials and token from temporary files."""
    return Settings(credentials_path=temp_credentials_path, token_path=temp_token_path)


# =============================================================================
# Drive Stubs
# =============================================================================


@pytest.fixture
def drive_files() -> list[dict[str, Any]]:
    """File records as Drive returns them for the search_files field selector."""
    return [
        {
            "id": "1",
            "name": "sales.csv",
            "mimeType": "text/csv",
            "modifiedTime": "2025-01-15T10:00:00.000Z",
            "size": "2048",
        }
    ]


@pytest.fixture
def mock_drive(drive_files: list[dict[str, Any]]) -> MagicMock:
    """Stub Drive client with call-count tracking."""
    drive = MagicMock()
    drive.list_files = AsyncMock(return_value=drive_files)
    drive.get_file_content = AsyncMock(return_value="id,amount\n1,100\n")
    drive.close = AsyncMock()
    return drive


@pytest.fixture
def dispatcher(mock_drive: MagicMock) -> ToolDispatcher:
    """Dispatcher bound to the stub Drive client."""
    return ToolDispatcher(mock_drive)


# =============================================================================
# CLI Test Fixtures
# =============================================================================


@pytest.fixture
def cli_runner():
    """Create a Click CLI test runner."""
    from click.testing import CliRunner

    return CliRunner()
