"""Unit tests for startup authorization."""

import json
from datetime import datetime, timedelta, timezone
from pathlib import Path
from unittest.mock import MagicMock

import pytest

from gdrive_mcp.auth.authorizer import (
    Authorizer,
    authorize,
    credentials_to_token,
    load_client_credentials,
    token_to_credentials,
)
from gdrive_mcp.auth.models import (
    AuthorizationError,
    ClientCredentials,
    CredentialsError,
    OAuthToken,
)
from gdrive_mcp.auth.token_storage import TokenStorage
from gdrive_mcp.config import Settings
from gdrive_mcp.drive_client import DriveClient


@pytest.mark.unit
class TestLoadClientCredentials:
    """Tests for load_client_credentials()."""

    def test_should_load_from_file(self, file_settings: Settings) -> None:
        """Verify credentials are read from GDRIVE_CREDS_PATH."""
        creds = load_client_credentials(file_settings)

        assert creds.client_id == "test-client-id.apps.googleusercontent.com"

    def test_should_prefer_inline_pair(self, file_settings: Settings) -> None:
        """Verify inline JSON wins over files when both variables are set."""
        inline = json.dumps({"web": {"client_id": "inline-id", "client_secret": "s"}})
        settings = file_settings.model_copy(
            update={"credentials_json": inline, "token_json": '{"access_token": "t"}'}
        )

        creds = load_client_credentials(settings)

        assert creds.client_id == "inline-id"

    def test_should_use_file_when_only_credentials_json_set(self, file_settings: Settings) -> None:
        """Verify a lone CREDENTIALS_JSON doesn't override the file."""
        inline = json.dumps({"web": {"client_id": "inline-id", "client_secret": "s"}})
        settings = file_settings.model_copy(update={"credentials_json": inline})

        creds = load_client_credentials(settings)

        assert creds.client_id == "test-client-id.apps.googleusercontent.com"

    def test_should_raise_when_file_missing(self, tmp_path: Path) -> None:
        """Verify a missing credentials file raises CredentialsError."""
        settings = Settings(credentials_path=tmp_path / "missing.json")

        with pytest.raises(CredentialsError, match="not found"):
            load_client_credentials(settings)

    def test_should_raise_when_file_malformed(self, tmp_path: Path) -> None:
        """Verify a malformed credentials file raises CredentialsError."""
        path = tmp_path / "credentials.json"
        path.write_text('{"service_account": {}}')

        with pytest.raises(CredentialsError):
            load_client_credentials(Settings(credentials_path=path))


@pytest.mark.unit
class TestCredentialConversion:
    """Tests for token <-> google-auth credential conversion."""

    def test_should_build_refreshable_credentials(
        self, valid_token: OAuthToken, client_credentials: ClientCredentials
    ) -> None:
        """Verify credentials carry everything google-auth needs to refresh."""
        credentials = token_to_credentials(valid_token, client_credentials)

        assert credentials.token == valid_token.access_token
        assert credentials.refresh_token == valid_token.refresh_token
        assert credentials.client_id == client_credentials.client_id
        assert credentials.client_secret == client_credentials.client_secret
        assert credentials.token_uri == "https://oauth2.googleapis.com/token"
        assert credentials.scopes == ["https://www.googleapis.com/auth/drive.readonly"]

    def test_should_pass_naive_utc_expiry(
        self, valid_token: OAuthToken, client_credentials: ClientCredentials
    ) -> None:
        """Verify expiry is handed to google-auth as naive UTC."""
        credentials = token_to_credentials(valid_token, client_credentials)

        assert credentials.expiry.tzinfo is None
        assert credentials.valid is True

    def test_should_mark_expired_credentials_invalid(
        self, expired_token: OAuthToken, client_credentials: ClientCredentials
    ) -> None:
        """Verify an expired token yields credentials needing refresh."""
        credentials = token_to_credentials(expired_token, client_credentials)

        assert credentials.valid is False

    def test_should_capture_refreshed_credentials(self, expired_token: OAuthToken) -> None:
        """Verify refreshed state is converted back, keeping missing fields."""
        refreshed = MagicMock()
        refreshed.token = "new_access_token"
        refreshed.refresh_token = None
        refreshed.expiry = datetime(2030, 1, 1, 12, 0, 0)
        refreshed.granted_scopes = None
        refreshed.scopes = None

        token = credentials_to_token(refreshed, expired_token)

        assert token.access_token == "new_access_token"
        assert token.refresh_token == expired_token.refresh_token
        assert token.expiry == datetime(2030, 1, 1, 12, 0, 0, tzinfo=timezone.utc)
        assert token.scope == expired_token.scope


@pytest.mark.unit
class TestAuthorizer:
    """Tests for Authorizer.authorize()."""

    def test_should_build_drive_client(
        self, file_settings: Settings, token_storage: TokenStorage, valid_token: OAuthToken
    ) -> None:
        """Verify an authorized DriveClient is produced from stored files."""
        token_storage.save(valid_token)

        client = Authorizer(file_settings).authorize()

        assert isinstance(client, DriveClient)
        assert client.credentials.token == valid_token.access_token

    def test_should_be_idempotent(
        self, file_settings: Settings, token_storage: TokenStorage, valid_token: OAuthToken
    ) -> None:
        """Verify repeated calls return the same client."""
        token_storage.save(valid_token)
        authorizer = Authorizer(file_settings)

        assert authorizer.authorize() is authorizer.authorize()

    def test_should_fail_without_token(self, file_settings: Settings) -> None:
        """Verify a missing token aborts authorization."""
        with pytest.raises(AuthorizationError, match="Token file not found"):
            Authorizer(file_settings).authorize()

    def test_should_fail_with_bad_credentials(
        self, tmp_path: Path, token_storage: TokenStorage, valid_token: OAuthToken
    ) -> None:
        """Verify malformed client credentials abort authorization."""
        token_storage.save(valid_token)
        creds_path = tmp_path / "credentials.json"
        creds_path.write_text("not json")
        settings = Settings(credentials_path=creds_path, token_path=token_storage.token_path)

        with pytest.raises(AuthorizationError):
            Authorizer(settings).authorize()

    def test_should_authorize_from_environment(self, tmp_path: Path, client_registration) -> None:
        """Verify the inline pair works without any files."""
        settings = Settings(
            credentials_path=tmp_path / "absent.json",
            token_path=tmp_path / "absent-token.json",
            credentials_json=json.dumps(client_registration),
            token_json=json.dumps({"access_token": "env_token", "refresh_token": "r"}),
        )

        client = Authorizer(settings).authorize()

        assert client.credentials.token == "env_token"

    def test_should_persist_refreshed_token(
        self, file_settings: Settings, token_storage: TokenStorage, expired_token: OAuthToken
    ) -> None:
        """Verify the refresh callback rewrites token.json."""
        token_storage.save(expired_token)
        client = Authorizer(file_settings).authorize()

        client.credentials.token = "refreshed_token"
        expiry = datetime.now(timezone.utc) + timedelta(hours=1)
        client.credentials.expiry = expiry.replace(tzinfo=None)
        client._on_refresh(client.credentials)

        stored = token_storage.load()
        assert stored.access_token == "refreshed_token"
        assert stored.refresh_token == expired_token.refresh_token
        assert stored.is_expired() is False

    def test_should_authorize_through_module_helper(
        self, file_settings: Settings, token_storage: TokenStorage, valid_token: OAuthToken
    ) -> None:
        """Verify authorize() builds the client from settings alone."""
        token_storage.save(valid_token)

        client = authorize(file_settings)

        assert isinstance(client, DriveClient)
        assert client.credentials.token == valid_token.access_token
