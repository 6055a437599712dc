"""Startup authorization: turn stored credentials into a Drive client.

Runs once per process, before any transport starts serving. Failures are
raised as ``AuthorizationError`` so the CLI can log them and exit.
"""

import logging
from collections.abc import Callable
from datetime import timezone

from google.oauth2.credentials import Credentials

from gdrive_mcp.auth.models import (
    AuthorizationError,
    ClientCredentials,
    CredentialsError,
    OAuthToken,
    TokenLoadError,
)
from gdrive_mcp.auth.token_storage import TokenStorage
from gdrive_mcp.config import Settings
from gdrive_mcp.drive_client import DriveClient

logger = logging.getLogger(__name__)


def load_client_credentials(settings: Settings) -> ClientCredentials:
    """Load the OAuth client registration.

    Uses ``CREDENTIALS_JSON`` when the inline pair is configured, otherwise
    the file at ``settings.credentials_path``.

    Raises:
        CredentialsError: If the registration is missing or malformed.
    """
    if settings.use_inline and settings.credentials_json:
        logger.debug("Loading client credentials from CREDENTIALS_JSON")
        return ClientCredentials.from_json(settings.credentials_json)

    path = settings.credentials_path
    if not path.exists():
        raise CredentialsError(f"Client credentials file not found: {path}")

    try:
        raw = path.read_text()
    except OSError as e:
        raise CredentialsError(f"Cannot read client credentials {path}: {e}") from e

    logger.debug(f"Loading client credentials from {path}")
    return ClientCredentials.from_json(raw)


def token_to_credentials(token: OAuthToken, client: ClientCredentials) -> Credentials:
    """Build google-auth credentials from a stored token and client registration."""
    # google-auth compares expiry against naive UTC datetimes
    expiry = token.expiry.astimezone(timezone.utc).replace(tzinfo=None) if token.expiry else None

    return Credentials(
        token=token.access_token,
        refresh_token=token.refresh_token,
        token_uri=client.token_uri,
        client_id=client.client_id,
        client_secret=client.client_secret,
        scopes=token.scopes or None,
        expiry=expiry,
    )


def credentials_to_token(credentials: Credentials, previous: OAuthToken) -> OAuthToken:
    """Capture the current state of google-auth credentials as an OAuthToken.

    Fields google-auth does not report back (scope when unset, token type)
    are carried over from ``previous``.
    """
    expiry = credentials.expiry
    if expiry is not None and expiry.tzinfo is None:
        expiry = expiry.replace(tzinfo=timezone.utc)

    scopes = credentials.granted_scopes or credentials.scopes
    return OAuthToken(
        access_token=credentials.token,
        refresh_token=credentials.refresh_token or previous.refresh_token,
        expiry=expiry,
        scope=" ".join(scopes) if scopes else previous.scope,
        token_type=previous.token_type,
    )


class Authorizer:
    """Produce the process-wide authorized Drive client.

    Attributes:
        settings: Runtime settings selecting the credential sources.
        storage: Token storage used for loading and re-persisting tokens.
    """

    def __init__(self, settings: Settings, storage: TokenStorage | None = None) -> None:
        self.settings = settings
        self.storage = storage or TokenStorage.from_settings(settings)
        self._client: DriveClient | None = None

    def _persist_refreshed(self, token: OAuthToken) -> Callable[[Credentials], None]:
        def on_refresh(credentials: Credentials) -> None:
            nonlocal token
            token = credentials_to_token(credentials, token)
            try:
                self.storage.save(token)
            except OSError as e:
                logger.error(f"Failed to persist refreshed token: {e}")

        return on_refresh

    def authorize(self) -> DriveClient:
        """Load credentials and token and build the Drive client.

        Idempotent: subsequent calls return the same client.

        Returns:
            Authorized DriveClient.

        Raises:
            AuthorizationError: If credentials or token cannot be loaded.
        """
        if self._client is not None:
            return self._client

        try:
            client_credentials = load_client_credentials(self.settings)
            token = self.storage.load()
        except (CredentialsError, TokenLoadError) as e:
            raise AuthorizationError(str(e)) from e

        credentials = token_to_credentials(token, client_credentials)
        self._client = DriveClient(credentials, on_refresh=self._persist_refreshed(token))

        source = "environment" if self.settings.use_inline else "files"
        logger.info(f"Authorized Google Drive client (credentials from {source})")
        return self._client


def authorize(settings: Settings) -> DriveClient:
    """Convenience wrapper: ``Authorizer(settings).authorize()``."""
    return Authorizer(settings).authorize()
