"""OAuth authentication for the Google Drive MCP server.

Quick Start:
    ```python
    from gdrive_mcp.auth import Authorizer, OAuthManager, load_client_credentials
    from gdrive_mcp.config import Settings

    settings = Settings.from_env()

    # One-time: browser consent, writes ./token.json
    await OAuthManager().authenticate(load_client_credentials(settings))

    # Every process start
    drive = Authorizer(settings).authorize()
    ```
"""

from gdrive_mcp.auth.authorizer import Authorizer, authorize, load_client_credentials
from gdrive_mcp.auth.models import (
    AuthorizationError,
    ClientCredentials,
    CredentialsError,
    OAuthToken,
    TokenLoadError,
    TokenStatus,
)
from gdrive_mcp.auth.oauth_manager import DRIVE_READONLY_SCOPES, OAuthManager
from gdrive_mcp.auth.token_storage import TokenStorage

__all__ = [
    "Authorizer",
    "authorize",
    "load_client_credentials",
    "OAuthManager",
    "TokenStorage",
    "ClientCredentials",
    "OAuthToken",
    "TokenStatus",
    "AuthorizationError",
    "CredentialsError",
    "TokenLoadError",
    "DRIVE_READONLY_SCOPES",
]
