"""Command-line interface for gdrive-mcp."""

import asyncio
import logging
import sys
from typing import TYPE_CHECKING

import click

from gdrive_mcp.__version__ import __version__
from gdrive_mcp.config import ConfigError, Settings

if TYPE_CHECKING:
    from gdrive_mcp.drive_client import DriveClient

logger = logging.getLogger("gdrive_mcp")


def _load_settings() -> Settings:
    try:
        return Settings.from_env()
    except ConfigError as e:
        click.echo(f"❌ {e}", err=True)
        sys.exit(1)


def _configure_logging(level: str) -> None:
    # stderr only: stdout carries the MCP protocol in stdio mode
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )


def _authorize(settings: Settings) -> "DriveClient":
    """Run the Authorizer or exit the process."""
    from gdrive_mcp.auth import AuthorizationError, authorize

    try:
        return authorize(settings)
    except AuthorizationError as e:
        logger.error(f"Authorization failed: {e}")
        click.echo(f"❌ Authorization failed: {e}", err=True)
        click.echo("Run 'gdrive-mcp setup' to authenticate.", err=True)
        sys.exit(1)


@click.group()
@click.version_option(version=__version__)
@click.option(
    "--log-level",
    envvar="GDRIVE_MCP_LOG_LEVEL",
    default="INFO",
    show_default=True,
    help="Logging level (DEBUG, INFO, WARNING, ERROR)",
)
def main(log_level: str) -> None:
    """Google Drive MCP Server - search and read Drive files from MCP clients.

    Tools:
    - search_files: list files matching a Drive query
    - read_file: return a file's text content
    """
    _configure_logging(log_level)


@main.command()
@click.option(
    "--credentials",
    "credentials_path",
    type=click.Path(dir_okay=False),
    help="OAuth client registration file (default: $GDRIVE_CREDS_PATH or ./credentials.json)",
)
@click.option(
    "--token",
    "token_path",
    type=click.Path(dir_okay=False),
    help="Where to write the token (default: $GDRIVE_TOKEN_PATH or ./token.json)",
)
def setup(credentials_path: str | None, token_path: str | None) -> None:
    """Authorize read-only Google Drive access.

    This will:
    1. Open browser for OAuth2 consent flow
    2. Wait for the redirect on http://localhost:3001/oauth2callback
    3. Store the token pair in token.json
    """
    from pathlib import Path

    from gdrive_mcp.auth import (
        CredentialsError,
        OAuthManager,
        TokenStorage,
        load_client_credentials,
    )

    settings = _load_settings()
    overrides: dict[str, Path | None] = {}
    if credentials_path:
        # An explicit file wins over CREDENTIALS_JSON
        overrides["credentials_path"] = Path(credentials_path)
        overrides["credentials_json"] = None
    if token_path:
        overrides["token_path"] = Path(token_path)
    if overrides:
        settings = settings.model_copy(update=overrides)

    try:
        client = load_client_credentials(settings)
    except CredentialsError as e:
        logger.error(f"Cannot load client credentials: {e}")
        click.echo(f"❌ Error: {e}", err=True)
        sys.exit(1)

    # The bootstrap always writes a file, even when TOKEN_JSON is set
    manager = OAuthManager(storage=TokenStorage(token_path=settings.token_path))

    click.echo("Starting OAuth authentication flow...")
    click.echo("Browser will open for Google consent...")
    click.echo("")

    try:
        asyncio.run(manager.authenticate(client))
    except Exception as e:
        logger.error(f"Authentication failed: {e}")
        click.echo(f"❌ Authentication failed: {e}", err=True)
        sys.exit(1)

    click.echo("✅ Authentication successful!")
    click.echo(f"Token saved to {manager.token_path}")
    click.echo("You can now start the server with: gdrive-mcp serve")


@main.command()
@click.option("--host", default=None, help="Bind address (default: $HOST or 0.0.0.0)")
@click.option("--port", type=int, default=None, help="Listen port (default: $PORT or 3000)")
def serve(host: str | None, port: int | None) -> None:
    """Start the HTTP server.

    Authorization runs first; the listener only starts once an authorized
    Drive client exists.
    """
    import uvicorn

    from gdrive_mcp.server import create_app
    from gdrive_mcp.tools import ToolDispatcher

    settings = _load_settings()
    drive = _authorize(settings)
    app = create_app(ToolDispatcher(drive))

    bind_host = host or settings.host
    bind_port = port or settings.port
    click.echo(f"Google Drive MCP Server running on port {bind_port}", err=True)
    click.echo(f"Health check: http://localhost:{bind_port}/health", err=True)

    uvicorn.run(app, host=bind_host, port=bind_port, log_level=settings.log_level.lower())


@main.command()
def mcp() -> None:
    """Start the MCP server over stdio.

    This command is typically invoked by an MCP client such as Claude Desktop.
    """
    from gdrive_mcp.server import main as server_main

    settings = _load_settings()
    drive = _authorize(settings)

    try:
        click.echo("Starting Google Drive MCP server (stdio)...", err=True)
        server_main(drive)
    except KeyboardInterrupt:
        click.echo("\nServer stopped.", err=True)


@main.command()
def doctor() -> None:
    """Check configuration and authentication status."""
    from gdrive_mcp.auth import (
        CredentialsError,
        TokenStatus,
        TokenStorage,
        load_client_credentials,
    )

    settings = _load_settings()

    click.echo("Google Drive MCP Status:")
    click.echo("")

    click.echo("Client credentials:")
    source = "CREDENTIALS_JSON" if settings.use_inline else str(settings.credentials_path)
    click.echo(f"  Source: {source}")
    try:
        client = load_client_credentials(settings)
        click.echo(f"  ✓ Client ID: {client.client_id}")
    except CredentialsError as e:
        click.echo(f"  ❌ {e}")
        sys.exit(1)

    click.echo("")

    storage = TokenStorage.from_settings(settings)
    status = storage.get_status()

    click.echo("Token:")
    click.echo(f"  Source: {storage.source}")

    if status == TokenStatus.MISSING:
        click.echo("  ❌ Not authenticated")
        click.echo("")
        click.echo("Run 'gdrive-mcp setup' to authenticate.")
        sys.exit(1)
    elif status == TokenStatus.INVALID:
        click.echo("  ❌ Token corrupted")
        click.echo("")
        click.echo("Run 'gdrive-mcp setup' to re-authenticate.")
        sys.exit(1)
    elif status == TokenStatus.EXPIRED:
        click.echo("  ⚠️  Access token expired (refreshed automatically on use)")
    else:
        token = storage.load()
        click.echo("  ✓ Authenticated")
        if token.expiry:
            click.echo(f"  Token expires: {token.expiry.strftime('%Y-%m-%d %H:%M:%S UTC')}")

    click.echo("")
    click.echo("✓ Ready to use!")


if __name__ == "__main__":
    main()
