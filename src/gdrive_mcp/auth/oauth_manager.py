"""One-time OAuth bootstrap for Google Drive read-only access.

Runs the authorization-code flow with google-auth-oauthlib: builds the
consent URL, waits for Google's redirect on a local listener, exchanges the
code for a token pair and persists it through ``TokenStorage``.

The redirect URI is fixed to ``http://localhost:3001/oauth2callback`` and
must be registered on the OAuth client.
"""

import asyncio
import logging
import secrets
import webbrowser
from datetime import timezone
from http.server import BaseHTTPRequestHandler, HTTPServer
from pathlib import Path
from urllib.parse import parse_qs, urlparse

from google.oauth2.credentials import Credentials
from google_auth_oauthlib.flow import Flow

from gdrive_mcp.auth.models import AuthorizationError, ClientCredentials, OAuthToken
from gdrive_mcp.auth.token_storage import TokenStorage

logger = logging.getLogger(__name__)

DRIVE_READONLY_SCOPES = ["https://www.googleapis.com/auth/drive.readonly"]

DEFAULT_OAUTH_HOST = "localhost"
DEFAULT_OAUTH_PORT = 3001
CALLBACK_PATH = "/oauth2callback"
DEFAULT_REDIRECT_URI = f"http://{DEFAULT_OAUTH_HOST}:{DEFAULT_OAUTH_PORT}{CALLBACK_PATH}"

SUCCESS_PAGE = (
    b"<html><body><h1>Authentication successful!</h1>"
    b"<p>You can close this window.</p></body></html>"
)
FAILURE_PAGE = (
    b"<html><body><h1>Authentication failed</h1>"
    b"<p>Please close this window and try again.</p></body></html>"
)


class OAuthManager:
    """Interactive OAuth bootstrapper.

    Attributes:
        storage: Token storage the resulting token is written to.
        redirect_uri: Local callback URI the listener serves.

    Example:
        ```python
        manager = OAuthManager(TokenStorage(Path("./token.json")))
        token = await manager.authenticate(ClientCredentials.from_json(raw))
        ```
    """

    def __init__(
        self,
        storage: TokenStorage | None = None,
        redirect_uri: str = DEFAULT_REDIRECT_URI,
    ) -> None:
        """Initialize OAuth manager.

        Args:
            storage: Token storage instance. Creates default (./token.json) if not provided.
            redirect_uri: Callback URI for the local listener.
        """
        self.storage = storage or TokenStorage()
        self.redirect_uri = redirect_uri

    @property
    def token_path(self) -> Path:
        """Path the token is written to."""
        return self.storage.token_path

    def _credentials_to_token(self, credentials: Credentials, scopes: list[str]) -> OAuthToken:
        """Convert google-auth Credentials to OAuthToken.

        Args:
            credentials: Credentials produced by the code exchange.
            scopes: Scopes requested, used when Google does not echo them back.

        Returns:
            OAuthToken with all credential data.
        """
        expiry = credentials.expiry
        if expiry is not None and expiry.tzinfo is None:
            expiry = expiry.replace(tzinfo=timezone.utc)

        granted = credentials.granted_scopes or credentials.scopes or scopes
        return OAuthToken(  # nosec B106 - "Bearer" is OAuth token type, not a password
            access_token=credentials.token,
            refresh_token=credentials.refresh_token,
            expiry=expiry,
            scope=" ".join(granted),
            token_type="Bearer",
        )

    async def authenticate(
        self,
        client: ClientCredentials,
        scopes: list[str] | None = None,
    ) -> OAuthToken:
        """Perform the complete authorization-code flow and persist the token.

        Args:
            client: OAuth client registration.
            scopes: Scopes to request. Defaults to Drive read-only.

        Returns:
            OAuthToken containing access and refresh tokens.

        Raises:
            AuthorizationError: If the callback carries an error or no code.
            Exception: Token exchange failures from oauthlib propagate unchanged.
        """
        if scopes is None:
            scopes = DRIVE_READONLY_SCOPES

        client_config = client.to_client_config(redirect_uri=self.redirect_uri)

        # Blocking: browser round-trip and local listener
        loop = asyncio.get_running_loop()
        credentials = await loop.run_in_executor(
            None, self._run_oauth_flow, client_config, scopes
        )

        token = self._credentials_to_token(credentials, scopes)
        self.storage.save(token)
        return token

    def _run_oauth_flow(self, client_config: dict, scopes: list[str]) -> Credentials:
        """Run the OAuth flow (blocking operation).

        Opens the browser for consent and serves exactly one callback on the
        local listener. Requests for other paths are answered with 404 and
        the listener keeps waiting.

        Args:
            client_config: Client configuration in google-auth-oauthlib format.
            scopes: List of OAuth scopes.

        Returns:
            Google OAuth2 credentials.
        """
        flow = Flow.from_client_config(
            client_config,
            scopes=scopes,
            redirect_uri=self.redirect_uri,
        )

        # Generate state for CSRF protection
        state = secrets.token_urlsafe(32)

        auth_url, _ = flow.authorization_url(
            access_type="offline",
            prompt="consent",
            state=state,
        )

        parsed = urlparse(self.redirect_uri)
        host = parsed.hostname or DEFAULT_OAUTH_HOST
        port = parsed.port or DEFAULT_OAUTH_PORT
        callback_path = parsed.path or CALLBACK_PATH

        result: dict[str, str | None] = {"code": None, "error": None}
        done = [False]

        class OAuthCallbackHandler(BaseHTTPRequestHandler):
            """HTTP handler for the OAuth redirect."""

            def log_message(self, format: str, *args) -> None:
                """Route access logs to the module logger."""
                logger.debug(format % args)

            def _reply(self, status: int, body: bytes) -> None:
                self.send_response(status)
                self.send_header("Content-type", "text/html")
                self.end_headers()
                self.wfile.write(body)

            def do_GET(self) -> None:
                """Handle GET request from OAuth redirect."""
                request_parsed = urlparse(self.path)

                if request_parsed.path != callback_path:
                    self.send_response(404)
                    self.end_headers()
                    self.wfile.write(b"Not Found")
                    return

                done[0] = True
                query_params = parse_qs(request_parsed.query)

                if "error" in query_params:
                    result["error"] = query_params["error"][0]
                    self._reply(400, FAILURE_PAGE)
                    return

                returned_state = query_params.get("state", [None])[0]
                if returned_state is not None and returned_state != state:
                    result["error"] = "state mismatch"
                    self._reply(400, FAILURE_PAGE)
                    return

                if "code" in query_params:
                    result["code"] = query_params["code"][0]
                    self._reply(200, SUCCESS_PAGE)
                else:
                    self._reply(400, FAILURE_PAGE)

        server = HTTPServer((host, port), OAuthCallbackHandler)

        print("Opening browser for authentication...")
        print(f"If browser doesn't open, visit this URL: {auth_url}")
        webbrowser.open(auth_url)

        try:
            while not done[0]:
                server.handle_request()
        finally:
            server.server_close()

        if result["error"]:
            raise AuthorizationError(f"OAuth authentication failed: {result['error']}")

        if not result["code"]:
            raise AuthorizationError("No authorization code received from Google")

        # Exchange code for tokens
        flow.fetch_token(code=result["code"])
        return flow.credentials
