"""Token persistence for gdrive-mcp.

The token is kept in one of two places:

- a JSON file (``GDRIVE_TOKEN_PATH``, default ``./token.json``), written by
  ``gdrive-mcp setup`` and rewritten whenever the access token is refreshed;
- the ``TOKEN_JSON`` environment variable, which is read-only from the
  process' point of view. Refreshed tokens are then kept in memory only.

The file holds a single token, in the same shape the token endpoint returns.
"""

import logging
from pathlib import Path

from gdrive_mcp.auth.models import OAuthToken, TokenLoadError, TokenStatus
from gdrive_mcp.config import DEFAULT_TOKEN_PATH, Settings

logger = logging.getLogger(__name__)


class TokenStorage:
    """Load and save the single OAuth token used by the process.

    Attributes:
        token_path: Path to the token file.
        inline_json: Token JSON supplied through the environment, if any.

    Example:
        ```python
        storage = TokenStorage(Path("./token.json"))
        storage.save(token)
        token = storage.load()
        ```
    """

    def __init__(self, token_path: Path | None = None, inline_json: str | None = None) -> None:
        """Initialize token storage.

        Args:
            token_path: Token file location. Defaults to ./token.json.
            inline_json: Token JSON from the environment. When set, it is the
                source for ``load()`` and ``save()`` does not touch the file.
        """
        self.token_path = token_path or DEFAULT_TOKEN_PATH
        self.inline_json = inline_json

    @classmethod
    def from_settings(cls, settings: Settings) -> "TokenStorage":
        """Create storage for the source selected by the settings."""
        return cls(
            token_path=settings.token_path,
            inline_json=settings.token_json if settings.use_inline else None,
        )

    @property
    def is_inline(self) -> bool:
        """True when the token comes from the environment."""
        return self.inline_json is not None

    @property
    def source(self) -> str:
        """Human-readable description of where the token lives."""
        return "TOKEN_JSON environment variable" if self.is_inline else str(self.token_path)

    def _read_raw(self) -> str:
        if self.inline_json is not None:
            return self.inline_json

        if not self.token_path.exists():
            raise TokenLoadError(
                f"Token file not found: {self.token_path}. Run 'gdrive-mcp setup' first."
            )

        try:
            return self.token_path.read_text()
        except OSError as e:
            raise TokenLoadError(f"Cannot read token file {self.token_path}: {e}") from e

    def load(self) -> OAuthToken:
        """Load the persisted token.

        Returns:
            The stored OAuthToken.

        Raises:
            TokenLoadError: If the token is missing, unreadable or malformed.
        """
        token = OAuthToken.from_json(self._read_raw())
        logger.debug(f"Loaded token from {self.source}")
        return token

    def save(self, token: OAuthToken) -> bool:
        """Persist a token.

        Args:
            token: Token to write.

        Returns:
            True if written to disk, False if the source is inline.
        """
        if self.is_inline:
            # Environment can't be rewritten; keep the new token in memory only
            self.inline_json = token.to_json()
            logger.warning(
                "Token refreshed but TOKEN_JSON is read-only; "
                "the new token will not survive a restart"
            )
            return False

        if not self.token_path.parent.exists():
            self.token_path.parent.mkdir(parents=True, mode=0o700)

        with open(self.token_path, "w") as f:
            f.write(token.to_json())

        # Owner read/write only
        self.token_path.chmod(0o600)
        logger.info(f"Token saved to {self.token_path}")
        return True

    def get_status(self) -> TokenStatus:
        """Report the state of the stored token without raising."""
        if not self.is_inline and not self.token_path.exists():
            return TokenStatus.MISSING

        try:
            token = self.load()
        except TokenLoadError:
            return TokenStatus.INVALID

        if token.is_expired():
            return TokenStatus.EXPIRED

        return TokenStatus.VALID
