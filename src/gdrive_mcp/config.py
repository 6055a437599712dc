"""Runtime configuration for gdrive-mcp.

Environment Variables:
    PORT: HTTP listen port (default: 3000)
    HOST: HTTP bind address (default: 0.0.0.0)
    GDRIVE_CREDS_PATH: OAuth client registration file (default: ./credentials.json)
    GDRIVE_TOKEN_PATH: Persisted token file (default: ./token.json)
    CREDENTIALS_JSON: Inline client registration JSON
    TOKEN_JSON: Inline token JSON
    GDRIVE_MCP_LOG_LEVEL: Logging level name (default: INFO)

The inline pair (CREDENTIALS_JSON + TOKEN_JSON) is used only when both
variables are set; otherwise both are read from their file paths.
"""

import os
from collections.abc import Mapping
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field, ValidationError

DEFAULT_PORT = 3000
DEFAULT_HOST = "0.0.0.0"  # nosec B104 - server is meant to be reachable remotely
DEFAULT_CREDENTIALS_PATH = Path("./credentials.json")
DEFAULT_TOKEN_PATH = Path("./token.json")
DEFAULT_LOG_LEVEL = "INFO"


class ConfigError(ValueError):
    """Raised when an environment variable holds an unusable value."""


class Settings(BaseModel):
    """Process-wide settings, read once at startup.

    Attributes:
        port: HTTP listen port.
        host: HTTP bind address.
        credentials_path: Path to the OAuth client registration file.
        token_path: Path to the persisted token file.
        credentials_json: Inline client registration JSON, if provided.
        token_json: Inline token JSON, if provided.
        log_level: Logging level name.
    """

    model_config = ConfigDict(frozen=True)

    port: int = Field(default=DEFAULT_PORT, ge=1, le=65535)
    host: str = DEFAULT_HOST
    credentials_path: Path = DEFAULT_CREDENTIALS_PATH
    token_path: Path = DEFAULT_TOKEN_PATH
    credentials_json: str | None = None
    token_json: str | None = None
    log_level: str = DEFAULT_LOG_LEVEL

    @property
    def use_inline(self) -> bool:
        """True when both inline JSON variables are available."""
        return bool(self.credentials_json) and bool(self.token_json)

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> "Settings":
        """Build settings from environment variables.

        Args:
            environ: Mapping to read from. Defaults to ``os.environ``.

        Returns:
            Populated Settings instance.

        Raises:
            ConfigError: If a variable cannot be converted (e.g. a non-numeric PORT).
        """
        env = os.environ if environ is None else environ

        try:
            return cls(
                port=env.get("PORT") or DEFAULT_PORT,
                host=env.get("HOST") or DEFAULT_HOST,
                credentials_path=env.get("GDRIVE_CREDS_PATH") or DEFAULT_CREDENTIALS_PATH,
                token_path=env.get("GDRIVE_TOKEN_PATH") or DEFAULT_TOKEN_PATH,
                credentials_json=env.get("CREDENTIALS_JSON") or None,
                token_json=env.get("TOKEN_JSON") or None,
                log_level=(env.get("GDRIVE_MCP_LOG_LEVEL") or DEFAULT_LOG_LEVEL).upper(),
            )
        except ValidationError as e:
            raise ConfigError(f"Invalid configuration: {e}") from e
