"""Data models for OAuth client registration and tokens."""

import json
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator

GOOGLE_AUTH_URI = "https://accounts.google.com/o/oauth2/auth"
GOOGLE_TOKEN_URI = "https://oauth2.googleapis.com/token"  # nosec B105 - public endpoint


class CredentialsError(ValueError):
    """Raised when the OAuth client registration is missing or malformed."""


class TokenLoadError(ValueError):
    """Raised when the persisted token is missing or malformed."""


class AuthorizationError(RuntimeError):
    """Raised when the process cannot obtain an authorized Drive client."""


class TokenStatus(str, Enum):
    """State of the persisted token."""

    VALID = "valid"
    EXPIRED = "expired"
    MISSING = "missing"
    INVALID = "invalid"


class ClientCredentials(BaseModel):
    """OAuth client registration, owned by the operator.

    Parsed from Google's client secrets format::

        {"installed": {"client_id": ..., "client_secret": ..., "redirect_uris": [...]}}

    A ``web`` section is accepted in place of ``installed``.
    """

    model_config = ConfigDict(frozen=True)

    client_id: str = Field(min_length=1)
    client_secret: str = Field(min_length=1)
    redirect_uris: list[str] = Field(default_factory=list)
    auth_uri: str = GOOGLE_AUTH_URI
    token_uri: str = GOOGLE_TOKEN_URI
    client_type: str = "installed"

    @classmethod
    def from_registration(cls, data: Any) -> "ClientCredentials":
        """Build credentials from a parsed client secrets document.

        Raises:
            CredentialsError: If neither section is present or required keys are missing.
        """
        if not isinstance(data, dict):
            raise CredentialsError("Client credentials must be a JSON object")

        for client_type in ("installed", "web"):
            section = data.get(client_type)
            if isinstance(section, dict):
                break
        else:
            raise CredentialsError("Client credentials must contain an 'installed' or 'web' section")

        try:
            return cls(client_type=client_type, **section)
        except (TypeError, ValidationError) as e:
            raise CredentialsError(f"Invalid client credentials: {e}") from e

    @classmethod
    def from_json(cls, raw: str) -> "ClientCredentials":
        """Parse a client secrets JSON string."""
        try:
            data = json.loads(raw)
        except json.JSONDecodeError as e:
            raise CredentialsError(f"Client credentials are not valid JSON: {e}") from e
        return cls.from_registration(data)

    def to_client_config(self, redirect_uri: str | None = None) -> dict[str, Any]:
        """Render the registration in the shape google-auth-oauthlib expects."""
        redirect_uris = [redirect_uri] if redirect_uri else list(self.redirect_uris)
        return {
            self.client_type: {
                "client_id": self.client_id,
                "client_secret": self.client_secret,
                "auth_uri": self.auth_uri,
                "token_uri": self.token_uri,
                "redirect_uris": redirect_uris,
            }
        }


class OAuthToken(BaseModel):
    """Access/refresh token pair as returned by the token endpoint.

    Token files written by other Google clients store the expiry as
    ``expiry_date`` (epoch milliseconds); both that and an ISO-8601
    ``expiry`` are accepted.

    Attributes:
        access_token: Bearer token for API calls.
        refresh_token: Long-lived token used to obtain new access tokens.
        expiry: When the access token expires (UTC), if known.
        scope: Space-separated granted scopes.
        token_type: Token type, normally "Bearer".
    """

    model_config = ConfigDict(extra="ignore")

    access_token: str = Field(min_length=1)
    refresh_token: str | None = None
    expiry: datetime | None = None
    scope: str | None = None
    token_type: str = "Bearer"  # nosec B105 - OAuth token type, not a password

    @model_validator(mode="before")
    @classmethod
    def _accept_expiry_date(cls, data: Any) -> Any:
        expiry_date = data.get("expiry_date") if isinstance(data, dict) else None
        if isinstance(expiry_date, (int, float)) and data.get("expiry") is None:
            data = dict(data)
            data["expiry"] = datetime.fromtimestamp(expiry_date / 1000, tz=timezone.utc)
        return data

    @field_validator("expiry")
    @classmethod
    def _ensure_utc(cls, value: datetime | None) -> datetime | None:
        if value is not None and value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value

    @property
    def scopes(self) -> list[str]:
        """Granted scopes as a list."""
        return self.scope.split() if self.scope else []

    def is_expired(self, buffer_seconds: int = 60) -> bool:
        """Check whether the access token is expired or about to expire.

        Args:
            buffer_seconds: Treat the token as expired this many seconds early.

        Returns:
            True if expired; a token without expiry is never considered expired.
        """
        if self.expiry is None:
            return False
        return datetime.now(timezone.utc) + timedelta(seconds=buffer_seconds) >= self.expiry

    @classmethod
    def from_json(cls, raw: str) -> "OAuthToken":
        """Parse a token JSON string."""
        try:
            return cls.model_validate(json.loads(raw))
        except json.JSONDecodeError as e:
            raise TokenLoadError(f"Token is not valid JSON: {e}") from e
        except ValidationError as e:
            raise TokenLoadError(f"Invalid token data: {e}") from e

    def to_json(self) -> str:
        """Serialize for persistence, omitting unset fields."""
        return self.model_dump_json(exclude_none=True, indent=2)
