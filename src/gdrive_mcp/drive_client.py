"""Authenticated handle over the Google Drive v3 REST API.

Requests are made with a shared ``httpx.AsyncClient`` and a bearer token
taken from google-auth ``Credentials``. When the credentials are no longer
valid they are refreshed with google-auth's own refresh logic before the
request goes out; an optional callback is told about the new token so it
can be persisted.
"""

import asyncio
import logging
from collections.abc import Callable
from typing import Any
from urllib.parse import quote

import httpx
from google.auth.transport.requests import Request
from google.oauth2.credentials import Credentials

logger = logging.getLogger(__name__)

DRIVE_API_BASE = "https://www.googleapis.com/drive/v3"


class DriveClient:
    """Minimal async Google Drive client.

    Shared by every in-flight request. The only mutation after construction
    is the token refresh performed inside google-auth.

    Attributes:
        credentials: google-auth credentials carrying the token pair.
    """

    def __init__(
        self,
        credentials: Credentials,
        on_refresh: Callable[[Credentials], None] | None = None,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        """Initialize the client.

        Args:
            credentials: Authorized user credentials.
            on_refresh: Called with the credentials after each refresh.
            http_client: Pre-built HTTP client (tests). Created lazily if omitted.
        """
        self.credentials = credentials
        self._on_refresh = on_refresh
        self._http_client = http_client
        self._refresh_lock = asyncio.Lock()

    async def _get_http_client(self) -> httpx.AsyncClient:
        """Get or create shared HTTP client with connection pooling."""
        if self._http_client is None:
            self._http_client = httpx.AsyncClient(
                http2=True,
                limits=httpx.Limits(max_connections=100, max_keepalive_connections=20),
                # No request deadline: a hanging Drive call holds only its own request
                timeout=None,
            )
        return self._http_client

    async def close(self) -> None:
        """Close the shared HTTP client and release resources."""
        if self._http_client:
            await self._http_client.aclose()
            self._http_client = None

    async def _get_access_token(self) -> str:
        """Return a usable access token, refreshing the credentials first if needed.

        Raises:
            google.auth.exceptions.RefreshError: If the refresh is rejected.
        """
        if not self.credentials.valid:
            async with self._refresh_lock:
                # Another request may have refreshed while we waited
                if not self.credentials.valid:
                    logger.info("Access token expired, refreshing...")
                    loop = asyncio.get_running_loop()
                    await loop.run_in_executor(None, self.credentials.refresh, Request())
                    if self._on_refresh is not None:
                        self._on_refresh(self.credentials)

        return self.credentials.token

    async def _make_raw_request(
        self,
        method: str,
        url: str,
        params: dict[str, Any] | None = None,
    ) -> httpx.Response:
        """Make an authenticated request to the Drive API.

        Raises:
            httpx.HTTPStatusError: If Drive answers with an error status.
        """
        access_token = await self._get_access_token()
        client = await self._get_http_client()

        response = await client.request(
            method=method,
            url=url,
            params=params,
            headers={"Authorization": f"Bearer {access_token}"},
        )
        response.raise_for_status()
        return response

    async def list_files(
        self,
        query: str,
        fields: str,
        page_size: int,
    ) -> list[dict[str, Any]]:
        """List file metadata matching a Drive query (first page only).

        Args:
            query: Drive search expression, e.g. ``name contains '.csv'``.
            fields: Partial-response selector for the listing.
            page_size: Maximum number of files to return.

        Returns:
            File metadata records as returned by Drive.
        """
        response = await self._make_raw_request(
            "GET",
            f"{DRIVE_API_BASE}/files",
            params={"q": query, "fields": fields, "pageSize": page_size},
        )
        files: list[dict[str, Any]] = response.json().get("files", [])
        return files

    async def get_file_content(self, file_id: str) -> str:
        """Download a file's raw content as text.

        Args:
            file_id: Drive file ID.

        Returns:
            Decoded body of the file.
        """
        response = await self._make_raw_request(
            "GET",
            f"{DRIVE_API_BASE}/files/{quote(file_id, safe='')}",
            params={"alt": "media"},
        )
        return response.text
