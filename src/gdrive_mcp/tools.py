"""Tool registry and dispatcher shared by the stdio and HTTP transports."""

import json
import logging
from typing import Any, Protocol

from mcp.types import TextContent, Tool

logger = logging.getLogger(__name__)

DEFAULT_SEARCH_QUERY = "mimeType='text/csv'"
SEARCH_FIELDS = ("id", "name", "mimeType", "modifiedTime", "size")
SEARCH_PAGE_SIZE = 100


class ToolInputError(ValueError):
    """Raised for requests that are rejected before any Drive call is made."""


class DriveAPI(Protocol):
    """The part of the Drive client the dispatcher depends on."""

    async def list_files(self, query: str, fields: str, page_size: int) -> list[dict[str, Any]]:
        ...

    async def get_file_content(self, file_id: str) -> Any:
        ...


TOOLS: list[Tool] = [
    Tool(
        name="search_files",
        description="Search for files in Google Drive",
        inputSchema={
            "type": "object",
            "properties": {
                "query": {
                    "type": "string",
                    "description": "Search query (e.g., 'name contains \".csv\"')",
                },
            },
        },
    ),
    Tool(
        name="read_file",
        description="Read the contents of a file from Google Drive",
        inputSchema={
            "type": "object",
            "properties": {
                "fileId": {
                    "type": "string",
                    "description": "The ID of the file to read",
                },
            },
            "required": ["fileId"],
        },
    ),
]


def list_tools() -> list[Tool]:
    """Return the tool descriptors. Independent of authorization state."""
    return list(TOOLS)


class ToolDispatcher:
    """Map a tool name and arguments to one Drive call.

    Holds no per-request state; the Drive client is injected once and
    shared by every call.

    Attributes:
        drive: Authorized Drive client.
    """

    def __init__(self, drive: DriveAPI) -> None:
        self.drive = drive
        self._handlers = {
            "search_files": self._search_files,
            "read_file": self._read_file,
        }

    async def dispatch(self, name: str, arguments: dict[str, Any] | None) -> list[TextContent]:
        """Dispatch tool call to appropriate handler.

        Args:
            name: Tool name.
            arguments: Tool arguments. ``None`` is treated as empty.

        Returns:
            Single-element list with the tool output as text.

        Raises:
            ToolInputError: If the tool is unknown or arguments are invalid.
            Exception: Drive failures propagate unchanged.
        """
        handler = self._handlers.get(name)
        if handler is None:
            raise ToolInputError(f"Unknown tool: {name}")

        if arguments is None:
            arguments = {}
        if not isinstance(arguments, dict):
            raise ToolInputError("arguments must be an object")

        text = await handler(arguments)
        return [TextContent(type="text", text=text)]

    async def _search_files(self, arguments: dict[str, Any]) -> str:
        query = arguments.get("query") or DEFAULT_SEARCH_QUERY

        files = await self.drive.list_files(
            query=query,
            fields=f"files({', '.join(SEARCH_FIELDS)})",
            page_size=SEARCH_PAGE_SIZE,
        )

        # Keep only the requested fields
        records = [{k: f[k] for k in SEARCH_FIELDS if k in f} for f in files]
        logger.debug(f"search_files matched {len(records)} file(s)")
        return json.dumps(records, indent=2)

    async def _read_file(self, arguments: dict[str, Any]) -> str:
        file_id = arguments.get("fileId")
        if not file_id:
            raise ToolInputError("fileId is required")
        if not isinstance(file_id, str):
            raise ToolInputError("fileId must be a string")

        content = await self.drive.get_file_content(file_id)
        if isinstance(content, str):
            return content
        return json.dumps(content)
