"""Google Drive MCP server over stdio.

Registers the shared tool table with an MCP ``Server`` and routes every
call through ``ToolDispatcher``. Intended to be launched by an MCP client
(e.g. Claude Desktop) via ``gdrive-mcp mcp``.
"""

import asyncio
import json
import logging
from typing import Any

from mcp.server import Server
from mcp.server.stdio import stdio_server
from mcp.types import TextContent, Tool

from gdrive_mcp.drive_client import DriveClient
from gdrive_mcp.tools import ToolDispatcher, list_tools

logger = logging.getLogger(__name__)

SERVER_NAME = "gdrive-mcp-server"


class GDriveMCPServer:
    """MCP server exposing search_files and read_file.

    Attributes:
        server: MCP Server instance.
        dispatcher: Tool dispatcher bound to the authorized Drive client.
    """

    def __init__(self, dispatcher: ToolDispatcher) -> None:
        """Initialize the server.

        Args:
            dispatcher: Dispatcher built around an already authorized client.
        """
        self.server = Server(SERVER_NAME)
        self.dispatcher = dispatcher
        self._setup_handlers()

    def _setup_handlers(self) -> None:
        """Register MCP tool handlers."""

        @self.server.list_tools()
        async def handle_list_tools() -> list[Tool]:
            """Return list of available tools."""
            return list_tools()

        @self.server.call_tool()
        async def handle_call_tool(name: str, arguments: dict[str, Any]) -> list[TextContent]:
            """Handle tool calls."""
            try:
                return await self.dispatcher.dispatch(name, arguments)
            except Exception as e:
                logger.exception(f"Error calling tool {name}")
                return [TextContent(type="text", text=json.dumps({"error": str(e)}, indent=2))]

    async def close(self) -> None:
        """Release the Drive client's HTTP resources."""
        close = getattr(self.dispatcher.drive, "close", None)
        if close is not None:
            await close()

    async def run(self) -> None:
        """Run the MCP server using stdio transport."""
        try:
            async with stdio_server() as (read_stream, write_stream):
                await self.server.run(
                    read_stream,
                    write_stream,
                    self.server.create_initialization_options(),
                )
        finally:
            await self.close()


def main(drive: DriveClient) -> None:
    """Run the stdio server until the client disconnects."""
    server = GDriveMCPServer(ToolDispatcher(drive))
    asyncio.run(server.run())
