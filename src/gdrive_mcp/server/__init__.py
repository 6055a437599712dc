"""Transports for the Google Drive tools.

- stdio: ``GDriveMCPServer`` (MCP SDK), for Claude Desktop and other MCP clients
- HTTP: ``create_app`` (FastAPI), for remote callers

Both delegate to one ``ToolDispatcher``.
"""

from gdrive_mcp.server.http_app import create_app
from gdrive_mcp.server.mcp_server import SERVER_NAME, GDriveMCPServer, main

__all__ = ["create_app", "GDriveMCPServer", "SERVER_NAME", "main"]
