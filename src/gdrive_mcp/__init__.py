"""Google Drive MCP Server.

Exposes two tools (search_files, read_file) over Google Drive, reachable
through an MCP stdio server or a small HTTP JSON endpoint.
"""

from gdrive_mcp.__version__ import __version__

__all__ = ["__version__"]
