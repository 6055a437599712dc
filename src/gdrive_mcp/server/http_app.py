"""HTTP JSON transport for the Google Drive tools.

Routes:
    GET  /health      liveness and version
    POST /tools/list  tool descriptors
    POST /tools/call  {name, arguments} -> {content: [...]}
    POST /mcp         {method: "tools/list" | "tools/call", params} for clients
                      that speak the method/params envelope

Client errors are answered with 400, Drive failures with 500; both carry
``{"error": message}``.
"""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from gdrive_mcp.__version__ import __version__
from gdrive_mcp.server.mcp_server import SERVER_NAME
from gdrive_mcp.tools import ToolDispatcher, ToolInputError, list_tools

logger = logging.getLogger(__name__)


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


def _tools_payload() -> dict[str, Any]:
    return {"tools": [tool.model_dump(by_alias=True, exclude_none=True) for tool in list_tools()]}


async def _read_body(request: Request) -> dict[str, Any]:
    try:
        body = await request.json()
    except ValueError as e:
        raise ToolInputError("Request body must be valid JSON") from e

    if not isinstance(body, dict):
        raise ToolInputError("Request body must be a JSON object")
    return body


def create_app(dispatcher: ToolDispatcher) -> FastAPI:
    """Build the FastAPI application around an authorized dispatcher.

    Args:
        dispatcher: Dispatcher shared by every request.

    Returns:
        Configured FastAPI app. The Drive client is closed on shutdown.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        yield
        close = getattr(dispatcher.drive, "close", None)
        if close is not None:
            await close()

    app = FastAPI(
        title="Google Drive MCP Server",
        description="search_files and read_file over Google Drive",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.dispatcher = dispatcher

    async def call_tool(name: Any, arguments: Any) -> JSONResponse:
        if not isinstance(name, str) or not name:
            return _error(400, "name is required")

        try:
            content = await dispatcher.dispatch(name, arguments)
        except ToolInputError as e:
            return _error(400, str(e))
        except Exception as e:
            logger.exception(f"Error calling tool {name}")
            return _error(500, str(e))

        return JSONResponse(
            content={"content": [item.model_dump(by_alias=True, exclude_none=True) for item in content]}
        )

    @app.get("/health")
    async def health() -> dict[str, str]:
        """Liveness probe."""
        return {"status": "ok", "server": SERVER_NAME, "version": __version__}

    @app.post("/tools/list")
    async def tools_list() -> dict[str, Any]:
        """List available tools."""
        return _tools_payload()

    @app.post("/tools/call")
    async def tools_call(request: Request) -> JSONResponse:
        """Invoke a tool by name."""
        try:
            body = await _read_body(request)
        except ToolInputError as e:
            return _error(400, str(e))

        return await call_tool(body.get("name"), body.get("arguments"))

    @app.post("/mcp")
    async def mcp_endpoint(request: Request) -> JSONResponse:
        """Method/params envelope over the same two operations."""
        try:
            body = await _read_body(request)
        except ToolInputError as e:
            return _error(400, str(e))

        method = body.get("method")
        params = body.get("params") or {}
        if not isinstance(params, dict):
            return _error(400, "params must be an object")

        if method == "tools/list":
            return JSONResponse(content=_tools_payload())

        if method == "tools/call":
            return await call_tool(params.get("name"), params.get("arguments"))

        return _error(400, f"Unknown method: {method}")

    return app
