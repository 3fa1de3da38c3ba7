#!/usr/bin/env python3
"""
HTTP-based MCP server that runs as a persistent service.
This implements the MCP JSON-RPC protocol over HTTP for the Census tools.
"""

import asyncio
import json
import logging
import uuid
from datetime import datetime, timezone

from aiohttp import ClientSession, web
from aiohttp.web import Request, Response
from yarl import URL

from census_mcp import config
from census_mcp.core.version import get_app_version
from census_mcp.mcp import tools

logger = logging.getLogger(__name__)

DEFAULT_PROTOCOL_VERSION = "2025-06-18"
LOCAL_HOSTS = {"localhost", "127.0.0.1", "::1"}


class HTTPMCPServer:
    """HTTP-based MCP server that runs as a persistent service."""

    def __init__(self):
        self.app = web.Application()
        self.sessions = {}  # Store active sessions
        self._setup_routes()
        self.app.on_startup.append(self._on_startup)
        self.app.on_cleanup.append(self._on_cleanup)

    def _setup_routes(self):
        """Setup HTTP routes for MCP operations."""
        self.app.router.add_post("/mcp", self._mcp_endpoint)
        self.app.router.add_delete("/mcp", self._delete_session)
        self.app.router.add_get("/health", self._health_check)

    async def _on_startup(self, app):
        app["csession"] = ClientSession()
        app["start_time"] = datetime.now(timezone.utc)
        app["app_version"] = get_app_version()

    async def _on_cleanup(self, app):
        await app["csession"].close()

    def _validate_origin(self, request: Request) -> bool:
        """Validate Origin header to prevent DNS rebinding attacks."""
        origin = request.headers.get("Origin")
        if not origin:
            return True  # Allow requests without Origin header

        # Allow localhost variants and desktop app schemes
        if origin == "null" or origin.startswith("app://"):
            return True
        try:
            url = URL(origin)
        except ValueError:
            return False
        if url.scheme in ("http", "https") and url.host in LOCAL_HOSTS:
            return True
        return origin in (config.MCP_ALLOWED_ORIGINS or [])

    async def _mcp_endpoint(self, request: Request) -> Response:
        """Handle JSON-RPC messages from the client."""
        if not self._validate_origin(request):
            return web.Response(status=403, text="Origin not allowed")

        content_type = request.headers.get("Content-Type", "")
        if "application/json" not in content_type:
            return web.Response(status=400, text="Content-Type must be application/json")

        protocol_version = request.headers.get("MCP-Protocol-Version", DEFAULT_PROTOCOL_VERSION)
        session_id = request.headers.get("Mcp-Session-Id")

        try:
            data = await request.json()
        except json.JSONDecodeError:
            return web.Response(status=400, text="Invalid JSON")

        if not isinstance(data, dict) or "method" not in data:
            # JSON-RPC response or notification
            return web.Response(status=202, text="Accepted")

        if data["method"] == "initialize":
            return self._handle_initialize_request(data, session_id, protocol_version)
        if session_id and session_id not in self.sessions:
            return web.Response(status=404, text="Session not found")
        if data["method"] == "tools/list":
            return self._handle_tools_list_request(data)
        if data["method"] == "tools/call":
            return await self._handle_tools_call_request(data, request.app["csession"])
        return self._handle_unknown_method(data)

    def _store_session(self, session_id: str, protocol_version: str):
        # re-insert so the dict stays ordered oldest first
        self.sessions.pop(session_id, None)
        self.sessions[session_id] = {"protocol_version": protocol_version, "initialized": True}
        while len(self.sessions) > config.MCP_MAX_SESSIONS:
            evicted = next(iter(self.sessions))
            del self.sessions[evicted]
            logger.info(f"Evicted MCP session {evicted}")

    async def _delete_session(self, request: Request) -> Response:
        """Terminate a session (DELETE /mcp with its Mcp-Session-Id)."""
        if not self._validate_origin(request):
            return web.Response(status=403, text="Origin not allowed")
        session_id = request.headers.get("Mcp-Session-Id")
        if not session_id:
            return web.Response(status=400, text="Missing Mcp-Session-Id header")
        if self.sessions.pop(session_id, None) is None:
            return web.Response(status=404, text="Session not found")
        return web.Response(status=204)

    def _handle_initialize_request(
        self, data: dict, session_id: str | None, protocol_version: str
    ) -> Response:
        """Handle MCP initialize request."""
        # Generate new session ID if not provided
        if not session_id:
            session_id = str(uuid.uuid4())
        self._store_session(session_id, protocol_version)

        response_data = {
            "jsonrpc": "2.0",
            "id": data.get("id"),
            "result": {
                "protocolVersion": protocol_version,
                "capabilities": {"tools": {}},
                "serverInfo": {"name": "census-mcp", "version": get_app_version()},
            },
        }

        response = web.json_response(response_data)
        response.headers["Mcp-Session-Id"] = session_id
        return response

    def _handle_tools_list_request(self, data: dict) -> Response:
        """Handle tools/list request."""
        result = {"tools": [tool.model_dump(exclude_none=True) for tool in tools.list_tools()]}
        return web.json_response({"jsonrpc": "2.0", "id": data.get("id"), "result": result})

    async def _handle_tools_call_request(self, data: dict, session: ClientSession) -> Response:
        """Handle tools/call request."""
        params = data.get("params") or {}
        call_result = await tools.call_tool(
            params.get("name"), params.get("arguments") or {}, session=session
        )
        result = {
            "content": [
                {"type": content.type, "text": content.text} for content in call_result.content
            ],
            "isError": call_result.isError,
        }
        return web.json_response({"jsonrpc": "2.0", "id": data.get("id"), "result": result})

    def _handle_unknown_method(self, data: dict) -> Response:
        """Handle unknown JSON-RPC methods."""
        error_response = {
            "jsonrpc": "2.0",
            "id": data.get("id"),
            "error": {"code": -32601, "message": "Method not found"},
        }
        return web.json_response(error_response, status=400)

    async def _health_check(self, request: Request) -> Response:
        """Health check endpoint."""
        uptime_seconds = (datetime.now(timezone.utc) - request.app["start_time"]).total_seconds()
        return web.json_response(
            {
                "status": "ok",
                "server": "census-mcp",
                "version": request.app["app_version"],
                "uptime_seconds": uptime_seconds,
            }
        )

    async def run(self, host: str | None = None, port: int | None = None):
        """Run the HTTP MCP server until cancelled."""
        host = host or config.MCP_HOST
        port = port or config.MCP_PORT
        runner = web.AppRunner(self.app)
        await runner.setup()
        site = web.TCPSite(runner, host, port)
        await site.start()
        logger.info(f"Census MCP server listening on http://{host}:{port}/mcp")

        try:
            await asyncio.Future()  # Run forever
        finally:
            logger.info("Shutting down HTTP MCP server")
            await runner.cleanup()


async def app_factory():
    """App factory for use with adev runserver."""
    return HTTPMCPServer().app


async def main():
    """Main entry point."""
    server = HTTPMCPServer()
    await server.run()


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    asyncio.run(main())
