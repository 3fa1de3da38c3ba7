#!/usr/bin/env python3
"""
Stdio MCP server exposing the Census API tools.

stdout carries the protocol, so logs must go to stderr.
"""

import asyncio
import logging

import aiohttp
from mcp.server import Server
from mcp.server.stdio import stdio_server
from mcp.types import TextContent, Tool

from census_mcp.mcp import tools

logger = logging.getLogger(__name__)


def create_server(session: aiohttp.ClientSession | None = None) -> Server:
    """Build the MCP server, sharing `session` across all tool calls."""
    server = Server("census-mcp")

    @server.list_tools()
    async def handle_list_tools() -> list[Tool]:
        return tools.list_tools()

    @server.call_tool()
    async def handle_call_tool(name: str, arguments: dict | None) -> list[TextContent]:
        result = await tools.call_tool(name, arguments, session=session)
        if result.isError:
            # the SDK turns raised exceptions into isError results
            raise tools.ToolError(result.content[0].text)
        return result.content

    return server


async def main():
    """Main entry point."""
    async with aiohttp.ClientSession() as session:
        server = create_server(session)
        logger.info("Starting Census MCP server on stdio")
        async with stdio_server() as (read_stream, write_stream):
            await server.run(read_stream, write_stream, server.create_initialization_options())


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    asyncio.run(main())
