#!/usr/bin/env python3
"""
CLI script to run the MCP server.
"""

import argparse
import asyncio
import logging
import sys

from census_mcp import config
from census_mcp.core.sentry import init_sentry

from . import http_mcp_server, server


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="census-mcp", description="Expose the US Census Bureau API as MCP tools"
    )
    parser.add_argument(
        "--transport",
        choices=["stdio", "http"],
        default="stdio",
        help="MCP transport (default: stdio)",
    )
    parser.add_argument("--host", default=None, help=f"HTTP host (default: {config.MCP_HOST})")
    parser.add_argument(
        "--port", type=int, default=None, help=f"HTTP port (default: {config.MCP_PORT})"
    )
    return parser


def run(argv: list[str] | None = None):
    args = build_parser().parse_args(argv)
    # stdout is reserved for the protocol on stdio
    logging.basicConfig(level=config.LOG_LEVEL or logging.INFO, stream=sys.stderr)
    init_sentry()
    if args.transport == "http":
        asyncio.run(http_mcp_server.HTTPMCPServer().run(host=args.host, port=args.port))
    else:
        asyncio.run(server.main())


if __name__ == "__main__":
    run()
