"""
Tool definitions shared by the stdio and HTTP transports.

Each tool maps one-to-one to an operation of the Census API client and
returns its result serialized as indented JSON text.
"""

import json
import logging
from typing import Any, Awaitable, Callable

import aiohttp
from mcp.types import CallToolResult, TextContent, Tool

from census_mcp.core.exceptions import CensusError, report_exception
from census_mcp.mcp import census_api_client

logger = logging.getLogger(__name__)


class ToolError(Exception):
    """A tool call could not be dispatched (unknown tool, missing argument)."""


TOOLS = [
    Tool(
        name="search_datasets",
        description=(
            "Search available US Census Bureau datasets by keyword "
            "(e.g. 'acs', 'decennial', 'business patterns')"
        ),
        inputSchema={
            "type": "object",
            "properties": {"query": {"type": "string", "description": "Search keyword"}},
            "required": ["query"],
        },
    ),
    Tool(
        name="get_variables",
        description=(
            "List variables available in a Census dataset. "
            "Use to discover variable codes before querying data."
        ),
        inputSchema={
            "type": "object",
            "properties": {
                "vintage": {"type": "string", "description": "Year, e.g. '2022'"},
                "dataset": {
                    "type": "string",
                    "description": "Dataset path, e.g. 'acs/acs5' or 'dec/pl'",
                },
                "search": {"type": "string", "description": "Filter variables by keyword"},
                "group": {"type": "string", "description": "Variable group code, e.g. 'B01001'"},
            },
            "required": ["vintage", "dataset"],
        },
    ),
    Tool(
        name="get_geographies",
        description=(
            "List supported geography levels for a Census dataset (state, county, tract, etc.)"
        ),
        inputSchema={
            "type": "object",
            "properties": {
                "vintage": {"type": "string", "description": "Year, e.g. '2022'"},
                "dataset": {"type": "string", "description": "Dataset path, e.g. 'acs/acs5'"},
            },
            "required": ["vintage", "dataset"],
        },
    ),
    Tool(
        name="query_data",
        description=(
            "Query Census Bureau data. Returns tabular data for specified variables "
            "and geography. Requires CENSUS_API_KEY."
        ),
        inputSchema={
            "type": "object",
            "properties": {
                "vintage": {"type": "string", "description": "Year, e.g. '2022'"},
                "dataset": {"type": "string", "description": "Dataset path, e.g. 'acs/acs5'"},
                "variables": {
                    "type": "array",
                    "items": {"type": "string"},
                    "description": "Variable codes, e.g. ['B01001_001E', 'B19013_001E']",
                },
                "geo_for": {
                    "type": "string",
                    "description": "Geography selector, e.g. 'state:*' or 'county:037'",
                },
                "geo_in": {"type": "string", "description": "Parent geography, e.g. 'state:06'"},
                "limit": {"type": "integer", "minimum": 0, "description": "Max rows to return"},
            },
            "required": ["vintage", "dataset", "variables", "geo_for"],
        },
    ),
    Tool(
        name="get_population",
        description=(
            "Convenience tool: get total population (B01001_001E) for a geography. "
            "Defaults to ACS 5-year 2022."
        ),
        inputSchema={
            "type": "object",
            "properties": {
                "geo_for": {
                    "type": "string",
                    "description": "Geography selector, e.g. 'state:*' or 'county:*'",
                },
                "geo_in": {"type": "string", "description": "Parent geography, e.g. 'state:06'"},
                "vintage": {"type": "string", "description": "Year (default '2022')"},
                "dataset": {"type": "string", "description": "Dataset (default 'acs/acs5')"},
            },
            "required": ["geo_for"],
        },
    ),
]

_TOOLS_BY_NAME = {tool.name: tool for tool in TOOLS}


async def _search_datasets(args: dict, session: aiohttp.ClientSession | None) -> Any:
    return await census_api_client.search_datasets(args["query"], session=session)


async def _get_variables(args: dict, session: aiohttp.ClientSession | None) -> Any:
    return await census_api_client.get_variables(
        args["vintage"],
        args["dataset"],
        search=args.get("search"),
        group=args.get("group"),
        session=session,
    )


async def _get_geographies(args: dict, session: aiohttp.ClientSession | None) -> Any:
    return await census_api_client.get_geographies(
        args["vintage"], args["dataset"], session=session
    )


async def _query_data(args: dict, session: aiohttp.ClientSession | None) -> Any:
    limit = args.get("limit")
    return await census_api_client.query_data(
        vintage=args["vintage"],
        dataset=args["dataset"],
        variables=list(args["variables"]),
        geo_for=args["geo_for"],
        geo_in=args.get("geo_in"),
        limit=int(limit) if limit is not None else None,
        session=session,
    )


async def _get_population(args: dict, session: aiohttp.ClientSession | None) -> Any:
    return await census_api_client.get_population(
        geo_for=args["geo_for"],
        geo_in=args.get("geo_in"),
        vintage=args.get("vintage"),
        dataset=args.get("dataset"),
        session=session,
    )


HANDLERS: dict[str, Callable[[dict, aiohttp.ClientSession | None], Awaitable[Any]]] = {
    "search_datasets": _search_datasets,
    "get_variables": _get_variables,
    "get_geographies": _get_geographies,
    "query_data": _query_data,
    "get_population": _get_population,
}


def list_tools() -> list[Tool]:
    return list(TOOLS)


def to_json(result: Any) -> str:
    if isinstance(result, list):
        payload = [item.to_dict() for item in result]
    else:
        payload = result.to_dict()
    return json.dumps(payload, indent=2, ensure_ascii=False)


async def dispatch(
    name: str, arguments: dict | None, session: aiohttp.ClientSession | None = None
) -> str:
    """Run a tool and return its JSON text, raising on any failure."""
    tool = _TOOLS_BY_NAME.get(name)
    if tool is None:
        raise ToolError(f"Unknown tool: {name}")
    arguments = arguments or {}
    missing = [key for key in tool.inputSchema.get("required", []) if arguments.get(key) is None]
    if missing:
        raise ToolError(f"Missing required argument(s) for {name}: {', '.join(missing)}")
    result = await HANDLERS[name](arguments, session)
    return to_json(result)


async def call_tool(
    name: str, arguments: dict | None, session: aiohttp.ClientSession | None = None
) -> CallToolResult:
    """Run a tool and wrap its outcome, success or failure, in a CallToolResult."""
    logger.info(f"Tool call: {name} with args: {arguments}")
    try:
        text = await dispatch(name, arguments, session=session)
    except (CensusError, ToolError) as e:
        logger.warning(f"Tool {name} failed: {e}")
        return CallToolResult(content=[TextContent(type="text", text=str(e))], isError=True)
    except Exception as e:
        logger.error(f"Error calling tool {name}: {e}")
        report_exception(e, tool=name)
        return CallToolResult(
            content=[TextContent(type="text", text=f"Error: {str(e)}")], isError=True
        )
    return CallToolResult(content=[TextContent(type="text", text=text)])
