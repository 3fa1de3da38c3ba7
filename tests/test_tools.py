import json

import pytest
from mcp.types import CallToolRequest, CallToolRequestParams, ListToolsRequest

from census_mcp import config
from census_mcp.mcp import tools
from census_mcp.mcp.server import create_server

from .conftest import ACS5_QUERY_PATTERN, CATALOG_URL, POPULATION_ROWS, VARIABLES_URL

pytestmark = pytest.mark.asyncio

TOOL_NAMES = ["search_datasets", "get_variables", "get_geographies", "query_data", "get_population"]


async def test_list_tools():
    listed = tools.list_tools()
    assert [tool.name for tool in listed] == TOOL_NAMES
    query_tool = next(tool for tool in listed if tool.name == "query_data")
    assert query_tool.inputSchema["required"] == ["vintage", "dataset", "variables", "geo_for"]
    assert query_tool.inputSchema["properties"]["variables"]["type"] == "array"
    assert query_tool.inputSchema["properties"]["limit"]["minimum"] == 0


async def test_call_tool_serializes_result(rmock):
    rmock.get(ACS5_QUERY_PATTERN, payload=POPULATION_ROWS)
    result = await tools.call_tool(
        "query_data",
        {
            "vintage": "2022",
            "dataset": "acs/acs5",
            "variables": ["B01001_001E"],
            "geo_for": "state:*",
            "limit": 1,
        },
    )
    assert not result.isError
    assert json.loads(result.content[0].text) == {
        "headers": ["NAME", "B01001_001E", "state"],
        "rows": [["California", "39538223", "06"]],
        "total_rows": 2,
    }


async def test_call_tool_list_result(rmock):
    rmock.get(
        VARIABLES_URL,
        payload={"variables": {"B01001_001E": {"label": "Total", "concept": "SEX BY AGE"}}},
    )
    result = await tools.call_tool("get_variables", {"vintage": "2022", "dataset": "acs/acs5"})
    assert json.loads(result.content[0].text) == [
        {"name": "B01001_001E", "label": "Total", "concept": "SEX BY AGE", "group": ""}
    ]


async def test_call_tool_unknown():
    result = await tools.call_tool("delete_census", {})
    assert result.isError
    assert result.content[0].text == "Unknown tool: delete_census"


async def test_call_tool_missing_argument(rmock):
    result = await tools.call_tool("get_geographies", {"vintage": "2022"})
    assert result.isError
    assert "dataset" in result.content[0].text
    assert rmock.requests == {}


async def test_call_tool_config_error(rmock):
    config.override(CENSUS_API_KEY="")
    result = await tools.call_tool("get_population", {"geo_for": "state:06"})
    assert result.isError
    assert result.content[0].text == "CENSUS_API_KEY environment variable is required"
    assert rmock.requests == {}


async def test_call_tool_api_error(rmock):
    rmock.get(CATALOG_URL, status=503, body="Service Unavailable")
    result = await tools.call_tool("search_datasets", {"query": "acs"})
    assert result.isError
    assert result.content[0].text == "Census API 503: Service Unavailable"


async def test_call_tool_unexpected_error(rmock):
    # a catalog entry that is not an object breaks the reshaping
    rmock.get(CATALOG_URL, payload={"dataset": ["not-an-object"]})
    result = await tools.call_tool("search_datasets", {"query": "acs"})
    assert result.isError
    assert result.content[0].text.startswith("Error: ")


async def test_stdio_server_lists_tools():
    server = create_server()
    response = await server.request_handlers[ListToolsRequest](
        ListToolsRequest(method="tools/list")
    )
    assert [tool.name for tool in response.root.tools] == TOOL_NAMES


async def test_stdio_server_reports_errors():
    server = create_server()
    response = await server.request_handlers[CallToolRequest](
        CallToolRequest(
            method="tools/call",
            params=CallToolRequestParams(name="get_population", arguments={}),
        )
    )
    assert response.root.isError
