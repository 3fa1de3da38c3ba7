import re

import aiohttp
import pytest
import pytest_asyncio
from aiohttp.test_utils import TestClient, TestServer
from aioresponses import aioresponses

from census_mcp import config
from census_mcp.core.rate_gate import rate_gate
from census_mcp.mcp.http_mcp_server import app_factory

API_KEY = "test-key-123"
BASE_URL = "https://api.census.gov/data"
CATALOG_URL = f"{BASE_URL}.json"
ACS5_URL = f"{BASE_URL}/2022/acs/acs5"
VARIABLES_URL = f"{ACS5_URL}/variables.json"
GEOGRAPHY_URL = f"{ACS5_URL}/geography.json"
ACS5_QUERY_PATTERN = re.compile(r"^https://api\.census\.gov/data/2022/acs/acs5\?.*$")

POPULATION_ROWS = [
    ["NAME", "B01001_001E", "state"],
    ["California", "39538223", "06"],
    ["Texas", "29145505", "48"],
]


@pytest.fixture(autouse=True)
def setup_config():
    config.override(CENSUS_API_BASE_URL=BASE_URL, CENSUS_API_KEY=API_KEY)
    rate_gate.reset()
    yield
    config.override(CENSUS_API_KEY="")


@pytest.fixture
def rmock():
    # passthrough for local requests (aiohttp TestServer)
    with aioresponses(passthrough=["http://127.0.0.1"]) as m:
        yield m


@pytest_asyncio.fixture
async def client():
    async with aiohttp.ClientSession() as session:
        yield session


@pytest_asyncio.fixture
async def fake_client():
    app = await app_factory()
    async with TestClient(TestServer(app)) as client:
        yield client


def requested_urls(rmock) -> list:
    """URLs (yarl.URL) of all requests seen by the mock, in no particular order."""
    return [url for (_method, url) in rmock.requests]
