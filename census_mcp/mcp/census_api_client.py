from typing import Any

import aiohttp

from census_mcp import config
from census_mcp.core.exceptions import DecodeError
from census_mcp.core.fetcher import fetch_json, mask_key, require_api_key
from census_mcp.core.models import DatasetInfo, GeographyInfo, QueryResult, VariableInfo

# B01001_001E = total population
POPULATION_VARIABLE = "B01001_001E"


def _base_url() -> str:
    return config.CENSUS_API_BASE_URL or "https://api.census.gov/data"


def dataset_url(vintage: str, dataset: str) -> str:
    return f"{_base_url()}/{vintage}/{dataset}"


async def _get(url: str, session: aiohttp.ClientSession | None) -> Any:
    if session is not None:
        return await fetch_json(session, url)
    async with aiohttp.ClientSession() as own_session:
        return await fetch_json(own_session, url)


def _expect(data: Any, key: str, kind: type, url: str) -> Any:
    value = data.get(key) if isinstance(data, dict) else None
    if not isinstance(value, kind):
        raise DecodeError(url, f"missing '{key}' {kind.__name__}")
    return value


async def search_datasets(
    query: str, session: aiohttp.ClientSession | None = None
) -> list[DatasetInfo]:
    """Search the dataset catalog by keyword.

    Matches title, description or dataset path, case-insensitively, keeping
    catalog order and at most SEARCH_RESULTS_MAX entries.
    """
    url = f"{_base_url()}.json"
    data = await _get(url, session)
    catalog: list[dict[str, Any]] = _expect(data, "dataset", list, url)

    q = query.lower()
    results: list[DatasetInfo] = []
    for entry in catalog:
        title = str(entry.get("title") or "")
        description = str(entry.get("description") or "")
        dataset_name = "/".join(entry.get("c_dataset") or [])
        if not (
            q in title.lower() or q in description.lower() or q in dataset_name.lower()
        ):
            continue
        vintage = str(entry.get("c_vintage") or "")
        results.append(
            DatasetInfo(
                title=title,
                description=description[: config.DESCRIPTION_MAX_LENGTH],
                vintage=vintage,
                dataset_name=dataset_name,
                dataset_url=dataset_url(vintage, dataset_name),
            )
        )
        if len(results) >= config.SEARCH_RESULTS_MAX:
            break
    return results


async def get_variables(
    vintage: str,
    dataset: str,
    search: str | None = None,
    group: str | None = None,
    session: aiohttp.ClientSession | None = None,
) -> list[VariableInfo]:
    """List the variables of a dataset, or of one of its groups.

    `search` filters on name, label or concept, case-insensitively.
    """
    if group:
        url = f"{dataset_url(vintage, dataset)}/groups/{group}.json"
    else:
        url = f"{dataset_url(vintage, dataset)}/variables.json"
    data = await _get(url, session)
    listing: dict[str, dict[str, Any]] = _expect(data, "variables", dict, url)

    variables = [
        VariableInfo(
            name=name,
            label=info.get("label") or "",
            concept=info.get("concept") or "",
            group=info.get("group") or "",
        )
        for name, info in listing.items()
    ]
    if search:
        s = search.lower()
        variables = [
            v
            for v in variables
            if s in v.name.lower() or s in v.label.lower() or s in v.concept.lower()
        ]
    return variables[: config.VARIABLES_MAX]


async def get_geographies(
    vintage: str, dataset: str, session: aiohttp.ClientSession | None = None
) -> list[GeographyInfo]:
    url = f"{dataset_url(vintage, dataset)}/geography.json"
    data = await _get(url, session)
    fips: list[dict[str, Any]] = _expect(data, "fips", list, url)
    return [
        GeographyInfo(
            name=geo.get("name", ""),
            hierarchy=geo.get("geoLevelDisplay", ""),
            wildcard=list(geo.get("wildcard") or []),
        )
        for geo in fips
    ]


def build_query_url(
    vintage: str,
    dataset: str,
    variables: list[str],
    geo_for: str,
    geo_in: str | None,
    key: str,
) -> str:
    url = f"{dataset_url(vintage, dataset)}?get=NAME,{','.join(variables)}&for={geo_for}"
    if geo_in:
        url += f"&in={geo_in}"
    return url + f"&key={key}"


async def query_data(
    vintage: str,
    dataset: str,
    variables: list[str],
    geo_for: str,
    geo_in: str | None = None,
    limit: int | None = None,
    api_key: str | None = None,
    session: aiohttp.ClientSession | None = None,
) -> QueryResult:
    """Query tabular data for some variables over a geography.

    The first row of the response holds the headers. `total_rows` is the
    number of data rows before `limit` is applied.
    """
    # fail before any network access when the key is missing
    key = require_api_key(api_key)
    url = build_query_url(vintage, dataset, variables, geo_for, geo_in, key)

    data = await _get(url, session)
    if not data or not isinstance(data, list) or not all(isinstance(row, list) for row in data):
        raise DecodeError(mask_key(url), "expected a non-empty array of rows")

    headers, rows = data[0], data[1:]
    total = len(rows)
    if limit is not None and limit < total:
        rows = rows[: max(limit, 0)]
    return QueryResult(headers=headers, rows=rows, total_rows=total)


async def get_population(
    geo_for: str,
    geo_in: str | None = None,
    vintage: str | None = None,
    dataset: str | None = None,
    api_key: str | None = None,
    session: aiohttp.ClientSession | None = None,
) -> QueryResult:
    """Total population for a geography, defaulting to the ACS 5-year 2022 release."""
    return await query_data(
        vintage=vintage or config.DEFAULT_VINTAGE,
        dataset=dataset or config.DEFAULT_DATASET,
        variables=[POPULATION_VARIABLE],
        geo_for=geo_for,
        geo_in=geo_in,
        api_key=api_key,
        session=session,
    )
