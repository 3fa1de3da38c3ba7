"""
Core module for census_mcp.

Rate limiting, HTTP access, credentials and the data models returned by
the Census API client, independent from any MCP transport.
"""

from .exceptions import ApiError, CensusError, ConfigError, DecodeError, report_exception
from .fetcher import fetch_json, require_api_key
from .models import DatasetInfo, GeographyInfo, QueryResult, VariableInfo
from .rate_gate import RateGate, rate_gate

__all__ = [
    "ApiError",
    "CensusError",
    "ConfigError",
    "DecodeError",
    "report_exception",
    "fetch_json",
    "require_api_key",
    "DatasetInfo",
    "GeographyInfo",
    "QueryResult",
    "VariableInfo",
    "RateGate",
    "rate_gate",
]
