"""
Data models for the core module.

Transient request/response shapes returned by the Census API client.
They are serialized to JSON by the tool layer via `to_dict`.
"""

from dataclasses import asdict, dataclass, field
from typing import Any


@dataclass
class DatasetInfo:
    """A catalog entry matching a dataset search."""

    title: str
    description: str
    vintage: str
    dataset_name: str
    dataset_url: str

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass
class VariableInfo:
    """A variable (statistical measure) published in a dataset."""

    name: str
    label: str = ""
    concept: str = ""
    group: str = ""

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass
class GeographyInfo:
    """A geography level supported by a dataset."""

    name: str
    hierarchy: str
    wildcard: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass
class QueryResult:
    """Represents the result of a tabular data query.

    `total_rows` counts the data rows returned by the API, before any
    client-side limit truncated `rows`.
    """

    headers: list[str]
    rows: list[list[str]]
    total_rows: int

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)
