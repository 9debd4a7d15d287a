"""
Core domain models and business logic.

This package contains data types, errors, normalization and aggregation
that are independent of any fetching or persistence backend.
"""

from .aggregate import Aggregator, aggregate
from .errors import (
    ConfigError,
    FetchError,
    FetchErrorKind,
    ResolverFeedError,
    SinkError,
    StoreError,
)
from .normalize import normalize_lines
from .types import (
    ALL_CATEGORIES,
    Category,
    Record,
    ResultSet,
    RunReport,
    RunState,
    SinkResult,
    Source,
    SourceResult,
)

__all__ = [
    "ALL_CATEGORIES",
    "Aggregator",
    "Category",
    "ConfigError",
    "FetchError",
    "FetchErrorKind",
    "Record",
    "ResolverFeedError",
    "ResultSet",
    "RunReport",
    "RunState",
    "SinkError",
    "SinkResult",
    "Source",
    "SourceResult",
    "StoreError",
    "aggregate",
    "normalize_lines",
]
