"""
Core data types for the resolver feed pipeline.

This module defines the structures passed between pipeline stages:
- Category: Trust classification of a source and its tokens
- Source: One configured list URL
- Record: One row of the structured store
- ResultSet: Deduplicated tokens collected for one category run
- SourceResult / SinkResult / RunReport: Per-run outcome reporting
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

from .errors import ConfigError, FetchError


ALL_CATEGORIES = "all"


class Category(str, Enum):
    """Trust category of a resolver list."""

    PUBLIC = "public"
    TRUSTED = "trusted"

    @classmethod
    def parse(cls, value: str | Category) -> Category:
        """Parse a category name, raising ConfigError for unknown names."""
        if isinstance(value, Category):
            return value
        try:
            return cls(value.strip().lower())
        except ValueError as exc:
            names = ", ".join(c.value for c in cls)
            raise ConfigError(f"Unknown category: {value!r}. Expected one of: {names}") from exc


class RunState(str, Enum):
    IDLE = "idle"
    FETCHING_SOURCES = "fetching_sources"
    AGGREGATING = "aggregating"
    PERSISTING = "persisting"
    REPORTED = "reported"


@dataclass(frozen=True)
class Source:
    """A configured list URL and the category it feeds."""

    url: str
    category: Category


@dataclass
class Record:
    """A persisted resolver row.

    Attributes:
        token: The resolver address as fetched (trimmed)
        category: Category under which the token was first inserted
        source_url: URL of the source that produced the token
        added_at: ISO 8601 UTC timestamp of first insertion
    """

    token: str
    category: Category
    source_url: str
    added_at: str


@dataclass
class ResultSet:
    """Deduplicated tokens for a single category run.

    Insertion is idempotent. The first source to produce a token is kept as
    its provenance, so provenance depends on source order while the token set
    itself does not.
    """

    category: Category
    tokens: set[str] = field(default_factory=set)
    provenance: dict[str, str] = field(default_factory=dict)

    def add(self, token: str, source_url: str) -> bool:
        """Add a token; return False if it was already present."""
        if token in self.tokens:
            return False
        self.tokens.add(token)
        self.provenance[token] = source_url
        return True

    def sorted_tokens(self) -> list[str]:
        return sorted(self.tokens)

    def __len__(self) -> int:
        return len(self.tokens)

    def __contains__(self, token: object) -> bool:
        return token in self.tokens


@dataclass
class SourceResult:
    """Outcome of fetching one source.

    Either tokens will be populated (success) or error will be set (failure).
    """

    source: Source
    tokens: list[str] = field(default_factory=list)
    error: FetchError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass
class SinkResult:
    """Outcome of persisting a ResultSet to one sink."""

    sink: str
    written: int = 0
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass
class RunReport:
    """Summary of one category run, returned by the orchestrator."""

    category: Category
    state: RunState = RunState.IDLE
    unique_tokens: int = 0
    sources: list[SourceResult] = field(default_factory=list)
    sinks: list[SinkResult] = field(default_factory=list)

    @property
    def failed_sources(self) -> list[SourceResult]:
        return [item for item in self.sources if not item.ok]

    @property
    def failed_sinks(self) -> list[SinkResult]:
        return [item for item in self.sinks if not item.ok]

    @property
    def error_count(self) -> int:
        return len(self.failed_sources) + len(self.failed_sinks)
