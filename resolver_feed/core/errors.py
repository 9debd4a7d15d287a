"""
Exception hierarchy for the resolver feed pipeline.

Failures are scoped as narrowly as possible:
- FetchError: one source, logged and skipped
- SinkError / StoreError: one persistence target, the other keeps running
- ConfigError (and StoreError at open time): abort before any fetch
"""

from __future__ import annotations

from enum import Enum


class ResolverFeedError(Exception):
    """Base class for all errors raised by this package."""


class ConfigError(ResolverFeedError):
    """Configuration is missing, unreadable or malformed."""


class FetchErrorKind(str, Enum):
    TRANSPORT = "transport"
    UNEXPECTED_STATUS = "unexpected_status"
    STREAM_READ = "stream_read"


class FetchError(ResolverFeedError):
    """A single source could not be fetched.

    Attributes:
        url: The source URL
        kind: Which stage of the fetch failed
        status_code: HTTP status for UNEXPECTED_STATUS, otherwise None
    """

    def __init__(
        self,
        url: str,
        kind: FetchErrorKind,
        message: str,
        status_code: int | None = None,
    ):
        super().__init__(message)
        self.url = url
        self.kind = kind
        self.status_code = status_code


class StoreError(ResolverFeedError):
    """The structured store could not be opened, migrated, read or written."""


class SinkError(ResolverFeedError):
    """A flat-file sink failed to write its output."""
