"""
Source fetching.

This package handles HTTP retrieval of remote resolver lists.
"""

from .fetcher import build_client, fetch_lines

__all__ = [
    "build_client",
    "fetch_lines",
]
