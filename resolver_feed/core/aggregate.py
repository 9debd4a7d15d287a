"""
Token aggregation across all sources of a category.

Sources are folded into one ResultSet by set union. A failed source
contributes nothing and does not stop the remaining sources from being
merged.
"""

from __future__ import annotations

from collections.abc import Iterable

from .normalize import normalize_lines
from .types import Category, ResultSet, Source, SourceResult


class Aggregator:
    """Accumulates normalized tokens for a single category run."""

    def __init__(self, category: Category):
        self.result = ResultSet(category=category)
        self.duplicates = 0

    def add_source(self, source: Source, lines: Iterable[str]) -> int:
        """Fold one source's lines into the result.

        Args:
            source: The source that produced the lines
            lines: Raw or already normalized lines

        Returns:
            Number of tokens that were new to the result
        """
        added = 0
        for token in normalize_lines(lines):
            if self.result.add(token, source.url):
                added += 1
            else:
                self.duplicates += 1
        return added


def aggregate(category: Category, results: Iterable[SourceResult]) -> ResultSet:
    """Merge per-source fetch results into one deduplicated ResultSet."""
    aggregator = Aggregator(category)
    for item in results:
        if not item.ok:
            continue
        aggregator.add_source(item.source, item.tokens)
    return aggregator.result
