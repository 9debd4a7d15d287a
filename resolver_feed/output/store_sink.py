"""Structured-store sink backed by ResolverStore."""

from __future__ import annotations

from collections.abc import Iterable

from ..core.types import Category, Record, ResultSet
from ..store.resolver_store import ResolverStore, utc_now
from .base import Sink


class StoreSink(Sink):
    """Insert-or-ignore a ResultSet into the store.

    Categories listed in ``clear_categories`` are treated as fully
    replaceable: their existing rows are deleted before the new rows go in.
    Other categories are additive and only shrink when an operator clears
    them.
    """

    name = "store"

    def __init__(self, store: ResolverStore, clear_categories: Iterable[Category | str] = (Category.PUBLIC,)):
        self.store = store
        self.clear_categories = {Category.parse(name) for name in clear_categories}

    def persist(self, result: ResultSet) -> int:
        added_at = utc_now()
        records = (
            Record(
                token=token,
                category=result.category,
                source_url=result.provenance[token],
                added_at=added_at,
            )
            for token in result.sorted_tokens()
        )
        clear = result.category if result.category in self.clear_categories else None
        return self.store.replace_category(clear, records)
