"""
SQLite-backed store for aggregated resolvers.

Rows are written insert-or-ignore: once a token is recorded its category,
source and added_at never change until the row is removed by a
category-scoped clear. The uniqueness scope is configurable:

- "token": one row per token across all categories. A token first seen
  under one category is skipped when another category inserts it.
- "token_category": one row per (token, category) pair.

The database runs in WAL mode so readers (list/stats) are not blocked
while a pipeline run writes.
"""

from __future__ import annotations

from collections.abc import Iterable
from contextlib import closing
from dataclasses import dataclass, field
from datetime import datetime, timezone
import logging
from pathlib import Path
import sqlite3

from ..config import StoreConfig, get_db_path
from ..core.errors import StoreError
from ..core.types import ALL_CATEGORIES, Category, Record

logger = logging.getLogger(__name__)

UNIQUE_SCOPES = {
    "token": "UNIQUE (token)",
    "token_category": "UNIQUE (token, category)",
}


@dataclass
class StoreStats:
    """Per-category row counts."""

    counts: dict[str, int] = field(default_factory=dict)

    @property
    def total(self) -> int:
        return sum(self.counts.values())


def utc_now() -> str:
    return datetime.now(timezone.utc).isoformat()


class ResolverStore:
    """Persistent resolver table with category-scoped replacement.

    Opening the store creates the database file and schema when missing.
    A read-only store is used by queries: it never creates anything and does
    not check the uniqueness scope, which only matters for writes. Every
    sqlite3 failure is raised as StoreError.
    """

    def __init__(self, db_path: str | Path, unique_scope: str = "token", read_only: bool = False):
        if unique_scope not in UNIQUE_SCOPES:
            raise StoreError(f"Unknown uniqueness scope: {unique_scope!r}")
        self.db_path = Path(db_path)
        self.unique_scope = unique_scope
        self.read_only = read_only
        if not read_only:
            self._ensure_db()
        elif not self.db_path.is_file():
            raise StoreError(f"No store found at {self.db_path}")

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self.db_path)
        conn.row_factory = sqlite3.Row
        return conn

    def _ensure_db(self) -> None:
        try:
            self.db_path.parent.mkdir(parents=True, exist_ok=True)
            with closing(self._connect()) as conn, conn:
                conn.execute("PRAGMA journal_mode=WAL")
                conn.execute(f"""
                    CREATE TABLE IF NOT EXISTS resolvers (
                        id INTEGER PRIMARY KEY AUTOINCREMENT,
                        token TEXT NOT NULL,
                        category TEXT NOT NULL,
                        source_url TEXT NOT NULL,
                        added_at TEXT NOT NULL,
                        {UNIQUE_SCOPES[self.unique_scope]}
                    )
                """)
                conn.execute(
                    "CREATE INDEX IF NOT EXISTS idx_resolvers_category ON resolvers(category)"
                )
                schema = conn.execute(
                    "SELECT sql FROM sqlite_master WHERE type = 'table' AND name = 'resolvers'"
                ).fetchone()
        except (OSError, sqlite3.Error) as exc:
            raise StoreError(f"Could not open store at {self.db_path}: {exc}") from exc

        # CREATE TABLE IF NOT EXISTS keeps an older table as is
        if UNIQUE_SCOPES[self.unique_scope] not in schema["sql"]:
            raise StoreError(
                f"Store at {self.db_path} was created with a different uniqueness scope "
                f"than {self.unique_scope!r}"
            )

        logger.debug("ResolverStore initialized at %s (unique_scope=%s)", self.db_path, self.unique_scope)

    def clear_category(self, category: Category) -> int:
        """Delete every row of a category; return the number removed."""
        try:
            with closing(self._connect()) as conn, conn:
                cursor = conn.execute(
                    "DELETE FROM resolvers WHERE category = ?", (Category.parse(category).value,)
                )
                return cursor.rowcount
        except sqlite3.Error as exc:
            raise StoreError(f"Could not clear category {category}: {exc}") from exc

    def insert_records(self, records: Iterable[Record]) -> int:
        """Insert records, skipping any that collide with an existing row.

        Returns:
            Number of rows actually inserted
        """
        return self.replace_category(None, records)

    def replace_category(self, category: Category | None, records: Iterable[Record]) -> int:
        """Optionally clear a category, then insert-or-ignore records.

        Both steps run on one connection and are committed together.

        Args:
            category: Category to clear first, or None to only insert
            records: Records to insert

        Returns:
            Number of rows actually inserted
        """
        inserted = 0
        try:
            with closing(self._connect()) as conn, conn:
                if category is not None:
                    name = Category.parse(category).value
                    cleared = conn.execute(
                        "DELETE FROM resolvers WHERE category = ?", (name,)
                    ).rowcount
                    logger.debug("Cleared %d %s rows", cleared, name)
                for record in records:
                    cursor = conn.execute(
                        """
                        INSERT OR IGNORE INTO resolvers (token, category, source_url, added_at)
                        VALUES (?, ?, ?, ?)
                        """,
                        (
                            record.token,
                            Category.parse(record.category).value,
                            record.source_url,
                            record.added_at,
                        ),
                    )
                    inserted += cursor.rowcount
        except sqlite3.Error as exc:
            raise StoreError(f"Could not write to store at {self.db_path}: {exc}") from exc
        return inserted

    def list_records(self, category: Category | str = ALL_CATEGORIES) -> list[Record]:
        """Return records sorted by token, optionally filtered by category."""
        query = "SELECT token, category, source_url, added_at FROM resolvers"
        params: tuple[str, ...] = ()
        if category != ALL_CATEGORIES:
            query += " WHERE category = ?"
            params = (Category.parse(category).value,)
        query += " ORDER BY token, category"
        try:
            with closing(self._connect()) as conn:
                rows = conn.execute(query, params).fetchall()
        except sqlite3.Error as exc:
            raise StoreError(f"Could not read store at {self.db_path}: {exc}") from exc
        return [self._row_to_record(row) for row in rows]

    def list_tokens(self, category: Category | str = ALL_CATEGORIES) -> list[str]:
        """Return tokens sorted lexicographically.

        Under the "token_category" scope a token present in several
        categories is listed once per category when listing "all".
        """
        return [record.token for record in self.list_records(category)]

    def stats(self) -> StoreStats:
        """Count rows per category; every known category is reported, even when empty."""
        try:
            with closing(self._connect()) as conn:
                rows = conn.execute(
                    "SELECT category, COUNT(*) AS cnt FROM resolvers GROUP BY category ORDER BY category"
                ).fetchall()
        except sqlite3.Error as exc:
            raise StoreError(f"Could not read store at {self.db_path}: {exc}") from exc
        counts = {category.value: 0 for category in Category}
        counts.update((row["category"], row["cnt"]) for row in rows)
        return StoreStats(counts=counts)

    def _row_to_record(self, row: sqlite3.Row) -> Record:
        return Record(
            token=row["token"],
            category=Category.parse(row["category"]),
            source_url=row["source_url"],
            added_at=row["added_at"],
        )


def open_store(cfg: StoreConfig, read_only: bool = False) -> ResolverStore:
    """Open the store configured by ``cfg`` (path may come from RESOLVER_FEED_DB)."""
    return ResolverStore(get_db_path(cfg), unique_scope=cfg.unique_scope, read_only=read_only)
