"""Flat-file sink writing one sorted token per line."""

from __future__ import annotations

from pathlib import Path

from ..core.errors import SinkError
from ..core.types import Category, ResultSet
from .base import Sink


class FileSink(Sink):
    """Overwrites ``<directory>/<category>_resolvers.txt`` on every run."""

    name = "file"

    def __init__(self, directory: str | Path, filename_template: str = "{category}_resolvers.txt"):
        self.directory = Path(directory)
        self.filename_template = filename_template

    def path_for(self, category: Category) -> Path:
        return self.directory / self.filename_template.format(category=category.value)

    def persist(self, result: ResultSet) -> int:
        path = self.path_for(result.category)
        tokens = result.sorted_tokens()
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            with path.open("w", encoding="utf-8", newline="\n") as handle:
                for token in tokens:
                    handle.write(token)
                    handle.write("\n")
        except OSError as exc:
            raise SinkError(f"Could not write {path}: {exc}") from exc
        return len(tokens)
