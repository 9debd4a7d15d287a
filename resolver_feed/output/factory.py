"""Sink construction from runtime config."""

from __future__ import annotations

from ..config import AppConfig
from ..store.resolver_store import ResolverStore
from .base import Sink
from .file_sink import FileSink
from .store_sink import StoreSink


def build_sinks(cfg: AppConfig, store: ResolverStore | None = None) -> list[Sink]:
    """Build the active sinks for a processing run.

    The file sink follows ``output.write_files``; the store sink is added
    whenever a store is supplied. No active sink yields an empty list.
    """
    sinks: list[Sink] = []
    if cfg.output.write_files:
        sinks.append(FileSink(cfg.output.directory, cfg.output.filename_template))
    if store is not None:
        sinks.append(StoreSink(store, cfg.store.clear_categories))
    return sinks
