"""
Resolver Feed - DNS resolver list aggregator.

This package fetches plaintext resolver lists from configured URLs,
merges them into deduplicated public and trusted sets, and saves them
as flat files and/or in a SQLite store.

Main entry point is the CLI via `resolver-feed` command.

Example:
    $ resolver-feed process --all --db
    $ resolver-feed list trusted
"""

__all__ = ["__version__", "AppConfig", "Category", "ResultSet", "load_config", "run_pipeline"]
__version__ = "0.1.0"

from .config import AppConfig, load_config
from .core.types import Category, ResultSet
from .runner import run_pipeline
