"""Persistence sinks for aggregated resolver sets."""

from .base import Sink
from .factory import build_sinks
from .file_sink import FileSink
from .store_sink import StoreSink

__all__ = [
    "Sink",
    "FileSink",
    "StoreSink",
    "build_sinks",
]
