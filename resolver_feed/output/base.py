"""
Abstract base class for persistence sinks.

New sinks should inherit from Sink and implement persist.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from ..core.types import ResultSet


class Sink(ABC):
    """A persistence target for the ResultSet of one category run."""

    name: str = "sink"

    @abstractmethod
    def persist(self, result: ResultSet) -> int:
        """Persist a ResultSet.

        Args:
            result: Deduplicated tokens of one category

        Returns:
            Number of tokens written or inserted

        Raises:
            SinkError or StoreError if this sink could not complete; the
            orchestrator records the failure and moves on to the next sink.
        """
        raise NotImplementedError
