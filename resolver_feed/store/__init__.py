"""Structured storage and read-only queries for aggregated resolvers."""

from .resolver_store import ResolverStore, StoreStats, open_store

__all__ = ["ResolverStore", "StoreStats", "open_store"]
