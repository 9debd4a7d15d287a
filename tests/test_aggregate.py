"""Tests for line normalization and token aggregation."""

import pytest

from resolver_feed.core.aggregate import Aggregator, aggregate
from resolver_feed.core.errors import ConfigError, FetchError, FetchErrorKind
from resolver_feed.core.normalize import normalize_lines
from resolver_feed.core.types import Category, ResultSet, Source, SourceResult


def _source(name: str, category: Category = Category.PUBLIC) -> Source:
    return Source(url=f"https://lists.example.com/{name}.txt", category=category)


def test_normalize_trims_and_drops_blank_lines():
    lines = ["  1.1.1.1  ", "", "   ", "\t8.8.8.8\r", "not-an-ip"]

    assert list(normalize_lines(lines)) == ["1.1.1.1", "8.8.8.8", "not-an-ip"]


def test_normalize_keeps_case_and_inner_whitespace():
    assert list(normalize_lines(["Resolver A ", "resolver a"])) == ["Resolver A", "resolver a"]


def test_result_set_add_is_idempotent():
    result = ResultSet(category=Category.PUBLIC)

    assert result.add("1.1.1.1", "https://a") is True
    assert result.add("1.1.1.1", "https://b") is False
    assert len(result) == 1
    assert result.provenance["1.1.1.1"] == "https://a"


def test_aggregate_dedups_whitespace_variants():
    results = [
        SourceResult(source=_source("a"), tokens=["1.1.1.1", " 1.1.1.1", "9.9.9.9"]),
        SourceResult(source=_source("b"), tokens=["1.1.1.1\t", "9.9.9.9", "", "8.8.4.4"]),
    ]

    result = aggregate(Category.PUBLIC, results)

    assert result.sorted_tokens() == ["1.1.1.1", "8.8.4.4", "9.9.9.9"]


def test_aggregate_skips_failed_sources():
    failed = SourceResult(
        source=_source("b"),
        error=FetchError("https://lists.example.com/b.txt", FetchErrorKind.UNEXPECTED_STATUS, "500", 500),
    )
    results = [
        SourceResult(source=_source("a"), tokens=["1.1.1.1"]),
        failed,
        SourceResult(source=_source("c"), tokens=["8.8.8.8"]),
    ]

    result = aggregate(Category.PUBLIC, results)

    assert result.tokens == {"1.1.1.1", "8.8.8.8"}


def test_aggregate_set_is_independent_of_source_order():
    a = SourceResult(source=_source("a"), tokens=["1.1.1.1", "2.2.2.2"])
    b = SourceResult(source=_source("b"), tokens=["2.2.2.2", "3.3.3.3"])

    forward = aggregate(Category.TRUSTED, [a, b])
    backward = aggregate(Category.TRUSTED, [b, a])

    assert forward.tokens == backward.tokens
    # Provenance follows traversal order
    assert forward.provenance["2.2.2.2"] == a.source.url
    assert backward.provenance["2.2.2.2"] == b.source.url


def test_aggregator_counts_new_and_duplicate_tokens():
    aggregator = Aggregator(Category.PUBLIC)

    assert aggregator.add_source(_source("a"), ["1.1.1.1", "1.1.1.1", "2.2.2.2"]) == 2
    assert aggregator.add_source(_source("b"), ["2.2.2.2", "3.3.3.3"]) == 1
    assert aggregator.duplicates == 2
    assert len(aggregator.result) == 3


def test_category_parse_rejects_unknown_names():
    assert Category.parse(" Trusted ") is Category.TRUSTED
    with pytest.raises(ConfigError, match="Unknown category"):
        Category.parse("private")
