"""
Main pipeline orchestration for the resolver feed.

This module coordinates one batch run per category:
1. Fetch every configured source, one at a time, in list order
2. Normalize and aggregate the lines into a deduplicated ResultSet
3. Persist the ResultSet to each active sink
4. Report per-source and per-sink failures

A failing source or sink never stops the others. Only configuration and
store initialization errors, raised before this module runs, abort a run.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass

import httpx
from rich.console import Console
from rich.progress import (
    BarColumn,
    Progress,
    SpinnerColumn,
    TaskProgressColumn,
    TextColumn,
    TimeRemainingColumn,
)

from .config import AppConfig
from .core.aggregate import aggregate
from .core.errors import FetchError, SinkError, StoreError
from .core.normalize import normalize_lines
from .core.types import Category, ResultSet, RunReport, RunState, SinkResult, Source, SourceResult
from .fetch.fetcher import build_client, fetch_lines
from .output.base import Sink
from .utils.logging import get_logger, log_event


@dataclass
class FetchStats:
    """Statistics collected during the fetch stage of one category.

    Attributes:
        total: Number of configured sources
        success: Sources fetched successfully
        failed: Sources that raised a FetchError
        lines: Non-empty lines read across all successful sources
    """
    total: int = 0
    success: int = 0
    failed: int = 0
    lines: int = 0


class Pipeline:
    """Fetch, merge and persist resolver lists for one category at a time.

    Args:
        cfg: Application configuration
        sinks: Persistence targets, possibly empty
        client: HTTP client used for every fetch
        console: Rich console for summaries (creates default if None)
        show_progress: Whether to display a progress bar while fetching
    """

    def __init__(
        self,
        cfg: AppConfig,
        sinks: Iterable[Sink],
        client: httpx.Client,
        console: Console | None = None,
        show_progress: bool = False,
    ):
        self.cfg = cfg
        self.sinks = list(sinks)
        self.client = client
        self.console = console or Console()
        self.show_progress = show_progress
        self.logger = get_logger()

    def run(self, category: Category | str) -> RunReport:
        category = Category.parse(category)
        report = RunReport(category=category)
        sources = self.cfg.sources.for_category(category)

        report.state = RunState.FETCHING_SOURCES
        log_event(
            self.logger,
            f"Processing {category.value} sources",
            event="pipeline_start",
            category=category.value,
            sources=len(sources),
            urls=[source.url for source in sources],
        )
        report.sources, stats = self._fetch_sources(sources)
        log_event(
            self.logger,
            f"Fetched {stats.success}/{stats.total} {category.value} sources",
            event="pipeline_fetched",
            category=category.value,
            total=stats.total,
            success=stats.success,
            failed=stats.failed,
            lines=stats.lines,
            failed_urls=[item.source.url for item in report.failed_sources] or None,
        )
        _render_fetch_stats(category, stats, self.console)

        report.state = RunState.AGGREGATING
        result = aggregate(category, report.sources)
        report.unique_tokens = len(result)
        log_event(
            self.logger,
            f"Collected {len(result)} unique {category.value} resolvers",
            event="pipeline_aggregated",
            category=category.value,
            unique=len(result),
            lines=stats.lines,
        )

        report.state = RunState.PERSISTING
        report.sinks = self._persist(result)

        report.state = RunState.REPORTED
        log_event(
            self.logger,
            f"Finished {category.value} with {report.error_count} error(s)",
            event="pipeline_end",
            category=category.value,
            state=report.state,
            sinks=[sink.sink for sink in report.sinks],
            unique=report.unique_tokens,
            failed_sources=len(report.failed_sources),
            failed_sinks=len(report.failed_sinks),
        )
        return report

    def _fetch_sources(self, sources: list[Source]) -> tuple[list[SourceResult], FetchStats]:
        stats = FetchStats(total=len(sources))
        results: list[SourceResult] = []

        if not self.show_progress:
            for source in sources:
                results.append(self._fetch_single(source, stats))
            return results, stats

        progress = Progress(
            SpinnerColumn(),
            TextColumn("{task.description}"),
            BarColumn(),
            TaskProgressColumn(),
            TimeRemainingColumn(),
            console=self.console,
        )
        with progress:
            task = progress.add_task("Fetch", total=len(sources))
            for source in sources:
                results.append(self._fetch_single(source, stats))
                progress.advance(task, 1)
        return results, stats

    def _fetch_single(self, source: Source, stats: FetchStats) -> SourceResult:
        try:
            lines = fetch_lines(source.url, self.client)
        except FetchError as exc:
            stats.failed += 1
            self.logger.warning(
                "Error fetching URL: %s",
                exc,
                extra={"event": "fetch_failed", "url": source.url, "kind": exc.kind.value},
            )
            return SourceResult(source=source, error=exc)

        tokens = list(normalize_lines(lines))
        stats.success += 1
        stats.lines += len(tokens)
        return SourceResult(source=source, tokens=tokens)

    def _persist(self, result: ResultSet) -> list[SinkResult]:
        outcomes: list[SinkResult] = []
        for sink in self.sinks:
            try:
                written = sink.persist(result)
            except (SinkError, StoreError) as exc:
                self.logger.error(
                    "Sink %s failed for %s: %s",
                    sink.name,
                    result.category.value,
                    exc,
                    extra={"event": "sink_failed", "category": result.category.value, "sink": sink.name},
                )
                outcomes.append(SinkResult(sink=sink.name, error=str(exc)))
                continue
            log_event(
                self.logger,
                f"Saved {written} {result.category.value} resolvers to {sink.name}",
                event="sink_written",
                category=result.category.value,
                sink=sink.name,
                written=written,
            )
            outcomes.append(SinkResult(sink=sink.name, written=written))
        return outcomes


def run_pipeline(
    categories: Iterable[Category | str],
    cfg: AppConfig,
    sinks: Iterable[Sink],
    client: httpx.Client | None = None,
    show_progress: bool = False,
    console: Console | None = None,
) -> list[RunReport]:
    """Run the pipeline for each category in turn.

    Args:
        categories: Categories to process, in order
        cfg: Application configuration
        sinks: Persistence targets shared by all categories
        client: Optional HTTP client; one is built from ``cfg.fetch`` and
                closed afterwards if omitted
        show_progress: Whether to display progress bars
        console: Rich console for output (creates default if None)

    Returns:
        One RunReport per category
    """
    sinks = list(sinks)
    if client is not None:
        pipeline = Pipeline(cfg, sinks, client, console=console, show_progress=show_progress)
        return [pipeline.run(category) for category in categories]

    with build_client(cfg.fetch) as owned_client:
        pipeline = Pipeline(cfg, sinks, owned_client, console=console, show_progress=show_progress)
        return [pipeline.run(category) for category in categories]


def _render_fetch_stats(category: Category, stats: FetchStats, console: Console) -> None:
    """Display fetch statistics for one category to the console."""
    console.print(
        f"[bold]Fetch summary ({category.value})[/bold]: "
        f"total={stats.total}, success={stats.success}, failed={stats.failed}, "
        f"lines={stats.lines}"
    )
