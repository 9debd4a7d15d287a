"""Tests for the fetch-merge-persist pipeline."""

from __future__ import annotations

import io
from pathlib import Path

import httpx
from rich.console import Console

from resolver_feed.config import AppConfig, FetchConfig
from resolver_feed.core.errors import FetchErrorKind
from resolver_feed.core.types import Category, RunState
from resolver_feed.fetch.fetcher import build_client
from resolver_feed.output import FileSink, StoreSink
from resolver_feed.runner import Pipeline, run_pipeline
from resolver_feed.store.resolver_store import ResolverStore


BASE = "https://lists.example.com"


def _client(routes: dict[str, tuple[int, str]]) -> httpx.Client:
    """Client whose responses are built fresh per request from ``routes``."""

    def handler(request: httpx.Request) -> httpx.Response:
        status, body = routes[str(request.url)]
        return httpx.Response(status, text=body)

    return build_client(FetchConfig(), transport=httpx.MockTransport(handler))


def _config(public: list[str] | None = None, trusted: list[str] | None = None) -> AppConfig:
    cfg = AppConfig()
    cfg.sources.public = public or []
    cfg.sources.trusted = trusted or []
    return cfg


def _quiet() -> Console:
    return Console(file=io.StringIO())


def test_partial_failure_keeps_other_sources(tmp_path: Path):
    urls = [f"{BASE}/one.txt", f"{BASE}/two.txt", f"{BASE}/three.txt"]
    routes = {
        urls[0]: (200, "1.1.1.1\n8.8.8.8\n"),
        urls[1]: (500, "server error"),
        urls[2]: (200, "9.9.9.9\n1.1.1.1\n"),
    }
    sink = FileSink(tmp_path)

    with _client(routes) as client:
        report = Pipeline(_config(public=urls), [sink], client, console=_quiet()).run("public")

    assert report.state is RunState.REPORTED
    assert report.unique_tokens == 3
    assert [item.source.url for item in report.failed_sources] == [urls[1]]
    assert report.failed_sources[0].error.kind is FetchErrorKind.UNEXPECTED_STATUS
    assert report.error_count == 1
    assert (tmp_path / "public_resolvers.txt").read_text(encoding="utf-8") == (
        "1.1.1.1\n8.8.8.8\n9.9.9.9\n"
    )


def test_transport_failure_is_reported_not_raised(tmp_path: Path):
    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.path == "/down.txt":
            raise httpx.ConnectError("name resolution failed", request=request)
        return httpx.Response(200, text="1.1.1.1\n")

    cfg = _config(trusted=[f"{BASE}/down.txt", f"{BASE}/up.txt"])
    with build_client(cfg.fetch, transport=httpx.MockTransport(handler)) as client:
        report = Pipeline(cfg, [FileSink(tmp_path)], client, console=_quiet()).run(Category.TRUSTED)

    assert report.unique_tokens == 1
    assert report.failed_sources[0].error.kind is FetchErrorKind.TRANSPORT


def test_rerun_is_idempotent(tmp_path: Path):
    urls = [f"{BASE}/a.txt", f"{BASE}/b.txt"]
    routes = {
        urls[0]: (200, " 1.1.1.1\n1.1.1.1 \n\n8.8.8.8\n"),
        urls[1]: (200, "8.8.8.8\n9.9.9.9\n"),
    }
    store = ResolverStore(tmp_path / "r.db")
    sinks = [FileSink(tmp_path), StoreSink(store)]
    output = tmp_path / "trusted_resolvers.txt"

    with _client(routes) as client:
        first = run_pipeline(["trusted"], _config(trusted=urls), sinks, client=client, console=_quiet())
        first_file = output.read_text(encoding="utf-8")
        first_rows = store.stats().total
        second = run_pipeline(["trusted"], _config(trusted=urls), sinks, client=client, console=_quiet())

    assert first[0].sinks[1].written == 3
    assert second[0].sinks[1].written == 0
    assert output.read_text(encoding="utf-8") == first_file == "1.1.1.1\n8.8.8.8\n9.9.9.9\n"
    assert store.stats().total == first_rows == 3


def test_trusted_run_does_not_take_over_public_tokens(tmp_path: Path):
    routes = {
        f"{BASE}/public.txt": (200, "1.1.1.1\n"),
        f"{BASE}/trusted.txt": (200, "1.1.1.1\n9.9.9.9\n"),
    }
    cfg = _config(public=[f"{BASE}/public.txt"], trusted=[f"{BASE}/trusted.txt"])
    store = ResolverStore(tmp_path / "r.db")

    with _client(routes) as client:
        reports = run_pipeline(
            [Category.PUBLIC, Category.TRUSTED], cfg, [StoreSink(store)], client=client, console=_quiet()
        )

    # The trusted ResultSet itself still holds both tokens
    assert reports[1].unique_tokens == 2
    (public_record,) = store.list_records(Category.PUBLIC)
    assert public_record.token == "1.1.1.1"
    assert public_record.source_url == f"{BASE}/public.txt"
    assert store.list_tokens(Category.TRUSTED) == ["9.9.9.9"]


def test_public_run_replaces_previous_public_rows(tmp_path: Path):
    store = ResolverStore(tmp_path / "r.db")
    old = {f"{BASE}/old.txt": (200, "\n".join(f"10.0.0.{i}" for i in range(5)))}
    new = {f"{BASE}/new.txt": (200, "1.1.1.1\n8.8.8.8\n")}

    with _client(old) as client:
        run_pipeline(["public"], _config(public=list(old)), [StoreSink(store)], client=client, console=_quiet())
    assert store.stats().counts == {"public": 5, "trusted": 0}

    with _client(new) as client:
        run_pipeline(["public"], _config(public=list(new)), [StoreSink(store)], client=client, console=_quiet())

    assert store.list_tokens(Category.PUBLIC) == ["1.1.1.1", "8.8.8.8"]


def test_failing_sink_does_not_block_other_sinks(tmp_path: Path):
    blocker = tmp_path / "blocker"
    blocker.write_text("", encoding="utf-8")
    store = ResolverStore(tmp_path / "r.db")
    routes = {f"{BASE}/a.txt": (200, "1.1.1.1\n")}

    with _client(routes) as client:
        report = Pipeline(
            _config(public=list(routes)),
            [FileSink(blocker), StoreSink(store)],
            client,
            console=_quiet(),
        ).run("public")

    assert [sink.ok for sink in report.sinks] == [False, True]
    assert report.state is RunState.REPORTED
    assert store.list_tokens("all") == ["1.1.1.1"]


def test_run_without_sinks_still_reports(tmp_path: Path):
    routes = {f"{BASE}/a.txt": (200, "1.1.1.1\n2.2.2.2\n")}

    with _client(routes) as client:
        (report,) = run_pipeline(["public"], _config(public=list(routes)), [], client=client, console=_quiet())

    assert report.unique_tokens == 2
    assert report.sinks == []
    assert list(tmp_path.iterdir()) == []


def test_sources_are_fetched_in_list_order():
    seen: list[str] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request.url.path)
        return httpx.Response(200, text="")

    cfg = _config(public=[f"{BASE}/c.txt", f"{BASE}/a.txt", f"{BASE}/b.txt"])
    with build_client(cfg.fetch, transport=httpx.MockTransport(handler)) as client:
        Pipeline(cfg, [], client, console=_quiet()).run("public")

    assert seen == ["/c.txt", "/a.txt", "/b.txt"]
