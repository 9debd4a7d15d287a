"""
HTTP fetching of line-oriented resolver lists.

Each source is fetched with a single blocking GET through httpx. There is
no retry: a failed source is reported to the caller as a FetchError and the
pipeline moves on to the next one.
"""

from __future__ import annotations

import codecs
import logging

import httpx

from ..config import FetchConfig
from ..core.errors import FetchError, FetchErrorKind

logger = logging.getLogger(__name__)


def build_client(
    cfg: FetchConfig,
    transport: httpx.BaseTransport | None = None,
) -> httpx.Client:
    """Build the HTTP client shared by all fetches of a run.

    Args:
        cfg: Fetch settings (timeout, User-Agent, proxy handling)
        transport: Optional transport override, used by tests to inject an
                   ``httpx.MockTransport``

    Returns:
        A configured ``httpx.Client``; the caller is responsible for closing it
    """
    return httpx.Client(
        timeout=cfg.timeout_seconds,
        headers={"User-Agent": cfg.user_agent},
        follow_redirects=True,
        trust_env=cfg.trust_env,
        transport=transport,
    )


def fetch_lines(url: str, client: httpx.Client) -> list[str]:
    """Fetch a URL and return its body as a list of lines.

    Args:
        url: The list URL to fetch
        client: HTTP client from ``build_client``

    Returns:
        Raw (untrimmed) lines of the response body

    Raises:
        FetchError: TRANSPORT when the request cannot be sent or answered,
            UNEXPECTED_STATUS for any status other than 200, STREAM_READ when
            the body fails mid-read or does not decode in its declared
            charset (UTF-8 by default). Partial bodies are never returned.
    """
    logger.info("Fetching from %s", url)
    try:
        with client.stream("GET", url) as resp:
            if resp.status_code != 200:
                raise FetchError(
                    url,
                    FetchErrorKind.UNEXPECTED_STATUS,
                    f"Unexpected HTTP status {resp.status_code} for URL {url}",
                    status_code=resp.status_code,
                )
            try:
                return _read_lines(resp)
            except (httpx.TransportError, httpx.StreamError, UnicodeDecodeError, LookupError) as exc:
                raise FetchError(
                    url,
                    FetchErrorKind.STREAM_READ,
                    f"Error reading response body from URL {url}: {type(exc).__name__}: {exc}",
                ) from exc
    except httpx.TransportError as exc:
        raise FetchError(
            url,
            FetchErrorKind.TRANSPORT,
            f"Failed to fetch URL {url}: {type(exc).__name__}: {exc}",
        ) from exc


def _read_lines(resp: httpx.Response) -> list[str]:
    # Strict decoding: invalid bytes fail the source instead of becoming U+FFFD
    decoder = codecs.getincrementaldecoder(resp.encoding or "utf-8")()
    chunks = [decoder.decode(chunk) for chunk in resp.iter_bytes()]
    chunks.append(decoder.decode(b"", final=True))
    return "".join(chunks).splitlines()
