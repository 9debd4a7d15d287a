"""Line normalization for fetched resolver lists."""

from __future__ import annotations

from collections.abc import Iterable, Iterator


def normalize_lines(lines: Iterable[str]) -> Iterator[str]:
    """Yield candidate tokens from raw lines.

    Each line is stripped of surrounding whitespace and dropped if nothing
    is left. No format validation is done, so malformed entries pass through.

    Args:
        lines: Raw lines as read from a source

    Returns:
        Iterator over non-empty, trimmed tokens in input order
    """
    for line in lines:
        token = line.strip()
        if token:
            yield token
