# utils.py
"""
Shared constants and helpers for the urlgrep filter.

This module provides:
- Buffer and cache sizing constants used across modules
- Statistics key namespaces for the match pipeline
- Summary formatting for the optional run report
- IP literal detection for the domain splitter
- Text stream wrappers for stdin/stdout

Example Usage:
    from urlgrep.utils import format_summary, FILTER_SUMMARY_ORDER

    line = format_summary("urlgrep", stats, FILTER_SUMMARY_ORDER)
    # Returns: "urlgrep: lines_in=10 lines_out=4 ..."
"""

from __future__ import annotations

import io
import ipaddress
from functools import lru_cache
from types import SimpleNamespace
from typing import BinaryIO, Mapping, Sequence


# -------------------------
# Constants
# -------------------------

# Performance tuning constants
DOMAIN_CACHE_SIZE = 32768  # LRU cache size for public-suffix splitting
IO_BUFFER_SIZE = 131072  # 128KB buffer for stdin/stdout

STREAM_ENCODING = "utf-8"
STREAM_ERRORS = "surrogateescape"  # undecodable bytes round-trip unchanged

DEFAULT_SCHEME_PREFIX = "http://"
NEGATION_SUFFIX = ":not"

# Shared statistics key namespace (avoid magic strings across modules)
FILTER_STATS_KEYS = SimpleNamespace(
    LINES_IN="lines_in",
    LINES_OUT="lines_out",
    PARSE_FAILED="parse_failed",
    CONDITION_FAILED="condition_failed",
    DUPLICATES="duplicates",
    READ_ERROR="read_error",
)

FILTER_SUMMARY_ORDER = (
    FILTER_STATS_KEYS.LINES_IN,
    FILTER_STATS_KEYS.LINES_OUT,
    FILTER_STATS_KEYS.PARSE_FAILED,
    FILTER_STATS_KEYS.CONDITION_FAILED,
    FILTER_STATS_KEYS.DUPLICATES,
)


# -------------------------
# Stats helpers
# -------------------------


def new_stats() -> dict[str, int | str]:
    """Return a zeroed stats dict for one filter run."""
    return {key: 0 for key in FILTER_SUMMARY_ORDER}


def format_summary(
    label: str, stats: Mapping[str, int | str], keys: Sequence[str]
) -> str:
    """Return a space-joined `key=value` summary string for the CLI report."""
    parts = [f"{label}:"]
    parts.extend(f"{key}={stats.get(key, 0)}" for key in keys)
    error = stats.get(FILTER_STATS_KEYS.READ_ERROR)
    if error:
        parts.append(f"{FILTER_STATS_KEYS.READ_ERROR}={error!r}")
    return " ".join(parts)


# -------------------------
# Host helpers
# -------------------------


@lru_cache(maxsize=8192)
def is_ip_literal(host: str) -> bool:
    """True if host is an IPv4/IPv6 address (brackets and zone IDs allowed)."""
    if not host:
        return False
    cand = host.strip().strip("[]")
    if "%" in cand:
        cand = cand.split("%", 1)[0]
    try:
        ipaddress.ip_address(cand)
    except ValueError:
        return False
    return True


# -------------------------
# Stream helpers
# -------------------------


def open_text_stream(binary: BinaryIO, write: bool = False) -> io.TextIOWrapper:
    """
    Wrap a binary stdin/stdout-like object as a buffered text stream.

    Lines are decoded as UTF-8 with surrogateescape, so arbitrary bytes pass
    through to the output exactly as read. Lines split on "\\n" only and
    newlines are not translated.
    """
    buffered: io.BufferedIOBase
    if write:
        buffered = io.BufferedWriter(binary, buffer_size=IO_BUFFER_SIZE)  # type: ignore[arg-type]
    else:
        buffered = io.BufferedReader(binary, buffer_size=IO_BUFFER_SIZE)  # type: ignore[arg-type]
    return io.TextIOWrapper(
        buffered,
        encoding=STREAM_ENCODING,
        errors=STREAM_ERRORS,
        newline="\n",
        write_through=False,
    )


def release_text_stream(stream: io.TextIOWrapper) -> None:
    """
    Flush a stream from open_text_stream() and detach it from the wrapped
    binary object, leaving the caller's stdin/stdout open.
    """
    if stream.writable():
        stream.flush()
    buffered = stream.detach()
    if buffered.writable():
        buffered.flush()
    buffered.detach()


__all__ = [
    # Functions
    "new_stats",
    "format_summary",
    "is_ip_literal",
    "open_text_stream",
    "release_text_stream",
    # Constants
    "DOMAIN_CACHE_SIZE",
    "IO_BUFFER_SIZE",
    "STREAM_ENCODING",
    "STREAM_ERRORS",
    "DEFAULT_SCHEME_PREFIX",
    "NEGATION_SUFFIX",
    "FILTER_STATS_KEYS",
    "FILTER_SUMMARY_ORDER",
]
