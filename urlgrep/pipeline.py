"""
pipeline.py

Match pipeline: parse each input line, evaluate the configured conditions,
and emit matching lines once, in first-seen order.

Per-line states:
  PARSE_FAILED      - not a URL even after the "http://" retry (skipped)
  PARSED            - parsed, conditions not yet evaluated
  CONDITION_FAILED  - a condition returned False (later ones are not run)
  ALL_PASSED        - every condition held
  DUPLICATE         - line text was already emitted
  EMITTED           - written to the output and remembered

Lines are written verbatim (the original text, not a rebuilt URL).
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import IO, Any, Iterable, Iterator

from urlgrep import utils
from urlgrep.conditions import evaluate_all
from urlgrep.config import FilterConfig
from urlgrep.urls import URLParseError, parse_url

logger = logging.getLogger(__name__)
KEYS = utils.FILTER_STATS_KEYS


class LineState(Enum):
    PARSED = "parsed"
    PARSE_FAILED = "parse_failed"
    CONDITION_FAILED = "condition_failed"
    ALL_PASSED = "all_passed"
    DUPLICATE = "duplicate"
    EMITTED = "emitted"


_STATE_STATS_KEYS = {
    LineState.PARSE_FAILED: KEYS.PARSE_FAILED,
    LineState.CONDITION_FAILED: KEYS.CONDITION_FAILED,
    LineState.DUPLICATE: KEYS.DUPLICATES,
    LineState.EMITTED: KEYS.LINES_OUT,
}


# ----------------------------------------
# Per-line processing
# ----------------------------------------
def evaluate_line(line: str, config: FilterConfig) -> LineState:
    """Parse `line` and run the conditions; returns a state before dedup."""
    try:
        url = parse_url(line)
    except URLParseError as exc:
        if config.verbose:
            logger.info("parse failure: %s: %r", exc, line)
        return LineState.PARSE_FAILED

    if not evaluate_all(config.conditions, url, config.raw):
        return LineState.CONDITION_FAILED
    return LineState.ALL_PASSED


def classify_line(line: str, config: FilterConfig, seen: set[str]) -> LineState:
    """
    Run one line to its terminal state.

    `seen` is the set of lines already emitted; an EMITTED line is added to it.
    """
    state = evaluate_line(line, config)
    if state is not LineState.ALL_PASSED:
        return state
    if line in seen:
        return LineState.DUPLICATE
    seen.add(line)
    return LineState.EMITTED


def _strip_line_ending(raw_line: str) -> str:
    """Remove one trailing "\\n" or "\\r\\n"."""
    if raw_line.endswith("\n"):
        raw_line = raw_line[:-1]
        if raw_line.endswith("\r"):
            raw_line = raw_line[:-1]
    return raw_line


def filter_lines(
    lines: Iterable[str],
    config: FilterConfig,
    stats: dict[str, Any] | None = None,
) -> Iterator[str]:
    """
    Yield matching, not-yet-seen lines (without line terminator) in input order.

    If `stats` is given, per-state counters are updated as lines are consumed.
    """
    seen: set[str] = set()
    for raw_line in lines:
        line = _strip_line_ending(raw_line)
        state = classify_line(line, config, seen)
        if stats is not None:
            stats[KEYS.LINES_IN] += 1
            key = _STATE_STATS_KEYS.get(state)
            if key:
                stats[key] += 1
        if state is LineState.EMITTED:
            yield line


# ----------------------------------------
# Stream driver
# ----------------------------------------
def _read_lines(inp: IO[str], stats: dict[str, Any]) -> Iterator[str]:
    """Yield lines from `inp`; a read error ends the stream and is recorded."""
    try:
        yield from inp
    except OSError as exc:
        logger.error("read error: %s", exc)
        stats[KEYS.READ_ERROR] = str(exc)


def transform(inp: IO[str], out: IO[str], config: FilterConfig) -> dict[str, Any]:
    """
    Filter `inp` into `out` and return run statistics.

    A read error stops processing; it is logged and recorded under
    "read_error", and everything emitted before it stays in `out`.
    """
    stats: dict[str, Any] = utils.new_stats()
    try:
        for line in filter_lines(_read_lines(inp, stats), config, stats):
            out.write(line + "\n")
    finally:
        out.flush()
    return stats


def _print_summary(stats: dict[str, Any]) -> None:
    """Log the aggregate run statistics."""
    logger.info(utils.format_summary("urlgrep", stats, utils.FILTER_SUMMARY_ORDER))
