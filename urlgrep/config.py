"""Filter run configuration."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Sequence, Tuple

from urlgrep.conditions import Condition, build_conditions


@dataclass(frozen=True)
class FilterConfig:
    """Configuration for one filter run; read-only while lines stream through."""

    conditions: Tuple[Condition, ...] = field(default_factory=tuple)
    raw: bool = False  # match query keys/values without percent-decoding
    verbose: bool = False  # log lines that fail to parse


def build_config(
    tokens: Sequence[str], raw: bool = False, verbose: bool = False
) -> FilterConfig:
    """
    Validate mode/regex tokens and return the run configuration.

    Raises ConfigurationError before any input is touched.
    """
    return FilterConfig(
        conditions=tuple(build_conditions(tokens)),
        raw=raw,
        verbose=verbose,
    )
