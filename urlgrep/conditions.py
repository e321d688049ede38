"""
conditions.py

Build and evaluate filter conditions.

A condition is written on the command line as a pair of tokens:

    MODE[:not] REGEX

":not" inverts the result (like grep -v). Conditions combine with AND and
are evaluated strictly in command-line order, stopping at the first one
that fails.

Example:
    conds = build_conditions(["domain", r"example\\.com$", "ext:not", "css"])
    evaluate_all(conds, parse_url("https://www.example.com/app.js"))  # True
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Pattern, Sequence

from urlgrep import utils
from urlgrep.modes import PREDICATES, Mode, lookup_mode
from urlgrep.urls import ParsedURL


class ConfigurationError(ValueError):
    """Raised for unknown modes, invalid regexes and unpaired arguments."""


@dataclass(frozen=True)
class Condition:
    """One (mode, negate, pattern) filter term."""

    mode: Mode
    negate: bool
    pattern: Pattern[str]

    def __str__(self) -> str:
        suffix = utils.NEGATION_SUFFIX if self.negate else ""
        return f"{self.mode.value}{suffix} {self.pattern.pattern}"


def parse_mode_token(token: str) -> tuple[Mode, bool]:
    """
    Return (mode, negate) for a "mode" or "mode:not" token.

    Raises:
        ConfigurationError: if the base mode is not a registered mode.
    """
    negate = token.endswith(utils.NEGATION_SUFFIX)
    name = token[: -len(utils.NEGATION_SUFFIX)] if negate else token
    mode = lookup_mode(name)
    if mode is None:
        raise ConfigurationError(f"Unknown mode specified: {name}")
    return mode, negate


def build_condition(token: str, pattern: str) -> Condition:
    """Parse the mode token and compile its regex."""
    mode, negate = parse_mode_token(token)
    try:
        compiled = re.compile(pattern)
    except re.error as exc:
        raise ConfigurationError(f"Invalid regex for mode {mode.value}: {exc}") from exc
    return Condition(mode=mode, negate=negate, pattern=compiled)


def build_conditions(tokens: Sequence[str]) -> list[Condition]:
    """
    Turn a flat [mode, regex, mode, regex, ...] list into conditions.

    Raises:
        ConfigurationError: on an odd token count, an unknown mode or an
            invalid regex. Nothing is returned partially.
    """
    if len(tokens) % 2 != 0:
        raise ConfigurationError("Expected mode-regex pairs")
    return [
        build_condition(tokens[i], tokens[i + 1]) for i in range(0, len(tokens), 2)
    ]


def evaluate(condition: Condition, url: ParsedURL, raw: bool = False) -> bool:
    """Run the condition's predicate and apply negation."""
    result = PREDICATES[condition.mode](url, condition.pattern, raw)
    return result != condition.negate


def evaluate_all(
    conditions: Sequence[Condition], url: ParsedURL, raw: bool = False
) -> bool:
    """True if every condition holds; stops at the first failing one."""
    for condition in conditions:
        if not evaluate(condition, url, raw):
            return False
    return True
