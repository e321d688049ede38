"""
query.py

Split query strings into key -> [values] maps.

Two flavours share one splitter:
 - parse_query():     keys and values are percent-decoded ("+" is a space),
                      pairs with malformed escapes are dropped.
 - parse_query_raw(): keys and values are kept exactly as they appear on the
                      wire, so "%2F" and "/" stay distinguishable.

In both, a pair containing ";" is rejected (";" is not a separator) and
parsing carries on with the next pair. Only the raw parser skips pairs with
an empty key ("=x"); the standard one keeps them under "".
"""

from __future__ import annotations

from typing import Callable, Dict, List, Optional, Tuple
from urllib.parse import unquote_plus

from urlgrep.urls import BAD_ESCAPE_RE, ParsedURL

QueryMap = Dict[str, List[str]]

PAIR_SEPARATOR = "&"
KEY_VALUE_SEPARATOR = "="


class QueryParseError(ValueError):
    """Describes the first rejected pair of a query string."""


def _split_pairs(
    query: str, decode: Optional[Callable[[str], str]]
) -> Tuple[QueryMap, Optional[QueryParseError]]:
    """Return (query_map, first_error). Rejected pairs never abort the split."""
    values: QueryMap = {}
    err: Optional[QueryParseError] = None
    for pair in query.split(PAIR_SEPARATOR):
        if not pair:
            continue
        if ";" in pair:
            err = err or QueryParseError("invalid semicolon separator in query")
            continue
        key, _, value = pair.partition(KEY_VALUE_SEPARATOR)
        if decode is not None:
            try:
                key, value = decode(key), decode(value)
            except QueryParseError as exc:
                err = err or exc
                continue
        elif not key:
            continue
        values.setdefault(key, []).append(value)
    return values, err


def _decode_component(s: str) -> str:
    """Percent-decode one query component, rejecting malformed escapes."""
    m = BAD_ESCAPE_RE.search(s)
    if m:
        raise QueryParseError(f"invalid URL escape {s[m.start():m.start() + 3]!r}")
    return unquote_plus(s, errors="surrogateescape")


def parse_query(query: str) -> Tuple[QueryMap, Optional[QueryParseError]]:
    """
    Standard query parsing with percent-decoding.

    Example:
        parse_query("a=%2F&b=x+y&a=2") -> ({"a": ["/", "2"], "b": ["x y"]}, None)
    """
    return _split_pairs(query, _decode_component)


def parse_query_raw(query: str) -> Tuple[QueryMap, Optional[QueryParseError]]:
    """
    Raw query parsing: no decoding of keys or values.

    Example:
        parse_query_raw("a=%2F&b;c=1&=x") -> ({"a": ["%2F"]}, QueryParseError(...))
    """
    return _split_pairs(query, None)


def query_map(url: ParsedURL, raw: bool = False) -> QueryMap:
    """Return the query map of `url`; rejected pairs are silently left out."""
    parser = parse_query_raw if raw else parse_query
    values, _ = parser(url.raw_query)
    return values
