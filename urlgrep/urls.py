"""
urls.py

Parse raw input lines into structured URL components.

Lines are split with urllib.parse.urlsplit, then held to what a strict URL
parser accepts: no control characters, well-formed percent-escapes, a numeric
port, legal host and userinfo characters. Inputs without a scheme
("example.com/path") are retried with an "http://" prefix so every component
is available downstream.

Usage:
    from urlgrep.urls import parse_url

    url = parse_url("sub.example.co.uk/a/b.txt?x=1")
    url.scheme, url.host, url.path, url.raw_query
    # ("http", "sub.example.co.uk", "/a/b.txt", "x=1")
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Optional
from urllib.parse import SplitResult, quote, unquote, urlsplit

from urlgrep import utils


class URLParseError(ValueError):
    """Raised when a line cannot be parsed as a URL."""


# ----------------------------------------
# Precompiled regexes
# ----------------------------------------
_SCHEME_RE = re.compile(r"^([A-Za-z][A-Za-z0-9+.\-]*):")
_CONTROL_CHAR_RE = re.compile(r"[\x00-\x1f\x7f]")
BAD_ESCAPE_RE = re.compile(r"%(?![0-9A-Fa-f]{2})")
_HOST_ESCAPE_RE = re.compile(r"%([0-9A-Fa-f])[0-9A-Fa-f]")

# unreserved / sub-delims / ":" / "%" (RFC 3986 §3.2.1)
_USERINFO_RE = re.compile(r"^[A-Za-z0-9\-._~!$&'()*+,;=:%@]*$")
# reg-name characters plus ":" and the bracket/quote forms some hosts use;
# non-ASCII is allowed and handled as IDN upstream
_HOST_RE = re.compile(r"^(?:[A-Za-z0-9\-._~!$&'()*+,;=:\[\]<>\"%]|[^\x00-\x7f])*$")

# characters that stay literal when re-escaping a component
_PATH_SAFE = "$&+,/:;=@"
_FRAGMENT_SAFE = "$&+,/:;=?@!()*"
_USERINFO_SAFE = "$&+,;="

# characters accepted verbatim in an already-escaped component
_VALID_ENCODED = frozenset(
    "ABCDEFGHIJKLMNOPQRSTUVWXYZabcdefghijklmnopqrstuvwxyz0123456789"
    "-._~!$&'()*+,;=:@[]%/?"
)


@dataclass(frozen=True)
class ParsedURL:
    """
    Immutable view of one parsed input line.

    Attributes:
        scheme: Lower-cased scheme ("" never survives parse_url()).
        opaque: Everything after "scheme:" when it does not start with "/".
        userinfo: Re-escaped "user[:password]", "" when absent.
        host: Lower-cased hostname without port or IPv6 brackets, percent-decoded.
        port: Port digits, "" when unspecified.
        path: Escaped path.
        unescaped_path: Percent-decoded path.
        raw_query: Query string exactly as it appeared after "?".
        fragment: Escaped fragment.
    """

    scheme: str = ""
    opaque: str = ""
    userinfo: str = ""
    host: str = ""
    port: str = ""
    path: str = ""
    unescaped_path: str = ""
    raw_query: str = ""
    fragment: str = ""


# ----------------------------------------
# Escaping helpers
# ----------------------------------------
def _check_escapes(s: str, what: str) -> None:
    """Raise URLParseError if `s` has a "%" not followed by two hex digits."""
    m = BAD_ESCAPE_RE.search(s)
    if m:
        raise URLParseError(f"invalid URL escape {s[m.start():m.start() + 3]!r} in {what}")


def _is_valid_encoded(s: str) -> bool:
    """True if `s` can be used verbatim as an escaped component."""
    return all(ch in _VALID_ENCODED for ch in s)


def _escaped_form(raw: str, safe: str) -> str:
    """Keep `raw` if it is a valid encoding, otherwise re-escape its decoded value."""
    if _is_valid_encoded(raw):
        return raw
    return quote(unquote(raw, errors="surrogateescape"), safe=safe, errors="surrogateescape")


# ----------------------------------------
# Component checks
# ----------------------------------------
def _split(raw: str) -> tuple[SplitResult, Optional[int]]:
    """urlsplit() plus port validation; ValueError becomes URLParseError."""
    try:
        parts = urlsplit(raw)
        port = parts.port
    except ValueError as exc:
        raise URLParseError(str(exc)) from exc
    return parts, port


def _canonical_userinfo(username: str, password: Optional[str]) -> str:
    """Validate and return the re-escaped "user[:password]" string."""
    out = []
    for piece in (username, password):
        if piece is None:
            continue
        if not _USERINFO_RE.match(piece):
            raise URLParseError("invalid userinfo")
        _check_escapes(piece, "userinfo")
        out.append(quote(unquote(piece), safe=_USERINFO_SAFE))
    return ":".join(out)


def _check_host(hostname: str) -> str:
    """Validate a hostname from urlsplit(); returns it percent-decoded."""
    if not _HOST_RE.match(hostname):
        bad = next(ch for ch in hostname if not _HOST_RE.match(ch))
        raise URLParseError(f"invalid character {bad!r} in host name")
    _check_escapes(hostname, "host")
    for m in _HOST_ESCAPE_RE.finditer(hostname):
        # escapes may only spell out non-ASCII bytes, or "%" itself
        if m.group(0) == "%25":
            continue
        if int(m.group(1), 16) < 8:
            raise URLParseError(f"invalid URL escape {m.group(0)!r} in host")
    return unquote(hostname)


def parse_url_strict(raw: str) -> ParsedURL:
    """
    Parse `raw` without any scheme fallback.

    Raises:
        URLParseError: on control characters, a missing scheme before ":",
            a colon in a schemeless first segment, or a malformed authority,
            path or fragment.
    """
    if _CONTROL_CHAR_RE.search(raw):
        raise URLParseError("invalid control character in URL")
    if raw.startswith(":"):
        raise URLParseError("missing protocol scheme")
    # urlsplit() strips leading blanks; a strict parse keeps them in the URL
    if raw.startswith(" "):
        raise URLParseError("leading space in URL")

    parts, port = _split(raw)
    _check_escapes(parts.fragment, "fragment")
    fragment = _escaped_form(parts.fragment, _FRAGMENT_SAFE)

    if parts.scheme and not parts.netloc and not parts.path.startswith("/"):
        return ParsedURL(
            scheme=parts.scheme,
            opaque=parts.path,
            raw_query=parts.query,
            fragment=fragment,
        )

    if not parts.scheme and ":" in parts.path.partition("/")[0]:
        raise URLParseError("first path segment in URL cannot contain colon")

    userinfo = ""
    if parts.username is not None:
        userinfo = _canonical_userinfo(parts.username, parts.password)
    host = _check_host(parts.hostname or "")
    port_text = "" if port is None else parts.netloc.rpartition(":")[2]

    _check_escapes(parts.path, "path")
    return ParsedURL(
        scheme=parts.scheme,
        userinfo=userinfo,
        host=host,
        port=port_text,
        path=_escaped_form(parts.path, _PATH_SAFE),
        unescaped_path=unquote(parts.path, errors="surrogateescape"),
        raw_query=parts.query,
        fragment=fragment,
    )


def parse_url(raw: str) -> ParsedURL:
    """
    Parse `raw`, defaulting to "http://" when it carries no scheme.

    The prefixed retry happens when the strict parse yields an empty scheme,
    or when it fails on an input that does not start with a scheme. Inputs
    that already start with "scheme:" are never re-prefixed.

    Raises:
        URLParseError: if neither the input nor its prefixed form parses.
    """
    try:
        url = parse_url_strict(raw)
    except URLParseError:
        if _SCHEME_RE.match(raw):
            raise
    else:
        if url.scheme:
            return url
    return parse_url_strict(utils.DEFAULT_SCHEME_PREFIX + raw)
