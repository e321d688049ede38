"""
domains.py

Public-suffix-aware hostname splitting.

Behavior:
- Uses tldextract with its packaged Public Suffix List snapshot (no network
  fetch, no disk cache) to find the longest matching public suffix.
- The label right before the suffix is the registrable domain; everything
  before that is the subdomain.
- Hosts without a registrable domain (a bare suffix, a single label such as
  "localhost", an IP literal) split into empty parts instead of raising.
"""

from __future__ import annotations

from functools import lru_cache
from typing import NamedTuple

import tldextract

from urlgrep import utils


# ----------------------------
# PSL extractor (no remote fetch)
# ----------------------------
_TLD_EXTRACTOR = tldextract.TLDExtract(cache_dir=None, suffix_list_urls=())


class DomainParts(NamedTuple):
    """Subdomain / registrable label / public suffix of one hostname."""

    subdomain: str
    domain: str
    tld: str

    @property
    def apex(self) -> str:
        """Registrable domain with its suffix (eTLD+1), or "" if there is none."""
        if self.domain and self.tld:
            return f"{self.domain}.{self.tld}"
        return ""


EMPTY_PARTS = DomainParts("", "", "")


def normalize_hostname(hostname: str) -> str:
    """Trim whitespace and a trailing root dot."""
    return hostname.strip().rstrip(".")


@lru_cache(maxsize=utils.DOMAIN_CACHE_SIZE)
def split_domain(hostname: str) -> DomainParts:
    """
    Split `hostname` into (subdomain, domain, tld).

    Example:
        split_domain("sub.example.co.uk") -> DomainParts("sub", "example", "co.uk")
        split_domain("co.uk") -> DomainParts("", "", "co.uk")
        split_domain("127.0.0.1") -> DomainParts("", "", "")
    """
    host = normalize_hostname(hostname)
    if not host or utils.is_ip_literal(host):
        return EMPTY_PARTS

    ext = _TLD_EXTRACTOR(host)
    if not ext.domain or not ext.suffix:
        return DomainParts("", "", ext.suffix)
    return DomainParts(ext.subdomain, ext.domain, ext.suffix)
