"""Domain rules — public suffixes, RFC 6265 domain matching, first-party checks.

Terminology:
    TLD     top level domain (.com, .net, .bmw, .us)
    eTLD    effective top level domain, a public suffix (.com, .co.uk, .pvt.k12.wy.us)
    eTLD+1  public suffix plus one registrable label (example.com, example.co.uk)
"""

from __future__ import annotations

import re
from collections.abc import Callable
from functools import lru_cache

import tldextract

# Offline extractor: the Public Suffix List snapshot bundled with tldextract,
# ICANN and private sections (github.io, blogspot.com), nothing fetched or
# cached on disk.
_extract = tldextract.TLDExtract(
    suffix_list_urls=(), cache_dir=None, include_psl_private_domains=True
)

# IPv6 literal ("[::1]") or anything ending like an IPv4 address ("127.0.0.1")
_IP_LITERAL = re.compile(r"^\[|\.\d+$")


@lru_cache(maxsize=4096)
def _split(value: str) -> tuple[str, str]:
    """Return (registrable label, public suffix) for a host name."""
    parts = _extract(value)
    return parts.domain, parts.suffix


def _registrable_domain(value: str) -> str:
    """eTLD+1 of value, or "" when value is itself a suffix or unlisted."""
    domain, suffix = _split(value)
    if domain and suffix:
        return f"{domain}.{suffix}"
    return ""


def is_public_suffix(value: str) -> bool:
    """True iff value is exactly a listed public suffix (e.g. "com", "co.uk").

    Unlisted names such as "localhost" are never public suffixes.
    """
    value = value.lower()
    domain, suffix = _split(value)
    return bool(suffix) and not domain and suffix == value


# Ordered (predicate, verdict) rules applied before label comparison.
# Arguments are (cookie domain lower-cased, request host).
_MATCH_RULES: tuple[tuple[Callable[[str, str], bool], bool], ...] = (
    # "The domain string and the string are identical."
    (lambda value, domain: value == domain, True),
    # Trailing dot: not a canonical host name.
    (lambda value, domain: value.endswith("."), False),
    # "The string is a host name (i.e., not an IP address)."
    (lambda value, domain: _IP_LITERAL.search(domain) is not None, False),
)


def match_domain(value: str, domain: str) -> bool:
    """RFC 6265 §5.1.3 domain matching.

    True when the cookie domain ``value`` domain-matches the canonicalized
    request host ``domain``, i.e. ``value`` is ``domain`` itself or one of its
    dot-separated parent domains. Validity of ``value`` as a domain is not
    checked here.
    """
    value = value.lower()
    domain = domain.lower()

    for predicate, verdict in _MATCH_RULES:
        if predicate(value, domain):
            return verdict

    # www.example.com -> ["com", "example", "www"]
    value_parts = value.split(".")[::-1]
    domain_parts = domain.split(".")[::-1]
    if len(value_parts) > len(domain_parts):
        return False
    return all(part == domain_parts[index] for index, part in enumerate(value_parts))


def is_first_party(domain: str, first_party_domain: str) -> bool:
    """Same eTLD+1 means same party.

    Domains without a listed public suffix (e.g. "localhost") fall back to
    comparing their last label.
    """
    _, suffix = _split(domain.lower())
    if suffix:
        return _registrable_domain(domain.lower()) == _registrable_domain(
            first_party_domain.lower()
        )

    return domain.split(".")[-1] == first_party_domain.split(".")[-1]
