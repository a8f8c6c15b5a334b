"""End-to-end flows: records or store snapshots to sorted report rows."""

from __future__ import annotations

from collections.abc import Iterable
from typing import Any

from cookies_scanner.core.base import CookieRecord, MergedCookie
from cookies_scanner.core.canonical import canonical_cookie_name
from cookies_scanner.core.classify import (
    NameCanonicalizer,
    classify_cookies,
    normalize_stored_cookies,
    sort_cookies,
)
from cookies_scanner.core.merge import merge_cookies


def build_result_cookies(
    records: Iterable[CookieRecord],
    first_party_domain: str,
    canonicalize: NameCanonicalizer = canonical_cookie_name,
) -> list[MergedCookie]:
    """Parsed records (in arrival order) to the final report rows."""
    return sort_cookies(merge_cookies(classify_cookies(records, first_party_domain, canonicalize)))


def build_browser_cookies(
    cookies: Iterable[dict[str, Any]],
    first_party_domain: str,
    canonicalize: NameCanonicalizer = canonical_cookie_name,
    now: int | None = None,
) -> list[MergedCookie]:
    """Cookie store snapshot to report rows, merged the same way."""
    return sort_cookies(
        merge_cookies(normalize_stored_cookies(cookies, first_party_domain, canonicalize, now))
    )
