"""Classification and ordering of cookies for reports."""

from __future__ import annotations

import math
from collections.abc import Callable, Iterable
from typing import Any

from cookies_scanner.core.base import DAY_MS, CookieRecord, InitiatorType, MergedCookie, now_ms
from cookies_scanner.core.canonical import canonical_cookie_name
from cookies_scanner.core.domains import is_first_party

NameCanonicalizer = Callable[[str], str]


def flatten_initiator(record: CookieRecord) -> str | None:
    """Response URL (network only) followed by the stack frames, one per line."""
    initiator = record.initiator
    if initiator is None:
        return None
    lines = [initiator.url if initiator.type == InitiatorType.NETWORK else None, *initiator.stack]
    return "\n".join(line for line in lines if line)


def classify_cookie(
    record: CookieRecord,
    first_party_domain: str,
    canonicalize: NameCanonicalizer = canonical_cookie_name,
) -> MergedCookie:
    """Derive the report-facing fields of a parsed cookie.

    By RFC definition a cookie is persistent as soon as a valid Expires or
    Max-Age is present, so ``a=1; Max-Age=0`` is persistent. It is still
    reported as a session cookie with a zero lifespan since it never
    outlives the session.
    """
    max_age = record.expiry_time - record.creation_time
    return MergedCookie(
        name=canonicalize(record.name),
        host=record.domain,
        path=record.path,
        is_session=not record.persistent or max_age <= 0,
        is_third_party=not is_first_party(record.domain, first_party_domain),
        life_span=max(math.ceil(max_age / DAY_MS), 0) if record.persistent else 0,
        initiator=flatten_initiator(record),
    )


def classify_cookies(
    records: Iterable[CookieRecord],
    first_party_domain: str,
    canonicalize: NameCanonicalizer = canonical_cookie_name,
) -> list[MergedCookie]:
    return [classify_cookie(r, first_party_domain, canonicalize) for r in records]


def normalize_stored_cookie(
    cookie: dict[str, Any],
    first_party_domain: str,
    canonicalize: NameCanonicalizer = canonical_cookie_name,
    now: int | None = None,
) -> MergedCookie:
    """Map a cookie store entry (DevTools ``Network.getAllCookies``) to a report row.

    ``expires`` is in seconds and -1 for session cookies; the lifespan is an
    estimation relative to ``now``.
    """
    if now is None:
        now = now_ms()
    host = str(cookie.get("domain", "")).removeprefix(".")
    expires = float(cookie.get("expires", -1))
    return MergedCookie(
        name=canonicalize(str(cookie.get("name", ""))),
        host=host,
        path=str(cookie.get("path") or "/"),
        is_session=bool(cookie.get("session", expires < 0)),
        is_third_party=not is_first_party(host, first_party_domain),
        life_span=max(math.ceil((expires * 1000 - now) / DAY_MS), 0),
    )


def normalize_stored_cookies(
    cookies: Iterable[dict[str, Any]],
    first_party_domain: str,
    canonicalize: NameCanonicalizer = canonical_cookie_name,
    now: int | None = None,
) -> list[MergedCookie]:
    if now is None:
        now = now_ms()
    return [normalize_stored_cookie(c, first_party_domain, canonicalize, now) for c in cookies]


def sort_cookies(cookies: Iterable[MergedCookie]) -> list[MergedCookie]:
    """Stable ascending order by (name, host, path), case-sensitive."""
    return sorted(cookies, key=lambda c: (c.name, c.host, c.path))
