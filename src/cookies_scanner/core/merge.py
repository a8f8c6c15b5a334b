"""Merge repeated observations of the same cookie, like a cookie store would.

See RFC 6265 §5.3 (storage model) and §5.4.
"""

from __future__ import annotations

import re
from collections.abc import Iterable

from cookies_scanner.core.base import MergedCookie

_SEGMENTS = re.compile(r"(/)")


def common_path(a: str, b: str) -> str:
    """Longest shared leading path, cut on "/" boundaries only.

    >>> common_path("/a/b", "/a/c")
    '/a/'
    >>> common_path("/abc", "/abd")
    '/'
    """
    a_parts = _SEGMENTS.split(a.removeprefix("/"))
    b_parts = _SEGMENTS.split(b.removeprefix("/"))
    shared: list[str] = []
    for a_part, b_part in zip(a_parts, b_parts):
        if a_part != b_part:
            break
        shared.append(a_part)
    return "/" + "".join(shared)


def merge_cookies(cookies: Iterable[MergedCookie]) -> list[MergedCookie]:
    """One row per (name, host), in first-seen order.

    The path is deliberately not part of the key: consent platforms reject
    cookies that differ only by path. The first observation always wins for
    everything but lifespan, session flag and path, since later sets of the
    same cookie are mostly used to clear it (empty value, past expiry).

    The input rows are left untouched.
    """
    merged: dict[tuple[str, str], MergedCookie] = {}

    for cookie in cookies:
        key = (cookie.name, cookie.host)
        existing = merged.get(key)
        if existing is None:
            merged[key] = cookie.model_copy()
            continue

        existing.life_span = max(existing.life_span, cookie.life_span)
        existing.is_session = existing.is_session and cookie.is_session
        existing.path = common_path(existing.path, cookie.path)

    return list(merged.values())
