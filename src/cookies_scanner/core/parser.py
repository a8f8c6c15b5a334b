"""Set-Cookie parsing — raw header values and document.cookie writes to CookieRecords.

Follows RFC 6265 §4.1 (syntax), §5.2 (attribute semantics) and §5.3 steps
1-10 (storage model). Steps 11-12 (replacing and evicting stored cookies)
belong to the cookie store and are not handled here.
"""

from __future__ import annotations

import logging
import math
import re
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta
from email.utils import parsedate_to_datetime, parsedate_tz
from urllib.parse import urlsplit

from cookies_scanner.core.base import (
    DAY_MS,
    MAX_INSTANT,
    MIN_INSTANT,
    CookieRecord,
    Diagnostic,
    DiagnosticKind,
    Initiator,
    InitiatorType,
    SameSite,
    now_ms,
)
from cookies_scanner.core.domains import is_public_suffix, match_domain

logger = logging.getLogger(__name__)

DiagnosticCallback = Callable[[Diagnostic], None]

_EPOCH = datetime(1970, 1, 1, tzinfo=UTC)

# The Gregorian calendar repeats every 400 years
_CYCLE_YEARS = 400
_CYCLE_MS = 146_097 * DAY_MS

# One "key[=value]" pair. Quoted values are not special: like current
# browsers, a value runs until the next ";" or newline.
_KEY_VALUE = re.compile(r"[ \t]*([^\s=;]+)[ \t]*(?:=[ \t]*([^;\n]*))?")
# Separator between pairs; a newline also ends the current cookie.
_DELIMITER = re.compile(r"\s*[\n;]\s*")

_MAX_AGE = re.compile(r"-?[0-9]+")
# Dates must start with a token followed by a space or a dash
# ("Wed, 21 Oct 2015 07:28:00 GMT", "Wednesday, 21-Oct-15 ...", "2015-10-21").
_DATE_SHAPE = re.compile(r"[^-]+(\s|-)")


@dataclass
class RawCookie:
    """One cookie split out of a raw string, attribute names lower-cased."""

    name: str
    value: str
    attributes: dict[str, str | None] = field(default_factory=dict)

    def get(self, key: str) -> str | None:
        return self.attributes.get(key)

    def has(self, key: str) -> bool:
        return key in self.attributes


def split_set_cookie(raw: str) -> tuple[list[RawCookie], str | None]:
    """Split a raw string into cookies and their attributes.

    Several cookies may be encoded in one string separated by newlines (the
    way DevTools joins multiple Set-Cookie headers). A pair without "=" is a
    value with an empty name, as in Mozilla bug 169091.

    Returns the cookies parsed so far and the unparsable remainder, if any.
    """
    cookies: list[RawCookie] = []
    current: RawCookie | None = None
    pos = 0

    while pos < len(raw):
        if not raw[pos:].strip():
            break

        match = _KEY_VALUE.match(raw, pos)
        if match is None:
            if current is not None:
                cookies.append(current)
            return cookies, raw[pos:]

        key, value = match.group(1), match.group(2)
        if value is not None:
            value = value.strip()
        pos = match.end()

        if current is None:
            current = RawCookie(name=key, value=value) if value is not None else RawCookie("", key)
        else:
            current.attributes[key.lower()] = value

        delimiter = _DELIMITER.match(raw, pos)
        if delimiter is not None:
            pos = delimiter.end()
            if "\n" in delimiter.group(0):
                cookies.append(current)
                current = None

    if current is not None:
        cookies.append(current)
    return cookies, None


def trunc(value: str, limit: int = 60) -> str:
    """Shorten long URLs for log messages, keeping both ends."""
    if len(value) <= limit:
        return value
    return value[: limit // 2] + "…" + value[-math.ceil(limit / 2) :]


def _to_ms(moment: datetime) -> int:
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=UTC)
    return (moment - _EPOCH) // timedelta(milliseconds=1)


def parse_max_age(raw: str | None) -> int | None:
    """Max-Age in ms, or None when absent or not a decimal integer (§4.1.2.2)."""
    if not raw or _MAX_AGE.fullmatch(raw) is None:
        return None
    return int(raw) * 1000


def _beyond_year_9999(raw: str) -> int | None:
    """Dates past what datetime represents, shifted back by whole 400-year cycles."""
    parts = parsedate_tz(raw)
    if parts is None or parts[0] <= 9999:
        return None
    year, month, day, hour, minute, second = parts[:6]
    cycles = (year - 2000) // _CYCLE_YEARS
    try:
        moment = datetime(
            year - cycles * _CYCLE_YEARS, month, day, hour, minute, second, tzinfo=UTC
        )
    except ValueError:
        return None
    return _to_ms(moment) - (parts[9] or 0) * 1000 + cycles * _CYCLE_MS


def parse_expires(raw: str | None) -> int | None:
    """Expires as ms since the epoch, or None when absent or unparsable.

    Accepts RFC 1123, RFC 850 and asctime dates, then ISO 8601.
    """
    if not raw or _DATE_SHAPE.match(raw) is None:
        return None

    try:
        return _to_ms(parsedate_to_datetime(raw))
    except (TypeError, ValueError, IndexError, OverflowError):
        pass

    far = _beyond_year_9999(raw)
    if far is not None:
        return far

    try:
        return _to_ms(datetime.fromisoformat(raw))
    except (ValueError, OverflowError):
        return None


def parse_same_site(raw: str | None) -> SameSite:
    if raw:
        for flag in SameSite:
            if raw.lower() == flag.value.lower():
                return flag
    return SameSite.NONE


def _request_host(url: str) -> tuple[str, str]:
    """Canonical host name and path of the URL that set the cookie."""
    try:
        parts = urlsplit(url)
        hostname = parts.hostname or ""
    except ValueError:
        return "", "/"

    # urlsplit drops the brackets around IPv6 literals, browsers keep them
    if ":" in hostname:
        hostname = f"[{hostname}]"
    return hostname, parts.path or "/"


class CookieParser:
    """Turns raw cookie strings into CookieRecords.

    Problems with individual attributes or cookies never abort parsing: the
    attribute or cookie is dropped, logged, and reported to ``on_diagnostic``.
    """

    def __init__(self, on_diagnostic: DiagnosticCallback | None = None) -> None:
        if on_diagnostic is not None and not callable(on_diagnostic):
            raise TypeError("on_diagnostic must be callable")
        self._on_diagnostic = on_diagnostic

    def _report(
        self,
        kind: DiagnosticKind,
        message: str,
        cookie_name: str | None = None,
        url: str | None = None,
    ) -> None:
        logger.warning(message)
        if self._on_diagnostic is not None:
            self._on_diagnostic(
                Diagnostic(kind=kind, message=message, cookie_name=cookie_name, url=url)
            )

    def parse(
        self,
        raw: str,
        *,
        initiator: Initiator,
        creation_time: int | None = None,
    ) -> list[CookieRecord]:
        raw = str(raw)
        if creation_time is None:
            creation_time = now_ms()
        host, request_path = _request_host(initiator.url)

        # An empty document.cookie write: chromium's cookie parser reports it
        # with no name and no value (crbug.com/722092)
        if raw.strip() == "":
            return [
                CookieRecord(
                    creation_time=creation_time,
                    expiry_time=MAX_INSTANT,
                    domain=host,
                    path=request_path,
                    initiator=initiator,
                )
            ]

        raw_cookies, remainder = split_set_cookie(raw)
        if remainder is not None:
            self._report(
                DiagnosticKind.MALFORMED_INPUT,
                f'Stop parsing cookie string from "{trunc(initiator.url)}" '
                f'before "{trunc(remainder)}"',
                url=initiator.url,
            )

        records: list[CookieRecord] = []
        for raw_cookie in raw_cookies:
            record = self._build_record(raw_cookie, initiator, host, request_path, creation_time)
            if record is not None:
                records.append(record)
        return records

    def _build_record(
        self,
        cookie: RawCookie,
        initiator: Initiator,
        host: str,
        request_path: str,
        creation_time: int,
    ) -> CookieRecord | None:
        source = trunc(initiator.url)

        max_age_raw = cookie.get("max-age")
        max_age = parse_max_age(max_age_raw)
        if max_age_raw and max_age is None:
            self._report(
                DiagnosticKind.ATTRIBUTE_INVALID,
                f'Ignore Max-Age attribute with invalid value "{max_age_raw}" '
                f'for the cookie "{cookie.name}" from "{source}"',
                cookie.name,
                initiator.url,
            )

        expires_raw = cookie.get("expires")
        expires = parse_expires(expires_raw)
        if expires_raw and expires is None:
            self._report(
                DiagnosticKind.ATTRIBUTE_INVALID,
                f'Ignore Expires attribute with invalid value "{expires_raw}" '
                f'for the cookie "{cookie.name}" from "{source}"',
                cookie.name,
                initiator.url,
            )

        # §5.3 step 3: Max-Age has precedence over Expires
        if max_age is not None:
            expiry_time = MIN_INSTANT if max_age <= 0 else creation_time + max_age
        elif expires is not None:
            expiry_time = expires
        else:
            expiry_time = MAX_INSTANT
        expiry_time = max(min(expiry_time, MAX_INSTANT), MIN_INSTANT)
        persistent = max_age is not None or expires is not None

        # §5.2.3: a single leading dot is ignored (".example.com" -> "example.com")
        domain_raw = cookie.get("domain") or ""
        domain = domain_raw.removeprefix(".").lower()
        host_only = True

        # §5.3 step 5
        if is_public_suffix(domain):
            if domain != host:
                self._report(
                    DiagnosticKind.COOKIE_REJECTED,
                    f'Ignore cookie "{cookie.name}" from "{source}" '
                    f'with the "{domain_raw}" public suffix as domain',
                    cookie.name,
                    initiator.url,
                )
                return None
            domain = ""

        # §5.3 step 6
        if domain:
            if not match_domain(domain, host):
                self._report(
                    DiagnosticKind.COOKIE_REJECTED,
                    f'Ignore cookie "{cookie.name}" from "{source}" '
                    f'with the domain "{domain_raw}" that doesn\'t match',
                    cookie.name,
                    initiator.url,
                )
                return None
            host_only = False
        else:
            domain = host

        # §5.3 step 7
        path = cookie.get("path") or request_path

        # §5.3 steps 8-10
        secure_only = cookie.has("secure")
        http_only = cookie.has("httponly")
        if http_only and initiator.type != InitiatorType.NETWORK:
            self._report(
                DiagnosticKind.COOKIE_REJECTED,
                f'Ignore HttpOnly cookie "{cookie.name}" from "document.cookie" '
                f'API call of "{source}"',
                cookie.name,
                initiator.url,
            )
            return None

        return CookieRecord(
            name=cookie.name,
            value=cookie.value,
            creation_time=creation_time,
            expiry_time=expiry_time,
            persistent=persistent,
            host_only=host_only,
            domain=domain,
            path=path,
            secure_only=secure_only,
            http_only=http_only,
            same_site=parse_same_site(cookie.get("samesite")),
            initiator=initiator,
        )


_default_parser = CookieParser()


def parse_cookie(
    raw: str,
    *,
    initiator: Initiator,
    creation_time: int | None = None,
) -> list[CookieRecord]:
    """Parse with a parser that only logs its diagnostics."""
    return _default_parser.parse(raw, initiator=initiator, creation_time=creation_time)
