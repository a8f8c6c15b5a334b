"""Cookie data model — records produced by the parser and rows produced by the merger."""

from __future__ import annotations

import time
from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

# Largest instant representable by an ECMAScript Date, in ms since the epoch.
# Browsers (and their DevTools) clamp cookie expiry to this range.
MAX_INSTANT = 8_640_000_000_000_000
MIN_INSTANT = -MAX_INSTANT

DAY_MS = 24 * 60 * 60 * 1000


def now_ms() -> int:
    """Current wall-clock time in milliseconds since the epoch."""
    return int(time.time() * 1000)


class InitiatorType(StrEnum):
    NETWORK = "network"
    SCRIPT = "script"


class SameSite(StrEnum):
    STRICT = "Strict"
    LAX = "Lax"
    NONE = "None"


class DiagnosticKind(StrEnum):
    ATTRIBUTE_INVALID = "attribute-invalid"
    COOKIE_REJECTED = "cookie-rejected"
    MALFORMED_INPUT = "malformed-input"
    ORIGIN_REJECTED = "origin-rejected"


class Initiator(BaseModel):
    """The network exchange or script that caused a cookie to be set."""

    model_config = ConfigDict(frozen=True)

    type: InitiatorType
    url: str
    stack: tuple[str, ...] = ()  # "url:line:col" frames, innermost first


class CookieRecord(BaseModel):
    """A single cookie as the user agent would store it (RFC 6265 §5.3).

    Every field has the default a user agent would apply when the matching
    attribute is absent, so records can be built from named arguments only.
    """

    model_config = ConfigDict(frozen=True)

    name: str = ""
    value: str = ""
    creation_time: int = Field(default_factory=now_ms)
    expiry_time: int = Field(default=MAX_INSTANT, ge=MIN_INSTANT, le=MAX_INSTANT)
    persistent: bool = False
    host_only: bool = True
    domain: str = ""
    path: str = "/"
    secure_only: bool = False
    http_only: bool = False
    same_site: SameSite = SameSite.NONE
    initiator: Initiator | None = None


class MergedCookie(BaseModel):
    """Report-facing row: one logical cookie per (name, host)."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    name: str
    host: str
    path: str = "/"
    is_session: bool = True
    is_third_party: bool = False
    life_span: int = Field(default=0, ge=0)  # days, 0 for session cookies
    initiator: str | None = None

    def to_report(self) -> dict[str, object]:
        """Serialize with the camelCase keys report renderers expect."""
        return self.model_dump(by_alias=True)


class Diagnostic(BaseModel):
    """A non-fatal problem found while turning raw input into records."""

    kind: DiagnosticKind
    message: str
    cookie_name: str | None = None
    url: str | None = None
