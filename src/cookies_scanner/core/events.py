"""Cookie-setting events from the browser automation layer."""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable
from typing import Any

from pydantic import BaseModel, Field

from cookies_scanner.core.base import (
    CookieRecord,
    Diagnostic,
    DiagnosticKind,
    Initiator,
    InitiatorType,
)
from cookies_scanner.core.parser import CookieParser, DiagnosticCallback, trunc

logger = logging.getLogger(__name__)

# Cookies can't be set on null origins (about:blank, data:, blob:, ...)
ALLOWED_COOKIE_PROTOCOLS = ("https:", "http:")

CookiesCallback = Callable[[list[CookieRecord]], None]


class StackFrame(BaseModel):
    url: str
    line: int
    col: int = 0

    def __str__(self) -> str:
        return f"{self.url}:{self.line}:{self.col}"


class EventInitiator(BaseModel):
    url: str
    type: InitiatorType
    stack: list[StackFrame | str] = Field(default_factory=list)


class CookieEvent(BaseModel):
    """A raw cookie write: a Set-Cookie header value or a document.cookie assignment."""

    cookie: str
    domain: str = ""  # host of the request URL or of the script context
    timestamp: float | None = None  # ms since the epoch
    initiator: EventInitiator

    def to_initiator(self) -> Initiator:
        return Initiator(
            type=self.initiator.type,
            url=self.initiator.url,
            stack=format_stack(self.initiator.stack),
        )


def format_stack(frames: Iterable[StackFrame | str]) -> tuple[str, ...]:
    """Frames as "url:line:col" strings; string frames are kept as-is."""
    return tuple(str(frame) for frame in frames)


def stack_from_devtools_initiator(initiator: dict[str, Any]) -> list[str]:
    """Flatten a DevTools ``Network.Initiator`` into "url:line:col" frames.

    Async parent stacks are appended after the synchronous frames. Parser
    initiated requests carry no stack, only the document URL and line.
    """
    stack: list[str] = []
    trace = initiator.get("stack")
    while trace:
        for frame in trace.get("callFrames", []):
            stack.append(f"{frame['url']}:{frame['lineNumber']}:{frame['columnNumber']}")
        trace = trace.get("parent")

    if not stack and initiator.get("url"):
        stack.append(f"{initiator['url']}:{initiator.get('lineNumber', 0)}:0")

    return stack


def is_allowed_origin(url: str) -> bool:
    return url.startswith(ALLOWED_COOKIE_PROTOCOLS)


class CookieCollector:
    """Parses events in arrival order and keeps the resulting records.

    ``callback`` receives the records of each event that produced any;
    ``on_diagnostic`` receives every dropped attribute, cookie or event.
    """

    def __init__(
        self,
        callback: CookiesCallback | None = None,
        on_diagnostic: DiagnosticCallback | None = None,
    ) -> None:
        if callback is not None and not callable(callback):
            raise TypeError("Callback must be a function")
        self._callback = callback
        self._on_diagnostic = on_diagnostic
        self._parser = CookieParser(on_diagnostic)
        self.records: list[CookieRecord] = []

    def handle(self, event: CookieEvent | dict[str, Any]) -> list[CookieRecord]:
        if not isinstance(event, CookieEvent):
            event = CookieEvent.model_validate(event)

        url = event.initiator.url
        if not is_allowed_origin(url):
            message = f'Ignore cookie "{trunc(event.cookie)}" from "{trunc(url)}"'
            logger.warning(message)
            if self._on_diagnostic is not None:
                self._on_diagnostic(
                    Diagnostic(kind=DiagnosticKind.ORIGIN_REJECTED, message=message, url=url)
                )
            return []

        records = self._parser.parse(
            event.cookie,
            initiator=event.to_initiator(),
            creation_time=None if event.timestamp is None else int(event.timestamp),
        )
        if records:
            self.records.extend(records)
            if self._callback is not None:
                self._callback(records)
        return records

    def handle_all(self, events: Iterable[CookieEvent | dict[str, Any]]) -> list[CookieRecord]:
        records: list[CookieRecord] = []
        for event in events:
            records.extend(self.handle(event))
        return records
