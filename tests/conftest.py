"""Shared test fixtures."""

import pytest

from cookies_scanner.core.base import Initiator, InitiatorType

# 2019-09-06T18:44:46Z, a fixed creation time keeps expiry arithmetic exact
CREATION_TIME = 1567795486000


@pytest.fixture
def creation_time() -> int:
    return CREATION_TIME


@pytest.fixture
def network():
    """Build a network initiator for a response URL."""

    def _make(url: str, stack: tuple[str, ...] = ()) -> Initiator:
        return Initiator(type=InitiatorType.NETWORK, url=url, stack=stack)

    return _make


@pytest.fixture
def script():
    """Build a script (document.cookie) initiator for a document URL."""

    def _make(url: str, stack: tuple[str, ...] = ()) -> Initiator:
        return Initiator(type=InitiatorType.SCRIPT, url=url, stack=stack)

    return _make
