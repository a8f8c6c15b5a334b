"""Tests for report-field classification, store normalization and ordering."""

from cookies_scanner.core.base import (
    DAY_MS,
    MAX_INSTANT,
    MIN_INSTANT,
    CookieRecord,
    Initiator,
    InitiatorType,
    MergedCookie,
)
from cookies_scanner.core.classify import (
    classify_cookie,
    classify_cookies,
    flatten_initiator,
    normalize_stored_cookie,
    normalize_stored_cookies,
    sort_cookies,
)
from cookies_scanner.core.pipeline import build_browser_cookies, build_result_cookies

CREATION_TIME = 1567795486000


def _record(**kwargs) -> CookieRecord:
    kwargs.setdefault("name", "a")
    kwargs.setdefault("domain", "example.com")
    kwargs.setdefault("creation_time", CREATION_TIME)
    return CookieRecord(**kwargs)


class TestClassifyCookie:
    def test_session_cookie(self) -> None:
        cookie = classify_cookie(_record(), "example.com")
        assert cookie.is_session is True
        assert cookie.life_span == 0
        assert cookie.is_third_party is False

    def test_persistent_cookie_lifespan_rounds_up(self) -> None:
        record = _record(persistent=True, expiry_time=CREATION_TIME + 30 * DAY_MS + 1)
        cookie = classify_cookie(record, "example.com")
        assert cookie.is_session is False
        assert cookie.life_span == 31

    def test_exact_days(self) -> None:
        record = _record(persistent=True, expiry_time=CREATION_TIME + 30 * DAY_MS)
        assert classify_cookie(record, "example.com").life_span == 30

    def test_expired_persistent_cookie_is_session(self) -> None:
        record = _record(persistent=True, expiry_time=MIN_INSTANT)
        cookie = classify_cookie(record, "example.com")
        assert cookie.is_session is True
        assert cookie.life_span == 0

    def test_non_persistent_ignores_expiry(self) -> None:
        record = _record(persistent=False, expiry_time=MAX_INSTANT)
        assert classify_cookie(record, "example.com").life_span == 0

    def test_third_party(self) -> None:
        record = _record(domain="ads.tracker.net")
        assert classify_cookie(record, "example.com").is_third_party is True

    def test_subdomain_is_first_party(self) -> None:
        record = _record(domain="static.example.com")
        assert classify_cookie(record, "www.example.com").is_third_party is False

    def test_name_is_canonicalized(self) -> None:
        record = _record(name="_cs_1567795486325")
        assert classify_cookie(record, "example.com").name == "_cs_x"

    def test_custom_canonicalizer(self) -> None:
        record = _record(name="abc")
        assert classify_cookie(record, "example.com", str.upper).name == "ABC"

    def test_host_and_path(self) -> None:
        cookie = classify_cookie(_record(path="/shop"), "example.com")
        assert cookie.host == "example.com"
        assert cookie.path == "/shop"


class TestFlattenInitiator:
    def test_no_initiator(self) -> None:
        assert flatten_initiator(_record()) is None

    def test_network_includes_url(self) -> None:
        initiator = Initiator(
            type=InitiatorType.NETWORK,
            url="https://ads.tracker.net/pixel",
            stack=("https://example.com/app.js:10:4",),
        )
        assert flatten_initiator(_record(initiator=initiator)) == (
            "https://ads.tracker.net/pixel\nhttps://example.com/app.js:10:4"
        )

    def test_script_only_stack(self) -> None:
        initiator = Initiator(
            type=InitiatorType.SCRIPT,
            url="https://example.com/",
            stack=("https://example.com/a.js:1:1", "https://example.com/b.js:2:2"),
        )
        assert flatten_initiator(_record(initiator=initiator)) == (
            "https://example.com/a.js:1:1\nhttps://example.com/b.js:2:2"
        )

    def test_script_without_stack(self) -> None:
        initiator = Initiator(type=InitiatorType.SCRIPT, url="https://example.com/")
        assert flatten_initiator(_record(initiator=initiator)) == ""


class TestStoredCookies:
    def test_session_cookie(self) -> None:
        cookie = normalize_stored_cookie(
            {"name": "sid", "domain": "example.com", "path": "/", "expires": -1, "session": True},
            "example.com",
            now=CREATION_TIME,
        )
        assert cookie == MergedCookie(
            name="sid", host="example.com", path="/", is_session=True, is_third_party=False
        )

    def test_persistent_cookie(self) -> None:
        expires = (CREATION_TIME + 10 * DAY_MS - 5000) / 1000
        cookie = normalize_stored_cookie(
            {"name": "_cs_1", "domain": ".tracker.net", "path": "/", "expires": expires, "session": False},
            "example.com",
            now=CREATION_TIME,
        )
        assert cookie.name == "_cs_x"
        assert cookie.host == "tracker.net"
        assert cookie.is_session is False
        assert cookie.is_third_party is True
        assert cookie.life_span == 10

    def test_batch_uses_one_clock(self) -> None:
        cookies = normalize_stored_cookies(
            [
                {"name": "a", "domain": "example.com", "path": "/", "expires": -1, "session": True},
                {"name": "b", "domain": "example.com", "path": "/x", "expires": -1, "session": True},
            ],
            "example.com",
            now=CREATION_TIME,
        )
        assert [c.name for c in cookies] == ["a", "b"]


class TestSortCookies:
    def test_order_by_name_host_path(self) -> None:
        cookies = [
            MergedCookie(name="b", host="a.com", path="/"),
            MergedCookie(name="a", host="b.com", path="/"),
            MergedCookie(name="a", host="a.com", path="/z"),
            MergedCookie(name="a", host="a.com", path="/a"),
        ]
        assert [(c.name, c.host, c.path) for c in sort_cookies(cookies)] == [
            ("a", "a.com", "/a"),
            ("a", "a.com", "/z"),
            ("a", "b.com", "/"),
            ("b", "a.com", "/"),
        ]

    def test_case_sensitive(self) -> None:
        cookies = [MergedCookie(name="a", host="x"), MergedCookie(name="B", host="x")]
        assert [c.name for c in sort_cookies(cookies)] == ["B", "a"]

    def test_stable_and_idempotent(self) -> None:
        first = MergedCookie(name="a", host="x", initiator="first")
        second = MergedCookie(name="a", host="x", initiator="second")
        once = sort_cookies([first, second])
        assert [c.initiator for c in once] == ["first", "second"]
        assert sort_cookies(once) == once


class TestPipelines:
    def test_build_result_cookies(self) -> None:
        records = [
            _record(name="z", path="/a/b"),
            _record(name="_cs_1", domain="tracker.net"),
            _record(name="z", path="/a/c", persistent=True, expiry_time=CREATION_TIME + DAY_MS),
            _record(name="_cs_2", domain="tracker.net"),
        ]
        cookies = build_result_cookies(records, "example.com")
        assert [(c.name, c.host, c.path) for c in cookies] == [
            ("_cs_x", "tracker.net", "/"),
            ("z", "example.com", "/a/"),
        ]
        assert cookies[0].is_third_party is True
        assert cookies[1].life_span == 1
        assert cookies[1].is_session is False

    def test_classify_cookies_keeps_order(self) -> None:
        cookies = classify_cookies([_record(name="b"), _record(name="a")], "example.com")
        assert [c.name for c in cookies] == ["b", "a"]

    def test_build_browser_cookies(self) -> None:
        snapshot = [
            {"name": "b", "domain": ".example.com", "path": "/", "expires": -1, "session": True},
            {"name": "a", "domain": "example.com", "path": "/x", "expires": -1, "session": True},
            {"name": "a", "domain": "example.com", "path": "/y", "expires": -1, "session": True},
        ]
        cookies = build_browser_cookies(snapshot, "example.com", now=CREATION_TIME)
        assert [(c.name, c.path) for c in cookies] == [("a", "/"), ("b", "/")]
