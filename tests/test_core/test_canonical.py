"""Tests for cookie name canonicalization."""

from cookies_scanner.core.canonical import (
    DEFAULT_RULES,
    Canonicalizer,
    canonical_cookie_name,
    load_rules,
)


class TestDefaultRules:
    def test_rules_loaded_in_order(self) -> None:
        rules = load_rules()
        assert rules == DEFAULT_RULES
        assert rules[0] == (r"^_cs_\d+", "_cs_x")
        assert len(rules) == 8

    def test_known_volatile_names(self) -> None:
        assert canonical_cookie_name("_cs_1567795486325") == "_cs_x"
        assert (
            canonical_cookie_name("OpenIdConnect.nonce.6FhPBNvmcAm8CguZQiol%2FTo3es8eW1jo3Vyq68P8sRI%3D")
            == "OpenIdConnect.nonce.x"
        )
        assert canonical_cookie_name("SignInMessage.d2ff5a0c98a576c3cef63e1c073807a6") == (
            "SignInMessage.x"
        )
        assert canonical_cookie_name("KRTBCOOKIE_244") == "KRTBCOOKIE_x"
        assert canonical_cookie_name("uid-bp-11554") == "uid-bp-x"
        assert canonical_cookie_name("sync_16248314") == "sync_x"
        assert canonical_cookie_name("adm_DLDdwoAvzlrj4hE36dBo-g") == "adm_x"
        assert canonical_cookie_name("ra1_pd_454828976") == "ra1_pd_x"

    def test_stable_names_untouched(self) -> None:
        assert canonical_cookie_name("_ga") == "_ga"
        assert canonical_cookie_name("session_id") == "session_id"
        assert canonical_cookie_name("x_cs_123") == "x_cs_123"

    def test_idempotent(self) -> None:
        names = ["_cs_1567795486325", "OpenIdConnect.nonce.abc", "sync_1", "adm_x", "_ga", ""]
        for name in names:
            once = canonical_cookie_name(name)
            assert canonical_cookie_name(once) == once


class TestCanonicalizer:
    def test_rules_apply_in_sequence(self) -> None:
        canonicalizer = Canonicalizer([(r"^tmp_", "cache_"), (r"^cache_\d+", "cache_x")])
        assert canonicalizer.canonicalize("tmp_42") == "cache_x"

    def test_first_match_only(self) -> None:
        canonicalizer = Canonicalizer([(r"\d+", "N")])
        assert canonicalizer("a1b2") == "aNb2"

    def test_replacement_is_literal(self) -> None:
        canonicalizer = Canonicalizer([(r"^(id)_\d+", r"\1_x")])
        assert canonicalizer("id_1") == r"\1_x"

    def test_default_with_extra_rules(self) -> None:
        canonicalizer = Canonicalizer.default([(r"^_pk_id\..+", "_pk_id.x")])
        assert canonicalizer("_pk_id.1.1fff") == "_pk_id.x"
        assert canonicalizer("_cs_99") == "_cs_x"
