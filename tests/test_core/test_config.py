"""Tests for configuration loading."""

from pathlib import Path
from unittest.mock import patch

import pytest

from cookies_scanner.core.config import (
    FIRST_PARTY_ENV,
    ConfigError,
    get_extra_canonical_rules,
    get_first_party_domain,
    load_config,
)


@pytest.fixture
def config_file(tmp_path: Path) -> Path:
    path = tmp_path / "config.toml"
    path.write_text(
        'first_party_domain = "Example.com"\n'
        "\n"
        "[[canonical_names]]\n"
        "pattern = '^_pk_id\\..+'\n"
        'replacement = "_pk_id.x"\n'
    )
    return path


class TestLoadConfig:
    def test_explicit_path(self, config_file: Path) -> None:
        config = load_config(config_file)
        assert config["first_party_domain"] == "Example.com"

    def test_missing_file(self, tmp_path: Path) -> None:
        assert load_config(tmp_path / "nope.toml") == {}

    def test_default_paths_missing(self, tmp_path: Path) -> None:
        with patch(
            "cookies_scanner.core.config.DEFAULT_CONFIG_PATHS", [tmp_path / "nope.toml"]
        ):
            assert load_config() == {}

    def test_invalid_toml(self, tmp_path: Path) -> None:
        path = tmp_path / "broken.toml"
        path.write_text("first_party_domain = ")
        with pytest.raises(ConfigError):
            load_config(path)


class TestFirstPartyDomain:
    def test_env_wins(self, config_file: Path) -> None:
        with patch.dict("os.environ", {FIRST_PARTY_ENV: "Other.org"}):
            assert get_first_party_domain(load_config(config_file)) == "other.org"

    def test_from_config(self, config_file: Path) -> None:
        with patch.dict("os.environ", {}, clear=True):
            assert get_first_party_domain(load_config(config_file)) == "example.com"

    def test_unset(self) -> None:
        with patch.dict("os.environ", {}, clear=True):
            assert get_first_party_domain({}) is None


class TestCanonicalRules:
    def test_extra_rules(self, config_file: Path) -> None:
        rules = get_extra_canonical_rules(load_config(config_file))
        assert rules == [(r"^_pk_id\..+", "_pk_id.x")]

    def test_no_rules(self) -> None:
        assert get_extra_canonical_rules({}) == []

    def test_incomplete_rule(self) -> None:
        with pytest.raises(ConfigError):
            get_extra_canonical_rules({"canonical_names": [{"pattern": "^x"}]})
