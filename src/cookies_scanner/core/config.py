"""Configuration loading — reads optional TOML config file."""

from __future__ import annotations

import os
import tomllib
from pathlib import Path
from typing import Any

from cookies_scanner.core.canonical import Rule

DEFAULT_CONFIG_PATHS = [
    Path.home() / ".config" / "cookies-scanner" / "config.toml",
    Path("cookies-scanner.toml"),
]

FIRST_PARTY_ENV = "COOKIES_SCANNER_FIRST_PARTY"


class ConfigError(Exception):
    """The configuration file exists but can't be used."""


def load_config(path: Path | None = None) -> dict[str, Any]:
    """Load configuration from a TOML file.

    Searches default paths if no explicit path is given.
    Returns an empty dict if no config file is found.
    """
    paths = [path] if path is not None else DEFAULT_CONFIG_PATHS

    for p in paths:
        if p.exists():
            try:
                with open(p, "rb") as f:
                    return tomllib.load(f)
            except tomllib.TOMLDecodeError as e:
                raise ConfigError(f"Invalid config file {p}: {e}") from e

    return {}


def get_first_party_domain(config: dict[str, Any] | None = None) -> str | None:
    """First-party domain: COOKIES_SCANNER_FIRST_PARTY env var → config.toml → None."""
    env = os.environ.get(FIRST_PARTY_ENV)
    if env:
        return env.lower()
    if config is None:
        config = load_config()
    domain = config.get("first_party_domain")
    return str(domain).lower() if domain else None


def get_extra_canonical_rules(config: dict[str, Any]) -> list[Rule]:
    """Extra ``[[canonical_names]]`` rules, applied after the packaged ones."""
    rules: list[Rule] = []
    for entry in config.get("canonical_names", []):
        try:
            rules.append((str(entry["pattern"]), str(entry["replacement"])))
        except (KeyError, TypeError) as e:
            raise ConfigError(
                f"canonical_names entries need a pattern and a replacement: {entry!r}"
            ) from e
    return rules
