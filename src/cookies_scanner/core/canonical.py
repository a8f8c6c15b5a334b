"""Cookie name canonicalization — stable names for instance-specific cookies."""

from __future__ import annotations

import re
from collections.abc import Iterable

import yaml

from cookies_scanner.core.paths import SHARED_DIR

Rule = tuple[str, str]


def load_rules() -> list[Rule]:
    """Read the packaged (pattern, replacement) rules, in order."""
    path = SHARED_DIR / "canonical_names.yaml"
    with open(path) as f:
        data = yaml.safe_load(f)
    return [(str(rule["pattern"]), str(rule["replacement"])) for rule in data["rules"]]


class Canonicalizer:
    """Applies every rule in order; each rule rewrites its first match."""

    def __init__(self, rules: Iterable[Rule]) -> None:
        self.rules: list[tuple[re.Pattern[str], str]] = [
            (re.compile(pattern), replacement) for pattern, replacement in rules
        ]

    def canonicalize(self, name: str) -> str:
        for pattern, replacement in self.rules:
            # Replacements are literal text, never backreferences
            name = pattern.sub(lambda _match, r=replacement: r, name, count=1)
        return name

    def __call__(self, name: str) -> str:
        return self.canonicalize(name)

    @classmethod
    def default(cls, extra_rules: Iterable[Rule] = ()) -> Canonicalizer:
        return cls([*DEFAULT_RULES, *extra_rules])


DEFAULT_RULES = load_rules()


def canonical_cookie_name(name: str) -> str:
    """Canonicalize with the packaged rules."""
    return _default.canonicalize(name)


_default = Canonicalizer(DEFAULT_RULES)
