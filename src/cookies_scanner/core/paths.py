"""Packaged data directory resolution."""

from __future__ import annotations

from pathlib import Path

# src/cookies_scanner/core/paths.py -> src/cookies_scanner/_shared/
SHARED_DIR = Path(__file__).resolve().parent.parent / "_shared"
