"""Version utilities for the N64 ROM Patcher."""

from __future__ import annotations

from importlib.metadata import PackageNotFoundError, version

FALLBACK_VERSION = "1.0.0"


def load_version() -> str:
    try:
        return version("n64patch")
    except PackageNotFoundError:
        return FALLBACK_VERSION
