"""
12-Factor configuration helper.

The service reads its config from environment variables.
This module provides the typed readers used by ``infraster.core.config``.
"""

from __future__ import annotations

import os


def env(key: str, default: str = "") -> str:
    return os.environ.get(key, default)


def env_int(key: str, default: int = 0) -> int:
    return int(os.environ.get(key, str(default)))


# ── Shared defaults ───────────────────────────────────────────────────

LOG_LEVEL = env("LOG_LEVEL", "INFO")
LOG_FORMAT = env("LOG_FORMAT", "json")
