# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Configuration helpers for rscengine."""

import os
from collections.abc import Callable
from dataclasses import dataclass
from typing import TypeVar

from .version import __version__

DEFAULT_USER_AGENT = f"rscengine/{__version__} (flight client)"
DEFAULT_RSC_PATH = "/_flight"


_TRUTHY = frozenset({"1", "true", "yes", "on"})

T = TypeVar("T")


def _parse_bool(raw: str) -> bool:
    return raw.strip().lower() in _TRUTHY


def _env(name: str, default: T, parse: Callable[[str], T]) -> T:
    """Read ``RSCENGINE_*`` variable ``name``; unset or unparsable values give ``default``."""
    raw = os.environ.get(name)
    if raw is None:
        return default
    try:
        return parse(raw)
    except ValueError:
        return default


def _positive(value: int, default: int) -> int:
    return value if value > 0 else default


def _normalize_rsc_path(value: str | None, default: str) -> str:
    raw = (value or "").strip().strip("/")
    if not raw:
        return default
    return f"/{raw}"


@dataclass
class RscSettings:
    """Flight endpoint and HTTP client defaults."""

    rsc_path: str = DEFAULT_RSC_PATH
    timeout: float = 30.0
    user_agent: str = DEFAULT_USER_AGENT
    verify_ssl: bool = True
    max_body_bytes: int = 16 * 1024 * 1024
    log_level: str = "WARNING"

    @classmethod
    def from_env(cls) -> "RscSettings":
        """Create settings from environment variables (evaluated at call time)."""
        return cls(
            rsc_path=_normalize_rsc_path(os.environ.get("RSCENGINE_RSC_PATH"), cls.rsc_path),
            timeout=_env("RSCENGINE_HTTP_TIMEOUT", cls.timeout, float),
            user_agent=_env("RSCENGINE_USER_AGENT", cls.user_agent, str),
            verify_ssl=_env("RSCENGINE_HTTP_VERIFY_SSL", cls.verify_ssl, _parse_bool),
            max_body_bytes=_positive(_env("RSCENGINE_MAX_BODY_BYTES", cls.max_body_bytes, int), cls.max_body_bytes),
            log_level=_env("RSCENGINE_LOG_LEVEL", cls.log_level, str.upper),
        )


def load_rsc_settings() -> RscSettings:
    """Load settings from environment with sensible defaults."""
    return RscSettings.from_env()
