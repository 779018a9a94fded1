# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Configuration helpers for quickrest."""

import os
from dataclasses import dataclass

from .version import __version__

DEFAULT_USER_AGENT = f"quickrest/{__version__}"
DEFAULT_MAX_BODY_BYTES = 16 * 1024 * 1024


def _float_env(name: str, default: float) -> float:
    try:
        value = os.getenv(name)
        return float(value) if value is not None else default
    except ValueError:
        return default


def _int_env(name: str, default: int) -> int:
    try:
        value = os.getenv(name)
        return int(value) if value is not None else default
    except ValueError:
        return default


def _bool_env(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


@dataclass
class HttpSettings:
    """HTTP client defaults."""

    timeout: float = 10.0
    user_agent: str = DEFAULT_USER_AGENT
    allow_redirects: bool = True
    verify_ssl: bool = True
    max_body_bytes: int = DEFAULT_MAX_BODY_BYTES
    strict_config: bool = False

    @classmethod
    def from_env(cls) -> "HttpSettings":
        """Create settings from environment variables (evaluated at call time)."""
        max_body_bytes = _int_env("QUICKREST_HTTP_MAX_BODY_BYTES", cls.max_body_bytes)
        if max_body_bytes <= 0:
            max_body_bytes = cls.max_body_bytes
        return cls(
            timeout=_float_env("QUICKREST_HTTP_TIMEOUT", cls.timeout),
            user_agent=os.getenv("QUICKREST_USER_AGENT", cls.user_agent),
            allow_redirects=_bool_env("QUICKREST_HTTP_REDIRECTS", cls.allow_redirects),
            verify_ssl=_bool_env("QUICKREST_HTTP_VERIFY_SSL", cls.verify_ssl),
            max_body_bytes=max_body_bytes,
            strict_config=_bool_env("QUICKREST_STRICT_CONFIG", cls.strict_config),
        )


def load_http_settings() -> HttpSettings:
    """Load HTTP settings from environment with sensible defaults."""
    return HttpSettings.from_env()


def integration_tests_enabled() -> bool:
    """Whether tests that talk to real network endpoints should run."""
    return _bool_env("QUICKREST_INTEGRATION_TESTS", False)
