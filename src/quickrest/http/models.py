# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""HTTP request/response data models used across quickrest."""

from __future__ import annotations

import ssl
from dataclasses import dataclass, field
from typing import Any

Headers = dict[str, str]

STREAM_MODES = ("json", "text", "binary")


@dataclass
class HttpRequest:
    """Normalized request representation consumed by HttpClient implementations."""

    url: str
    method: str = "GET"
    headers: Headers = field(default_factory=dict)
    body: bytes | str | None = None
    timeout: float | None = None
    allow_redirects: bool = True
    # None leaves TLS to the client defaults; an SSLContext or False overrides them.
    verify: ssl.SSLContext | bool | None = None
    max_body_bytes: int | None = None
    stream_mode: str = "json"


@dataclass
class HttpResponse:
    """Normalized HTTP response returned by every HttpClient, including on failure."""

    ok: bool
    status_code: int | None = None
    headers: Headers = field(default_factory=dict)
    text: str = ""
    content: bytes = b""
    url: str | None = None
    error_message: str | None = None
    error_type: str | None = None
    meta: dict[str, Any] = field(default_factory=dict)

    @property
    def is_success(self) -> bool:
        return self.ok and self.status_code is not None and 200 <= self.status_code < 300
