# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""HTTP client protocol, TLS defaults and the default client factory."""

from __future__ import annotations

import ssl
from typing import TYPE_CHECKING, Protocol

import certifi

from ..config import HttpSettings, load_http_settings
from .models import HttpRequest, HttpResponse

if TYPE_CHECKING:
    import httpx


class HttpClient(Protocol):
    """Minimal protocol for issuing HTTP requests."""

    def request(self, request: HttpRequest) -> HttpResponse: ...

    def close(self) -> None: ...


def default_ssl_context() -> ssl.SSLContext:
    """Verifying TLS context backed by the certifi CA bundle, as httpx uses by default."""
    return ssl.create_default_context(cafile=certifi.where())


def settings_verify(settings: HttpSettings) -> ssl.SSLContext | bool:
    """TLS setting for a long-lived client built from `settings`."""
    return default_ssl_context() if settings.verify_ssl else False


def create_default_http_client(settings: HttpSettings | None = None, *, client: httpx.Client | None = None) -> HttpClient:
    """
    Factory for the default httpx-backed client.

    Pass `client` to route calls through a preconfigured httpx.Client (custom
    transport, proxies, auth); it is used for every request whose TLS setting
    matches `settings`.
    """
    from .httpx_client import HttpxClient

    return HttpxClient(settings or load_http_settings(), client=client)
