# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""HTTP client exports."""

from .adapters import StubHttpClient
from .client import HttpClient, create_default_http_client, default_ssl_context, settings_verify
from .headers import find_header, set_header
from .httpx_client import HttpxClient
from .models import STREAM_MODES, Headers, HttpRequest, HttpResponse

__all__ = [
    "STREAM_MODES",
    "Headers",
    "HttpClient",
    "HttpxClient",
    "HttpRequest",
    "HttpResponse",
    "StubHttpClient",
    "create_default_http_client",
    "default_ssl_context",
    "find_header",
    "set_header",
    "settings_verify",
]
