# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""
quickrest package entrypoint.

quickrest describes an HTTP call with a flat `key=value,key=value`
configuration string, sends it through an injectable HttpClient (httpx by
default) and decodes the JSON response. The configuration-string codec lives
in `quickrest.confstring`; request orchestration and the verb helpers live in
`quickrest.rest`.
"""

from .config import HttpSettings, integration_tests_enabled, load_http_settings
from .confstring import (
    ConfigEntry,
    dump_config,
    escape_value,
    format_config,
    format_config_escaped,
    parse_config,
    parse_entries,
    unescape_value,
)
from .errors import (
    ConfigStringError,
    ErrorCategory,
    QuickRestError,
    RequestFailedError,
    ResponseDecodeError,
    UnknownPropertyError,
)
from .http import (
    HttpClient,
    HttpRequest,
    HttpResponse,
    HttpxClient,
    StubHttpClient,
    create_default_http_client,
)
from .log import setup_logging
from .rest import CallTrace, RestClient, build_request, delete, execute, get, post, put
from .version import __version__

__all__ = [
    "CallTrace",
    "ConfigEntry",
    "ConfigStringError",
    "ErrorCategory",
    "HttpClient",
    "HttpRequest",
    "HttpResponse",
    "HttpSettings",
    "HttpxClient",
    "QuickRestError",
    "RequestFailedError",
    "ResponseDecodeError",
    "RestClient",
    "StubHttpClient",
    "UnknownPropertyError",
    "build_request",
    "create_default_http_client",
    "delete",
    "dump_config",
    "escape_value",
    "execute",
    "format_config",
    "format_config_escaped",
    "get",
    "integration_tests_enabled",
    "load_http_settings",
    "parse_config",
    "parse_entries",
    "post",
    "put",
    "setup_logging",
    "unescape_value",
    "__version__",
]
