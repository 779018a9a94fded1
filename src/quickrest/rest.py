# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""
Request orchestration: configuration string in, decoded response out.

A call parses its configuration string, projects the entries onto an
HttpRequest, sends it through an HttpClient and decodes the body according to
`stream_mode`. Failures reported by the client are raised as
RequestFailedError carrying the client's HttpResponse unchanged; nothing is
retried.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Callable, Mapping
from contextlib import suppress
from dataclasses import dataclass
from typing import Any

import httpx

from .config import HttpSettings, load_http_settings
from .confstring import parse_config
from .errors import (
    ConfigStringError,
    ErrorCategory,
    RequestFailedError,
    ResponseDecodeError,
    UnknownPropertyError,
)
from .http.client import HttpClient, create_default_http_client, default_ssl_context
from .http.headers import find_header, set_header
from .http.models import STREAM_MODES, Headers, HttpRequest, HttpResponse

logger = logging.getLogger(__name__)

URL_KEY = "url"
STREAM_MODE_KEY = "stream_mode"
HEADER_PREFIX = "Header_"
JSON_CONTENT_TYPE = "application/json"

_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off"}


@dataclass
class CallTrace:
    """Receives the request and response of a call for later inspection."""

    request: HttpRequest | None = None
    response: HttpResponse | None = None

    @property
    def status_code(self) -> int | None:
        return self.response.status_code if self.response is not None else None

    @property
    def headers(self) -> Headers:
        return self.response.headers if self.response is not None else {}


def _parse_bool(key: str, value: str) -> bool:
    lowered = value.strip().lower()
    if lowered in _TRUE_VALUES:
        return True
    if lowered in _FALSE_VALUES:
        return False
    raise ConfigStringError(f"{key} expects a boolean, got {value!r}", token=key)


def _parse_positive_float(key: str, value: str) -> float:
    try:
        parsed = float(value)
    except ValueError:
        raise ConfigStringError(f"{key} expects a number, got {value!r}", token=key) from None
    if parsed <= 0:
        raise ConfigStringError(f"{key} must be positive, got {value!r}", token=key)
    return parsed


def _parse_positive_int(key: str, value: str) -> int:
    try:
        parsed = int(value)
    except ValueError:
        raise ConfigStringError(f"{key} expects an integer, got {value!r}", token=key) from None
    if parsed <= 0:
        raise ConfigStringError(f"{key} must be positive, got {value!r}", token=key)
    return parsed


def _set_timeout(request: HttpRequest, value: str) -> None:
    request.timeout = _parse_positive_float("timeout", value)


def _set_allow_redirects(request: HttpRequest, value: str) -> None:
    request.allow_redirects = _parse_bool("allow_redirects", value)


def _set_verify_ssl(request: HttpRequest, value: str) -> None:
    request.verify = _parse_bool("verify_ssl", value)


def _set_user_agent(request: HttpRequest, value: str) -> None:
    set_header(request.headers, "User-Agent", value)


def _set_max_body_bytes(request: HttpRequest, value: str) -> None:
    request.max_body_bytes = _parse_positive_int("max_body_bytes", value)


def _set_content_type(request: HttpRequest, value: str) -> None:
    set_header(request.headers, "Content-Type", value)


PROPERTY_SETTERS: dict[str, Callable[[HttpRequest, str], None]] = {
    "timeout": _set_timeout,
    "allow_redirects": _set_allow_redirects,
    "follow_redirects": _set_allow_redirects,
    "verify_ssl": _set_verify_ssl,
    "user_agent": _set_user_agent,
    "max_body_bytes": _set_max_body_bytes,
    "content_type": _set_content_type,
}


def _apply_url(request: HttpRequest, raw: str) -> None:
    try:
        url = httpx.URL(raw.strip())
    except httpx.InvalidURL as exc:
        raise ConfigStringError(f"Invalid url {raw!r}: {exc}", token=URL_KEY) from exc
    if url.scheme not in ("http", "https") or not url.host:
        raise ConfigStringError(f"url must be an absolute http(s) URL, got {raw!r}", token=URL_KEY)
    request.url = str(url)


def _apply_tls_defaults(request: HttpRequest, settings: HttpSettings) -> None:
    """
    Keep `request.verify` only where it departs from the settings default.

    The client already verifies https with `default_ssl_context()` when
    `settings.verify_ssl` is on, so a matching request leaves TLS to it.
    """
    if request.verify is None:
        return
    if not request.url or httpx.URL(request.url).scheme != "https" or request.verify == settings.verify_ssl:
        request.verify = None
    elif request.verify is True:
        request.verify = default_ssl_context()


def encode_body(body: Any, headers: dict[str, str]) -> bytes | str | None:
    """
    Encode a request body.

    Strings and bytes are sent as-is. Any other value is serialized to JSON and,
    unless the caller already chose a Content-Type, tagged as application/json.
    """
    if body is None:
        return None
    if isinstance(body, (bytes, bytearray, memoryview)):
        return bytes(body)
    if isinstance(body, str):
        return body
    payload = json.dumps(body)
    if find_header(headers, "Content-Type") is None:
        headers["Content-Type"] = JSON_CONTENT_TYPE
    return payload


def build_request(
    config: str | Mapping[str, str] | None,
    *,
    method: str = "GET",
    body: Any = None,
    settings: HttpSettings | None = None,
    strict: bool | None = None,
) -> HttpRequest:
    """Project a configuration string (or parsed mapping) onto an HttpRequest."""
    settings = settings or load_http_settings()
    strict = settings.strict_config if strict is None else strict
    if config is None or isinstance(config, str):
        entries = parse_config(config, strict=strict)
    else:
        entries = dict(config)

    request = HttpRequest(url="", method=method.upper(), allow_redirects=settings.allow_redirects)
    for key, value in entries.items():
        if key == URL_KEY:
            _apply_url(request, value)
        elif key == STREAM_MODE_KEY:
            mode = value.strip().lower()
            if mode not in STREAM_MODES:
                raise ConfigStringError(f"stream_mode must be one of {', '.join(STREAM_MODES)}, got {value!r}", token=key)
            request.stream_mode = mode
        elif key.startswith(HEADER_PREFIX):
            name = key[len(HEADER_PREFIX) :]
            if not name:
                if strict:
                    raise ConfigStringError("Header entry without a header name", token=key)
                logger.debug("Ignoring header entry without a name")
                continue
            set_header(request.headers, name, value)
        else:
            setter = PROPERTY_SETTERS.get(key)
            if setter is None:
                if strict:
                    raise UnknownPropertyError(key)
                logger.warning("Ignoring unknown request property %r", key)
                continue
            setter(request, value)

    _apply_tls_defaults(request, settings)
    request.body = encode_body(body, request.headers)
    return request


def _failure_category(response: HttpResponse) -> ErrorCategory:
    raw = response.meta.get("error_category")
    try:
        return ErrorCategory(raw) if raw else ErrorCategory.UNKNOWN_ERROR
    except ValueError:
        return ErrorCategory.UNKNOWN_ERROR


def decode_response(request: HttpRequest, response: HttpResponse) -> Any:
    """Return the decoded body, raising RequestFailedError for any client-reported failure."""
    target = f"{request.method} {request.url or '<no url>'}"
    if not response.ok:
        reason = response.error_message or response.error_type or "request failed"
        raise RequestFailedError(f"{target} failed: {reason}", response, _failure_category(response))
    if not response.is_success:
        raise RequestFailedError(f"{target} returned HTTP {response.status_code}", response, ErrorCategory.HTTP_STATUS)
    if response.meta.get("body_truncated"):
        limit = response.meta.get("body_bytes_limit", request.max_body_bytes)
        raise ResponseDecodeError(f"{target} body exceeded max_body_bytes ({limit})", response, ErrorCategory.DECODE_ERROR)

    if request.stream_mode == "binary":
        return response.content
    if request.stream_mode == "text":
        return response.text
    if not response.text.strip():
        return None
    try:
        return json.loads(response.text)
    except ValueError as exc:
        raise ResponseDecodeError(f"{target} returned a body that is not valid JSON: {exc}", response, ErrorCategory.DECODE_ERROR) from exc


def execute(
    method: str,
    config: str | Mapping[str, str] | None,
    body: Any = None,
    *,
    client: HttpClient | None = None,
    trace: CallTrace | None = None,
    settings: HttpSettings | None = None,
    strict: bool | None = None,
) -> Any:
    """
    Build, send and decode one call.

    Without an explicit `client` a fresh HttpxClient is created for the call and
    closed afterwards.
    """
    settings = settings or load_http_settings()
    request = build_request(config, method=method, body=body, settings=settings, strict=strict)
    if trace is not None:
        trace.request = request

    http_client = client or create_default_http_client(settings)
    try:
        response = http_client.request(request)
    finally:
        if client is None:
            http_client.close()

    if trace is not None:
        trace.response = response
    return decode_response(request, response)


def get(config: str | Mapping[str, str] | None, *, trace: CallTrace | None = None, client: HttpClient | None = None) -> Any:
    return execute("GET", config, client=client, trace=trace)


def post(config: str | Mapping[str, str] | None, body: Any = None, *, trace: CallTrace | None = None, client: HttpClient | None = None) -> Any:
    return execute("POST", config, body, client=client, trace=trace)


def put(config: str | Mapping[str, str] | None, body: Any = None, *, trace: CallTrace | None = None, client: HttpClient | None = None) -> Any:
    return execute("PUT", config, body, client=client, trace=trace)


def delete(config: str | Mapping[str, str] | None, body: Any = None, *, trace: CallTrace | None = None, client: HttpClient | None = None) -> Any:
    return execute("DELETE", config, body, client=client, trace=trace)


class RestClient:
    """
    Verb methods bound to one reusable HttpClient.

    Use as a context manager (or call `close()`) to release the client.
    """

    def __init__(self, http_client: HttpClient | None = None, settings: HttpSettings | None = None, *, strict: bool | None = None):
        self.settings = settings or load_http_settings()
        self.http_client = http_client or create_default_http_client(self.settings)
        self.strict = strict

    def request(self, method: str, config: str | Mapping[str, str] | None, body: Any = None, *, trace: CallTrace | None = None) -> Any:
        return execute(
            method,
            config,
            body,
            client=self.http_client,
            trace=trace,
            settings=self.settings,
            strict=self.strict,
        )

    def get(self, config: str | Mapping[str, str] | None, *, trace: CallTrace | None = None) -> Any:
        return self.request("GET", config, trace=trace)

    def post(self, config: str | Mapping[str, str] | None, body: Any = None, *, trace: CallTrace | None = None) -> Any:
        return self.request("POST", config, body, trace=trace)

    def put(self, config: str | Mapping[str, str] | None, body: Any = None, *, trace: CallTrace | None = None) -> Any:
        return self.request("PUT", config, body, trace=trace)

    def delete(self, config: str | Mapping[str, str] | None, body: Any = None, *, trace: CallTrace | None = None) -> Any:
        return self.request("DELETE", config, body, trace=trace)

    def close(self) -> None:
        with suppress(Exception):
            self.http_client.close()

    def __enter__(self) -> RestClient:
        return self

    def __exit__(self, _exc_type, _exc, _tb) -> None:  # noqa: ANN001
        self.close()


__all__ = [
    "CallTrace",
    "PROPERTY_SETTERS",
    "RestClient",
    "build_request",
    "decode_response",
    "delete",
    "encode_body",
    "execute",
    "get",
    "post",
    "put",
]
