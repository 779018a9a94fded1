# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Error taxonomy and exception helpers."""

from __future__ import annotations

import socket
import ssl
from enum import Enum
from typing import TYPE_CHECKING

import httpx

if TYPE_CHECKING:
    from .http.models import HttpResponse


class ErrorCategory(str, Enum):
    TIMEOUT = "TIMEOUT"
    SSL_ERROR = "SSL_ERROR"
    CONNECTION_ERROR = "CONNECTION_ERROR"
    DNS_ERROR = "DNS_ERROR"
    HTTP_STATUS = "HTTP_STATUS"
    DECODE_ERROR = "DECODE_ERROR"
    UNKNOWN_ERROR = "UNKNOWN_ERROR"
    NONE = "NONE"


class QuickRestError(Exception):
    """Base class for every error raised by quickrest."""


class ConfigStringError(QuickRestError, ValueError):
    """A configuration string (or one of its values) could not be used."""

    def __init__(self, message: str, *, token: str | None = None, position: int | None = None):
        super().__init__(message)
        self.token = token
        self.position = position


class UnknownPropertyError(ConfigStringError):
    """A configuration key names no known request property."""

    def __init__(self, key: str):
        super().__init__(f"Unknown request property {key!r}", token=key)
        self.key = key


class RequestFailedError(QuickRestError):
    """
    The underlying client reported a failure.

    `response` is the client's HttpResponse, untouched.
    """

    def __init__(self, message: str, response: HttpResponse, category: ErrorCategory = ErrorCategory.UNKNOWN_ERROR):
        super().__init__(message)
        self.response = response
        self.category = category

    @property
    def status_code(self) -> int | None:
        return self.response.status_code


class ResponseDecodeError(RequestFailedError):
    """The response body could not be decoded in the requested stream mode."""


def _exception_chain(exc: BaseException, limit: int = 8) -> list[BaseException]:
    chain: list[BaseException] = []
    current: BaseException | None = exc
    while current is not None and len(chain) < limit and current not in chain:
        chain.append(current)
        current = current.__cause__ or current.__context__
    return chain


def categorize_exception(exc: BaseException) -> ErrorCategory:
    """
    Map Python/httpx exceptions to ErrorCategory.
    """
    if isinstance(exc, httpx.TimeoutException):
        return ErrorCategory.TIMEOUT

    if isinstance(exc, httpx.HTTPStatusError):
        return ErrorCategory.HTTP_STATUS

    if isinstance(exc, httpx.DecodingError):
        return ErrorCategory.DECODE_ERROR

    # httpx wraps TLS and resolver failures in ConnectError; inspect the chain first.
    chain = _exception_chain(exc)
    if any(isinstance(item, (ssl.SSLError, ssl.CertificateError)) for item in chain):
        return ErrorCategory.SSL_ERROR

    if any(isinstance(item, (socket.gaierror, socket.herror)) for item in chain):
        return ErrorCategory.DNS_ERROR

    if isinstance(exc, (httpx.ConnectError, httpx.RemoteProtocolError, httpx.NetworkError, httpx.ProxyError)):
        return ErrorCategory.CONNECTION_ERROR

    if isinstance(exc, ConnectionError):
        return ErrorCategory.CONNECTION_ERROR

    return ErrorCategory.UNKNOWN_ERROR


def error_category_to_reason(category: ErrorCategory | None) -> str:
    """User-facing reason string."""
    mapping = {
        ErrorCategory.TIMEOUT: "Network timeout",
        ErrorCategory.SSL_ERROR: "TLS/certificate issue",
        ErrorCategory.CONNECTION_ERROR: "Network connectivity issue",
        ErrorCategory.DNS_ERROR: "DNS resolution failure",
        ErrorCategory.HTTP_STATUS: "Server returned an error status",
        ErrorCategory.DECODE_ERROR: "Response body could not be decoded",
        ErrorCategory.UNKNOWN_ERROR: "Request failed",
        ErrorCategory.NONE: "",
        None: "",
    }
    return mapping.get(category, "Request failed")


__all__ = [
    "ConfigStringError",
    "ErrorCategory",
    "QuickRestError",
    "RequestFailedError",
    "ResponseDecodeError",
    "UnknownPropertyError",
    "categorize_exception",
    "error_category_to_reason",
]
