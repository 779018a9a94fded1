# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""httpx-backed HttpClient implementation."""

from __future__ import annotations

import logging
from contextlib import ExitStack

import httpx

from ..config import HttpSettings, load_http_settings
from ..errors import categorize_exception
from .client import HttpClient, settings_verify
from .headers import find_header, set_header
from .models import HttpRequest, HttpResponse

logger = logging.getLogger(__name__)


class HttpxClient(HttpClient):
    """Synchronous httpx client wrapper."""

    def __init__(self, settings: HttpSettings | None = None, client: httpx.Client | None = None):
        self.settings = settings or load_http_settings()
        self._client = client or httpx.Client(
            follow_redirects=self.settings.allow_redirects,
            timeout=self.settings.timeout,
            verify=settings_verify(self.settings),
        )

    def _client_for(self, request: HttpRequest, stack: ExitStack) -> httpx.Client:
        # TLS settings are fixed per httpx.Client, so only a request that departs
        # from the settings default gets a client of its own.
        if request.verify is None:
            return self._client
        logger.debug("Using a one-off client for TLS override on %s", request.url)
        return stack.enter_context(
            httpx.Client(
                follow_redirects=self.settings.allow_redirects,
                timeout=self.settings.timeout,
                verify=request.verify,
            )
        )

    def request(self, request: HttpRequest) -> HttpResponse:
        headers = dict(request.headers or {})
        if find_header(headers, "User-Agent") is None:
            set_header(headers, "User-Agent", self.settings.user_agent)

        max_body_bytes = request.max_body_bytes or self.settings.max_body_bytes
        if max_body_bytes <= 0:
            max_body_bytes = 16 * 1024 * 1024
        timeout = request.timeout if request.timeout is not None else self.settings.timeout

        logger.debug("%s %s", request.method, request.url)
        try:
            with ExitStack() as stack:
                client = self._client_for(request, stack)
                with client.stream(
                    request.method,
                    request.url,
                    headers=headers,
                    content=request.body,
                    timeout=timeout,
                    follow_redirects=request.allow_redirects,
                ) as resp:
                    content = bytearray()
                    truncated = False
                    for chunk in resp.iter_bytes():
                        if not chunk:
                            continue
                        remaining = max_body_bytes - len(content)
                        if remaining <= 0:
                            truncated = True
                            break
                        if len(chunk) > remaining:
                            content.extend(chunk[:remaining])
                            truncated = True
                            break
                        content.extend(chunk)

                    encoding = resp.encoding or "utf-8"
                    try:
                        text = bytes(content).decode(encoding, errors="replace")
                    except LookupError:
                        text = bytes(content).decode("utf-8", errors="replace")

            return HttpResponse(
                ok=True,
                status_code=resp.status_code,
                headers=dict(resp.headers),
                text=text,
                content=bytes(content),
                url=str(resp.url),
                meta={
                    "body_truncated": truncated,
                    "body_bytes_read": len(content),
                    "body_bytes_limit": max_body_bytes,
                },
            )
        except Exception as exc:  # noqa: BLE001
            category = categorize_exception(exc)
            logger.debug("%s %s failed (%s): %s", request.method, request.url, category.value, exc)
            return HttpResponse(
                ok=False,
                url=request.url or None,
                error_message=str(exc),
                error_type=type(exc).__name__,
                meta={"error_category": category.value},
            )

    def close(self) -> None:
        self._client.close()
