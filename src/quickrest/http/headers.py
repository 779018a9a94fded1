# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Header helpers.

HTTP header field names are case-insensitive (RFC 9110), but requests carry
headers as plain dicts with the caller's casing, so lookups go through these
helpers.
"""

from __future__ import annotations

from collections.abc import Mapping


def find_header(headers: Mapping[str, str] | None, name: str) -> str | None:
    """Return the stored key matching `name` case-insensitively, if any."""
    if not headers or not name:
        return None
    if name in headers:
        return name
    lower = name.lower()
    for key in headers:
        if key.lower() == lower:
            return key
    return None


def set_header(headers: dict[str, str], name: str, value: str) -> None:
    """Set a header, replacing any existing entry that differs only in case."""
    existing = find_header(headers, name)
    if existing is not None and existing != name:
        del headers[existing]
    headers[name] = value


__all__ = ["find_header", "set_header"]
