# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""
Configuration-string codec.

A configuration string is a flat, comma-separated list of `key=value` entries:

    url=https://api.example.com/items?page=2,Header_Accept=application/json,timeout=5

Only the separator is escaped: a literal comma inside a value is written as
backslash-comma (`\\,`). Everything after the first `=` of an entry belongs to
the value, so values may contain further `=` characters without escaping.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from typing import Any

from .errors import ConfigStringError

logger = logging.getLogger(__name__)

SEPARATOR = ","
ASSIGN = "="
ESCAPE = "\\"
ESCAPED_SEPARATOR = ESCAPE + SEPARATOR

_PLACEHOLDER_RE = re.compile(r"\{\{|\}\}|\{([A-Za-z_][A-Za-z0-9_]*)\}")


@dataclass(frozen=True)
class ConfigEntry:
    """One `key=value` pair, value already unescaped."""

    key: str
    value: str

    def to_token(self) -> str:
        return f"{self.key}{ASSIGN}{escape_value(self.value)}"


def escape_value(value: Any) -> str:
    """Escape literal separators so the value survives a round trip through the parser."""
    return str(value).replace(SEPARATOR, ESCAPED_SEPARATOR)


def unescape_value(value: str) -> str:
    return value.replace(ESCAPED_SEPARATOR, SEPARATOR)


def _split_tokens(text: str) -> list[tuple[int, str]]:
    """Split on unescaped separators, returning (start offset, raw token) pairs."""
    tokens: list[tuple[int, str]] = []
    start = 0
    index = 0
    length = len(text)
    while index < length:
        char = text[index]
        if char == ESCAPE and index + 1 < length and text[index + 1] == SEPARATOR:
            index += 2
            continue
        if char == SEPARATOR:
            tokens.append((start, text[start:index]))
            start = index + 1
        index += 1
    tokens.append((start, text[start:]))
    return tokens


def parse_entries(text: str | None, *, strict: bool = False) -> list[ConfigEntry]:
    """
    Parse a configuration string into entries, in the order written.

    Empty tokens (e.g. from a trailing comma) are skipped. A token without `=`
    or with an empty key is malformed: it is dropped when `strict` is false and
    raises ConfigStringError otherwise.
    """
    if not text:
        return []

    entries: list[ConfigEntry] = []
    for position, token in _split_tokens(text):
        if not token:
            continue
        key, sep, raw_value = token.partition(ASSIGN)
        if not sep or not key:
            reason = "missing '='" if not sep else "empty key"
            if strict:
                raise ConfigStringError(
                    f"Malformed configuration entry {token!r} at offset {position}: {reason}",
                    token=token,
                    position=position,
                )
            logger.debug("Ignoring malformed configuration entry %r at offset %d (%s)", token, position, reason)
            continue
        entries.append(ConfigEntry(key=key, value=unescape_value(raw_value)))
    return entries


def parse_config(text: str | None, *, strict: bool = False) -> dict[str, str]:
    """Parse a configuration string into a mapping; later duplicates win."""
    result: dict[str, str] = {}
    for entry in parse_entries(text, strict=strict):
        result[entry.key] = entry.value
    return result


def dump_config(entries: Mapping[str, Any] | Iterable[ConfigEntry]) -> str:
    """Serialize a mapping (or entries) into an escaped configuration string."""
    if isinstance(entries, Mapping):
        items: Iterable[ConfigEntry] = (ConfigEntry(str(k), str(v)) for k, v in entries.items())
    else:
        items = entries
    tokens = []
    for entry in items:
        if not entry.key or ASSIGN in entry.key or SEPARATOR in entry.key:
            raise ConfigStringError(f"Configuration key {entry.key!r} cannot be serialized", token=entry.key)
        # A trailing backslash would escape the following separator.
        if entry.value.endswith(ESCAPE):
            raise ConfigStringError(f"Value for {entry.key!r} cannot end with a backslash", token=entry.key)
        tokens.append(entry.to_token())
    return SEPARATOR.join(tokens)


def _interpolate(template: str, values: Mapping[str, Any] | None, overrides: Mapping[str, Any], *, escape: bool) -> str:
    namespace: dict[str, Any] = dict(values or {})
    namespace.update(overrides)

    def replace(match: re.Match[str]) -> str:
        token = match.group(0)
        if token == "{{":
            return "{"
        if token == "}}":
            return "}"
        name = match.group(1)
        if name not in namespace:
            raise ConfigStringError(f"No value supplied for placeholder {{{name}}}", token=token, position=match.start())
        value = "" if namespace[name] is None else str(namespace[name])
        if not escape:
            return value
        # Same limit as dump_config: a trailing backslash would escape the next separator.
        if value.endswith(ESCAPE):
            raise ConfigStringError(f"Value for {{{name}}} cannot end with a backslash", token=token, position=match.start())
        return escape_value(value)

    return _PLACEHOLDER_RE.sub(replace, template)


def format_config(template: str, values: Mapping[str, Any] | None = None, /, **kwargs: Any) -> str:
    """
    Substitute `{name}` placeholders from an explicit name-to-value mapping.

    Keyword arguments take precedence over `values`. `{{` and `}}` produce
    literal braces. Substituted values are inserted verbatim, so a value with a
    comma will split into a new entry when parsed; use format_config_escaped
    for untrusted values.
    """
    return _interpolate(template, values, kwargs, escape=False)


def format_config_escaped(template: str, values: Mapping[str, Any] | None = None, /, **kwargs: Any) -> str:
    """
    Like format_config, but commas in substituted values are escaped.

    A substituted value ending in a backslash raises ConfigStringError, since it
    would escape the separator that follows it.
    """
    return _interpolate(template, values, kwargs, escape=True)


__all__ = [
    "ConfigEntry",
    "dump_config",
    "escape_value",
    "format_config",
    "format_config_escaped",
    "parse_config",
    "parse_entries",
    "unescape_value",
]
