# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""quickrest CLI."""

from __future__ import annotations

import argparse
import json
import sys
from typing import Any

from ..config import HttpSettings, load_http_settings
from ..confstring import format_config_escaped
from ..errors import ConfigStringError, RequestFailedError, error_category_to_reason
from ..log import setup_logging
from ..rest import CallTrace, RestClient

VERBS = ("get", "post", "put", "delete")
EXIT_OK = 0
EXIT_REQUEST_FAILED = 1
EXIT_BAD_CONFIG = 2


def _parse_var(raw: str) -> tuple[str, str]:
    name, sep, value = raw.partition("=")
    if not sep or not name:
        raise argparse.ArgumentTypeError(f"expected NAME=VALUE, got {raw!r}")
    return name, value


def _parse_json_body(raw: str) -> Any:
    try:
        return json.loads(raw)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"--body is not valid JSON: {exc}") from exc


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Issue an HTTP call described by a key=value configuration string")
    parser.add_argument("verb", choices=VERBS, help="HTTP verb")
    parser.add_argument(
        "config",
        help="Configuration string, e.g. 'url={base}/path,Header_Accept=application/json,timeout=5'; {NAME} placeholders come from --var, write {{ and }} for literal braces",
    )
    body = parser.add_mutually_exclusive_group()
    body.add_argument("--body", type=_parse_json_body, default=None, help="JSON request body (sent as application/json)")
    body.add_argument("--data", default=None, help="Raw request body, sent as-is")
    parser.add_argument(
        "--var",
        action="append",
        type=_parse_var,
        default=[],
        metavar="NAME=VALUE",
        help="Value for a {NAME} placeholder in the configuration string (commas are escaped)",
    )
    parser.add_argument(
        "--ignore-ssl-errors",
        action="store_true",
        help="Skip TLS verification (useful for lab/self-signed targets)",
    )
    parser.add_argument(
        "--strict",
        action="store_true",
        help="Reject malformed entries and unknown properties instead of ignoring them",
    )
    parser.add_argument("--include", action="store_true", help="Print status line and response headers to stderr")
    parser.add_argument("--log-level", default=None, help="Logging level (default: QUICKREST_LOG_LEVEL or WARNING)")
    return parser


def _print_result(result: Any) -> None:
    if isinstance(result, bytes):
        sys.stdout.buffer.write(result)
        sys.stdout.flush()
        return
    if isinstance(result, str):
        sys.stdout.write(result)
        if not result.endswith("\n"):
            sys.stdout.write("\n")
        return
    json.dump(result, sys.stdout, indent=2, sort_keys=True)
    sys.stdout.write("\n")


def _print_trace(trace: CallTrace) -> None:
    if trace.response is None:
        return
    print(f"HTTP {trace.status_code}", file=sys.stderr)
    for name, value in trace.headers.items():
        print(f"{name}: {value}", file=sys.stderr)


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    setup_logging(args.log_level)

    settings: HttpSettings = load_http_settings()
    if args.ignore_ssl_errors:
        settings.verify_ssl = False

    body = args.body if args.body is not None else args.data
    trace = CallTrace()
    try:
        config = format_config_escaped(args.config, dict(args.var))
        with RestClient(settings=settings, strict=args.strict or None) as client:
            result = client.request(args.verb.upper(), config, body, trace=trace)
    except ConfigStringError as exc:
        print(f"quickrest: configuration error: {exc}", file=sys.stderr)
        return EXIT_BAD_CONFIG
    except RequestFailedError as exc:
        if args.include:
            _print_trace(trace)
        reason = error_category_to_reason(exc.category)
        print(f"quickrest: {reason}: {exc}", file=sys.stderr)
        if exc.response.text:
            sys.stderr.write(exc.response.text.rstrip("\n") + "\n")
        return EXIT_REQUEST_FAILED

    if args.include:
        _print_trace(trace)
    _print_result(result)
    return EXIT_OK


if __name__ == "__main__":
    raise SystemExit(main())
