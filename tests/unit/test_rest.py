# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

import json
import logging
import ssl

import pytest

from quickrest import rest
from quickrest.config import HttpSettings
from quickrest.errors import (
    ConfigStringError,
    ErrorCategory,
    RequestFailedError,
    ResponseDecodeError,
    UnknownPropertyError,
)
from quickrest.http.adapters import StubHttpClient
from quickrest.http.models import HttpRequest, HttpResponse
from quickrest.rest import CallTrace, RestClient, build_request, decode_response, encode_body, execute


def _json_response(payload, status_code=200):
    return HttpResponse(
        ok=True,
        status_code=status_code,
        headers={"content-type": "application/json"},
        text=json.dumps(payload),
        content=json.dumps(payload).encode(),
    )


def test_empty_config_builds_bare_request():
    request = build_request("", settings=HttpSettings())
    assert request.url == ""
    assert request.method == "GET"
    assert request.headers == {}
    assert request.body is None
    assert request.timeout is None
    assert request.verify is None
    assert request.max_body_bytes is None
    assert request.stream_mode == "json"


def test_header_projection_keeps_only_header_entries():
    request = build_request(
        "url=http://example/x,Header_X-Test=v1,Header_X-Test2=v2,timeout=3",
        settings=HttpSettings(),
    )
    assert request.headers == {"X-Test": "v1", "X-Test2": "v2"}
    assert request.timeout == 3.0


def test_url_target_is_preserved():
    request = build_request("url=http://example:8080/a/b?x=1&y=2", settings=HttpSettings())
    assert request.url == "http://example:8080/a/b?x=1&y=2"


@pytest.mark.parametrize("raw", ["not a url", "ftp://example/file", "/relative/path", "http://"])
def test_invalid_url_is_rejected(raw):
    with pytest.raises(ConfigStringError):
        build_request({"url": raw}, settings=HttpSettings())


def test_property_setters_apply_allow_listed_keys():
    request = build_request(
        "url=http://example,timeout=2.5,allow_redirects=false,user_agent=Agent/1,max_body_bytes=1024,content_type=text/plain",
        settings=HttpSettings(),
    )
    assert request.timeout == 2.5
    assert request.allow_redirects is False
    assert request.headers == {"User-Agent": "Agent/1", "Content-Type": "text/plain"}
    assert request.max_body_bytes == 1024


@pytest.mark.parametrize(
    "config",
    ["timeout=soon", "timeout=-1", "allow_redirects=maybe", "max_body_bytes=1.5", "stream_mode=xml"],
)
def test_bad_property_values_raise(config):
    with pytest.raises(ConfigStringError):
        build_request(config, settings=HttpSettings())


def test_unknown_property_is_skipped_in_lenient_mode(caplog):
    with caplog.at_level(logging.WARNING, logger="quickrest.rest"):
        request = build_request("url=http://example,proxy_magic=1", settings=HttpSettings())
    assert request.headers == {}
    assert "proxy_magic" in caplog.text


def test_unknown_property_raises_in_strict_mode():
    with pytest.raises(UnknownPropertyError) as excinfo:
        build_request("url=http://example,proxy_magic=1", settings=HttpSettings(), strict=True)
    assert excinfo.value.key == "proxy_magic"


def test_strict_mode_follows_settings():
    with pytest.raises(ConfigStringError):
        build_request("url=http://example,oops", settings=HttpSettings(strict_config=True))
    request = build_request("url=http://example,oops", settings=HttpSettings(strict_config=True), strict=False)
    assert request.url.startswith("http://example")


def test_nameless_header_entry_policy():
    assert build_request("Header_=x", settings=HttpSettings()).headers == {}
    with pytest.raises(ConfigStringError):
        build_request("Header_=x", settings=HttpSettings(), strict=True)


def test_https_uses_client_tls_default():
    assert build_request("url=https://example/secure", settings=HttpSettings()).verify is None
    assert build_request("url=https://example/secure,verify_ssl=true", settings=HttpSettings()).verify is None


def test_https_verification_can_be_enabled_per_request():
    request = build_request("url=https://example/secure,verify_ssl=true", settings=HttpSettings(verify_ssl=False))
    assert isinstance(request.verify, ssl.SSLContext)
    assert request.verify.verify_mode == ssl.CERT_REQUIRED


def test_https_verification_can_be_disabled():
    assert build_request("url=https://example,verify_ssl=false", settings=HttpSettings()).verify is False
    assert build_request("url=https://example", settings=HttpSettings(verify_ssl=False)).verify is None


def test_plain_http_leaves_tls_untouched():
    assert build_request("url=http://example", settings=HttpSettings()).verify is None


def test_structured_body_is_json_encoded_with_content_type():
    request = build_request("url=http://example", method="post", body={"a": [1, 2]}, settings=HttpSettings())
    assert request.method == "POST"
    assert json.loads(request.body) == {"a": [1, 2]}
    assert request.headers["Content-Type"] == "application/json"


def test_structured_body_keeps_caller_content_type():
    request = build_request(
        "url=http://example,Header_content-type=application/vnd.api+json",
        body=[1],
        settings=HttpSettings(),
    )
    assert request.headers == {"content-type": "application/vnd.api+json"}
    assert request.body == "[1]"


def test_string_and_bytes_bodies_are_sent_verbatim():
    headers: dict[str, str] = {}
    assert encode_body("raw text", headers) == "raw text"
    assert encode_body(bytearray(b"\x00\x01"), headers) == b"\x00\x01"
    assert encode_body(None, headers) is None
    assert headers == {}


def test_execute_returns_parsed_json_and_fills_trace():
    stub = StubHttpClient({"http://example/items": _json_response({"items": [1, 2]})})
    trace = CallTrace()
    result = execute("GET", "url=http://example/items,Header_Accept=application/json", client=stub, trace=trace, settings=HttpSettings())
    assert result == {"items": [1, 2]}
    assert trace.request is stub.requests[0]
    assert trace.status_code == 200
    assert trace.headers["content-type"] == "application/json"
    assert stub.closed is False


def test_execute_creates_and_closes_default_client(monkeypatch):
    stub = StubHttpClient({"http://example/": _json_response(True)})
    monkeypatch.setattr(rest, "create_default_http_client", lambda settings: stub)
    assert execute("GET", "url=http://example/", settings=HttpSettings()) is True
    assert stub.closed is True


def test_transport_failure_raises_with_untouched_response():
    failure = HttpResponse(ok=False, error_message="connect refused", error_type="ConnectError", meta={"error_category": "CONNECTION_ERROR"})
    stub = StubHttpClient({"http://example/": failure})
    with pytest.raises(RequestFailedError) as excinfo:
        execute("GET", "url=http://example/", client=stub, settings=HttpSettings())
    assert excinfo.value.response is failure
    assert excinfo.value.category is ErrorCategory.CONNECTION_ERROR
    assert excinfo.value.status_code is None


def test_non_2xx_raises_with_status():
    stub = StubHttpClient({"http://example/": _json_response({"error": "nope"}, status_code=404)})
    trace = CallTrace()
    with pytest.raises(RequestFailedError) as excinfo:
        execute("DELETE", "url=http://example/", client=stub, trace=trace, settings=HttpSettings())
    assert excinfo.value.status_code == 404
    assert excinfo.value.category is ErrorCategory.HTTP_STATUS
    assert trace.status_code == 404


def test_invalid_json_raises_decode_error():
    bad = HttpResponse(ok=True, status_code=200, text="<html>", content=b"<html>")
    request = HttpRequest(url="http://example/")
    with pytest.raises(ResponseDecodeError) as excinfo:
        decode_response(request, bad)
    assert excinfo.value.category is ErrorCategory.DECODE_ERROR
    assert isinstance(excinfo.value, RequestFailedError)


def test_truncated_body_raises_decode_error():
    cut = HttpResponse(ok=True, status_code=200, text="abcd", content=b"abcd", meta={"body_truncated": True, "body_bytes_limit": 4})
    for mode in ("json", "text", "binary"):
        with pytest.raises(ResponseDecodeError, match="max_body_bytes") as excinfo:
            decode_response(HttpRequest(url="http://example/", stream_mode=mode), cut)
        assert excinfo.value.category is ErrorCategory.DECODE_ERROR
        assert excinfo.value.response is cut


def test_execute_surfaces_truncation():
    cut = HttpResponse(ok=True, status_code=200, text="abcd", content=b"abcd", meta={"body_truncated": True, "body_bytes_limit": 4})
    stub = StubHttpClient({"http://h/": cut})
    trace = CallTrace()
    with pytest.raises(ResponseDecodeError, match=r"max_body_bytes \(4\)"):
        execute("GET", "url=http://h/,stream_mode=text,max_body_bytes=4", client=stub, trace=trace, settings=HttpSettings())
    assert stub.requests[0].max_body_bytes == 4
    assert trace.response is cut


def test_stream_modes():
    response = HttpResponse(ok=True, status_code=200, text="plain", content=b"plain")
    assert decode_response(HttpRequest(url="u", stream_mode="text"), response) == "plain"
    assert decode_response(HttpRequest(url="u", stream_mode="binary"), response) == b"plain"
    empty = HttpResponse(ok=True, status_code=204)
    assert decode_response(HttpRequest(url="u"), empty) is None


def test_rest_client_verbs_send_expected_methods():
    stub = StubHttpClient({"http://example/r": _json_response({"ok": True})})
    with RestClient(http_client=stub, settings=HttpSettings()) as client:
        assert client.get("url=http://example/r") == {"ok": True}
        client.post("url=http://example/r", {"n": 1})
        client.put("url=http://example/r", "raw")
        client.delete("url=http://example/r")
    assert [r.method for r in stub.requests] == ["GET", "POST", "PUT", "DELETE"]
    assert stub.requests[1].headers["Content-Type"] == "application/json"
    assert stub.requests[2].body == "raw"
    assert stub.closed is True


def test_module_verbs_use_injected_client(monkeypatch):
    monkeypatch.delenv("QUICKREST_STRICT_CONFIG", raising=False)
    stub = StubHttpClient({"http://example/v": _json_response([1])})
    assert rest.get("url=http://example/v", client=stub) == [1]
    assert rest.post("url=http://example/v", {"a": 1}, client=stub) == [1]
    assert rest.put("url=http://example/v", client=stub) == [1]
    assert rest.delete("url=http://example/v", client=stub) == [1]
    assert [r.method for r in stub.requests] == ["GET", "POST", "PUT", "DELETE"]


def test_rest_client_close_suppresses_transport_errors():
    class FailingClose(StubHttpClient):
        def close(self):
            raise RuntimeError("already closed")

    client = RestClient(http_client=FailingClose(), settings=HttpSettings())
    client.close()
