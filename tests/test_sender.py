"""Tests for ASGI response sending."""

from typing import Any

from aerossr.http.response import Response
from aerossr.server.sender import body_allowed, send_response


class Recorder:
    def __init__(self) -> None:
        self.messages: list[dict[str, Any]] = []

    async def __call__(self, message: dict[str, Any]) -> None:
        self.messages.append(message)

    @property
    def headers(self) -> dict[bytes, bytes]:
        return dict(self.messages[0]["headers"])


class TestBodyAllowed:
    def test_statuses(self) -> None:
        assert body_allowed(200)
        assert body_allowed(404)
        assert not body_allowed(101)
        assert not body_allowed(204)
        assert not body_allowed(304)


class TestSendResponse:
    async def test_start_and_body(self) -> None:
        send = Recorder()
        await send_response(Response("héllo").with_header("X-One", "1"), send)
        start, body = send.messages
        assert start["type"] == "http.response.start"
        assert start["status"] == 200
        assert send.headers[b"content-type"] == b"text/html; charset=utf-8"
        assert send.headers[b"x-one"] == b"1"
        assert send.headers[b"content-length"] == b"6"
        assert body == {"type": "http.response.body", "body": "héllo".encode()}

    async def test_head_keeps_length_drops_body(self) -> None:
        send = Recorder()
        await send_response(Response("abc"), send, head=True)
        assert send.headers[b"content-length"] == b"3"
        assert send.messages[1]["body"] == b""

    async def test_not_modified_has_no_body_or_length(self) -> None:
        send = Recorder()
        await send_response(Response(b"", status=304, content_type=None), send)
        assert b"content-length" not in send.headers
        assert b"content-type" not in send.headers
        assert send.messages[1]["body"] == b""

    async def test_repeated_headers_are_kept(self) -> None:
        send = Recorder()
        response = Response("x").with_header("Vary", "Origin").with_header("Vary", "Accept-Encoding")
        await send_response(response, send)
        values = [v for k, v in send.messages[0]["headers"] if k == b"vary"]
        assert values == [b"Origin", b"Accept-Encoding"]
