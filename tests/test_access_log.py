"""Tests for access logging."""

import logging

import pytest

from aerossr.app import App
from aerossr.config import AppConfig
from aerossr.testing import TestClient


def make_app() -> App:
    app = App(AppConfig(log_file=None, static_enabled=False, default_page=False))

    @app.route("/hello")
    def hello(ctx):
        return "hi"

    @app.route("/boom")
    def boom(ctx):
        raise RuntimeError("kaboom")

    return app


def access_records(caplog: pytest.LogCaptureFixture) -> list[logging.LogRecord]:
    return [r for r in caplog.records if r.name == "aerossr.access"]


class TestAccessLog:
    async def test_logs_request(self, caplog: pytest.LogCaptureFixture) -> None:
        with caplog.at_level(logging.INFO, logger="aerossr.access"):
            async with TestClient(make_app()) as client:
                await client.get("/hello?x=1", headers={"User-Agent": "pytest"})
        (record,) = access_records(caplog)
        assert '"GET /hello?x=1" 200' in record.getMessage()
        assert record.status == 200
        assert record.method == "GET"
        assert record.user_agent == "pytest"
        assert record.client == "127.0.0.1"

    async def test_logs_http_error_status(self, caplog: pytest.LogCaptureFixture) -> None:
        with caplog.at_level(logging.INFO, logger="aerossr.access"):
            async with TestClient(make_app()) as client:
                await client.get("/missing")
        (record,) = access_records(caplog)
        assert record.status == 404

    async def test_logs_unexpected_error_as_500(self, caplog: pytest.LogCaptureFixture) -> None:
        with caplog.at_level(logging.INFO, logger="aerossr.access"):
            async with TestClient(make_app()) as client:
                response = await client.get("/boom")
        assert response.status == 500
        (record,) = access_records(caplog)
        assert record.status == 500

    async def test_disabled(self, caplog: pytest.LogCaptureFixture) -> None:
        app = App(
            AppConfig(log_file=None, access_log=False, static_enabled=False, default_page=False)
        )
        with caplog.at_level(logging.INFO, logger="aerossr.access"):
            async with TestClient(app) as client:
                await client.get("/")
        assert access_records(caplog) == []
