"""Tests for the middleware registry and app.use()."""

import pytest

from aerossr.app import App
from aerossr.config import AppConfig
from aerossr.errors import ConfigurationError
from aerossr.middleware.cors import CORSMiddleware
from aerossr.middleware.registry import MiddlewareRegistry, default_registry
from aerossr.middleware.static import StaticFiles
from aerossr.testing import TestClient


class TestRegistry:
    def test_builtins(self) -> None:
        registry = default_registry()
        assert set(registry.names()) == {
            "access_log",
            "cors",
            "rate_limit",
            "security_headers",
            "static",
        }
        assert "cors" in registry
        assert "gzip" not in registry

    def test_create_with_options(self) -> None:
        mw = default_registry().create("cors", allow_origins=("https://example.com",))
        assert isinstance(mw, CORSMiddleware)
        assert mw.config.allow_origins == ("https://example.com",)

    def test_create_static(self, tmp_path) -> None:
        mw = default_registry().create("static", directory=tmp_path, prefix="/assets")
        assert isinstance(mw, StaticFiles)

    def test_unknown_name(self) -> None:
        with pytest.raises(ConfigurationError, match="Unknown middleware 'gzip'"):
            default_registry().create("gzip")

    def test_invalid_options(self) -> None:
        with pytest.raises(ConfigurationError, match="Invalid options"):
            default_registry().create("cors", allow_everything=True)

    def test_duplicate_registration(self) -> None:
        registry = MiddlewareRegistry()
        registry.register("x", lambda: None)
        with pytest.raises(ConfigurationError, match="already registered"):
            registry.register("x", lambda: None)
        registry.register("x", lambda: "replaced", replace=True)
        assert registry.create("x") == "replaced"

    def test_empty_registry_message(self) -> None:
        with pytest.raises(ConfigurationError, match="registered: none"):
            MiddlewareRegistry().create("cors")


class TestAppUse:
    async def test_custom_registry(self) -> None:
        async def tag(request, next):
            response = await next(request)
            return response.with_header("X-Tag", "on")

        registry = default_registry()
        registry.register("tag", lambda: tag)
        app = App(
            AppConfig(access_log=False, log_file=None, static_enabled=False, default_page=False),
            registry=registry,
        )
        assert app.use("tag") is tag

        @app.route("/")
        def index(ctx):
            return "home"

        async with TestClient(app) as client:
            response = await client.get("/")
        assert response.header("X-Tag") == "on"

    def test_unknown_name(self) -> None:
        with pytest.raises(ConfigurationError):
            App().use("nope")
