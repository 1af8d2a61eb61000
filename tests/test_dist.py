"""Tests for the /dist bundle endpoint, driven through the ASGI app."""

import gzip
import logging
import zlib
from pathlib import Path

import pytest

from aerossr.app import App
from aerossr.bundling.options import BundleOptions
from aerossr.config import AppConfig
from aerossr.errors import BadRequestError
from aerossr.server.dist import validate_entry_point
from aerossr.testing import TestClient

ENTRY = {"entryPoint": "src/main.js"}


@pytest.fixture
def project(tmp_path: Path) -> Path:
    src = tmp_path / "src"
    src.mkdir()
    (src / "main.js").write_text(
        'import { greet } from "./util.js";\nconsole.log(greet("world"));\n'
    )
    (src / "util.js").write_text(
        'export function greet(name) {\n  return "hello from util, " + name;\n}\n'
    )
    return tmp_path


def make_app(project: Path, **overrides: object) -> App:
    config = AppConfig(project_path=project, access_log=False, log_file=None, **overrides)
    return App(config)


class TestValidateEntryPoint:
    def test_accepts_relative_path(self) -> None:
        assert validate_entry_point("src/main.js") == "src/main.js"

    def test_strips_whitespace(self) -> None:
        assert validate_entry_point("  src/main.js ") == "src/main.js"

    @pytest.mark.parametrize(
        "raw",
        [None, "", "   ", "/etc/passwd", "\\windows\\file.js", "C:/x.js", "../x.js",
         "src/../../x.js", "src\\..\\x.js", "src/ma\x00in.js"],
    )
    def test_rejects(self, raw: str | None) -> None:
        with pytest.raises(BadRequestError):
            validate_entry_point(raw)


class TestServeBundle:
    async def test_serves_bundle(self, project: Path) -> None:
        async with TestClient(make_app(project)) as client:
            response = await client.get("/dist", query=ENTRY)
        assert response.status == 200
        assert response.content_type == "application/javascript"
        assert response.header("Cache-Control") == "max-age=3600"
        etag = response.header("ETag")
        assert etag is not None
        assert etag.startswith('"') and etag.endswith('"')
        assert "hello from util" in response.text
        assert "src/util.js" in response.text

    async def test_custom_max_age(self, project: Path) -> None:
        async with TestClient(make_app(project, cache_max_age=60)) as client:
            response = await client.get("/dist", query=ENTRY)
        assert response.header("Cache-Control") == "max-age=60"

    async def test_custom_dist_path(self, project: Path) -> None:
        app = make_app(project, dist_path="/bundles", default_page=False)
        async with TestClient(app) as client:
            served = await client.get("/bundles", query=ENTRY)
            missing = await client.get("/dist", query=ENTRY)
        assert served.status == 200
        assert missing.status == 404

    async def test_etag_is_stable(self, project: Path) -> None:
        async with TestClient(make_app(project)) as client:
            first = await client.get("/dist", query=ENTRY)
            second = await client.get("/dist", query=ENTRY)
        assert first.header("ETag") == second.header("ETag")
        assert first.body == second.body

    async def test_bundle_built_once(self, project: Path) -> None:
        app = make_app(project)
        async with TestClient(app) as client:
            await client.get("/dist", query=ENTRY)
            await client.get("/dist", query=ENTRY)
        stats = app.bundle_cache.stats()
        assert stats.size == 1
        assert stats.hits == 1

    async def test_clear_cache_picks_up_changes(self, project: Path) -> None:
        app = make_app(project)
        async with TestClient(app) as client:
            before = await client.get("/dist", query=ENTRY)
            (project / "src" / "util.js").write_text(
                'export function greet(name) {\n  return "changed " + name;\n}\n'
            )
            cached = await client.get("/dist", query=ENTRY)
            app.clear_cache()
            after = await client.get("/dist", query=ENTRY)
        assert cached.header("ETag") == before.header("ETag")
        assert after.header("ETag") != before.header("ETag")
        assert "changed" in after.text

    async def test_head_sends_headers_only(self, project: Path) -> None:
        async with TestClient(make_app(project)) as client:
            full = await client.get("/dist", query=ENTRY)
            head = await client.head("/dist", query=ENTRY)
        assert head.status == 200
        assert head.body == b""
        assert head.header("ETag") == full.header("ETag")
        assert head.header("content-length") == str(len(full.body))

    async def test_server_options_change_output(self, project: Path) -> None:
        options = BundleOptions(minify=False, target="server")
        async with TestClient(make_app(project, bundle=options)) as client:
            response = await client.get("/dist", query=ENTRY)
        assert "module.exports = __entry__" in response.text
        assert "// File: src/util.js" in response.text


class TestConditionalRequests:
    async def _etag(self, client: TestClient) -> str:
        response = await client.get("/dist", query=ENTRY)
        etag = response.header("ETag")
        assert etag is not None
        return etag

    async def test_matching_etag_is_304(self, project: Path) -> None:
        async with TestClient(make_app(project)) as client:
            etag = await self._etag(client)
            response = await client.get("/dist", query=ENTRY, headers={"If-None-Match": etag})
        assert response.status == 304
        assert response.body == b""
        assert response.header("ETag") == etag
        assert response.header("Cache-Control") == "max-age=3600"
        assert response.header("content-length") is None

    @pytest.mark.parametrize(
        "make_header",
        [
            lambda tag: f"W/{tag}",
            lambda tag: tag.strip('"'),
            lambda tag: f'"other", {tag}',
            lambda tag: "*",
        ],
    )
    async def test_matching_forms(self, project: Path, make_header) -> None:
        async with TestClient(make_app(project)) as client:
            etag = await self._etag(client)
            response = await client.get(
                "/dist", query=ENTRY, headers={"If-None-Match": make_header(etag)}
            )
        assert response.status == 304

    async def test_stale_etag_is_200(self, project: Path) -> None:
        async with TestClient(make_app(project)) as client:
            response = await client.get(
                "/dist", query=ENTRY, headers={"If-None-Match": '"stale"'}
            )
        assert response.status == 200
        assert response.body


class TestCompression:
    async def test_gzip(self, project: Path) -> None:
        async with TestClient(make_app(project)) as client:
            plain = await client.get("/dist", query=ENTRY)
            packed = await client.get(
                "/dist", query=ENTRY, headers={"Accept-Encoding": "gzip, deflate"}
            )
        assert packed.header("Content-Encoding") == "gzip"
        assert packed.header("Vary") == "Accept-Encoding"
        assert gzip.decompress(packed.body_bytes) == plain.body_bytes
        assert packed.header("ETag") == plain.header("ETag")

    async def test_deflate(self, project: Path) -> None:
        async with TestClient(make_app(project)) as client:
            plain = await client.get("/dist", query=ENTRY)
            packed = await client.get("/dist", query=ENTRY, headers={"Accept-Encoding": "deflate"})
        assert packed.header("Content-Encoding") == "deflate"
        assert zlib.decompress(packed.body_bytes) == plain.body_bytes

    async def test_identity_without_accept_encoding(self, project: Path) -> None:
        async with TestClient(make_app(project)) as client:
            response = await client.get("/dist", query=ENTRY)
        assert response.header("Content-Encoding") is None
        assert response.header("Vary") == "Accept-Encoding"

    async def test_unsupported_coding(self, project: Path) -> None:
        async with TestClient(make_app(project)) as client:
            response = await client.get("/dist", query=ENTRY, headers={"Accept-Encoding": "br"})
        assert response.header("Content-Encoding") is None

    async def test_disabled(self, project: Path) -> None:
        async with TestClient(make_app(project, compression=False)) as client:
            response = await client.get("/dist", query=ENTRY, headers={"Accept-Encoding": "gzip"})
        assert response.header("Content-Encoding") is None
        assert response.header("Vary") is None


class TestFailures:
    @pytest.mark.parametrize(
        "query",
        [
            {},
            {"entryPoint": ""},
            {"entryPoint": "   "},
            {"entryPoint": "/etc/passwd"},
            {"entryPoint": "../outside.js"},
            {"entryPoint": "src/\x00.js"},
        ],
    )
    async def test_bad_requests(self, project: Path, query: dict[str, str]) -> None:
        async with TestClient(make_app(project)) as client:
            response = await client.get("/dist", query=query)
        assert response.status == 400
        assert response.header("Cache-Control") == "no-store"
        assert "text/html" in (response.content_type or "")

    async def test_method_not_allowed(self, project: Path) -> None:
        async with TestClient(make_app(project)) as client:
            response = await client.post("/dist?entryPoint=src/main.js")
        assert response.status == 405
        assert response.header("Allow") == "GET, HEAD"

    async def test_missing_entry_is_generic_500(
        self, project: Path, caplog: pytest.LogCaptureFixture
    ) -> None:
        with caplog.at_level(logging.ERROR, logger="aerossr.dist"):
            async with TestClient(make_app(project)) as client:
                response = await client.get("/dist", query={"entryPoint": "src/missing.js"})
        assert response.status == 500
        assert "Internal Server Error" in response.text
        assert "missing.js" not in response.text
        assert str(project) not in response.text
        assert any("missing.js" in record.getMessage() for record in caplog.records)

    async def test_unresolvable_import_is_500(self, project: Path) -> None:
        (project / "src" / "broken.js").write_text('import x from "./nope.js";\n')
        async with TestClient(make_app(project)) as client:
            response = await client.get("/dist", query={"entryPoint": "src/broken.js"})
        assert response.status == 500
        assert "nope.js" not in response.text

    async def test_failure_is_not_cached(self, project: Path) -> None:
        app = make_app(project)
        async with TestClient(app) as client:
            first = await client.get("/dist", query={"entryPoint": "src/late.js"})
            (project / "src" / "late.js").write_text("console.log('late');\n")
            second = await client.get("/dist", query={"entryPoint": "src/late.js"})
        assert first.status == 500
        assert second.status == 200
