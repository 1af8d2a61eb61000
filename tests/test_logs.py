"""Tests for logging setup."""

import json
import logging
import sys
from collections.abc import Iterator
from pathlib import Path

import pytest

from aerossr.config import AppConfig
from aerossr.server.logs import JsonFormatter, configure_logging, make_formatter


@pytest.fixture(autouse=True)
def restore_logger() -> Iterator[None]:
    logger = logging.getLogger("aerossr")
    handlers = list(logger.handlers)
    level = logger.level
    yield
    for handler in list(logger.handlers):
        if handler not in handlers:
            logger.removeHandler(handler)
            handler.close()
    logger.setLevel(level)


def _record(**extra: object) -> logging.LogRecord:
    record = logging.LogRecord("aerossr.dist", logging.INFO, __file__, 1, "built %s", ("x",), None)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


class TestJsonFormatter:
    def test_fields(self) -> None:
        data = json.loads(JsonFormatter().format(_record(status=200, duration_ms=1.5)))
        assert data["level"] == "INFO"
        assert data["logger"] == "aerossr.dist"
        assert data["message"] == "built x"
        assert data["status"] == 200
        assert data["duration_ms"] == 1.5
        assert "timestamp" in data
        assert "pathname" not in data

    def test_exception(self) -> None:
        try:
            raise ValueError("bad bundle")
        except ValueError:
            record = logging.LogRecord(
                "aerossr", logging.ERROR, __file__, 1, "failed", None, sys.exc_info()
            )
        data = json.loads(JsonFormatter().format(record))
        assert "ValueError: bad bundle" in data["exception"]

    def test_make_formatter(self) -> None:
        assert isinstance(make_formatter("json"), JsonFormatter)
        assert not isinstance(make_formatter("text"), JsonFormatter)


class TestConfigureLogging:
    def test_file_and_stream_handlers(self, tmp_path: Path) -> None:
        logger = configure_logging(AppConfig(project_path=tmp_path, log_level="debug"))
        ours = [h for h in logger.handlers if getattr(h, "_aerossr", False)]
        assert len(ours) == 2
        assert logger.level == logging.DEBUG
        assert (tmp_path / "logs").is_dir()

        logging.getLogger("aerossr.server").info("started")
        for handler in ours:
            handler.flush()
        assert "started" in (tmp_path / "logs" / "server.log").read_text()

    def test_idempotent(self, tmp_path: Path) -> None:
        config = AppConfig(project_path=tmp_path, log_file=None)
        configure_logging(config)
        logger = configure_logging(config)
        ours = [h for h in logger.handlers if getattr(h, "_aerossr", False)]
        assert len(ours) == 1

    def test_json_format(self, tmp_path: Path) -> None:
        logger = configure_logging(AppConfig(project_path=tmp_path, log_format="json"))
        assert all(
            isinstance(h.formatter, JsonFormatter)
            for h in logger.handlers
            if getattr(h, "_aerossr", False)
        )

    def test_unknown_level_falls_back_to_info(self, tmp_path: Path) -> None:
        logger = configure_logging(AppConfig(project_path=tmp_path, log_file=None, log_level="loud"))
        assert logger.level == logging.INFO
