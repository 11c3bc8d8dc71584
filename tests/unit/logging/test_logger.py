# tests/unit/logging/test_logger.py - v2
"""Tests for logging/logger.py - formatters and setup."""

from __future__ import annotations

import io
import json
import logging
import sys

import pytest

from dealscope.logging.context import clear_context, set_agent_context, set_analysis_context
from dealscope.logging.logger import (
    ROOT_LOGGER_NAME,
    JsonFormatter,
    TextFormatter,
    get_logger,
    setup_logging,
    setup_logging_from_settings,
)


def _record(msg: str = "hello", exc_info=None) -> logging.LogRecord:
    return logging.LogRecord("dealscope.test", logging.INFO, __file__, 1, msg, None, exc_info)


@pytest.fixture(autouse=True)
def _reset():
    clear_context()
    yield
    clear_context()
    root = logging.getLogger(ROOT_LOGGER_NAME)
    for handler in root.handlers:
        handler.close()
    root.handlers.clear()


class TestFormatters:
    def test_json_with_context(self):
        set_analysis_context("abcdef123456", lead_id="L-1")
        set_agent_context("buyer", wave=1)
        entry = json.loads(JsonFormatter().format(_record()))
        assert entry["message"] == "hello"
        assert entry["level"] == "INFO"
        assert entry["context"] == {
            "analysis_id": "abcdef123456", "lead_id": "L-1", "agent": "buyer", "wave": 1,
        }

    def test_json_without_context(self):
        entry = json.loads(JsonFormatter().format(_record()))
        assert "context" not in entry

    def test_json_exception(self):
        try:
            raise ValueError("boom")
        except ValueError:
            entry = json.loads(JsonFormatter().format(_record(exc_info=sys.exc_info())))
        assert "ValueError: boom" in entry["exception"]

    def test_text_with_context(self):
        set_analysis_context("abcdef123456")
        set_agent_context("seller", wave=0)
        line = TextFormatter().format(_record())
        assert "<abcdef12>" in line
        assert "[seller]" in line
        assert "(wave 0)" in line
        assert line.endswith("- hello")


class TestSetup:
    def test_get_logger_namespaced(self):
        assert get_logger("pipeline").name == "dealscope.pipeline"

    def test_setup_stream_and_level(self):
        stream = io.StringIO()
        setup_logging(level="WARNING", log_format="text", stream=stream)
        root = logging.getLogger(ROOT_LOGGER_NAME)
        assert root.level == logging.WARNING
        assert len(root.handlers) == 1
        logging.getLogger("dealscope.x").warning("visible")
        assert "visible" in stream.getvalue()

    def test_setup_idempotent(self):
        setup_logging(stream=io.StringIO())
        setup_logging(stream=io.StringIO())
        assert len(logging.getLogger(ROOT_LOGGER_NAME).handlers) == 1

    def test_setup_with_file(self, tmp_path):
        log_file = tmp_path / "logs" / "app.log"
        setup_logging(log_file=str(log_file), stream=io.StringIO())
        logging.getLogger("dealscope.y").info("to file")
        for handler in logging.getLogger(ROOT_LOGGER_NAME).handlers:
            handler.flush()
        assert "to file" in log_file.read_text(encoding="utf-8")

    def test_from_settings(self):
        from dealscope.config.settings import Settings

        setup_logging_from_settings(Settings(log_level="DEBUG", log_format="json"))
        root = logging.getLogger(ROOT_LOGGER_NAME)
        assert root.level == logging.DEBUG
        assert isinstance(root.handlers[0].formatter, JsonFormatter)
