"""Unit tests for logging infrastructure."""

import json
import logging
import sys

import pytest

from recipe_matcher.utils.logger import JSONFormatter, RichTextFormatter, get_logger


def _record(msg: str = "Test message", level: int = logging.INFO, name: str = "test_logger", exc_info=None):
    return logging.LogRecord(
        name=name,
        level=level,
        pathname="test.py",
        lineno=10,
        msg=msg,
        args=(),
        exc_info=exc_info,
    )


@pytest.fixture
def fresh_logger_name(request):
    """Unique logger name with any handlers from earlier runs removed."""
    name = f"test_{request.node.name}"
    logging.getLogger(name).handlers.clear()
    return name


class TestJSONFormatter:
    """Test JSONFormatter produces valid JSON output."""

    def test_json_formatter_outputs_valid_json(self):
        """Test that JSONFormatter produces valid JSON."""
        parsed = json.loads(JSONFormatter().format(_record()))

        assert parsed["level"] == "INFO"
        assert parsed["logger"] == "test_logger"
        assert parsed["message"] == "Test message"
        assert "timestamp" in parsed

    def test_json_formatter_includes_exception_traceback(self):
        """Test that JSONFormatter includes exception traceback when present."""
        try:
            raise ValueError("Test error")
        except ValueError:
            record = _record("Error occurred", logging.ERROR, exc_info=sys.exc_info())

        parsed = json.loads(JSONFormatter().format(record))

        assert "ValueError" in parsed["exception"]

    def test_json_formatter_with_source_and_provenance(self):
        """Test that JSONFormatter includes resolution context passed via extra."""
        record = _record("Strategy produced records")
        record.source = "spoonacular"
        record.provenance = "live"

        parsed = json.loads(JSONFormatter().format(record))

        assert parsed["source"] == "spoonacular"
        assert parsed["provenance"] == "live"

    def test_json_formatter_omits_missing_context(self):
        parsed = json.loads(JSONFormatter().format(_record()))
        assert "source" not in parsed
        assert "provenance" not in parsed

    def test_json_formatter_skips_none_context(self):
        record = _record()
        record.source = None
        record.provenance = "curated"

        parsed = json.loads(JSONFormatter().format(record))

        assert "source" not in parsed
        assert parsed["provenance"] == "curated"


class TestRichTextFormatter:
    """Test RichTextFormatter produces readable text output."""

    def test_rich_text_formatter_appends_context(self):
        record = _record("Generated 3 recipes")
        record.source = "gemini"
        record.provenance = "generated"

        output = RichTextFormatter().format(record)

        assert output.endswith("Generated 3 recipes [source=gemini provenance=generated]")

    def test_rich_text_formatter_without_context_has_no_suffix(self):
        assert RichTextFormatter().format(_record()).endswith("Test message")

    @pytest.mark.parametrize("level", [logging.DEBUG, logging.INFO, logging.WARNING, logging.ERROR])
    def test_color_only_when_enabled(self, level):
        plain = RichTextFormatter().format(_record(level=level))
        colored = RichTextFormatter(color=True).format(_record(level=level))

        assert "\033[" not in plain
        assert colored.startswith(RichTextFormatter.LEVEL_COLORS[level])
        assert colored.endswith("\033[0m")

    def test_rich_text_formatter_includes_level_logger_and_message(self):
        output = RichTextFormatter().format(_record("Custom message", name="my_logger"))

        assert "INFO" in output
        assert "my_logger" in output
        assert "Custom message" in output

    def test_rich_text_formatter_includes_exception_traceback(self):
        """Test that RichTextFormatter includes exception traceback."""
        try:
            raise RuntimeError("Test error")
        except RuntimeError:
            record = _record("Error occurred", logging.ERROR, exc_info=sys.exc_info())

        output = RichTextFormatter().format(record)

        assert "RuntimeError" in output
        assert "Test error" in output


class TestGetLogger:
    """Test get_logger function."""

    def test_get_logger_returns_configured_logger(self, fresh_logger_name):
        test_logger = get_logger(fresh_logger_name)
        assert isinstance(test_logger, logging.Logger)
        assert len(test_logger.handlers) == 1

    def test_get_logger_does_not_duplicate_handlers(self, fresh_logger_name):
        get_logger(fresh_logger_name)
        test_logger = get_logger(fresh_logger_name)
        assert len(test_logger.handlers) == 1

    def test_get_logger_respects_log_level_env(self, monkeypatch, fresh_logger_name):
        monkeypatch.setenv("LOG_LEVEL", "DEBUG")
        assert get_logger(fresh_logger_name).level == logging.DEBUG

    def test_invalid_log_level_defaults_to_info(self, monkeypatch, fresh_logger_name):
        monkeypatch.setenv("LOG_LEVEL", "INVALID")
        assert get_logger(fresh_logger_name).level == logging.INFO

    def test_get_logger_uses_json_formatter(self, monkeypatch, fresh_logger_name):
        monkeypatch.setenv("LOG_TYPE", "json")
        test_logger = get_logger(fresh_logger_name)
        assert isinstance(test_logger.handlers[0].formatter, JSONFormatter)

    def test_log_type_defaults_to_text(self, monkeypatch, fresh_logger_name):
        monkeypatch.delenv("LOG_TYPE", raising=False)
        test_logger = get_logger(fresh_logger_name)
        assert isinstance(test_logger.handlers[0].formatter, RichTextFormatter)

    def test_no_color_env_disables_color(self, monkeypatch, fresh_logger_name):
        monkeypatch.delenv("LOG_TYPE", raising=False)
        monkeypatch.setenv("NO_COLOR", "1")
        test_logger = get_logger(fresh_logger_name)
        assert test_logger.handlers[0].formatter.color is False


class TestModuleLevelLogger:
    """Test module-level logger instance."""

    def test_logger_is_importable(self):
        from recipe_matcher.utils.logger import logger as imported_logger

        assert isinstance(imported_logger, logging.Logger)
        assert imported_logger.name == "recipe_matcher"
        assert len(imported_logger.handlers) > 0

    def test_client_library_loggers_quieted(self):
        assert logging.getLogger("google.genai").level == logging.WARNING
        assert logging.getLogger("aiohttp").level == logging.WARNING
