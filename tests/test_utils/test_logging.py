"""Tests for the structured logging utilities."""

import logging
import time
from collections.abc import Iterator
from unittest.mock import MagicMock, patch

import pytest

from xlsx_decoder.config import Settings
from xlsx_decoder.utils.logging import (
    LogContext,
    PerformanceMetrics,
    StructuredLogFormatter,
    StructuredLogger,
    clear_context,
    configure_logging,
    get_document,
    get_extra_context,
    get_logger,
    get_part,
    set_document,
    set_extra_context,
    set_part,
    timed_operation,
)


def _record(msg: str = "Test message") -> logging.LogRecord:
    return logging.LogRecord(
        name="test",
        level=logging.INFO,
        pathname="",
        lineno=0,
        msg=msg,
        args=(),
        exc_info=None,
    )


class TestContextVariables:
    """Tests for context variable management."""

    def test_document_default_none(self) -> None:
        """Document should default to None."""
        assert get_document() is None

    def test_set_and_get_document(self) -> None:
        """Should be able to set and get the document path."""
        set_document("/data/book.xlsx")
        assert get_document() == "/data/book.xlsx"

    def test_clear_document(self) -> None:
        set_document("/data/book.xlsx")
        set_document(None)
        assert get_document() is None

    def test_set_and_get_part(self) -> None:
        """Should be able to set and get the member name."""
        set_part("sheet1.xml")
        assert get_part() == "sheet1.xml"

    def test_extra_context_default_empty(self) -> None:
        """Extra context should default to empty dict."""
        assert get_extra_context() == {}

    def test_clear_context(self) -> None:
        """Clear context should reset all context variables."""
        set_document("/data/book.xlsx")
        set_part("workbook.xml")
        set_extra_context({"sheet": "Totals"})

        clear_context()

        assert get_document() is None
        assert get_part() is None
        assert get_extra_context() == {}


class TestPerformanceMetrics:
    """Tests for PerformanceMetrics class."""

    def test_initialization(self) -> None:
        metrics = PerformanceMetrics(operation="load_document")
        assert metrics.operation == "load_document"
        assert metrics.duration_seconds == 0.0
        assert metrics.parts_parsed == 0
        assert metrics.rows_extracted == 0
        assert metrics.custom_metrics == {}

    def test_finish_calculates_duration(self) -> None:
        """Finish should calculate duration."""
        metrics = PerformanceMetrics(operation="load_document")
        time.sleep(0.01)
        metrics.finish()
        assert metrics.duration_seconds > 0
        assert metrics.end_time is not None

    def test_to_dict_with_all_fields(self) -> None:
        metrics = PerformanceMetrics(operation="load_document")
        metrics.duration_seconds = 2.0
        metrics.parts_parsed = 4
        metrics.rows_extracted = 120
        metrics.custom_metrics = {"sheets": 2}

        result = metrics.to_dict()

        assert result == {
            "operation": "load_document",
            "duration_seconds": 2.0,
            "parts_parsed": 4,
            "rows_extracted": 120,
            "custom_metrics": {"sheets": 2},
        }

    def test_to_dict_excludes_zero_values(self) -> None:
        """to_dict should exclude zero values."""
        metrics = PerformanceMetrics(operation="load_document")
        metrics.duration_seconds = 1.0
        result = metrics.to_dict()
        assert "parts_parsed" not in result
        assert "rows_extracted" not in result
        assert "custom_metrics" not in result


class TestStructuredLogger:
    """Tests for StructuredLogger class."""

    def setup_method(self) -> None:
        """Set up test fixtures."""
        self.logger = get_logger("test_logger")

    def test_get_logger_returns_structured_logger(self) -> None:
        assert isinstance(get_logger(__name__), StructuredLogger)

    def test_logger_property(self) -> None:
        """Logger property should return underlying Python logger."""
        assert isinstance(self.logger.logger, logging.Logger)
        assert self.logger.logger.name == "test_logger"

    def test_build_message_without_kwargs(self) -> None:
        assert self.logger._build_message("Skipping row") == "Skipping row"

    def test_build_message_with_kwargs(self) -> None:
        """_build_message with kwargs should include key-value pairs."""
        msg = self.logger._build_message("Skipping cell", location="B12", row=12)
        assert msg == "Skipping cell | location=B12, row=12"

    @patch.object(logging.Logger, "info")
    def test_info_logging(self, mock_info: MagicMock) -> None:
        """Info method should log at INFO level."""
        self.logger.info("Opened spreadsheet", sheets=2)
        mock_info.assert_called_once()
        call_args = mock_info.call_args[0][0]
        assert "Opened spreadsheet" in call_args
        assert "sheets=2" in call_args

    @patch.object(logging.Logger, "debug")
    def test_debug_logging(self, mock_debug: MagicMock) -> None:
        self.logger.debug("Read member")
        mock_debug.assert_called_once()

    @patch.object(logging.Logger, "warning")
    def test_warning_logging(self, mock_warning: MagicMock) -> None:
        self.logger.warning("Skipping row")
        mock_warning.assert_called_once()

    @patch.object(logging.Logger, "error")
    def test_error_logging_passes_exc_info(self, mock_error: MagicMock) -> None:
        """Error method should forward exc_info to the logger."""
        self.logger.error("Error reading sheet", exc_info=True, sheet="Data")
        mock_error.assert_called_once_with(
            "Error reading sheet | sheet=Data", exc_info=True
        )

    @patch.object(logging.Logger, "exception")
    def test_exception_logging(self, mock_exception: MagicMock) -> None:
        self.logger.exception("Unexpected failure")
        mock_exception.assert_called_once()

    @patch.object(logging.Logger, "info")
    def test_log_performance(self, mock_info: MagicMock) -> None:
        """log_performance should log metrics."""
        metrics = PerformanceMetrics(operation="load_document")
        metrics.duration_seconds = 1.5
        metrics.rows_extracted = 10
        self.logger.log_performance(metrics)
        mock_info.assert_called_once()
        call_args = mock_info.call_args[0][0]
        assert "Performance: load_document" in call_args
        assert "rows_extracted=10" in call_args


class TestLogContext:
    """Tests for LogContext context manager."""

    def test_context_sets_values(self) -> None:
        """LogContext should set context values within block."""
        with LogContext(document="book.xlsx", part="sheet1.xml", sheet="Data"):
            assert get_document() == "book.xlsx"
            assert get_part() == "sheet1.xml"
            assert get_extra_context() == {"sheet": "Data"}

    def test_context_restores_values(self) -> None:
        """LogContext should restore original values after block."""
        set_document("original.xlsx")
        set_extra_context({"original": "value"})

        with LogContext(document="other.xlsx", sheet="Data"):
            assert get_document() == "other.xlsx"
            assert get_extra_context() == {"original": "value", "sheet": "Data"}

        assert get_document() == "original.xlsx"
        assert get_extra_context() == {"original": "value"}

    def test_context_restored_on_error(self) -> None:
        with pytest.raises(ValueError):
            with LogContext(part="sheet2.xml"):
                raise ValueError("boom")
        assert get_part() is None

    def test_nested_contexts(self) -> None:
        """Nested LogContext should work correctly."""
        with LogContext(document="book.xlsx"):
            with LogContext(part="sheet1.xml"):
                assert get_document() == "book.xlsx"
                assert get_part() == "sheet1.xml"
            assert get_part() is None
            assert get_document() == "book.xlsx"

    def test_path_values_stored_as_text(self, tmp_path: object) -> None:
        with LogContext(document=tmp_path):
            assert get_document() == str(tmp_path)


class TestTimedOperation:
    """Tests for timed_operation context manager."""

    @patch.object(StructuredLogger, "log_performance")
    def test_timed_operation_logs_metrics(self, mock_log: MagicMock) -> None:
        """timed_operation should log metrics on exit."""
        logger = get_logger("test")
        with timed_operation(logger, "load_document") as metrics:
            metrics.parts_parsed = 3
            time.sleep(0.001)

        mock_log.assert_called_once()
        logged_metrics = mock_log.call_args[0][0]
        assert logged_metrics.operation == "load_document"
        assert logged_metrics.parts_parsed == 3
        assert logged_metrics.duration_seconds > 0

    @patch.object(StructuredLogger, "log_performance")
    def test_timed_operation_logs_on_error(self, mock_log: MagicMock) -> None:
        logger = get_logger("test")
        with pytest.raises(RuntimeError):
            with timed_operation(logger, "load_document"):
                raise RuntimeError("failed")
        mock_log.assert_called_once()


class TestConfigureLogging:
    """Tests for configure_logging function."""

    @pytest.fixture(autouse=True)
    def _restore_root_logger(self) -> Iterator[None]:
        root_logger = logging.getLogger()
        handlers = root_logger.handlers[:]
        level = root_logger.level
        yield
        root_logger.handlers[:] = handlers
        root_logger.setLevel(level)

    def test_configure_with_string_level(self) -> None:
        configure_logging(level="debug")
        assert logging.getLogger().level == logging.DEBUG

    def test_configure_with_int_level(self) -> None:
        configure_logging(level=logging.WARNING)
        assert logging.getLogger().level == logging.WARNING

    def test_level_defaults_to_settings(self) -> None:
        """Without an explicit level the configured log_level is used."""
        settings = Settings(_env_file=None, log_level="ERROR")
        with patch("xlsx_decoder.utils.logging.get_settings", return_value=settings):
            configure_logging()
        assert logging.getLogger().level == logging.ERROR

    def test_configure_with_structured_formatter(self) -> None:
        """configure_logging should use StructuredLogFormatter by default."""
        configure_logging()
        root_logger = logging.getLogger()
        assert len(root_logger.handlers) == 1
        assert isinstance(root_logger.handlers[0].formatter, StructuredLogFormatter)

    def test_configure_without_structured_formatter(self) -> None:
        configure_logging(use_structured_formatter=False)
        handler = logging.getLogger().handlers[0]
        assert not isinstance(handler.formatter, StructuredLogFormatter)


class TestStructuredLogFormatter:
    """Tests for StructuredLogFormatter class."""

    def test_format_without_context(self) -> None:
        formatter = StructuredLogFormatter("%(message)s")
        assert formatter.format(_record()) == "Test message"

    def test_format_with_document_and_part(self) -> None:
        """Formatter should prefix the document and part when set."""
        set_document("book.xlsx")
        set_part("sheet1.xml")
        formatter = StructuredLogFormatter("%(message)s")
        result = formatter.format(_record())
        assert result == "[document=book.xlsx part=sheet1.xml] Test message"

    def test_format_with_extra_context(self) -> None:
        set_extra_context({"sheet": "Data"})
        formatter = StructuredLogFormatter("%(message)s")
        assert "sheet=Data" in formatter.format(_record())

    def test_format_leaves_record_unchanged(self) -> None:
        set_document("book.xlsx")
        record = _record()
        StructuredLogFormatter("%(message)s").format(record)
        assert record.msg == "Test message"
