"""Tests for the structured logging utilities."""

import logging
import time
from unittest.mock import MagicMock, patch

from excel_row_source.utils.logging import (
    LogContext,
    PerformanceMetrics,
    ProgressTracker,
    StructuredLogFormatter,
    StructuredLogger,
    clear_context,
    configure_logging,
    get_extra_context,
    get_logger,
    get_run_id,
    set_extra_context,
    set_run_id,
    timed_operation,
)


class TestContextVariables:
    """Tests for context variable management."""

    def setup_method(self) -> None:
        """Clear context before each test."""
        clear_context()

    def teardown_method(self) -> None:
        """Clear context after each test."""
        clear_context()

    def test_run_id_default_none(self) -> None:
        """Run ID should default to None."""
        assert get_run_id() is None

    def test_set_and_get_run_id(self) -> None:
        """Should be able to set and get run ID."""
        set_run_id("run-123")
        assert get_run_id() == "run-123"

    def test_clear_run_id(self) -> None:
        """Should be able to clear run ID."""
        set_run_id("run-123")
        set_run_id(None)
        assert get_run_id() is None

    def test_extra_context_default_empty(self) -> None:
        """Extra context should default to empty dict."""
        assert get_extra_context() == {}

    def test_set_and_get_extra_context(self) -> None:
        """Should be able to set and get extra context."""
        ctx = {"workbook": "orders.xlsx", "sheet": "Orders"}
        set_extra_context(ctx)
        assert get_extra_context() == ctx

    def test_clear_context(self) -> None:
        """Clear context should reset all context variables."""
        set_run_id("run-123")
        set_extra_context({"key": "value"})

        clear_context()

        assert get_run_id() is None
        assert get_extra_context() == {}


class TestPerformanceMetrics:
    """Tests for PerformanceMetrics class."""

    def test_initialization(self) -> None:
        """Test basic initialization."""
        metrics = PerformanceMetrics(operation="row_extraction")
        assert metrics.operation == "row_extraction"
        assert metrics.duration_seconds == 0.0
        assert metrics.rows_read == 0
        assert metrics.records_emitted == 0
        assert metrics.cells_resolved == 0
        assert metrics.custom_metrics == {}

    def test_finish_calculates_duration(self) -> None:
        """Finish should calculate duration."""
        metrics = PerformanceMetrics(operation="row_extraction")
        time.sleep(0.01)
        metrics.finish()
        assert metrics.duration_seconds > 0
        assert metrics.end_time is not None

    def test_to_dict_with_all_fields(self) -> None:
        metrics = PerformanceMetrics(operation="row_extraction")
        metrics.duration_seconds = 2.0
        metrics.rows_read = 11
        metrics.records_emitted = 10
        metrics.cells_resolved = 30
        metrics.custom_metrics = {"fallback": True}

        result = metrics.to_dict()
        assert result["operation"] == "row_extraction"
        assert result["duration_seconds"] == 2.0
        assert result["rows_read"] == 11
        assert result["records_emitted"] == 10
        assert result["cells_resolved"] == 30
        assert result["custom_metrics"]["fallback"] is True

    def test_to_dict_excludes_zero_values(self) -> None:
        """to_dict should exclude zero values."""
        metrics = PerformanceMetrics(operation="row_extraction")
        result = metrics.to_dict()
        assert "rows_read" not in result
        assert "records_emitted" not in result
        assert "cells_resolved" not in result
        assert "custom_metrics" not in result


class TestStructuredLogger:
    """Tests for StructuredLogger class."""

    def setup_method(self) -> None:
        self.logger = get_logger("test_logger")

    def test_get_logger_returns_structured_logger(self) -> None:
        assert isinstance(get_logger(__name__), StructuredLogger)

    def test_logger_property(self) -> None:
        """Logger property should return underlying Python logger."""
        assert isinstance(self.logger.logger, logging.Logger)
        assert self.logger.logger.name == "test_logger"

    def test_build_message_without_kwargs(self) -> None:
        assert self.logger._build_message("Worksheet selected") == "Worksheet selected"

    def test_build_message_with_kwargs(self) -> None:
        """_build_message with kwargs should include key-value pairs."""
        msg = self.logger._build_message("Worksheet selected", sheet_name="Orders", rows=3)
        assert msg == "Worksheet selected | sheet_name=Orders, rows=3"

    @patch.object(logging.Logger, "info")
    def test_info_logging(self, mock_info: MagicMock) -> None:
        self.logger.info("Test info", status="ok")
        mock_info.assert_called_once()
        call_args = mock_info.call_args[0][0]
        assert "Test info" in call_args
        assert "status=ok" in call_args

    @patch.object(logging.Logger, "debug")
    def test_debug_logging(self, mock_debug: MagicMock) -> None:
        self.logger.debug("Test debug")
        mock_debug.assert_called_once()

    @patch.object(logging.Logger, "warning")
    def test_warning_logging(self, mock_warning: MagicMock) -> None:
        self.logger.warning("Test warning")
        mock_warning.assert_called_once()

    @patch.object(logging.Logger, "error")
    def test_error_logging(self, mock_error: MagicMock) -> None:
        """Error method should pass exc_info through."""
        self.logger.error("Test error", exc_info=True)
        mock_error.assert_called_once()
        assert mock_error.call_args[1]["exc_info"] is True

    @patch.object(logging.Logger, "exception")
    def test_exception_logging(self, mock_exception: MagicMock) -> None:
        self.logger.exception("Test exception")
        mock_exception.assert_called_once()

    @patch.object(logging.Logger, "info")
    def test_log_performance(self, mock_info: MagicMock) -> None:
        """log_performance should log metrics."""
        metrics = PerformanceMetrics(operation="row_extraction")
        metrics.duration_seconds = 1.5
        metrics.records_emitted = 2
        self.logger.log_performance(metrics)
        mock_info.assert_called_once()
        call_args = mock_info.call_args[0][0]
        assert "Performance: row_extraction" in call_args
        assert "records_emitted=2" in call_args

    @patch.object(logging.Logger, "info")
    def test_log_progress(self, mock_info: MagicMock) -> None:
        """log_progress should log progress information."""
        self.logger.log_progress("Reading rows", current=5, total=10)
        mock_info.assert_called_once()
        call_args = mock_info.call_args[0][0]
        assert "Progress: Reading rows" in call_args
        assert "current=5" in call_args
        assert "total=10" in call_args
        assert "50.0%" in call_args

    @patch.object(logging.Logger, "info")
    def test_log_progress_zero_total(self, mock_info: MagicMock) -> None:
        self.logger.log_progress("Reading rows", current=0, total=0)
        assert "0.0%" in mock_info.call_args[0][0]

    @patch.object(logging.Logger, "log")
    def test_log_extraction_result_success(self, mock_log: MagicMock) -> None:
        """Successful extraction should be logged at INFO level."""
        self.logger.log_extraction_result(
            file_path="/data/orders.xlsx",
            success=True,
            records_emitted=12,
            sheet_name="Orders",
        )
        mock_log.assert_called_once()
        level, message = mock_log.call_args[0]
        assert level == logging.INFO
        assert "Extraction completed" in message
        assert "records_emitted=12" in message
        assert "sheet_name=Orders" in message
        assert "error_kind" not in message

    @patch.object(logging.Logger, "log")
    def test_log_extraction_result_failure(self, mock_log: MagicMock) -> None:
        """Failed extraction should be logged at ERROR level."""
        self.logger.log_extraction_result(
            file_path="/data/orders.xlsx",
            success=False,
            records_emitted=0,
            error_kind="io",
        )
        level, message = mock_log.call_args[0]
        assert level == logging.ERROR
        assert "error_kind=io" in message
        assert "sheet_name" not in message


class TestStructuredLogFormatter:
    """Tests for StructuredLogFormatter."""

    def setup_method(self) -> None:
        clear_context()

    def teardown_method(self) -> None:
        clear_context()

    def _record(self, msg: str) -> logging.LogRecord:
        return logging.LogRecord("test", logging.INFO, __file__, 1, msg, None, None)

    def test_format_without_context(self) -> None:
        formatter = StructuredLogFormatter("%(message)s")
        assert formatter.format(self._record("hello")) == "hello"

    def test_format_with_run_id_and_extra(self) -> None:
        """Context values should prefix the message."""
        formatter = StructuredLogFormatter("%(message)s")
        set_run_id("run-1")
        set_extra_context({"workbook": "orders.xlsx"})

        record = self._record("hello")
        assert formatter.format(record) == "[run_id=run-1 workbook=orders.xlsx] hello"
        assert record.msg == "hello"


class TestLogContext:
    """Tests for LogContext context manager."""

    def setup_method(self) -> None:
        clear_context()

    def teardown_method(self) -> None:
        clear_context()

    def test_context_sets_values(self) -> None:
        """LogContext should set context values within block."""
        with LogContext(run_id="run-123", workbook="orders.xlsx"):
            assert get_run_id() == "run-123"
            extra = get_extra_context()
            assert extra.get("workbook") == "orders.xlsx"
            assert "run_id" not in extra

    def test_context_restores_values(self) -> None:
        """LogContext should restore original values after block."""
        set_run_id("original-run")
        set_extra_context({"original": "value"})

        with LogContext(run_id="new-run", workbook="orders.xlsx"):
            assert get_run_id() == "new-run"
            assert get_extra_context() == {
                "original": "value",
                "workbook": "orders.xlsx",
            }

        assert get_run_id() == "original-run"
        assert get_extra_context() == {"original": "value"}

    def test_context_without_run_id_keeps_current(self) -> None:
        set_run_id("run-1")
        with LogContext(workbook="orders.xlsx"):
            assert get_run_id() == "run-1"
        assert get_run_id() == "run-1"

    def test_nested_contexts(self) -> None:
        """Nested LogContext should work correctly."""
        with LogContext(run_id="outer-run"):
            assert get_run_id() == "outer-run"
            with LogContext(run_id="inner-run"):
                assert get_run_id() == "inner-run"
            assert get_run_id() == "outer-run"
        assert get_run_id() is None

    def test_context_can_be_reused(self) -> None:
        context = LogContext(run_id="run-1", sheet="Orders")
        with context:
            pass
        with context:
            assert get_run_id() == "run-1"
        assert get_run_id() is None


class TestTimedOperation:
    """Tests for timed_operation context manager."""

    @patch.object(StructuredLogger, "log_performance")
    def test_timed_operation_logs_metrics(self, mock_log: MagicMock) -> None:
        """timed_operation should log metrics on exit."""
        logger = get_logger("test")
        with timed_operation(logger, "row_extraction") as metrics:
            metrics.rows_read = 4
            time.sleep(0.01)

        mock_log.assert_called_once()
        logged_metrics = mock_log.call_args[0][0]
        assert logged_metrics.operation == "row_extraction"
        assert logged_metrics.rows_read == 4
        assert logged_metrics.duration_seconds > 0

    @patch.object(StructuredLogger, "log_performance")
    def test_timed_operation_logs_on_error(self, mock_log: MagicMock) -> None:
        """Metrics are logged even when the block raises."""
        logger = get_logger("test")
        try:
            with timed_operation(logger, "row_extraction"):
                raise RuntimeError("boom")
        except RuntimeError:
            pass
        mock_log.assert_called_once()


class TestProgressTracker:
    """Tests for ProgressTracker class."""

    @patch.object(StructuredLogger, "log_progress")
    def test_update_logs_progress(self, mock_log: MagicMock) -> None:
        tracker = ProgressTracker(get_logger("test"), "Reading rows", total=10)
        tracker.update()
        mock_log.assert_called_once()
        assert tracker.current == 1

    @patch.object(StructuredLogger, "log_progress")
    def test_update_with_interval(self, mock_log: MagicMock) -> None:
        """update should respect log_interval."""
        tracker = ProgressTracker(
            get_logger("test"), "Reading rows", total=12, log_interval=5
        )
        for _ in range(4):
            tracker.update()
        assert mock_log.call_count == 0
        tracker.update()
        assert mock_log.call_count == 1
        for _ in range(7):
            tracker.update()
        # 10th update and the final 12th update
        assert mock_log.call_count == 3

    @patch.object(StructuredLogger, "info")
    def test_complete_logs_total(self, mock_info: MagicMock) -> None:
        """complete should log the processed count and return the duration."""
        tracker = ProgressTracker(
            get_logger("test"), "Reading rows", total=10, log_interval=100
        )
        tracker.update(3)
        duration = tracker.complete()
        assert duration >= 0
        mock_info.assert_called_once()
        assert mock_info.call_args[1]["total_items"] == 3


class TestConfigureLogging:
    """Tests for configure_logging function."""

    def test_configure_with_string_level(self) -> None:
        configure_logging(level="DEBUG")
        assert logging.getLogger().level == logging.DEBUG

    def test_configure_with_int_level(self) -> None:
        configure_logging(level=logging.WARNING)
        assert logging.getLogger().level == logging.WARNING

    def test_structured_formatter_installed(self) -> None:
        configure_logging(level="INFO")
        handlers = logging.getLogger().handlers
        assert len(handlers) == 1
        assert isinstance(handlers[0].formatter, StructuredLogFormatter)

    def test_plain_formatter(self) -> None:
        configure_logging(level="INFO", use_structured_formatter=False)
        formatter = logging.getLogger().handlers[0].formatter
        assert not isinstance(formatter, StructuredLogFormatter)
