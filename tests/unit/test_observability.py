"""Unit tests for structured logging and metrics."""

import logging
import time

import pytest

from guest_photos.core.logging_config import LOGGER_NAMESPACE
from guest_photos.core.observability import (
    LogContext,
    MetricsCollector,
    PerformanceMetrics,
    StructuredLogger,
)


class TestLogContext:
    """Tests for LogContext."""

    def test_defaults(self):
        context = LogContext()
        assert context.correlation_id
        assert context.operation == ""
        assert context.metadata == {}

    def test_with_operation_keeps_correlation(self):
        context = LogContext(correlation_id="abc", component="orchestrator")

        derived = context.with_operation("upload_thumbnail")

        assert derived.correlation_id == "abc"
        assert derived.operation == "upload_thumbnail"
        assert derived.component == "orchestrator"
        assert context.operation == ""

    def test_with_metadata_does_not_mutate(self):
        context = LogContext().with_metadata(file_name="a.jpg")

        derived = context.with_metadata(cafe_id="c1")

        assert derived.metadata == {"file_name": "a.jpg", "cafe_id": "c1"}
        assert context.metadata == {"file_name": "a.jpg"}


class TestStructuredLogger:
    """Tests for StructuredLogger formatting."""

    @pytest.fixture
    def captured(self, caplog):
        logger = StructuredLogger("test-structured-logger", level="DEBUG")
        # The namespace root does not propagate; hang caplog on it directly.
        root = logging.getLogger(LOGGER_NAMESPACE)
        root.addHandler(caplog.handler)
        caplog.handler.setLevel(logging.DEBUG)
        yield logger, caplog
        root.removeHandler(caplog.handler)

    def test_name(self):
        assert StructuredLogger("test-name-logger").name == "guest-photos.test-name-logger"

    def test_plain_message(self, captured):
        logger, caplog = captured

        logger.info("hello")

        assert caplog.records[-1].getMessage() == "hello"

    def test_context_formatting(self, captured):
        logger, caplog = captured
        context = LogContext(correlation_id="abc", operation="upload_image").with_metadata(
            file_name="a.jpg"
        )

        logger.warning("Uploaded", context)

        record = caplog.records[-1]
        assert record.levelno == logging.WARNING
        assert record.getMessage() == "[upload_image] [abc] Uploaded (file_name=a.jpg)"

    def test_kwargs_without_context(self, captured):
        logger, caplog = captured

        logger.error("failed", attempt=2)

        assert caplog.records[-1].getMessage() == "failed (attempt=2)"


class TestMetricsCollector:
    """Tests for MetricsCollector."""

    def test_duration(self):
        metric = PerformanceMetrics("op", start_time=1.0, end_time=1.5, success=True)
        assert metric.duration == 0.5
        assert metric.duration_ms == 500.0

    def test_record_and_summary(self):
        collector = MetricsCollector()
        start = time.time()

        collector.record("upload_image", start, True, file_name="a.jpg")
        collector.record("upload_image", start, False, error_message="boom")
        collector.record("other", start, True)

        summary = collector.get_summary("upload_image")
        assert summary["total_operations"] == 2
        assert summary["successful_operations"] == 1
        assert summary["failed_operations"] == 1
        assert summary["success_rate"] == 0.5
        assert summary["total_duration"] >= 0
        assert collector.get_metrics("upload_image")[0].metadata == {"file_name": "a.jpg"}
        assert len(collector.get_metrics()) == 3

    def test_empty_summary(self):
        assert MetricsCollector().get_summary() == {}

    def test_clear(self):
        collector = MetricsCollector()
        collector.record("op", time.time(), True)

        collector.clear_metrics()

        assert collector.get_metrics() == []
