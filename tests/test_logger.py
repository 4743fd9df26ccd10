"""
Tests for logger functionality.
"""

from spotlog.logger import StructuredLogger, get_logger, reset_logger


class TestStructuredLogger:
    """Test structured logging functionality."""

    def test_logger_creation(self, tmp_path):
        """Logger should be created with default settings."""
        logger = StructuredLogger(
            name="test",
            level="INFO",
            log_dir=tmp_path,
            enable_console=False,
        )

        assert logger.logger.name == "test"
        assert logger.metrics["api_calls"] == 0

    def test_log_methods(self, tmp_path):
        """All log level methods should work."""
        logger = StructuredLogger(
            name="test",
            log_dir=tmp_path,
            enable_console=False,
        )

        logger.debug("Debug message")
        logger.info("Info message")
        logger.warning("Warning message")
        logger.error("Error message")
        logger.critical("Critical message")

    def test_context_is_serialized(self, tmp_path):
        """Context keywords should be appended as JSON."""
        logger = StructuredLogger(
            name="test_context",
            log_dir=tmp_path,
            enable_console=False,
        )

        logger.info("Fetching feed window", url="https://example.com", count=5)

        content = next(tmp_path.glob("*.log")).read_text()
        assert 'Fetching feed window | Context: {"url": "https://example.com", "count": 5}' in content

    def test_console_goes_to_stderr(self, tmp_path, capsys):
        """stdout is reserved for fix lines."""
        logger = StructuredLogger(name="test_console", enable_file=False)

        logger.warning("Something odd")

        captured = capsys.readouterr()
        assert captured.out == ""
        assert "Something odd" in captured.err

    def test_metrics_tracking(self, tmp_path):
        """Metrics should be tracked correctly."""
        logger = StructuredLogger(
            name="test",
            log_dir=tmp_path,
            enable_console=False,
        )

        logger.record_api_call()
        logger.record_api_call()
        logger.record_batch("backfill", 3)
        logger.record_batch("backfill", 0)
        logger.record_batch("poll", 1)
        logger.record_fixes_emitted(4)
        logger.record_fetch_failure("Timeout")

        metrics = logger.get_metrics()

        assert metrics["api_calls"] == 2
        assert metrics["fixes_emitted"] == 4
        assert metrics["empty_windows"] == 1
        assert metrics["fetches_failed"] == 1
        assert metrics["errors_by_type"]["Timeout"] == 1
        assert metrics["batches_by_phase"]["backfill"] == {"batches": 2, "fixes": 3, "fixes_per_batch": 1.5}
        assert metrics["batches_by_phase"]["poll"]["batches"] == 1

    def test_get_metrics_returns_copy(self, tmp_path):
        logger = StructuredLogger(name="test", log_dir=tmp_path, enable_console=False)
        logger.record_batch("poll", 2)

        logger.get_metrics()["batches_by_phase"]["poll"]["batches"] = 99

        assert logger.metrics["batches_by_phase"]["poll"]["batches"] == 1

    def test_log_file_creation(self, tmp_path):
        """Log file should be created in specified directory."""
        logger = StructuredLogger(
            name="test",
            log_dir=tmp_path,
            enable_console=False,
        )

        logger.info("Test message")
        logger.log_metrics_summary()

        log_files = list(tmp_path.glob("*.log"))
        assert len(log_files) == 1

        log_content = log_files[0].read_text()
        assert "Test message" in log_content
        assert "Harvest Session Metrics" in log_content


class TestGlobalLogger:
    """Test global logger singleton."""

    def test_get_logger_singleton(self, tmp_path):
        """get_logger should return same instance."""
        reset_logger()

        logger1 = get_logger(log_dir=tmp_path, enable_console=False)
        logger2 = get_logger()

        assert logger1 is logger2

    def test_reset_logger(self, tmp_path):
        """reset_logger should create new instance."""
        reset_logger()

        logger1 = get_logger(log_dir=tmp_path, enable_console=False)
        logger1.record_api_call()

        reset_logger()

        logger2 = get_logger(log_dir=tmp_path, enable_console=False)

        assert logger2.metrics["api_calls"] == 0
