"""
Tests for logging setup and run timing.
"""

import logging

import pytest

from moire.logging_config import PACKAGE_LOGGER, PerformanceLogger, setup_logging


class TestSetupLogging:

    def test_configures_package_logger(self):
        logger = setup_logging(level="DEBUG")
        assert logger is logging.getLogger(PACKAGE_LOGGER)
        assert logger.level == logging.DEBUG
        assert len(logger.handlers) == 1
        assert logger.propagate is False

    def test_repeated_setup_does_not_duplicate_handlers(self):
        setup_logging()
        logger = setup_logging()
        assert len(logger.handlers) == 1

    def test_log_file(self, temp_dir):
        log_file = temp_dir / "logs" / "run.log"
        logger = setup_logging(level="INFO", log_file=log_file, console_output=False)
        logging.getLogger("moire.chain").info("chain started")
        for handler in logger.handlers:
            handler.flush()
        assert "chain started" in log_file.read_text(encoding="utf-8")

    def test_unknown_level_falls_back_to_info(self):
        assert setup_logging(level="chatty").level == logging.INFO


class TestPerformanceLogger:

    def test_success_records_elapsed(self, caplog):
        logger = logging.getLogger("moire.tests")
        with caplog.at_level(logging.INFO, logger="moire.tests"):
            with PerformanceLogger(logger, "burn-in") as timer:
                pass
        messages = [r.getMessage() for r in caplog.records]
        assert messages[0] == "Starting burn-in"
        assert messages[1].startswith("Completed burn-in in")
        assert timer.elapsed >= 0.0

    def test_failure_logged_and_propagated(self, caplog):
        logger = logging.getLogger("moire.tests")
        with caplog.at_level(logging.INFO, logger="moire.tests"):
            with pytest.raises(RuntimeError):
                with PerformanceLogger(logger, "sampling"):
                    raise RuntimeError("boom")
        assert caplog.records[-1].levelno == logging.ERROR
        assert "boom" in caplog.records[-1].getMessage()
