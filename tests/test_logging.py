"""
Tests for logging setup.
"""

import logging

from ops.logging import setup_logging


class TestSetupLogging:
    def teardown_method(self):
        root = logging.getLogger()
        for handler in list(root.handlers):
            root.removeHandler(handler)
            handler.close()

    def test_creates_log_directory_and_file(self, tmp_path):
        log_path = tmp_path / "logs" / "live_detect.log"

        setup_logging(str(log_path), "INFO")
        logging.info("hello from test")

        assert log_path.exists()
        assert "hello from test" in log_path.read_text()

    def test_level_applied(self):
        setup_logging(None, "WARNING")

        root = logging.getLogger()
        assert root.level == logging.WARNING
        assert len(root.handlers) == 1
