"""Unit tests for core/logging.py."""

import logging
import sys

from fuzzysearch.core.logging import setup_logging


class TestSetupLogging:
    def test_default_level(self):
        setup_logging()
        assert logging.getLogger().level == logging.INFO

    def test_custom_level(self):
        setup_logging(level="debug")
        assert logging.getLogger().level == logging.DEBUG

    def test_console_handler_uses_stderr(self):
        setup_logging(format_string="%(message)s")
        stream_handlers = [
            h for h in logging.getLogger().handlers if type(h) is logging.StreamHandler
        ]
        assert stream_handlers
        assert stream_handlers[0].stream is sys.stderr

    def test_file_handler_creates_parent_dirs(self, tmp_path):
        log_file = tmp_path / "nested" / "deep" / "client.log"
        setup_logging(log_file=log_file)
        file_handlers = [h for h in logging.getLogger().handlers if isinstance(h, logging.FileHandler)]
        assert file_handlers
        assert log_file.exists()
