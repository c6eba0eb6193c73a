"""Tests for logging setup."""

import io
import sys

from ppl_accounts.logger import get_logger, setup_logging


class TestSetupLogging:
    def test_writes_to_current_stderr(self, monkeypatch):
        setup_logging("INFO")
        stream = io.StringIO()
        monkeypatch.setattr(sys, "stderr", stream)

        get_logger("tests.logger").info("switched account")

        output = stream.getvalue()
        assert "switched account" in output
        assert "tests.logger" in output

    def test_level_filters_messages(self, monkeypatch):
        setup_logging("warning")
        stream = io.StringIO()
        monkeypatch.setattr(sys, "stderr", stream)

        log = get_logger("tests.logger")
        log.debug("hidden")
        log.warning("shown")

        assert "hidden" not in stream.getvalue()
        assert "shown" in stream.getvalue()
