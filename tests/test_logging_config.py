"""
Tests for logging configuration.
"""
import logging

import pytest

from barista_bot.logging_config import (
    FORMATS,
    NOISY_LOGGERS,
    resolve_format,
    resolve_level,
    setup_logging,
)


class TestLoggingConfiguration:
    """Test logging setup and configuration."""

    def test_setup_logging_default_level(self, monkeypatch):
        """Test that setup_logging defaults to INFO level."""
        monkeypatch.delenv("LOG_LEVEL", raising=False)
        assert setup_logging() == "INFO"

        logger = logging.getLogger("barista_bot")
        assert logger.level == logging.INFO

    def test_setup_logging_respects_env_var(self, monkeypatch):
        """Test that LOG_LEVEL env var is respected."""
        monkeypatch.setenv("LOG_LEVEL", "warning")
        assert setup_logging() == "WARNING"
        assert logging.getLogger("barista_bot").level == logging.WARNING

    def test_setup_logging_explicit_level(self):
        setup_logging(level="ERROR")
        assert logging.getLogger("barista_bot").level == logging.ERROR

    def test_setup_logging_invalid_level_defaults_to_info(self):
        """Test that invalid level falls back to INFO."""
        assert setup_logging(level="INVALID_LEVEL") == "INFO"
        assert logging.getLogger("barista_bot").level == logging.INFO

    def test_request_loggers_quiet_outside_debug(self):
        setup_logging(level="INFO")
        for name in NOISY_LOGGERS:
            assert logging.getLogger(name).level == logging.WARNING

    def test_debug_hands_request_loggers_back_to_root(self):
        setup_logging(level="INFO")
        setup_logging(level="DEBUG")
        assert logging.getLogger("slowapi").level == logging.NOTSET
        assert logging.getLogger("uvicorn.access").level == logging.NOTSET


class TestResolvers:

    @pytest.mark.parametrize("given,expected", [
        ("debug", "DEBUG"),
        (" Warning ", "WARNING"),
        ("verbose", "INFO"),
    ])
    def test_resolve_level(self, given, expected):
        assert resolve_level(given) == expected

    def test_resolve_format_from_env(self, monkeypatch):
        monkeypatch.setenv("LOG_FORMAT", "COMPACT")
        assert resolve_format() == FORMATS["compact"]

    def test_unknown_format_is_detailed(self, monkeypatch):
        monkeypatch.delenv("LOG_FORMAT", raising=False)
        assert resolve_format("xml") == FORMATS["detailed"]
        assert resolve_format() == FORMATS["detailed"]


class TestNoCustomerDataInLogs:
    """Utterances are only logged at DEBUG level."""

    def test_debug_logs_not_shown_at_info_level(self, caplog):
        setup_logging(level="INFO")

        with caplog.at_level(logging.INFO):
            logger = logging.getLogger("barista_bot.test")
            logger.debug("This should not appear")
            logger.info("This should appear")

            messages = [r.message for r in caplog.records]
            assert "This should not appear" not in messages
            assert "This should appear" in messages

    def test_turn_logs_omit_utterance(self, service, caplog):
        """A processed turn logs steps at INFO, never what the customer said."""
        setup_logging(level="INFO")
        started = service.start()

        with caplog.at_level(logging.INFO, logger="barista_bot"):
            service.handle_turn(started.session_id, "sí, mi nombre es Alicia")

        info_messages = [r.getMessage() for r in caplog.records if r.levelno >= logging.INFO]
        assert info_messages
        assert all("Alicia" not in message for message in info_messages)
