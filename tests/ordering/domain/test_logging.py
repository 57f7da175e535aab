"""Tests for the logging setup."""

import pytest
import structlog
from ordering.utils.logging import bind_caller, clear_caller, log_level


class TestLogLevel:
    @pytest.mark.parametrize(
        "env, expected",
        [("production", "INFO"), ("staging", "INFO"), ("development", "DEBUG"), ("test", "WARNING"), ("qa", "INFO")],
    )
    def test_follows_environment(self, monkeypatch, env, expected):
        monkeypatch.delenv("LOG_LEVEL", raising=False)
        assert log_level(env) == expected

    def test_explicit_level_wins(self, monkeypatch):
        monkeypatch.setenv("LOG_LEVEL", "error")
        assert log_level("development") == "ERROR"


class TestCallerContext:
    def test_bind_and_clear(self):
        clear_caller()
        bind_caller("user-001")
        assert structlog.contextvars.get_contextvars() == {"user_id": "user-001"}

        clear_caller()
        assert structlog.contextvars.get_contextvars() == {}
