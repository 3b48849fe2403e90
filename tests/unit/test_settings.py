"""Unit tests for environment-driven settings and logging levels."""

from __future__ import annotations

import logging

from request_scopes import HasScope
from request_scopes.config.settings import Settings, settings
from request_scopes.logging import configure_logging, get_logger, skip_log_level


def test_defaults(monkeypatch):
    monkeypatch.delenv("REQUEST_SCOPES_MAX_PARAM_DEPTH", raising=False)
    s = Settings(_env_file=None)
    assert s.max_param_depth == 32
    assert s.log_scope_decisions is False
    assert s.debug is False


def test_env_prefix(monkeypatch):
    monkeypatch.setenv("REQUEST_SCOPES_MAX_PARAM_DEPTH", "4")
    monkeypatch.setenv("REQUEST_SCOPES_LOG_SCOPE_DECISIONS", "true")
    s = Settings(_env_file=None)
    assert s.max_param_depth == 4
    assert s.log_scope_decisions is True


def test_skip_log_level_follows_settings(monkeypatch):
    monkeypatch.setattr(settings, "log_scope_decisions", False)
    assert skip_log_level() == logging.DEBUG
    monkeypatch.setattr(settings, "log_scope_decisions", True)
    assert skip_log_level() == logging.INFO


def test_configure_logging_levels(monkeypatch):
    calls = []
    monkeypatch.setattr(logging, "basicConfig", lambda **kwargs: calls.append(kwargs))

    configure_logging(debug=True)
    configure_logging(debug=False)
    monkeypatch.setattr(settings, "debug", True)
    configure_logging()

    assert [c["level"] for c in calls] == [logging.DEBUG, logging.INFO, logging.DEBUG]
    assert "%(name)s" in calls[0]["format"]


def test_get_logger_default_name():
    assert get_logger().name == "request_scopes"
    assert get_logger("x").name == "x"


def test_handler_uses_configured_depth(monkeypatch):
    class Handler(HasScope):
        pass

    Handler.has_scope("filters", type="hash")
    monkeypatch.setattr(settings, "max_param_depth", 1)
    assert Handler(params={"filters": {"a": "1"}}).scope_engine().max_param_depth == 1

    handler = Handler(params={"filters": {"a": {"b": "1"}}})
    handler.apply_scopes([])
    assert dict(handler.current_scopes) == {}
