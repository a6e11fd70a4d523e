"""Tests for settings parsing."""

import pytest
from pydantic import ValidationError

from core.config import Settings
from core.constants import LogLevel


def _settings(**overrides) -> Settings:
    return Settings(_env_file=None, openai_api_key="sk-test", **overrides)


def test_log_level_defaults_to_info(monkeypatch):
    monkeypatch.delenv("LOG_LEVEL", raising=False)
    assert _settings().log_level is LogLevel.INFO


def test_log_level_accepts_lowercase_names():
    assert _settings(log_level="debug").log_level is LogLevel.DEBUG


def test_log_level_read_from_environment(monkeypatch):
    monkeypatch.setenv("LOG_LEVEL", "warning")
    assert _settings().log_level is LogLevel.WARNING


def test_unknown_log_level_is_rejected():
    with pytest.raises(ValidationError):
        _settings(log_level="chatty")
