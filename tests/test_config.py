"""Tests for environment-driven settings."""

from app.core.config import Settings


def test_cors_origins_from_comma_list(monkeypatch):
    monkeypatch.setenv("CORS_ORIGINS", "http://a.test, http://b.test,")
    assert Settings(_env_file=None).CORS_ORIGINS == ["http://a.test", "http://b.test"]


def test_cors_origins_from_json_array(monkeypatch):
    monkeypatch.setenv("CORS_ORIGINS", '["http://a.test"]')
    assert Settings(_env_file=None).CORS_ORIGINS == ["http://a.test"]


def test_message_limits_default(monkeypatch):
    monkeypatch.delenv("MESSAGE_MAX_LENGTH", raising=False)
    s = Settings(_env_file=None)
    assert s.MESSAGE_MAX_LENGTH == 1000
    assert s.MESSAGE_PREVIEW_LENGTH == 50
