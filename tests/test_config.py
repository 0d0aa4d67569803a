"""Tests for environment-driven settings."""

from src.config import Settings


def test_settings_read_log_level(monkeypatch):
    monkeypatch.setenv("LOG_LEVEL", "WARNING")

    config = Settings()

    assert config.log_level == "WARNING"
    assert not hasattr(config, "env")
    assert not hasattr(config, "debug")


def test_cache_backend_selection(monkeypatch):
    config = Settings()

    monkeypatch.setattr(Settings, "CACHE_BACKEND", "memory")
    assert config.uses_redis_cache is False

    monkeypatch.setattr(Settings, "CACHE_BACKEND", "Redis")
    assert config.uses_redis_cache is True
