import logging

import pytest

from taskdeck import config
from taskdeck.logging_setup import setup_logging


@pytest.fixture(autouse=True)
def _no_cached_config():
    config.reset_config()
    yield
    config.reset_config()


def test_defaults(monkeypatch):
    for name in ("TASKDECK_DATABASE_URL", "PLATFORM_DATABASE_URL", "DATABASE_URL", "JWT_SECRET", "PORT", "CORS_ORIGIN"):
        monkeypatch.delenv(name, raising=False)
    cfg = config.TaskDeckConfig.from_env()
    assert cfg.database_url.startswith("sqlite:///")
    assert cfg.jwt_secret == "development-secret"
    assert cfg.api_port == 4000
    assert cfg.token_ttl_days == 7
    assert "http://localhost:5173" in cfg.cors_origins


def test_env_overrides(monkeypatch):
    monkeypatch.setenv("TASKDECK_DATABASE_URL", "sqlite://")
    monkeypatch.setenv("DATABASE_URL", "postgresql://ignored")
    monkeypatch.setenv("JWT_SECRET", "shh")
    monkeypatch.setenv("PORT", "8080")
    monkeypatch.setenv("CORS_ORIGIN", "https://tasks.example.com, http://localhost:3000")
    monkeypatch.setenv("TASKDECK_API_URL", "https://tasks.example.com/api/")
    cfg = config.get_config()
    assert cfg.database_url == "sqlite://"
    assert cfg.jwt_secret == "shh"
    assert cfg.api_port == 8080
    assert cfg.cors_origins.count("http://localhost:3000") == 1
    assert "https://tasks.example.com" in cfg.cors_origins
    assert cfg.api_base_url == "https://tasks.example.com/api"
    assert config.get_config() is cfg


def test_bad_numbers_fall_back(monkeypatch):
    monkeypatch.setenv("PORT", "not-a-port")
    monkeypatch.setenv("TASKDECK_TOKEN_TTL_DAYS", "0")
    cfg = config.TaskDeckConfig.from_env()
    assert cfg.api_port == 4000
    assert cfg.token_ttl_days == 1


def test_setup_logging_writes_log_file(tmp_path):
    root = logging.getLogger()
    saved_handlers, saved_level = list(root.handlers), root.level
    try:
        setup_logging(log_dir=tmp_path, console_level="warning")
        logging.getLogger("taskdeck.test").info("hello from the test")
        for h in root.handlers:
            h.flush()
        assert "hello from the test" in (tmp_path / "taskdeck.log").read_text(encoding="utf-8")
    finally:
        for h in list(root.handlers):
            root.removeHandler(h)
            h.close()
        for h in saved_handlers:
            root.addHandler(h)
        root.setLevel(saved_level)
        logging.captureWarnings(False)
