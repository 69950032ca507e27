import logging
from logging.handlers import RotatingFileHandler

import pytest

from config import AppConfig, Environment, LogLevel
from utils.logger import setup_logger, setup_logging


@pytest.fixture
def clean_env(tmp_path, monkeypatch):
    for name in ("ENVIRONMENT", "TIMEZONE", "LOG_LEVEL", "LOG_TO_FILE", "MAX_BACKUPS", "MAX_WORKERS"):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("DATA_DIR", str(tmp_path / "data"))
    monkeypatch.setenv("LOG_DIR", str(tmp_path / "logs"))
    return monkeypatch


@pytest.fixture
def restore_root_logger():
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield root
    for handler in list(root.handlers):
        if handler not in handlers:
            root.removeHandler(handler)
            handler.close()
    for handler in handlers:
        if handler not in root.handlers:
            root.addHandler(handler)
    root.setLevel(level)


def test_defaults(clean_env, tmp_path):
    app_config = AppConfig()

    assert app_config.environment == Environment.DEVELOPMENT
    assert app_config.log_level == LogLevel.INFO
    assert app_config.storage.path == tmp_path / "data" / "habits.json"
    assert app_config.reminders.enabled is True
    assert app_config.get_timezone() is None
    assert app_config.is_development()


def test_env_overrides(clean_env):
    clean_env.setenv("ENVIRONMENT", "production")
    clean_env.setenv("TIMEZONE", "Europe/Moscow")
    clean_env.setenv("LOG_LEVEL", "debug")
    clean_env.setenv("MAX_BACKUPS", "2")

    app_config = AppConfig()

    assert app_config.is_production()
    assert app_config.log_level == LogLevel.DEBUG
    assert app_config.storage.max_backups == 2
    assert app_config.get_timezone().zone == "Europe/Moscow"
    assert app_config.to_dict()["reminders"]["timezone"] == "Europe/Moscow"


def test_unknown_timezone_rejected(clean_env):
    clean_env.setenv("TIMEZONE", "Mars/Olympus")
    with pytest.raises(ValueError, match="TIMEZONE"):
        AppConfig()


def test_invalid_workers_rejected(clean_env):
    clean_env.setenv("MAX_WORKERS", "0")
    with pytest.raises(ValueError, match="MAX_WORKERS"):
        AppConfig()


def test_logging_config_console_only(clean_env):
    logging_config = AppConfig().get_logging_config()

    assert set(logging_config["handlers"]) == {"console"}
    assert logging_config["loggers"]["apscheduler"]["level"] == "WARNING"


def test_logging_config_with_file(clean_env, tmp_path):
    clean_env.setenv("LOG_TO_FILE", "true")
    logging_config = AppConfig().get_logging_config()

    file_handler = logging_config["handlers"]["file"]
    assert file_handler["class"] == "logging.handlers.RotatingFileHandler"
    assert file_handler["filename"] == str(tmp_path / "logs" / "habits_development.log")
    assert logging_config["loggers"][""]["handlers"] == ["console", "file"]


def test_setup_logging_writes_to_file(clean_env, tmp_path, restore_root_logger):
    clean_env.setenv("LOG_TO_FILE", "true")
    app_config = AppConfig()

    root = setup_logging(app_config)
    logging.getLogger("habits.test").info("hello")
    for handler in root.handlers:
        handler.flush()

    log_file = tmp_path / "logs" / "habits_development.log"
    assert "hello" in log_file.read_text(encoding="utf-8")


def test_setup_logger_adds_rotating_handler(tmp_path, restore_root_logger):
    log_file = tmp_path / "nested" / "habits.log"
    root = setup_logger(str(log_file))

    assert log_file.parent.is_dir()
    assert any(isinstance(h, RotatingFileHandler) for h in root.handlers)
