#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Habit Tracker Core - Configuration
Централизованная конфигурация с валидацией

Версия: 1.0.0
"""

import os
import sys
from pathlib import Path
from typing import Optional, Dict, Any
from dataclasses import dataclass
from enum import Enum

import pytz

class Environment(Enum):
    """Среды выполнения"""
    DEVELOPMENT = "development"
    TESTING = "testing"
    PRODUCTION = "production"

class LogLevel(Enum):
    """Уровни логирования"""
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"

@dataclass
class StorageConfig:
    """Конфигурация хранилища привычек"""
    path: Path
    backup_dir: Path
    max_backups: int = 10
    auto_backup: bool = True

@dataclass
class ReminderConfig:
    """Конфигурация напоминаний"""
    enabled: bool = True
    timezone: Optional[str] = None  # None = локальное время процесса
    misfire_grace_seconds: int = 300

class AppConfig:
    """Главный класс конфигурации"""

    def __init__(self):
        self.environment = Environment(os.getenv('ENVIRONMENT', 'development'))
        self._load_config()
        self._validate_config()

    def _load_config(self):
        """Загрузка конфигурации из переменных окружения"""

        # Директории
        self.data_dir = Path(os.getenv('DATA_DIR', 'data'))
        self.backup_dir = Path(os.getenv('BACKUP_DIR', 'backups'))
        self.log_dir = Path(os.getenv('LOG_DIR', 'logs'))

        # Хранилище
        self.storage = StorageConfig(
            path=self.data_dir / "habits.json",
            backup_dir=self.backup_dir,
            max_backups=int(os.getenv('MAX_BACKUPS', 10)),
            auto_backup=os.getenv('AUTO_BACKUP', 'true').lower() == 'true'
        )

        # Напоминания
        self.reminders = ReminderConfig(
            enabled=os.getenv('REMINDERS_ENABLED', 'true').lower() == 'true',
            timezone=os.getenv('TIMEZONE') or None,
            misfire_grace_seconds=int(os.getenv('REMINDER_GRACE_SECONDS', 300))
        )

        # Логирование
        self.log_level = LogLevel(os.getenv('LOG_LEVEL', 'INFO').upper())
        self.log_to_file = os.getenv('LOG_TO_FILE', 'false').lower() == 'true'
        self.log_format = os.getenv(
            'LOG_FORMAT',
            '%(asctime)s [%(levelname)s] %(name)s: %(message)s'
        )

        # Производительность
        self.max_workers = int(os.getenv('MAX_WORKERS', 2))

    def _validate_config(self):
        """Валидация конфигурации"""
        errors = []

        if self.storage.max_backups < 0:
            errors.append("MAX_BACKUPS не может быть отрицательным")

        if self.max_workers < 1:
            errors.append("MAX_WORKERS должен быть положительным числом")

        if self.reminders.timezone:
            try:
                pytz.timezone(self.reminders.timezone)
            except pytz.UnknownTimeZoneError:
                errors.append(f"Неизвестная временная зона TIMEZONE: {self.reminders.timezone}")

        if errors:
            raise ValueError("Ошибки конфигурации:\n" + "\n".join(f"• {error}" for error in errors))

    def _ensure_directories(self):
        """Создание необходимых директорий"""
        directories = [
            self.data_dir,
            self.backup_dir,
        ]
        if self.log_to_file:
            directories.append(self.log_dir)

        for directory in directories:
            directory.mkdir(parents=True, exist_ok=True)

    def get_logging_config(self) -> Dict[str, Any]:
        """Получение конфигурации логирования"""
        handlers = ['console']
        if self.log_to_file:
            handlers.append('file')

        logging_config = {
            'version': 1,
            'disable_existing_loggers': False,
            'formatters': {
                'default': {
                    'format': self.log_format,
                    'datefmt': '%Y-%m-%d %H:%M:%S'
                }
            },
            'handlers': {
                'console': {
                    'class': 'logging.StreamHandler',
                    'level': self.log_level.value,
                    'formatter': 'default',
                    'stream': sys.stdout
                }
            },
            'loggers': {
                '': {
                    'level': self.log_level.value,
                    'handlers': handlers,
                    'propagate': False
                },
                'apscheduler': {
                    'level': 'WARNING',
                    'handlers': handlers,
                    'propagate': False
                }
            }
        }

        if self.log_to_file:
            logging_config['handlers']['file'] = {
                'class': 'logging.handlers.RotatingFileHandler',
                'level': self.log_level.value,
                'formatter': 'default',
                'filename': str(self.log_dir / f"habits_{self.environment.value}.log"),
                'maxBytes': 10485760,  # 10MB
                'backupCount': 5,
                'encoding': 'utf-8'
            }

        return logging_config

    def get_timezone(self):
        """Временная зона для расчёта "сегодня" (None = локальная)"""
        if not self.reminders.timezone:
            return None
        return pytz.timezone(self.reminders.timezone)

    def is_development(self) -> bool:
        """Проверка режима разработки"""
        return self.environment == Environment.DEVELOPMENT

    def is_production(self) -> bool:
        """Проверка продакшн режима"""
        return self.environment == Environment.PRODUCTION

    def to_dict(self) -> Dict[str, Any]:
        """Сериализация конфигурации в словарь"""
        return {
            'environment': self.environment.value,
            'storage': {
                'path': str(self.storage.path),
                'backup_dir': str(self.storage.backup_dir),
                'max_backups': self.storage.max_backups,
                'auto_backup': self.storage.auto_backup
            },
            'reminders': {
                'enabled': self.reminders.enabled,
                'timezone': self.reminders.timezone
            },
            'log_level': self.log_level.value,
            'log_to_file': self.log_to_file
        }

# Глобальный экземпляр конфигурации
config = AppConfig()

__all__ = [
    'config',
    'AppConfig',
    'Environment',
    'LogLevel',
    'StorageConfig',
    'ReminderConfig'
]
