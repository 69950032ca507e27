# services/__init__.py

"""
Модуль сервисов трекера привычек

Собирает хранилище, планировщик напоминаний и HabitStore в один граф
объектов, который создается один раз при старте процесса.
"""

import logging
from typing import Optional

from config import AppConfig, config as default_config
from core.database import HabitDatabase
from .habit_store import HabitStore
from .notifications import ReminderScheduler, NotifyCallback
from utils.logger import setup_logging

logger = logging.getLogger(__name__)

class ServiceManager:
    """
    Менеджер для управления всеми сервисами

    Обеспечивает:
    - Правильную инициализацию сервисов в нужном порядке
    - Передачу зависимостей в HabitStore
    - Корректное закрытие всех сервисов
    """

    def __init__(self, app_config: Optional[AppConfig] = None, notify: Optional[NotifyCallback] = None,
                 configure_logging: bool = False):
        self.config = app_config or default_config
        self.notify = notify
        self.configure_logging = configure_logging
        self.database: Optional[HabitDatabase] = None
        self.scheduler: Optional[ReminderScheduler] = None
        self.store: Optional[HabitStore] = None
        self.initialized = False

    async def initialize_services(self) -> HabitStore:
        """Инициализация всех сервисов; возвращает готовый HabitStore"""
        try:
            if self.configure_logging:
                setup_logging(self.config)
            logger.info("🔧 Initializing habit services...")
            self.config._ensure_directories()
            timezone = self.config.get_timezone()

            # 1. Хранилище (базовый сервис)
            self.database = HabitDatabase(
                data_file=self.config.storage.path,
                backup_dir=self.config.storage.backup_dir if self.config.storage.auto_backup else None,
                max_backups=self.config.storage.max_backups,
                max_workers=self.config.max_workers
            )

            # 2. Планировщик напоминаний
            self.scheduler = ReminderScheduler(
                notify=self.notify,
                timezone=timezone,
                enabled=self.config.reminders.enabled,
                misfire_grace_seconds=self.config.reminders.misfire_grace_seconds
            )
            if self.config.reminders.enabled:
                self.scheduler.start()

            # 3. HabitStore (зависит от обоих)
            self.store = HabitStore(self.database, self.scheduler, timezone=timezone)
            await self.store.initialize()

            # Напоминания живут только в памяти планировщика, восстанавливаем их
            for habit in self.store.habits:
                if habit.has_active_reminder:
                    await self.scheduler.schedule(habit)

            self.initialized = True
            logger.info("✅ All services initialized")
            return self.store

        except Exception as e:
            logger.error(f"❌ Service initialization failed: {e}")
            await self.close_services()
            raise

    def get_services_info(self) -> dict:
        """Информация о состоянии сервисов"""
        info = {
            "initialized": self.initialized,
            "services": {}
        }

        if self.database:
            info["services"]["database"] = self.database.get_stats()

        if self.scheduler:
            info["services"]["reminders"] = {
                "running": self.scheduler.running,
                "scheduled": len(self.scheduler.get_scheduled_reminders())
            }

        if self.store:
            info["services"]["store"] = {"habits": len(self.store.habits)}

        return info

    async def close_services(self) -> None:
        """Закрытие всех сервисов в обратном порядке"""
        logger.info("🛑 Closing services...")

        if self.store:
            await self.store.wait_for_reminders()
            self.store = None

        if self.scheduler:
            self.scheduler.shutdown()
            self.scheduler = None

        if self.database:
            await self.database.aclose()
            self.database = None

        self.initialized = False
        logger.info("✅ All services closed")

    async def __aenter__(self) -> HabitStore:
        return await self.initialize_services()

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close_services()

__all__ = [
    'HabitStore',
    'ReminderScheduler',
    'ServiceManager'
]
