"""
Сервис напоминаний о привычках
"""

import inspect
import logging
from typing import Any, Awaitable, Callable, Dict, List, Optional, Union

from apscheduler.jobstores.base import JobLookupError
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger

from core.models import Habit
from utils.validators import parse_reminder_time

logger = logging.getLogger(__name__)

JOB_PREFIX = "habit-reminder:"
DEFAULT_BODY = "Time to complete your habit!"

NotifyCallback = Callable[[str, str, Dict[str, Any]], Union[None, Awaitable[None]]]


async def log_notification(title: str, body: str, data: Dict[str, Any]) -> None:
    """Доставка по умолчанию: только запись в лог"""
    logger.info(f"🔔 {title}: {body} ({data})")


class ReminderScheduler:
    """
    Планировщик ежедневных напоминаний для привычек.

    Каждой привычке соответствует одна cron-задача APScheduler с id
    ``habit-reminder:<habit_id>``. Доставку уведомления выполняет
    переданный хостом callback ``notify(title, body, data)``.
    """

    def __init__(self, notify: Optional[NotifyCallback] = None, timezone=None,
                 enabled: bool = True, misfire_grace_seconds: int = 300,
                 scheduler: Optional[AsyncIOScheduler] = None):
        self.notify = notify or log_notification
        self.timezone = timezone
        self.enabled = enabled
        self.misfire_grace_seconds = misfire_grace_seconds

        if scheduler is not None:
            self.scheduler = scheduler
        elif timezone is not None:
            self.scheduler = AsyncIOScheduler(timezone=timezone)
        else:
            self.scheduler = AsyncIOScheduler()

    @staticmethod
    def job_id(habit_id: str) -> str:
        return f"{JOB_PREFIX}{habit_id}"

    @property
    def running(self) -> bool:
        return self.scheduler.running

    def start(self) -> None:
        """Запуск планировщика (нужен работающий event loop)"""
        if not self.scheduler.running:
            self.scheduler.start()
            logger.info("📅 Reminder scheduler started")

    def shutdown(self) -> None:
        """Остановка планировщика"""
        if self.scheduler.running:
            self.scheduler.shutdown(wait=False)
            logger.info("📅 Reminder scheduler stopped")

    async def schedule(self, habit: Habit) -> Optional[str]:
        """
        Запланировать ежедневное напоминание для привычки.

        Возвращает id задачи или None, если напоминание выключено, время
        некорректно или планировщик отказал. Исключений не бросает.
        """
        try:
            if not self.enabled:
                logger.debug(f"Reminders disabled, skipping habit {habit.id}")
                return None

            if not habit.reminder or not habit.reminder.enabled or not habit.reminder.time:
                return None

            # Старое напоминание для этой привычки всегда снимается
            await self.cancel(habit.id)

            parsed = parse_reminder_time(habit.reminder.time)
            if parsed is None:
                logger.error(f"Invalid reminder time format for habit {habit.id}: {habit.reminder.time!r}")
                return None

            hours, minutes = parsed
            trigger_kwargs: Dict[str, Any] = {'hour': hours, 'minute': minutes}
            if self.timezone is not None:
                trigger_kwargs['timezone'] = self.timezone

            job = self.scheduler.add_job(
                self._deliver,
                CronTrigger(**trigger_kwargs),
                args=[
                    f"Time for: {habit.name}",
                    habit.description or DEFAULT_BODY,
                    {'habitId': habit.id},
                ],
                id=self.job_id(habit.id),
                name=habit.name,
                replace_existing=True,
                coalesce=True,
                misfire_grace_time=self.misfire_grace_seconds,
            )

            logger.info(f"⏰ Reminder for habit {habit.id} scheduled at {hours:02d}:{minutes:02d}")
            return job.id

        except Exception as e:
            logger.error(f"❌ Error scheduling reminder for habit {habit.id}: {e}")
            return None

    async def cancel(self, habit_id: str) -> None:
        """Снять напоминание привычки; повторный вызов безопасен"""
        try:
            self.scheduler.remove_job(self.job_id(habit_id))
            logger.debug(f"Reminder for habit {habit_id} cancelled")
        except JobLookupError:
            pass
        except Exception as e:
            logger.error(f"❌ Error cancelling reminder for habit {habit_id}: {e}")

    def get_scheduled_reminders(self) -> List[Dict[str, Any]]:
        """Список запланированных напоминаний"""
        reminders = []
        try:
            jobs = self.scheduler.get_jobs()
        except Exception as e:
            logger.error(f"❌ Error listing scheduled reminders: {e}")
            return []

        for job in jobs:
            if not job.id.startswith(JOB_PREFIX):
                continue
            next_run = getattr(job, 'next_run_time', None)
            reminders.append({
                'id': job.id,
                'habitId': job.id[len(JOB_PREFIX):],
                'name': job.name,
                'nextRunTime': next_run.isoformat() if next_run else None,
            })
        return reminders

    async def clear_all(self) -> None:
        """Снять все напоминания о привычках"""
        for reminder in self.get_scheduled_reminders():
            await self.cancel(reminder['habitId'])

    async def _deliver(self, title: str, body: str, data: Dict[str, Any]) -> None:
        try:
            result = self.notify(title, body, data)
            if inspect.isawaitable(result):
                await result
        except Exception as e:
            logger.error(f"❌ Error delivering reminder {data}: {e}")
