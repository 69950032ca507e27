# services/habit_store.py

import asyncio
import logging
from dataclasses import replace
from datetime import date
from functools import partial
from typing import Callable, List, Optional, Set, Tuple, Union

from core.database import HabitDatabase
from core.models import (
    Habit, HabitCompletion, HabitDraft, NotFoundError, ValidationError,
    validate_days, validate_name
)
from services.notifications import ReminderScheduler
from utils.datetime_utils import format_date, get_last_n_days, is_active_on, today
from utils.validators import is_valid_date

logger = logging.getLogger(__name__)

DateArg = Union[date, str, None]


class HabitStore:
    """
    Хранилище привычек: единственный владелец коллекции в памяти

    Возможности:
    - Создание, обновление, удаление привычек
    - Отметка выполнения и пересчет streak'ов
    - Выборка привычек на сегодня и история за последние дни

    Каждая мутация перезаписывает хранилище всей коллекцией и дожидается
    записи. Вызовы планировщика напоминаний запускаются фоновыми задачами
    и не блокируют мутацию.
    """

    def __init__(self, database: HabitDatabase, scheduler: Optional[ReminderScheduler] = None,
                 timezone=None, today_provider: Optional[Callable[[], date]] = None):
        self.database = database
        self.scheduler = scheduler
        self.timezone = timezone
        self._today_provider = today_provider or (lambda: today(self.timezone))

        self._habits: List[Habit] = []
        self._background_tasks: Set[asyncio.Task] = set()
        self.initialized = False

    # ===== LIFECYCLE =====

    async def initialize(self) -> None:
        """Загрузить коллекцию из хранилища (пустую при первом запуске)"""
        self._habits = list(await self.database.load())
        self.initialized = True
        logger.info(f"✅ HabitStore initialized with {len(self._habits)} habits")

    async def wait_for_reminders(self) -> None:
        """Дождаться завершения фоновых вызовов планировщика"""
        while self._background_tasks:
            await asyncio.gather(*list(self._background_tasks), return_exceptions=True)

    # ===== READ ACCESS =====

    @property
    def habits(self) -> List[Habit]:
        """Копии привычек; изменять коллекцию можно только через мутации стора"""
        return [habit.copy() for habit in self._habits]

    def get_habit(self, habit_id: str) -> Optional[Habit]:
        habit = self._find(habit_id)
        return habit.copy() if habit else None

    def today(self) -> date:
        return self._today_provider()

    # ===== MUTATIONS =====

    async def add(self, draft: HabitDraft) -> Habit:
        """Создать привычку"""
        habit = Habit.create(draft)

        self._habits.append(habit)
        logger.info(f"✅ Habit {habit.id} created: {habit.name}")

        if habit.has_active_reminder:
            self._dispatch_schedule(habit)

        await self._persist()
        return habit.copy()

    async def update(self, habit: Habit) -> Habit:
        """
        Заменить редактируемые поля привычки.

        id, createdAt, completedDates и streak берутся из сохраненной записи.
        """
        index = self._index_of(habit.id)
        if index is None:
            raise NotFoundError(habit.id)

        edited = replace(
            habit,
            name=validate_name(habit.name),
            frequency=replace(habit.frequency, days=validate_days(habit.frequency.days)),
        )
        updated = self._habits[index].with_edits(edited)
        self._habits[index] = updated
        logger.info(f"✏️ Habit {updated.id} updated")

        if updated.has_active_reminder:
            self._dispatch_schedule(updated)
        else:
            self._dispatch_cancel(updated.id)

        await self._persist()
        return updated.copy()

    async def delete(self, habit_id: str) -> bool:
        """Удалить привычку; неизвестный id игнорируется"""
        index = self._index_of(habit_id)
        if index is None:
            logger.debug(f"Delete of unknown habit {habit_id} ignored")
            return False

        self._dispatch_cancel(habit_id)
        del self._habits[index]
        logger.info(f"🗑 Habit {habit_id} deleted")

        await self._persist()
        return True

    async def toggle_completion(self, habit_id: str, completion_date: DateArg = None) -> Habit:
        """Переключить отметку выполнения за дату (по умолчанию сегодня)"""
        index = self._index_of(habit_id)
        if index is None:
            raise NotFoundError(habit_id)

        date_str = self._normalize_date(completion_date)
        updated = self._habits[index].toggled(date_str, reference=self.today())
        self._habits[index] = updated

        logger.info(
            f"{'✅' if date_str in updated.completed_dates else '↩️'} Habit {habit_id} "
            f"toggled for {date_str}, streak {updated.streak}"
        )

        await self._persist()
        return updated.copy()

    async def clear_all(self) -> None:
        """Удалить все привычки, их напоминания и сохраненные данные"""
        for habit in self._habits:
            self._dispatch_cancel(habit.id)
        if self.scheduler is not None:
            self._dispatch(self.scheduler.clear_all(), "clear all reminders")

        self._habits = []
        await self.database.clear()
        logger.info("🧹 All habits cleared")

    # ===== QUERIES =====

    def get_completion_status(self, habit_id: str, completion_date: DateArg = None) -> bool:
        habit = self._find(habit_id)
        if habit is None:
            return False
        try:
            return habit.is_completed_on(self._normalize_date(completion_date))
        except ValidationError:
            return False

    def get_streak(self, habit_id: str) -> int:
        habit = self._find(habit_id)
        return habit.streak if habit else 0

    def get_habits_for_day(self, day: DateArg = None) -> List[Habit]:
        """Привычки, запланированные на день недели указанной даты"""
        target = self._normalize_date(day)
        return [h.copy() for h in self._habits if is_active_on(h.frequency.days, target)]

    def get_todays_habits(self) -> List[Habit]:
        return self.get_habits_for_day(None)

    def get_today_progress(self) -> Tuple[int, int]:
        """(выполнено, всего) среди привычек на сегодня"""
        today_str = format_date(self.today())
        todays = self.get_todays_habits()
        completed = sum(1 for h in todays if today_str in h.completed_dates)
        return completed, len(todays)

    def get_recent_history(self, habit_id: str, days: int = 7) -> List[HabitCompletion]:
        """История выполнения за последние N дней, самый свежий день первым"""
        habit = self._find(habit_id)
        if habit is None:
            return []
        return [
            HabitCompletion(habit_id=habit.id, date=d, completed=d in habit.completed_dates)
            for d in get_last_n_days(days, self.today())
        ]

    # ===== INTERNALS =====

    def _find(self, habit_id: str) -> Optional[Habit]:
        index = self._index_of(habit_id)
        return self._habits[index] if index is not None else None

    def _index_of(self, habit_id: str) -> Optional[int]:
        for i, habit in enumerate(self._habits):
            if habit.id == habit_id:
                return i
        return None

    def _normalize_date(self, value: DateArg) -> str:
        if value is None:
            return format_date(self.today())
        if isinstance(value, date):
            return format_date(value)
        if not is_valid_date(value):
            raise ValidationError(f"Дата должна быть в формате YYYY-MM-DD: {value!r}")
        return value

    async def _persist(self) -> None:
        await self.database.save(self._habits)

    def _dispatch_schedule(self, habit: Habit) -> None:
        if self.scheduler is not None:
            self._dispatch(self.scheduler.schedule(habit), f"schedule reminder for {habit.id}")

    def _dispatch_cancel(self, habit_id: str) -> None:
        if self.scheduler is not None:
            self._dispatch(self.scheduler.cancel(habit_id), f"cancel reminder for {habit_id}")

    def _dispatch(self, coro, description: str) -> None:
        task = asyncio.create_task(coro)
        self._background_tasks.add(task)
        task.add_done_callback(partial(self._on_background_done, description))

    def _on_background_done(self, description: str, task: asyncio.Task) -> None:
        self._background_tasks.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.warning(f"Reminder call failed ({description}): {exc}")
