#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Habit Tracker Core - Data Models
Модели данных привычек с валидацией и сериализацией

Версия: 1.0.0
"""

import uuid
from datetime import datetime, date
from typing import Dict, List, Optional, Any, Iterable
from dataclasses import dataclass, field, replace
import logging

from utils.datetime_utils import calculate_streak, format_date, is_active_on
from utils.validators import (
    is_valid_date, is_valid_habit_name, is_valid_reminder_time, is_valid_weekday
)

logger = logging.getLogger(__name__)

# ===== EXCEPTIONS =====

class ValidationError(Exception):
    """Ошибка валидации данных привычки"""
    pass

class NotFoundError(Exception):
    """Привычка с указанным id не найдена"""

    def __init__(self, habit_id: str):
        super().__init__(f"Habit not found: {habit_id}")
        self.habit_id = habit_id

# ===== VALIDATION HELPERS =====

def validate_name(name: Any) -> str:
    """Валидация названия привычки"""
    if not isinstance(name, str) or not name.strip():
        raise ValidationError("Название привычки не может быть пустым")

    return name.strip()

def validate_days(days: Iterable[Any]) -> List[int]:
    """Валидация дней недели (0 = воскресенье)"""
    days = list(days or [])
    if not days:
        raise ValidationError("Нужно выбрать хотя бы один день недели")

    invalid = [d for d in days if not is_valid_weekday(d)]
    if invalid:
        raise ValidationError(f"Дни недели должны быть числами от 0 до 6: {invalid}")

    return sorted(set(days))

def _optional_text(value: Any) -> Optional[str]:
    if value is None:
        return None
    value = str(value).strip()
    return value or None

# ===== CORE MODELS =====

@dataclass
class HabitFrequency:
    """Расписание привычки: набор дней недели"""
    days: List[int] = field(default_factory=list)

    def is_active_on(self, check_date) -> bool:
        return is_active_on(self.days, check_date)

    def to_dict(self) -> Dict[str, Any]:
        return {"days": list(self.days)}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "HabitFrequency":
        days = [d for d in (data or {}).get("days", []) if is_valid_weekday(d)]
        return cls(days=days)

@dataclass
class HabitReminder:
    """Ежедневное напоминание в формате HH:MM"""
    time: str
    enabled: bool = True

    @property
    def is_schedulable(self) -> bool:
        return self.enabled and is_valid_reminder_time(self.time)

    def to_dict(self) -> Dict[str, Any]:
        return {"time": self.time, "enabled": self.enabled}

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> Optional["HabitReminder"]:
        if not data:
            return None
        return cls(time=str(data.get("time", "")), enabled=bool(data.get("enabled", False)))

@dataclass
class HabitCompletion:
    """Запись о выполнении привычки за день"""
    habit_id: str
    date: str  # YYYY-MM-DD
    completed: bool

    def to_dict(self) -> Dict[str, Any]:
        return {"habitId": self.habit_id, "date": self.date, "completed": self.completed}

@dataclass
class HabitDraft:
    """Данные для создания привычки"""
    name: str
    days: List[int] = field(default_factory=list)
    description: Optional[str] = None
    icon: Optional[str] = None
    color: Optional[str] = None
    reminder: Optional[HabitReminder] = None

    def validate(self) -> "HabitDraft":
        """Проверка и нормализация черновика"""
        return replace(
            self,
            name=validate_name(self.name),
            days=validate_days(self.days),
            description=_optional_text(self.description),
            icon=_optional_text(self.icon),
            color=_optional_text(self.color),
        )

@dataclass
class Habit:
    """Привычка с расписанием и историей выполнения"""
    id: str
    name: str
    frequency: HabitFrequency = field(default_factory=HabitFrequency)
    description: Optional[str] = None
    icon: Optional[str] = None
    color: Optional[str] = None
    reminder: Optional[HabitReminder] = None
    created_at: str = field(default_factory=lambda: datetime.now().isoformat())
    completed_dates: List[str] = field(default_factory=list)
    streak: int = 0

    # ===== PROPERTIES =====

    @property
    def has_active_reminder(self) -> bool:
        return self.reminder is not None and self.reminder.enabled

    @property
    def total_completions(self) -> int:
        return len(self.completed_dates)

    # ===== METHODS =====

    def is_completed_on(self, check_date) -> bool:
        """Проверка выполнения привычки в определенную дату"""
        if isinstance(check_date, date):
            check_date = format_date(check_date)
        return check_date in self.completed_dates

    def is_active_on(self, check_date) -> bool:
        """Запланирована ли привычка на день недели этой даты"""
        return self.frequency.is_active_on(check_date)

    def toggled(self, completion_date: str, reference=None) -> "Habit":
        """Копия привычки с переключенной отметкой и пересчитанным streak"""
        if completion_date in self.completed_dates:
            dates = [d for d in self.completed_dates if d != completion_date]
        else:
            dates = self.completed_dates + [completion_date]

        return replace(
            self,
            completed_dates=dates,
            streak=calculate_streak(dates, reference),
        )

    def copy(self) -> "Habit":
        """Независимая копия, включая списки дат и дней"""
        return replace(
            self,
            frequency=HabitFrequency(days=list(self.frequency.days)),
            reminder=replace(self.reminder) if self.reminder else None,
            completed_dates=list(self.completed_dates),
        )

    def with_edits(self, edited: "Habit") -> "Habit":
        """Заменить редактируемые поля, сохранив идентичность и историю"""
        return replace(
            self,
            name=edited.name,
            description=edited.description,
            icon=edited.icon,
            color=edited.color,
            frequency=HabitFrequency(days=list(edited.frequency.days)),
            reminder=replace(edited.reminder) if edited.reminder else None,
        )

    # ===== SERIALIZATION =====

    def to_dict(self) -> Dict[str, Any]:
        """Сериализация в словарь (формат хранилища)"""
        data: Dict[str, Any] = {
            "id": self.id,
            "name": self.name,
            "frequency": self.frequency.to_dict(),
            "createdAt": self.created_at,
            "completedDates": list(self.completed_dates),
            "streak": self.streak,
        }
        if self.description is not None:
            data["description"] = self.description
        if self.icon is not None:
            data["icon"] = self.icon
        if self.color is not None:
            data["color"] = self.color
        if self.reminder is not None:
            data["reminder"] = self.reminder.to_dict()
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Habit":
        """Десериализация из словаря"""
        if not isinstance(data, dict) or not is_valid_habit_name(data.get("name")):
            raise ValidationError(f"Пустое название у записи привычки: {data!r}")

        try:
            completed_dates: List[str] = []
            for value in data.get("completedDates", []):
                if not is_valid_date(value):
                    logger.warning(f"Skipping invalid completion date {value!r} for habit {data.get('id')}")
                    continue
                if value not in completed_dates:
                    completed_dates.append(value)

            return cls(
                id=str(data["id"]),
                name=str(data["name"]),
                frequency=HabitFrequency.from_dict(data.get("frequency", {})),
                description=data.get("description"),
                icon=data.get("icon"),
                color=data.get("color"),
                reminder=HabitReminder.from_dict(data.get("reminder")),
                created_at=data.get("createdAt", datetime.now().isoformat()),
                completed_dates=completed_dates,
                streak=int(data.get("streak", 0)),
            )
        except (KeyError, TypeError, ValueError, AttributeError) as e:
            logger.error(f"Failed to deserialize habit: {e}")
            raise ValidationError(f"Не удалось загрузить привычку: {e}")

    @classmethod
    def create(cls, draft: HabitDraft) -> "Habit":
        """Создание новой привычки из проверенного черновика"""
        draft = draft.validate()
        return cls(
            id=str(uuid.uuid4()),
            name=draft.name,
            frequency=HabitFrequency(days=draft.days),
            description=draft.description,
            icon=draft.icon,
            color=draft.color,
            reminder=replace(draft.reminder) if draft.reminder else None,
        )
