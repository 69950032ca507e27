from datetime import date

import pytest

from core.models import (
    Habit, HabitDraft, HabitFrequency, HabitReminder, ValidationError
)


def _habit(**overrides):
    data = dict(
        id="h1",
        name="Read",
        frequency=HabitFrequency(days=[1, 2]),
        created_at="2024-01-01T08:00:00",
    )
    data.update(overrides)
    return Habit(**data)


# ---------------------------------------------------------
# Draft validation
# ---------------------------------------------------------
def test_draft_whitespace_name_rejected():
    with pytest.raises(ValidationError):
        HabitDraft(name="  ", days=[1]).validate()


def test_draft_empty_days_rejected():
    with pytest.raises(ValidationError):
        HabitDraft(name="Read", days=[]).validate()


def test_draft_out_of_range_day_rejected():
    with pytest.raises(ValidationError):
        HabitDraft(name="Read", days=[7]).validate()


def test_draft_normalizes_fields():
    draft = HabitDraft(name="  Read  ", days=[3, 1, 3], description="  ").validate()
    assert draft.name == "Read"
    assert draft.days == [1, 3]
    assert draft.description is None


def test_create_assigns_identity():
    first = Habit.create(HabitDraft(name="Read", days=[1]))
    second = Habit.create(HabitDraft(name="Read", days=[1]))
    assert first.id != second.id
    assert first.completed_dates == []
    assert first.streak == 0
    assert first.created_at


# ---------------------------------------------------------
# Serialization
# ---------------------------------------------------------
def test_to_dict_layout():
    habit = _habit(
        color="#fff",
        reminder=HabitReminder(time="07:15", enabled=True),
        completed_dates=["2024-01-01"],
        streak=1,
    )
    assert habit.to_dict() == {
        "id": "h1",
        "name": "Read",
        "color": "#fff",
        "frequency": {"days": [1, 2]},
        "reminder": {"time": "07:15", "enabled": True},
        "createdAt": "2024-01-01T08:00:00",
        "completedDates": ["2024-01-01"],
        "streak": 1,
    }


def test_to_dict_omits_missing_optionals():
    data = _habit().to_dict()
    assert "description" not in data
    assert "reminder" not in data


def test_from_dict_round_trip():
    habit = _habit(description="Ten pages", reminder=HabitReminder(time="21:00", enabled=False),
                   completed_dates=["2024-01-02", "2024-01-01"], streak=2)
    assert Habit.from_dict(habit.to_dict()) == habit


def test_from_dict_drops_duplicate_and_invalid_dates():
    habit = Habit.from_dict({
        "id": "h1",
        "name": "Read",
        "frequency": {"days": [1, 9]},
        "createdAt": "2024-01-01T08:00:00",
        "completedDates": ["2024-01-01", "2024-01-01", "yesterday", "2024-01-02"],
        "streak": 0,
    })
    assert habit.completed_dates == ["2024-01-01", "2024-01-02"]
    assert habit.frequency.days == [1]


def test_from_dict_missing_name_raises_validation_error():
    with pytest.raises(ValidationError):
        Habit.from_dict({"id": "h1"})


# ---------------------------------------------------------
# Behaviour
# ---------------------------------------------------------
def test_toggled_adds_then_removes():
    habit = _habit(completed_dates=["2024-01-03"], streak=1)
    on = habit.toggled("2024-01-04", reference=date(2024, 1, 4))
    assert on.completed_dates == ["2024-01-03", "2024-01-04"]
    assert on.streak == 2

    off = on.toggled("2024-01-04", reference=date(2024, 1, 4))
    assert off.completed_dates == ["2024-01-03"]
    assert off.streak == 1
    assert habit.completed_dates == ["2024-01-03"]


def test_with_edits_keeps_identity_and_history():
    stored = _habit(completed_dates=["2024-01-03"], streak=1)
    edited = _habit(id="h1", name="Read more", created_at="2030-01-01T00:00:00",
                    completed_dates=[], streak=0, frequency=HabitFrequency(days=[5]))
    result = stored.with_edits(edited)
    assert result.name == "Read more"
    assert result.frequency.days == [5]
    assert result.created_at == "2024-01-01T08:00:00"
    assert result.completed_dates == ["2024-01-03"]
    assert result.streak == 1


def test_reminder_schedulable():
    assert HabitReminder(time="08:30").is_schedulable
    assert not HabitReminder(time="25:00").is_schedulable
    assert not HabitReminder(time="08:30", enabled=False).is_schedulable


def test_is_completed_on_accepts_date_objects():
    habit = _habit(completed_dates=["2024-01-03"])
    assert habit.is_completed_on(date(2024, 1, 3))
    assert not habit.is_completed_on("2024-01-04")
    assert habit.is_active_on("2024-01-01")


def test_long_name_accepted():
    draft = HabitDraft(name="x" * 150, days=[1]).validate()
    assert draft.name == "x" * 150


def test_from_dict_blank_name_raises_validation_error():
    with pytest.raises(ValidationError):
        Habit.from_dict({"id": "h1", "name": "   ", "frequency": {"days": [1]}})


def test_copy_is_independent():
    habit = _habit(completed_dates=["2024-01-03"], reminder=HabitReminder(time="07:00"))
    clone = habit.copy()

    clone.completed_dates.append("2024-01-04")
    clone.frequency.days.append(5)
    clone.reminder.enabled = False

    assert habit.completed_dates == ["2024-01-03"]
    assert habit.frequency.days == [1, 2]
    assert habit.reminder.enabled is True
