import re

_DATE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")
_TIME_RE = re.compile(r"^(\d{1,2}):(\d{2})$")


def is_valid_habit_name(name) -> bool:
    return isinstance(name, str) and bool(name.strip())


def is_valid_date(date_str) -> bool:
    if not isinstance(date_str, str) or not _DATE_RE.match(date_str):
        return False
    from datetime import datetime
    try:
        datetime.strptime(date_str, "%Y-%m-%d")
    except ValueError:
        return False
    return True


def parse_reminder_time(time_str):
    """"HH:MM" -> (hours, minutes) или None, если время некорректно"""
    if not isinstance(time_str, str):
        return None
    match = _TIME_RE.match(time_str.strip())
    if not match:
        return None
    hours, minutes = int(match.group(1)), int(match.group(2))
    if not (0 <= hours <= 23 and 0 <= minutes <= 59):
        return None
    return hours, minutes


def is_valid_reminder_time(time_str) -> bool:
    return parse_reminder_time(time_str) is not None


def is_valid_weekday(day) -> bool:
    return isinstance(day, int) and not isinstance(day, bool) and 0 <= day <= 6
