from datetime import datetime, date, timedelta
from typing import Iterable, List, Optional, Union
import pytz

DATE_FORMAT = "%Y-%m-%d"

DAY_NAMES = ["Sunday", "Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday"]
SHORT_DAY_NAMES = ["Sun", "Mon", "Tue", "Wed", "Thu", "Fri", "Sat"]

DateLike = Union[date, datetime, str]


def _resolve_tz(tz):
    if isinstance(tz, str):
        return pytz.timezone(tz)
    return tz


def now_local(tz=None) -> datetime:
    """Текущее время: локальное время процесса или в указанной зоне"""
    tz = _resolve_tz(tz)
    if tz is None:
        return datetime.now()
    return datetime.now(tz)


def today(tz=None) -> date:
    return now_local(tz).date()


def format_date(value: DateLike, fmt: str = DATE_FORMAT) -> str:
    return to_date(value).strftime(fmt)


def today_str(tz=None) -> str:
    return format_date(today(tz))


def yesterday_str(tz=None) -> str:
    return format_date(add_days(today(tz), -1))


def add_days(value: date, days: int) -> date:
    return value + timedelta(days=days)


def parse_date(date_str: str, fmt: str = DATE_FORMAT) -> date:
    return datetime.strptime(date_str, fmt).date()


def to_date(value: DateLike) -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return parse_date(value)


def get_day_of_week(value: DateLike) -> int:
    """День недели 0-6, где 0 - воскресенье"""
    return to_date(value).isoweekday() % 7


def get_current_day_of_week(tz=None) -> int:
    return get_day_of_week(today(tz))


def is_active_on(frequency_days: Iterable[int], value: DateLike) -> bool:
    return get_day_of_week(value) in set(frequency_days)


def is_habit_active_today(frequency_days: Iterable[int], tz=None) -> bool:
    return is_active_on(frequency_days, today(tz))


def get_last_n_days(n: int, reference: Optional[DateLike] = None) -> List[str]:
    """Последние N дней, начиная с сегодняшнего (самый свежий первым)"""
    start = to_date(reference) if reference is not None else today()
    return [format_date(add_days(start, -i)) for i in range(max(n, 0))]


def calculate_streak(completed_dates: Iterable[str], reference: Optional[DateLike] = None) -> int:
    """
    Текущая серия подряд идущих дней, заканчивающаяся сегодня или вчера.

    reference - дата, считающаяся "сегодня"; по умолчанию текущая локальная дата.
    """
    dates = sorted((to_date(d) for d in completed_dates), reverse=True)
    if not dates:
        return 0

    current = to_date(reference) if reference is not None else today()
    if dates[0] != current and dates[0] != add_days(current, -1):
        return 0

    streak = 1
    for newer, older in zip(dates, dates[1:]):
        if (newer - older).days == 1:
            streak += 1
        else:
            break

    return streak


def get_day_name(day_number: int) -> str:
    return DAY_NAMES[day_number]


def get_short_day_name(day_number: int) -> str:
    return SHORT_DAY_NAMES[day_number]
