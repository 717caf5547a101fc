"""
Утилиты даты и времени: ключи дат (YYYY-MM-DD), календарная арифметика,
разбор времени намаза и определение «сейчас» в часовом поясе пользователя.
"""

import re
from datetime import date, datetime, timedelta
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from loguru import logger


PRAYERS = ("Fajr", "Dhuhr", "Asr", "Maghrib", "Isha")

MINUTES_PER_DAY = 24 * 60

_TIME_RE = re.compile(r"^(\d{1,2}):(\d{2})")
_GREGORIAN_RE = re.compile(r"^(\d{2})-(\d{2})-(\d{4})$")


def resolve_zone(timezone: str | None) -> ZoneInfo | None:
    """ZoneInfo по имени IANA или None, если имя не распознано."""
    if not timezone:
        return None
    try:
        return ZoneInfo(timezone)
    except (ZoneInfoNotFoundError, ValueError) as e:
        logger.debug(f"Unknown timezone '{timezone}', using local time: {e}")
        return None


def _localize(instant: datetime, timezone: str | None) -> datetime:
    zone = resolve_zone(timezone)
    if zone is not None:
        return instant.astimezone(zone)
    return instant.astimezone()


def format_date_key(instant: datetime, timezone: str | None = None) -> str:
    """Ключ даты YYYY-MM-DD для момента времени в заданном поясе (или локальном)."""
    return _localize(instant, timezone).strftime("%Y-%m-%d")


def to_date(date_key: str) -> date:
    return date.fromisoformat(date_key)


def add_days(date_key: str, days: int) -> str:
    """Сдвинуть ключ даты на N дней (N может быть отрицательным)."""
    return (to_date(date_key) + timedelta(days=days)).isoformat()


def extract_time(value: str) -> str:
    """'05:12 (WIB)' -> '05:12'."""
    parts = value.split()
    return parts[0] if parts else value


def parse_time_to_minutes(value: str | None) -> int | None:
    """Время вида HH:MM в минуты от полуночи. None, если шаблон не найден."""
    if not value:
        return None
    match = _TIME_RE.match(extract_time(value))
    if not match:
        return None
    return int(match.group(1)) * 60 + int(match.group(2))


def get_now_in_timezone(timezone: str | None = None, now: datetime | None = None) -> dict:
    """
    Текущий момент в поясе пользователя.
    Возвращает {date_key, label, minutes}. Параметр now фиксирует момент (для тестов).
    """
    instant = now if now is not None else datetime.now().astimezone()
    local = _localize(instant, timezone)
    return {
        "date_key": local.strftime("%Y-%m-%d"),
        "label": local.strftime("%H:%M"),
        "minutes": local.hour * 60 + local.minute,
    }


def to_date_key_from_gregorian(value: str) -> str:
    """Дата API в формате DD-MM-YYYY -> YYYY-MM-DD."""
    match = _GREGORIAN_RE.match(value)
    if not match:
        raise ValueError(f"Unexpected Gregorian date format: {value}")
    day, month, year = match.groups()
    return f"{year}-{month}-{day}"


def to_api_date(date_key: str) -> str:
    """YYYY-MM-DD -> DD-MM-YYYY (формат путей API)."""
    return to_date(date_key).strftime("%d-%m-%Y")


def format_date_label(date_key: str) -> str:
    """'2026-02-19' -> '19 Feb 2026'."""
    return to_date(date_key).strftime("%d %b %Y")


def format_duration(total_minutes: int | None) -> str:
    if total_minutes is None:
        return "--"
    minutes = max(0, round(total_minutes))
    hours, remainder = divmod(minutes, 60)
    if hours > 0:
        return f"{hours}h {remainder}m"
    return f"{remainder}m"
