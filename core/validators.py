"""
Разбор и проверка пользовательского ввода.
Ошибки не исправляются молча: InputError доходит до команды и печатается пользователю.
"""

import re
from datetime import date

from config import DEFAULT_RECAP_DAYS
from core.time_utils import PRAYERS


_DATE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")
_MONTH_RE = re.compile(r"^\d{4}-\d{2}$")
_RANGE_RE = re.compile(r"^(\d+)d$")


class InputError(ValueError):
    """Некорректный ввод пользователя (дата, месяц, год, число дней...)."""


def parse_date_key(value: str) -> str:
    """Строгий YYYY-MM-DD, причём дата должна существовать (2026-02-30 — ошибка)."""
    if not _DATE_RE.match(value or ""):
        raise InputError("Date must be in YYYY-MM-DD format")
    year, month, day = (int(part) for part in value.split("-"))
    try:
        parsed = date(year, month, day)
    except ValueError:
        raise InputError(f"Invalid date: {value}") from None
    # Повторная сборка гарантирует, что части не изменились
    if (parsed.year, parsed.month, parsed.day) != (year, month, day):
        raise InputError(f"Invalid date: {value}")
    return value


def parse_month_key(value: str) -> str:
    if not _MONTH_RE.match(value or ""):
        raise InputError("Month must be in YYYY-MM format")
    month = int(value.split("-")[1])
    if month < 1 or month > 12:
        raise InputError("Month must be between 01 and 12")
    return value


def parse_month(value: str) -> tuple[int, int]:
    """'2026-03' -> (2026, 3)."""
    parse_month_key(value)
    year, month = value.split("-")
    return int(year), int(month)


def _parse_int(value) -> int | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    try:
        number = float(str(value).strip())
    except ValueError:
        return None
    if not number.is_integer():
        return None
    return int(number)


def parse_days(value) -> int:
    days = _parse_int(value)
    if days is None or days < 1 or days > 30:
        raise InputError("Ramadan days must be an integer between 1 and 30")
    return days


def parse_hijri_year(value) -> int:
    year = _parse_int(value)
    if year is None or year < 1:
        raise InputError("Hijri year must be a positive integer")
    return year


def parse_optional_int(value) -> int | None:
    if value is None:
        return None
    parsed = _parse_int(value)
    if parsed is None:
        raise InputError("Value must be an integer")
    return parsed


def parse_range(value: str | None) -> int:
    """'7d' -> 7. Пустое или нераспознанное значение — DEFAULT_RECAP_DAYS."""
    if not value:
        return DEFAULT_RECAP_DAYS
    match = _RANGE_RE.match(value)
    if not match or int(match.group(1)) < 1:
        return DEFAULT_RECAP_DAYS
    return int(match.group(1))


def parse_prayers(values: list[str] | None) -> list[str]:
    """Имена намазов без учёта регистра -> канонические имена."""
    lookup = {prayer.lower(): prayer for prayer in PRAYERS}
    result = []
    for value in values or []:
        prayer = lookup.get(value.strip().lower())
        if prayer is None:
            raise InputError(
                f"Unknown prayer '{value}'. Use one of: {', '.join(PRAYERS)}"
            )
        if prayer not in result:
            result.append(prayer)
    return result
