"""
Логика Рамадан-календаря: даты месяца Рамадан (9-й месяц хиджры) либо из
календаря API, либо от явной даты начала и числа дней.
"""

import asyncio

from loguru import logger

from config import DEFAULT_RAMADAN_DAYS, MSG_LOCATION_REQUIRED, RAMADAN_MONTH
from core.time_utils import add_days, format_date_label, to_date_key_from_gregorian
from core.validators import InputError


class RamadanLookupError(RuntimeError):
    """Календарь или конвертация дат недоступны, а запасного значения нет."""


def format_hijri_label(hijri: dict) -> str:
    """'1 Ramaḍān 1447'."""
    return f"{hijri['day']} {hijri['month']['en']} {hijri['year']}"


def _ramadan_date(date_key: str, hijri_label: str = "") -> dict:
    return {
        "date_key": date_key,
        "gregorian_label": format_date_label(date_key),
        "hijri_label": hijri_label,
    }


async def resolve_ramadan_calendar(
    api, location: dict, hijri_year: int,
    method: int = None, school: int = None,
) -> list[dict]:
    """Полный календарь Рамадана из API. Пустой ответ — ошибка."""
    items = await api.get_hijri_calendar(
        location, hijri_year, RAMADAN_MONTH, method=method, school=school,
    )
    if not items:
        raise RamadanLookupError(f"Failed to load Ramadan {hijri_year} calendar.")
    return items


def build_ramadan_dates_from_calendar(items: list[dict]) -> list[dict]:
    """Дни календаря API (DD-MM-YYYY) -> RamadanDate."""
    dates = []
    for item in items:
        day = item["date"]
        date_key = to_date_key_from_gregorian(day["gregorian"]["date"])
        dates.append(_ramadan_date(date_key, format_hijri_label(day["hijri"])))
    return sorted(dates, key=lambda d: d["date_key"])


async def build_ramadan_dates_from_start(start: str, days: int, api=None) -> list[dict]:
    """
    Последовательные даты от start. С api — подписи хиджры запрашиваются
    параллельно; порядок результата всегда по дате.
    """
    date_keys = [add_days(start, idx) for idx in range(days)]
    if api is None:
        return [_ramadan_date(date_key) for date_key in date_keys]

    # gather сохраняет порядок аргументов независимо от порядка завершения
    conversions = await asyncio.gather(
        *(api.get_hijri_by_date(date_key) for date_key in date_keys),
        return_exceptions=True,
    )

    dates = []
    for date_key, converted in zip(date_keys, conversions):
        if isinstance(converted, BaseException) or not converted:
            logger.error(f"Hijri conversion failed for {date_key}: {converted}")
            raise RamadanLookupError(f"Failed to convert {date_key} to a Hijri date.")
        dates.append(_ramadan_date(date_key, format_hijri_label(converted["hijri"])))
    return dates


async def resolve_ramadan_dates(
    api,
    config: dict,
    hijri_year: int,
    start: str = None,
    days: int = None,
    with_labels: bool = False,
) -> list[dict]:
    """Выбор стратегии: от даты начала (если задана) или по календарю API."""
    location = config.get("location")
    if not location:
        raise InputError(MSG_LOCATION_REQUIRED)

    if start:
        return await build_ramadan_dates_from_start(
            start, days or DEFAULT_RAMADAN_DAYS, api if with_labels else None,
        )

    items = await resolve_ramadan_calendar(
        api, location, hijri_year, config.get("method"), config.get("school"),
    )
    return build_ramadan_dates_from_calendar(items)


async def is_ramadan_date(api, date_key: str) -> bool:
    """Проверить, приходится ли дата на Рамадан. При ошибке — False."""
    try:
        converted = await api.get_hijri_by_date(date_key)
        return bool(converted) and int(converted["hijri"]["month"]["number"]) == RAMADAN_MONTH
    except Exception as e:
        logger.warning(f"Ramadan check failed for {date_key}: {e}")
        return False


async def get_current_hijri_year(api, date_key: str) -> int | None:
    """Год хиджры для даты или None, если API недоступен."""
    try:
        converted = await api.get_hijri_by_date(date_key)
        if converted:
            return int(converted["hijri"]["year"])
    except Exception as e:
        logger.warning(f"Hijri year lookup failed for {date_key}: {e}")
    return None


def format_ramadan_period(hijri_year: int, days: int) -> str:
    return f"1 Ramadan {hijri_year} → {days} Ramadan {hijri_year}"
