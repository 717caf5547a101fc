"""
Определение текущего и следующего намаза по таблице времён одного дня.
"""

from core.time_utils import (
    MINUTES_PER_DAY, PRAYERS,
    extract_time, format_duration, parse_time_to_minutes,
)


def compute_prayer_status(timings: dict, now_minutes: int) -> dict:
    """
    Текущий намаз = последний, чьё время <= now.
    Следующий = первый, чьё время > now; после Иша — Фаджр следующего дня (+1440).
    Непарсящиеся времена пропускаются.
    """
    minutes_by_prayer = {
        prayer: parse_time_to_minutes(timings.get(prayer)) for prayer in PRAYERS
    }

    next_prayer = None
    next_minutes = None
    for prayer in PRAYERS:
        minutes = minutes_by_prayer[prayer]
        if minutes is None:
            continue
        if now_minutes < minutes:
            next_prayer = prayer
            next_minutes = minutes
            break

    if next_prayer is None and minutes_by_prayer["Fajr"] is not None:
        next_prayer = "Fajr"
        next_minutes = minutes_by_prayer["Fajr"] + MINUTES_PER_DAY

    current = None
    for prayer in PRAYERS:
        minutes = minutes_by_prayer[prayer]
        if minutes is not None and now_minutes >= minutes:
            current = prayer

    return {
        "current": current,
        "next": next_prayer,
        "next_time": extract_time(timings[next_prayer]) if next_prayer else None,
        "minutes_away": next_minutes - now_minutes if next_minutes is not None else None,
    }


def describe_status(status: dict, timings: dict) -> tuple[str, str]:
    """Подписи (текущий, следующий) для вывода: 'Asr 15:30', 'Maghrib at 18:00 (in 2h 0m)'."""
    current = status.get("current")
    current_label = f"{current} {extract_time(timings[current])}" if current else "Night"
    if status.get("next") and status.get("next_time"):
        next_label = (
            f"{status['next']} at {status['next_time']} "
            f"(in {format_duration(status.get('minutes_away'))})"
        )
    else:
        next_label = "--"
    return current_label, next_label


def resolve_timezone(config: dict, meta_timezone: str | None) -> str | None:
    """Пояс из настроек пользователя имеет приоритет над поясом из API."""
    return config.get("timezone") or meta_timezone


def describe_timezone(config: dict, meta_timezone: str | None) -> str:
    override = config.get("timezone")
    if override and override != meta_timezone:
        return f"{override} (override)"
    return meta_timezone or "--"
