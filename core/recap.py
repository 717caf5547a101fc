"""
Агрегация посещаемости: сводка, дневная статистика, сетка для визуализации,
серии «идеальных дней» и win rate с отсечкой по времени Иша.

Строка посещаемости — dict {date, prayers: {имя: bool}, fasted: bool | None, updated_at}.
fasted=None означает «не отмечено», False — «отмечено, что поста не было».
"""

from typing import Callable

from loguru import logger

from core.time_utils import (
    PRAYERS,
    add_days, format_date_label, get_now_in_timezone, parse_time_to_minutes,
)


def empty_row(date_key: str) -> dict:
    """Заглушка для дня без записи."""
    return {"date": date_key, "prayers": {}, "fasted": None, "updated_at": ""}


def count_completed(row: dict) -> int:
    prayers = row.get("prayers") or {}
    return sum(1 for prayer in PRAYERS if prayers.get(prayer))


def is_perfect_day(row: dict) -> bool:
    return count_completed(row) == len(PRAYERS)


def _sorted(rows) -> list[dict]:
    return sorted(rows, key=lambda row: row["date"])


def _percent(completed: int, total: int) -> int:
    if total <= 0:
        return 0
    # round half up, как Math.round
    return int(completed * 100 / total + 0.5)


# ──────────────────────── Summary ────────────────────────

def calc_summary(rows) -> dict:
    rows = list(rows)
    total_days = len(rows)
    total = total_days * len(PRAYERS)
    per_day = [count_completed(row) for row in rows]
    completed = sum(per_day)
    return {
        "total_days": total_days,
        "completed": completed,
        "total": total,
        "percent": _percent(completed, total),
        "active_days": sum(1 for count in per_day if count > 0),
        "perfect_days": sum(1 for count in per_day if count == len(PRAYERS)),
        "average_per_day": round(completed / total_days, 2) if total_days else 0,
    }


def calc_daily_stats(rows) -> list[dict]:
    return [
        {"date": row["date"], "completed": count_completed(row), "total": len(PRAYERS)}
        for row in _sorted(rows)
    ]


def format_average_per_day(value: float) -> str:
    """'3.5 (70.0%)' — среднее за день и доля от пяти намазов."""
    percent = round(value / len(PRAYERS) * 100, 1)
    return f"{value} ({percent}%)"


# ──────────────────────── Ranges ────────────────────────

def expand_attendance(rows) -> list[dict]:
    """Плотная последовательность дней от первой до последней даты с заглушками для пропусков."""
    ordered = _sorted(rows)
    if not ordered:
        return []
    by_date = {row["date"]: row for row in ordered}
    end = ordered[-1]["date"]
    expanded = []
    cursor = ordered[0]["date"]
    while cursor <= end:
        expanded.append(by_date.get(cursor) or empty_row(cursor))
        cursor = add_days(cursor, 1)
    return expanded


def filter_by_days(rows, days: int) -> list[dict]:
    """Последние N дней, считая от даты самой свежей записи (а не от сегодня)."""
    ordered = _sorted(rows)
    if not ordered:
        return []
    end = ordered[-1]["date"]
    start = add_days(end, -(days - 1))
    return [row for row in ordered if start <= row["date"] <= end]


def filter_by_range(rows, date_from: str | None = None, date_to: str | None = None) -> list[dict]:
    result = []
    for row in rows:
        if date_from and row["date"] < date_from:
            continue
        if date_to and row["date"] > date_to:
            continue
        result.append(row)
    return result


def filter_by_month(rows, month_key: str) -> list[dict]:
    prefix = f"{month_key}-"
    return [row for row in rows if row["date"].startswith(prefix)]


def rows_for_dates(date_keys, attendance) -> list[dict]:
    """Проекция хранилища на заданный список дат (дни Рамадана)."""
    by_date = {row["date"]: row for row in attendance}
    return [by_date.get(date_key) or empty_row(date_key) for date_key in date_keys]


# ──────────────────────── Streaks & grid ────────────────────────

def calc_streaks(rows, cutoff: str | None = None) -> dict:
    """
    Серии идеальных дней (5/5): текущая (с последнего дня назад) и самая длинная.
    С cutoff дни позже отсечки не учитываются: текущая серия считается от неё.
    """
    expanded = expand_attendance(rows)
    if cutoff:
        expanded = [row for row in expanded if row["date"] <= cutoff]
    longest = 0
    running = 0
    for row in expanded:
        if is_perfect_day(row):
            running += 1
            longest = max(longest, running)
        else:
            running = 0
    return {"current": running, "longest": longest}


def build_prayer_grid(rows) -> dict:
    """Сетка: одна колонка на календарный день, одна строка на намаз."""
    expanded = expand_attendance(rows)
    if not expanded:
        return {"label": "", "dates": [], "rows": {}}
    label = (
        f"{format_date_label(expanded[0]['date'])} → "
        f"{format_date_label(expanded[-1]['date'])}"
    )
    return {
        "label": label,
        "dates": [row["date"] for row in expanded],
        "rows": {
            prayer: [bool((row.get("prayers") or {}).get(prayer)) for row in expanded]
            for prayer in PRAYERS
        },
    }


# ──────────────────────── Win rate ────────────────────────

def _rate(rows, cutoff: str, predicate: Callable[[dict], bool]) -> dict:
    eligible = [row for row in rows if row["date"] <= cutoff]
    completed = sum(1 for row in eligible if predicate(row))
    total = len(eligible)
    return {"percent": _percent(completed, total), "completed": completed, "total": total}


def calc_prayer_rate(rows, cutoff: str) -> dict:
    """Доля идеальных дней среди дней не позже отсечки."""
    return _rate(rows, cutoff, is_perfect_day)


def calc_fasting_rate(rows, cutoff: str) -> dict:
    """Доля дней с fasted=True среди дней не позже отсечки."""
    return _rate(rows, cutoff, lambda row: row.get("fasted") is True)


def pick_win_rate_cutoff(today_key: str, now_minutes: int, isha_minutes: int | None) -> str:
    """Сегодня входит в win rate только когда время Иша уже наступило (now >= Isha)."""
    if isha_minutes is not None and now_minutes >= isha_minutes:
        return today_key
    return add_days(today_key, -1)


async def resolve_win_rate_cutoff(
    api,
    config: dict,
    now_provider: Callable[..., dict] = get_now_in_timezone,
) -> str:
    """
    Дата отсечки для win rate. Требует времён намаза на сегодня;
    без локации или при ошибке API — вчера.
    """
    now = now_provider(config.get("timezone"))
    yesterday = add_days(now["date_key"], -1)

    location = config.get("location")
    if not location:
        return yesterday

    data = await _fetch_timings(api, config, now["date_key"])
    if not data:
        return yesterday

    timezone = config.get("timezone") or (data.get("meta") or {}).get("timezone")
    if timezone != config.get("timezone"):
        fetched_key = now["date_key"]
        now = now_provider(timezone)
        yesterday = add_days(now["date_key"], -1)
        # около полуночи день в поясе локации может отличаться от локального
        if now["date_key"] != fetched_key:
            data = await _fetch_timings(api, config, now["date_key"])
            if not data:
                return yesterday

    isha = parse_time_to_minutes((data.get("timings") or {}).get("Isha"))
    return pick_win_rate_cutoff(now["date_key"], now["minutes"], isha)


async def _fetch_timings(api, config: dict, date_key: str) -> dict | None:
    try:
        return await api.get_timings(
            config["location"],
            date_key=date_key,
            method=config.get("method"),
            school=config.get("school"),
        )
    except Exception as e:
        logger.warning(f"Timings for win rate cutoff unavailable: {e}")
        return None
