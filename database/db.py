"""
Асинхронная работа с SQLite через aiosqlite.
Хранилище посещаемости (ключ — дата YYYY-MM-DD) и пользовательских настроек:
локация, метод расчёта, мазхаб, часовой пояс.
"""

import json
import os
from datetime import datetime, timezone
from typing import Optional

import aiosqlite
from loguru import logger

from config import DATABASE_PATH
from core.time_utils import PRAYERS
from core.validators import InputError, parse_date_key
from database.models import CREATE_TABLES_SQL, PRAYER_COLUMNS, SETTING_KEYS


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def _to_flag(value) -> Optional[bool]:
    return None if value is None else bool(value)


def _row_to_attendance(row) -> dict:
    prayers = {}
    for prayer, column in PRAYER_COLUMNS.items():
        if row[column] is not None:
            prayers[prayer] = bool(row[column])
    return {
        "date": row["date"],
        "prayers": prayers,
        "fasted": _to_flag(row["fasted"]),
        "updated_at": row["updated_at"],
    }


class Database:
    def __init__(self, db_path: str = DATABASE_PATH):
        self.db_path = db_path
        self._conn: Optional[aiosqlite.Connection] = None

    async def connect(self):
        """Подключение к БД и создание таблиц."""
        directory = os.path.dirname(self.db_path)
        if directory:
            os.makedirs(directory, exist_ok=True)
        self._conn = await aiosqlite.connect(self.db_path)
        self._conn.row_factory = aiosqlite.Row

        await self._conn.execute("PRAGMA journal_mode=WAL")
        await self._conn.execute("PRAGMA synchronous=NORMAL")

        await self._conn.executescript(CREATE_TABLES_SQL)
        await self._conn.commit()
        logger.debug(f"Database connected: {self.db_path}")

    async def close(self):
        """Закрытие соединения."""
        if self._conn:
            await self._conn.close()
            self._conn = None
            logger.debug("Database connection closed")

    async def __aenter__(self):
        await self.connect()
        return self

    async def __aexit__(self, *exc):
        await self.close()

    # ──────────────────────── Settings ────────────────────────

    async def get_config(self) -> dict:
        """Настройки пользователя: {location, method, school, timezone}."""
        cursor = await self._conn.execute("SELECT key, value FROM settings")
        stored = {row["key"]: json.loads(row["value"]) for row in await cursor.fetchall()}
        return {key: stored.get(key) for key in SETTING_KEYS}

    async def set_config(self, values: dict) -> dict:
        """
        Записать настройки. Ключ со значением None удаляется,
        кроме location — она сохраняется, если новая не передана.
        """
        for key, value in values.items():
            if key not in SETTING_KEYS:
                raise KeyError(f"Unknown setting: {key}")
            if value is None:
                if key == "location":
                    continue
                await self._conn.execute("DELETE FROM settings WHERE key = ?", (key,))
                continue
            await self._conn.execute(
                "INSERT INTO settings (key, value) VALUES (?, ?) "
                "ON CONFLICT(key) DO UPDATE SET value = excluded.value, "
                "updated_at = CURRENT_TIMESTAMP",
                (key, json.dumps(value)),
            )
        await self._conn.commit()
        return await self.get_config()

    async def clear_all(self):
        """Полный сброс: настройки и вся посещаемость."""
        await self._conn.execute("DELETE FROM settings")
        await self._conn.execute("DELETE FROM attendance")
        await self._conn.commit()
        logger.info("All stored data cleared")

    # ──────────────────────── Attendance ────────────────────────

    async def get_attendance(self, date_key: str) -> Optional[dict]:
        cursor = await self._conn.execute(
            "SELECT * FROM attendance WHERE date = ?", (date_key,)
        )
        row = await cursor.fetchone()
        return _row_to_attendance(row) if row else None

    async def list_attendance(self) -> list[dict]:
        """Все записи по возрастанию даты."""
        cursor = await self._conn.execute("SELECT * FROM attendance ORDER BY date ASC")
        return [_row_to_attendance(row) for row in await cursor.fetchall()]

    async def set_attendance(
        self, date_key: str, prayers: dict, fasted: Optional[bool] = None
    ) -> dict:
        """
        Слить отметки с существующей записью: новые значения перезаписывают старые,
        непереданные намазы сохраняются. fasted=None оставляет прежнее значение.
        """
        values = [prayers.get(prayer) for prayer in PRAYERS]
        columns = list(PRAYER_COLUMNS.values())
        updates = ", ".join(
            f"{column} = COALESCE(excluded.{column}, attendance.{column})"
            for column in columns + ["fasted"]
        )
        await self._conn.execute(
            f"INSERT INTO attendance (date, {', '.join(columns)}, fasted, updated_at) "
            f"VALUES (?, ?, ?, ?, ?, ?, ?, ?) "
            f"ON CONFLICT(date) DO UPDATE SET {updates}, updated_at = excluded.updated_at",
            (date_key, *values, fasted, _now_iso()),
        )
        await self._conn.commit()
        logger.debug(f"Attendance saved: {date_key}")
        return await self.get_attendance(date_key)

    # ──────────────────────── Export / Import ────────────────────────

    async def export_data(self) -> dict:
        data = await self.get_config()
        data["attendance"] = {
            row["date"]: row for row in await self.list_attendance()
        }
        return data

    async def import_data(self, payload: dict) -> int:
        """Заменить все данные содержимым экспорта. Возвращает число дней."""
        settings, records = validate_import(payload)
        try:
            await self._conn.execute("DELETE FROM settings")
            await self._conn.execute("DELETE FROM attendance")
            for key, value in settings.items():
                await self._conn.execute(
                    "INSERT INTO settings (key, value) VALUES (?, ?)",
                    (key, json.dumps(value)),
                )
            for record in records:
                await self._conn.execute(
                    f"INSERT INTO attendance (date, {', '.join(PRAYER_COLUMNS.values())}, "
                    f"fasted, updated_at) VALUES (?, ?, ?, ?, ?, ?, ?, ?)",
                    (
                        record["date"],
                        *(record["prayers"].get(prayer) for prayer in PRAYERS),
                        record["fasted"],
                        record["updated_at"],
                    ),
                )
        except Exception:
            await self._conn.rollback()
            logger.error("Import failed, previous data restored")
            raise
        await self._conn.commit()
        logger.info(f"Imported {len(records)} attendance days")
        return len(records)


def _validate_location(value) -> dict:
    if not isinstance(value, dict):
        raise InputError("Invalid import data: location must be an object")
    if value.get("type") == "city":
        city, country = value.get("city"), value.get("country")
        if not (isinstance(city, str) and city and isinstance(country, str) and country):
            raise InputError("Invalid import data: city location needs city and country")
        return {"type": "city", "city": city, "country": country}
    if value.get("type") == "address":
        address = value.get("address")
        if not (isinstance(address, str) and address):
            raise InputError("Invalid import data: address location needs address")
        return {"type": "address", "address": address}
    raise InputError("Invalid import data: unknown location type")


def validate_import(payload) -> tuple[dict, list[dict]]:
    """Проверить структуру экспорта. Возвращает (настройки, записи посещаемости)."""
    if not isinstance(payload, dict):
        raise InputError("Invalid import data: expected a JSON object")

    settings = {}
    if payload.get("location") is not None:
        settings["location"] = _validate_location(payload["location"])
    for key in ("method", "school"):
        value = payload.get(key)
        if value is None:
            continue
        if isinstance(value, bool) or not isinstance(value, int):
            raise InputError(f"Invalid import data: {key} must be an integer")
        settings[key] = value
    if payload.get("timezone") is not None:
        if not isinstance(payload["timezone"], str):
            raise InputError("Invalid import data: timezone must be a string")
        settings["timezone"] = payload["timezone"]

    attendance = payload.get("attendance")
    if attendance is None:
        attendance = {}
    if not isinstance(attendance, dict):
        raise InputError("Invalid import data: attendance must be an object")

    records = []
    for date_key, entry in attendance.items():
        parse_date_key(date_key)
        if not isinstance(entry, dict) or not isinstance(entry.get("prayers", {}), dict):
            raise InputError(f"Invalid import data: bad record for {date_key}")
        prayers = {}
        for prayer, flag in entry.get("prayers", {}).items():
            if prayer not in PRAYER_COLUMNS or not isinstance(flag, bool):
                raise InputError(f"Invalid import data: bad prayer '{prayer}' on {date_key}")
            prayers[prayer] = flag
        fasted = entry.get("fasted")
        if fasted is not None and not isinstance(fasted, bool):
            raise InputError(f"Invalid import data: bad fasted flag on {date_key}")
        updated_at = entry.get("updated_at", entry.get("updatedAt", ""))
        if not isinstance(updated_at, str):
            raise InputError(f"Invalid import data: bad updated_at on {date_key}")
        records.append({
            "date": date_key,
            "prayers": prayers,
            "fasted": fasted,
            "updated_at": updated_at,
        })
    records.sort(key=lambda r: r["date"])
    return settings, records
