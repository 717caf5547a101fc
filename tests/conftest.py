import asyncio
from datetime import date

import pytest
from rich.console import Console

from cli import render
from core.time_utils import PRAYERS


TIMINGS = {
    "Imsak": "04:50",
    "Fajr": "05:00",
    "Sunrise": "06:10",
    "Dhuhr": "12:00",
    "Asr": "15:30",
    "Maghrib": "18:00",
    "Isha": "19:15",
}


class FakeAPI:
    """Подмена AladhanAPI без сети."""

    def __init__(self, timings=None, timezone="Asia/Jakarta", fail=False, calendar=None):
        self.timings = dict(TIMINGS if timings is None else timings)
        self.timezone = timezone
        self.fail = fail
        self.calendar = calendar
        self.calls = []

    async def get_timings(self, location, date_key=None, method=None, school=None):
        self.calls.append(("timings", date_key, method, school))
        if self.fail:
            return None
        return {"timings": self.timings, "meta": {"timezone": self.timezone}}

    async def get_hijri_by_date(self, date_key):
        self.calls.append(("gToH", date_key))
        if self.fail:
            return None
        day = date.fromisoformat(date_key)
        # более поздние даты отвечают быстрее: порядок завершения обратный
        await asyncio.sleep((31 - day.day) / 10000)
        return {
            "hijri": {"day": str(day.day), "month": {"number": 9, "en": "Ramadan"}, "year": "1447"},
        }

    async def get_hijri_calendar(self, location, hijri_year, hijri_month=9, method=None, school=None):
        self.calls.append(("hijriCalendar", hijri_year, hijri_month))
        if self.fail:
            return []
        return self.calendar or []

    async def get_calendar(self, location, year, month, method=None, school=None):
        return []

    async def get_methods(self):
        if self.fail:
            return None
        return {
            "MWL": {"id": 3, "name": "Muslim World League"},
            "KEMENAG": {"id": 20, "name": "Kementerian Agama Republik Indonesia"},
            "CUSTOM": {"id": 99},
        }


@pytest.fixture
def fake_api():
    return FakeAPI


@pytest.fixture
def make_row():
    def _make(date_key, done=(), fasted=None, updated_at="2026-02-19T12:00:00.000Z"):
        if done == "all":
            done = PRAYERS
        return {
            "date": date_key,
            "prayers": {prayer: True for prayer in done},
            "fasted": fasted,
            "updated_at": updated_at,
        }
    return _make


@pytest.fixture
def db_path(tmp_path):
    return str(tmp_path / "roza.db")


@pytest.fixture
def location():
    return {"type": "city", "city": "Jakarta", "country": "Indonesia"}


@pytest.fixture(autouse=True)
def plain_console(monkeypatch):
    """Вывод без цвета и с широкой строкой, чтобы таблицы не переносились."""
    monkeypatch.setattr(render, "console", Console(color_system=None, highlight=False, width=160))
    monkeypatch.setattr(
        render, "error_console", Console(stderr=True, color_system=None, highlight=False, width=160),
    )
