import asyncio

import pytest

from core.ramadan import (
    RamadanLookupError, build_ramadan_dates_from_calendar, build_ramadan_dates_from_start,
    format_hijri_label, format_ramadan_period, get_current_hijri_year, is_ramadan_date,
    resolve_ramadan_dates,
)
from core.validators import InputError


def _calendar_item(gregorian: str, hijri_day: int) -> dict:
    return {
        "date": {
            "gregorian": {"date": gregorian},
            "hijri": {"day": str(hijri_day), "month": {"number": 9, "en": "Ramaḍān"}, "year": "1447"},
        }
    }


def test_dates_from_start_without_labels():
    dates = asyncio.run(build_ramadan_dates_from_start("2026-02-19", 30))
    assert len(dates) == 30
    assert dates[0]["date_key"] == "2026-02-19"
    assert dates[-1]["date_key"] == "2026-03-20"
    assert dates[0]["gregorian_label"] == "19 Feb 2026"
    assert all(d["hijri_label"] == "" for d in dates)


def test_dates_from_start_are_consecutive():
    dates = asyncio.run(build_ramadan_dates_from_start("2026-02-25", 10))
    keys = [d["date_key"] for d in dates]
    assert keys[3:6] == ["2026-02-28", "2026-03-01", "2026-03-02"]
    assert keys == sorted(keys)


def test_dates_from_start_keep_order_with_concurrent_labels(fake_api):
    api = fake_api()
    dates = asyncio.run(build_ramadan_dates_from_start("2026-02-19", 12, api))
    assert [d["date_key"] for d in dates] == [
        "2026-02-19", "2026-02-20", "2026-02-21", "2026-02-22", "2026-02-23", "2026-02-24",
        "2026-02-25", "2026-02-26", "2026-02-27", "2026-02-28", "2026-03-01", "2026-03-02",
    ]
    # подпись соответствует своей дате
    assert dates[0]["hijri_label"] == "19 Ramadan 1447"
    assert dates[10]["hijri_label"] == "1 Ramadan 1447"


def test_dates_from_start_fail_when_any_conversion_fails():
    class FlakyAPI:
        async def get_hijri_by_date(self, date_key):
            if date_key == "2026-02-21":
                raise ConnectionError("timeout")
            return {"hijri": {"day": "1", "month": {"en": "Ramaḍān"}, "year": "1447"}}

    with pytest.raises(RamadanLookupError):
        asyncio.run(build_ramadan_dates_from_start("2026-02-19", 5, FlakyAPI()))


def test_dates_from_start_fail_on_empty_conversion(fake_api):
    with pytest.raises(RamadanLookupError):
        asyncio.run(build_ramadan_dates_from_start("2026-02-19", 3, fake_api(fail=True)))


def test_dates_from_calendar_are_sorted():
    items = [
        _calendar_item("20-02-2026", 2),
        _calendar_item("19-02-2026", 1),
        _calendar_item("01-03-2026", 11),
    ]
    dates = build_ramadan_dates_from_calendar(items)
    assert [d["date_key"] for d in dates] == ["2026-02-19", "2026-02-20", "2026-03-01"]
    assert dates[0]["hijri_label"] == "1 Ramaḍān 1447"


def test_resolve_uses_calendar_without_start(fake_api, location):
    api = fake_api(calendar=[_calendar_item("19-02-2026", 1), _calendar_item("20-02-2026", 2)])
    config = {"location": location, "method": 20, "school": 0}
    dates = asyncio.run(resolve_ramadan_dates(api, config, 1447))
    assert [d["date_key"] for d in dates] == ["2026-02-19", "2026-02-20"]
    assert api.calls == [("hijriCalendar", 1447, 9)]


def test_resolve_with_start_skips_calendar(fake_api, location):
    api = fake_api()
    dates = asyncio.run(resolve_ramadan_dates(api, {"location": location}, 1447, start="2026-02-19", days=3))
    assert [d["date_key"] for d in dates] == ["2026-02-19", "2026-02-20", "2026-02-21"]
    assert api.calls == []


def test_resolve_with_start_defaults_to_thirty_days(fake_api, location):
    dates = asyncio.run(resolve_ramadan_dates(fake_api(), {"location": location}, 1447, start="2026-02-19"))
    assert len(dates) == 30


def test_resolve_empty_calendar_raises(fake_api, location):
    with pytest.raises(RamadanLookupError):
        asyncio.run(resolve_ramadan_dates(fake_api(fail=True), {"location": location}, 1447))


def test_resolve_requires_location(fake_api):
    with pytest.raises(InputError):
        asyncio.run(resolve_ramadan_dates(fake_api(), {}, 1447))


def test_is_ramadan_date(fake_api):
    assert asyncio.run(is_ramadan_date(fake_api(), "2026-02-19")) is True
    assert asyncio.run(is_ramadan_date(fake_api(fail=True), "2026-02-19")) is False


def test_is_ramadan_date_outside_ramadan():
    class ShawwalAPI:
        async def get_hijri_by_date(self, date_key):
            return {"hijri": {"day": "1", "month": {"number": 10, "en": "Shawwāl"}, "year": "1447"}}

    assert asyncio.run(is_ramadan_date(ShawwalAPI(), "2026-03-21")) is False


def test_is_ramadan_date_swallows_errors():
    class BrokenAPI:
        async def get_hijri_by_date(self, date_key):
            raise ConnectionError("offline")

    assert asyncio.run(is_ramadan_date(BrokenAPI(), "2026-02-19")) is False
    assert asyncio.run(get_current_hijri_year(BrokenAPI(), "2026-02-19")) is None


def test_current_hijri_year(fake_api):
    assert asyncio.run(get_current_hijri_year(fake_api(), "2026-02-19")) == 1447


def test_labels():
    hijri = {"day": "1", "month": {"en": "Ramaḍān"}, "year": "1447"}
    assert format_hijri_label(hijri) == "1 Ramaḍān 1447"
    assert format_ramadan_period(1447, 30) == "1 Ramadan 1447 → 30 Ramadan 1447"
