import asyncio
import json

import pytest

import main
from cli.handlers import attendance, data, history, recap, schedule, setup
from core.time_utils import get_now_in_timezone
from core.validators import InputError
from database.db import Database


def run_handler(db_path, api, handler, argv, prepare=None):
    args = main.parse_args(argv)

    async def _run():
        async with Database(db_path) as db:
            if prepare:
                await prepare(db)
            await handler(args, db=db, api=api)
            return await db.get_config(), await db.list_attendance()

    return asyncio.run(_run())


def test_no_arguments_runs_schedule():
    args = main.parse_args([])
    assert args.command == "schedule"
    assert args.handler is schedule.cmd_schedule
    assert args.save is True


def test_data_commands_skip_setup():
    for argv in (["export"], ["import"], ["reset"], ["about"], ["setup"]):
        assert main.parse_args(argv).skip_setup is True
    assert not getattr(main.parse_args(["mark"]), "skip_setup", False)


def test_history_date_options():
    args = main.parse_args(["history", "--from", "2026-02-19", "-t", "2026-02-25"])
    assert args.date_from == "2026-02-19"
    assert args.date_to == "2026-02-25"


def test_fast_flags_are_tri_state():
    assert main.parse_args(["fast"]).fasted is None
    assert main.parse_args(["fast", "--yes"]).fasted is True
    assert main.parse_args(["fast", "--no"]).fasted is False
    assert main.parse_args(["backfill", "-d", "2026-02-19"]).fasted is None
    assert main.parse_args(["backfill", "-d", "2026-02-19", "--not-fasted"]).fasted is False


def test_build_selection():
    args = main.parse_args(["mark", "fajr", "Dhuhr", "--missed", "asr"])
    assert attendance.build_selection(args) == {"Fajr": True, "Dhuhr": True, "Asr": False}

    args = main.parse_args(["mark", "--all", "--missed", "Isha"])
    selection = attendance.build_selection(args)
    assert selection["Isha"] is False
    assert selection["Fajr"] is True

    args = main.parse_args(["mark", "Fajr", "--missed", "fajr"])
    with pytest.raises(InputError):
        attendance.build_selection(args)


def test_schedule_rejects_conflicting_options():
    for argv in (
        ["schedule", "--ramadan", "--month", "2026-03"],
        ["schedule", "--ramadan", "--date", "2026-02-19"],
        ["schedule", "--ramadan-year", "1447", "--month", "2026-03"],
        ["schedule", "--month", "2026-03", "--date", "2026-02-19"],
    ):
        with pytest.raises(InputError):
            schedule.validate_options(main.parse_args(argv))


def test_location_from_args():
    args = main.parse_args(["setup", "--city", "Jakarta", "--country", "Indonesia"])
    assert setup.location_from_args(args) == {"type": "city", "city": "Jakarta", "country": "Indonesia"}
    args = main.parse_args(["setup", "--address", "Masjid Istiqlal"])
    assert setup.location_from_args(args) == {"type": "address", "address": "Masjid Istiqlal"}
    assert setup.location_from_args(main.parse_args(["setup"])) is None
    with pytest.raises(InputError):
        setup.location_from_args(main.parse_args(["setup", "--city", "Jakarta"]))


def test_setup_picks_indonesian_method(db_path, fake_api, capsys):
    argv = ["setup", "--city", "Jakarta", "--country", "Indonesia", "--timezone", "Asia/Jakarta"]
    config, _ = run_handler(db_path, fake_api(), setup.cmd_setup, argv)
    assert config["method"] == 20
    assert config["school"] == 0
    assert config["timezone"] == "Asia/Jakarta"
    assert "Setup complete." in capsys.readouterr().out


def test_setup_rejects_unknown_timezone(db_path, fake_api):
    argv = ["setup", "--city", "Jakarta", "--country", "Indonesia", "--timezone", "Nowhere/City"]
    with pytest.raises(InputError):
        run_handler(db_path, fake_api(), setup.cmd_setup, argv)


def test_ensure_setup_detects_location(db_path, fake_api, monkeypatch):
    async def fake_guess():
        return {"city": "Bandung", "country": "Indonesia", "timezone": "Asia/Jakarta"}

    monkeypatch.setattr(setup, "guess_location", fake_guess)

    async def scenario():
        async with Database(db_path) as db:
            return await setup.ensure_setup(db, fake_api())

    config = asyncio.run(scenario())
    assert config["location"] == {"type": "city", "city": "Bandung", "country": "Indonesia"}
    assert config["method"] == 20
    assert config["timezone"] == "Asia/Jakarta"


def test_ensure_setup_fails_without_detection(db_path, fake_api, monkeypatch):
    async def fake_guess():
        return None

    monkeypatch.setattr(setup, "guess_location", fake_guess)

    async def scenario():
        async with Database(db_path) as db:
            return await setup.ensure_setup(db, fake_api())

    with pytest.raises(InputError):
        asyncio.run(scenario())


def test_mark_saves_today(db_path, fake_api, capsys):
    _, rows = run_handler(db_path, fake_api(), attendance.cmd_mark, ["mark", "Fajr", "--missed", "Asr"])
    today = get_now_in_timezone()["date_key"]
    assert rows[0]["date"] == today
    assert rows[0]["prayers"] == {"Fajr": True, "Asr": False}
    assert "Saved." in capsys.readouterr().out


def test_backfill_rejects_future_date(db_path, fake_api):
    with pytest.raises(InputError):
        run_handler(db_path, fake_api(), attendance.cmd_backfill, ["backfill", "-d", "2999-01-01", "--all"])


def test_backfill_records_fast(db_path, fake_api):
    argv = ["backfill", "-d", "2026-02-19", "Isha", "--fasted"]
    _, rows = run_handler(db_path, fake_api(), attendance.cmd_backfill, argv)
    assert rows == [{
        "date": "2026-02-19",
        "prayers": {"Isha": True},
        "fasted": True,
        "updated_at": rows[0]["updated_at"],
    }]


def test_fast_outside_ramadan_does_not_save(db_path, capsys):
    class ShawwalAPI:
        async def get_hijri_by_date(self, date_key):
            return {"hijri": {"day": "1", "month": {"number": 10, "en": "Shawwal"}, "year": "1447"}}

    _, rows = run_handler(db_path, ShawwalAPI(), attendance.cmd_fast, ["fast", "--yes"])
    assert rows == []
    assert "not a Ramadan day" in capsys.readouterr().out


def test_fast_during_ramadan(db_path, fake_api, capsys):
    _, rows = run_handler(db_path, fake_api(), attendance.cmd_fast, ["fast", "--yes"])
    assert rows[0]["fasted"] is True
    assert "MashaAllah" in capsys.readouterr().out


def test_history_with_ramadan_start(db_path, fake_api, location, capsys):
    async def prepare(db):
        await db.set_config({"location": location, "method": 20, "school": 0})
        await db.set_attendance("2026-02-19", {"Fajr": True, "Dhuhr": True})

    argv = ["history", "--ramadan-start", "2026-02-19", "--ramadan-days", "3"]
    run_handler(db_path, fake_api(), history.cmd_history, argv, prepare)
    out = capsys.readouterr().out
    assert "19 Feb 2026" in out
    assert "21 Feb 2026" in out
    assert "19 Ramadan 1447" in out
    assert "2/15 prayers (13%)" in out


def test_history_without_records(db_path, fake_api, capsys):
    run_handler(db_path, fake_api(), history.cmd_history, ["history"])
    assert "No attendance records yet." in capsys.readouterr().out


def test_history_by_month(db_path, fake_api, capsys):
    async def prepare(db):
        await db.set_attendance("2026-02-19", {"Fajr": True})
        await db.set_attendance("2026-03-01", {"Fajr": True})

    run_handler(db_path, fake_api(), history.cmd_history, ["history", "-m", "2026-03"], prepare)
    out = capsys.readouterr().out
    assert "Month: 2026-03" in out
    assert "01 Mar 2026" in out
    assert "19 Feb 2026" not in out


def test_recap_range(db_path, fake_api, location, capsys):
    async def prepare(db):
        await db.set_config({"location": location, "method": 20, "school": 0})
        await db.set_attendance("2026-02-19", {p: True for p in ("Fajr", "Dhuhr", "Asr", "Maghrib", "Isha")})
        await db.set_attendance("2026-02-20", {"Fajr": True})

    run_handler(db_path, fake_api(), recap.cmd_recap, ["recap", "-r", "7d"], prepare)
    out = capsys.readouterr().out
    assert "Consistency snapshot" in out
    assert "last 7 days" in out
    assert "Perfect days: 1/2" in out
    assert "Fasting win rate" not in out


def test_recap_ramadan_by_default(db_path, fake_api, location, capsys):
    async def prepare(db):
        await db.set_config({"location": location, "method": 20, "school": 0})

    argv = ["recap", "--ramadan-start", "2026-02-19", "--ramadan-days", "30"]
    run_handler(db_path, fake_api(), recap.cmd_recap, argv, prepare)
    out = capsys.readouterr().out
    assert "Ramadan consistency" in out
    assert "1 Ramadan 1447 → 30 Ramadan 1447" in out
    assert "Fasting win rate" in out
    assert "19 Feb 2026 → 20 Mar 2026" in out


def test_export_and_import(db_path, tmp_path, fake_api, location):
    export_file = tmp_path / "backup.json"

    async def prepare(db):
        await db.set_config({"location": location, "method": 20, "school": 0})
        await db.set_attendance("2026-02-19", {"Fajr": True}, fasted=True)

    run_handler(db_path, fake_api(), data.cmd_export, ["export", "-f", str(export_file)], prepare)
    payload = json.loads(export_file.read_text(encoding="utf-8"))
    assert payload["location"] == location
    assert payload["attendance"]["2026-02-19"]["fasted"] is True

    other = str(tmp_path / "other.db")
    config, rows = run_handler(other, fake_api(), data.cmd_import, ["import", "-f", str(export_file), "-y"])
    assert config["method"] == 20
    assert [row["date"] for row in rows] == ["2026-02-19"]


def test_import_invalid_json(db_path, tmp_path, fake_api):
    broken = tmp_path / "broken.json"
    broken.write_text("{not json", encoding="utf-8")
    with pytest.raises(InputError):
        run_handler(db_path, fake_api(), data.cmd_import, ["import", "-f", str(broken), "-y"])


def test_reset_requires_confirmation(db_path, fake_api, location, monkeypatch):
    async def prepare(db):
        await db.set_config({"location": location})

    monkeypatch.setattr("builtins.input", lambda prompt="": "n")
    config, _ = run_handler(db_path, fake_api(), data.cmd_reset, ["reset"], prepare)
    assert config["location"] == location

    config, _ = run_handler(db_path, fake_api(), data.cmd_reset, ["reset", "--yes"])
    assert config["location"] is None


def test_main_reports_input_errors(tmp_path, monkeypatch, capsys):
    monkeypatch.setattr(main, "setup_logging", lambda: None)
    monkeypatch.setattr(main, "Database", lambda: Database(str(tmp_path / "main.db")))
    code = main.main(["import", "-f", str(tmp_path / "missing.json"), "-y"])
    assert code == 1
    assert "Failed to read import file" in capsys.readouterr().err
