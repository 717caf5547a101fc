"""
Расписание намазов: на день (с текущим и следующим намазом), на месяц
и на весь Рамадан.
"""

from loguru import logger

from config import MSG_SCHEDULE_UNAVAILABLE
from core.aladhan_api import AladhanAPI
from core.prayer_status import compute_prayer_status, describe_status, describe_timezone, resolve_timezone
from core.ramadan import get_current_hijri_year, resolve_ramadan_calendar
from core.time_utils import (
    extract_time, get_now_in_timezone, to_date_key_from_gregorian,
)
from core.validators import (
    InputError, parse_date_key, parse_hijri_year, parse_month, parse_optional_int,
)
from database.db import Database
from cli.handlers.setup import format_location, location_from_args
from cli.render import (
    accent, bold, cyan, dim, now_accent, plain,
    render_header, render_line, render_table, yellow,
)


DAILY_COLUMNS = ("Imsak", "Fajr", "Sunrise", "Dhuhr", "Asr", "Maghrib", "Isha")


def validate_options(args):
    """Взаимоисключающие опции."""
    if args.ramadan and args.month:
        raise InputError("Use either --ramadan or --month, not both.")
    if args.ramadan and args.date:
        raise InputError("Use either --ramadan or --date, not both.")
    if args.ramadan_year and (args.month or args.date):
        raise InputError("Use --ramadan-year only with --ramadan.")
    if args.month and args.date:
        raise InputError("Use either --month or --date, not both.")


def render_daily(data: dict, location: dict, config: dict, now: dict = None):
    timings = data["timings"]
    meta_timezone = (data.get("meta") or {}).get("timezone")
    timezone = resolve_timezone(config, meta_timezone)
    if now is None:
        now = get_now_in_timezone(timezone)

    status = compute_prayer_status(timings, now["minutes"])
    current_label, next_label = describe_status(status, timings)

    hijri = data["date"]["hijri"]
    hijri_label = f"{hijri['date']} {hijri['month']['en']} {hijri['year']}"

    render_header("Ramadan")
    render_line(f"{bold('Date:')} {data['date']['readable']}   {dim(f'Hijri: {hijri_label}')}")
    render_line()
    render_line(f"{dim('Location:')} {plain(format_location(location))}")
    render_line(f"{dim('Timezone:')} {describe_timezone(config, meta_timezone)}")
    render_line(f"{dim('Roza day:')} {hijri['day']}")
    render_line()

    headers = []
    values = []
    for name in DAILY_COLUMNS:
        highlight = accent if status["next"] == name else str
        headers.append(highlight(name))
        values.append(highlight(timings.get(name, "--")))
    render_table(headers, [values], left_columns=0)
    render_line()
    render_line(f"{dim('• Now:')} {now_accent(now['label'])}")
    render_line(f"{dim('• Current:')} {accent(current_label)}")
    render_line(f"{dim('• Upcoming:')} {accent(next_label)}")


def render_monthly(items: list[dict]):
    if not items:
        render_line(yellow("No schedule data found for this month."))
        return
    gregorian = items[0]["date"]["gregorian"]
    render_line(bold(f"Schedule for {gregorian['month']['en']} {gregorian['year']}"))
    render_line(dim(f"Timezone: {items[0]['meta']['timezone']}"))
    render_line()
    for item in items:
        t = item["timings"]
        render_line(
            f"{cyan(item['date']['readable'])}  Fajr {t['Fajr']}  Dhuhr {t['Dhuhr']}  "
            f"Asr {t['Asr']}  Maghrib {t['Maghrib']}  Isha {t['Isha']}"
        )


def render_ramadan(items: list[dict], hijri_year: int, today_key: str):
    if not items:
        render_line(yellow("No schedule data found for Ramadan."))
        return
    headers = ["#", "Date", "Hijri", "Fajr", "Dhuhr", "Asr", "Maghrib", "Isha"]
    rows = []
    for index, item in enumerate(items, start=1):
        t = item["timings"]
        hijri = item["date"]["hijri"]
        values = [
            str(index),
            item["date"]["readable"],
            f"{hijri['day']} {hijri['month']['en']}",
            *(extract_time(t[name]) for name in ("Fajr", "Dhuhr", "Asr", "Maghrib", "Isha")),
        ]
        if to_date_key_from_gregorian(item["date"]["gregorian"]["date"]) == today_key:
            values = [accent(value) for value in values]
        rows.append(values)

    render_header("Schedule")
    title = f"Ramadan {hijri_year}"
    timezone = f"Timezone: {items[0]['meta']['timezone']}"
    render_line(f"{title}   {dim(timezone)}")
    render_line()
    render_table(headers, rows, left_columns=3)


async def cmd_schedule(args, db: Database, api: AladhanAPI, **kwargs):
    validate_options(args)

    config = await db.get_config()
    location = location_from_args(args) or config.get("location")
    if not location:
        raise InputError("Location is required. Run: roza setup --city <city> --country <country>")

    method = parse_optional_int(args.method)
    if method is None:
        method = config.get("method")
    school = parse_optional_int(args.school)
    if school is None:
        school = config.get("school")

    today_key = get_now_in_timezone(config.get("timezone"))["date_key"]

    if args.ramadan or args.ramadan_year:
        if args.ramadan_year:
            hijri_year = parse_hijri_year(args.ramadan_year)
        else:
            hijri_year = await get_current_hijri_year(api, today_key)
            if hijri_year is None:
                raise InputError(MSG_SCHEDULE_UNAVAILABLE)
        items = await resolve_ramadan_calendar(api, location, hijri_year, method, school)
        render_ramadan(items, hijri_year, today_key)
    elif args.month:
        year, month = parse_month(args.month)
        items = await api.get_calendar(location, year, month, method=method, school=school)
        if not items:
            raise InputError(MSG_SCHEDULE_UNAVAILABLE)
        render_monthly(items)
    else:
        date_key = parse_date_key(args.date) if args.date else today_key
        data = await api.get_timings(location, date_key=date_key, method=method, school=school)
        if not data:
            raise InputError(MSG_SCHEDULE_UNAVAILABLE)
        render_daily(data, location, config)

    if args.save:
        await db.set_config({"location": location, "method": method, "school": school})
        logger.debug(f"Schedule settings saved: {format_location(location)}")


def register(subparsers):
    parser = subparsers.add_parser("schedule", help="Show Ramadan and daily prayer schedules")
    parser.add_argument("-d", "--date", help="Date in YYYY-MM-DD format")
    parser.add_argument("-m", "--month", help="Month in YYYY-MM format")
    parser.add_argument("--city", help="City for prayer times")
    parser.add_argument("--country", help="Country for prayer times")
    parser.add_argument("--address", help="Full address for prayer times")
    parser.add_argument("--method", help="Calculation method id")
    parser.add_argument("--school", help="School id (0 = Shafi, 1 = Hanafi)")
    parser.add_argument("--ramadan", action="store_true", help="Show Ramadan schedule (Hijri month 9)")
    parser.add_argument("--ramadan-year", help="Hijri year for Ramadan (e.g. 1447)")
    parser.add_argument("--no-save", dest="save", action="store_false", help="Do not persist location/method")
    parser.set_defaults(handler=cmd_schedule)
