"""
История посещаемости: таблица по датам, фильтры по диапазону и месяцу,
режим Рамадана с подписями хиджры.
"""

from config import DEFAULT_RAMADAN_DAYS, DEFAULT_RAMADAN_YEAR, MSG_LEGEND_HISTORY, MSG_NO_RAMADAN_RECORDS, MSG_NO_RECORDS
from core.aladhan_api import AladhanAPI
from core.ramadan import format_ramadan_period, resolve_ramadan_dates
from core.recap import calc_summary, filter_by_month, filter_by_range, rows_for_dates
from core.time_utils import PRAYERS, format_date_label
from core.validators import parse_date_key, parse_days, parse_hijri_year, parse_month_key
from database.db import Database
from cli.render import check_mark, dim, render_header, render_line, render_table


def format_range_label(date_from: str = None, date_to: str = None, month: str = None) -> str:
    if month:
        return f"Month: {month}"
    if date_from and date_to:
        return f"{date_from} → {date_to}"
    if date_from:
        return f"{date_from} → ..."
    if date_to:
        return f"... → {date_to}"
    return "All time"


def _render_total(rows: list[dict]):
    summary = calc_summary(rows)
    render_line(
        f"{dim('• Total:')} {summary['total_days']} days • "
        f"{summary['completed']}/{summary['total']} prayers ({summary['percent']}%)"
    )
    render_line()


def _prayer_cells(row: dict) -> list[str]:
    prayers = row.get("prayers") or {}
    return [check_mark(bool(prayers.get(prayer))) for prayer in PRAYERS]


async def cmd_history(args, db: Database, api: AladhanAPI, **kwargs):
    date_from = parse_date_key(args.date_from) if args.date_from else None
    date_to = parse_date_key(args.date_to) if args.date_to else None
    month = parse_month_key(args.month) if args.month else None
    ramadan_start = parse_date_key(args.ramadan_start) if args.ramadan_start else None
    ramadan_days = parse_days(args.ramadan_days) if args.ramadan_days else None
    ramadan_year = parse_hijri_year(args.ramadan_year) if args.ramadan_year else DEFAULT_RAMADAN_YEAR
    use_ramadan = bool(args.ramadan or ramadan_start or ramadan_days)

    attendance = await db.list_attendance()

    if use_ramadan:
        config = await db.get_config()
        dates = await resolve_ramadan_dates(
            api, config, ramadan_year,
            start=ramadan_start, days=ramadan_days or DEFAULT_RAMADAN_DAYS,
            with_labels=True,
        )
        if not dates:
            render_line(dim(MSG_NO_RAMADAN_RECORDS))
            return
        rows = rows_for_dates([d["date_key"] for d in dates], attendance)

        render_header("History")
        render_line(f"{dim('• Range:')} Ramadan")
        render_line(f"{dim('• Hijri:')} {format_ramadan_period(ramadan_year, len(dates))}")
        _render_total(rows)
        table = [
            [d["gregorian_label"], d["hijri_label"], *_prayer_cells(row)]
            for d, row in zip(dates, rows)
        ]
        render_table(["Date", "Hijri", *PRAYERS], table, left_columns=2)
        render_line()
        render_line(dim(MSG_LEGEND_HISTORY))
        return

    rows = filter_by_range(attendance, date_from, date_to)
    if month:
        rows = filter_by_month(rows, month)
    if not rows:
        render_line(dim(MSG_NO_RECORDS))
        return

    render_header("History")
    render_line(f"{dim('• Range:')} {format_range_label(date_from, date_to, month)}")
    _render_total(rows)
    table = [[format_date_label(row["date"]), *_prayer_cells(row)] for row in rows]
    render_table(["Date", *PRAYERS], table, left_columns=1)
    render_line()
    render_line(dim(MSG_LEGEND_HISTORY))


def add_ramadan_args(parser):
    parser.add_argument("--ramadan", action="store_true", help="Ramadan dates only (Hijri month 9)")
    parser.add_argument("--ramadan-start", help="Ramadan start date in YYYY-MM-DD (Indonesia: 2026-02-19)")
    parser.add_argument("--ramadan-days", help="Ramadan length in days (29 or 30)")
    parser.add_argument("--ramadan-year", help="Hijri year for Ramadan (e.g. 1447)")


def register(subparsers):
    parser = subparsers.add_parser("history", help="View prayer attendance history")
    parser.add_argument("-f", "--from", dest="date_from", help="From date YYYY-MM-DD")
    parser.add_argument("-t", "--to", dest="date_to", help="To date YYYY-MM-DD")
    parser.add_argument("-m", "--month", help="Month in YYYY-MM")
    add_ramadan_args(parser)
    parser.set_defaults(handler=cmd_history)
