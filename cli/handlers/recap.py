"""
Recap: сводка, win rate, серии идеальных дней и сетка посещаемости
за последние N дней или за Рамадан.
"""

from config import DEFAULT_RAMADAN_DAYS, DEFAULT_RAMADAN_YEAR, MSG_LEGEND_RECAP, MSG_NO_RAMADAN_RECORDS, MSG_NO_RECORDS
from core.aladhan_api import AladhanAPI
from core.ramadan import format_ramadan_period, resolve_ramadan_dates
from core.recap import (
    build_prayer_grid, calc_fasting_rate, calc_prayer_rate, calc_streaks, calc_summary,
    filter_by_days, format_average_per_day, resolve_win_rate_cutoff, rows_for_dates,
)
from core.validators import parse_date_key, parse_days, parse_hijri_year, parse_range
from database.db import Database
from cli.handlers.history import add_ramadan_args
from cli.render import accent, dim, grid_cell, render_header, render_line


def _format_rate(rate: dict) -> str:
    return f"{rate['completed']}/{rate['total']} ({rate['percent']}%)"


def render_recap(title: str, period: str, rows: list[dict], cutoff: str, with_fasting: bool):
    summary = calc_summary(rows)
    streaks = calc_streaks(rows, cutoff)
    grid = build_prayer_grid(rows)

    render_header("Recap")
    render_line(dim(f"• {title}"))
    render_line(f"{dim('• Period:')} {period}")
    render_line(f"{dim('• Prayers completed:')} {summary['completed']}/{summary['total']} ({summary['percent']}%)")
    render_line(f"{dim('• Active days:')} {summary['active_days']}/{summary['total_days']} {dim('(≥1 prayer)')}")
    render_line(f"{dim('• Perfect days:')} {summary['perfect_days']}/{summary['total_days']} {dim('(5/5)')}")
    render_line(f"{dim('• Avg prayers/day:')} {format_average_per_day(summary['average_per_day'])}")
    render_line(f"{dim('• Prayer win rate:')} {_format_rate(calc_prayer_rate(rows, cutoff))} {dim(f'(through {cutoff})')}")
    if with_fasting:
        render_line(f"{dim('• Fasting win rate:')} {_format_rate(calc_fasting_rate(rows, cutoff))}")
    render_line(f"{dim('• Perfect streak:')} {streaks['current']} current, {streaks['longest']} longest")
    render_line()

    render_line(accent(grid["label"]))
    render_line(dim("─" * len(grid["label"])))
    render_line()
    label_width = max(len(prayer) for prayer in grid["rows"])
    for prayer, cells in grid["rows"].items():
        render_line(f"{dim(prayer.ljust(label_width))} {'  '.join(grid_cell(done) for done in cells)}")
    render_line()
    render_line(dim(MSG_LEGEND_RECAP))


async def cmd_recap(args, db: Database, api: AladhanAPI, **kwargs):
    config = await db.get_config()
    use_ramadan = bool(args.ramadan or args.ramadan_start or args.ramadan_days) or not args.range

    if use_ramadan:
        ramadan_year = parse_hijri_year(args.ramadan_year) if args.ramadan_year else DEFAULT_RAMADAN_YEAR
        ramadan_days = parse_days(args.ramadan_days) if args.ramadan_days else DEFAULT_RAMADAN_DAYS
        ramadan_start = parse_date_key(args.ramadan_start) if args.ramadan_start else None

        dates = await resolve_ramadan_dates(
            api, config, ramadan_year, start=ramadan_start, days=ramadan_days,
        )
        rows = rows_for_dates([d["date_key"] for d in dates], await db.list_attendance())
        if not rows:
            render_line(dim(MSG_NO_RAMADAN_RECORDS))
            return
        cutoff = await resolve_win_rate_cutoff(api, config)
        render_recap(
            "Ramadan consistency",
            format_ramadan_period(ramadan_year, len(rows)),
            rows, cutoff, with_fasting=True,
        )
        return

    range_days = parse_range(args.range)
    rows = filter_by_days(await db.list_attendance(), range_days)
    if not rows:
        render_line(dim(MSG_NO_RECORDS))
        return
    cutoff = await resolve_win_rate_cutoff(api, config)
    render_recap("Consistency snapshot", f"last {range_days} days", rows, cutoff, with_fasting=False)


def register(subparsers):
    parser = subparsers.add_parser("recap", help="Recap with prayer consistency visualization")
    parser.add_argument("-r", "--range", help="Range like 7d or 30d")
    add_ramadan_args(parser)
    parser.set_defaults(handler=cmd_recap)
