"""
Отметка намазов и поста: за сегодня (mark, fast) и за прошедшую дату (backfill).
"""

from config import MSG_FAST_SAVED, MSG_NOT_RAMADAN, MSG_SAVED
from core.aladhan_api import AladhanAPI
from core.ramadan import is_ramadan_date
from core.time_utils import PRAYERS, format_date_label, get_now_in_timezone
from core.validators import InputError, parse_date_key, parse_prayers
from database.db import Database
from cli.render import bold, check_mark, dim, green, render_line


def build_selection(args) -> dict:
    """{намаз: bool} из позиционных имён, --all и --missed."""
    done = list(PRAYERS) if args.all else parse_prayers(args.prayers)
    missed = parse_prayers(args.missed)
    overlap = set(done) & set(missed)
    if overlap and not args.all:
        raise InputError(f"Prayer marked both done and missed: {', '.join(sorted(overlap))}")
    selection = {prayer: True for prayer in done}
    selection.update({prayer: False for prayer in missed})
    return selection


def render_record(date_key: str, record: dict | None):
    prayers = (record or {}).get("prayers") or {}
    render_line(bold(format_date_label(date_key)))
    render_line("   ".join(f"{prayer} {check_mark(bool(prayers.get(prayer)))}" for prayer in PRAYERS))
    fasted = (record or {}).get("fasted")
    if fasted is not None:
        render_line(f"{dim('Fasted:')} {'yes' if fasted else 'no'}")


async def cmd_mark(args, db: Database, **kwargs):
    config = await db.get_config()
    date_key = get_now_in_timezone(config.get("timezone"))["date_key"]
    selection = build_selection(args)
    if not selection:
        render_record(date_key, await db.get_attendance(date_key))
        return
    record = await db.set_attendance(date_key, selection)
    render_record(date_key, record)
    render_line(dim(MSG_SAVED))


async def cmd_backfill(args, db: Database, **kwargs):
    config = await db.get_config()
    date_key = parse_date_key(args.date)
    today_key = get_now_in_timezone(config.get("timezone"))["date_key"]
    if date_key > today_key:
        raise InputError("Cannot backfill a future date")

    selection = build_selection(args)
    if not selection and args.fasted is None:
        render_record(date_key, await db.get_attendance(date_key))
        return
    record = await db.set_attendance(date_key, selection, args.fasted)
    render_record(date_key, record)
    render_line(dim(MSG_SAVED))


async def cmd_fast(args, db: Database, api: AladhanAPI, **kwargs):
    config = await db.get_config()
    date_key = get_now_in_timezone(config.get("timezone"))["date_key"]

    if not await is_ramadan_date(api, date_key):
        render_line(dim(MSG_NOT_RAMADAN))
        return

    if args.fasted is None:
        existing = await db.get_attendance(date_key)
        fasted = (existing or {}).get("fasted")
        status = "not recorded" if fasted is None else ("yes" if fasted else "no")
        render_line(f"{dim('Fasted today:')} {status}")
        return

    if args.fasted:
        render_line(green(MSG_FAST_SAVED))
    await db.set_attendance(date_key, {}, args.fasted)
    render_line(dim(MSG_SAVED))


def _add_selection_args(parser):
    parser.add_argument("prayers", nargs="*", metavar="PRAYER", help="Prayers completed (Fajr Dhuhr ...)")
    parser.add_argument("--all", action="store_true", help="Mark all five prayers as completed")
    parser.add_argument("--missed", nargs="+", metavar="PRAYER", help="Prayers missed")


def register(subparsers):
    parser = subparsers.add_parser("mark", help="Mark attendance for today's prayers")
    _add_selection_args(parser)
    parser.set_defaults(handler=cmd_mark)

    parser = subparsers.add_parser("backfill", help="Fill in missed prayer attendance for a past date")
    parser.add_argument("-d", "--date", required=True, help="Date in YYYY-MM-DD format")
    _add_selection_args(parser)
    fasting = parser.add_mutually_exclusive_group()
    fasting.add_argument("--fasted", dest="fasted", action="store_true", default=None, help="Record the fast as completed")
    fasting.add_argument("--not-fasted", dest="fasted", action="store_false", default=None, help="Record the fast as not completed")
    parser.set_defaults(handler=cmd_backfill)

    parser = subparsers.add_parser("fast", help="Log fasting for today")
    fasting = parser.add_mutually_exclusive_group()
    fasting.add_argument("--yes", dest="fasted", action="store_true", default=None, help="Fast completed")
    fasting.add_argument("--no", dest="fasted", action="store_false", default=None, help="Fast not completed")
    parser.set_defaults(handler=cmd_fast)
