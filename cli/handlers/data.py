"""
Управление данными: экспорт и импорт JSON, полный сброс, информация о программе.
"""

import json
import os

from loguru import logger

from config import (
    APP_DESCRIPTION, APP_NAME, APP_REPOSITORY, APP_VERSION,
    DEFAULT_EXPORT_FILE, MSG_NO_CHANGES, MSG_RESET_DONE,
)
from core.validators import InputError
from database.db import Database
from cli.render import confirm, dim, plain, render_line


async def cmd_export(args, db: Database, **kwargs):
    path = os.path.abspath(args.file or DEFAULT_EXPORT_FILE)
    if os.path.exists(path) and not args.force:
        if not confirm(f"File already exists at {plain(path)}. Overwrite it?"):
            render_line(dim(MSG_NO_CHANGES))
            return

    data = await db.export_data()
    with open(path, "w", encoding="utf-8") as f:
        json.dump(data, f, ensure_ascii=False, indent=2)
    logger.info(f"Exported {len(data['attendance'])} days to {path}")
    render_line(f"Exported {len(data['attendance'])} days to {plain(path)}.")


async def cmd_import(args, db: Database, **kwargs):
    path = os.path.abspath(args.file or DEFAULT_EXPORT_FILE)
    try:
        with open(path, encoding="utf-8") as f:
            payload = json.load(f)
    except OSError as e:
        raise InputError(f"Failed to read import file: {e}") from e
    except json.JSONDecodeError as e:
        raise InputError(f"Import file is not valid JSON: {e}") from e

    if not confirm("This will overwrite your current data. Continue?", args.yes):
        render_line(dim(MSG_NO_CHANGES))
        return

    count = await db.import_data(payload)
    render_line(f"Imported {count} days from {plain(path)}.")


async def cmd_reset(args, db: Database, **kwargs):
    if not confirm("Remove saved location, method, preferences and attendance?", args.yes):
        render_line(dim(MSG_NO_CHANGES))
        return
    await db.clear_all()
    render_line(MSG_RESET_DONE)


async def cmd_about(args, **kwargs):
    render_line(APP_NAME)
    render_line(dim(f"Version: {APP_VERSION}"))
    render_line(dim(APP_DESCRIPTION))
    if APP_REPOSITORY:
        render_line()
        render_line(dim(f"Give it a star: {APP_REPOSITORY}"))


def register(subparsers):
    parser = subparsers.add_parser("export", help="Export all saved data to a JSON file")
    parser.add_argument("-f", "--file", help="Output file path")
    parser.add_argument("--force", action="store_true", help="Overwrite file if it exists")
    parser.set_defaults(handler=cmd_export, skip_setup=True)

    parser = subparsers.add_parser("import", help="Import data from a JSON file (overwrites current data)")
    parser.add_argument("-f", "--file", help="Import file path")
    parser.add_argument("-y", "--yes", action="store_true", help="Do not ask for confirmation")
    parser.set_defaults(handler=cmd_import, skip_setup=True)

    parser = subparsers.add_parser("reset", help="Reset saved configuration and data")
    parser.add_argument("-y", "--yes", action="store_true", help="Do not ask for confirmation")
    parser.set_defaults(handler=cmd_reset, skip_setup=True)

    parser = subparsers.add_parser("about", help=f"About {APP_NAME}")
    parser.set_defaults(handler=cmd_about, skip_setup=True)
