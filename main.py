"""
Точка входа: CLI расписания намазов и учёта посещаемости.
Без аргументов запускается schedule.
"""

import argparse
import asyncio
import os
import sys

from loguru import logger

from config import APP_DESCRIPTION, APP_NAME, APP_VERSION, LOG_LEVEL, LOG_PATH
from core.aladhan_api import AladhanAPI
from core.ramadan import RamadanLookupError
from core.validators import InputError
from database.db import Database
from cli.handlers import attendance, data, history, recap, schedule, setup
from cli.render import render_error


def setup_logging():
    """Настройка логирования с ротацией."""
    os.makedirs(os.path.dirname(LOG_PATH), exist_ok=True)
    logger.remove()
    logger.add(sys.stderr, level=LOG_LEVEL)
    logger.add(
        LOG_PATH,
        rotation="10 MB",
        retention="30 days",
        compression="zip",
        level="DEBUG",
        encoding="utf-8",
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="roza", description=APP_DESCRIPTION)
    parser.add_argument("--version", action="version", version=f"{APP_NAME} {APP_VERSION}")
    subparsers = parser.add_subparsers(dest="command", metavar="COMMAND")

    # Порядок регистрации = порядок в --help
    schedule.register(subparsers)
    attendance.register(subparsers)
    history.register(subparsers)
    recap.register(subparsers)
    setup.register(subparsers)
    data.register(subparsers)
    return parser


def parse_args(argv: list[str]) -> argparse.Namespace:
    parser = build_parser()
    if not argv:
        argv = ["schedule"]
    return parser.parse_args(argv)


async def run_command(args: argparse.Namespace) -> int:
    db = Database()
    await db.connect()
    api = AladhanAPI()
    await api.init()
    try:
        if not getattr(args, "skip_setup", False):
            await setup.ensure_setup(db, api)
        await args.handler(args, db=db, api=api)
        return 0
    except (InputError, RamadanLookupError) as e:
        logger.debug(f"Command '{args.command}' failed: {e}")
        render_error(str(e))
        return 1
    finally:
        await api.close()
        await db.close()


def main(argv: list[str] = None) -> int:
    setup_logging()
    args = parse_args(sys.argv[1:] if argv is None else argv)
    try:
        return asyncio.run(run_command(args))
    except KeyboardInterrupt:
        render_error("Cancelled.")
        return 130


def run():
    sys.exit(main())


if __name__ == "__main__":
    run()
