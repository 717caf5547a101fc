"""
Настройка: локация, метод расчёта, мазхаб (школа Аср) и часовой пояс.
Без явной настройки локация определяется по IP.
"""

from loguru import logger

from config import DEFAULT_METHOD, DEFAULT_SCHOOL, MSG_SETUP_DONE, MSG_SETUP_REQUIRED, SCHOOLS
from core.aladhan_api import AladhanAPI
from core.geo import guess_location
from core.methods import load_methods, pick_recommended_method_id, sorted_methods
from core.time_utils import resolve_zone
from core.validators import InputError, parse_optional_int
from database.db import Database
from cli.render import dim, plain, render_line


def has_setup(config: dict) -> bool:
    return bool(
        config.get("location")
        and isinstance(config.get("method"), int)
        and isinstance(config.get("school"), int)
    )


def location_from_args(args) -> dict | None:
    """Локация из опций --address или --city/--country."""
    if getattr(args, "address", None):
        return {"type": "address", "address": args.address}
    city = getattr(args, "city", None)
    country = getattr(args, "country", None)
    if city or country:
        if not city:
            raise InputError("City is required")
        if not country:
            raise InputError("Country is required")
        return {"type": "city", "city": city, "country": country}
    return None


def format_location(location: dict) -> str:
    if location.get("type") == "address":
        return location["address"]
    return f"{location['city']}, {location['country']}"


async def _pick_method(api: AladhanAPI, country: str | None) -> int:
    methods = await load_methods(api)
    recommended = pick_recommended_method_id(methods, country)
    if recommended is not None:
        return recommended
    return DEFAULT_METHOD


async def ensure_setup(db: Database, api: AladhanAPI) -> dict:
    """Вернуть настройки; если их нет — автоматически определить локацию."""
    config = await db.get_config()
    if has_setup(config):
        return config

    location = config.get("location")
    timezone = config.get("timezone")
    if not location:
        detected = await guess_location()
        if not detected:
            raise InputError(MSG_SETUP_REQUIRED)
        location = {"type": "city", "city": detected["city"], "country": detected["country"]}
        timezone = timezone or detected.get("timezone")
        render_line(dim(plain(f"Detected: {detected['city']}, {detected['country']}")))

    country = location.get("country")
    method = config.get("method")
    if not isinstance(method, int):
        method = await _pick_method(api, country)
    school = config.get("school")
    if not isinstance(school, int):
        school = DEFAULT_SCHOOL

    logger.info(f"Automatic setup: {format_location(location)}, method={method}, school={school}")
    return await db.set_config({
        "location": location,
        "method": method,
        "school": school,
        "timezone": timezone,
    })


async def cmd_setup(args, db: Database, api: AladhanAPI, **kwargs):
    if args.list_methods:
        config = await db.get_config()
        country = (config.get("location") or {}).get("country") or args.country
        methods = await load_methods(api)
        recommended = pick_recommended_method_id(methods, country)
        for method in sorted_methods(methods, country):
            suffix = " (Recommended)" if method["id"] == recommended else ""
            render_line(f"{method['id']:>3}  {plain(method['name'])}{suffix}")
        return

    location = location_from_args(args)
    detected = None
    if location is None:
        detected = await guess_location()
        if not detected:
            raise InputError(MSG_SETUP_REQUIRED)
        location = {"type": "city", "city": detected["city"], "country": detected["country"]}
        render_line(dim(plain(f"Detected: {detected['city']}, {detected['country']}")))

    method = parse_optional_int(args.method)
    if method is None:
        method = await _pick_method(api, location.get("country"))

    school = parse_optional_int(args.school)
    if school is None:
        school = DEFAULT_SCHOOL
    if school not in SCHOOLS:
        raise InputError("School must be 0 (Shafi) or 1 (Hanafi)")

    timezone = None
    if args.timezone:
        if resolve_zone(args.timezone) is None:
            raise InputError(f"Unknown timezone: {args.timezone}")
        timezone = args.timezone
    elif detected and not args.no_timezone:
        timezone = detected.get("timezone")

    config = await db.set_config({
        "location": location,
        "method": method,
        "school": school,
        "timezone": timezone,
    })
    render_line(f"{dim('Location:')} {plain(format_location(config['location']))}")
    render_line(f"{dim('Method:')} {config['method']}")
    render_line(f"{dim('School:')} {SCHOOLS[config['school']]}")
    render_line(f"{dim('Timezone:')} {config.get('timezone') or 'not set'}")
    render_line(MSG_SETUP_DONE)


def register(subparsers):
    parser = subparsers.add_parser("setup", help="Configure location, method and timezone")
    parser.add_argument("--city", help="City for prayer times")
    parser.add_argument("--country", help="Country for prayer times")
    parser.add_argument("--address", help="Full address for prayer times")
    parser.add_argument("--method", help="Calculation method id")
    parser.add_argument("--school", help="School id (0 = Shafi, 1 = Hanafi)")
    parser.add_argument("--timezone", help="Timezone override (e.g. Asia/Jakarta)")
    parser.add_argument("--no-timezone", action="store_true", help="Do not set timezone override")
    parser.add_argument("--list-methods", action="store_true", help="List calculation methods")
    parser.set_defaults(handler=cmd_setup, skip_setup=True)
