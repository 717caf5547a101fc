"""
Определение города, страны и часового пояса по IP.
Провайдеры опрашиваются по очереди до первого успешного ответа.
"""

import aiohttp
from loguru import logger

from config import GEO_TIMEOUT


def _from_ip_api(data: dict) -> dict | None:
    if not data.get("city") or not data.get("country"):
        return None
    return {"city": data["city"], "country": data["country"], "timezone": data.get("timezone")}


def _from_ipapi_co(data: dict) -> dict | None:
    if not data.get("city") or not data.get("country_name"):
        return None
    return {"city": data["city"], "country": data["country_name"], "timezone": data.get("timezone")}


def _from_ipwho_is(data: dict) -> dict | None:
    if not data.get("success") or not data.get("city") or not data.get("country"):
        return None
    timezone = data.get("timezone") or {}
    return {
        "city": data["city"],
        "country": data["country"],
        "timezone": timezone.get("id") if isinstance(timezone, dict) else None,
    }


PROVIDERS = [
    ("http://ip-api.com/json/?fields=city,country,timezone", _from_ip_api),
    ("https://ipapi.co/json/", _from_ipapi_co),
    ("https://ipwho.is/", _from_ipwho_is),
]


async def _fetch_json(session: aiohttp.ClientSession, url: str) -> dict | None:
    try:
        async with session.get(url, timeout=aiohttp.ClientTimeout(total=GEO_TIMEOUT)) as resp:
            if resp.status != 200:
                logger.debug(f"Geo provider error {resp.status}: {url}")
                return None
            data = await resp.json(content_type=None)
            return data if isinstance(data, dict) else None
    except Exception as e:
        logger.debug(f"Geo provider failed: {url}: {e}")
        return None


async def guess_location(session: aiohttp.ClientSession = None) -> dict | None:
    """Вернуть {city, country, timezone} или None, если ни один провайдер не ответил."""
    own_session = session is None
    if own_session:
        session = aiohttp.ClientSession()
    try:
        for url, parse in PROVIDERS:
            data = await _fetch_json(session, url)
            if not data:
                continue
            location = parse(data)
            if location:
                logger.info(f"Location detected: {location['city']}, {location['country']}")
                return location
        logger.warning("Unable to detect location automatically")
        return None
    finally:
        if own_session:
            await session.close()
