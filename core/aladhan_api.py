"""
Асинхронный клиент API aladhan.com: времена намаза, календари (григорианский
и хиджри) и конвертация дат.
"""

import aiohttp
from loguru import logger

from config import ALADHAN_BASE_URL, API_TIMEOUT, RAMADAN_MONTH
from core.time_utils import get_now_in_timezone, to_api_date


class AladhanAPI:
    BASE = ALADHAN_BASE_URL
    TIMEOUT = aiohttp.ClientTimeout(total=API_TIMEOUT)

    def __init__(self):
        self._session: aiohttp.ClientSession | None = None

    async def init(self):
        """Создать HTTP-сессию."""
        self._session = aiohttp.ClientSession(timeout=self.TIMEOUT)
        logger.debug("AladhanAPI session created")

    async def close(self):
        """Закрыть HTTP-сессию."""
        if self._session:
            await self._session.close()
            self._session = None
            logger.debug("AladhanAPI session closed")

    async def __aenter__(self):
        await self.init()
        return self

    async def __aexit__(self, *exc):
        await self.close()

    async def _get(self, path: str, params: dict = None) -> dict | list | None:
        """GET-запрос с retry на 5xx. Возвращает поле data из ответа или None."""
        url = f"{self.BASE}{path}"
        for attempt in range(2):
            try:
                async with self._session.get(url, params=params) as resp:
                    if resp.status == 200:
                        payload = await resp.json()
                        if isinstance(payload, dict) and payload.get("code") == 200:
                            return payload.get("data")
                        logger.error(f"AladhanAPI unexpected payload: {url}")
                        return None
                    if resp.status >= 500 and attempt == 0:
                        logger.warning(f"AladhanAPI 5xx ({resp.status}), retrying: {url}")
                        continue
                    logger.error(f"AladhanAPI error {resp.status}: {url}")
                    return None
            except Exception as e:
                if attempt == 0:
                    logger.warning(f"AladhanAPI request error, retrying: {e}")
                    continue
                logger.error(f"AladhanAPI request failed: {e}")
                return None
        return None

    @staticmethod
    def _location_params(location: dict, method: int | None, school: int | None) -> tuple[str, dict]:
        """Суффикс эндпоинта (ByCity / ByAddress) и параметры запроса."""
        if location.get("type") == "address":
            suffix = "ByAddress"
            params = {"address": location["address"]}
        else:
            suffix = "ByCity"
            params = {"city": location["city"], "country": location["country"]}
        if method is not None:
            params["method"] = str(method)
        if school is not None:
            params["school"] = str(school)
        return suffix, params

    async def get_timings(
        self, location: dict, date_key: str = None,
        method: int = None, school: int = None,
    ) -> dict | None:
        """Времена намаза на день: {timings, date, meta}."""
        if date_key is None:
            date_key = get_now_in_timezone()["date_key"]
        suffix, params = self._location_params(location, method, school)
        data = await self._get(f"/timings{suffix}/{to_api_date(date_key)}", params=params)
        return data if isinstance(data, dict) else None

    async def get_calendar(
        self, location: dict, year: int, month: int,
        method: int = None, school: int = None,
    ) -> list[dict]:
        """Времена на весь григорианский месяц."""
        suffix, params = self._location_params(location, method, school)
        data = await self._get(f"/calendar{suffix}/{year}/{month}", params=params)
        return data if isinstance(data, list) else []

    async def get_hijri_calendar(
        self, location: dict, hijri_year: int, hijri_month: int = RAMADAN_MONTH,
        method: int = None, school: int = None,
    ) -> list[dict]:
        """Времена на весь месяц хиджры (по умолчанию — Рамадан)."""
        suffix, params = self._location_params(location, method, school)
        data = await self._get(
            f"/hijriCalendar{suffix}/{hijri_year}/{hijri_month}", params=params,
        )
        return data if isinstance(data, list) else []

    async def get_hijri_by_date(self, date_key: str) -> dict | None:
        """Конвертация григорианской даты: {hijri: {day, month: {number, en}, year}, gregorian}."""
        data = await self._get(f"/gToH/{to_api_date(date_key)}")
        if isinstance(data, dict) and "hijri" in data:
            return data
        return None

    async def get_methods(self) -> dict | None:
        """Методы расчёта: {KEY: {id, name, ...}}."""
        data = await self._get("/methods")
        return data if isinstance(data, dict) else None
