"""
Методы расчёта времени намаза: список из API со статическим запасным вариантом
и рекомендация по стране.
"""

from loguru import logger


FALLBACK_METHODS = {
    "1": {"id": 1, "name": "University of Islamic Sciences, Karachi"},
    "2": {"id": 2, "name": "Islamic Society of North America (ISNA)"},
    "3": {"id": 3, "name": "Muslim World League"},
    "4": {"id": 4, "name": "Umm Al-Qura, Makkah"},
    "5": {"id": 5, "name": "Egyptian General Authority of Survey"},
    "7": {"id": 7, "name": "Institute of Geophysics, University of Tehran"},
    "17": {"id": 17, "name": "Indonesia"},
}


def normalize_methods(raw: dict) -> dict:
    """Оставить только записи с числовым id и названием (в API есть CUSTOM без name)."""
    methods = {}
    for key, value in (raw or {}).items():
        if not isinstance(value, dict):
            continue
        method_id = value.get("id")
        name = value.get("name")
        if isinstance(method_id, int) and name:
            methods[str(method_id)] = {"id": method_id, "name": name}
    return methods


async def load_methods(api) -> dict:
    """Методы из API; при ошибке — FALLBACK_METHODS."""
    try:
        methods = normalize_methods(await api.get_methods())
    except Exception as e:
        logger.warning(f"Failed to load methods: {e}")
        methods = {}
    if not methods:
        logger.info("Using fallback calculation methods")
        return dict(FALLBACK_METHODS)
    return methods


def pick_recommended_method_id(methods: dict, country: str | None) -> int | None:
    if not country:
        return None
    if country.strip().lower() == "indonesia":
        for method in methods.values():
            if "indonesia" in method["name"].lower():
                return method["id"]
    return None


def sorted_methods(methods: dict, country: str | None = None) -> list[dict]:
    """По id, рекомендованный метод — первым."""
    recommended = pick_recommended_method_id(methods, country)
    items = sorted(methods.values(), key=lambda m: m["id"])
    return sorted(items, key=lambda m: m["id"] != recommended)
