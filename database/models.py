"""
SQL-схемы для работы с SQLite.
"""

CREATE_TABLES_SQL = """
CREATE TABLE IF NOT EXISTS settings (
    key TEXT PRIMARY KEY,
    value TEXT NOT NULL,
    updated_at DATETIME DEFAULT CURRENT_TIMESTAMP
);

CREATE TABLE IF NOT EXISTS attendance (
    date TEXT PRIMARY KEY,
    fajr BOOLEAN NULL,
    dhuhr BOOLEAN NULL,
    asr BOOLEAN NULL,
    maghrib BOOLEAN NULL,
    isha BOOLEAN NULL,
    fasted BOOLEAN NULL,
    updated_at TEXT NOT NULL
);
"""

# Колонки намазов в порядке PRAYERS
PRAYER_COLUMNS = {
    "Fajr": "fajr",
    "Dhuhr": "dhuhr",
    "Asr": "asr",
    "Maghrib": "maghrib",
    "Isha": "isha",
}

SETTING_KEYS = ("location", "method", "school", "timezone")
