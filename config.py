import os
from dotenv import load_dotenv

load_dotenv()

APP_NAME = "roza-cli"
APP_VERSION = "0.1.0"
APP_DESCRIPTION = "Ramadan and prayer attendance CLI"
APP_REPOSITORY = os.getenv("ROZA_REPOSITORY", "")

# Paths
DATA_DIR = os.path.expanduser(os.getenv("ROZA_DATA_DIR", "~/.roza-cli"))
DATABASE_PATH = os.getenv("DATABASE_PATH", os.path.join(DATA_DIR, "roza.db"))
LOG_PATH = os.getenv("LOG_PATH", os.path.join(DATA_DIR, "logs", "roza.log"))
LOG_LEVEL = os.getenv("LOG_LEVEL", "WARNING")

# API aladhan.com
ALADHAN_BASE_URL = os.getenv("ALADHAN_BASE_URL", "https://api.aladhan.com/v1")
API_TIMEOUT = float(os.getenv("API_TIMEOUT", "15"))
GEO_TIMEOUT = float(os.getenv("GEO_TIMEOUT", "3"))

# Значения по умолчанию для расчёта
DEFAULT_METHOD = int(os.getenv("DEFAULT_METHOD", "3"))
DEFAULT_SCHOOL = int(os.getenv("DEFAULT_SCHOOL", "0"))

# Рамадан
DEFAULT_RAMADAN_YEAR = int(os.getenv("DEFAULT_RAMADAN_YEAR", "1447"))
DEFAULT_RAMADAN_DAYS = int(os.getenv("DEFAULT_RAMADAN_DAYS", "30"))
RAMADAN_MONTH = 9

# Recap
DEFAULT_RECAP_DAYS = int(os.getenv("DEFAULT_RECAP_DAYS", "30"))

# Export / import
DEFAULT_EXPORT_FILE = os.getenv("DEFAULT_EXPORT_FILE", "roza-export.json")

SCHOOLS = {
    0: "Shafi",
    1: "Hanafi",
}

# Messages
MSG_SETUP_REQUIRED = (
    "Setup is not complete and your location could not be detected.\n"
    "Run: roza setup --city <city> --country <country>"
)
MSG_SETUP_DONE = "Setup complete."
MSG_LOCATION_REQUIRED = "Location is required to resolve Ramadan dates. Run schedule first."
MSG_NO_RECORDS = "No attendance records yet."
MSG_NO_RAMADAN_RECORDS = "No Ramadan records yet."
MSG_NOT_RAMADAN = "Today is not a Ramadan day."
MSG_FAST_SAVED = "MashaAllah"
MSG_SAVED = "Saved."
MSG_NO_CHANGES = "No changes made."
MSG_RESET_DONE = "Configuration cleared. Run any command to set up again."
MSG_SCHEDULE_UNAVAILABLE = "Failed to fetch schedule. Check your location and connection."
MSG_LEGEND_HISTORY = "Legend: ✓ completed   · missed"
MSG_LEGEND_RECAP = "Legend: each column = day, each row = prayer"
