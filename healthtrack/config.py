import os
import logging
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError
from dotenv import load_dotenv

load_dotenv()

APP_API_URL = os.getenv("APP_API_URL", "http://localhost:3000/api")

DISPLAY_TIMEZONE = os.getenv("DISPLAY_TIMEZONE", "Asia/Hong_Kong")
CHART_WINDOW_DAYS = int(os.getenv("CHART_WINDOW_DAYS", "30"))

REQUEST_TIMEOUT = float(os.getenv("REQUEST_TIMEOUT", "30"))

ALLOWED_ORIGINS = [
    o.strip()
    for o in os.getenv("ALLOWED_ORIGINS", "http://localhost:3000").split(",")
    if o.strip()
]

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")


def get_display_tz() -> ZoneInfo:
    try:
        return ZoneInfo(DISPLAY_TIMEZONE)
    except (ZoneInfoNotFoundError, ValueError):
        logging.getLogger(__name__).warning(
            "Unknown DISPLAY_TIMEZONE %r, falling back to UTC", DISPLAY_TIMEZONE
        )
        return ZoneInfo("UTC")
