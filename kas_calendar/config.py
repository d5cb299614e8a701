import os

from dotenv import load_dotenv

load_dotenv()

API_BASE_URL = os.environ.get("KAS_API_BASE_URL") or "http://localhost:8000/api"
DATABASE_URL = os.environ.get("KAS_DATABASE_URL") or "sqlite:///kas_calendar.sqlite3"
CALENDAR_WEEKS = int(os.environ.get("KAS_CALENDAR_WEEKS", "12"))
CALENDAR_PAGE_SIZE = int(os.environ.get("KAS_CALENDAR_PAGE_SIZE", "12"))
LOCALE = os.environ.get("KAS_LOCALE", "en")
HTTP_TIMEOUT = float(os.environ.get("KAS_HTTP_TIMEOUT", "10"))
LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")
