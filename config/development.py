import os

from .config import Config

DB_CONFIG = {
    "host": os.getenv("DB_HOST", "localhost"),
    "port": int(os.getenv("DB_PORT", "3306")),
    "user": os.getenv("DB_USER", "root"),
    "password": os.getenv("DB_PASSWORD", ""),
    "database": os.getenv("DB_NAME", "lms_attendance"),
}

STORAGE_BACKEND = Config.STORAGE_BACKEND

PORTAL_BASE_URL = Config.PORTAL_BASE_URL
PORTAL_TIMEOUT = Config.PORTAL_TIMEOUT
DEFAULT_FROM_DATE = Config.DEFAULT_FROM_DATE

SCRAPE_WAIT_MS = Config.SCRAPE_WAIT_MS
SCRAPE_MAX_WORKERS = Config.SCRAPE_MAX_WORKERS

LOG_LEVEL = os.getenv("LOG_LEVEL", "DEBUG").upper()
DEBUG = True

# If enabled, schema.sql is applied on startup (idempotent: CREATE IF NOT EXISTS)
AUTO_INIT_DB = bool(int(os.getenv("AUTO_INIT_DB", "1")))
