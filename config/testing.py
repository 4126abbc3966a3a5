import os

DB_CONFIG = {
    "host": os.getenv("DB_HOST", "localhost"),
    "port": int(os.getenv("DB_PORT", "3306")),
    "user": os.getenv("DB_USER", "root"),
    "password": os.getenv("DB_PASSWORD", ""),
    "database": os.getenv("DB_NAME", "lms_attendance_test"),
}

STORAGE_BACKEND = "memory"

PORTAL_BASE_URL = "http://lms.test/lms"
PORTAL_TIMEOUT = 5.0
DEFAULT_FROM_DATE = "11-11-2024"

SCRAPE_WAIT_MS = 0
SCRAPE_MAX_WORKERS = 2

LOG_LEVEL = "WARNING"
DEBUG = False
TESTING = True

AUTO_INIT_DB = False
