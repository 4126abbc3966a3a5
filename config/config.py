import os


class Config:
    # DB settings
    DB_USER = os.environ.get("DB_USER", "root")
    DB_PASSWORD = os.environ.get("DB_PASSWORD", "")
    DB_HOST = os.environ.get("DB_HOST", "localhost")
    DB_PORT = int(os.environ.get("DB_PORT", "3306"))
    DB_NAME = os.environ.get("DB_NAME", "lms_attendance")

    # "mysql" or "memory"
    STORAGE_BACKEND = os.environ.get("STORAGE_BACKEND", "mysql").lower()

    # Portal
    PORTAL_BASE_URL = os.environ.get("PORTAL_BASE_URL", "https://sbmchlms.com/lms")
    PORTAL_TIMEOUT = float(os.environ.get("PORTAL_TIMEOUT", "20"))
    DEFAULT_FROM_DATE = os.environ.get("DEFAULT_FROM_DATE", "11-11-2024")

    # Scrape jobs
    SCRAPE_WAIT_MS = int(os.environ.get("SCRAPE_WAIT_MS", "12000"))
    SCRAPE_MAX_WORKERS = int(os.environ.get("SCRAPE_MAX_WORKERS", "8"))

    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO").upper()

    # Dev helpers
    AUTO_INIT_DB = bool(int(os.environ.get("AUTO_INIT_DB", "0")))

