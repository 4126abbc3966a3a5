"""Constants and defaults.

Note: Keep constants here to avoid magic numbers spread across code.
"""

ATTENDANCE_THRESHOLD_PERCENT = 75.0

# The portal only accepts DD-MM-YYYY.
PORTAL_DATE_FORMAT = "%d-%m-%Y"
DEFAULT_FROM_DATE = "11-11-2024"

DEFAULT_PORTAL_BASE_URL = "https://sbmchlms.com/lms"
DEFAULT_PORTAL_TIMEOUT = 20.0

DEFAULT_SCRAPE_WAIT_MS = 12_000
DEFAULT_SCRAPE_MAX_WORKERS = 8

# Upper bound for the step-by-step required-sessions search.
REQUIRED_SEARCH_LIMIT = 2000
