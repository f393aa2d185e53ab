"""Constants and defaults.

Note: Keep constants here to avoid magic numbers spread across code.
"""

DATE_FORMAT = "%Y-%m-%d"
MIN_ATTENDANCE_YEAR = 2000
DURATION_DECIMALS = 2
DEFAULT_DB_TIMEOUT_SECONDS = 5
MYSQL_DUPLICATE_KEY_ERRNO = 1062
# Upper bound on the span of a single attendance view request.
MAX_VIEW_RANGE_DAYS = 3660

# Reference holiday list, used when settings do not provide one.
DEFAULT_HOLIDAYS = (
    "2024-01-01",  # New Year
    "2024-01-26",  # Republic Day
    "2024-08-15",  # Independence Day
    "2024-10-02",  # Gandhi Jayanti
)
