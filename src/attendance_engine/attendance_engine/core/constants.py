"""Constants and defaults.

Note: Keep constants here to avoid magic numbers spread across code.
"""

METERS_PER_DEGREE = 111000

DEFAULT_ALLOWED_LNG = 8.8362755
DEFAULT_ALLOWED_LAT = 33.1245286
DEFAULT_ALLOWED_RADIUS = 500

FACE_DESCRIPTOR_LENGTH = 128
DEFAULT_FACE_MATCH_THRESHOLD = 0.6

DEFAULT_QR_SCAN_WINDOW_SECONDS = 5 * 60
DEFAULT_QR_VALIDITY_HOURS = 12

DEFAULT_LATE_HOUR = 9
DEFAULT_OPEN_SESSION_LOOKBACK_DAYS = 30
DEFAULT_HISTORY_LIMIT = 7
DEFAULT_DAILY_STATS_DAYS = 7
DEFAULT_DAILY_STATS_MAX_DAYS = 30
DEFAULT_NOTIFY_MAX_RETRIES = 2

# Collection names in the document store.
EMPLOYEES = "employees"
ATTENDANCE = "attendance"
NOTIFICATIONS = "notifications"
