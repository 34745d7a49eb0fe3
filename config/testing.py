SECRET_KEY = "test-secret"

STORE_BACKEND = "memory"

DB_CONFIG = {
    "host": "localhost",
    "port": 3306,
    "user": "root",
    "password": "",
    "database": "attendance_test",
}

ALLOWED_LNG = 8.8362755
ALLOWED_LAT = 33.1245286
ALLOWED_RADIUS = 500

FACE_MATCH_THRESHOLD = 0.6
QR_SCAN_WINDOW_SECONDS = 300
QR_VALIDITY_HOURS = 12

LATE_HOUR = 9
OPEN_SESSION_LOOKBACK_DAYS = 30
HISTORY_LIMIT = 7
DAILY_STATS_MAX_DAYS = 30
NOTIFY_MAX_RETRIES = 0

LOG_LEVEL = "WARNING"
DEBUG = False
TESTING = True

AUTO_INIT_DB = False
