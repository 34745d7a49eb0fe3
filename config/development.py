import os

SECRET_KEY = os.getenv("SECRET_KEY", "dev-secret-key")

# memory | mysql
STORE_BACKEND = os.getenv("STORE_BACKEND", "memory")

DB_CONFIG = {
    "host": os.getenv("DB_HOST", "localhost"),
    "port": int(os.getenv("DB_PORT", "3306")),
    "user": os.getenv("DB_USER", "root"),
    "password": os.getenv("DB_PASSWORD", ""),
    "database": os.getenv("DB_NAME", "attendance_db"),
}

# Office geofence (degrees, meters)
ALLOWED_LNG = float(os.getenv("ALLOWED_LNG", "8.8362755"))
ALLOWED_LAT = float(os.getenv("ALLOWED_LAT", "33.1245286"))
ALLOWED_RADIUS = float(os.getenv("ALLOWED_RADIUS", "500"))

FACE_MATCH_THRESHOLD = float(os.getenv("FACE_MATCH_THRESHOLD", "0.6"))
QR_SCAN_WINDOW_SECONDS = int(os.getenv("QR_SCAN_WINDOW_SECONDS", "300"))
QR_VALIDITY_HOURS = int(os.getenv("QR_VALIDITY_HOURS", "12"))

LATE_HOUR = int(os.getenv("LATE_HOUR", "9"))
OPEN_SESSION_LOOKBACK_DAYS = int(os.getenv("OPEN_SESSION_LOOKBACK_DAYS", "30"))
HISTORY_LIMIT = int(os.getenv("HISTORY_LIMIT", "7"))
DAILY_STATS_MAX_DAYS = int(os.getenv("DAILY_STATS_MAX_DAYS", "30"))
NOTIFY_MAX_RETRIES = int(os.getenv("NOTIFY_MAX_RETRIES", "2"))

LOG_LEVEL = os.getenv("LOG_LEVEL", "DEBUG")
DEBUG = True

# If enabled with the mysql backend, tables and indexes are created on startup
AUTO_INIT_DB = bool(int(os.getenv("AUTO_INIT_DB", "1")))
