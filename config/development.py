import os

SECRET_KEY = os.getenv("SECRET_KEY", "dev-secret-key")

DB_CONFIG = {
    "host": os.getenv("DB_HOST", "localhost"),
    "port": int(os.getenv("DB_PORT", "3306")),
    "user": os.getenv("DB_USER", "root"),
    "password": os.getenv("DB_PASSWORD", ""),
    "database": os.getenv("DB_NAME", "live_attendance_db"),
    "connection_timeout": int(os.getenv("DB_CONNECT_TIMEOUT", "10")),
}

DEBUG = True
LOG_LEVEL = os.getenv("LOG_LEVEL", "DEBUG")

# Live dashboard refresh timing (seconds)
LIVE_REFRESH_INTERVAL_SECONDS = float(os.getenv("LIVE_REFRESH_INTERVAL_SECONDS", "30"))
LIVE_VISIBILITY_DEBOUNCE_SECONDS = float(os.getenv("LIVE_VISIBILITY_DEBOUNCE_SECONDS", "1"))
LIVE_ONLINE_RETRY_SECONDS = float(os.getenv("LIVE_ONLINE_RETRY_SECONDS", "2"))
LIVE_IDLE_TIMEOUT_SECONDS = float(os.getenv("LIVE_IDLE_TIMEOUT_SECONDS", "300"))

# If enabled, app will apply schema.sql on startup (idempotent: CREATE IF NOT EXISTS)
AUTO_INIT_DB = bool(int(os.getenv("AUTO_INIT_DB", "1")))
# Optional: also seed demo data on startup
AUTO_SEED_DB = bool(int(os.getenv("AUTO_SEED_DB", "0")))
