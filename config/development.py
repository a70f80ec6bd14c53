import os

SECRET_KEY = os.getenv("SECRET_KEY", "dev-secret-key")

DB_CONFIG = {
    "host": os.getenv("DB_HOST", "localhost"),
    "port": int(os.getenv("DB_PORT", "3306")),
    "user": os.getenv("DB_USER", "root"),
    "password": os.getenv("DB_PASSWORD", ""),
    "database": os.getenv("DB_NAME", "smart_attendance"),
}

# Shared secret RFID readers send in the X-Device-Token header
DEVICE_TOKEN = os.getenv("DEVICE_TOKEN", "dev-device-token")

DEBUG = True

LOG_LEVEL = os.getenv("LOG_LEVEL", "DEBUG")
LOG_DIR = os.getenv("LOG_DIR", "logs")

# Seconds a request waits for the verification loop to accept an RFID event
VERIFICATION_SUBMIT_TIMEOUT = float(os.getenv("VERIFICATION_SUBMIT_TIMEOUT", "30"))
# Per-attempt slack added to face_retry_count x interval before a dual-auth check times out
VERIFICATION_ATTEMPT_GRACE_SECONDS = float(os.getenv("VERIFICATION_ATTEMPT_GRACE_SECONDS", "2"))

# If enabled, app will apply schema.sql on startup (idempotent: CREATE IF NOT EXISTS)
AUTO_INIT_DB = bool(int(os.getenv("AUTO_INIT_DB", "1")))
# Optional: also seed demo data on startup
AUTO_SEED_DB = bool(int(os.getenv("AUTO_SEED_DB", "0")))
