import os

SECRET_KEY = "test-secret"

DB_CONFIG = {
    "host": os.getenv("DB_HOST", "localhost"),
    "port": int(os.getenv("DB_PORT", "3306")),
    "user": os.getenv("DB_USER", "root"),
    "password": os.getenv("DB_PASSWORD", ""),
    "database": os.getenv("DB_NAME", "smart_attendance_test"),
}

DEVICE_TOKEN = "test-device-token"

DEBUG = False
TESTING = True

LOG_LEVEL = "WARNING"
# Unset: console logging only
LOG_DIR = os.getenv("LOG_DIR")

VERIFICATION_SUBMIT_TIMEOUT = 5.0
VERIFICATION_ATTEMPT_GRACE_SECONDS = 0.5

AUTO_INIT_DB = bool(int(os.getenv("AUTO_INIT_DB", "0")))
AUTO_SEED_DB = bool(int(os.getenv("AUTO_SEED_DB", "0")))
