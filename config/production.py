import os

SECRET_KEY = os.getenv("SECRET_KEY", "please-set-SECRET_KEY")

DB_CONFIG = {
    "host": os.getenv("DB_HOST", "localhost"),
    "port": int(os.getenv("DB_PORT", "3306")),
    "user": os.getenv("DB_USER", "attendance"),
    "password": os.getenv("DB_PASSWORD", ""),
    "database": os.getenv("DB_NAME", "smart_attendance"),
}

DEVICE_TOKEN = os.getenv("DEVICE_TOKEN", "")

DEBUG = False

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
LOG_DIR = os.getenv("LOG_DIR", "logs")

VERIFICATION_SUBMIT_TIMEOUT = float(os.getenv("VERIFICATION_SUBMIT_TIMEOUT", "30"))
# Per-attempt slack added to face_retry_count x interval before a dual-auth check times out
VERIFICATION_ATTEMPT_GRACE_SECONDS = float(os.getenv("VERIFICATION_ATTEMPT_GRACE_SECONDS", "2"))

AUTO_INIT_DB = bool(int(os.getenv("AUTO_INIT_DB", "0")))
AUTO_SEED_DB = bool(int(os.getenv("AUTO_SEED_DB", "0")))
