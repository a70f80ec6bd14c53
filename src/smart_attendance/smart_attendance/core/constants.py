"""Constants and defaults.

Note: Keep constants here to avoid magic numbers spread across code.
"""

ATTENDANCE_CONFIG_KEY = "attendance_config"

DEFAULT_FACE_RETRY_COUNT = 3
DEFAULT_FACE_RETRY_INTERVAL_MS = 5000
DEFAULT_FACE_MATCH_THRESHOLD = 0.75

# Extra seconds per face attempt on top of the retry interval (camera + encoder I/O).
# Overridden by VERIFICATION_ATTEMPT_GRACE_SECONDS in the settings module.
ATTEMPT_GRACE_SECONDS = 2.0

PERSIST_RETRY_ATTEMPTS = 3
PERSIST_RETRY_BACKOFF_SECONDS = 0.2

DEFAULT_HISTORY_LIMIT = 50
