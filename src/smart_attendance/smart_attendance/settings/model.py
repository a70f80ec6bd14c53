from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any, Mapping

from ..common.validators import require_bool, require_int_at_least, require_unit_interval
from ..core.constants import (
    DEFAULT_FACE_MATCH_THRESHOLD,
    DEFAULT_FACE_RETRY_COUNT,
    DEFAULT_FACE_RETRY_INTERVAL_MS,
)
from ..core.enums import AuthMode
from ..core.exceptions import ValidationError


@dataclass(frozen=True)
class AttendanceConfig:
    """Verification policy. Immutable for the duration of one verification run."""

    mode: AuthMode = AuthMode.DUAL_AUTH
    face_retry_count: int = DEFAULT_FACE_RETRY_COUNT
    face_retry_interval_ms: int = DEFAULT_FACE_RETRY_INTERVAL_MS
    face_match_threshold: float = DEFAULT_FACE_MATCH_THRESHOLD
    notify_on_failure: bool = True
    auto_mark_rfid_only: bool = False

    def __post_init__(self):
        try:
            mode = AuthMode(self.mode)
        except ValueError:
            raise ValidationError(f"Unknown attendance mode: {self.mode!r}") from None
        object.__setattr__(self, "mode", mode)
        object.__setattr__(self, "face_retry_count", require_int_at_least(self.face_retry_count, "face_retry_count", 1))
        object.__setattr__(
            self,
            "face_retry_interval_ms",
            require_int_at_least(self.face_retry_interval_ms, "face_retry_interval_ms", 0),
        )
        object.__setattr__(
            self, "face_match_threshold", require_unit_interval(self.face_match_threshold, "face_match_threshold")
        )
        require_bool(self.notify_on_failure, "notify_on_failure")
        require_bool(self.auto_mark_rfid_only, "auto_mark_rfid_only")

    @property
    def retry_interval_seconds(self) -> float:
        return self.face_retry_interval_ms / 1000.0

    @property
    def verification_window_seconds(self) -> float:
        """Upper bound of a dual-auth workflow, excluding I/O."""
        return self.face_retry_count * self.retry_interval_seconds

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "AttendanceConfig":
        """Build from a parsed settings blob; unknown keys are ignored, missing keys use defaults."""

        if not isinstance(data, Mapping):
            raise ValidationError("attendance config must be a JSON object")
        known = {name: data[name] for name in cls.__dataclass_fields__ if name in data}
        return cls(**known)

    def to_dict(self) -> dict:
        out = asdict(self)
        out["mode"] = self.mode.value
        return out


DEFAULT_CONFIG = AttendanceConfig()
