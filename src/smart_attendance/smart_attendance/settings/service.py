from __future__ import annotations

import json
import logging
from typing import Any, Mapping, Union

from ..core.constants import ATTENDANCE_CONFIG_KEY
from ..core.exceptions import ValidationError
from .model import DEFAULT_CONFIG, AttendanceConfig
from .repository import SettingsRepository

logger = logging.getLogger(__name__)


class SettingsService:
    """Loads and saves the attendance policy stored as a JSON blob under one settings key."""

    def __init__(self, settings: SettingsRepository, *, key: str = ATTENDANCE_CONFIG_KEY):
        self._settings = settings
        self._key = key

    def load_attendance_config(self) -> AttendanceConfig:
        raw = self._settings.get_value(self._key)
        if not raw:
            return DEFAULT_CONFIG

        try:
            data = json.loads(raw)
        except json.JSONDecodeError:
            logger.warning("Setting %r is not valid JSON, using defaults", self._key)
            return DEFAULT_CONFIG

        try:
            return AttendanceConfig.from_dict(data)
        except ValidationError as e:
            logger.warning("Setting %r holds an invalid config (%s), using defaults", self._key, e)
            return DEFAULT_CONFIG

    def save_attendance_config(self, config: Union[AttendanceConfig, Mapping[str, Any]]) -> AttendanceConfig:
        if not isinstance(config, AttendanceConfig):
            config = AttendanceConfig.from_dict(config)

        self._settings.set_value(self._key, json.dumps(config.to_dict()))
        logger.info("Attendance config saved: %s", config.to_dict())
        return config
