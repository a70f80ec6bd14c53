from __future__ import annotations

import logging
import logging.handlers
from datetime import datetime
from pathlib import Path
from typing import Optional, Union

from flask import Flask

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
DETAILED_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(funcName)s:%(lineno)d - %(message)s"

_HANDLER_PREFIX = "smart_attendance."


def _drop_own_handlers(root: logging.Logger) -> None:
    for handler in list(root.handlers):
        if (handler.get_name() or "").startswith(_HANDLER_PREFIX):
            root.removeHandler(handler)
            handler.close()


def setup_logging(app: Flask, *, log_level: str = "INFO", log_dir: Optional[Union[str, Path]] = None) -> None:
    """Configure the root logger for the service.

    Always logs to the console. With ``log_dir`` set, also writes a rotating
    ``attendance_system.log`` and an errors-only ``errors.log``. Calling it again
    replaces the handlers installed by the previous call.
    """

    level = getattr(logging, str(log_level).upper(), logging.INFO)
    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    _drop_own_handlers(root_logger)

    console_handler = logging.StreamHandler()
    console_handler.set_name(_HANDLER_PREFIX + "console")
    console_handler.setLevel(level)
    console_handler.setFormatter(logging.Formatter(LOG_FORMAT))
    root_logger.addHandler(console_handler)

    if log_dir:
        log_path = Path(log_dir)
        log_path.mkdir(parents=True, exist_ok=True)

        file_handler = logging.handlers.RotatingFileHandler(
            log_path / "attendance_system.log",
            maxBytes=10 * 1024 * 1024,
            backupCount=5,
            encoding="utf-8",
        )
        file_handler.set_name(_HANDLER_PREFIX + "file")
        file_handler.setLevel(level)
        file_handler.setFormatter(logging.Formatter(DETAILED_FORMAT))
        root_logger.addHandler(file_handler)

        error_handler = logging.handlers.RotatingFileHandler(
            log_path / "errors.log",
            maxBytes=5 * 1024 * 1024,
            backupCount=3,
            encoding="utf-8",
        )
        error_handler.set_name(_HANDLER_PREFIX + "errors")
        error_handler.setLevel(logging.ERROR)
        error_handler.setFormatter(logging.Formatter(DETAILED_FORMAT))
        root_logger.addHandler(error_handler)

    # Per-request lines from werkzeug drown the verification logs.
    logging.getLogger("werkzeug").setLevel(max(level, logging.WARNING))

    app.logger.setLevel(level)
    app.logger.info("=" * 50)
    app.logger.info("SMART ATTENDANCE STARTUP")
    app.logger.info("Timestamp: %s", datetime.now().isoformat())
    app.logger.info("Log Level: %s", logging.getLevelName(level))
    if log_dir:
        app.logger.info("Log Directory: %s", Path(log_dir).absolute())
    app.logger.info("=" * 50)
