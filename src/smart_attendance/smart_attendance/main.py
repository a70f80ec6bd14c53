from __future__ import annotations

import atexit
import importlib
import logging
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from flask import Flask, jsonify

from config import get_settings_module

from .attendance.controller import register as register_attendance
from .core.constants import ATTEMPT_GRACE_SECONDS
from .container import Container, build_container
from .database.bootstrap import apply_schema, apply_seed_sql, ensure_demo_data, list_tables
from .face.controller import register as register_faces
from .logging_config import setup_logging
from .settings.controller import register as register_settings

logger = logging.getLogger(__name__)


def create_app(*, container: Optional[Container] = None) -> Flask:
    load_dotenv(override=False)
    app = Flask(__name__)

    settings_module = get_settings_module()
    settings = importlib.import_module(settings_module)
    app.secret_key = getattr(settings, "SECRET_KEY")
    db_config = getattr(settings, "DB_CONFIG")
    app.config["DEBUG"] = bool(getattr(settings, "DEBUG", False))
    app.config["TESTING"] = bool(getattr(settings, "TESTING", False))
    app.config["DEVICE_TOKEN"] = getattr(settings, "DEVICE_TOKEN", "")

    setup_logging(
        app,
        log_level=getattr(settings, "LOG_LEVEL", "INFO"),
        log_dir=getattr(settings, "LOG_DIR", None),
    )
    if not app.config["DEVICE_TOKEN"]:
        logger.warning("DEVICE_TOKEN is empty; every RFID event will be rejected")

    if container is None:
        logger.info(
            "settings=%s db=%s@%s:%s/%s",
            settings_module,
            db_config.get("user"),
            db_config.get("host"),
            db_config.get("port", 3306),
            db_config.get("database"),
        )

        database_dir = Path(__file__).resolve().parents[3] / "database"
        if bool(getattr(settings, "AUTO_INIT_DB", False)):
            apply_schema(db_config, schema_path=database_dir / "schema.sql")
            logger.info("Schema ready (tables=%d)", len(list_tables(db_config)))
        if bool(getattr(settings, "AUTO_SEED_DB", False)):
            ensure_demo_data(db_config)
            apply_seed_sql(db_config, seed_path=database_dir / "seed.sql")
            logger.info("Demo seed ready")

        container = build_container(
            db_config=db_config,
            submit_timeout=float(getattr(settings, "VERIFICATION_SUBMIT_TIMEOUT", 30.0)),
            attempt_grace_seconds=float(getattr(settings, "VERIFICATION_ATTEMPT_GRACE_SECONDS", ATTEMPT_GRACE_SECONDS)),
        )

    container.runtime.start()
    atexit.register(container.runtime.stop)

    register_attendance(app, container)
    register_settings(app, container)
    register_faces(app, container)

    @app.route("/health", methods=["GET"], endpoint="health")
    def health():
        return jsonify(
            {
                "status": "ok",
                "runtime": container.runtime.is_running,
                "faces_loaded": container.face_cache.is_loaded,
            }
        )

    return app
