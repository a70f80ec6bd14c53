from __future__ import annotations

import hmac
import logging
from functools import wraps

from flask import Flask, current_app, jsonify, request

from ..core.constants import DEFAULT_HISTORY_LIMIT
from ..core.exceptions import AuthenticationError, PersistenceError, ValidationError
from ..container import Container
from .model import RFIDEvent

logger = logging.getLogger(__name__)

MAX_HISTORY_LIMIT = 500


def _check_device_token() -> None:
    expected = current_app.config.get("DEVICE_TOKEN") or ""
    presented = request.headers.get("X-Device-Token", "")
    if not expected or not hmac.compare_digest(presented.encode(), expected.encode()):
        raise AuthenticationError("Invalid device token")


def device_required(view):
    @wraps(view)
    def wrapper(*args, **kwargs):
        try:
            _check_device_token()
        except AuthenticationError as e:
            logger.warning("Rejected device request from %s: %s", request.remote_addr, e)
            return jsonify({"success": False, "message": str(e)}), 401
        return view(*args, **kwargs)

    return wrapper


def _parse_limit(value) -> int:
    if value in (None, ""):
        return DEFAULT_HISTORY_LIMIT
    try:
        limit = int(value)
    except (TypeError, ValueError):
        raise ValidationError(f"limit must be an integer, got {value!r}") from None
    if limit < 1:
        raise ValidationError("limit must be >= 1")
    return min(limit, MAX_HISTORY_LIMIT)


def register(app: Flask, container: Container) -> None:
    @app.route("/api/rfid/events", methods=["POST"], endpoint="api_rfid_events")
    @device_required
    def api_rfid_events():
        try:
            event = RFIDEvent.from_payload(request.get_json(silent=True))
            config = container.settings_service.load_attendance_config()
            record = container.runtime.process_rfid_event(event, config)
        except ValidationError as e:
            return jsonify({"success": False, "message": str(e)}), 400
        except PersistenceError as e:
            logger.error("RFID event from device %s not stored: %s", request.remote_addr, e)
            return jsonify({"success": False, "message": "Attendance could not be stored"}), 500
        except Exception:
            logger.exception("RFID event processing failed")
            return jsonify({"success": False, "message": "Internal error"}), 500

        if record is None:
            return jsonify({"success": True, "accepted": True, "record": None}), 202
        return jsonify({"success": True, "accepted": True, "record": record.to_dict()}), 201

    @app.route("/api/attendance", methods=["GET"], endpoint="api_attendance_list")
    def api_attendance_list():
        try:
            limit = _parse_limit(request.args.get("limit"))
        except ValidationError as e:
            return jsonify({"success": False, "message": str(e)}), 400

        classroom_id = (request.args.get("classroom_id") or "").strip() or None
        records = container.attendance_repo.list_recent(limit=limit, classroom_id=classroom_id)
        return jsonify({"success": True, "records": [r.to_dict() for r in records]})

    @app.route("/api/attendance/<record_id>/cancel", methods=["POST"], endpoint="api_attendance_cancel")
    def api_attendance_cancel(record_id: str):
        cancelled = container.runtime.cancel(record_id)
        if not cancelled:
            return jsonify({"success": False, "message": "No verification in progress for this record"}), 404
        return jsonify({"success": True, "record_id": record_id, "cancelled": True})
