from __future__ import annotations

import base64
import binascii
import logging

from flask import Flask, jsonify, request

from ..core.exceptions import NotFoundError, ValidationError
from ..container import Container

logger = logging.getLogger(__name__)


def _image_bytes(payload) -> bytes:
    """Accept a bare base64 string or a browser data URL ("data:image/png;base64,...")."""

    if not isinstance(payload, dict) or not isinstance(payload.get("image"), str):
        raise ValidationError("image is required")
    data = payload["image"]
    if data.startswith("data:"):
        data = data.split(",", 1)[-1]
    try:
        return base64.b64decode(data, validate=True)
    except (binascii.Error, ValueError):
        raise ValidationError("image must be base64 encoded") from None


def register(app: Flask, container: Container) -> None:
    @app.route("/api/faces/reload", methods=["POST"], endpoint="api_faces_reload")
    def api_faces_reload():
        try:
            count = container.face_cache.reload()
        except Exception:
            logger.exception("Reloading enrolled faces failed")
            return jsonify({"success": False, "message": "Could not reload face data"}), 500
        return jsonify({"success": True, "faces": count})

    @app.route("/api/faces/<student_id>/enroll", methods=["POST"], endpoint="api_faces_enroll")
    def api_faces_enroll(student_id: str):
        try:
            encoding = container.face_enrollment.enroll(student_id, _image_bytes(request.get_json(silent=True)))
        except ValidationError as e:
            return jsonify({"success": False, "message": str(e)}), 400
        except NotFoundError as e:
            return jsonify({"success": False, "message": str(e)}), 404
        except Exception:
            logger.exception("Face enrollment failed for student %s", student_id)
            return jsonify({"success": False, "message": "Face enrollment failed"}), 500
        return jsonify({"success": True, "student_id": student_id, "dimensions": int(encoding.size)}), 201
