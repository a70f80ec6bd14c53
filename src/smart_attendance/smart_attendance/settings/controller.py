from __future__ import annotations

from flask import Flask, jsonify, request

from ..core.exceptions import ValidationError
from ..container import Container


def register(app: Flask, container: Container) -> None:
    @app.route("/api/settings/attendance", methods=["GET"], endpoint="api_settings_attendance_get")
    def api_settings_attendance_get():
        config = container.settings_service.load_attendance_config()
        return jsonify({"success": True, "config": config.to_dict()})

    @app.route("/api/settings/attendance", methods=["POST"], endpoint="api_settings_attendance_save")
    def api_settings_attendance_save():
        data = request.get_json(silent=True)
        try:
            config = container.settings_service.save_attendance_config(data)
        except ValidationError as e:
            return jsonify({"success": False, "message": str(e)}), 400
        # In-flight verifications keep the config they started with.
        return jsonify({"success": True, "config": config.to_dict()})
