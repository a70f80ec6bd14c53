"""Example: feed one RFID tap through the verification runtime (no Flask).

Needs a database prepared with scripts/init_db.py and scripts/seed_db.py.
"""

import importlib

from config import get_settings_module

from src.smart_attendance.smart_attendance.attendance.model import RFIDEvent
from src.smart_attendance.smart_attendance.container import build_container


def main():
    settings = importlib.import_module(get_settings_module())
    container = build_container(db_config=settings.DB_CONFIG)
    container.runtime.start()
    try:
        config = container.settings_service.load_attendance_config()
        event = RFIDEvent.from_payload({"device_id": "reader-101", "card_id": "CARD0001", "classroom_id": "room-101"})
        record = container.runtime.process_rfid_event(event, config)
        print("created:", record.to_dict() if record else None)

        if record is not None and not record.is_terminal:
            container.runtime.submit(container.orchestrator.wait_idle(), timeout=config.verification_window_seconds + 60)
        for r in container.attendance_repo.list_recent(limit=5, classroom_id="room-101"):
            print(r.to_dict())
    finally:
        container.runtime.stop()


if __name__ == "__main__":
    main()
