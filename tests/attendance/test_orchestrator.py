from __future__ import annotations

import asyncio
import logging
import time
from datetime import timezone

import pytest

from src.smart_attendance.smart_attendance.attendance.model import RFIDEvent
from src.smart_attendance.smart_attendance.core.enums import (
    AuthMode,
    NotificationType,
    RecordStatus,
    VerificationMethod,
)
from src.smart_attendance.smart_attendance.core.exceptions import PersistenceError
from src.smart_attendance.smart_attendance.face.model import FaceMatchResult
from src.smart_attendance.smart_attendance.settings.model import AttendanceConfig


def _config(**overrides) -> AttendanceConfig:
    values = dict(mode=AuthMode.DUAL_AUTH, face_retry_count=3, face_retry_interval_ms=0)
    values.update(overrides)
    return AttendanceConfig(**values)


def _run(orch, event, config):
    async def scenario():
        record = await orch.process_rfid_event(event, config)
        await orch.wait_idle()
        return record

    return asyncio.run(scenario())


@pytest.mark.parametrize("mode", [AuthMode.RFID_ONLY, AuthMode.RFID_OR_FACE])
def test_rfid_modes_mark_present_without_touching_the_camera(world, tap, mode):
    orch = world.orchestrator()

    record = _run(orch, tap(), _config(mode=mode))

    assert record.status == RecordStatus.PRESENT
    assert record.verification_method == VerificationMethod.RFID_ONLY
    assert record.rfid_verified is True
    assert record.face_verified is False
    assert record.timetable_id == "tt-1"
    assert world.attendance.records[record.id] == record
    assert world.cameras.lookups == 0
    assert world.matcher.calls == 0


def test_face_only_mode_acknowledges_the_tap_without_a_record(world, tap):
    orch = world.orchestrator()

    assert _run(orch, tap(), _config(mode=AuthMode.FACE_ONLY)) is None
    assert world.attendance.created == []
    assert world.attendance.updates == []


@pytest.mark.parametrize("mode", list(AuthMode))
@pytest.mark.parametrize("card_id", ["UNKNOWN123", "CARD-OLD", "CARD-T"])
def test_unresolved_card_yields_nothing_in_every_mode(world, tap, mode, card_id):
    orch = world.orchestrator()

    assert _run(orch, tap(card_id=card_id), _config(mode=mode)) is None
    assert world.attendance.created == []


def test_utc_reader_timestamp_finds_the_local_period(world, tap):
    local = tap().timestamp
    utc = local.astimezone(timezone.utc).replace(tzinfo=None).isoformat() + "Z"
    event = RFIDEvent.from_payload({"card_id": "CARD-S1", "classroom_id": "room-1", "timestamp": utc})
    orch = world.orchestrator()

    record = _run(orch, event, _config(mode=AuthMode.RFID_ONLY))

    assert record.timestamp == local
    assert record.timetable_id == "tt-1"


def test_card_owner_wins_over_pre_resolved_student(world, tap):
    orch = world.orchestrator()

    record = _run(orch, tap(student_id="s2"), _config(mode=AuthMode.RFID_ONLY))

    assert record.student_id == "s1"


def test_dual_auth_creates_pending_record_first(world, tap):
    orch = world.orchestrator()

    record = _run(orch, tap(), _config())

    assert record.status == RecordStatus.PENDING
    assert record.verification_method == VerificationMethod.RFID_PENDING
    assert world.attendance.created == [record]


def test_dual_auth_failing_matcher_marks_failed_and_notifies_once(world, tap):
    orch = world.orchestrator()

    record = _run(orch, tap(), _config(face_retry_count=3))

    final = world.attendance.records[record.id]
    assert final.status == RecordStatus.FAILED
    assert final.retry_count == 3
    assert final.face_verified is False
    assert world.matcher.calls == 3
    assert len(world.alerts.events) == 1
    alert = world.alerts.events[0]
    assert alert.type == NotificationType.ATTENDANCE_FAILURE
    assert alert.student_id == "s1"
    assert "Alice Student" in alert.message
    assert "max_retries" in alert.message


def test_dual_auth_failure_without_notification(world, tap):
    orch = world.orchestrator()

    record = _run(orch, tap(), _config(notify_on_failure=False))

    assert world.attendance.records[record.id].status == RecordStatus.FAILED
    assert world.alerts.events == []


def test_dual_auth_auto_mark_downgrades_to_rfid_only(world, tap):
    orch = world.orchestrator()

    record = _run(orch, tap(), _config(auto_mark_rfid_only=True))

    final = world.attendance.records[record.id]
    assert final.status == RecordStatus.PRESENT
    assert final.verification_method == VerificationMethod.RFID_ONLY
    assert final.face_verified is False
    assert len(world.alerts.events) == 1


def test_dual_auth_match_on_second_attempt(world, tap):
    world.matcher.results = [
        FaceMatchResult.no_match("s1"),
        FaceMatchResult(matched=True, confidence=0.91, student_id="s1"),
    ]
    orch = world.orchestrator()

    record = _run(orch, tap(), _config(face_retry_count=3))

    final = world.attendance.records[record.id]
    assert world.matcher.calls == 2
    assert final.status == RecordStatus.PRESENT
    assert final.verification_method == VerificationMethod.DUAL_VERIFIED
    assert final.face_verified is True
    assert final.confidence_score == pytest.approx(0.91)
    assert final.retry_count == 2
    assert world.alerts.events == []


def test_match_below_threshold_is_not_accepted(world, tap):
    world.matcher.results = [FaceMatchResult(matched=True, confidence=0.5, student_id="s1")]
    orch = world.orchestrator()

    record = _run(orch, tap(), _config(face_retry_count=1, face_match_threshold=0.75))

    assert world.attendance.records[record.id].status == RecordStatus.FAILED


@pytest.mark.parametrize(
    "auto_mark, expected",
    [(False, RecordStatus.FAILED), (True, RecordStatus.PRESENT)],
)
def test_missing_camera_ends_after_one_attempt(world, tap, auto_mark, expected):
    orch = world.orchestrator()
    config = _config(face_retry_count=3, face_retry_interval_ms=1000, auto_mark_rfid_only=auto_mark)

    started = time.monotonic()
    record = _run(orch, tap(classroom_id="room-2"), config)

    assert time.monotonic() - started < 1.0
    assert world.cameras.lookups == 1
    assert world.matcher.calls == 0
    assert world.attendance.records[record.id].status == expected
    assert [e.type for e in world.alerts.events] == [NotificationType.FACE_NOT_DETECTED]


def test_duplicate_tap_joins_the_running_verification(world, tap):
    orch = world.orchestrator()
    config = _config(face_retry_count=2, face_retry_interval_ms=200)

    async def scenario():
        first, second = await asyncio.gather(
            orch.process_rfid_event(tap(), config),
            orch.process_rfid_event(tap(), config),
        )
        assert orch.is_pending("s1", "room-1")
        await orch.wait_idle()
        return first, second

    first, second = asyncio.run(scenario())

    assert first.id == second.id
    assert len(world.attendance.created) == 1
    assert len(world.alerts.events) == 1
    assert not orch.is_pending("s1", "room-1")


def test_new_tap_after_verification_finished_creates_a_new_record(world, tap):
    orch = world.orchestrator()

    first = _run(orch, tap(), _config(face_retry_count=1))
    second = _run(orch, tap(), _config(face_retry_count=1))

    assert first.id != second.id
    assert len(world.attendance.created) == 2


def test_cancel_stops_the_loop_without_writes(world, tap):
    orch = world.orchestrator()
    config = _config(face_retry_count=5, face_retry_interval_ms=200)

    async def scenario():
        record = await orch.process_rfid_event(tap(), config)
        await asyncio.sleep(0.05)
        assert orch.cancel(record.id) is True
        await orch.wait_idle()
        return record

    record = asyncio.run(scenario())

    assert world.attendance.records[record.id].status == RecordStatus.PENDING
    assert world.attendance.updates == []
    assert world.alerts.events == []
    assert world.matcher.calls < 5
    assert not orch.is_pending("s1", "room-1")


def test_cancel_unknown_record(world):
    assert world.orchestrator().cancel("nope") is False


def test_workflow_is_bounded_by_the_verification_window(world, tap):
    class SlowMatcher:
        def match_face(self, frame, student_id, threshold):
            time.sleep(0.5)
            return FaceMatchResult(matched=True, confidence=0.99, student_id=student_id)

    world.matcher = SlowMatcher()
    orch = world.orchestrator(attempt_grace_seconds=0.05)

    record = _run(orch, tap(), _config(face_retry_count=2, face_retry_interval_ms=10))

    final = world.attendance.records[record.id]
    assert final.status == RecordStatus.FAILED
    assert final.retry_count == 2


def test_create_is_retried_before_giving_up(world, tap):
    world.attendance.failing_creates = 2
    orch = world.orchestrator(persist_attempts=3)

    record = _run(orch, tap(), _config(mode=AuthMode.RFID_ONLY))

    assert world.attendance.records[record.id].status == RecordStatus.PRESENT


@pytest.mark.parametrize("mode", [AuthMode.RFID_ONLY, AuthMode.DUAL_AUTH])
def test_create_failure_surfaces_as_persistence_error(world, tap, mode):
    world.attendance.failing_creates = 10
    orch = world.orchestrator(persist_attempts=3)

    with pytest.raises(PersistenceError):
        _run(orch, tap(), _config(mode=mode))

    assert world.attendance.failing_creates == 7
    assert not orch.is_pending("s1", "room-1")


def test_update_failure_is_contained_in_the_workflow(world, tap, caplog):
    world.attendance.failing_updates = 10
    orch = world.orchestrator(persist_attempts=2)

    record = _run(orch, tap(), _config(face_retry_count=1))

    assert world.attendance.records[record.id].status == RecordStatus.PENDING
    assert world.alerts.events == []
    assert not orch.is_pending("s1", "room-1")

    errors = [r.getMessage() for r in caplog.records if r.levelno == logging.ERROR]
    assert any(record.id in m and "status=failed" in m and "retry_count=1" in m for m in errors)


def test_notification_failure_does_not_affect_the_record(world, tap):
    world.alerts.fail = True
    orch = world.orchestrator()

    record = _run(orch, tap(), _config(face_retry_count=1))

    assert world.attendance.records[record.id].status == RecordStatus.FAILED


def test_shutdown_cancels_running_workflows(world, tap):
    orch = world.orchestrator()
    config = _config(face_retry_count=10, face_retry_interval_ms=1000)

    async def scenario():
        record = await orch.process_rfid_event(tap(), config)
        await asyncio.sleep(0.05)
        await orch.shutdown(2.0)
        return record

    started = time.monotonic()
    record = asyncio.run(scenario())

    assert time.monotonic() - started < 2.0
    assert world.attendance.records[record.id].status == RecordStatus.PENDING
    assert not orch.is_pending("s1", "room-1")
