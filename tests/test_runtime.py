import asyncio
import time

import pytest

from src.smart_attendance.smart_attendance.core.enums import AuthMode, RecordStatus
from src.smart_attendance.smart_attendance.runtime import VerificationRuntime
from src.smart_attendance.smart_attendance.settings.model import AttendanceConfig


@pytest.fixture
def runtime(world):
    rt = VerificationRuntime(world.orchestrator(), submit_timeout=5.0)
    rt.start()
    yield rt
    rt.stop(timeout=5.0)


def test_submit_runs_on_the_loop_thread(runtime):
    async def answer():
        await asyncio.sleep(0)
        return 42

    assert runtime.is_running
    assert runtime.submit(answer()) == 42


def test_process_rfid_event_through_runtime(runtime, world, tap):
    record = runtime.process_rfid_event(tap(), AttendanceConfig(mode=AuthMode.RFID_ONLY))

    assert record.status == RecordStatus.PRESENT
    assert world.attendance.records[record.id] == record


def test_background_verification_outlives_the_call(runtime, world, tap):
    config = AttendanceConfig(mode=AuthMode.DUAL_AUTH, face_retry_count=2, face_retry_interval_ms=0)

    record = runtime.process_rfid_event(tap(), config)
    runtime.submit(runtime.orchestrator.wait_idle())

    assert record.status == RecordStatus.PENDING
    assert world.attendance.records[record.id].status == RecordStatus.FAILED


def test_cancel_through_runtime(runtime, world, tap):
    config = AttendanceConfig(mode=AuthMode.DUAL_AUTH, face_retry_count=5, face_retry_interval_ms=1000)

    record = runtime.process_rfid_event(tap(), config)

    assert runtime.cancel(record.id) is True
    assert runtime.cancel("unknown") is False
    runtime.submit(runtime.orchestrator.wait_idle())
    assert world.attendance.records[record.id].status == RecordStatus.PENDING


def test_stop_cancels_running_verifications(world, tap):
    rt = VerificationRuntime(world.orchestrator())
    rt.start()
    config = AttendanceConfig(mode=AuthMode.DUAL_AUTH, face_retry_count=10, face_retry_interval_ms=1000)
    record = rt.process_rfid_event(tap(), config)

    started = time.monotonic()
    rt.stop(timeout=5.0)

    assert time.monotonic() - started < 5.0
    assert not rt.is_running
    assert not rt.orchestrator.is_pending(record.student_id, record.classroom_id)


def test_submit_requires_a_running_loop(world):
    rt = VerificationRuntime(world.orchestrator())

    async def nothing():
        return None

    with pytest.raises(RuntimeError):
        rt.submit(nothing())
