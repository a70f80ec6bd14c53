from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Optional, Tuple

from ..common.async_utils import run_blocking
from ..core.constants import ATTEMPT_GRACE_SECONDS, PERSIST_RETRY_ATTEMPTS, PERSIST_RETRY_BACKOFF_SECONDS
from ..core.enums import FailureReason, RecordStatus, Role, VerificationMethod
from ..core.exceptions import PersistenceError
from ..notifications.service import NotificationDispatcher
from ..settings.model import AttendanceConfig
from ..timetable.repository import TimetableRepository
from ..users.model import User
from ..users.repository import UserRepository
from .factory import VerificationStrategyFactory
from .model import AttendanceRecord, RFIDEvent
from .repository import AttendanceRepository
from .retry import CancelToken, RetryController, RetryOutcome, RetryStatus

logger = logging.getLogger(__name__)


@dataclass
class _Workflow:
    record: AttendanceRecord
    token: CancelToken = field(default_factory=CancelToken)
    task: Optional["asyncio.Task[None]"] = None


class VerificationOrchestrator:
    """Turns RFID taps into attendance records.

    Every coroutine here runs on one event loop. Dual-auth verification is spawned
    as a task per record; at most one such task exists per (student, classroom).
    """

    def __init__(
        self,
        attendance: AttendanceRepository,
        users: UserRepository,
        timetable: TimetableRepository,
        retry_controller: RetryController,
        notifier: NotificationDispatcher,
        *,
        strategy_factory: VerificationStrategyFactory | None = None,
        persist_attempts: int = PERSIST_RETRY_ATTEMPTS,
        persist_backoff_seconds: float = PERSIST_RETRY_BACKOFF_SECONDS,
        attempt_grace_seconds: float = ATTEMPT_GRACE_SECONDS,
    ):
        self._attendance = attendance
        self._users = users
        self._timetable = timetable
        self._retry = retry_controller
        self._notifier = notifier
        self._factory = strategy_factory or VerificationStrategyFactory()
        self._persist_attempts = max(1, int(persist_attempts))
        self._persist_backoff = float(persist_backoff_seconds)
        self._attempt_grace = float(attempt_grace_seconds)

        self._inflight: Dict[Tuple[str, str], _Workflow] = {}
        self._by_record: Dict[str, _Workflow] = {}

    async def process_rfid_event(self, event: RFIDEvent, config: AttendanceConfig) -> Optional[AttendanceRecord]:
        student = await self._resolve_student(event)
        if student is None:
            logger.info("Card %s from device %s is not mapped to an active student", event.card_id, event.device_id)
            return None

        period = await run_blocking(
            self._timetable.find_period,
            classroom_id=event.classroom_id,
            day_of_week=event.timestamp.weekday(),
            at=event.timestamp.time(),
        )
        record = AttendanceRecord.pending(
            student_id=student.user_id,
            classroom_id=event.classroom_id,
            timestamp=event.timestamp,
            timetable_id=period.period_id if period else None,
        )

        decision = self._factory.for_mode(config.mode).decide(record)
        if decision.record is None:
            logger.info("Mode %s: RFID tap of student %s acknowledged without a record", config.mode.value, student.user_id)
            return None
        record = decision.record

        if not decision.requires_face:
            await self._persist("create", self._attendance.create, record)
            logger.info("Student %s marked %s by RFID (record %s)", record.student_id, record.status.value, record.id)
            return record

        key = (record.student_id, record.classroom_id)
        existing = self._inflight.get(key)
        if existing is not None:
            logger.info("Duplicate tap for student %s in %s; verification %s already running", key[0], key[1], existing.record.id)
            return existing.record

        # Reserve the slot before the first await so a concurrent tap sees it.
        workflow = _Workflow(record=record)
        self._inflight[key] = workflow
        self._by_record[record.id] = workflow
        try:
            await self._persist("create", self._attendance.create, record)
        except PersistenceError:
            self._forget(workflow)
            raise

        workflow.task = asyncio.create_task(self._run_dual_auth(workflow, config), name=f"verify-{record.id}")
        logger.info("Record %s pending face confirmation for student %s", record.id, record.student_id)
        return record

    def cancel(self, record_id: str) -> bool:
        """Stop the verification loop of one record; the record keeps its last persisted state."""
        workflow = self._by_record.get(record_id)
        if workflow is None:
            return False
        workflow.token.cancel()
        logger.info("Verification of record %s cancelled", record_id)
        return True

    def is_pending(self, student_id: str, classroom_id: str) -> bool:
        return (student_id, classroom_id) in self._inflight

    async def wait_idle(self) -> None:
        """Wait until every running verification finished (mainly for shutdown and tests)."""
        while self._by_record:
            tasks = [w.task for w in list(self._by_record.values()) if w.task is not None]
            if not tasks:
                await asyncio.sleep(0.01)
                continue
            await asyncio.gather(*tasks, return_exceptions=True)

    async def shutdown(self, timeout: Optional[float] = None) -> None:
        for workflow in list(self._by_record.values()):
            workflow.token.cancel()
        try:
            await asyncio.wait_for(self.wait_idle(), timeout)
        except asyncio.TimeoutError:
            logger.warning("Verification workflows still running after %ss, cancelling tasks", timeout)
            for workflow in list(self._by_record.values()):
                if workflow.task is not None:
                    workflow.task.cancel()

    async def handle_face_detection_failure(
        self,
        record: AttendanceRecord,
        config: AttendanceConfig,
        reason: FailureReason,
    ) -> AttendanceRecord:
        logger.warning("Face verification failed for record %s: %s", record.id, reason.value)

        if config.auto_mark_rfid_only:
            final = record.advance(
                status=RecordStatus.PRESENT,
                verification_method=VerificationMethod.RFID_ONLY,
                face_verified=False,
            )
        else:
            final = record.advance(status=RecordStatus.FAILED, retry_count=config.face_retry_count)

        await self._update(final)

        if config.notify_on_failure:
            await run_blocking(self._notifier.send_failure_notifications, final, reason)
        return final

    async def _run_dual_auth(self, workflow: _Workflow, config: AttendanceConfig) -> None:
        record = workflow.record
        timeout = config.verification_window_seconds + config.face_retry_count * self._attempt_grace
        try:
            try:
                outcome = await asyncio.wait_for(
                    self._retry.run(
                        student_id=record.student_id,
                        classroom_id=record.classroom_id,
                        config=config,
                        token=workflow.token,
                    ),
                    timeout,
                )
            except asyncio.TimeoutError:
                logger.warning("Verification of record %s timed out after %.1fs", record.id, timeout)
                outcome = RetryOutcome(RetryStatus.EXHAUSTED, config.face_retry_count)

            if outcome.status == RetryStatus.CANCELLED or workflow.token.cancelled:
                logger.info("Verification of record %s stopped after %d attempts", record.id, outcome.attempts)
                return

            record = record.advance(retry_count=min(outcome.attempts, config.face_retry_count))
            if outcome.matched:
                await self._confirm_face(record, outcome)
            elif outcome.status == RetryStatus.NO_CAMERA:
                await self.handle_face_detection_failure(record, config, FailureReason.NO_CAMERA)
            else:
                await self.handle_face_detection_failure(record, config, FailureReason.MAX_RETRIES)
        except PersistenceError:
            logger.exception("Verification of record %s ended without a stored verdict", record.id)
        except Exception:
            logger.exception("Verification of record %s crashed", record.id)
            if not record.is_terminal and not workflow.token.cancelled:
                await self._fail_safely(record, config)
        finally:
            self._forget(workflow)

    async def _confirm_face(self, record: AttendanceRecord, outcome: RetryOutcome) -> AttendanceRecord:
        final = record.advance(
            status=RecordStatus.PRESENT,
            verification_method=VerificationMethod.DUAL_VERIFIED,
            face_verified=True,
            confidence_score=outcome.confidence,
        )
        await self._update(final)
        logger.info("Record %s face-verified (confidence=%.3f)", final.id, outcome.confidence)
        return final

    async def _fail_safely(self, record: AttendanceRecord, config: AttendanceConfig) -> None:
        try:
            await self.handle_face_detection_failure(record, config, FailureReason.MAX_RETRIES)
        except PersistenceError:
            logger.exception("Record %s could not be finalized", record.id)

    async def _resolve_student(self, event: RFIDEvent) -> Optional[User]:
        student = await run_blocking(self._users.find_active_by_rfid, event.card_id, role=Role.STUDENT)
        if student and event.student_id and event.student_id != student.user_id:
            logger.warning(
                "Event names student %s but card %s belongs to %s; using the card owner",
                event.student_id,
                event.card_id,
                student.user_id,
            )
        return student

    async def _update(self, record: AttendanceRecord) -> None:
        try:
            updated = await self._persist(
                "update",
                self._attendance.update_verification,
                record_id=record.id,
                status=record.status,
                verification_method=record.verification_method,
                face_verified=record.face_verified,
                confidence_score=record.confidence_score,
                retry_count=record.retry_count,
            )
        except PersistenceError:
            # The row stays pending; these fields are what it should have become.
            logger.error(
                "Record %s left pending, needs reconciliation: status=%s method=%s face_verified=%s "
                "confidence=%s retry_count=%d",
                record.id,
                record.status.value,
                record.verification_method.value,
                record.face_verified,
                record.confidence_score,
                record.retry_count,
            )
            raise
        if not updated:
            logger.warning("Record %s was not updated (missing or already final)", record.id)

    async def _persist(self, op: str, fn: Callable[..., Any], *args: Any, **kwargs: Any) -> Any:
        for attempt in range(1, self._persist_attempts + 1):
            try:
                return await run_blocking(fn, *args, **kwargs)
            except Exception as exc:
                if attempt >= self._persist_attempts:
                    raise PersistenceError(f"Attendance {op} failed after {attempt} attempts: {exc}") from exc
                logger.warning("Attendance %s failed (attempt %d/%d): %s", op, attempt, self._persist_attempts, exc)
                await asyncio.sleep(self._persist_backoff * attempt)

    def _forget(self, workflow: _Workflow) -> None:
        key = (workflow.record.student_id, workflow.record.classroom_id)
        if self._inflight.get(key) is workflow:
            del self._inflight[key]
        self._by_record.pop(workflow.record.id, None)
