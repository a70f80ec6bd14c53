from __future__ import annotations

import asyncio
import logging
import threading
from typing import Any, Awaitable, Callable, Optional, TypeVar

from .attendance.model import AttendanceRecord, RFIDEvent
from .attendance.orchestrator import VerificationOrchestrator
from .settings.model import AttendanceConfig

logger = logging.getLogger(__name__)

T = TypeVar("T")


async def _call(fn: Callable[..., T], *args: Any) -> T:
    return fn(*args)


class VerificationRuntime:
    """Hosts the verification event loop on a daemon thread.

    Flask request threads hand work over with ``submit``; background verification
    tasks keep running on the loop after the request returned.
    """

    def __init__(self, orchestrator: VerificationOrchestrator, *, submit_timeout: float = 30.0):
        self.orchestrator = orchestrator
        self._submit_timeout = float(submit_timeout)
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._thread: Optional[threading.Thread] = None
        self._ready = threading.Event()
        self._lock = threading.Lock()

    @property
    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        with self._lock:
            if self.is_running:
                return
            self._ready.clear()
            self._loop = asyncio.new_event_loop()
            self._thread = threading.Thread(target=self._run, name="verification-runtime", daemon=True)
            self._thread.start()
        self._ready.wait()
        logger.info("Verification runtime started")

    def _run(self) -> None:
        loop = self._loop
        asyncio.set_event_loop(loop)
        loop.call_soon(self._ready.set)
        try:
            loop.run_forever()
        finally:
            loop.close()

    def submit(self, coro: Awaitable[T], *, timeout: Optional[float] = None) -> T:
        if not self.is_running:
            coro.close()
            raise RuntimeError("Verification runtime is not running")
        future = asyncio.run_coroutine_threadsafe(coro, self._loop)
        return future.result(timeout if timeout is not None else self._submit_timeout)

    def process_rfid_event(self, event: RFIDEvent, config: AttendanceConfig) -> Optional[AttendanceRecord]:
        return self.submit(self.orchestrator.process_rfid_event(event, config))

    def cancel(self, record_id: str) -> bool:
        return self.submit(_call(self.orchestrator.cancel, record_id))

    def stop(self, *, timeout: float = 10.0) -> None:
        with self._lock:
            if not self.is_running:
                return
            try:
                self.submit(self.orchestrator.shutdown(timeout), timeout=timeout + 1.0)
            except Exception:
                logger.exception("Verification runtime did not shut down cleanly")
            self._loop.call_soon_threadsafe(self._loop.stop)
            self._thread.join(timeout)
            self._thread = None
        logger.info("Verification runtime stopped")
