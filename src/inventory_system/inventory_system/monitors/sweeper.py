"""Periodic expiry of monitor assignments.

Runs MonitorService.sweep_expired_assignments on a background thread at a
fixed interval. A sweep that fails is logged and tried again on the next
tick; sweeps are idempotent so a retry never double-transitions a row.
"""

from __future__ import annotations

import logging
import threading
from datetime import datetime
from typing import Callable, List, Optional

from ..core.constants import DEFAULT_SWEEP_INTERVAL_SECONDS
from .model import ExpiredMonitor
from .service import MonitorService

logger = logging.getLogger(__name__)


class ExpirySweeper:
    def __init__(
        self,
        service: MonitorService,
        *,
        interval_seconds: float = DEFAULT_SWEEP_INTERVAL_SECONDS,
        on_expired: Optional[Callable[[List[ExpiredMonitor]], None]] = None,
    ):
        if interval_seconds <= 0:
            raise ValueError("interval_seconds must be positive")
        self._service = service
        self.interval_seconds = float(interval_seconds)
        self._on_expired = on_expired
        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def run_once(self, *, as_of: Optional[datetime] = None) -> List[ExpiredMonitor]:
        expired = self._service.sweep_expired_assignments(as_of=as_of)
        if expired and self._on_expired:
            self._on_expired(expired)
        return expired

    def _loop(self) -> None:
        while not self._stop.is_set():
            try:
                self.run_once()
            except Exception:
                logger.exception("Monitor expiry sweep failed, retrying in %.0fs", self.interval_seconds)
            self._stop.wait(self.interval_seconds)

    def start(self) -> None:
        if self.running:
            return
        self._stop.clear()
        self._thread = threading.Thread(
            target=self._loop,
            daemon=True,
            name="monitor-expiry-sweeper",
        )
        self._thread.start()
        logger.info("Monitor expiry sweeper started (every %.0fs)", self.interval_seconds)

    def stop(self, timeout: float = 5.0) -> None:
        self._stop.set()
        if self._thread:
            self._thread.join(timeout=timeout)
            self._thread = None
            logger.info("Monitor expiry sweeper stopped")
