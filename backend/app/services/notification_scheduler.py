"""Background thread that runs notification passes on a fixed interval."""

from __future__ import annotations

import logging
import os
import threading
from typing import Optional

from .notifications import NotificationService
from .scheduler_monitor import JOB_NOTIFICATION_RULES, SchedulerMonitor

LOGGER = logging.getLogger(__name__)

DEFAULT_INTERVAL_MINUTES = 30
MIN_INTERVAL_MINUTES = 1
STOP_TIMEOUT_SECONDS = 5


def read_interval_minutes() -> int:
    raw = os.getenv("NOTIFICATION_CHECK_INTERVAL_MINUTES")
    if raw is None or not raw.strip():
        return DEFAULT_INTERVAL_MINUTES
    try:
        value = int(raw)
    except ValueError:
        LOGGER.warning(
            "Invalid NOTIFICATION_CHECK_INTERVAL_MINUTES=%s; using %s",
            raw,
            DEFAULT_INTERVAL_MINUTES,
        )
        return DEFAULT_INTERVAL_MINUTES
    return max(value, MIN_INTERVAL_MINUTES)


class NotificationScheduler:
    """Run ``service.check_all_rules`` once at start and then every interval."""

    def __init__(
        self,
        service: NotificationService,
        interval_minutes: Optional[int] = None,
        *,
        interval_seconds: Optional[float] = None,
    ) -> None:
        self._service = service
        if interval_seconds is None:
            minutes = interval_minutes if interval_minutes is not None else read_interval_minutes()
            interval_seconds = max(minutes, MIN_INTERVAL_MINUTES) * 60
        self.interval_seconds = float(interval_seconds)
        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None

    @property
    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def run_once(self) -> None:
        """Execute one pass, recording the outcome in the scheduler monitor."""

        try:
            summary = self._service.check_all_rules()
            if summary is None:
                SchedulerMonitor.record_skip(JOB_NOTIFICATION_RULES)
                return
            SchedulerMonitor.record_pass(JOB_NOTIFICATION_RULES, summary.alerts_created)
            for rule_id in summary.failed_rules:
                SchedulerMonitor.record_error(
                    JOB_NOTIFICATION_RULES, f"Rule {rule_id} failed during evaluation"
                )
        except Exception as exc:
            LOGGER.exception("Notification pass failed: %s", exc)
            SchedulerMonitor.record_error(JOB_NOTIFICATION_RULES, str(exc))
        finally:
            SchedulerMonitor.record_tick(JOB_NOTIFICATION_RULES)

    def _worker(self) -> None:
        self.run_once()
        while not self._stop.wait(self.interval_seconds):
            self.run_once()

    def start(self) -> None:
        if self.is_running:
            return
        self._stop.clear()
        SchedulerMonitor.set_job_enabled(JOB_NOTIFICATION_RULES, True)
        self._thread = threading.Thread(
            target=self._worker, name="notification-scheduler", daemon=True
        )
        self._thread.start()
        LOGGER.info(
            "Notification scheduler started (every %.0f seconds)", self.interval_seconds
        )

    def stop(self) -> None:
        self._stop.set()
        if self._thread and self._thread.is_alive():
            self._thread.join(timeout=STOP_TIMEOUT_SECONDS)
            LOGGER.info("Notification scheduler stopped")
        self._thread = None
