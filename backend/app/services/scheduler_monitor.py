"""Health of background jobs, shared between scheduler threads and the API."""

from __future__ import annotations

from collections import deque
from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from threading import Lock
from typing import Any, Dict

JOB_NOTIFICATION_RULES = "notification_rules"

MAX_RECENT_ERRORS = 10


def _now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class JobStatus:
    enabled: bool = True
    last_tick: datetime | None = None
    completed_runs: int = 0
    skipped_ticks: int = 0
    alerts_created: int = 0
    last_error_at: datetime | None = None
    recent_errors: deque[str] = field(default_factory=lambda: deque(maxlen=MAX_RECENT_ERRORS))


class SchedulerMonitor:
    """Class-level registry; every method takes the job name it reports on."""

    _lock = Lock()
    _jobs: Dict[str, JobStatus] = {}

    @classmethod
    def _job(cls, job_name: str) -> JobStatus:
        return cls._jobs.setdefault(job_name, JobStatus())

    @classmethod
    def set_job_enabled(cls, job_name: str, enabled: bool) -> None:
        with cls._lock:
            cls._job(job_name).enabled = enabled

    @classmethod
    def record_tick(cls, job_name: str) -> None:
        with cls._lock:
            cls._job(job_name).last_tick = _now()

    @classmethod
    def record_pass(cls, job_name: str, alerts_created: int) -> None:
        with cls._lock:
            status = cls._job(job_name)
            status.completed_runs += 1
            status.alerts_created += alerts_created

    @classmethod
    def record_skip(cls, job_name: str) -> None:
        with cls._lock:
            cls._job(job_name).skipped_ticks += 1

    @classmethod
    def record_error(cls, job_name: str, message: str) -> None:
        moment = _now()
        with cls._lock:
            status = cls._job(job_name)
            status.last_error_at = moment
            status.recent_errors.append(f"{moment.isoformat()} - {message}")

    @classmethod
    def snapshot(cls) -> Dict[str, Dict[str, Any]]:
        with cls._lock:
            return {
                name: {**asdict(status), "recent_errors": list(status.recent_errors)}
                for name, status in cls._jobs.items()
            }

    @classmethod
    def reset(cls) -> None:
        with cls._lock:
            cls._jobs.clear()
