"""
Deferred job capability used for booking reminders.

The workflow only depends on ``JobScheduler`` (schedule-at, cancel by
handle). ``InMemoryJobScheduler`` backs tests and the CLI; a production
deployment would wrap a task queue with the same two methods.
"""

import logging
import threading
import uuid
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Protocol, TypeVar

from scheduling_engine.schemas.notification_schema import ReminderPayload

logger = logging.getLogger(__name__)

T = TypeVar("T")


class JobScheduler(Protocol):
    def schedule_at(self, fire_at: datetime, payload: ReminderPayload) -> str:
        """Enqueue ``payload`` to fire no earlier than ``fire_at``; return a job handle."""
        ...

    def cancel(self, handle: str) -> None:
        """Cancel a pending job. Raises KeyError for unknown or already-fired handles."""
        ...


@dataclass(frozen=True)
class ScheduledJob:
    handle: str
    fire_at: datetime
    payload: ReminderPayload


class InMemoryJobScheduler:
    """Process-local job queue driven explicitly by ``run_due``."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._jobs: dict[str, ScheduledJob] = {}

    def schedule_at(self, fire_at: datetime, payload: ReminderPayload) -> str:
        handle = f"job_{uuid.uuid4().hex[:12]}"
        with self._lock:
            self._jobs[handle] = ScheduledJob(handle=handle, fire_at=fire_at, payload=payload)
        logger.debug("Scheduled %s for %s", payload.notification_type.value, fire_at.isoformat())
        return handle

    def cancel(self, handle: str) -> None:
        with self._lock:
            if handle not in self._jobs:
                raise KeyError(f"Unknown job handle: {handle}")
            del self._jobs[handle]

    def pending(self) -> list[ScheduledJob]:
        """Pending jobs ordered by fire time."""
        with self._lock:
            return sorted(self._jobs.values(), key=lambda job: job.fire_at)

    def run_due(self, now: datetime, handler: Callable[[ReminderPayload], T]) -> list[T]:
        """Fire every job whose trigger instant has been reached, oldest first."""
        with self._lock:
            due = sorted(
                (job for job in self._jobs.values() if job.fire_at <= now),
                key=lambda job: job.fire_at,
            )
            for job in due:
                del self._jobs[job.handle]
        return [handler(job.payload) for job in due]
