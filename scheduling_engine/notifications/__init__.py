from scheduling_engine.notifications.jobs import InMemoryJobScheduler, JobScheduler
from scheduling_engine.notifications.scheduler import (
    LoggingSender,
    NotificationScheduler,
    NotificationSender,
)

__all__ = [
    "JobScheduler",
    "InMemoryJobScheduler",
    "NotificationScheduler",
    "NotificationSender",
    "LoggingSender",
]
