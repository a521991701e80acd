"""Reminder job and notification log models."""

from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field


class ReminderType(str, Enum):
    REMINDER_24H = "reminder_24h"
    REMINDER_2H = "reminder_2h"
    REMINDER_30M = "reminder_30m"
    GENERIC = "reminder"


class NotificationJob(BaseModel):
    """A deferred reminder owned by exactly one booking."""

    type: ReminderType
    scheduled_for: datetime
    handle: str = ""


class ReminderPayload(BaseModel):
    """Data handed to the deferred job scheduler and back to the send handler."""

    tenant_id: str
    booking_id: str
    notification_type: ReminderType
    customer_email: str = ""
    customer_phone: str = ""
    service_type: str
    vehicle_info: str = ""
    booking_start: Optional[datetime] = None


class DeliveryStatus(str, Enum):
    SENT = "sent"
    FAILED = "failed"
    SKIPPED = "skipped"


class NotificationLog(BaseModel):
    tenant_id: str
    booking_id: str
    type: ReminderType
    recipient: str
    message: str = ""
    status: DeliveryStatus
    error: Optional[str] = None
    sent_at: datetime


class ReminderOutcome(BaseModel):
    """Result of one reminder firing."""

    success: bool
    booking_id: str
    notification_type: ReminderType
    reason: Optional[str] = None
    recipient: Optional[str] = None
    sent_at: Optional[datetime] = None
    channels: list[str] = Field(default_factory=list)
