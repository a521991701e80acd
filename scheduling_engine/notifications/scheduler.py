"""
Booking reminder scheduling, cancellation and delivery.

Reminder jobs are not transactionally linked to booking changes: a job
may still fire after its booking was cancelled. The send handler
therefore re-reads the booking at fire time and skips anything that is
no longer live or has moved to a different start.
"""

import logging
from datetime import datetime
from typing import Callable, Iterable, Optional, Protocol

from scheduling_engine.config import settings
from scheduling_engine.logging_context import get_request_logger
from scheduling_engine.notifications.jobs import JobScheduler
from scheduling_engine.notifications.messages import build_reminder_message
from scheduling_engine.schemas.booking_schema import Booking, BookingStatus
from scheduling_engine.schemas.notification_schema import (
    DeliveryStatus,
    NotificationJob,
    NotificationLog,
    ReminderOutcome,
    ReminderPayload,
)
from scheduling_engine.scheduling.time_slots import format_instant, generate_reminder_schedule
from scheduling_engine.storage import InMemoryStore
from scheduling_engine.utils import normalize_phone

logger = get_request_logger(__name__)

SKIPPED_STATUSES = frozenset({BookingStatus.CANCELLED, BookingStatus.NO_SHOW})


class NotificationSender(Protocol):
    def send(self, email: str, phone: str, message: str) -> list[str]:
        """Deliver ``message``; return the channels used."""
        ...


class LoggingSender:
    """Sender that records outbound messages in the log instead of delivering them."""

    def send(self, email: str, phone: str, message: str) -> list[str]:
        channels = [name for name, target in (("email", email), ("sms", phone)) if target]
        logger.info("Outbound reminder via %s: %s", ",".join(channels) or "none", message)
        return channels


class NotificationScheduler:
    """Enqueues, cancels and fires booking reminders."""

    def __init__(
        self,
        store: InMemoryStore,
        jobs: JobScheduler,
        clock: Callable[[], datetime],
        sender: Optional[NotificationSender] = None,
        offsets_minutes: Optional[Iterable[int]] = None,
    ) -> None:
        self.store = store
        self.jobs = jobs
        self.clock = clock
        self.sender = sender or LoggingSender()
        self.offsets_minutes = tuple(
            offsets_minutes
            if offsets_minutes is not None
            else settings.notifications.reminder_offsets_minutes
        )

    def schedule(self, booking: Booking) -> list[NotificationJob]:
        """
        Enqueue one deferred reminder per future trigger instant before the booking starts.

        A reminder the job scheduler refuses is logged and left out; the
        returned list holds every job that was actually enqueued.
        """
        scheduled: list[NotificationJob] = []
        for reminder in generate_reminder_schedule(
            booking.scheduled_start, self.clock(), self.offsets_minutes
        ):
            payload = ReminderPayload(
                tenant_id=booking.tenant_id,
                booking_id=booking.id,
                notification_type=reminder.type,
                customer_email=booking.customer.email,
                customer_phone=normalize_phone(booking.customer.phone),
                service_type=booking.service_type.value,
                vehicle_info=booking.vehicle.describe(),
                booking_start=booking.scheduled_start,
            )
            try:
                handle = self.jobs.schedule_at(reminder.scheduled_for, payload)
            except Exception as exc:
                logger.warning(
                    "Failed to enqueue %s reminder for booking %s: %s",
                    reminder.type.value, booking.id, exc,
                )
                continue
            scheduled.append(reminder.model_copy(update={"handle": handle}))

        logger.info("Scheduled %d reminder(s) for booking %s", len(scheduled), booking.id)
        return scheduled

    def cancel(self, handles: Iterable[str]) -> list[str]:
        """Best-effort cancellation; returns the handles actually cancelled."""
        cancelled = []
        for handle in handles:
            try:
                self.jobs.cancel(handle)
                cancelled.append(handle)
            except Exception as exc:
                logger.warning("Failed to cancel reminder job %s: %s", handle, exc)
        return cancelled

    def send_booking_reminder(self, payload: ReminderPayload) -> ReminderOutcome:
        """Fire-time handler: re-check the booking, then deliver and log the reminder."""
        now = self.clock()
        booking = self.store.get_booking(payload.tenant_id, payload.booking_id)

        if booking is None:
            logger.info("Booking %s not found, skipping reminder", payload.booking_id)
            return ReminderOutcome(
                success=False,
                booking_id=payload.booking_id,
                notification_type=payload.notification_type,
                reason="Booking not found",
            )

        skip_reason = None
        if booking.status in SKIPPED_STATUSES:
            skip_reason = f"Booking is {booking.status.value}"
        elif payload.booking_start is not None and payload.booking_start != booking.scheduled_start:
            skip_reason = "Booking was rescheduled"

        if skip_reason:
            logger.info(
                "Skipped %s reminder for booking %s: %s",
                payload.notification_type.value, booking.id, skip_reason,
            )
            self.store.add_notification_log(NotificationLog(
                tenant_id=payload.tenant_id,
                booking_id=booking.id,
                type=payload.notification_type,
                recipient=payload.customer_email or payload.customer_phone,
                status=DeliveryStatus.SKIPPED,
                error=skip_reason,
                sent_at=now,
            ))
            return ReminderOutcome(
                success=False,
                booking_id=booking.id,
                notification_type=payload.notification_type,
                reason=skip_reason,
            )

        message = build_reminder_message(
            payload.notification_type,
            customer_name=booking.customer.name,
            service_type=payload.service_type,
            vehicle_info=payload.vehicle_info,
            scheduled_time=format_instant(booking.scheduled_start),
            location=booking.location,
        )
        recipient = payload.customer_email or payload.customer_phone

        try:
            channels = self.sender.send(payload.customer_email, payload.customer_phone, message)
        except Exception as exc:
            logger.error("Failed to send %s reminder for %s: %s",
                         payload.notification_type.value, booking.id, exc)
            self.store.add_notification_log(NotificationLog(
                tenant_id=payload.tenant_id,
                booking_id=booking.id,
                type=payload.notification_type,
                recipient=recipient,
                status=DeliveryStatus.FAILED,
                error=str(exc),
                sent_at=now,
            ))
            return ReminderOutcome(
                success=False,
                booking_id=booking.id,
                notification_type=payload.notification_type,
                reason=str(exc),
            )

        self.store.add_notification_log(NotificationLog(
            tenant_id=payload.tenant_id,
            booking_id=booking.id,
            type=payload.notification_type,
            recipient=recipient,
            message=message,
            status=DeliveryStatus.SENT,
            sent_at=now,
        ))
        return ReminderOutcome(
            success=True,
            booking_id=booking.id,
            notification_type=payload.notification_type,
            recipient=recipient,
            sent_at=now,
            channels=channels,
        )
