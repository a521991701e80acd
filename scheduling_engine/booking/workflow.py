"""
Booking workflow: create, reschedule, cancel and advance bookings.

Each operation runs its reads and writes inside one store transaction,
so the admission check and the booking write cannot interleave with a
concurrent booking for the same team, and a failure part-way through
leaves nothing half-written. Reminder scheduling happens after commit
and never rolls a booking back.
"""

import uuid
from datetime import datetime
from typing import Callable, Optional

from scheduling_engine.booking.state_machine import BookingStateMachine, BookingTrigger
from scheduling_engine.config import ServiceWindowConfig, settings
from scheduling_engine.errors import (
    ConflictError,
    InvalidInputError,
    NotFoundError,
    PreconditionFailedError,
)
from scheduling_engine.logging_context import get_request_logger
from scheduling_engine.notifications.scheduler import NotificationScheduler
from scheduling_engine.schemas.booking_schema import (
    Booking,
    BookingResult,
    BookingStatus,
    CancelResult,
    Estimate,
    EstimateStatus,
    InspectionStatus,
    PaymentStatus,
    PricingChange,
    PricingDetails,
    RescheduleResult,
    StatusChangeResult,
    TeamDetails,
    TimeSlotDetails,
)
from scheduling_engine.schemas.notification_schema import NotificationJob
from scheduling_engine.schemas.scheduling_schema import AvailabilityCheck, Team, TimeSlot
from scheduling_engine.scheduling.availability import AvailabilityChecker
from scheduling_engine.scheduling.teams import TeamRegistry
from scheduling_engine.scheduling.time_slots import format_time_slot, make_slot, validate_time_slot
from scheduling_engine.storage import InMemoryStore
from scheduling_engine.utils import round_cents

logger = get_request_logger(__name__)

# Status changes driven through update_status; cancel and reschedule have their own operations.
STATUS_TRIGGERS = frozenset({
    BookingTrigger.CONFIRM,
    BookingTrigger.START,
    BookingTrigger.COMPLETE,
    BookingTrigger.MARK_NO_SHOW,
})

DELETABLE_STATUSES = frozenset({BookingStatus.SCHEDULED, BookingStatus.CANCELLED})


def _slot_details(slot: TimeSlot) -> TimeSlotDetails:
    return TimeSlotDetails(
        formatted=format_time_slot(slot),
        start=slot.start,
        end=slot.end,
        duration=slot.duration,
    )


def _apply_surge(base_amount: int, availability: AvailabilityCheck, surge_enabled: bool) -> int:
    """Surge amount in cents for a base amount at the given occupancy."""
    if surge_enabled and availability.surge_required and availability.surge_multiplier > 1.0:
        return round_cents(base_amount * (availability.surge_multiplier - 1))
    return 0


class BookingWorkflow:
    """Orchestrates slot validation, admission, pricing and persistence."""

    def __init__(
        self,
        store: InMemoryStore,
        registry: TeamRegistry,
        checker: AvailabilityChecker,
        notifier: NotificationScheduler,
        clock: Callable[[], datetime],
        window: Optional[ServiceWindowConfig] = None,
    ) -> None:
        self.store = store
        self.registry = registry
        self.checker = checker
        self.notifier = notifier
        self.clock = clock
        self.window = window or settings.service_window

    # --- Create ---

    def book_appointment(
        self,
        tenant_id: str,
        inspection_id: str,
        start: datetime,
        team_id: str,
        estimate_id: Optional[str] = None,
        notes: Optional[str] = None,
        location: Optional[str] = None,
        duration: Optional[int] = None,
    ) -> BookingResult:
        """
        Book a team for an inspected vehicle with an approved estimate.

        Raises:
            NotFoundError: Inspection, estimate or team is absent or cross-tenant.
            PreconditionFailedError: No approved estimate.
            InvalidInputError: Slot rejected, or the team lacks the skill.
            ConflictError: The team is at capacity for the slot.
        """
        now = self.clock()
        if duration is None:
            duration = self.window.default_slot_minutes

        with self.store.transaction():
            inspection = self.store.get_inspection(tenant_id, inspection_id)
            if inspection is None:
                raise NotFoundError("Inspection not found or access denied")

            estimate = self._resolve_approved_estimate(tenant_id, inspection_id, estimate_id, now)
            slot = validate_time_slot(start, duration, now, self.window)
            team = self._require_qualified_team(team_id, estimate)
            slot = make_slot(slot.start, slot.duration, team.team_id, team.max_concurrent_jobs)

            _, shop = self.store.get_pricing(tenant_id)
            availability = self.checker.check(tenant_id, slot, team.team_id, shop.maximum_surge)
            if not availability.is_available:
                raise ConflictError(
                    "Time slot not available. Current occupancy: "
                    f"{availability.current_occupancy}/{availability.max_capacity}"
                )

            surge_amount = _apply_surge(estimate.total, availability, shop.surge_enabled)
            final_amount = estimate.total + surge_amount
            pricing_notes = ""
            if surge_amount:
                pricing_notes = (
                    f"Surge pricing applied ({round_cents((availability.surge_multiplier - 1) * 100)}% "
                    f"increase) due to high demand ({round_cents(availability.occupancy_rate * 100)}% occupancy)"
                )

            booking = Booking(
                id=f"bkg_{uuid.uuid4().hex[:12]}",
                tenant_id=tenant_id,
                inspection_id=inspection.id,
                estimate_id=estimate.id,
                booking_number=f"BK-{int(now.timestamp() * 1000)}-{uuid.uuid4().hex[:6].upper()}",
                customer=inspection.customer,
                vehicle=inspection.vehicle,
                service_type=estimate.service_type,
                status=BookingStatus.SCHEDULED,
                scheduled_start=slot.start,
                scheduled_end=slot.end,
                assigned_team_id=team.team_id,
                location=location or "Shop Location",
                special_instructions=notes,
                total_amount=final_amount,
                paid_amount=0,
                payment_status=PaymentStatus.PENDING,
                created_at=now,
                updated_at=now,
            )
            self.store.save_booking(booking)

            inspection.status = InspectionStatus.BOOKED
            inspection.booked_at = now
            self.store.save_inspection(inspection)

        logger.info(
            "Booking %s created for %s on %s (team %s, %d cents)",
            booking.booking_number, inspection.customer.name, slot.start.isoformat(),
            team.team_id, final_amount,
        )
        jobs = self._schedule_reminders(booking)

        return BookingResult(
            booking_id=booking.id,
            booking=booking,
            pricing_details=PricingDetails(
                original_amount=estimate.total,
                surge_amount=surge_amount,
                final_amount=final_amount,
                surge_multiplier=availability.surge_multiplier,
                occupancy_rate=availability.occupancy_rate,
                pricing_notes=pricing_notes,
            ),
            time_slot_details=_slot_details(slot),
            team_details=TeamDetails(
                team_id=team.team_id,
                name=team.name,
                skills=sorted(skill.value for skill in team.skills),
            ),
            notifications=jobs,
            booked_at=now,
        )

    # --- Reschedule ---

    def reschedule_appointment(
        self,
        tenant_id: str,
        booking_id: str,
        new_start: datetime,
        new_team_id: Optional[str] = None,
        reason: Optional[str] = None,
    ) -> RescheduleResult:
        """
        Move a booking to a new slot, re-pricing surge from the approved estimate total.

        Raises:
            NotFoundError: Booking or team is absent.
            InvalidTransitionError: Booking is completed or cancelled.
            InvalidInputError: Slot rejected, or the team lacks the skill.
            ConflictError: The new slot is at capacity.
        """
        now = self.clock()

        with self.store.transaction():
            booking = self._require_booking(tenant_id, booking_id)
            next_status = BookingStateMachine.next_state(booking.status, BookingTrigger.RESCHEDULE)

            slot = validate_time_slot(new_start, booking.duration_minutes, now, self.window)
            team = self.registry.require(new_team_id or booking.assigned_team_id)
            if booking.service_type not in team.skills:
                raise InvalidInputError(
                    f"Team {team.name} is not qualified for {booking.service_type.value} service"
                )
            slot = make_slot(slot.start, slot.duration, team.team_id, team.max_concurrent_jobs)

            _, shop = self.store.get_pricing(tenant_id)
            availability = self.checker.check(
                tenant_id, slot, team.team_id, shop.maximum_surge, exclude_booking_id=booking.id
            )
            if not availability.is_available:
                raise ConflictError(
                    "New time slot is not available. Current occupancy: "
                    f"{availability.current_occupancy}/{availability.max_capacity}"
                )

            base_amount = self._base_amount(tenant_id, booking)
            surge_amount = _apply_surge(base_amount, availability, shop.surge_enabled)
            new_amount = base_amount + surge_amount

            old_slot = make_slot(booking.scheduled_start, booking.duration_minutes, booking.assigned_team_id)
            old_team_id = booking.assigned_team_id
            old_amount = booking.total_amount

            booking.scheduled_start = slot.start
            booking.scheduled_end = slot.end
            booking.assigned_team_id = team.team_id
            booking.total_amount = new_amount
            booking.status = next_status
            booking.updated_at = now
            self.store.save_booking(booking)
            old_handles = [job.handle for job in self.store.get_notification_jobs(booking.id)]

        logger.info(
            "Booking %s rescheduled to %s (team %s)%s",
            booking.booking_number, slot.start.isoformat(), team.team_id,
            f": {reason}" if reason else "",
        )
        self._cancel_reminders(booking.id, old_handles)
        jobs = self._schedule_reminders(booking)

        return RescheduleResult(
            booking_id=booking.id,
            old_time_slot=_slot_details(old_slot),
            new_time_slot=_slot_details(slot),
            old_team_id=old_team_id,
            new_team_id=team.team_id,
            pricing_change=PricingChange(
                old_amount=old_amount,
                new_amount=new_amount,
                surge_amount=surge_amount,
                difference=new_amount - old_amount,
            ),
            reason=reason,
            notifications=jobs,
            rescheduled_at=now,
        )

    # --- Cancel ---

    def cancel_appointment(
        self,
        tenant_id: str,
        booking_id: str,
        reason: str,
        refund_amount: Optional[int] = None,
    ) -> CancelResult:
        """
        Cancel a scheduled or confirmed booking, recording any refund.

        Raises:
            NotFoundError: Booking is absent.
            InvalidTransitionError: Booking cannot be cancelled from its status.
            InvalidInputError: Negative refund amount.
        """
        now = self.clock()
        if refund_amount is not None and refund_amount < 0:
            raise InvalidInputError(f"Refund amount must be >= 0, got {refund_amount}")

        with self.store.transaction():
            booking = self._require_booking(tenant_id, booking_id)
            previous_status = booking.status
            booking.status = BookingStateMachine.next_state(booking.status, BookingTrigger.CANCEL)

            if refund_amount:
                remaining = booking.paid_amount - refund_amount
                booking.paid_amount = max(remaining, 0)
                booking.payment_status = (
                    PaymentStatus.REFUNDED if remaining <= 0 else PaymentStatus.PARTIAL
                )
            booking.updated_at = now
            self.store.save_booking(booking)
            handles = [job.handle for job in self.store.get_notification_jobs(booking.id)]

        logger.info("Booking %s cancelled: %s", booking.booking_number, reason)
        cancelled = self._cancel_reminders(booking.id, handles)

        return CancelResult(
            booking_id=booking.id,
            previous_status=previous_status,
            reason=reason,
            refund_amount=refund_amount or 0,
            paid_amount=booking.paid_amount,
            payment_status=booking.payment_status,
            cancelled_notifications=cancelled,
            cancelled_at=now,
        )

    # --- Status changes ---

    def update_status(
        self, tenant_id: str, booking_id: str, trigger: BookingTrigger
    ) -> StatusChangeResult:
        """Confirm, start, complete or mark a booking as a no-show."""
        if trigger not in STATUS_TRIGGERS:
            raise InvalidInputError(
                f"Use the dedicated operation to {trigger.value.replace('_', ' ')} a booking"
            )
        now = self.clock()

        with self.store.transaction():
            booking = self._require_booking(tenant_id, booking_id)
            previous_status = booking.status
            booking.status = BookingStateMachine.next_state(booking.status, trigger)
            if trigger == BookingTrigger.START:
                booking.actual_start = now
            elif trigger == BookingTrigger.COMPLETE:
                booking.actual_end = now
            booking.updated_at = now
            self.store.save_booking(booking)
            handles = [job.handle for job in self.store.get_notification_jobs(booking.id)]

        logger.info(
            "Booking %s: %s -> %s", booking.booking_number,
            previous_status.value, booking.status.value,
        )
        if booking.status == BookingStatus.NO_SHOW:
            self._cancel_reminders(booking.id, handles)

        return StatusChangeResult(
            booking_id=booking.id,
            previous_status=previous_status,
            status=booking.status,
            changed_at=now,
        )

    def delete_booking(self, tenant_id: str, booking_id: str) -> None:
        """Hard-delete a booking that is still scheduled or already cancelled."""
        with self.store.transaction():
            booking = self._require_booking(tenant_id, booking_id)
            if booking.status not in DELETABLE_STATUSES:
                raise ConflictError(f"Cannot delete a {booking.status.value} booking")
            handles = [job.handle for job in self.store.get_notification_jobs(booking.id)]
            self.store.delete_booking(tenant_id, booking_id)

        logger.info("Booking %s deleted", booking.booking_number)
        self._cancel_reminders(booking.id, handles, persist=False)

    # --- Helpers ---

    def _require_booking(self, tenant_id: str, booking_id: str) -> Booking:
        booking = self.store.get_booking(tenant_id, booking_id)
        if booking is None:
            raise NotFoundError("Booking not found or access denied")
        return booking

    def _resolve_approved_estimate(
        self,
        tenant_id: str,
        inspection_id: str,
        estimate_id: Optional[str],
        now: datetime,
    ) -> Estimate:
        if estimate_id:
            estimate = self.store.get_estimate(tenant_id, estimate_id)
            if estimate is None or estimate.inspection_id != inspection_id:
                raise NotFoundError("Estimate not found or access denied")
            if estimate.status != EstimateStatus.APPROVED:
                raise PreconditionFailedError(
                    "Estimate must be approved before booking. "
                    f"Current status: {estimate.status.value}"
                )
        else:
            approved = self.store.estimates_for_inspection(
                tenant_id, inspection_id, statuses=[EstimateStatus.APPROVED]
            )
            if not approved:
                raise PreconditionFailedError(
                    "No approved estimate found for this inspection. "
                    "Please approve an estimate before booking."
                )
            estimate = approved[0]

        if estimate.valid_until is not None and estimate.valid_until < now:
            raise PreconditionFailedError(
                f"Estimate {estimate.estimate_number} expired on {estimate.valid_until.date()}"
            )
        return estimate

    def _require_qualified_team(self, team_id: str, estimate: Estimate) -> Team:
        team = self.registry.require(team_id)
        if estimate.service_type not in team.skills:
            raise InvalidInputError(
                f"Team {team.name} is not qualified for {estimate.service_type.value} service"
            )
        return team

    def _base_amount(self, tenant_id: str, booking: Booking) -> int:
        """Approved estimate total, so repeated reschedules never compound surge."""
        if booking.estimate_id:
            estimate = self.store.get_estimate(tenant_id, booking.estimate_id)
            if estimate is not None:
                return estimate.total
        logger.warning(
            "Booking %s has no source estimate; re-pricing from its current amount",
            booking.booking_number,
        )
        return booking.total_amount

    def _schedule_reminders(self, booking: Booking) -> list[NotificationJob]:
        if not settings.notifications.enabled:
            return []
        try:
            jobs = self.notifier.schedule(booking)
            self.store.set_notification_jobs(booking.id, jobs)
            return jobs
        except Exception as exc:
            logger.warning("Reminder scheduling failed for booking %s: %s", booking.id, exc)
            return []

    def _cancel_reminders(self, booking_id: str, handles: list[str], persist: bool = True) -> list[str]:
        cancelled = self.notifier.cancel(handles)
        if persist:
            self.store.set_notification_jobs(booking_id, [])
        return cancelled
