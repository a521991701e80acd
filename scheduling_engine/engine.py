"""
Public entry point for scheduling, pricing and booking operations.

Every operation resolves the caller's tenant first and refuses to run
without one; everything after that is tenant-scoped.

Usage:
    engine = SchedulingEngine(identity=StaticIdentity(CallerContext(tenant_id="t1", user_id="u1")))
    best = engine.find_best_time_slot("detail")
    result = engine.book_appointment("insp_1", "2026-03-16T10:00:00", "team_alpha")
"""

from datetime import datetime, timezone
from typing import Callable, Optional

from scheduling_engine.auth import CallerContext, IdentityProvider, require_caller
from scheduling_engine.booking.state_machine import BookingTrigger
from scheduling_engine.booking.workflow import BookingWorkflow
from scheduling_engine.config import settings
from scheduling_engine.errors import InvalidInputError
from scheduling_engine.logging_context import get_request_logger, set_request_context
from scheduling_engine.notifications.jobs import InMemoryJobScheduler, JobScheduler
from scheduling_engine.notifications.scheduler import NotificationScheduler, NotificationSender
from scheduling_engine.pricing.estimates import EstimateService
from scheduling_engine.schemas.booking_schema import (
    Booking,
    BookingResult,
    BookingStatus,
    CancelResult,
    Estimate,
    EstimateStatus,
    RefreshResult,
    RescheduleResult,
    StatusChangeResult,
)
from scheduling_engine.schemas.notification_schema import ReminderOutcome
from scheduling_engine.schemas.pricing_schema import (
    BaseRates,
    EstimateBreakdown,
    ShopSettings,
    SurgeFactors,
    WeatherConditions,
)
from scheduling_engine.schemas.scheduling_schema import (
    AvailabilityCheck,
    BestSlot,
    ServiceType,
    SlotAvailability,
    TimeSlot,
)
from scheduling_engine.scheduling.availability import AvailabilityChecker
from scheduling_engine.scheduling.teams import TeamRegistry
from scheduling_engine.scheduling.time_slots import ensure_aware, make_slot
from scheduling_engine.storage import InMemoryStore

logger = get_request_logger(__name__)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def parse_instant(value: datetime | str) -> datetime:
    """Parse an ISO-8601 instant; naive values are taken in the service timezone."""
    if isinstance(value, datetime):
        return ensure_aware(value)
    try:
        parsed = datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
    except (AttributeError, ValueError):
        raise InvalidInputError(f"Invalid ISO-8601 instant: {value!r}") from None
    return ensure_aware(parsed)


def default_registry() -> TeamRegistry:
    if settings.teams_config_path:
        return TeamRegistry.from_json(settings.teams_config_path)
    return TeamRegistry()


class SchedulingEngine:
    """Facade over availability, pricing, booking and reminder components."""

    def __init__(
        self,
        identity: IdentityProvider,
        store: Optional[InMemoryStore] = None,
        registry: Optional[TeamRegistry] = None,
        jobs: Optional[JobScheduler] = None,
        sender: Optional[NotificationSender] = None,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self.identity = identity
        self.store = store or InMemoryStore()
        self.registry = registry or default_registry()
        self.jobs = jobs or InMemoryJobScheduler()
        self.clock = clock
        self.checker = AvailabilityChecker(self.store, self.registry)
        self.notifier = NotificationScheduler(self.store, self.jobs, clock, sender=sender)
        self.workflow = BookingWorkflow(self.store, self.registry, self.checker, self.notifier, clock)
        self.estimates = EstimateService(self.store, clock)

    def _caller(self) -> CallerContext:
        caller = require_caller(self.identity)
        set_request_context(caller.tenant_id)
        return caller

    def _maximum_surge(self, tenant_id: str) -> float:
        return self.store.get_pricing(tenant_id)[1].maximum_surge

    # --- Availability ---

    def check_availability(
        self,
        slot: TimeSlot | datetime | str,
        team_id: str,
        duration_minutes: Optional[int] = None,
    ) -> AvailabilityCheck:
        caller = self._caller()
        if not isinstance(slot, TimeSlot):
            if duration_minutes is None:
                duration_minutes = settings.service_window.default_slot_minutes
            elif duration_minutes <= 0:
                raise InvalidInputError(
                    f"Invalid time slot: duration must be positive, got {duration_minutes}"
                )
            slot = make_slot(parse_instant(slot), duration_minutes, team_id)
        return self.checker.check(
            caller.tenant_id, slot, team_id, self._maximum_surge(caller.tenant_id)
        )

    def get_team_availability(
        self,
        team_id: str,
        start_date: datetime | str,
        end_date: datetime | str,
    ) -> list[SlotAvailability]:
        caller = self._caller()
        start, end = parse_instant(start_date), parse_instant(end_date)
        if end <= start:
            raise InvalidInputError("end_date must be after start_date")
        return self.checker.team_availability(
            caller.tenant_id, team_id, start, end,
            maximum_surge=self._maximum_surge(caller.tenant_id),
        )

    def find_best_time_slot(
        self,
        service_type: ServiceType | str,
        preferred_date: Optional[datetime | str] = None,
        team_preference: Optional[str] = None,
    ) -> Optional[BestSlot]:
        caller = self._caller()
        preferred = parse_instant(preferred_date) if preferred_date is not None else None
        return self.checker.find_best_slot(
            caller.tenant_id,
            service_type,
            self.clock(),
            preferred_start=preferred,
            preferred_team_id=team_preference,
            maximum_surge=self._maximum_surge(caller.tenant_id),
        )

    # --- Bookings ---

    def book_appointment(
        self,
        inspection_id: str,
        instant: datetime | str,
        team_id: str,
        estimate_id: Optional[str] = None,
        notes: Optional[str] = None,
        duration_minutes: int = 120,
        location: Optional[str] = None,
    ) -> BookingResult:
        caller = self._caller()
        return self.workflow.book_appointment(
            caller.tenant_id,
            inspection_id,
            parse_instant(instant),
            team_id,
            estimate_id=estimate_id,
            notes=notes,
            location=location,
            duration=duration_minutes,
        )

    def reschedule_appointment(
        self,
        booking_id: str,
        new_instant: datetime | str,
        new_team_id: Optional[str] = None,
        reason: Optional[str] = None,
    ) -> RescheduleResult:
        caller = self._caller()
        return self.workflow.reschedule_appointment(
            caller.tenant_id, booking_id, parse_instant(new_instant), new_team_id, reason
        )

    def cancel_appointment(
        self, booking_id: str, reason: str, refund_amount: Optional[int] = None
    ) -> CancelResult:
        caller = self._caller()
        return self.workflow.cancel_appointment(caller.tenant_id, booking_id, reason, refund_amount)

    def update_booking_status(
        self, booking_id: str, trigger: BookingTrigger | str
    ) -> StatusChangeResult:
        caller = self._caller()
        try:
            trigger = BookingTrigger(trigger)
        except ValueError:
            raise InvalidInputError(f"Unknown booking trigger: {trigger!r}") from None
        return self.workflow.update_status(caller.tenant_id, booking_id, trigger)

    def delete_booking(self, booking_id: str) -> None:
        caller = self._caller()
        self.workflow.delete_booking(caller.tenant_id, booking_id)

    def get_booking(self, booking_id: str) -> Optional[Booking]:
        caller = self._caller()
        return self.store.get_booking(caller.tenant_id, booking_id)

    def list_bookings(
        self, status: Optional[BookingStatus] = None, team_id: Optional[str] = None
    ) -> list[Booking]:
        caller = self._caller()
        return self.store.list_bookings(caller.tenant_id, status=status, team_id=team_id)

    # --- Pricing ---

    def compute_estimate(
        self,
        inspection_id: str,
        service_type: ServiceType | str,
        base_rates: Optional[BaseRates] = None,
        shop_settings: Optional[ShopSettings] = None,
        weather: Optional[WeatherConditions] = None,
        surge_factors: Optional[SurgeFactors] = None,
        discount: int = 0,
        materials_override: Optional[int] = None,
    ) -> EstimateBreakdown:
        caller = self._caller()
        return self.estimates.compute(
            caller.tenant_id,
            inspection_id,
            service_type,
            base_rates=base_rates,
            shop_settings=shop_settings,
            weather=weather,
            surge_factors=surge_factors,
            discount=discount,
            materials_override=materials_override,
        )

    def save_estimate(self, inspection_id: str, breakdown: EstimateBreakdown) -> Estimate:
        caller = self._caller()
        return self.estimates.save(caller.tenant_id, inspection_id, breakdown)

    def set_estimate_status(self, estimate_id: str, status: EstimateStatus | str) -> Estimate:
        caller = self._caller()
        return self.estimates.set_status(caller.tenant_id, estimate_id, EstimateStatus(status))

    def refresh_inspection_pricing(
        self, inspection_id: str, reason: str, weather: Optional[WeatherConditions] = None
    ) -> RefreshResult:
        caller = self._caller()
        return self.estimates.refresh_inspection_pricing(
            caller.tenant_id, inspection_id, reason, weather
        )

    def configure_pricing(self, base_rates: BaseRates, shop_settings: ShopSettings) -> None:
        """Store the caller tenant's rates and shop settings."""
        caller = self._caller()
        self.store.set_pricing(caller.tenant_id, base_rates, shop_settings)

    # --- Reminders ---

    def process_due_reminders(self, now: Optional[datetime] = None) -> list[ReminderOutcome]:
        """Fire reminders that are due. Only available with the in-memory job scheduler."""
        if not isinstance(self.jobs, InMemoryJobScheduler):
            raise NotImplementedError("Due reminders are fired by the external job scheduler")
        return self.jobs.run_due(now or self.clock(), self.notifier.send_booking_reminder)
