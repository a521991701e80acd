"""
In-memory tenant-scoped store for inspections, estimates, bookings and
notification bookkeeping.

``transaction()`` holds the store lock across the admission read and the
booking write, and restores the previous records if the block raises.
"""

import copy
import logging
import threading
from contextlib import contextmanager
from datetime import datetime
from typing import Iterable, Iterator, Optional

from scheduling_engine.config import settings
from scheduling_engine.schemas.booking_schema import (
    Booking,
    BookingStatus,
    Estimate,
    EstimateStatus,
    Inspection,
)
from scheduling_engine.schemas.notification_schema import NotificationJob, NotificationLog
from scheduling_engine.schemas.pricing_schema import BaseRates, ShopSettings

logger = logging.getLogger(__name__)

# Statuses ignored by the admission overlap query.
NON_BLOCKING_STATUSES = frozenset({BookingStatus.CANCELLED, BookingStatus.NO_SHOW})


def default_base_rates() -> BaseRates:
    return BaseRates(
        labor_rate=settings.pricing.labor_rate,
        material_rate=settings.pricing.material_rate,
        tax_rate=settings.pricing.tax_rate,
    )


def default_shop_settings() -> ShopSettings:
    return ShopSettings(
        surge_enabled=settings.pricing.surge_enabled,
        weather_adjustments=settings.pricing.weather_adjustments,
        minimum_charge=settings.pricing.minimum_charge,
        maximum_surge=settings.pricing.maximum_surge,
    )


class InMemoryStore:
    """Thread-safe record store. Every read returns a copy."""

    def __init__(self) -> None:
        self._lock = threading.RLock()
        self._inspections: dict[str, Inspection] = {}
        self._estimates: dict[str, Estimate] = {}
        self._bookings: dict[str, Booking] = {}
        self._notification_jobs: dict[str, list[NotificationJob]] = {}
        self._notification_logs: list[NotificationLog] = []
        self._pricing: dict[str, tuple[BaseRates, ShopSettings]] = {}

    # --- Transactions ---

    @contextmanager
    def transaction(self) -> Iterator["InMemoryStore"]:
        """Serialize the enclosed reads and writes; roll back on any exception."""
        with self._lock:
            snapshot = self._snapshot()
            try:
                yield self
            except BaseException:
                self._restore(snapshot)
                logger.debug("Transaction rolled back")
                raise

    def _snapshot(self) -> dict:
        return copy.deepcopy({
            "inspections": self._inspections,
            "estimates": self._estimates,
            "bookings": self._bookings,
            "notification_jobs": self._notification_jobs,
            "notification_logs": self._notification_logs,
            "pricing": self._pricing,
        })

    def _restore(self, snapshot: dict) -> None:
        self._inspections = snapshot["inspections"]
        self._estimates = snapshot["estimates"]
        self._bookings = snapshot["bookings"]
        self._notification_jobs = snapshot["notification_jobs"]
        self._notification_logs = snapshot["notification_logs"]
        self._pricing = snapshot["pricing"]

    # --- Inspections ---

    def save_inspection(self, inspection: Inspection) -> None:
        with self._lock:
            self._inspections[inspection.id] = inspection.model_copy(deep=True)

    def get_inspection(self, tenant_id: str, inspection_id: str) -> Optional[Inspection]:
        with self._lock:
            inspection = self._inspections.get(inspection_id)
            if inspection is None or inspection.tenant_id != tenant_id:
                return None
            return inspection.model_copy(deep=True)

    # --- Estimates ---

    def save_estimate(self, estimate: Estimate) -> None:
        with self._lock:
            self._estimates[estimate.id] = estimate.model_copy(deep=True)

    def get_estimate(self, tenant_id: str, estimate_id: str) -> Optional[Estimate]:
        with self._lock:
            estimate = self._estimates.get(estimate_id)
            if estimate is None or estimate.tenant_id != tenant_id:
                return None
            return estimate.model_copy(deep=True)

    def estimates_for_inspection(
        self,
        tenant_id: str,
        inspection_id: str,
        statuses: Optional[Iterable[EstimateStatus]] = None,
    ) -> list[Estimate]:
        """Estimates for an inspection in creation order, optionally filtered by status."""
        wanted = set(statuses) if statuses is not None else None
        with self._lock:
            return [
                e.model_copy(deep=True)
                for e in self._estimates.values()
                if e.tenant_id == tenant_id
                and e.inspection_id == inspection_id
                and (wanted is None or e.status in wanted)
            ]

    # --- Bookings ---

    def save_booking(self, booking: Booking) -> None:
        with self._lock:
            self._bookings[booking.id] = booking.model_copy(deep=True)

    def get_booking(self, tenant_id: str, booking_id: str) -> Optional[Booking]:
        with self._lock:
            booking = self._bookings.get(booking_id)
            if booking is None or booking.tenant_id != tenant_id:
                return None
            return booking.model_copy(deep=True)

    def delete_booking(self, tenant_id: str, booking_id: str) -> bool:
        with self._lock:
            booking = self._bookings.get(booking_id)
            if booking is None or booking.tenant_id != tenant_id:
                return False
            del self._bookings[booking_id]
            self._notification_jobs.pop(booking_id, None)
            return True

    def list_bookings(
        self,
        tenant_id: str,
        status: Optional[BookingStatus] = None,
        team_id: Optional[str] = None,
    ) -> list[Booking]:
        """Tenant bookings ordered by scheduled start."""
        with self._lock:
            found = [
                b.model_copy(deep=True)
                for b in self._bookings.values()
                if b.tenant_id == tenant_id
                and (status is None or b.status == status)
                and (team_id is None or b.assigned_team_id == team_id)
            ]
        return sorted(found, key=lambda b: b.scheduled_start)

    def overlapping_bookings(
        self,
        tenant_id: str,
        team_id: str,
        start: datetime,
        end: datetime,
        exclude_booking_id: Optional[str] = None,
    ) -> list[Booking]:
        """Bookings for the team whose [start, end) interval overlaps [start, end)."""
        with self._lock:
            return [
                b.model_copy(deep=True)
                for b in self._bookings.values()
                if b.tenant_id == tenant_id
                and b.assigned_team_id == team_id
                and b.status not in NON_BLOCKING_STATUSES
                and b.id != exclude_booking_id
                and b.scheduled_start < end
                and b.scheduled_end > start
            ]

    # --- Notifications ---

    def set_notification_jobs(self, booking_id: str, jobs: list[NotificationJob]) -> None:
        with self._lock:
            self._notification_jobs[booking_id] = [job.model_copy() for job in jobs]

    def get_notification_jobs(self, booking_id: str) -> list[NotificationJob]:
        with self._lock:
            return [job.model_copy() for job in self._notification_jobs.get(booking_id, [])]

    def add_notification_log(self, entry: NotificationLog) -> None:
        with self._lock:
            self._notification_logs.append(entry.model_copy())

    def notification_logs(
        self, tenant_id: str, booking_id: Optional[str] = None
    ) -> list[NotificationLog]:
        with self._lock:
            return [
                entry.model_copy()
                for entry in self._notification_logs
                if entry.tenant_id == tenant_id
                and (booking_id is None or entry.booking_id == booking_id)
            ]

    # --- Tenant pricing settings ---

    def set_pricing(self, tenant_id: str, base_rates: BaseRates, shop_settings: ShopSettings) -> None:
        with self._lock:
            self._pricing[tenant_id] = (base_rates, shop_settings)

    def get_pricing(self, tenant_id: str) -> tuple[BaseRates, ShopSettings]:
        """Tenant base rates and shop settings, falling back to configured defaults."""
        with self._lock:
            if tenant_id in self._pricing:
                return self._pricing[tenant_id]
        return default_base_rates(), default_shop_settings()

    def reset(self) -> None:
        """Clear all records. Used by test fixtures for isolation."""
        with self._lock:
            self._inspections.clear()
            self._estimates.clear()
            self._bookings.clear()
            self._notification_jobs.clear()
            self._notification_logs.clear()
            self._pricing.clear()
