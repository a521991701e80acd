"""Estimate computation against stored inspections, and estimate bookkeeping."""

import logging
import uuid
from datetime import datetime, timedelta
from typing import Callable, Optional

from scheduling_engine.config import settings
from scheduling_engine.errors import ConflictError, NotFoundError
from scheduling_engine.pricing.calculator import compute_estimate
from scheduling_engine.schemas.booking_schema import (
    Estimate,
    EstimateRefresh,
    EstimateStatus,
    RefreshResult,
)
from scheduling_engine.schemas.pricing_schema import (
    BaseRates,
    EstimateBreakdown,
    ShopSettings,
    SurgeFactors,
    WeatherConditions,
)
from scheduling_engine.schemas.scheduling_schema import ServiceType
from scheduling_engine.storage import InMemoryStore

logger = logging.getLogger(__name__)

ESTIMATE_TRANSITIONS: dict[EstimateStatus, frozenset[EstimateStatus]] = {
    EstimateStatus.DRAFT: frozenset({
        EstimateStatus.PENDING, EstimateStatus.APPROVED,
        EstimateStatus.REJECTED, EstimateStatus.EXPIRED,
    }),
    EstimateStatus.PENDING: frozenset({
        EstimateStatus.APPROVED, EstimateStatus.REJECTED, EstimateStatus.EXPIRED,
    }),
    EstimateStatus.APPROVED: frozenset({EstimateStatus.EXPIRED}),
    EstimateStatus.REJECTED: frozenset(),
    EstimateStatus.EXPIRED: frozenset(),
}

REFRESHABLE_STATUSES = (EstimateStatus.DRAFT, EstimateStatus.PENDING)


class EstimateService:
    """Prices stored inspections and manages estimate snapshots."""

    def __init__(self, store: InMemoryStore, clock: Callable[[], datetime]) -> None:
        self.store = store
        self.clock = clock

    def compute(
        self,
        tenant_id: str,
        inspection_id: str,
        service_type: ServiceType | str,
        base_rates: Optional[BaseRates] = None,
        shop_settings: Optional[ShopSettings] = None,
        weather: Optional[WeatherConditions] = None,
        surge_factors: Optional[SurgeFactors] = None,
        as_of: Optional[datetime] = None,
        discount: int = 0,
        materials_override: Optional[int] = None,
    ) -> EstimateBreakdown:
        """Price a stored inspection, filling omitted rates and settings from the tenant's defaults."""
        inspection = self.store.get_inspection(tenant_id, inspection_id)
        if inspection is None:
            raise NotFoundError("Inspection not found or access denied")

        tenant_rates, tenant_shop = self.store.get_pricing(tenant_id)
        return compute_estimate(
            inspection,
            inspection.damages,
            service_type,
            base_rates or tenant_rates,
            shop_settings or tenant_shop,
            weather=weather,
            surge_factors=surge_factors,
            as_of=as_of if as_of is not None else self.clock(),
            discount=discount,
            materials_override=materials_override,
        )

    def save(
        self,
        tenant_id: str,
        inspection_id: str,
        breakdown: EstimateBreakdown,
        status: EstimateStatus = EstimateStatus.DRAFT,
    ) -> Estimate:
        """Freeze a breakdown as a new estimate on the inspection."""
        if self.store.get_inspection(tenant_id, inspection_id) is None:
            raise NotFoundError("Inspection not found or access denied")

        now = self.clock()
        estimate = Estimate(
            id=f"est_{uuid.uuid4().hex[:12]}",
            tenant_id=tenant_id,
            inspection_id=inspection_id,
            estimate_number=f"EST-{int(now.timestamp() * 1000)}-{uuid.uuid4().hex[:6].upper()}",
            service_type=ServiceType(breakdown.service_type),
            status=status,
            total=breakdown.total,
            breakdown=breakdown,
            valid_until=now + timedelta(days=settings.pricing.estimate_valid_days),
            created_at=now,
            updated_at=now,
        )
        self.store.save_estimate(estimate)
        logger.info("Estimate %s saved (%d cents)", estimate.estimate_number, estimate.total)
        return estimate

    def set_status(self, tenant_id: str, estimate_id: str, status: EstimateStatus) -> Estimate:
        """Move an estimate along draft -> pending -> approved/rejected, or expire it."""
        with self.store.transaction():
            estimate = self.store.get_estimate(tenant_id, estimate_id)
            if estimate is None:
                raise NotFoundError("Estimate not found or access denied")
            if status not in ESTIMATE_TRANSITIONS[estimate.status]:
                raise ConflictError(
                    f"Cannot move estimate from {estimate.status.value} to {status.value}"
                )
            estimate.status = status
            estimate.updated_at = self.clock()
            self.store.save_estimate(estimate)
        return estimate

    def refresh_inspection_pricing(
        self,
        tenant_id: str,
        inspection_id: str,
        reason: str,
        weather: Optional[WeatherConditions] = None,
    ) -> RefreshResult:
        """Recompute every draft or pending estimate on an inspection."""
        if self.store.get_inspection(tenant_id, inspection_id) is None:
            raise NotFoundError("Inspection not found or access denied")

        refreshed: list[EstimateRefresh] = []
        for estimate in self.store.estimates_for_inspection(
            tenant_id, inspection_id, statuses=REFRESHABLE_STATUSES
        ):
            breakdown = self.compute(
                tenant_id, inspection_id, estimate.service_type, weather=weather
            )
            with self.store.transaction():
                current = self.store.get_estimate(tenant_id, estimate.id)
                if current is None or current.status not in REFRESHABLE_STATUSES:
                    refreshed.append(EstimateRefresh(
                        estimate_id=estimate.id,
                        service_type=estimate.service_type,
                        success=False,
                        previous_total=estimate.total,
                        error="Estimate changed during refresh",
                    ))
                    continue
                current.total = breakdown.total
                current.breakdown = breakdown
                current.updated_at = self.clock()
                self.store.save_estimate(current)
            refreshed.append(EstimateRefresh(
                estimate_id=estimate.id,
                service_type=estimate.service_type,
                success=True,
                previous_total=estimate.total,
                new_total=breakdown.total,
                change=breakdown.total - estimate.total,
            ))

        logger.info(
            "Refreshed %d estimate(s) for inspection %s: %s",
            sum(1 for r in refreshed if r.success), inspection_id, reason,
        )
        return RefreshResult(
            inspection_id=inspection_id,
            reason=reason,
            updated_estimates=refreshed,
            total_updated=sum(1 for r in refreshed if r.success),
            refreshed_at=self.clock(),
        )
