"""Tests for estimate computation, snapshots, approval and refresh."""

from datetime import timedelta

import pytest

from scheduling_engine.errors import ConflictError, NotFoundError
from scheduling_engine.schemas.booking_schema import EstimateStatus
from scheduling_engine.schemas.pricing_schema import (
    BaseRates,
    Damage,
    DamageSeverity,
    DamageType,
    ShopSettings,
    SurgeFactors,
    WeatherConditions,
)
from tests.conftest import NOW, TENANT, TUESDAY_10AM, make_estimate, make_inspection

# The fixed clock falls on a March weekday morning: only the peak season factor applies.
NEUTRAL = SurgeFactors(seasonal_factor=1.0)


class TestCompute:
    def test_prices_stored_inspection(self, engine, store):
        inspection = make_inspection(store)
        breakdown = engine.compute_estimate(inspection.id, "basic_wash", surge_factors=NEUTRAL)
        assert breakdown.total == 9788

    def test_reference_time_defaults_to_clock(self, engine, store):
        inspection = make_inspection(store)
        breakdown = engine.compute_estimate(inspection.id, "basic_wash")
        assert breakdown.surge_adjustment.factors == ["Peak season"]
        assert breakdown.surge_adjustment.additional_cost == 1500

    def test_uses_tenant_pricing(self, engine, store):
        engine.configure_pricing(
            BaseRates(labor_rate=10000, material_rate=0.0, tax_rate=0.0),
            ShopSettings(surge_enabled=False),
        )
        inspection = make_inspection(store)
        breakdown = engine.compute_estimate(inspection.id, "detail")
        assert breakdown.total == 30000

    def test_explicit_rates_override_tenant(self, engine, store):
        inspection = make_inspection(store)
        breakdown = engine.compute_estimate(
            inspection.id,
            "basic_wash",
            base_rates=BaseRates(labor_rate=5000, material_rate=0.0, tax_rate=0.0),
            shop_settings=ShopSettings(surge_enabled=False),
        )
        assert breakdown.total == 5000

    def test_inspection_damages_priced(self, engine, store):
        inspection = make_inspection(
            store, damages=[Damage(type=DamageType.SCRATCH, severity=DamageSeverity.MINOR)]
        )
        breakdown = engine.compute_estimate(inspection.id, "repair", surge_factors=NEUTRAL)
        assert breakdown.damage_adjustments.repair_cost == 3750

    def test_missing_inspection(self, engine):
        with pytest.raises(NotFoundError):
            engine.compute_estimate("insp_missing", "detail")


class TestSaveAndStatus:
    def test_save_creates_draft(self, engine, store):
        inspection = make_inspection(store)
        breakdown = engine.compute_estimate(inspection.id, "detail", surge_factors=NEUTRAL)
        estimate = engine.save_estimate(inspection.id, breakdown)

        assert estimate.id.startswith("est_")
        assert estimate.estimate_number.startswith("EST-")
        assert estimate.status == EstimateStatus.DRAFT
        assert estimate.total == breakdown.total
        assert estimate.valid_until == NOW + timedelta(days=30)

    def test_approve(self, engine, store):
        inspection = make_inspection(store)
        breakdown = engine.compute_estimate(inspection.id, "detail")
        estimate = engine.save_estimate(inspection.id, breakdown)
        approved = engine.set_estimate_status(estimate.id, "approved")
        assert approved.status == EstimateStatus.APPROVED

    def test_approved_estimate_cannot_revert(self, engine, store):
        inspection = make_inspection(store)
        estimate = make_estimate(store, inspection.id)
        with pytest.raises(ConflictError):
            engine.set_estimate_status(estimate.id, EstimateStatus.PENDING)

    def test_rejected_is_final(self, engine, store):
        inspection = make_inspection(store)
        estimate = make_estimate(store, inspection.id, status=EstimateStatus.REJECTED)
        with pytest.raises(ConflictError):
            engine.set_estimate_status(estimate.id, EstimateStatus.APPROVED)

    def test_unknown_estimate(self, engine):
        with pytest.raises(NotFoundError):
            engine.set_estimate_status("est_missing", EstimateStatus.APPROVED)

    def test_approved_estimate_is_bookable(self, engine, store):
        inspection = make_inspection(store)
        breakdown = engine.compute_estimate(inspection.id, "detail")
        estimate = engine.save_estimate(inspection.id, breakdown)
        engine.set_estimate_status(estimate.id, EstimateStatus.APPROVED)

        result = engine.book_appointment(inspection.id, TUESDAY_10AM, "team_alpha")
        assert result.booking.estimate_id == estimate.id
        assert result.booking.total_amount == breakdown.total


class TestRefresh:
    def test_refreshes_open_estimates_only(self, engine, store):
        inspection = make_inspection(store)
        draft = make_estimate(store, inspection.id, total=1, status=EstimateStatus.DRAFT)
        pending = make_estimate(store, inspection.id, total=1, status=EstimateStatus.PENDING)
        approved = make_estimate(store, inspection.id, total=1, status=EstimateStatus.APPROVED)

        result = engine.refresh_inspection_pricing(inspection.id, "Rate change")

        assert result.total_updated == 2
        assert {r.estimate_id for r in result.updated_estimates} == {draft.id, pending.id}
        assert store.get_estimate(TENANT, approved.id).total == 1
        refreshed = store.get_estimate(TENANT, draft.id)
        assert refreshed.total > 1
        assert refreshed.breakdown is not None

    def test_reports_change(self, engine, store):
        inspection = make_inspection(store)
        make_estimate(store, inspection.id, total=1000, status=EstimateStatus.DRAFT)
        result = engine.refresh_inspection_pricing(inspection.id, "Rate change")
        entry = result.updated_estimates[0]
        assert entry.success
        assert entry.previous_total == 1000
        assert entry.change == entry.new_total - 1000

    def test_weather_applied(self, engine, store):
        inspection = make_inspection(store)
        estimate = make_estimate(store, inspection.id, status=EstimateStatus.DRAFT)
        engine.refresh_inspection_pricing(
            inspection.id,
            "Storm forecast",
            weather=WeatherConditions(temperature=70, humidity=40, precipitation=True),
        )
        refreshed = store.get_estimate(TENANT, estimate.id)
        assert refreshed.breakdown.weather_adjustment.factors == ["Precipitation"]

    def test_missing_inspection(self, engine):
        with pytest.raises(NotFoundError):
            engine.refresh_inspection_pricing("insp_missing", "Rate change")
