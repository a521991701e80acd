"""Tests for import chains and module integrity.

Ensures all public modules can be imported without errors and
that re-exports from __init__.py files work correctly.
"""


class TestSchemaImports:
    def test_import_scheduling_schema(self):
        from scheduling_engine.schemas.scheduling_schema import ServiceType, Team, TimeSlot
        assert ServiceType.PREMIUM_DETAIL == "premium_detail"

    def test_import_booking_schema(self):
        from scheduling_engine.schemas.booking_schema import Booking, BookingStatus
        assert BookingStatus.NO_SHOW == "no_show"

    def test_import_pricing_schema(self):
        from scheduling_engine.schemas.pricing_schema import EstimateBreakdown, ShopSettings
        assert ShopSettings().minimum_charge == 2500


class TestPackageReExports:
    def test_scheduling_package(self):
        from scheduling_engine.scheduling import (
            AvailabilityChecker, DEFAULT_TEAMS, TeamRegistry, surge_multiplier_for,
        )
        assert len(DEFAULT_TEAMS) == 3

    def test_pricing_package(self):
        from scheduling_engine.pricing import EstimateService, compute_estimate
        assert callable(compute_estimate)

    def test_booking_package(self):
        from scheduling_engine.booking import BookingStateMachine, BookingTrigger, BookingWorkflow
        assert BookingStateMachine.valid_triggers_for("completed") == []

    def test_notifications_package(self):
        from scheduling_engine.notifications import (
            InMemoryJobScheduler, LoggingSender, NotificationScheduler,
        )
        assert InMemoryJobScheduler().pending() == []

    def test_engine(self):
        from scheduling_engine.engine import SchedulingEngine, parse_instant
        assert callable(parse_instant)

    def test_version(self):
        import scheduling_engine
        assert scheduling_engine.__version__ == "0.1.0"
