"""Shared test fixtures and helpers."""

import uuid
from datetime import datetime, timedelta
from typing import Optional
from zoneinfo import ZoneInfo

import pytest

from scheduling_engine.auth import CallerContext, StaticIdentity
from scheduling_engine.engine import SchedulingEngine
from scheduling_engine.notifications.jobs import InMemoryJobScheduler
from scheduling_engine.schemas.booking_schema import (
    Booking,
    BookingStatus,
    CustomerContact,
    Estimate,
    EstimateStatus,
    Inspection,
    VehicleInfo,
)
from scheduling_engine.schemas.scheduling_schema import ServiceType, Team, WorkingHours
from scheduling_engine.scheduling.teams import DEFAULT_TEAMS, TeamRegistry
from scheduling_engine.storage import InMemoryStore

TENANT = "tenant_a"
OTHER_TENANT = "tenant_b"
NY = ZoneInfo("America/New_York")

# Monday 2026-03-16 08:00 in New York (EDT).
NOW = datetime(2026, 3, 16, 8, 0, tzinfo=NY)
TUESDAY_10AM = datetime(2026, 3, 17, 10, 0, tzinfo=NY)
WEDNESDAY_10AM = datetime(2026, 3, 18, 10, 0, tzinfo=NY)

BIG_TEAM = Team(
    team_id="team_big",
    name="Big Team",
    max_concurrent_jobs=20,
    working_hours=WorkingHours(start="08:00", end="18:00"),
    working_days=frozenset(range(7)),
    skills=frozenset(ServiceType),
    hourly_rate=8000,
)


def fixed_clock() -> datetime:
    return NOW


@pytest.fixture
def store():
    return InMemoryStore()


@pytest.fixture
def registry():
    return TeamRegistry([*DEFAULT_TEAMS.values(), BIG_TEAM])


@pytest.fixture
def jobs():
    return InMemoryJobScheduler()


@pytest.fixture
def engine(store, registry, jobs):
    return SchedulingEngine(
        identity=StaticIdentity(CallerContext(tenant_id=TENANT, user_id="user_1")),
        store=store,
        registry=registry,
        jobs=jobs,
        clock=fixed_clock,
    )


def make_inspection(
    store: InMemoryStore,
    tenant_id: str = TENANT,
    inspection_id: Optional[str] = None,
    filthiness_score: Optional[float] = None,
    damages: Optional[list] = None,
) -> Inspection:
    """Helper to create and store a completed inspection."""
    inspection = Inspection(
        id=inspection_id or f"insp_{uuid.uuid4().hex[:8]}",
        tenant_id=tenant_id,
        customer=CustomerContact(
            name="Sam Rivera", email="sam@example.com", phone="(212) 555-0147"
        ),
        vehicle=VehicleInfo(make="Toyota", model="Camry", year=2020),
        filthiness_score=filthiness_score,
        damages=damages or [],
    )
    store.save_inspection(inspection)
    return inspection


def make_estimate(
    store: InMemoryStore,
    inspection_id: str,
    tenant_id: str = TENANT,
    total: int = 10000,
    service_type: ServiceType = ServiceType.DETAIL,
    status: EstimateStatus = EstimateStatus.APPROVED,
    valid_until: Optional[datetime] = None,
) -> Estimate:
    """Helper to create and store an estimate with sensible defaults."""
    estimate = Estimate(
        id=f"est_{uuid.uuid4().hex[:8]}",
        tenant_id=tenant_id,
        inspection_id=inspection_id,
        estimate_number=f"EST-{uuid.uuid4().hex[:6].upper()}",
        service_type=service_type,
        status=status,
        total=total,
        valid_until=valid_until or NOW + timedelta(days=30),
        created_at=NOW,
        updated_at=NOW,
    )
    store.save_estimate(estimate)
    return estimate


def make_booking(
    store: InMemoryStore,
    team_id: str,
    start: datetime,
    duration_minutes: int = 120,
    tenant_id: str = TENANT,
    status: BookingStatus = BookingStatus.SCHEDULED,
    service_type: ServiceType = ServiceType.DETAIL,
) -> Booking:
    """Helper to place an existing booking directly in the store."""
    booking = Booking(
        id=f"bkg_{uuid.uuid4().hex[:8]}",
        tenant_id=tenant_id,
        booking_number=f"BK-{uuid.uuid4().hex[:6].upper()}",
        customer=CustomerContact(name="Existing Customer"),
        service_type=service_type,
        status=status,
        scheduled_start=start,
        scheduled_end=start + timedelta(minutes=duration_minutes),
        assigned_team_id=team_id,
        total_amount=10000,
    )
    store.save_booking(booking)
    return booking


def book_ready_inspection(
    store: InMemoryStore,
    total: int = 10000,
    service_type: ServiceType = ServiceType.DETAIL,
    tenant_id: str = TENANT,
) -> tuple[Inspection, Estimate]:
    """Inspection plus an approved estimate, ready to be booked."""
    inspection = make_inspection(store, tenant_id=tenant_id)
    estimate = make_estimate(
        store, inspection.id, tenant_id=tenant_id, total=total, service_type=service_type
    )
    return inspection, estimate
