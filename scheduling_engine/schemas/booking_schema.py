"""Inspection, estimate and booking data models plus workflow results."""

from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field, model_validator

from scheduling_engine.schemas.notification_schema import NotificationJob
from scheduling_engine.schemas.pricing_schema import Damage, EstimateBreakdown
from scheduling_engine.schemas.scheduling_schema import ServiceType


class BookingStatus(str, Enum):
    """All possible states in a booking lifecycle."""

    SCHEDULED = "scheduled"
    CONFIRMED = "confirmed"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    NO_SHOW = "no_show"


class PaymentStatus(str, Enum):
    PENDING = "pending"
    PARTIAL = "partial"
    PAID = "paid"
    REFUNDED = "refunded"


class EstimateStatus(str, Enum):
    DRAFT = "draft"
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
    EXPIRED = "expired"


class InspectionStatus(str, Enum):
    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    BOOKED = "booked"


class CustomerContact(BaseModel):
    name: str
    email: str = ""
    phone: str = ""


class VehicleInfo(BaseModel):
    vin: str = ""
    make: str = ""
    model: str = ""
    year: Optional[int] = None
    color: str = "Unknown"

    def describe(self) -> str:
        parts = [str(self.year) if self.year else "", self.make, self.model]
        return " ".join(part for part in parts if part) or "vehicle"


class ZoneScores(BaseModel):
    """Per-zone filthiness scores (0-100). Missing zones are estimated."""

    exterior: Optional[float] = None
    interior: Optional[float] = None
    engine: Optional[float] = None
    undercarriage: Optional[float] = None


class Inspection(BaseModel):
    """Vehicle inspection record the booking originates from."""

    id: str
    tenant_id: str
    status: InspectionStatus = InspectionStatus.COMPLETED
    customer: CustomerContact
    vehicle: VehicleInfo = Field(default_factory=VehicleInfo)
    filthiness_score: Optional[float] = Field(default=None, ge=0, le=100)
    filthiness_zone_scores: Optional[ZoneScores] = None
    damages: list[Damage] = Field(default_factory=list)
    booked_at: Optional[datetime] = None


class Estimate(BaseModel):
    """Frozen snapshot of one EstimateBreakdown attached to an inspection."""

    id: str
    tenant_id: str
    inspection_id: str
    estimate_number: str
    service_type: ServiceType
    status: EstimateStatus = EstimateStatus.DRAFT
    total: int = Field(ge=0)
    breakdown: Optional[EstimateBreakdown] = None
    valid_until: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class Booking(BaseModel):
    """The central booking aggregate. Money in cents."""

    id: str
    tenant_id: str
    inspection_id: Optional[str] = None
    estimate_id: Optional[str] = None
    booking_number: str
    customer: CustomerContact
    vehicle: VehicleInfo = Field(default_factory=VehicleInfo)
    service_type: ServiceType
    status: BookingStatus = BookingStatus.SCHEDULED
    scheduled_start: datetime
    scheduled_end: datetime
    actual_start: Optional[datetime] = None
    actual_end: Optional[datetime] = None
    assigned_team_id: str
    location: str = "Shop Location"
    special_instructions: Optional[str] = None
    total_amount: int = Field(ge=0)
    paid_amount: int = 0
    payment_status: PaymentStatus = PaymentStatus.PENDING
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @model_validator(mode="after")
    def _check_interval(self) -> "Booking":
        if self.scheduled_end <= self.scheduled_start:
            raise ValueError("scheduled_end must be after scheduled_start")
        return self

    @property
    def duration_minutes(self) -> int:
        return int((self.scheduled_end - self.scheduled_start).total_seconds() // 60)


class PricingDetails(BaseModel):
    original_amount: int
    surge_amount: int = 0
    final_amount: int
    surge_multiplier: float = 1.0
    occupancy_rate: float = 0.0
    pricing_notes: str = ""


class TimeSlotDetails(BaseModel):
    formatted: str
    start: datetime
    end: datetime
    duration: int


class TeamDetails(BaseModel):
    team_id: str
    name: str
    skills: list[str]


class BookingResult(BaseModel):
    """Result from book_appointment."""

    success: bool = True
    booking_id: str
    booking: Booking
    pricing_details: PricingDetails
    time_slot_details: TimeSlotDetails
    team_details: TeamDetails
    notifications: list[NotificationJob] = Field(default_factory=list)
    booked_at: datetime


class PricingChange(BaseModel):
    old_amount: int
    new_amount: int
    surge_amount: int
    difference: int


class RescheduleResult(BaseModel):
    """Result from reschedule_appointment."""

    success: bool = True
    booking_id: str
    old_time_slot: TimeSlotDetails
    new_time_slot: TimeSlotDetails
    old_team_id: str
    new_team_id: str
    pricing_change: PricingChange
    reason: Optional[str] = None
    notifications: list[NotificationJob] = Field(default_factory=list)
    rescheduled_at: datetime


class CancelResult(BaseModel):
    """Result from cancel_appointment."""

    success: bool = True
    booking_id: str
    previous_status: BookingStatus
    reason: str
    refund_amount: int = 0
    paid_amount: int
    payment_status: PaymentStatus
    cancelled_notifications: list[str] = Field(default_factory=list)
    cancelled_at: datetime


class StatusChangeResult(BaseModel):
    success: bool = True
    booking_id: str
    previous_status: BookingStatus
    status: BookingStatus
    changed_at: datetime


class EstimateRefresh(BaseModel):
    estimate_id: str
    service_type: ServiceType
    success: bool
    previous_total: int
    new_total: Optional[int] = None
    change: Optional[int] = None
    error: Optional[str] = None


class RefreshResult(BaseModel):
    """Result from refresh_inspection_pricing."""

    inspection_id: str
    reason: str
    updated_estimates: list[EstimateRefresh] = Field(default_factory=list)
    total_updated: int = 0
    refreshed_at: datetime
