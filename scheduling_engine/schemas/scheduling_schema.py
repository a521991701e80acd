"""Team, time slot and availability data models."""

from datetime import datetime, timedelta
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


class ServiceType(str, Enum):
    """Services a team can be skilled in and an estimate can be priced for."""

    BASIC_WASH = "basic_wash"
    DETAIL = "detail"
    PREMIUM_DETAIL = "premium_detail"
    REPAIR = "repair"
    CUSTOM = "custom"


class WorkingHours(BaseModel):
    """Local time-of-day window a team is staffed, e.g. 08:00-18:00."""

    model_config = ConfigDict(frozen=True)

    start: str
    end: str
    timezone: str = "America/New_York"

    @field_validator("start", "end")
    @classmethod
    def _check_hhmm(cls, value: str) -> str:
        try:
            datetime.strptime(value, "%H:%M")
        except ValueError:
            raise ValueError(f"Working hours must be HH:MM, got {value!r}") from None
        return value


class Team(BaseModel):
    """Configured service team. Read-only at run time."""

    model_config = ConfigDict(frozen=True)

    team_id: str
    name: str
    max_concurrent_jobs: int = Field(ge=1)
    working_hours: WorkingHours
    # 0 = Sunday ... 6 = Saturday
    working_days: frozenset[int]
    skills: frozenset[ServiceType]
    hourly_rate: int = Field(ge=0)

    @field_validator("working_days")
    @classmethod
    def _check_days(cls, value: frozenset[int]) -> frozenset[int]:
        if any(day < 0 or day > 6 for day in value):
            raise ValueError(f"Working days must be 0-6, got {sorted(value)}")
        return value


class TimeSlot(BaseModel):
    """A normalized, immutable booking window."""

    model_config = ConfigDict(frozen=True)

    start: datetime
    end: datetime
    duration: int = Field(gt=0, description="Minutes")
    team_id: str = ""
    capacity: int = 1

    @model_validator(mode="after")
    def _check_end(self) -> "TimeSlot":
        if self.end != self.start + timedelta(minutes=self.duration):
            raise ValueError("TimeSlot end must equal start + duration")
        return self


class AvailabilityCheck(BaseModel):
    """Admission decision for one slot and team, recomputed on every call."""

    is_available: bool
    current_occupancy: int
    max_capacity: int
    occupancy_rate: float
    conflicting_bookings: list[str] = Field(default_factory=list)
    surge_required: bool
    surge_multiplier: float


class SlotAvailability(BaseModel):
    """A candidate slot paired with its admission check."""

    time_slot: TimeSlot
    availability: AvailabilityCheck


class BestSlot(BaseModel):
    """Result of a best-slot search."""

    time_slot: TimeSlot
    team_id: str
    availability: AvailabilityCheck
