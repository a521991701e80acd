"""
Time slot validation, team staffing checks and the occupancy surge table.

Two separate checks guard a slot:
    validate_time_slot: coarse global filter (future instant, start hour
        inside the service window). Cheap, team-independent.
    team_can_serve: the team's actual working days and hours.

All instants are timezone-aware; naive datetimes are interpreted in the
configured service timezone.
"""

import logging
from datetime import datetime, timedelta
from typing import Iterable, Optional
from zoneinfo import ZoneInfo

from scheduling_engine.config import ServiceWindowConfig, settings
from scheduling_engine.errors import InvalidInputError
from scheduling_engine.schemas.notification_schema import NotificationJob, ReminderType
from scheduling_engine.schemas.scheduling_schema import Team, TimeSlot

logger = logging.getLogger(__name__)

SURGE_THRESHOLD = 0.8

# (minimum occupancy rate, multiplier), highest threshold first.
SURGE_STEPS: tuple[tuple[float, float], ...] = (
    (0.95, 2.0),
    (0.9, 1.6),
    (0.8, 1.3),
)
NORMAL_MULTIPLIER = 1.0

REMINDER_TYPES_BY_OFFSET: dict[int, ReminderType] = {
    24 * 60: ReminderType.REMINDER_24H,
    2 * 60: ReminderType.REMINDER_2H,
    30: ReminderType.REMINDER_30M,
}


def ensure_aware(instant: datetime, tz_name: Optional[str] = None) -> datetime:
    """Attach the service timezone to a naive datetime; aware values pass through."""
    if instant.tzinfo is None:
        return instant.replace(tzinfo=ZoneInfo(tz_name or settings.service_window.timezone))
    return instant


def js_weekday(local: datetime) -> int:
    """Weekday index with 0 = Sunday ... 6 = Saturday."""
    return (local.weekday() + 1) % 7


def make_slot(start: datetime, duration: int, team_id: str = "", capacity: int = 1) -> TimeSlot:
    return TimeSlot(
        start=start,
        end=start + timedelta(minutes=duration),
        duration=duration,
        team_id=team_id,
        capacity=capacity,
    )


def validate_time_slot(
    start: datetime,
    duration: int,
    now: datetime,
    window: Optional[ServiceWindowConfig] = None,
) -> TimeSlot:
    """
    Normalize a requested start and duration into a TimeSlot.

    Raises:
        InvalidInputError: naming the rule the slot violates.
    """
    window = window or settings.service_window
    if duration <= 0:
        raise InvalidInputError(f"Invalid time slot: duration must be positive, got {duration}")

    start = ensure_aware(start, window.timezone)
    if start <= now:
        raise InvalidInputError("Invalid time slot: start must be in the future")

    local_hour = start.astimezone(ZoneInfo(window.timezone)).hour
    if local_hour < window.start_hour or local_hour > window.end_hour:
        raise InvalidInputError(
            "Invalid time slot: start must fall within business hours "
            f"({window.start_hour:02d}:00-{window.end_hour:02d}:00 {window.timezone})"
        )

    return make_slot(start, duration)


def team_can_serve(team: Team, slot: TimeSlot) -> bool:
    """Check the slot falls on a working day and inside the team's working hours."""
    tz = ZoneInfo(team.working_hours.timezone)
    local_start = slot.start.astimezone(tz)
    local_end = slot.end.astimezone(tz)

    if js_weekday(local_start) not in team.working_days:
        return False
    if local_end.date() != local_start.date():
        return False

    start_str = local_start.strftime("%H:%M")
    end_str = local_end.strftime("%H:%M")
    return start_str >= team.working_hours.start and end_str <= team.working_hours.end


def surge_multiplier_for(
    occupancy_rate: float,
    maximum: float = 2.0,
    steps: Iterable[tuple[float, float]] = SURGE_STEPS,
) -> float:
    """Map an occupancy rate onto the discrete surge step table, capped at ``maximum``."""
    multiplier = NORMAL_MULTIPLIER
    for threshold, step_multiplier in steps:
        if occupancy_rate >= threshold:
            multiplier = step_multiplier
            break
    return min(multiplier, maximum)


def generate_reminder_schedule(
    booking_start: datetime,
    now: datetime,
    offsets_minutes: Optional[Iterable[int]] = None,
) -> list[NotificationJob]:
    """Return reminder trigger instants before ``booking_start`` that are still in the future."""
    if offsets_minutes is None:
        offsets_minutes = settings.notifications.reminder_offsets_minutes

    reminders = []
    for offset in offsets_minutes:
        fire_at = booking_start - timedelta(minutes=offset)
        if fire_at > now:
            reminders.append(
                NotificationJob(
                    type=REMINDER_TYPES_BY_OFFSET.get(offset, ReminderType.GENERIC),
                    scheduled_for=fire_at,
                )
            )
    return reminders


def _format_clock(local: datetime) -> str:
    hour = local.hour % 12 or 12
    suffix = "AM" if local.hour < 12 else "PM"
    return f"{hour}:{local.minute:02d} {suffix}"


def _format_date(local: datetime) -> str:
    return f"{local:%A}, {local:%B} {local.day}, {local.year}"


def format_time_slot(slot: TimeSlot, tz_name: Optional[str] = None) -> str:
    """Human-readable slot, e.g. 'Monday, March 16, 2026 from 10:00 AM to 12:00 PM'."""
    tz = ZoneInfo(tz_name or settings.service_window.timezone)
    start = slot.start.astimezone(tz)
    end = slot.end.astimezone(tz)
    return f"{_format_date(start)} from {_format_clock(start)} to {_format_clock(end)}"


def format_instant(instant: datetime, tz_name: Optional[str] = None) -> str:
    local = instant.astimezone(ZoneInfo(tz_name or settings.service_window.timezone))
    return f"{_format_date(local)} at {_format_clock(local)}"
