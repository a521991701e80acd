"""Tests for slot validation, team staffing checks and the surge step table."""

from datetime import datetime, timedelta, timezone

import pytest
from pydantic import ValidationError

from scheduling_engine.errors import InvalidInputError
from scheduling_engine.schemas.notification_schema import ReminderType
from scheduling_engine.schemas.scheduling_schema import ServiceType, Team, TimeSlot, WorkingHours
from scheduling_engine.scheduling.teams import DEFAULT_TEAMS
from scheduling_engine.scheduling.time_slots import (
    format_instant,
    format_time_slot,
    generate_reminder_schedule,
    js_weekday,
    make_slot,
    surge_multiplier_for,
    team_can_serve,
    validate_time_slot,
)
from tests.conftest import NOW, NY, TUESDAY_10AM

ALPHA = DEFAULT_TEAMS["team_alpha"]
CHARLIE = DEFAULT_TEAMS["team_charlie"]


class TestValidateTimeSlot:
    def test_valid_slot_is_normalized(self):
        slot = validate_time_slot(TUESDAY_10AM, 120, NOW)
        assert slot.start == TUESDAY_10AM
        assert slot.end == TUESDAY_10AM + timedelta(minutes=120)
        assert slot.duration == 120

    def test_zero_duration_rejected(self):
        with pytest.raises(InvalidInputError, match="duration"):
            validate_time_slot(TUESDAY_10AM, 0, NOW)

    def test_negative_duration_rejected(self):
        with pytest.raises(InvalidInputError, match="duration"):
            validate_time_slot(TUESDAY_10AM, -30, NOW)

    def test_start_equal_to_now_rejected(self):
        with pytest.raises(InvalidInputError, match="future"):
            validate_time_slot(NOW, 60, NOW)

    def test_past_start_rejected(self):
        with pytest.raises(InvalidInputError, match="future"):
            validate_time_slot(NOW - timedelta(days=1), 60, NOW)

    def test_before_business_hours_rejected(self):
        with pytest.raises(InvalidInputError, match="business hours"):
            validate_time_slot(datetime(2026, 3, 17, 7, 0, tzinfo=NY), 60, NOW)

    def test_after_business_hours_rejected(self):
        with pytest.raises(InvalidInputError, match="business hours"):
            validate_time_slot(datetime(2026, 3, 17, 19, 0, tzinfo=NY), 60, NOW)

    def test_start_in_closing_hour_accepted(self):
        slot = validate_time_slot(datetime(2026, 3, 17, 18, 30, tzinfo=NY), 60, NOW)
        assert slot.start.hour == 18

    def test_naive_start_read_in_service_timezone(self):
        slot = validate_time_slot(datetime(2026, 3, 17, 10, 0), 120, NOW)
        assert slot.start == TUESDAY_10AM

    def test_hour_checked_in_service_timezone(self):
        # 11:00 UTC is 07:00 in New York during daylight saving time.
        early = datetime(2026, 3, 17, 11, 0, tzinfo=timezone.utc)
        with pytest.raises(InvalidInputError):
            validate_time_slot(early, 60, NOW)
        slot = validate_time_slot(early + timedelta(hours=3), 60, NOW)
        assert slot.start == TUESDAY_10AM


class TestTimeSlotModel:
    def test_end_must_match_duration(self):
        with pytest.raises(ValidationError):
            TimeSlot(start=TUESDAY_10AM, end=TUESDAY_10AM + timedelta(minutes=90), duration=120)

    def test_make_slot_sets_end(self):
        slot = make_slot(TUESDAY_10AM, 45, "team_alpha", 3)
        assert slot.end == TUESDAY_10AM + timedelta(minutes=45)
        assert slot.team_id == "team_alpha"
        assert slot.capacity == 3


class TestWeekday:
    def test_sunday_is_zero(self):
        assert js_weekday(datetime(2026, 3, 22, 12, 0, tzinfo=NY)) == 0

    def test_monday_is_one(self):
        assert js_weekday(NOW) == 1

    def test_saturday_is_six(self):
        assert js_weekday(datetime(2026, 3, 21, 12, 0, tzinfo=NY)) == 6


class TestTeamCanServe:
    def test_weekday_inside_hours(self):
        assert team_can_serve(ALPHA, make_slot(TUESDAY_10AM, 120))

    def test_slot_ending_at_close(self):
        assert team_can_serve(ALPHA, make_slot(datetime(2026, 3, 17, 16, 0, tzinfo=NY), 120))

    def test_slot_running_past_close(self):
        assert not team_can_serve(ALPHA, make_slot(datetime(2026, 3, 17, 17, 0, tzinfo=NY), 120))

    def test_non_working_day(self):
        sunday = datetime(2026, 3, 22, 10, 0, tzinfo=NY)
        assert not team_can_serve(ALPHA, make_slot(sunday, 60))

    def test_weekend_team_on_saturday(self):
        saturday = datetime(2026, 3, 21, 10, 0, tzinfo=NY)
        assert team_can_serve(CHARLIE, make_slot(saturday, 120))

    def test_weekend_team_before_opening(self):
        saturday = datetime(2026, 3, 21, 9, 0, tzinfo=NY)
        assert not team_can_serve(CHARLIE, make_slot(saturday, 120))

    def test_slot_crossing_midnight(self):
        night_team = Team(
            team_id="night",
            name="Night",
            max_concurrent_jobs=1,
            working_hours=WorkingHours(start="00:00", end="23:59"),
            working_days=frozenset(range(7)),
            skills=frozenset({ServiceType.BASIC_WASH}),
            hourly_rate=5000,
        )
        late = datetime(2026, 3, 17, 23, 0, tzinfo=NY)
        assert not team_can_serve(night_team, make_slot(late, 120))


class TestSurgeSteps:
    @pytest.mark.parametrize(
        "rate,expected",
        [
            (0.0, 1.0),
            (0.79, 1.0),
            (0.8, 1.3),
            (0.85, 1.3),
            (0.9, 1.6),
            (0.94, 1.6),
            (0.95, 2.0),
            (1.0, 2.0),
        ],
    )
    def test_step_function(self, rate, expected):
        assert surge_multiplier_for(rate) == expected

    def test_capped_by_maximum(self):
        assert surge_multiplier_for(1.0, maximum=1.5) == 1.5

    def test_custom_steps(self):
        steps = ((0.5, 1.1),)
        assert surge_multiplier_for(0.6, steps=steps) == 1.1
        assert surge_multiplier_for(0.4, steps=steps) == 1.0


class TestReminderSchedule:
    def test_all_offsets_in_future(self):
        reminders = generate_reminder_schedule(TUESDAY_10AM, NOW)
        assert [r.type for r in reminders] == [
            ReminderType.REMINDER_24H,
            ReminderType.REMINDER_2H,
            ReminderType.REMINDER_30M,
        ]
        assert reminders[0].scheduled_for == TUESDAY_10AM - timedelta(hours=24)
        assert reminders[1].scheduled_for == TUESDAY_10AM - timedelta(hours=2)
        assert reminders[2].scheduled_for == TUESDAY_10AM - timedelta(minutes=30)

    def test_past_trigger_instants_dropped(self):
        same_day = datetime(2026, 3, 16, 16, 0, tzinfo=NY)
        reminders = generate_reminder_schedule(same_day, NOW)
        assert [r.type for r in reminders] == [
            ReminderType.REMINDER_2H,
            ReminderType.REMINDER_30M,
        ]

    def test_imminent_booking_has_no_reminders(self):
        soon = NOW + timedelta(minutes=20)
        assert generate_reminder_schedule(soon, NOW) == []

    def test_unlisted_offset_is_generic(self):
        reminders = generate_reminder_schedule(TUESDAY_10AM, NOW, offsets_minutes=[60])
        assert reminders[0].type == ReminderType.GENERIC


class TestFormatting:
    def test_format_time_slot(self):
        slot = make_slot(TUESDAY_10AM, 120)
        assert format_time_slot(slot) == "Tuesday, March 17, 2026 from 10:00 AM to 12:00 PM"

    def test_format_instant(self):
        assert format_instant(TUESDAY_10AM) == "Tuesday, March 17, 2026 at 10:00 AM"
