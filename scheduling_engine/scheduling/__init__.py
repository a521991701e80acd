from scheduling_engine.scheduling.availability import AvailabilityChecker
from scheduling_engine.scheduling.teams import DEFAULT_TEAMS, TeamRegistry
from scheduling_engine.scheduling.time_slots import (
    surge_multiplier_for,
    team_can_serve,
    validate_time_slot,
)

__all__ = [
    "AvailabilityChecker",
    "TeamRegistry",
    "DEFAULT_TEAMS",
    "validate_time_slot",
    "team_can_serve",
    "surge_multiplier_for",
]
