"""Team catalog with working hours, working days, skills and capacity.

Teams are configuration: loaded once (defaults below, or a JSON file named
by ``TEAMS_CONFIG_PATH``) and never mutated by the engine.
"""

import json
import logging
from pathlib import Path
from typing import Iterable, Optional

from scheduling_engine.errors import NotFoundError
from scheduling_engine.schemas.scheduling_schema import ServiceType, Team, WorkingHours

logger = logging.getLogger(__name__)

DEFAULT_TEAMS: dict[str, Team] = {
    "team_alpha": Team(
        team_id="team_alpha",
        name="Alpha Team",
        max_concurrent_jobs=3,
        working_hours=WorkingHours(start="08:00", end="18:00", timezone="America/New_York"),
        working_days=frozenset({1, 2, 3, 4, 5}),
        skills=frozenset({ServiceType.BASIC_WASH, ServiceType.DETAIL, ServiceType.PREMIUM_DETAIL}),
        hourly_rate=7500,
    ),
    "team_bravo": Team(
        team_id="team_bravo",
        name="Bravo Team",
        max_concurrent_jobs=2,
        working_hours=WorkingHours(start="09:00", end="17:00", timezone="America/New_York"),
        working_days=frozenset({1, 2, 3, 4, 5, 6}),
        skills=frozenset({ServiceType.REPAIR, ServiceType.PREMIUM_DETAIL, ServiceType.CUSTOM}),
        hourly_rate=9000,
    ),
    "team_charlie": Team(
        team_id="team_charlie",
        name="Charlie Team (Weekend)",
        max_concurrent_jobs=2,
        working_hours=WorkingHours(start="10:00", end="16:00", timezone="America/New_York"),
        working_days=frozenset({0, 6}),
        skills=frozenset({ServiceType.BASIC_WASH, ServiceType.DETAIL}),
        hourly_rate=8500,
    ),
}


class TeamRegistry:
    """Read-only lookup over the configured teams."""

    def __init__(self, teams: Optional[Iterable[Team]] = None) -> None:
        source = DEFAULT_TEAMS.values() if teams is None else teams
        self._teams: dict[str, Team] = {team.team_id: team for team in source}

    @classmethod
    def from_json(cls, path: str | Path) -> "TeamRegistry":
        """Load teams from a JSON list of team objects."""
        raw = json.loads(Path(path).read_text(encoding="utf-8"))
        teams = [Team.model_validate(entry) for entry in raw]
        logger.info("Loaded %d team(s) from %s", len(teams), path)
        return cls(teams)

    def get(self, team_id: str) -> Optional[Team]:
        return self._teams.get(team_id)

    def require(self, team_id: str) -> Team:
        """Return the team or raise NotFoundError for an unknown id."""
        team = self._teams.get(team_id)
        if team is None:
            raise NotFoundError(f"Invalid team ID: {team_id}")
        return team

    def teams_capable_of(self, service_type: ServiceType | str) -> list[Team]:
        """Return teams whose skills cover the service, in catalog order."""
        try:
            wanted = ServiceType(service_type)
        except ValueError:
            return []
        return [team for team in self._teams.values() if wanted in team.skills]

    def all(self) -> list[Team]:
        return list(self._teams.values())

    def __len__(self) -> int:
        return len(self._teams)
