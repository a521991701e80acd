"""
Admission control: team occupancy, surge multipliers and slot search.

Availability is recomputed from the live booking set on every call and is
never cached. Booking creation re-runs ``check`` inside the same store
transaction that writes the booking.
"""

import logging
from datetime import datetime, timedelta
from typing import Optional

from scheduling_engine.config import ServiceWindowConfig, settings
from scheduling_engine.schemas.scheduling_schema import (
    AvailabilityCheck,
    BestSlot,
    ServiceType,
    SlotAvailability,
    Team,
    TimeSlot,
)
from scheduling_engine.scheduling.teams import TeamRegistry
from scheduling_engine.scheduling.time_slots import (
    SURGE_THRESHOLD,
    make_slot,
    surge_multiplier_for,
    team_can_serve,
)
from scheduling_engine.storage import InMemoryStore

logger = logging.getLogger(__name__)


def _ceil_to_hour(instant: datetime) -> datetime:
    floored = instant.replace(minute=0, second=0, microsecond=0)
    return floored if floored == instant else floored + timedelta(hours=1)


class AvailabilityChecker:
    """Counts overlapping active bookings against team capacity."""

    def __init__(
        self,
        store: InMemoryStore,
        registry: TeamRegistry,
        window: Optional[ServiceWindowConfig] = None,
    ) -> None:
        self.store = store
        self.registry = registry
        self.window = window or settings.service_window

    def check(
        self,
        tenant_id: str,
        slot: TimeSlot,
        team_id: str,
        maximum_surge: float = 2.0,
        exclude_booking_id: Optional[str] = None,
    ) -> AvailabilityCheck:
        """
        Decide whether ``team_id`` can take another job in ``slot``.

        Args:
            exclude_booking_id: A booking to leave out of the count, used
                when rescheduling so a booking never conflicts with itself.

        Raises:
            NotFoundError: If the team id is unknown.
        """
        team = self.registry.require(team_id)

        if not team_can_serve(team, slot):
            return AvailabilityCheck(
                is_available=False,
                current_occupancy=0,
                max_capacity=team.max_concurrent_jobs,
                occupancy_rate=0.0,
                conflicting_bookings=[],
                surge_required=False,
                surge_multiplier=1.0,
            )

        overlapping = self.store.overlapping_bookings(
            tenant_id, team_id, slot.start, slot.end, exclude_booking_id=exclude_booking_id
        )
        current_occupancy = len(overlapping)
        max_capacity = team.max_concurrent_jobs
        occupancy_rate = current_occupancy / max_capacity

        result = AvailabilityCheck(
            is_available=current_occupancy < max_capacity,
            current_occupancy=current_occupancy,
            max_capacity=max_capacity,
            occupancy_rate=occupancy_rate,
            conflicting_bookings=[b.id for b in overlapping],
            surge_required=occupancy_rate >= SURGE_THRESHOLD,
            surge_multiplier=surge_multiplier_for(occupancy_rate, maximum_surge),
        )
        logger.debug(
            "Availability %s %s: %d/%d (surge x%.2f)",
            team_id, slot.start.isoformat(), current_occupancy, max_capacity,
            result.surge_multiplier,
        )
        return result

    def team_availability(
        self,
        tenant_id: str,
        team_id: str,
        start: datetime,
        end: datetime,
        slot_minutes: Optional[int] = None,
        maximum_surge: float = 2.0,
    ) -> list[SlotAvailability]:
        """Check every fixed-size slot in [start, end) that the team could staff."""
        team = self.registry.require(team_id)
        slot_minutes = slot_minutes or self.window.default_slot_minutes

        results: list[SlotAvailability] = []
        current = start
        while current < end:
            slot = make_slot(current, slot_minutes, team_id=team_id, capacity=team.max_concurrent_jobs)
            if team_can_serve(team, slot):
                results.append(
                    SlotAvailability(
                        time_slot=slot,
                        availability=self.check(tenant_id, slot, team_id, maximum_surge),
                    )
                )
            current += timedelta(minutes=slot_minutes)
        return results

    def find_best_slot(
        self,
        tenant_id: str,
        service_type: ServiceType | str,
        now: datetime,
        preferred_start: Optional[datetime] = None,
        preferred_team_id: Optional[str] = None,
        maximum_surge: float = 2.0,
    ) -> Optional[BestSlot]:
        """
        Find the least busy available slot within the search horizon.

        The preferred team (if capable) is searched first; within a team
        the slot with the lowest occupancy rate wins, earliest on ties.
        Returns None when no capable team has an available slot.
        """
        capable = self.registry.teams_capable_of(service_type)
        if not capable:
            logger.info("No team is skilled for %s", service_type)
            return None

        earliest = now + timedelta(minutes=self.window.search_lead_minutes)
        search_start = _ceil_to_hour(max(preferred_start or earliest, earliest))
        search_end = search_start + timedelta(days=self.window.search_horizon_days)

        for team in self._prioritize(capable, preferred_team_id):
            candidates = [
                entry
                for entry in self.team_availability(
                    tenant_id, team.team_id, search_start, search_end,
                    maximum_surge=maximum_surge,
                )
                if entry.availability.is_available
            ]
            if candidates:
                best = min(
                    candidates,
                    key=lambda e: (e.availability.occupancy_rate, e.time_slot.start),
                )
                return BestSlot(
                    time_slot=best.time_slot,
                    team_id=team.team_id,
                    availability=best.availability,
                )
        return None

    @staticmethod
    def _prioritize(teams: list[Team], preferred_team_id: Optional[str]) -> list[Team]:
        preferred = [t for t in teams if t.team_id == preferred_team_id]
        return preferred + [t for t in teams if t.team_id != preferred_team_id]
