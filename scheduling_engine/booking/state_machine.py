"""
Finite state machine for booking status transitions.

Every status change goes through an explicit transition table; anything
not listed is rejected with InvalidTransitionError naming the triggers
that are allowed from the current status.

Usage:
    status = BookingStateMachine.next_state(BookingStatus.SCHEDULED, BookingTrigger.CONFIRM)
    assert status == BookingStatus.CONFIRMED
"""

import logging
from dataclasses import dataclass
from enum import Enum

from scheduling_engine.errors import InvalidTransitionError
from scheduling_engine.schemas.booking_schema import BookingStatus

logger = logging.getLogger(__name__)


class BookingTrigger(str, Enum):
    """Events that cause status transitions."""

    CONFIRM = "confirm"
    START = "start"
    COMPLETE = "complete"
    CANCEL = "cancel"
    MARK_NO_SHOW = "mark_no_show"
    RESCHEDULE = "reschedule"


@dataclass(frozen=True)
class Transition:
    """A single valid status transition."""

    from_state: BookingStatus
    to_state: BookingStatus
    trigger: BookingTrigger


class BookingStateMachine:
    """Transition table controlling a booking's status."""

    TRANSITIONS: list[Transition] = [
        # --- Forward lifecycle ---
        Transition(BookingStatus.SCHEDULED, BookingStatus.CONFIRMED, BookingTrigger.CONFIRM),
        Transition(BookingStatus.CONFIRMED, BookingStatus.IN_PROGRESS, BookingTrigger.START),
        Transition(BookingStatus.IN_PROGRESS, BookingStatus.COMPLETED, BookingTrigger.COMPLETE),

        # --- Cancellation ---
        Transition(BookingStatus.SCHEDULED, BookingStatus.CANCELLED, BookingTrigger.CANCEL),
        Transition(BookingStatus.CONFIRMED, BookingStatus.CANCELLED, BookingTrigger.CANCEL),

        # --- No-show ---
        Transition(BookingStatus.SCHEDULED, BookingStatus.NO_SHOW, BookingTrigger.MARK_NO_SHOW),
        Transition(BookingStatus.CONFIRMED, BookingStatus.NO_SHOW, BookingTrigger.MARK_NO_SHOW),

        # --- Reschedule keeps the status, except a no-show is booked again ---
        Transition(BookingStatus.SCHEDULED, BookingStatus.SCHEDULED, BookingTrigger.RESCHEDULE),
        Transition(BookingStatus.CONFIRMED, BookingStatus.CONFIRMED, BookingTrigger.RESCHEDULE),
        Transition(BookingStatus.IN_PROGRESS, BookingStatus.IN_PROGRESS, BookingTrigger.RESCHEDULE),
        Transition(BookingStatus.NO_SHOW, BookingStatus.SCHEDULED, BookingTrigger.RESCHEDULE),
    ]

    @classmethod
    def next_state(cls, current: BookingStatus, trigger: BookingTrigger) -> BookingStatus:
        """
        Resolve the target status without mutating anything.

        Raises:
            InvalidTransitionError: If no valid transition exists.
        """
        for t in cls.TRANSITIONS:
            if t.from_state == current and t.trigger == trigger:
                logger.debug(
                    "Booking transition: %s -> %s (trigger: %s)",
                    current.value, t.to_state.value, trigger.value,
                )
                return t.to_state

        valid = [t.value for t in cls.valid_triggers_for(current)]
        raise InvalidTransitionError(
            f"Cannot {trigger.value.replace('_', ' ')} a {current.value} booking. "
            f"Valid triggers: {valid}"
        )

    @classmethod
    def valid_triggers_for(cls, current: BookingStatus) -> list[BookingTrigger]:
        return [t.trigger for t in cls.TRANSITIONS if t.from_state == current]
