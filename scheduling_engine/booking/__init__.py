from scheduling_engine.booking.state_machine import (
    BookingStateMachine,
    BookingTrigger,
)
from scheduling_engine.booking.workflow import BookingWorkflow

__all__ = ["BookingStateMachine", "BookingTrigger", "BookingWorkflow"]
