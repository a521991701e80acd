"""Error taxonomy shared by every public engine operation."""


class SchedulingError(Exception):
    """Base class for all engine errors."""


class UnauthorizedError(SchedulingError):
    """Raised when the caller has no tenant context."""


class NotFoundError(SchedulingError):
    """Raised when a record is absent or belongs to another tenant."""


class InvalidInputError(SchedulingError):
    """Raised for malformed or past time slots and unqualified teams."""


class PreconditionFailedError(SchedulingError):
    """Raised when a required precondition (e.g. an approved estimate) is missing."""


class ConflictError(SchedulingError):
    """Raised when a slot is unavailable or the record is in the wrong state.

    Callers are expected to retry with a different slot; the engine never
    retries internally.
    """


class InvalidTransitionError(ConflictError):
    """Raised when a booking status transition is not valid from the current state."""
