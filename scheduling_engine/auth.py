"""Caller identity resolution.

Identity and role lookups live in an external provider; the engine only
needs the caller's tenant and user ids, and refuses to run without them.
"""

from typing import Optional, Protocol

from pydantic import BaseModel

from scheduling_engine.errors import UnauthorizedError


class CallerContext(BaseModel):
    tenant_id: str
    user_id: str


class IdentityProvider(Protocol):
    def current_caller(self) -> Optional[CallerContext]:
        ...


class StaticIdentity:
    """Identity provider that always yields the same caller (CLI, tests)."""

    def __init__(self, caller: Optional[CallerContext]) -> None:
        self._caller = caller

    def current_caller(self) -> Optional[CallerContext]:
        return self._caller


def require_caller(identity: IdentityProvider) -> CallerContext:
    """Return the current caller or raise UnauthorizedError when there is no tenant context."""
    caller = identity.current_caller()
    if caller is None or not caller.tenant_id:
        raise UnauthorizedError("Unauthorized: No tenant context")
    return caller
