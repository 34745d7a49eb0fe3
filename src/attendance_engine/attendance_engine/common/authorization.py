from __future__ import annotations

from dataclasses import dataclass

from ..core.enums import Role
from ..core.exceptions import ForbiddenError


@dataclass(frozen=True)
class Caller:
    """Authenticated identity of the request (issued by the auth collaborator)."""

    user_id: str
    role: Role

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN

    def can_act_for(self, employee_id: str) -> bool:
        return self.is_admin or self.user_id == employee_id


def ensure_can_act_for(caller: Caller, employee_id: str, *, action: str) -> None:
    if not caller.can_act_for(employee_id):
        raise ForbiddenError(f"Access denied: Can only {action} for yourself or requires admin role")


def ensure_admin(caller: Caller) -> None:
    if not caller.is_admin:
        raise ForbiddenError("Access denied: Requires admin role")
