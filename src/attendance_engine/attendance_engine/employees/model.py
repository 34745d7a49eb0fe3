from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from ..core.enums import Role


@dataclass(frozen=True)
class Employee:
    """Domain entity: directory entry as seen by the attendance engine.

    Note: Pure data object, profile CRUD lives outside this package.
    """

    employee_id: str
    email: str
    name: str = ""
    role: Role = Role.EMPLOYEE
    face_descriptor: Optional[tuple[float, ...]] = None
    hire_date: Optional[datetime] = None
    created_at: Optional[datetime] = None

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN

    def summary(self) -> dict:
        return {"id": self.employee_id, "name": self.name, "email": self.email}
