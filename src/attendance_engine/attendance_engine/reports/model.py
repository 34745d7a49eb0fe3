from __future__ import annotations

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class PresenceReport:
    employee_id: str
    employee_name: str
    employee_role: Optional[str]
    period: str
    start_date: Optional[str]
    end_date: Optional[str]
    total_days: int
    total_hours: float
    late_days: int

    def to_dict(self) -> dict:
        return {
            "employeeId": self.employee_id,
            "employeeName": self.employee_name,
            "employeeRole": self.employee_role,
            "period": self.period,
            "startDate": self.start_date,
            "endDate": self.end_date,
            "totalDays": self.total_days,
            "totalHours": self.total_hours,
            "lateDays": self.late_days,
        }


@dataclass(frozen=True)
class DailyStat:
    day: str
    count: int

    def to_dict(self) -> dict:
        return {"date": self.day, "count": self.count}
