from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime
from typing import Optional, Sequence

from ..core.enums import AttendanceMethod
from ..core.exceptions import ValidationError
from ..employees.model import Employee


@dataclass(frozen=True)
class CredentialProof:
    """Method-specific proof presented with an entry request."""

    qr_data: Optional[str] = None
    face_template: Optional[Sequence[float]] = None


@dataclass(frozen=True)
class VerificationResult:
    employee_id: str
    method: AttendanceMethod
    confidence: Optional[float] = None
    distance: Optional[float] = None


class CredentialVerifier(ABC):
    """Strategy Pattern: one verifier per attendance method."""

    method: AttendanceMethod

    def subject(self, claimed_employee_id: Optional[str], proof: CredentialProof) -> str:
        """Employee id the proof speaks for (looked up before `verify`)."""
        if not claimed_employee_id:
            raise ValidationError(
                "Valid employeeId is required",
                errors=[{"field": "employeeId", "message": "Valid employeeId is required"}],
            )
        return claimed_employee_id

    @abstractmethod
    def verify(self, *, employee: Employee, proof: CredentialProof, now: datetime) -> VerificationResult:
        raise NotImplementedError
