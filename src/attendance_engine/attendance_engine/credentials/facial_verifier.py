from __future__ import annotations

import logging
import math
from datetime import datetime
from typing import Optional, Sequence

import numpy as np

from ..core.constants import DEFAULT_FACE_MATCH_THRESHOLD
from ..core.enums import AttendanceMethod
from ..core.exceptions import NotEnrolledError, NotRecognizedError, ValidationError
from ..employees.model import Employee
from .base import CredentialProof, CredentialVerifier, VerificationResult

logger = logging.getLogger(__name__)


def descriptor_distance(a: Sequence[float], b: Optional[Sequence[float]]) -> float:
    """Euclidean distance between two face descriptors (inf if not comparable)."""
    if a is None or b is None or len(a) != len(b):
        return math.inf
    diff = np.asarray(a, dtype=np.float64) - np.asarray(b, dtype=np.float64)
    return float(np.linalg.norm(diff))


def match_confidence(distance: float) -> float:
    """Diagnostic figure shown to the user: max(0, 100 * (1 - d)) percent."""
    if not math.isfinite(distance):
        return 0.0
    return round(max(0.0, 100.0 * (1.0 - distance)), 1)


class FacialCredentialVerifier(CredentialVerifier):
    method = AttendanceMethod.FACIAL

    def __init__(self, *, threshold: float = DEFAULT_FACE_MATCH_THRESHOLD):
        self._threshold = float(threshold)

    def verify(self, *, employee: Employee, proof: CredentialProof, now: datetime) -> VerificationResult:
        if proof.face_template is None:
            raise ValidationError(
                "faceTemplate is required",
                errors=[{"field": "faceTemplate", "message": "faceTemplate is required"}],
            )
        if not employee.face_descriptor:
            raise NotEnrolledError("Face not registered. Please register your face in Profile page first.")

        distance = descriptor_distance(proof.face_template, employee.face_descriptor)
        confidence = match_confidence(distance)
        recognized = math.isfinite(distance) and distance < self._threshold
        logger.info(
            "Face recognition attempt employee=%s distance=%.4f threshold=%.2f recognized=%s",
            employee.employee_id,
            distance,
            self._threshold,
            recognized,
        )

        if not recognized:
            raise NotRecognizedError(
                f"Face not recognized (confidence: {confidence:.1f}%). Please ensure good lighting, "
                "face the camera directly, and hold still.",
                distance=distance,
                confidence=confidence,
            )
        return VerificationResult(
            employee_id=employee.employee_id,
            method=self.method,
            confidence=confidence,
            distance=distance,
        )
