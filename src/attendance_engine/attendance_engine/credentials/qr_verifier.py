from __future__ import annotations

from datetime import datetime, timedelta
from typing import Optional

from ..core.constants import DEFAULT_QR_SCAN_WINDOW_SECONDS
from ..core.enums import AttendanceMethod
from ..core.exceptions import ExpiredCredentialError, ForbiddenError, InvalidPayloadError
from ..employees.model import Employee
from .base import CredentialProof, CredentialVerifier, VerificationResult
from .qr_codec import QrChallengeCodec


class QrCredentialVerifier(CredentialVerifier):
    """Scan must happen within the scan window of the payload's issue time.

    The QR image stays displayable for its whole validity, but freshness is
    measured from `issuedAt`, not from when the image was shown.
    """

    method = AttendanceMethod.QR

    def __init__(
        self,
        codec: QrChallengeCodec,
        *,
        scan_window: timedelta = timedelta(seconds=DEFAULT_QR_SCAN_WINDOW_SECONDS),
    ):
        self._codec = codec
        self._scan_window = scan_window

    def _decode(self, proof: CredentialProof):
        if not proof.qr_data:
            raise InvalidPayloadError("QR data is required")
        return self._codec.decode(proof.qr_data)

    def subject(self, claimed_employee_id: Optional[str], proof: CredentialProof) -> str:
        challenge = self._decode(proof)
        if claimed_employee_id and claimed_employee_id != challenge.employee_id:
            raise ForbiddenError("QR code does not belong to the claimed employee")
        return challenge.employee_id

    def verify(self, *, employee: Employee, proof: CredentialProof, now: datetime) -> VerificationResult:
        challenge = self._decode(proof)
        if challenge.employee_id != employee.employee_id:
            raise ForbiddenError("QR code does not belong to the claimed employee")
        if now - challenge.issued_at > self._scan_window:
            raise ExpiredCredentialError("Invalid or expired QR code")
        return VerificationResult(employee_id=challenge.employee_id, method=self.method)
