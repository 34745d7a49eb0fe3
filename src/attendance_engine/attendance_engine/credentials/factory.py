from __future__ import annotations

from datetime import timedelta
from typing import Iterable, Optional

from ..core.constants import DEFAULT_FACE_MATCH_THRESHOLD, DEFAULT_QR_SCAN_WINDOW_SECONDS
from ..core.enums import AttendanceMethod
from ..core.exceptions import ValidationError
from .base import CredentialVerifier
from .facial_verifier import FacialCredentialVerifier
from .manual_verifier import ManualCredentialVerifier
from .qr_codec import QrChallengeCodec
from .qr_verifier import QrCredentialVerifier


class CredentialVerifierFactory:
    """Factory Pattern: pick the verifier for an attendance method."""

    def __init__(self, verifiers: Iterable[CredentialVerifier]):
        self._by_method = {v.method: v for v in verifiers}

    @classmethod
    def default(
        cls,
        *,
        codec: Optional[QrChallengeCodec] = None,
        qr_scan_window: timedelta = timedelta(seconds=DEFAULT_QR_SCAN_WINDOW_SECONDS),
        face_threshold: float = DEFAULT_FACE_MATCH_THRESHOLD,
    ) -> "CredentialVerifierFactory":
        return cls(
            [
                ManualCredentialVerifier(),
                QrCredentialVerifier(codec or QrChallengeCodec(), scan_window=qr_scan_window),
                FacialCredentialVerifier(threshold=face_threshold),
            ]
        )

    def for_method(self, method: AttendanceMethod) -> CredentialVerifier:
        verifier = self._by_method.get(method)
        if verifier is None:
            raise ValidationError(f"Unsupported attendance method: {method}")
        return verifier
