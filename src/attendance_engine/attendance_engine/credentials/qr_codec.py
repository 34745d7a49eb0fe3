from __future__ import annotations

import base64
import io
import json
from dataclasses import dataclass
from datetime import datetime, timedelta

import qrcode

from ..common.datetime_utils import from_epoch_millis, to_epoch_millis
from ..core.constants import DEFAULT_QR_VALIDITY_HOURS
from ..core.exceptions import InvalidPayloadError


@dataclass(frozen=True)
class QrChallenge:
    """Self-contained QR payload; nothing about it is persisted."""

    employee_id: str
    issued_at: datetime
    expires_at: datetime


def _instant(millis: float) -> datetime:
    try:
        return from_epoch_millis(millis)
    except (OverflowError, OSError, ValueError):
        raise InvalidPayloadError("Invalid timestamp in QR data") from None


class QrChallengeCodec:
    def __init__(self, *, validity: timedelta = timedelta(hours=DEFAULT_QR_VALIDITY_HOURS)):
        self._validity = validity

    def issue(self, employee_id: str, *, now: datetime) -> QrChallenge:
        return QrChallenge(employee_id=employee_id, issued_at=now, expires_at=now + self._validity)

    def encode(self, challenge: QrChallenge) -> str:
        return json.dumps(
            {
                "employeeId": challenge.employee_id,
                "timestamp": to_epoch_millis(challenge.issued_at),
                "expiresAt": to_epoch_millis(challenge.expires_at),
            }
        )

    def decode(self, payload: str) -> QrChallenge:
        try:
            data = json.loads(payload)
        except (TypeError, ValueError):
            raise InvalidPayloadError("Invalid QR data format") from None
        if not isinstance(data, dict):
            raise InvalidPayloadError("Invalid QR data format")

        employee_id = data.get("employeeId")
        if not isinstance(employee_id, str) or not employee_id:
            raise InvalidPayloadError("Invalid employeeId in QR data")

        issued_ms = data.get("timestamp")
        if not isinstance(issued_ms, (int, float)) or isinstance(issued_ms, bool):
            raise InvalidPayloadError("Invalid timestamp in QR data")
        issued_at = _instant(issued_ms)

        expires_ms = data.get("expiresAt")
        if isinstance(expires_ms, (int, float)) and not isinstance(expires_ms, bool):
            expires_at = _instant(expires_ms)
        else:
            expires_at = issued_at + self._validity
        return QrChallenge(employee_id=employee_id, issued_at=issued_at, expires_at=expires_at)


def render_png_data_url(payload: str) -> str:
    """Render the payload as a PNG QR image, returned as a data URL."""
    qr = qrcode.QRCode(
        version=1,
        error_correction=qrcode.constants.ERROR_CORRECT_L,
        box_size=10,
        border=2,
    )
    qr.add_data(payload)
    qr.make(fit=True)

    img = qr.make_image(fill_color="black", back_color="white")

    buf = io.BytesIO()
    img.save(buf, format="PNG")
    return "data:image/png;base64," + base64.b64encode(buf.getvalue()).decode("ascii")
