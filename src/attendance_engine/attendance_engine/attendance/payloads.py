from __future__ import annotations

from typing import Any, Mapping, Optional

from ..common.validators import (
    optional_iso_date,
    require_choice,
    require_coordinates,
    require_float_vector,
    require_iso_datetime,
    require_non_empty,
)
from ..core.constants import FACE_DESCRIPTOR_LENGTH
from ..core.enums import AttendanceMethod, ReportPeriod
from ..core.exceptions import ValidationError
from ..credentials.base import CredentialProof
from ..geofence.model import GeoPoint
from .model import EntryCommand, ExitCommand


def _location(body: Mapping[str, Any]) -> GeoPoint:
    lng, lat = require_coordinates(body.get("location"), "location.coordinates")
    return GeoPoint(longitude=lng, latitude=lat)


def _optional_employee_id(body: Mapping[str, Any]) -> Optional[str]:
    value = body.get("employeeId")
    if value is None or value == "":
        return None
    return require_non_empty(value, "employeeId")


def parse_entry(body: Mapping[str, Any], *, method: Optional[AttendanceMethod] = None) -> tuple[EntryCommand, CredentialProof]:
    """Validate a check-in body; nothing is touched before this succeeds.

    `method` pins the verification method for the dedicated QR/facial
    endpoints, otherwise it is read from the body.
    """
    if method is None:
        method = AttendanceMethod(
            require_choice(body.get("method"), "method", [m.value for m in AttendanceMethod])
        )

    entry_time = require_iso_datetime(body.get("entryTime"), "entryTime")
    location = _location(body)

    if method == AttendanceMethod.QR:
        qr_data = require_non_empty(body.get("qrData"), "qrData")
        employee_id = _optional_employee_id(body)
        proof = CredentialProof(qr_data=qr_data)
    elif method == AttendanceMethod.FACIAL:
        employee_id = require_non_empty(body.get("employeeId"), "employeeId")
        template = require_float_vector(body.get("faceTemplate"), "faceTemplate", FACE_DESCRIPTOR_LENGTH)
        proof = CredentialProof(face_template=template)
    else:
        employee_id = require_non_empty(body.get("employeeId"), "employeeId")
        proof = CredentialProof()

    return EntryCommand(employee_id=employee_id, method=method, location=location, entry_time=entry_time), proof


def parse_exit(body: Mapping[str, Any]) -> ExitCommand:
    return ExitCommand(
        employee_id=require_non_empty(body.get("employeeId"), "employeeId"),
        location=_location(body),
        exit_time=require_iso_datetime(body.get("exitTime"), "exitTime"),
    )


def parse_report_query(args: Mapping[str, Any]) -> dict:
    period_raw = args.get("period")
    period = None
    if period_raw:
        period = ReportPeriod(require_choice(period_raw, "period", [p.value for p in ReportPeriod]))

    start_date = optional_iso_date(args.get("startDate"), "startDate")
    end_date = optional_iso_date(args.get("endDate"), "endDate")
    if end_date is not None and start_date is None:
        raise ValidationError(
            "startDate is required when endDate is given",
            errors=[{"field": "startDate", "message": "startDate is required when endDate is given"}],
        )
    if start_date and end_date and end_date < start_date:
        raise ValidationError(
            "endDate must not be before startDate",
            errors=[{"field": "endDate", "message": "endDate must not be before startDate"}],
        )
    return {"period": period, "start_date": start_date, "end_date": end_date}


def parse_days(value: Any) -> Optional[int]:
    if value is None or value == "":
        return None
    try:
        days = int(value)
    except (TypeError, ValueError):
        raise ValidationError(
            "days must be an integer",
            errors=[{"field": "days", "message": "days must be an integer"}],
        ) from None
    if days < 1:
        raise ValidationError(
            "days must be at least 1",
            errors=[{"field": "days", "message": "days must be at least 1"}],
        )
    return days
