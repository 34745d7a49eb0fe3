from __future__ import annotations

import json
from datetime import datetime, timedelta

import pytest

from attendance_engine.core.enums import AttendanceMethod
from attendance_engine.core.exceptions import (
    ExpiredCredentialError,
    ForbiddenError,
    InvalidPayloadError,
    NotEnrolledError,
    NotRecognizedError,
    ValidationError,
)
from attendance_engine.credentials.base import CredentialProof
from attendance_engine.credentials.facial_verifier import FacialCredentialVerifier, descriptor_distance, match_confidence
from attendance_engine.credentials.factory import CredentialVerifierFactory
from attendance_engine.credentials.manual_verifier import ManualCredentialVerifier
from attendance_engine.credentials.qr_codec import QrChallengeCodec
from attendance_engine.credentials.qr_verifier import QrCredentialVerifier
from attendance_engine.employees.model import Employee

NOW = datetime(2025, 3, 3, 8, 0, 0)
STORED = tuple([0.1] * 128)


def employee(face=STORED):
    return Employee(employee_id="E1", email="e1@example.com", face_descriptor=face)


def qr_payload(codec, issued_at, employee_id="E1"):
    return codec.encode(codec.issue(employee_id, now=issued_at))


def test_qr_issued_now_is_accepted():
    codec = QrChallengeCodec()
    verifier = QrCredentialVerifier(codec)

    result = verifier.verify(employee=employee(), proof=CredentialProof(qr_data=qr_payload(codec, NOW)), now=NOW)

    assert result.employee_id == "E1"
    assert result.method == AttendanceMethod.QR


def test_qr_at_edge_of_scan_window_is_accepted():
    codec = QrChallengeCodec()
    proof = CredentialProof(qr_data=qr_payload(codec, NOW - timedelta(minutes=5)))

    QrCredentialVerifier(codec).verify(employee=employee(), proof=proof, now=NOW)


@pytest.mark.parametrize("age", [timedelta(minutes=6), timedelta(minutes=10), timedelta(hours=11)])
def test_qr_older_than_scan_window_is_expired(age):
    codec = QrChallengeCodec()
    proof = CredentialProof(qr_data=qr_payload(codec, NOW - age))

    with pytest.raises(ExpiredCredentialError):
        QrCredentialVerifier(codec).verify(employee=employee(), proof=proof, now=NOW)


def test_qr_payload_carries_millisecond_timestamps():
    codec = QrChallengeCodec()
    data = json.loads(qr_payload(codec, NOW))

    assert data["employeeId"] == "E1"
    assert data["expiresAt"] - data["timestamp"] == 12 * 3600 * 1000


@pytest.mark.parametrize(
    "payload, message",
    [
        ("not json", "Invalid QR data format"),
        ("[1, 2]", "Invalid QR data format"),
        (json.dumps({"timestamp": 1}), "Invalid employeeId in QR data"),
        (json.dumps({"employeeId": "E1", "timestamp": "yesterday"}), "Invalid timestamp in QR data"),
        (json.dumps({"employeeId": "E1", "timestamp": 1e20}), "Invalid timestamp in QR data"),
        (json.dumps({"employeeId": "E1", "timestamp": -1e20}), "Invalid timestamp in QR data"),
        (json.dumps({"employeeId": "E1", "timestamp": 10**30}), "Invalid timestamp in QR data"),
        ('{"employeeId": "E1", "timestamp": NaN}', "Invalid timestamp in QR data"),
        (json.dumps({"employeeId": "E1", "timestamp": 1, "expiresAt": 1e20}), "Invalid timestamp in QR data"),
    ],
)
def test_qr_decode_rejects_malformed_payloads(payload, message):
    with pytest.raises(InvalidPayloadError, match=message):
        QrChallengeCodec().decode(payload)


def test_qr_subject_comes_from_payload():
    codec = QrChallengeCodec()
    verifier = QrCredentialVerifier(codec)
    proof = CredentialProof(qr_data=qr_payload(codec, NOW, employee_id="E7"))

    assert verifier.subject(None, proof) == "E7"
    with pytest.raises(ForbiddenError):
        verifier.subject("E1", proof)


def test_identical_face_descriptor_matches():
    result = FacialCredentialVerifier().verify(
        employee=employee(), proof=CredentialProof(face_template=list(STORED)), now=NOW
    )

    assert result.distance == 0.0
    assert result.confidence == 100.0


def test_face_at_distance_065_is_not_recognized_with_confidence():
    stored = tuple([0.0] * 128)
    template = [0.65] + [0.0] * 127

    with pytest.raises(NotRecognizedError) as exc:
        FacialCredentialVerifier().verify(
            employee=employee(face=stored), proof=CredentialProof(face_template=template), now=NOW
        )

    assert exc.value.confidence == pytest.approx(35.0)
    assert "35.0%" in str(exc.value)


def test_face_exactly_at_threshold_fails():
    stored = tuple([0.0] * 128)
    template = [0.75] + [0.0] * 127

    with pytest.raises(NotRecognizedError):
        FacialCredentialVerifier(threshold=0.75).verify(
            employee=employee(face=stored), proof=CredentialProof(face_template=template), now=NOW
        )


def test_face_template_with_nan_is_not_recognized():
    template = [float("nan")] + [0.9] * 127

    with pytest.raises(NotRecognizedError) as exc:
        FacialCredentialVerifier().verify(
            employee=employee(), proof=CredentialProof(face_template=template), now=NOW
        )

    assert exc.value.confidence == 0.0


def test_face_without_enrolment_fails():
    with pytest.raises(NotEnrolledError):
        FacialCredentialVerifier().verify(
            employee=employee(face=None), proof=CredentialProof(face_template=list(STORED)), now=NOW
        )


def test_face_without_template_is_invalid():
    with pytest.raises(ValidationError):
        FacialCredentialVerifier().verify(employee=employee(), proof=CredentialProof(), now=NOW)


def test_distance_and_confidence_helpers():
    assert descriptor_distance([3.0, 4.0], [0.0, 0.0]) == pytest.approx(5.0)
    assert descriptor_distance([1.0], [1.0, 2.0]) == float("inf")
    assert match_confidence(1.7) == 0.0
    assert match_confidence(float("inf")) == 0.0


def test_manual_requires_claimed_employee():
    verifier = ManualCredentialVerifier()

    with pytest.raises(ValidationError):
        verifier.subject(None, CredentialProof())
    assert verifier.subject("E1", CredentialProof()) == "E1"


def test_factory_picks_verifier_per_method():
    factory = CredentialVerifierFactory.default()

    assert isinstance(factory.for_method(AttendanceMethod.MANUAL), ManualCredentialVerifier)
    assert isinstance(factory.for_method(AttendanceMethod.QR), QrCredentialVerifier)
    assert isinstance(factory.for_method(AttendanceMethod.FACIAL), FacialCredentialVerifier)
