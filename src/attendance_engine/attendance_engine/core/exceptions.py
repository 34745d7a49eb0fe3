from __future__ import annotations

from typing import Optional, Sequence

from .enums import ErrorKind


class DomainError(Exception):
    """Base exception for business rule violations."""

    kind: ErrorKind = ErrorKind.VALIDATION


class ValidationError(DomainError):
    """Raised when input data is invalid or violates domain rules."""

    def __init__(self, message: str, *, errors: Optional[Sequence[dict]] = None):
        super().__init__(message)
        self.errors = list(errors or [])


class InvalidPayloadError(ValidationError):
    """QR payload could not be decoded."""


class InvalidChronologyError(ValidationError):
    """Exit instant is not after the matched entry instant."""


class NotEnrolledError(ValidationError):
    """Employee has no stored face descriptor."""


class NotFoundError(DomainError):
    kind = ErrorKind.NOT_FOUND


class ForbiddenError(DomainError):
    """Raised when the caller may not act for the target employee."""

    kind = ErrorKind.FORBIDDEN


class ConflictError(DomainError):
    kind = ErrorKind.CONFLICT


class DuplicateOpenSessionError(ConflictError):
    pass


class NoOpenSessionError(ConflictError):
    pass


class OutOfBoundsError(ConflictError):
    def __init__(self, message: str, *, distance_meters: float):
        super().__init__(message)
        self.distance_meters = distance_meters


class ExpiredCredentialError(ConflictError):
    pass


class NotRecognizedError(ConflictError):
    def __init__(self, message: str, *, distance: float, confidence: float):
        super().__init__(message)
        self.distance = distance
        self.confidence = confidence


class StoreError(DomainError):
    """Irrecoverable persistence failure."""

    kind = ErrorKind.SERVER_ERROR


class IndexUnavailableError(StoreError):
    """The store cannot execute this query shape (missing composite index)."""

    def __init__(self, collection: str, fields: Sequence[str]):
        self.collection = collection
        self.fields = tuple(fields)
        super().__init__(f"No composite index on {collection}({', '.join(self.fields)})")


class ConcurrentUpdateError(StoreError):
    """An update precondition no longer holds (document changed underneath)."""
