from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Any, Callable, Mapping, Optional

from .attendance.document_session_store import DocumentSessionStore
from .attendance.service import AttendanceService
from .common.datetime_utils import now_local
from .core import constants
from .credentials.factory import CredentialVerifierFactory
from .credentials.qr_codec import QrChallengeCodec
from .database.bootstrap import DEFAULT_INDEXES
from .database.connection import DBConfig, DatabaseConnection
from .employees.document_directory import DocumentEmployeeDirectory
from .geofence.model import GeofenceConfig, GeoPoint
from .geofence.validator import GeofenceValidator
from .notifications.dispatcher import NotificationDispatcher
from .notifications.notifier import Notifier, StoreNotifier
from .reports.service import ReportAggregator
from .store.memory_store import InMemoryDocumentStore
from .store.mysql_store import MySQLDocumentStore
from .store.repository import DocumentStore

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class EngineSettings:
    store_backend: str = "memory"
    db_config: Mapping[str, Any] = field(default_factory=dict)
    allowed_lng: float = constants.DEFAULT_ALLOWED_LNG
    allowed_lat: float = constants.DEFAULT_ALLOWED_LAT
    allowed_radius: float = constants.DEFAULT_ALLOWED_RADIUS
    face_match_threshold: float = constants.DEFAULT_FACE_MATCH_THRESHOLD
    qr_scan_window_seconds: int = constants.DEFAULT_QR_SCAN_WINDOW_SECONDS
    qr_validity_hours: int = constants.DEFAULT_QR_VALIDITY_HOURS
    late_hour: int = constants.DEFAULT_LATE_HOUR
    open_session_lookback_days: int = constants.DEFAULT_OPEN_SESSION_LOOKBACK_DAYS
    history_limit: int = constants.DEFAULT_HISTORY_LIMIT
    daily_stats_max_days: int = constants.DEFAULT_DAILY_STATS_MAX_DAYS
    notify_max_retries: int = constants.DEFAULT_NOTIFY_MAX_RETRIES

    @classmethod
    def from_module(cls, settings) -> "EngineSettings":
        """Read the upper-case constants of a config.* settings module."""
        defaults = cls()
        return cls(
            store_backend=str(getattr(settings, "STORE_BACKEND", defaults.store_backend)).lower(),
            db_config=dict(getattr(settings, "DB_CONFIG", {})),
            allowed_lng=float(getattr(settings, "ALLOWED_LNG", defaults.allowed_lng)),
            allowed_lat=float(getattr(settings, "ALLOWED_LAT", defaults.allowed_lat)),
            allowed_radius=float(getattr(settings, "ALLOWED_RADIUS", defaults.allowed_radius)),
            face_match_threshold=float(getattr(settings, "FACE_MATCH_THRESHOLD", defaults.face_match_threshold)),
            qr_scan_window_seconds=int(getattr(settings, "QR_SCAN_WINDOW_SECONDS", defaults.qr_scan_window_seconds)),
            qr_validity_hours=int(getattr(settings, "QR_VALIDITY_HOURS", defaults.qr_validity_hours)),
            late_hour=int(getattr(settings, "LATE_HOUR", defaults.late_hour)),
            open_session_lookback_days=int(
                getattr(settings, "OPEN_SESSION_LOOKBACK_DAYS", defaults.open_session_lookback_days)
            ),
            history_limit=int(getattr(settings, "HISTORY_LIMIT", defaults.history_limit)),
            daily_stats_max_days=int(getattr(settings, "DAILY_STATS_MAX_DAYS", defaults.daily_stats_max_days)),
            notify_max_retries=int(getattr(settings, "NOTIFY_MAX_RETRIES", defaults.notify_max_retries)),
        )

    @property
    def geofence(self) -> GeofenceConfig:
        return GeofenceConfig(
            center=GeoPoint(longitude=self.allowed_lng, latitude=self.allowed_lat),
            radius_meters=self.allowed_radius,
        )


@dataclass(frozen=True)
class Container:
    settings: EngineSettings
    store: DocumentStore
    dispatcher: NotificationDispatcher

    sessions: DocumentSessionStore
    employees: DocumentEmployeeDirectory

    attendance_service: AttendanceService
    report_service: ReportAggregator


def build_store(settings: EngineSettings, *, clock: Callable[[], datetime] = now_local) -> DocumentStore:
    if settings.store_backend == "memory":
        return InMemoryDocumentStore(indexes=DEFAULT_INDEXES, clock=clock)
    if settings.store_backend == "mysql":
        conn = DatabaseConnection.get_instance(DBConfig.from_mapping(settings.db_config))
        return MySQLDocumentStore(conn, clock=clock)
    raise ValueError(f"Unknown STORE_BACKEND: {settings.store_backend!r}")


def build_container(
    settings: EngineSettings,
    *,
    store: Optional[DocumentStore] = None,
    notifier: Optional[Notifier] = None,
    clock: Callable[[], datetime] = now_local,
) -> Container:
    store = store or build_store(settings, clock=clock)
    dispatcher = NotificationDispatcher(notifier or StoreNotifier(store), max_retries=settings.notify_max_retries)

    sessions = DocumentSessionStore(store)
    employees = DocumentEmployeeDirectory(store)

    codec = QrChallengeCodec(validity=timedelta(hours=settings.qr_validity_hours))
    verifiers = CredentialVerifierFactory.default(
        codec=codec,
        qr_scan_window=timedelta(seconds=settings.qr_scan_window_seconds),
        face_threshold=settings.face_match_threshold,
    )

    attendance_service = AttendanceService(
        sessions,
        employees,
        verifiers,
        GeofenceValidator(settings.geofence),
        dispatcher,
        qr_codec=codec,
        late_hour=settings.late_hour,
        lookback=timedelta(days=settings.open_session_lookback_days),
        history_limit=settings.history_limit,
        clock=clock,
    )
    report_service = ReportAggregator(
        sessions,
        employees,
        late_hour=settings.late_hour,
        daily_stats_max_days=settings.daily_stats_max_days,
        clock=clock,
    )
    logger.debug("Container built backend=%s", settings.store_backend)

    return Container(
        settings=settings,
        store=store,
        dispatcher=dispatcher,
        sessions=sessions,
        employees=employees,
        attendance_service=attendance_service,
        report_service=report_service,
    )
