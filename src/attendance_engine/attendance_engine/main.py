from __future__ import annotations

import importlib
import logging
from typing import Optional

from dotenv import load_dotenv
from flask import Flask

from config import get_settings_module

from .attendance.controller import register as register_attendance
from .container import Container, EngineSettings, build_container
from .database.bootstrap import DEFAULT_INDEXES, apply_schema, declare_index, list_tables

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"

logger = logging.getLogger(__name__)


def configure_logging(level="INFO") -> None:
    """Install a single stream handler on the package logger."""
    package_logger = logging.getLogger("attendance_engine")
    package_logger.setLevel(level if isinstance(level, int) else str(level).upper())
    if not package_logger.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        package_logger.addHandler(handler)


def create_app(settings_module: Optional[str] = None, *, container: Optional[Container] = None) -> Flask:
    load_dotenv(override=False)
    app = Flask(__name__)

    settings_module = settings_module or get_settings_module()
    settings = importlib.import_module(settings_module)
    app.secret_key = getattr(settings, "SECRET_KEY")
    app.config["DEBUG"] = bool(getattr(settings, "DEBUG", False))
    app.config["TESTING"] = bool(getattr(settings, "TESTING", False))
    configure_logging(getattr(settings, "LOG_LEVEL", "INFO"))

    engine_settings = EngineSettings.from_module(settings)
    logger.info("Starting attendance engine settings=%s backend=%s", settings_module, engine_settings.store_backend)

    if container is None:
        if engine_settings.store_backend == "mysql" and bool(getattr(settings, "AUTO_INIT_DB", False)):
            apply_schema(engine_settings.db_config)
            for collection, fields in DEFAULT_INDEXES:
                declare_index(engine_settings.db_config, collection, fields)
            logger.info("Schema ready tables=%d", len(list_tables(engine_settings.db_config)))
        container = build_container(engine_settings)

    app.extensions["attendance_engine"] = container
    register_attendance(app, container)

    return app
