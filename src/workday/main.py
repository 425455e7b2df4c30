from __future__ import annotations

import importlib
import logging
from typing import Optional

from dotenv import load_dotenv
from flask import Flask, send_from_directory
from werkzeug.exceptions import HTTPException

from .attendance.controller import register as register_attendance
from .common.datetime_utils import parse_hhmm
from .common.responses import fail, ok, serialize
from .config import get_settings_module
from .container import Container, build_container
from .core.clock import SystemClock
from .core.exceptions import (
    AuthenticationError,
    AuthorizationError,
    DomainError,
    NotFoundError,
    StorageError,
)
from .database.bootstrap import apply_schema, ensure_demo_users, list_tables
from .reports.controller import register as register_reports
from .storage.local import LocalFileStorage
from .tasks.controller import register as register_tasks
from .team.controller import register as register_team
from .users.controller import register as register_users

logger = logging.getLogger(__name__)


def status_for(error: DomainError) -> int:
    if isinstance(error, AuthenticationError):
        return 401
    if isinstance(error, AuthorizationError):
        return 403
    if isinstance(error, NotFoundError):
        return 404
    if isinstance(error, StorageError):
        return 500
    return 400


def _configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, str(level).upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def _register_error_handlers(app: Flask) -> None:
    @app.errorhandler(DomainError)
    def domain_error(exc: DomainError):
        status = status_for(exc)
        if status >= 500:
            logger.error("storage failure: %s", exc.message, exc_info=exc)
        return fail(exc.message, status=status, data=serialize(exc.data))

    @app.errorhandler(HTTPException)
    def http_error(exc: HTTPException):
        return fail(exc.description or exc.name, status=exc.code or 500)

    @app.errorhandler(Exception)
    def unexpected_error(exc: Exception):
        logger.exception("unhandled error")
        detail = str(exc) if app.config.get("DEBUG") else None
        return fail("Something went wrong", status=500, error=detail)


def create_app(*, container: Optional[Container] = None, settings_module: Optional[str] = None) -> Flask:
    load_dotenv(override=False)
    app = Flask(__name__)

    settings_module = settings_module or get_settings_module()
    settings = importlib.import_module(settings_module)
    _configure_logging(getattr(settings, "LOG_LEVEL", "INFO"))

    app.secret_key = getattr(settings, "SECRET_KEY")
    app.config["DEBUG"] = bool(getattr(settings, "DEBUG", False))
    app.config["TESTING"] = bool(getattr(settings, "TESTING", False))
    app.config["MAX_CONTENT_LENGTH"] = int(getattr(settings, "MAX_CONTENT_LENGTH"))
    upload_folder = getattr(settings, "UPLOAD_FOLDER")
    app.config["UPLOAD_FOLDER"] = upload_folder

    if container is None:
        db_config = getattr(settings, "DB_CONFIG")
        logger.info(
            "settings=%s db=%s@%s:%s/%s",
            settings_module,
            db_config.get("user"),
            db_config.get("host"),
            db_config.get("port", 3306),
            db_config.get("database"),
        )

        if bool(getattr(settings, "AUTO_INIT_DB", False)):
            apply_schema(db_config)
            logger.info("schema ready (tables=%s)", len(list_tables(db_config)))
        if bool(getattr(settings, "AUTO_SEED_DB", False)):
            ensure_demo_users(db_config)
            logger.info("demo accounts ready")

        clock = SystemClock(getattr(settings, "TIMEZONE", None))
        container = build_container(
            db_config=db_config,
            clock=clock,
            storage=LocalFileStorage(upload_folder, getattr(settings, "PUBLIC_BASE_URL", ""), clock),
            late_threshold=parse_hhmm(getattr(settings, "LATE_THRESHOLD", "10:00")),
        )

    app.extensions["workday"] = container

    _register_error_handlers(app)

    @app.route("/", methods=["GET"], endpoint="health")
    def health():
        return ok(message="Workday API is running", timestamp=container.clock.now().isoformat())

    @app.route("/uploads/<path:filename>", methods=["GET"], endpoint="uploads")
    def uploads(filename: str):
        return send_from_directory(upload_folder, filename)

    register_users(app, container)
    register_attendance(app, container)
    register_reports(app, container)
    register_tasks(app, container)
    register_team(app, container)

    return app
