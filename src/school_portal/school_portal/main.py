from __future__ import annotations

import importlib
import logging
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from flask import Flask

from config import get_settings_module

from .attendance.controller import register as register_attendance
from .common.http import register_error_handlers
from .container import Container, build_container
from .database.bootstrap import apply_schema, apply_seed_sql, ensure_demo_users, list_tables
from .extensions import cors, jwt, limiter
from .leaves.controller import register as register_leaves
from .notifications.controller import register as register_notifications
from .reports.controller import register as register_reports
from .schedules.controller import register as register_schedules
from .schools.controller import register as register_schools
from .users.controller import register as register_users

logger = logging.getLogger(__name__)

DATABASE_DIR = Path(__file__).resolve().parents[3] / "database"


def _prepare_database(app: Flask) -> None:
    db_config = app.config["DB_CONFIG"]
    if app.config.get("AUTO_INIT_DB"):
        apply_schema(db_config, schema_path=DATABASE_DIR / "schema.sql")
        logger.info("Schema ready (tables=%d)", len(list_tables(db_config)))
    if app.config.get("AUTO_SEED_DB"):
        apply_seed_sql(db_config, seed_path=DATABASE_DIR / "seed.sql")
        ensure_demo_users(db_config)
        logger.info("Demo seed ready")


def create_app(*, settings_module: Optional[str] = None, container: Optional[Container] = None) -> Flask:
    load_dotenv(override=False)
    app = Flask(__name__)

    settings_module = settings_module or get_settings_module()
    app.config.from_object(importlib.import_module(settings_module))
    app.config.setdefault("JWT_SECRET_KEY", app.config["SECRET_KEY"])

    logging.basicConfig(
        level=app.config.get("LOG_LEVEL", "INFO"),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )
    db_config = app.config["DB_CONFIG"]
    logger.info(
        "settings=%s db=%s@%s:%s/%s",
        settings_module,
        db_config.get("user"),
        db_config.get("host"),
        db_config.get("port", 3306),
        db_config.get("database"),
    )

    jwt.init_app(app)
    limiter.init_app(app)
    cors.init_app(app, origins=app.config.get("CORS_ORIGINS", []), supports_credentials=True)
    register_error_handlers(app)

    if container is None:
        _prepare_database(app)
        container = build_container(
            db_config=db_config,
            identity_ttl_seconds=app.config.get("IDENTITY_CACHE_TTL_SECONDS", 30),
        )
    app.extensions["school_portal"] = container

    register_users(app, container)
    register_schools(app, container)
    register_schedules(app, container)
    register_reports(app, container)
    register_attendance(app, container)
    register_leaves(app, container)
    register_notifications(app, container)

    @app.route("/health", methods=["GET"], endpoint="health")
    @limiter.exempt
    def health():
        return {"status": "ok"}

    return app
