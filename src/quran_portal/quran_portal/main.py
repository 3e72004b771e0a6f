from __future__ import annotations

import importlib
import logging
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from flask import Flask

from config import get_settings_module

from .common.logging_setup import setup_logging
from .common.web import install_subscription_guard, register_error_handlers
from .database.bootstrap import apply_schema, apply_seed_sql, ensure_demo_users, list_tables

from .container import Container, build_container
from .attendance.controller import register as register_attendance
from .billing.controller import register as register_billing
from .classes.controller import register as register_classes
from .lessons.controller import register as register_lessons
from .notifications.controller import register as register_notifications
from .progress.controller import register as register_progress
from .quran.controller import register as register_quran
from .registrations.controller import register as register_registrations
from .resets.controller import register as register_resets
from .students.controller import register as register_students
from .users.controller import register as register_users

logger = logging.getLogger(__name__)

# Reachable without an active subscription so an admin can log in and pay.
SUBSCRIPTION_EXEMPT_PREFIXES = ("/api/login", "/api/logout", "/api/me", "/api/billing")
# The public sign-up form; listing and processing registrations stay gated.
SUBSCRIPTION_EXEMPT_ROUTES = frozenset({("POST", "/api/registrations")})


def create_app(container: Optional[Container] = None) -> Flask:
    load_dotenv(override=False)
    app = Flask(__name__)

    settings_module = get_settings_module()
    settings = importlib.import_module(settings_module)
    setup_logging(getattr(settings, "LOG_LEVEL", "INFO"))

    app.secret_key = getattr(settings, "SECRET_KEY")
    db_config = getattr(settings, "DB_CONFIG")
    app.config["DEBUG"] = bool(getattr(settings, "DEBUG", False))

    if container is None:
        logger.info(
            "settings=%s db=%s@%s:%s/%s",
            settings_module,
            db_config.get("user"),
            db_config.get("host"),
            db_config.get("port", 3306),
            db_config.get("database"),
        )

        root = Path(__file__).resolve().parents[3]
        if bool(getattr(settings, "AUTO_INIT_DB", False)):
            apply_schema(db_config, schema_path=root / "database" / "schema.sql")
            logger.info("Schema ready (tables=%s)", len(list_tables(db_config)))
        if bool(getattr(settings, "AUTO_SEED_DB", False)):
            apply_seed_sql(db_config, seed_path=root / "database" / "seed.sql")
            ensure_demo_users(db_config)
            logger.info("Demo seed ready")

        container = build_container(db_config=db_config, settings=settings)

    register_error_handlers(app)
    install_subscription_guard(
        app,
        container.billing_service.check_subscription,
        exempt_prefixes=SUBSCRIPTION_EXEMPT_PREFIXES,
        exempt_routes=SUBSCRIPTION_EXEMPT_ROUTES,
    )

    register_users(app, container)
    register_classes(app, container)
    register_students(app, container)
    register_attendance(app, container)
    register_lessons(app, container)
    register_progress(app, container)
    register_notifications(app, container)
    register_resets(app, container)
    register_billing(app, container)
    register_registrations(app, container)
    register_quran(app, container)

    return app
