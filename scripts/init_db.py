from __future__ import annotations

import importlib
import logging
import sys
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from config import get_settings_module

from src.quran_portal.quran_portal.common.logging_setup import setup_logging
from src.quran_portal.quran_portal.database.bootstrap import apply_schema, list_tables

logger = logging.getLogger("scripts.init_db")

REQUIRED_TABLES = (
    "users",
    "classes",
    "students",
    "weekday_attendance",
    "homework_assignments",
    "monthly_progress",
    "notification_templates",
    "user_subscriptions",
    "registrations",
)


def main() -> int:
    settings = importlib.import_module(get_settings_module())
    setup_logging(getattr(settings, "LOG_LEVEL", "INFO"))
    db_config = dict(settings.DB_CONFIG)

    apply_schema(db_config, schema_path=REPO_ROOT / "database" / "schema.sql")
    tables = set(list_tables(db_config))
    missing = [t for t in REQUIRED_TABLES if t not in tables]
    if missing:
        logger.error("Schema applied but tables are missing: %s", ", ".join(missing))
        return 1

    logger.info(
        "Schema ready on %s@%s/%s (%d tables)",
        db_config.get("user"),
        db_config.get("host"),
        db_config.get("database"),
        len(tables),
    )
    return 0


if __name__ == "__main__":
    sys.exit(main())
