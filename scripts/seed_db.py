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
from src.quran_portal.quran_portal.database.bootstrap import apply_seed_sql, ensure_demo_users

logger = logging.getLogger("scripts.seed_db")


def main() -> None:
    settings = importlib.import_module(get_settings_module())
    setup_logging(getattr(settings, "LOG_LEVEL", "INFO"))
    db_config = dict(settings.DB_CONFIG)

    # Classes and SMS presets first; the demo teacher is attached to the first class.
    apply_seed_sql(db_config, seed_path=REPO_ROOT / "database" / "seed.sql")
    ensure_demo_users(db_config)
    logger.info("Seeded %s with classes, presets and demo logins", db_config.get("database"))


if __name__ == "__main__":
    main()
