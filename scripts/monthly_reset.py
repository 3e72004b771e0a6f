"""Cron entry point: reset absence and failure levels on the first of the month.

Example crontab line:
    5 0 1 * * cd /srv/quran-portal && python scripts/monthly_reset.py
"""

from __future__ import annotations

import importlib
import sys
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from config import get_settings_module

from src.quran_portal.quran_portal.common.logging_setup import setup_logging
from src.quran_portal.quran_portal.container import build_container


def main() -> int:
    settings = importlib.import_module(get_settings_module())
    setup_logging(getattr(settings, "LOG_LEVEL", "INFO"))
    container = build_container(db_config=dict(settings.DB_CONFIG), settings=settings)

    result = container.reset_service.run_monthly_reset()
    print(f"OK: {result['message']} ({result['students_reset']} students) at {result['timestamp']}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
