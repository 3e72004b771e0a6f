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

    result = container.billing_service.sync_subscriptions()
    print(
        f"OK: {result['synced_successfully']} synced, {result['skipped']} skipped, "
        f"{result['errors']} errors of {result['total_stripe_subscriptions']} Stripe subscriptions"
    )
    return 1 if result["errors"] else 0


if __name__ == "__main__":
    sys.exit(main())
