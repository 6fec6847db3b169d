"""Expire monitor assignments whose end date has passed.

Meant for cron or any external scheduler; safe to run repeatedly.
"""

from __future__ import annotations

import argparse
import importlib
from datetime import datetime, time
import logging
import sys
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from dotenv import load_dotenv

from config import get_settings_module

from src.inventory_system.inventory_system.common.datetime_utils import parse_iso_date
from src.inventory_system.inventory_system.container import build_container
from src.inventory_system.inventory_system.core.exceptions import PersistenceFailure


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("--as-of", help="Treat this date (YYYY-MM-DD, start of day) as now")
    args = parser.parse_args(argv)

    load_dotenv(override=False)
    settings = importlib.import_module(get_settings_module())
    logging.basicConfig(level=getattr(settings, "LOG_LEVEL", "INFO"))

    as_of = None
    if args.as_of:
        as_of = datetime.combine(parse_iso_date(args.as_of), time.min)

    container = build_container(db_config=dict(settings.DB_CONFIG))
    try:
        expired = container.sweeper.run_once(as_of=as_of)
    except PersistenceFailure as e:
        print(f"ERROR: expiry sweep failed: {e}", file=sys.stderr)
        return 1
    finally:
        container.close()

    if not expired:
        print("OK: No expired monitors found")
    for m in expired:
        print(f"OK: Monitor {m.full_name} (user {m.user_id}) expired on {m.end_date:%Y-%m-%d %H:%M} and was deactivated")
    return 0


if __name__ == "__main__":
    sys.exit(main())
