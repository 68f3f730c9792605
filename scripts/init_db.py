"""Create the live attendance tables and optionally load the demo data.

    APP_ENV=development python scripts/init_db.py --seed
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from dotenv import load_dotenv

from config import get_settings_module, load_settings

from src.live_attendance.live_attendance.database.bootstrap import apply_schema, apply_seed_sql

DATABASE_DIR = REPO_ROOT / "database"


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    parser.add_argument("--seed", action="store_true", help="also run database/seed.sql")
    args = parser.parse_args(argv)

    load_dotenv(override=False)
    settings = load_settings()
    logging.basicConfig(level=getattr(settings, "LOG_LEVEL", "INFO"), format="%(levelname)s [%(name)s] %(message)s")

    db_config = dict(settings.DB_CONFIG)
    apply_schema(db_config, schema_path=DATABASE_DIR / "schema.sql")
    if args.seed:
        apply_seed_sql(db_config, seed_path=DATABASE_DIR / "seed.sql")

    print(
        f"OK ({get_settings_module()}): "
        f"{db_config.get('user')}@{db_config.get('host')}:{db_config.get('port', 3306)}/{db_config.get('database')}"
        f"{' + seed' if args.seed else ''}"
    )


if __name__ == "__main__":
    main()
