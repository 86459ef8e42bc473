"""Create the clinic database (if missing) and apply database/schema.sql."""

from __future__ import annotations

import importlib
import sys
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from dotenv import load_dotenv

from config import get_settings_module

from src.clinic_attendance.clinic_attendance.database.bootstrap import apply_schema, list_tables
from src.clinic_attendance.clinic_attendance.main import configure_logging

REQUIRED_TABLES = {"patients", "payments", "attendance"}


def main() -> int:
    load_dotenv(override=False)
    settings = importlib.import_module(get_settings_module())
    configure_logging(str(getattr(settings, "LOG_LEVEL", "INFO")))
    db_config = dict(settings.DB_CONFIG)

    apply_schema(db_config, schema_path=REPO_ROOT / "database" / "schema.sql")
    tables = set(list_tables(db_config))
    missing = REQUIRED_TABLES - tables
    if missing:
        print(f"Schema incomplete, missing tables: {', '.join(sorted(missing))}")
        return 1

    print(f"OK: {db_config.get('user')}@{db_config.get('host')}/{db_config.get('database')} tables={sorted(tables)}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
