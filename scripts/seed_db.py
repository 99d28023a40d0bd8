from __future__ import annotations

import importlib
import sys
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from config import get_settings_module

from src.memo_tracking.memo_tracking.database.bootstrap import DEFAULT_USERS, apply_seed_sql, ensure_default_users


def main() -> None:
    settings = importlib.import_module(get_settings_module())
    db_config = dict(settings.DB_CONFIG)

    # roles and the HR directory first; default accounts look their roles up by name
    apply_seed_sql(db_config, seed_path=REPO_ROOT / "database" / "seed.sql")
    ensure_default_users(db_config)

    print(f"OK: seeded roles, HR staff directory and default accounts into {db_config.get('database')}")
    for u in DEFAULT_USERS:
        print(f"  {u.staff_id:<10} {u.email:<32} {', '.join(u.roles)}")


if __name__ == "__main__":
    main()
