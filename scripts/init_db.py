from __future__ import annotations

import importlib
import sys
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parents[1]
for path in (REPO_ROOT, REPO_ROOT / "src" / "attendance_engine"):
    if str(path) not in sys.path:
        sys.path.insert(0, str(path))

from config import get_settings_module

from attendance_engine.database.bootstrap import DEFAULT_INDEXES, apply_schema, declare_index, list_tables


def main() -> None:
    settings = importlib.import_module(get_settings_module())
    db_config = dict(settings.DB_CONFIG)

    apply_schema(db_config)
    for collection, fields in DEFAULT_INDEXES:
        declare_index(db_config, collection, fields)

    tables = list_tables(db_config)
    print(
        "OK: Applied document schema -> "
        f"{db_config.get('user')}@{db_config.get('host')}:{db_config.get('port', 3306)}/{db_config.get('database')} "
        f"(tables={len(tables)}, indexes={len(DEFAULT_INDEXES)})"
    )


if __name__ == "__main__":
    main()
