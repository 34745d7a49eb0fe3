from __future__ import annotations

import importlib
import sys
from datetime import datetime
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parents[1]
for path in (REPO_ROOT, REPO_ROOT / "src" / "attendance_engine"):
    if str(path) not in sys.path:
        sys.path.insert(0, str(path))

from config import get_settings_module

from attendance_engine.container import EngineSettings, build_store
from attendance_engine.core.constants import EMPLOYEES
from attendance_engine.core.enums import Role

DEMO_EMPLOYEES = (
    {"name": "Admin", "email": "admin@example.com", "role": Role.ADMIN.value},
    {"name": "Nguyen Van A", "email": "a.nguyen@example.com", "role": Role.EMPLOYEE.value},
    {"name": "Tran Thi B", "email": "b.tran@example.com", "role": Role.EMPLOYEE.value},
    {"name": "Le Van C", "email": "c.le@example.com", "role": Role.INTERN.value},
)


def main() -> None:
    settings = EngineSettings.from_module(importlib.import_module(get_settings_module()))
    store = build_store(settings)

    existing = {doc.get("email") for doc in store.scan(EMPLOYEES)}
    hire_date = datetime.now().replace(month=1, day=1, hour=0, minute=0, second=0, microsecond=0)
    for employee in DEMO_EMPLOYEES:
        if employee["email"] in existing:
            print(f"skip {employee['email']} (exists)")
            continue
        doc_id = store.insert(EMPLOYEES, {**employee, "hireDate": hire_date, "faceDescriptor": None})
        print(f"added {employee['email']} id={doc_id}")

    print(f"OK: Seeded employees -> backend={settings.store_backend}")


if __name__ == "__main__":
    main()
