"""Example: drive the engine through the service layer (no Flask).

Controllers are a thin layer; business rules live in the services.
"""

from datetime import datetime

from attendance_engine.attendance.model import EntryCommand, ExitCommand
from attendance_engine.common.authorization import Caller
from attendance_engine.container import EngineSettings, build_container
from attendance_engine.core.constants import EMPLOYEES
from attendance_engine.core.enums import AttendanceMethod, Role
from attendance_engine.credentials.base import CredentialProof
from attendance_engine.notifications.notifier import LoggingNotifier


def main():
    settings = EngineSettings(store_backend="memory")
    container = build_container(settings, notifier=LoggingNotifier())
    container.store.put(EMPLOYEES, "E1", {"email": "e1@example.com", "name": "Employee One", "role": "employee"})

    caller = Caller(user_id="E1", role=Role.EMPLOYEE)
    office = settings.geofence.center
    today = datetime.now().replace(hour=8, minute=30, second=0, microsecond=0)

    service = container.attendance_service
    outcome = service.record_entry(
        EntryCommand(employee_id="E1", method=AttendanceMethod.MANUAL, location=office, entry_time=today),
        CredentialProof(),
        caller,
    )
    print("entry:", outcome.record.to_dict(), "late:", outcome.late)

    record = service.record_exit(
        ExitCommand(employee_id="E1", location=office, exit_time=today.replace(hour=17)),
        caller,
    )
    print("exit:", record.to_dict())

    report = container.report_service.presence_report("E1", start_date=today.date())
    print("report:", report.to_dict())

    container.dispatcher.flush(timeout=5)
    container.dispatcher.close()


if __name__ == "__main__":
    main()
