"""Example: use the service layer directly (no Flask).

Controllers are a thin layer; the attendance rules live in the services.
"""

import importlib

from config import get_settings_module

from hr_attendance.container import build_container


def main():
    settings = importlib.import_module(get_settings_module())
    container = build_container(db_config=settings.DB_CONFIG, holidays=settings.HOLIDAYS)
    for day in container.attendance_service.get_monthly_attendance(user_id=1, month=1, year=2024):
        print(day.to_dict())


if __name__ == "__main__":
    main()
