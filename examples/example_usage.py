"""Example: drive the service layer directly, without Flask.

Controllers stay thin; every rule lives in the services wired by the container.
"""

import importlib

from dotenv import load_dotenv

from workday.common.datetime_utils import parse_hhmm
from workday.config import get_settings_module
from workday.container import build_container
from workday.core.clock import SystemClock
from workday.storage.local import LocalFileStorage


def main():
    load_dotenv(override=False)
    settings = importlib.import_module(get_settings_module())
    clock = SystemClock(settings.TIMEZONE)
    container = build_container(
        db_config=settings.DB_CONFIG,
        clock=clock,
        storage=LocalFileStorage(settings.UPLOAD_FOLDER, settings.PUBLIC_BASE_URL, clock),
        late_threshold=parse_hhmm(settings.LATE_THRESHOLD),
    )
    print(container.attendance_service.stats(user_id=1, days=7).to_dict())
    print(container.team_service.upcoming_birthdays())


if __name__ == "__main__":
    main()
