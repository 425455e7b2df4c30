from __future__ import annotations

from dataclasses import dataclass
from datetime import time

from .attendance.factory import AttendanceStrategyFactory
from .attendance.mysql_attendance_repository import MySQLAttendanceRepository
from .attendance.repository import AttendanceRepository
from .attendance.service import AttendanceService
from .core.clock import Clock
from .core.constants import DEFAULT_LATE_THRESHOLD
from .database.connection import DBConfig, DatabaseConnection
from .reports.mysql_report_repository import MySQLReportRepository
from .reports.repository import ReportRepository
from .reports.service import ReportService
from .storage.base import AttachmentStorage
from .tasks.mysql_task_repository import MySQLTaskRepository
from .tasks.repository import TaskRepository
from .tasks.service import TaskService
from .team.service import TeamService
from .users.mysql_user_repository import MySQLUserRepository
from .users.repository import UserRepository
from .users.service import AuthService


@dataclass(frozen=True)
class Container:
    clock: Clock
    storage: AttachmentStorage

    users_repo: UserRepository
    attendance_repo: AttendanceRepository
    reports_repo: ReportRepository
    tasks_repo: TaskRepository

    auth_service: AuthService
    attendance_service: AttendanceService
    report_service: ReportService
    task_service: TaskService
    team_service: TeamService


def wire(
    *,
    users_repo: UserRepository,
    attendance_repo: AttendanceRepository,
    reports_repo: ReportRepository,
    tasks_repo: TaskRepository,
    storage: AttachmentStorage,
    clock: Clock,
    late_threshold: time = DEFAULT_LATE_THRESHOLD,
) -> Container:
    """Assemble services over any repository implementations."""

    return Container(
        clock=clock,
        storage=storage,
        users_repo=users_repo,
        attendance_repo=attendance_repo,
        reports_repo=reports_repo,
        tasks_repo=tasks_repo,
        auth_service=AuthService(users_repo, clock),
        attendance_service=AttendanceService(
            attendance_repo,
            users_repo,
            clock,
            strategy_factory=AttendanceStrategyFactory(late_threshold=late_threshold),
        ),
        report_service=ReportService(reports_repo, attendance_repo, clock),
        task_service=TaskService(tasks_repo, users_repo, storage, clock),
        team_service=TeamService(users_repo, attendance_repo, reports_repo, clock),
    )


def build_container(
    *,
    db_config: dict,
    clock: Clock,
    storage: AttachmentStorage,
    late_threshold: time = DEFAULT_LATE_THRESHOLD,
) -> Container:
    conn = DatabaseConnection.get_instance(DBConfig.from_dict(db_config))

    return wire(
        users_repo=MySQLUserRepository(conn),
        attendance_repo=MySQLAttendanceRepository(conn),
        reports_repo=MySQLReportRepository(conn),
        tasks_repo=MySQLTaskRepository(conn),
        storage=storage,
        clock=clock,
        late_threshold=late_threshold,
    )
