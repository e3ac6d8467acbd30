from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Callable, Optional

from .attendance.mysql_attendance_repository import MySQLAttendanceRepository
from .attendance.reconciliation import AttendanceReconciler
from .attendance.repository import AttendanceRepository
from .attendance.service import AttendanceService
from .common.cache import Cache, TTLCache
from .core.constants import IDENTITY_CACHE_TTL_SECONDS
from .database.connection import DatabaseConnection, DBConfig
from .leaves.mysql_leave_repository import MySQLLeaveRepository
from .leaves.repository import LeaveRepository
from .leaves.service import LeaveService
from .notifications.mysql_notification_repository import MySQLNotificationRepository
from .notifications.repository import NotificationRepository
from .notifications.service import NotificationService
from .reports.mysql_report_repository import MySQLReportRepository
from .reports.repository import ReportRepository
from .reports.service import ReportService
from .schedules.mysql_schedule_repository import MySQLPeriodRepository, MySQLScheduleRepository
from .schedules.repository import PeriodRepository, ScheduleRepository
from .schedules.service import ScheduleService
from .schools.access import SchoolAccessService
from .schools.class_repository import ClassRepository
from .schools.mysql_class_repository import MySQLClassRepository
from .schools.mysql_school_repository import MySQLSchoolRepository
from .schools.repository import SchoolRepository
from .schools.service import ClassService, SchoolService
from .users.guards import Guards
from .users.identity import IdentityResolver, TokenDecoder
from .users.mysql_user_repository import MySQLUserRepository
from .users.repository import UserRepository
from .users.service import AuthService, UserService


@dataclass(frozen=True)
class Container:
    conn: Optional[DatabaseConnection]

    users_repo: UserRepository
    schools_repo: SchoolRepository
    classes_repo: ClassRepository
    schedules_repo: ScheduleRepository
    periods_repo: PeriodRepository
    reports_repo: ReportRepository
    attendance_repo: AttendanceRepository
    leaves_repo: LeaveRepository
    notifications_repo: NotificationRepository

    identity_resolver: IdentityResolver
    guards: Guards
    school_access: SchoolAccessService

    auth_service: AuthService
    user_service: UserService
    school_service: SchoolService
    class_service: ClassService
    schedule_service: ScheduleService
    reconciler: AttendanceReconciler
    report_service: ReportService
    attendance_service: AttendanceService
    leave_service: LeaveService
    notification_service: NotificationService


def wire(
    *,
    users_repo: UserRepository,
    schools_repo: SchoolRepository,
    classes_repo: ClassRepository,
    schedules_repo: ScheduleRepository,
    periods_repo: PeriodRepository,
    reports_repo: ReportRepository,
    attendance_repo: AttendanceRepository,
    leaves_repo: LeaveRepository,
    notifications_repo: NotificationRepository,
    conn: Optional[DatabaseConnection] = None,
    identity_cache: Optional[Cache] = None,
    identity_ttl_seconds: float = IDENTITY_CACHE_TTL_SECONDS,
    decode_token: Optional[TokenDecoder] = None,
    clock: Optional[Callable[[], datetime]] = None,
) -> Container:
    """Build services on top of the given repositories (MySQL or in-memory)."""
    identity_resolver = IdentityResolver(
        users_repo,
        cache=identity_cache if identity_cache is not None else TTLCache(),
        decode=decode_token,
        ttl_seconds=identity_ttl_seconds,
    )
    school_access = SchoolAccessService(schools_repo)
    class_service = ClassService(classes_repo)
    reconciler = AttendanceReconciler(schedules_repo, reports_repo, attendance_repo, clock=clock)

    return Container(
        conn=conn,
        users_repo=users_repo,
        schools_repo=schools_repo,
        classes_repo=classes_repo,
        schedules_repo=schedules_repo,
        periods_repo=periods_repo,
        reports_repo=reports_repo,
        attendance_repo=attendance_repo,
        leaves_repo=leaves_repo,
        notifications_repo=notifications_repo,
        identity_resolver=identity_resolver,
        guards=Guards(identity_resolver),
        school_access=school_access,
        auth_service=AuthService(users_repo),
        user_service=UserService(users_repo, schools_repo),
        school_service=SchoolService(schools_repo, users_repo, school_access),
        class_service=class_service,
        schedule_service=ScheduleService(schedules_repo, periods_repo, schools_repo, classes_repo, school_access),
        reconciler=reconciler,
        report_service=ReportService(reports_repo, class_service, school_access, reconciler, clock=clock),
        attendance_service=AttendanceService(attendance_repo, school_access),
        leave_service=LeaveService(leaves_repo, attendance_repo, school_access, clock=clock),
        notification_service=NotificationService(
            notifications_repo, users_repo, schools_repo, school_access, clock=clock
        ),
    )


def build_container(*, db_config: dict, identity_ttl_seconds: Any = IDENTITY_CACHE_TTL_SECONDS) -> Container:
    conn = DatabaseConnection.get_instance(DBConfig.from_mapping(db_config))
    return wire(
        conn=conn,
        users_repo=MySQLUserRepository(conn),
        schools_repo=MySQLSchoolRepository(conn),
        classes_repo=MySQLClassRepository(conn),
        schedules_repo=MySQLScheduleRepository(conn),
        periods_repo=MySQLPeriodRepository(conn),
        reports_repo=MySQLReportRepository(conn),
        attendance_repo=MySQLAttendanceRepository(conn),
        leaves_repo=MySQLLeaveRepository(conn),
        notifications_repo=MySQLNotificationRepository(conn),
        identity_ttl_seconds=float(identity_ttl_seconds),
    )
