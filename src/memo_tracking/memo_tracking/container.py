from __future__ import annotations

from dataclasses import dataclass

from .database.connection import DBConfig, DatabaseConnection
from .memos.mysql_memo_repository import MySQLMemoRepository
from .memos.service import MemoService
from .notifications.mysql_notification_repository import MySQLNotificationRepository
from .notifications.service import NotificationService
from .reports.mysql_report_repository import MySQLReportRepository
from .reports.service import ReportService
from .users.mysql_hr_staff_repository import MySQLHRStaffRepository
from .users.mysql_user_repository import MySQLUserRepository
from .users.service import AuthService, UserService


@dataclass(frozen=True)
class Container:
    conn: DatabaseConnection

    users_repo: MySQLUserRepository
    hr_staff_repo: MySQLHRStaffRepository
    memos_repo: MySQLMemoRepository
    notifications_repo: MySQLNotificationRepository
    reports_repo: MySQLReportRepository

    auth_service: AuthService
    user_service: UserService
    memo_service: MemoService
    notification_service: NotificationService
    report_service: ReportService


def build_container(*, db_config: dict) -> Container:
    config = DBConfig(
        host=str(db_config["host"]),
        port=int(db_config.get("port", 3306)),
        user=str(db_config["user"]),
        password=str(db_config["password"]),
        database=str(db_config["database"]),
    )
    conn = DatabaseConnection.get_instance(config)

    users_repo = MySQLUserRepository(conn)
    hr_staff_repo = MySQLHRStaffRepository(conn)
    memos_repo = MySQLMemoRepository(conn)
    notifications_repo = MySQLNotificationRepository(conn)
    reports_repo = MySQLReportRepository(conn)

    return Container(
        conn=conn,
        users_repo=users_repo,
        hr_staff_repo=hr_staff_repo,
        memos_repo=memos_repo,
        notifications_repo=notifications_repo,
        reports_repo=reports_repo,
        auth_service=AuthService(users_repo),
        user_service=UserService(users_repo, hr_staff_repo),
        memo_service=MemoService(memos_repo, users_repo, hr_staff_repo),
        notification_service=NotificationService(notifications_repo),
        report_service=ReportService(reports_repo),
    )
