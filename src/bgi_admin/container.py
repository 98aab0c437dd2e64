from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from .auth.gate import AccessGate
from .auth.tokens import TokenService
from .core.constants import DEFAULT_ANNUAL_DUES
from .database.connection import DBConfig, DatabaseConnection
from .dutycharts.mysql_dutychart_repository import MySQLDutyChartRepository
from .dutycharts.repository import DutyChartRepository
from .dutycharts.service import DutyChartService
from .finance.mysql_payment_repository import MySQLPaymentRepository
from .finance.repository import PaymentRepository
from .finance.service import FinanceService
from .mail.mailer import Mailer, build_mailer
from .miqaats.mysql_miqaat_repository import MySQLMiqaatRepository
from .miqaats.repository import MiqaatRepository
from .miqaats.service import MiqaatService
from .notifications.mysql_notification_repository import MySQLNotificationRepository
from .notifications.repository import NotificationRepository
from .notifications.service import NotificationService
from .users.mysql_user_repository import MySQLUserRepository
from .users.repository import UserRepository
from .users.service import AuthService, UserService


@dataclass(frozen=True)
class Container:
    conn: Optional[DatabaseConnection]

    users_repo: UserRepository
    dutycharts_repo: DutyChartRepository
    miqaats_repo: MiqaatRepository
    notifications_repo: NotificationRepository
    payments_repo: PaymentRepository

    tokens: TokenService
    gate: AccessGate
    mailer: Mailer

    auth_service: AuthService
    user_service: UserService
    notification_service: NotificationService
    dutychart_service: DutyChartService
    miqaat_service: MiqaatService
    finance_service: FinanceService


def assemble(
    *,
    users_repo: UserRepository,
    dutycharts_repo: DutyChartRepository,
    miqaats_repo: MiqaatRepository,
    notifications_repo: NotificationRepository,
    payments_repo: PaymentRepository,
    tokens: TokenService,
    mailer: Mailer,
    login_url: str,
    annual_dues: int = DEFAULT_ANNUAL_DUES,
    conn: Optional[DatabaseConnection] = None,
) -> Container:
    """Wire services over the given repositories (MySQL in production, in-memory in tests)."""
    notification_service = NotificationService(notifications_repo, users_repo)

    return Container(
        conn=conn,
        users_repo=users_repo,
        dutycharts_repo=dutycharts_repo,
        miqaats_repo=miqaats_repo,
        notifications_repo=notifications_repo,
        payments_repo=payments_repo,
        tokens=tokens,
        gate=AccessGate(tokens),
        mailer=mailer,
        auth_service=AuthService(users_repo, tokens),
        user_service=UserService(users_repo, mailer, login_url=login_url),
        notification_service=notification_service,
        dutychart_service=DutyChartService(dutycharts_repo, users_repo, notification_service),
        miqaat_service=MiqaatService(miqaats_repo, users_repo, notification_service),
        finance_service=FinanceService(payments_repo, users_repo, annual_dues=annual_dues),
    )


def build_container(
    *,
    db_config: dict,
    jwt_secret: str,
    jwt_algorithm: str = "HS256",
    jwt_expires_days: int = 7,
    mail_config: Optional[dict] = None,
    frontend_url: str = "http://localhost:5173",
    annual_dues: int = DEFAULT_ANNUAL_DUES,
) -> Container:
    conn = DatabaseConnection.get_instance(DBConfig.from_dict(db_config))

    return assemble(
        users_repo=MySQLUserRepository(conn),
        dutycharts_repo=MySQLDutyChartRepository(conn),
        miqaats_repo=MySQLMiqaatRepository(conn),
        notifications_repo=MySQLNotificationRepository(conn),
        payments_repo=MySQLPaymentRepository(conn),
        tokens=TokenService(secret=jwt_secret, algorithm=jwt_algorithm, expires_days=jwt_expires_days),
        mailer=build_mailer(mail_config or {}),
        login_url=frontend_url.rstrip("/") + "/login",
        annual_dues=annual_dues,
        conn=conn,
    )
