from __future__ import annotations

from dataclasses import replace
from datetime import datetime
from typing import Any, Iterable, Mapping, Optional

import pytest
from werkzeug.security import generate_password_hash

from bgi_admin import create_app
from bgi_admin.auth.tokens import TokenService
from bgi_admin.common.refs import new_id
from bgi_admin.container import assemble
from bgi_admin.core.enums import MemberStatus, Role
from bgi_admin.core.exceptions import MailError, MissingReferencesError
from bgi_admin.dutycharts.model import DutyChart
from bgi_admin.finance.model import Payment
from bgi_admin.miqaats.model import AttendanceEntry, Miqaat
from bgi_admin.notifications.model import InboxItem, Notification
from bgi_admin.users.model import EDITABLE_FIELDS, User

PASSWORD = "secret123"
_PASSWORD_HASH = generate_password_hash(PASSWORD)


def make_user(
    *,
    its_number: str,
    role: Role = Role.MEMBER,
    status: MemberStatus = MemberStatus.ACTIVE,
    name: str = "Test",
    surname: str = "User",
    zone: Optional[str] = "Zone A",
    email: Optional[str] = None,
    created_at: Optional[datetime] = None,
) -> User:
    return User(
        user_id=new_id(),
        name=name,
        surname=surname,
        email=email or f"{its_number}@example.com",
        mobile="9000000000",
        whatsapp=None,
        its_number=its_number,
        password_hash=_PASSWORD_HASH,
        role=role,
        designation="Member",
        zone=zone,
        status=status,
        created_at=created_at or datetime(2024, 1, 15, 9, 0, 0),
    )


class InMemoryUsers:
    def __init__(self, users: Iterable[User] = ()):
        self.by_id: dict[str, User] = {u.user_id: u for u in users}

    def add(self, user: User) -> User:
        self.by_id[user.user_id] = user
        return user

    def get_by_id(self, user_id: str) -> Optional[User]:
        return self.by_id.get(user_id)

    def get_by_its_number(self, its_number: str) -> Optional[User]:
        return next((u for u in self.by_id.values() if u.its_number == its_number), None)

    def exists_with_its_or_email(self, *, its_number, email, exclude_user_id=None) -> bool:
        for u in self.by_id.values():
            if u.user_id == exclude_user_id:
                continue
            if (its_number and u.its_number == its_number) or (email and u.email == email):
                return True
        return False

    def create(self, user: User) -> str:
        self.by_id[user.user_id] = replace(user, created_at=user.created_at or datetime(2026, 3, 1, 12, 0, 0))
        return user.user_id

    def update_fields(self, user_id: str, fields: Mapping[str, Any]) -> bool:
        user = self.by_id.get(user_id)
        if not user:
            return False
        self.by_id[user_id] = replace(user, **{k: v for k, v in fields.items() if k in EDITABLE_FIELDS})
        return True

    def set_password(self, user_id: str, *, password_hash: str, must_change_password: bool) -> bool:
        user = self.by_id.get(user_id)
        if not user:
            return False
        self.by_id[user_id] = replace(user, password_hash=password_hash, must_change_password=must_change_password)
        return True

    def delete_by_id(self, user_id: str) -> bool:
        return self.by_id.pop(user_id, None) is not None

    def list_users(self, *, search=None, role=None, zone=None, status=None):
        out = []
        for u in self.by_id.values():
            if search and not any(search.lower() in v.lower() for v in (u.name, u.surname, u.its_number)):
                continue
            if role and u.role != role:
                continue
            if zone and u.zone != zone:
                continue
            if status and u.status != status:
                continue
            out.append(u)
        return sorted(out, key=lambda u: u.created_at, reverse=True)

    def list_active_ids(self) -> list[str]:
        return [u.user_id for u in self.by_id.values() if u.is_active]

    def count_active(self) -> int:
        return len(self.list_active_ids())

    def get_briefs(self, user_ids: Iterable[str]) -> dict[str, dict]:
        return {i: self.by_id[i].to_brief() for i in set(user_ids) if i in self.by_id}


class InMemoryDutyCharts:
    def __init__(self, users: InMemoryUsers):
        self._users = users
        self.by_id: dict[str, DutyChart] = {}

    def _check(self, chart: DutyChart) -> None:
        missing = [i for i in chart.referenced_user_ids() if i not in self._users.by_id]
        if missing:
            raise MissingReferencesError(missing)

    def create(self, chart: DutyChart) -> str:
        self._check(chart)
        self.by_id[chart.chart_id] = replace(chart, created_at=datetime(2026, 3, 1, 12, 0, 0))
        return chart.chart_id

    def update(self, chart: DutyChart) -> bool:
        if chart.chart_id not in self.by_id:
            return False
        self._check(chart)
        self.by_id[chart.chart_id] = chart
        return True

    def get_by_id(self, chart_id: str) -> Optional[DutyChart]:
        return self.by_id.get(chart_id)

    def list_charts(self, *, search=None, date_from=None, date_to=None, incharge=None, member_id=None):
        out = []
        for c in self.by_id.values():
            if search:
                s = search.lower()
                texts = [c.event_name, c.title, *(a.task for a in c.assignments)]
                if not any(s in t.lower() for t in texts):
                    continue
            if date_from and c.duty_date < date_from:
                continue
            if date_to and c.duty_date > date_to:
                continue
            if incharge and c.jamiat_incharge.value != incharge:
                continue
            if member_id and not c.assigns(member_id):
                continue
            out.append(c)
        return sorted(out, key=lambda c: c.duty_date, reverse=True)

    def delete_by_id(self, chart_id: str) -> bool:
        return self.by_id.pop(chart_id, None) is not None


class InMemoryMiqaats:
    def __init__(self):
        self.by_id: dict[str, Miqaat] = {}

    def create(self, miqaat: Miqaat) -> str:
        self.by_id[miqaat.miqaat_id] = miqaat
        return miqaat.miqaat_id

    def get_by_id(self, miqaat_id: str) -> Optional[Miqaat]:
        return self.by_id.get(miqaat_id)

    def list_miqaats(self, *, search=None, location=None, date_from=None, date_to=None):
        out = [
            m
            for m in self.by_id.values()
            if (not search or search.lower() in m.name.lower())
            and (not location or location.lower() in m.location.lower())
            and (not date_from or m.date >= date_from)
            and (not date_to or m.date <= date_to)
        ]
        return sorted(out, key=lambda m: m.date, reverse=True)

    def update(self, miqaat_id: str, *, name, location, date) -> bool:
        m = self.by_id.get(miqaat_id)
        if not m:
            return False
        self.by_id[miqaat_id] = replace(m, name=name, location=location, date=date)
        return True

    def delete_by_id(self, miqaat_id: str) -> bool:
        return self.by_id.pop(miqaat_id, None) is not None

    def get_attendance_entry(self, miqaat_id: str, member_id: str) -> Optional[AttendanceEntry]:
        m = self.by_id.get(miqaat_id)
        if not m:
            return None
        return next((a for a in m.attendance if a.member_id == member_id), None)

    def add_attendance(self, miqaat_id: str, entry: AttendanceEntry) -> bool:
        m = self.by_id[miqaat_id]
        if any(a.member_id == entry.member_id for a in m.attendance):
            return False
        self.by_id[miqaat_id] = replace(m, attendance=m.attendance + (entry,))
        return True


class InMemoryNotifications:
    def __init__(self):
        self.by_id: dict[str, Notification] = {}

    def create(self, notification: Notification) -> str:
        self.by_id[notification.notification_id] = notification
        return notification.notification_id

    def get_by_id(self, notification_id: str) -> Optional[Notification]:
        return self.by_id.get(notification_id)

    def list_for_user(self, user_id: str):
        items = [n for n in self.by_id.values() if user_id in n.for_users]
        items.sort(key=lambda n: n.created_at, reverse=True)
        return [
            InboxItem(
                notification_id=n.notification_id,
                message=n.message,
                type=n.type,
                created_by=n.created_by,
                miqaat_id=n.miqaat_id,
                created_at=n.created_at,
                read=user_id in n.read_by,
            )
            for n in items
        ]

    def mark_read(self, notification_id: str, user_id: str) -> bool:
        n = self.by_id.get(notification_id)
        if not n or user_id not in n.for_users:
            return False
        self.by_id[notification_id] = replace(n, read_by=n.read_by | {user_id})
        return True

    def mark_all_read(self, user_id: str) -> int:
        count = 0
        for nid in list(self.by_id):
            if user_id in self.by_id[nid].for_users:
                self.mark_read(nid, user_id)
                count += 1
        return count

    def clear(self, notification_id: str, user_id: str) -> bool:
        n = self.by_id.get(notification_id)
        if not n or user_id not in n.for_users:
            return False
        self.by_id[notification_id] = replace(n, for_users=n.for_users - {user_id}, read_by=n.read_by - {user_id})
        return True

    def clear_all(self, user_id: str) -> int:
        ids = [nid for nid, n in self.by_id.items() if user_id in n.for_users]
        for nid in ids:
            self.clear(nid, user_id)
        return len(ids)


class BrokenNotifications(InMemoryNotifications):
    def create(self, notification: Notification) -> str:
        raise RuntimeError("notification store unavailable")


class InMemoryPayments:
    def __init__(self):
        self.by_id: dict[str, Payment] = {}

    def create(self, payment: Payment) -> str:
        self.by_id[payment.payment_id] = payment
        return payment.payment_id

    def get_by_id(self, payment_id: str) -> Optional[Payment]:
        return self.by_id.get(payment_id)

    def update(self, payment: Payment) -> bool:
        if payment.payment_id not in self.by_id:
            return False
        self.by_id[payment.payment_id] = payment
        return True

    def list_payments(
        self,
        *,
        member_id=None,
        statuses=None,
        zone=None,
        subscription_year=None,
        payment_type=None,
        search=None,
        order_by_due_date=False,
    ):
        out = []
        for p in self.by_id.values():
            if member_id and p.member_id != member_id:
                continue
            if statuses and p.status not in statuses:
                continue
            if zone and p.zone != zone:
                continue
            if subscription_year and p.subscription_year != subscription_year:
                continue
            if payment_type and p.payment_type != payment_type:
                continue
            if search and search.lower() not in f"{p.member_name} {p.its_number}".lower():
                continue
            out.append(p)
        if order_by_due_date:
            return sorted(out, key=lambda p: p.due_date)
        return sorted(out, key=lambda p: p.created_at or datetime.min, reverse=True)

    def exists_for_year(self, *, member_id, payment_type, subscription_year) -> bool:
        return any(
            p.member_id == member_id and p.payment_type == payment_type and p.subscription_year == subscription_year
            for p in self.by_id.values()
        )

    def list_recent_paid(self, *, payment_type, limit):
        paid = [p for p in self.by_id.values() if p.status.value == "Paid" and p.payment_type == payment_type]
        return sorted(paid, key=lambda p: p.paid_date, reverse=True)[:limit]


class RecordingMailer:
    def __init__(self):
        self.sent: list[tuple[str, str, str, Optional[str]]] = []

    def send(self, recipient, subject, text_body, html_body=None) -> str:
        self.sent.append((recipient, subject, text_body, html_body))
        return f"<{len(self.sent)}@test>"


class FailingMailer:
    def send(self, recipient, subject, text_body, html_body=None) -> str:
        raise MailError("SMTP connection refused")


@pytest.fixture
def fixed_now() -> datetime:
    return datetime(2026, 3, 10, 8, 30, 0)


@pytest.fixture
def admin() -> User:
    return make_user(its_number="9000", role=Role.ADMIN, name="Ada", surname="Admin")


@pytest.fixture
def member() -> User:
    return make_user(its_number="1001", name="Mohammed", surname="Ali")


@pytest.fixture
def other_member() -> User:
    return make_user(its_number="1002", name="Husain", surname="Khan", zone="Zone B")


@pytest.fixture
def users(admin, member, other_member) -> InMemoryUsers:
    return InMemoryUsers([admin, member, other_member])


@pytest.fixture
def tokens() -> TokenService:
    return TokenService(secret="test-jwt-secret")


@pytest.fixture
def mailer() -> RecordingMailer:
    return RecordingMailer()


@pytest.fixture
def container(users, tokens, mailer):
    return assemble(
        users_repo=users,
        dutycharts_repo=InMemoryDutyCharts(users),
        miqaats_repo=InMemoryMiqaats(),
        notifications_repo=InMemoryNotifications(),
        payments_repo=InMemoryPayments(),
        tokens=tokens,
        mailer=mailer,
        login_url="http://localhost:5173/login",
    )


@pytest.fixture
def client(container):
    app = create_app(container=container, settings_module="bgi_admin.config.testing")
    return app.test_client()


@pytest.fixture
def auth_headers(tokens):
    def _headers(user: User) -> dict:
        return {"Authorization": f"Bearer {tokens.issue(user.user_id, user.role)}"}

    return _headers


class ScriptedCursor:
    """Records every statement; ``respond(sql, params)`` supplies the rows a SELECT returns."""

    def __init__(self, db: "ScriptedDatabase"):
        self._db = db
        self._rows: list[dict] = []
        self.rowcount = 0

    def execute(self, sql, params=()):
        statement = " ".join(sql.split())
        self._db.statements.append(statement)
        self._rows = list(self._db.respond(statement, tuple(params)))
        self.rowcount = len(self._rows) if statement.startswith("SELECT") else self._db.rowcount

    def executemany(self, sql, seq_params):
        statement = " ".join(sql.split())
        rows = list(seq_params)
        self._db.statements.append(statement)
        self._db.batches.append(rows)
        self.rowcount = len(rows)

    def fetchone(self):
        return self._rows.pop(0) if self._rows else None

    def fetchall(self):
        rows, self._rows = self._rows, []
        return rows

    def close(self):
        pass


class ScriptedDatabase:
    """Connection factory standing in for DatabaseConnection in repository tests."""

    def __init__(self, respond=None, *, rowcount: int = 1):
        self.respond = respond or (lambda sql, params: [])
        self.rowcount = rowcount
        self.statements: list[str] = []
        self.batches: list[list[tuple]] = []
        self.events: list[str] = []

    def connect(self):
        return self

    def cursor(self, dictionary=True):
        return ScriptedCursor(self)

    def commit(self):
        self.events.append("commit")

    def rollback(self):
        self.events.append("rollback")

    def close(self):
        self.events.append("close")
