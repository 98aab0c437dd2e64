from __future__ import annotations

from typing import Any, Iterable, Mapping, Optional, Sequence

from ..core.enums import MemberStatus, Role
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, in_clause, like
from .model import EDITABLE_FIELDS, User
from .repository import UserRepository

_COLUMNS = (
    "user_id, name, surname, email, mobile, whatsapp, its_number, password_hash, role, "
    "designation, zone, status, must_change_password, created_at"
)


def _row_to_user(row: dict) -> User:
    return User(
        user_id=row["user_id"],
        name=row["name"],
        surname=row["surname"],
        email=row.get("email"),
        mobile=row.get("mobile"),
        whatsapp=row.get("whatsapp"),
        its_number=row["its_number"],
        password_hash=row["password_hash"],
        role=Role(row["role"]),
        designation=row.get("designation"),
        zone=row.get("zone"),
        status=MemberStatus(row.get("status") or MemberStatus.ACTIVE.value),
        must_change_password=bool(row.get("must_change_password", False)),
        created_at=row.get("created_at"),
    )


class MySQLUserRepository(UserRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, user_id: str) -> Optional[User]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM users WHERE user_id=%s", (user_id,))
            row = fetchone(cur)
            return _row_to_user(row) if row else None

    def get_by_its_number(self, its_number: str) -> Optional[User]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM users WHERE its_number=%s", (its_number,))
            row = fetchone(cur)
            return _row_to_user(row) if row else None

    def exists_with_its_or_email(
        self,
        *,
        its_number: Optional[str],
        email: Optional[str],
        exclude_user_id: Optional[str] = None,
    ) -> bool:
        clauses: list[str] = []
        params: list[Any] = []
        if its_number:
            clauses.append("its_number=%s")
            params.append(its_number)
        if email:
            clauses.append("email=%s")
            params.append(email)
        if not clauses:
            return False

        sql = f"SELECT user_id FROM users WHERE ({' OR '.join(clauses)})"
        if exclude_user_id:
            sql += " AND user_id<>%s"
            params.append(exclude_user_id)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(sql + " LIMIT 1", tuple(params))
            return fetchone(cur) is not None

    def create(self, user: User) -> str:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO users(user_id, name, surname, email, mobile, whatsapp, its_number,
                                  password_hash, role, designation, zone, status, must_change_password)
                VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s)
                """,
                (
                    user.user_id,
                    user.name,
                    user.surname,
                    user.email,
                    user.mobile,
                    user.whatsapp,
                    user.its_number,
                    user.password_hash,
                    user.role.value,
                    user.designation,
                    user.zone,
                    user.status.value,
                    1 if user.must_change_password else 0,
                ),
            )
            return user.user_id

    def update_fields(self, user_id: str, fields: Mapping[str, Any]) -> bool:
        sets: list[str] = []
        params: list[Any] = []
        for name in EDITABLE_FIELDS:
            if name not in fields:
                continue
            value = fields[name]
            if isinstance(value, (Role, MemberStatus)):
                value = value.value
            sets.append(f"{name}=%s")
            params.append(value)
        if not sets:
            return self.get_by_id(user_id) is not None

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"UPDATE users SET {', '.join(sets)} WHERE user_id=%s", (*params, user_id))
            if cur.rowcount > 0:
                return True
            # rowcount is 0 for an unchanged row too.
            cur.execute("SELECT 1 AS found FROM users WHERE user_id=%s", (user_id,))
            return fetchone(cur) is not None

    def set_password(self, user_id: str, *, password_hash: str, must_change_password: bool) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "UPDATE users SET password_hash=%s, must_change_password=%s WHERE user_id=%s",
                (password_hash, 1 if must_change_password else 0, user_id),
            )
            return cur.rowcount > 0

    def delete_by_id(self, user_id: str) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM users WHERE user_id=%s", (user_id,))
            return cur.rowcount > 0

    def list_users(
        self,
        *,
        search: Optional[str] = None,
        role: Optional[Role] = None,
        zone: Optional[str] = None,
        status: Optional[MemberStatus] = None,
    ) -> Sequence[User]:
        where: list[str] = []
        params: list[Any] = []
        if search:
            where.append("(name LIKE %s OR surname LIKE %s OR its_number LIKE %s)")
            params.extend([like(search)] * 3)
        if role:
            where.append("role=%s")
            params.append(role.value)
        if zone:
            where.append("zone=%s")
            params.append(zone)
        if status:
            where.append("status=%s")
            params.append(status.value)

        sql = f"SELECT {_COLUMNS} FROM users"
        if where:
            sql += " WHERE " + " AND ".join(where)
        sql += " ORDER BY created_at DESC"
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(sql, tuple(params))
            return [_row_to_user(r) for r in fetchall(cur)]

    def list_active_ids(self) -> list[str]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("SELECT user_id FROM users WHERE status='active'")
            return [r["user_id"] for r in fetchall(cur)]

    def count_active(self) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("SELECT COUNT(*) AS n FROM users WHERE status='active'")
            row = fetchone(cur)
            return int(row["n"]) if row else 0

    def get_briefs(self, user_ids: Iterable[str]) -> dict[str, dict]:
        ids = sorted(set(user_ids))
        if not ids:
            return {}
        placeholders, params = in_clause(ids)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM users WHERE user_id IN {placeholders}", params)
            return {r["user_id"]: _row_to_user(r).to_brief() for r in fetchall(cur)}
