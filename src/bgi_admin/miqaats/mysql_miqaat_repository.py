from __future__ import annotations

from datetime import date
from typing import Any, Optional, Sequence

import mysql.connector

from ..core.enums import AttendanceStatus
from ..database.connection import DatabaseConnection
from ..database.mysql_base import ER_DUP_ENTRY, db_cursor, fetchall, fetchone, in_clause, like
from .model import AttendanceEntry, Miqaat
from .repository import MiqaatRepository

_COLUMNS = "miqaat_id, name, location, date, created_by, created_at, updated_at"


def _row_to_entry(row: dict) -> AttendanceEntry:
    return AttendanceEntry(
        member_id=row["member_id"],
        status=AttendanceStatus(row["status"]),
        check_in=row.get("check_in"),
        check_out=row.get("check_out"),
        note=row.get("note"),
    )


class MySQLMiqaatRepository(MiqaatRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def create(self, miqaat: Miqaat) -> str:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "INSERT INTO miqaats(miqaat_id, name, location, date, created_by) VALUES(%s,%s,%s,%s,%s)",
                (miqaat.miqaat_id, miqaat.name, miqaat.location, miqaat.date, miqaat.created_by),
            )
            return miqaat.miqaat_id

    def get_by_id(self, miqaat_id: str) -> Optional[Miqaat]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM miqaats WHERE miqaat_id=%s", (miqaat_id,))
            row = fetchone(cur)
            if not row:
                return None
            return self._hydrate(cur, [row])[0]

    def list_miqaats(
        self,
        *,
        search: Optional[str] = None,
        location: Optional[str] = None,
        date_from: Optional[date] = None,
        date_to: Optional[date] = None,
    ) -> Sequence[Miqaat]:
        where: list[str] = []
        params: list[Any] = []
        if search:
            where.append("name LIKE %s")
            params.append(like(search))
        if location:
            where.append("location LIKE %s")
            params.append(like(location))
        if date_from:
            where.append("date >= %s")
            params.append(date_from)
        if date_to:
            where.append("date <= %s")
            params.append(date_to)

        sql = f"SELECT {_COLUMNS} FROM miqaats"
        if where:
            sql += " WHERE " + " AND ".join(where)
        sql += " ORDER BY date DESC, created_at DESC"
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(sql, tuple(params))
            rows = fetchall(cur)
            return self._hydrate(cur, rows) if rows else []

    def update(self, miqaat_id: str, *, name: str, location: str, date: date) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "UPDATE miqaats SET name=%s, location=%s, date=%s WHERE miqaat_id=%s",
                (name, location, date, miqaat_id),
            )
            if cur.rowcount > 0:
                return True
            cur.execute("SELECT 1 AS found FROM miqaats WHERE miqaat_id=%s", (miqaat_id,))
            return fetchone(cur) is not None

    def delete_by_id(self, miqaat_id: str) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM miqaats WHERE miqaat_id=%s", (miqaat_id,))
            return cur.rowcount > 0

    def get_attendance_entry(self, miqaat_id: str, member_id: str) -> Optional[AttendanceEntry]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT member_id, status, check_in, check_out, note
                FROM miqaat_attendance
                WHERE miqaat_id=%s AND member_id=%s
                """,
                (miqaat_id, member_id),
            )
            row = fetchone(cur)
            return _row_to_entry(row) if row else None

    def add_attendance(self, miqaat_id: str, entry: AttendanceEntry) -> bool:
        try:
            with db_cursor(self._conn_factory) as (_, cur):
                cur.execute(
                    """
                    INSERT INTO miqaat_attendance(miqaat_id, member_id, status, check_in, check_out, note)
                    VALUES(%s,%s,%s,%s,%s,%s)
                    """,
                    (miqaat_id, entry.member_id, entry.status.value, entry.check_in, entry.check_out, entry.note),
                )
                return True
        except mysql.connector.IntegrityError as e:
            # A concurrent registration won the race.
            if e.errno == ER_DUP_ENTRY:
                return False
            raise

    def _hydrate(self, cur, rows: list[dict]) -> list[Miqaat]:
        placeholders, params = in_clause([r["miqaat_id"] for r in rows])
        cur.execute(
            f"""
            SELECT miqaat_id, member_id, status, check_in, check_out, note
            FROM miqaat_attendance
            WHERE miqaat_id IN {placeholders}
            ORDER BY created_at
            """,
            params,
        )
        entries: dict[str, list[AttendanceEntry]] = {}
        for a in fetchall(cur):
            entries.setdefault(a["miqaat_id"], []).append(_row_to_entry(a))

        return [
            Miqaat(
                miqaat_id=r["miqaat_id"],
                name=r["name"],
                location=r["location"],
                date=r["date"],
                created_by=r["created_by"],
                attendance=tuple(entries.get(r["miqaat_id"], [])),
                created_at=r.get("created_at"),
                updated_at=r.get("updated_at"),
            )
            for r in rows
        ]
