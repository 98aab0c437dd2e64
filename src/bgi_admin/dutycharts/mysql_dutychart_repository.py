from __future__ import annotations

from datetime import date
from typing import Any, Optional, Sequence

from ..common.refs import UserRef, canonical_id, new_id
from ..core.exceptions import MissingReferencesError
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, in_clause, like
from .model import Assignment, DutyChart
from .repository import DutyChartRepository

_CHART_COLUMNS = (
    "chart_id, title, event_name, jamiat_incharge_user_id, jamiat_incharge_name, "
    "captain_user_id, captain_name, vice_captain_user_id, vice_captain_name, created_by, "
    "duty_date, reporting_time, dress_code, created_at, updated_at"
)


def _ref_params(ref: Optional[UserRef]) -> tuple[Optional[str], Optional[str]]:
    if ref is None:
        return None, None
    return ref.user_id, ref.raw


def _ref_from(row: dict, prefix: str) -> Optional[UserRef]:
    user_id = row.get(f"{prefix}_user_id")
    if user_id:
        return UserRef.resolved(user_id)
    name = row.get(f"{prefix}_name")
    if name:
        return UserRef.unresolved(name)
    return None


class MySQLDutyChartRepository(DutyChartRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def _check_references(self, cur, chart: DutyChart) -> None:
        ids = sorted(chart.referenced_user_ids())
        if not ids:
            return
        placeholders, params = in_clause(ids)
        # Shared locks keep the referenced users from disappearing before commit.
        cur.execute(f"SELECT user_id FROM users WHERE user_id IN {placeholders} FOR SHARE", params)
        found = {r["user_id"] for r in fetchall(cur)}
        missing = [i for i in ids if i not in found]
        if missing:
            raise MissingReferencesError(missing)

    def _insert_assignments(self, cur, chart: DutyChart) -> None:
        for position, a in enumerate(chart.assignments):
            assignment_id = new_id()
            cur.execute(
                """
                INSERT INTO duty_assignments(assignment_id, chart_id, position, location, area, task,
                                             incharge_officer_user_id, incharge_officer_name,
                                             sub_incharge_officer_user_id, sub_incharge_officer_name, team)
                VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s)
                """,
                (
                    assignment_id,
                    chart.chart_id,
                    position,
                    a.location,
                    a.area,
                    a.task,
                    *_ref_params(a.incharge_officer),
                    *_ref_params(a.sub_incharge_officer),
                    a.team,
                ),
            )
            if a.members:
                cur.executemany(
                    """
                    INSERT INTO duty_assignment_members(assignment_id, position, member_user_id, member_name)
                    VALUES(%s,%s,%s,%s)
                    """,
                    [(assignment_id, i, *_ref_params(m)) for i, m in enumerate(a.members)],
                )

    def _chart_params(self, chart: DutyChart) -> tuple:
        return (
            chart.title,
            chart.event_name,
            *_ref_params(chart.jamiat_incharge),
            *_ref_params(chart.captain),
            *_ref_params(chart.vice_captain),
            chart.duty_date,
            chart.reporting_time,
            chart.dress_code,
        )

    def create(self, chart: DutyChart) -> str:
        with db_cursor(self._conn_factory) as (_, cur):
            self._check_references(cur, chart)
            cur.execute(
                """
                INSERT INTO duty_charts(title, event_name, jamiat_incharge_user_id, jamiat_incharge_name,
                                        captain_user_id, captain_name, vice_captain_user_id, vice_captain_name,
                                        duty_date, reporting_time, dress_code, chart_id, created_by)
                VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s)
                """,
                (*self._chart_params(chart), chart.chart_id, chart.created_by),
            )
            self._insert_assignments(cur, chart)
            return chart.chart_id

    def update(self, chart: DutyChart) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("SELECT chart_id FROM duty_charts WHERE chart_id=%s FOR UPDATE", (chart.chart_id,))
            if not fetchone(cur):
                return False
            self._check_references(cur, chart)
            cur.execute(
                """
                UPDATE duty_charts
                SET title=%s, event_name=%s, jamiat_incharge_user_id=%s, jamiat_incharge_name=%s,
                    captain_user_id=%s, captain_name=%s, vice_captain_user_id=%s, vice_captain_name=%s,
                    duty_date=%s, reporting_time=%s, dress_code=%s
                WHERE chart_id=%s
                """,
                (*self._chart_params(chart), chart.chart_id),
            )
            # Members go with their assignments (ON DELETE CASCADE).
            cur.execute("DELETE FROM duty_assignments WHERE chart_id=%s", (chart.chart_id,))
            self._insert_assignments(cur, chart)
            return True

    def get_by_id(self, chart_id: str) -> Optional[DutyChart]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_CHART_COLUMNS} FROM duty_charts WHERE chart_id=%s", (chart_id,))
            row = fetchone(cur)
            if not row:
                return None
            return self._hydrate(cur, [row])[0]

    def list_charts(
        self,
        *,
        search: Optional[str] = None,
        date_from: Optional[date] = None,
        date_to: Optional[date] = None,
        incharge: Optional[str] = None,
        member_id: Optional[str] = None,
    ) -> Sequence[DutyChart]:
        where: list[str] = []
        params: list[Any] = []
        if search:
            pattern = like(search)
            where.append(
                "(c.event_name LIKE %s OR c.title LIKE %s OR EXISTS ("
                "SELECT 1 FROM duty_assignments a WHERE a.chart_id = c.chart_id AND a.task LIKE %s))"
            )
            params.extend([pattern, pattern, pattern])
        if date_from:
            where.append("c.duty_date >= %s")
            params.append(date_from)
        if date_to:
            where.append("c.duty_date <= %s")
            params.append(date_to)
        if incharge:
            incharge_id = canonical_id(incharge)
            if incharge_id:
                where.append("c.jamiat_incharge_user_id = %s")
                params.append(incharge_id)
            else:
                where.append("c.jamiat_incharge_name = %s")
                params.append(incharge)
        if member_id:
            where.append(
                "EXISTS (SELECT 1 FROM duty_assignments a "
                "JOIN duty_assignment_members m ON m.assignment_id = a.assignment_id "
                "WHERE a.chart_id = c.chart_id AND m.member_user_id = %s)"
            )
            params.append(member_id)

        sql = f"SELECT {', '.join('c.' + col.strip() for col in _CHART_COLUMNS.split(','))} FROM duty_charts c"
        if where:
            sql += " WHERE " + " AND ".join(where)
        sql += " ORDER BY c.duty_date DESC, c.created_at DESC"

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(sql, tuple(params))
            rows = fetchall(cur)
            if not rows:
                return []
            return self._hydrate(cur, rows)

    def delete_by_id(self, chart_id: str) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM duty_charts WHERE chart_id=%s", (chart_id,))
            return cur.rowcount > 0

    def _hydrate(self, cur, rows: list[dict]) -> list[DutyChart]:
        chart_ids = [r["chart_id"] for r in rows]
        placeholders, params = in_clause(chart_ids)
        cur.execute(
            f"""
            SELECT assignment_id, chart_id, position, location, area, task,
                   incharge_officer_user_id, incharge_officer_name,
                   sub_incharge_officer_user_id, sub_incharge_officer_name, team
            FROM duty_assignments
            WHERE chart_id IN {placeholders}
            ORDER BY chart_id, position
            """,
            params,
        )
        assignment_rows = fetchall(cur)

        members: dict[str, list[UserRef]] = {}
        if assignment_rows:
            placeholders, params = in_clause([a["assignment_id"] for a in assignment_rows])
            cur.execute(
                f"""
                SELECT assignment_id, member_user_id, member_name
                FROM duty_assignment_members
                WHERE assignment_id IN {placeholders}
                ORDER BY assignment_id, position
                """,
                params,
            )
            for m in fetchall(cur):
                ref = _ref_from(m, "member")
                if ref is not None:
                    members.setdefault(m["assignment_id"], []).append(ref)

        by_chart: dict[str, list[Assignment]] = {}
        for a in assignment_rows:
            by_chart.setdefault(a["chart_id"], []).append(
                Assignment(
                    location=a["location"],
                    area=a["area"],
                    task=a["task"],
                    incharge_officer=_ref_from(a, "incharge_officer"),
                    sub_incharge_officer=_ref_from(a, "sub_incharge_officer"),
                    team=a.get("team"),
                    members=tuple(members.get(a["assignment_id"], [])),
                )
            )

        charts: list[DutyChart] = []
        for r in rows:
            charts.append(
                DutyChart(
                    chart_id=r["chart_id"],
                    title=r["title"],
                    event_name=r["event_name"],
                    jamiat_incharge=_ref_from(r, "jamiat_incharge") or UserRef.unresolved(""),
                    duty_date=r["duty_date"],
                    reporting_time=r["reporting_time"],
                    dress_code=r["dress_code"],
                    created_by=r["created_by"],
                    captain=_ref_from(r, "captain"),
                    vice_captain=_ref_from(r, "vice_captain"),
                    assignments=tuple(by_chart.get(r["chart_id"], [])),
                    created_at=r.get("created_at"),
                    updated_at=r.get("updated_at"),
                )
            )
        return charts
