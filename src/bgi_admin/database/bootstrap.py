from __future__ import annotations

import logging
import os
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Sequence

import mysql.connector
from werkzeug.security import generate_password_hash

from ..common.refs import new_id
from ..core.enums import MemberStatus, Role

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DBTarget:
    host: str
    port: int
    user: str
    password: str
    database: str


@dataclass(frozen=True)
class SuperAdminSeed:
    its_number: str
    password: str
    email: str


def _as_target(db_config: dict) -> DBTarget:
    return DBTarget(
        host=str(db_config.get("host", "localhost")),
        port=int(db_config.get("port", 3306)),
        user=str(db_config.get("user", "root")),
        password=str(db_config.get("password", "")),
        database=str(db_config.get("database", "bgi_admin")),
    )


def _connect(target: DBTarget, *, with_database: bool = True):
    kwargs = dict(host=target.host, port=target.port, user=target.user, password=target.password, use_pure=True)
    if with_database:
        kwargs["database"] = target.database
    return mysql.connector.connect(**kwargs)


def _strip_create_db_and_use(sql: str) -> str:
    # Keep schema.sql compatible regardless of DB name.
    sql = re.sub(r"(?im)^\s*CREATE\s+DATABASE\b.*?;\s*$", "", sql)
    sql = re.sub(r"(?im)^\s*USE\b.*?;\s*$", "", sql)
    return sql


def _strip_line_comments(sql: str) -> str:
    return re.sub(r"(?m)^\s*--.*$", "", sql)


def _iter_sql_statements(sql: str) -> Iterable[str]:
    # Minimal SQL splitter for schema files (handles ';' inside quotes).
    buf: list[str] = []
    in_single = False
    in_double = False
    escape = False

    for ch in sql:
        if escape:
            buf.append(ch)
            escape = False
            continue

        if ch == "\\":
            buf.append(ch)
            escape = True
            continue

        if ch == "'" and not in_double:
            in_single = not in_single
            buf.append(ch)
            continue

        if ch == '"' and not in_single:
            in_double = not in_double
            buf.append(ch)
            continue

        if ch == ";" and not in_single and not in_double:
            stmt = "".join(buf).strip()
            buf.clear()
            if stmt:
                yield stmt
            continue

        buf.append(ch)

    tail = "".join(buf).strip()
    if tail:
        yield tail


def ensure_database_exists(db_config: dict) -> None:
    target = _as_target(db_config)
    conn = _connect(target, with_database=False)
    try:
        cur = conn.cursor()
        cur.execute(
            f"CREATE DATABASE IF NOT EXISTS `{target.database}` CHARACTER SET utf8mb4 COLLATE utf8mb4_unicode_ci"
        )
        conn.commit()
    finally:
        conn.close()


def apply_schema(db_config: dict, *, schema_path: str | Path) -> None:
    ensure_database_exists(db_config)

    sql = Path(schema_path).read_text(encoding="utf-8")
    sql = _strip_line_comments(_strip_create_db_and_use(sql))

    conn = _connect(_as_target(db_config))
    try:
        cur = conn.cursor()
        for stmt in _iter_sql_statements(sql):
            cur.execute(stmt)
        conn.commit()
    finally:
        conn.close()
    logger.info("Schema applied from %s", schema_path)


def superadmin_seeds_from_env() -> list[SuperAdminSeed]:
    """SUPERADMIN_ITS/_PASS/_EMAIL, then SUPERADMIN2_*, ...; incomplete entries are skipped."""
    seeds: list[SuperAdminSeed] = []
    for prefix in ("SUPERADMIN", "SUPERADMIN2", "SUPERADMIN3"):
        its_number = os.getenv(f"{prefix}_ITS", "").strip()
        password = os.getenv(f"{prefix}_PASS", "")
        if not its_number or not password:
            continue
        email = os.getenv(f"{prefix}_EMAIL", "").strip() or f"{its_number}@bgi.local"
        seeds.append(SuperAdminSeed(its_number=its_number, password=password, email=email))
    return seeds


def ensure_superadmins(db_config: dict, admins: Sequence[SuperAdminSeed]) -> list[str]:
    """Create missing SuperAdmin accounts; existing ITS/email matches are left untouched."""
    created: list[str] = []
    conn = _connect(_as_target(db_config))
    try:
        cur = conn.cursor(dictionary=True)
        for admin in admins:
            cur.execute(
                "SELECT user_id FROM users WHERE its_number=%s OR email=%s LIMIT 1",
                (admin.its_number, admin.email),
            )
            if cur.fetchone():
                logger.info("SuperAdmin already exists: %s", admin.its_number)
                continue

            cur.execute(
                """
                INSERT INTO users(user_id, name, surname, email, mobile, whatsapp, its_number,
                                  password_hash, role, designation, status, must_change_password)
                VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,0)
                """,
                (
                    new_id(),
                    "System",
                    "Admin",
                    admin.email,
                    "9999999999",
                    "9999999999",
                    admin.its_number,
                    generate_password_hash(admin.password),
                    Role.SUPERADMIN.value,
                    Role.SUPERADMIN.value,
                    MemberStatus.ACTIVE.value,
                ),
            )
            created.append(admin.its_number)
            logger.info("SuperAdmin created: %s", admin.its_number)
        conn.commit()
    finally:
        conn.close()
    return created


def list_tables(db_config: dict) -> list[str]:
    conn = _connect(_as_target(db_config))
    try:
        cur = conn.cursor()
        cur.execute("SHOW TABLES")
        return [row[0] for row in cur.fetchall()]
    finally:
        conn.close()
