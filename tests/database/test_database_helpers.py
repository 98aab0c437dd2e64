from __future__ import annotations

import pytest

from conftest import ScriptedDatabase
from bgi_admin.database import bootstrap
from bgi_admin.database.bootstrap import SuperAdminSeed, _iter_sql_statements, ensure_superadmins, superadmin_seeds_from_env
from bgi_admin.database.mysql_base import db_cursor, in_clause, like


class FakeCursor:
    def __init__(self):
        self.closed = False

    def close(self):
        self.closed = True


class FakeConnection:
    def __init__(self):
        self.cursor_obj = FakeCursor()
        self.events: list[str] = []

    def cursor(self, dictionary=True):
        return self.cursor_obj

    def commit(self):
        self.events.append("commit")

    def rollback(self):
        self.events.append("rollback")

    def close(self):
        self.events.append("close")


class FakeFactory:
    def __init__(self):
        self.conn = FakeConnection()

    def connect(self):
        return self.conn


def test_db_cursor_commits_on_success():
    factory = FakeFactory()

    with db_cursor(factory) as (_, cur):
        assert cur is factory.conn.cursor_obj

    assert factory.conn.events == ["commit", "close"]
    assert factory.conn.cursor_obj.closed


def test_db_cursor_rolls_back_on_error():
    factory = FakeFactory()

    with pytest.raises(RuntimeError):
        with db_cursor(factory):
            raise RuntimeError("write failed")

    assert factory.conn.events == ["rollback", "close"]


def test_in_clause_and_like():
    assert in_clause(["a", "b"]) == ("(%s,%s)", ("a", "b"))
    with pytest.raises(ValueError):
        in_clause([])
    assert like("50%_off") == "%50\\%\\_off%"


def test_schema_splitter_ignores_semicolons_in_quotes():
    sql = "CREATE TABLE a (x VARCHAR(5) DEFAULT ';');\nINSERT INTO a VALUES ('b;c');"

    assert list(_iter_sql_statements(sql)) == [
        "CREATE TABLE a (x VARCHAR(5) DEFAULT ';')",
        "INSERT INTO a VALUES ('b;c')",
    ]


def test_superadmin_seeds_skip_incomplete_entries(monkeypatch):
    monkeypatch.setenv("SUPERADMIN_ITS", "30000001")
    monkeypatch.setenv("SUPERADMIN_PASS", "Owner#2026")
    monkeypatch.delenv("SUPERADMIN_EMAIL", raising=False)
    monkeypatch.setenv("SUPERADMIN2_ITS", "30000002")
    monkeypatch.delenv("SUPERADMIN2_PASS", raising=False)
    monkeypatch.delenv("SUPERADMIN3_ITS", raising=False)

    seeds = superadmin_seeds_from_env()

    assert [(s.its_number, s.email) for s in seeds] == [("30000001", "30000001@bgi.local")]


def test_ensure_superadmins_reads_one_match_and_creates_the_rest(monkeypatch):
    def respond(sql, params):
        if sql.startswith("SELECT user_id FROM users") and params[0] == "30000001":
            return [{"user_id": "u-1"}, {"user_id": "u-2"}]
        return []

    db = ScriptedDatabase(respond)
    monkeypatch.setattr(bootstrap, "_connect", lambda target, **kwargs: db)
    seeds = [
        SuperAdminSeed(its_number="30000001", password="Owner#2026", email="owner@bgi.local"),
        SuperAdminSeed(its_number="30000002", password="Second#2026", email="second@bgi.local"),
    ]

    assert ensure_superadmins({"database": "bgi_admin"}, seeds) == ["30000002"]

    lookups = [s for s in db.statements if s.startswith("SELECT")]
    assert len(lookups) == 2
    assert all(s.endswith("LIMIT 1") for s in lookups)
    assert db.statements[-1].startswith("INSERT INTO users")
    assert db.events == ["commit", "close"]
