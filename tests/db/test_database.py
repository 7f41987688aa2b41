"""Tests for database setup and shared helpers."""

import sqlite3

import pytest

from examprep.db.database import build_update, from_json, get_db, init_db, to_json


class TestInitDb:
    def test_creates_tables(self, isolated_db):
        with get_db() as conn:
            tables = {
                row["name"]
                for row in conn.execute("SELECT name FROM sqlite_master WHERE type = 'table'")
            }

        for table in ("users", "auth_accounts", "exams", "questions", "simulations", "topic_progress"):
            assert table in tables

    def test_idempotent(self, isolated_db):
        assert init_db(isolated_db) == isolated_db

    def test_nested_directory(self, tmp_path):
        path = tmp_path / "a" / "b" / "test.db"
        init_db(path)
        assert path.exists()

    def test_foreign_keys_enforced(self, isolated_db):
        with pytest.raises(sqlite3.IntegrityError):
            with get_db() as conn:
                conn.execute(
                    "INSERT INTO questions (id, exam_id, statement, options, correct_option)"
                    " VALUES ('q', 'missing', 's', '[]', 0)"
                )


class TestBuildUpdate:
    def test_builds_statement(self):
        sql, params = build_update(
            "users", "uid", "u1", {"xp": 10, "is_premium": True, "badges": ["a"]},
            allowed={"xp", "is_premium", "badges"}, json_columns={"badges"},
        )

        assert sql == "UPDATE users SET xp = ?, is_premium = ?, badges = ? WHERE uid = ?"
        assert params == (10, 1, '["a"]', "u1")

    def test_nothing_to_update(self):
        assert build_update("users", "uid", "u1", {}, allowed={"xp"}) is None

    def test_unknown_column(self):
        with pytest.raises(ValueError, match="Invalid column"):
            build_update("users", "uid", "u1", {"uid; DROP TABLE users": 1}, allowed={"xp"})


class TestJsonColumns:
    def test_none_uses_default(self):
        assert from_json(None, []) == []
        assert from_json("", {}) == {}

    def test_keeps_unicode(self):
        assert to_json(["Matemática"]) == '["Matemática"]'
        assert from_json(to_json({"a": [1, 2]}), None) == {"a": [1, 2]}
