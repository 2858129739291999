"""
Tests for the SQLite gateway: execution, error translation, liveness.
"""

import sqlite3

import pytest

from database import InventoryDB, WriteResult, translate_error
from errors import ErrorKind, StoreError


class TestInventoryDB:

    def test_execute_returns_rowcount_and_id(self, db):
        result = db.execute("INSERT INTO categories (name) VALUES (?)", ("Diodes",))
        assert isinstance(result, WriteResult)
        assert result.rowcount == 1
        assert result.lastrowid == 1

        rows = db.fetch_all("SELECT id, name FROM categories")
        assert rows == [{"id": 1, "name": "Diodes"}]

    def test_fetch_one_missing_row(self, db):
        assert db.fetch_one("SELECT * FROM categories WHERE id = ?", (42,)) is None

    def test_parameters_are_bound_not_interpolated(self, db):
        name = "x'); DROP TABLE categories; --"
        db.execute("INSERT INTO categories (name) VALUES (?)", (name,))
        assert db.fetch_one("SELECT name FROM categories")["name"] == name

    def test_statement_counter(self, db):
        before = db.statements
        db.fetch_all("SELECT * FROM categories")
        db.execute("INSERT INTO categories (name) VALUES (?)", ("ICs",))
        assert db.statements == before + 2

    def test_ping(self, db):
        assert db.ping()

    def test_ping_on_closed_connection(self, tmp_path):
        db = InventoryDB(str(tmp_path / "closed.db"))
        db.close()
        with pytest.raises(StoreError) as exc_info:
            db.ping()
        assert exc_info.value.kind is ErrorKind.UNKNOWN

    def test_interrupt_when_idle(self, db):
        db.interrupt()
        assert db.ping()

    def test_schema_persists_between_connections(self, tmp_path):
        path = str(tmp_path / "persist.db")
        with InventoryDB(path) as first:
            first.execute("INSERT INTO categories (name) VALUES (?)", ("Sensors",))
        with InventoryDB(path) as second:
            assert second.fetch_all("SELECT name FROM categories") == [{"name": "Sensors"}]


class TestErrorTranslation:

    def test_unique_violation(self, db):
        db.execute("INSERT INTO categories (name) VALUES (?)", ("Relays",))
        with pytest.raises(StoreError) as exc_info:
            db.execute("INSERT INTO categories (name) VALUES (?)", ("Relays",))
        err = exc_info.value
        assert err.kind is ErrorKind.UNIQUE_VIOLATION
        assert err.constraint == "categories.name"
        assert err.table == "categories"

    def test_foreign_key_violation(self, db):
        with pytest.raises(StoreError) as exc_info:
            db.execute("INSERT INTO components (category_id, name) VALUES (?, ?)", (999, "LM317"))
        assert exc_info.value.kind is ErrorKind.FOREIGN_KEY_VIOLATION

    def test_invalid_json_parameters(self, db):
        db.execute("INSERT INTO categories (name) VALUES (?)", ("Regulators",))
        with pytest.raises(StoreError) as exc_info:
            db.execute(
                "INSERT INTO components (category_id, name, parameters) VALUES (?, ?, ?)",
                (1, "LM317", "{not json"),
            )
        assert exc_info.value.kind is ErrorKind.INVALID_INPUT_FORMAT

    def test_negative_quantity_rejected(self, db):
        db.execute("INSERT INTO categories (name) VALUES (?)", ("Regulators",))
        with pytest.raises(StoreError) as exc_info:
            db.execute(
                "INSERT INTO components (category_id, name, quantity) VALUES (?, ?, ?)",
                (1, "LM317", -1),
            )
        assert exc_info.value.kind is ErrorKind.INVALID_INPUT_FORMAT

    def test_unsupported_parameter_type(self, db):
        with pytest.raises(StoreError) as exc_info:
            db.execute("INSERT INTO categories (name) VALUES (?)", ({"a": 1},))
        assert exc_info.value.kind is ErrorKind.INVALID_INPUT_FORMAT

    def test_missing_column(self, db):
        with pytest.raises(StoreError) as exc_info:
            db.fetch_all("SELECT package FROM components")
        assert exc_info.value.kind is ErrorKind.SCHEMA_MISMATCH

    def test_missing_table(self, db):
        with pytest.raises(StoreError) as exc_info:
            db.fetch_all("SELECT * FROM projects")
        err = exc_info.value
        assert err.kind is ErrorKind.SCHEMA_MISMATCH
        assert err.table == "projects"

    def test_failed_write_is_rolled_back(self, db):
        db.execute("INSERT INTO categories (name) VALUES (?)", ("Relays",))
        with pytest.raises(StoreError):
            db.execute("INSERT INTO categories (name) VALUES (?)", ("Relays",))
        db.execute("INSERT INTO categories (name) VALUES (?)", ("Fuses",))
        assert len(db.fetch_all("SELECT * FROM categories")) == 2

    def test_message_fallback(self):
        err = translate_error(sqlite3.OperationalError("table components has no column named updated"))
        assert err.kind is ErrorKind.SCHEMA_MISMATCH

    def test_unknown(self):
        err = translate_error(sqlite3.OperationalError("database is locked"))
        assert err.kind is ErrorKind.UNKNOWN
        assert err.message == "database is locked"
