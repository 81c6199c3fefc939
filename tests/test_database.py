"""
Tests for database.py - schema setup and the SQLAlchemy store.
"""

from decimal import Decimal

import pytest
from sqlalchemy import inspect
from sqlalchemy.exc import IntegrityError

from jobly.database import (
    Company,
    Job,
    SqlAlchemyStore,
    get_session,
    init_database,
    to_bind_params,
)


class TestDatabaseInit:
    """Test database initialization."""

    def test_init_creates_database_file(self, tmp_path):
        db_path = tmp_path / "test.db"
        assert not db_path.exists()

        engine = init_database(f"sqlite:///{db_path}")

        assert db_path.exists()
        engine.dispose()

    def test_init_creates_tables(self, tmp_path):
        engine = init_database(f"sqlite:///{tmp_path / 'test.db'}")

        tables = set(inspect(engine).get_table_names())
        assert {"companies", "jobs"} <= tables

        session = get_session(engine)
        assert session.query(Job).count() == 0
        session.close()
        engine.dispose()

    def test_init_creates_parent_directories(self, tmp_path):
        db_path = tmp_path / "nested" / "dir" / "test.db"
        assert not db_path.parent.exists()

        engine = init_database(f"sqlite:///{db_path}")

        assert db_path.exists()
        engine.dispose()

    def test_foreign_keys_enforced(self, engine):
        """Jobs must reference an existing company."""
        session = get_session(engine)
        session.add(Job(title="orphan", company_handle="nope"))

        with pytest.raises(IntegrityError):
            session.commit()
        session.close()

    def test_deleting_company_cascades_to_jobs(self, engine):
        session = get_session(engine)
        session.add(Job(title="j", company_handle="c1"))
        session.commit()

        session.delete(session.get(Company, "c1"))
        session.commit()

        assert session.query(Job).count() == 0
        session.close()


class TestToBindParams:
    """Test placeholder rewriting."""

    def test_rewrites_positional_placeholders(self):
        sql, params = to_bind_params("SELECT * FROM t WHERE a = $1 AND b = $2", [1, "x"])
        assert sql == "SELECT * FROM t WHERE a = :p1 AND b = :p2"
        assert params == {"p1": 1, "p2": "x"}

    def test_quoted_columns(self):
        sql, params = to_bind_params('UPDATE t SET "a"=$1, "b"=$2 WHERE id = $3', [1, 2, 3])
        assert sql == 'UPDATE t SET "a"=:p1, "b"=:p2 WHERE id = :p3'
        assert params == {"p1": 1, "p2": 2, "p3": 3}

    def test_double_digit_positions(self):
        query = ", ".join(f"${i}" for i in range(1, 12))
        sql, params = to_bind_params(query, list(range(11)))
        assert sql.endswith(":p10, :p11")
        assert params["p11"] == 10

    def test_no_placeholders(self):
        assert to_bind_params("SELECT 1", []) == ("SELECT 1", {})

    def test_value_count_mismatch(self):
        with pytest.raises(ValueError):
            to_bind_params("SELECT $1, $2", [1])
        with pytest.raises(ValueError):
            to_bind_params("SELECT $1", [1, 2])


class TestSqlAlchemyStore:
    """Test query execution against SQLite."""

    def test_returns_rows_as_dicts(self, store):
        rows = store.execute("SELECT handle, name FROM companies ORDER BY handle")
        assert rows == [
            {"handle": "c1", "name": "C1"},
            {"handle": "c2", "name": "C2"},
        ]

    def test_binds_values(self, store):
        rows = store.execute("SELECT handle FROM companies WHERE name = $1", ["C2"])
        assert rows == [{"handle": "c2"}]

    def test_statement_without_rows(self, store):
        assert store.execute("DELETE FROM jobs WHERE id = $1", [99]) == []

    def test_ilike_runs_on_sqlite(self, store):
        rows = store.execute("SELECT handle FROM companies WHERE name ILIKE $1", ["%c1%"])
        assert rows == [{"handle": "c1"}]

    def test_store_errors_propagate(self, store):
        with pytest.raises(IntegrityError):
            store.execute(
                "INSERT INTO jobs (title, company_handle) VALUES ($1, $2)",
                ["t", "missing"],
            )

    def test_failed_statement_rolls_back(self, store):
        """A failing statement leaves no partial effect behind."""
        with pytest.raises(IntegrityError):
            store.execute(
                "INSERT INTO jobs (title, salary, company_handle) VALUES ($1, $2, $3)",
                ["t", -1, "c1"],
            )
        assert store.execute("SELECT id FROM jobs") == []

    def test_binds_decimal_on_sqlite(self, store):
        rows = store.execute("SELECT $1 AS v", [Decimal("0.75")])
        assert rows == [{"v": 0.75}]

    def test_records_query_metrics(self, store, logger):
        store.execute("SELECT handle FROM companies")
        metrics = logger.get_metrics()
        assert metrics["queries_executed"] == 1
        assert metrics["rows_returned"] == 2

    def test_from_url(self, db_url, engine, logger):
        store = SqlAlchemyStore.from_url(db_url, logger=logger)
        assert len(store.execute("SELECT handle FROM companies")) == 2
        store.dispose()
