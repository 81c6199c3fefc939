"""
Database schema, connection management and the query store.

Tables are declared with SQLAlchemy; repositories talk to the database only
through `SqlAlchemyStore.execute`, passing query text with positional `$n`
placeholders and the values to bind.
"""

import re
from decimal import Decimal
from pathlib import Path
from typing import Any, Dict, List, Optional, Protocol, Sequence

from sqlalchemy import (
    CheckConstraint,
    Column,
    ForeignKey,
    Integer,
    Numeric,
    String,
    Text,
    create_engine,
    event,
    text,
)
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.orm import declarative_base, sessionmaker

from .logger import StructuredLogger, get_logger

Base = declarative_base()

_POSITIONAL_PARAM = re.compile(r"\$(\d+)")


class Company(Base):
    """Company that posts jobs."""

    __tablename__ = "companies"

    handle = Column(String(25), primary_key=True)
    name = Column(Text, nullable=False, unique=True)
    description = Column(Text, nullable=False, default="")
    num_employees = Column(Integer, CheckConstraint("num_employees >= 0"))
    logo_url = Column(Text)


class Job(Base):
    """Job posting model."""

    __tablename__ = "jobs"

    id = Column(Integer, primary_key=True, autoincrement=True)
    title = Column(Text, nullable=False)
    salary = Column(Integer, CheckConstraint("salary >= 0"))
    equity = Column(Numeric, CheckConstraint("equity <= 1.0"))
    company_handle = Column(
        String(25),
        ForeignKey("companies.handle", ondelete="CASCADE"),
        nullable=False,
    )


class Store(Protocol):
    """What repositories need from the database."""

    def execute(self, query: str, values: Sequence[Any] = ()) -> List[Dict[str, Any]]:
        ...


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record):
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys = ON")
    cursor.close()


def get_engine(database_url: str) -> Engine:
    """
    Create an engine for the given URL.

    SQLite file databases get their parent directory created and foreign
    key enforcement switched on for every connection.
    """
    url = make_url(database_url)
    if url.get_backend_name() == "sqlite":
        if url.database and url.database != ":memory:":
            Path(url.database).parent.mkdir(parents=True, exist_ok=True)
        engine = create_engine(url)
        event.listen(engine, "connect", _enable_sqlite_foreign_keys)
        return engine
    return create_engine(url)


def init_database(database_url: str) -> Engine:
    """
    Initialize database and create tables.

    Args:
        database_url: SQLAlchemy database URL

    Returns:
        Engine bound to the initialized database
    """
    engine = get_engine(database_url)
    Base.metadata.create_all(engine)
    return engine


def get_session(engine: Engine):
    """
    Get an ORM session bound to the engine.

    Returns:
        SQLAlchemy session
    """
    Session = sessionmaker(bind=engine)
    return Session()


def to_bind_params(query: str, values: Sequence[Any]):
    """
    Rewrite `$1, $2, ...` placeholders as named binds `:p1, :p2, ...`.

    Returns the rewritten query and the bind dict. Every placeholder must
    have a value and every value must be referenced.
    """
    positions = {int(n) for n in _POSITIONAL_PARAM.findall(query)}
    expected = set(range(1, len(values) + 1))
    if positions != expected:
        raise ValueError(
            f"Placeholders {sorted(positions)} do not match {len(values)} value(s)"
        )
    rewritten = _POSITIONAL_PARAM.sub(lambda m: f":p{m.group(1)}", query)
    params = {f"p{idx}": value for idx, value in enumerate(values, start=1)}
    return rewritten, params


class SqlAlchemyStore:
    """
    Store backed by a SQLAlchemy engine.

    Each execute() call is one round-trip in its own transaction: it either
    commits fully or rolls back and re-raises the driver error unchanged.
    """

    def __init__(self, engine: Engine, logger: Optional[StructuredLogger] = None):
        self.engine = engine
        self.logger = logger or get_logger()

    @classmethod
    def from_url(cls, database_url: str, **kwargs) -> "SqlAlchemyStore":
        return cls(get_engine(database_url), **kwargs)

    def _dialect_sql(self, query: str) -> str:
        # SQLite has no ILIKE; its LIKE is already case-insensitive for ASCII.
        if self.engine.dialect.name == "sqlite":
            return query.replace(" ILIKE ", " LIKE ")
        return query

    def _dialect_values(self, values: Sequence[Any]) -> List[Any]:
        # The sqlite3 driver cannot bind Decimal.
        if self.engine.dialect.name == "sqlite":
            return [float(v) if isinstance(v, Decimal) else v for v in values]
        return list(values)

    def execute(self, query: str, values: Sequence[Any] = ()) -> List[Dict[str, Any]]:
        """
        Run a query with positionally bound values.

        Returns:
            Result rows as dicts keyed by column label ([] for statements
            that return no rows)
        """
        sql, params = to_bind_params(self._dialect_sql(query), self._dialect_values(values))
        self.logger.debug(
            "Executing query",
            query=" ".join(sql.split()),
            params=len(params),
        )

        with self.engine.begin() as conn:
            result = conn.execute(text(sql), params)
            rows = [dict(row._mapping) for row in result] if result.returns_rows else []

        self.logger.record_query(len(rows))
        return rows

    def dispose(self) -> None:
        self.engine.dispose()
