"""Relational schema and engine construction for the SQL record stores."""

from __future__ import annotations

import logging
from decimal import ROUND_HALF_UP, Decimal
from typing import Optional

from sqlalchemy import (
    BigInteger,
    Column,
    Date,
    DateTime,
    MetaData,
    String,
    Table,
    create_engine,
    event,
)
from sqlalchemy.engine import Engine
from sqlalchemy.pool import StaticPool
from sqlalchemy.types import TypeDecorator

logger = logging.getLogger(__name__)

metadata = MetaData()

_CENT = Decimal("0.01")


class Cents(TypeDecorator):
    """Decimal amounts stored as an integer count of cents."""

    impl = BigInteger
    cache_ok = True

    def process_bind_param(self, value, dialect) -> Optional[int]:
        if value is None:
            return None
        amount = Decimal(str(value)).quantize(_CENT, rounding=ROUND_HALF_UP)
        return int(amount.scaleb(2))

    def process_result_value(self, value, dialect) -> Optional[Decimal]:
        if value is None:
            return None
        return Decimal(int(value)).scaleb(-2)


categories = Table(
    "categories",
    metadata,
    Column("id", String(36), primary_key=True),
    Column("name", String(100), nullable=False),
    Column("color", String(30)),
)

expenses = Table(
    "expenses",
    metadata,
    Column("id", String(36), primary_key=True),
    Column("amount", Cents(), nullable=False),
    Column("date", Date, nullable=False, index=True),
    # Not a foreign key: expenses may name categories that were never created.
    Column("category_id", String(255), nullable=False, index=True),
    Column("description", String(500)),
    Column("created_at", DateTime(timezone=True), nullable=False),
    Column("updated_at", DateTime(timezone=True)),
)

income = Table(
    "income",
    metadata,
    Column("id", String(36), primary_key=True),
    Column("amount", Cents(), nullable=False),
    Column("date", Date, nullable=False, index=True),
    Column("source", String(255), nullable=False),
    Column("description", String(500)),
    Column("created_at", DateTime(timezone=True), nullable=False),
    Column("updated_at", DateTime(timezone=True)),
)


def _unicode_lower(value: Optional[str]) -> Optional[str]:
    return value.lower() if value is not None else None


def _register_sqlite_functions(dbapi_connection, connection_record) -> None:
    # SQLite's builtin lower() only folds ASCII letters.
    dbapi_connection.create_function("lower", 1, _unicode_lower, deterministic=True)


def make_engine(database_url: str) -> Engine:
    """Create an engine; SQLite URLs get thread-shareable connections."""
    connect_args = {}
    kwargs = {}
    if database_url.startswith("sqlite"):
        connect_args = {"check_same_thread": False}
        if database_url in ("sqlite://", "sqlite:///:memory:"):
            # A single shared connection keeps the in-memory database alive.
            kwargs["poolclass"] = StaticPool
    engine = create_engine(database_url, connect_args=connect_args, **kwargs)
    if engine.dialect.name == "sqlite":
        event.listen(engine, "connect", _register_sqlite_functions)
    return engine


def init_db(engine: Engine) -> None:
    logger.debug("Creating schema on %s", engine.url)
    metadata.create_all(engine)
