"""Database connection, transaction handling and schema bootstrap."""

from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import TYPE_CHECKING, Any, Iterator, Optional

from sqlalchemy import (
    Column,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    MetaData,
    Numeric,
    String,
    Table,
    Text,
    create_engine,
    event,
    func,
)
from sqlalchemy.engine import Connection, CursorResult, Engine, RowMapping, make_url
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.pool import StaticPool

from invimport.exceptions import PersistenceFailure

if TYPE_CHECKING:
    from invimport.config import ImportConfig
    from invimport.entities import Entity

logger = logging.getLogger(__name__)

metadata = MetaData()

customers = Table(
    "customers",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("name", String(255), nullable=False),
    Column("address", Text, nullable=False),
    Column("created_at", DateTime, server_default=func.current_timestamp()),
    Column("updated_at", DateTime, server_default=func.current_timestamp()),
    Index("ix_customers_name", "name"),
)

products = Table(
    "products",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("name", String(255), nullable=False),
    Column("price", Numeric(10, 2), nullable=False),
    Column("created_at", DateTime, server_default=func.current_timestamp()),
    Column("updated_at", DateTime, server_default=func.current_timestamp()),
    Index("ix_products_name", "name"),
)

invoices = Table(
    "invoices",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("customer_id", Integer, ForeignKey("customers.id"), nullable=False),
    Column("invoice_date", DateTime, nullable=False),
    Column("grand_total", Numeric(10, 2), nullable=False),
    Column("created_at", DateTime, server_default=func.current_timestamp()),
    Column("updated_at", DateTime, server_default=func.current_timestamp()),
    Index("ix_invoices_customer_id", "customer_id"),
)

invoice_items = Table(
    "invoice_items",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column(
        "invoice_id",
        Integer,
        ForeignKey("invoices.id", ondelete="CASCADE"),
        nullable=False,
    ),
    Column("product_id", Integer, ForeignKey("products.id"), nullable=False),
    Column("quantity", Integer, nullable=False),
    Column("price", Numeric(10, 2), nullable=False),
    Column("total", Numeric(10, 2), nullable=False),
    Column("created_at", DateTime, server_default=func.current_timestamp()),
    Column("updated_at", DateTime, server_default=func.current_timestamp()),
    Index("ix_invoice_items_invoice_id", "invoice_id"),
)


def _enable_sqlite_foreign_keys(dbapi_connection: Any, connection_record: Any) -> None:
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


class Database:
    """
    Owns one live connection and at most one explicit transaction.

    Statements run outside an explicit transaction are committed
    immediately. Entities inserted inside a transaction are tracked so a
    rollback can strip the identity the stores already assigned to them.

    Example:
        >>> with Database("sqlite://") as db:
        ...     db.init_schema()
        ...     db.begin_transaction()
        ...     db.commit()
    """

    def __init__(self, url: str, *, echo: bool = False) -> None:
        self.url = make_url(url)
        self.echo = echo
        self._engine: Optional[Engine] = None
        self._connection: Optional[Connection] = None
        self._transaction: Any = None
        self._pending_inserts: list[Entity] = []

    @classmethod
    def from_config(cls, config: ImportConfig) -> "Database":
        """Build a database for the configured URL, creating the SQLite dir."""
        config.ensure_database_dir()
        return cls(config.database_url, echo=config.sql_echo)

    def __enter__(self) -> "Database":
        self.connect()
        return self

    def __exit__(self, *args: Any) -> None:
        self.disconnect()

    @property
    def is_sqlite(self) -> bool:
        return self.url.get_backend_name() == "sqlite"

    @property
    def in_transaction(self) -> bool:
        return self._transaction is not None

    def _create_engine(self) -> Engine:
        kwargs: dict[str, Any] = {"echo": self.echo}
        if self.is_sqlite:
            kwargs["connect_args"] = {"check_same_thread": False}
            if self.url.database in (None, "", ":memory:"):
                kwargs["poolclass"] = StaticPool

        engine = create_engine(self.url, **kwargs)
        if self.is_sqlite:
            event.listen(engine, "connect", _enable_sqlite_foreign_keys)
        return engine

    def connect(self) -> Connection:
        """Return the live connection, opening it on first use."""
        if self._connection is None:
            if self._engine is None:
                self._engine = self._create_engine()
            try:
                self._connection = self._engine.connect()
            except SQLAlchemyError as e:
                raise PersistenceFailure(f"Could not connect to database: {e}") from e
            logger.debug("Connected to %s", self.url.render_as_string(hide_password=True))
        return self._connection

    def disconnect(self) -> None:
        """Close the connection and dispose of the engine."""
        if self._connection is not None:
            if self._transaction is not None:
                self.rollback()
            self._connection.close()
            self._connection = None
            logger.debug("Disconnected from %s", self.url.render_as_string(hide_password=True))
        if self._engine is not None:
            self._engine.dispose()
            self._engine = None

    def begin_transaction(self) -> bool:
        """Start an explicit transaction spanning every following statement."""
        connection = self.connect()
        if self._transaction is not None:
            raise PersistenceFailure("A transaction is already active")
        try:
            self._transaction = connection.begin()
        except SQLAlchemyError as e:
            raise PersistenceFailure(f"Could not begin transaction: {e}") from e
        return True

    def commit(self) -> bool:
        """Commit the explicit transaction. Returns False if none is active."""
        if self._transaction is None:
            return False

        transaction, self._transaction = self._transaction, None
        try:
            transaction.commit()
        except SQLAlchemyError as e:
            if transaction.is_active:
                transaction.rollback()
            self._discard_pending_inserts()
            raise PersistenceFailure(f"Commit failed: {e}") from e

        self._pending_inserts.clear()
        return True

    def rollback(self) -> bool:
        """Roll back the explicit transaction. Returns False if none is active."""
        if self._transaction is None:
            return False

        transaction, self._transaction = self._transaction, None
        try:
            transaction.rollback()
        except SQLAlchemyError as e:
            raise PersistenceFailure(f"Rollback failed: {e}") from e
        finally:
            self._discard_pending_inserts()
        return True

    def track_insert(self, entity: Entity) -> None:
        """Remember an entity inserted inside the current transaction."""
        if self._transaction is not None:
            self._pending_inserts.append(entity)

    def _discard_pending_inserts(self) -> None:
        if self._pending_inserts:
            logger.debug(
                "Clearing identity of %d entities from rolled back transaction",
                len(self._pending_inserts),
            )
        for entity in self._pending_inserts:
            entity.clear_identity()
        self._pending_inserts.clear()

    @contextmanager
    def _autocommit(self) -> Iterator[Connection]:
        connection = self.connect()
        try:
            yield connection
            if self._transaction is None and connection.in_transaction():
                connection.commit()
        except SQLAlchemyError as e:
            if self._transaction is None and connection.in_transaction():
                connection.rollback()
            raise PersistenceFailure(f"Database operation failed: {e}") from e

    def execute(self, statement: Any) -> CursorResult:
        """Run a write statement."""
        with self._autocommit() as connection:
            return connection.execute(statement)

    def fetch_one(self, statement: Any) -> Optional[RowMapping]:
        """Run a query and return its first row, if any."""
        with self._autocommit() as connection:
            return connection.execute(statement).mappings().first()

    def fetch_all(self, statement: Any) -> list[RowMapping]:
        """Run a query and return all rows."""
        with self._autocommit() as connection:
            return list(connection.execute(statement).mappings().all())

    def init_schema(self) -> None:
        """Create the customers, products, invoices and invoice_items tables."""
        with self._autocommit() as connection:
            metadata.create_all(connection)
        logger.info("Database schema ready")
