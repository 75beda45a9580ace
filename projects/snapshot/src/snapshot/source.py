"""Data sources that describe and read tables and queries."""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Any, NamedTuple, Protocol

from sqlalchemy import (
    Engine,
    Inspector,
    MetaData,
    Numeric,
    Table,
    create_engine,
    event,
    inspect,
    select,
    text,
)
from sqlalchemy.engine.interfaces import ReflectedColumn
from sqlalchemy.exc import SQLAlchemyError

from snapshot.errors import SourceUnavailableError

type RawRow = tuple[Any, ...]


def plain_numbers(_inspector: Inspector, _table: Table, column: ReflectedColumn) -> None:
    """Read numeric columns as the driver returns them.

    Without native decimals, SQLAlchemy rounds every cell to the column scale.
    """
    column_type = column["type"]
    if isinstance(column_type, Numeric) and column_type.asdecimal:
        column["type"] = Numeric(
            precision=column_type.precision,
            scale=column_type.scale,
            asdecimal=False,
        )


class TableRef(NamedTuple):
    """A table, optionally restricted to some of its columns."""

    name: str
    columns_to_check: Sequence[str] | None = None
    columns_to_exclude: Sequence[str] = ()

    def __str__(self) -> str:
        """Describe the table for messages."""
        return f"{self.name} table"


class QueryRef(NamedTuple):
    """A free-form SQL query."""

    sql: str
    parameters: Mapping[str, Any] | None = None

    def __str__(self) -> str:
        """Describe the query for messages."""
        return f"'{self.sql}' request"


type SourceRef = TableRef | QueryRef


class SchemaDescription(NamedTuple):
    """Column names and primary key names declared by a source."""

    columns: tuple[str, ...]
    primary_keys: tuple[str, ...] = ()


class DataSource(Protocol):
    """Reads schema information and rows from a relational source."""

    @property
    def description(self) -> str:
        """Human readable name of the source."""
        ...

    def table_names(self) -> list[str]:
        """Return the user tables in the order the database lists them."""
        ...

    def describe_schema(self, ref: SourceRef) -> SchemaDescription:
        """Return the columns and primary keys of a table or a query."""
        ...

    def fetch_rows(self, ref: SourceRef, columns: Sequence[str]) -> list[RawRow]:
        """Return the rows with their cells in the order of ``columns``."""
        ...


class EngineSource:
    """A data source reading through a SQLAlchemy engine."""

    def __init__(self, engine: Engine, schema: str | None = None) -> None:
        """Initialize the source with an engine and an optional schema name."""
        self._engine = engine
        self._schema = schema

    @property
    def engine(self) -> Engine:
        """Underlying engine."""
        return self._engine

    @property
    def description(self) -> str:
        """URL of the database without its password."""
        return self._engine.url.render_as_string(hide_password=True)

    def close(self) -> None:
        """Release the pooled connections."""
        self._engine.dispose()

    def table_names(self) -> list[str]:
        """Return the user tables of the schema."""
        try:
            return inspect(self._engine).get_table_names(schema=self._schema)
        except SQLAlchemyError as err:
            raise SourceUnavailableError(self.description, str(err)) from err

    def describe_schema(self, ref: SourceRef) -> SchemaDescription:
        """Describe a table from its metadata, or a query from its result."""
        try:
            if isinstance(ref, QueryRef):
                with self._engine.connect() as connection:
                    result = connection.execute(text(ref.sql), ref.parameters or {})
                    columns = tuple(result.keys())
                    result.close()
                return SchemaDescription(columns)

            # A fresh inspector, its reflection cache would hide later changes
            inspector = inspect(self._engine)
            columns = tuple(
                column["name"]
                for column in inspector.get_columns(ref.name, schema=self._schema)
            )
            primary_key = inspector.get_pk_constraint(ref.name, schema=self._schema)
            return SchemaDescription(
                columns,
                tuple(primary_key.get("constrained_columns") or ()),
            )
        except SQLAlchemyError as err:
            raise SourceUnavailableError(str(ref), str(err)) from err

    def fetch_rows(self, ref: SourceRef, columns: Sequence[str]) -> list[RawRow]:
        """Read rows, ordered by primary key for tables that declare one.

        Query rows keep the columns of their result, names may repeat.
        """
        try:
            with self._engine.connect() as connection:
                if isinstance(ref, QueryRef):
                    result = connection.execute(text(ref.sql), ref.parameters or {})
                    return [tuple(row) for row in result]

                # Reflection gives the column types, so dates arrive as dates
                metadata = MetaData()
                event.listen(metadata, "column_reflect", plain_numbers)
                table = Table(
                    ref.name,
                    metadata,
                    schema=self._schema,
                    autoload_with=connection,
                )
                query = select(*(table.c[name] for name in columns)).order_by(
                    *table.primary_key.columns,
                )
                return [tuple(row) for row in connection.execute(query)]
        # Result processors raise ValueError on cells their type cannot parse
        except (SQLAlchemyError, ValueError) as err:
            raise SourceUnavailableError(str(ref), str(err)) from err


def open_source(url: str, schema: str | None = None) -> EngineSource:
    """Create a data source for a SQLAlchemy database URL."""
    return EngineSource(create_engine(url), schema)
