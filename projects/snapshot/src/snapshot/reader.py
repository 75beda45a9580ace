"""Materialize tables and queries into snapshots of normalized values."""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING

from snapshot.errors import SourceUnavailableError
from snapshot.source import QueryRef, TableRef
from snapshot.types import Row, SchemaSnapshot, Snapshot
from snapshot.values import normalize

if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence

    from snapshot.source import DataSource, SourceRef

logger = getLogger(__name__)


def _position(columns: Sequence[str], name: str) -> int | None:
    wanted = name.casefold()
    return next(
        (index for index, column in enumerate(columns) if column.casefold() == wanted),
        None,
    )


def select_columns(ref: SourceRef, available: Sequence[str]) -> tuple[str, ...]:
    """Return the columns to read, following the inclusion list when there is one.

    Names are matched ignoring case and returned with the spelling of the source.

    Raises:
        SourceUnavailableError: an included column does not exist in the source.

    """
    if isinstance(ref, QueryRef):
        return tuple(available)

    selected: list[str] = []
    if ref.columns_to_check is None:
        selected.extend(available)
    else:
        for name in ref.columns_to_check:
            position = _position(available, name)
            if position is None:
                raise SourceUnavailableError(str(ref), f"no column named {name}")
            selected.append(available[position])

    excluded = {name.casefold() for name in ref.columns_to_exclude}
    return tuple(name for name in selected if name.casefold() not in excluded)


def build_snapshot(source: DataSource, ref: SourceRef) -> Snapshot:
    """Read a table or a query and normalize every cell.

    Primary key values are read even when a key column is not checked, so rows
    of a restricted table can still be aligned on their key.
    """
    description = source.describe_schema(ref)
    columns = select_columns(ref, description.columns)
    hidden_keys = tuple(
        name for name in description.primary_keys if _position(columns, name) is None
    )
    read_columns = columns + hidden_keys
    folded = [name.casefold() for name in read_columns]
    key_positions = [folded.index(name.casefold()) for name in description.primary_keys]

    rows: list[Row] = []
    for raw_row in source.fetch_rows(ref, read_columns):
        values = tuple(normalize(cell) for cell in raw_row)
        rows.append(
            Row(
                values=values[: len(columns)],
                key=tuple(values[position] for position in key_positions),
            ),
        )

    name = ref.name if isinstance(ref, TableRef) else ref.sql
    if isinstance(ref, TableRef) and not description.primary_keys:
        logger.warning("Table %s declares no primary key, rows align by position", name)
    logger.debug("Snapshot of %s: %d columns, %d rows", ref, len(columns), len(rows))

    return Snapshot(
        name=name,
        columns=columns,
        primary_keys=description.primary_keys,
        rows=tuple(rows),
    )


def build_schema_snapshot(
    source: DataSource,
    tables: Iterable[str] | None = None,
) -> SchemaSnapshot:
    """Snapshot every table of the source, or only the given ones."""
    names = source.table_names() if tables is None else list(tables)
    return SchemaSnapshot(tuple(build_snapshot(source, TableRef(name)) for name in names))
