"""Rows, columns and snapshots of a tabular source."""

from __future__ import annotations

from collections.abc import Iterator, Mapping
from dataclasses import dataclass
from typing import NamedTuple

from snapshot.errors import IndexOutOfRangeError, UnknownColumnError
from snapshot.values import Value


def column_index(columns: tuple[str, ...], column: int | str) -> int:
    """Resolve a column position or a case-insensitive column name."""
    if isinstance(column, int):
        if not 0 <= column < len(columns):
            raise IndexOutOfRangeError(column, len(columns))
        return column
    wanted = column.casefold()
    for index, name in enumerate(columns):
        if name.casefold() == wanted:
            return index
    raise UnknownColumnError(column, columns)


class Row(NamedTuple):
    """Values of one row in column order, with the primary key of the row."""

    values: tuple[Value, ...]
    key: tuple[Value, ...] = ()

    def value(self, index: int) -> Value:
        """Return the value at the given column position."""
        if not 0 <= index < len(self.values):
            raise IndexOutOfRangeError(index, len(self.values))
        return self.values[index]


class Column(NamedTuple):
    """Values of one column in row order."""

    name: str
    values: tuple[Value, ...]

    def value(self, index: int) -> Value:
        """Return the value at the given row position."""
        if not 0 <= index < len(self.values):
            raise IndexOutOfRangeError(index, len(self.values))
        return self.values[index]

    def has_name(self, name: str) -> bool:
        """Compare names ignoring case."""
        return self.name.casefold() == name.casefold()


@dataclass(frozen=True)
class Snapshot:
    """Normalized content of a table or a query at one instant."""

    name: str
    columns: tuple[str, ...]
    primary_keys: tuple[str, ...]
    rows: tuple[Row, ...]

    def __post_init__(self) -> None:
        """Check that every row is aligned with the columns."""
        for position, row in enumerate(self.rows):
            if len(row.values) != len(self.columns):
                msg = (
                    f"Row {position} of {self.name} has {len(row.values)} values "
                    f"for {len(self.columns)} columns"
                )
                raise ValueError(msg)
            if len(row.key) != len(self.primary_keys):
                msg = f"Row {position} of {self.name} has an incomplete primary key"
                raise ValueError(msg)

    def __len__(self) -> int:
        """Number of rows."""
        return len(self.rows)

    @property
    def is_keyed(self) -> bool:
        """Whether rows can be aligned on a primary key."""
        return bool(self.primary_keys)

    def column(self, column: int | str) -> Column:
        """Return a column by position or by case-insensitive name."""
        index = column_index(self.columns, column)
        return Column(self.columns[index], tuple(row.values[index] for row in self.rows))

    @property
    def columns_list(self) -> list[Column]:
        """Every column in order."""
        return [self.column(index) for index in range(len(self.columns))]

    def row(self, index: int) -> Row:
        """Return a row by position."""
        if not 0 <= index < len(self.rows):
            raise IndexOutOfRangeError(index, len(self.rows))
        return self.rows[index]


class SchemaSnapshot(Mapping[str, Snapshot]):
    """Snapshots of several tables, in the order they were given."""

    def __init__(self, snapshots: tuple[Snapshot, ...] = ()) -> None:
        """Index the snapshots by case-insensitive table name."""
        self._snapshots = {snapshot.name.casefold(): snapshot for snapshot in snapshots}

    def __getitem__(self, name: str) -> Snapshot:
        """Return the snapshot of a table."""
        return self._snapshots[name.casefold()]

    def __iter__(self) -> Iterator[str]:
        """Iterate over table names in the order they were given."""
        return (snapshot.name for snapshot in self._snapshots.values())

    def __len__(self) -> int:
        """Number of tables."""
        return len(self._snapshots)

    def __contains__(self, name: object) -> bool:
        """Case-insensitive membership."""
        return isinstance(name, str) and name.casefold() in self._snapshots
