"""Keyed indexing of snapshot rows for alignment."""

from __future__ import annotations

from collections.abc import Callable, Iterator

from snapshot.errors import DuplicateKeyError
from snapshot.types import Row, Snapshot
from snapshot.values import Value, normalize

type Key = tuple[Value, ...]
type IndexKey = tuple[str, Key]
type Indexer = Callable[[int, Row], IndexKey]


def create_row_indexer(snapshot: Snapshot) -> Indexer:
    """Create the indexer aligning rows on primary key, or on position without one."""
    if snapshot.is_keyed:

        def key_indexer(_position: int, row: Row) -> IndexKey:
            return ("PK", row.key)

        return key_indexer

    def position_indexer(position: int, _row: Row) -> IndexKey:
        return ("POSITION", (normalize(position),))

    return position_indexer


class KeyIndex:
    """Rows by key, iterated in insertion order."""

    def __init__(self, indexer: Indexer, table: str) -> None:
        """Initialize the index with an indexer function."""
        self._indexer = indexer
        self._table = table
        self._rows: dict[IndexKey, Row] = {}

    @classmethod
    def of(cls, snapshot: Snapshot) -> KeyIndex:
        """Index every row of a snapshot."""
        index = cls(create_row_indexer(snapshot), snapshot.name)
        for position, row in enumerate(snapshot.rows):
            index.add(position, row)
        return index

    def add(self, position: int, row: Row) -> None:
        """Add a row under its key.

        Raises:
            DuplicateKeyError: another row already has the same key.

        """
        key = self._indexer(position, row)
        if key in self._rows:
            raise DuplicateKeyError(self._table, key[1])
        self._rows[key] = row

    def pop(self, key: IndexKey) -> Row | None:
        """Remove and return the row with the given key, if any."""
        return self._rows.pop(key, None)

    def items(self) -> Iterator[tuple[IndexKey, Row]]:
        """Iterate over keys and rows in insertion order."""
        return iter(tuple(self._rows.items()))

    def __iter__(self) -> Iterator[Row]:
        """Iterate over all remaining rows."""
        return iter(tuple(self._rows.values()))

    def __len__(self) -> int:
        """Number of remaining rows."""
        return len(self._rows)
