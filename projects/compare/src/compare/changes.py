"""Immutable sequences of changes and their filtered views."""

from __future__ import annotations

from collections.abc import Iterable, Iterator, Sequence
from functools import cached_property
from typing import overload

from snapshot.errors import IndexOutOfRangeError

from compare.navigator import ChangeNavigator
from compare.types import Change, ChangeType


def describe_filter(change_type: ChangeType | None, table: str | None) -> str:
    """Describe a filter the way views append it to their description."""
    if change_type is None and table is None:
        return ""
    kind = f" {change_type.lower()}" if change_type is not None else ""
    on_table = f" on {table} table" if table is not None else ""
    return f" (only{kind} changes{on_table})"


class Changes(Sequence[Change]):
    """Ordered changes detected between two points in time.

    The description only names the source for messages and takes no part in
    equality.
    """

    def __init__(self, changes: Iterable[Change] = (), description: str = "") -> None:
        """Freeze the changes."""
        self._changes = tuple(changes)
        self.description = description

    @overload
    def __getitem__(self, index: int) -> Change: ...

    @overload
    def __getitem__(self, index: slice) -> Sequence[Change]: ...

    def __getitem__(self, index: int | slice) -> Change | Sequence[Change]:
        """Return a change or a slice of changes."""
        return self._changes[index]

    def __len__(self) -> int:
        """Number of changes."""
        return len(self._changes)

    def __iter__(self) -> Iterator[Change]:
        """Iterate in detection order."""
        return iter(self._changes)

    def __eq__(self, other: object) -> bool:
        """Compare the changes only."""
        if not isinstance(other, Changes):
            return NotImplemented
        return self._changes == other._changes

    def __hash__(self) -> int:
        """Hash the changes only."""
        return hash(self._changes)

    def __repr__(self) -> str:
        """Show the description and the size."""
        return f"Changes({self.description!r}, size={len(self)})"

    def filter(
        self,
        change_type: ChangeType | None = None,
        table: str | None = None,
    ) -> Changes:
        """Return the changes of a type and/or on a table, matched ignoring case."""
        selected: Iterable[Change] = self._changes
        if change_type is not None:
            selected = (change for change in selected if change.change_type == change_type)
        if table is not None:
            wanted = table.casefold()
            selected = (change for change in selected if change.table.casefold() == wanted)
        return Changes(selected, self.description + describe_filter(change_type, table))

    def of_creation(self) -> Changes:
        """Only the creations."""
        return self.filter(ChangeType.CREATION)

    def of_modification(self) -> Changes:
        """Only the modifications."""
        return self.filter(ChangeType.MODIFICATION)

    def of_deletion(self) -> Changes:
        """Only the deletions."""
        return self.filter(ChangeType.DELETION)

    def on_table(self, table: str) -> Changes:
        """Only the changes on a table."""
        return self.filter(table=table)

    def at(self, index: int) -> Change:
        """Return the change at an index.

        Raises:
            IndexOutOfRangeError: the index is outside ``[0, len(self))``.

        """
        if not 0 <= index < len(self._changes):
            raise IndexOutOfRangeError(index, len(self._changes))
        return self._changes[index]

    @cached_property
    def navigator(self) -> ChangeNavigator:
        """Navigator holding the cursors of this sequence."""
        return ChangeNavigator(self)

    def next(
        self,
        change_type: ChangeType | None = None,
        table: str | None = None,
    ) -> Change:
        """Return the change after the last one fetched with the same filter."""
        return self.navigator.next(change_type, table)

    def has_size(self, expected: int) -> Changes:
        """Check the number of changes.

        Raises:
            AssertionError: the size differs.

        """
        if len(self._changes) != expected:
            msg = (
                f"[{self.description}] \n"
                f"Expecting size (number of changes) to be equal to :\n"
                f"   <{expected}>\n"
                f"but was:\n"
                f"   <{len(self._changes)}>"
            )
            raise AssertionError(msg)
        return self
