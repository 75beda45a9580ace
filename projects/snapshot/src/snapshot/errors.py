"""Exceptions raised while reading snapshots and comparing them."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Iterable


class DbDeltaError(Exception):
    """Base class for every structured failure of the library."""


class SourceUnavailableError(DbDeltaError):
    """The data source could not produce the schema or the rows."""

    def __init__(self, source: str, reason: str) -> None:
        """Keep the source description and the reason for display."""
        self.source = source
        self.reason = reason
        super().__init__(f"Source {source!r} is unavailable: {reason}")


class SchemaMismatchError(DbDeltaError):
    """Two snapshots of the same table disagree on their columns."""

    def __init__(
        self,
        table: str | None,
        before: Iterable[str],
        after: Iterable[str],
        what: str = "columns",
    ) -> None:
        """Keep both name lists so the difference can be reported."""
        self.table = table
        self.before = tuple(before)
        self.after = tuple(after)
        self.what = what
        super().__init__(
            f"The {what} of {table or 'request'} differ: "
            f"{list(self.before)} at start, {list(self.after)} at end",
        )


class DuplicateKeyError(DbDeltaError):
    """A primary key appears on more than one row of a snapshot."""

    def __init__(self, table: str | None, key: tuple[object, ...]) -> None:
        """Keep the offending key."""
        self.table = table
        self.key = key
        shown = ", ".join(str(value) for value in key)
        super().__init__(f"Duplicate primary key ({shown}) in {table or 'request'}")


class TypeMismatchError(DbDeltaError, AssertionError):
    """A value is not of the type an expectation requires."""

    def __init__(self, actual: object, expected: Iterable[object], value: object) -> None:
        """Name the actual type, the accepted types and the value."""
        self.actual = actual
        self.expected = tuple(expected)
        self.value = value
        accepted = ", ".join(str(kind) for kind in self.expected)
        super().__init__(
            f"Expecting:\n  <{value}>\nto be of type\n  <[{accepted}]>\n"
            f"but was of type\n  <{actual}>",
        )


class IndexOutOfRangeError(DbDeltaError, IndexError):
    """A navigation index is outside of ``[0, size)``."""

    def __init__(self, index: int, size: int) -> None:
        """Keep the attempted index and the exclusive bound."""
        self.index = index
        self.size = size
        super().__init__(f"Index {index} out of the limits [0, {size}[")


class UnknownColumnError(DbDeltaError, KeyError):
    """A column name does not exist in a snapshot."""

    def __init__(self, name: str, columns: Iterable[str]) -> None:
        """Keep the requested name and the available ones."""
        self.name = name
        self.columns = tuple(columns)
        super().__init__(f"Column <{name}> does not exist in {list(self.columns)}")

    def __str__(self) -> str:
        """Avoid the quoting ``KeyError`` applies to its argument."""
        return str(self.args[0])
