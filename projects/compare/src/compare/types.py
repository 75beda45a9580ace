"""Type definitions for change detection."""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum

from snapshot.types import Row, column_index
from snapshot.values import NULL, Value


class ChangeType(StrEnum):
    """Kind of difference between two aligned rows."""

    CREATION = "CREATION"
    MODIFICATION = "MODIFICATION"
    DELETION = "DELETION"


@dataclass(frozen=True)
class Change:
    """A created, modified or deleted row of a table."""

    change_type: ChangeType
    table: str
    columns: tuple[str, ...]
    primary_keys: tuple[str, ...] = ()
    before: Row | None = None
    after: Row | None = None

    def __post_init__(self) -> None:
        """Check the rows present match the kind of change."""
        if self.change_type is ChangeType.CREATION and (
            self.before is not None or self.after is None
        ):
            msg = "A creation has a row at end point only"
            raise ValueError(msg)
        if self.change_type is ChangeType.DELETION and (
            self.after is not None or self.before is None
        ):
            msg = "A deletion has a row at start point only"
            raise ValueError(msg)
        if self.change_type is ChangeType.MODIFICATION:
            if self.before is None or self.after is None:
                msg = "A modification has a row at both points"
                raise ValueError(msg)
            if self.before.values == self.after.values:
                msg = "A modification changes at least one column"
                raise ValueError(msg)

    @property
    def key(self) -> tuple[Value, ...]:
        """Primary key values of the changed row."""
        row = self.after if self.after is not None else self.before
        return row.key if row is not None else ()

    def value_at_start(self, column: int | str) -> Value:
        """Value of a column before the change, NULL for a creation."""
        index = column_index(self.columns, column)
        return self.before.values[index] if self.before is not None else NULL

    def value_at_end(self, column: int | str) -> Value:
        """Value of a column after the change, NULL for a deletion."""
        index = column_index(self.columns, column)
        return self.after.values[index] if self.after is not None else NULL

    @property
    def modified_columns(self) -> tuple[int, ...]:
        """Positions of the columns whose value differs between both points."""
        return tuple(
            index
            for index in range(len(self.columns))
            if self.value_at_start(index) != self.value_at_end(index)
        )

    @property
    def modified_column_names(self) -> tuple[str, ...]:
        """Names of the columns whose value differs between both points."""
        return tuple(self.columns[index] for index in self.modified_columns)
