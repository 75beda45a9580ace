"""Cursor and index navigation over a sequence of changes."""

from __future__ import annotations

from typing import TYPE_CHECKING, cast

if TYPE_CHECKING:
    from compare.changes import Changes
    from compare.types import Change, ChangeType

type FilterKey = tuple[ChangeType | None, str | None]
type PointKey = tuple[ChangeType | None, str | None, int]


class ChangeNavigator:
    """Navigate changes by filter, by index or one after the other.

    Each (type, table) filter has its own cursor. A cursor starts at 0, moves to
    one past the last index fetched under its filter and never goes back.
    Filtered views and fetched changes are cached, so navigating twice to the
    same coordinates does not filter again.

    Cursors and caches are plain dicts: a navigator belongs to one sequential
    caller.
    """

    def __init__(self, changes: Changes) -> None:
        """Initialize empty cursors and cache for the given changes."""
        self._changes = changes
        self._cursors: dict[FilterKey, int] = {}
        self._cache: dict[FilterKey | PointKey, Changes | Change] = {}

    @staticmethod
    def _filter_key(change_type: ChangeType | None, table: str | None) -> FilterKey:
        return (change_type, table.casefold() if table is not None else None)

    def view(
        self,
        change_type: ChangeType | None = None,
        table: str | None = None,
    ) -> Changes:
        """Return the changes of a type and/or on a table."""
        key = self._filter_key(change_type, table)
        if key not in self._cache:
            self._cache[key] = (
                self._changes
                if key == (None, None)
                else self._changes.filter(change_type, table)
            )
        return cast("Changes", self._cache[key])

    def cursor(
        self,
        change_type: ChangeType | None = None,
        table: str | None = None,
    ) -> int:
        """Index the next call to ``next`` fetches for this filter."""
        return self._cursors.get(self._filter_key(change_type, table), 0)

    def change(
        self,
        index: int,
        change_type: ChangeType | None = None,
        table: str | None = None,
    ) -> Change:
        """Return the change at an index of a filtered view.

        Raises:
            IndexOutOfRangeError: the index is outside the view.

        """
        filter_key = self._filter_key(change_type, table)
        point_key = (*filter_key, index)
        if point_key not in self._cache:
            self._cache[point_key] = self.view(change_type, table).at(index)
        self._cursors[filter_key] = max(self._cursors.get(filter_key, 0), index + 1)
        return cast("Change", self._cache[point_key])

    def next(
        self,
        change_type: ChangeType | None = None,
        table: str | None = None,
    ) -> Change:
        """Return the change at the cursor of the filter and move the cursor.

        Raises:
            IndexOutOfRangeError: every change of the view was already fetched.

        """
        return self.change(self.cursor(change_type, table), change_type, table)
