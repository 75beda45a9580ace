"""Detect the changes between two snapshots of the same tables."""

from __future__ import annotations

from itertools import chain
from logging import getLogger
from typing import TYPE_CHECKING

from snapshot.errors import SchemaMismatchError

from compare.changes import Changes
from compare.index import KeyIndex
from compare.types import Change, ChangeType

if TYPE_CHECKING:
    from collections.abc import Iterator

    from snapshot.types import SchemaSnapshot, Snapshot

logger = getLogger(__name__)


def _folded(names: tuple[str, ...]) -> tuple[str, ...]:
    return tuple(name.casefold() for name in names)


def check_compatible(before: Snapshot, after: Snapshot) -> None:
    """Check that two snapshots describe the same table.

    Raises:
        SchemaMismatchError: names, columns or primary keys differ.

    """
    if before.name.casefold() != after.name.casefold():
        raise SchemaMismatchError(after.name, (before.name,), (after.name,), "names")
    if _folded(before.columns) != _folded(after.columns):
        raise SchemaMismatchError(after.name, before.columns, after.columns)
    if _folded(before.primary_keys) != _folded(after.primary_keys):
        raise SchemaMismatchError(
            after.name,
            before.primary_keys,
            after.primary_keys,
            "primary keys",
        )


def compare_rows(before: Snapshot, after: Snapshot) -> Iterator[Change]:
    """Align rows on their key and classify each pair.

    Creations and modifications come in the order of the rows at end point,
    deletions afterwards in the order of the rows at start point. Without a
    primary key, rows align by position: a row inserted or deleted in the
    middle shifts every following pair and shows up as modifications.
    """
    remaining = KeyIndex.of(before)
    for key, new_row in KeyIndex.of(after).items():
        old_row = remaining.pop(key)
        if old_row is None:
            yield Change(
                ChangeType.CREATION,
                after.name,
                after.columns,
                after.primary_keys,
                after=new_row,
            )
        elif old_row.values != new_row.values:
            yield Change(
                ChangeType.MODIFICATION,
                after.name,
                after.columns,
                after.primary_keys,
                before=old_row,
                after=new_row,
            )

    for old_row in remaining:
        yield Change(
            ChangeType.DELETION,
            before.name,
            before.columns,
            before.primary_keys,
            before=old_row,
        )


def created(snapshot: Snapshot) -> Iterator[Change]:
    """Every row of a snapshot as a creation."""
    # Indexing rejects duplicate keys
    KeyIndex.of(snapshot)
    return (
        Change(
            ChangeType.CREATION,
            snapshot.name,
            snapshot.columns,
            snapshot.primary_keys,
            after=row,
        )
        for row in snapshot.rows
    )


def deleted(snapshot: Snapshot) -> Iterator[Change]:
    """Every row of a snapshot as a deletion."""
    # Indexing rejects duplicate keys
    KeyIndex.of(snapshot)
    return (
        Change(
            ChangeType.DELETION,
            snapshot.name,
            snapshot.columns,
            snapshot.primary_keys,
            before=row,
        )
        for row in snapshot.rows
    )


def table_changes(before: Snapshot | None, after: Snapshot | None) -> list[Change]:
    """Changes of one table, either side may be missing."""
    if after is None:
        if before is None:
            return []
        name, changes = before.name, list(deleted(before))
    elif before is None:
        name, changes = after.name, list(created(after))
    else:
        check_compatible(before, after)
        name, changes = after.name, list(compare_rows(before, after))

    logger.debug("Detected %d changes on %s", len(changes), name)
    return changes


def detect_changes(
    before: Snapshot | None,
    after: Snapshot | None,
    *,
    description: str = "",
) -> Changes:
    """Detect the changes of a table or a query between two snapshots.

    A missing start point makes every row a creation, a missing end point
    makes every row a deletion.

    Raises:
        DuplicateKeyError: a primary key appears twice in one snapshot.
        SchemaMismatchError: the snapshots do not describe the same columns.

    """
    return Changes(table_changes(before, after), description)


def detect_schema_changes(
    before: SchemaSnapshot | None,
    after: SchemaSnapshot | None,
    *,
    description: str = "",
) -> Changes:
    """Detect the changes of every table, table by table.

    Tables come in the order of the end point, followed by the
    tables that only exist at start point.
    """
    after_names = list(after or ())
    before_only = [
        name for name in before or () if after is None or name not in after
    ]
    return Changes(
        chain.from_iterable(
            table_changes(
                before[name] if before is not None and name in before else None,
                after[name] if after is not None and name in after else None,
            )
            for name in chain(after_names, before_only)
        ),
        description,
    )
