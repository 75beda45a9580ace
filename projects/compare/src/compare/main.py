"""Record and compare snapshots of data sources."""

from __future__ import annotations

import json
from itertools import chain
from typing import TYPE_CHECKING, Any, cast

from snapshot.reader import build_schema_snapshot, build_snapshot
from snapshot.values import ValueType

from compare.changes import Changes
from compare.detector import detect_schema_changes, table_changes

if TYPE_CHECKING:
    from collections.abc import Iterable

    from snapshot.source import DataSource, SourceRef
    from snapshot.types import Row, SchemaSnapshot, Snapshot
    from snapshot.values import Value

    from compare.types import Change, ChangeType


class ChangeRecorder:
    """Capture a start point and an end point of a source and detect the changes.

    Without references, every table of the source is captured.
    """

    def __init__(self, source: DataSource, *refs: SourceRef) -> None:
        """Initialize the recorder for the given tables or queries."""
        self.source = source
        self.refs = refs
        self._start: tuple[Snapshot, ...] | SchemaSnapshot | None = None

    @property
    def description(self) -> str:
        """Describe what is recorded."""
        if not self.refs:
            return f"Changes on tables of '{self.source.description}' source"
        targets = ", ".join(str(ref) for ref in self.refs)
        return f"Changes on {targets} of '{self.source.description}' source"

    def _capture(self) -> tuple[Snapshot, ...] | SchemaSnapshot:
        if not self.refs:
            return build_schema_snapshot(self.source)
        return tuple(build_snapshot(self.source, ref) for ref in self.refs)

    def start_point(self) -> ChangeRecorder:
        """Capture the state before the changes."""
        self._start = self._capture()
        return self

    def end_point(self) -> Changes:
        """Capture the state after the changes and return the changes.

        Raises:
            RuntimeError: the start point was not captured.

        """
        if self._start is None:
            msg = "Start point must be set before end point"
            raise RuntimeError(msg)

        end = self._capture()
        if self.refs:
            pairs = zip(
                cast("tuple[Snapshot, ...]", self._start),
                cast("tuple[Snapshot, ...]", end),
                strict=True,
            )
            return Changes(
                chain.from_iterable(table_changes(before, after) for before, after in pairs),
                self.description,
            )
        return detect_schema_changes(
            cast("SchemaSnapshot", self._start),
            cast("SchemaSnapshot", end),
            description=self.description,
        )


def compare_sources(
    before: DataSource,
    after: DataSource,
    tables: Iterable[str] | None = None,
) -> Changes:
    """Compare the tables of two sources, all of them by default."""
    names = None if tables is None else list(tables)
    return detect_schema_changes(
        build_schema_snapshot(before, names),
        build_schema_snapshot(after, names),
        description=f"Changes from '{before.description}' to '{after.description}'",
    )


def value_to_json(value: Value) -> Any:  # noqa: ANN401
    """Convert a value to JSON, numbers as text to keep every digit."""
    match value.value_type:
        case ValueType.NULL:
            return None
        case ValueType.BOOLEAN:
            return value.content
        case ValueType.BYTES:
            return value.content.hex()
        case _:
            return str(value)


def _row_to_json(row: Row | None) -> list[Any] | None:
    return None if row is None else [value_to_json(value) for value in row.values]


def change_to_json(change: Change) -> dict[str, Any]:
    """Convert a change to a JSON-ready dictionary."""
    return {
        "type": change.change_type.value,
        "table": change.table,
        "primary_keys": list(change.primary_keys),
        "key": [value_to_json(value) for value in change.key],
        "columns": list(change.columns),
        "modified_columns": list(change.modified_column_names),
        "before": _row_to_json(change.before),
        "after": _row_to_json(change.after),
    }


def changes_to_json(
    changes: Changes,
    change_type: ChangeType | None = None,
    table: str | None = None,
) -> str:
    """Convert changes to a JSON string, optionally filtered."""
    selected = changes.filter(change_type, table)
    return json.dumps(
        {
            "description": selected.description,
            "changes": [change_to_json(change) for change in selected],
        },
        ensure_ascii=False,
    )


def snapshot_to_json(snapshot: Snapshot) -> str:
    """Convert a snapshot to a JSON string."""
    return json.dumps(
        {
            "name": snapshot.name,
            "columns": list(snapshot.columns),
            "primary_keys": list(snapshot.primary_keys),
            "rows": [_row_to_json(row) for row in snapshot.rows],
        },
        ensure_ascii=False,
    )
