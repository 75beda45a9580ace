"""Shared fixtures for change detection tests."""

from collections.abc import Callable, Sequence

import pytest

from snapshot.types import Row, Snapshot
from snapshot.values import normalize

type SnapshotFactory = Callable[..., Snapshot]


def make_snapshot(
    name: str,
    columns: Sequence[str],
    rows: Sequence[Sequence[object]],
    primary_keys: Sequence[str] = ("id",),
) -> Snapshot:
    """Build a snapshot from raw cells, keyed on the named columns."""
    positions = [list(columns).index(key) for key in primary_keys]
    built = []
    for raw_row in rows:
        values = tuple(normalize(cell) for cell in raw_row)
        built.append(Row(values, tuple(values[position] for position in positions)))
    return Snapshot(name, tuple(columns), tuple(primary_keys), tuple(built))


@pytest.fixture(name="snapshot_of")
def create_snapshot_factory() -> SnapshotFactory:
    """Provide a factory of in-memory snapshots."""
    return make_snapshot
