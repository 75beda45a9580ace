"""Tests for filtering and navigating detected changes."""

from collections.abc import Callable

import pytest

from snapshot.errors import IndexOutOfRangeError
from snapshot.types import SchemaSnapshot, Snapshot
from snapshot.values import normalize

from compare.changes import Changes, describe_filter
from compare.detector import detect_schema_changes
from compare.navigator import ChangeNavigator
from compare.types import ChangeType

type SnapshotFactory = Callable[..., Snapshot]


@pytest.fixture(name="changes")
def create_changes(snapshot_of: SnapshotFactory) -> Changes:
    """Create changes on two tables.

    In order: movie 2 modified, movies 4 and 5 created, movie 3 deleted and
    actor 2 created.
    """
    movie_columns = ("id", "title", "year")
    before = SchemaSnapshot(
        (
            snapshot_of(
                "movie",
                movie_columns,
                [(1, "Alien", 1979), (2, "Avatar", 2009), (3, "The Village", 2004)],
            ),
            snapshot_of("actor", ("id", "name"), [(1, "Weaver")]),
        ),
    )
    after = SchemaSnapshot(
        (
            snapshot_of(
                "movie",
                movie_columns,
                [(1, "Alien", 1979), (2, "Avatar", 2010), (4, "Heat", 1995), (5, "Ran", 1985)],
            ),
            snapshot_of("actor", ("id", "name"), [(1, "Weaver"), (2, "Phoenix")]),
        ),
    )
    return detect_schema_changes(before, after, description="Changes on movies")


def summary(change_list: Changes) -> list[tuple[str, str, int]]:
    """Reduce changes to their type, table and first key value."""
    return [
        (change.change_type.value, change.table, int(change.key[0].as_number()))
        for change in change_list
    ]


def test_detected_order(changes: Changes) -> None:
    """Test the order the fixture relies on."""
    assert summary(changes) == [
        ("MODIFICATION", "movie", 2),
        ("CREATION", "movie", 4),
        ("CREATION", "movie", 5),
        ("DELETION", "movie", 3),
        ("CREATION", "actor", 2),
    ]


def test_next_walks_every_change_then_fails(changes: Changes) -> None:
    """Test that next returns each change once and then reports the end."""
    fetched = [changes.next() for _ in range(len(changes))]

    assert fetched == list(changes)
    with pytest.raises(IndexOutOfRangeError) as info:
        changes.next()
    assert str(info.value) == "Index 5 out of the limits [0, 5["


def test_each_filter_has_its_own_cursor(changes: Changes) -> None:
    """Test that cursors of different filters do not interfere."""
    assert changes.next(ChangeType.CREATION).key == (normalize(4),)
    assert changes.next().change_type is ChangeType.MODIFICATION
    assert changes.next(ChangeType.CREATION).key == (normalize(5),)
    assert changes.next(ChangeType.CREATION, "ACTOR").table == "actor"
    assert changes.next(table="Movie").change_type is ChangeType.MODIFICATION
    assert changes.next(ChangeType.CREATION).table == "actor"

    with pytest.raises(IndexOutOfRangeError):
        changes.next(ChangeType.CREATION)


def test_table_filter_ignores_case(changes: Changes) -> None:
    """Test that MOVIE and movie share one cursor."""
    navigator = ChangeNavigator(changes)
    navigator.next(table="MOVIE")

    assert navigator.cursor(table="movie") == 1


def test_cursor_moves_past_the_furthest_index(changes: Changes) -> None:
    """Test that fetching by index moves the cursor forward but never back."""
    navigator = ChangeNavigator(changes)

    navigator.change(3)
    assert navigator.cursor() == 4
    navigator.change(1)
    assert navigator.cursor() == 4
    assert navigator.next() is changes[4]


def test_change_out_of_range(changes: Changes) -> None:
    """Test that an index outside the view fails and leaves the cursor."""
    navigator = ChangeNavigator(changes)

    with pytest.raises(IndexOutOfRangeError) as info:
        navigator.change(2, ChangeType.DELETION)

    assert info.value.size == 1
    assert navigator.cursor(ChangeType.DELETION) == 0


def test_views_and_changes_are_cached(changes: Changes) -> None:
    """Test that the same coordinates give back the same objects."""
    navigator = changes.navigator

    assert navigator is changes.navigator
    assert navigator.view() is changes
    assert navigator.view(ChangeType.CREATION, "movie") is navigator.view(
        ChangeType.CREATION,
        "MOVIE",
    )
    assert navigator.change(0, ChangeType.CREATION) is navigator.change(0, ChangeType.CREATION)


def test_filters(changes: Changes) -> None:
    """Test the shortcuts filtering by type and by table."""
    assert len(changes.of_creation()) == 3
    assert len(changes.of_modification()) == 1
    assert len(changes.of_deletion()) == 1
    assert len(changes.on_table("ACTOR")) == 1
    assert len(changes.on_table("interpret")) == 0
    assert summary(changes.of_creation().on_table("movie")) == [
        ("CREATION", "movie", 4),
        ("CREATION", "movie", 5),
    ]


def test_filtered_description(changes: Changes) -> None:
    """Test that a filtered view says how it was filtered."""
    assert changes.filter(ChangeType.CREATION, "movie").description == (
        "Changes on movies (only creation changes on movie table)"
    )
    assert describe_filter(None, "actor") == " (only changes on actor table)"
    assert describe_filter(ChangeType.DELETION, None) == " (only deletion changes)"
    assert describe_filter(None, None) == ""


def test_at(changes: Changes) -> None:
    """Test fetching a change by index."""
    assert changes.at(3).change_type is ChangeType.DELETION
    with pytest.raises(IndexOutOfRangeError):
        changes.at(-1)


def test_has_size(changes: Changes) -> None:
    """Test the size check and its message."""
    assert changes.has_size(5) is changes

    with pytest.raises(AssertionError) as info:
        changes.of_deletion().has_size(2)

    assert str(info.value) == (
        "[Changes on movies (only deletion changes)] \n"
        "Expecting size (number of changes) to be equal to :\n"
        "   <2>\n"
        "but was:\n"
        "   <1>"
    )


def test_filter_accepts_type_names(changes: Changes) -> None:
    """Test that a change type given by its name selects the same changes."""
    assert changes.filter("CREATION") == changes.of_creation()  # type: ignore[arg-type]
    assert changes.navigator.view("DELETION") is changes.navigator.view(  # type: ignore[arg-type]
        ChangeType.DELETION,
    )
