"""Tests for recording changes on databases and exporting them."""

import json
from collections.abc import Iterator
from datetime import date
from pathlib import Path
from sqlite3 import connect

import pytest
from sqlalchemy import create_engine

from snapshot.reader import build_snapshot
from snapshot.source import EngineSource, QueryRef, TableRef
from snapshot.values import normalize

from compare.main import (
    ChangeRecorder,
    changes_to_json,
    compare_sources,
    snapshot_to_json,
    value_to_json,
)
from compare.types import ChangeType

SCHEMA = """
    CREATE TABLE movie (
        id INTEGER PRIMARY KEY,
        title TEXT NOT NULL,
        release DATE
    );
    CREATE TABLE actor (
        id INTEGER PRIMARY KEY,
        name TEXT
    );
    INSERT INTO movie VALUES (1, 'Alien', '1979-05-25');
    INSERT INTO movie VALUES (2, 'Avatar', '2009-12-18');
    INSERT INTO actor VALUES (1, 'Weaver');
"""


def create_database(location: Path) -> Path:
    """Create the movies database at the given location."""
    conn = connect(location)
    conn.executescript(SCHEMA)
    conn.commit()
    conn.close()
    return location


def execute(location: Path, *statements: str) -> None:
    """Run statements on a database and commit them."""
    conn = connect(location)
    for statement in statements:
        conn.execute(statement)
    conn.commit()
    conn.close()


@pytest.fixture(name="movies_db")
def create_movies_db(tmp_path: Path) -> Path:
    """Create a movies database."""
    return create_database(tmp_path / "movies.db")


@pytest.fixture(name="source")
def create_source(movies_db: Path) -> Iterator[EngineSource]:
    """Create a data source over the movies database."""
    source = EngineSource(create_engine(f"sqlite:///{movies_db}"))
    yield source
    source.close()


def test_recorder_on_a_table(movies_db: Path, source: EngineSource) -> None:
    """Test recording the changes of one table between two points."""
    recorder = ChangeRecorder(source, TableRef("movie")).start_point()
    execute(
        movies_db,
        "UPDATE movie SET title = 'Avatar 2' WHERE id = 2",
        "INSERT INTO movie VALUES (3, 'The Village', '2004-07-30')",
        "DELETE FROM movie WHERE id = 1",
        "INSERT INTO actor VALUES (2, 'Phoenix')",
    )
    changes = recorder.end_point()

    assert [(change.change_type, change.key) for change in changes] == [
        (ChangeType.MODIFICATION, (normalize(2),)),
        (ChangeType.CREATION, (normalize(3),)),
        (ChangeType.DELETION, (normalize(1),)),
    ]
    assert changes[0].modified_column_names == ("title",)
    assert changes.description.startswith("Changes on movie table of 'sqlite:///")


def test_recorder_on_a_query(movies_db: Path, source: EngineSource) -> None:
    """Test that query rows align by position."""
    recorder = ChangeRecorder(source, QueryRef("SELECT title FROM movie ORDER BY id"))
    recorder.start_point()
    execute(movies_db, "UPDATE movie SET title = 'Aliens' WHERE id = 1")

    changes = recorder.end_point()

    assert len(changes) == 1
    assert changes[0].value_at_end("title") == normalize("Aliens")


def test_recorder_on_every_table(movies_db: Path, source: EngineSource) -> None:
    """Test that without references every table is recorded, new ones included."""
    recorder = ChangeRecorder(source).start_point()
    execute(
        movies_db,
        "CREATE TABLE interpret (id INTEGER PRIMARY KEY, role TEXT)",
        "INSERT INTO interpret VALUES (1, 'Ripley')",
        "DELETE FROM actor",
    )

    changes = recorder.end_point()

    assert [(change.table, change.change_type) for change in changes] == [
        ("actor", ChangeType.DELETION),
        ("interpret", ChangeType.CREATION),
    ]
    assert recorder.description.startswith("Changes on tables of ")


def test_recorder_without_changes(source: EngineSource) -> None:
    """Test that an untouched database has no changes."""
    recorder = ChangeRecorder(source).start_point()

    assert len(recorder.end_point()) == 0


def test_end_point_needs_start_point(source: EngineSource) -> None:
    """Test that the end point cannot be captured first."""
    with pytest.raises(RuntimeError, match="Start point"):
        ChangeRecorder(source, TableRef("movie")).end_point()


def test_compare_sources(tmp_path: Path) -> None:
    """Test comparing two copies of a database, all tables or only some."""
    before_db = create_database(tmp_path / "before.db")
    after_db = create_database(tmp_path / "after.db")
    execute(
        after_db,
        "UPDATE movie SET release = '2009-12-17' WHERE id = 2",
        "INSERT INTO actor VALUES (2, 'Phoenix')",
    )
    before = EngineSource(create_engine(f"sqlite:///{before_db}"))
    after = EngineSource(create_engine(f"sqlite:///{after_db}"))

    everything = compare_sources(before, after)
    only_movies = compare_sources(before, after, ["movie"])
    before.close()
    after.close()

    assert [(change.table, change.change_type) for change in everything] == [
        ("actor", ChangeType.CREATION),
        ("movie", ChangeType.MODIFICATION),
    ]
    assert everything.description.startswith("Changes from 'sqlite:///")
    assert [change.table for change in only_movies] == ["movie"]
    assert only_movies[0].value_at_end("release").as_date() == (2009, 12, 17)


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        (None, None),
        (True, True),
        (12, "12"),
        ("Alien", "Alien"),
        (b"\x89P", "8950"),
        (date(1979, 5, 25), "1979-05-25"),
    ],
)
def test_value_to_json(raw: object, expected: object) -> None:
    """Test the JSON form of each type of value."""
    assert value_to_json(normalize(raw)) == expected


def test_changes_to_json(movies_db: Path, source: EngineSource) -> None:
    """Test the JSON document of detected changes."""
    recorder = ChangeRecorder(source, TableRef("movie")).start_point()
    execute(
        movies_db,
        "UPDATE movie SET title = 'Avatar 2' WHERE id = 2",
        "DELETE FROM movie WHERE id = 1",
    )
    changes = recorder.end_point()

    document = json.loads(changes_to_json(changes))
    assert len(document["changes"]) == 2
    assert document["changes"][0] == {
        "type": "MODIFICATION",
        "table": "movie",
        "primary_keys": ["id"],
        "key": ["2"],
        "columns": ["id", "title", "release"],
        "modified_columns": ["title"],
        "before": ["2", "Avatar", "2009-12-18"],
        "after": ["2", "Avatar 2", "2009-12-18"],
    }
    assert document["changes"][1]["after"] is None

    deletions = json.loads(changes_to_json(changes, ChangeType.DELETION))
    assert [change["type"] for change in deletions["changes"]] == ["DELETION"]
    assert deletions["description"].endswith("(only deletion changes)")


def test_snapshot_to_json(source: EngineSource) -> None:
    """Test the JSON document of a snapshot."""
    document = json.loads(snapshot_to_json(build_snapshot(source, TableRef("actor"))))

    assert document == {
        "name": "actor",
        "columns": ["id", "name"],
        "primary_keys": ["id"],
        "rows": [["1", "Weaver"]],
    }


def test_recorder_sees_every_decimal(movies_db: Path, source: EngineSource) -> None:
    """Test that a numeric change past the tenth decimal is recorded."""
    execute(
        movies_db,
        "CREATE TABLE measure (id INTEGER PRIMARY KEY, amount NUMERIC)",
        "INSERT INTO measure VALUES (1, 3.14159265358979)",
    )
    recorder = ChangeRecorder(source, TableRef("measure")).start_point()
    execute(movies_db, "UPDATE measure SET amount = 3.14159265358978 WHERE id = 1")

    changes = recorder.end_point()

    assert len(changes) == 1
    assert str(changes[0].value_at_end("amount")) == "3.14159265358978"
