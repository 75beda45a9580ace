"""Snapshots of relational sources as normalized, typed values."""

from snapshot.errors import (
    DbDeltaError,
    DuplicateKeyError,
    IndexOutOfRangeError,
    SchemaMismatchError,
    SourceUnavailableError,
    TypeMismatchError,
    UnknownColumnError,
)
from snapshot.reader import build_schema_snapshot, build_snapshot
from snapshot.source import (
    DataSource,
    EngineSource,
    QueryRef,
    SchemaDescription,
    SourceRef,
    TableRef,
    open_source,
)
from snapshot.types import Column, Row, SchemaSnapshot, Snapshot
from snapshot.values import (
    NULL,
    DateTimeValue,
    DateValue,
    TimeValue,
    Value,
    ValueType,
    compare,
    equals,
    expect_type,
    matches,
    normalize,
)

__all__ = [
    "NULL",
    "Column",
    "DataSource",
    "DateTimeValue",
    "DateValue",
    "DbDeltaError",
    "DuplicateKeyError",
    "EngineSource",
    "IndexOutOfRangeError",
    "QueryRef",
    "Row",
    "SchemaDescription",
    "SchemaMismatchError",
    "SchemaSnapshot",
    "Snapshot",
    "SourceRef",
    "SourceUnavailableError",
    "TableRef",
    "TimeValue",
    "TypeMismatchError",
    "UnknownColumnError",
    "Value",
    "ValueType",
    "build_schema_snapshot",
    "build_snapshot",
    "compare",
    "equals",
    "expect_type",
    "matches",
    "normalize",
    "open_source",
]
