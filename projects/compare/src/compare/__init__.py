"""Change detection between snapshots of relational sources."""

from compare.changes import Changes
from compare.detector import detect_changes, detect_schema_changes
from compare.main import (
    ChangeRecorder,
    changes_to_json,
    compare_sources,
    snapshot_to_json,
)
from compare.navigator import ChangeNavigator
from compare.types import Change, ChangeType

__all__ = [
    "Change",
    "ChangeNavigator",
    "ChangeRecorder",
    "ChangeType",
    "Changes",
    "changes_to_json",
    "compare_sources",
    "detect_changes",
    "detect_schema_changes",
    "snapshot_to_json",
]
