"""Typed values for the cells of a snapshot.

Every raw cell read from a data source is normalized into a ``Value``: a small
tagged record whose ``value_type`` is one of the closed set of ``ValueType``
members. Comparisons and equality dispatch on that tag, never on the Python type
of the driver object.
"""

from __future__ import annotations

import re
from collections.abc import Hashable
from dataclasses import dataclass
from datetime import date, datetime, time
from decimal import Decimal
from enum import StrEnum
from numbers import Integral, Real
from typing import Any, NamedTuple, cast

from snapshot.errors import TypeMismatchError

TIME_PATTERN = re.compile(r"(\d{1,2}):(\d{2})(?::(\d{2})(?:\.(\d{1,9}))?)?")
NANOS_PER_MICRO = 1_000
NAN = Decimal("NaN")


class ValueType(StrEnum):
    """Semantic types a cell can be normalized into."""

    BOOLEAN = "BOOLEAN"
    NUMBER = "NUMBER"
    TEXT = "TEXT"
    DATE = "DATE"
    TIME = "TIME"
    DATE_TIME = "DATE_TIME"
    BYTES = "BYTES"
    NOT_IDENTIFIED = "NOT_IDENTIFIED"
    NULL = "NULL"


class DateValue(NamedTuple):
    """A calendar date without time of day."""

    year: int
    month: int
    day: int

    @classmethod
    def of(cls, year: int, month: int, day: int) -> DateValue:
        """Build a date, rejecting days that do not exist."""
        return cls.from_python(date(year, month, day))

    @classmethod
    def from_python(cls, value: date) -> DateValue:
        """Convert a ``datetime.date``."""
        return cls(value.year, value.month, value.day)

    @classmethod
    def parse(cls, text: str) -> DateValue:
        """Parse a ``YYYY-MM-DD`` text."""
        try:
            return cls.from_python(date.fromisoformat(text.strip()))
        except ValueError as err:
            msg = f"Cannot convert '{text}' to date"
            raise ValueError(msg) from err

    def __str__(self) -> str:
        """Render as ``YYYY-MM-DD``."""
        return f"{self.year:04d}-{self.month:02d}-{self.day:02d}"


class TimeValue(NamedTuple):
    """A time of day with nanosecond precision."""

    hours: int
    minutes: int
    seconds: int = 0
    nanoseconds: int = 0

    @classmethod
    def of(
        cls,
        hours: int,
        minutes: int,
        seconds: int = 0,
        nanoseconds: int = 0,
    ) -> TimeValue:
        """Build a time, rejecting components out of their range."""
        if not (
            0 <= hours < 24  # noqa: PLR2004
            and 0 <= minutes < 60  # noqa: PLR2004
            and 0 <= seconds < 60  # noqa: PLR2004
            and 0 <= nanoseconds < 1_000_000_000  # noqa: PLR2004
        ):
            msg = f"Invalid time {hours}:{minutes}:{seconds}.{nanoseconds}"
            raise ValueError(msg)
        return cls(hours, minutes, seconds, nanoseconds)

    @classmethod
    def from_python(cls, value: time) -> TimeValue:
        """Convert a ``datetime.time``, dropping any time zone."""
        return cls(
            value.hour,
            value.minute,
            value.second,
            value.microsecond * NANOS_PER_MICRO,
        )

    @classmethod
    def parse(cls, text: str) -> TimeValue:
        """Parse ``HH:MM``, ``HH:MM:SS`` or ``HH:MM:SS.fffffffff``."""
        match = TIME_PATTERN.fullmatch(text.strip())
        if not match:
            msg = f"Cannot convert '{text}' to time"
            raise ValueError(msg)
        hours, minutes, seconds, fraction = match.groups()
        return cls.of(
            int(hours),
            int(minutes),
            int(seconds or 0),
            int((fraction or "").ljust(9, "0")),
        )

    def __str__(self) -> str:
        """Render as ``HH:MM:SS.nnnnnnnnn``."""
        return (
            f"{self.hours:02d}:{self.minutes:02d}:{self.seconds:02d}"
            f".{self.nanoseconds:09d}"
        )


MIDNIGHT = TimeValue(0, 0, 0, 0)


class DateTimeValue(NamedTuple):
    """A calendar date with a time of day."""

    date: DateValue
    time: TimeValue = MIDNIGHT

    @classmethod
    def of(cls, date_value: DateValue, time_value: TimeValue = MIDNIGHT) -> DateTimeValue:
        """Combine a date and a time, midnight when the time is omitted."""
        return cls(date_value, time_value)

    @classmethod
    def from_python(cls, value: datetime) -> DateTimeValue:
        """Convert a ``datetime.datetime``, dropping any time zone."""
        return cls(DateValue.from_python(value.date()), TimeValue.from_python(value.time()))

    @classmethod
    def parse(cls, text: str) -> DateTimeValue:
        """Parse ``YYYY-MM-DD`` optionally followed by ``T`` or a space and a time."""
        date_part, _, time_part = text.strip().replace(" ", "T", 1).partition("T")
        if not time_part:
            return cls(DateValue.parse(date_part))
        return cls(DateValue.parse(date_part), TimeValue.parse(time_part))

    @property
    def is_midnight(self) -> bool:
        """Whether the time of day is zero."""
        return self.time == MIDNIGHT

    def __str__(self) -> str:
        """Render as ``YYYY-MM-DDTHH:MM:SS.nnnnnnnnn``."""
        return f"{self.date}T{self.time}"


CALENDAR_TYPES = (ValueType.DATE, ValueType.DATE_TIME)
ORDERED_TYPES = (
    ValueType.BOOLEAN,
    ValueType.NUMBER,
    ValueType.TEXT,
    ValueType.TIME,
    ValueType.BYTES,
)
PARSED_FROM_TEXT = (ValueType.DATE, ValueType.TIME, ValueType.DATE_TIME)


@dataclass(frozen=True, slots=True, eq=False)
class Value:
    """A normalized cell: a semantic type and its content."""

    value_type: ValueType
    content: Any = None

    def __eq__(self, other: object) -> bool:
        """Compare with the semantic equality of ``equals``."""
        if not isinstance(other, Value):
            return NotImplemented
        return equals(self, other)

    def __hash__(self) -> int:
        """Hash consistently with ``equals``."""
        if self.value_type in CALENDAR_TYPES:
            return hash(_as_date_time(self))
        if _is_nan(self):
            return hash((self.value_type, "NaN"))
        if isinstance(self.content, Hashable):
            return hash((self.value_type, self.content))
        return hash(self.value_type)

    def __str__(self) -> str:
        """Render the content the way failure messages show it."""
        match self.value_type:
            case ValueType.NULL:
                return "null"
            case ValueType.BOOLEAN:
                return "true" if self.content else "false"
            case ValueType.BYTES:
                return f"0x{self.content.hex()}"
            case _:
                return str(self.content)

    @property
    def is_null(self) -> bool:
        """Whether the cell is NULL."""
        return self.value_type is ValueType.NULL

    def as_boolean(self) -> bool:
        """Return the content of a BOOLEAN value."""
        return cast("bool", self._content_of(ValueType.BOOLEAN))

    def as_number(self) -> Decimal:
        """Return the exact decimal of a NUMBER value."""
        return cast("Decimal", self._content_of(ValueType.NUMBER))

    def as_text(self) -> str:
        """Return the content of a TEXT value."""
        return cast("str", self._content_of(ValueType.TEXT))

    def as_date(self) -> DateValue:
        """Return the content of a DATE value."""
        return cast("DateValue", self._content_of(ValueType.DATE))

    def as_time(self) -> TimeValue:
        """Return the content of a TIME value."""
        return cast("TimeValue", self._content_of(ValueType.TIME))

    def as_date_time(self) -> DateTimeValue:
        """Return a DATE_TIME value, or a DATE value at midnight."""
        expect_type(self, *CALENDAR_TYPES)
        return _as_date_time(self)

    def as_bytes(self) -> bytes:
        """Return the content of a BYTES value."""
        return cast("bytes", self._content_of(ValueType.BYTES))

    def _content_of(self, value_type: ValueType) -> object:
        expect_type(self, value_type)
        return self.content


NULL = Value(ValueType.NULL)


def normalize(raw: object) -> Value:  # noqa: C901, PLR0911
    """Classify a driver-native cell into a ``Value``."""
    if isinstance(raw, Value):
        return raw
    if raw is None:
        return NULL
    if isinstance(raw, bytes | bytearray | memoryview):
        return Value(ValueType.BYTES, bytes(raw))
    # bool is an Integral, so it must be tested first
    if isinstance(raw, bool):
        return Value(ValueType.BOOLEAN, raw)
    if isinstance(raw, Decimal):
        return Value(ValueType.NUMBER, NAN if raw.is_nan() else raw)
    if isinstance(raw, Integral):
        return Value(ValueType.NUMBER, Decimal(int(raw)))
    if isinstance(raw, Real):
        # repr keeps the shortest text of the float instead of its binary expansion
        return Value(ValueType.NUMBER, Decimal(repr(float(raw))))
    if isinstance(raw, DateTimeValue):
        return Value(ValueType.DATE_TIME, raw)
    if isinstance(raw, DateValue):
        return Value(ValueType.DATE, raw)
    if isinstance(raw, TimeValue):
        return Value(ValueType.TIME, raw)
    # datetime is a subclass of date, so it must be tested first
    if isinstance(raw, datetime):
        return Value(ValueType.DATE_TIME, DateTimeValue.from_python(raw))
    if isinstance(raw, date):
        return Value(ValueType.DATE, DateValue.from_python(raw))
    if isinstance(raw, time):
        return Value(ValueType.TIME, TimeValue.from_python(raw))
    if isinstance(raw, str):
        return Value(ValueType.TEXT, raw)
    return Value(ValueType.NOT_IDENTIFIED, raw)


def _is_nan(value: Value) -> bool:
    return value.value_type is ValueType.NUMBER and value.content.is_nan()


def _as_date_time(value: Value) -> DateTimeValue:
    if value.value_type is ValueType.DATE:
        return DateTimeValue(value.content)
    return cast("DateTimeValue", value.content)


def equals(first: object, second: object) -> bool:
    """Semantic equality of two cells.

    A DATE equals a DATE_TIME at midnight of the same day, numbers compare as
    exact decimals, NaN equals NaN and NULL only equals NULL. Values of
    unrelated types are simply unequal.
    """
    first, second = normalize(first), normalize(second)
    if first.value_type in CALENDAR_TYPES and second.value_type in CALENDAR_TYPES:
        return _as_date_time(first) == _as_date_time(second)
    if first.value_type is not second.value_type:
        return False
    if _is_nan(first) or _is_nan(second):
        return _is_nan(first) and _is_nan(second)
    return bool(first.content == second.content)


def compare(first: object, second: object) -> int:
    """Order two cells of the same type, returning -1, 0 or 1.

    NaN sorts after every other number and equals itself.

    Raises:
        TypeMismatchError: the values have no common order.

    """
    first, second = normalize(first), normalize(second)
    if first.value_type in CALENDAR_TYPES:
        expect_type(second, *CALENDAR_TYPES)
        left: Any = _as_date_time(first)
        right: Any = _as_date_time(second)
    elif first.value_type in ORDERED_TYPES:
        expect_type(second, first.value_type)
        if _is_nan(first) or _is_nan(second):
            return int(_is_nan(first)) - int(_is_nan(second))
        left, right = first.content, second.content
    else:
        raise TypeMismatchError(
            first.value_type,
            (*ORDERED_TYPES, *CALENDAR_TYPES),
            first,
        )
    return (left > right) - (left < right)


def expect_type(value: Value, *expected: ValueType) -> Value:
    """Return the value when its type is one of the expected ones.

    Raises:
        TypeMismatchError: the value has another type.

    """
    if value.value_type not in expected:
        raise TypeMismatchError(value.value_type, expected, value)
    return value


def compatible_types(value_type: ValueType) -> tuple[ValueType, ...]:
    """Types an actual value may have to be compared with an expectation."""
    if value_type in CALENDAR_TYPES:
        return CALENDAR_TYPES
    return (value_type,)


def _parse_as(value_type: ValueType, text: str) -> Value:
    if value_type is ValueType.TIME:
        return normalize(TimeValue.parse(text))
    return normalize(DateTimeValue.parse(text))


def matches(value: Value, expected: object) -> bool:
    """Check an actual value against an expected object.

    The expected object is normalized first. Text is parsed when the actual
    value is a date, a time or a date/time. A null on either side never fails
    on its type.

    Raises:
        TypeMismatchError: the actual value cannot be compared with the
            expected one.

    """
    wanted = normalize(expected)
    if value.is_null or wanted.is_null:
        return value.is_null and wanted.is_null
    if wanted.value_type is ValueType.TEXT and value.value_type in PARSED_FROM_TEXT:
        try:
            wanted = _parse_as(value.value_type, wanted.content)
        except ValueError as err:
            raise TypeMismatchError(ValueType.TEXT, (value.value_type,), wanted) from err
        return equals(value, wanted)
    expect_type(value, *compatible_types(wanted.value_type))
    return equals(value, wanted)
