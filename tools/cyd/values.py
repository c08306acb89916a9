"""Format-neutral intermediate value model.

Every decoder builds a tree of these nodes and every encoder consumes one.
Nodes are frozen dataclasses holding tuples, so a tree cannot be mutated
or share mutable sub-nodes once built.
"""

import datetime
import math
from dataclasses import dataclass
from enum import Enum
from typing import Any, Iterator, Tuple, Union

INT64_MIN = -(2**63)
INT64_MAX = 2**63 - 1

PathElement = Union[str, int]
Path = Tuple[PathElement, ...]

DatetimeLike = Union[datetime.datetime, datetime.date, datetime.time]


class ValueKind(str, Enum):
    """Variant tags of the intermediate model."""

    NULL = "null"
    BOOL = "bool"
    INTEGER = "integer"
    FLOAT = "float"
    STRING = "string"
    DATETIME = "datetime"
    SEQUENCE = "sequence"
    MAPPING = "mapping"


@dataclass(frozen=True)
class Null:
    kind = ValueKind.NULL


@dataclass(frozen=True)
class Bool:
    value: bool
    kind = ValueKind.BOOL


@dataclass(frozen=True)
class Integer:
    """A 64-bit signed integer."""

    value: int
    kind = ValueKind.INTEGER

    def __post_init__(self):
        if isinstance(self.value, bool) or not isinstance(self.value, int):
            raise TypeError(f"Integer expects int, got {type(self.value).__name__}")
        if not INT64_MIN <= self.value <= INT64_MAX:
            raise ValueError(f"Integer out of 64-bit range: {self.value}")


@dataclass(frozen=True)
class Float:
    value: float
    kind = ValueKind.FLOAT

    @property
    def is_finite(self) -> bool:
        return math.isfinite(self.value)


@dataclass(frozen=True)
class String:
    value: str
    kind = ValueKind.STRING


@dataclass(frozen=True)
class Datetime:
    """
    A timestamp, calendar date or time of day.

    Offsets are normalized to ``datetime.timezone`` so parser-specific
    tzinfo classes never leak into the model.
    """

    value: DatetimeLike
    kind = ValueKind.DATETIME

    def __post_init__(self):
        value = self.value
        if isinstance(value, (datetime.datetime, datetime.time)) and value.tzinfo is not None:
            offset = value.utcoffset()
            if offset is not None and not isinstance(value.tzinfo, datetime.timezone):
                object.__setattr__(self, "value", value.replace(tzinfo=datetime.timezone(offset)))

    def isoformat(self) -> str:
        """ISO-8601 rendering used when a format has no native datetime."""
        return self.value.isoformat()


@dataclass(frozen=True)
class Sequence:
    items: Tuple["Value", ...] = ()
    kind = ValueKind.SEQUENCE

    def __iter__(self) -> Iterator["Value"]:
        return iter(self.items)

    def __len__(self) -> int:
        return len(self.items)


@dataclass(frozen=True, eq=False)
class Mapping:
    """
    Ordered string-keyed mapping.

    Iteration keeps insertion order; equality ignores it, like ``dict``.
    """

    entries: Tuple[Tuple[str, "Value"], ...] = ()
    kind = ValueKind.MAPPING

    def __post_init__(self):
        seen = set()
        for key, _ in self.entries:
            if not isinstance(key, str):
                raise ValueError(f"Mapping key must be a string, got {type(key).__name__}")
            if key in seen:
                raise ValueError(f"Duplicate mapping key: {key!r}")
            seen.add(key)

    def keys(self) -> Tuple[str, ...]:
        return tuple(key for key, _ in self.entries)

    def get(self, key: str, default: Any = None) -> Any:
        for k, v in self.entries:
            if k == key:
                return v
        return default

    def __getitem__(self, key: str) -> "Value":
        for k, v in self.entries:
            if k == key:
                return v
        raise KeyError(key)

    def __iter__(self) -> Iterator[Tuple[str, "Value"]]:
        return iter(self.entries)

    def __len__(self) -> int:
        return len(self.entries)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Mapping):
            return NotImplemented
        return dict(self.entries) == dict(other.entries)

    def __hash__(self) -> int:
        return hash(frozenset(self.entries))


Value = Union[Null, Bool, Integer, Float, String, Datetime, Sequence, Mapping]

NULL = Null()


def from_python(obj: Any) -> Value:
    """
    Build a value tree from plain Python data.

    Integers outside the 64-bit range become ``Float``; this mirrors how
    JSON and YAML parsers type numbers they cannot hold as integers.

    Raises:
        TypeError: If an object has no counterpart in the model
        ValueError: If an integer is too large even for a float
    """
    if obj is None:
        return NULL
    if isinstance(obj, bool):
        return Bool(obj)
    if isinstance(obj, int):
        if INT64_MIN <= obj <= INT64_MAX:
            return Integer(obj)
        try:
            return Float(float(obj))
        except OverflowError:
            raise ValueError("integer is too large to represent as a float") from None
    if isinstance(obj, float):
        return Float(obj)
    if isinstance(obj, str):
        return String(obj)
    if isinstance(obj, (datetime.datetime, datetime.date, datetime.time)):
        return Datetime(obj)
    if isinstance(obj, dict):
        return Mapping(tuple((key, from_python(item)) for key, item in obj.items()))
    if isinstance(obj, (list, tuple)):
        return Sequence(tuple(from_python(item) for item in obj))
    raise TypeError(f"Cannot represent {type(obj).__name__} as a value")


def to_python(value: Value) -> Any:
    """Convert a value tree back into plain Python data."""
    if isinstance(value, Null):
        return None
    if isinstance(value, Mapping):
        return {key: to_python(item) for key, item in value.entries}
    if isinstance(value, Sequence):
        return [to_python(item) for item in value.items]
    return value.value


def walk(value: Value, path: Path = ()) -> Iterator[Tuple[Path, Value]]:
    """Yield ``(path, node)`` for every node, depth first, parents first."""
    yield path, value
    if isinstance(value, Mapping):
        for key, item in value.entries:
            yield from walk(item, path + (key,))
    elif isinstance(value, Sequence):
        for index, item in enumerate(value.items):
            yield from walk(item, path + (index,))


def format_path(path: Path) -> str:
    """Render a path like ``servers.alpha.ports[0]``; the root is ``<root>``."""
    if not path:
        return "<root>"
    parts = []
    for element in path:
        if isinstance(element, int):
            parts.append(f"[{element}]")
        elif parts:
            parts.append(f".{element}")
        else:
            parts.append(str(element))
    return "".join(parts)
