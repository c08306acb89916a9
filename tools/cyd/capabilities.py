"""Supported formats and what each of them can represent."""

import datetime
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path as FilePath
from typing import Dict, FrozenSet, Optional

from .errors import InvalidKeyError, UnsupportedFormatError, UnsupportedRootError, UnsupportedValueError
from .values import Datetime, Float, Mapping, Value, ValueKind, walk


class DataFormat(str, Enum):
    """Supported document formats."""

    JSON = "json"
    TOML = "toml"
    YAML = "yaml"

    @classmethod
    def parse(cls, name: str) -> "DataFormat":
        """
        Look up a format by name, case-insensitively.

        Raises:
            UnsupportedFormatError: If the name is not a known format
        """
        normalized = name.strip().lower()
        normalized = _ALIASES.get(normalized, normalized)
        try:
            return cls(normalized)
        except ValueError:
            choices = ", ".join(f.value for f in cls)
            raise UnsupportedFormatError(f"Unsupported format: {name!r} (expected one of {choices})") from None

    @classmethod
    def from_path(cls, path: FilePath) -> "DataFormat":
        """
        Detect the format from a file extension.

        Raises:
            UnsupportedFormatError: If the extension is not recognized
        """
        suffix = FilePath(path).suffix.lower().lstrip(".")
        if not suffix:
            raise UnsupportedFormatError(f"Cannot auto-detect format for: {path}")
        try:
            return cls.parse(suffix)
        except UnsupportedFormatError:
            raise UnsupportedFormatError(f"Cannot auto-detect format for: {path}") from None


_ALIASES = {"yml": "yaml"}


class Narrowing(str, Enum):
    """Fixed downgrades applied when a format lacks a native variant."""

    ISO_STRING = "iso-8601 string"


@dataclass(frozen=True)
class FormatCapabilities:
    """
    What a format can hold natively and how everything else is narrowed.

    Attributes:
        format: The format described
        native: Variants written as themselves
        narrowed: Variants written through a fixed narrowing rule
        mapping_root: Whether the document root must be a mapping
        finite_floats_only: Whether NaN and infinities are rejected
        time_of_day: Narrowing for a bare time of day, if it is not native
    """

    format: DataFormat
    native: FrozenSet[ValueKind]
    narrowed: Dict[ValueKind, Narrowing] = field(default_factory=dict)
    mapping_root: bool = False
    finite_floats_only: bool = False
    time_of_day: Optional[Narrowing] = None

    def narrowing_for(self, value: Value) -> Optional[Narrowing]:
        """Return the narrowing rule applied to ``value``, or None if it is written natively."""
        if value.kind in self.narrowed:
            return self.narrowed[value.kind]
        if isinstance(value, Datetime) and _is_time_of_day(value):
            return self.time_of_day
        return None

    def check(self, root: Value) -> None:
        """
        Validate a whole tree before anything is written.

        Raises:
            UnsupportedRootError: The root kind is not allowed
            UnsupportedValueError: A node cannot be represented
            InvalidKeyError: A mapping key is not a unique string
        """
        fmt = self.format.value
        if self.mapping_root and not isinstance(root, Mapping):
            raise UnsupportedRootError(fmt, root.kind)

        for path, node in walk(root):
            kind = node.kind
            if kind not in self.native and kind not in self.narrowed:
                raise UnsupportedValueError(fmt, path, kind)
            if isinstance(node, Float) and self.finite_floats_only and not node.is_finite:
                raise UnsupportedValueError(fmt, path, kind, f"non-finite float {node.value!r} is not supported")
            if isinstance(node, Mapping):
                _check_keys(fmt, path, node)


def _is_time_of_day(value: Datetime) -> bool:
    return isinstance(value.value, datetime.time)


def _check_keys(fmt: str, path, node: Mapping) -> None:
    seen = set()
    for key, _ in node.entries:
        if not isinstance(key, str) or key in seen:
            raise InvalidKeyError(fmt, path, key)
        seen.add(key)


_COMMON_KINDS = frozenset(
    {ValueKind.BOOL, ValueKind.INTEGER, ValueKind.FLOAT, ValueKind.STRING, ValueKind.SEQUENCE, ValueKind.MAPPING}
)

CAPABILITIES: Dict[DataFormat, FormatCapabilities] = {
    DataFormat.JSON: FormatCapabilities(
        format=DataFormat.JSON,
        native=_COMMON_KINDS | {ValueKind.NULL},
        narrowed={ValueKind.DATETIME: Narrowing.ISO_STRING},
        finite_floats_only=True,
    ),
    DataFormat.TOML: FormatCapabilities(
        format=DataFormat.TOML,
        native=_COMMON_KINDS | {ValueKind.DATETIME},
        mapping_root=True,
    ),
    DataFormat.YAML: FormatCapabilities(
        format=DataFormat.YAML,
        native=_COMMON_KINDS | {ValueKind.NULL, ValueKind.DATETIME},
        time_of_day=Narrowing.ISO_STRING,
    ),
}
