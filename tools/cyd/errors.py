"""Exceptions raised by the conversion core."""

from enum import Enum
from typing import Optional

from .values import Path, ValueKind, format_path


class Phase(str, Enum):
    """Stage of a conversion that produced an error."""

    DECODE = "decode"
    QUERY = "query"
    ENCODE = "encode"


class CydError(Exception):
    """Base exception for all conversion errors."""


class UnsupportedFormatError(CydError, ValueError):
    """Format name or file extension is not one of json, toml, yaml."""


class DecodeError(CydError):
    """Input does not parse as a valid document of its format."""

    def __init__(
        self,
        format: str,
        message: str,
        line: Optional[int] = None,
        column: Optional[int] = None,
        offset: Optional[int] = None,
        path: Optional[Path] = None,
    ):
        self.format = format
        self.message = message
        self.line = line
        self.column = column
        self.offset = offset
        self.path = path
        super().__init__(str(self))

    @property
    def location(self) -> Optional[str]:
        if self.line is not None:
            if self.column is not None:
                return f"line {self.line}, column {self.column}"
            return f"line {self.line}"
        if self.offset is not None:
            return f"byte {self.offset}"
        if self.path is not None:
            return f"at {format_path(self.path)}"
        return None

    def __str__(self) -> str:
        location = self.location
        if location:
            return f"invalid {self.format} ({location}): {self.message}"
        return f"invalid {self.format}: {self.message}"


class QueryError(CydError):
    """A JMESPath query could not be compiled or evaluated."""

    def __init__(self, expression: str, message: str):
        self.expression = expression
        self.message = message
        super().__init__(f"query {expression!r} failed: {message}")


class EncodeError(CydError):
    """A valid document cannot be represented in the target format."""

    def __init__(self, format: str, message: str):
        self.format = format
        self.message = message
        super().__init__(f"cannot encode as {format}: {message}")


class UnsupportedRootError(EncodeError):
    """The target format does not allow this kind of value at the root."""

    def __init__(self, format: str, variant: ValueKind):
        self.variant = variant
        super().__init__(format, f"document root must be a mapping, got {variant.value}")


class UnsupportedValueError(EncodeError):
    """A node in the tree has no representation in the target format."""

    def __init__(self, format: str, path: Path, variant: ValueKind, reason: Optional[str] = None):
        self.path = path
        self.variant = variant
        self.reason = reason
        detail = reason or f"{variant.value} values are not supported"
        super().__init__(format, f"{detail} (at {format_path(path)})")


class InvalidKeyError(EncodeError):
    """A mapping key is not a string or is repeated."""

    def __init__(self, format: str, path: Path, key: object):
        self.path = path
        self.key = key
        super().__init__(format, f"invalid mapping key {key!r} (at {format_path(path)})")


class ConversionError(CydError):
    """
    Failure of one conversion, tagged with the phase that failed.

    Attributes:
        phase: Which side of the conversion failed
        cause: The underlying DecodeError, QueryError or EncodeError
    """

    def __init__(self, phase: Phase, cause: CydError):
        self.phase = phase
        self.cause = cause
        super().__init__(f"{phase.value} failed: {cause}")
