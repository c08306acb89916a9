"""Conversion driver: decode, optionally query, then encode."""

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Optional, Union

import jmespath
import jmespath.exceptions

from shared.logger import get_logger

from .capabilities import DataFormat
from .decoders import decode
from .encoders import EncodeOptions, encode
from .errors import ConversionError, CydError, DecodeError, EncodeError, Phase, QueryError
from .values import Value, from_python, to_python

logger = get_logger(__name__)


class ConversionState(str, Enum):
    """Lifecycle of a single conversion."""

    IDLE = "idle"
    DECODING = "decoding"
    QUERYING = "querying"
    ENCODING = "encoding"
    DONE = "done"
    ERROR = "error"


@dataclass
class ConvertOptions:
    """
    Settings for one conversion.

    Attributes:
        query: Optional JMESPath expression applied between decode and encode
        encode: Output layout settings
    """

    query: Optional[str] = None
    encode: EncodeOptions = field(default_factory=EncodeOptions)


def apply_query(value: Value, expression: str) -> Value:
    """
    Select part of a value tree with a JMESPath expression.

    Raises:
        QueryError: If the expression is invalid or cannot be evaluated
    """
    try:
        result = jmespath.search(expression, to_python(value))
    except jmespath.exceptions.JMESPathError as e:
        raise QueryError(expression, str(e)) from e
    try:
        return from_python(result)
    except TypeError as e:
        raise QueryError(expression, str(e)) from e


class Conversion:
    """
    One decode → query → encode run between two formats.

    A Conversion is single-use: it builds its own value tree, hands it to
    the encoder once, and ends in DONE or ERROR.

    Attributes:
        source: Input format
        target: Output format
        options: Conversion settings
        state: Current lifecycle state
        error: The failure, once state is ERROR
    """

    def __init__(self, source: DataFormat, target: DataFormat, options: Optional[ConvertOptions] = None):
        self.source = source
        self.target = target
        self.options = options or ConvertOptions()
        self.state = ConversionState.IDLE
        self.error: Optional[ConversionError] = None

    def run(self, data: Union[bytes, str]) -> bytes:
        """
        Convert a complete document.

        Args:
            data: Input document

        Returns:
            Output document bytes

        Raises:
            ConversionError: Tagged with the phase that failed
            RuntimeError: If the conversion was already run
        """
        if self.state is not ConversionState.IDLE:
            raise RuntimeError(f"Conversion already ran (state: {self.state.value})")

        self.state = ConversionState.DECODING
        try:
            value = decode(data, self.source)
        except DecodeError as e:
            raise self._fail(Phase.DECODE, e) from e

        if self.options.query:
            self.state = ConversionState.QUERYING
            try:
                value = apply_query(value, self.options.query)
            except QueryError as e:
                raise self._fail(Phase.QUERY, e) from e

        self.state = ConversionState.ENCODING
        try:
            output = encode(value, self.target, self.options.encode)
        except EncodeError as e:
            raise self._fail(Phase.ENCODE, e) from e

        self.state = ConversionState.DONE
        logger.debug(f"Converted {self.source.value} → {self.target.value} ({len(output)} bytes)")
        return output

    def _fail(self, phase: Phase, cause: CydError) -> ConversionError:
        self.state = ConversionState.ERROR
        self.error = ConversionError(phase, cause)
        logger.debug(f"Conversion {self.source.value} → {self.target.value} failed in {phase.value}: {cause}")
        return self.error


def convert(
    data: Union[bytes, str],
    source_format: DataFormat,
    target_format: DataFormat,
    options: Optional[ConvertOptions] = None,
) -> bytes:
    """
    Convert a document from one format to another.

    Raises:
        ConversionError: If decoding, querying or encoding fails
    """
    return Conversion(source_format, target_format, options).run(data)


class DataConverter:
    """
    Convert between JSON, YAML, and TOML formats.

    Thin facade over the decoders, encoders and conversion driver.
    """

    def __init__(self, options: Optional[ConvertOptions] = None):
        """
        Initialize data converter.

        Args:
            options: Default settings for conversions
        """
        self.options = options or ConvertOptions()
        logger.debug("Initialized DataConverter")

    def decode(self, data: Union[bytes, str], format: DataFormat) -> Value:
        """Parse a document into a value tree."""
        return decode(data, format)

    def encode(self, value: Value, format: DataFormat) -> bytes:
        """Render a value tree with this converter's layout settings."""
        return encode(value, format, self.options.encode)

    def query(self, value: Value, query_str: str) -> Value:
        """Select part of a value tree with JMESPath."""
        return apply_query(value, query_str)

    def convert(self, data: Union[bytes, str], from_format: DataFormat, to_format: DataFormat) -> bytes:
        """Convert a document between formats."""
        return convert(data, from_format, to_format, self.options)

    def convert_file(
        self,
        input_path: Path,
        output_path: Path,
        to_format: DataFormat,
        from_format: Optional[DataFormat] = None,
    ) -> None:
        """
        Convert file from one format to another.

        The output file is only written once the conversion succeeded.

        Args:
            input_path: Input file path
            output_path: Output file path
            to_format: Target format
            from_format: Source format (auto-detect if None)

        Raises:
            FileNotFoundError: If the input file does not exist
            UnsupportedFormatError: If the source format cannot be detected
            ConversionError: If the conversion fails
        """
        if not input_path.exists():
            raise FileNotFoundError(f"File not found: {input_path}")

        source = from_format or DataFormat.from_path(input_path)
        output = self.convert(input_path.read_bytes(), source, to_format)
        output_path.write_bytes(output)

        logger.info(f"Converted {input_path} to {output_path}")
