"""cyd (convert your data) - Convert documents between JSON, TOML, and YAML."""

from .capabilities import CAPABILITIES, DataFormat, FormatCapabilities, Narrowing
from .converter import Conversion, ConversionState, ConvertOptions, DataConverter, apply_query, convert
from .decoders import decode
from .encoders import EncodeOptions, encode
from .errors import (
    ConversionError,
    CydError,
    DecodeError,
    EncodeError,
    InvalidKeyError,
    Phase,
    QueryError,
    UnsupportedFormatError,
    UnsupportedRootError,
    UnsupportedValueError,
)

__version__ = "0.1.0"

__all__ = [
    "CAPABILITIES",
    "Conversion",
    "ConversionError",
    "ConversionState",
    "ConvertOptions",
    "CydError",
    "DataConverter",
    "DataFormat",
    "DecodeError",
    "EncodeError",
    "EncodeOptions",
    "FormatCapabilities",
    "InvalidKeyError",
    "Narrowing",
    "Phase",
    "QueryError",
    "UnsupportedFormatError",
    "UnsupportedRootError",
    "UnsupportedValueError",
    "apply_query",
    "convert",
    "decode",
    "encode",
]
