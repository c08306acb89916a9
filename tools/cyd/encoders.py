"""Encoders: render a value tree as JSON, TOML or YAML."""

import datetime
import json
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional

import tomli_w
import yaml

from shared.logger import get_logger

from .capabilities import CAPABILITIES, DataFormat, FormatCapabilities, Narrowing
from .errors import EncodeError, UnsupportedValueError
from .values import Datetime, Mapping, Null, Sequence, Value, ValueKind, walk

logger = get_logger(__name__)


@dataclass
class EncodeOptions:
    """
    Output layout settings.

    Attributes:
        indent: Indentation width for JSON and YAML
        minify: Emit compact JSON without whitespace
    """

    indent: int = 2
    minify: bool = False


def _to_native(value: Value, caps: FormatCapabilities) -> Any:
    """Lower a validated tree to the plain objects the format library writes."""
    if isinstance(value, Null):
        return None
    if isinstance(value, Mapping):
        return {key: _to_native(item, caps) for key, item in value.entries}
    if isinstance(value, Sequence):
        return [_to_native(item, caps) for item in value.items]
    if isinstance(value, Datetime) and caps.narrowing_for(value) is Narrowing.ISO_STRING:
        return value.isoformat()
    return value.value


# JSON


def encode_json(value: Value, options: EncodeOptions) -> str:
    native = _to_native(value, CAPABILITIES[DataFormat.JSON])
    if options.minify:
        return json.dumps(native, ensure_ascii=False, allow_nan=False, separators=(",", ":")) + "\n"
    return json.dumps(native, ensure_ascii=False, allow_nan=False, indent=options.indent) + "\n"


# TOML


def check_toml_layout(root: Value) -> None:
    """Reject a time of day with a UTC offset, which TOML cannot hold."""
    for path, node in walk(root):
        if isinstance(node, Datetime) and isinstance(node.value, datetime.time) and node.value.tzinfo is not None:
            raise UnsupportedValueError("toml", path, ValueKind.DATETIME, "time of day with a UTC offset")


def encode_toml(value: Value, options: EncodeOptions) -> str:
    check_toml_layout(value)
    return tomli_w.dumps(_to_native(value, CAPABILITIES[DataFormat.TOML]))


# YAML


class _TreeDumper(yaml.SafeDumper):
    """Safe dumper that never emits anchors; value trees share no nodes."""

    def ignore_aliases(self, data: Any) -> bool:
        return True


def encode_yaml(value: Value, options: EncodeOptions) -> str:
    native = _to_native(value, CAPABILITIES[DataFormat.YAML])
    return yaml.dump(
        native,
        Dumper=_TreeDumper,
        default_flow_style=False,
        allow_unicode=True,
        sort_keys=False,
        indent=options.indent,
    )


ENCODERS: Dict[DataFormat, Callable[[Value, EncodeOptions], str]] = {
    DataFormat.JSON: encode_json,
    DataFormat.TOML: encode_toml,
    DataFormat.YAML: encode_yaml,
}


def encode(value: Value, format: DataFormat, options: Optional[EncodeOptions] = None) -> bytes:
    """
    Encode a value tree as a complete document.

    The whole tree is validated against the format's capabilities and
    rendered in memory, so a failure never leaves partial output behind.

    Args:
        value: Value tree to encode
        format: Target format
        options: Layout settings

    Returns:
        UTF-8 encoded document

    Raises:
        UnsupportedRootError: If the root kind is not allowed in the format
        UnsupportedValueError: If a node cannot be represented
        InvalidKeyError: If a mapping key is not a unique string
        EncodeError: If the format library rejects the tree
    """
    options = options or EncodeOptions()
    caps = CAPABILITIES[format]

    logger.debug(f"Validating {value.kind.value} root against {format.value} capabilities")
    caps.check(value)

    try:
        text = ENCODERS[format](value, options)
    except EncodeError:
        raise
    except Exception as e:
        logger.error(f"Failed to encode {format.value}: {e}")
        raise EncodeError(format.value, str(e)) from e

    logger.debug(f"Encoded {len(text)} characters of {format.value}")
    return text.encode("utf-8")
