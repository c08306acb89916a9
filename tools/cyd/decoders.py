"""Decoders: parse JSON, TOML and YAML text into the value model."""

import json
import math
import sys
from typing import Any, Callable, Dict, List, Set, Tuple, Union

import yaml

from shared.logger import get_logger

from .capabilities import DataFormat
from .errors import DecodeError
from .values import (
    INT64_MAX,
    INT64_MIN,
    NULL,
    Float,
    Mapping,
    Path,
    Sequence,
    String,
    Value,
    from_python,
)

if sys.version_info >= (3, 11):
    import tomllib
else:
    import tomli as tomllib

logger = get_logger(__name__)


def _read_text(data: Union[bytes, str], fmt: DataFormat) -> str:
    """Decode raw input as UTF-8, dropping a leading byte order mark."""
    if isinstance(data, str):
        return data[1:] if data.startswith("\ufeff") else data
    try:
        return data.decode("utf-8-sig")
    except UnicodeDecodeError as e:
        raise DecodeError(fmt.value, f"invalid UTF-8: {e.reason}", offset=e.start) from e


# JSON


def _unique_pairs(pairs: List[Tuple[str, Any]]) -> Dict[str, Any]:
    result: Dict[str, Any] = {}
    for key, value in pairs:
        if key in result:
            raise DecodeError("json", f"duplicate key {key!r}")
        result[key] = value
    return result


def _reject_constant(name: str) -> Any:
    raise DecodeError("json", f"{name} is not valid JSON")


def _parse_int(literal: str) -> Union[int, float]:
    try:
        number = int(literal)
        if INT64_MIN <= number <= INT64_MAX:
            return number
        return float(number)
    except (ValueError, OverflowError):
        raise DecodeError("json", f"integer with {len(literal.lstrip('-'))} digits is out of range") from None


def _parse_float(literal: str) -> float:
    number = float(literal)
    if not math.isfinite(number):
        raise DecodeError("json", f"number {literal} is out of range")
    return number


def decode_json(text: str) -> Value:
    """
    Parse a JSON document.

    Duplicate object keys and the NaN/Infinity extensions are rejected.
    Integers beyond 64 bits decode as floats; numbers too large even for
    a float are an error.
    """
    try:
        data = json.loads(
            text,
            object_pairs_hook=_unique_pairs,
            parse_constant=_reject_constant,
            parse_int=_parse_int,
            parse_float=_parse_float,
        )
    except json.JSONDecodeError as e:
        raise DecodeError("json", e.msg, line=e.lineno, column=e.colno, offset=e.pos) from e
    except (ValueError, RecursionError) as e:
        raise DecodeError("json", str(e)) from e
    return from_python(data)


# TOML


def _toml_float(literal: str) -> float:
    number = float(literal)
    if not math.isfinite(number) and literal.lstrip("+-") not in ("inf", "nan"):
        raise ValueError(f"float {literal} is out of range")
    return number


def _toml_to_value(obj: Any, path: Path = ()) -> Value:
    if isinstance(obj, dict):
        return Mapping(tuple((key, _toml_to_value(item, path + (key,))) for key, item in obj.items()))
    if isinstance(obj, list):
        return Sequence(tuple(_toml_to_value(item, path + (index,)) for index, item in enumerate(obj)))
    if isinstance(obj, int) and not isinstance(obj, bool) and not INT64_MIN <= obj <= INT64_MAX:
        raise DecodeError("toml", f"integer {obj} does not fit in 64 bits", path=path)
    return from_python(obj)


def decode_toml(text: str) -> Value:
    """
    Parse a TOML 1.0 document; the result is always a mapping.

    ``inf`` and ``nan`` are TOML floats, but a literal that overflows a
    float is rejected.
    """
    try:
        data = tomllib.loads(text, parse_float=_toml_float)
    except tomllib.TOMLDecodeError as e:
        message = getattr(e, "msg", None) or str(e)
        raise DecodeError("toml", message, line=getattr(e, "lineno", None), column=getattr(e, "colno", None)) from e
    except ValueError as e:
        raise DecodeError("toml", str(e)) from e
    return _toml_to_value(data)


# YAML

_TAG = "tag:yaml.org,2002:"

SCALAR_TAGS = frozenset(_TAG + name for name in ("null", "bool", "int", "float", "str", "timestamp"))
KEY_TEXT_TAGS = frozenset(_TAG + name for name in ("bool", "int", "float", "timestamp", "value"))
VALUE_TAG = _TAG + "value"
MERGE_TAG = _TAG + "merge"
SEQ_TAG = _TAG + "seq"
MAP_TAG = _TAG + "map"


def _node_error(node: yaml.Node, message: str) -> DecodeError:
    mark = node.start_mark
    return DecodeError("yaml", message, line=mark.line + 1, column=mark.column + 1)


def _is_infinity_literal(text: str) -> bool:
    return text.replace("_", "").lower().lstrip("+-") in (".inf", ".nan")


class _YamlTreeBuilder:
    """
    Build a value tree from a composed YAML node graph.

    Aliases point at shared nodes; each use is built into its own copy.
    Merge keys are flattened with explicit keys taking precedence.
    """

    def __init__(self, loader: yaml.SafeLoader):
        self.loader = loader
        self._active: Set[int] = set()

    def build(self, node: yaml.Node) -> Value:
        if isinstance(node, yaml.ScalarNode):
            return self._scalar(node)

        if id(node) in self._active:
            raise _node_error(node, "recursive alias is not supported")
        self._active.add(id(node))
        try:
            if isinstance(node, yaml.SequenceNode):
                if node.tag != SEQ_TAG:
                    raise _node_error(node, f"unsupported tag {node.tag!r}")
                return Sequence(tuple(self.build(child) for child in node.value))
            if node.tag != MAP_TAG:
                raise _node_error(node, f"unsupported tag {node.tag!r}")
            return self._mapping(node)
        finally:
            self._active.discard(id(node))

    def _scalar(self, node: yaml.ScalarNode) -> Value:
        # A plain "=" resolves to the value tag; it is ordinary text here.
        if node.tag == VALUE_TAG:
            return String(node.value)
        if node.tag not in SCALAR_TAGS:
            raise _node_error(node, f"unsupported tag {node.tag!r}")
        kind = node.tag[len(_TAG):]
        try:
            value = from_python(self.loader.construct_object(node, deep=True))
        except (ValueError, KeyError, TypeError, AttributeError) as e:
            raise _node_error(node, f"cannot read {node.value!r} as {kind}") from e
        if isinstance(value, Float) and not value.is_finite and not _is_infinity_literal(node.value):
            raise _node_error(node, f"float {node.value!r} is out of range")
        return value

    def _key(self, node: yaml.Node) -> str:
        if not isinstance(node, yaml.ScalarNode):
            raise _node_error(node, "mapping keys must be scalars")
        if node.tag == _TAG + "str":
            return node.value
        if node.tag in KEY_TEXT_TAGS:
            return node.value
        if node.tag == _TAG + "null":
            raise _node_error(node, "null mapping keys are not supported")
        raise _node_error(node, f"unsupported tag {node.tag!r}")

    def _merge_sources(self, node: yaml.Node) -> List[yaml.MappingNode]:
        if isinstance(node, yaml.MappingNode):
            return [node]
        if isinstance(node, yaml.SequenceNode) and all(isinstance(n, yaml.MappingNode) for n in node.value):
            return list(node.value)
        raise _node_error(node, "merge key expects a mapping or a sequence of mappings")

    def _mapping(self, node: yaml.MappingNode) -> Mapping:
        explicit: Set[str] = set()
        for key_node, _ in node.value:
            if key_node.tag == MERGE_TAG:
                continue
            key = self._key(key_node)
            if key in explicit:
                raise _node_error(key_node, f"duplicate key {key!r}")
            explicit.add(key)

        entries: List[Tuple[str, Value]] = []
        added: Set[str] = set()
        for key_node, value_node in node.value:
            if key_node.tag == MERGE_TAG:
                for source in self._merge_sources(value_node):
                    for key, value in self.build(source):
                        if key not in explicit and key not in added:
                            entries.append((key, value))
                            added.add(key)
                continue
            entries.append((self._key(key_node), self.build(value_node)))
        return Mapping(tuple(entries))


def decode_yaml(text: str) -> Value:
    """
    Parse a single-document YAML stream.

    An empty stream decodes to null. Tags outside the core schema
    (custom tags, ``!!binary``, ``!!set``, ``!!omap``) are rejected.
    Scalars that match a core tag but cannot be constructed, like
    ``2020-02-30`` or ``!!int x``, are decode errors.
    """
    loader = None
    try:
        loader = yaml.SafeLoader(text)
        node = loader.get_single_node()
        if node is None:
            return NULL
        return _YamlTreeBuilder(loader).build(node)
    except yaml.MarkedYAMLError as e:
        mark = e.problem_mark or e.context_mark
        message = e.problem or e.context or str(e)
        if mark is None:
            raise DecodeError("yaml", message) from e
        raise DecodeError("yaml", message, line=mark.line + 1, column=mark.column + 1) from e
    except yaml.YAMLError as e:
        raise DecodeError("yaml", str(e)) from e
    except RecursionError as e:
        raise DecodeError("yaml", "document is nested too deeply") from e
    finally:
        if loader is not None:
            loader.dispose()


DECODERS: Dict[DataFormat, Callable[[str], Value]] = {
    DataFormat.JSON: decode_json,
    DataFormat.TOML: decode_toml,
    DataFormat.YAML: decode_yaml,
}


def decode(data: Union[bytes, str], format: DataFormat) -> Value:
    """
    Decode a complete document into a value tree.

    Args:
        data: Raw document bytes (UTF-8) or text
        format: Source format

    Returns:
        Fully built value tree

    Raises:
        DecodeError: If the input is not valid for the format
    """
    text = _read_text(data, format)
    logger.debug(f"Decoding {len(text)} characters of {format.value}")
    try:
        value = DECODERS[format](text)
    except DecodeError as e:
        logger.debug(f"Decode failed: {e}")
        raise
    logger.debug(f"Decoded {format.value} document with {value.kind.value} root")
    return value
