"""
Typed field extraction from raw JSON objects.

Every helper takes the parent object, the key and the dotted path of the
parent so that schema errors point at the exact offending field.
"""

import enum
from collections.abc import Mapping
from types import MappingProxyType
from typing import Any, Callable, TypeVar

from gltfimport.document.index import Index
from gltfimport.errors import EnumOutOfRange, MissingField, TypeMismatch

E = TypeVar("E", bound=enum.Enum)
R = TypeVar("R")

_MISSING = object()


def join(path: str, key: str | int) -> str:
    if isinstance(key, int):
        return f"{path}[{key}]"
    return f"{path}.{key}" if path else key


def _is_int(value) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def _is_number(value) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _check(value, path: str, kind: str):
    if kind == "int":
        if _is_int(value):
            return value
        # 3.0 is a valid JSON integer in several exporters
        if isinstance(value, float) and value.is_integer():
            return int(value)
    elif kind == "number":
        if _is_number(value):
            return float(value)
    elif kind == "string":
        if isinstance(value, str):
            return value
    elif kind == "bool":
        if isinstance(value, bool):
            return value
    elif kind == "object":
        if isinstance(value, Mapping):
            return value
    elif kind == "array":
        if isinstance(value, (list, tuple)):
            return value
    raise TypeMismatch(path, kind, value)


def obj(value, path: str) -> Mapping:
    return _check(value, path, "object")


def required(source: Mapping, key: str, path: str, kind: str):
    value = source.get(key, _MISSING)
    if value is _MISSING:
        raise MissingField(join(path, key))
    return _check(value, join(path, key), kind)


def optional(source: Mapping, key: str, path: str, kind: str, default=None):
    value = source.get(key, _MISSING)
    if value is _MISSING:
        return default
    return _check(value, join(path, key), kind)


def index(source: Mapping, key: str, path: str, *, is_required: bool = False) -> Index | None:
    if is_required:
        return Index(required(source, key, path, "int"))
    value = optional(source, key, path, "int")
    return None if value is None else Index(value)


def index_list(source: Mapping, key: str, path: str, *, is_required: bool = False) -> tuple[Index, ...]:
    if is_required:
        items = required(source, key, path, "array")
    else:
        items = optional(source, key, path, "array", [])
    sub = join(path, key)
    return tuple(Index(_check(v, join(sub, i), "int")) for i, v in enumerate(items))


def numbers(source: Mapping, key: str, path: str, *, length: int | None = None,
            default: tuple[float, ...] | None = None) -> tuple[float, ...] | None:
    items = optional(source, key, path, "array")
    if items is None:
        return default
    sub = join(path, key)
    if length is not None and len(items) != length:
        raise TypeMismatch(sub, f"array of {length} numbers", items)
    return tuple(_check(v, join(sub, i), "number") for i, v in enumerate(items))


def strings(source: Mapping, key: str, path: str) -> tuple[str, ...]:
    items = optional(source, key, path, "array", [])
    sub = join(path, key)
    return tuple(_check(v, join(sub, i), "string") for i, v in enumerate(items))


def enum_value(source: Mapping, key: str, path: str, enum_type: type[E], *,
               is_required: bool = False, default: E | None = None) -> E | None:
    kind = "int" if issubclass(enum_type, int) else "string"
    if is_required:
        raw = required(source, key, path, kind)
    else:
        raw = optional(source, key, path, kind)
        if raw is None:
            return default
    try:
        return enum_type(raw)
    except ValueError:
        raise EnumOutOfRange(join(path, key), raw) from None


def child(source: Mapping, key: str, path: str, build: Callable[[dict, str], R], *,
          is_required: bool = False) -> R | None:
    if is_required:
        value = required(source, key, path, "object")
    else:
        value = optional(source, key, path, "object")
        if value is None:
            return None
    return build(value, join(path, key))


def children(source: Mapping, key: str, path: str, build: Callable[[dict, str], R], *,
             is_required: bool = False) -> tuple[R, ...]:
    if is_required:
        items = required(source, key, path, "array")
    else:
        items = optional(source, key, path, "array", [])
    sub = join(path, key)
    return tuple(build(obj(item, join(sub, i)), join(sub, i)) for i, item in enumerate(items))


def index_map(source: Mapping, key: str, path: str, *, is_required: bool = False) -> Mapping[str, Index]:
    if is_required:
        mapping = required(source, key, path, "object")
    else:
        mapping = optional(source, key, path, "object", {})
    return as_index_map(mapping, join(path, key))


def as_index_map(mapping: Mapping, path: str) -> Mapping[str, Index]:
    obj(mapping, path)
    return MappingProxyType({name: Index(_check(v, join(path, name), "int")) for name, v in mapping.items()})


def empty_map() -> Mapping[str, Any]:
    return MappingProxyType({})


def freeze(value: Any) -> Any:
    """Read-only copy of a JSON value: objects become mapping proxies, arrays tuples."""
    if isinstance(value, Mapping):
        return MappingProxyType({k: freeze(v) for k, v in value.items()})
    if isinstance(value, (list, tuple)):
        return tuple(freeze(v) for v in value)
    return value


def extensions(source: Mapping, path: str) -> Mapping[str, Any]:
    return freeze(optional(source, "extensions", path, "object", {}))


def extras(source: Mapping) -> Any:
    return freeze(source.get("extras"))
