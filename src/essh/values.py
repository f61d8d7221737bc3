"""Conversion of Lua runtime values into plain Python values.

Lua has a single container type, the table, which is used both as an
array and as a map. ``convert`` decides which one a table is by probing
for contiguous integer keys starting at 1:

    {"a", "b", "c"}       -> ["a", "b", "c"]
    {user = "x", port = 22} -> {"user": "x", "port": 22}
    {[1] = "a", [3] = "c"} -> {"1": "a", "3": "c"}
    {"a", "b", n = 2}      -> ["a", "b"]

An array with holes is treated as a map. Non-integer keys of an
array-shaped table are ignored.
Values that are neither primitives nor tables (functions, userdata,
coroutines) are passed through unchanged. ``convert`` never raises.

Tables are read raw: ``__index`` and other metamethods are never run, so
what a builder looks up is exactly what ``pairs``-style iteration sees.
A table that contains itself converts to a container that contains
itself.

The ``as_*`` accessors each try one target shape and return ``None``
when the value does not have it, so a missing key, an explicit ``nil``
and a value of the wrong shape all look the same to the builders.
Plain ``dict``/``list``/``tuple`` values are accepted wherever a table
is, which keeps the conversion usable without a running interpreter.
"""

from __future__ import annotations

from typing import Any, Callable, Iterator

from lupa import lua_type

DynamicValue = Any  # None | bool | str | int | float | dict | list | opaque


def is_table(v: Any) -> bool:
    """Check if v is table-shaped (a Lua table or a plain dict/list)."""
    if lua_type(v) == "table":
        return True
    return isinstance(v, (dict, list, tuple))


def is_callable(v: Any) -> bool:
    """Check if v can be invoked as a callback.

    Lua tables are callable from Python through lupa, so they are
    excluded explicitly.
    """
    kind = lua_type(v)
    if kind is not None:
        return kind == "function"
    return callable(v) and not isinstance(v, type)


def _as_index(key: Any) -> int | None:
    if isinstance(key, bool):
        return None
    if isinstance(key, float) and key.is_integer():
        return int(key)
    if isinstance(key, int):
        return key
    return None


def _same_key(a: Any, b: Any) -> bool:
    if isinstance(a, bool) or isinstance(b, bool):
        return a is b
    return a == b


def _get(table: Any, key: Any) -> Any:
    if isinstance(table, (list, tuple)):
        index = _as_index(key)
        if index is not None and 1 <= index <= len(table):
            return table[index - 1]
        return None
    if isinstance(table, dict):
        return table.get(key)
    for k, value in table_items(table):
        if _same_key(k, key):
            return value
    return None


def table_items(table: Any) -> Iterator[tuple[Any, Any]]:
    """Iterate raw (key, value) pairs of a table, skipping nil values."""
    if isinstance(table, (list, tuple)):
        for i, value in enumerate(table, start=1):
            if value is not None:
                yield i, value
        return
    for key, value in table.items():
        if value is not None:
            yield key, value


def _array_part(items: list[tuple[Any, Any]]) -> tuple[dict[int, Any], int]:
    """Integer-keyed values and the length of their contiguous 1..n run."""
    indexed = {}
    for key, value in items:
        index = _as_index(key)
        if index is not None:
            indexed[index] = value
    n = 0
    while n + 1 in indexed:
        n += 1
    return indexed, n


def max_n(table: Any) -> int:
    """Largest n such that keys 1..n are all present in the table."""
    return _array_part(list(table_items(table)))[1]


def _identity(v: Any) -> Any:
    # lupa hands out a new proxy per access; its repr carries the table address
    if lua_type(v) is not None:
        return repr(v)
    return id(v)


def key_string(key: Any) -> str:
    """Natural string form of a table key, as Lua's tostring renders it."""
    if isinstance(key, bool):
        return "true" if key else "false"
    if isinstance(key, float) and key.is_integer():
        return str(int(key))
    return str(key)


def convert(v: Any, _seen: dict[Any, Any] | None = None) -> DynamicValue:
    """Convert a runtime value into None, bool, str, number, dict, list or opaque."""
    if v is None or isinstance(v, (bool, str, int, float)):
        return v
    if isinstance(v, bytes):
        return v.decode("utf-8", errors="replace")
    if not is_table(v):
        return v

    if _seen is None:
        _seen = {}
    ident = _identity(v)
    if ident in _seen:
        return _seen[ident]

    items = list(table_items(v))
    indexed, n = _array_part(items)
    if n == 0 or any(i > n for i in indexed):
        mapping: dict[str, Any] = {}
        _seen[ident] = mapping
        for k, value in items:
            mapping[key_string(k)] = convert(value, _seen)
        return mapping

    sequence: list[Any] = []
    _seen[ident] = sequence
    for i in range(1, n + 1):
        sequence.append(convert(indexed[i], _seen))
    return sequence


def table_get(table: Any, key: str) -> Any:
    """Raw field lookup on a config table; None when absent."""
    if table is None or not is_table(table):
        return None
    return _get(table, key)


def as_bool(v: Any) -> bool | None:
    if isinstance(v, bool):
        return v
    return None


def as_string(v: Any) -> str | None:
    if isinstance(v, str):
        return v
    if isinstance(v, bytes):
        return v.decode("utf-8", errors="replace")
    return None


def as_mapping(v: Any) -> dict[str, DynamicValue] | None:
    converted = convert(v) if is_table(v) else None
    if isinstance(converted, dict):
        return converted
    return None


def as_sequence(v: Any) -> list[DynamicValue] | None:
    converted = convert(v) if is_table(v) else None
    if isinstance(converted, list):
        return converted
    return None


def as_callback(v: Any) -> Callable[..., Any] | None:
    if is_callable(v):
        return v
    return None


def as_table(v: Any) -> Any | None:
    """Return v unconverted if it is table-shaped."""
    if is_table(v):
        return v
    return None
