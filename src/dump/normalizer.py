# src/dump/normalizer.py
"""
Turn a generated parser's object graph into plain JSON-ready data.

Parsed objects mix three kinds of attributes:

- eager fields, set while reading (`self.code = ...`)
- instances, declared as properties and cached on first access under
  `_m_<name>`; until something reads them they simply do not exist
- bookkeeping (`_io`, `_parent`, `_root`, `_raw_*`, ...)

So a node is handled in this order: force every declared property, then
walk the instance attributes in insertion order, dropping bookkeeping and
renaming `_m_<name>` back to `<name>`. The output keeps that order: eager
fields as read, then instances in the order they were forced.

Enum-typed fields (per the EnumIndex) become `{"name": ..., "value": ...}`.
A code without a display name yields `"name": None`; that is a data shape,
not an error.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Dict, List, Optional

from formats.enum_index import EnumIndex

INTERNAL_PREFIX = "_"
INSTANCE_PREFIX = "_m_"

# Display name used when an enum code is not registered.
MISSING_ENUM_NAME = None

BYTE_TYPES = (bytes, bytearray, memoryview)
SCALAR_TYPES = (str, int, float, bool)


def normalize(node: Any, enum_index: EnumIndex) -> Any:
    """Normalize a parsed root node (or any value below it)."""
    return _normalize_value(node, enum_index)


def public_field_name(attribute: str) -> Optional[str]:
    """Output name for an instance attribute, or None for bookkeeping."""
    if attribute.startswith(INSTANCE_PREFIX):
        return attribute[len(INSTANCE_PREFIX):]
    if attribute.startswith(INTERNAL_PREFIX):
        return None
    return attribute


def force_instances(node: Any) -> None:
    """Read every property the node's class declares so instances materialize."""
    for name, attr in vars(type(node)).items():
        if isinstance(attr, property):
            getattr(node, name)


def resolve_enum_value(raw: Any, enum_name: str, enum_index: EnumIndex) -> Any:
    if isinstance(raw, (list, tuple)):
        return [resolve_enum_value(item, enum_name, enum_index) for item in raw]
    code = _enum_code(raw)
    name = enum_index.display_name(enum_name, code)
    return {"name": name if name is not None else MISSING_ENUM_NAME, "value": code}


def _is_code(value: Any) -> bool:
    """Values an enum field can hold (a name collision can put a struct there)."""
    if isinstance(value, (list, tuple)):
        return all(_is_code(item) for item in value)
    return value is None or isinstance(value, (Enum, int, str))


def _enum_code(value: Any) -> Any:
    return value.value if isinstance(value, Enum) else value


def _normalize_value(value: Any, enum_index: EnumIndex) -> Any:
    if isinstance(value, BYTE_TYPES):
        return list(bytes(value))
    if value is None:
        return None
    if isinstance(value, Enum):
        return _normalize_value(value.value, enum_index)
    if isinstance(value, SCALAR_TYPES):
        return value
    if isinstance(value, (list, tuple)):
        return _normalize_sequence(value, enum_index)
    return _normalize_node(value, enum_index)


def _normalize_sequence(items: Any, enum_index: EnumIndex) -> List[Any]:
    return [_normalize_value(item, enum_index) for item in items]


def _normalize_node(node: Any, enum_index: EnumIndex) -> Dict[str, Any]:
    force_instances(node)
    try:
        attributes = vars(node)
    except TypeError as exc:
        raise TypeError(f"Cannot normalize value of type {type(node).__name__}") from exc

    result: Dict[str, Any] = {}
    # snapshot: reading values must not reorder what we already collected
    for attribute, raw in list(attributes.items()):
        name = public_field_name(attribute)
        if name is None:
            continue
        enum_name = enum_index.enum_for_field(name)
        if enum_name is not None and _is_code(raw):
            result[name] = resolve_enum_value(raw, enum_name, enum_index)
        else:
            result[name] = _normalize_value(raw, enum_index)
    return result
