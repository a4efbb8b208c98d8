# src/formats/enum_index.py
"""
Enum index for a .ksy document.

The generated parser hands us enum-typed fields as integer codes (or IntEnum
members). To print `{"name": "FAIL", "value": 1}` the normalizer needs two
lookups, both built here from the raw schema document:

- enums_by_name:       enum name -> {code -> DISPLAY_NAME}
- enum_name_by_field:  field key -> enum name

Field keys are camelCased (`snake_to_camel`) on both sides, so `file_type`
in the schema and `file_type` on the parsed object meet at `fileType`.

The namespace is flat: two enums with the same name in different types
overwrite each other (last one wins), and so do two fields with the same id
that use different enums.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Hashable, Iterable, Optional, Tuple

from .naming import snake_to_camel

logger = logging.getLogger(__name__)

PATH_SEPARATOR = "::"


@dataclass
class EnumIndex:
    enums_by_name: Dict[str, Dict[Hashable, str]] = field(default_factory=dict)
    enum_name_by_field: Dict[str, str] = field(default_factory=dict)

    @staticmethod
    def field_key(name: str) -> str:
        """Normalize a schema id or a parsed attribute name to an index key."""
        return snake_to_camel(name)

    def enum_for_field(self, field_name: str) -> Optional[str]:
        return self.enum_name_by_field.get(self.field_key(field_name))

    def values_for(self, enum_name: str) -> Optional[Dict[Hashable, str]]:
        """
        Code table for an enum.

        Qualified references such as `header::compression` fall back to
        their last segment when the exact name was never registered.
        """
        values = self.enums_by_name.get(enum_name)
        if values is None and PATH_SEPARATOR in enum_name:
            values = self.enums_by_name.get(enum_name.rsplit(PATH_SEPARATOR, 1)[-1])
        return values

    def display_name(self, enum_name: str, code: Any) -> Optional[str]:
        """Display name for `code`, or None when the enum has no such entry."""
        values = self.values_for(enum_name)
        if values is None:
            return None
        try:
            name = values.get(code)
        except TypeError:
            # unhashable raw value (e.g. a list from a repeated field)
            return None
        if name is None and not isinstance(code, str):
            name = values.get(str(code))
        return name


def _display_name(entry: Any) -> Optional[str]:
    if isinstance(entry, dict):
        entry_id = entry.get("id")
        return str(entry_id).upper() if entry_id is not None else None
    if entry is None:
        return None
    return str(entry).upper()


def _register_enums(index: EnumIndex, enums: Dict[Any, Any]) -> None:
    for enum_name, entries in enums.items():
        if not isinstance(entries, dict):
            logger.warning("Ignoring enum %r: expected a mapping of codes", enum_name)
            continue
        values: Dict[Hashable, str] = {}
        for code, entry in entries.items():
            name = _display_name(entry)
            if name is not None:
                values[code] = name
        index.enums_by_name[str(enum_name)] = values


def build_enum_index(document: Any, imported: Iterable[Any] = ()) -> EnumIndex:
    """
    Walk a raw .ksy document depth-first and collect enums and enum fields.

    `imported` holds the documents of imported schemas; they go into the
    same flat index first, so the root document wins on name clashes.

    No codes are resolved here; the parsed values only exist once a binary
    has been read.
    """
    index = EnumIndex()

    def traverse(node: Any, path: Tuple[str, ...]) -> None:
        if isinstance(node, dict):
            items = list(node.items())
        elif isinstance(node, list):
            items = [(i, item) for i, item in enumerate(node)]
        else:
            return

        for key, value in items:
            if key == "enums" and isinstance(value, dict):
                _register_enums(index, value)
            elif key == "enum" and isinstance(value, str) and isinstance(node, dict):
                field_id = node.get("id")
                if not isinstance(field_id, str) or not field_id:
                    field_id = path[-1] if path else ""
                if field_id:
                    index.enum_name_by_field[EnumIndex.field_key(field_id)] = value
            else:
                traverse(value, path + (str(key),))

    for extra in imported:
        traverse(extra, ())
    traverse(document, ())
    logger.debug(
        "Enum index: %d enums, %d enum fields",
        len(index.enums_by_name),
        len(index.enum_name_by_field),
    )
    return index
