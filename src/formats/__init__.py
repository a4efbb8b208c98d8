# src/formats/__init__.py

"""
Kaitai Struct schema handling: loading .ksy documents, the enum index used
by the normalizer, and schema <-> binary matching.
"""

from .enum_index import EnumIndex, build_enum_index
from .schema import FormatSchema, load_format_schema

__all__ = [
    "EnumIndex",
    "build_enum_index",
    "FormatSchema",
    "load_format_schema",
]
