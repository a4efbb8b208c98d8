# src/formats/naming.py
"""Identifier conversions shared by the enum index and the module loader."""

from __future__ import annotations

import re

_SNAKE_PART = re.compile(r"_([a-z])")
_PASCAL_PART = re.compile(r"(^\w|_\w)")


def snake_to_camel(name: str) -> str:
    """file_type -> fileType. Digits and capitals after '_' are left alone."""
    return _SNAKE_PART.sub(lambda m: m.group(1).upper(), name)


def to_pascal_case(name: str) -> str:
    """vlq_base128_le -> VlqBase128Le (the class name the compiler generates)."""
    return _PASCAL_PART.sub(lambda m: m.group(0).replace("_", "").upper(), name)
