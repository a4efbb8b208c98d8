# src/formats/discovery.py
"""
File discovery by naming convention.

- A format path is either one .ksy file or a directory of them (not recursive).
- A schema's binary is named `<meta id>.<file-extension>`; when the binary
  input is a directory it is searched recursively for that exact name.
"""

from __future__ import annotations

import glob
from pathlib import Path
from typing import List, Optional, Sequence, Union

from runtime.errors import InputError

from .schema import FormatSchema

PathLike = Union[str, Path]

KSY_SUFFIX = ".ksy"
GLOB_CHARS = frozenset("*?[]{}")


def is_glob_pattern(value: str) -> bool:
    return any(ch in GLOB_CHARS for ch in value)


def expand_binary_glob(pattern: str) -> List[Path]:
    """Files matching a glob pattern (`**` allowed), sorted."""
    return [Path(p) for p in sorted(glob.glob(pattern, recursive=True)) if Path(p).is_file()]


def list_format_files(format_path: PathLike) -> List[Path]:
    """The .ksy files named by `format_path` (a file or a flat directory)."""
    format_path = Path(format_path)
    if format_path.is_dir():
        return sorted(
            p for p in format_path.iterdir()
            if p.is_file() and p.name.endswith(KSY_SUFFIX)
        )
    return [format_path]


def find_file(directory: PathLike, filename: str) -> Optional[Path]:
    """Depth-first search for `filename` under `directory` (sorted walk)."""
    directory = Path(directory)
    for entry in sorted(directory.iterdir()):
        if entry.is_file() and entry.name == filename:
            return entry
        if entry.is_dir():
            found = find_file(entry, filename)
            if found is not None:
                return found
    return None


def match_binary(binary_path: PathLike, schema: FormatSchema) -> Optional[Path]:
    """
    Resolve the binary to parse against `schema`.

    A file path is used as given. A directory is searched for each declared
    `<id>.<extension>` name in declaration order; None when nothing matches.
    """
    binary_path = Path(binary_path)
    if not binary_path.is_dir():
        return binary_path
    for name in schema.binary_names:
        found = find_file(binary_path, name)
        if found is not None:
            return found
    return None



def check_inputs(format_path: PathLike, binary_paths: Sequence[PathLike]) -> None:
    """
    Reject format/binary combinations that cannot be processed.

    Raises InputError for a missing format path or binary, and for a
    directory of formats paired with a specific binary file: every schema
    would be parsed against a file that belongs to one of them at most.
    """
    format_path = Path(format_path)
    if not format_path.exists():
        raise InputError(f"The path '{format_path}' does not exist.")
    format_is_dir = format_path.is_dir()

    for binary_path in map(Path, binary_paths):
        if not binary_path.exists():
            raise InputError(f"The path '{binary_path}' does not exist.")
        if format_is_dir and binary_path.is_file():
            raise InputError("Invalid: Cannot use a specific binary file with a directory of formats.")
