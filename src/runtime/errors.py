# path: src/runtime/errors.py

"""
Error taxonomy for ksdump.

Granularity decides how far a failure reaches:

- run level (InputError): the inputs are rejected before anything is
  compiled or parsed.

- schema level (SchemaParseError, CompileError, ModuleLoadError):
  every binary matched to that schema is failed.
- pair level (ParseError, EmitError):
  only the (schema, binary) pair is failed; the run continues.

An enum code with no display name is NOT an error; the normalizer emits
``{"name": None, "value": code}`` for it.
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional, Union

PathLike = Union[str, Path]


class KsdumpError(Exception):
    """Base class for every error raised by the dump pipeline."""


class SchemaParseError(KsdumpError):
    """The .ksy document could not be read or is not a usable schema."""

    def __init__(self, schema: PathLike, reason: str) -> None:
        self.schema = str(schema)
        self.reason = reason
        super().__init__(f"{self.schema}: {reason}")


class CompileError(KsdumpError):
    """The external schema compiler failed or produced no modules."""

    def __init__(self, schema: str, reason: str) -> None:
        self.schema = schema
        self.reason = reason
        super().__init__(f"Compiling {schema} failed: {reason}")


class ModuleLoadError(KsdumpError):
    """A generated module is missing or could not be executed."""

    def __init__(self, module: str, reason: Optional[str] = None) -> None:
        self.module = module
        self.reason = reason or f"Module '{module}' not found"
        super().__init__(self.reason)


class InputError(KsdumpError, ValueError):
    """The format/binary combination cannot be processed; raised before any stage runs."""


class ParseError(KsdumpError):
    """The binary does not match the schema it was parsed against."""

    def __init__(self, binary: PathLike, cause: BaseException) -> None:
        self.binary = str(binary)
        self.cause = cause
        super().__init__(f"{self.binary}: {type(cause).__name__}: {cause}")


class EmitError(KsdumpError):
    """Writing the JSON document to its sink failed."""

    def __init__(self, target: PathLike, cause: BaseException) -> None:
        self.target = str(target)
        self.cause = cause
        super().__init__(f"{self.target}: {cause}")


SCHEMA_LEVEL_ERRORS = (SchemaParseError, CompileError, ModuleLoadError)
