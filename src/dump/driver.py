# src/dump/driver.py
"""
Parse driver: one generated parser, one buffer, one root node.

Format mismatches are not transient, so there is no retry; any failure while
constructing the root object is wrapped in ParseError with the binary's name.
"""

from __future__ import annotations

from io import BytesIO
from pathlib import Path
from typing import Any, Optional, Union

from kaitaistruct import KaitaiStream

from codegen.module_loader import LoadedParser
from runtime.context import RunContext, ensure_context
from runtime.errors import ParseError


def parse_binary(
    parser: LoadedParser,
    data: bytes,
    binary: Union[str, Path] = "<buffer>",
    ctx: Optional[RunContext] = None,
) -> Any:
    """Read `data` from offset zero with `parser` and return the root node."""
    ctx = ensure_context(ctx)
    ctx.reporter.parse(str(binary))
    try:
        return parser(KaitaiStream(BytesIO(data)))
    except Exception as exc:
        raise ParseError(binary, exc) from exc


def parse_file(
    parser: LoadedParser,
    path: Union[str, Path],
    ctx: Optional[RunContext] = None,
) -> Any:
    path = Path(path)
    try:
        data = path.read_bytes()
    except OSError as exc:
        raise ParseError(path, exc) from exc
    return parse_binary(parser, data, path, ctx=ctx)
