# path: src/runtime/__init__.py

"""
Run-wide plumbing for ksdump.

- config:  DumpConfig and its YAML loader
- context: RunContext handed to every pipeline stage
- errors:  the KsdumpError taxonomy
"""

from .config import DumpConfig, load_config
from .context import RunContext, ensure_context
from .errors import (
    CompileError,
    EmitError,
    InputError,
    KsdumpError,
    ModuleLoadError,
    ParseError,
    SchemaParseError,
)

__all__ = [
    "DumpConfig",
    "load_config",
    "RunContext",
    "ensure_context",
    "KsdumpError",
    "SchemaParseError",
    "CompileError",
    "ModuleLoadError",
    "InputError",
    "ParseError",
    "EmitError",
]
