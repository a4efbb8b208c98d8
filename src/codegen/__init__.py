# src/codegen/__init__.py

"""
Generated-parser handling: running the external compiler and loading its
output into a callable parser class.
"""

from .compiler import CompiledModuleSet, KscCompiler, SchemaCompiler
from .module_loader import LoadedParser, ModuleLoader, load_parser

__all__ = [
    "CompiledModuleSet",
    "KscCompiler",
    "SchemaCompiler",
    "LoadedParser",
    "ModuleLoader",
    "load_parser",
]
