# src/codegen/module_loader.py
"""
Executing compiler output without the host import system.

Generated modules are produced at run time, so they are not importable:
they are not on sys.path and must never land in sys.modules (two schemas
may both generate a `header.py`). Instead every module is executed from
source in its own namespace whose builtins carry a private `__import__`.
That resolver decides what an `import` inside generated code means:

1. the stream runtime (`kaitaistruct`)  -> the runtime module we were given
2. a sibling in the module set           -> executed fresh, in isolation,
   matched on the last dotted segment       and only its export returned
3. a standard-library module             -> the ordinary import
4. anything else                         -> ModuleLoadError

A module's export is the top-level binding named after the module
(`vlq_base128_le` -> `VlqBase128Le`), which is how the compiler names the
one class each module defines.

Sources are written to the working directory before execution. They are
compiled with that path as filename, so tracebacks from a failing parse
point at a file you can open.
"""

from __future__ import annotations

import builtins
import logging
import sys
import types
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Sequence

from formats.naming import to_pascal_case
from runtime.context import RunContext, ensure_context
from runtime.errors import ModuleLoadError

logger = logging.getLogger(__name__)

# Entry point produced by the loader: the generated root class. Calling it
# with a KaitaiStream parses the stream.
LoadedParser = Any

STDLIB_MODULES = frozenset(sys.stdlib_module_names)


def export_name_for(module_name: str) -> str:
    return to_pascal_case(module_name)


def find_export(namespace: Mapping[str, Any], module_name: str) -> Optional[str]:
    """Name of the binding in `namespace` that matches the module's class name."""
    wanted = export_name_for(module_name).lower()
    for key in namespace:
        if key.lower() == wanted:
            return key
    return None


class ModuleLoader:
    """
    Loads one CompiledModuleSet.

    Not thread-safe: a loader belongs to a single schema and is driven once.
    The returned parser class can be shared freely afterwards.
    """

    def __init__(
        self,
        module_set: Mapping[str, str],
        runtime: types.ModuleType,
        work_dir: Path,
        ctx: Optional[RunContext] = None,
    ) -> None:
        self._sources: Dict[str, str] = dict(module_set)
        self._runtime = runtime
        self._runtime_name = runtime.__name__.partition(".")[0]
        self._work_dir = Path(work_dir)
        self._ctx = ensure_context(ctx)
        self._paths: Dict[str, Path] = {}
        self._loading: List[str] = []

        self._builtins = dict(vars(builtins))
        self._builtins["__import__"] = self._resolve

    @property
    def module_names(self) -> List[str]:
        return sorted(self._sources)

    # --------------------------------------------------------
    # Public API
    # --------------------------------------------------------

    def persist(self) -> Dict[str, Path]:
        """Write every module to `<work_dir>/<name>.py` (idempotent)."""
        if self._paths:
            return dict(self._paths)
        for name, source in self._sources.items():
            path = self._work_dir / f"{name}.py"
            try:
                self._work_dir.mkdir(parents=True, exist_ok=True)
                path.write_text(source, encoding="utf-8")
            except OSError as exc:
                raise ModuleLoadError(name, f"Cannot write generated module to {path}: {exc}") from exc
            self._paths[name] = path
            logger.debug("Persisted generated module %s -> %s", name, path)
        return dict(self._paths)

    def load(self, entry_module: str) -> LoadedParser:
        """Execute `entry_module` (and whatever it imports) and return its class."""
        if entry_module not in self._sources:
            raise ModuleLoadError(
                entry_module,
                f"Compiler output does not contain '{entry_module}.py' "
                f"(available: {', '.join(self.module_names) or 'none'})",
            )
        self.persist()
        exports = self._execute(entry_module)
        return getattr(exports, find_export(vars(exports), entry_module))

    # --------------------------------------------------------
    # Resolution
    # --------------------------------------------------------

    def _resolve(
        self,
        name: str,
        globals: Optional[Mapping[str, Any]] = None,
        locals: Optional[Mapping[str, Any]] = None,
        fromlist: Optional[Sequence[str]] = (),
        level: int = 0,
    ) -> types.ModuleType:
        """`__import__` replacement installed into generated modules."""
        if level > 0 and not name:
            # from . import sibling_a, sibling_b
            package = types.ModuleType("<generated>")
            for item in fromlist or ():
                setattr(package, item, self._resolve(item))
            return package

        top_level = name.partition(".")[0]
        if level == 0 and top_level == self._runtime_name:
            return self._runtime

        module_name = name.rsplit(".", 1)[-1]
        if module_name in self._sources:
            return self._execute(module_name)

        if level == 0 and top_level in STDLIB_MODULES:
            return builtins.__import__(name, globals, locals, fromlist, level)

        raise ModuleLoadError(name)

    def _execute(self, module_name: str) -> types.ModuleType:
        """Run one module in a fresh namespace and wrap its export."""
        if module_name in self._loading:
            chain = " -> ".join(self._loading + [module_name])
            raise ModuleLoadError(module_name, f"Circular import between generated modules: {chain}")

        path = self._paths.get(module_name) or (self._work_dir / f"{module_name}.py")
        namespace: Dict[str, Any] = {
            "__name__": module_name,
            "__file__": str(path),
            "__builtins__": self._builtins,
        }

        self._loading.append(module_name)
        try:
            code = compile(self._sources[module_name], str(path), "exec")
            exec(code, namespace)
        except ModuleLoadError:
            raise
        except Exception as exc:
            raise ModuleLoadError(
                module_name,
                f"Executing generated module '{module_name}' failed: {type(exc).__name__}: {exc}",
            ) from exc
        finally:
            self._loading.pop()

        key = find_export(namespace, module_name)
        if key is None:
            raise ModuleLoadError(
                module_name,
                f"Generated module '{module_name}' does not define '{export_name_for(module_name)}'",
            )

        exports = types.ModuleType(module_name)
        exports.__file__ = str(path)
        setattr(exports, key, namespace[key])
        logger.debug("Loaded generated module %s (export %s)", module_name, key)
        if self._ctx.verbose:
            self._ctx.reporter.log(f"   loaded {path.name} ({key})")
        return exports


def load_parser(
    module_set: Mapping[str, str],
    entry_module: str,
    work_dir: Path,
    runtime: Optional[types.ModuleType] = None,
    ctx: Optional[RunContext] = None,
) -> LoadedParser:
    """
    Load the parser class for `entry_module` from a CompiledModuleSet.

    `runtime` defaults to the installed `kaitaistruct` module.
    """
    if runtime is None:
        import kaitaistruct as runtime

    loader = ModuleLoader(module_set, runtime, work_dir, ctx=ctx)
    return loader.load(entry_module)
