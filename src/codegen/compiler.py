# src/codegen/compiler.py
"""
Adapter around the external Kaitai Struct compiler.

The compiler turns one .ksy (plus whatever it imports) into Python sources:
one module per schema, named after the schema id (`ping.ksy` -> `ping.py`
defining class `Ping`). We only collect its output into a CompiledModuleSet
(module name -> source text); executing it is codegen.module_loader's job.
"""

from __future__ import annotations

import logging
import subprocess
import tempfile
from pathlib import Path
from typing import Dict, List, Optional, Protocol

import yaml

from formats.schema import FormatSchema
from runtime.context import RunContext, ensure_context
from runtime.errors import CompileError

logger = logging.getLogger(__name__)

CompiledModuleSet = Dict[str, str]

DEFAULT_COMPILER = "kaitai-struct-compiler"


class SchemaCompiler(Protocol):
    """Anything that can turn a FormatSchema into generated Python modules."""

    def compile(
        self,
        schema: FormatSchema,
        ctx: Optional[RunContext] = None,
    ) -> CompiledModuleSet:
        ...


class KscCompiler:
    """
    Runs `kaitai-struct-compiler --target python` in a scratch directory.

    Imports declared in meta/imports are resolved by the compiler relative
    to the schema's own directory.
    """

    def __init__(self, command: str = DEFAULT_COMPILER, timeout: Optional[float] = 300.0) -> None:
        self.command = command
        self.timeout = timeout

    def build_args(self, ksy_path: Path, outdir: Path, import_dir: Optional[Path]) -> List[str]:
        args = [self.command, "--target", "python", "--outdir", str(outdir)]
        if import_dir is not None:
            args += ["--import-path", str(import_dir)]
        args.append(str(ksy_path))
        return args

    def compile(
        self,
        schema: FormatSchema,
        ctx: Optional[RunContext] = None,
    ) -> CompiledModuleSet:
        ctx = ensure_context(ctx)
        for name in schema.imports:
            ctx.reporter.importing(f"-> {name}")

        with tempfile.TemporaryDirectory(prefix=f"ksdump-{schema.id}-") as tmp:
            tmp_dir = Path(tmp)
            outdir = tmp_dir / "out"
            outdir.mkdir()

            ksy_path = schema.path
            if ksy_path is None:
                # in-memory schema: hand the compiler a file anyway
                ksy_path = tmp_dir / f"{schema.id}.ksy"
                ksy_path.write_text(yaml.safe_dump(schema.document, sort_keys=False), encoding="utf-8")

            args = self.build_args(ksy_path, outdir, schema.source_dir)
            logger.debug("Running compiler: %s", " ".join(args))
            try:
                proc = subprocess.run(
                    args,
                    capture_output=True,
                    text=True,
                    timeout=self.timeout,
                    check=False,
                )
            except FileNotFoundError as exc:
                raise CompileError(schema.id, f"compiler '{self.command}' not found") from exc
            except subprocess.TimeoutExpired as exc:
                raise CompileError(schema.id, f"compiler timed out after {self.timeout}s") from exc

            if proc.returncode != 0:
                detail = (proc.stderr or proc.stdout or "").strip()
                raise CompileError(schema.id, f"exit status {proc.returncode}: {detail}")
            if proc.stdout.strip():
                logger.debug("Compiler output for %s: %s", schema.id, proc.stdout.strip())

            modules = collect_modules(outdir)

        if not modules:
            raise CompileError(schema.id, "compiler produced no Python modules")
        return modules


def collect_modules(outdir: Path) -> CompiledModuleSet:
    """Read every generated `*.py` under `outdir`, keyed by file stem."""
    modules: CompiledModuleSet = {}
    for path in sorted(outdir.rglob("*.py")):
        if path.name == "__init__.py":
            continue
        modules[path.stem] = path.read_text(encoding="utf-8")
    return modules
