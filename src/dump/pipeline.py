# src/dump/pipeline.py
"""
Pipeline orchestrator: schema files x binary inputs -> JSON files.

Per schema:
  - load the .ksy and build its EnumIndex (once)
  - match each binary input (a miss is a skip, not a failure)
  - compile + load the parser once, on the first matched binary

Per (schema, binary) pair, strictly in order:
  parse -> normalize -> emit

Pairs run on a bounded thread pool. A pair never raises out of the pool:
every failure becomes a FAILED outcome tagged with the schema and binary,
and the run moves on. Schema-level failures (bad .ksy, compiler failure,
missing generated module) fail every pair of that schema.
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from enum import Enum, auto
from pathlib import Path
from threading import Lock
from types import ModuleType
from typing import Callable, Dict, List, Optional, Sequence

from codegen.compiler import KscCompiler, SchemaCompiler
from codegen.module_loader import LoadedParser, load_parser
from formats.discovery import check_inputs, list_format_files, match_binary
from formats.enum_index import EnumIndex, build_enum_index
from formats.schema import FormatSchema, load_format_schema, load_imported_documents
from runtime.config import DumpConfig
from runtime.context import RunContext, ensure_context
from runtime.errors import SCHEMA_LEVEL_ERRORS, KsdumpError, ParseError, SchemaParseError

from .driver import parse_file
from .emitter import emit_to_path
from .normalizer import normalize

logger = logging.getLogger(__name__)

RUN_TIMER = "ksdump"


# ============================================================
# Outcomes
# ============================================================

class OutcomeStatus(Enum):
    PROCESSED = auto()
    SKIPPED = auto()
    FAILED = auto()


@dataclass
class PairOutcome:
    """Result of one (schema, binary) pair."""

    schema: str
    binary: Optional[str]
    status: OutcomeStatus
    output: Optional[Path] = None
    error: Optional[str] = None


@dataclass
class RunSummary:
    outcomes: List[PairOutcome] = field(default_factory=list)

    def add(self, outcome: PairOutcome) -> None:
        self.outcomes.append(outcome)

    def _with_status(self, status: OutcomeStatus) -> List[PairOutcome]:
        return [o for o in self.outcomes if o.status is status]

    @property
    def processed(self) -> List[PairOutcome]:
        return self._with_status(OutcomeStatus.PROCESSED)

    @property
    def skipped(self) -> List[PairOutcome]:
        return self._with_status(OutcomeStatus.SKIPPED)

    @property
    def failed(self) -> List[PairOutcome]:
        return self._with_status(OutcomeStatus.FAILED)

    @property
    def ok(self) -> bool:
        return not self.failed

    @property
    def exit_code(self) -> int:
        return 0 if self.ok else 1

    def describe(self) -> str:
        return (
            f"{len(self.processed)} processed, "
            f"{len(self.skipped)} skipped (no matching binary), "
            f"{len(self.failed)} failed"
        )


# ============================================================
# Per-schema state
# ============================================================

class SchemaJob:
    """
    Everything shared by the binaries of one schema.

    The parser is built lazily by the first pair that needs it; a build
    failure is remembered and re-raised for every later pair instead of
    compiling again.
    """

    def __init__(
        self,
        schema: FormatSchema,
        enum_index: EnumIndex,
        build_parser: Callable[[FormatSchema], LoadedParser],
    ) -> None:
        self.schema = schema
        self.enum_index = enum_index
        self._build_parser = build_parser
        self._parser: Optional[LoadedParser] = None
        self._error: Optional[KsdumpError] = None
        self._lock = Lock()

    def parser(self) -> LoadedParser:
        with self._lock:
            if self._parser is None and self._error is None:
                try:
                    self._parser = self._build_parser(self.schema)
                except SCHEMA_LEVEL_ERRORS as exc:
                    self._error = exc
            if self._error is not None:
                raise self._error
            return self._parser


@dataclass
class PairTask:
    job: SchemaJob
    binary: Path
    output: Path


# ============================================================
# Pipeline
# ============================================================

class DumpPipeline:
    """
    Example:
        pipeline = DumpPipeline(DumpConfig(format=Path("formats/ping.ksy"),
                                           binary=Path("ping.bin")))
        summary = pipeline.run()
        sys.exit(summary.exit_code)
    """

    def __init__(
        self,
        config: DumpConfig,
        compiler: Optional[SchemaCompiler] = None,
        ctx: Optional[RunContext] = None,
        runtime: Optional[ModuleType] = None,
    ) -> None:
        self.config = config
        self.compiler = compiler or KscCompiler(config.compiler)
        self.ctx = ensure_context(ctx)
        self.runtime = runtime

    @property
    def reporter(self):
        return self.ctx.reporter

    def run(self, binaries: Optional[Sequence[Path]] = None) -> RunSummary:
        """
        Process every schema under config.format against `binaries`
        (default: [config.binary]).
        """
        summary = RunSummary()
        self.reporter.time(RUN_TIMER)
        try:
            tasks = self.plan(summary, binaries)
            for outcome in self._execute(tasks):
                summary.add(outcome)
            self.reporter.log()
            self.reporter.time_end(RUN_TIMER)
            self.reporter.log(summary.describe())
        finally:
            self.reporter.close()
        return summary

    def plan(self, summary: RunSummary, binaries: Optional[Sequence[Path]] = None) -> List[PairTask]:
        """
        Load schemas, match binaries and return the pairs to run.

        Raises InputError before any schema is touched when the inputs
        cannot be combined.
        """
        binary_inputs = list(binaries) if binaries is not None else [self.config.binary]
        check_inputs(self.config.format, binary_inputs)
        by_schema_id = self.config.format.is_dir()
        self.config.out.mkdir(parents=True, exist_ok=True)

        tasks: List[PairTask] = []
        for format_file in list_format_files(self.config.format):
            tasks.extend(self.plan_schema(summary, format_file, binary_inputs, by_schema_id))
        return tasks

    def plan_schema(
        self,
        summary: RunSummary,
        format_file: Path,
        binary_inputs: Sequence[Path],
        by_schema_id: bool = False,
    ) -> List[PairTask]:
        self.reporter.process(str(format_file))
        try:
            schema = load_format_schema(format_file)
        except SchemaParseError as exc:
            self.reporter.error(f"Skipped {format_file}: {exc}")
            summary.add(PairOutcome(str(format_file), None, OutcomeStatus.FAILED, error=str(exc)))
            return []

        enum_index = build_enum_index(schema.document, load_imported_documents(schema))
        job = SchemaJob(schema, enum_index, self._build_parser)
        tasks: List[PairTask] = []
        for binary_input in binary_inputs:
            matched = match_binary(binary_input, schema)
            if matched is None:
                expected = " / ".join(schema.binary_names) or f"{schema.id}.<no file-extension>"
                self.reporter.skip(f"{expected} not found for {format_file.name}")
                summary.add(PairOutcome(schema.id, None, OutcomeStatus.SKIPPED))
                continue
            stem = schema.id if by_schema_id else matched.stem
            tasks.append(PairTask(job, matched, self.config.out / f"{stem}.json"))
        return tasks

    def run_schema(self, format_file: Path, binaries: Sequence[Path]) -> RunSummary:
        """
        Process a single .ksy file against `binaries`.

        Outputs are named after the matched binaries, as for a single-file
        --format.
        """
        check_inputs(format_file, binaries)
        summary = RunSummary()
        self.config.out.mkdir(parents=True, exist_ok=True)
        tasks = self.plan_schema(summary, Path(format_file), list(binaries))
        for outcome in self._execute(tasks):
            summary.add(outcome)
        return summary

    def _execute(self, tasks: Sequence[PairTask]) -> List[PairOutcome]:
        """
        Run pairs on the pool. Pairs writing the same output file form one
        lane and run in plan order, so the last binary wins.
        """
        if not tasks:
            return []
        lanes: Dict[Path, List[PairTask]] = {}
        for task in tasks:
            lanes.setdefault(task.output, []).append(task)
        for output, lane in lanes.items():
            if len(lane) > 1:
                logger.warning(
                    "%d binaries map to %s; they run one after another and the last one wins",
                    len(lane), output,
                )

        workers = min(self.config.max_workers, len(lanes))
        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="ksdump") as pool:
            results = list(pool.map(self._run_lane, lanes.values()))
        return [outcome for lane_outcomes in results for outcome in lane_outcomes]

    def _run_lane(self, lane: Sequence[PairTask]) -> List[PairOutcome]:
        return [self.run_pair(task) for task in lane]

    def run_pair(self, task: PairTask) -> PairOutcome:
        """parse -> normalize -> emit for one pair; never raises."""
        schema_id = task.job.schema.id
        try:
            parser = task.job.parser()
            root = parse_file(parser, task.binary, ctx=self.ctx)

            self.reporter.transform(str(task.binary))
            try:
                tree = normalize(root, task.job.enum_index)
            except KsdumpError:
                raise
            except Exception as exc:
                # lazy instances read the stream when forced
                raise ParseError(task.binary, exc) from exc

            output = emit_to_path(tree, task.output, self.config.spaces, ctx=self.ctx)
        except Exception as exc:
            logger.debug("Pair %s / %s failed", schema_id, task.binary, exc_info=True)
            self.reporter.error(f"Skipped {task.binary}: {exc}")
            return PairOutcome(schema_id, str(task.binary), OutcomeStatus.FAILED, error=str(exc))
        return PairOutcome(schema_id, str(task.binary), OutcomeStatus.PROCESSED, output=output)

    def _build_parser(self, schema: FormatSchema) -> LoadedParser:
        self.reporter.generate(schema.id)
        modules = self.compiler.compile(schema, ctx=self.ctx)
        work_dir = self.config.parser / schema.id
        return load_parser(modules, schema.id, work_dir, runtime=self.runtime, ctx=self.ctx)


def run_pipeline(
    config: DumpConfig,
    binaries: Optional[Sequence[Path]] = None,
    compiler: Optional[SchemaCompiler] = None,
    ctx: Optional[RunContext] = None,
) -> RunSummary:
    """Convenience wrapper: build a DumpPipeline and run it."""
    return DumpPipeline(config, compiler=compiler, ctx=ctx).run(binaries)
