# src/dump/__init__.py

"""
The dump pipeline: parse a binary with a generated parser, normalize the
result and stream it out as JSON.
"""

from .driver import parse_binary, parse_file
from .emitter import emit, emit_to_path
from .normalizer import normalize
from .pipeline import DumpPipeline, OutcomeStatus, PairOutcome, RunSummary, run_pipeline

__all__ = [
    "parse_binary",
    "parse_file",
    "emit",
    "emit_to_path",
    "normalize",
    "DumpPipeline",
    "OutcomeStatus",
    "PairOutcome",
    "RunSummary",
    "run_pipeline",
]
