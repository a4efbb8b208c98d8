# path: src/runtime/context.py

"""
Per-run context handed to every pipeline stage.

Replaces a process-wide logger: the orchestrator builds one RunContext and
passes it down explicitly, so tests can run several pipelines side by side
with their own reporters.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional

from monitoring.reporter import Reporter


@dataclass
class RunContext:
    reporter: Reporter = field(default_factory=Reporter)
    verbose: bool = False

    @classmethod
    def create(cls, log_level: str = "info", verbose: bool = False) -> "RunContext":
        return cls(reporter=Reporter(log_level=log_level), verbose=verbose)


def ensure_context(ctx: Optional[RunContext]) -> RunContext:
    """Stages accept ctx=None for library use; give them a quiet-ish default."""
    if ctx is not None:
        return ctx
    return RunContext(reporter=Reporter(log_level="error"))
