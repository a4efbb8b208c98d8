# rich-based console reporter
#src/monitoring/reporter.py
"""
Console reporting for ksdump runs.

Every pipeline stage announces what it is doing through a Reporter:

    Processing:      formats/ping.ksy
    Generating:      ping
    Parsing binary:  binaries/ping.bin
    Transforming:    binaries/ping.bin
    Exporting:       jsons/ping.json
    Success          jsons/ping.json

Lines are rendered with `rich`. Levels:

- info:    everything
- warn:    skips and errors
- error:   errors only
- oneline: like info, but progress lines replace each other in a single
           live line; skips and errors are printed above it and stay.

Each call is mirrored at DEBUG level to the `ksdump.report` stdlib logger so
`--verbose` runs keep a plain-text trace next to the styled console output.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from threading import Lock
from typing import Dict, Optional

from rich.console import Console
from rich.live import Live
from rich.text import Text

logger = logging.getLogger("ksdump.report")


# ============================================================
# Report kinds
# ============================================================

@dataclass(frozen=True)
class ReportKind:
    badge: str
    label: str
    style: str
    level: int


REPORT_KINDS: Dict[str, ReportKind] = {
    "process": ReportKind("", "Processing:", "cyan", logging.INFO),
    "generate": ReportKind("⚙️", "Generating:", "cyan", logging.INFO),
    "importing": ReportKind("", "Importing:", "cyan", logging.INFO),
    "parse": ReportKind("🔍", "Parsing binary:", "cyan", logging.INFO),
    "transform": ReportKind("📤", "Transforming:", "cyan", logging.INFO),
    "export": ReportKind("📤", "Exporting:", "cyan", logging.INFO),
    "success": ReportKind("✅", "Success", "green", logging.INFO),
    "skip": ReportKind("⤵️", "Skipping:", "yellow", logging.WARNING),
    "error": ReportKind("❌", "Error", "red", logging.ERROR),
    "log": ReportKind("", "", "", logging.INFO),
}

LEVEL_THRESHOLDS: Dict[str, int] = {
    "info": logging.INFO,
    "warn": logging.WARNING,
    "error": logging.ERROR,
    "oneline": logging.INFO,
}


# ============================================================
# Reporter
# ============================================================

class Reporter:
    """
    Thread-safe console reporter.

    Safe to share between worker threads; rendering is serialized by a lock.
    Call close() at the end of a run to release the live line in oneline mode.
    """

    def __init__(self, log_level: str = "info", console: Optional[Console] = None) -> None:
        if log_level not in LEVEL_THRESHOLDS:
            raise ValueError(f"Unknown log level: {log_level}")
        self.log_level = log_level
        self._threshold = LEVEL_THRESHOLDS[log_level]
        self._oneline = log_level == "oneline"
        self._console = console or Console()
        self._live: Optional[Live] = None
        self._timers: Dict[str, float] = {}
        self._lock = Lock()

    @property
    def console(self) -> Console:
        return self._console

    # --------------------------------------------------------
    # Event helpers
    # --------------------------------------------------------

    def process(self, message: str) -> None:
        self._report("process", message)

    def generate(self, message: str) -> None:
        self._report("generate", message)

    def importing(self, message: str) -> None:
        self._report("importing", message)

    def parse(self, message: str) -> None:
        self._report("parse", message)

    def transform(self, message: str) -> None:
        self._report("transform", message)

    def export(self, message: str) -> None:
        self._report("export", message)

    def success(self, message: str) -> None:
        self._report("success", message)

    def skip(self, message: str) -> None:
        self._report("skip", message)

    def error(self, message: str) -> None:
        self._report("error", message)

    def log(self, message: str = "") -> None:
        self._report("log", message)

    # --------------------------------------------------------
    # Timers
    # --------------------------------------------------------

    def time(self, label: str) -> None:
        """Start (or restart) a named timer."""
        with self._lock:
            self._timers[label] = time.perf_counter()

    def time_end(self, label: str) -> Optional[float]:
        """Stop a named timer, print its elapsed time and return it (seconds)."""
        with self._lock:
            started = self._timers.pop(label, None)
        if started is None:
            return None
        elapsed = time.perf_counter() - started
        self._report("log", f"Timer run for: {label} {elapsed:.2f}s")
        return elapsed

    def close(self) -> None:
        with self._lock:
            if self._live is not None:
                self._live.stop()
                self._live = None

    # --------------------------------------------------------
    # Rendering
    # --------------------------------------------------------

    def _report(self, kind_name: str, message: str) -> None:
        kind = REPORT_KINDS[kind_name]
        logger.debug("%s %s", kind.label, message)
        if kind.level < self._threshold:
            return

        line = self._render(kind, message)
        with self._lock:
            if self._oneline and kind.level < logging.WARNING:
                self._update_live(line)
            elif self._live is not None:
                self._live.console.print(line)
            else:
                self._console.print(line)

    @staticmethod
    def _render(kind: ReportKind, message: str) -> Text:
        text = Text()
        if kind.badge:
            text.append(f"{kind.badge}  ")
        if kind.label:
            text.append(f"{kind.label:<16}", style=kind.style or None)
            text.append(" ")
        text.append(message)
        return text

    def _update_live(self, line: Text) -> None:
        if self._live is None:
            self._live = Live(line, console=self._console, auto_refresh=False)
            self._live.start()
        self._live.update(line, refresh=True)
