# src/monitoring/logging_config.py
"""
stdlib logging setup for the ksdump entrypoint.

Console progress lines belong to monitoring.reporter.Reporter. The logging
tree only carries diagnostics (compiler command lines, persisted modules,
per-pair tracebacks) and stays at WARNING unless --verbose asks for DEBUG.

    from monitoring.logging_config import configure_logging
    configure_logging(verbose=args.verbose)
"""

from __future__ import annotations

import logging
import sys
from typing import Optional

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"

# Mirror of every Reporter line; only useful next to the other diagnostics.
REPORT_LOGGER = "ksdump.report"


def level_for(verbose: bool) -> int:
    return logging.DEBUG if verbose else logging.WARNING


def configure_logging(verbose: bool = False, level: Optional[int] = None) -> None:
    """
    Attach one stderr handler to the root logger and set its level.

    Safe to call repeatedly: an already configured root (pytest, an
    embedding application) only gets its level adjusted.
    """
    level = level if level is not None else level_for(verbose)
    root = logging.getLogger()
    root.setLevel(level)
    logging.getLogger(REPORT_LOGGER).setLevel(logging.DEBUG if verbose else logging.WARNING)

    if root.handlers:
        return

    handler = logging.StreamHandler(stream=sys.stderr)
    handler.setFormatter(logging.Formatter(fmt=LOG_FORMAT))
    root.addHandler(handler)
