# tests/conftest.py

from __future__ import annotations

import io
import sys
from pathlib import Path

import pytest
from rich.console import Console

# Ensure src/ is on sys.path for test imports like `import formats`, `import dump`.
PROJECT_ROOT = Path(__file__).resolve().parents[1]
SRC_ROOT = PROJECT_ROOT / "src"
TESTS_ROOT = PROJECT_ROOT / "tests"

for path in (SRC_ROOT, TESTS_ROOT):
    if str(path) not in sys.path:
        sys.path.insert(0, str(path))

from monitoring.reporter import Reporter  # noqa: E402
from runtime.context import RunContext  # noqa: E402


@pytest.fixture
def console_buffer():
    """String buffer the test reporter renders into."""
    return io.StringIO()


@pytest.fixture
def quiet_ctx(console_buffer):
    """RunContext whose reporter writes into `console_buffer`."""
    console = Console(file=console_buffer, force_terminal=False, width=200)
    return RunContext(reporter=Reporter(log_level="info", console=console))
