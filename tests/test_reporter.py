# tests/test_reporter.py

from __future__ import annotations

import io
import logging

import pytest
from rich.console import Console

from monitoring.reporter import Reporter


def _reporter(level: str):
    buffer = io.StringIO()
    console = Console(file=buffer, force_terminal=False, width=200)
    return Reporter(log_level=level, console=console), buffer


def test_info_level_prints_everything() -> None:
    reporter, buffer = _reporter("info")

    reporter.process("formats/ping.ksy")
    reporter.skip("ping.bin not found for ping.ksy")
    reporter.error("boom")

    lines = buffer.getvalue().splitlines()
    assert len(lines) == 3
    assert "Processing:" in lines[0] and "formats/ping.ksy" in lines[0]
    assert "Skipping:" in lines[1]
    assert "Error" in lines[2] and "boom" in lines[2]


@pytest.mark.parametrize(
    "level, expected",
    [
        ("warn", ["skipped", "failed"]),
        ("error", ["failed"]),
    ],
)
def test_thresholds(level: str, expected) -> None:
    reporter, buffer = _reporter(level)

    reporter.parse("parsed")
    reporter.success("done")
    reporter.skip("skipped")
    reporter.error("failed")

    output = buffer.getvalue()
    for word in ("parsed", "done", "skipped", "failed"):
        assert (word in output) == (word in expected)


def test_unknown_level_is_rejected() -> None:
    with pytest.raises(ValueError):
        Reporter(log_level="verbose")


def test_timer_reports_elapsed() -> None:
    reporter, buffer = _reporter("info")

    reporter.time("ksdump")
    elapsed = reporter.time_end("ksdump")

    assert elapsed is not None and elapsed >= 0
    assert "Timer run for: ksdump" in buffer.getvalue()
    assert reporter.time_end("ksdump") is None


def test_oneline_keeps_warnings_and_closes() -> None:
    reporter, buffer = _reporter("oneline")

    reporter.process("one")
    reporter.process("two")
    reporter.skip("kept")
    reporter.close()

    output = buffer.getvalue()
    assert "kept" in output
    # closing twice is harmless
    reporter.close()


def test_reports_are_mirrored_to_logging(caplog) -> None:
    reporter, _ = _reporter("error")

    with caplog.at_level(logging.DEBUG, logger="ksdump.report"):
        reporter.transform("hidden on console")

    assert "Transforming:" in caplog.text
    assert "hidden on console" in caplog.text
