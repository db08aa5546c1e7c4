# bootstrapper/reporting.py
# -*- coding: utf-8 -*-
"""
Human-readable reporting of a bootstrap run.

Every step produces exactly one status line on the output stream, in the
form "<symbol> <name>: <outcome word>[ (<reason>)]", and the run ends with
a summary line counting outcomes and naming what needs a re-run.
"""

import sys
from typing import Dict, Optional, TextIO

from bootstrapper.models import (
    REASON_DRY_RUN,
    REASON_CANCELLED,
    RunReport,
    StepOutcome,
    StepResult,
)
from settings.config_models import SYMBOLS_DEFAULT


def format_status_line(
    result: StepResult, symbols: Optional[Dict[str, str]] = None
) -> str:
    """Build the status line for a single step result."""
    symbols = symbols or SYMBOLS_DEFAULT

    if result.outcome == StepOutcome.ALREADY_PRESENT:
        return f"{symbols.get('success', '✅')} {result.name}: already satisfied"
    if result.outcome == StepOutcome.INSTALLED:
        return f"{symbols.get('sparkles', '✨')} {result.name}: installed"
    if result.outcome == StepOutcome.FAILED:
        return f"{symbols.get('error', '❌')} {result.name}: failed ({result.reason})"
    if result.reason == REASON_DRY_RUN:
        return f"{symbols.get('plan', '📝')} {result.name}: would install"
    return f"{symbols.get('skip', '⏭️')} {result.name}: skipped ({result.reason})"


def format_summary(report: RunReport) -> str:
    """
    Build the final summary, one line of counts followed by the names of
    failed and blocked steps, if any.
    """
    lines = [
        "Summary: "
        f"{report.count(StepOutcome.ALREADY_PRESENT)} already present, "
        f"{report.count(StepOutcome.INSTALLED)} installed, "
        f"{report.count(StepOutcome.FAILED)} failed, "
        f"{report.count(StepOutcome.SKIPPED)} skipped"
    ]

    failed = report.failed_names()
    if failed:
        lines.append(f"Failed (re-run to retry): {', '.join(failed)}")

    blocked = report.blocked_names()
    if blocked:
        lines.append(f"Not attempted because of failures: {', '.join(blocked)}")

    if report.cancelled:
        not_started = [
            result.name
            for result in report.results
            if result.reason == REASON_CANCELLED
        ]
        lines.append(
            f"Run cancelled; not started: {', '.join(not_started) or 'none'}"
        )

    return "\n".join(lines)


class ConsoleReporter:
    """Writes status lines and the run summary to a text stream."""

    def __init__(
        self,
        symbols: Optional[Dict[str, str]] = None,
        stream: Optional[TextIO] = None,
    ):
        self.symbols = symbols or SYMBOLS_DEFAULT
        self.stream = stream if stream is not None else sys.stdout

    def step_finished(self, result: StepResult) -> None:
        self._write(format_status_line(result, self.symbols))

    def run_finished(self, report: RunReport) -> None:
        self._write(format_summary(report))

    def _write(self, text: str) -> None:
        self.stream.write(text + "\n")
        self.stream.flush()
