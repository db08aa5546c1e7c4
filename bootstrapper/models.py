# bootstrapper/models.py
# -*- coding: utf-8 -*-
"""
Result models for a bootstrap run.

A RunReport is built incrementally by the runner, one StepResult per plan
step in plan order, and is printed at the end of the run.
"""

from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field

EXIT_SUCCESS = 0
EXIT_PARTIAL_FAILURE = 1
EXIT_FATAL = 2
EXIT_CANCELLED = 130

REASON_DEPENDENCY_FAILED = "dependency failed"
REASON_CANCELLED = "cancelled"
REASON_DRY_RUN = "dry run"
REASON_UNSUPPORTED_PLATFORM = "unsupported platform"
REASON_FAIL_FAST = "fail-fast abort"
REASON_TIMEOUT = "timeout"
REASON_INTERRUPTED = "interrupted"
REASON_NOT_DETECTED = "not detected after install"

# Skips that mean work was left undone because something else failed.
BLOCKING_SKIP_REASONS = frozenset([REASON_DEPENDENCY_FAILED, REASON_FAIL_FAST])


class StepOutcome(str, Enum):
    """Outcome of a single step."""

    ALREADY_PRESENT = "already present"
    INSTALLED = "installed"
    FAILED = "failed"
    SKIPPED = "skipped"


class OverallStatus(str, Enum):
    SUCCESS = "success"
    PARTIAL_SUCCESS = "partial success"
    CANCELLED = "cancelled"


class StepResult(BaseModel):
    """The outcome of one step, with the reason for FAILED and SKIPPED."""

    name: str
    outcome: StepOutcome
    reason: Optional[str] = None
    required: bool = True
    duration: float = 0.0

    @property
    def is_failure(self) -> bool:
        return self.outcome == StepOutcome.FAILED

    @property
    def is_blocked(self) -> bool:
        return (
            self.outcome == StepOutcome.SKIPPED
            and self.reason in BLOCKING_SKIP_REASONS
        )

    @property
    def completed(self) -> bool:
        """True if the tool is usable after this step."""
        return self.outcome in (
            StepOutcome.ALREADY_PRESENT,
            StepOutcome.INSTALLED,
        )


class RunReport(BaseModel):
    """Ordered record of step outcomes for one bootstrap invocation."""

    results: List[StepResult] = Field(default_factory=list)
    cancelled: bool = False
    dry_run: bool = False

    def add(self, result: StepResult) -> StepResult:
        self.results.append(result)
        return result

    def get(self, name: str) -> Optional[StepResult]:
        for result in self.results:
            if result.name == name:
                return result
        return None

    def names(self) -> List[str]:
        return [result.name for result in self.results]

    def count(self, outcome: StepOutcome) -> int:
        return sum(1 for result in self.results if result.outcome == outcome)

    def failed_names(self) -> List[str]:
        return [result.name for result in self.results if result.is_failure]

    def blocked_names(self) -> List[str]:
        return [result.name for result in self.results if result.is_blocked]

    @property
    def overall_status(self) -> OverallStatus:
        """
        SUCCESS unless a required step failed or a step was left undone
        because of another failure; CANCELLED overrides both.
        """
        if self.cancelled:
            return OverallStatus.CANCELLED
        for result in self.results:
            if (result.is_failure and result.required) or result.is_blocked:
                return OverallStatus.PARTIAL_SUCCESS
        return OverallStatus.SUCCESS

    def exit_code(self) -> int:
        status = self.overall_status
        if status == OverallStatus.SUCCESS:
            return EXIT_SUCCESS
        if status == OverallStatus.CANCELLED:
            return EXIT_CANCELLED
        return EXIT_PARTIAL_FAILURE
