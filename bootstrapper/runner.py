# bootstrapper/runner.py
# -*- coding: utf-8 -*-
"""
Runner executing a resolved bootstrap plan.

The runner walks the plan once, in order. A step whose presence check
passes is recorded as already present and never installed; a failed
install is recorded and the run moves on to the next step. Only steps that
depend on a failed step are skipped. Cancellation lets the current step
finish and then skips everything not yet started.
"""

import logging
import subprocess
import threading
import time
from typing import Dict, List, Optional

from bootstrapper.base_step import BaseStep
from bootstrapper.models import (
    REASON_CANCELLED,
    REASON_DEPENDENCY_FAILED,
    REASON_DRY_RUN,
    REASON_FAIL_FAST,
    REASON_INTERRUPTED,
    REASON_NOT_DETECTED,
    REASON_TIMEOUT,
    REASON_UNSUPPORTED_PLATFORM,
    RunReport,
    StepOutcome,
    StepResult,
)
from bootstrapper.plan import check_unique_names
from bootstrapper.reporting import ConsoleReporter
from settings.config_models import AppSettings

module_logger = logging.getLogger(__name__)


def describe_error(error: BaseException) -> str:
    """Short, single-line reason for a failed install action."""
    if isinstance(error, subprocess.CalledProcessError):
        return f"command exited with status {error.returncode}"
    message = str(error).strip().splitlines()
    return message[0] if message else error.__class__.__name__


def check_presence(
    step: BaseStep, logger: logging.Logger, symbols: Dict[str, str]
) -> bool:
    """Run the presence check of a step. A check that raises means absent."""
    try:
        return bool(step.is_installed())
    except Exception as e:
        logger.warning(
            f"{symbols.get('warning', '⚠️')} Presence check for '{step.name}' raised an error, "
            f"treating it as not installed: {e}"
        )
        return False


class BootstrapRunner:
    """
    Executes an ordered list of steps against the current host.

    Steps are run sequentially in the given order; the plan is expected to
    be validated and dependency-sorted already (see bootstrapper.plan).
    """

    def __init__(
        self,
        app_settings: AppSettings,
        logger: Optional[logging.Logger] = None,
        reporter: Optional[ConsoleReporter] = None,
        cancel_event: Optional[threading.Event] = None,
        dry_run: bool = False,
        fail_fast: Optional[bool] = None,
        timeout: Optional[float] = None,
        platform: Optional[str] = None,
    ):
        """
        Initialize the runner.

        Args:
            app_settings: The application settings.
            logger: Optional logger instance.
            reporter: Sink for status lines. Defaults to stdout.
            cancel_event: Event that requests cancellation when set.
            dry_run: Evaluate presence checks without installing anything.
            fail_fast: Abort after the first failure. Defaults to
                app_settings.fail_fast.
            timeout: Per-command timeout in seconds. Defaults to
                app_settings.step_timeout.
            platform: Platform string used for platform checks. Defaults to
                sys.platform.
        """
        self.app_settings = app_settings
        self.logger = logger or module_logger
        self.symbols = app_settings.symbols
        self.reporter = reporter or ConsoleReporter(self.symbols)
        self.cancel_event = cancel_event or threading.Event()
        self.dry_run = dry_run
        self.fail_fast = (
            app_settings.fail_fast if fail_fast is None else fail_fast
        )
        self.timeout = (
            app_settings.step_timeout if timeout is None else timeout
        )
        self.platform = platform

    def cancel(self) -> None:
        """Request cancellation; the current step is allowed to finish."""
        self.cancel_event.set()

    def run(self, plan: List[BaseStep]) -> RunReport:
        """
        Run every step of the plan once.

        Args:
            plan: Steps in execution order.

        Returns:
            The RunReport, with one result per plan step in plan order.

        Raises:
            PlanError: If two steps share a name. Nothing is executed.
        """
        check_unique_names(plan)
        report = RunReport(dry_run=self.dry_run)

        self.logger.info(
            f"Running bootstrap plan{' (dry run)' if self.dry_run else ''}: "
            f"{', '.join(step.name for step in plan) or '(empty)'}"
        )

        for index, step in enumerate(plan):
            if self.cancel_event.is_set():
                report.cancelled = True
                self._skip_remaining(plan[index:], report, REASON_CANCELLED)
                break

            if self.fail_fast and report.failed_names():
                self.logger.error(
                    "A step failed and fail-fast is enabled. Halting the run."
                )
                self._skip_remaining(plan[index:], report, REASON_FAIL_FAST)
                break

            result = self._run_step(step, report)
            report.add(result)
            self.reporter.step_finished(result)

        # An interrupt during the last step still counts as a cancelled run.
        if self.cancel_event.is_set():
            report.cancelled = True

        self.reporter.run_finished(report)
        self.logger.info(
            f"Bootstrap finished with status: {report.overall_status.value}",
            extra={"overall_status": report.overall_status.value},
        )
        return report

    def _skip_remaining(
        self, steps: List[BaseStep], report: RunReport, reason: str
    ) -> None:
        for step in steps:
            result = report.add(
                StepResult(
                    name=step.name,
                    outcome=StepOutcome.SKIPPED,
                    reason=reason,
                    required=step.is_required(),
                )
            )
            self.reporter.step_finished(result)

    def _check_presence(self, step: BaseStep) -> bool:
        return check_presence(step, self.logger, self.symbols)

    def _blocking_dependencies(
        self, step: BaseStep, report: RunReport
    ) -> List[str]:
        """
        Dependencies that ran in this plan and did not complete.

        Dependencies outside the plan (e.g. with --only) are not consulted,
        and a dry-run skip does not block.
        """
        blocking = []
        for dependency in step.get_dependencies():
            result = report.get(dependency)
            if result is None or result.completed:
                continue
            if (
                result.outcome == StepOutcome.SKIPPED
                and result.reason == REASON_DRY_RUN
            ):
                continue
            blocking.append(dependency)
        return blocking

    def _run_step(self, step: BaseStep, report: RunReport) -> StepResult:
        start = time.monotonic()

        def finish(
            outcome: StepOutcome, reason: Optional[str] = None
        ) -> StepResult:
            result = StepResult(
                name=step.name,
                outcome=outcome,
                reason=reason,
                required=step.is_required(),
                duration=round(time.monotonic() - start, 3),
            )
            self.logger.debug(
                f"Step '{step.name}' finished: {outcome.value}",
                extra={
                    "step": step.name,
                    "outcome": outcome.value,
                    "reason": reason,
                    "duration_seconds": result.duration,
                },
            )
            return result

        if not step.supports_platform(self.platform):
            return finish(StepOutcome.SKIPPED, REASON_UNSUPPORTED_PLATFORM)

        if self._check_presence(step):
            return finish(StepOutcome.ALREADY_PRESENT)

        blocking = self._blocking_dependencies(step, report)
        if blocking:
            self.logger.warning(
                f"Not attempting '{step.name}': dependency {', '.join(blocking)} did not complete."
            )
            return finish(StepOutcome.SKIPPED, REASON_DEPENDENCY_FAILED)

        if self.dry_run:
            return finish(StepOutcome.SKIPPED, REASON_DRY_RUN)

        self.logger.info(
            f"{self.symbols.get('package', '📦')} Installing {step.name}..."
        )
        step.cancel_event = self.cancel_event
        try:
            step.install(timeout=self.timeout)
        except subprocess.TimeoutExpired:
            self.logger.error(
                f"{self.symbols.get('error', '❌')} Step '{step.name}' timed out after {self.timeout}s."
            )
            return finish(StepOutcome.FAILED, REASON_TIMEOUT)
        except KeyboardInterrupt:
            self.cancel_event.set()
            self.logger.warning(f"Step '{step.name}' was interrupted.")
            return finish(StepOutcome.FAILED, REASON_INTERRUPTED)
        except Exception as e:
            self.logger.error(
                f"{self.symbols.get('error', '❌')} Step '{step.name}' failed: {e}",
                exc_info=self.logger.isEnabledFor(logging.DEBUG),
            )
            if self.cancel_event.is_set():
                return finish(StepOutcome.FAILED, REASON_INTERRUPTED)
            return finish(StepOutcome.FAILED, describe_error(e))

        if step.should_verify() and not self._check_presence(step):
            self.logger.error(
                f"{self.symbols.get('error', '❌')} '{step.name}' install completed but the tool was not detected."
            )
            return finish(StepOutcome.FAILED, REASON_NOT_DETECTED)

        return finish(StepOutcome.INSTALLED)
