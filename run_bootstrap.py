#!/usr/bin/env python3
"""
Entry point for the dotfiles bootstrap tool.

Runs the bootstrap plan against this machine: every step whose tool is
missing is installed, steps that are already satisfied are left alone, and
a failing step does not stop the others.

Exit codes: 0 success, 1 partial failure, 2 configuration or unexpected
error, 130 cancelled.
"""

import argparse
import logging
import signal
import sys
import threading
from contextlib import contextmanager
from typing import Iterator, List, Optional

from bootstrapper.exceptions import PlanError
from bootstrapper.models import EXIT_CANCELLED, EXIT_FATAL, EXIT_SUCCESS
from bootstrapper.plan import build_plan
from bootstrapper.reporting import ConsoleReporter
from bootstrapper.runner import BootstrapRunner, check_presence
from common.logging_config import setup_logging
from settings.config_loader import ConfigError, load_app_settings

SERVICE_NAME = "dotfiles-bootstrap"


def _positive_float(value: str) -> float:
    try:
        number = float(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid number: {value!r}")
    if number <= 0:
        raise argparse.ArgumentTypeError("must be greater than zero")
    return number


def parse_args(args: Optional[List[str]] = None) -> argparse.Namespace:
    """
    Parse command-line arguments.

    Args:
        args: Command-line arguments. If None, sys.argv[1:] is used.

    Returns:
        Parsed arguments.
    """
    parser = argparse.ArgumentParser(
        prog=SERVICE_NAME,
        description="Install the tools of the bootstrap plan that are missing on this machine.",
    )

    parser.add_argument(
        "-v", "--verbose", action="store_true", help="Enable verbose output"
    )
    parser.add_argument(
        "--config",
        metavar="PATH",
        help="YAML configuration file (default: ~/.config/dotfiles-bootstrap/config.yaml)",
    )
    parser.add_argument(
        "--log-file",
        metavar="PATH",
        help="Also write JSON-structured logs to this file",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Check which steps are satisfied and show the plan without installing anything",
    )
    parser.add_argument(
        "--only", metavar="NAME", help="Run only the named step"
    )
    parser.add_argument(
        "--timeout",
        metavar="SECONDS",
        type=_positive_float,
        help="Fail a step whose install takes longer than this",
    )
    parser.add_argument(
        "--list",
        action="store_true",
        help="List the steps of the plan and whether they are satisfied",
    )

    mode = parser.add_mutually_exclusive_group()
    mode.add_argument(
        "--continue-on-error",
        dest="fail_fast",
        action="store_const",
        const=False,
        help="Keep going after a failed step (default)",
    )
    mode.add_argument(
        "--fail-fast",
        dest="fail_fast",
        action="store_const",
        const=True,
        help="Stop the run at the first failed step",
    )
    parser.set_defaults(fail_fast=None)

    return parser.parse_args(args)


@contextmanager
def handle_interrupts(
    cancel_event: threading.Event, logger: logging.Logger
) -> Iterator[None]:
    """
    Turn SIGINT and SIGTERM into a cancellation request for the runner.

    The first signal sets `cancel_event`; the running step is allowed to
    finish. Unprivileged step commands run in their own session, so a
    Ctrl+C on the terminal does not reach them; elevated commands share the
    terminal and do receive it. A second SIGINT raises KeyboardInterrupt as
    usual.
    """
    if threading.current_thread() is not threading.main_thread():
        yield
        return

    def request_cancel(signum, frame):
        if cancel_event.is_set() and signum == signal.SIGINT:
            signal.signal(signal.SIGINT, signal.default_int_handler)
            raise KeyboardInterrupt
        logger.warning(
            "Cancellation requested; finishing the current step. Press Ctrl+C again to abort immediately."
        )
        cancel_event.set()

    previous_int = signal.signal(signal.SIGINT, request_cancel)
    previous_term = signal.signal(signal.SIGTERM, request_cancel)
    try:
        yield
    finally:
        signal.signal(signal.SIGINT, previous_int)
        signal.signal(signal.SIGTERM, previous_term)


def list_steps(plan, symbols, logger) -> None:
    for step in plan:
        present = step.supports_platform() and check_presence(step, logger, symbols)
        marker = symbols.get("success", "✅") if present else symbols.get("plan", "📝")
        dependencies = step.get_dependencies()
        requires = f" (requires {', '.join(dependencies)})" if dependencies else ""
        print(f"{marker} {step.name}: {step.get_description()}{requires}")


def main(args: Optional[List[str]] = None) -> int:
    """
    Main entry point for the bootstrap tool.

    Args:
        args: Command-line arguments. If None, sys.argv[1:] is used.

    Returns:
        Exit code.
    """
    parsed_args = parse_args(args)

    logger = setup_logging(
        SERVICE_NAME,
        "DEBUG" if parsed_args.verbose else "INFO",
        log_file_path=parsed_args.log_file,
    )

    try:
        app_settings = load_app_settings(
            parsed_args, parsed_args.config, logger
        )
        logger = setup_logging(
            SERVICE_NAME,
            app_settings.log_level,
            log_file_path=app_settings.log_file,
        )

        plan = build_plan(app_settings, only=parsed_args.only, logger=logger)

        if parsed_args.list:
            list_steps(plan, app_settings.symbols, logger)
            return EXIT_SUCCESS

        cancel_event = threading.Event()
        runner = BootstrapRunner(
            app_settings,
            logger,
            reporter=ConsoleReporter(app_settings.symbols),
            cancel_event=cancel_event,
            dry_run=parsed_args.dry_run,
        )
        with handle_interrupts(cancel_event, logger):
            report = runner.run(plan)

        return report.exit_code()

    except (ConfigError, PlanError) as e:
        logger.error(f"Invalid bootstrap plan or configuration: {e}")
        return EXIT_FATAL
    except KeyboardInterrupt:
        logger.warning("Bootstrap aborted.")
        return EXIT_CANCELLED
    except Exception as e:
        logger.exception(f"Error: {str(e)}")
        return EXIT_FATAL


if __name__ == "__main__":
    sys.exit(main())
