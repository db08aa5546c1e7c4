# bootstrapper/plan.py
# -*- coding: utf-8 -*-
"""
Builds and validates the bootstrap plan.

The plan is built once at startup from the settings: the enabled built-in
steps (plus any registered dependencies they need), followed by the custom
command steps from the configuration. Malformed plans raise PlanError
before anything is executed.
"""

import logging
from typing import Dict, List, Optional

from bootstrapper.base_step import BaseStep
from bootstrapper.exceptions import PlanError
from bootstrapper.registry import StepRegistry
from bootstrapper.steps import CommandStep
from settings.config_models import AppSettings

module_logger = logging.getLogger(__name__)


def check_unique_names(steps: List[BaseStep]) -> None:
    """
    Raises:
        PlanError: If two steps share a name.
    """
    seen = set()
    duplicates = []
    for step in steps:
        if step.name in seen and step.name not in duplicates:
            duplicates.append(step.name)
        seen.add(step.name)
    if duplicates:
        raise PlanError(f"Duplicate step names in plan: {', '.join(duplicates)}")


def validate_plan(steps: List[BaseStep]) -> None:
    """
    Check that step names are unique and every hard dependency is part of
    the plan. Soft (`after`) references to steps outside the plan are
    allowed and ignored.

    Raises:
        PlanError: If the plan is malformed.
    """
    check_unique_names(steps)
    names = {step.name for step in steps}
    for step in steps:
        missing = [dep for dep in step.get_dependencies() if dep not in names]
        if missing:
            raise PlanError(
                f"Step '{step.name}' depends on unknown step(s): {', '.join(missing)}"
            )


def resolve_order(steps: List[BaseStep]) -> List[BaseStep]:
    """
    Order steps so that every step comes after its dependencies and its
    `after` steps, keeping the given order wherever possible.

    Raises:
        PlanError: On duplicate names or a cycle.
    """
    check_unique_names(steps)
    by_name: Dict[str, BaseStep] = {step.name: step for step in steps}
    result: List[BaseStep] = []
    visited = set()
    temp_visited = set()

    def visit(step: BaseStep):
        if step.name in temp_visited:
            raise PlanError(
                f"Circular dependency detected involving '{step.name}'"
            )
        if step.name in visited:
            return

        temp_visited.add(step.name)
        for predecessor in step.get_dependencies() + step.get_after():
            if predecessor in by_name:
                visit(by_name[predecessor])
        temp_visited.remove(step.name)

        visited.add(step.name)
        result.append(step)

    for step in steps:
        visit(step)

    return result


def restrict_to(steps: List[BaseStep], only: str) -> List[BaseStep]:
    """
    Reduce the plan to the single named step.

    Raises:
        PlanError: If no step has that name.
    """
    selected = [step for step in steps if step.name == only]
    if not selected:
        raise PlanError(
            f"Unknown step '{only}'. Known steps: {', '.join(step.name for step in steps)}"
        )
    return selected


def build_plan(
    app_settings: AppSettings,
    only: Optional[str] = None,
    logger: Optional[logging.Logger] = None,
) -> List[BaseStep]:
    """
    Build the ordered plan from the settings.

    Args:
        app_settings: The application settings; `steps` lists the built-in
            steps to run and `custom_steps` the command-driven ones.
        only: If given, restrict the plan to this step.
        logger: Optional logger passed on to every step.

    Returns:
        Step instances in execution order.

    Raises:
        PlanError: On unknown or duplicate step names, unknown
            dependencies or dependency cycles.
    """
    logger_to_use = logger if logger else module_logger

    configured = list(app_settings.steps)
    duplicates = sorted({name for name in configured if configured.count(name) > 1})
    if duplicates:
        raise PlanError(f"Duplicate step names in plan: {', '.join(duplicates)}")

    custom_steps: List[BaseStep] = [
        CommandStep(app_settings, custom, logger_to_use)
        for custom in app_settings.custom_steps
    ]

    # Built-in dependencies of custom steps are pulled in as well.
    custom_names = {step.name for step in custom_steps}
    wanted = list(configured)
    for step in custom_steps:
        for dependency in step.get_dependencies():
            if (
                dependency not in wanted
                and dependency not in custom_names
                and StepRegistry.is_registered(dependency)
            ):
                wanted.append(dependency)

    builtin_names = StepRegistry.resolve_dependencies(wanted)
    pulled_in = [name for name in builtin_names if name not in configured]
    if pulled_in:
        logger_to_use.info(
            f"Adding required step(s) to the plan: {', '.join(pulled_in)}"
        )

    steps: List[BaseStep] = [
        StepRegistry.get_step(name)(app_settings, logger_to_use)
        for name in builtin_names
    ]
    steps.extend(custom_steps)

    validate_plan(steps)
    ordered = resolve_order(steps)

    if only:
        ordered = restrict_to(ordered, only)

    logger_to_use.debug(
        f"Resolved plan: {', '.join(step.name for step in ordered)}"
    )
    return ordered
