"""
Bootstrap framework.

This package provides the steps, registry, plan builder and runner that
provision a fresh machine with a developer's tools.
"""

from bootstrapper.base_step import BaseStep
from bootstrapper.exceptions import BootstrapError, PlanError, StepError
from bootstrapper.registry import StepRegistry
from bootstrapper.plan import build_plan
from bootstrapper.runner import BootstrapRunner

__all__ = [
    "BaseStep",
    "BootstrapError",
    "BootstrapRunner",
    "PlanError",
    "StepError",
    "StepRegistry",
    "build_plan",
]
