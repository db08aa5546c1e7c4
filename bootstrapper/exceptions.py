# bootstrapper/exceptions.py
# -*- coding: utf-8 -*-
"""
Exceptions raised by the bootstrap framework.
"""


class BootstrapError(Exception):
    """Base class for bootstrap errors."""


class PlanError(BootstrapError):
    """
    The plan is malformed: duplicate step names, unknown dependencies,
    a dependency cycle or an unknown step requested with --only.

    Raised before any step executes.
    """


class StepError(BootstrapError):
    """An install action failed in a way that is not a subprocess error."""
