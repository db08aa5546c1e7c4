"""
Built-in bootstrap steps.

Importing this package registers every built-in step with the
StepRegistry.
"""

from bootstrapper.steps import apt_packages, chezmoi, mise, neovim, node  # noqa: F401
from bootstrapper.steps.command_step import CommandStep
from bootstrapper.steps.shell_step import FingerprintStep, ShellStep

__all__ = ["CommandStep", "FingerprintStep", "ShellStep"]
