# bootstrapper/steps/mise.py
# -*- coding: utf-8 -*-
"""
Steps for the mise version manager and the tools it manages.
"""

from pathlib import Path

from bootstrapper.exceptions import StepError
from bootstrapper.registry import StepRegistry
from bootstrapper.steps.shell_step import FingerprintStep, ShellStep


@StepRegistry.register(
    name="mise",
    metadata={
        "platforms": ["linux"],
        "description": "mise version manager",
    },
)
class MiseStep(ShellStep):
    executable = "mise"

    def perform_install(self) -> None:
        self.run_script(f"curl -fsSL {self.app_settings.mise.install_url} | sh")


@StepRegistry.register(
    name="mise-tools",
    metadata={
        "dependencies": ["mise"],
        "platforms": ["linux"],
        "description": "Tools declared in the mise config.toml",
    },
)
class MiseToolsStep(FingerprintStep):
    """Runs `mise install` whenever the mise config changes."""

    def input_file(self) -> Path:
        return self.app_settings.mise.config_file

    def perform_install(self) -> None:
        mise = self.find("mise")
        if mise is None:
            raise StepError("mise not found")
        self.run([mise, "install"])
