# bootstrapper/steps/chezmoi.py
# -*- coding: utf-8 -*-
"""
Installs the chezmoi dotfile manager into the user's bin directory.
"""

from bootstrapper.registry import StepRegistry
from bootstrapper.steps.shell_step import ShellStep


@StepRegistry.register(
    name="chezmoi",
    metadata={
        "platforms": ["linux"],
        "description": "chezmoi dotfile manager",
    },
)
class ChezmoiStep(ShellStep):
    executable = "chezmoi"

    def perform_install(self) -> None:
        bin_dir = self.app_settings.user_bin_dir
        self.run_script(
            f'curl -fsLS {self.app_settings.chezmoi.install_url} | sh -s -- -b "{bin_dir}"'
        )
