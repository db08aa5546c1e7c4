# bootstrapper/steps/neovim.py
# -*- coding: utf-8 -*-
"""
Installs Neovim from snap.
"""

from bootstrapper.registry import StepRegistry
from bootstrapper.steps.shell_step import ShellStep


@StepRegistry.register(
    name="neovim",
    metadata={
        "platforms": ["linux"],
        "description": "Neovim (snap, classic confinement)",
    },
)
class NeovimStep(ShellStep):
    executable = "nvim"

    def perform_install(self) -> None:
        self.run(
            ["snap", "install", self.app_settings.neovim_snap, "--classic"],
            elevated=True,
        )
