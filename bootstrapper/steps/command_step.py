# bootstrapper/steps/command_step.py
# -*- coding: utf-8 -*-
"""
Config-driven step built from a `custom_steps` entry.
"""

import logging
import subprocess
from typing import Optional

from bootstrapper.base_step import DEFAULT_METADATA
from bootstrapper.steps.shell_step import ShellStep
from common.command_utils import check_package_installed, run_command
from settings.config_models import AppSettings, CustomStepSettings


class CommandStep(ShellStep):
    """
    A step whose presence check and install action come from configuration.

    When several presence checks are configured, all of them must pass.
    """

    def __init__(
        self,
        app_settings: AppSettings,
        step_settings: CustomStepSettings,
        logger: Optional[logging.Logger] = None,
    ):
        super().__init__(app_settings, logger)
        self.step_settings = step_settings
        self.name = step_settings.name
        self.executable = step_settings.executable
        self.metadata = {
            **DEFAULT_METADATA,
            "dependencies": list(step_settings.depends_on),
            "after": list(step_settings.after),
            "required": step_settings.required,
            "platforms": list(step_settings.platforms),
            "description": step_settings.description,
        }

    def is_installed(self) -> bool:
        settings = self.step_settings

        if settings.executable and self.find() is None:
            return False
        if settings.directory and not settings.directory.is_dir():
            return False
        if settings.file and not settings.file.is_file():
            return False
        if settings.package and not check_package_installed(
            settings.package, self.app_settings, self.logger
        ):
            return False
        if settings.check_command:
            try:
                result = run_command(
                    ["bash", "-c", settings.check_command],
                    self.app_settings,
                    check=False,
                    capture_output=True,
                    current_logger=self.logger,
                )
            except (OSError, subprocess.SubprocessError) as e:
                self.logger.debug(f"Check command for '{self.name}' failed to run: {e}")
                return False
            if result.returncode != 0:
                return False
        return True

    def perform_install(self) -> None:
        self.run_script(
            self.step_settings.install_command,
            elevated=self.step_settings.elevated,
        )
