# bootstrapper/steps/shell_step.py
# -*- coding: utf-8 -*-
"""
Common base for steps that install tools by running commands.
"""

import logging
import os
import subprocess
import time
from abc import abstractmethod
from pathlib import Path
from typing import Dict, List, Optional, Union

from bootstrapper.base_step import BaseStep
from bootstrapper.exceptions import StepError
from common.command_utils import (
    find_executable,
    run_command,
    run_elevated_command,
)
from common.state_manager import StateManager, file_fingerprint
from settings.config_models import AppSettings


class ShellStep(BaseStep):
    """
    A step whose presence is an executable and whose install action is a
    sequence of commands.

    The timeout given to install() bounds the whole install action: each
    command only gets the time that is left.
    """

    executable: Optional[str] = None

    def __init__(
        self,
        app_settings: AppSettings,
        logger: Optional[logging.Logger] = None,
    ):
        super().__init__(app_settings, logger)
        self._deadline: Optional[float] = None
        self._timeout: Optional[float] = None

    def search_dirs(self) -> List[Path]:
        """Directories searched after PATH when looking for executables."""
        return [self.app_settings.user_bin_dir]

    def find(self, command_name: Optional[str] = None) -> Optional[str]:
        name = command_name or self.executable
        if not name:
            return None
        return find_executable(name, self.search_dirs())

    def is_installed(self) -> bool:
        return self.find() is not None

    def install(self, timeout: Optional[float] = None) -> None:
        self._timeout = timeout
        self._deadline = time.monotonic() + timeout if timeout else None
        self.perform_install()

    @abstractmethod
    def perform_install(self) -> None:
        """Run the install commands, raising on failure."""

    def _remaining(self, command: Union[List[str], str]) -> Optional[float]:
        if self.cancel_requested():
            raise StepError("cancelled before the next command")
        if self._deadline is None:
            return None
        remaining = self._deadline - time.monotonic()
        if remaining <= 0:
            raise subprocess.TimeoutExpired(command, self._timeout or 0)
        return remaining

    def _env(self, extra_env: Optional[Dict[str, str]]) -> Optional[Dict[str, str]]:
        if not extra_env:
            return None
        env = dict(os.environ)
        env.update(extra_env)
        return env

    def run(
        self,
        command: List[str],
        extra_env: Optional[Dict[str, str]] = None,
        elevated: bool = False,
    ) -> subprocess.CompletedProcess:
        """
        Run a command, raising CalledProcessError on a non-zero exit.

        Unprivileged commands run in their own session: a timeout kills
        every process they started, and a first Ctrl+C lets them finish.
        Elevated commands stay on the terminal so that sudo can prompt.
        """
        timeout = self._remaining(command)
        if elevated:
            return run_elevated_command(
                command,
                self.app_settings,
                current_logger=self.logger,
                env=self._env(extra_env),
                timeout=timeout,
            )
        return run_command(
            command,
            self.app_settings,
            current_logger=self.logger,
            env=self._env(extra_env),
            timeout=timeout,
            own_session=True,
        )

    def run_script(
        self,
        script: str,
        extra_env: Optional[Dict[str, str]] = None,
        elevated: bool = False,
    ) -> subprocess.CompletedProcess:
        """
        Run a bash script with pipefail, so that a failing download in a
        `curl ... | sh` pipeline fails the command.
        """
        return self.run(
            ["bash", "-o", "pipefail", "-c", script],
            extra_env=extra_env,
            elevated=elevated,
        )


class FingerprintStep(ShellStep):
    """
    A run-once step keyed on the content of an input file.

    The step is present when the sha256 of its input file equals the one
    recorded after its last successful install, so editing the file makes
    it run again. A missing input file means there is nothing to install.
    """

    def __init__(
        self,
        app_settings: AppSettings,
        logger: Optional[logging.Logger] = None,
    ):
        super().__init__(app_settings, logger)
        self.state = StateManager(app_settings.state_file, self.logger)

    @abstractmethod
    def input_file(self) -> Path:
        """The file whose content decides whether the step runs."""

    def is_installed(self) -> bool:
        fingerprint = file_fingerprint(self.input_file())
        if fingerprint is None:
            self.logger.debug(
                f"{self.input_file()} not found, nothing to install for '{self.name}'."
            )
            return True
        return self.state.matches(self.name, fingerprint)

    def install(self, timeout: Optional[float] = None) -> None:
        # Taken before installing: edits made meanwhile trigger another run.
        fingerprint = file_fingerprint(self.input_file())
        super().install(timeout)
        if fingerprint is not None:
            self.state.record(self.name, fingerprint)
