# bootstrapper/base_step.py
# -*- coding: utf-8 -*-
"""
Base class for all bootstrap steps.

A step pairs a presence check (is_installed) with an install action
(install). The runner only ever calls these two methods and reads the
step's metadata; how presence is determined and how the tool is installed
is up to each subclass.
"""

import logging
import sys
import threading
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

from settings.config_models import AppSettings

DEFAULT_METADATA: Dict[str, Any] = {
    "dependencies": [],  # Steps that must succeed first
    "after": [],  # Steps ordered first without blocking this one
    "required": True,  # Whether a failure degrades the run status
    "platforms": [],  # sys.platform prefixes; empty means all
    "verify": True,  # Re-run the presence check after installing
    "description": "",
}


class BaseStep(ABC):
    """
    Base class for all bootstrap steps.

    Subclasses implement is_installed() and install(). is_installed() must
    be side-effect free. install() signals failure by raising; returning
    normally means the action completed.
    """

    # Set by StepRegistry.register, or per instance for config-driven steps.
    name: str = ""
    metadata: Dict[str, Any] = dict(DEFAULT_METADATA)

    def __init__(
        self,
        app_settings: AppSettings,
        logger: Optional[logging.Logger] = None,
    ):
        """
        Initialize the step.

        Args:
            app_settings: The application settings.
            logger: Optional logger instance. If not provided, a new logger will be created.
        """
        self.app_settings = app_settings
        self.logger = logger or logging.getLogger(self.__class__.__name__)
        # Set by the runner; steps that spawn several commands stop between them.
        self.cancel_event: Optional[threading.Event] = None

    def cancel_requested(self) -> bool:
        return self.cancel_event is not None and self.cancel_event.is_set()

    @abstractmethod
    def is_installed(self) -> bool:
        """
        Check whether the tool is already usable on this host.

        Returns:
            True if the tool is present, False otherwise.
        """

    @abstractmethod
    def install(self, timeout: Optional[float] = None) -> None:
        """
        Install the tool.

        Args:
            timeout: Seconds each command may run, or None for no limit.

        Raises:
            subprocess.CalledProcessError, subprocess.TimeoutExpired,
            StepError or OSError when the installation fails.
        """

    def get_dependencies(self) -> List[str]:
        return list(self.metadata.get("dependencies", []))

    def get_after(self) -> List[str]:
        return list(self.metadata.get("after", []))

    def is_required(self) -> bool:
        return bool(self.metadata.get("required", True))

    def should_verify(self) -> bool:
        return bool(self.metadata.get("verify", True))

    def get_description(self) -> str:
        return str(self.metadata.get("description", ""))

    def supports_platform(self, platform: Optional[str] = None) -> bool:
        """
        Check whether this step runs on the given (or current) platform.
        """
        platforms = self.metadata.get("platforms", [])
        if not platforms:
            return True
        current = platform if platform is not None else sys.platform
        return any(current.startswith(prefix) for prefix in platforms)

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__} {self.name!r}>"
