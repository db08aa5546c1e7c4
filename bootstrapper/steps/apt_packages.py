# bootstrapper/steps/apt_packages.py
# -*- coding: utf-8 -*-
"""
Installs the apt packages listed in the user's package list file.

The step re-runs whenever the content of the list changes.
"""

from pathlib import Path
from typing import List

from bootstrapper.exceptions import StepError
from bootstrapper.registry import StepRegistry
from bootstrapper.steps.shell_step import FingerprintStep


def read_package_list(path: Path) -> List[str]:
    """
    Parse a package list: one package per line, '#' starts a comment,
    blank lines are ignored. Duplicates keep their first position.
    """
    packages: List[str] = []
    for line in path.read_text(encoding="utf-8").splitlines():
        entry = line.split("#", 1)[0].strip()
        if entry and entry not in packages:
            packages.append(entry)
    return packages


@StepRegistry.register(
    name="apt-packages",
    metadata={
        "platforms": ["linux"],
        "description": "apt packages from the package list",
    },
)
class AptPackagesStep(FingerprintStep):
    """Runs apt-get update and installs every listed package."""

    def input_file(self) -> Path:
        return self.app_settings.apt.packages_file

    def perform_install(self) -> None:
        packages = read_package_list(self.input_file())
        if not packages:
            self.logger.info(
                f"{self.input_file()} lists no packages, nothing to install."
            )
            return

        if self.find("apt-get") is None:
            raise StepError("apt-get not found; this step needs a Debian-based system")

        self.logger.info(f"Installing {len(packages)} apt packages...")
        self.run(["apt-get", "update"], elevated=True)
        self.run(
            ["env", "DEBIAN_FRONTEND=noninteractive", "apt-get", "install", "-y"]
            + packages,
            elevated=True,
        )
