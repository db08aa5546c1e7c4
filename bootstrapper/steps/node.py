# bootstrapper/steps/node.py
# -*- coding: utf-8 -*-
"""
Steps for nvm, the Node.js LTS runtime and globally installed npm tools.

Node.js is installed through nvm, so its binaries live under
<nvm_dir>/versions/node/<version>/bin and are not on PATH for this
process. Presence checks and npm invocations look there as well.
"""

import os
import re
from pathlib import Path
from typing import List, Tuple

from bootstrapper.exceptions import StepError
from bootstrapper.registry import StepRegistry
from bootstrapper.steps.shell_step import ShellStep

_VERSION_DIR = re.compile(r"^v(\d+)\.(\d+)\.(\d+)$")


def _version_key(path: Path) -> Tuple[int, int, int]:
    match = _VERSION_DIR.match(path.parent.name)
    if not match:
        return (-1, -1, -1)
    return (int(match.group(1)), int(match.group(2)), int(match.group(3)))


def nvm_node_bin_dirs(nvm_dir: Path) -> List[Path]:
    """
    The bin directories of every nvm-installed Node.js version, newest first.
    """
    versions_dir = nvm_dir / "versions" / "node"
    if not versions_dir.is_dir():
        return []
    bin_dirs = [path for path in versions_dir.glob("*/bin") if path.is_dir()]
    return sorted(bin_dirs, key=_version_key, reverse=True)


class NodeToolStep(ShellStep):
    """A step whose executables may live in an nvm node version."""

    def search_dirs(self) -> List[Path]:
        return super().search_dirs() + nvm_node_bin_dirs(
            self.app_settings.nvm.nvm_dir
        )


@StepRegistry.register(
    name="nvm",
    metadata={
        "platforms": ["linux"],
        "description": "nvm Node.js version manager",
    },
)
class NvmStep(ShellStep):
    """nvm is a shell function, so presence is its nvm.sh script."""

    def is_installed(self) -> bool:
        return (self.app_settings.nvm.nvm_dir / "nvm.sh").is_file()

    def perform_install(self) -> None:
        nvm_dir = self.app_settings.nvm.nvm_dir
        # The nvm installer refuses to create a custom NVM_DIR itself.
        nvm_dir.mkdir(parents=True, exist_ok=True)
        self.run_script(
            f"curl -fsSL {self.app_settings.nvm.install_url} | bash",
            extra_env={"NVM_DIR": str(nvm_dir)},
        )


@StepRegistry.register(
    name="nodejs",
    metadata={
        "dependencies": ["nvm"],
        "platforms": ["linux"],
        "description": "Node.js LTS via nvm",
    },
)
class NodeStep(NodeToolStep):
    executable = "node"

    def perform_install(self) -> None:
        nvm_dir = self.app_settings.nvm.nvm_dir
        nvm_script = nvm_dir / "nvm.sh"
        if not nvm_script.is_file():
            raise StepError(f"{nvm_script} not found")
        self.run_script(
            f'. "{nvm_script}" && nvm install --lts && nvm alias default "lts/*"',
            extra_env={"NVM_DIR": str(nvm_dir)},
        )


class NpmGlobalStep(NodeToolStep):
    """
    Installs an npm package globally. The package name comes from the
    `npm_packages` setting, keyed by step name.
    """

    def package_name(self) -> str:
        package = self.app_settings.npm_packages.get(self.name)
        if not package:
            raise StepError(f"No npm package configured for step '{self.name}'")
        return package

    def perform_install(self) -> None:
        npm = self.find("npm")
        if npm is None:
            raise StepError("npm not found; install Node.js first")

        # npm's own shebang resolves `node` through PATH.
        node_bin = str(Path(npm).parent)
        path = os.pathsep.join([node_bin, os.environ.get("PATH", "")])
        self.run(
            [npm, "install", "-g", self.package_name()],
            extra_env={"PATH": path},
        )


@StepRegistry.register(
    name="claude-code",
    metadata={
        "dependencies": ["nodejs"],
        "platforms": ["linux"],
        "description": "Claude Code CLI (npm)",
    },
)
class ClaudeCodeStep(NpmGlobalStep):
    executable = "claude"


@StepRegistry.register(
    name="codex",
    metadata={
        "dependencies": ["nodejs"],
        "platforms": ["linux"],
        "description": "Codex CLI (npm)",
    },
)
class CodexStep(NpmGlobalStep):
    executable = "codex"


@StepRegistry.register(
    name="task-master",
    metadata={
        "dependencies": ["nodejs"],
        "platforms": ["linux"],
        "description": "task-master CLI (npm)",
    },
)
class TaskMasterStep(NpmGlobalStep):
    executable = "task-master"
