# tests/conftest.py
import io
import logging
import subprocess
from typing import List, Optional
from unittest.mock import MagicMock

import pytest

from bootstrapper.base_step import DEFAULT_METADATA, BaseStep
from bootstrapper.reporting import ConsoleReporter
from bootstrapper.runner import BootstrapRunner
from settings.config_models import AppSettings


class FakeHost:
    """Simulated machine: the set of tools that are currently installed."""

    def __init__(self, installed=None):
        self.installed = set(installed or [])
        self.install_calls: List[str] = []


class FakeStep(BaseStep):
    """
    Step backed by a FakeHost. `fails` makes install raise `error`;
    `silent` makes install succeed without the tool becoming present.
    """

    def __init__(
        self,
        app_settings: AppSettings,
        host: FakeHost,
        name: str,
        fails: bool = False,
        silent: bool = False,
        error: Optional[BaseException] = None,
        dependencies=None,
        after=None,
        required: bool = True,
        platforms=None,
        verify: bool = True,
        on_install=None,
    ):
        super().__init__(app_settings, logging.getLogger("tests.fake_step"))
        self.host = host
        self.name = name
        self.fails = fails
        self.silent = silent
        self.error = error or subprocess.CalledProcessError(1, ["install", name])
        self.on_install = on_install
        self.received_timeout = None
        self.metadata = {
            **DEFAULT_METADATA,
            "dependencies": list(dependencies or []),
            "after": list(after or []),
            "required": required,
            "platforms": list(platforms or []),
            "verify": verify,
            "description": f"fake {name}",
        }

    def is_installed(self) -> bool:
        return self.name in self.host.installed

    def install(self, timeout=None) -> None:
        self.host.install_calls.append(self.name)
        self.received_timeout = timeout
        if self.on_install:
            self.on_install()
        if self.fails:
            raise self.error
        if not self.silent:
            self.host.installed.add(self.name)


@pytest.fixture
def app_settings(tmp_path):
    """Settings whose every path points into the test's temp directory."""
    return AppSettings(
        state_file=tmp_path / "state" / "state.txt",
        user_bin_dir=tmp_path / "bin",
        apt={"packages_file": tmp_path / "packages.list"},
        mise={"config_file": tmp_path / "mise" / "config.toml"},
        nvm={"nvm_dir": tmp_path / ".nvm"},
    )


@pytest.fixture
def mock_logger():
    """Fixture to create a mock logger for testing."""
    return MagicMock(spec=logging.Logger)


@pytest.fixture
def host():
    return FakeHost()


@pytest.fixture
def make_step(app_settings, host):
    """Factory for FakeSteps sharing the test's FakeHost."""

    def factory(name: str, **kwargs) -> FakeStep:
        return FakeStep(app_settings, host, name, **kwargs)

    return factory


@pytest.fixture
def output():
    return io.StringIO()


@pytest.fixture
def make_runner(app_settings, output):
    """Factory for runners that report into the `output` buffer."""

    def factory(**kwargs) -> BootstrapRunner:
        kwargs.setdefault("platform", "linux")
        return BootstrapRunner(
            app_settings,
            logging.getLogger("tests.runner"),
            reporter=ConsoleReporter(app_settings.symbols, stream=output),
            **kwargs,
        )

    return factory
