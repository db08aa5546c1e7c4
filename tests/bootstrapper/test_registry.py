# tests/bootstrapper/test_registry.py
# -*- coding: utf-8 -*-
"""
Tests for the StepRegistry.
"""

import pytest

from bootstrapper.base_step import BaseStep
from bootstrapper.exceptions import PlanError
from bootstrapper.registry import StepRegistry


class _DummyStep(BaseStep):
    def is_installed(self):
        return True

    def install(self, timeout=None):
        pass


@pytest.fixture
def registered():
    """Register throwaway steps and remove them again afterwards."""
    names = []

    def register(name, **metadata):
        step_class = type(f"Step_{name}", (_DummyStep,), {})
        StepRegistry.register(name, metadata)(step_class)
        names.append(name)
        return step_class

    yield register

    for name in names:
        StepRegistry.unregister(name)


class TestStepRegistry:
    def test_builtin_steps_registered(self):
        for name in ("apt-packages", "mise", "mise-tools", "neovim", "nvm",
                     "nodejs", "claude-code", "codex", "task-master", "chezmoi"):
            assert StepRegistry.is_registered(name)

    def test_register_sets_name_and_metadata(self, registered):
        step_class = registered("t-alpha", dependencies=["t-base"], required=False)

        assert step_class.name == "t-alpha"
        assert step_class.metadata["dependencies"] == ["t-base"]
        assert step_class.metadata["required"] is False
        assert step_class.metadata["verify"] is True
        assert StepRegistry.get_step("t-alpha") is step_class

    def test_duplicate_registration_rejected(self, registered):
        registered("t-alpha")

        with pytest.raises(PlanError, match="already registered"):
            StepRegistry.register("t-alpha")(type("Other", (_DummyStep,), {}))

    def test_get_unknown_step(self):
        with pytest.raises(PlanError, match="No step registered"):
            StepRegistry.get_step("t-missing")

    def test_resolve_dependencies_pulls_in_missing(self, registered):
        registered("t-base")
        registered("t-mid", dependencies=["t-base"])
        registered("t-top", dependencies=["t-mid"])

        assert StepRegistry.resolve_dependencies(["t-top"]) == [
            "t-base",
            "t-mid",
            "t-top",
        ]

    def test_resolve_dependencies_keeps_order(self, registered):
        registered("t-x")
        registered("t-y")

        assert StepRegistry.resolve_dependencies(["t-y", "t-x"]) == ["t-y", "t-x"]

    def test_resolve_dependencies_detects_cycle(self, registered):
        registered("t-a", dependencies=["t-b"])
        registered("t-b", dependencies=["t-a"])

        with pytest.raises(PlanError, match="Circular"):
            StepRegistry.resolve_dependencies(["t-a"])

    def test_resolve_unknown_dependency(self, registered):
        registered("t-a", dependencies=["t-ghost"])

        with pytest.raises(PlanError, match="t-ghost"):
            StepRegistry.resolve_dependencies(["t-a"])
