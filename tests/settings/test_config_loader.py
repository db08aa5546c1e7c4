# tests/settings/test_config_loader.py
# -*- coding: utf-8 -*-
"""
Tests for settings models and the layered configuration loader.
"""

import argparse
import os
from pathlib import Path

import pytest
from pydantic import ValidationError

from settings.config_loader import (
    ConfigError,
    _deep_update,
    _map_cli_args,
    load_app_settings,
    load_yaml_config,
)
from settings.config_models import (
    DEFAULT_STEPS,
    AppSettings,
    CustomStepSettings,
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    """Keep BOOTSTRAP_* variables of the developer's shell out of the tests."""
    for key in list(os.environ):
        if key.startswith("BOOTSTRAP_"):
            monkeypatch.delenv(key)


def cli(**kwargs):
    values = {"verbose": False, "fail_fast": None, "timeout": None, "log_file": None}
    values.update(kwargs)
    return argparse.Namespace(**values)


def write_yaml(tmp_path, text):
    path = tmp_path / "config.yaml"
    path.write_text(text)
    return path


class TestModels:
    def test_defaults(self):
        settings = AppSettings()

        assert settings.steps == DEFAULT_STEPS
        assert settings.fail_fast is False
        assert settings.step_timeout is None
        assert settings.npm_packages["codex"] == "@openai/codex"

    def test_paths_expand_user(self):
        settings = AppSettings(state_file="~/state.txt", apt={"packages_file": "~/p.list"})

        assert settings.state_file == Path.home() / "state.txt"
        assert settings.apt.packages_file == Path.home() / "p.list"

    def test_timeout_must_be_positive(self):
        with pytest.raises(ValidationError):
            AppSettings(step_timeout=0)

    def test_custom_step_needs_presence_check(self):
        with pytest.raises(ValidationError, match="presence check"):
            CustomStepSettings(name="tool", install_command="true")

    def test_env_variables(self, monkeypatch):
        monkeypatch.setenv("BOOTSTRAP_FAIL_FAST", "true")
        monkeypatch.setenv("BOOTSTRAP_MISE__INSTALL_URL", "https://example.test/mise")

        settings = AppSettings()

        assert settings.fail_fast is True
        assert settings.mise.install_url == "https://example.test/mise"


class TestDeepUpdate:
    def test_nested_merge(self):
        source = {"mise": {"install_url": "a", "config_file": "b"}, "fail_fast": False}

        result = _deep_update(source, {"mise": {"install_url": "c"}, "fail_fast": True})

        assert result == {"mise": {"install_url": "c", "config_file": "b"}, "fail_fast": True}

    def test_none_does_not_override(self):
        assert _deep_update({"log_file": "x"}, {"log_file": None}) == {"log_file": "x"}


class TestLoadYamlConfig:
    def test_missing_file(self, tmp_path, mock_logger):
        assert load_yaml_config(tmp_path / "nope.yaml", mock_logger) == {}

    def test_valid_file(self, tmp_path, mock_logger):
        path = write_yaml(tmp_path, "fail_fast: true\nsteps: [mise]\n")

        assert load_yaml_config(path, mock_logger) == {"fail_fast": True, "steps": ["mise"]}

    def test_malformed_yaml(self, tmp_path, mock_logger):
        path = write_yaml(tmp_path, "steps: [mise\n")

        assert load_yaml_config(path, mock_logger) == {}
        mock_logger.warning.assert_called_once()

    def test_not_a_mapping(self, tmp_path, mock_logger):
        path = write_yaml(tmp_path, "- mise\n- nvm\n")

        assert load_yaml_config(path, mock_logger) == {}
        mock_logger.warning.assert_called_once()

    def test_empty_file(self, tmp_path, mock_logger):
        assert load_yaml_config(write_yaml(tmp_path, ""), mock_logger) == {}


class TestMapCliArgs:
    def test_only_set_values_mapped(self):
        assert _map_cli_args(cli()) == {}

    def test_values_mapped(self):
        mapped = _map_cli_args(
            cli(verbose=True, fail_fast=True, timeout=30, log_file="/tmp/b.log")
        )

        assert mapped == {
            "log_level": "DEBUG",
            "fail_fast": True,
            "step_timeout": 30.0,
            "log_file": "/tmp/b.log",
        }

    def test_continue_on_error_maps_false(self):
        assert _map_cli_args(cli(fail_fast=False)) == {"fail_fast": False}


class TestLoadAppSettings:
    def test_without_config_file(self, tmp_path, mock_logger):
        settings = load_app_settings(None, tmp_path / "missing.yaml", mock_logger)

        assert settings.steps == DEFAULT_STEPS

    def test_yaml_overrides_defaults(self, tmp_path, mock_logger):
        path = write_yaml(
            tmp_path,
            "step_timeout: 120\n"
            "steps: [chezmoi]\n"
            "nvm:\n  install_url: https://example.test/nvm.sh\n"
            "custom_steps:\n"
            "  - name: starship\n"
            "    install_command: curl -sS https://starship.rs/install.sh | sh\n"
            "    executable: starship\n",
        )

        settings = load_app_settings(None, path, mock_logger)

        assert settings.step_timeout == 120
        assert settings.steps == ["chezmoi"]
        assert settings.nvm.install_url == "https://example.test/nvm.sh"
        assert settings.nvm.nvm_dir == Path.home() / ".nvm"
        assert settings.custom_steps[0].executable == "starship"

    def test_yaml_overrides_environment(self, tmp_path, mock_logger, monkeypatch):
        monkeypatch.setenv("BOOTSTRAP_FAIL_FAST", "true")
        monkeypatch.setenv("BOOTSTRAP_NEOVIM_SNAP", "nvim-env")
        path = write_yaml(tmp_path, "fail_fast: false\n")

        settings = load_app_settings(None, path, mock_logger)

        assert settings.fail_fast is False
        assert settings.neovim_snap == "nvim-env"

    def test_cli_overrides_yaml(self, tmp_path, mock_logger):
        path = write_yaml(tmp_path, "fail_fast: false\nstep_timeout: 120\n")

        settings = load_app_settings(
            cli(fail_fast=True, timeout=5), path, mock_logger
        )

        assert settings.fail_fast is True
        assert settings.step_timeout == 5

    def test_invalid_values_raise_config_error(self, tmp_path, mock_logger):
        path = write_yaml(tmp_path, "step_timeout: -3\n")

        with pytest.raises(ConfigError):
            load_app_settings(None, path, mock_logger)

    def test_invalid_custom_step_raises_config_error(self, tmp_path, mock_logger):
        path = write_yaml(
            tmp_path,
            "custom_steps:\n  - name: tool\n    install_command: 'true'\n",
        )

        with pytest.raises(ConfigError):
            load_app_settings(None, path, mock_logger)
