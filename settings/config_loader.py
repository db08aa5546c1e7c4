# settings/config_loader.py
# -*- coding: utf-8 -*-
"""
Configuration loader for the application.

Handles loading settings from Pydantic model defaults, environment
variables, a YAML file and command-line arguments, applying this order of
precedence:
1. Pydantic Model Defaults
2. Environment Variables (BOOTSTRAP_*, loaded by BaseSettings)
3. YAML Configuration File
4. Command-Line Arguments
"""

import argparse
import logging
from pathlib import Path
from typing import Any, Dict, Optional, Union

import yaml
from pydantic import ValidationError

from .config_models import CONFIG_FILE_DEFAULT, AppSettings

module_logger = logging.getLogger(__name__)


class ConfigError(Exception):
    """Raised when the configuration cannot be turned into valid settings."""


def _deep_update(
    source: Dict[str, Any], overrides: Dict[str, Any]
) -> Dict[str, Any]:
    """
    Recursively update `source` with the values of `overrides`.

    Nested dictionaries are merged key by key; any other value replaces the
    one in `source`. None values only fill keys that are missing from
    `source`.

    Returns:
        The updated `source` dictionary.
    """
    for key, value in overrides.items():
        if (
            isinstance(value, dict)
            and key in source
            and isinstance(source[key], dict)
        ):
            source[key] = _deep_update(source[key], value)
        elif value is not None:
            source[key] = value
        elif key not in source:
            source[key] = value
    return source


def load_yaml_config(
    config_file_path: Path,
    current_logger: Optional[logging.Logger] = None,
) -> Dict[str, Any]:
    """
    Read a YAML configuration file.

    A missing file, unreadable file, malformed YAML or a document that is
    not a mapping is logged and yields an empty dictionary.
    """
    logger_to_use = current_logger if current_logger else module_logger

    if not config_file_path.is_file():
        logger_to_use.debug(
            f"Configuration file '{config_file_path}' not found. Using defaults, environment variables, and CLI args."
        )
        return {}

    try:
        with open(config_file_path, "r", encoding="utf-8") as f:
            yaml_data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        logger_to_use.warning(
            f"Could not parse YAML config file '{config_file_path}': {e}. Using defaults and environment variables."
        )
        return {}
    except IOError as e:
        logger_to_use.warning(
            f"Could not read config file '{config_file_path}': {e}. Using defaults and environment variables."
        )
        return {}

    if yaml_data is None:
        return {}
    if not isinstance(yaml_data, dict):
        logger_to_use.warning(
            f"Config file '{config_file_path}' does not contain a valid YAML dictionary. Ignoring."
        )
        return {}

    logger_to_use.info(f"Loaded configuration from {config_file_path}")
    return yaml_data


def _map_cli_args(cli_args: argparse.Namespace) -> Dict[str, Any]:
    cli_arg_dict = vars(cli_args)
    mapped_cli_values: Dict[str, Any] = {}

    for cli_key, cli_value in cli_arg_dict.items():
        if cli_value is None:
            continue

        if cli_key == "fail_fast":
            mapped_cli_values["fail_fast"] = bool(cli_value)
        elif cli_key == "timeout":
            mapped_cli_values["step_timeout"] = float(cli_value)
        elif cli_key == "log_file":
            mapped_cli_values["log_file"] = str(cli_value)
        elif cli_key == "verbose" and cli_value:
            mapped_cli_values["log_level"] = "DEBUG"

    return mapped_cli_values


def load_app_settings(
    cli_args: Optional[argparse.Namespace] = None,
    config_file_path: Optional[Union[str, Path]] = None,
    current_logger: Optional[logging.Logger] = None,
) -> AppSettings:
    """
    Load application settings.

    Args:
        cli_args: Parsed command-line arguments (from argparse). Recognised
            keys are fail_fast, timeout, log_file and verbose; None values
            are ignored.
        config_file_path: Path to the YAML configuration file. Defaults to
            ~/.config/dotfiles-bootstrap/config.yaml.
        current_logger: Optional logger to use instead of the module logger.

    Returns:
        An instance of AppSettings with the fully resolved configuration.

    Raises:
        ConfigError: If the merged values fail validation.
    """
    logger_to_use = current_logger if current_logger else module_logger

    try:
        # Model defaults < environment variables
        current_values_dict = AppSettings().model_dump(exclude_defaults=False)
    except ValidationError as e:
        logger_to_use.error(f"Invalid environment configuration: {e}")
        raise ConfigError(f"Configuration error: {e}") from e

    yaml_path = (
        Path(config_file_path).expanduser()
        if config_file_path
        else CONFIG_FILE_DEFAULT
    )
    current_values_dict = _deep_update(
        current_values_dict, load_yaml_config(yaml_path, logger_to_use)
    )

    if cli_args:
        current_values_dict = _deep_update(
            current_values_dict, _map_cli_args(cli_args)
        )

    try:
        final_settings = AppSettings(**current_values_dict)
    except ValidationError as e:
        logger_to_use.error(f"Configuration validation failed: {e}")
        raise ConfigError(f"Configuration error: {e}") from e

    logger_to_use.debug(
        "Successfully loaded and validated application settings"
    )
    return final_settings
