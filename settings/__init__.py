"""
Configuration package for the bootstrap tool.

Settings are pydantic-settings models populated from defaults, environment
variables, a YAML file and command-line arguments.
"""

from settings.config_loader import ConfigError, load_app_settings
from settings.config_models import AppSettings, CustomStepSettings

__all__ = [
    "AppSettings",
    "ConfigError",
    "CustomStepSettings",
    "load_app_settings",
]
