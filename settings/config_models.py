# settings/config_models.py
# -*- coding: utf-8 -*-
"""
Pydantic models for application configuration.

This module defines the structured settings for the bootstrap tool,
including defaults, type annotations, and descriptions.
It utilizes Pydantic for data validation and settings management.
"""

from pathlib import Path
from typing import Dict, List, Optional

from pydantic import BaseModel, Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# --- Default Static Values (can be overridden by config file/env/cli) ---
HOME_DIR: Path = Path.home()

CONFIG_FILE_DEFAULT: Path = (
    HOME_DIR / ".config" / "dotfiles-bootstrap" / "config.yaml"
)
STATE_FILE_DEFAULT: Path = (
    HOME_DIR / ".local" / "state" / "dotfiles-bootstrap" / "state.txt"
)
USER_BIN_DIR_DEFAULT: Path = HOME_DIR / ".local" / "bin"

APT_PACKAGES_FILE_DEFAULT: Path = HOME_DIR / ".config" / "apt" / "packages.list"
MISE_INSTALL_URL_DEFAULT: str = "https://mise.run"
MISE_CONFIG_FILE_DEFAULT: Path = HOME_DIR / ".config" / "mise" / "config.toml"
NVM_INSTALL_URL_DEFAULT: str = (
    "https://raw.githubusercontent.com/nvm-sh/nvm/v0.40.0/install.sh"
)
NVM_DIR_DEFAULT: Path = HOME_DIR / ".nvm"
CHEZMOI_INSTALL_URL_DEFAULT: str = "https://get.chezmoi.io"
NEOVIM_SNAP_DEFAULT: str = "nvim"

NPM_GLOBAL_PACKAGES_DEFAULT: Dict[str, str] = {
    "claude-code": "@anthropic-ai/claude-code",
    "codex": "@openai/codex",
    "task-master": "task-master-ai",
}

# Package lists and version managers first, then the tools installed
# through them.
DEFAULT_STEPS: List[str] = [
    "apt-packages",
    "mise",
    "mise-tools",
    "neovim",
    "nvm",
    "nodejs",
    "claude-code",
    "codex",
    "task-master",
    "chezmoi",
]

SYMBOLS_DEFAULT: Dict[str, str] = {
    "success": "✅",
    "error": "❌",
    "warning": "⚠️",
    "info": "ℹ️",
    "step": "➡️",
    "gear": "⚙️",
    "package": "📦",
    "sparkles": "✨",
    "skip": "⏭️",
    "plan": "📝",
    "critical": "🔥",
    "debug": "🐛",
}


class AptSettings(BaseModel):
    """Settings for the apt package list step."""

    packages_file: Path = Field(
        default=APT_PACKAGES_FILE_DEFAULT,
        description="File listing one apt package per line. Lines starting with '#' are ignored.",
    )

    @field_validator("packages_file")
    @classmethod
    def expand_user(cls, value: Optional[Path]) -> Optional[Path]:
        return value.expanduser() if value is not None else None


class MiseSettings(BaseModel):
    """Settings for the mise version manager and its tools."""

    install_url: str = Field(
        default=MISE_INSTALL_URL_DEFAULT,
        description="URL of the mise install script.",
    )
    config_file: Path = Field(
        default=MISE_CONFIG_FILE_DEFAULT,
        description="mise config.toml; its hash decides when 'mise install' re-runs.",
    )

    @field_validator("config_file")
    @classmethod
    def expand_user(cls, value: Optional[Path]) -> Optional[Path]:
        return value.expanduser() if value is not None else None


class NvmSettings(BaseModel):
    """Settings for nvm and the Node.js LTS runtime."""

    install_url: str = Field(
        default=NVM_INSTALL_URL_DEFAULT,
        description="URL of the nvm install script.",
    )
    nvm_dir: Path = Field(
        default=NVM_DIR_DEFAULT, description="nvm installation directory."
    )

    @field_validator("nvm_dir")
    @classmethod
    def expand_user(cls, value: Optional[Path]) -> Optional[Path]:
        return value.expanduser() if value is not None else None


class ChezmoiSettings(BaseModel):
    """Settings for the chezmoi dotfile manager."""

    install_url: str = Field(
        default=CHEZMOI_INSTALL_URL_DEFAULT,
        description="URL of the chezmoi install script.",
    )


class CustomStepSettings(BaseModel):
    """
    A user-defined step driven entirely by shell commands.

    At least one presence check (executable, directory, file, check_command
    or package) must be given.
    """

    name: str = Field(description="Unique step name.")
    install_command: str = Field(
        description="Shell command that installs the tool."
    )
    description: str = Field(default="", description="Human-readable description.")
    executable: Optional[str] = Field(
        default=None, description="Present when this executable is found."
    )
    directory: Optional[Path] = Field(
        default=None, description="Present when this directory exists."
    )
    file: Optional[Path] = Field(
        default=None, description="Present when this file exists."
    )
    check_command: Optional[str] = Field(
        default=None,
        description="Present when this shell command exits with status 0.",
    )
    package: Optional[str] = Field(
        default=None, description="Present when this dpkg package is installed."
    )
    depends_on: List[str] = Field(
        default_factory=list,
        description="Steps that must succeed before this one is attempted.",
    )
    after: List[str] = Field(
        default_factory=list,
        description="Steps ordered before this one without blocking it on failure.",
    )
    required: bool = Field(
        default=True,
        description="Whether a failure of this step marks the run as partially failed.",
    )
    platforms: List[str] = Field(
        default_factory=list,
        description="sys.platform prefixes this step runs on. Empty means all.",
    )
    elevated: bool = Field(
        default=False, description="Run the install command through sudo."
    )

    @field_validator("directory", "file")
    @classmethod
    def expand_user(cls, value: Optional[Path]) -> Optional[Path]:
        return value.expanduser() if value is not None else None

    @model_validator(mode="after")
    def require_presence_check(self) -> "CustomStepSettings":
        if not any(
            (
                self.executable,
                self.directory,
                self.file,
                self.check_command,
                self.package,
            )
        ):
            raise ValueError(
                f"Custom step '{self.name}' needs a presence check "
                "(executable, directory, file, check_command or package)."
            )
        return self


class AppSettings(BaseSettings):
    """Main application settings."""

    model_config = SettingsConfigDict(
        env_prefix="BOOTSTRAP_", env_nested_delimiter="__", extra="ignore"
    )

    log_level: str = Field(default="INFO", description="Console log level.")
    log_file: Optional[Path] = Field(
        default=None, description="Optional JSON-structured log file."
    )
    step_timeout: Optional[float] = Field(
        default=None,
        gt=0,
        description="Seconds an install action may run before it is failed with 'timeout'.",
    )
    fail_fast: bool = Field(
        default=False,
        description="Abort the remaining plan after the first failed step.",
    )
    state_file: Path = Field(
        default=STATE_FILE_DEFAULT,
        description="File recording input fingerprints of run-once steps.",
    )
    user_bin_dir: Path = Field(
        default=USER_BIN_DIR_DEFAULT,
        description="Per-user binary directory searched besides PATH.",
    )

    steps: List[str] = Field(
        default_factory=lambda: list(DEFAULT_STEPS),
        description="Built-in steps to run, in plan order.",
    )
    custom_steps: List[CustomStepSettings] = Field(
        default_factory=list,
        description="Additional command-driven steps appended to the plan.",
    )

    apt: AptSettings = Field(default_factory=AptSettings)
    mise: MiseSettings = Field(default_factory=MiseSettings)
    nvm: NvmSettings = Field(default_factory=NvmSettings)
    chezmoi: ChezmoiSettings = Field(default_factory=ChezmoiSettings)
    neovim_snap: str = Field(
        default=NEOVIM_SNAP_DEFAULT, description="Snap name for Neovim."
    )
    npm_packages: Dict[str, str] = Field(
        default_factory=lambda: dict(NPM_GLOBAL_PACKAGES_DEFAULT),
        description="npm package installed globally for each npm-based step.",
    )

    symbols: Dict[str, str] = Field(
        default_factory=lambda: dict(SYMBOLS_DEFAULT)
    )

    @field_validator("log_file", "state_file", "user_bin_dir")
    @classmethod
    def expand_user(cls, value: Optional[Path]) -> Optional[Path]:
        return value.expanduser() if value is not None else None
