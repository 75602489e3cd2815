"""Configuration loading and management."""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

import typer
from dotenv import load_dotenv

from trydir.constants import (
    APP_NAME,
    DEFAULT_DIALECT,
    DEFAULT_WORKSPACE,
    SHELL_DIALECTS,
    WORKSPACE_ENV_VAR,
)
from trydir.errors import ConfigError
from trydir.scripts import get_dialect


def expand_path(path: str) -> Path:
    """Expand ``~`` and make a path absolute (without resolving symlinks)."""
    return Path(os.path.abspath(os.path.expanduser(path)))


def detect_shell() -> str:
    """Guess the shell dialect from TRY_SHELL or $SHELL."""
    explicit = os.getenv("TRY_SHELL")
    if explicit:
        return explicit

    shell = os.getenv("SHELL", "")
    name = Path(shell).name.lower()
    if name in SHELL_DIALECTS:
        return name
    if os.name == "nt":
        return "powershell"
    return DEFAULT_DIALECT


@dataclass
class Config:
    """trydir configuration.

    Loads from the environment and an optional .env file.
    """

    # Workspace settings
    workspace_root: Path = expand_path(DEFAULT_WORKSPACE)

    # Shell dialect name (posix, fish, powershell or a shell name)
    shell: str = DEFAULT_DIALECT

    # Command prefixed to "git clone" (e.g. "proxychains4 -q")
    clone_proxy: Optional[str] = None

    # Where history and the event log live
    config_dir: Path = Path(typer.get_app_dir(APP_NAME))

    # Event log toggle
    log_enabled: bool = True

    @classmethod
    def load(cls) -> "Config":
        """Load configuration from the environment.

        Returns:
            Config instance
        """
        # Load .env file
        load_dotenv()

        config_dir = os.getenv("TRY_CONFIG_DIR")

        return cls(
            workspace_root=expand_path(os.getenv(WORKSPACE_ENV_VAR) or DEFAULT_WORKSPACE),
            shell=detect_shell(),
            clone_proxy=os.getenv("TRY_CLONE_PROXY") or None,
            config_dir=expand_path(config_dir) if config_dir else Path(typer.get_app_dir(APP_NAME)),
            log_enabled=os.getenv("TRY_LOG", "1").lower() not in ("0", "false", "no", "off"),
        )

    def validate(self) -> list[str]:
        """Validate configuration and return list of errors.

        Returns:
            List of error messages (empty if valid)
        """
        errors = []

        try:
            get_dialect(self.shell)
        except ConfigError as e:
            errors.append(str(e))

        if self.workspace_root.exists() and not self.workspace_root.is_dir():
            errors.append(f"{WORKSPACE_ENV_VAR} is not a directory: {self.workspace_root}")

        return errors

    def to_dict(self) -> dict:
        """Convert config to dictionary (for logging/display)."""
        return {
            "workspace_root": str(self.workspace_root),
            "shell": self.shell,
            "clone_proxy": self.clone_proxy,
            "config_dir": str(self.config_dir),
            "log_enabled": self.log_enabled,
        }
