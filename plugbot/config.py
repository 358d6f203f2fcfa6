"""
Configuration for the dispatcher and environment loading.
"""

import json
import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional, Sequence, Union

from dotenv import load_dotenv

from .platform import Hook

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]
DirSetting = Union[PathLike, Sequence[PathLike], None]

REQUIRED_ENV_VARS = ["SLACK_BOT_TOKEN", "SLACK_APP_TOKEN"]


def default_base_dir(cwd: Optional[Path] = None) -> Path:
    """
    Pick the directory plugin folders are searched under.

    Prefers ./plugins, then ./src, then the working directory itself.
    """
    cwd = Path.cwd() if cwd is None else Path(cwd)
    for candidate in (cwd / "plugins", cwd / "src"):
        if candidate.is_dir():
            return candidate
    return cwd


@dataclass
class DispatcherConfig:
    """Registration-time settings for a Dispatcher."""
    command_prefix: str = "!"
    base_dir: Optional[Path] = None
    commands_dir: DirSetting = None
    events_dir: DirSetting = None
    jobs_dir: DirSetting = None
    commands_folder_name: str = "commands"
    events_folder_name: str = "events"
    jobs_folder_name: str = "jobs"
    extensions: tuple[str, ...] = (".py",)
    disable_help_command: bool = False
    on_starting: Optional[Hook] = field(default=None, repr=False)
    on_ready: Optional[Hook] = field(default=None, repr=False)

    def __post_init__(self):
        if not self.command_prefix:
            raise ValueError("command_prefix must not be empty")
        self.base_dir = default_base_dir() if self.base_dir is None else Path(self.base_dir)
        self.extensions = tuple(self.extensions)

    @classmethod
    def from_dict(cls, data: dict[str, Any], root: Optional[Path] = None) -> "DispatcherConfig":
        """
        Build a config from a bot config mapping.

        Relative paths are resolved against root (the config file's directory).
        Unknown keys are ignored.
        """
        root = Path.cwd() if root is None else Path(root)

        def resolve(value: DirSetting) -> DirSetting:
            if value is None:
                return None
            if isinstance(value, (str, Path)):
                return root / value
            return [root / item for item in value]

        base_dir = data.get("base_dir")
        return cls(
            command_prefix=data.get("command_prefix", "!"),
            base_dir=root / base_dir if base_dir else default_base_dir(root),
            commands_dir=resolve(data.get("commands_dir")),
            events_dir=resolve(data.get("events_dir")),
            jobs_dir=resolve(data.get("jobs_dir")),
            commands_folder_name=data.get("commands_folder_name", "commands"),
            events_folder_name=data.get("events_folder_name", "events"),
            jobs_folder_name=data.get("jobs_folder_name", "jobs"),
            extensions=tuple(data.get("extensions", (".py",))),
            disable_help_command=bool(data.get("disable_help_command", False)),
        )

    def loader_options(self) -> dict[str, Any]:
        """Keyword arguments for PluginLoader."""
        return {
            "base_dir": self.base_dir,
            "commands_dir": self.commands_dir,
            "events_dir": self.events_dir,
            "jobs_dir": self.jobs_dir,
            "commands_folder_name": self.commands_folder_name,
            "events_folder_name": self.events_folder_name,
            "jobs_folder_name": self.jobs_folder_name,
            "extensions": self.extensions,
        }


def load_config_file(path: Path) -> dict[str, Any]:
    """Read a JSON bot config file."""
    with open(path) as f:
        config = json.load(f)
    logger.info(f"Loaded bot config: {config.get('name', path.name)}")
    return config


def load_environment(env_file: Optional[Path] = None, required: Sequence[str] = REQUIRED_ENV_VARS) -> list[str]:
    """
    Load variables from a .env file and check the required ones are set.

    Returns:
        Names of required variables that are missing
    """
    load_dotenv(env_file if env_file is not None else Path.cwd() / ".env")
    missing = [var for var in required if not os.getenv(var)]
    if missing:
        logger.error(f"Missing required environment variables: {', '.join(missing)}")
    return missing
