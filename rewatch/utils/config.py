# rewatch/utils/config.py

"""
Configuration management for Rewatch
"""
import json
import yaml
from pathlib import Path
from typing import Dict, Any, List, Optional, Union
from dataclasses import dataclass, field, asdict, fields
import logging

from ..exceptions import ConfigurationError

logger = logging.getLogger(__name__)

LOG_FORMATS = ("text", "color", "json")


@dataclass
class WatchConfig:
    """Main configuration class"""
    # What to watch and run
    path: Path = Path(".")
    command: List[str] = field(default_factory=list)
    exclude: str = ""

    # Scheduling
    debounce_time: float = 0.2  # seconds
    initial_run: bool = True

    # Watcher backend
    use_polling: bool = False
    poll_interval: float = 1.0  # seconds

    # Display
    terminal: bool = False

    # Logging
    verbose: bool = False
    log_level: str = "WARNING"
    log_format: str = "text"  # text, color, or json
    log_file: Optional[str] = None

    def __post_init__(self):
        # Convert strings to Path objects if needed
        if isinstance(self.path, str):
            self.path = Path(self.path)
        if isinstance(self.command, str):
            self.command = self.command.split()
        if self.exclude is None:
            self.exclude = ""

    @property
    def effective_log_level(self) -> str:
        return "DEBUG" if self.verbose else self.log_level

    def validate(self):
        """
        Check the configuration before anything starts

        Raises:
            ConfigurationError: On the first invalid setting
        """
        self._check_types()

        if not self.command:
            raise ConfigurationError("No command given to run on changes")
        if self.debounce_time < 0:
            raise ConfigurationError(f"Debounce time must not be negative: {self.debounce_time}")
        if self.poll_interval <= 0:
            raise ConfigurationError(f"Poll interval must be positive: {self.poll_interval}")
        if self.log_format not in LOG_FORMATS:
            raise ConfigurationError(
                f"Unknown log format '{self.log_format}' (expected one of {', '.join(LOG_FORMATS)})"
            )
        if not self.path.exists():
            raise ConfigurationError(f"Failed to watch {self.path}: no such file or directory")

    def _check_types(self):
        if not isinstance(self.path, Path):
            raise ConfigurationError(f"path must be a string, not {self.path!r}")
        if not isinstance(self.command, list):
            raise ConfigurationError(f"command must be a list of strings, not {self.command!r}")

        for name in ("debounce_time", "poll_interval"):
            value = getattr(self, name)
            # bool is an int subclass
            if isinstance(value, bool) or not isinstance(value, (int, float)):
                raise ConfigurationError(f"{name} must be a number, not {value!r}")

        for name in ("initial_run", "use_polling", "terminal", "verbose"):
            value = getattr(self, name)
            if not isinstance(value, bool):
                raise ConfigurationError(f"{name} must be true or false, not {value!r}")

        for name in ("exclude", "log_level", "log_format"):
            value = getattr(self, name)
            if not isinstance(value, str):
                raise ConfigurationError(f"{name} must be a string, not {value!r}")
        if self.log_file is not None and not isinstance(self.log_file, str):
            raise ConfigurationError(f"log_file must be a string, not {self.log_file!r}")

        if not all(isinstance(arg, str) for arg in self.command):
            raise ConfigurationError(f"command must be a list of strings, not {self.command!r}")

    def to_dict(self) -> Dict[str, Any]:
        """Convert config to dictionary"""
        data = asdict(self)
        data['path'] = str(self.path)
        return data

    def to_yaml(self) -> str:
        """Convert config to YAML string"""
        return yaml.dump(self.to_dict(), default_flow_style=False)

    def save(self, path: Union[str, Path]):
        """Save config to file"""
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)

        if path.suffix.lower() in ['.yaml', '.yml']:
            with open(path, 'w', encoding='utf-8') as f:
                yaml.dump(self.to_dict(), f, default_flow_style=False)
        else:  # default to JSON
            with open(path, 'w', encoding='utf-8') as f:
                json.dump(self.to_dict(), f, indent=2)

        logger.info(f"Configuration saved to {path}")

    def update_from_dict(self, data: Dict[str, Any]):
        """Update config from dictionary, ignoring unknown keys"""
        known = {f.name for f in fields(self)}
        for key, value in data.items():
            if key in known:
                setattr(self, key, value)
            else:
                logger.warning(f"Ignoring unknown configuration key: {key}")

        # Re-run conversions for updated values
        self.__post_init__()


def load_config(path: Optional[Union[str, Path]] = None) -> WatchConfig:
    """
    Load configuration from a YAML or JSON file, or return defaults

    Args:
        path: Config file; None for defaults

    Raises:
        ConfigurationError: If the file is missing or unreadable
    """
    config = WatchConfig()
    if path is None:
        return config

    config_path = Path(path)
    if not config_path.exists():
        raise ConfigurationError(f"Configuration file not found: {config_path}")

    logger.info(f"Loading configuration from {config_path}")
    try:
        with open(config_path, 'r', encoding='utf-8') as f:
            if config_path.suffix.lower() in ['.yaml', '.yml']:
                data = yaml.safe_load(f)
            else:  # JSON
                data = json.load(f)
    except (OSError, yaml.YAMLError, json.JSONDecodeError) as e:
        raise ConfigurationError(f"Error loading configuration from {config_path}: {e}") from e

    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ConfigurationError(f"Configuration in {config_path} must be a mapping")

    config.update_from_dict(data)
    return config
