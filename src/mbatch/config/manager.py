"""Configuration manager for mbatch."""

import json
import logging
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)

DEFAULT_SCRATCH_DIR = "~/.cache/mbatch/process"


@dataclass
class EncoderConfig:
    """Encoder process settings.

    Attributes:
        binary: Encoder executable (name on PATH or absolute path)
        terminate_timeout: Seconds to wait after SIGTERM before SIGKILL on cancel
        kill_timeout: Seconds to wait after SIGKILL
    """

    binary: str = "ffmpeg"
    terminate_timeout: float = 5.0
    kill_timeout: float = 2.0

    def __post_init__(self):
        """Validate configuration values."""
        if not self.binary or not str(self.binary).strip():
            raise ValueError("Invalid binary: must not be empty")
        self.terminate_timeout = _non_negative("terminate_timeout", self.terminate_timeout)
        self.kill_timeout = _non_negative("kill_timeout", self.kill_timeout)


@dataclass
class StorageConfig:
    """Scratch and output locations.

    Attributes:
        scratch_dir: Directory for encoder scratch output
        output_root: Root of the saved media tree
        app_folder: Folder created under Pictures/Movies/Music
    """

    scratch_dir: str = DEFAULT_SCRATCH_DIR
    output_root: str = "~"
    app_folder: str = "MediaBatch"

    def __post_init__(self):
        """Validate configuration values."""
        if not self.app_folder or "/" in self.app_folder:
            raise ValueError(f"Invalid app_folder: {self.app_folder!r}")

    @property
    def scratch_dir_path(self) -> Path:
        return Path(self.scratch_dir).expanduser()

    @property
    def output_root_path(self) -> Path:
        return Path(self.output_root).expanduser()


@dataclass
class Config:
    """Main configuration container.

    Attributes:
        encoder: Encoder process settings
        storage: Scratch and output locations
        schema_version: Configuration schema version
    """

    encoder: EncoderConfig = field(default_factory=EncoderConfig)
    storage: StorageConfig = field(default_factory=StorageConfig)
    schema_version: str = "1.0"


def _non_negative(name: str, value: Any) -> float:
    try:
        number = float(value)
    except (TypeError, ValueError):
        raise ValueError(f"Invalid {name}: {value}. Must be a number")
    if number < 0:
        raise ValueError(f"Invalid {name}: {value}. Must not be negative")
    return number


class ConfigManager:
    """Manages configuration loading, saving, and access.

    Configuration is stored in ~/.config/mbatch/config.json
    """

    DEFAULT_CONFIG_PATH = Path.home() / ".config" / "mbatch" / "config.json"

    def __init__(self, config_path: Path | None = None):
        """Initialize ConfigManager.

        Args:
            config_path: Custom path for config file (default: ~/.config/mbatch/config.json)
        """
        self.config_path = config_path or self.DEFAULT_CONFIG_PATH
        self.config = self._load_config()

    def _load_config(self) -> Config:
        if self.config_path.exists():
            try:
                with open(self.config_path, encoding="utf-8") as f:
                    data = json.load(f)
                return self._dict_to_config(data)
            except (json.JSONDecodeError, KeyError, TypeError, ValueError, AttributeError) as e:
                logger.warning(f"Could not load config from {self.config_path}: {e}")
                return Config()
        return Config()

    def _dict_to_config(self, data: dict) -> Config:
        encoder_data = data.get("encoder", {})
        storage_data = data.get("storage", {})

        encoder_config = EncoderConfig(
            binary=encoder_data.get("binary", "ffmpeg"),
            terminate_timeout=encoder_data.get("terminate_timeout", 5.0),
            kill_timeout=encoder_data.get("kill_timeout", 2.0),
        )

        storage_config = StorageConfig(
            scratch_dir=storage_data.get("scratch_dir", DEFAULT_SCRATCH_DIR),
            output_root=storage_data.get("output_root", "~"),
            app_folder=storage_data.get("app_folder", "MediaBatch"),
        )

        return Config(
            encoder=encoder_config,
            storage=storage_config,
            schema_version=data.get("schema_version", "1.0"),
        )

    def _config_to_dict(self, config: Config) -> dict:
        return {
            "schema_version": config.schema_version,
            "encoder": asdict(config.encoder),
            "storage": asdict(config.storage),
        }

    def save(self) -> None:
        """Save current configuration to file."""
        self.config_path.parent.mkdir(parents=True, exist_ok=True)

        data = self._config_to_dict(self.config)
        with open(self.config_path, "w", encoding="utf-8") as f:
            json.dump(data, f, indent=2, ensure_ascii=False)

    def get(self, key: str) -> Any:
        """Get configuration value by dot-notation key.

        Args:
            key: Configuration key (e.g., "encoder.binary", "storage.scratch_dir")

        Returns:
            Configuration value

        Raises:
            KeyError: If key is not found
        """
        parts = key.split(".")

        if len(parts) == 1:
            if hasattr(self.config, key):
                return getattr(self.config, key)
            raise KeyError(f"Unknown configuration key: {key}")

        if len(parts) == 2:
            section, name = parts
            if hasattr(self.config, section):
                section_obj = getattr(self.config, section)
                if hasattr(section_obj, name):
                    return getattr(section_obj, name)
            raise KeyError(f"Unknown configuration key: {key}")

        raise KeyError(f"Invalid configuration key format: {key}")

    def set(self, key: str, value: Any) -> None:
        """Set configuration value by dot-notation key.

        Args:
            key: Configuration key (e.g., "encoder.binary")
            value: Value to set (strings from the CLI are converted)

        Raises:
            KeyError: If key is not found
            ValueError: If value is invalid
        """
        parts = key.split(".")

        if len(parts) != 2:
            raise KeyError(f"Invalid configuration key format: {key}")

        section, name = parts

        if not hasattr(self.config, section) or section == "schema_version":
            raise KeyError(f"Unknown configuration section: {section}")

        section_obj = getattr(self.config, section)

        if not hasattr(section_obj, name):
            raise KeyError(f"Unknown configuration key: {key}")

        if section == "encoder":
            if name in ("terminate_timeout", "kill_timeout"):
                value = _non_negative(name, value)
            elif name == "binary" and not str(value).strip():
                raise ValueError("Invalid binary: must not be empty")
        if section == "storage" and name == "app_folder":
            if not value or "/" in str(value):
                raise ValueError(f"Invalid app_folder: {value!r}")

        setattr(section_obj, name, value)

    def get_all(self) -> dict:
        """Get all configuration as dictionary."""
        return self._config_to_dict(self.config)

    def reset_to_defaults(self) -> None:
        """Reset configuration to default values."""
        self.config = Config()

    def ensure_scratch_dir(self) -> Path:
        """Ensure the scratch directory exists and return its path."""
        scratch_path = self.config.storage.scratch_dir_path
        scratch_path.mkdir(parents=True, exist_ok=True)
        return scratch_path
