"""Simple YAML configuration loader for impactsync."""

import copy
import os
import yaml
from pathlib import Path
from typing import Dict, Any, Optional
import logging

from ..models.detection import DetectorConfig

logger = logging.getLogger(__name__)

CONFIG_FILENAME = "impactsync.yaml"

DEFAULT_CONFIG: Dict[str, Any] = {
    "audio": {
        "sample_rate": 48000,
        "chunk_size": 1024,
        "channels": 1,
        "topic": "audio_frames",
    },
    "detection": {
        "impact_threshold": 0.75,
        "fft_size": 2048,
        "smoothing_time_constant": 0.3,
        "noise_factor": 3.0,
        "tick_rate_hz": 60.0,
        "level_interval_ms": 50,
    },
    "recording": {
        "max_wait_seconds": 30.0,
        "post_impact_ms": 500,
        "frame_rate": 120.0,
    },
    "storage": {
        "data_directory": "data",
    },
    "logging": {
        "level": "INFO",
        "file_path": "data/logs/impactsync.log",
        "console_output": True,
    },
}


def _merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    merged = copy.deepcopy(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _merge(merged[key], value)
        else:
            merged[key] = value
    return merged


def find_config_file(start: Optional[Path] = None) -> Optional[Path]:
    """Look for impactsync.yaml in ``start`` (default cwd) and its parents."""
    directory = (start or Path.cwd()).absolute()
    for candidate_dir in [directory, *directory.parents]:
        candidate = candidate_dir / CONFIG_FILENAME
        if candidate.exists():
            return candidate
    return None


class ImpactSyncConfig:
    """impactsync configuration loader."""

    def __init__(self, config_path: Optional[str] = None):
        """Initialize configuration loader.

        Args:
            config_path: Path to YAML config file. If None, looks for impactsync.yaml
                        in current directory and parent directories, falling back
                        to built-in defaults.
        """
        if config_path is not None:
            self.config_file: Optional[Path] = Path(config_path)
            if not self.config_file.exists():
                raise FileNotFoundError(f"Configuration file not found: {self.config_file}")
        else:
            self.config_file = find_config_file()

        if self.config_file is None:
            logger.info("No configuration file found, using defaults")
            self.config = copy.deepcopy(DEFAULT_CONFIG)
        else:
            logger.info(f"Loading configuration from: {self.config_file}")
            self.config = self._load_config()

    @classmethod
    def from_dict(cls, overrides: Dict[str, Any]) -> "ImpactSyncConfig":
        """Build a configuration from defaults plus ``overrides`` without touching disk."""
        instance = cls.__new__(cls)
        instance.config_file = None
        instance.config = _merge(DEFAULT_CONFIG, overrides)
        return instance

    def _load_config(self) -> Dict[str, Any]:
        """Load and parse YAML configuration file."""
        try:
            with open(self.config_file, 'r', encoding='utf-8') as f:
                config = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ValueError(f"Invalid YAML in configuration file: {e}") from e

        if not config:
            raise ValueError("Configuration file is empty")
        if not isinstance(config, dict):
            raise ValueError("Configuration file must contain a mapping")

        config = _merge(DEFAULT_CONFIG, config)
        self._resolve_paths(config)

        logger.info("Configuration loaded successfully")
        return config

    def _resolve_paths(self, config: Dict[str, Any]) -> None:
        """Resolve relative paths in configuration relative to config file location."""
        config_dir = self.config_file.parent

        data_dir = config['storage'].get('data_directory')
        if data_dir and not os.path.isabs(data_dir):
            config['storage']['data_directory'] = str(config_dir / data_dir)

        log_path = config['logging'].get('file_path')
        if log_path and not os.path.isabs(log_path):
            config['logging']['file_path'] = str(config_dir / log_path)

    def get(self, key_path: str, default: Any = None) -> Any:
        """Get configuration value using dot notation (e.g., 'detection.impact_threshold').

        Args:
            key_path: Dot-separated key path
            default: Default value if key not found

        Returns:
            Configuration value or default
        """
        keys = key_path.split('.')
        value = self.config

        for key in keys:
            if isinstance(value, dict) and key in value:
                value = value[key]
            else:
                return default

        return value

    def set(self, key_path: str, value: Any) -> None:
        """Set configuration value using dot notation.

        Args:
            key_path: Dot-separated path to config value (e.g., 'recording.frame_rate')
            value: Value to set
        """
        keys = key_path.split('.')
        config_dict = self.config

        for key in keys[:-1]:
            if key not in config_dict:
                config_dict[key] = {}
            config_dict = config_dict[key]

        config_dict[keys[-1]] = value
        logger.debug(f"Configuration key '{key_path}' set to: {value}")

    def detector_config(self) -> DetectorConfig:
        """Build the live detector settings; raises ValueError on bad values."""
        return DetectorConfig(
            impact_threshold=float(self.get('detection.impact_threshold')),
            sample_rate=int(self.get('audio.sample_rate')),
            fft_size=int(self.get('detection.fft_size')),
            smoothing_time_constant=float(self.get('detection.smoothing_time_constant')),
            noise_factor=float(self.get('detection.noise_factor')),
            tick_rate_hz=float(self.get('detection.tick_rate_hz')),
        )

    def get_data_directory(self) -> str:
        """Get data directory path."""
        data_dir = self.get('storage.data_directory', 'data')
        return str(Path(data_dir).absolute())
