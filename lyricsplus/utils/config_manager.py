"""Configuration manager for Lyrics Plus."""
import logging
import os
from typing import Any, Dict, Optional
import yaml

DEFAULT_CONFIG_PATH = "config/config.yaml"


class ConfigManager:
    """
    Configuration manager for Lyrics Plus.

    Handles loading and accessing configuration values from the config file.
    A missing file falls back to built-in defaults unless ``required`` is set,
    so the engine can be embedded without any configuration on disk.
    """

    def __init__(self, config_path: str = DEFAULT_CONFIG_PATH, required: bool = False):
        """
        Initialize the ConfigManager.

        Args:
            config_path: Path to the configuration file
            required: Raise if the configuration file does not exist

        Raises:
            FileNotFoundError: If the file is required and does not exist
            yaml.YAMLError: If the configuration file is not valid YAML
        """
        self.logger = logging.getLogger("lyricsplus.config")
        self.config_path = config_path
        self.config: Dict[str, Any] = {}

        self._load_config(required)

    def _load_config(self, required: bool) -> None:
        """
        Load the configuration from the config file.

        Raises:
            FileNotFoundError: If the file is required and does not exist
            yaml.YAMLError: If the configuration file is not valid YAML
        """
        if not os.path.exists(self.config_path):
            example_path = f"{self.config_path}.example"
            if required:
                self.logger.error(f"Configuration file {self.config_path} not found.")
                raise FileNotFoundError(f"Configuration file {self.config_path} not found")
            if os.path.exists(example_path):
                self.logger.warning(
                    f"Configuration file {self.config_path} not found, using defaults. "
                    f"Copy {example_path} to {self.config_path} to customize."
                )
            else:
                self.logger.warning(f"Configuration file {self.config_path} not found, using defaults.")
            return

        try:
            with open(self.config_path, 'r', encoding='utf-8') as config_file:
                self.config = yaml.safe_load(config_file) or {}
                self.logger.debug(f"Loaded configuration from {self.config_path}")
        except yaml.YAMLError as e:
            self.logger.error(f"Error parsing configuration file: {e}")
            raise

        if not isinstance(self.config, dict):
            self.logger.error("Configuration root must be a mapping, ignoring file contents")
            self.config = {}

    def get(self, key: str, default: Any = None) -> Any:
        """
        Get a configuration value.

        Args:
            key: The configuration key (dot notation for nested keys)
            default: Default value to return if the key is not found

        Returns:
            The configuration value or the default value if not found
        """
        keys = key.split('.')
        value = self.config

        for k in keys:
            if isinstance(value, dict) and k in value:
                value = value[k]
            else:
                self.logger.debug(f"Configuration key '{key}' not found, using default: {default}")
                return default

        return value

    def _get_number(self, key: str, default: float, minimum: float = 0) -> float:
        value = self.get(key, default)
        if isinstance(value, bool) or not isinstance(value, (int, float)) or value < minimum:
            self.logger.warning(f"Invalid value for '{key}': {value!r}, using default: {default}")
            return default
        return value

    # Provider
    def get_provider_url(self) -> str:
        """
        Get the lyrics provider endpoint.

        Returns:
            The provider URL
        """
        return self.get('provider.url', 'https://lrclib.net/api/get')

    def get_provider_timeout(self) -> float:
        """
        Get the per-request timeout in seconds.

        Returns:
            The timeout in seconds
        """
        return float(self._get_number('provider.timeout', 10.0, minimum=0.1))

    def get_user_agent(self) -> str:
        return self.get('provider.user_agent', 'lyricsplus/1.0')

    def get_max_versions(self) -> int:
        """
        Get how many distinct synced versions to collect before stopping.

        Returns:
            The version limit, 0 means query every permutation
        """
        return int(self._get_number('provider.max_versions', 0))

    # Storage
    def get_data_dir(self) -> str:
        """
        Get the directory used by the file-backed key-value store.

        Returns:
            The data directory path
        """
        return self.get('storage.data_dir', './data')

    # Sync
    def get_resync_delay(self) -> float:
        """
        Get the manual-scroll inactivity timeout.

        Returns:
            The timeout in seconds
        """
        return float(self._get_number('sync.resync_delay', 3.0))

    # Prefetch
    def is_prefetch_enabled(self) -> bool:
        return bool(self.get('prefetch.enabled', True))

    def get_prefetch_delay(self) -> float:
        """
        Get the delay between two prefetch requests.

        Returns:
            The delay in seconds
        """
        return float(self._get_number('prefetch.delay', 0.15))

    def get_prefetch_max_items(self) -> int:
        return int(self._get_number('prefetch.max_items', 20, minimum=1))

    # Export
    def get_export_dir(self) -> str:
        """
        Get the directory exported LRC files are written to.

        Returns:
            The export directory path
        """
        return self.get('export.directory', './exports')

    # Logging
    def get_log_level(self) -> str:
        """
        Get the logging level.

        Returns:
            The logging level
        """
        return self.get('logging.level', 'INFO')

    def get_log_file(self) -> Optional[str]:
        """
        Get the log file path.

        Returns:
            The log file path or None if not set
        """
        return self.get('logging.file', None)

    def get_log_max_size(self) -> int:
        """
        Get the maximum log file size.

        Returns:
            The maximum log file size in bytes
        """
        return self.get('logging.max_size', 10485760)  # 10 MB

    def get_log_backup_count(self) -> int:
        """
        Get the number of backup log files to keep.

        Returns:
            The number of backup log files
        """
        return self.get('logging.backup_count', 5)
