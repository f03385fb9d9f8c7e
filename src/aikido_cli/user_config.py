"""
aikido-cli User Configuration

Key-value config stored as JSON at ~/.aikido/config.json (see paths.py).

Config structure:
{
  "apikey": "AIK_CI_...",          // Token used for X-AIK-API-SECRET
  "api": {
    "base_url": "https://app.aikido.dev",
    "timeout": 30
  }
}

Environment variables take precedence over the file:
- AIKIDO_API_KEY       overrides "apikey"
- AIKIDO_API_BASE_URL  overrides "api.base_url"
"""

import copy
import json
import os
from pathlib import Path
from typing import Any, Dict, Optional

from aikido_cli.logging_config import logger
from aikido_cli.paths import get_paths


DEFAULT_BASE_URL = "https://app.aikido.dev"

# Default configuration
DEFAULT_CONFIG = {
    "apikey": None,
    "api": {
        "base_url": DEFAULT_BASE_URL,
        "timeout": 30,
    },
}


class UserConfig:
    """
    Manages the aikido-cli configuration file.

    Load order (with override):
    1. Default config (hardcoded)
    2. Config file (~/.aikido/config.json)
    3. Environment variables (api key and base url only)
    """

    def __init__(self, config_path: Optional[Path] = None):
        """
        Initialize config manager.

        Args:
            config_path: Path to the JSON config file (defaults to ~/.aikido/config.json)
        """
        self.config_path = config_path or get_paths().config_file
        self._config = self._load_config()

    def _load_config(self) -> Dict[str, Any]:
        config = copy.deepcopy(DEFAULT_CONFIG)

        if self.config_path.exists():
            try:
                with open(self.config_path, 'r') as f:
                    file_config = json.load(f)
                config = self._deep_merge(config, file_config)
                logger.debug(f"Loaded config from {self.config_path}")
            except (OSError, ValueError) as e:
                logger.warning(f"Failed to load config from {self.config_path}: {e}")

        return config

    def _deep_merge(self, base: Dict, override: Dict) -> Dict:
        """
        Deep merge two dictionaries, with override taking precedence.
        """
        result = base.copy()

        for key, value in override.items():
            if key in result and isinstance(result[key], dict) and isinstance(value, dict):
                result[key] = self._deep_merge(result[key], value)
            else:
                result[key] = value

        return result

    def get(self, key: str, default: Any = None) -> Any:
        """
        Get a config value by dot-separated key.

        Examples:
            config.get("apikey")
            config.get("api.base_url")  # "https://app.aikido.dev"
        """
        keys = key.split(".")
        value = self._config

        for k in keys:
            if isinstance(value, dict) and k in value:
                value = value[k]
            else:
                return default

        return default if value is None else value

    def set(self, key: str, value: Any) -> bool:
        """
        Set a config value and save to disk.

        Args:
            key: Dot-separated key
            value: Value to set

        Returns:
            True if successful, False otherwise
        """
        if self.config_path.exists():
            try:
                with open(self.config_path, 'r') as f:
                    config = json.load(f)
            except (OSError, ValueError) as e:
                logger.error(f"Failed to load config from {self.config_path}: {e}")
                return False
        else:
            config = {}

        keys = key.split(".")
        current = config
        for k in keys[:-1]:
            if not isinstance(current.get(k), dict):
                current[k] = {}
            current = current[k]

        current[keys[-1]] = value

        try:
            self.config_path.parent.mkdir(parents=True, exist_ok=True)
            with open(self.config_path, 'w') as f:
                json.dump(config, f, indent=2)
            # The file holds a credential
            os.chmod(self.config_path, 0o600)

            self._config = self._load_config()

            logger.info(f"Saved config key: {key}")
            return True
        except OSError as e:
            logger.error(f"Failed to save config to {self.config_path}: {e}")
            return False

    @property
    def api_key(self) -> Optional[str]:
        """API key from AIKIDO_API_KEY, falling back to the stored "apikey"."""
        return os.getenv("AIKIDO_API_KEY") or self.get("apikey")

    @property
    def base_url(self) -> str:
        """API base url from AIKIDO_API_BASE_URL, falling back to "api.base_url"."""
        url = os.getenv("AIKIDO_API_BASE_URL") or self.get("api.base_url", DEFAULT_BASE_URL)
        return url.rstrip("/")

    @property
    def timeout(self) -> float:
        """Per-request HTTP timeout in seconds."""
        return float(self.get("api.timeout", 30))


# Global singleton
_config: Optional[UserConfig] = None


def get_user_config(config_path: Optional[Path] = None) -> UserConfig:
    """
    Get the user configuration singleton.

    Args:
        config_path: Optional config file override (returns a fresh instance)
    """
    global _config
    if config_path is not None:
        return UserConfig(config_path)
    if _config is None:
        _config = UserConfig()
    return _config


def reset_user_config() -> None:
    """Reset the global config singleton (for testing)."""
    global _config
    _config = None
