"""
aikido-cli Path Configuration

Centralized path management for aikido-cli data files.
All paths live under a single per-user directory.

Directory Structure:
~/.aikido/
├── config.json          # Stored api key and overrides
└── logs/                # Log files (opt-in via AIKIDO_FILE_LOGGING)

The base directory can be moved with the AIKIDO_CONFIG_DIR environment variable.
"""

import os
from pathlib import Path
from typing import Optional


class AikidoPaths:
    """
    Centralized path configuration for aikido-cli.

    All paths are lazily resolved relative to base_dir.
    Default base_dir is $AIKIDO_CONFIG_DIR, falling back to ~/.aikido.
    """

    AIKIDO_DIR = ".aikido"
    CONFIG_NAME = "config.json"
    LOGS_DIR = "logs"

    def __init__(self, base_dir: Optional[Path] = None):
        """
        Initialize paths configuration.

        Args:
            base_dir: Directory holding all aikido-cli data. Defaults to ~/.aikido.
        """
        self._base_dir = base_dir

    @property
    def base_dir(self) -> Path:
        """Get the aikido-cli data directory."""
        if self._base_dir is not None:
            return self._base_dir
        env_dir = os.getenv("AIKIDO_CONFIG_DIR")
        if env_dir:
            return Path(env_dir).expanduser()
        return Path.home() / self.AIKIDO_DIR

    @property
    def config_file(self) -> Path:
        """Get the config file path."""
        return self.base_dir / self.CONFIG_NAME

    @property
    def logs_dir(self) -> Path:
        """Get the logs directory path."""
        return self.base_dir / self.LOGS_DIR

    def ensure_dirs(self) -> None:
        """Create all necessary directories if they don't exist."""
        self.base_dir.mkdir(parents=True, exist_ok=True)
        self.logs_dir.mkdir(exist_ok=True)


# Global instance for convenience
_default_paths: Optional[AikidoPaths] = None


def get_paths(base_dir: Optional[Path] = None) -> AikidoPaths:
    """
    Get the paths configuration.

    Args:
        base_dir: Optional base directory override

    Returns:
        AikidoPaths instance
    """
    global _default_paths
    if base_dir is not None:
        return AikidoPaths(base_dir)
    if _default_paths is None:
        _default_paths = AikidoPaths()
    return _default_paths


def reset_paths() -> None:
    """Reset the global paths instance (useful for testing)."""
    global _default_paths
    _default_paths = None
