"""
CLI Configuration

Process-wide presentation switches for the aikido-cli subsystem.
"""

import os
from typing import Optional


class CLIConfig:
    """Configuration for CLI commands"""

    # Machine mode (plain text + JSON summary, no spinners or colour)
    _machine_mode: Optional[bool] = None

    @classmethod
    def set_machine_mode(cls, enabled: bool) -> None:
        """Set machine mode (pure data output, no presentation)"""
        cls._machine_mode = enabled

    @classmethod
    def is_machine_mode(cls) -> bool:
        """
        Check if machine mode is active.

        Human mode is the default. Machine mode is enabled by --json or
        the AIKIDO_MACHINE_MODE environment variable.
        """
        if cls._machine_mode is not None:
            return cls._machine_mode
        return os.getenv("AIKIDO_MACHINE_MODE", "").lower() in ("1", "true", "yes")

    @classmethod
    def reset(cls) -> None:
        """Forget flags set by a previous invocation (for testing)."""
        cls._machine_mode = None
