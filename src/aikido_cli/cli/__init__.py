"""
CLI Command Modules

Each module contains one command of the aikido-cli interface.
"""

from aikido_cli.cli import apikey, scan

__all__ = ['apikey', 'scan']
