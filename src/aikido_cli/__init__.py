"""
aikido-cli: start an Aikido CI scan, wait for it, and exit with a CI-friendly code.
"""

__version__ = "1.0.0"
