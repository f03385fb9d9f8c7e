"""
This facade exposes the public API for the Aikido HTTP client.
Other parts of the application should only import from here.
"""
from .client import AikidoApiClient, SCAN_ENDPOINT, get_api_client

__all__ = ["AikidoApiClient", "SCAN_ENDPOINT", "get_api_client"]
