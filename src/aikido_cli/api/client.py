"""
HTTP client for the Aikido continuous-integration scan API.

Two calls are exposed: start a scan for a commit range, and poll its status.
"""

from typing import Any, Dict, Optional, Union

import requests
from loguru import logger
from pydantic import ValidationError

from aikido_cli import __version__
from aikido_cli.exceptions import ApiError, ConfigError
from aikido_cli.schemas import PollResult, ScanRequest, StartScanResult
from aikido_cli.user_config import DEFAULT_BASE_URL, get_user_config

SCAN_ENDPOINT = "/api/integrations/continuous_integration/scan/repository"
API_KEY_HEADER = "X-AIK-API-SECRET"


class AikidoApiClient:
    """
    Thin wrapper around a requests.Session authenticated with an Aikido CI token.
    """

    def __init__(
        self,
        api_key: str,
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = 30.0,
        session: Optional[requests.Session] = None,
    ):
        if not api_key:
            raise ConfigError("An api key is required to talk to the Aikido API")
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()
        self.session.headers.update({
            API_KEY_HEADER: api_key,
            "Accept": "application/json",
            "User-Agent": f"aikido-cli/{__version__}",
        })

    def start_scan(self, request: ScanRequest) -> StartScanResult:
        """
        Ask the service to scan head_commit_id against base_commit_id.

        Returns:
            StartScanResult; scan_id is None when the service did not start a scan.

        Raises:
            ApiError: On transport failure, non-2xx response or an unexpected body.
        """
        payload = request.to_payload()
        logger.debug(f"Starting scan for repo {request.repo_id} ({request.base_commit_id}..{request.head_commit_id})")
        data = self._request("POST", SCAN_ENDPOINT, json=payload)
        try:
            return StartScanResult.model_validate(data if isinstance(data, dict) else {})
        except ValidationError as e:
            raise ApiError("Unexpected start response from Aikido API", body=data) from e

    def poll_scan_status(self, scan_id: Union[int, str]) -> PollResult:
        """
        Fetch the current status of a started scan.

        Raises:
            ApiError: On transport failure, non-2xx response or an unexpected body.
        """
        data = self._request("GET", SCAN_ENDPOINT, params={"scan_id": scan_id})
        if not isinstance(data, dict):
            raise ApiError("Unexpected poll response from Aikido API", body=data)
        try:
            return PollResult.model_validate(data)
        except ValidationError as e:
            raise ApiError("Unexpected poll response from Aikido API", body=data) from e

    def _request(self, method: str, path: str, **kwargs) -> Any:
        url = f"{self.base_url}{path}"

        try:
            response = self.session.request(method, url, timeout=self.timeout, **kwargs)
        except requests.RequestException as e:
            raise ApiError(f"Failed to connect to Aikido API: {e}") from e

        logger.debug(f"{method} {path} -> {response.status_code}")

        if not response.ok:
            body = _safe_json(response)
            message = _error_message(body) or response.reason or "Request failed"
            raise ApiError(message, status_code=response.status_code, body=body)

        try:
            return response.json()
        except ValueError as e:
            raise ApiError(
                "Invalid JSON in Aikido API response",
                status_code=response.status_code,
                body=response.text,
            ) from e

    def close(self) -> None:
        self.session.close()


def _safe_json(response: requests.Response) -> Any:
    try:
        return response.json()
    except ValueError:
        return response.text


def _error_message(body: Any) -> Optional[str]:
    if isinstance(body, dict):
        for key in ("reason_phrase", "message", "error"):
            value = body.get(key)
            if isinstance(value, str) and value:
                return value
    elif isinstance(body, str) and body.strip():
        return body.strip()[:200]
    return None


def get_api_client(api_key: Optional[str] = None) -> AikidoApiClient:
    """
    Build a client from the user configuration.

    Raises:
        ConfigError: If no api key is configured.
    """
    config = get_user_config()
    api_key = api_key or config.api_key
    if not api_key:
        raise ConfigError("Please set an api key using: aikido-cli apikey <key>")
    return AikidoApiClient(api_key, base_url=config.base_url, timeout=config.timeout)
