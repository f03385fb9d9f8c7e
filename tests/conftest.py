"""
Pytest configuration for the aikido-cli test suite.

This conftest.py provides:
- Quiet logging (suppresses console output)
- An isolated config directory per test
- Fake API clients that record every call
"""

import threading
from typing import List, Optional

import pytest

from aikido_cli.cli.config import CLIConfig
from aikido_cli.logging_config import setup_logging
from aikido_cli.paths import reset_paths
from aikido_cli.schemas import StartScanResult
from aikido_cli.user_config import reset_user_config


# ============================================================================
# GLOBAL CONFIGURATION
# ============================================================================

@pytest.fixture(autouse=True)
def setup_test_logging():
    """Suppress console logs for clean test output."""
    setup_logging(level="DEBUG", suppress_console=True, force=True)


@pytest.fixture(autouse=True)
def isolated_config(tmp_path, monkeypatch):
    """
    Point the config directory at a temp dir and clear process-wide state.
    """
    config_dir = tmp_path / "aikido"
    monkeypatch.setenv("AIKIDO_CONFIG_DIR", str(config_dir))
    monkeypatch.delenv("AIKIDO_API_KEY", raising=False)
    monkeypatch.delenv("AIKIDO_API_BASE_URL", raising=False)
    monkeypatch.delenv("AIKIDO_MACHINE_MODE", raising=False)
    monkeypatch.delenv("AIKIDO_FILE_LOGGING", raising=False)
    reset_paths()
    reset_user_config()
    CLIConfig.reset()
    yield config_dir
    reset_paths()
    reset_user_config()
    CLIConfig.reset()


# ============================================================================
# FAKES
# ============================================================================

class FakeScanClient:
    """
    Stands in for AikidoApiClient.

    start: a StartScanResult to return, or an exception to raise.
    polls: PollResults (or exceptions) returned in order, one per poll call.
    """

    def __init__(self, start=None, polls: Optional[List] = None):
        self.start = start if start is not None else StartScanResult(scan_id=123)
        self.polls = list(polls or [])
        self.calls: List[tuple] = []
        self.in_flight = 0
        self.max_in_flight = 0
        self.closed = False

    def start_scan(self, request):
        self.calls.append(("start", request))
        if isinstance(self.start, BaseException):
            raise self.start
        return self.start

    def poll_scan_status(self, scan_id):
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            self.calls.append(("poll", scan_id))
            result = self.polls.pop(0)
            if isinstance(result, BaseException):
                raise result
            return result
        finally:
            self.in_flight -= 1

    def close(self):
        self.closed = True

    @property
    def call_names(self) -> List[str]:
        return [name for name, _ in self.calls]


class RecordingCancelToken(threading.Event):
    """
    Cancellation token whose wait() returns immediately and records the timeout.

    cancel_after: set the token once this many waits have happened.
    """

    def __init__(self, cancel_after: Optional[int] = None):
        super().__init__()
        self.waits: List[float] = []
        self.cancel_after = cancel_after

    def wait(self, timeout=None):
        self.waits.append(timeout)
        if self.cancel_after is not None and len(self.waits) >= self.cancel_after:
            self.set()
        return self.is_set()


@pytest.fixture
def fake_client():
    return FakeScanClient


@pytest.fixture
def cancel_token():
    return RecordingCancelToken()


@pytest.fixture
def cancel_token_factory():
    return RecordingCancelToken
