"""
Scan lifecycle: start a scan, then poll until the service reports completion.

The lifecycle is exposed as a stream of ScanEvent records rather than callbacks:

    STARTING -> STARTED -> POLLING -> COMPLETED
             +-> START_FAILED       +-> POLL_FAILED
                                    +-> CANCELLED

Exactly one terminal event (START_FAILED, COMPLETED, POLL_FAILED, CANCELLED)
ends every run. Failed calls are never retried.
"""

import threading
import time
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Iterator, Optional

from loguru import logger

from aikido_cli.exceptions import PollTimeoutError, ScanStartError
from aikido_cli.schemas import PollResult, ScanRequest, StartScanResult

DEFAULT_POLL_INTERVAL = 5.0


class ScanEventKind(str, Enum):
    STARTING = "starting"
    STARTED = "started"
    START_FAILED = "start_failed"
    POLLING = "polling"
    COMPLETED = "completed"
    POLL_FAILED = "poll_failed"
    CANCELLED = "cancelled"

    @property
    def is_terminal(self) -> bool:
        return self in _TERMINAL_KINDS


_TERMINAL_KINDS = {
    ScanEventKind.START_FAILED,
    ScanEventKind.COMPLETED,
    ScanEventKind.POLL_FAILED,
    ScanEventKind.CANCELLED,
}


@dataclass(frozen=True)
class ScanEvent:
    """One lifecycle transition."""

    kind: ScanEventKind
    request: ScanRequest
    start_result: Optional[StartScanResult] = None
    poll_result: Optional[PollResult] = None
    error: Optional[BaseException] = None
    attempt: int = 0

    @property
    def scan_id(self) -> Any:
        return self.start_result.scan_id if self.start_result else None


@dataclass(frozen=True)
class PollPolicy:
    """
    How often to poll and when to give up.

    max_attempts and timeout default to None, meaning poll until the
    service reports completion.
    """

    interval: float = DEFAULT_POLL_INTERVAL
    max_attempts: Optional[int] = None
    timeout: Optional[float] = None

    def __post_init__(self):
        if self.interval <= 0:
            raise ValueError("Poll interval must be positive")
        if self.max_attempts is not None and self.max_attempts <= 0:
            raise ValueError("max_attempts must be positive")
        if self.timeout is not None and self.timeout <= 0:
            raise ValueError("timeout must be positive")


class ScanOrchestrator:
    """
    Drives one scan through its lifecycle against an API client.

    The client needs start_scan(ScanRequest) -> StartScanResult and
    poll_scan_status(scan_id) -> PollResult (see aikido_cli.api).
    An orchestrator runs once; create a new one per scan.
    """

    def __init__(
        self,
        client,
        policy: Optional[PollPolicy] = None,
        cancel_token: Optional[threading.Event] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.client = client
        self.policy = policy or PollPolicy()
        self.cancel_token = cancel_token or threading.Event()
        self._clock = clock
        self._started = False

    def cancel(self) -> None:
        """Stop polling at the next wait."""
        self.cancel_token.set()

    def run(self, request: ScanRequest) -> Iterator[ScanEvent]:
        """
        Start the scan and poll it, yielding each transition.

        Raises:
            RuntimeError: If this orchestrator has already been run.
        """
        if self._started:
            raise RuntimeError("ScanOrchestrator instances can only run once")
        self._started = True

        yield ScanEvent(ScanEventKind.STARTING, request)

        if self.cancel_token.is_set():
            yield ScanEvent(ScanEventKind.CANCELLED, request)
            return

        try:
            start_result = self.client.start_scan(request)
        except Exception as e:
            logger.debug(f"Start call failed: {e}")
            yield ScanEvent(ScanEventKind.START_FAILED, request, error=e)
            return

        if start_result.scan_id is None or start_result.scan_id == "":
            logger.debug("Start call returned no scan_id")
            yield ScanEvent(
                ScanEventKind.START_FAILED,
                request,
                start_result=start_result,
                error=ScanStartError("Aikido API did not return a scan id", response=start_result),
            )
            return

        logger.info(f"Scan {start_result.scan_id} started")
        yield ScanEvent(ScanEventKind.STARTED, request, start_result=start_result)
        yield ScanEvent(ScanEventKind.POLLING, request, start_result=start_result)

        yield from self._poll(request, start_result)

    def _poll(self, request: ScanRequest, start_result: StartScanResult) -> Iterator[ScanEvent]:
        policy = self.policy
        began = self._clock()
        attempt = 0

        while True:
            attempt += 1
            try:
                poll_result = self.client.poll_scan_status(start_result.scan_id)
            except Exception as e:
                logger.debug(f"Poll attempt {attempt} failed: {e}")
                yield ScanEvent(
                    ScanEventKind.POLL_FAILED, request,
                    start_result=start_result, error=e, attempt=attempt,
                )
                return

            if poll_result.complete:
                logger.info(f"Scan {start_result.scan_id} completed after {attempt} poll(s), gate_passed={poll_result.gate_passed}")
                yield ScanEvent(
                    ScanEventKind.COMPLETED, request,
                    start_result=start_result, poll_result=poll_result, attempt=attempt,
                )
                return

            elapsed = self._clock() - began
            if policy.max_attempts is not None and attempt >= policy.max_attempts:
                yield self._timed_out(
                    request, start_result, attempt, elapsed,
                    f"Scan did not complete within {attempt} poll attempts",
                )
                return
            if policy.timeout is not None and elapsed + policy.interval > policy.timeout:
                yield self._timed_out(
                    request, start_result, attempt, elapsed,
                    f"Scan did not complete within {policy.timeout:g} seconds",
                )
                return

            logger.debug(f"Scan {start_result.scan_id} pending, next poll in {policy.interval:g}s")
            if self.cancel_token.wait(policy.interval):
                logger.info(f"Polling for scan {start_result.scan_id} cancelled")
                yield ScanEvent(
                    ScanEventKind.CANCELLED, request,
                    start_result=start_result, attempt=attempt,
                )
                return

    def _timed_out(self, request, start_result, attempt, elapsed, message) -> ScanEvent:
        logger.debug(message)
        return ScanEvent(
            ScanEventKind.POLL_FAILED, request,
            start_result=start_result,
            error=PollTimeoutError(message, attempts=attempt, elapsed=elapsed),
            attempt=attempt,
        )


def run_scan(
    client,
    request: ScanRequest,
    policy: Optional[PollPolicy] = None,
    cancel_token: Optional[threading.Event] = None,
    on_event: Optional[Callable[[ScanEvent], None]] = None,
) -> ScanEvent:
    """
    Run a scan to completion and return its terminal event.

    on_event, if given, sees every event including the terminal one.
    """
    orchestrator = ScanOrchestrator(client, policy=policy, cancel_token=cancel_token)
    last = None
    for event in orchestrator.run(request):
        if on_event is not None:
            on_event(event)
        last = event
    return last
