"""
This facade exposes the public API for the scan lifecycle.
"""
from .orchestrator import (
    DEFAULT_POLL_INTERVAL,
    PollPolicy,
    ScanEvent,
    ScanEventKind,
    ScanOrchestrator,
    run_scan,
)
from .options import LocalOptions, ScanCliOptions, translate_options

__all__ = [
    "DEFAULT_POLL_INTERVAL",
    "LocalOptions",
    "PollPolicy",
    "ScanCliOptions",
    "ScanEvent",
    "ScanEventKind",
    "ScanOrchestrator",
    "run_scan",
    "translate_options",
]
