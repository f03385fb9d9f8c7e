"""
Option translation for the scan command.

Splits the flat set of user options into the bag forwarded to the start call
(RemoteScanOptions) and the knobs that only change local behaviour (LocalOptions).
"""

import math
from dataclasses import dataclass
from typing import List, Optional, Tuple, Union

from pydantic import ValidationError

from aikido_cli.exceptions import InvalidOptionError
from aikido_cli.schemas import PullRequestMetadata, RemoteScanOptions, SeverityLevel
from .orchestrator import DEFAULT_POLL_INTERVAL, PollPolicy

Number = Union[int, float, str]


@dataclass
class ScanCliOptions:
    """Options as the user gave them. None means "not given"."""

    pull_request_title: Optional[str] = None
    pull_request_url: Optional[str] = None
    self_managed_scanners: Optional[List[str]] = None
    expected_amount_json_sbombs: Optional[int] = None
    fail_on_dependency_scan: Optional[bool] = None
    fail_on_sast_scan: Optional[bool] = None
    fail_on_iac_scan: Optional[bool] = None
    minimum_severity_level: Optional[str] = None
    poll_interval: Optional[Number] = None
    poll_timeout: Optional[Number] = None
    max_poll_attempts: Optional[int] = None


@dataclass(frozen=True)
class LocalOptions:
    """Behaviour that stays on this machine and is never sent to the API."""

    poll_interval: float = DEFAULT_POLL_INTERVAL
    poll_timeout: Optional[float] = None
    max_poll_attempts: Optional[int] = None

    def to_policy(self) -> PollPolicy:
        return PollPolicy(
            interval=self.poll_interval,
            max_attempts=self.max_poll_attempts,
            timeout=self.poll_timeout,
        )


def translate_options(user_options: ScanCliOptions) -> Tuple[RemoteScanOptions, LocalOptions]:
    """
    Partition user options into (remote, local).

    Only options the caller actually set end up in the remote bag.

    Raises:
        InvalidOptionError: If a value is out of range or cannot be parsed.
    """
    fields = {}

    metadata = {}
    if user_options.pull_request_title:
        metadata["title"] = user_options.pull_request_title
    if user_options.pull_request_url:
        metadata["url"] = user_options.pull_request_url
    if metadata:
        fields["pull_request_metadata"] = PullRequestMetadata(**metadata)

    if user_options.self_managed_scanners:
        fields["self_managed_scanners"] = list(user_options.self_managed_scanners)
    if user_options.expected_amount_json_sbombs is not None:
        fields["expected_amount_json_sbombs"] = user_options.expected_amount_json_sbombs
    if user_options.fail_on_dependency_scan is not None:
        fields["fail_on_dependency_scan"] = user_options.fail_on_dependency_scan
    if user_options.fail_on_sast_scan is not None:
        fields["fail_on_sast_scan"] = user_options.fail_on_sast_scan
    if user_options.fail_on_iac_scan is not None:
        fields["fail_on_iac_scan"] = user_options.fail_on_iac_scan
    if user_options.minimum_severity_level:
        fields["minimum_severity_level"] = _parse_severity(user_options.minimum_severity_level)

    try:
        remote = RemoteScanOptions(**fields)
    except ValidationError as e:
        first = e.errors()[0]
        option = str(first["loc"][0]) if first.get("loc") else "options"
        raise InvalidOptionError(option, f"Invalid value for {option}: {first['msg']}") from e

    local = LocalOptions(
        poll_interval=_parse_positive_number(
            "poll_interval", user_options.poll_interval, "Please provide a valid poll interval",
        ) if user_options.poll_interval is not None else DEFAULT_POLL_INTERVAL,
        poll_timeout=_parse_positive_number(
            "poll_timeout", user_options.poll_timeout, "Please provide a valid poll timeout",
        ) if user_options.poll_timeout is not None else None,
        max_poll_attempts=_parse_max_attempts(user_options.max_poll_attempts),
    )

    return remote, local


def _parse_positive_number(option: str, value: Number, message: str) -> float:
    if isinstance(value, bool):
        raise InvalidOptionError(option, message)
    try:
        number = float(value)
    except (TypeError, ValueError):
        raise InvalidOptionError(option, message)
    if not math.isfinite(number) or number <= 0:
        raise InvalidOptionError(option, message)
    return number


def _parse_max_attempts(value: Optional[int]) -> Optional[int]:
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
        raise InvalidOptionError("max_poll_attempts", "Please provide a valid maximum amount of poll attempts")
    return value


def _parse_severity(value: str) -> SeverityLevel:
    try:
        return SeverityLevel(value.upper())
    except ValueError:
        accepted = ", ".join(level.value for level in SeverityLevel)
        raise InvalidOptionError(
            "minimum_severity_level",
            f"Invalid minimum severity level '{value}'. Accepted options are: {accepted}",
        )
