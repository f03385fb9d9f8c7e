"""
The `scan` command.

Starts an Aikido CI scan for a commit range, waits for it to finish and
exits 0 (gate passed), 10 (gate failed) or 1 (could not start/poll).
"""

import re
from typing import List, Optional

import typer
from rich.markup import escape

from aikido_cli.api import get_api_client
from aikido_cli.exceptions import ApiError, ConfigError, InvalidOptionError, PollTimeoutError, ScanStartError
from aikido_cli.logging_config import logger
from aikido_cli.scan import ScanCliOptions, ScanEvent, ScanEventKind, run_scan, translate_options
from aikido_cli.schemas import PollResult, ScanRequest, SelfManagedScanner, SeverityLevel
from aikido_cli.user_config import get_user_config

from .config import CLIConfig
from .exit_codes import EXIT_ERROR, EXIT_GATE_FAILED, EXIT_SUCCESS
from .output import Spinner, get_console, print_error, print_http_error, print_json, start_spinner

console = get_console()

# Full or abbreviated git SHA
COMMIT_ID_PATTERN = re.compile(r"^(?:[0-9a-fA-F]{40}|[0-9a-fA-F]{7})$")

NOT_FOUND_HINT = "Please verify your repoId, baseCommitId, headCommitId and branchName"


def is_valid_commit_id(value: str) -> bool:
    return bool(COMMIT_ID_PATTERN.match(value or ""))


class ScanReporter:
    """
    Turns lifecycle events into console output and an exit code.
    """

    def __init__(self):
        self.spinner: Optional[Spinner] = None
        self.exit_code = EXIT_ERROR

    def handle(self, event: ScanEvent) -> None:
        kind = event.kind

        if kind == ScanEventKind.STARTING:
            self.spinner = start_spinner("Starting scan")
        elif kind == ScanEventKind.STARTED:
            self.spinner.succeed("Scan started")
        elif kind == ScanEventKind.POLLING:
            self.spinner = start_spinner("Waiting for scan to complete")
        elif kind == ScanEventKind.COMPLETED:
            self._report_completion(event)
        elif kind in (ScanEventKind.START_FAILED, ScanEventKind.POLL_FAILED):
            self.spinner.fail()
            self.report_failure(event.error)
            self.exit_code = EXIT_ERROR
        elif kind == ScanEventKind.CANCELLED:
            self.spinner.fail("Scan cancelled")
            self.exit_code = EXIT_ERROR

    def _report_completion(self, event: ScanEvent) -> None:
        result = event.poll_result

        if result.passed:
            self.spinner.succeed("Scan completed, no new issues found")
            self.exit_code = EXIT_SUCCESS
        else:
            self.spinner.fail("Scan completed with issues")
            report_issues(result)
            self.exit_code = EXIT_GATE_FAILED

        if CLIConfig.is_machine_mode():
            print_json(scan_summary(event))

    def report_failure(self, error: Optional[BaseException]) -> None:
        if isinstance(error, ApiError) and error.is_not_found:
            print_error(NOT_FOUND_HINT, code="NOT_FOUND")
        elif isinstance(error, (ScanStartError, PollTimeoutError)):
            print_error(str(error), code="SCAN_FAILED")
        elif error is not None:
            print_http_error(error)


def report_issues(result: PollResult) -> None:
    """Print the issue summary of a scan whose gate did not pass."""
    if result.open_issues_found:
        console.print(
            f"[grey50][bold]Open issues found: {result.open_issues_found}[/bold][/grey50]",
            soft_wrap=True,
        )
    if result.issue_links:
        for link in result.issue_links:
            console.print(f"[grey50]- {escape(link)}[/grey50]", soft_wrap=True)
    if result.diff_url:
        console.print(f"[grey50]* Diff url: {escape(result.diff_url)}[/grey50]", soft_wrap=True)


def scan_summary(event: ScanEvent) -> dict:
    result = event.poll_result
    return {
        "status": "passed" if result.passed else "failed",
        "scan_id": event.scan_id,
        "gate_passed": result.gate_passed,
        "open_issues_found": result.open_issues_found,
        "issue_links": result.issue_links or [],
        "diff_url": result.diff_url,
        "poll_attempts": event.attempt,
    }


def scan_cmd(
    repository_id: str = typer.Argument(
        ...,
        help="The internal GitHub/Gitlab/Bitbucket/.. repository id you want to scan.",
    ),
    base_commit_id: str = typer.Argument(
        ...,
        help="The base commit of the code you want to scan (e.g. the commit where you branched from for your PR or the initial commit of your repo)",
    ),
    head_commit_id: str = typer.Argument(
        ...,
        help="The latest commit you want to include in your scan (e.g. the latest commit id of your pull request)",
    ),
    branch_name: str = typer.Argument("main", help="The branch name"),
    pull_request_title: Optional[str] = typer.Option(None, "--pull-request-title", help="Your pull request title"),
    pull_request_url: Optional[str] = typer.Option(None, "--pull-request-url", help="Your pull request URL"),
    self_managed_scanners: Optional[List[SelfManagedScanner]] = typer.Option(
        None,
        "--self-managed-scanners",
        help="Scanners whose results you upload yourself (repeatable).",
    ),
    expected_amount_json_sbombs: Optional[int] = typer.Option(
        None,
        "--expected-amount-json-sbombs",
        help="The expected amount of json sbombs",
    ),
    fail_on_dependency_scan: bool = typer.Option(
        True,
        "--fail-on-dependency-scan/--no-fail-on-dependency-scan",
        help="Fail when new dependency issues have been detected (default: enabled).",
    ),
    fail_on_sast_scan: bool = typer.Option(
        False,
        "--fail-on-sast-scan",
        help="Let Aikido fail when new static code analysis issues have been detected.",
    ),
    fail_on_iac_scan: bool = typer.Option(
        False,
        "--fail-on-iac-scan",
        help="Let Aikido fail when new infrastructure as code issues have been detected.",
    ),
    minimum_severity_level: Optional[SeverityLevel] = typer.Option(
        None,
        "--minimum-severity-level",
        case_sensitive=False,
        help="Set the minimum severity level. Accepted options are: LOW, MEDIUM, HIGH and CRITICAL.",
    ),
    poll_interval: Optional[str] = typer.Option(
        None,
        "--poll-interval",
        help="The poll interval in seconds when checking for an updated scan result (default: 5).",
    ),
    poll_timeout: Optional[str] = typer.Option(
        None,
        "--poll-timeout",
        help="Give up after this many seconds of polling (default: wait indefinitely).",
    ),
    max_poll_attempts: Optional[int] = typer.Option(
        None,
        "--max-poll-attempts",
        help="Give up after this many poll requests (default: unlimited).",
    ),
):
    """
    Run a scan of an Aikido repo.
    """
    for commit_id in (base_commit_id, head_commit_id):
        if not is_valid_commit_id(commit_id):
            print_error("Please provide a valid commit ID", code="INVALID_COMMIT_ID")
            raise typer.Exit(code=EXIT_ERROR)

    config = get_user_config()
    if not config.api_key:
        print_error("Please set an api key using: aikido-cli apikey <key>", code="MISSING_API_KEY")
        raise typer.Exit(code=EXIT_ERROR)

    user_options = ScanCliOptions(
        pull_request_title=pull_request_title,
        pull_request_url=pull_request_url,
        self_managed_scanners=[s.value for s in self_managed_scanners] if self_managed_scanners else None,
        expected_amount_json_sbombs=expected_amount_json_sbombs,
        fail_on_dependency_scan=fail_on_dependency_scan,
        fail_on_sast_scan=True if fail_on_sast_scan else None,
        fail_on_iac_scan=True if fail_on_iac_scan else None,
        minimum_severity_level=minimum_severity_level.value if minimum_severity_level else None,
        poll_interval=poll_interval,
        poll_timeout=poll_timeout,
        max_poll_attempts=max_poll_attempts,
    )

    try:
        remote_options, local_options = translate_options(user_options)
    except InvalidOptionError as e:
        print_error(e.message, code="INVALID_OPTION")
        raise typer.Exit(code=EXIT_ERROR)

    request = ScanRequest(
        repo_id=repository_id,
        base_commit_id=base_commit_id,
        head_commit_id=head_commit_id,
        branch_name=branch_name,
        options=remote_options,
    )

    try:
        client = get_api_client(config.api_key)
    except ConfigError as e:
        print_error(str(e), code="CONFIG_ERROR")
        raise typer.Exit(code=EXIT_ERROR)

    logger.debug(f"Scanning repo {repository_id} on {branch_name} every {local_options.poll_interval:g}s")

    reporter = ScanReporter()
    try:
        run_scan(client, request, policy=local_options.to_policy(), on_event=reporter.handle)
    except KeyboardInterrupt:
        if reporter.spinner is not None:
            reporter.spinner.fail("Scan interrupted")
        raise typer.Exit(code=EXIT_ERROR)
    finally:
        client.close()

    raise typer.Exit(code=reporter.exit_code)
