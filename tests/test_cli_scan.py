"""
End-to-end tests for the `scan`, `apikey` and `version` commands.
"""

import json
from unittest.mock import patch

import pytest
from typer.testing import CliRunner

from aikido_cli import __version__
from aikido_cli.exceptions import ApiError
from aikido_cli.main import app
from aikido_cli.schemas import PollResult, StartScanResult
from aikido_cli.user_config import get_user_config

runner = CliRunner()

REPO = "1234"
BASE = "0123456789abcdef0123456789abcdef01234567"
HEAD = "fedcba9"


@pytest.fixture
def api_key(monkeypatch):
    monkeypatch.setenv("AIKIDO_API_KEY", "AIK_CI_test")


def invoke(args, client):
    with patch("aikido_cli.cli.scan.get_api_client", return_value=client) as factory:
        result = runner.invoke(app, args)
    return result, factory


def passed():
    return PollResult(all_scans_completed=True, gate_passed=True)


def pending():
    return PollResult(all_scans_completed=False)


class TestScanOutcome:

    def test_gate_passed_exits_zero(self, api_key, fake_client):
        client = fake_client(polls=[passed()])
        result, _ = invoke(["scan", REPO, BASE, HEAD], client)

        assert result.exit_code == 0, result.output
        assert "Scan started" in result.output
        assert "Scan completed, no new issues found" in result.output
        assert client.call_names == ["start", "poll"]
        assert client.closed

    def test_gate_failed_exits_ten_with_summary(self, api_key, fake_client):
        final = PollResult(
            all_scans_completed=True,
            gate_passed=False,
            open_issues_found=3,
            issue_links=["a", "b"],
            diff_url="https://x",
        )
        client = fake_client(polls=[pending(), final])
        result, _ = invoke(["scan", REPO, BASE, HEAD, "--poll-interval", "0.01"], client)

        assert result.exit_code == 10, result.output
        assert "Scan completed with issues" in result.output
        assert "Open issues found: 3" in result.output
        assert "- a" in result.output
        assert "- b" in result.output
        assert "* Diff url: https://x" in result.output
        assert client.call_names == ["start", "poll", "poll"]

    def test_start_not_found_hint(self, api_key, fake_client):
        client = fake_client(start=ApiError("Not Found", status_code=404))
        result, _ = invoke(["scan", REPO, BASE, HEAD], client)

        assert result.exit_code == 1
        assert "Please verify your repoId, baseCommitId, headCommitId and branchName" in result.output
        assert client.call_names == ["start"]

    def test_start_generic_error(self, api_key, fake_client):
        client = fake_client(start=ApiError("Internal Server Error", status_code=500))
        result, _ = invoke(["scan", REPO, BASE, HEAD], client)

        assert result.exit_code == 1
        assert "Aikido API returned 500" in result.output
        assert "Please verify your repoId" not in result.output

    def test_start_without_scan_id(self, api_key, fake_client):
        client = fake_client(start=StartScanResult())
        result, _ = invoke(["scan", REPO, BASE, HEAD], client)

        assert result.exit_code == 1
        assert "did not return a scan id" in result.output
        assert client.call_names == ["start"]

    def test_poll_failure(self, api_key, fake_client):
        client = fake_client(polls=[ApiError("Bad Gateway", status_code=502)])
        result, _ = invoke(["scan", REPO, BASE, HEAD], client)

        assert result.exit_code == 1
        assert "Aikido API returned 502" in result.output
        assert client.call_names == ["start", "poll"]

    def test_max_poll_attempts(self, api_key, fake_client):
        client = fake_client(polls=[pending(), pending(), passed()])
        result, _ = invoke(
            ["scan", REPO, BASE, HEAD, "--poll-interval", "0.01", "--max-poll-attempts", "2"],
            client,
        )

        assert result.exit_code == 1
        assert "did not complete within 2 poll attempts" in result.output
        assert client.call_names == ["start", "poll", "poll"]


class TestOptions:

    def test_forwarded_options(self, api_key, fake_client):
        client = fake_client(polls=[passed()])
        result, _ = invoke(
            [
                "scan", REPO, BASE, HEAD, "feature/login",
                "--pull-request-title", "Fix login",
                "--no-fail-on-dependency-scan",
                "--fail-on-sast-scan",
                "--minimum-severity-level", "high",
                "--self-managed-scanners", "checkov",
            ],
            client,
        )

        assert result.exit_code == 0, result.output
        request = client.calls[0][1]
        assert request.to_payload() == {
            "repo_id": REPO,
            "base_commit_id": BASE,
            "head_commit_id": HEAD,
            "branch_name": "feature/login",
            "pull_request_metadata": {"title": "Fix login"},
            "self_managed_scanners": ["checkov"],
            "fail_on_dependency_scan": False,
            "fail_on_sast_scan": True,
            "minimum_severity_level": "HIGH",
        }

    def test_defaults(self, api_key, fake_client):
        client = fake_client(polls=[passed()])
        result, _ = invoke(["scan", REPO, BASE, HEAD], client)

        assert result.exit_code == 0, result.output
        assert client.calls[0][1].to_payload() == {
            "repo_id": REPO,
            "base_commit_id": BASE,
            "head_commit_id": HEAD,
            "branch_name": "main",
            "fail_on_dependency_scan": True,
        }

    @pytest.mark.parametrize("interval", ["0", "-3", "abc"])
    def test_invalid_poll_interval(self, api_key, fake_client, interval):
        client = fake_client()
        result, factory = invoke(["scan", REPO, BASE, HEAD, f"--poll-interval={interval}"], client)

        assert result.exit_code == 1
        assert "Please provide a valid poll interval" in result.output
        factory.assert_not_called()
        assert client.calls == []

    @pytest.mark.parametrize("commit", ["xyz", "abc12", "g" * 40])
    def test_invalid_commit_id(self, api_key, fake_client, commit):
        client = fake_client()
        result, factory = invoke(["scan", REPO, commit, HEAD], client)

        assert result.exit_code == 1
        assert "valid commit ID" in result.output
        factory.assert_not_called()

    def test_missing_api_key(self, fake_client):
        client = fake_client()
        result, factory = invoke(["scan", REPO, BASE, HEAD], client)

        assert result.exit_code == 1
        assert "aikido-cli apikey <key>" in result.output
        factory.assert_not_called()


class TestMachineMode:

    def test_json_summary(self, api_key, fake_client):
        final = PollResult(
            all_scans_completed=True,
            gate_passed=False,
            open_issues_found=3,
            issue_links=["a", "b"],
            diff_url="https://x",
        )
        client = fake_client(start=StartScanResult(scan_id=77), polls=[final])
        result, _ = invoke(["--json", "scan", REPO, BASE, HEAD], client)

        assert result.exit_code == 10
        lines = [line for line in result.stdout.splitlines() if line.strip()]
        summary = json.loads(lines[-1])
        assert summary == {
            "status": "failed",
            "scan_id": 77,
            "gate_passed": False,
            "open_issues_found": 3,
            "issue_links": ["a", "b"],
            "diff_url": "https://x",
            "poll_attempts": 1,
        }
        assert "Open issues found: 3" in result.stdout

    def test_json_error(self, api_key, fake_client):
        client = fake_client(start=ApiError("Not Found", status_code=404))
        result, _ = invoke(["--json", "scan", REPO, BASE, HEAD], client)

        assert result.exit_code == 1
        error = json.loads(result.stdout.strip().splitlines()[-1])
        assert error["status"] == "error"
        assert error["code"] == "NOT_FOUND"

    def test_json_invalid_commit_id(self, api_key, fake_client):
        client = fake_client()
        result, factory = invoke(["--json", "scan", REPO, BASE, "nothex!"], client)

        assert result.exit_code == 1
        error = json.loads(result.stdout.strip().splitlines()[-1])
        assert error["code"] == "INVALID_COMMIT_ID"
        factory.assert_not_called()


def test_apikey_saves_key():
    result = runner.invoke(app, ["apikey", "AIK_CI_saved"])

    assert result.exit_code == 0, result.output
    assert get_user_config().api_key == "AIK_CI_saved"


def test_apikey_then_scan_uses_stored_key(fake_client):
    runner.invoke(app, ["apikey", "AIK_CI_saved"])
    client = fake_client(polls=[passed()])
    result, factory = invoke(["scan", REPO, BASE, HEAD], client)

    assert result.exit_code == 0, result.output
    factory.assert_called_once_with("AIK_CI_saved")


def test_version():
    result = runner.invoke(app, ["version"])
    assert result.exit_code == 0
    assert __version__ in result.stdout


def test_verbose_flag_accepted():
    result = runner.invoke(app, ["-v", "version"])
    assert result.exit_code == 0
    assert __version__ in result.stdout
