from enum import Enum
from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field


class SeverityLevel(str, Enum):
    """
    Minimum severity at which the remote gate fails, ordered LOW < CRITICAL.
    """
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"
    CRITICAL = "CRITICAL"


class SelfManagedScanner(str, Enum):
    CHECKOV = "checkov"
    JSON_SBOMB = "json-sbomb"


class PullRequestMetadata(BaseModel):
    title: Optional[str] = None
    url: Optional[str] = None


class RemoteScanOptions(BaseModel):
    """
    Optional fields forwarded to the start call.

    Only fields that were explicitly set are serialised; see to_payload().
    """
    pull_request_metadata: Optional[PullRequestMetadata] = None
    self_managed_scanners: Optional[List[SelfManagedScanner]] = None
    expected_amount_json_sbombs: Optional[int] = Field(default=None, gt=0)
    fail_on_dependency_scan: Optional[bool] = None
    fail_on_sast_scan: Optional[bool] = None
    fail_on_iac_scan: Optional[bool] = None
    minimum_severity_level: Optional[SeverityLevel] = None

    def to_payload(self) -> Dict[str, Any]:
        return self.model_dump(mode="json", exclude_unset=True)


class ScanRequest(BaseModel):
    """
    Everything the start call needs. Built once per invocation.
    """
    model_config = ConfigDict(frozen=True)

    repo_id: Union[int, str]
    base_commit_id: str
    head_commit_id: str
    branch_name: str = "main"
    options: RemoteScanOptions = Field(default_factory=RemoteScanOptions)

    def to_payload(self) -> Dict[str, Any]:
        payload = {
            "repo_id": self.repo_id,
            "base_commit_id": self.base_commit_id,
            "head_commit_id": self.head_commit_id,
            "branch_name": self.branch_name,
        }
        payload.update(self.options.to_payload())
        return payload


class StartScanResult(BaseModel):
    """
    Response of the start call. A missing scan_id means the scan did not start.
    """
    model_config = ConfigDict(extra="allow")

    scan_id: Optional[Union[int, str]] = None


class PollResult(BaseModel):
    """
    Snapshot of a scan's status as returned by the poll call.
    """
    model_config = ConfigDict(extra="allow")

    all_scans_completed: Optional[bool] = None
    gate_passed: Optional[bool] = None
    open_issues_found: Optional[int] = None
    issue_links: Optional[List[str]] = None
    diff_url: Optional[str] = None

    @property
    def complete(self) -> bool:
        # Only an explicit false keeps the scan pending
        return self.all_scans_completed is not False

    @property
    def passed(self) -> bool:
        return self.gate_passed is True
