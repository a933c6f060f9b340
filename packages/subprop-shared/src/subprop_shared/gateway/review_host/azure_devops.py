"""Azure DevOps review host implemented with the az CLI (azure-devops extension).

Branch policies (required reviewers, build validation, work item linking)
are the Azure DevOps equivalent of CI checks; their evaluations are
translated into normalized Check records.
"""

import json
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from subprop_shared.gateway.review_host.abc import ReviewHost
from subprop_shared.gateway.review_host.types import (
    MERGE_CHECK_NAME,
    Check,
    CheckStatus,
    parse_host_timestamp,
)
from subprop_shared.subprocess_utils import execute_review_cli_command

# PolicyEvaluationRecord.status values
POLICY_STATUS_MAP: dict[str, CheckStatus] = {
    "queued": "pending",
    "running": "running",
    "approved": "succeeded",
    "rejected": "failed",
    "broken": "failed",
    "notapplicable": "skipped",
}

# PullRequest.status values for the synthetic merge check
PR_STATUS_MAP: dict[str, CheckStatus] = {
    "active": "pending",
    "completed": "succeeded",
    "abandoned": "failed",
}

_DEV_AZURE_REPO = re.compile(
    r"^https?://(?:[^@/]+@)?dev\.azure\.com/"
    r"(?P<org>[^/]+)/(?P<project>[^/]+)/_git/(?P<repo>[^/?#]+)"
)
_VISUALSTUDIO_REPO = re.compile(
    r"^https?://(?:[^@/]+@)?(?P<org>[^./]+)\.visualstudio\.com/"
    r"(?:DefaultCollection/)?(?P<project>[^/]+)/_git/(?P<repo>[^/?#]+)"
)
_SSH_AZURE_REPO = re.compile(
    r"^(?:ssh://)?git@ssh\.dev\.azure\.com[:/]v3/"
    r"(?P<org>[^/]+)/(?P<project>[^/]+)/(?P<repo>[^/?#]+)"
)
_PULL_REQUEST_SUFFIX = re.compile(r"/pullrequest/(?P<id>\d+)/?$")


@dataclass(frozen=True)
class AzureRepoLocation:
    """Coordinates the az CLI needs to address a repository."""

    organization_url: str
    project: str
    repository: str

    def pull_request_url(self, pr_id: int) -> str:
        return (
            f"{self.organization_url}/{self.project}/_git/{self.repository}/pullrequest/{pr_id}"
        )


def parse_azure_repo_url(url: str) -> AzureRepoLocation | None:
    """Parse an Azure DevOps repository (or pull request) URL.

    Supports dev.azure.com (https and ssh) and legacy *.visualstudio.com forms.

    Returns:
        The location, or None if url is not an Azure DevOps repository URL
    """
    match = _DEV_AZURE_REPO.match(url) or _SSH_AZURE_REPO.match(url)
    if match is not None:
        organization_url = f"https://dev.azure.com/{match.group('org')}"
    else:
        match = _VISUALSTUDIO_REPO.match(url)
        if match is None:
            return None
        organization_url = f"https://{match.group('org')}.visualstudio.com"

    repository = match.group("repo").removesuffix(".git")
    return AzureRepoLocation(
        organization_url=organization_url,
        project=match.group("project"),
        repository=repository,
    )


def parse_azure_pr_url(request_url: str) -> tuple[AzureRepoLocation, int]:
    """Split a pull request web URL into repository location and PR id.

    Raises:
        RuntimeError: If request_url is not an Azure DevOps pull request URL
    """
    location = parse_azure_repo_url(request_url)
    suffix = _PULL_REQUEST_SUFFIX.search(request_url)
    if location is None or suffix is None:
        msg = f"Not an Azure DevOps pull request URL: {request_url}"
        raise RuntimeError(msg)
    return location, int(suffix.group("id"))


def _policy_name(configuration: dict[str, Any]) -> str:
    settings = configuration.get("settings") or {}
    display_name = settings.get("displayName")
    if display_name:
        return str(display_name)
    policy_type = configuration.get("type") or {}
    return str(policy_type.get("displayName") or "policy")


def parse_azure_policy_checks(
    evaluations: list[dict[str, Any]], pr: dict[str, Any]
) -> list[Check]:
    """Translate `az repos pr policy list` and `az repos pr show` output into checks.

    Disabled policies are dropped; the synthetic merge check comes last.
    """
    checks: list[Check] = []
    for evaluation in evaluations:
        configuration = evaluation.get("configuration") or {}
        if configuration.get("isEnabled") is False:
            continue
        status = str(evaluation.get("status") or "").lower()
        checks.append(
            Check(
                name=_policy_name(configuration),
                status=POLICY_STATUS_MAP.get(status, "unknown"),
                start_time=parse_host_timestamp(evaluation.get("startedDate")),
                end_time=parse_host_timestamp(evaluation.get("completedDate")),
                url=None,
                is_blocking=configuration.get("isBlocking"),
            )
        )

    pr_status = str(pr.get("status") or "").lower()
    checks.append(
        Check(
            name=MERGE_CHECK_NAME,
            status=PR_STATUS_MAP.get(pr_status, "unknown"),
            is_blocking=True,
        )
    )
    return checks


class AzureDevOpsReviewHost(ReviewHost):
    """Production implementation using `az repos`.

    Requires the azure-devops extension and an authenticated az session (or
    AZURE_DEVOPS_EXT_PAT in the environment).
    """

    def __init__(self, *, auto_merge: bool) -> None:
        """Initialize AzureDevOpsReviewHost.

        Args:
            auto_merge: Set auto-complete on newly created pull requests
        """
        self._auto_merge = auto_merge

    def _location_for(self, repo_url: str) -> AzureRepoLocation:
        location = parse_azure_repo_url(repo_url)
        if location is None:
            msg = f"Not an Azure DevOps repository URL: {repo_url}"
            raise RuntimeError(msg)
        return location

    def _load_json(self, cmd: list[str], *, operation_context: str, cwd: Path | None) -> Any:
        stdout = execute_review_cli_command(cmd, operation_context=operation_context, cwd=cwd)
        try:
            return json.loads(stdout or "null")
        except json.JSONDecodeError as e:
            msg = f"Unexpected az output while trying to {operation_context}"
            raise RuntimeError(msg) from e

    def open_review_request(
        self,
        repo_root: Path,
        *,
        repo_url: str,
        source_branch: str,
        target_branch: str,
        title: str,
        body: str,
        work_item: str | None,
    ) -> str:
        location = self._location_for(repo_url)
        address = [
            "--organization",
            location.organization_url,
            "--project",
            location.project,
            "--repository",
            location.repository,
        ]

        existing = self._load_json(
            [
                "az",
                "repos",
                "pr",
                "list",
                *address,
                "--source-branch",
                source_branch,
                "--status",
                "active",
                "--output",
                "json",
            ],
            operation_context=f"look up active pull request for '{source_branch}'",
            cwd=repo_root,
        )
        if existing:
            return location.pull_request_url(int(existing[0]["pullRequestId"]))

        cmd = [
            "az",
            "repos",
            "pr",
            "create",
            *address,
            "--source-branch",
            source_branch,
            "--target-branch",
            target_branch,
            "--title",
            title,
            "--description",
            body,
            "--output",
            "json",
        ]
        if self._auto_merge:
            cmd.extend(["--auto-complete", "true"])
        if work_item is not None:
            cmd.extend(["--work-items", work_item])

        created = self._load_json(
            cmd,
            operation_context=f"create pull request for branch '{source_branch}'",
            cwd=repo_root,
        )
        return location.pull_request_url(int(created["pullRequestId"]))

    def _show(self, location: AzureRepoLocation, pr_id: int) -> dict[str, Any]:
        return self._load_json(
            [
                "az",
                "repos",
                "pr",
                "show",
                "--id",
                str(pr_id),
                "--organization",
                location.organization_url,
                "--output",
                "json",
            ],
            operation_context=f"show pull request {pr_id}",
            cwd=None,
        )

    def fetch_checks(self, request_url: str) -> list[Check]:
        location, pr_id = parse_azure_pr_url(request_url)
        evaluations = self._load_json(
            [
                "az",
                "repos",
                "pr",
                "policy",
                "list",
                "--id",
                str(pr_id),
                "--organization",
                location.organization_url,
                "--output",
                "json",
            ],
            operation_context=f"list policy evaluations of pull request {pr_id}",
            cwd=None,
        )
        pr = self._show(location, pr_id)
        return parse_azure_policy_checks(evaluations or [], pr or {})

    def close_or_abandon(self, request_url: str) -> None:
        location, pr_id = parse_azure_pr_url(request_url)
        execute_review_cli_command(
            [
                "az",
                "repos",
                "pr",
                "update",
                "--id",
                str(pr_id),
                "--status",
                "abandoned",
                "--organization",
                location.organization_url,
                "--output",
                "none",
            ],
            operation_context=f"abandon pull request {pr_id}",
            cwd=None,
        )

    def get_merge_commit(self, request_url: str) -> str | None:
        location, pr_id = parse_azure_pr_url(request_url)
        pr = self._show(location, pr_id)
        if str(pr.get("status") or "").lower() != "completed":
            return None
        last_merge_commit = pr.get("lastMergeCommit") or {}
        commit_id = last_merge_commit.get("commitId")
        return str(commit_id) if commit_id else None
