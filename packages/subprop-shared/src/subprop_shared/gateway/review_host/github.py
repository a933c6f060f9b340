"""GitHub review host implemented with the gh CLI.

Pull request checks come from the statusCheckRollup of `gh pr view`, which
mixes two record types: CheckRun (GitHub Actions and apps) and StatusContext
(legacy commit statuses). Both are translated into normalized Check records
through the tables below.
"""

import json
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

# CheckRun.status values before completion
CHECK_RUN_STATUS_MAP: dict[str, CheckStatus] = {
    "QUEUED": "pending",
    "PENDING": "pending",
    "WAITING": "pending",
    "REQUESTED": "pending",
    "IN_PROGRESS": "running",
}

# CheckRun.conclusion values once status is COMPLETED
CHECK_RUN_CONCLUSION_MAP: dict[str, CheckStatus] = {
    "SUCCESS": "succeeded",
    "FAILURE": "failed",
    "TIMED_OUT": "failed",
    "STARTUP_FAILURE": "failed",
    "ACTION_REQUIRED": "failed",
    "CANCELLED": "cancelled",
    "STALE": "cancelled",
    "SKIPPED": "skipped",
    "NEUTRAL": "skipped",
}

# StatusContext.state values
STATUS_CONTEXT_STATE_MAP: dict[str, CheckStatus] = {
    "EXPECTED": "pending",
    "PENDING": "pending",
    "SUCCESS": "succeeded",
    "FAILURE": "failed",
    "ERROR": "failed",
}

# PullRequest.state values for the synthetic merge check
PR_STATE_MAP: dict[str, CheckStatus] = {
    "OPEN": "pending",
    "MERGED": "succeeded",
    "CLOSED": "failed",
}


def _translate_check_run(entry: dict[str, Any]) -> Check:
    status = str(entry.get("status") or "").upper()
    if status == "COMPLETED":
        conclusion = str(entry.get("conclusion") or "").upper()
        normalized = CHECK_RUN_CONCLUSION_MAP.get(conclusion, "unknown")
    else:
        normalized = CHECK_RUN_STATUS_MAP.get(status, "unknown")

    return Check(
        name=str(entry.get("name") or entry.get("workflowName") or "check"),
        status=normalized,
        start_time=parse_host_timestamp(entry.get("startedAt")),
        end_time=parse_host_timestamp(entry.get("completedAt")),
        url=entry.get("detailsUrl"),
        is_blocking=None,
    )


def _translate_status_context(entry: dict[str, Any]) -> Check:
    state = str(entry.get("state") or "").upper()
    return Check(
        name=str(entry.get("context") or "status"),
        status=STATUS_CONTEXT_STATE_MAP.get(state, "unknown"),
        start_time=parse_host_timestamp(entry.get("startedAt")),
        end_time=None,
        url=entry.get("targetUrl"),
        is_blocking=None,
    )


def parse_github_pr_checks(data: dict[str, Any]) -> list[Check]:
    """Translate `gh pr view --json state,statusCheckRollup` output into checks.

    Args:
        data: Parsed JSON object returned by gh

    Returns:
        One Check per rollup entry followed by the synthetic merge check
    """
    checks: list[Check] = []
    for entry in data.get("statusCheckRollup") or []:
        if entry.get("__typename") == "StatusContext":
            checks.append(_translate_status_context(entry))
        else:
            checks.append(_translate_check_run(entry))

    state = str(data.get("state") or "").upper()
    checks.append(
        Check(
            name=MERGE_CHECK_NAME,
            status=PR_STATE_MAP.get(state, "unknown"),
            is_blocking=True,
        )
    )
    return checks


def _parse_json(stdout: str, *, request: str) -> Any:
    try:
        return json.loads(stdout)
    except json.JSONDecodeError as e:
        msg = f"Unexpected gh output for {request}"
        raise RuntimeError(msg) from e


class GitHubReviewHost(ReviewHost):
    """Production implementation using gh CLI.

    All operations execute gh commands via subprocess. Review requests are
    addressed by their web URL, which gh accepts in place of a number.
    """

    def __init__(self, *, auto_merge: bool) -> None:
        """Initialize GitHubReviewHost.

        Args:
            auto_merge: Enable auto-merge (squash) on newly opened pull requests
                so they merge as soon as required checks pass
        """
        self._auto_merge = auto_merge

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
        existing = execute_review_cli_command(
            [
                "gh",
                "pr",
                "list",
                "--head",
                source_branch,
                "--state",
                "open",
                "--json",
                "url",
                "--limit",
                "1",
            ],
            operation_context=f"look up open pull request for '{source_branch}'",
            cwd=repo_root,
        )
        open_prs = _parse_json(existing or "[]", request="open pull requests")
        if open_prs:
            return str(open_prs[0]["url"])

        if work_item is not None:
            body = f"{body}\n\nWork item: {work_item}"

        stdout = execute_review_cli_command(
            [
                "gh",
                "pr",
                "create",
                "--head",
                source_branch,
                "--base",
                target_branch,
                "--title",
                title,
                "--body",
                body,
            ],
            operation_context=f"create pull request for branch '{source_branch}'",
            cwd=repo_root,
        )
        # gh prints progress lines before the URL
        pr_url = stdout.strip().splitlines()[-1].strip()

        if self._auto_merge:
            execute_review_cli_command(
                ["gh", "pr", "merge", pr_url, "--auto", "--squash"],
                operation_context=f"enable auto-merge on {pr_url}",
                cwd=repo_root,
            )
        return pr_url

    def fetch_checks(self, request_url: str) -> list[Check]:
        stdout = execute_review_cli_command(
            ["gh", "pr", "view", request_url, "--json", "state,statusCheckRollup"],
            operation_context=f"fetch checks of {request_url}",
            cwd=None,
        )
        return parse_github_pr_checks(_parse_json(stdout, request=request_url))

    def close_or_abandon(self, request_url: str) -> None:
        execute_review_cli_command(
            ["gh", "pr", "close", request_url],
            operation_context=f"close {request_url}",
            cwd=None,
        )

    def get_merge_commit(self, request_url: str) -> str | None:
        stdout = execute_review_cli_command(
            ["gh", "pr", "view", request_url, "--json", "state,mergeCommit"],
            operation_context=f"read merge commit of {request_url}",
            cwd=None,
        )
        data = _parse_json(stdout, request=request_url)
        if str(data.get("state") or "").upper() != "MERGED":
            return None
        merge_commit = data.get("mergeCommit") or {}
        oid = merge_commit.get("oid")
        return str(oid) if oid else None
