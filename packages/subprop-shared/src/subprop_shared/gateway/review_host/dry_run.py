"""No-op review host wrapper for dry-run mode.

Opening and closing review requests only print what would happen. Requests
"opened" in dry-run mode report an immediately merged state so a dry run
walks the whole processing order.
"""

from pathlib import Path

from subprop_shared.gateway.review_host.abc import ReviewHost
from subprop_shared.gateway.review_host.types import MERGE_CHECK_NAME, Check
from subprop_shared.output.output import user_output

DRY_RUN_URL_PREFIX = "dry-run://"


class DryRunReviewHost(ReviewHost):
    """Wrapper that prevents review request mutations."""

    def __init__(self, wrapped: ReviewHost) -> None:
        """Create a dry-run wrapper around a ReviewHost implementation.

        Args:
            wrapped: The ReviewHost implementation to wrap
        """
        self._wrapped = wrapped

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
        user_output(
            f"[DRY RUN] Would open review request {source_branch} -> {target_branch} "
            f"for {repo_url}: {title}"
        )
        return f"{DRY_RUN_URL_PREFIX}{repo_url}#{source_branch}"

    def fetch_checks(self, request_url: str) -> list[Check]:
        if request_url.startswith(DRY_RUN_URL_PREFIX):
            return [Check(name=MERGE_CHECK_NAME, status="succeeded", is_blocking=True)]
        return self._wrapped.fetch_checks(request_url)

    def close_or_abandon(self, request_url: str) -> None:
        user_output(f"[DRY RUN] Would close or abandon {request_url}")

    def get_merge_commit(self, request_url: str) -> str | None:
        if request_url.startswith(DRY_RUN_URL_PREFIX):
            return None
        return self._wrapped.get_merge_commit(request_url)
