"""Abstract interface for review request (pull request) hosts.

Each supported hosting back-end implements this interface once, translating
its own check and policy vocabulary into the normalized Check records, so the
orchestrator never branches on host type.
"""

from abc import ABC, abstractmethod
from pathlib import Path

from subprop_shared.gateway.review_host.types import Check


class ReviewHost(ABC):
    """Abstract interface for review request lifecycle operations."""

    @abstractmethod
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
        """Open a review request, or return the open one for source_branch.

        Args:
            repo_root: Local checkout of the repository
            repo_url: Remote URL of the repository
            source_branch: Topic branch holding the update
            target_branch: Branch the update should merge into
            title: Review request title
            body: Review request description
            work_item: Optional work item to associate with the request

        Returns:
            Web URL of the review request

        Raises:
            RuntimeError: If the host rejects the request
        """
        ...

    @abstractmethod
    def fetch_checks(self, request_url: str) -> list[Check]:
        """Fetch the current checks of a review request.

        The list always contains a synthetic blocking check named "merge" that
        is pending while the request is open, succeeded once it has been
        merged, and failed if it was closed without merging.

        Raises:
            RuntimeError: If the status could not be fetched
        """
        ...

    @abstractmethod
    def close_or_abandon(self, request_url: str) -> None:
        """Close (GitHub) or abandon (Azure DevOps) a review request."""
        ...

    @abstractmethod
    def get_merge_commit(self, request_url: str) -> str | None:
        """Commit the review request was merged as, or None if not merged."""
        ...
