"""Fake review host for testing.

FakeReviewHost is an in-memory implementation that accepts pre-configured
check sequences in its constructor, keyed by repository URL.
"""

from dataclasses import dataclass
from pathlib import Path

from subprop_shared.gateway.review_host.abc import ReviewHost
from subprop_shared.gateway.review_host.types import MERGE_CHECK_NAME, Check


@dataclass(frozen=True)
class OpenedReviewRequest:
    repo_root: Path
    repo_url: str
    source_branch: str
    target_branch: str
    title: str
    body: str
    work_item: str | None
    url: str


class FakeReviewHost(ReviewHost):
    """In-memory fake implementation of a review host.

    State Management:
    -----------------
    open_review_request() returns "<repo_url without .git>/pull/<n>" with n
    counting up from 1. Each fetch_checks() call for that request consumes the
    next entry of the repository's configured check sequence; the last entry
    repeats once the sequence is exhausted. Repositories without a configured
    sequence report a single succeeded merge check.

    Mutation Tracking:
    -----------------
    - opened: OpenedReviewRequest records, in call order
    - closed: request URLs passed to close_or_abandon()
    - fetch_count: number of fetch_checks() calls

    Examples:
    ---------
        host = FakeReviewHost(
            check_sequences={
                "https://github.com/org/lib.git": [
                    [Check(name="build", status="running")],
                    [Check(name="build", status="succeeded")],
                ],
            },
            merge_commits={"https://github.com/org/lib.git": "merged123"},
        )
    """

    def __init__(
        self,
        *,
        check_sequences: dict[str, list[list[Check]]] | None = None,
        merge_commits: dict[str, str] | None = None,
        fetch_failures: int = 0,
        open_raises: Exception | None = None,
        close_raises: Exception | None = None,
    ) -> None:
        """Create FakeReviewHost with pre-configured state.

        Args:
            check_sequences: Mapping of repo URL -> successive fetch_checks() results
            merge_commits: Mapping of repo URL -> commit reported by get_merge_commit()
            fetch_failures: Number of initial fetch_checks() calls that raise RuntimeError
            open_raises: Exception raised by open_review_request()
            close_raises: Exception raised by close_or_abandon()
        """
        self._check_sequences = check_sequences or {}
        self._merge_commits = merge_commits or {}
        self._remaining_fetch_failures = fetch_failures
        self._open_raises = open_raises
        self._close_raises = close_raises

        self._request_repos: dict[str, str] = {}
        self._fetch_positions: dict[str, int] = {}

        self._opened: list[OpenedReviewRequest] = []
        self._closed: list[str] = []
        self._fetch_count = 0

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
        if self._open_raises is not None:
            raise self._open_raises
        url = f"{repo_url.removesuffix('.git')}/pull/{len(self._opened) + 1}"
        self._request_repos[url] = repo_url
        self._opened.append(
            OpenedReviewRequest(
                repo_root=repo_root,
                repo_url=repo_url,
                source_branch=source_branch,
                target_branch=target_branch,
                title=title,
                body=body,
                work_item=work_item,
                url=url,
            )
        )
        return url

    def fetch_checks(self, request_url: str) -> list[Check]:
        self._fetch_count += 1
        if self._remaining_fetch_failures > 0:
            self._remaining_fetch_failures -= 1
            msg = f"Failed to fetch checks of {request_url}"
            raise RuntimeError(msg)

        repo_url = self._request_repos.get(request_url, request_url)
        sequence = self._check_sequences.get(repo_url)
        if not sequence:
            return [Check(name=MERGE_CHECK_NAME, status="succeeded", is_blocking=True)]

        position = self._fetch_positions.get(request_url, 0)
        self._fetch_positions[request_url] = position + 1
        return list(sequence[min(position, len(sequence) - 1)])

    def close_or_abandon(self, request_url: str) -> None:
        if self._close_raises is not None:
            raise self._close_raises
        self._closed.append(request_url)

    def get_merge_commit(self, request_url: str) -> str | None:
        repo_url = self._request_repos.get(request_url, request_url)
        return self._merge_commits.get(repo_url)

    @property
    def opened(self) -> list[OpenedReviewRequest]:
        return list(self._opened)

    @property
    def opened_repo_urls(self) -> list[str]:
        return [request.repo_url for request in self._opened]

    @property
    def closed(self) -> list[str]:
        return list(self._closed)

    @property
    def fetch_count(self) -> int:
        return self._fetch_count
