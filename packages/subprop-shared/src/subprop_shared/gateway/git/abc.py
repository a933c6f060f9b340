"""Abstract interface for the git operations propagation needs.

All implementations (real, fake, dry-run) must implement this interface.
Mutating operations raise SubprocessCommandError (a RuntimeError) when git
fails.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path


@dataclass(frozen=True)
class SubmoduleInfo:
    """One entry of a repository's .gitmodules manifest.

    Attributes:
        name: The submodule's section name in .gitmodules
        path: Checkout path relative to the parent repository root
        url: Remote URL as written in the manifest (may be relative)
    """

    name: str
    path: str
    url: str


class Git(ABC):
    """Abstract interface for git operations."""

    # ============================================================================
    # Query Operations
    # ============================================================================

    @abstractmethod
    def path_exists(self, path: Path) -> bool:
        """Check whether a path exists on disk."""
        ...

    @abstractmethod
    def list_submodules(self, repo_root: Path) -> list[SubmoduleInfo]:
        """Read the submodules declared in repo_root/.gitmodules.

        Returns:
            Declared submodules in manifest order; empty when there is no
            manifest or it declares nothing.

        Raises:
            SubprocessCommandError: If the manifest exists but cannot be read
        """
        ...

    @abstractmethod
    def detect_default_branch(self, repo_root: Path) -> str:
        """Name of the branch origin/HEAD points at (e.g. "main")."""
        ...

    @abstractmethod
    def get_remote_head_commit(self, url: str) -> str:
        """Commit SHA of the remote's default branch head (git ls-remote HEAD)."""
        ...

    @abstractmethod
    def has_staged_changes(self, repo_root: Path) -> bool:
        """Whether the index differs from HEAD.

        Decided from the exit status of `git diff --cached --quiet`, never from
        output text.
        """
        ...

    # ============================================================================
    # Mutation Operations
    # ============================================================================

    @abstractmethod
    def clone(self, url: str, destination: Path) -> None:
        """Clone url into destination."""
        ...

    @abstractmethod
    def fetch(self, repo_root: Path) -> None:
        """Fetch all refs from origin."""
        ...

    @abstractmethod
    def checkout_branch(self, repo_root: Path, branch: str) -> None:
        """Check out an existing branch."""
        ...

    @abstractmethod
    def pull_branch(self, repo_root: Path, remote: str, branch: str) -> None:
        """Fast-forward the current branch from remote/branch."""
        ...

    @abstractmethod
    def sync_submodules(self, repo_root: Path) -> None:
        """Sync submodule URLs with the manifest and initialize missing checkouts."""
        ...

    @abstractmethod
    def reinit_submodule(self, repo_root: Path, submodule_path: str) -> None:
        """Deinitialize, delete and re-initialize one submodule checkout."""
        ...

    @abstractmethod
    def checkout_commit(self, repo_root: Path, commit: str) -> None:
        """Fetch and check out a specific commit (detached HEAD)."""
        ...

    @abstractmethod
    def create_or_reset_branch(self, repo_root: Path, branch: str) -> None:
        """Create branch at HEAD, or reset it to HEAD if it already exists."""
        ...

    @abstractmethod
    def add_all(self, repo_root: Path) -> None:
        """Stage all changes (git add -A)."""
        ...

    @abstractmethod
    def commit(self, repo_root: Path, message: str) -> None:
        """Commit the staged changes."""
        ...

    @abstractmethod
    def force_push(self, repo_root: Path, remote: str, branch: str) -> None:
        """Force-push branch to remote."""
        ...
