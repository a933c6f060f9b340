"""Fake git operations for testing.

FakeGit is an in-memory implementation that accepts pre-configured state
in its constructor. Construct instances directly with keyword arguments.
"""

from pathlib import Path

from subprop_shared.gateway.git.abc import Git, SubmoduleInfo


class FakeGit(Git):
    """In-memory fake implementation of git operations.

    State Management:
    -----------------
    Remote repositories are described by URL: what their manifest declares
    (remote_submodules) and where their default branch points (remote_heads).
    clone() materializes a remote at a local path, after which path-based
    queries (list_submodules, path_exists) answer for that path.

    A repository reports staged changes when it is listed in staged_repos, or
    when checkout_commit() moved one of its submodule checkouts to a commit
    other than the one recorded in pinned_commits. commit() clears that.

    Mutation Tracking:
    -----------------
    - cloned: (url, destination) pairs
    - reinitialized_submodules: (repo_root, submodule_path) pairs
    - checked_out_commits: (path, commit) pairs
    - created_branches: (repo_root, branch) pairs
    - commits: (repo_root, message) pairs
    - pushed_branches: (repo_root, remote, branch) triples

    Examples:
    ---------
        git = FakeGit(
            remote_submodules={
                "https://github.com/org/app.git": [
                    SubmoduleInfo(name="deps/lib", path="deps/lib", url="../lib.git"),
                ],
            },
            remote_heads={"https://github.com/org/lib.git": "abc123"},
        )
    """

    def __init__(
        self,
        *,
        remote_submodules: dict[str, list[SubmoduleInfo]] | None = None,
        remote_heads: dict[str, str] | None = None,
        unreadable_manifests: set[str] | None = None,
        existing_paths: set[Path] | None = None,
        default_branches: dict[Path, str] | None = None,
        pinned_commits: dict[Path, str] | None = None,
        staged_repos: set[Path] | None = None,
        stale_submodules: set[Path] | None = None,
        commit_raises: Exception | None = None,
        push_raises: Exception | None = None,
        pull_raises: Exception | None = None,
    ) -> None:
        """Create FakeGit with pre-configured state.

        Args:
            remote_submodules: Mapping of remote URL -> submodules its manifest declares
            remote_heads: Mapping of remote URL -> default branch head commit
            unreadable_manifests: Remote URLs whose manifest read raises RuntimeError
            existing_paths: Paths that already exist on disk
            default_branches: Mapping of repo_root -> default branch (defaults to "main")
            pinned_commits: Mapping of submodule checkout path -> commit it points at
            staged_repos: Repo roots that report staged changes regardless of checkouts
            stale_submodules: Submodule checkout paths whose .git link survives
                neither clone nor sync, only reinit_submodule()
            commit_raises: Exception raised by commit()
            push_raises: Exception raised by force_push()
            pull_raises: Exception raised by pull_branch()
        """
        self._remote_submodules = remote_submodules or {}
        self._remote_heads = dict(remote_heads or {})
        self._unreadable_manifests = unreadable_manifests or set()
        self._existing_paths: set[Path] = set(existing_paths or set())
        self._default_branches = default_branches or {}
        self._pinned_commits: dict[Path, str] = dict(pinned_commits or {})
        self._staged_repos: set[Path] = set(staged_repos or set())
        self._stale_submodules = stale_submodules or set()
        self._commit_raises = commit_raises
        self._push_raises = push_raises
        self._pull_raises = pull_raises

        self._clone_urls: dict[Path, str] = {}
        self._dirty_checkouts: set[Path] = set()

        # Mutation tracking
        self._cloned: list[tuple[str, Path]] = []
        self._fetched: list[Path] = []
        self._checked_out_branches: list[tuple[Path, str]] = []
        self._pulled: list[tuple[Path, str, str]] = []
        self._synced: list[Path] = []
        self._reinitialized: list[tuple[Path, str]] = []
        self._checked_out_commits: list[tuple[Path, str]] = []
        self._created_branches: list[tuple[Path, str]] = []
        self._commits: list[tuple[Path, str]] = []
        self._pushed: list[tuple[Path, str, str]] = []
        self._manifest_reads: list[Path] = []

    # ============================================================================
    # Test helpers
    # ============================================================================

    def set_remote_head(self, url: str, commit: str) -> None:
        """Move a remote's default branch head (e.g. after a merge)."""
        self._remote_heads[url] = commit

    # ============================================================================
    # Query Operations
    # ============================================================================

    def path_exists(self, path: Path) -> bool:
        return path in self._existing_paths

    def list_submodules(self, repo_root: Path) -> list[SubmoduleInfo]:
        self._manifest_reads.append(repo_root)
        return self._declared_submodules(repo_root)

    def _declared_submodules(self, repo_root: Path) -> list[SubmoduleInfo]:
        url = self._clone_urls.get(repo_root)
        if url is None:
            return []
        if url in self._unreadable_manifests:
            msg = f"Failed to read submodule manifest of {repo_root.name}"
            raise RuntimeError(msg)
        return list(self._remote_submodules.get(url, []))

    def detect_default_branch(self, repo_root: Path) -> str:
        return self._default_branches.get(repo_root, "main")

    def get_remote_head_commit(self, url: str) -> str:
        if url not in self._remote_heads:
            msg = f"Remote {url} did not report a HEAD commit"
            raise RuntimeError(msg)
        return self._remote_heads[url]

    def has_staged_changes(self, repo_root: Path) -> bool:
        if repo_root in self._staged_repos:
            return True
        return any(
            checkout != repo_root and checkout.is_relative_to(repo_root)
            for checkout in self._dirty_checkouts
        )

    # ============================================================================
    # Mutation Operations
    # ============================================================================

    def clone(self, url: str, destination: Path) -> None:
        self._cloned.append((url, destination))
        self._clone_urls[destination] = url
        self._existing_paths.add(destination)
        self._existing_paths.add(destination / ".git")

    def fetch(self, repo_root: Path) -> None:
        self._fetched.append(repo_root)

    def checkout_branch(self, repo_root: Path, branch: str) -> None:
        self._checked_out_branches.append((repo_root, branch))

    def pull_branch(self, repo_root: Path, remote: str, branch: str) -> None:
        if self._pull_raises is not None:
            raise self._pull_raises
        self._pulled.append((repo_root, remote, branch))

    def sync_submodules(self, repo_root: Path) -> None:
        self._synced.append(repo_root)
        for submodule in self._declared_submodules(repo_root):
            checkout = repo_root / submodule.path
            self._existing_paths.add(checkout)
            if checkout not in self._stale_submodules:
                self._existing_paths.add(checkout / ".git")

    def reinit_submodule(self, repo_root: Path, submodule_path: str) -> None:
        self._reinitialized.append((repo_root, submodule_path))
        checkout = repo_root / submodule_path
        self._existing_paths.add(checkout)
        self._existing_paths.add(checkout / ".git")

    def checkout_commit(self, repo_root: Path, commit: str) -> None:
        self._checked_out_commits.append((repo_root, commit))
        if self._pinned_commits.get(repo_root) != commit:
            self._dirty_checkouts.add(repo_root)

    def create_or_reset_branch(self, repo_root: Path, branch: str) -> None:
        self._created_branches.append((repo_root, branch))

    def add_all(self, repo_root: Path) -> None:
        pass

    def commit(self, repo_root: Path, message: str) -> None:
        if self._commit_raises is not None:
            raise self._commit_raises
        self._commits.append((repo_root, message))
        self._staged_repos.discard(repo_root)
        self._dirty_checkouts = {
            checkout for checkout in self._dirty_checkouts if not checkout.is_relative_to(repo_root)
        }

    def force_push(self, repo_root: Path, remote: str, branch: str) -> None:
        if self._push_raises is not None:
            raise self._push_raises
        self._pushed.append((repo_root, remote, branch))

    # ============================================================================
    # Mutation tracking properties
    # ============================================================================

    @property
    def cloned(self) -> list[tuple[str, Path]]:
        return list(self._cloned)

    @property
    def cloned_urls(self) -> list[str]:
        return [url for url, _ in self._cloned]

    @property
    def fetched(self) -> list[Path]:
        return list(self._fetched)

    @property
    def checked_out_branches(self) -> list[tuple[Path, str]]:
        return list(self._checked_out_branches)

    @property
    def pulled(self) -> list[tuple[Path, str, str]]:
        return list(self._pulled)

    @property
    def synced(self) -> list[Path]:
        return list(self._synced)

    @property
    def reinitialized_submodules(self) -> list[tuple[Path, str]]:
        return list(self._reinitialized)

    @property
    def checked_out_commits(self) -> list[tuple[Path, str]]:
        return list(self._checked_out_commits)

    @property
    def created_branches(self) -> list[tuple[Path, str]]:
        return list(self._created_branches)

    @property
    def commits(self) -> list[tuple[Path, str]]:
        return list(self._commits)

    @property
    def pushed_branches(self) -> list[tuple[Path, str, str]]:
        return list(self._pushed)

    @property
    def manifest_reads(self) -> list[Path]:
        return list(self._manifest_reads)
